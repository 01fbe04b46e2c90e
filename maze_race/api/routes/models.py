"""Model routes for listing racers and checking gateway connectivity."""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from maze_race.api.deps import GatewayClient
from maze_race.api.rate_limit import limiter
from maze_race.config import get_settings
from maze_race.schemas.models import (
    ModelCheckItem,
    ModelCheckRequest,
    ModelCheckResponse,
    ModelInfo,
    ModelListResponse,
)
from maze_race.services.ai_gateway import check_models, get_available_models, resolve_model

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/models", tags=["Models"])
settings = get_settings()


@router.get(
    "",
    response_model=ModelListResponse,
)
async def list_models() -> ModelListResponse:
    """List the models that can enter a race."""
    models = [ModelInfo(**m.to_dict()) for m in get_available_models()]
    return ModelListResponse(models=models, total=len(models))


@router.post(
    "/check",
    response_model=ModelCheckResponse,
)
@limiter.limit(f"{settings.rate_limit_model_checks}/minute")
async def check_connectivity(
    request: Request,
    body: ModelCheckRequest,
    client: GatewayClient,
) -> ModelCheckResponse:
    """Send a one-word prompt to each model and report which ones answer.

    Checks every registered model when no ids are given.
    """
    if body.models:
        try:
            models = [resolve_model(model_id) for model_id in body.models]
        except KeyError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e.args[0]),
            )
    else:
        models = get_available_models()

    results = await check_models(client, models)
    passed = sum(1 for r in results if r.status == "success")

    logger.info(f"Connectivity check: {passed}/{len(results)} models answered")

    return ModelCheckResponse(
        results=[ModelCheckItem(**r.to_dict()) for r in results],
        passed=passed,
        failed=len(results) - passed,
    )
