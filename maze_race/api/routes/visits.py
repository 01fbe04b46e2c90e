"""Analytics beacon route."""

from fastapi import APIRouter, BackgroundTasks, status

from maze_race.api.deps import AppSettings, SessionFactory
from maze_race.schemas.visit import VisitRequest, VisitResponse
from maze_race.services.analytics_service import generate_visitor_id, track_visit

router = APIRouter(prefix="/visits", tags=["Analytics"])


@router.post(
    "",
    response_model=VisitResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def record_visit(
    body: VisitRequest,
    background_tasks: BackgroundTasks,
    settings: AppSettings,
    session_factory: SessionFactory,
) -> VisitResponse:
    """Record a page visit.

    Responds immediately; the visit is written after the response is sent
    and a failed write is never reported to the caller.
    """
    visitor_id = body.visitor_id or generate_visitor_id()

    if settings.visits_enabled:
        background_tasks.add_task(
            track_visit,
            session_factory,
            visitor_id,
            body.model_dump(exclude={"visitor_id"}),
        )

    return VisitResponse(visitor_id=visitor_id)
