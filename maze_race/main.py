"""AI Maze Race API - Main FastAPI Application."""

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from maze_race.api.rate_limit import limiter
from maze_race.api.routes import maze, models, race, visits
from maze_race.config import get_settings
from maze_race.db.database import init_db
from maze_race.services.ai_gateway import close_ai_gateway_client

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("maze_race")

settings = get_settings()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Answer 429 with the limit that was hit."""
    logger.warning(f"Rate limit {exc.detail} hit on {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests", "limit": str(exc.detail)},
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each HTTP request with a short id echoed in X-Request-ID."""

    async def dispatch(self, request: Request, call_next):
        request_id = uuid.uuid4().hex[:8]
        start_time = time.monotonic()

        response = await call_next(request)

        elapsed_ms = (time.monotonic() - start_time) * 1000
        logger.info(
            f"[{request_id}] {request.method} {request.url.path} "
            f"{response.status_code} ({elapsed_ms:.1f}ms)"
        )
        response.headers["X-Request-ID"] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting AI Maze Race API...")

    # Startup: create the visit log table
    await init_db()
    logger.info("Database ready")

    if not settings.ai_api_key:
        logger.warning("AI_API_KEY is not set; every racer will fall back to the optimal path")

    yield

    # Shutdown: release the gateway connection pool
    logger.info("Shutting down AI Maze Race API...")
    await close_ai_gateway_client()
    logger.info("AI gateway client closed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Watch AI models race through randomly generated mazes",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(RequestLoggingMiddleware)

# The browser client is served from a different origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "version": settings.app_version}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


# Include routers
app.include_router(models.router, prefix="/v1")
app.include_router(maze.router, prefix="/v1")
app.include_router(race.router, prefix="/v1")
app.include_router(visits.router, prefix="/v1")
