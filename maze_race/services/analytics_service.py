"""Anonymous visit tracking."""

import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from maze_race.models.visit import Visit

logger = logging.getLogger(__name__)

VISIT_FIELDS = (
    "user_agent",
    "referrer",
    "page_url",
    "screen_width",
    "screen_height",
    "language",
    "platform",
)


def generate_visitor_id() -> str:
    """Generate an anonymous visitor id."""
    return f"v_{uuid.uuid4()}"


async def track_visit(
    session_factory: async_sessionmaker[AsyncSession],
    visitor_id: str,
    data: dict[str, Any],
) -> bool:
    """
    Record a visit. Runs as a background task after the response is sent.

    Failures are logged and never propagate: analytics must not break the page.

    Returns:
        True if the visit was written.
    """
    try:
        async with session_factory() as db:
            visit = Visit(
                visitor_id=visitor_id,
                **{key: data.get(key) for key in VISIT_FIELDS},
            )
            db.add(visit)
            await db.commit()
    except Exception as e:
        logger.error(f"Failed to record visit for {visitor_id}: {type(e).__name__}: {e}")
        return False

    logger.debug(f"Visit recorded for {visitor_id}")
    return True
