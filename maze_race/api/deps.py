"""API dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from maze_race.config import Settings, get_settings
from maze_race.db.database import get_session_factory
from maze_race.services.ai_gateway import AIGatewayClient, get_ai_gateway_client

# Type aliases for cleaner route signatures
AppSettings = Annotated[Settings, Depends(get_settings)]
GatewayClient = Annotated[AIGatewayClient, Depends(get_ai_gateway_client)]
SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
