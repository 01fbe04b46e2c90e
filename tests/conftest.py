"""Pytest configuration and fixtures."""

import asyncio
from typing import Any, AsyncGenerator, Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from maze_race.api.rate_limit import limiter
from maze_race.core import Maze, parse_grid
from maze_race.db.database import Base, get_session_factory
from maze_race.main import app
from maze_race.models import Visit  # noqa: F401
from maze_race.services.ai_gateway import extract_content, get_ai_gateway_client, resolve_model

# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# 3x3 maze whose only route is DDRR; "U" from the start hits the border
SMALL_MAZE_GRID = "\n".join(
    [
        "███████",
        "█S█   █",
        "█ █ ███",
        "█ █ █ █",
        "█ █ █ █",
        "█    E█",
        "███████",
    ]
)

# 5x5 maze: open top row, then every column is a dead-end corridor
COMB_MAZE_GRID = "\n".join(
    ["███████████", "█S        █"]
    + ["█ █ █ █ █ █"] * 7
    + ["█ █ █ █ █E█", "███████████"]
)


class FakeGatewayClient:
    """In-process stand-in for AIGatewayClient.

    `replies` maps a model id to the reply content, an exception to raise,
    or an async callable whose result is returned as the response body.
    """

    def __init__(self, replies: Optional[dict[str, Any]] = None, default: Any = "DDRR"):
        self.replies = replies or {}
        self.default = default
        self.calls: list[dict[str, Any]] = []

    async def chat_completion(self, model, messages, temperature, max_tokens):
        self.calls.append(
            {
                "model": model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        reply = self.replies.get(model, self.default)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return await reply()
        return {"choices": [{"message": {"content": reply}}]}

    async def complete(self, model, messages, temperature, max_tokens):
        data = await self.chat_completion(model, messages, temperature, max_tokens)
        return extract_content(data)

    async def close(self):
        pass


def never_answers(seconds: float = 5.0):
    """Reply factory that outlasts any test planning timeout."""

    async def reply():
        await asyncio.sleep(seconds)
        return {"choices": [{"message": {"content": "DDRR"}}]}

    return reply


@pytest.fixture
def small_maze_grid() -> str:
    return SMALL_MAZE_GRID


@pytest.fixture
def comb_maze_grid() -> str:
    return COMB_MAZE_GRID


@pytest.fixture
def small_maze() -> Maze:
    """3x3 maze solved by DDRR."""
    return parse_grid(SMALL_MAZE_GRID)


@pytest.fixture
def comb_maze() -> Maze:
    """5x5 maze solved by RRRRDDDD."""
    return parse_grid(COMB_MAZE_GRID)


@pytest.fixture
def gpt4o():
    return resolve_model("openai/gpt-4o")


@pytest.fixture
def grok():
    return resolve_model("x-ai/grok-4")


@pytest.fixture
def make_gateway():
    """Build a gateway double with per-model replies."""
    return FakeGatewayClient


@pytest.fixture
def slow_reply():
    """Reply factory for gateway calls that outlast the planning timeout."""
    return never_answers


@pytest.fixture
def fake_gateway() -> FakeGatewayClient:
    """Gateway double that answers DDRR for every model."""
    return FakeGatewayClient()


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Create a test session factory."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, fake_gateway) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_ai_gateway_client] = lambda: fake_gateway
    limiter.reset()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def ws_client(fake_gateway):
    """Create a synchronous client for the race WebSocket."""
    app.dependency_overrides[get_ai_gateway_client] = lambda: fake_gateway

    yield TestClient(app)

    app.dependency_overrides.clear()
