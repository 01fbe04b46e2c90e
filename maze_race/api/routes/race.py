"""Race WebSocket route.

A race lives exactly as long as its socket. Nothing is stored server-side.
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from maze_race.api.deps import GatewayClient
from maze_race.api.routes.maze import check_maze_size, load_client_maze
from maze_race.core import find_optimal_path, generate_maze, maze_to_grid
from maze_race.schemas.race import RaceControlMessage, RaceStartMessage
from maze_race.services.ai_gateway import resolve_model
from maze_race.services.race_service import Race, RaceConfigError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/race", tags=["Race"])

TERMINAL_MESSAGES = ("race_complete", "error")


async def reject(websocket: WebSocket, detail: str) -> None:
    """Report an invalid race request and close the socket."""
    logger.info(f"Race rejected: {detail}")
    await websocket.send_json({"type": "error", "detail": detail})
    await websocket.close(code=status.WS_1008_POLICY_VIOLATION)


async def listen_for_stop(websocket: WebSocket, race: Race) -> None:
    """Stop the race when the client asks to or goes away."""
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                RaceControlMessage.model_validate_json(raw)
            except ValidationError:
                logger.debug(f"Ignoring client message during race: {raw[:100]}")
                continue
            race.stop()
    except WebSocketDisconnect:
        logger.info("Client disconnected, stopping race")
        race.stop()


@router.websocket("/ws")
async def race_websocket(websocket: WebSocket, client: GatewayClient):
    """WebSocket endpoint that runs one race per connection.

    The client opens with one of:
    {"type": "start", "models": ["openai/gpt-4o", "x-ai/grok-4"], "maze": {...}}
    {"type": "start", "models": [...], "width": 8, "height": 8, "seed": 42}

    The server answers with "race_created" (carrying the maze), then streams
    "racer_update", "race_started", "racer_finished" and finally
    "race_complete", after which the socket closes. Sending
    {"type": "stop"} aborts the race. Invalid requests get
    {"type": "error", "detail": "..."} and close code 1008.
    """
    await websocket.accept()

    try:
        raw = await websocket.receive_text()
    except WebSocketDisconnect:
        return

    try:
        request = RaceStartMessage.model_validate_json(raw)
    except ValidationError as e:
        await reject(websocket, f"Invalid start message: {e.errors()[0]['msg']}")
        return

    try:
        models = [resolve_model(model_id) for model_id in request.models]
    except KeyError as e:
        await reject(websocket, str(e.args[0]))
        return

    try:
        if request.maze is not None:
            maze = load_client_maze(request.maze)
        else:
            check_maze_size(request.width, request.height)
            maze = generate_maze(request.width, request.height, seed=request.seed)
    except ValueError as e:
        await reject(websocket, str(e))
        return

    try:
        race = Race(maze, models, client)
    except RaceConfigError as e:
        await reject(websocket, str(e))
        return

    await websocket.send_json(
        {
            "type": "race_created",
            "data": {
                "maze": maze.to_dict(),
                "grid": maze_to_grid(maze),
                "models": [m.to_dict() for m in models],
                "optimal_length": len(find_optimal_path(maze)) - 1,
            },
        }
    )
    logger.info(f"Race created: {maze.width}x{maze.height}, {', '.join(m.name for m in models)}")

    queue = race.subscribe()

    async def run_race() -> None:
        try:
            await race.start()
        except Exception as e:
            logger.error(f"Race failed: {type(e).__name__}: {e}")
            queue.put_nowait({"type": "error", "detail": "Race failed"})

    async def forward_events() -> None:
        while True:
            message = await queue.get()
            await websocket.send_json(message)
            if message["type"] in TERMINAL_MESSAGES:
                return

    race_task = asyncio.create_task(run_race())
    forward_task = asyncio.create_task(forward_events())
    listen_task = asyncio.create_task(listen_for_stop(websocket, race))

    try:
        await asyncio.wait({forward_task, listen_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        race.stop()
        tasks = (race_task, forward_task, listen_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        race.unsubscribe(queue)

    if forward_task.done() and not forward_task.cancelled() and forward_task.exception() is None:
        await websocket.close()
