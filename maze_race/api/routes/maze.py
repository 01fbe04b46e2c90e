"""Maze routes for generating mazes and checking move strings."""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from maze_race.api.rate_limit import limiter
from maze_race.config import get_settings
from maze_race.core import (
    Maze,
    MazeParseError,
    MazeValidationError,
    find_optimal_path,
    generate_maze,
    maze_from_data,
    maze_to_ascii,
    maze_to_grid,
    parse_and_walk,
    path_to_moves,
)
from maze_race.schemas.maze import (
    MazeGenerateRequest,
    MazePreset,
    MazePresetsResponse,
    MazeResponse,
    PositionSchema,
    WalkRequest,
    WalkResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/maze", tags=["Mazes"])
settings = get_settings()

MAZE_PRESETS = [
    MazePreset(name="Easy", width=5, height=5),
    MazePreset(name="Medium", width=8, height=8),
    MazePreset(name="Hard", width=12, height=12),
    MazePreset(name="Expert", width=15, height=15),
]


def check_maze_size(width: int, height: int) -> None:
    """Raise ValueError if a dimension is outside the configured bounds."""
    for name, value in (("width", width), ("height", height)):
        if not settings.maze_min_size <= value <= settings.maze_max_size:
            raise ValueError(
                f"Maze {name} must be between {settings.maze_min_size} and {settings.maze_max_size}, got {value}"
            )


def load_client_maze(data: dict) -> Maze:
    """Rebuild a maze sent back by a client, enforcing the size bounds.

    Raises:
        ValueError: With a client-facing message if the maze is unusable.
    """
    try:
        maze = maze_from_data(data)
    except (MazeParseError, MazeValidationError) as e:
        raise ValueError(f"Invalid maze: {e}") from e
    check_maze_size(maze.width, maze.height)
    return maze


@router.get(
    "/presets",
    response_model=MazePresetsResponse,
)
async def list_presets() -> MazePresetsResponse:
    """List the named maze sizes offered in the setup screen."""
    return MazePresetsResponse(
        presets=MAZE_PRESETS,
        default_size=settings.default_maze_size,
        min_size=settings.maze_min_size,
        max_size=settings.maze_max_size,
    )


@router.post(
    "",
    response_model=MazeResponse,
)
@limiter.limit(f"{settings.rate_limit_requests}/minute")
async def create_maze(
    request: Request,
    body: MazeGenerateRequest,
) -> MazeResponse:
    """Generate a perfect maze.

    Returns the maze itself (send it back unchanged to walk or race on it),
    its text renderings, and the shortest route from start to end.
    """
    try:
        check_maze_size(body.width, body.height)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    maze = generate_maze(body.width, body.height, seed=body.seed)
    optimal_path = find_optimal_path(maze)

    logger.info(f"Generated {maze.width}x{maze.height} maze, optimal path {len(optimal_path) - 1} moves")

    return MazeResponse(
        maze=maze.to_dict(),
        grid=maze_to_grid(maze),
        ascii=maze_to_ascii(maze),
        optimal_path=[PositionSchema(x=p.x, y=p.y) for p in optimal_path],
        optimal_moves=path_to_moves(optimal_path),
    )


@router.post(
    "/walk",
    response_model=WalkResponse,
)
async def walk_maze(body: WalkRequest) -> WalkResponse:
    """Walk a move string through a maze.

    Characters other than U/D/L/R are ignored and moves into walls are
    dropped. Walking stops as soon as the end is reached.
    """
    try:
        maze = load_client_maze(body.maze)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    walk = parse_and_walk(maze, body.moves)

    return WalkResponse(
        path=[PositionSchema(x=p.x, y=p.y) for p in walk.path],
        reached_end=walk.reached_end,
        move_count=walk.move_count,
        optimal_length=len(find_optimal_path(maze)) - 1,
    )
