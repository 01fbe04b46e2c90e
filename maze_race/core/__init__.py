# Core module
from .maze_engine import (
    Cell,
    Direction,
    InvalidMoveError,
    Maze,
    Position,
    Walls,
    create_grid,
    generate_maze,
    get_valid_moves,
    move,
)
from .maze_render import (
    MazeParseError,
    MazeValidationError,
    deserialize_maze,
    maze_from_data,
    maze_to_ascii,
    maze_to_grid,
    parse_grid,
    serialize_maze,
    validate_grid_text,
)
from .move_parser import WalkResult, parse_and_walk, path_to_moves
from .path_planner import find_optimal_path, is_valid_path

__all__ = [
    "Cell",
    "Direction",
    "InvalidMoveError",
    "Maze",
    "Position",
    "Walls",
    "create_grid",
    "generate_maze",
    "get_valid_moves",
    "move",
    "MazeParseError",
    "MazeValidationError",
    "deserialize_maze",
    "maze_from_data",
    "maze_to_ascii",
    "maze_to_grid",
    "parse_grid",
    "serialize_maze",
    "validate_grid_text",
    "WalkResult",
    "parse_and_walk",
    "path_to_moves",
    "find_optimal_path",
    "is_valid_path",
]
