"""
Move-sequence validation for AI Maze Race.

Model replies are free text. Only U, D, L and R (any case) carry meaning;
every other character is ignored, and moves that would cross a wall are
dropped rather than treated as errors.
"""

from dataclasses import dataclass

from maze_race.core.maze_engine import Direction, Maze, Position, get_valid_moves


@dataclass
class WalkResult:
    """Outcome of walking a move string through a maze."""

    path: list[Position]
    reached_end: bool

    @property
    def move_count(self) -> int:
        """Number of moves actually applied."""
        return len(self.path) - 1

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "path": [p.to_dict() for p in self.path],
            "reached_end": self.reached_end,
            "move_count": self.move_count,
        }


def parse_and_walk(maze: Maze, move_string: str) -> WalkResult:
    """
    Walk a move string from the maze start.

    Args:
        maze: Maze to walk through.
        move_string: Free text; U/D/L/R characters are moves.

    Returns:
        WalkResult whose path starts at the maze start. Walking stops as
        soon as the end is reached, ignoring the rest of the string.
    """
    position = maze.start
    path = [position]

    if position == maze.end:
        return WalkResult(path=path, reached_end=True)

    for char in move_string:
        direction = Direction.from_char(char)
        if direction is None:
            continue

        if direction not in get_valid_moves(maze, position):
            continue

        position = position.move(direction)
        path.append(position)

        if position == maze.end:
            return WalkResult(path=path, reached_end=True)

    return WalkResult(path=path, reached_end=False)


def path_to_moves(path: list[Position]) -> str:
    """Convert a path of adjacent positions back into a move string."""
    moves = []
    for current, following in zip(path, path[1:]):
        for direction in Direction:
            if current.move(direction) == following:
                moves.append(direction.symbol)
                break
        else:
            raise ValueError(
                f"Positions ({current.x}, {current.y}) and ({following.x}, {following.y}) are not adjacent"
            )
    return "".join(moves)
