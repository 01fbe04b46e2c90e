"""
AI Maze Race - Maze Engine

Core maze logic including:
- Perfect maze generation (randomized depth-first search)
- Wall bookkeeping between adjacent cells
- Valid move queries
- Move application

Coordinates:
    (0, 0) is the top-left cell, x grows to the right and y grows downwards.
    The start is always (0, 0) and the end is always (width - 1, height - 1).
"""

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Sequence


class InvalidMoveError(ValueError):
    """Raised when a move would cross a wall or leave the maze."""

    pass


class Direction(Enum):
    """Movement directions.

    Declaration order (up, right, down, left) is the enumeration order used
    for valid-move listings and for BFS tie-breaking.
    """
    UP = "up"
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"

    @property
    def delta(self) -> tuple[int, int]:
        """Get (dx, dy) for this direction."""
        deltas = {
            Direction.UP: (0, -1),
            Direction.RIGHT: (1, 0),
            Direction.DOWN: (0, 1),
            Direction.LEFT: (-1, 0),
        }
        return deltas[self]

    @property
    def wall(self) -> str:
        """Name of the cell wall crossed when moving this way."""
        walls = {
            Direction.UP: "top",
            Direction.RIGHT: "right",
            Direction.DOWN: "bottom",
            Direction.LEFT: "left",
        }
        return walls[self]

    @property
    def opposite(self) -> "Direction":
        """Get the opposite direction."""
        opposites = {
            Direction.UP: Direction.DOWN,
            Direction.RIGHT: Direction.LEFT,
            Direction.DOWN: Direction.UP,
            Direction.LEFT: Direction.RIGHT,
        }
        return opposites[self]

    @property
    def symbol(self) -> str:
        """Single-letter move-string symbol."""
        return self.value[0].upper()

    @classmethod
    def from_char(cls, char: str) -> Optional["Direction"]:
        """Convert a move-string character to a Direction, None if it carries no move."""
        mapping = {
            "U": cls.UP,
            "R": cls.RIGHT,
            "D": cls.DOWN,
            "L": cls.LEFT,
        }
        return mapping.get(char.upper())


@dataclass(frozen=True)
class Position:
    """2D position in the maze."""
    x: int
    y: int

    def move(self, direction: Direction) -> "Position":
        """Return new position after moving in direction."""
        dx, dy = direction.delta
        return Position(self.x + dx, self.y + dy)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict) -> "Position":
        """Build from a {"x": .., "y": ..} mapping."""
        return cls(int(data["x"]), int(data["y"]))


@dataclass
class Walls:
    """Wall flags for the four sides of a cell. True means closed."""
    top: bool = True
    right: bool = True
    bottom: bool = True
    left: bool = True

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "top": self.top,
            "right": self.right,
            "bottom": self.bottom,
            "left": self.left,
        }


@dataclass
class Cell:
    """A single maze cell.

    `visited` is generation scratch state and is always False on a finished maze.
    """
    x: int
    y: int
    walls: Walls = field(default_factory=Walls)
    visited: bool = False

    def has_wall(self, direction: Direction) -> bool:
        """Check whether the wall on the given side is closed."""
        return getattr(self.walls, direction.wall)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"x": self.x, "y": self.y, "walls": self.walls.to_dict()}


@dataclass
class Maze:
    """A width x height grid of cells addressed cells[y][x].

    Mazes are never mutated once generated; every racer shares the same instance.
    """
    width: int
    height: int
    cells: list[list[Cell]]

    @property
    def start(self) -> Position:
        """Start cell, fixed at the top-left corner."""
        return Position(0, 0)

    @property
    def end(self) -> Position:
        """End cell, fixed at the bottom-right corner."""
        return Position(self.width - 1, self.height - 1)

    def in_bounds(self, position: Position) -> bool:
        """Check that a position lies inside the grid."""
        return 0 <= position.x < self.width and 0 <= position.y < self.height

    def cell_at(self, position: Position) -> Cell:
        """Get the cell at a position."""
        return self.cells[position.y][position.x]

    def to_dict(self) -> dict:
        """Convert to a JSON-compatible dictionary."""
        return {
            "width": self.width,
            "height": self.height,
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "cells": [[cell.to_dict() for cell in row] for row in self.cells],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Maze":
        """Build a maze from `to_dict()` output.

        Structural checks live in maze_render.maze_from_data; this only
        rebuilds the objects.
        """
        cells = [
            [
                Cell(
                    x=int(raw["x"]),
                    y=int(raw["y"]),
                    walls=Walls(**{side: bool(raw["walls"][side]) for side in ("top", "right", "bottom", "left")}),
                )
                for raw in row
            ]
            for row in data["cells"]
        ]
        return cls(width=int(data["width"]), height=int(data["height"]), cells=cells)


# Picks one element out of a non-empty sequence
Chooser = Callable[[Sequence[Cell]], Cell]


def create_grid(width: int, height: int) -> list[list[Cell]]:
    """Create a fully walled grid."""
    return [[Cell(x, y) for x in range(width)] for y in range(height)]


def _unvisited_neighbors(cell: Cell, grid: list[list[Cell]]) -> list[Cell]:
    """Unvisited in-bounds neighbours in direction order (up, right, down, left)."""
    height = len(grid)
    width = len(grid[0])
    neighbors = []

    for direction in Direction:
        dx, dy = direction.delta
        nx, ny = cell.x + dx, cell.y + dy
        if 0 <= nx < width and 0 <= ny < height and not grid[ny][nx].visited:
            neighbors.append(grid[ny][nx])

    return neighbors


def remove_wall_between(current: Cell, neighbor: Cell) -> None:
    """Open the shared wall on both sides of two adjacent cells."""
    offset = (neighbor.x - current.x, neighbor.y - current.y)
    for direction in Direction:
        if direction.delta == offset:
            setattr(current.walls, direction.wall, False)
            setattr(neighbor.walls, direction.opposite.wall, False)
            return
    raise ValueError(
        f"Cells ({current.x}, {current.y}) and ({neighbor.x}, {neighbor.y}) are not adjacent"
    )


def generate_maze(
    width: int,
    height: int,
    choose: Optional[Chooser] = None,
    seed: Optional[int] = None,
) -> Maze:
    """
    Generate a perfect maze using iterative randomized depth-first search.

    Args:
        width: Number of columns (>= 1).
        height: Number of rows (>= 1).
        choose: "Pick one of N" callable used for every random choice.
            Defaults to random.choice.
        seed: If given (and choose is not), use a private seeded generator
            so the same seed always yields the same maze.

    Returns:
        Maze whose passage graph is a spanning tree over the grid.

    Raises:
        ValueError: If width or height is smaller than 1.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Maze dimensions must be at least 1x1, got {width}x{height}")

    if choose is None:
        choose = random.Random(seed).choice if seed is not None else random.choice

    grid = create_grid(width, height)

    # Carve from the start corner
    start_cell = grid[0][0]
    start_cell.visited = True
    stack = [start_cell]

    while stack:
        current = stack[-1]
        neighbors = _unvisited_neighbors(current, grid)

        if neighbors:
            chosen = choose(neighbors)
            remove_wall_between(current, chosen)
            chosen.visited = True
            stack.append(chosen)
        else:
            # Backtrack
            stack.pop()

    for row in grid:
        for cell in row:
            cell.visited = False

    return Maze(width=width, height=height, cells=grid)


def get_valid_moves(maze: Maze, position: Position) -> list[Direction]:
    """
    Get the directions that can be taken from a position.

    A direction is valid when the cell's wall on that side is open and the
    resulting coordinate stays inside the maze. Results follow direction
    order (up, right, down, left).
    """
    cell = maze.cell_at(position)
    return [
        direction
        for direction in Direction
        if not cell.has_wall(direction) and maze.in_bounds(position.move(direction))
    ]


def move(position: Position, direction: Direction, maze: Optional[Maze] = None) -> Position:
    """
    Translate a position one step in a direction.

    The move must already be known to be legal (see get_valid_moves). Pass
    `maze` to have that checked.

    Raises:
        InvalidMoveError: If `maze` is given and the move is illegal.
    """
    if maze is not None and direction not in get_valid_moves(maze, position):
        raise InvalidMoveError(
            f"Cannot move {direction.value} from ({position.x}, {position.y}) - wall blocking"
        )
    return position.move(direction)


if __name__ == "__main__":
    # Quick demo
    from maze_race.core.maze_render import maze_to_ascii, maze_to_grid

    demo = generate_maze(6, 4, seed=7)
    print(f"Generated {demo.width}x{demo.height} maze:")
    print(maze_to_grid(demo))

    position = demo.start
    print(f"\nValid moves from start: {[d.value for d in get_valid_moves(demo, position)]}")
    position = move(position, get_valid_moves(demo, position)[0], demo)
    print(f"After first move: {position.to_dict()}")
    print()
    print(maze_to_ascii(demo, position))
