"""
Maze rendering and parsing for AI Maze Race.

Converts mazes to the text views handed to models and back.

Grid Format (what models see):
    █ = Wall
      = Open cell or passage (space)
    S = Start cell (top-left)
    E = End cell (bottom-right)

A W x H maze renders as (2W + 1) columns by (2H + 1) rows: odd rows/columns
hold cells, even ones hold the walls between them.
"""

import json
from typing import Optional

from maze_race.core.maze_engine import Cell, Direction, Maze, Position, Walls, create_grid


class MazeParseError(Exception):
    """Exception raised when maze text or data cannot be parsed."""

    pass


class MazeValidationError(Exception):
    """Exception raised when a parsed maze is structurally invalid."""

    pass


WALL_GLYPH = "█"
OPEN_GLYPH = " "
START_GLYPH = "S"
END_GLYPH = "E"
VALID_CHARS = {WALL_GLYPH, OPEN_GLYPH, START_GLYPH, END_GLYPH}


def maze_to_grid(maze: Maze) -> str:
    """
    Render the maze as a character grid.

    Args:
        maze: Maze to render.

    Returns:
        Multi-line string, (2H + 1) lines of (2W + 1) characters.
    """
    grid_height = maze.height * 2 + 1
    grid_width = maze.width * 2 + 1
    grid = [[WALL_GLYPH] * grid_width for _ in range(grid_height)]

    for row in maze.cells:
        for cell in row:
            gx = cell.x * 2 + 1
            gy = cell.y * 2 + 1
            grid[gy][gx] = OPEN_GLYPH

            if not cell.walls.top and cell.y > 0:
                grid[gy - 1][gx] = OPEN_GLYPH
            if not cell.walls.bottom and cell.y < maze.height - 1:
                grid[gy + 1][gx] = OPEN_GLYPH
            if not cell.walls.left and cell.x > 0:
                grid[gy][gx - 1] = OPEN_GLYPH
            if not cell.walls.right and cell.x < maze.width - 1:
                grid[gy][gx + 1] = OPEN_GLYPH

    grid[1][1] = START_GLYPH
    grid[maze.height * 2 - 1][maze.width * 2 - 1] = END_GLYPH

    return "\n".join("".join(row) for row in grid)


def maze_to_ascii(maze: Maze, ball_position: Optional[Position] = None) -> str:
    """
    Render the maze with box-drawing characters.

    Args:
        maze: Maze to render.
        ball_position: If provided, marks that cell with a ball.

    Returns:
        Multi-line box-drawing string.
    """
    lines = []

    top = "┌"
    for x in range(maze.width):
        top += "───" + ("┬" if x < maze.width - 1 else "┐")
    lines.append(top)

    for y in range(maze.height):
        cell_row = "│"
        for x in range(maze.width):
            cell = maze.cells[y][x]
            here = Position(x, y)
            if ball_position is not None and here == ball_position:
                content = " ● "
            elif here == maze.start:
                content = " S "
            elif here == maze.end:
                content = " E "
            else:
                content = "   "
            cell_row += content
            cell_row += "│" if cell.walls.right else " "
        lines.append(cell_row)

        if y < maze.height - 1:
            wall_row = "├"
            for x in range(maze.width):
                wall_row += "───" if maze.cells[y][x].walls.bottom else "   "
                wall_row += "┼" if x < maze.width - 1 else "┤"
            lines.append(wall_row)

    bottom = "└"
    for x in range(maze.width):
        bottom += "───" + ("┴" if x < maze.width - 1 else "┘")
    lines.append(bottom)

    return "\n".join(lines)


def serialize_maze(maze: Maze) -> str:
    """Serialize a maze to JSON so every racer can share the same one."""
    return json.dumps(maze.to_dict())


def maze_from_data(data: dict) -> Maze:
    """
    Build a maze from its dictionary form, checking it is consistent.

    Raises:
        MazeParseError: If required fields are missing or malformed.
        MazeValidationError: If dimensions or walls are inconsistent.
    """
    try:
        maze = Maze.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise MazeParseError(f"Malformed maze data: {e}") from e

    if maze.width < 1 or maze.height < 1:
        raise MazeValidationError(f"Maze dimensions must be at least 1x1, got {maze.width}x{maze.height}")

    if len(maze.cells) != maze.height or any(len(row) != maze.width for row in maze.cells):
        raise MazeValidationError(
            f"Cell grid does not match declared size {maze.width}x{maze.height}"
        )

    for y, row in enumerate(maze.cells):
        for x, cell in enumerate(row):
            if (cell.x, cell.y) != (x, y):
                raise MazeValidationError(
                    f"Cell at row {y}, column {x} reports coordinates ({cell.x}, {cell.y})"
                )

    for y, row in enumerate(maze.cells):
        for x, cell in enumerate(row):
            for direction in (Direction.RIGHT, Direction.DOWN):
                neighbor_pos = Position(x, y).move(direction)
                if not maze.in_bounds(neighbor_pos):
                    continue
                neighbor = maze.cell_at(neighbor_pos)
                if cell.has_wall(direction) != neighbor.has_wall(direction.opposite):
                    raise MazeValidationError(
                        f"Asymmetric wall between ({x}, {y}) and "
                        f"({neighbor_pos.x}, {neighbor_pos.y})"
                    )

    return maze


def deserialize_maze(data: str) -> Maze:
    """
    Deserialize a maze from JSON.

    Raises:
        MazeParseError: If the JSON is invalid or fields are missing.
        MazeValidationError: If the maze is inconsistent.
    """
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise MazeParseError(f"Invalid maze JSON: {e}") from e

    if not isinstance(payload, dict):
        raise MazeParseError("Maze JSON must be an object")

    return maze_from_data(payload)


def parse_grid(grid_text: str) -> Maze:
    """
    Parse a character grid (as produced by maze_to_grid) back into a Maze.

    Args:
        grid_text: Multi-line grid string.

    Returns:
        Maze with walls taken from the grid.

    Raises:
        MazeParseError: If the text is empty, ragged, or has bad dimensions.
        MazeValidationError: If characters, borders, or markers are invalid.
    """
    if not grid_text or not grid_text.strip("\n"):
        raise MazeParseError("Maze text is empty")

    lines = grid_text.strip("\n").split("\n")
    grid_height = len(lines)
    grid_width = len(lines[0])

    if any(len(line) != grid_width for line in lines):
        raise MazeParseError("Maze rows have different lengths")

    if grid_height < 3 or grid_width < 3 or grid_height % 2 == 0 or grid_width % 2 == 0:
        raise MazeParseError(
            f"Grid must be odd-sized and at least 3x3, got {grid_width}x{grid_height}"
        )

    for gy, line in enumerate(lines):
        for gx, char in enumerate(line):
            if char not in VALID_CHARS:
                raise MazeValidationError(
                    f"Invalid character '{char}' at position ({gx}, {gy}). "
                    f"Valid characters: {', '.join(repr(c) for c in sorted(VALID_CHARS))}"
                )

    width = (grid_width - 1) // 2
    height = (grid_height - 1) // 2

    # Outer border must be closed
    for gx in range(grid_width):
        if lines[0][gx] != WALL_GLYPH or lines[-1][gx] != WALL_GLYPH:
            raise MazeValidationError(f"Outer border is open at column {gx}")
    for gy in range(grid_height):
        if lines[gy][0] != WALL_GLYPH or lines[gy][-1] != WALL_GLYPH:
            raise MazeValidationError(f"Outer border is open at row {gy}")

    start_spot = (1, 1)
    end_spot = (width * 2 - 1, height * 2 - 1)

    for gy, line in enumerate(lines):
        for gx, char in enumerate(line):
            if char == START_GLYPH and (gx, gy) != start_spot:
                raise MazeValidationError(f"Start marker must be at {start_spot}, found at ({gx}, {gy})")
            if char == END_GLYPH and (gx, gy) != end_spot:
                raise MazeValidationError(f"End marker must be at {end_spot}, found at ({gx}, {gy})")
            # Wall-junction spots (both coordinates even) are never passages
            if gx % 2 == 0 and gy % 2 == 0 and char != WALL_GLYPH:
                raise MazeValidationError(f"Wall junction at ({gx}, {gy}) must be a wall")
            if gx % 2 == 1 and gy % 2 == 1 and char == WALL_GLYPH:
                raise MazeValidationError(f"Cell position ({gx}, {gy}) cannot be a wall")

    cells: list[list[Cell]] = create_grid(width, height)
    for y in range(height):
        for x in range(width):
            gx, gy = x * 2 + 1, y * 2 + 1
            cells[y][x].walls = Walls(
                top=lines[gy - 1][gx] == WALL_GLYPH,
                right=lines[gy][gx + 1] == WALL_GLYPH,
                bottom=lines[gy + 1][gx] == WALL_GLYPH,
                left=lines[gy][gx - 1] == WALL_GLYPH,
            )

    return Maze(width=width, height=height, cells=cells)


def validate_grid_text(grid_text: str) -> tuple[bool, Optional[str]]:
    """
    Validate grid text without raising exceptions.

    Returns:
        Tuple of (is_valid, error_message).
        error_message is None if valid.
    """
    try:
        parse_grid(grid_text)
        return True, None
    except (MazeParseError, MazeValidationError) as e:
        return False, str(e)
