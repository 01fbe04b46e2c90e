"""Tests for maze generation, wall bookkeeping and moves."""

import random
from collections import deque

import pytest

from maze_race.core import (
    Direction,
    InvalidMoveError,
    Maze,
    Position,
    create_grid,
    generate_maze,
    get_valid_moves,
    move,
)
from maze_race.core.maze_engine import remove_wall_between


def open_edges(maze: Maze) -> set[frozenset]:
    """Collect every open passage as an unordered pair of positions."""
    edges = set()
    for row in maze.cells:
        for cell in row:
            here = Position(cell.x, cell.y)
            for direction in get_valid_moves(maze, here):
                edges.add(frozenset((here, here.move(direction))))
    return edges


def reachable(maze: Maze) -> set[Position]:
    """Flood fill from the start."""
    seen = {maze.start}
    queue = deque([maze.start])
    while queue:
        here = queue.popleft()
        for direction in get_valid_moves(maze, here):
            there = here.move(direction)
            if there not in seen:
                seen.add(there)
                queue.append(there)
    return seen


class TestDirection:
    """Tests for direction metadata."""

    def test_enumeration_order(self):
        assert list(Direction) == [Direction.UP, Direction.RIGHT, Direction.DOWN, Direction.LEFT]

    def test_opposites(self):
        for direction in Direction:
            assert direction.opposite.opposite == direction
            dx, dy = direction.delta
            assert direction.opposite.delta == (-dx, -dy)

    def test_from_char_is_case_insensitive(self):
        assert Direction.from_char("u") == Direction.UP
        assert Direction.from_char("R") == Direction.RIGHT
        assert Direction.from_char("d") == Direction.DOWN
        assert Direction.from_char("L") == Direction.LEFT
        assert Direction.from_char("X") is None
        assert Direction.from_char(" ") is None


class TestGenerateMaze:
    """Tests for perfect maze generation."""

    @pytest.mark.parametrize("width,height", [(1, 1), (1, 6), (5, 5), (8, 3), (12, 12), (20, 20)])
    def test_spanning_tree(self, width, height):
        """A perfect maze has exactly W*H-1 passages and reaches every cell."""
        maze = generate_maze(width, height, seed=width * 100 + height)

        assert len(open_edges(maze)) == width * height - 1
        assert len(reachable(maze)) == width * height

    def test_walls_are_symmetric(self):
        maze = generate_maze(10, 7, seed=3)

        for row in maze.cells:
            for cell in row:
                here = Position(cell.x, cell.y)
                for direction in Direction:
                    there = here.move(direction)
                    if maze.in_bounds(there):
                        neighbor = maze.cell_at(there)
                        assert cell.has_wall(direction) == neighbor.has_wall(direction.opposite)

    def test_outer_border_stays_closed(self):
        maze = generate_maze(6, 4, seed=11)

        for x in range(maze.width):
            assert maze.cells[0][x].walls.top
            assert maze.cells[maze.height - 1][x].walls.bottom
        for y in range(maze.height):
            assert maze.cells[y][0].walls.left
            assert maze.cells[y][maze.width - 1].walls.right

    def test_visited_flags_reset(self):
        maze = generate_maze(5, 5, seed=1)
        assert not any(cell.visited for row in maze.cells for cell in row)

    def test_start_and_end(self):
        maze = generate_maze(7, 4, seed=2)
        assert maze.start == Position(0, 0)
        assert maze.end == Position(6, 3)

    def test_same_seed_same_maze(self):
        assert generate_maze(9, 9, seed=42).to_dict() == generate_maze(9, 9, seed=42).to_dict()

    def test_custom_chooser_is_used(self):
        """Always taking the first candidate digs up-right-down-left greedily."""
        calls = []

        def first(candidates):
            calls.append(len(candidates))
            return candidates[0]

        maze = generate_maze(4, 4, choose=first)

        assert calls
        assert len(open_edges(maze)) == 15

    def test_chooser_from_seeded_random(self):
        rng = random.Random(5)
        maze = generate_maze(6, 6, choose=rng.choice)
        assert len(reachable(maze)) == 36

    @pytest.mark.parametrize("width,height", [(0, 5), (5, 0), (-1, 3)])
    def test_rejects_empty_dimensions(self, width, height):
        with pytest.raises(ValueError, match="at least 1x1"):
            generate_maze(width, height)


class TestWalls:
    """Tests for wall removal."""

    def test_remove_wall_clears_both_sides(self):
        grid = create_grid(2, 1)
        left, right = grid[0][0], grid[0][1]

        remove_wall_between(left, right)

        assert not left.walls.right
        assert not right.walls.left
        assert left.walls.top and left.walls.bottom and left.walls.left

    def test_remove_wall_vertical(self):
        grid = create_grid(1, 2)
        upper, lower = grid[0][0], grid[1][0]

        remove_wall_between(lower, upper)

        assert not upper.walls.bottom
        assert not lower.walls.top

    def test_remove_wall_rejects_non_adjacent(self):
        grid = create_grid(3, 3)
        with pytest.raises(ValueError):
            remove_wall_between(grid[0][0], grid[2][2])

    def test_fully_walled_grid_has_no_moves(self):
        maze = Maze(width=3, height=3, cells=create_grid(3, 3))
        for y in range(3):
            for x in range(3):
                assert get_valid_moves(maze, Position(x, y)) == []


class TestMoves:
    """Tests for valid-move queries and move application."""

    def test_valid_moves_at_start(self, small_maze):
        assert get_valid_moves(small_maze, Position(0, 0)) == [Direction.DOWN]

    def test_valid_moves_order(self, small_maze):
        # (1, 2) is open up, right and left
        assert get_valid_moves(small_maze, Position(1, 2)) == [
            Direction.UP,
            Direction.RIGHT,
            Direction.LEFT,
        ]

    def test_move_is_pure_translation(self):
        assert move(Position(2, 2), Direction.UP) == Position(2, 1)
        assert move(Position(2, 2), Direction.RIGHT) == Position(3, 2)
        assert move(Position(2, 2), Direction.DOWN) == Position(2, 3)
        assert move(Position(2, 2), Direction.LEFT) == Position(1, 2)

    def test_checked_move(self, small_maze):
        assert move(Position(0, 0), Direction.DOWN, maze=small_maze) == Position(0, 1)

    def test_checked_move_rejects_wall(self, small_maze):
        with pytest.raises(InvalidMoveError, match="wall blocking"):
            move(Position(0, 0), Direction.RIGHT, maze=small_maze)

    def test_checked_move_rejects_border(self, small_maze):
        with pytest.raises(InvalidMoveError):
            move(Position(0, 0), Direction.UP, maze=small_maze)


class TestMazeData:
    """Tests for the dictionary form of a maze."""

    def test_to_dict_shape(self, small_maze):
        data = small_maze.to_dict()

        assert data["width"] == 3
        assert data["height"] == 3
        assert data["start"] == {"x": 0, "y": 0}
        assert data["end"] == {"x": 2, "y": 2}
        assert data["cells"][0][0] == {
            "x": 0,
            "y": 0,
            "walls": {"top": True, "right": True, "bottom": False, "left": True},
        }

    def test_from_dict_rebuilds_walls(self):
        maze = generate_maze(5, 4, seed=9)
        rebuilt = Maze.from_dict(maze.to_dict())

        assert rebuilt.width == 5
        assert rebuilt.height == 4
        assert open_edges(rebuilt) == open_edges(maze)
