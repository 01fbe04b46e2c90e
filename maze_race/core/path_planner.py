"""
Shortest-path planning over a maze.

Breadth-first search from the start cell. Neighbours are expanded in
direction order (up, right, down, left), so when several shortest paths
exist the one found first in that order wins. Generated mazes are perfect,
so in practice there is exactly one path.
"""

from collections import deque
from typing import Sequence

from maze_race.core.maze_engine import Maze, Position, get_valid_moves


def find_optimal_path(maze: Maze) -> list[Position]:
    """
    Find the shortest path from the maze start to its end.

    Args:
        maze: Maze to search.

    Returns:
        Positions from start to end inclusive. If the end cannot be reached
        (a malformed, disconnected maze) the result is just [start].
    """
    start = maze.start
    end = maze.end

    queue = deque([(start, [start])])
    visited = {start}

    while queue:
        position, path = queue.popleft()

        if position == end:
            return path

        for direction in get_valid_moves(maze, position):
            next_position = position.move(direction)
            if next_position not in visited:
                visited.add(next_position)
                queue.append((next_position, path + [next_position]))

    return [start]


def is_valid_path(maze: Maze, path: Sequence[Position]) -> bool:
    """
    Check that every step of a path crosses an open wall between adjacent cells.

    An empty path is not valid; a single in-bounds position is.
    """
    if not path or not maze.in_bounds(path[0]):
        return False

    for current, following in zip(path, path[1:]):
        if not any(current.move(d) == following for d in get_valid_moves(maze, current)):
            return False

    return True
