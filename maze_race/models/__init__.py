"""Database models package."""

from maze_race.models.visit import Visit

__all__ = ["Visit"]
