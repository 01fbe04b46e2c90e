"""Maze schemas for request/response validation."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class PositionSchema(BaseModel):
    """A cell coordinate."""

    x: int
    y: int


class MazeGenerateRequest(BaseModel):
    """Schema for generating a new maze."""

    width: int = Field(..., description="Maze width in cells")
    height: int = Field(..., description="Maze height in cells")
    seed: Optional[int] = Field(None, description="Seed for a reproducible maze")


class MazeResponse(BaseModel):
    """Schema for a generated maze with its renderings."""

    maze: dict[str, Any]
    grid: str
    ascii: str
    optimal_path: list[PositionSchema]
    optimal_moves: str


class MazePreset(BaseModel):
    """Schema for a named maze size."""

    name: str
    width: int
    height: int


class MazePresetsResponse(BaseModel):
    """Schema for the preset list."""

    presets: list[MazePreset]
    default_size: int
    min_size: int
    max_size: int


class WalkRequest(BaseModel):
    """Schema for walking a move string through a maze."""

    maze: dict[str, Any] = Field(..., description="Maze as returned by POST /v1/maze")
    moves: str = Field(..., max_length=10000, description="Free text; U/D/L/R are moves")


class WalkResponse(BaseModel):
    """Schema for a walk result."""

    path: list[PositionSchema]
    reached_end: bool
    move_count: int
    optimal_length: int
