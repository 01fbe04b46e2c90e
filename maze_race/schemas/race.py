"""Race WebSocket message schemas."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator


class RaceStartMessage(BaseModel):
    """First client message on the race socket.

    Either a full maze (as returned by POST /v1/maze) or a size to generate.
    """

    type: Literal["start"]
    models: list[str] = Field(..., max_length=10)
    maze: Optional[dict[str, Any]] = None
    width: Optional[int] = None
    height: Optional[int] = None
    seed: Optional[int] = None

    @model_validator(mode="after")
    def validate_maze_source(self) -> "RaceStartMessage":
        """Require a maze or both dimensions."""
        if self.maze is None and (self.width is None or self.height is None):
            raise ValueError("Provide either a maze or both width and height")
        return self


class RaceControlMessage(BaseModel):
    """Client message sent while a race is running."""

    type: Literal["stop"]
