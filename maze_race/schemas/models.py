"""AI model schemas for request/response validation."""

from typing import Optional

from pydantic import BaseModel, Field


class ModelInfo(BaseModel):
    """Schema for a raceable model."""

    id: str
    name: str
    emoji: str
    color: str
    description: str


class ModelListResponse(BaseModel):
    """Schema for the model registry."""

    models: list[ModelInfo]
    total: int


class ModelCheckRequest(BaseModel):
    """Schema for a connectivity check. All registered models when empty."""

    models: Optional[list[str]] = Field(None, max_length=10)


class ModelCheckItem(BaseModel):
    """Schema for one model's check result."""

    model: ModelInfo
    status: str = Field(..., pattern="^(success|error)$")
    time_ms: int
    response: Optional[str] = None
    error: Optional[str] = None


class ModelCheckResponse(BaseModel):
    """Schema for connectivity check results."""

    results: list[ModelCheckItem]
    passed: int
    failed: int
