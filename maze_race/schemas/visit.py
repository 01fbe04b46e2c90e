"""Visit schemas for the analytics beacon."""

from typing import Optional

from pydantic import BaseModel, Field


class VisitRequest(BaseModel):
    """Schema for a visit beacon. Every field is optional."""

    visitor_id: Optional[str] = Field(None, max_length=64)
    user_agent: Optional[str] = Field(None, max_length=512)
    referrer: Optional[str] = Field(None, max_length=1024)
    page_url: Optional[str] = Field(None, max_length=1024)
    screen_width: Optional[int] = Field(None, ge=0)
    screen_height: Optional[int] = Field(None, ge=0)
    language: Optional[str] = Field(None, max_length=32)
    platform: Optional[str] = Field(None, max_length=64)


class VisitResponse(BaseModel):
    """Schema for a visit beacon response."""

    visitor_id: str
