"""Application configuration using Pydantic settings."""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root directory (one level above the package)
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "AI Maze Race"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database (visit log only)
    database_url: str = "sqlite+aiosqlite:///./maze_race.db"

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:5173"

    # Rate limiting
    rate_limit_requests: int = 100  # requests per minute for general endpoints
    rate_limit_model_checks: int = 10  # connectivity checks per minute (each one calls every model)

    # AI gateway (OpenAI-compatible chat completions)
    ai_base_url: str = "https://openrouter.ai/api/v1"
    ai_api_key: str = ""
    ai_referer: str = "https://github.com/maze-race/maze-race"
    ai_title: str = "AI Maze Race"
    ai_temperature: float = 0.1
    ai_max_tokens: int = 200

    # Race timing (milliseconds)
    planning_timeout_ms: int = 12000
    failure_penalty_ms: int = 5000
    min_step_ms: int = 30
    default_step_ms: int = 100

    # Maze size bounds
    maze_min_size: int = 3
    maze_max_size: int = 20
    default_maze_size: int = 8

    # Race configuration
    min_competitors: int = 2

    # Analytics
    visits_enabled: bool = True

    @field_validator("ai_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the gateway URL so paths can be appended."""
        return v.rstrip("/")

    @field_validator("planning_timeout_ms", "min_step_ms", "default_step_ms")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Timing values must be positive."""
        if v <= 0:
            raise ValueError("timing values must be positive milliseconds")
        return v

    @field_validator("failure_penalty_ms")
    @classmethod
    def validate_penalty(cls, v: int) -> int:
        """Penalty may be zero but never negative."""
        if v < 0:
            raise ValueError("FAILURE_PENALTY_MS cannot be negative")
        return v

    @model_validator(mode="after")
    def validate_maze_bounds(self) -> "Settings":
        """Check the maze size window is consistent."""
        if self.maze_min_size < 1:
            raise ValueError("MAZE_MIN_SIZE must be at least 1")
        if self.maze_max_size < self.maze_min_size:
            raise ValueError("MAZE_MAX_SIZE must be >= MAZE_MIN_SIZE")
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.debug:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
