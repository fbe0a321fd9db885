"""QueueJuice configuration — Pydantic BaseSettings loaded from .env."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated

from pydantic import BaseModel, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_RANGE = (40, 80)


def clamp_chunk_range(value: tuple[int, int]) -> tuple[int, int]:
    """Floor ``min`` to 1 and ``max`` to ``min``. Zero counts as unset."""
    low, high = value
    clamped_low = max(1, low or 1)
    clamped_high = max(clamped_low, high or clamped_low)
    if (clamped_low, clamped_high) != (low, high):
        logger.warning(
            "chunk_range %s corrected to %s",
            (low, high), (clamped_low, clamped_high),
        )
    return clamped_low, clamped_high


def _split_pair(value):
    if isinstance(value, str):
        value = value.strip().strip("[]()")
        return [p.strip() for p in value.split(",") if p.strip()]
    return value


class QueueOptions(BaseModel):
    """Per-queue options recognised by the upload queue."""

    empty_message: str = "No files queued... waiting for juice."
    auto_scroll_on_change: bool = True
    simulate_transfers: bool = True
    chunk_range: tuple[int, int] = DEFAULT_CHUNK_RANGE
    auto_remove_completed: bool = False

    @field_validator("chunk_range", mode="before")
    @classmethod
    def _parse_chunk_range(cls, value):
        return _split_pair(value)

    @model_validator(mode="after")
    def _clamp_chunk_range(self) -> "QueueOptions":
        self.chunk_range = clamp_chunk_range(self.chunk_range)
        return self


class Settings(BaseSettings):
    """Application settings."""

    app_name: str = "QueueJuice"
    debug: bool = True
    environment: str = "development"
    log_level: str = "INFO"

    # Network
    host: str = "127.0.0.1"
    port: int = 8000
    api_prefix: str = "/api"
    cors_origins: list[str] = [
        "http://localhost:4321",
        "http://localhost:5173",
    ]

    # Queue defaults
    empty_message: str = "No files queued... waiting for juice."
    auto_scroll_on_change: bool = True
    simulate_transfers: bool = True
    chunk_range: Annotated[tuple[int, int], NoDecode] = DEFAULT_CHUNK_RANGE
    auto_remove_completed: bool = False

    # Timing, independent of file size and chunk count
    transfer_tick_interval_ms: int = 50
    exit_grace_period_ms: int = 300  # matches the exit animation

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        env_prefix="QUEUEJUICE_",
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: list[str] | str) -> list[str]:
        if isinstance(value, str) and not value.startswith("["):
            return [o.strip() for o in value.split(",") if o.strip()]
        if isinstance(value, list):
            return value
        return ["http://localhost:4321"]

    @field_validator("chunk_range", mode="before")
    @classmethod
    def _parse_chunk_range(cls, value):
        return _split_pair(value)

    @field_validator("transfer_tick_interval_ms", "exit_grace_period_ms")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        return max(0, value)

    @property
    def tick_interval(self) -> float:
        return self.transfer_tick_interval_ms / 1000.0

    @property
    def exit_grace_period(self) -> float:
        return self.exit_grace_period_ms / 1000.0

    def queue_options(self) -> QueueOptions:
        """Build the default queue options from settings."""
        return QueueOptions(
            empty_message=self.empty_message,
            auto_scroll_on_change=self.auto_scroll_on_change,
            simulate_transfers=self.simulate_transfers,
            chunk_range=self.chunk_range,
            auto_remove_completed=self.auto_remove_completed,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
