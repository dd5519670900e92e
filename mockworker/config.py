"""
Configuration for mockworker.

Settings are read from MOCKWORKER_* environment variables once and cached.
Pass an explicit MockSettings to setup_worker() to override them per worker.
"""
from __future__ import annotations

import os
from enum import Enum
from functools import lru_cache

from pydantic import BaseModel, Field


class UnhandledRequestStrategy(str, Enum):
    """What the transport does with a request no handler claimed."""

    BYPASS = "bypass"
    """Forward to the real network silently."""

    WARN = "warn"
    """Forward to the real network and log a warning."""

    ERROR = "error"
    """Raise UnhandledRequestError."""


class MockSettings(BaseModel):
    """Worker settings."""

    on_unhandled_request: UnhandledRequestStrategy = Field(
        default=UnhandledRequestStrategy.WARN,
        description="Policy for requests that no handler claims",
    )
    quiet: bool = Field(default=False, description="Suppress info-level match logging")
    log_name: str = Field(default="mockworker", description="Logger name for structured records")

    model_config = {"frozen": True}


@lru_cache()
def get_settings() -> MockSettings:
    """
    Get settings from environment.

    Uses lru_cache for singleton pattern; call get_settings.cache_clear()
    after changing the environment.
    """
    return MockSettings(
        on_unhandled_request=os.getenv("MOCKWORKER_ON_UNHANDLED_REQUEST", "warn").lower(),
        quiet=os.getenv("MOCKWORKER_QUIET", "false").lower() == "true",
        log_name=os.getenv("MOCKWORKER_LOG_NAME", "mockworker"),
    )


__all__ = ["UnhandledRequestStrategy", "MockSettings", "get_settings"]
