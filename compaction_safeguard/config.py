# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Application configuration using pydantic-settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Application settings.

    The module-level ``settings`` instance supplies the default policy of
    ``plan_compaction`` and the sizing helpers.

    Attributes:
        CONTEXT_WINDOW_TOKENS (int): Context window used by ``plan_compaction``
            when the caller does not pass one.
        COMPACTION_BASE_CHUNK_RATIO (float): Share of history folded per
            compaction pass under normal conditions.
        COMPACTION_MIN_CHUNK_RATIO (float): Floor for the adaptive chunk ratio.
        COMPACTION_SAFETY_MARGIN (float): Overhead multiplier applied to
            token estimates.
        COMPACTION_MAX_HISTORY_SHARE (float): Maximum share of the context
            window the summarized history may occupy.
        COMPACTION_MIN_PRESERVED_MESSAGES (int): Messages that must stay
            uncompacted after a pass.
        COMPACTION_MAX_TOOL_FAILURES (int): Tool failures listed in the
            summary addendum before the overflow line.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    CONTEXT_WINDOW_TOKENS: int = 200_000

    # Compaction policy
    COMPACTION_BASE_CHUNK_RATIO: float = 0.4
    COMPACTION_MIN_CHUNK_RATIO: float = 0.15
    COMPACTION_SAFETY_MARGIN: float = 1.2
    COMPACTION_MAX_HISTORY_SHARE: float = 0.5
    COMPACTION_MIN_PRESERVED_MESSAGES: int = 0
    COMPACTION_MAX_TOOL_FAILURES: int = 8

settings = Settings()
