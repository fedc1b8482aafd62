# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Compaction safeguard settings.

Chunk ratios are shares of the context window; the safety margin is a
multiplier applied to token estimates.
"""

from __future__ import annotations

from dataclasses import dataclass

from compaction_safeguard.config import Settings, settings as app_settings

BASE_CHUNK_RATIO = 0.4
MIN_CHUNK_RATIO = 0.15
SAFETY_MARGIN = 1.2  # summarization / formatting overhead
CHARS_PER_TOKEN = 4

# Average message share of the context window above which chunks shrink.
ADAPTIVE_SHARE_THRESHOLD = 0.1
# A message that alone needs more than this share cannot be summarized.
OVERSIZE_CONTEXT_SHARE = 0.5

DEFAULT_MAX_HISTORY_SHARE = 0.5
DEFAULT_PARTS = 2
MAX_TOOL_FAILURES = 8
MAX_TOOL_FAILURE_CHARS = 240


@dataclass(frozen=True)
class CompactionSettings:
    """All safeguard policy knobs in one place.

    Attributes:
        base_chunk_ratio (float): Share of the context window per summary
            chunk when messages are small.
        min_chunk_ratio (float): Floor for the adaptive chunk ratio.
        safety_margin (float): Multiplier (> 1) applied to token estimates.
        max_history_share (float): Maximum share of the context window the
            history handed to the summarizer may occupy.
        min_preserved_messages (int): Messages that must remain uncompacted.
        max_tool_failures (int): Failures rendered before the overflow line.
        max_tool_failure_chars (int): Maximum characters per failure message.
        parts (int): Number of token-share chunks used when pruning history.
    """

    base_chunk_ratio: float = BASE_CHUNK_RATIO
    min_chunk_ratio: float = MIN_CHUNK_RATIO
    safety_margin: float = SAFETY_MARGIN
    max_history_share: float = DEFAULT_MAX_HISTORY_SHARE
    min_preserved_messages: int = 0
    max_tool_failures: int = MAX_TOOL_FAILURES
    max_tool_failure_chars: int = MAX_TOOL_FAILURE_CHARS
    parts: int = DEFAULT_PARTS

    def __post_init__(self) -> None:
        if not 0 < self.min_chunk_ratio < self.base_chunk_ratio <= 1:
            raise ValueError(
                f"chunk ratios must satisfy 0 < min ({self.min_chunk_ratio}) "
                f"< base ({self.base_chunk_ratio}) <= 1"
            )
        if self.safety_margin <= 1:
            raise ValueError(f"safety_margin must be > 1, got {self.safety_margin}")
        if not 0 < self.max_history_share <= 1:
            raise ValueError(f"max_history_share must be in (0, 1], got {self.max_history_share}")

    @classmethod
    def from_settings(cls, config: Settings) -> CompactionSettings:
        """Build policy settings from application configuration.

        Args:
            config (Settings): Loaded application settings.

        Returns:
            CompactionSettings: Policy populated from the ``COMPACTION_*``
                values.
        """
        return cls(
            base_chunk_ratio=config.COMPACTION_BASE_CHUNK_RATIO,
            min_chunk_ratio=config.COMPACTION_MIN_CHUNK_RATIO,
            safety_margin=config.COMPACTION_SAFETY_MARGIN,
            max_history_share=config.COMPACTION_MAX_HISTORY_SHARE,
            min_preserved_messages=config.COMPACTION_MIN_PRESERVED_MESSAGES,
            max_tool_failures=config.COMPACTION_MAX_TOOL_FAILURES,
        )


def load_compaction_settings() -> CompactionSettings:
    """Policy from the loaded application configuration."""
    return CompactionSettings.from_settings(app_settings)
