# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Adaptive chunk sizing and oversize detection.

The chunk ratio is the share of the context window one summarization chunk
may use.  It stays at ``base_chunk_ratio`` while messages are small and
shrinks linearly from there once the average message exceeds 10 % of the
window, so the curve is continuous at the threshold:

    share     = avg_tokens / context_window
    reduction = min((share - 0.1) * safety_margin * 2, base - min)
    ratio     = max(min, base - reduction)

With the default policy the floor is reached at a share of about 0.2.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from compaction_safeguard.models import Message
from compaction_safeguard.services.compaction.settings import (
    ADAPTIVE_SHARE_THRESHOLD,
    OVERSIZE_CONTEXT_SHARE,
    CompactionSettings,
    load_compaction_settings,
)
from compaction_safeguard.services.compaction.tokens import (
    estimate_message_tokens,
    estimate_messages_tokens,
)

logger = logging.getLogger(__name__)


def compute_adaptive_chunk_ratio(
    messages: Sequence[Message],
    context_window: int,
    settings: Optional[CompactionSettings] = None,
) -> float:
    """Reduce chunk ratio when average message size is large.

    Args:
        messages (Sequence[Message]): Messages used to compute average size.
        context_window (int): Model context window in tokens.
        settings (Optional[CompactionSettings]): Policy providing base and
            minimum chunk ratios. Defaults to the application configuration.

    Returns:
        float: Ratio in ``[min_chunk_ratio, base_chunk_ratio]``; the base
            ratio for empty input, the minimum for a non-positive window.
    """
    settings = settings or load_compaction_settings()
    if not messages:
        return settings.base_chunk_ratio
    if context_window <= 0:
        return settings.min_chunk_ratio

    avg = estimate_messages_tokens(messages) / len(messages)
    share = avg / context_window

    if share <= ADAPTIVE_SHARE_THRESHOLD:
        return settings.base_chunk_ratio

    reduction = min(
        (share - ADAPTIVE_SHARE_THRESHOLD) * settings.safety_margin * 2,
        settings.base_chunk_ratio - settings.min_chunk_ratio,
    )
    ratio = max(settings.min_chunk_ratio, settings.base_chunk_ratio - reduction)
    logger.debug("Adaptive chunk ratio %.3f (avg share %.3f)", ratio, share)
    return ratio


def is_oversized_for_summary(
    msg: Message,
    context_window: int,
    settings: Optional[CompactionSettings] = None,
) -> bool:
    """A single message > 50 % of context window cannot be summarized safely.

    Args:
        msg (Message): Message to check.
        context_window (int): Model context window in tokens.
        settings (Optional[CompactionSettings]): Policy providing the safety
            margin. Defaults to the application configuration.

    Returns:
        bool: ``True`` if the message, with safety margin, exceeds half the
            context window.
    """
    settings = settings or load_compaction_settings()
    tokens = estimate_message_tokens(msg) * settings.safety_margin
    return tokens > context_window * OVERSIZE_CONTEXT_SHARE
