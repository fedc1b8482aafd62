# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
History chunking and context-share pruning.

Chunks are always contiguous slices in conversation order, so dropping the
first chunk removes the oldest history.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from compaction_safeguard.models import Message
from compaction_safeguard.services.compaction.settings import (
    DEFAULT_MAX_HISTORY_SHARE,
    DEFAULT_PARTS,
)
from compaction_safeguard.services.compaction.tokens import (
    estimate_message_tokens,
    estimate_messages_tokens,
)

logger = logging.getLogger(__name__)


@dataclass
class HistoryPruneResult:
    """Outcome of pruning history to a share of the context window.

    Attributes:
        messages (List[Message]): Messages kept, oldest first.
        dropped_messages_list (List[Message]): Messages dropped, oldest first.
        dropped_chunks (int): Number of chunks dropped.
        dropped_messages (int): Number of messages dropped.
        dropped_tokens (int): Estimated tokens dropped.
        kept_tokens (int): Estimated tokens kept.
        budget_tokens (int): Token budget the history was pruned to.
    """

    messages: List[Message]
    dropped_messages_list: List[Message] = field(default_factory=list)
    dropped_chunks: int = 0
    dropped_messages: int = 0
    dropped_tokens: int = 0
    kept_tokens: int = 0
    budget_tokens: int = 0


def _greedy_runs(
    messages: Sequence[Message],
    budget: float,
    max_runs: Optional[int] = None,
) -> List[List[Message]]:
    # Close the current run before a message that would push it past
    # ``budget``.  Once ``max_runs - 1`` runs are closed the rest goes into
    # the last one.
    runs: List[List[Message]] = []
    current: List[Message] = []
    current_tokens = 0

    for msg in messages:
        msg_tokens = estimate_message_tokens(msg)
        may_close = max_runs is None or len(runs) < max_runs - 1
        if current and may_close and current_tokens + msg_tokens > budget:
            runs.append(current)
            current = []
            current_tokens = 0
        current.append(msg)
        current_tokens += msg_tokens

    if current:
        runs.append(current)
    return runs


def chunk_messages_by_max_tokens(
    messages: Sequence[Message],
    max_tokens: int,
) -> List[List[Message]]:
    """Group consecutive messages into summarizer-sized chunks.

    A message estimated above ``max_tokens`` cannot share a chunk, so it
    ends up alone.

    Args:
        messages (Sequence[Message]): Messages in conversation order.
        max_tokens (int): Token allowance per chunk.

    Returns:
        List[List[Message]]: Contiguous chunks; empty for empty input.
    """
    return _greedy_runs(messages, max_tokens)


def split_messages_by_token_share(
    messages: Sequence[Message],
    parts: int = DEFAULT_PARTS,
) -> List[List[Message]]:
    """Cut history into *parts* contiguous slices of similar token weight.

    Args:
        messages (Sequence[Message]): Messages in conversation order.
        parts (int): Number of slices wanted; never more than there are
            messages. Defaults to 2.

    Returns:
        List[List[Message]]: At most *parts* slices, oldest first.
    """
    if not messages:
        return []
    if parts <= 1:
        return [list(messages)]

    parts = min(parts, len(messages))
    return _greedy_runs(messages, estimate_messages_tokens(messages) / parts, max_runs=parts)


def prune_history_for_context_share(
    messages: Sequence[Message],
    max_context_tokens: int,
    max_history_share: float = DEFAULT_MAX_HISTORY_SHARE,
    parts: int = DEFAULT_PARTS,
) -> HistoryPruneResult:
    """Drop the oldest history until it fits a share of the context window.

    Each round splits the remaining history into *parts* token-share chunks
    and drops the first.  Stops once the history fits or cannot be split.

    Args:
        messages (Sequence[Message]): History, oldest first.
        max_context_tokens (int): Model context window in tokens.
        max_history_share (float): Share of the window the history may use.
            Defaults to 0.5.
        parts (int): Chunks per round. Defaults to 2.

    Returns:
        HistoryPruneResult: Kept and dropped messages with token accounting.
    """
    budget_tokens = max(1, int(max_context_tokens * max_history_share))
    kept: List[Message] = list(messages)
    result = HistoryPruneResult(messages=kept, budget_tokens=budget_tokens)

    while kept and estimate_messages_tokens(kept) > budget_tokens:
        chunks = split_messages_by_token_share(kept, parts)
        if len(chunks) <= 1:
            break
        dropped, rest = chunks[0], chunks[1:]
        result.dropped_chunks += 1
        result.dropped_messages += len(dropped)
        result.dropped_tokens += estimate_messages_tokens(dropped)
        result.dropped_messages_list.extend(dropped)
        kept = [msg for chunk in rest for msg in chunk]

    result.messages = kept
    result.kept_tokens = estimate_messages_tokens(kept)

    if result.dropped_chunks:
        logger.info(
            "Pruned history to %d/%d tokens: dropped %d message(s) in %d chunk(s)",
            result.kept_tokens,
            budget_tokens,
            result.dropped_messages,
            result.dropped_chunks,
        )
    return result
