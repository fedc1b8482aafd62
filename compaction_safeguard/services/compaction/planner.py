# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Compaction planning.

Everything a compaction driver decides before it calls its summarizer:

  1. Enforce the minimum-preserved-messages guarantee on the cut point.
  2. Gather the raw messages between the previous compaction and the cut.
  3. Drop the oldest history that does not fit ``max_history_share``.
  4. Set aside messages too large to summarize safely.
  5. Size summary chunks with the adaptive chunk ratio.
  6. Collect tool failures from everything leaving raw history.

The summarizer itself is not called here.  The driver feeds ``chunks`` to
it and passes the result through ``CompactionPlan.finalize_summary``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from compaction_safeguard.config import settings as app_settings
from compaction_safeguard.models import Message, MessageRole, ToolFailure
from compaction_safeguard.schemas.session import (
    CompactionEntry,
    CustomMessageEntry,
    MessageEntry,
    SessionEntry,
)
from compaction_safeguard.services.compaction.cut_point import (
    CutPointAdjustment,
    adjust_cut_point_for_min_messages,
    find_last_compaction_index,
)
from compaction_safeguard.services.compaction.history import (
    HistoryPruneResult,
    chunk_messages_by_max_tokens,
    prune_history_for_context_share,
)
from compaction_safeguard.services.compaction.runtime import CompactionSafeguardRuntime
from compaction_safeguard.services.compaction.settings import (
    MAX_TOOL_FAILURES,
    CompactionSettings,
    load_compaction_settings,
)
from compaction_safeguard.services.compaction.sizing import (
    compute_adaptive_chunk_ratio,
    is_oversized_for_summary,
)
from compaction_safeguard.services.compaction.tokens import (
    estimate_message_tokens,
    estimate_messages_tokens,
)
from compaction_safeguard.services.compaction.tool_failures import (
    append_tool_failures_section,
    collect_tool_failures,
    format_tool_failures_section,
)

logger = logging.getLogger(__name__)


@dataclass
class CompactionPlan:
    """Inputs for one summarization pass.

    Attributes:
        first_kept_entry_id (str): First entry preserved verbatim.
        cut_point_adjustment (Optional[CutPointAdjustment]): Set when the
            cut point was moved to keep more messages.
        previous_summary (Optional[str]): Summary of the last compaction,
            for incremental updates.
        messages_to_summarize (List[Message]): Messages for the summarizer.
        chunks (List[List[Message]]): ``messages_to_summarize`` split by
            ``max_chunk_tokens``.
        oversized_messages (List[Message]): Messages too large to summarize.
        oversized_notes (List[str]): One omission note per oversized message.
        pruned (Optional[HistoryPruneResult]): History-share pruning outcome.
        chunk_ratio (float): Adaptive chunk ratio used.
        max_chunk_tokens (int): Token budget per chunk.
        tool_failures (List[ToolFailure]): Failures to preserve.
        max_tool_failures (int): Failures rendered before the overflow line.
        tokens_before (int): Estimated message tokens since the previous
            compaction, including the kept tail.
    """

    first_kept_entry_id: str
    cut_point_adjustment: Optional[CutPointAdjustment] = None
    previous_summary: Optional[str] = None
    messages_to_summarize: List[Message] = field(default_factory=list)
    chunks: List[List[Message]] = field(default_factory=list)
    oversized_messages: List[Message] = field(default_factory=list)
    oversized_notes: List[str] = field(default_factory=list)
    pruned: Optional[HistoryPruneResult] = None
    chunk_ratio: float = 0.0
    max_chunk_tokens: int = 0
    tool_failures: List[ToolFailure] = field(default_factory=list)
    max_tool_failures: int = MAX_TOOL_FAILURES
    tokens_before: int = 0

    @property
    def is_empty(self) -> bool:
        """Whether there is nothing for the summarizer to do."""
        return not self.messages_to_summarize and not self.oversized_messages

    @property
    def tool_failures_section(self) -> str:
        return format_tool_failures_section(self.tool_failures, self.max_tool_failures)

    def finalize_summary(self, summary: str) -> str:
        """Attach oversize notes and tool failures to a generated summary.

        Args:
            summary (str): Text returned by the summarizer.

        Returns:
            str: Summary followed by omission notes and the tool failures
                section, each only when non-empty.
        """
        text = summary.rstrip()
        if self.oversized_notes:
            text = f"{text}\n\n" + "\n".join(self.oversized_notes)
        return append_tool_failures_section(text, self.tool_failures, self.max_tool_failures)

    def build_compaction_entry(
        self,
        summary: str,
        entry_id: str,
        parent_id: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> CompactionEntry:
        """Create the session entry recording this compaction.

        Args:
            summary (str): Text returned by the summarizer.
            entry_id (str): Id for the new entry.
            parent_id (Optional[str]): Id of the entry it follows.
            timestamp (Optional[str]): ISO-8601 creation time.

        Returns:
            CompactionEntry: Entry with the finalized summary.
        """
        return CompactionEntry(
            id=entry_id,
            parent_id=parent_id,
            timestamp=timestamp,
            summary=self.finalize_summary(summary),
            first_kept_entry_id=self.first_kept_entry_id,
            tokens_before=self.tokens_before,
        )


def entry_to_message(entry: SessionEntry) -> Optional[Message]:
    """Message view of a counted entry; custom messages read as user turns.

    Args:
        entry (SessionEntry): Entry to convert.

    Returns:
        Optional[Message]: The message, or ``None`` for marker entries.
    """
    if isinstance(entry, MessageEntry):
        return entry.message
    if isinstance(entry, CustomMessageEntry):
        return Message(role=MessageRole.USER, content=entry.content)
    return None


def _entry_messages(entries: Sequence[SessionEntry]) -> List[Message]:
    messages: List[Message] = []
    for entry in entries:
        msg = entry_to_message(entry)
        if msg is not None:
            messages.append(msg)
    return messages


def _oversized_note(msg: Message) -> str:
    tokens = estimate_message_tokens(msg)
    return f"[Large {msg.role.value} (~{tokens // 1000}K tokens) omitted from summary]"


def plan_compaction(
    entries: Sequence[SessionEntry],
    first_kept_entry_id: str,
    context_window: Optional[int] = None,
    runtime: Optional[CompactionSafeguardRuntime] = None,
    settings: Optional[CompactionSettings] = None,
) -> CompactionPlan:
    """Prepare a compaction pass for a provisional cut point.

    Runtime values override the matching ``settings`` defaults.

    Args:
        entries (Sequence[SessionEntry]): Session entries in log order.
        first_kept_entry_id (str): Provisional first kept entry.
        context_window (Optional[int]): Model context window in tokens.
            Defaults to ``CONTEXT_WINDOW_TOKENS`` from the configuration.
        runtime (Optional[CompactionSafeguardRuntime]): Per-session-manager
            overrides, typically from ``get_compaction_safeguard_runtime``.
        settings (Optional[CompactionSettings]): Policy defaults. Defaults
            to the ``COMPACTION_*`` values of the application configuration.

    Returns:
        CompactionPlan: The plan; empty when the cut point is unknown or
            nothing precedes it.
    """
    if context_window is None:
        context_window = app_settings.CONTEXT_WINDOW_TOKENS
    settings = settings or load_compaction_settings()
    min_preserved = settings.min_preserved_messages
    max_history_share = settings.max_history_share
    if runtime is not None:
        if runtime.min_preserved_messages is not None:
            min_preserved = runtime.min_preserved_messages
        if runtime.max_history_share is not None:
            max_history_share = runtime.max_history_share

    plan = CompactionPlan(
        first_kept_entry_id=first_kept_entry_id,
        chunk_ratio=settings.base_chunk_ratio,
        max_tool_failures=settings.max_tool_failures,
    )

    adjustment = adjust_cut_point_for_min_messages(entries, first_kept_entry_id, min_preserved)
    if adjustment is not None:
        plan.cut_point_adjustment = adjustment
        plan.first_kept_entry_id = adjustment.new_first_kept_entry_id

    cut_index = next(
        (i for i, entry in enumerate(entries) if entry.id == plan.first_kept_entry_id),
        -1,
    )
    if cut_index == -1:
        logger.warning("Cut point %s not found in session; nothing to compact", first_kept_entry_id)
        return plan

    compaction_index = find_last_compaction_index(entries, before=cut_index)
    if compaction_index != -1:
        previous = entries[compaction_index]
        if isinstance(previous, CompactionEntry):
            plan.previous_summary = previous.summary

    outgoing = _entry_messages(entries[compaction_index + 1 : cut_index])
    plan.tokens_before = estimate_messages_tokens(_entry_messages(entries[compaction_index + 1 :]))
    if not outgoing:
        return plan

    plan.tool_failures = collect_tool_failures(outgoing, settings.max_tool_failure_chars)

    plan.pruned = prune_history_for_context_share(
        outgoing,
        context_window,
        max_history_share,
        settings.parts,
    )

    for msg in plan.pruned.messages:
        if is_oversized_for_summary(msg, context_window, settings):
            plan.oversized_messages.append(msg)
            plan.oversized_notes.append(_oversized_note(msg))
        else:
            plan.messages_to_summarize.append(msg)

    if plan.oversized_messages:
        logger.warning(
            "Skipping %d oversized message(s) that cannot be summarized safely",
            len(plan.oversized_messages),
        )

    plan.chunk_ratio = compute_adaptive_chunk_ratio(plan.messages_to_summarize, context_window, settings)
    plan.max_chunk_tokens = max(1, int(context_window * plan.chunk_ratio))
    plan.chunks = chunk_messages_by_max_tokens(plan.messages_to_summarize, plan.max_chunk_tokens)

    logger.info(
        "Planned compaction up to %s: %d message(s) in %d chunk(s), %d oversized, %d tool failure(s)",
        plan.first_kept_entry_id,
        len(plan.messages_to_summarize),
        len(plan.chunks),
        len(plan.oversized_messages),
        len(plan.tool_failures),
    )
    return plan
