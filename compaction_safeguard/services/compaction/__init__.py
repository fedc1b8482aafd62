# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Compaction safeguard.

Retention policy for the session history fed to the model.  Every decision
here is a pure function over in-memory messages or session entries; the
summarizer call and log persistence belong to the compaction driver.

  Sizing: adaptive chunk ratio and oversize detection  (sizing.py)
      Shrink summary chunks as messages grow; refuse to summarize a single
      message that would need more than half the context window.

  Preservation: tool failures  (tool_failures.py)
      Keep failed tool invocations as a bounded ``## Tool Failures``
      section appended to the summary.

  Retention: cut-point adjustment  (cut_point.py)
      Move the cut point back until ``min_preserved_messages`` raw messages
      remain, never past a previous compaction.

  Planning  (planner.py, history.py)
      Assemble the above into one plan per pass, dropping the oldest
      history that does not fit ``max_history_share``.

Policy overrides per session manager live in runtime.py.

Usage:

    set_compaction_safeguard_runtime(session_manager, {"min_preserved_messages": 20})

    plan = plan_compaction(
        entries,
        first_kept_entry_id,
        context_window=200_000,
        runtime=get_compaction_safeguard_runtime(session_manager),
    )
    summary = summarize(plan.chunks, plan.previous_summary)   # driver-owned
    entry = plan.build_compaction_entry(summary, entry_id=new_id)
"""

from compaction_safeguard.services.compaction.cut_point import (
    CutPointAdjustment,
    adjust_cut_point_for_min_messages,
    count_messages_from_index,
    find_last_compaction_index,
    is_message_entry,
)
from compaction_safeguard.services.compaction.history import (
    HistoryPruneResult,
    chunk_messages_by_max_tokens,
    prune_history_for_context_share,
    split_messages_by_token_share,
)
from compaction_safeguard.services.compaction.planner import (
    CompactionPlan,
    entry_to_message,
    plan_compaction,
)
from compaction_safeguard.services.compaction.runtime import (
    CompactionSafeguardRuntime,
    CompactionSafeguardRuntimeRegistry,
    get_compaction_safeguard_runtime,
    set_compaction_safeguard_runtime,
)
from compaction_safeguard.services.compaction.settings import (
    BASE_CHUNK_RATIO,
    MIN_CHUNK_RATIO,
    SAFETY_MARGIN,
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
    estimate_tokens,
    extract_text,
)
from compaction_safeguard.services.compaction.tool_failures import (
    append_tool_failures_section,
    collect_tool_failures,
    format_tool_failures_section,
)

__all__ = [
    "BASE_CHUNK_RATIO",
    "MIN_CHUNK_RATIO",
    "SAFETY_MARGIN",
    "CompactionSettings",
    "load_compaction_settings",
    "estimate_tokens",
    "estimate_message_tokens",
    "estimate_messages_tokens",
    "extract_text",
    "collect_tool_failures",
    "format_tool_failures_section",
    "append_tool_failures_section",
    "compute_adaptive_chunk_ratio",
    "is_oversized_for_summary",
    "CutPointAdjustment",
    "is_message_entry",
    "count_messages_from_index",
    "find_last_compaction_index",
    "adjust_cut_point_for_min_messages",
    "HistoryPruneResult",
    "chunk_messages_by_max_tokens",
    "split_messages_by_token_share",
    "prune_history_for_context_share",
    "CompactionSafeguardRuntime",
    "CompactionSafeguardRuntimeRegistry",
    "get_compaction_safeguard_runtime",
    "set_compaction_safeguard_runtime",
    "CompactionPlan",
    "entry_to_message",
    "plan_compaction",
]
