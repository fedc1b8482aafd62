# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Tool failure preservation.

Raw tool output is discarded when history is compacted, but failed
invocations are diagnostic signals the agent still needs.  Failures are
collected from the outgoing messages and rendered as a bounded Markdown
section that is appended to the summary.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Set

from compaction_safeguard.models import Message, MessageRole, ToolFailure
from compaction_safeguard.services.compaction.settings import (
    MAX_TOOL_FAILURE_CHARS,
    MAX_TOOL_FAILURES,
)
from compaction_safeguard.services.compaction.tokens import extract_text

logger = logging.getLogger(__name__)

TOOL_FAILURES_HEADING = "## Tool Failures"
FAILURE_FALLBACK_TEXT = "failed"
UNKNOWN_TOOL_NAME = "tool"

_WHITESPACE_RE = re.compile(r"\s+")


def _normalize_failure_text(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _truncate_failure_text(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[: max(0, max_chars - 3)] + "..."


def _format_meta_value(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    rendered = str(value).strip()
    return rendered or None


def _format_failure_meta(details: Optional[Dict[str, Any]]) -> str:
    """Render tool result details as ``key=value`` pairs.

    Args:
        details (Optional[Dict[str, Any]]): Tool result metadata.

    Returns:
        str: Space-joined pairs in insertion order; empty, ``None`` and
            nested values are skipped.
    """
    if not details:
        return ""
    parts: List[str] = []
    for key, value in details.items():
        rendered = _format_meta_value(value)
        if rendered is not None:
            parts.append(f"{key}={rendered}")
    return " ".join(parts)


def collect_tool_failures(
    messages: Iterable[Message],
    max_chars: int = MAX_TOOL_FAILURE_CHARS,
) -> List[ToolFailure]:
    """Extract failed tool invocations, first occurrence per call id.

    Later failures that reuse a ``tool_call_id`` are dropped even when their
    content differs.

    Args:
        messages (Iterable[Message]): Messages to scan.
        max_chars (int): Maximum characters kept per failure message.
            Defaults to ``MAX_TOOL_FAILURE_CHARS``.

    Returns:
        List[ToolFailure]: Failures in order of first occurrence.
    """
    failures: List[ToolFailure] = []
    seen: Set[str] = set()

    for msg in messages:
        if msg.role != MessageRole.TOOL_RESULT or msg.is_error is not True:
            continue
        tool_call_id = msg.tool_call_id or ""
        if not tool_call_id or tool_call_id in seen:
            continue
        seen.add(tool_call_id)

        tool_name = (msg.tool_name or "").strip() or UNKNOWN_TOOL_NAME
        text = _normalize_failure_text(extract_text(msg.content))
        failures.append(
            ToolFailure(
                tool_call_id=tool_call_id,
                tool_name=tool_name,
                meta=_format_failure_meta(msg.details),
                message=_truncate_failure_text(text or FAILURE_FALLBACK_TEXT, max_chars),
            )
        )

    return failures


def format_tool_failures_section(
    failures: List[ToolFailure],
    max_failures: int = MAX_TOOL_FAILURES,
) -> str:
    """Render failures as a Markdown section.

    Args:
        failures (List[ToolFailure]): Failures to render.
        max_failures (int): Lines rendered before the overflow line.
            Defaults to ``MAX_TOOL_FAILURES``.

    Returns:
        str: ``""`` when there are no failures, otherwise the
            ``## Tool Failures`` heading followed by one list line per
            failure and an ``...and N more`` line when capped.
    """
    if not failures:
        return ""

    lines = [TOOL_FAILURES_HEADING]
    for failure in failures[:max_failures]:
        meta = f" ({failure.meta})" if failure.meta else ""
        lines.append(f"- {failure.tool_name}{meta}: {failure.message}")

    omitted = len(failures) - max_failures
    if omitted > 0:
        lines.append(f"- ...and {omitted} more")

    return "\n".join(lines)


def append_tool_failures_section(
    summary: str,
    failures: List[ToolFailure],
    max_failures: int = MAX_TOOL_FAILURES,
) -> str:
    """Append the tool failures section to a generated summary.

    Args:
        summary (str): Summary text produced by the summarizer.
        failures (List[ToolFailure]): Failures to preserve.
        max_failures (int): Lines rendered before the overflow line.

    Returns:
        str: ``summary`` unchanged when there are no failures, otherwise the
            summary followed by a blank line and the section.
    """
    section = format_tool_failures_section(failures, max_failures)
    if not section:
        return summary
    logger.info("Preserving %d tool failure(s) in compaction summary", len(failures))
    return f"{summary.rstrip()}\n\n{section}"
