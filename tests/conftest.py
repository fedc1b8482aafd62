# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Shared test fixtures for the compaction safeguard test suite."""

from typing import Any, Dict, List, Optional

import pytest
from compaction_safeguard.models import Message, MessageRole, TextContent
from compaction_safeguard.schemas.session import (
    CompactionEntry,
    CustomMessageEntry,
    MessageEntry,
    ModelChangeEntry,
    ThinkingLevelChangeEntry,
)

# ---------------------------------------------------------------------------
# Message factories
# ---------------------------------------------------------------------------


def make_tool_result(
    tool_call_id: str,
    text: Optional[str] = None,
    *,
    tool_name: str = "exec",
    is_error: bool = True,
    details: Optional[Dict[str, Any]] = None,
) -> Message:
    """Build a toolResult message; ``text=None`` yields empty content."""
    content: List[TextContent] = [TextContent(text=text)] if text is not None else []
    return Message(
        role=MessageRole.TOOL_RESULT,
        tool_call_id=tool_call_id,
        tool_name=tool_name,
        is_error=is_error,
        details=details,
        content=content,
        timestamp=1700000000000,
    )


@pytest.fixture
def sample_message():
    """Factory fixture for creating Message instances."""

    def _factory(
        role: MessageRole = MessageRole.USER,
        content: Any = "hello",
    ) -> Message:
        return Message(role=role, content=content, timestamp=1700000000000)

    return _factory


@pytest.fixture
def tool_result():
    """Factory fixture for creating toolResult messages."""
    return make_tool_result


# ---------------------------------------------------------------------------
# Session entry factories
# ---------------------------------------------------------------------------


def make_message_entry(entry_id: str, parent_id: Optional[str] = None) -> MessageEntry:
    """Build a message entry whose content is ``msg-<id>``."""
    return MessageEntry(
        id=entry_id,
        parent_id=parent_id,
        timestamp="2026-01-01T00:00:00Z",
        message=Message(role=MessageRole.USER, content=f"msg-{entry_id}"),
    )


def make_custom_message_entry(entry_id: str, parent_id: Optional[str] = None) -> CustomMessageEntry:
    """Build a display custom_message entry whose content is ``custom-<id>``."""
    return CustomMessageEntry(
        id=entry_id,
        parent_id=parent_id,
        timestamp="2026-01-01T00:00:00Z",
        custom_type="test",
        content=f"custom-{entry_id}",
    )


def make_metadata_entry(entry_id: str, kind: str, parent_id: Optional[str] = None):
    """Build a thinking_level_change, model_change or compaction entry."""
    if kind == "thinking_level_change":
        return ThinkingLevelChangeEntry(id=entry_id, parent_id=parent_id, thinking_level="low")
    if kind == "model_change":
        return ModelChangeEntry(
            id=entry_id,
            parent_id=parent_id,
            provider="anthropic",
            model_id="claude-3-opus",
        )
    return CompactionEntry(
        id=entry_id,
        parent_id=parent_id,
        summary="Previous compaction",
        first_kept_entry_id="prev",
        tokens_before=100_000,
    )


@pytest.fixture
def message_entry():
    """Factory fixture for message entries."""
    return make_message_entry


@pytest.fixture
def custom_message_entry():
    """Factory fixture for custom_message entries."""
    return make_custom_message_entry


@pytest.fixture
def metadata_entry():
    """Factory fixture for marker entries."""
    return make_metadata_entry
