# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Session log entry schemas.

Entries form a parent-linked chain (``id`` / ``parent_id``) and are a closed
tagged union on ``type``.  Only ``message`` and ``custom_message`` entries
count as messages; ``thinking_level_change`` and ``model_change`` are
transparent markers; ``compaction`` is transparent for counting and acts as
a hard backward boundary when moving a cut point.
"""

from enum import Enum
from typing import Annotated, Any, Dict, FrozenSet, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from compaction_safeguard.models import Message, MessageContent


class EntryType(str, Enum):
    """Session entry type discriminator.

    Attributes:
        MESSAGE (str): Wraps a conversation message.
        CUSTOM_MESSAGE (str): Display-only message-like entry.
        THINKING_LEVEL_CHANGE (str): Reasoning effort changed.
        MODEL_CHANGE (str): Active model changed.
        COMPACTION (str): A previous compaction pass.
    """

    MESSAGE = "message"
    CUSTOM_MESSAGE = "custom_message"
    THINKING_LEVEL_CHANGE = "thinking_level_change"
    MODEL_CHANGE = "model_change"
    COMPACTION = "compaction"


# These three sets partition EntryType; every new variant must land in one.
COUNTED_ENTRY_TYPES: FrozenSet[EntryType] = frozenset({EntryType.MESSAGE, EntryType.CUSTOM_MESSAGE})
TRANSPARENT_ENTRY_TYPES: FrozenSet[EntryType] = frozenset(
    {EntryType.THINKING_LEVEL_CHANGE, EntryType.MODEL_CHANGE}
)
BOUNDARY_ENTRY_TYPES: FrozenSet[EntryType] = frozenset({EntryType.COMPACTION})


class BaseEntry(BaseModel):
    """Fields shared by every session entry.

    Attributes:
        id (str): Stable entry identifier.
        parent_id (Optional[str]): Identifier of the previous entry in the chain.
        timestamp (Optional[str]): ISO-8601 creation time.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )

    id: str
    parent_id: Optional[str] = None
    timestamp: Optional[str] = None


class MessageEntry(BaseEntry):
    """Entry wrapping a conversation message."""

    type: Literal["message"] = "message"
    message: Message


class CustomMessageEntry(BaseEntry):
    """Display-only message-like entry injected by extensions.

    Attributes:
        custom_type (str): Extension-defined kind.
        content (MessageContent): String or content blocks.
        display (bool): Whether the entry is shown to the user.
        details (Optional[Dict[str, Any]]): Extension metadata.
    """

    type: Literal["custom_message"] = "custom_message"
    custom_type: str
    content: MessageContent = ""
    display: bool = True
    details: Optional[Dict[str, Any]] = None


class ThinkingLevelChangeEntry(BaseEntry):
    type: Literal["thinking_level_change"] = "thinking_level_change"
    thinking_level: str


class ModelChangeEntry(BaseEntry):
    type: Literal["model_change"] = "model_change"
    provider: str
    model_id: str


class CompactionEntry(BaseEntry):
    """Record of a previous compaction pass.

    Attributes:
        summary (str): Summary that replaced the compacted prefix.
        first_kept_entry_id (str): First entry preserved verbatim.
        tokens_before (int): Estimated context size before compaction.
    """

    type: Literal["compaction"] = "compaction"
    summary: str
    first_kept_entry_id: str
    tokens_before: int = 0


SessionEntry = Annotated[
    Union[
        MessageEntry,
        CustomMessageEntry,
        ThinkingLevelChangeEntry,
        ModelChangeEntry,
        CompactionEntry,
    ],
    Field(discriminator="type"),
]

_entries_adapter: TypeAdapter[List[SessionEntry]] = TypeAdapter(List[SessionEntry])


def parse_session_entries(raw: Iterable[Dict[str, Any]]) -> List[SessionEntry]:
    """Validate raw session log records into typed entries.

    Args:
        raw (Iterable[Dict[str, Any]]): Records as read from the session log.

    Returns:
        List[SessionEntry]: Typed entries in log order.

    Raises:
        pydantic.ValidationError: If a record has an unknown ``type`` or is
            missing required fields.
    """
    return _entries_adapter.validate_python(list(raw))
