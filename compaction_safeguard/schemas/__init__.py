# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Schemas for the persisted session log."""
from .session import (
    BOUNDARY_ENTRY_TYPES,
    COUNTED_ENTRY_TYPES,
    TRANSPARENT_ENTRY_TYPES,
    CompactionEntry,
    CustomMessageEntry,
    EntryType,
    MessageEntry,
    ModelChangeEntry,
    SessionEntry,
    ThinkingLevelChangeEntry,
    parse_session_entries,
)

__all__ = [
    "BOUNDARY_ENTRY_TYPES",
    "COUNTED_ENTRY_TYPES",
    "TRANSPARENT_ENTRY_TYPES",
    "CompactionEntry",
    "CustomMessageEntry",
    "EntryType",
    "MessageEntry",
    "ModelChangeEntry",
    "SessionEntry",
    "ThinkingLevelChangeEntry",
    "parse_session_entries",
]
