# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Minimum-preserved-messages guarantee for compaction cut points.

A cut point is the id of the first entry kept verbatim; everything before it
is summarized away.  When too few messages would remain after the cut, the
cut point is walked backward until enough messages are kept.  The walk never
reaches a previous ``compaction`` entry: entries at or before it were already
summarized and cannot be restored as raw messages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from compaction_safeguard.schemas.session import (
    BOUNDARY_ENTRY_TYPES,
    COUNTED_ENTRY_TYPES,
    SessionEntry,
)

logger = logging.getLogger(__name__)


@dataclass
class CutPointAdjustment:
    """Result of moving a cut point backward.

    Attributes:
        new_first_kept_entry_id (str): Id of the entry at the new cut point.
        messages_to_add (List[SessionEntry]): Crossed ``message`` and
            ``custom_message`` entries, in original order.
        entries_to_add (List[SessionEntry]): Every crossed entry, including
            transparent markers, in original order.
        preserved_count (int): Messages kept from the new cut point onward.
        min_messages (int): Requested minimum.
        adjusted (bool): Always ``True``; present for callers that check it.
    """

    new_first_kept_entry_id: str
    messages_to_add: List[SessionEntry] = field(default_factory=list)
    entries_to_add: List[SessionEntry] = field(default_factory=list)
    preserved_count: int = 0
    min_messages: int = 0
    adjusted: bool = True

    @property
    def satisfied(self) -> bool:
        """Whether the requested minimum is met after the adjustment."""
        return self.preserved_count >= self.min_messages


def is_message_entry(entry: SessionEntry) -> bool:
    """Check whether an entry counts as a message.

    Args:
        entry (SessionEntry): Entry to classify.

    Returns:
        bool: ``True`` for ``message`` and ``custom_message`` entries.
    """
    return entry.type in COUNTED_ENTRY_TYPES


def _is_boundary_entry(entry: SessionEntry) -> bool:
    return entry.type in BOUNDARY_ENTRY_TYPES


def count_messages_from_index(entries: Sequence[SessionEntry], start: int) -> int:
    """Count message entries from *start* to the end, inclusive.

    Args:
        entries (Sequence[SessionEntry]): Session entries in log order.
        start (int): Index to start counting from.

    Returns:
        int: Number of counted entries; 0 when *start* is past the end.
    """
    return sum(1 for entry in entries[max(start, 0) :] if is_message_entry(entry))


def find_last_compaction_index(
    entries: Sequence[SessionEntry],
    before: Optional[int] = None,
) -> int:
    """Index of the most recent compaction entry.

    Args:
        entries (Sequence[SessionEntry]): Session entries in log order.
        before (Optional[int]): Only consider indices lower than this.
            Defaults to the whole sequence.

    Returns:
        int: Index of the last compaction entry, or -1 if there is none.
    """
    end = len(entries) if before is None else min(before, len(entries))
    for i in range(end - 1, -1, -1):
        if _is_boundary_entry(entries[i]):
            return i
    return -1


def _find_entry_index(entries: Sequence[SessionEntry], entry_id: str) -> int:
    for i, entry in enumerate(entries):
        if entry.id == entry_id:
            return i
    return -1


def adjust_cut_point_for_min_messages(
    entries: Sequence[SessionEntry],
    cut_entry_id: str,
    min_messages: int,
) -> Optional[CutPointAdjustment]:
    """Move a cut point backward so at least *min_messages* stay uncompacted.

    Transparent markers (thinking level / model changes) move with the cut
    point but do not count.  When the minimum exceeds what the permissible
    range holds, the cut point moves as far back as allowed and the partial
    result is returned.

    Args:
        entries (Sequence[SessionEntry]): Session entries in log order.
        cut_entry_id (str): Id of the provisional first kept entry.
        min_messages (int): Minimum number of messages to keep.

    Returns:
        Optional[CutPointAdjustment]: The moved cut point, or ``None`` when
            the id is unknown, the minimum is already met, or the cut point
            already sits on the earliest permissible entry.
    """
    cut_index = _find_entry_index(entries, cut_entry_id)
    if cut_index == -1:
        logger.debug("Cut point %s not found; nothing to adjust", cut_entry_id)
        return None

    current_count = count_messages_from_index(entries, cut_index)
    if current_count >= min_messages:
        return None

    min_allowed_index = find_last_compaction_index(entries, before=cut_index) + 1

    new_cut_index = cut_index
    newly_included = 0
    for i in range(cut_index - 1, min_allowed_index - 1, -1):
        entry = entries[i]
        if is_message_entry(entry):
            newly_included += 1
        new_cut_index = i
        if current_count + newly_included >= min_messages:
            break

    if new_cut_index == cut_index:
        logger.debug(
            "Cut point %s already at the earliest permissible entry; %d/%d messages kept",
            cut_entry_id,
            current_count,
            min_messages,
        )
        return None

    crossed = list(entries[new_cut_index:cut_index])
    adjustment = CutPointAdjustment(
        new_first_kept_entry_id=entries[new_cut_index].id,
        messages_to_add=[entry for entry in crossed if is_message_entry(entry)],
        entries_to_add=crossed,
        preserved_count=current_count + newly_included,
        min_messages=min_messages,
    )

    if adjustment.satisfied:
        logger.info(
            "Moved cut point %s -> %s to keep %d messages",
            cut_entry_id,
            adjustment.new_first_kept_entry_id,
            adjustment.preserved_count,
        )
    else:
        logger.warning(
            "Moved cut point %s -> %s but only %d/%d messages are available",
            cut_entry_id,
            adjustment.new_first_kept_entry_id,
            adjustment.preserved_count,
            min_messages,
        )
    return adjustment
