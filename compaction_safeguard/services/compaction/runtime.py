# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Per-session-manager runtime configuration.

The compaction driver attaches a mutable policy object to the session
manager it is running for, without owning or extending that manager's type.
Associations are keyed by object identity, never by equality, and are
dropped automatically when a weak-referenceable manager is garbage-collected.
"""

from __future__ import annotations

import logging
import weakref
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

_INVALID_IDENTITY_TYPES = (str, bytes, bytearray, int, float, complex, bool)


class CompactionSafeguardRuntime(BaseModel):
    """Mutable policy overrides for one session manager.

    Accepts snake_case or camelCase keys; unknown keys are rejected.

    Attributes:
        max_history_share (Optional[float]): Share of the context window the
            summarized history may occupy.
        min_preserved_messages (Optional[int]): Messages that must stay
            uncompacted after a pass.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    max_history_share: Optional[float] = Field(default=None, gt=0, le=1)
    min_preserved_messages: Optional[int] = Field(default=None, ge=0)


RuntimeLike = Union[CompactionSafeguardRuntime, Mapping[str, Any]]


def _is_valid_identity(identity: Any) -> bool:
    return identity is not None and not isinstance(identity, _INVALID_IDENTITY_TYPES)


class CompactionSafeguardRuntimeRegistry:
    """Identity-keyed association between session managers and runtimes.

    Last writer wins.
    """

    def __init__(self) -> None:
        # id(identity) -> (reference, runtime). The reference is a weakref
        # when supported, otherwise the identity itself.
        self._entries: Dict[int, Tuple[Any, CompactionSafeguardRuntime]] = {}

    def _make_reference(self, identity: Any) -> Any:
        key = id(identity)

        def _on_collect(ref: weakref.ref) -> None:
            current = self._entries.get(key)
            if current is not None and current[0] is ref:
                del self._entries[key]

        try:
            return weakref.ref(identity, _on_collect)
        except TypeError:
            return identity

    @staticmethod
    def _resolve(reference: Any) -> Any:
        if isinstance(reference, weakref.ref):
            return reference()
        return reference

    def get(self, identity: Any) -> Optional[CompactionSafeguardRuntime]:
        """Return the runtime associated with *identity*.

        Args:
            identity (Any): The session manager instance.

        Returns:
            Optional[CompactionSafeguardRuntime]: The stored runtime, or
                ``None`` if none is set or *identity* is not a valid key.
        """
        if not _is_valid_identity(identity):
            return None
        entry = self._entries.get(id(identity))
        if entry is None or self._resolve(entry[0]) is not identity:
            return None
        return entry[1]

    def set(self, identity: Any, runtime: Optional[RuntimeLike]) -> None:
        """Associate, replace or clear the runtime for *identity*.

        Invalid identities (``None``, strings, numbers) are ignored.

        Args:
            identity (Any): The session manager instance.
            runtime (Optional[RuntimeLike]): Runtime to store; a mapping is
                validated into ``CompactionSafeguardRuntime``. ``None`` clears
                the association.

        Raises:
            pydantic.ValidationError: If a mapping holds out-of-range values.
        """
        if not _is_valid_identity(identity):
            logger.debug("Ignoring runtime for invalid identity of type %s", type(identity).__name__)
            return
        key = id(identity)
        if runtime is None:
            self._entries.pop(key, None)
            return
        if not isinstance(runtime, CompactionSafeguardRuntime):
            runtime = CompactionSafeguardRuntime.model_validate(dict(runtime))
        self._entries[key] = (self._make_reference(identity), runtime)

    def __len__(self) -> int:
        return len(self._entries)


_registry = CompactionSafeguardRuntimeRegistry()


def get_compaction_safeguard_runtime(identity: Any) -> Optional[CompactionSafeguardRuntime]:
    """Return the runtime for *identity* from the process-wide registry."""
    return _registry.get(identity)


def set_compaction_safeguard_runtime(identity: Any, runtime: Optional[RuntimeLike]) -> None:
    """Set or clear the runtime for *identity* in the process-wide registry."""
    _registry.set(identity, runtime)
