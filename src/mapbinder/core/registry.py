"""
Listener Registry

This module provides the per-object listener table used by the event
coordinator. It is a plain data structure: it maps an event type to the
ordered list of listener records registered for it and remembers which
types are exclusive (registered with ``only``).
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Set


@dataclass(frozen=True, eq=False)
class ListenerRecord:
    """A single registered listener. Records compare by identity."""
    callback: Callable[..., Any]
    context: Optional[Any] = None
    once: bool = False
    only: bool = False

    def matches(self, callback: Callable[..., Any], once: Optional[bool] = None) -> bool:
        """
        Check if this record was registered for the given callback.

        Args:
            callback: The callback to compare with
            once: If given, the record's ``once`` option must also match

        Returns:
            True if the record matches
        """
        if self.callback != callback:
            return False
        if once is not None and self.once != once:
            return False
        return True


class ListenerRegistry:
    """
    Table of event type -> ordered listener records.

    Insertion order is preserved and is the order listeners are invoked in.
    """

    def __init__(self):
        self._listeners: Dict[str, List[ListenerRecord]] = {}
        self._exclusive: Set[str] = set()

    def add(self, event_type: str, record: ListenerRecord) -> None:
        """Append a record to the listeners for ``event_type``."""
        self._listeners.setdefault(event_type, []).append(record)

    def snapshot(self, event_type: str) -> tuple:
        """Return an immutable copy of the current listeners for a type."""
        return tuple(self._listeners.get(event_type, ()))

    def has(self, event_type: str, callback: Optional[Callable[..., Any]] = None) -> bool:
        """
        Check if there are listeners for a type.

        Args:
            event_type: The event type to test for
            callback: Optional callback to narrow the test to

        Returns:
            True if at least one matching record exists
        """
        records = self._listeners.get(event_type)
        if not records:
            return False
        if callback is None:
            return True
        return any(record.matches(callback) for record in records)

    def count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, ()))

    def types(self) -> List[str]:
        """Event types that currently have at least one listener."""
        return [event_type for event_type, records in self._listeners.items() if records]

    def remove_records(self, event_type: str, records: Iterable[ListenerRecord]) -> int:
        """
        Remove specific records by identity.

        Records that are no longer registered are ignored.

        Returns:
            Number of records removed
        """
        doomed = {id(record) for record in records}
        current = self._listeners.get(event_type)
        if not current or not doomed:
            return 0
        kept = [record for record in current if id(record) not in doomed]
        removed = len(current) - len(kept)
        self._listeners[event_type] = kept
        return removed

    def remove_matching(self, event_type: str, callback: Callable[..., Any],
                        once: Optional[bool] = None) -> int:
        """Remove every record registered for ``callback`` (and ``once`` if given)."""
        current = self._listeners.get(event_type)
        if not current:
            return 0
        kept = [record for record in current if not record.matches(callback, once)]
        removed = len(current) - len(kept)
        self._listeners[event_type] = kept
        return removed

    def clear_type(self, event_type: str) -> int:
        removed = len(self._listeners.get(event_type, ()))
        self._listeners.pop(event_type, None)
        self._exclusive.discard(event_type)
        return removed

    def clear(self) -> None:
        """Remove every listener and forget every exclusive type."""
        self._listeners.clear()
        self._exclusive.clear()

    # Exclusive ("only") bookkeeping

    def is_exclusive(self, event_type: str) -> bool:
        return event_type in self._exclusive

    def mark_exclusive(self, event_type: str) -> None:
        self._exclusive.add(event_type)

    def release_exclusive(self, event_type: str) -> None:
        self._exclusive.discard(event_type)

    def __contains__(self, event_type: str) -> bool:
        return self.has(event_type)

    def __repr__(self) -> str:
        counts = {event_type: len(records) for event_type, records in self._listeners.items() if records}
        return f"ListenerRegistry({counts})"
