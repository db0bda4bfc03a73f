from __future__ import annotations

"""Local ordered view of store entries.

Holds what the operator currently sees, independently from what the store
has confirmed. Every mutation builds a complete new sequence and swaps it in,
so readers never observe a half-applied change.
"""

import logging
from typing import Any, Iterable, Mapping, Tuple, Union

from cms_admin.core.exceptions import InvalidIndicesError
from cms_admin.core.models import Entry

__all__ = ["OrderedView", "Snapshot"]

logger = logging.getLogger(__name__)

Snapshot = Tuple[Entry, ...]
RawEntry = Union[Entry, Mapping[str, Any]]


class OrderedView:
    """Ordered sequence of :class:`Entry` projections.

    Once a reorder is persisted, ``index + 1`` of each entry is its ``order``
    value (dense and 1-based), whatever gaps the store returned on load.

    Examples
    --------
    >>> view = OrderedView()
    >>> view.load([{"id": "a", "order": 2}, {"id": "b", "order": 1}])
    >>> [e.id for e in view.entries]
    ['b', 'a']
    """

    def __init__(self, raw_entries: Iterable[RawEntry] = ()) -> None:
        self._entries: Snapshot = ()
        if raw_entries:
            self.load(raw_entries)

    # --------------------------------------------------------------------- API

    @property
    def entries(self) -> Snapshot:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def load(self, raw_entries: Iterable[RawEntry]) -> None:
        """Replace the view with ``raw_entries`` sorted by ``order`` ascending.

        The sort is stable: entries sharing an order keep their relative
        position from ``raw_entries``.
        """
        projected = [self._project(raw) for raw in raw_entries]
        self._entries = tuple(sorted(projected, key=lambda e: e.order))
        logger.debug("View loaded: %d entries", len(self._entries))

    def snapshot(self) -> Snapshot:
        """Return an immutable copy of the current sequence."""
        return tuple(self._entries)

    def apply_move(self, source_index: int, target_index: int) -> Snapshot:
        """Remove the entry at ``source_index`` and reinsert it at ``target_index``.

        Entries in between shift by one position. Equal indices leave the view
        untouched.

        Raises
        ------
        InvalidIndicesError
            If either index is outside ``[0, len(view))``. Negative indices
            are never wrapped around.
        """
        length = len(self._entries)
        if not (self._in_range(source_index, length) and self._in_range(target_index, length)):
            raise InvalidIndicesError(source_index, target_index, length)
        if source_index == target_index:
            return self._entries

        reordered = list(self._entries)
        moved = reordered.pop(source_index)
        reordered.insert(target_index, moved)
        self._entries = tuple(reordered)
        logger.debug("View move: %s %d -> %d", moved.id, source_index, target_index)
        return self._entries

    def densify(self) -> Snapshot:
        """Rewrite every ``order`` to ``index + 1``."""
        self._entries = tuple(e.with_order(i + 1) for i, e in enumerate(self._entries))
        return self._entries

    def restore(self, snapshot: Snapshot) -> None:
        """Replace the current sequence wholesale with ``snapshot``."""
        self._entries = tuple(snapshot)
        logger.debug("View restored: %d entries", len(self._entries))

    def index_of(self, entry_id: str) -> int:
        """Return the position of ``entry_id``, or -1 if it is not in view."""
        for i, e in enumerate(self._entries):
            if e.id == entry_id:
                return i
        return -1

    # --------------------------------------------------------------- Internals

    @staticmethod
    def _in_range(index: Any, length: int) -> bool:
        return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < length

    @staticmethod
    def _project(raw: RawEntry) -> Entry:
        if isinstance(raw, Entry):
            return Entry.from_record(raw.to_record())
        return Entry.from_record(raw)
