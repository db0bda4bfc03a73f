from __future__ import annotations

"""Exception classes for the CMS admin core.

Store collaborators raise :class:`FetchError` and :class:`WriteError`; the
ordered view raises :class:`InvalidIndicesError`. Services and controllers
catch these at their boundary and report outcomes instead of propagating.
"""

from typing import Optional


class CmsError(Exception):
    """Base exception for all admin core errors."""

    def __init__(self, message: str, entry_id: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.entry_id = entry_id
        self.cause = cause

    def __str__(self) -> str:
        if self.entry_id:
            return f"[Entry: {self.entry_id}] {super().__str__()}"
        return super().__str__()


class FetchError(CmsError):
    """Raised when the entry list cannot be fetched from the store.

    Covers transport and availability problems; callers keep their current
    (stale) view until a later fetch succeeds.
    """
    pass


class WriteError(CmsError):
    """Raised when a single store write fails.

    Network, validation and conflict failures are not distinguished.
    """
    pass


class InvalidIndicesError(CmsError, IndexError):
    """Raised when a move references a position outside the current view."""

    def __init__(self, source_index: int, target_index: int, length: int) -> None:
        self.source_index = source_index
        self.target_index = target_index
        self.length = length
        super().__init__(
            f"Move ({source_index} -> {target_index}) is outside a view of length {length}"
        )
