from __future__ import annotations

"""Store interface definitions.

Defines the contract between the admin core and the remote data service that
holds entries and site settings. The core never talks to a transport
directly; any client object exposing these methods can be plugged in.
"""

from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class EntryStore(Protocol):
    """Protocol for the operations the reorder core consumes.

    The store is treated as remote and partially failable: it offers no
    multi-row transaction, so each ``update`` succeeds or fails on its own.
    """

    def list(self) -> List[Mapping[str, Any]]:
        """Return every entry as a flat record with at least ``id`` and ``order``.

        Raises:
            FetchError: On transport or availability problems.
        """
        ...

    def update(self, entry_id: str, fields: Mapping[str, Any]) -> None:
        """Apply a partial update to one entry.

        Raises:
            WriteError: For any failure (network, validation, conflict).
        """
        ...


@runtime_checkable
class TimelineStore(EntryStore, Protocol):
    """Entry store with the create/delete operations used by the editor."""

    def create(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Persist a new entry and return its stored record (including ``id``).

        Raises:
            WriteError: If the entry could not be created.
        """
        ...

    def delete(self, entry_id: str) -> None:
        """Remove an entry.

        Raises:
            WriteError: If the entry could not be removed.
        """
        ...


@runtime_checkable
class SettingsStore(Protocol):
    """Protocol for site settings kept as one document per key (e.g. ``footer``)."""

    def get_settings(self, key: str) -> Optional[Mapping[str, Any]]:
        """Return the stored document for ``key``, or None if it was never saved.

        Raises:
            FetchError: On transport or availability problems.
        """
        ...

    def save_settings(self, key: str, data: Mapping[str, Any]) -> None:
        """Replace the document stored under ``key``.

        Raises:
            WriteError: If the document could not be saved.
        """
        ...
