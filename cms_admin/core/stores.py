from __future__ import annotations

"""In-process entry store.

Implements the :class:`~cms_admin.core.interfaces.TimelineStore` protocol over a
dictionary guarded by a lock. Records are copied on the way in and out so
callers never share state with the store. Used for local runs and tests; a
remote client exposing the same methods is a drop-in replacement.
"""

from copy import deepcopy
import logging
import threading
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional

from cms_admin.core.exceptions import WriteError

__all__ = ["MemoryEntryStore", "MemorySettingsStore"]

logger = logging.getLogger(__name__)


class MemoryEntryStore:
    """Thread-safe dictionary-backed entry store.

    Parameters
    ----------
    records : iterable of mappings, optional
        Initial records. Each must carry an ``id``.
    """

    def __init__(self, records: Optional[Iterable[Mapping[str, Any]]] = None) -> None:
        self._lock = threading.Lock()
        # dict preserves insertion order, which list() reports
        self._records: Dict[str, Dict[str, Any]] = {}
        for record in records or ():
            if "id" not in record:
                raise ValueError("Seed record has no id")
            self._records[str(record["id"])] = deepcopy(dict(record))

    def list(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [deepcopy(r) for r in self._records.values()]

    def get(self, entry_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._records.get(entry_id)
            return deepcopy(record) if record is not None else None

    def create(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        record = deepcopy(dict(fields))
        record["id"] = str(record.get("id") or uuid.uuid4().hex)
        with self._lock:
            if record["id"] in self._records:
                raise WriteError("Entry already exists", entry_id=record["id"])
            self._records[record["id"]] = record
            logger.debug("Store create: %s", record["id"])
            return deepcopy(record)

    def update(self, entry_id: str, fields: Mapping[str, Any]) -> None:
        with self._lock:
            record = self._records.get(entry_id)
            if record is None:
                raise WriteError("Entry not found", entry_id=entry_id)
            changes = {k: deepcopy(v) for k, v in fields.items() if k != "id"}
            record.update(changes)

    def delete(self, entry_id: str) -> None:
        with self._lock:
            if self._records.pop(entry_id, None) is None:
                raise WriteError("Entry not found", entry_id=entry_id)
            logger.debug("Store delete: %s", entry_id)


class MemorySettingsStore:
    """Thread-safe dictionary-backed settings store (one document per key)."""

    def __init__(self, documents: Optional[Mapping[str, Mapping[str, Any]]] = None) -> None:
        self._lock = threading.Lock()
        self._documents: Dict[str, Dict[str, Any]] = {
            key: deepcopy(dict(doc)) for key, doc in (documents or {}).items()
        }

    def get_settings(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._documents.get(key)
            return deepcopy(doc) if doc is not None else None

    def save_settings(self, key: str, data: Mapping[str, Any]) -> None:
        with self._lock:
            self._documents[key] = deepcopy(dict(data))
            logger.debug("Store save_settings: %s", key)
