import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pytest

from cms_admin.core.exceptions import WriteError
from cms_admin.core.services.reorder_service import ReorderCoordinator
from cms_admin.core.stores import MemoryEntryStore


class ScriptedStore(MemoryEntryStore):
    """
    MemoryEntryStore whose order writes can be failed or held back.

    - fail_ids: entries whose every update raises WriteError.
    - fail_counts: entry id -> number of updates that fail before succeeding.
    - gate: when set, updates wait on it before doing anything, which keeps
      the coordinator in its persisting state.
    - gate_ids: restrict the gate to these entries (all entries when None).
    """

    def __init__(
        self,
        records: Iterable[Mapping[str, Any]],
        fail_ids: Iterable[str] = (),
        fail_counts: Optional[Dict[str, int]] = None,
        gate: Optional[threading.Event] = None,
        gate_ids: Optional[Iterable[str]] = None,
    ) -> None:
        super().__init__(records)
        self.fail_ids = set(fail_ids)
        self.fail_counts = dict(fail_counts or {})
        self.gate = gate
        self.gate_ids = set(gate_ids) if gate_ids is not None else None
        self.started = threading.Event()
        self.update_calls: List[Tuple[str, Dict[str, Any]]] = []
        self._calls_lock = threading.Lock()

    def update(self, entry_id: str, fields: Mapping[str, Any]) -> None:
        with self._calls_lock:
            self.update_calls.append((entry_id, dict(fields)))
            remaining = self.fail_counts.get(entry_id, 0)
            if remaining:
                self.fail_counts[entry_id] = remaining - 1
        self.started.set()
        if self.gate is not None and (self.gate_ids is None or entry_id in self.gate_ids):
            self.gate.wait(5)
        if entry_id in self.fail_ids or remaining:
            raise WriteError("rejected by store", entry_id=entry_id)
        super().update(entry_id, fields)

    def orders(self) -> Dict[str, int]:
        return {r["id"]: r["order"] for r in self.list()}


@pytest.fixture
def make_store(timeline_records):
    def factory(records=None, **kwargs):
        return ScriptedStore(timeline_records if records is None else records, **kwargs)
    return factory


@pytest.fixture
def make_coordinator():
    def factory(store, **kwargs):
        coordinator = ReorderCoordinator(store, **kwargs)
        coordinator.observe(store.list())
        return coordinator
    return factory


