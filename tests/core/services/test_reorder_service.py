import threading

import pytest

from cms_admin.core.models import Entry
from cms_admin.core.ordered_view import OrderedView
from cms_admin.core.services.reorder_service import ReorderCoordinator


def _ids(entries):
    return [e.id for e in entries]


def _run_in_thread(fn, *args):
    result = {}

    def runner():
        result["value"] = fn(*args)

    t = threading.Thread(target=runner, daemon=True)
    t.start()
    return t, result


# ---------------------------
# Rejections
# ---------------------------

def test_same_position_move_is_rejected_without_store_calls(make_store, make_coordinator):
    store = make_store()
    coordinator = make_coordinator(store)
    before = coordinator.entries

    for i in range(len(before)):
        outcome = coordinator.submit_move(i, i)
        assert outcome.rejected
        assert outcome.reason == "invalid_indices"
        assert coordinator.entries == before

    assert store.update_calls == []
    assert coordinator.state == "idle"


@pytest.mark.parametrize("source,target", [(-1, 0), (0, 4), (4, 0), (0, -1)])
def test_out_of_bounds_move_is_rejected_without_store_calls(make_store, make_coordinator, source, target):
    store = make_store()
    coordinator = make_coordinator(store)

    outcome = coordinator.submit_move(source, target)

    assert outcome.status == "rejected"
    assert outcome.reason == "invalid_indices"
    assert _ids(coordinator.entries) == ["A", "B", "C", "D"]
    assert store.update_calls == []


def test_non_integer_indices_are_rejected(make_store, make_coordinator):
    store = make_store()
    coordinator = make_coordinator(store)

    assert coordinator.submit_move("0", 1).reason == "invalid_indices"
    assert coordinator.submit_move(True, 2).reason == "invalid_indices"
    assert coordinator.submit_move(0, None).reason == "invalid_indices"
    assert store.update_calls == []


def test_move_on_empty_view_is_rejected(make_store):
    store = make_store(records=[])
    coordinator = ReorderCoordinator(store)
    assert coordinator.submit_move(0, 0).reason == "invalid_indices"


# ---------------------------
# Successful moves
# ---------------------------

def test_move_reinserts_entry_at_target_and_persists_every_order(make_store, make_coordinator):
    store = make_store()
    coordinator = make_coordinator(store)

    outcome = coordinator.submit_move(0, 2)

    assert outcome.applied
    assert outcome.reason is None
    assert outcome.message == "Order updated successfully"
    assert _ids(coordinator.entries) == ["B", "C", "A", "D"]
    assert [e.order for e in coordinator.entries] == [1, 2, 3, 4]
    assert isinstance(coordinator.entries, tuple)
    assert all(isinstance(e, Entry) for e in coordinator.entries)
    # Every entry is rewritten, not only the moved ones
    assert sorted(store.update_calls) == [
        ("A", {"order": 3}),
        ("B", {"order": 1}),
        ("C", {"order": 2}),
        ("D", {"order": 4}),
    ]
    assert store.orders() == {"A": 3, "B": 1, "C": 2, "D": 4}
    assert coordinator.state == "idle"


def test_move_towards_front(make_store, make_coordinator):
    store = make_store()
    coordinator = make_coordinator(store)

    assert coordinator.submit_move(3, 1).applied
    assert _ids(coordinator.entries) == ["A", "D", "B", "C"]


def test_orders_are_densified_regardless_of_gaps_and_duplicates(make_store, make_coordinator):
    records = [
        {"id": "A", "order": 10},
        {"id": "B", "order": 10},
        {"id": "C", "order": 40},
        {"id": "D", "order": 7},
        {"id": "E"},
    ]
    store = make_store(records=records)
    coordinator = make_coordinator(store)
    assert _ids(coordinator.entries) == ["E", "D", "A", "B", "C"]

    assert coordinator.submit_move(4, 0).applied

    assert _ids(coordinator.entries) == ["C", "E", "D", "A", "B"]
    assert [e.order for e in coordinator.entries] == [1, 2, 3, 4, 5]
    assert sorted(store.orders().values()) == [1, 2, 3, 4, 5]


def test_payload_fields_survive_a_move(make_store, make_coordinator):
    store = make_store()
    coordinator = make_coordinator(store)

    coordinator.submit_move(1, 0)

    first = coordinator.entries[0]
    assert first.id == "B"
    assert first.fields["title"] == "Promotion"
    assert store.get("B")["title"] == "Promotion"


def test_bounded_worker_pool_still_writes_every_entry(make_store, make_coordinator):
    store = make_store()
    coordinator = make_coordinator(store, max_workers=1)

    assert coordinator.submit_move(0, 3).applied
    assert len(store.update_calls) == 4


# ---------------------------
# Failures and revert
# ---------------------------

def test_partial_write_failure_restores_pre_move_snapshot(make_store, make_coordinator, timeline_records):
    store = make_store(records=timeline_records[:3], fail_ids={"B"})
    coordinator = make_coordinator(store)
    snapshot = coordinator.view.snapshot()

    outcome = coordinator.submit_move(0, 2)

    assert outcome.reverted
    assert outcome.reason == "write_error"
    assert outcome.message == "Failed to update order"
    assert set(outcome.failures) == {"B"}
    assert "rejected by store" in outcome.failures["B"]
    assert coordinator.entries == snapshot
    assert _ids(coordinator.entries) == ["A", "B", "C"]
    assert [e.order for e in coordinator.entries] == [1, 2, 3]
    assert coordinator.state == "idle"


def test_unexpected_store_exception_counts_as_write_failure(make_store, make_coordinator):
    store = make_store()

    def broken_update(entry_id, fields):
        raise RuntimeError("connection reset")

    store.update = broken_update
    coordinator = make_coordinator(store)

    outcome = coordinator.submit_move(0, 1)

    assert outcome.reverted
    assert set(outcome.failures) == {"A", "B", "C", "D"}
    assert outcome.failures["A"] == "connection reset"
    assert _ids(coordinator.entries) == ["A", "B", "C", "D"]


def test_move_can_be_reissued_after_revert(make_store, make_coordinator):
    store = make_store(fail_ids={"C"})
    coordinator = make_coordinator(store)

    assert coordinator.submit_move(0, 1).reverted

    store.fail_ids.clear()
    outcome = coordinator.submit_move(0, 1)

    assert outcome.applied
    assert _ids(coordinator.entries) == ["B", "A", "C", "D"]


def test_write_timeout_is_treated_as_failure(make_store, make_coordinator):
    gate = threading.Event()
    store = make_store(gate=gate)
    coordinator = make_coordinator(store, write_timeout=0.05)
    try:
        outcome = coordinator.submit_move(0, 1)
        assert coordinator.state == "settling"
    finally:
        gate.set()

    assert outcome.reverted
    assert set(outcome.failures) == {"A", "B", "C", "D"}
    assert all("timed out" in cause for cause in outcome.failures.values())
    assert _ids(coordinator.entries) == ["A", "B", "C", "D"]
    assert coordinator.settle(5) is True
    assert coordinator.state == "idle"


def test_late_write_from_timed_out_move_cannot_clobber_next_move(make_store, make_coordinator):
    gate = threading.Event()
    store = make_store(gate=gate, gate_ids={"A"})
    coordinator = make_coordinator(store, write_timeout=0.1)
    try:
        first = coordinator.submit_move(0, 2)
        assert first.reverted
        assert set(first.failures) == {"A"}

        # A's order write is still in flight
        assert coordinator.is_busy
        second = coordinator.submit_move(1, 0)
        assert second.reason == "busy"
        assert len(store.update_calls) == 4
    finally:
        gate.set()

    assert coordinator.settle(5) is True
    third = coordinator.submit_move(1, 0)

    assert third.applied
    assert _ids(coordinator.entries) == ["B", "A", "C", "D"]
    assert store.orders() == {"A": 2, "B": 1, "C": 3, "D": 4}
    assert sorted(store.orders().values()) == [1, 2, 3, 4]


def test_settle_without_stragglers_returns_immediately(make_store, make_coordinator):
    coordinator = make_coordinator(make_store())
    assert coordinator.settle(0) is True
    assert coordinator.state == "idle"


# ---------------------------
# Retry with backoff
# ---------------------------

def test_failed_write_is_retried_with_backoff(make_store, make_coordinator):
    delays = []
    store = make_store(fail_counts={"B": 2})
    coordinator = make_coordinator(store, max_retries=2, retry_backoff=0.1, sleep=delays.append)

    outcome = coordinator.submit_move(0, 1)

    assert outcome.applied
    assert delays == pytest.approx([0.1, 0.2])
    assert [c for c in store.update_calls if c[0] == "B"] == [("B", {"order": 1})] * 3


def test_exhausted_retries_revert_the_move(make_store, make_coordinator):
    delays = []
    store = make_store(fail_ids={"D"})
    coordinator = make_coordinator(store, max_retries=1, retry_backoff=0.5, sleep=delays.append)

    outcome = coordinator.submit_move(2, 0)

    assert outcome.reverted
    assert set(outcome.failures) == {"D"}
    assert delays == [0.5]
    assert _ids(coordinator.entries) == ["A", "B", "C", "D"]


def test_no_retry_by_default(make_store, make_coordinator):
    store = make_store(fail_counts={"A": 1})
    coordinator = make_coordinator(store)

    assert coordinator.submit_move(0, 1).reverted
    assert [c for c in store.update_calls if c[0] == "A"] == [("A", {"order": 2})]


# ---------------------------
# Concurrency
# ---------------------------

def test_second_move_while_persisting_is_rejected_busy(make_store, make_coordinator):
    gate = threading.Event()
    store = make_store(gate=gate)
    coordinator = make_coordinator(store)

    t, first = _run_in_thread(coordinator.submit_move, 0, 2)
    try:
        assert store.started.wait(2)
        assert coordinator.is_busy
        # Optimistic order is visible while writes are in flight
        assert _ids(coordinator.entries) == ["B", "C", "A", "D"]

        second = coordinator.submit_move(1, 0)
        assert second.rejected
        assert second.reason == "busy"
    finally:
        gate.set()
        t.join(5)

    assert first["value"].applied
    assert _ids(coordinator.entries) == ["B", "C", "A", "D"]
    assert len(store.update_calls) == 4
    assert coordinator.state == "idle"


def test_fresh_load_during_persisting_is_dropped_after_applied_move(make_store, make_coordinator):
    gate = threading.Event()
    store = make_store(gate=gate)
    coordinator = make_coordinator(store)
    stale = store.list()

    t, first = _run_in_thread(coordinator.submit_move, 0, 1)
    try:
        assert store.started.wait(2)
        assert coordinator.observe(stale) is False
        assert _ids(coordinator.entries) == ["B", "A", "C", "D"]
    finally:
        gate.set()
        t.join(5)

    assert first["value"].applied
    assert _ids(coordinator.entries) == ["B", "A", "C", "D"]
    assert [e.order for e in coordinator.entries] == [1, 2, 3, 4]


def test_fresh_load_during_persisting_is_loaded_after_reverted_move(make_store, make_coordinator):
    gate = threading.Event()
    store = make_store(gate=gate, fail_ids={"C"})
    coordinator = make_coordinator(store)
    fresh = [
        {"id": "X", "order": 2},
        {"id": "Y", "order": 1},
    ]

    t, first = _run_in_thread(coordinator.submit_move, 0, 1)
    try:
        assert store.started.wait(2)
        assert coordinator.observe(fresh) is False
    finally:
        gate.set()
        t.join(5)

    assert first["value"].reverted
    assert _ids(coordinator.entries) == ["Y", "X"]


def test_observe_when_idle_loads_immediately(make_store):
    store = make_store()
    coordinator = ReorderCoordinator(store)

    assert coordinator.observe(store.list()) is True
    assert _ids(coordinator.entries) == ["A", "B", "C", "D"]


def test_coordinator_drives_a_supplied_view(make_store):
    store = make_store()
    view = OrderedView(store.list())
    coordinator = ReorderCoordinator(store, view)

    coordinator.submit_move(0, 1)

    assert coordinator.view is view
    assert _ids(view.entries) == ["B", "A", "C", "D"]


# ---------------------------
# Configuration
# ---------------------------

def test_from_config_uses_packaged_defaults(make_store):
    coordinator = ReorderCoordinator.from_config(make_store())

    assert coordinator._write_timeout == 10.0
    assert coordinator._max_workers == 8
    assert coordinator._max_retries == 0
    assert coordinator._retry_backoff == 0.25


def test_from_config_applies_user_overrides(make_store, user_config_dir):
    user_config_dir.mkdir(parents=True)
    (user_config_dir / "reorder.yml").write_text(
        "write_timeout_seconds: null\nmax_retries: 3\nretry_backoff_seconds: 1.0\n",
        encoding="utf-8",
    )

    coordinator = ReorderCoordinator.from_config(make_store())

    assert coordinator._write_timeout is None
    assert coordinator._max_retries == 3
    assert coordinator._retry_backoff == 1.0
    assert coordinator._max_workers == 8
