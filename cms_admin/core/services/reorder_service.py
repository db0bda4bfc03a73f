from __future__ import annotations

"""Optimistic reordering of store entries.

This module turns a user move (drag-and-drop, keyboard, test harness) into a
durable order change. The move is applied to the local view first, then the
new dense order of every entry is written to the store concurrently. Any
failed write reverts the view to its pre-move snapshot.

Protocol per move
-----------------
1. idle: accept a move; reject invalid indices before any side effect.
2. persisting: snapshot, apply the move, densify orders, fan out one
   ``store.update(id, {"order": n})`` per entry and join.
3. resolution: all writes succeeded -> the optimistic view stands; otherwise
   restore the snapshot. Back to idle either way.

A move submitted while another one is persisting, or while writes that
missed the timeout are still running ("settling"), is rejected as ``busy``.
A fresh list observed while persisting is deferred until resolution: it is
dropped when the move was applied and loaded when the move was reverted.

Examples
--------
    coordinator = ReorderCoordinator(store, write_timeout=5.0)
    coordinator.observe(store.list())
    outcome = coordinator.submit_move(0, 2)
    if outcome.reverted:
        print(outcome.message, outcome.failures)
"""

from concurrent.futures import Future, ThreadPoolExecutor, wait
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Literal, Mapping, Optional, Tuple

from cms_admin.core.interfaces import EntryStore
from cms_admin.core.models import Entry, MoveOutcome
from cms_admin.core.ordered_view import OrderedView, RawEntry

__all__ = ["ReorderCoordinator"]

logger = logging.getLogger(__name__)

CoordinatorState = Literal["idle", "persisting", "settling"]


class ReorderCoordinator:
    """Coordinates optimistic moves on an :class:`OrderedView` with a store.

    Parameters
    ----------
    store : EntryStore
        Remote collaborator; only ``update`` is called here.
    view : OrderedView, optional
        View to drive. A fresh empty view is created when omitted.
    write_timeout : float, optional
        Seconds to wait for the whole batch of writes. Writes still running at
        the deadline count as failures. ``None`` waits indefinitely.
    max_workers : int, optional
        Thread pool size for the fan-out. Defaults to one thread per entry.
    max_retries : int, default=0
        Extra attempts per failed write before it counts as failed.
    retry_backoff : float, default=0.25
        Base delay in seconds; attempt ``n`` sleeps ``retry_backoff * 2**n``.

    Notes
    -----
    - ``submit_move`` never raises for store failures; it reports a
      :class:`MoveOutcome`.
    - The state lock is released while writes are in flight, so other threads
      can read ``entries`` and get ``busy`` rejections.
    - Writes that miss ``write_timeout`` keep running; the coordinator stays
      ``settling`` (and rejects moves as ``busy``) until they finish, see
      :meth:`settle`.
    """

    def __init__(
        self,
        store: EntryStore,
        view: Optional[OrderedView] = None,
        *,
        write_timeout: Optional[float] = None,
        max_workers: Optional[int] = None,
        max_retries: int = 0,
        retry_backoff: float = 0.25,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self._view = view if view is not None else OrderedView()
        self._write_timeout = write_timeout
        self._max_workers = max_workers
        self._max_retries = max(0, int(max_retries))
        self._retry_backoff = max(0.0, float(retry_backoff))
        self._sleep = sleep

        self._lock = threading.Lock()
        self._state: CoordinatorState = "idle"
        self._deferred_load: Optional[List[RawEntry]] = None
        # Timed-out writes still running in the background
        self._stragglers: List[Future] = []

    @classmethod
    def from_config(cls, store: EntryStore, view: Optional[OrderedView] = None) -> "ReorderCoordinator":
        """Build a coordinator from the ``reorder`` configuration section."""
        from cms_admin.config import ConfigManager

        cfg = ConfigManager().get_reorder_config()
        timeout = cfg.get("write_timeout_seconds")
        workers = cfg.get("max_workers")
        return cls(
            store,
            view,
            write_timeout=float(timeout) if timeout is not None else None,
            max_workers=int(workers) if workers else None,
            max_retries=int(cfg.get("max_retries", 0) or 0),
            retry_backoff=float(cfg.get("retry_backoff_seconds", 0.25) or 0.0),
        )

    # -------------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------------

    @property
    def view(self) -> OrderedView:
        return self._view

    @property
    def entries(self) -> Tuple[Entry, ...]:
        """Current ordered sequence, for rendering."""
        return self._view.entries

    @property
    def state(self) -> CoordinatorState:
        """``settling`` while writes that missed the timeout are still running."""
        with self._lock:
            return self._current_state()

    @property
    def is_busy(self) -> bool:
        return self.state != "idle"

    def settle(self, timeout: Optional[float] = None) -> bool:
        """Wait for timed-out writes to finish. Returns True once none remain."""
        with self._lock:
            stragglers = list(self._stragglers)
        if stragglers:
            wait(stragglers, timeout=timeout)
        with self._lock:
            return self._current_state() != "settling"

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def observe(self, raw_entries: Iterable[RawEntry]) -> bool:
        """Feed a freshly fetched entry list into the view.

        Returns True when the view was reloaded now, False when the load was
        deferred because a move is persisting. Only the latest deferred list
        is kept. It is loaded after a reverted move and dropped after an
        applied one, since it was fetched before the new orders landed.
        """
        records = list(raw_entries)
        with self._lock:
            if self._state == "persisting":
                self._deferred_load = records
                logger.info("Reorder: fresh load deferred until current move resolves (%d entries)", len(records))
                return False
            self._view.load(records)
            return True

    def submit_move(self, source_index: Any, target_index: Any) -> MoveOutcome:
        """Move the entry at ``source_index`` to ``target_index`` and persist.

        Blocks until every order write has settled (or the timeout elapsed).
        """
        with self._lock:
            if self._current_state() != "idle":
                logger.info("Reorder FAIL: busy source=%r target=%r", source_index, target_index)
                return MoveOutcome.busy()
            if not self._valid_move(source_index, target_index):
                logger.info("Reorder noop: invalid_indices source=%r target=%r size=%d",
                            source_index, target_index, len(self._view))
                return MoveOutcome.invalid_indices(source_index, target_index)

            snapshot = self._view.snapshot()
            self._view.apply_move(source_index, target_index)
            pending = [(e.id, e.order) for e in self._view.densify()]
            self._state = "persisting"

        logger.info("Reorder: move %d -> %d, writing %d orders", source_index, target_index, len(pending))
        failures: Dict[str, str] = {}
        try:
            failures = self._persist(pending)
        except Exception as exc:  # executor-level failure, not a store result
            logger.exception("Reorder FAIL: write dispatch error")
            failures = {entry_id: f"dispatch failed: {exc}" for entry_id, _ in pending}
        finally:
            outcome = self._resolve(snapshot, failures)
        return outcome

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _current_state(self) -> CoordinatorState:
        # Caller holds the lock
        if self._state == "persisting":
            return "persisting"
        self._stragglers = [f for f in self._stragglers if not f.done()]
        return "settling" if self._stragglers else "idle"

    def _valid_move(self, source_index: Any, target_index: Any) -> bool:
        length = len(self._view)
        for index in (source_index, target_index):
            if not isinstance(index, int) or isinstance(index, bool):
                return False
            if not 0 <= index < length:
                return False
        return source_index != target_index

    def _persist(self, pending: List[Tuple[str, int]]) -> Dict[str, str]:
        """Write every pending order concurrently; return failures by entry id."""
        if not pending:
            return {}

        workers = self._max_workers or len(pending)
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="reorder-write")
        try:
            futures = {
                executor.submit(self._write_order, entry_id, order): entry_id
                for entry_id, order in pending
            }
            done, not_done = wait(futures, timeout=self._write_timeout)

            failures: Dict[str, str] = {}
            for future in done:
                entry_id = futures[future]
                exc = future.exception()
                if exc is not None:
                    failures[entry_id] = str(exc) or type(exc).__name__
            running = []
            for future in not_done:
                if not future.cancel():
                    running.append(future)
                failures[futures[future]] = f"timed out after {self._write_timeout}s"
            if running:
                # Until these land, a new move could be overwritten by them
                with self._lock:
                    self._stragglers.extend(running)
                logger.warning("Reorder: %d timed-out writes still running, new moves are held off",
                               len(running))
            return failures
        finally:
            # Do not block on writes that outlived the timeout
            executor.shutdown(wait=False, cancel_futures=True)

    def _write_order(self, entry_id: str, order: int) -> None:
        attempt = 0
        while True:
            try:
                self._store.update(entry_id, {"order": order})
                return
            except Exception as exc:
                if attempt >= self._max_retries:
                    raise
                delay = self._retry_backoff * (2 ** attempt)
                logger.debug("Reorder retry: entry=%s attempt=%d delay=%.3fs cause=%s",
                             entry_id, attempt + 1, delay, exc)
                attempt += 1
                if delay:
                    self._sleep(delay)

    def _resolve(self, snapshot, failures: Mapping[str, str]) -> MoveOutcome:
        with self._lock:
            if failures:
                self._view.restore(snapshot)
                outcome = MoveOutcome.write_error(dict(failures))
                logger.warning("Reorder FAIL: %d of %d writes failed, view reverted: %s",
                               len(failures), len(snapshot), dict(failures))
            else:
                outcome = MoveOutcome.applied_move()
                logger.info("Reorder OK: %d orders persisted", len(snapshot))

            self._state = "idle"
            deferred, self._deferred_load = self._deferred_load, None
            if deferred is not None and outcome.applied:
                # Fetched before the writes landed: older than the view
                logger.info("Reorder: dropped deferred load (%d entries) predating the persisted order",
                            len(deferred))
            elif deferred is not None:
                self._view.load(deferred)
                logger.info("Reorder: applied deferred load (%d entries)", len(deferred))
        return outcome
