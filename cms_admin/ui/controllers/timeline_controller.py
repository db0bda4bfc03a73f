from typing import Any, Mapping, Optional, Tuple

from cms_admin.core.models import Entry, MoveOutcome, OperationResult
from cms_admin.core.services.reorder_service import ReorderCoordinator
from cms_admin.core.services.timeline_service import TimelineEditingService


class TimelineController:
    """Controller for coordinating timeline editor actions with services.

    Translates front-end events (drag end, form submit, delete click) into
    service calls and keeps the view in sync after writes. It contains no UI
    toolkit code and does not perform I/O itself.

    Parameters
    ----------
    coordinator : ReorderCoordinator
        Owns the ordered view and the reorder protocol.
    editing_service : TimelineEditingService
        Performs entry create/update/delete and list fetches.

    Notes
    -----
    - Routine failures are reported through return values, never raised.
    - After a successful create/update/delete the list is re-fetched so the
      view mirrors the store.
    """

    def __init__(
        self,
        coordinator: ReorderCoordinator,
        editing_service: TimelineEditingService,
    ) -> None:
        self.coordinator: ReorderCoordinator = coordinator
        self.editing_service: TimelineEditingService = editing_service

    @property
    def entries(self) -> Tuple[Entry, ...]:
        return self.coordinator.entries

    def load(self) -> OperationResult:
        """Fetch the entry list into the view."""
        return self.editing_service.refresh(self.coordinator)

    def handle_drag_end(self, active_id: str, over_id: Optional[str]) -> Optional[MoveOutcome]:
        """Handle the end of a drag gesture.

        Returns None when the entry was dropped nowhere or on itself; no
        move is submitted in that case.
        """
        if over_id is None or active_id == over_id:
            return None
        old_index = self.coordinator.view.index_of(active_id)
        new_index = self.coordinator.view.index_of(over_id)
        # index_of reports -1 for ids no longer in view; the coordinator rejects those
        return self.coordinator.submit_move(old_index, new_index)

    def save_entry(self, form: Mapping[str, Any], editing_id: Optional[str] = None) -> OperationResult:
        """Create a new entry, or update ``editing_id`` when given."""
        if editing_id:
            result = self.editing_service.update_entry(editing_id, form)
        else:
            result = self.editing_service.create_entry(form)
        if result.success:
            self.load()
        return result

    def delete_entry(self, entry_id: str) -> OperationResult:
        result = self.editing_service.delete_entry(entry_id)
        if result.success:
            self.load()
        return result
