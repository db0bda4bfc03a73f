from __future__ import annotations

"""Service layer for timeline entry edits.

UI-agnostic create/update/delete of timeline entries plus the refresh path
that feeds freshly fetched entries into a reorder coordinator. Expected
failures are reported as :class:`OperationResult`, never raised.

Examples
--------
    service = TimelineEditingService(store)
    result = service.create_entry({"year": "2021", "title": "Joined", "content": "..."})
    if not result.success:
        print(result.message)
"""

import logging
from typing import Any, Dict, List, Mapping

from cms_admin.core.exceptions import FetchError
from cms_admin.core.interfaces import TimelineStore
from cms_admin.core.models import OperationResult
from cms_admin.core.services.reorder_service import ReorderCoordinator

__all__ = ["TimelineEditingService"]

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("year", "title", "content")


class TimelineEditingService:
    """Encapsulates edit operations on timeline entries.

    Parameters
    ----------
    store : TimelineStore
        Store exposing list/create/update/delete.
    """

    def __init__(self, store: TimelineStore) -> None:
        self._store = store

    # -------------------------------------------------------------------------
    # Form handling
    # -------------------------------------------------------------------------

    @staticmethod
    def parse_entry_form(form: Mapping[str, Any]) -> Dict[str, Any]:
        """Turn submitted form values into an entry record.

        ``images`` is a comma-separated list of URLs; blanks are dropped and
        the key is omitted when nothing remains. ``order`` falls back to 0
        when missing or not an integer.

        Raises
        ------
        ValueError
            If a required field (year, title, content) is missing or blank.
        """
        missing = [name for name in _REQUIRED_FIELDS if not str(form.get(name) or "").strip()]
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")

        try:
            order = int(str(form.get("order") or "").strip())
        except ValueError:
            order = 0

        record: Dict[str, Any] = {
            "year": str(form["year"]).strip(),
            "title": str(form["title"]).strip(),
            "content": str(form["content"]),
            "order": order,
            "active": True,
        }
        images_input = form.get("images") or ""
        if isinstance(images_input, str):
            images = [url.strip() for url in images_input.split(",") if url.strip()]
        else:
            images = [str(url).strip() for url in images_input if str(url).strip()]
        if images:
            record["images"] = images
        return record

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def fetch_entries(self) -> List[Mapping[str, Any]]:
        """Return the current entry list from the store.

        Raises
        ------
        FetchError
            If the store is unreachable; foreign exceptions are wrapped.
        """
        try:
            return list(self._store.list())
        except FetchError:
            raise
        except Exception as exc:
            raise FetchError(f"Could not fetch entries: {exc}", cause=exc) from exc

    def refresh(self, coordinator: ReorderCoordinator) -> OperationResult:
        """Fetch entries and hand them to ``coordinator``.

        On fetch failure the view is left as it was.
        """
        try:
            records = self.fetch_entries()
        except FetchError as exc:
            logger.warning("Refresh FAIL: %s", exc)
            return OperationResult(False, "Failed to load entries", {"error": str(exc)})
        applied = coordinator.observe(records)
        logger.info("Refresh OK: %d entries (%s)", len(records), "loaded" if applied else "deferred")
        return OperationResult(True, "Entries loaded", {"count": len(records), "deferred": not applied})

    def create_entry(self, form: Mapping[str, Any]) -> OperationResult:
        logger.info("Edit: create_entry")
        try:
            record = self.parse_entry_form(form)
        except ValueError as exc:
            return OperationResult(False, str(exc), {"invalid": True})
        try:
            created = self._store.create(record)
        except Exception as exc:
            logger.error("Edit FAIL: create_entry %s", exc)
            return OperationResult(False, "Failed to save", {"error": str(exc)})
        logger.info("Edit OK: create_entry id=%s", created.get("id"))
        return OperationResult(True, "Entry created", {"entry_id": created.get("id")})

    def update_entry(self, entry_id: str, form: Mapping[str, Any]) -> OperationResult:
        logger.info("Edit: update_entry id=%s", entry_id)
        try:
            record = self.parse_entry_form(form)
        except ValueError as exc:
            return OperationResult(False, str(exc), {"invalid": True, "entry_id": entry_id})
        try:
            self._store.update(entry_id, record)
        except Exception as exc:
            logger.error("Edit FAIL: update_entry id=%s %s", entry_id, exc)
            return OperationResult(False, "Failed to save", {"entry_id": entry_id, "error": str(exc)})
        logger.info("Edit OK: update_entry id=%s", entry_id)
        return OperationResult(True, "Entry updated", {"entry_id": entry_id})

    def delete_entry(self, entry_id: str) -> OperationResult:
        logger.info("Edit: delete_entry id=%s", entry_id)
        try:
            self._store.delete(entry_id)
        except Exception as exc:
            logger.error("Edit FAIL: delete_entry id=%s %s", entry_id, exc)
            return OperationResult(False, "Failed to delete", {"entry_id": entry_id, "error": str(exc)})
        logger.info("Edit OK: delete_entry id=%s", entry_id)
        return OperationResult(True, "Deleted", {"entry_id": entry_id})
