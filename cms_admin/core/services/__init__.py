from __future__ import annotations

"""High-level orchestration services (reordering, entry editing, footer settings)."""

from .footer_service import FooterSettingsService  # noqa: F401
from .reorder_service import ReorderCoordinator  # noqa: F401
from .timeline_service import TimelineEditingService  # noqa: F401

__all__: list[str] = [
    "FooterSettingsService",
    "ReorderCoordinator",
    "TimelineEditingService",
]
