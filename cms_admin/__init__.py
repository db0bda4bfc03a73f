"""Top-level package for the CMS admin core.

This package hosts the GUI-agnostic implementation of the admin panel's
timeline and footer editing. Front-ends should only depend on the public API
exposed here rather than importing internal modules directly.
"""

from .core.exceptions import CmsError, FetchError, InvalidIndicesError, WriteError
from .core.models import Entry, FooterSettings, MoveOutcome, OperationResult, SocialLink
from .core.ordered_view import OrderedView
from .core.services import FooterSettingsService, ReorderCoordinator, TimelineEditingService
from .core.stores import MemoryEntryStore, MemorySettingsStore

__all__: list[str] = [
    "CmsError",
    "Entry",
    "FetchError",
    "FooterSettings",
    "FooterSettingsService",
    "InvalidIndicesError",
    "MemoryEntryStore",
    "MemorySettingsStore",
    "MoveOutcome",
    "OperationResult",
    "OrderedView",
    "ReorderCoordinator",
    "SocialLink",
    "TimelineEditingService",
    "WriteError",
]
