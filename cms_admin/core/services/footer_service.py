from __future__ import annotations

"""Service layer for the site footer settings.

Loads and saves the footer document (brand, logo text, social links,
copyright) and offers the list edits the social-links form performs. Save
failures are reported as :class:`OperationResult`, never raised.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence

from cms_admin.core.exceptions import FetchError
from cms_admin.core.interfaces import SettingsStore
from cms_admin.core.models import FooterSettings, OperationResult, SocialLink

__all__ = ["FooterSettingsService"]

logger = logging.getLogger(__name__)

LOGO_TEXT_MAX_LENGTH = 10
DEFAULT_PLATFORM = "gmail"
_LINK_FIELDS = ("platform", "href")


class FooterSettingsService:
    """Fetch/save of footer settings stored under one settings key.

    Parameters
    ----------
    store : SettingsStore
        Store exposing get_settings/save_settings.
    key : str, default="footer"
        Document key the footer is kept under.
    """

    def __init__(self, store: SettingsStore, key: str = "footer") -> None:
        self._store = store
        self._key = key

    def fetch_settings(self) -> FooterSettings:
        """Return the stored footer, or empty settings if none was saved yet.

        Raises
        ------
        FetchError
            If the store is unreachable; foreign exceptions are wrapped.
        """
        try:
            record = self._store.get_settings(self._key)
        except FetchError:
            raise
        except Exception as exc:
            raise FetchError(f"Could not fetch {self._key} settings: {exc}", cause=exc) from exc
        return FooterSettings.from_record(record)

    def save_settings(self, settings: FooterSettings) -> OperationResult:
        logger.info("Footer: save_settings links=%d", len(settings.social_links))
        if len(settings.logo_text) > LOGO_TEXT_MAX_LENGTH:
            return OperationResult(
                False,
                f"Logo text must be at most {LOGO_TEXT_MAX_LENGTH} characters",
                {"invalid": True},
            )
        try:
            self._store.save_settings(self._key, settings.to_record())
        except Exception as exc:
            logger.error("Footer FAIL: save_settings %s", exc)
            return OperationResult(False, "Failed to save footer settings", {"error": str(exc)})
        logger.info("Footer OK: save_settings")
        return OperationResult(True, "Footer settings saved successfully!")

    # -------------------------------------------------------------------------
    # Social link list edits (each returns a new list)
    # -------------------------------------------------------------------------

    @staticmethod
    def add_social_link(links: Optional[Sequence[SocialLink]]) -> List[SocialLink]:
        return [*(links or ()), SocialLink(platform=DEFAULT_PLATFORM, href="")]

    @staticmethod
    def remove_social_link(links: Optional[Sequence[SocialLink]], index: int) -> List[SocialLink]:
        """Drop the link at ``index``; an index outside the list changes nothing."""
        return [link for i, link in enumerate(links or ()) if i != index]

    @staticmethod
    def update_social_link(
        links: Optional[Sequence[SocialLink]], index: int, field: str, value: str
    ) -> List[SocialLink]:
        """Set ``platform`` or ``href`` on the link at ``index``.

        Raises
        ------
        ValueError
            If ``field`` is not ``platform`` or ``href``.
        IndexError
            If ``index`` is outside the list.
        """
        if field not in _LINK_FIELDS:
            raise ValueError(f"Unknown social link field: {field!r}")
        updated = list(links or ())
        if not 0 <= index < len(updated):
            raise IndexError(f"No social link at index {index}")
        updated[index] = replace(updated[index], **{field: value})
        return updated
