from __future__ import annotations

"""Shared data structures used across the CMS admin core.

This package exposes dataclasses and value objects used by services and
controllers. It is intentionally free of UI / I/O code so that the contained
objects can be reused in any context (unit-tests, CLI, GUI, etc.).
"""

from copy import deepcopy
from dataclasses import dataclass, field, replace
import logging
from typing import Any, Dict, List, Literal, Mapping, Optional

__all__ = ["Entry", "FooterSettings", "MoveOutcome", "OperationResult", "SocialLink"]

logger = logging.getLogger(__name__)

MoveStatus = Literal["applied", "rejected", "reverted"]
MoveReason = Literal["invalid_indices", "busy", "write_error"]


def _coerce_order(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Unreadable order value %r treated as 0", value)
        return 0


@dataclass(frozen=True)
class Entry:
    """Projection of a persisted entry as held by the ordered view.

    Attributes
    ----------
    id
        Opaque, stable identity assigned by the store.
    order
        Sequence position. Not guaranteed contiguous or unique on read.
    fields
        Remaining payload (year, title, content...). Irrelevant to ordering.
    """

    id: str
    order: int = 0
    fields: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Entry":
        """Build a projection from a raw store record.

        The payload is deep-copied so a later fresh load cannot alter an
        entry the view is holding.
        """
        if "id" not in record or record["id"] is None:
            raise ValueError("Entry record has no id")
        payload = {k: deepcopy(v) for k, v in record.items() if k not in ("id", "order")}
        return cls(id=str(record["id"]), order=_coerce_order(record.get("order")), fields=payload)

    def to_record(self) -> Dict[str, Any]:
        record = deepcopy(self.fields)
        record["id"] = self.id
        record["order"] = self.order
        return record

    def with_order(self, order: int) -> "Entry":
        return replace(self, order=order)


@dataclass(frozen=True)
class MoveOutcome:
    """Result of a move submitted to the reorder coordinator.

    Attributes
    ----------
    status
        ``applied`` when the new order is persisted, ``rejected`` when the
        move was refused before any side effect, ``reverted`` when
        persistence failed and the view went back to its pre-move snapshot.
    reason
        Why a move was rejected or reverted; ``None`` when applied.
    message
        Human-readable summary suitable for logs or UI display.
    failures
        Per-entry diagnostic detail for a reverted move (entry id -> cause).
    """

    status: MoveStatus
    reason: Optional[MoveReason] = None
    message: str = ""
    failures: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def applied_move(cls) -> "MoveOutcome":
        return cls("applied", None, "Order updated successfully")

    @classmethod
    def invalid_indices(cls, source_index: Any, target_index: Any) -> "MoveOutcome":
        return cls(
            "rejected",
            "invalid_indices",
            f"Cannot move from {source_index!r} to {target_index!r}.",
        )

    @classmethod
    def busy(cls) -> "MoveOutcome":
        return cls("rejected", "busy", "Another reorder is still being saved.")

    @classmethod
    def write_error(cls, failures: Dict[str, str]) -> "MoveOutcome":
        return cls("reverted", "write_error", "Failed to update order", dict(failures))

    @property
    def applied(self) -> bool:
        return self.status == "applied"

    @property
    def rejected(self) -> bool:
        return self.status == "rejected"

    @property
    def reverted(self) -> bool:
        return self.status == "reverted"


@dataclass(frozen=True)
class OperationResult:
    """Result of an entry editing operation.

    Attributes
    ----------
    success
        Whether the operation completed successfully.
    message
        Human-readable summary suitable for logs or UI display.
    details
        Optional structured details for diagnostics or caller logic.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None


@dataclass
class SocialLink:
    """One footer/contact link: a platform key (``gmail``, ``github``...) and a URL."""
    platform: str = "gmail"
    href: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "SocialLink":
        return cls(platform=str(record.get("platform") or ""), href=str(record.get("href") or ""))

    def to_record(self) -> Dict[str, str]:
        return {"platform": self.platform, "href": self.href}


@dataclass
class FooterSettings:
    """Footer content edited by the operator.

    Stored with the site's camelCase keys: ``brandName``, ``logoText``,
    ``socialLinks`` and ``copyright`` (``text`` plus optional ``license``).
    """

    brand_name: str = ""
    logo_text: str = ""
    social_links: List[SocialLink] = field(default_factory=list)
    copyright_text: str = ""
    license: str = ""

    @classmethod
    def from_record(cls, record: Optional[Mapping[str, Any]]) -> "FooterSettings":
        """Build settings from a stored document; missing parts become empty.

        A ``socialLinks`` value that is not a list is read as no links.
        """
        record = record or {}
        raw_links = record.get("socialLinks")
        links = [SocialLink.from_record(item) for item in raw_links if isinstance(item, Mapping)] \
            if isinstance(raw_links, list) else []
        copyright_block = record.get("copyright")
        if not isinstance(copyright_block, Mapping):
            copyright_block = {}
        return cls(
            brand_name=str(record.get("brandName") or ""),
            logo_text=str(record.get("logoText") or ""),
            social_links=links,
            copyright_text=str(copyright_block.get("text") or ""),
            license=str(copyright_block.get("license") or ""),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "brandName": self.brand_name,
            "logoText": self.logo_text,
            "socialLinks": [link.to_record() for link in self.social_links],
            "copyright": {"text": self.copyright_text, "license": self.license},
        }
