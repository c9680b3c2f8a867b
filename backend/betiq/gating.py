# betiq/gating.py
"""
Content gate.

  - STANDARD items are always fully visible
  - PREMIUM items are visible only with premium access
  - opening a locked PREMIUM item yields an upgrade redirect, never the content

Everything here is pure: no I/O, no mutation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from fastapi import HTTPException, status

from betiq.classifier import Classification
from betiq.entitlements import EffectiveAccess

VIP_REQUIRED = "VIP_REQUIRED"


class ViewDecision(str, Enum):
    FULLY_VISIBLE = "FULLY_VISIBLE"
    LOCKED_PLACEHOLDER = "LOCKED_PLACEHOLDER"


@dataclass(frozen=True)
class ContentItem:
    identity: str
    classification: Classification


@dataclass(frozen=True)
class ViewerContext:
    """Who is looking, what they may see, and in which language."""

    subject_id: str
    access: EffectiveAccess
    language: str = "FR"


@dataclass(frozen=True)
class OpenContent:
    item: ContentItem


@dataclass(frozen=True)
class UpgradeRedirect:
    item: ContentItem
    url: str


OpenResult = Union[OpenContent, UpgradeRedirect]


def resolve_view(item: ContentItem, access: EffectiveAccess) -> ViewDecision:
    if item.classification == Classification.STANDARD:
        return ViewDecision.FULLY_VISIBLE
    if access.can_view_premium:
        return ViewDecision.FULLY_VISIBLE
    return ViewDecision.LOCKED_PLACEHOLDER


def open_item(item: ContentItem, access: EffectiveAccess, upgrade_url: str) -> OpenResult:
    if resolve_view(item, access) == ViewDecision.LOCKED_PLACEHOLDER:
        return UpgradeRedirect(item=item, url=upgrade_url)
    return OpenContent(item=item)


def vip_required_error(redirect: UpgradeRedirect, checkout_url: Optional[str] = None) -> HTTPException:
    """403 that the HTTP error handler turns into a redirect for browsers."""
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={
            "code": VIP_REQUIRED,
            "message": "Deep AI analysis for this match is reserved for VIP members.",
            "item_id": redirect.item.identity,
            "upgrade_url": redirect.url,
            "checkout_url": checkout_url,
        },
    )
