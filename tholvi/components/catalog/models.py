"""
Catalog component models.

Inputs and outputs for listing, presenting and editing content items.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal
from uuid import UUID

from tholvi.domain.entities import Blog, ContentKind, Course, Tier, Tool, UserAccount
from tholvi.domain.errors import DomainError

# Caller privilege is passed explicitly, never inferred from the record set
Audience = Literal["member", "admin"]

TierFilter = Literal["all", "free", "tier1", "tier2"]

AnyItem = Course | Tool | Blog


# --- Views ---


@dataclass(frozen=True)
class ItemView:
    """
    A content item prepared for one audience.

    When locked, the item carries no blog body and no section bodies or
    video links; titles stay visible as a teaser.
    """

    item: AnyItem
    locked: bool
    accessible: bool


@dataclass(frozen=True)
class CatalogCounts:
    """Published item counts by required tier, from one snapshot."""

    total: int = 0
    free: int = 0
    tier1: int = 0
    tier2: int = 0


@dataclass(frozen=True)
class KindAccess:
    kind: ContentKind
    counts: CatalogCounts
    unlock_percentage: int


# --- Inputs ---


@dataclass(frozen=True)
class ListItemsInput:
    kind: ContentKind
    audience: Audience = "member"
    actor: UserAccount | None = None
    query: str = ""
    tier_filter: TierFilter = "all"


@dataclass(frozen=True)
class GetItemInput:
    kind: ContentKind
    item_id: UUID
    audience: Audience = "member"
    actor: UserAccount | None = None


@dataclass(frozen=True)
class AccessSummaryInput:
    user_tier: Tier


@dataclass(frozen=True)
class SaveItemInput:
    """Create (item_id None) or update a content item."""

    actor: UserAccount
    kind: ContentKind
    fields: dict[str, Any]
    item_id: UUID | None = None


@dataclass(frozen=True)
class DeleteItemInput:
    actor: UserAccount
    kind: ContentKind
    item_id: UUID


# --- Outputs ---


@dataclass(frozen=True)
class ListItemsOutput:
    items: tuple[AnyItem, ...] = ()
    total: int = 0
    # Store unavailable; listing is empty rather than failed
    degraded: bool = False
    success: bool = True
    error: DomainError | None = None


@dataclass(frozen=True)
class ItemOutput:
    view: ItemView | None = None
    success: bool = False
    error: DomainError | None = None


@dataclass(frozen=True)
class AccessSummaryOutput:
    kinds: tuple[KindAccess, ...] = ()
    overall_percentage: int = 0
    success: bool = True
    error: DomainError | None = None


@dataclass(frozen=True)
class SaveItemOutput:
    item: AnyItem | None = None
    errors: tuple[DomainError, ...] = field(default_factory=tuple)
    success: bool = False


@dataclass(frozen=True)
class DeleteItemOutput:
    success: bool = False
    error: DomainError | None = None
