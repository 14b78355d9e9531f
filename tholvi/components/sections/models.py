"""
Sections component models.

Ordered lessons/modules under a course or tool.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from tholvi.domain.entities import Section, SectionParentKind, UserAccount
from tholvi.domain.errors import DomainError

# --- Input Models ---


@dataclass(frozen=True)
class AddSectionInput:
    """Input for adding a section. order_index defaults to the sibling count."""

    actor: UserAccount
    parent_kind: SectionParentKind
    parent_id: UUID
    title: str
    content: str = ""
    video_url: str | None = None
    order_index: int | None = None


@dataclass(frozen=True)
class UpdateSectionInput:
    """Fields left as None are unchanged. An empty video_url clears it."""

    actor: UserAccount
    section_id: UUID
    title: str | None = None
    content: str | None = None
    video_url: str | None = None
    order_index: int | None = None


@dataclass(frozen=True)
class DeleteSectionInput:
    actor: UserAccount
    section_id: UUID


@dataclass(frozen=True)
class ListSectionsInput:
    parent_kind: SectionParentKind
    parent_id: UUID


@dataclass(frozen=True)
class ReconcileCountsInput:
    actor: UserAccount
    repair: bool = False


# --- Output Models ---


@dataclass(frozen=True)
class SectionOutput:
    section: Section | None = None
    success: bool = False
    error: DomainError | None = None


@dataclass(frozen=True)
class DeleteSectionOutput:
    success: bool = False
    error: DomainError | None = None


@dataclass(frozen=True)
class SectionListOutput:
    sections: tuple[Section, ...] = ()
    total: int = 0
    success: bool = True
    error: DomainError | None = None


@dataclass(frozen=True)
class CountDrift:
    """Stored section_count disagrees with the live section collection."""

    parent_kind: SectionParentKind
    parent_id: UUID
    stored: int
    live: int


@dataclass(frozen=True)
class ReconcileCountsOutput:
    drifts: tuple[CountDrift, ...] = field(default_factory=tuple)
    repaired: int = 0
    success: bool = False
    error: DomainError | None = None
