"""
Sections component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from tholvi.domain.entities import Course, Section, SectionParentKind, Tool


class SectionStorePort(Protocol):
    """Sections plus the denormalized count on their parent."""

    def get_item(
        self, kind: SectionParentKind, item_id: UUID, include_sections: bool = False
    ) -> Course | Tool | None: ...

    def list_items(
        self, kind: SectionParentKind, published_only: bool = False
    ) -> list[Course | Tool]: ...

    def list_sections(self, kind: SectionParentKind, parent_id: UUID) -> list[Section]:
        """Sections of one parent in insertion order."""
        ...

    def get_section(self, section_id: UUID) -> Section | None: ...

    def save_section(self, section: Section) -> Section: ...

    def delete_section(self, section_id: UUID) -> None: ...

    def increment_section_count(self, kind: SectionParentKind, parent_id: UUID) -> None: ...

    def decrement_section_count(self, kind: SectionParentKind, parent_id: UUID) -> None:
        """Decrement by one, never below zero."""
        ...

    def set_section_count(
        self, kind: SectionParentKind, parent_id: UUID, count: int
    ) -> bool:
        """False when the parent is gone."""
        ...


@runtime_checkable
class TransactionalSectionStorePort(Protocol):
    """Stores that can write a section and its parent count in one transaction."""

    def add_section_with_count(self, section: Section) -> Section: ...

    def delete_section_with_count(self, section: Section) -> None: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
