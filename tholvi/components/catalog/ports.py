"""
Catalog component ports.

Adapters raise DependencyFailure when the store cannot be reached.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from tholvi.domain.entities import Blog, ContentKind, Course, Tool


class ContentStorePort(Protocol):
    """Read/write access to content items."""

    def list_items(
        self, kind: ContentKind, published_only: bool = False
    ) -> list[Course | Tool | Blog]:
        """List items of one kind, newest first, without sections."""
        ...

    def get_item(
        self, kind: ContentKind, item_id: UUID, include_sections: bool = False
    ) -> Course | Tool | Blog | None:
        ...

    def save_item(self, item: Course | Tool | Blog) -> Course | Tool | Blog:
        """Upsert item. Never writes sections or the section count."""
        ...

    def delete_item(self, kind: ContentKind, item_id: UUID) -> None:
        ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
