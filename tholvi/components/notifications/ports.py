"""
Notifications component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from tholvi.domain.entities import Notification


class NotificationRepoPort(Protocol):
    def create(self, notification: Notification) -> None: ...

    def get_by_id(self, notification_id: UUID) -> Notification | None: ...

    def list_for_user(self, user_id: UUID) -> list[Notification]:
        """Newest first."""
        ...

    def mark_read(self, notification_id: UUID) -> None: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
