"""
Notifications component models.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from tholvi.domain.entities import Notification, UserAccount
from tholvi.domain.errors import DomainError


@dataclass(frozen=True)
class ListNotificationsInput:
    actor: UserAccount | None


@dataclass(frozen=True)
class MarkReadInput:
    actor: UserAccount | None
    notification_id: UUID


@dataclass(frozen=True)
class NotificationListOutput:
    notifications: tuple[Notification, ...] = ()
    unread_count: int = 0
    success: bool = True
    error: DomainError | None = None


@dataclass(frozen=True)
class NotificationOutput:
    notification: Notification | None = None
    success: bool = False
    error: DomainError | None = None
