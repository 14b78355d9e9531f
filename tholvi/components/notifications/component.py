"""
Notifications component.

In-app messages for a member. Delivery beyond the inbox is not handled
here; payment review writes through StoreNotifier.
"""

from __future__ import annotations

import logging
from uuid import UUID

from tholvi.domain.entities import Notification, NotificationType
from tholvi.domain.errors import (
    DependencyFailure,
    dependency_error,
    forbidden,
    not_found,
    unauthorized,
)

from .models import (
    ListNotificationsInput,
    MarkReadInput,
    NotificationListOutput,
    NotificationOutput,
)
from .ports import NotificationRepoPort, TimePort

logger = logging.getLogger(__name__)


class StoreNotifier:
    """Notifier that records a notification in the member's inbox."""

    def __init__(self, repo: NotificationRepoPort, time: TimePort) -> None:
        self.repo = repo
        self.time = time

    def notify(self, user_id: UUID, title: str, message: str, type: NotificationType) -> None:
        self.repo.create(
            Notification(
                user_id=user_id,
                title=title,
                message=message,
                type=type,
                created_at=self.time.now_utc(),
            )
        )
        logger.info("Notification '%s' recorded for user %s", title, user_id)


def run_list(inp: ListNotificationsInput, *, repo: NotificationRepoPort) -> NotificationListOutput:
    if inp.actor is None:
        return NotificationListOutput(success=False, error=unauthorized())

    try:
        items = repo.list_for_user(inp.actor.id)
    except DependencyFailure as e:
        logger.error("Listing notifications for %s failed: %s", inp.actor.id, e)
        return NotificationListOutput(success=False, error=dependency_error(e))

    unread = sum(1 for n in items if not n.read)
    return NotificationListOutput(notifications=tuple(items), unread_count=unread)


def run_mark_read(inp: MarkReadInput, *, repo: NotificationRepoPort) -> NotificationOutput:
    """Mark one of the caller's notifications read. Repeating it is harmless."""
    if inp.actor is None:
        return NotificationOutput(error=unauthorized())

    try:
        notification = repo.get_by_id(inp.notification_id)
        if notification is None:
            return NotificationOutput(error=not_found("Notification"))
        if notification.user_id != inp.actor.id:
            return NotificationOutput(error=forbidden())
        if not notification.read:
            repo.mark_read(notification.id)
    except DependencyFailure as e:
        logger.error("Marking notification %s read failed: %s", inp.notification_id, e)
        return NotificationOutput(error=dependency_error(e))

    return NotificationOutput(
        notification=notification.model_copy(update={"read": True}), success=True
    )


def run(
    inp: ListNotificationsInput | MarkReadInput, *, repo: NotificationRepoPort
) -> NotificationListOutput | NotificationOutput:
    if isinstance(inp, ListNotificationsInput):
        return run_list(inp, repo=repo)

    elif isinstance(inp, MarkReadInput):
        return run_mark_read(inp, repo=repo)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
