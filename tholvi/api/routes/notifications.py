from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends

from tholvi.adapters.sqlite.repos import SQLiteNotificationRepo
from tholvi.api.deps import get_current_user, get_notification_repo
from tholvi.api.errors import http_error
from tholvi.components.notifications import (
    ListNotificationsInput,
    MarkReadInput,
    run_list,
    run_mark_read,
)
from tholvi.domain.entities import Notification, UserAccount

router = APIRouter()


@router.get("")
def list_notifications(
    current_user: UserAccount = Depends(get_current_user),
    repo: SQLiteNotificationRepo = Depends(get_notification_repo),
) -> dict[str, Any]:
    result = run_list(ListNotificationsInput(actor=current_user), repo=repo)
    if not result.success:
        raise http_error(result.error)
    return {"notifications": list(result.notifications), "unread_count": result.unread_count}


@router.post("/{notification_id}/read", response_model=Notification)
def mark_notification_read(
    notification_id: UUID,
    current_user: UserAccount = Depends(get_current_user),
    repo: SQLiteNotificationRepo = Depends(get_notification_repo),
) -> Notification:
    result = run_mark_read(
        MarkReadInput(actor=current_user, notification_id=notification_id), repo=repo
    )
    if not result.success or result.notification is None:
        raise http_error(result.error)
    return result.notification
