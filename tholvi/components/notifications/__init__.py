"""
Notifications component - member inbox and the notifier used by payment review.
"""

from .component import StoreNotifier, run, run_list, run_mark_read
from .models import (
    ListNotificationsInput,
    MarkReadInput,
    NotificationListOutput,
    NotificationOutput,
)
from .ports import NotificationRepoPort

__all__ = [
    # Entry points
    "run",
    "run_list",
    "run_mark_read",
    # Adapters
    "StoreNotifier",
    # Input models
    "ListNotificationsInput",
    "MarkReadInput",
    # Output models
    "NotificationListOutput",
    "NotificationOutput",
    # Ports
    "NotificationRepoPort",
]
