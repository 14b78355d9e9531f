"""
Payments component ports.

update_status is the concurrency guard: the store applies the change only
while the row still holds from_status and reports whether it did.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from tholvi.domain.entities import (
    NotificationType,
    PaymentRequest,
    PaymentStatus,
    Tier,
    UserAccount,
)


class PaymentStorePort(Protocol):
    def create(self, payment: PaymentRequest) -> UUID: ...

    def get_by_id(self, payment_id: UUID) -> PaymentRequest | None: ...

    def update_status(
        self,
        payment_id: UUID,
        from_status: PaymentStatus,
        to_status: PaymentStatus,
        fields: dict[str, Any],
    ) -> bool:
        """Conditional update; False when the row is no longer in from_status."""
        ...

    def list_payments(
        self,
        status: PaymentStatus | None = None,
        user_id: UUID | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[PaymentRequest], int]:
        """Newest first, with the unpaginated total."""
        ...

    def list_approved(self) -> list[PaymentRequest]: ...


class UserDirectoryPort(Protocol):
    def get_by_id(self, user_id: UUID) -> UserAccount | None: ...

    def set_tier(self, user_id: UUID, tier: Tier, changed_at: datetime) -> bool:
        """Write the tier; False when the user does not exist."""
        ...


class NotifierPort(Protocol):
    def notify(
        self, user_id: UUID, title: str, message: str, type: NotificationType
    ) -> None: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
