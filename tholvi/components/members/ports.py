"""
Members component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from tholvi.domain.entities import PaymentRequest, PaymentStatus, Tier, UserAccount


class UserDirectoryPort(Protocol):
    def get_by_id(self, user_id: UUID) -> UserAccount | None: ...

    def list_all(self) -> list[UserAccount]:
        """All accounts, newest first."""
        ...

    def update_profile(
        self, user_id: UUID, fields: dict[str, object], updated_at: datetime
    ) -> bool:
        """Write owner-editable columns only. False when the user is gone."""
        ...

    def set_tier(self, user_id: UUID, tier: Tier, changed_at: datetime) -> bool: ...

    def set_banned(self, user_id: UUID, banned: bool, updated_at: datetime) -> bool: ...

    def set_telegram_access(
        self, user_id: UUID, granted: bool, updated_at: datetime
    ) -> bool: ...


class PaymentCountPort(Protocol):
    def list_payments(
        self,
        status: PaymentStatus | None = None,
        user_id: UUID | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[PaymentRequest], int]: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
