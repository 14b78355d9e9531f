"""
Members component models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import UUID

from tholvi.domain.entities import UserAccount
from tholvi.domain.errors import DomainError

TierFilter = Literal["all", "free", "tier1", "tier2"]

DISPLAY_NAME_MAX = 100


# --- Input Models ---


@dataclass(frozen=True)
class ListUsersInput:
    """Admin user listing. search matches display name or email."""

    actor: UserAccount | None
    search: str = ""
    tier_filter: TierFilter = "all"


@dataclass(frozen=True)
class SetTierInput:
    actor: UserAccount | None
    user_id: UUID
    tier: str


@dataclass(frozen=True)
class SetBannedInput:
    actor: UserAccount | None
    user_id: UUID
    banned: bool


@dataclass(frozen=True)
class SetTelegramAccessInput:
    actor: UserAccount | None
    user_id: UUID
    granted: bool


@dataclass(frozen=True)
class UpdateProfileInput:
    """Owner edit. None leaves a field unchanged; "" clears the Telegram username."""

    actor: UserAccount | None
    display_name: str | None = None
    telegram_username: str | None = None


@dataclass(frozen=True)
class StatsInput:
    actor: UserAccount | None


# --- Output Models ---


@dataclass(frozen=True)
class UserListOutput:
    users: tuple[UserAccount, ...] = ()
    total: int = 0
    success: bool = True
    error: DomainError | None = None


@dataclass(frozen=True)
class UserOutput:
    user: UserAccount | None = None
    success: bool = False
    error: DomainError | None = None


@dataclass(frozen=True)
class MemberStats:
    total_users: int
    free_users: int
    tier1_users: int
    tier2_users: int
    pending_payments: int
    conversion_rate: int


@dataclass(frozen=True)
class StatsOutput:
    stats: MemberStats | None = None
    success: bool = False
    error: DomainError | None = None
