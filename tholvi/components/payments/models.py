"""
Payments component models.

A payment request moves pending -> approved | rejected exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal
from uuid import UUID

from tholvi.domain.entities import PaymentRequest, PaymentView, Tier, UserAccount
from tholvi.domain.errors import DomainError

StatusFilter = Literal["all", "pending", "approved", "rejected"]


# --- Configuration ---


@dataclass(frozen=True)
class PaymentConfig:
    """Payment policy, loaded from rules."""

    allow_duplicate_pending: bool = False
    transaction_id_max_length: int = 128
    rejection_reason_max_length: int = 500
    notes_max_length: int = 1000


# --- Input Models ---


@dataclass(frozen=True)
class SubmitPaymentInput:
    """
    A member's claim of an out-of-band payment.

    tier_requested arrives as a raw string and is parsed here.
    transaction_id is an unverified reference for the reviewer.
    """

    actor: UserAccount | None
    user_id: UUID
    tier_requested: str
    transaction_id: str
    screenshot_url: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class ApprovePaymentInput:
    actor: UserAccount | None
    payment_id: UUID


@dataclass(frozen=True)
class RejectPaymentInput:
    actor: UserAccount | None
    payment_id: UUID
    reason: str


@dataclass(frozen=True)
class ListUserPaymentsInput:
    actor: UserAccount | None
    user_id: UUID


@dataclass(frozen=True)
class ListAdminPaymentsInput:
    actor: UserAccount | None
    status: StatusFilter = "pending"
    search: str = ""
    offset: int = 0
    limit: int = 50


@dataclass(frozen=True)
class ReconcileTiersInput:
    actor: UserAccount | None
    repair: bool = False


# --- Output Models ---


@dataclass(frozen=True)
class PaymentOutput:
    payment: PaymentRequest | None = None
    success: bool = False
    error: DomainError | None = None


@dataclass(frozen=True)
class PaymentListOutput:
    payments: tuple[PaymentRequest, ...] = ()
    total: int = 0
    success: bool = True
    error: DomainError | None = None


@dataclass(frozen=True)
class AdminPaymentListOutput:
    payments: tuple[PaymentView, ...] = ()
    total: int = 0
    success: bool = True
    error: DomainError | None = None


@dataclass(frozen=True)
class TierDrift:
    """A user whose tier is below their latest unapplied approval."""

    user_id: UUID
    payment_id: UUID
    current_tier: Tier
    expected_tier: Tier


@dataclass(frozen=True)
class ReconcileTiersOutput:
    drifts: tuple[TierDrift, ...] = field(default_factory=tuple)
    repaired: int = 0
    success: bool = False
    error: DomainError | None = None
