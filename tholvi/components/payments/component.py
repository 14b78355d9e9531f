"""
Payments component.

Manual payment review: a member submits a transaction reference, an admin
approves or rejects it once. Approval raises the owner's tier.

The status change and the tier grant are two store calls. The status
change is conditional on the row still being pending, so concurrent
reviewers cannot both win. If the tier grant fails after the status
change, the payment stays approved and run_reconcile_tiers re-applies
the tier from the latest approval.

Telegram access is a separate admin lever and is never changed here.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID, uuid4

from tholvi.components.tiers import parse_tier, tier_rank
from tholvi.domain.entities import PaymentRequest, PaymentView, UserAccount
from tholvi.domain.errors import (
    DependencyFailure,
    DomainError,
    dependency_error,
    forbidden,
    not_found,
    precondition_failed,
    unauthorized,
    validation_error,
)
from tholvi.rules.models import Rules

from .models import (
    AdminPaymentListOutput,
    ApprovePaymentInput,
    ListAdminPaymentsInput,
    ListUserPaymentsInput,
    PaymentConfig,
    PaymentListOutput,
    PaymentOutput,
    ReconcileTiersInput,
    ReconcileTiersOutput,
    RejectPaymentInput,
    SubmitPaymentInput,
    TierDrift,
)
from .ports import NotifierPort, PaymentStorePort, TimePort, UserDirectoryPort

logger = logging.getLogger(__name__)


def load_config_from_rules(rules: Rules) -> PaymentConfig:
    p = rules.payments
    return PaymentConfig(
        allow_duplicate_pending=p.allow_duplicate_pending,
        transaction_id_max_length=p.transaction_id_max_length,
        rejection_reason_max_length=p.rejection_reason_max_length,
        notes_max_length=p.notes_max_length,
    )


def _already_reviewed(payment_id: UUID) -> DomainError:
    return precondition_failed("already_reviewed", f"Payment {payment_id} was already reviewed")


def _require_admin(actor: UserAccount | None) -> DomainError | None:
    if actor is None:
        return unauthorized()
    if actor.banned or not actor.is_admin:
        return forbidden("Admin access required")
    return None


def _notify(notifier: NotifierPort | None, payment: PaymentRequest, approved: bool) -> None:
    if notifier is None:
        return
    if approved:
        title = "Payment approved"
        message = f"Your {payment.tier_requested} access is now active."
    else:
        title = "Payment rejected"
        message = f"Your payment was rejected: {payment.rejection_reason}"
    try:
        notifier.notify(payment.user_id, title, message, "payment")
    except DependencyFailure as e:
        logger.error("Notification for payment %s not recorded: %s", payment.id, e)


# --- Entry Points ---


def run_submit(
    inp: SubmitPaymentInput,
    *,
    payments: PaymentStorePort,
    time: TimePort,
    config: PaymentConfig | None = None,
) -> PaymentOutput:
    """Create a pending payment request for the caller."""
    config = config or PaymentConfig()

    if inp.actor is None:
        return PaymentOutput(error=unauthorized())
    if inp.actor.id != inp.user_id:
        return PaymentOutput(error=forbidden("Cannot submit payments for another user"))
    if inp.actor.banned:
        return PaymentOutput(error=forbidden("Account is banned"))

    try:
        tier = parse_tier(inp.tier_requested)
    except ValueError:
        return PaymentOutput(
            error=validation_error("tier_invalid", "Unknown tier", "tier_requested")
        )
    if tier == "free":
        return PaymentOutput(
            error=validation_error(
                "tier_invalid", "Cannot request an upgrade to the free tier", "tier_requested"
            )
        )

    transaction_id = inp.transaction_id.strip()
    if not transaction_id:
        return PaymentOutput(
            error=validation_error(
                "transaction_id_required", "Transaction ID is required", "transaction_id"
            )
        )
    if len(transaction_id) > config.transaction_id_max_length:
        return PaymentOutput(
            error=validation_error(
                "transaction_id_too_long",
                f"Transaction ID must be {config.transaction_id_max_length} characters or less",
                "transaction_id",
            )
        )

    notes = (inp.notes or "").strip() or None
    if notes and len(notes) > config.notes_max_length:
        return PaymentOutput(
            error=validation_error(
                "notes_too_long",
                f"Notes must be {config.notes_max_length} characters or less",
                "notes",
            )
        )

    try:
        if not config.allow_duplicate_pending:
            _, pending = payments.list_payments(status="pending", user_id=inp.user_id, limit=1)
            if pending:
                return PaymentOutput(
                    error=precondition_failed(
                        "duplicate_pending", "You already have a payment awaiting review"
                    )
                )

        payment = PaymentRequest(
            id=uuid4(),
            user_id=inp.user_id,
            tier_requested=tier,
            transaction_id=transaction_id,
            screenshot_url=inp.screenshot_url or None,
            notes=notes,
            status="pending",
            created_at=time.now_utc(),
        )
        payments.create(payment)
    except DependencyFailure as e:
        logger.error("Payment submission failed for user %s: %s", inp.user_id, e)
        return PaymentOutput(error=dependency_error(e))

    logger.info(
        "Payment %s submitted by user %s for %s",
        payment.id,
        payment.user_id,
        payment.tier_requested,
    )
    return PaymentOutput(payment=payment, success=True)


def run_approve(
    inp: ApprovePaymentInput,
    *,
    payments: PaymentStorePort,
    users: UserDirectoryPort,
    time: TimePort,
    notifier: NotifierPort | None = None,
) -> PaymentOutput:
    """Approve a pending payment and grant the requested tier."""
    denied = _require_admin(inp.actor)
    if denied:
        return PaymentOutput(error=denied)
    assert inp.actor is not None

    try:
        payment = payments.get_by_id(inp.payment_id)
        if payment is None:
            return PaymentOutput(error=not_found("Payment"))
        if payment.status != "pending":
            logger.warning("Approve refused: payment %s is %s", payment.id, payment.status)
            return PaymentOutput(payment=payment, error=_already_reviewed(payment.id))
        if users.get_by_id(payment.user_id) is None:
            return PaymentOutput(error=not_found("User"))

        now = time.now_utc()
        fields: dict[str, Any] = {"reviewed_at": now, "reviewed_by": inp.actor.id}
        if not payments.update_status(payment.id, "pending", "approved", fields):
            logger.warning("Approve lost race: payment %s reviewed concurrently", payment.id)
            return PaymentOutput(error=_already_reviewed(payment.id))
    except DependencyFailure as e:
        logger.error("Approving payment %s failed: %s", inp.payment_id, e)
        return PaymentOutput(error=dependency_error(e))

    approved = payment.model_copy(update={"status": "approved", **fields})
    logger.info("Payment %s approved by %s", approved.id, inp.actor.id)

    try:
        granted = users.set_tier(approved.user_id, approved.tier_requested, now)
    except DependencyFailure as e:
        logger.error(
            "Payment %s approved but tier grant failed for user %s: %s",
            approved.id,
            approved.user_id,
            e,
        )
        return PaymentOutput(
            payment=approved, error=dependency_error(e, "tier_grant_pending_reconcile")
        )

    if not granted:
        logger.error("Payment %s approved but user %s disappeared", approved.id, approved.user_id)
        return PaymentOutput(payment=approved, error=not_found("User"))

    logger.info("User %s tier set to %s", approved.user_id, approved.tier_requested)
    _notify(notifier, approved, approved=True)
    return PaymentOutput(payment=approved, success=True)


def run_reject(
    inp: RejectPaymentInput,
    *,
    payments: PaymentStorePort,
    time: TimePort,
    notifier: NotifierPort | None = None,
    config: PaymentConfig | None = None,
) -> PaymentOutput:
    """Reject a pending payment with a reason shown to its owner. No tier change."""
    config = config or PaymentConfig()

    denied = _require_admin(inp.actor)
    if denied:
        return PaymentOutput(error=denied)
    assert inp.actor is not None

    reason = inp.reason.strip()
    if not reason:
        return PaymentOutput(
            error=validation_error("reason_required", "A rejection reason is required", "reason")
        )
    if len(reason) > config.rejection_reason_max_length:
        return PaymentOutput(
            error=validation_error(
                "reason_too_long",
                f"Reason must be {config.rejection_reason_max_length} characters or less",
                "reason",
            )
        )

    try:
        payment = payments.get_by_id(inp.payment_id)
        if payment is None:
            return PaymentOutput(error=not_found("Payment"))
        if payment.status != "pending":
            logger.warning("Reject refused: payment %s is %s", payment.id, payment.status)
            return PaymentOutput(payment=payment, error=_already_reviewed(payment.id))

        fields: dict[str, Any] = {
            "reviewed_at": time.now_utc(),
            "reviewed_by": inp.actor.id,
            "rejection_reason": reason,
        }
        if not payments.update_status(payment.id, "pending", "rejected", fields):
            logger.warning("Reject lost race: payment %s reviewed concurrently", payment.id)
            return PaymentOutput(error=_already_reviewed(payment.id))
    except DependencyFailure as e:
        logger.error("Rejecting payment %s failed: %s", inp.payment_id, e)
        return PaymentOutput(error=dependency_error(e))

    rejected = payment.model_copy(update={"status": "rejected", **fields})
    logger.info("Payment %s rejected by %s", rejected.id, inp.actor.id)
    _notify(notifier, rejected, approved=False)
    return PaymentOutput(payment=rejected, success=True)


def run_list_for_user(
    inp: ListUserPaymentsInput, *, payments: PaymentStorePort
) -> PaymentListOutput:
    if inp.actor is None:
        return PaymentListOutput(success=False, error=unauthorized())
    if inp.actor.id != inp.user_id and not inp.actor.is_admin:
        return PaymentListOutput(success=False, error=forbidden())

    try:
        records, total = payments.list_payments(user_id=inp.user_id)
    except DependencyFailure as e:
        logger.error("Listing payments for user %s failed: %s", inp.user_id, e)
        return PaymentListOutput(success=False, error=dependency_error(e))

    return PaymentListOutput(payments=tuple(records), total=total)


def _matches_search(view: PaymentView, search: str) -> bool:
    return not search or search.lower() in view.transaction_id.lower()


def run_list_for_admin(
    inp: ListAdminPaymentsInput,
    *,
    payments: PaymentStorePort,
    users: UserDirectoryPort,
) -> AdminPaymentListOutput:
    """
    Review queue with the owner's name and email joined at read time.

    search matches the transaction id or the owner's name, case-insensitive.
    """
    denied = _require_admin(inp.actor)
    if denied:
        return AdminPaymentListOutput(success=False, error=denied)

    status = None if inp.status == "all" else inp.status
    try:
        records, _ = payments.list_payments(status=status)
        owners: dict[UUID, UserAccount | None] = {}
        views: list[PaymentView] = []
        for record in records:
            if record.user_id not in owners:
                owners[record.user_id] = users.get_by_id(record.user_id)
            owner = owners[record.user_id]
            view = PaymentView(**record.model_dump())
            if owner is not None:
                view = view.model_copy(
                    update={"user_name": owner.display_name, "user_email": owner.email}
                )
            views.append(view)
    except DependencyFailure as e:
        logger.error("Admin payment listing failed: %s", e)
        return AdminPaymentListOutput(success=False, error=dependency_error(e))

    search = inp.search.strip()
    matched = [v for v in views if _matches_search(v, search)]
    page = matched[inp.offset : inp.offset + inp.limit]
    return AdminPaymentListOutput(payments=tuple(page), total=len(matched))


def run_reconcile_tiers(
    inp: ReconcileTiersInput,
    *,
    payments: PaymentStorePort,
    users: UserDirectoryPort,
    time: TimePort,
) -> ReconcileTiersOutput:
    """
    Find users left below their latest approved tier.

    Only approvals reviewed after the user's last tier change count, so a
    later admin tier edit is respected.
    """
    denied = _require_admin(inp.actor)
    if denied:
        return ReconcileTiersOutput(error=denied)

    drifts: list[TierDrift] = []
    repaired = 0
    try:
        latest: dict[UUID, PaymentRequest] = {}
        for payment in payments.list_approved():
            if payment.reviewed_at is None:
                continue
            current = latest.get(payment.user_id)
            if current is None or (
                current.reviewed_at is not None and payment.reviewed_at > current.reviewed_at
            ):
                latest[payment.user_id] = payment

        for user_id, payment in latest.items():
            user = users.get_by_id(user_id)
            if user is None:
                continue
            assert payment.reviewed_at is not None
            if user.tier_changed_at is not None and user.tier_changed_at >= payment.reviewed_at:
                continue
            if tier_rank(user.tier) >= tier_rank(payment.tier_requested):
                continue

            drifts.append(
                TierDrift(
                    user_id=user_id,
                    payment_id=payment.id,
                    current_tier=user.tier,
                    expected_tier=payment.tier_requested,
                )
            )
            logger.warning(
                "Tier drift for user %s: has %s, approved payment %s grants %s",
                user_id,
                user.tier,
                payment.id,
                payment.tier_requested,
            )
            if inp.repair:
                if users.set_tier(user_id, payment.tier_requested, time.now_utc()):
                    repaired += 1
                else:
                    logger.warning("Tier repair for user %s found no account", user_id)
    except DependencyFailure as e:
        logger.error("Tier reconciliation failed: %s", e)
        return ReconcileTiersOutput(
            drifts=tuple(drifts), repaired=repaired, error=dependency_error(e)
        )

    return ReconcileTiersOutput(drifts=tuple(drifts), repaired=repaired, success=True)


def run(
    inp: SubmitPaymentInput
    | ApprovePaymentInput
    | RejectPaymentInput
    | ListUserPaymentsInput
    | ListAdminPaymentsInput
    | ReconcileTiersInput,
    *,
    payments: PaymentStorePort,
    users: UserDirectoryPort | None = None,
    time: TimePort | None = None,
    notifier: NotifierPort | None = None,
    config: PaymentConfig | None = None,
) -> PaymentOutput | PaymentListOutput | AdminPaymentListOutput | ReconcileTiersOutput:
    if isinstance(inp, SubmitPaymentInput):
        assert time
        return run_submit(inp, payments=payments, time=time, config=config)

    elif isinstance(inp, ApprovePaymentInput):
        assert users and time
        return run_approve(inp, payments=payments, users=users, time=time, notifier=notifier)

    elif isinstance(inp, RejectPaymentInput):
        assert time
        return run_reject(inp, payments=payments, time=time, notifier=notifier, config=config)

    elif isinstance(inp, ListUserPaymentsInput):
        return run_list_for_user(inp, payments=payments)

    elif isinstance(inp, ListAdminPaymentsInput):
        assert users
        return run_list_for_admin(inp, payments=payments, users=users)

    elif isinstance(inp, ReconcileTiersInput):
        assert users and time
        return run_reconcile_tiers(inp, payments=payments, users=users, time=time)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
