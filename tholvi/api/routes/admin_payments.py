from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from tholvi.adapters.clock import SystemClock
from tholvi.adapters.sqlite.repos import SQLitePaymentRepo, SQLiteUserRepo
from tholvi.api.deps import (
    get_clock,
    get_notifier,
    get_payment_config,
    get_payment_repo,
    get_user_repo,
    require_admin,
)
from tholvi.api.errors import http_error
from tholvi.api.schemas import PaymentRejectRequest, ReconcileRequest
from tholvi.components.notifications import StoreNotifier
from tholvi.components.payments import (
    ApprovePaymentInput,
    ListAdminPaymentsInput,
    PaymentConfig,
    ReconcileTiersInput,
    RejectPaymentInput,
    StatusFilter,
    run_approve,
    run_list_for_admin,
    run_reconcile_tiers,
    run_reject,
)
from tholvi.domain.entities import PaymentRequest, UserAccount

router = APIRouter()


@router.get("")
def admin_list_payments(
    status: StatusFilter = "pending",
    search: str = Query("", max_length=200),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    admin: UserAccount = Depends(require_admin),
    payments: SQLitePaymentRepo = Depends(get_payment_repo),
    users: SQLiteUserRepo = Depends(get_user_repo),
) -> dict[str, Any]:
    """Review queue with the owner's name and email."""
    result = run_list_for_admin(
        ListAdminPaymentsInput(
            actor=admin, status=status, search=search, offset=offset, limit=limit
        ),
        payments=payments,
        users=users,
    )
    if not result.success:
        raise http_error(result.error)
    return {"payments": list(result.payments), "total": result.total}


@router.post("/reconcile")
def admin_reconcile_tiers(
    req: ReconcileRequest,
    admin: UserAccount = Depends(require_admin),
    payments: SQLitePaymentRepo = Depends(get_payment_repo),
    users: SQLiteUserRepo = Depends(get_user_repo),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    """Report (and optionally re-apply) approved tiers that never reached the user."""
    result = run_reconcile_tiers(
        ReconcileTiersInput(actor=admin, repair=req.repair),
        payments=payments,
        users=users,
        time=clock,
    )
    if not result.success:
        raise http_error(result.error)
    return {
        "drifts": [
            {
                "user_id": str(d.user_id),
                "payment_id": str(d.payment_id),
                "current_tier": d.current_tier,
                "expected_tier": d.expected_tier,
            }
            for d in result.drifts
        ],
        "repaired": result.repaired,
    }


@router.post("/{payment_id}/approve", response_model=PaymentRequest)
def admin_approve_payment(
    payment_id: UUID,
    admin: UserAccount = Depends(require_admin),
    payments: SQLitePaymentRepo = Depends(get_payment_repo),
    users: SQLiteUserRepo = Depends(get_user_repo),
    clock: SystemClock = Depends(get_clock),
    notifier: StoreNotifier = Depends(get_notifier),
) -> PaymentRequest:
    result = run_approve(
        ApprovePaymentInput(actor=admin, payment_id=payment_id),
        payments=payments,
        users=users,
        time=clock,
        notifier=notifier,
    )
    if not result.success or result.payment is None:
        raise http_error(result.error)
    return result.payment


@router.post("/{payment_id}/reject", response_model=PaymentRequest)
def admin_reject_payment(
    payment_id: UUID,
    req: PaymentRejectRequest,
    admin: UserAccount = Depends(require_admin),
    payments: SQLitePaymentRepo = Depends(get_payment_repo),
    clock: SystemClock = Depends(get_clock),
    notifier: StoreNotifier = Depends(get_notifier),
    config: PaymentConfig = Depends(get_payment_config),
) -> PaymentRequest:
    result = run_reject(
        RejectPaymentInput(actor=admin, payment_id=payment_id, reason=req.reason),
        payments=payments,
        time=clock,
        notifier=notifier,
        config=config,
    )
    if not result.success or result.payment is None:
        raise http_error(result.error)
    return result.payment
