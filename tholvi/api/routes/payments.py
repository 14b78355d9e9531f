from typing import Any

from fastapi import APIRouter, Depends, status

from tholvi.adapters.clock import SystemClock
from tholvi.adapters.sqlite.repos import SQLitePaymentRepo
from tholvi.api.deps import get_clock, get_current_user, get_payment_config, get_payment_repo
from tholvi.api.errors import http_error
from tholvi.api.schemas import PaymentSubmitRequest
from tholvi.components.payments import (
    ListUserPaymentsInput,
    PaymentConfig,
    SubmitPaymentInput,
    run_list_for_user,
    run_submit,
)
from tholvi.domain.entities import PaymentRequest, UserAccount

router = APIRouter()


@router.post("", response_model=PaymentRequest, status_code=status.HTTP_201_CREATED)
def submit_payment(
    req: PaymentSubmitRequest,
    current_user: UserAccount = Depends(get_current_user),
    repo: SQLitePaymentRepo = Depends(get_payment_repo),
    clock: SystemClock = Depends(get_clock),
    config: PaymentConfig = Depends(get_payment_config),
) -> PaymentRequest:
    """Submit a transaction reference for manual review."""
    result = run_submit(
        SubmitPaymentInput(
            actor=current_user,
            user_id=current_user.id,
            tier_requested=req.tier_requested,
            transaction_id=req.transaction_id,
            screenshot_url=req.screenshot_url,
            notes=req.notes,
        ),
        payments=repo,
        time=clock,
        config=config,
    )
    if not result.success or result.payment is None:
        raise http_error(result.error)
    return result.payment


@router.get("/mine")
def my_payments(
    current_user: UserAccount = Depends(get_current_user),
    repo: SQLitePaymentRepo = Depends(get_payment_repo),
) -> dict[str, Any]:
    result = run_list_for_user(
        ListUserPaymentsInput(actor=current_user, user_id=current_user.id), payments=repo
    )
    if not result.success:
        raise http_error(result.error)
    return {"payments": list(result.payments), "total": result.total}
