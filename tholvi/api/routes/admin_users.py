from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from tholvi.adapters.clock import SystemClock
from tholvi.adapters.sqlite.repos import SQLitePaymentRepo, SQLiteUserRepo
from tholvi.api.deps import get_clock, get_payment_repo, get_user_repo, require_admin
from tholvi.api.errors import http_error
from tholvi.api.schemas import (
    BannedUpdateRequest,
    TelegramAccessRequest,
    TierUpdateRequest,
    UserResponse,
)
from tholvi.components.members import (
    ListUsersInput,
    SetBannedInput,
    SetTelegramAccessInput,
    SetTierInput,
    StatsInput,
    UserOutput,
    run_list_users,
    run_set_banned,
    run_set_telegram_access,
    run_set_tier,
    run_stats,
)
from tholvi.components.members.models import TierFilter
from tholvi.domain.entities import UserAccount

router = APIRouter()


def _user_or_raise(result: UserOutput) -> UserResponse:
    if not result.success or result.user is None:
        raise http_error(result.error)
    return UserResponse.from_user(result.user)


@router.get("/users")
def admin_list_users(
    search: str = Query("", max_length=200),
    tier: TierFilter = "all",
    admin: UserAccount = Depends(require_admin),
    users: SQLiteUserRepo = Depends(get_user_repo),
) -> dict[str, Any]:
    result = run_list_users(
        ListUsersInput(actor=admin, search=search, tier_filter=tier), users=users
    )
    if not result.success:
        raise http_error(result.error)
    return {
        "users": [UserResponse.from_user(u) for u in result.users],
        "total": result.total,
    }


@router.put("/users/{user_id}/tier", response_model=UserResponse)
def admin_set_tier(
    user_id: UUID,
    req: TierUpdateRequest,
    admin: UserAccount = Depends(require_admin),
    users: SQLiteUserRepo = Depends(get_user_repo),
    clock: SystemClock = Depends(get_clock),
) -> UserResponse:
    result = run_set_tier(
        SetTierInput(actor=admin, user_id=user_id, tier=req.tier), users=users, time=clock
    )
    return _user_or_raise(result)


@router.put("/users/{user_id}/banned", response_model=UserResponse)
def admin_set_banned(
    user_id: UUID,
    req: BannedUpdateRequest,
    admin: UserAccount = Depends(require_admin),
    users: SQLiteUserRepo = Depends(get_user_repo),
    clock: SystemClock = Depends(get_clock),
) -> UserResponse:
    result = run_set_banned(
        SetBannedInput(actor=admin, user_id=user_id, banned=req.banned), users=users, time=clock
    )
    return _user_or_raise(result)


@router.put("/users/{user_id}/telegram", response_model=UserResponse)
def admin_set_telegram_access(
    user_id: UUID,
    req: TelegramAccessRequest,
    admin: UserAccount = Depends(require_admin),
    users: SQLiteUserRepo = Depends(get_user_repo),
    clock: SystemClock = Depends(get_clock),
) -> UserResponse:
    result = run_set_telegram_access(
        SetTelegramAccessInput(actor=admin, user_id=user_id, granted=req.granted),
        users=users,
        time=clock,
    )
    return _user_or_raise(result)


@router.get("/stats")
def admin_stats(
    admin: UserAccount = Depends(require_admin),
    users: SQLiteUserRepo = Depends(get_user_repo),
    payments: SQLitePaymentRepo = Depends(get_payment_repo),
) -> dict[str, int]:
    result = run_stats(StatsInput(actor=admin), users=users, payments=payments)
    if not result.success or result.stats is None:
        raise http_error(result.error)
    s = result.stats
    return {
        "total_users": s.total_users,
        "free_users": s.free_users,
        "tier1_users": s.tier1_users,
        "tier2_users": s.tier2_users,
        "pending_payments": s.pending_payments,
        "conversion_rate": s.conversion_rate,
    }
