from fastapi import APIRouter, Depends

from tholvi.adapters.clock import SystemClock
from tholvi.adapters.sqlite.repos import SQLiteUserRepo
from tholvi.api.deps import get_clock, get_current_user, get_user_repo
from tholvi.api.errors import http_error
from tholvi.api.schemas import ProfileUpdateRequest, UserResponse
from tholvi.components.members import UpdateProfileInput, run_update_profile
from tholvi.domain.entities import UserAccount

router = APIRouter()


@router.put("/me", response_model=UserResponse)
def update_me(
    req: ProfileUpdateRequest,
    current_user: UserAccount = Depends(get_current_user),
    users: SQLiteUserRepo = Depends(get_user_repo),
    clock: SystemClock = Depends(get_clock),
) -> UserResponse:
    """Edit own display name and Telegram username. Tier and role are not editable here."""
    result = run_update_profile(
        UpdateProfileInput(
            actor=current_user,
            display_name=req.display_name,
            telegram_username=req.telegram_username,
        ),
        users=users,
        time=clock,
    )
    if not result.success or result.user is None:
        raise http_error(result.error)
    return UserResponse.from_user(result.user)
