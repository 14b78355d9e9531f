import logging
from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm

from tholvi.adapters.clock import SystemClock
from tholvi.adapters.sqlite.repos import SQLiteUserRepo
from tholvi.api.auth_utils import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_password_hash,
    verify_password,
)
from tholvi.api.deps import get_clock, get_current_user, get_user_repo
from tholvi.api.schemas import SignupRequest, Token, UserResponse
from tholvi.domain.entities import UserAccount
from tholvi.domain.errors import DependencyFailure

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_token(response: Response, user: UserAccount) -> Token:
    access_token = create_access_token(
        data={"sub": str(user.id)},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )

    # Set HttpOnly Cookie
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
    )
    return Token(access_token=access_token, token_type="bearer")


@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
def signup(
    req: SignupRequest,
    response: Response,
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    clock: SystemClock = Depends(get_clock),
) -> Token:
    """Create a free member account and sign it in."""
    email = req.email.strip().lower()
    try:
        if user_repo.get_by_email(email):
            raise HTTPException(status_code=409, detail="Email already registered")

        now = clock.now_utc()
        user = UserAccount(
            email=email,
            display_name=req.display_name.strip(),
            password_hash=get_password_hash(req.password),
            tier="free",
            role="user",
            banned=False,
            created_at=now,
            updated_at=now,
        )
        user_repo.save(user)
    except DependencyFailure as e:
        logger.error("Signup failed for %s: %s", email, e)
        raise HTTPException(status_code=503, detail="Service temporarily unavailable") from e

    logger.info("New account %s", user.id)
    return _issue_token(response, user)


@router.post("/login", response_model=Token)
def login_for_access_token(
    response: Response,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> Token:
    """Authenticate user and return access token."""
    try:
        user = user_repo.get_by_email(form_data.username)
    except DependencyFailure as e:
        raise HTTPException(status_code=503, detail="Service temporarily unavailable") from e

    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.banned:
        logger.warning("Banned account %s attempted login", user.id)
        raise HTTPException(status_code=403, detail="Account is banned")

    return _issue_token(response, user)


@router.post("/logout")
def logout(response: Response) -> dict[str, str]:
    """Log out user by clearing cookie."""
    response.delete_cookie(key="access_token")
    return {"status": "success"}


@router.get("/me", response_model=UserResponse)
def read_users_me(current_user: UserAccount = Depends(get_current_user)) -> UserResponse:
    return UserResponse.from_user(current_user)
