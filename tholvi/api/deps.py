import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from tholvi.adapters.clock import SystemClock
from tholvi.adapters.fs.filestore import FileSystemStore
from tholvi.adapters.sqlite.repos import (
    SQLiteContentRepo,
    SQLiteNotificationRepo,
    SQLitePaymentRepo,
    SQLiteSiteSettingsRepo,
    SQLiteUserRepo,
)
from tholvi.api.auth_utils import decode_access_token
from tholvi.components.notifications import StoreNotifier
from tholvi.components.payments import PaymentConfig, load_config_from_rules
from tholvi.domain.entities import UserAccount
from tholvi.domain.errors import DependencyFailure
from tholvi.rules.loader import load_rules
from tholvi.rules.models import Rules

logger = logging.getLogger(__name__)


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("THOLVI_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "tholvi.db")
        self.files_dir = self.data_dir / "files"
        self.public_base_url = os.environ.get("THOLVI_PUBLIC_BASE_URL", "/files")
        self.rules_path = self.base_dir / "rules.yaml"
        self.migrations_dir = self.base_dir / "migrations"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def _load_rules_cached(path: Path) -> Rules:
    return load_rules(path)


def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return _load_rules_cached(settings.rules_path)


def get_payment_config(rules: Rules = Depends(get_rules)) -> PaymentConfig:
    return load_config_from_rules(rules)


# --- Repos ---
def get_user_repo(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path, timeout=rules.store.timeout_seconds)


def get_payment_repo(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLitePaymentRepo:
    return SQLitePaymentRepo(settings.db_path, timeout=rules.store.timeout_seconds)


def get_content_repo(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLiteContentRepo:
    return SQLiteContentRepo(settings.db_path, timeout=rules.store.timeout_seconds)


def get_notification_repo(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLiteNotificationRepo:
    return SQLiteNotificationRepo(settings.db_path, timeout=rules.store.timeout_seconds)


def get_site_settings_repo(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> SQLiteSiteSettingsRepo:
    return SQLiteSiteSettingsRepo(settings.db_path, timeout=rules.store.timeout_seconds)


def get_file_store(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> FileSystemStore:
    return FileSystemStore(
        base_path=str(settings.files_dir),
        public_base_url=settings.public_base_url,
        buckets=rules.uploads.buckets,
    )


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


def get_notifier(
    repo: SQLiteNotificationRepo = Depends(get_notification_repo),
    clock: SystemClock = Depends(get_clock),
) -> StoreNotifier:
    return StoreNotifier(repo, clock)


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _bearer_token(request: Request, token: str | None) -> str | None:
    # Header first, then the HttpOnly cookie set at login
    if token:
        return token
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        return cookie_token.split(" ", 1)[1]
    return None


def _resolve_user(token: str, user_repo: SQLiteUserRepo) -> UserAccount:
    payload = decode_access_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if user_id is None or not isinstance(user_id, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    try:
        user = user_repo.get_by_id(UUID(user_id))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token payload") from None
    except DependencyFailure as e:
        logger.error("User lookup failed during auth: %s", e)
        raise HTTPException(status_code=503, detail="Service temporarily unavailable") from e

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if user.banned:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is banned")

    return user


def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> UserAccount:
    bearer = _bearer_token(request, token)
    if not bearer:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _resolve_user(bearer, user_repo)


def get_optional_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> UserAccount | None:
    """Current user, or None for anonymous visitors. A bad token is still a 401."""
    bearer = _bearer_token(request, token)
    if not bearer:
        return None
    return _resolve_user(bearer, user_repo)


def require_admin(user: UserAccount = Depends(get_current_user)) -> UserAccount:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user
