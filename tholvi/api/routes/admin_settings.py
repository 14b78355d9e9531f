from fastapi import APIRouter, Depends

from tholvi.adapters.clock import SystemClock
from tholvi.adapters.sqlite.repos import SQLiteSiteSettingsRepo
from tholvi.api.deps import get_clock, get_site_settings_repo, require_admin
from tholvi.api.errors import http_error, http_errors
from tholvi.api.schemas import SettingsUpdateRequest
from tholvi.components.settings import (
    GetSettingsInput,
    UpdateSettingsInput,
    run_get,
    run_update,
)
from tholvi.domain.entities import SiteSettings, UserAccount

router = APIRouter()


@router.get("", response_model=SiteSettings)
def get_settings_admin(
    admin: UserAccount = Depends(require_admin),
    repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
) -> SiteSettings:
    result = run_get(GetSettingsInput(), repo=repo)
    if not result.success:
        # Admins edit against stored values, never against fallbacks
        raise http_error(result.error)
    return result.settings


@router.put("", response_model=SiteSettings)
def update_settings(
    req: SettingsUpdateRequest,
    admin: UserAccount = Depends(require_admin),
    repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
    clock: SystemClock = Depends(get_clock),
) -> SiteSettings:
    """Partial update; only fields present in the body change."""
    result = run_update(
        UpdateSettingsInput(actor=admin, updates=req.model_dump(exclude_unset=True)),
        repo=repo,
        time=clock,
    )
    if not result.success or result.settings is None:
        raise http_errors(result.errors)
    return result.settings
