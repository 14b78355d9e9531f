from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from tholvi.adapters.sqlite.repos import SQLiteContentRepo
from tholvi.api.deps import get_content_repo, get_optional_user
from tholvi.api.errors import http_error
from tholvi.api.schemas import ContentKindParam
from tholvi.components.catalog import (
    AccessSummaryInput,
    GetItemInput,
    ItemView,
    ListItemsInput,
    run_access_summary,
    run_get,
    run_list,
)
from tholvi.components.catalog.models import TierFilter
from tholvi.domain.entities import UserAccount

router = APIRouter()


def view_body(view: ItemView) -> dict[str, Any]:
    return {"item": view.item, "locked": view.locked, "accessible": view.accessible}


@router.get("/access-summary")
def access_summary(
    current_user: UserAccount | None = Depends(get_optional_user),
    repo: SQLiteContentRepo = Depends(get_content_repo),
) -> dict[str, Any]:
    """Share of each catalog the caller's tier unlocks."""
    tier = current_user.tier if current_user else "free"
    result = run_access_summary(AccessSummaryInput(user_tier=tier), store=repo)
    if not result.success:
        raise http_error(result.error)
    return {
        "tier": tier,
        "overall_percentage": result.overall_percentage,
        "kinds": [
            {
                "kind": k.kind,
                "unlock_percentage": k.unlock_percentage,
                "total": k.counts.total,
                "free": k.counts.free,
                "tier1": k.counts.tier1,
                "tier2": k.counts.tier2,
            }
            for k in result.kinds
        ],
    }


@router.get("/{kind}")
def list_content(
    kind: ContentKindParam,
    q: str = Query("", max_length=200),
    tier: TierFilter = "all",
    current_user: UserAccount | None = Depends(get_optional_user),
    repo: SQLiteContentRepo = Depends(get_content_repo),
) -> dict[str, Any]:
    """Published items of one kind. Locked items are listed; access is decided on open."""
    result = run_list(
        ListItemsInput(kind=kind, audience="member", actor=current_user, query=q, tier_filter=tier),
        store=repo,
    )
    if not result.success:
        raise http_error(result.error)
    return {"items": list(result.items), "total": result.total, "degraded": result.degraded}


@router.get("/{kind}/{item_id}")
def get_content(
    kind: ContentKindParam,
    item_id: UUID,
    current_user: UserAccount | None = Depends(get_optional_user),
    repo: SQLiteContentRepo = Depends(get_content_repo),
) -> dict[str, Any]:
    result = run_get(
        GetItemInput(kind=kind, item_id=item_id, audience="member", actor=current_user),
        store=repo,
    )
    if not result.success or result.view is None:
        raise http_error(result.error)
    return view_body(result.view)
