from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from tholvi.adapters.clock import SystemClock
from tholvi.adapters.sqlite.repos import SQLiteContentRepo
from tholvi.api.deps import get_clock, get_content_repo, get_rules, require_admin
from tholvi.api.errors import http_error, http_errors
from tholvi.api.routes.content import view_body
from tholvi.api.schemas import (
    ContentCreateRequest,
    ContentFields,
    ContentKindParam,
    ReconcileRequest,
    SectionCreateRequest,
    SectionParentParam,
    SectionUpdateRequest,
)
from tholvi.components.catalog import (
    DeleteItemInput,
    GetItemInput,
    ListItemsInput,
    SaveItemInput,
    run_delete_item,
    run_get,
    run_list,
    run_save_item,
)
from tholvi.components.catalog.models import TierFilter
from tholvi.components.sections import (
    AddSectionInput,
    DeleteSectionInput,
    ListSectionsInput,
    ReconcileCountsInput,
    UpdateSectionInput,
    run_add_section,
    run_delete_section,
    run_list_ordered,
    run_reconcile_counts,
    run_update_section,
)
from tholvi.domain.entities import Section, UserAccount
from tholvi.rules.models import Rules

router = APIRouter()


# --- Content items ---


@router.get("/content/{kind}")
def admin_list_content(
    kind: ContentKindParam,
    q: str = Query("", max_length=200),
    tier: TierFilter = "all",
    admin: UserAccount = Depends(require_admin),
    repo: SQLiteContentRepo = Depends(get_content_repo),
) -> dict[str, Any]:
    """All items of one kind, drafts included."""
    result = run_list(
        ListItemsInput(kind=kind, audience="admin", actor=admin, query=q, tier_filter=tier),
        store=repo,
    )
    if not result.success:
        raise http_error(result.error)
    return {"items": list(result.items), "total": result.total, "degraded": result.degraded}


@router.post("/content", status_code=status.HTTP_201_CREATED)
def admin_create_content(
    req: ContentCreateRequest,
    admin: UserAccount = Depends(require_admin),
    repo: SQLiteContentRepo = Depends(get_content_repo),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> Any:
    fields = req.model_dump(exclude_unset=True, exclude={"kind"})
    result = run_save_item(
        SaveItemInput(actor=admin, kind=req.kind, fields=fields),
        store=repo,
        time=clock,
        title_max_length=rules.content.title_max_length,
    )
    if not result.success:
        raise http_errors(result.errors)
    return result.item


@router.get("/content/{kind}/{item_id}")
def admin_get_content(
    kind: ContentKindParam,
    item_id: UUID,
    admin: UserAccount = Depends(require_admin),
    repo: SQLiteContentRepo = Depends(get_content_repo),
) -> dict[str, Any]:
    result = run_get(
        GetItemInput(kind=kind, item_id=item_id, audience="admin", actor=admin), store=repo
    )
    if not result.success or result.view is None:
        raise http_error(result.error)
    return view_body(result.view)


@router.put("/content/{kind}/{item_id}")
def admin_update_content(
    kind: ContentKindParam,
    item_id: UUID,
    req: ContentFields,
    admin: UserAccount = Depends(require_admin),
    repo: SQLiteContentRepo = Depends(get_content_repo),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> Any:
    result = run_save_item(
        SaveItemInput(
            actor=admin, kind=kind, fields=req.model_dump(exclude_unset=True), item_id=item_id
        ),
        store=repo,
        time=clock,
        title_max_length=rules.content.title_max_length,
    )
    if not result.success:
        raise http_errors(result.errors)
    return result.item


@router.delete("/content/{kind}/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def admin_delete_content(
    kind: ContentKindParam,
    item_id: UUID,
    admin: UserAccount = Depends(require_admin),
    repo: SQLiteContentRepo = Depends(get_content_repo),
) -> None:
    result = run_delete_item(DeleteItemInput(actor=admin, kind=kind, item_id=item_id), store=repo)
    if not result.success:
        raise http_error(result.error)


# --- Sections ---


@router.get("/content/{kind}/{item_id}/sections")
def admin_list_sections(
    kind: SectionParentParam,
    item_id: UUID,
    admin: UserAccount = Depends(require_admin),
    repo: SQLiteContentRepo = Depends(get_content_repo),
) -> dict[str, Any]:
    result = run_list_ordered(ListSectionsInput(parent_kind=kind, parent_id=item_id), store=repo)
    if not result.success:
        raise http_error(result.error)
    return {"sections": list(result.sections), "total": result.total}


@router.post(
    "/content/{kind}/{item_id}/sections",
    response_model=Section,
    status_code=status.HTTP_201_CREATED,
)
def admin_add_section(
    kind: SectionParentParam,
    item_id: UUID,
    req: SectionCreateRequest,
    admin: UserAccount = Depends(require_admin),
    repo: SQLiteContentRepo = Depends(get_content_repo),
    clock: SystemClock = Depends(get_clock),
) -> Section:
    result = run_add_section(
        AddSectionInput(
            actor=admin,
            parent_kind=kind,
            parent_id=item_id,
            title=req.title,
            content=req.content,
            video_url=req.video_url,
            order_index=req.order_index,
        ),
        store=repo,
        time=clock,
    )
    if not result.success or result.section is None:
        raise http_error(result.error)
    return result.section


@router.post("/sections/reconcile")
def admin_reconcile_sections(
    req: ReconcileRequest,
    admin: UserAccount = Depends(require_admin),
    repo: SQLiteContentRepo = Depends(get_content_repo),
) -> dict[str, Any]:
    """Report (and optionally repair) section counts that disagree with live sections."""
    result = run_reconcile_counts(ReconcileCountsInput(actor=admin, repair=req.repair), store=repo)
    if not result.success:
        raise http_error(result.error)
    return {
        "drifts": [
            {
                "parent_kind": d.parent_kind,
                "parent_id": str(d.parent_id),
                "stored": d.stored,
                "live": d.live,
            }
            for d in result.drifts
        ],
        "repaired": result.repaired,
    }


@router.put("/sections/{section_id}", response_model=Section)
def admin_update_section(
    section_id: UUID,
    req: SectionUpdateRequest,
    admin: UserAccount = Depends(require_admin),
    repo: SQLiteContentRepo = Depends(get_content_repo),
) -> Section:
    result = run_update_section(
        UpdateSectionInput(actor=admin, section_id=section_id, **req.model_dump()),
        store=repo,
    )
    if not result.success or result.section is None:
        raise http_error(result.error)
    return result.section


@router.delete("/sections/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
def admin_delete_section(
    section_id: UUID,
    admin: UserAccount = Depends(require_admin),
    repo: SQLiteContentRepo = Depends(get_content_repo),
) -> None:
    result = run_delete_section(DeleteSectionInput(actor=admin, section_id=section_id), store=repo)
    if not result.success:
        raise http_error(result.error)
