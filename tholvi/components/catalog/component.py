"""
Catalog component.

Pure filtering and presentation of courses, tools and blog posts, plus
shell entry points that read from the content store.

Unpublished items never reach a member audience, and locked items never
carry their body.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from tholvi.components.tiers import can_access, unlock_percentage
from tholvi.domain.entities import Blog, ContentKind, Course, Tier, Tool, UserAccount
from tholvi.domain.errors import (
    DependencyFailure,
    DomainError,
    dependency_error,
    forbidden,
    not_found,
    validation_error,
)

from .models import (
    AccessSummaryInput,
    AccessSummaryOutput,
    AnyItem,
    Audience,
    CatalogCounts,
    DeleteItemInput,
    DeleteItemOutput,
    GetItemInput,
    ItemOutput,
    ItemView,
    KindAccess,
    ListItemsInput,
    ListItemsOutput,
    SaveItemInput,
    SaveItemOutput,
)
from .ports import ContentStorePort, TimePort

logger = logging.getLogger(__name__)

KINDS: tuple[ContentKind, ...] = ("course", "tool", "blog")

_ITEM_TYPES: dict[ContentKind, type[Course] | type[Tool] | type[Blog]] = {
    "course": Course,
    "tool": Tool,
    "blog": Blog,
}

# Fields an editor may not set directly
_PROTECTED_FIELDS = {"id", "kind", "created_at", "updated_at", "section_count", "sections"}

DEFAULT_TITLE_MAX = 200


# --- Pure Functions ---


def _matches(item: AnyItem, query: str, tier_filter: str) -> bool:
    if tier_filter != "all" and item.tier_required != tier_filter:
        return False
    if not query:
        return True
    needle = query.lower()
    haystacks = [item.title, item.description]
    if isinstance(item, Blog):
        haystacks.append(item.preview)
    return any(needle in h.lower() for h in haystacks)


def list_published(
    items: Sequence[AnyItem],
    query: str = "",
    tier_filter: str = "all",
) -> list[AnyItem]:
    """
    Published items matching query and tier filter, in input order.

    The query is a case-insensitive substring of title or description.
    """
    query = query.strip()
    return [i for i in items if i.published and _matches(i, query, tier_filter)]


def list_all(
    items: Sequence[AnyItem],
    query: str = "",
    tier_filter: str = "all",
) -> list[AnyItem]:
    """Admin listing: same filters as list_published, drafts included."""
    query = query.strip()
    return [i for i in items if _matches(i, query, tier_filter)]


def list_for_audience(
    items: Sequence[AnyItem],
    audience: Audience,
    query: str = "",
    tier_filter: str = "all",
) -> list[AnyItem]:
    if audience == "admin":
        return list_all(items, query, tier_filter)
    return list_published(items, query, tier_filter)


def is_accessible(user_tier: Tier, item: AnyItem) -> bool:
    return can_access(user_tier, item.tier_required)


def _redact(item: AnyItem) -> AnyItem:
    match item:
        case Blog():
            return item.model_copy(update={"content": ""})
        case Course() | Tool():
            teaser = [
                s.model_copy(update={"content": "", "video_url": None}) for s in item.sections
            ]
            return item.model_copy(update={"sections": teaser})
    raise TypeError(f"Unknown content item: {type(item)}")


def present_item(item: AnyItem, user_tier: Tier, audience: Audience) -> ItemView | None:
    """
    Prepare an item for display.

    Returns None when the audience may not see the item at all
    (unpublished, member audience). Members without the required tier get
    a locked, redacted copy even though the full record was fetched.
    """
    if audience == "admin":
        return ItemView(item=item, locked=False, accessible=True)

    if not item.published:
        return None

    if is_accessible(user_tier, item):
        return ItemView(item=item, locked=False, accessible=True)

    return ItemView(item=_redact(item), locked=True, accessible=False)


def catalog_counts(items: Sequence[AnyItem]) -> CatalogCounts:
    """Counts of published items by required tier."""
    published = [i for i in items if i.published]
    return CatalogCounts(
        total=len(published),
        free=sum(1 for i in published if i.tier_required == "free"),
        tier1=sum(1 for i in published if i.tier_required == "tier1"),
        tier2=sum(1 for i in published if i.tier_required == "tier2"),
    )


def _check_audience(audience: Audience, actor: UserAccount | None) -> DomainError | None:
    if audience == "admin" and (actor is None or not actor.is_admin):
        return forbidden("Admin access required")
    return None


def _actor_tier(actor: UserAccount | None) -> Tier:
    return actor.tier if actor is not None else "free"


# --- Shell Entry Points ---


def run_list(inp: ListItemsInput, *, store: ContentStorePort) -> ListItemsOutput:
    """
    List items of one kind for an audience.

    A store failure degrades to an empty listing and is logged.
    Member listings carry no blog body for items above the caller's tier.
    """
    denied = _check_audience(inp.audience, inp.actor)
    if denied:
        return ListItemsOutput(success=False, error=denied)

    try:
        items = store.list_items(inp.kind, published_only=inp.audience != "admin")
    except DependencyFailure as e:
        logger.error("Content listing failed for kind=%s: %s", inp.kind, e)
        return ListItemsOutput(degraded=True)

    filtered = list_for_audience(items, inp.audience, inp.query, inp.tier_filter)
    if inp.audience == "member":
        # Locked items stay listed as teasers without their bodies
        tier = _actor_tier(inp.actor)
        filtered = [i if is_accessible(tier, i) else _redact(i) for i in filtered]
    return ListItemsOutput(items=tuple(filtered), total=len(filtered))


def run_get(inp: GetItemInput, *, store: ContentStorePort) -> ItemOutput:
    denied = _check_audience(inp.audience, inp.actor)
    if denied:
        return ItemOutput(error=denied)

    try:
        item = store.get_item(inp.kind, inp.item_id, include_sections=True)
    except DependencyFailure as e:
        logger.error("Content read failed for %s %s: %s", inp.kind, inp.item_id, e)
        return ItemOutput(error=dependency_error(e))

    if item is None:
        return ItemOutput(error=not_found("Content"))

    view = present_item(item, _actor_tier(inp.actor), inp.audience)
    if view is None:
        # Drafts are indistinguishable from missing items for members
        return ItemOutput(error=not_found("Content"))

    return ItemOutput(view=view, success=True)


def run_access_summary(
    inp: AccessSummaryInput, *, store: ContentStorePort
) -> AccessSummaryOutput:
    """Per-kind unlock percentages for a tier."""
    results: list[KindAccess] = []
    totals = CatalogCounts()
    try:
        for kind in KINDS:
            counts = catalog_counts(store.list_items(kind, published_only=True))
            results.append(
                KindAccess(
                    kind=kind,
                    counts=counts,
                    unlock_percentage=unlock_percentage(
                        inp.user_tier, counts.total, counts.free, counts.tier1
                    ),
                )
            )
            totals = CatalogCounts(
                total=totals.total + counts.total,
                free=totals.free + counts.free,
                tier1=totals.tier1 + counts.tier1,
                tier2=totals.tier2 + counts.tier2,
            )
    except DependencyFailure as e:
        logger.error("Access summary failed: %s", e)
        return AccessSummaryOutput(success=False, error=dependency_error(e))

    overall = unlock_percentage(inp.user_tier, totals.total, totals.free, totals.tier1)
    return AccessSummaryOutput(kinds=tuple(results), overall_percentage=overall)


def _pydantic_errors(exc: PydanticValidationError) -> list[DomainError]:
    errors: list[DomainError] = []
    for error in exc.errors():
        loc = error.get("loc", ())
        field = ".".join(str(part) for part in loc) if loc else "_schema"
        errors.append(
            validation_error(
                code="invalid_value",
                message=f"Field '{field}': {error.get('msg', 'Invalid value')}",
                field=field,
            )
        )
    return errors


def _validate_title(title: Any, max_length: int) -> list[DomainError]:
    if not isinstance(title, str) or not title.strip():
        return [validation_error("title_required", "Title is required", "title")]
    if len(title) > max_length:
        return [
            validation_error(
                "title_too_long", f"Title must be {max_length} characters or less", "title"
            )
        ]
    return []


def run_save_item(
    inp: SaveItemInput,
    *,
    store: ContentStorePort,
    time: TimePort,
    title_max_length: int = DEFAULT_TITLE_MAX,
) -> SaveItemOutput:
    """Create or update a content item (admin only)."""
    if not inp.actor.is_admin:
        return SaveItemOutput(errors=(forbidden("Admin access required"),))

    updates = {k: v for k, v in inp.fields.items() if k not in _PROTECTED_FIELDS}
    now = time.now_utc()
    item_type = _ITEM_TYPES[inp.kind]

    try:
        if inp.item_id is None:
            data = {**updates, "created_at": now, "updated_at": now}
        else:
            current = store.get_item(inp.kind, inp.item_id)
            if current is None:
                return SaveItemOutput(errors=(not_found("Content"),))
            data = {**current.model_dump(exclude={"sections"}), **updates, "updated_at": now}

        errors = _validate_title(data.get("title"), title_max_length)
        if errors:
            return SaveItemOutput(errors=tuple(errors))

        try:
            item = item_type.model_validate(data)
        except PydanticValidationError as e:
            return SaveItemOutput(errors=tuple(_pydantic_errors(e)))

        item = item.model_copy(update={"title": item.title.strip()})

        saved = store.save_item(item)
    except DependencyFailure as e:
        logger.error("Saving %s failed: %s", inp.kind, e)
        return SaveItemOutput(errors=(dependency_error(e),))

    logger.info("Saved %s %s (published=%s)", saved.kind, saved.id, saved.published)
    return SaveItemOutput(item=saved, success=True)


def run_delete_item(inp: DeleteItemInput, *, store: ContentStorePort) -> DeleteItemOutput:
    """Delete a content item and its sections (admin only)."""
    if not inp.actor.is_admin:
        return DeleteItemOutput(error=forbidden("Admin access required"))

    try:
        if store.get_item(inp.kind, inp.item_id) is None:
            return DeleteItemOutput(error=not_found("Content"))
        store.delete_item(inp.kind, inp.item_id)
    except DependencyFailure as e:
        logger.error("Deleting %s %s failed: %s", inp.kind, inp.item_id, e)
        return DeleteItemOutput(error=dependency_error(e))

    logger.info("Deleted %s %s", inp.kind, inp.item_id)
    return DeleteItemOutput(success=True)


def run(
    inp: ListItemsInput | GetItemInput | AccessSummaryInput | DeleteItemInput,
    *,
    store: ContentStorePort,
) -> ListItemsOutput | ItemOutput | AccessSummaryOutput | DeleteItemOutput:
    if isinstance(inp, ListItemsInput):
        return run_list(inp, store=store)

    elif isinstance(inp, GetItemInput):
        return run_get(inp, store=store)

    elif isinstance(inp, AccessSummaryInput):
        return run_access_summary(inp, store=store)

    elif isinstance(inp, DeleteItemInput):
        return run_delete_item(inp, store=store)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
