"""
Sections component.

Maintains the ordered child collection under a course or tool and keeps
the parent's denormalized section_count in step with it.

When the store supports it, the section write and the count update run
in one transaction. Otherwise they are two calls, and a failure between
them leaves drift that run_reconcile_counts detects and repairs.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import uuid4

from tholvi.domain.entities import Section, SectionParentKind, UserAccount
from tholvi.domain.errors import (
    DependencyFailure,
    DomainError,
    dependency_error,
    forbidden,
    not_found,
    validation_error,
)

from .models import (
    AddSectionInput,
    CountDrift,
    DeleteSectionInput,
    DeleteSectionOutput,
    ListSectionsInput,
    ReconcileCountsInput,
    ReconcileCountsOutput,
    SectionListOutput,
    SectionOutput,
    UpdateSectionInput,
)
from .ports import SectionStorePort, TimePort, TransactionalSectionStorePort

logger = logging.getLogger(__name__)

PARENT_KINDS: tuple[SectionParentKind, ...] = ("course", "tool")

TITLE_MAX = 200


# --- Pure Functions ---


def sort_sections(sections: Sequence[Section]) -> list[Section]:
    """
    Ascending by order_index.

    Ties keep the order given. Stores list sections in insertion order, so
    ties fall back to insertion order, the same key detail reads use.
    """
    return sorted(sections, key=lambda s: s.order_index)


def _validate_title(title: str | None) -> DomainError | None:
    if title is None:
        return None
    if not title.strip():
        return validation_error("title_required", "Title is required", "title")
    if len(title) > TITLE_MAX:
        return validation_error(
            "title_too_long", f"Title must be {TITLE_MAX} characters or less", "title"
        )
    return None


def _require_admin(actor: UserAccount) -> DomainError | None:
    if not actor.is_admin:
        return forbidden("Admin access required")
    return None


# --- Entry Points ---


def run_add_section(
    inp: AddSectionInput,
    *,
    store: SectionStorePort,
    time: TimePort,
) -> SectionOutput:
    denied = _require_admin(inp.actor)
    if denied:
        return SectionOutput(error=denied)

    invalid = _validate_title(inp.title)
    if invalid:
        return SectionOutput(error=invalid)

    try:
        parent = store.get_item(inp.parent_kind, inp.parent_id)
        if parent is None:
            return SectionOutput(error=not_found("Parent"))

        order_index = inp.order_index
        if order_index is None:
            order_index = len(store.list_sections(inp.parent_kind, inp.parent_id))

        section = Section(
            id=uuid4(),
            parent_kind=inp.parent_kind,
            parent_id=inp.parent_id,
            title=inp.title.strip(),
            content=inp.content,
            video_url=inp.video_url or None,
            order_index=order_index,
            created_at=time.now_utc(),
        )

        if isinstance(store, TransactionalSectionStorePort):
            saved = store.add_section_with_count(section)
            return SectionOutput(section=saved, success=True)

        saved = store.save_section(section)
    except DependencyFailure as e:
        logger.error("Adding section to %s %s failed: %s", inp.parent_kind, inp.parent_id, e)
        return SectionOutput(error=dependency_error(e))

    try:
        store.increment_section_count(inp.parent_kind, inp.parent_id)
    except DependencyFailure as e:
        logger.error(
            "Section %s saved but count increment failed for %s %s: %s",
            saved.id,
            inp.parent_kind,
            inp.parent_id,
            e,
        )
        return SectionOutput(
            section=saved, error=dependency_error(e, "section_count_pending_reconcile")
        )

    return SectionOutput(section=saved, success=True)


def run_update_section(inp: UpdateSectionInput, *, store: SectionStorePort) -> SectionOutput:
    """Change fields independently. Siblings are never renumbered."""
    denied = _require_admin(inp.actor)
    if denied:
        return SectionOutput(error=denied)

    invalid = _validate_title(inp.title)
    if invalid:
        return SectionOutput(error=invalid)

    try:
        section = store.get_section(inp.section_id)
        if section is None:
            return SectionOutput(error=not_found("Section"))

        updates: dict[str, object] = {}
        if inp.title is not None:
            updates["title"] = inp.title.strip()
        if inp.content is not None:
            updates["content"] = inp.content
        if inp.video_url is not None:
            updates["video_url"] = inp.video_url or None
        if inp.order_index is not None:
            updates["order_index"] = inp.order_index

        saved = store.save_section(section.model_copy(update=updates))
    except DependencyFailure as e:
        logger.error("Updating section %s failed: %s", inp.section_id, e)
        return SectionOutput(error=dependency_error(e))

    return SectionOutput(section=saved, success=True)


def run_delete_section(
    inp: DeleteSectionInput, *, store: SectionStorePort
) -> DeleteSectionOutput:
    denied = _require_admin(inp.actor)
    if denied:
        return DeleteSectionOutput(error=denied)

    try:
        section = store.get_section(inp.section_id)
        if section is None:
            return DeleteSectionOutput(error=not_found("Section"))

        if isinstance(store, TransactionalSectionStorePort):
            store.delete_section_with_count(section)
            return DeleteSectionOutput(success=True)

        store.delete_section(section.id)
    except DependencyFailure as e:
        logger.error("Deleting section %s failed: %s", inp.section_id, e)
        return DeleteSectionOutput(error=dependency_error(e))

    try:
        store.decrement_section_count(section.parent_kind, section.parent_id)
    except DependencyFailure as e:
        logger.error(
            "Section %s deleted but count decrement failed for %s %s: %s",
            section.id,
            section.parent_kind,
            section.parent_id,
            e,
        )
        return DeleteSectionOutput(error=dependency_error(e, "section_count_pending_reconcile"))

    return DeleteSectionOutput(success=True)


def run_list_ordered(inp: ListSectionsInput, *, store: SectionStorePort) -> SectionListOutput:
    try:
        sections = store.list_sections(inp.parent_kind, inp.parent_id)
    except DependencyFailure as e:
        logger.error("Listing sections for %s %s failed: %s", inp.parent_kind, inp.parent_id, e)
        return SectionListOutput(success=False, error=dependency_error(e))

    ordered = sort_sections(sections)
    return SectionListOutput(sections=tuple(ordered), total=len(ordered))


def run_reconcile_counts(
    inp: ReconcileCountsInput, *, store: SectionStorePort
) -> ReconcileCountsOutput:
    """
    Compare every parent's section_count with its live sections.

    With repair=True the live count is written back.
    """
    denied = _require_admin(inp.actor)
    if denied:
        return ReconcileCountsOutput(error=denied)

    drifts: list[CountDrift] = []
    repaired = 0
    try:
        for kind in PARENT_KINDS:
            for parent in store.list_items(kind):
                live = len(store.list_sections(kind, parent.id))
                if live == parent.section_count:
                    continue
                drifts.append(
                    CountDrift(
                        parent_kind=kind,
                        parent_id=parent.id,
                        stored=parent.section_count,
                        live=live,
                    )
                )
                logger.warning(
                    "Section count drift on %s %s: stored=%d live=%d",
                    kind,
                    parent.id,
                    parent.section_count,
                    live,
                )
                if inp.repair:
                    if store.set_section_count(kind, parent.id, live):
                        repaired += 1
                    else:
                        logger.warning("Section count repair found no %s %s", kind, parent.id)
    except DependencyFailure as e:
        logger.error("Section count reconciliation failed: %s", e)
        return ReconcileCountsOutput(
            drifts=tuple(drifts), repaired=repaired, error=dependency_error(e)
        )

    return ReconcileCountsOutput(drifts=tuple(drifts), repaired=repaired, success=True)


def run(
    inp: AddSectionInput
    | UpdateSectionInput
    | DeleteSectionInput
    | ListSectionsInput
    | ReconcileCountsInput,
    *,
    store: SectionStorePort,
    time: TimePort | None = None,
) -> SectionOutput | DeleteSectionOutput | SectionListOutput | ReconcileCountsOutput:
    if isinstance(inp, AddSectionInput):
        assert time
        return run_add_section(inp, store=store, time=time)

    elif isinstance(inp, UpdateSectionInput):
        return run_update_section(inp, store=store)

    elif isinstance(inp, DeleteSectionInput):
        return run_delete_section(inp, store=store)

    elif isinstance(inp, ListSectionsInput):
        return run_list_ordered(inp, store=store)

    elif isinstance(inp, ReconcileCountsInput):
        return run_reconcile_counts(inp, store=store)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
