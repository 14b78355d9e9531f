"""
Sections component - ordered lessons/modules under courses and tools,
with the parent's section_count kept consistent.
"""

from .component import (
    run,
    run_add_section,
    run_delete_section,
    run_list_ordered,
    run_reconcile_counts,
    run_update_section,
    sort_sections,
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
from .ports import SectionStorePort, TransactionalSectionStorePort

__all__ = [
    # Entry points
    "run",
    "run_add_section",
    "run_delete_section",
    "run_list_ordered",
    "run_reconcile_counts",
    "run_update_section",
    "sort_sections",
    # Input models
    "AddSectionInput",
    "DeleteSectionInput",
    "ListSectionsInput",
    "ReconcileCountsInput",
    "UpdateSectionInput",
    # Output models
    "CountDrift",
    "DeleteSectionOutput",
    "ReconcileCountsOutput",
    "SectionListOutput",
    "SectionOutput",
    # Ports
    "SectionStorePort",
    "TransactionalSectionStorePort",
]
