"""
Catalog component - courses, tools and blog posts by audience and tier.
"""

from .component import (
    KINDS,
    catalog_counts,
    is_accessible,
    list_all,
    list_for_audience,
    list_published,
    present_item,
    run,
    run_access_summary,
    run_delete_item,
    run_get,
    run_list,
    run_save_item,
)
from .models import (
    AccessSummaryInput,
    AccessSummaryOutput,
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
from .ports import ContentStorePort

__all__ = [
    # Pure functions
    "catalog_counts",
    "is_accessible",
    "list_all",
    "list_for_audience",
    "list_published",
    "present_item",
    "KINDS",
    # Entry points
    "run",
    "run_access_summary",
    "run_delete_item",
    "run_get",
    "run_list",
    "run_save_item",
    # Input models
    "AccessSummaryInput",
    "DeleteItemInput",
    "GetItemInput",
    "ListItemsInput",
    "SaveItemInput",
    # Output models
    "AccessSummaryOutput",
    "Audience",
    "CatalogCounts",
    "DeleteItemOutput",
    "ItemOutput",
    "ItemView",
    "KindAccess",
    "ListItemsOutput",
    "SaveItemOutput",
    # Ports
    "ContentStorePort",
]
