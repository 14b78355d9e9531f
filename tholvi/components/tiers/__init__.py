"""
Tier component.

Access decisions and unlock percentages over the free < tier1 < tier2
hierarchy.
"""

from .component import (
    can_access,
    comparison_matrix,
    load_plans,
    max_tier,
    parse_tier,
    run,
    tier_label,
    tier_rank,
    unlock_percentage,
)
from .models import (
    TIER_LABELS,
    TIER_RANK,
    TIERS,
    AccessCheckInput,
    TierPlan,
    UnlockInput,
)

__all__ = [
    # Functions
    "can_access",
    "comparison_matrix",
    "load_plans",
    "max_tier",
    "parse_tier",
    "run",
    "tier_label",
    "tier_rank",
    "unlock_percentage",
    # Models
    "AccessCheckInput",
    "TierPlan",
    "UnlockInput",
    "TIERS",
    "TIER_LABELS",
    "TIER_RANK",
]
