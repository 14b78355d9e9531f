"""
Tier component.

Pure, stateless decision functions over the tier enum: access checks,
unlock percentages and the public tier plans.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from tholvi.domain.entities import Tier
from tholvi.rules.models import TiersRules

from .models import TIER_LABELS, TIER_RANK, TIERS, AccessCheckInput, TierPlan, UnlockInput


def parse_tier(value: str) -> Tier:
    """
    Parse an external string into a Tier.

    Raises ValueError for anything outside the enum. This is the boundary
    where tiers enter the system; past it, tiers are trusted.
    """
    normalized = value.strip().lower() if isinstance(value, str) else value
    for tier in TIERS:
        if tier == normalized:
            return tier
    raise ValueError(f"Unknown tier: {value!r}")


def tier_rank(tier: Tier) -> int:
    return TIER_RANK[tier]


def can_access(user_tier: Tier, required_tier: Tier) -> bool:
    """True iff the user's tier ranks at or above the required tier."""
    return TIER_RANK[user_tier] >= TIER_RANK[required_tier]


def max_tier(a: Tier, b: Tier) -> Tier:
    return a if TIER_RANK[a] >= TIER_RANK[b] else b


def tier_label(tier: Tier) -> str:
    return TIER_LABELS[tier]


def unlock_percentage(
    user_tier: Tier,
    total_count: int,
    free_count: int,
    tier1_count: int,
) -> int:
    """
    Percentage (0-100) of a catalog that a tier can open.

    free sees free items, tier1 sees free and tier1 items, tier2 sees
    everything. Rounds half up. An empty catalog yields 0.

    Counts are taken as given: callers derive them from a single
    catalog snapshot.
    """
    if total_count == 0:
        return 0

    rank = TIER_RANK[user_tier]
    accessible = free_count
    if rank >= 1:
        accessible += tier1_count
    if rank >= 2:
        accessible = total_count

    ratio = Decimal(accessible * 100) / Decimal(total_count)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def load_plans(tiers: TiersRules) -> list[TierPlan]:
    """Build the ordered tier plans from the rules file."""
    plans: list[TierPlan] = []
    for tier in TIERS:
        info = getattr(tiers, tier)
        plans.append(
            TierPlan(
                tier=tier,
                name=info.name,
                label=info.label,
                price=info.price,
                highlighted=info.highlighted,
                features=tuple(info.features),
            )
        )
    return plans


def comparison_matrix(plans: list[TierPlan]) -> list[dict[str, Any]]:
    """
    Feature comparison rows: each feature of a plan is available to that
    plan and every higher one.
    """
    rows: list[dict[str, Any]] = []
    for plan in plans:
        for feature in plan.features:
            if feature.lower().startswith("everything in"):
                continue
            row: dict[str, Any] = {"feature": feature}
            for other in plans:
                row[other.tier] = can_access(other.tier, plan.tier)
            rows.append(row)
    return rows


# --- Run Function (Atomic Component Pattern) ---


def run(input_data: AccessCheckInput | UnlockInput) -> bool | int:
    if isinstance(input_data, AccessCheckInput):
        return can_access(input_data.user_tier, input_data.required_tier)

    if isinstance(input_data, UnlockInput):
        return unlock_percentage(
            input_data.user_tier,
            input_data.total_count,
            input_data.free_count,
            input_data.tier1_count,
        )

    raise TypeError(f"Unknown input type: {type(input_data)}")
