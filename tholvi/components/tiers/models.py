"""
Tier component models.

The tier hierarchy is a fixed total order: free < tier1 < tier2.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tholvi.domain.entities import Tier

TIERS: tuple[Tier, ...] = ("free", "tier1", "tier2")

TIER_RANK: dict[Tier, int] = {
    "free": 0,
    "tier1": 1,
    "tier2": 2,
}

TIER_LABELS: dict[Tier, str] = {
    "free": "FREE",
    "tier1": "TIER 1",
    "tier2": "TIER 2",
}


@dataclass(frozen=True)
class AccessCheckInput:
    """Input for checking whether a tier may open content of another tier."""

    user_tier: Tier
    required_tier: Tier


@dataclass(frozen=True)
class UnlockInput:
    """
    Input for unlock percentage.

    Counts must come from the same catalog snapshot; they are not
    cross-validated.
    """

    user_tier: Tier
    total_count: int
    free_count: int
    tier1_count: int


@dataclass(frozen=True)
class TierPlan:
    """Public description of one tier, loaded from rules."""

    tier: Tier
    name: str
    label: str
    price: str
    highlighted: bool = False
    features: tuple[str, ...] = field(default_factory=tuple)
