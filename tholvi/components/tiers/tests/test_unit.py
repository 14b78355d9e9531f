"""
Tier component unit tests.

Tests for the tier hierarchy, unlock percentages and tier plans.
"""

from __future__ import annotations

import itertools

import pytest

from tholvi.components.tiers import (
    TIER_RANK,
    TIERS,
    AccessCheckInput,
    UnlockInput,
    can_access,
    comparison_matrix,
    load_plans,
    max_tier,
    parse_tier,
    run,
    tier_label,
    unlock_percentage,
)
from tholvi.rules.models import TierInfo, TiersRules


@pytest.fixture
def tiers_rules() -> TiersRules:
    return TiersRules(
        free=TierInfo(name="Free", label="FREE", price="0", features=["Blog previews"]),
        tier1=TierInfo(
            name="Pro",
            label="TIER 1",
            price="49",
            highlighted=True,
            features=["Everything in Free", "Pro courses"],
        ),
        tier2=TierInfo(
            name="Elite", label="TIER 2", price="99", features=["Mentorship"]
        ),
    )


class TestCanAccess:
    """Access follows the rank order."""

    def test_matches_rank_for_every_pair(self) -> None:
        for user_tier, required in itertools.product(TIERS, TIERS):
            expected = TIER_RANK[user_tier] >= TIER_RANK[required]
            assert can_access(user_tier, required) is expected

    def test_free_cannot_open_tier2(self) -> None:
        assert can_access("free", "tier2") is False

    def test_tier2_opens_free(self) -> None:
        assert can_access("tier2", "free") is True

    def test_same_tier_is_accessible(self) -> None:
        assert can_access("tier1", "tier1") is True

    def test_tier1_cannot_open_tier2(self) -> None:
        assert can_access("tier1", "tier2") is False


class TestUnlockPercentage:
    """Unlock percentage per tier."""

    def test_free_sees_free_share(self) -> None:
        assert unlock_percentage("free", 10, 3, 4) == 30

    def test_tier1_adds_tier1_share(self) -> None:
        assert unlock_percentage("tier1", 10, 3, 4) == 70

    @pytest.mark.parametrize("total", [1, 7, 10, 333])
    def test_tier2_always_full(self, total: int) -> None:
        assert unlock_percentage("tier2", total, 0, 0) == 100

    @pytest.mark.parametrize("tier", TIERS)
    def test_empty_catalog_is_zero(self, tier: str) -> None:
        assert unlock_percentage(tier, 0, 0, 0) == 0  # type: ignore[arg-type]

    def test_rounds_half_up(self) -> None:
        # 1/8 = 12.5% -> 13, where banker's rounding would give 12
        assert unlock_percentage("free", 8, 1, 0) == 13
        # 5/8 = 62.5% -> 63
        assert unlock_percentage("tier1", 8, 2, 3) == 63

    def test_rounds_down_below_half(self) -> None:
        assert unlock_percentage("free", 3, 1, 0) == 33

    def test_inconsistent_counts_are_not_validated(self) -> None:
        # Caller passed counts from different snapshots
        assert unlock_percentage("tier1", 4, 3, 3) == 150


class TestParseTier:
    """Boundary parsing."""

    def test_parses_known_values(self) -> None:
        assert parse_tier("free") == "free"
        assert parse_tier(" Tier1 ") == "tier1"

    def test_rejects_unknown(self) -> None:
        with pytest.raises(ValueError):
            parse_tier("tier3")


class TestHelpers:
    def test_max_tier(self) -> None:
        assert max_tier("free", "tier1") == "tier1"
        assert max_tier("tier2", "tier1") == "tier2"

    def test_labels(self) -> None:
        assert tier_label("tier1") == "TIER 1"

    def test_run_dispatch(self) -> None:
        assert run(AccessCheckInput(user_tier="free", required_tier="tier1")) is False
        assert run(UnlockInput(user_tier="free", total_count=10, free_count=3, tier1_count=4)) == 30

    def test_run_unknown_input(self) -> None:
        with pytest.raises(TypeError):
            run("free")  # type: ignore[arg-type]


class TestPlans:
    def test_plans_are_ordered(self, tiers_rules: TiersRules) -> None:
        plans = load_plans(tiers_rules)
        assert [p.tier for p in plans] == ["free", "tier1", "tier2"]
        assert plans[1].highlighted is True

    def test_comparison_matrix_skips_inherited_rows(self, tiers_rules: TiersRules) -> None:
        rows = comparison_matrix(load_plans(tiers_rules))
        features = [r["feature"] for r in rows]
        assert features == ["Blog previews", "Pro courses", "Mentorship"]
        pro = rows[1]
        assert pro["free"] is False
        assert pro["tier1"] is True
        assert pro["tier2"] is True
