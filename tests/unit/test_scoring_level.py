"""Unit tests for cauldron_trust.scoring.level — XP curve, levels, and tiers."""
from __future__ import annotations

import pytest

from cauldron_trust.scoring.level import (
    TIER_THRESHOLDS,
    TrustTier,
    advance_level,
    level_for_xp,
    level_progress,
    progress_to_next_level,
    success_rate,
    trust_tier,
    xp_required_for_level,
)


class TestXpRequiredForLevel:
    def test_level_zero_requires_nothing(self) -> None:
        assert xp_required_for_level(0) == 0

    def test_negative_level_requires_nothing(self) -> None:
        assert xp_required_for_level(-3) == 0

    @pytest.mark.parametrize(
        ("level", "expected"),
        [(1, 100), (2, 283), (3, 520), (4, 800), (5, 1118), (6, 1470), (10, 3162)],
    )
    def test_polynomial_curve(self, level: int, expected: int) -> None:
        assert xp_required_for_level(level) == expected

    def test_strictly_increasing(self) -> None:
        values = [xp_required_for_level(n) for n in range(0, 60)]
        assert values == sorted(values)
        assert len(set(values)) == len(values)


class TestAdvanceLevel:
    def test_fresh_agent_stays_level_one_below_first_threshold(self) -> None:
        assert advance_level(0, 1) == 1
        assert advance_level(282, 1) == 1

    def test_reaches_level_two_exactly_at_threshold(self) -> None:
        assert advance_level(283, 1) == 2

    def test_large_award_crosses_several_levels(self) -> None:
        assert advance_level(590, 1) == 3

    def test_never_decreases_stored_level(self) -> None:
        assert advance_level(0, 7) == 7

    def test_continues_from_stored_level(self) -> None:
        assert advance_level(800, 3) == 4

    def test_clamps_level_below_one(self) -> None:
        assert advance_level(0, 0) == 1


class TestLevelForXp:
    @pytest.mark.parametrize(
        ("xp", "expected"),
        [(0, 1), (99, 1), (282, 1), (283, 2), (519, 2), (520, 3), (590, 3), (800, 4)],
    )
    def test_largest_level_whose_threshold_is_met(self, xp: int, expected: int) -> None:
        assert level_for_xp(xp) == expected


class TestLevelProgress:
    def test_zero_at_start_of_band(self) -> None:
        assert level_progress(xp_required_for_level(2), 3) == pytest.approx(0.0)

    def test_hundred_at_end_of_band(self) -> None:
        assert level_progress(xp_required_for_level(3), 3) == pytest.approx(100.0)

    def test_midpoint(self) -> None:
        floor = xp_required_for_level(3)
        ceiling = xp_required_for_level(4)
        assert level_progress((floor + ceiling) // 2, 4) == pytest.approx(50.0, abs=0.5)

    def test_level_one_band_starts_at_zero(self) -> None:
        assert level_progress(50, 1) == pytest.approx(50.0)

    def test_clamped_below(self) -> None:
        assert level_progress(0, 5) == 0.0

    def test_clamped_above(self) -> None:
        assert level_progress(100_000, 5) == 100.0


class TestProgressToNextLevel:
    def test_fresh_agent_has_no_progress(self) -> None:
        assert progress_to_next_level(0, 1) == 0.0

    def test_level_one_band_runs_to_level_two_threshold(self) -> None:
        assert progress_to_next_level(283, 1) == pytest.approx(100.0)

    def test_just_reached_level_two(self) -> None:
        assert progress_to_next_level(283, 2) == pytest.approx(0.0)

    def test_within_level_three_band(self) -> None:
        expected = (590 - 520) / (800 - 520) * 100.0
        assert progress_to_next_level(590, 3) == pytest.approx(expected)


class TestTrustTier:
    @pytest.mark.parametrize(
        ("level", "tier"),
        [
            (1, TrustTier.NOVICE),
            (5, TrustTier.NOVICE),
            (6, TrustTier.APPRENTICE),
            (10, TrustTier.APPRENTICE),
            (11, TrustTier.ADEPT),
            (16, TrustTier.EXPERT),
            (21, TrustTier.MASTER),
            (26, TrustTier.GRANDMASTER),
            (30, TrustTier.GRANDMASTER),
            (31, TrustTier.LEGENDARY),
            (99, TrustTier.LEGENDARY),
        ],
    )
    def test_lower_bounds_are_inclusive(self, level: int, tier: TrustTier) -> None:
        assert trust_tier(level) is tier

    def test_every_tier_has_a_threshold(self) -> None:
        assert set(TIER_THRESHOLDS) == set(TrustTier)

    def test_tier_values_are_strings(self) -> None:
        assert TrustTier.LEGENDARY.value == "LEGENDARY"


class TestSuccessRate:
    def test_zero_when_no_tasks(self) -> None:
        assert success_rate(0, 0) == 0.0

    def test_all_successful(self) -> None:
        assert success_rate(4, 0) == pytest.approx(100.0)

    def test_mixed(self) -> None:
        assert success_rate(3, 1) == pytest.approx(75.0)

    def test_all_failed(self) -> None:
        assert success_rate(0, 2) == 0.0
