import pytest

from premium_engine.errors import ConfigurationError
from premium_engine.pricing.config import PricingConfig, RiskAggregation, RiskTierRow
from premium_engine.pricing.risk import (
    aggregate_group_risk,
    calculate_risk_adjustment_factor,
    lookup_risk_tier,
)


class TestLookupRiskTier:
    def test_high_risk_score(self):
        tier = lookup_risk_tier(85)
        assert tier.tier == "High-risk"
        assert tier.multiplier == 1.85
        assert tier.confidence == 80

    @pytest.mark.parametrize(
        "score,expected",
        [(0, 0.85), (29.9, 0.85), (30, 1.00), (49.99, 1.00), (50, 1.35), (74, 1.35), (75, 1.85), (100, 1.85)],
    )
    def test_thresholds_are_inclusive_lower_bounds(self, score, expected):
        assert calculate_risk_adjustment_factor(score) == expected

    def test_multiplier_is_monotone_in_score(self):
        values = [calculate_risk_adjustment_factor(s / 2) for s in range(0, 201)]
        assert all(a <= b for a, b in zip(values, values[1:]))

    def test_score_below_every_threshold_is_neutral(self):
        cfg = PricingConfig(risk_matrix=(RiskTierRow(min_score=20, multiplier=1.1, tier="Elevated", confidence=90),))
        tier = lookup_risk_tier(5, cfg)
        assert tier.multiplier == 1.0
        assert tier.tier == "Standard"


class TestRiskMatrixValidation:
    def test_decreasing_multiplier_rejected(self):
        with pytest.raises(ConfigurationError):
            PricingConfig(
                risk_matrix=(
                    RiskTierRow(0, 1.2, "A", 90),
                    RiskTierRow(50, 0.9, "B", 90),
                )
            )

    def test_unsorted_thresholds_rejected(self):
        with pytest.raises(ConfigurationError):
            PricingConfig(
                risk_matrix=(
                    RiskTierRow(50, 1.0, "A", 90),
                    RiskTierRow(10, 1.2, "B", 90),
                )
            )


class TestAggregateGroupRisk:
    def test_no_members_is_neutral_with_default_confidence(self):
        adj = aggregate_group_risk([])
        assert adj.multiplier == 1.0
        assert adj.confidence == 80

    def test_no_resolvable_assessment(self):
        adj = aggregate_group_risk([None, None])
        assert adj.multiplier == 1.0
        assert adj.confidence == 50
        assert adj.resolved == 0
        assert adj.total == 2

    def test_mean_of_resolved_scores(self):
        adj = aggregate_group_risk([20.0, 60.0, None])
        assert adj.mean_score == pytest.approx(40.0)
        assert adj.multiplier == 1.0
        assert adj.confidence == pytest.approx(50 + (2 / 3) * 45)

    def test_all_resolved_confidence_is_capped(self):
        adj = aggregate_group_risk([80.0, 90.0])
        assert adj.tier == "High-risk"
        assert adj.confidence == 95

    def test_weighted_aggregation(self):
        cfg = PricingConfig(risk_aggregation=RiskAggregation.WEIGHTED)
        adj = aggregate_group_risk([10.0, 90.0], cfg, weights={1: 3.0})
        assert adj.mean_score == pytest.approx((10 + 270) / 4)
        assert adj.multiplier == 1.35

    def test_weights_ignored_for_mean_policy(self):
        adj = aggregate_group_risk([10.0, 90.0], weights={1: 3.0})
        assert adj.mean_score == pytest.approx(50.0)
