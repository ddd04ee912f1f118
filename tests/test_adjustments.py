import pytest

from premium_engine.pricing.adjustments import (
    calculate_demographic_adjustment,
    calculate_experience_rating_modifier,
    calculate_family_structure_adjustment,
    calculate_geographic_adjustment,
    calculate_group_size_discount,
    calculate_wellness_discount,
)
from premium_engine.pricing.config import age_band_for
from premium_engine.pricing.schemas import (
    Demographics,
    FamilyComposition,
    GeographicLocation,
    HistoricalClaims,
)


class TestDemographicAdjustment:
    def test_missing_demographics_is_neutral(self):
        assert calculate_demographic_adjustment(None) == 1.0

    def test_senior_band(self):
        assert calculate_demographic_adjustment(Demographics(age_distribution={"65+": 1})) == pytest.approx(2.0)

    def test_weighted_by_member_count(self):
        d = Demographics(age_distribution={"26-35": 3, "65+": 1})
        assert calculate_demographic_adjustment(d) == pytest.approx((3 * 1.0 + 2.0) / 4)

    def test_industry_multiplier(self):
        d = Demographics(age_distribution={"65+": 1}, industry_risk="High")
        assert calculate_demographic_adjustment(d) == pytest.approx(2.4)

    def test_empty_distribution_and_unknown_industry(self):
        assert calculate_demographic_adjustment(Demographics(industry_risk="mining")) == 1.0

    def test_for_ages_builds_bands(self):
        d = Demographics.for_ages([17, 18, 65, 66])
        assert d.age_distribution == {"0-17": 1, "18-25": 1, "56-65": 1, "65+": 1}
        assert d.group_size == 4
        assert d.average_age == pytest.approx(41.5)

    def test_negative_age_rejected(self):
        with pytest.raises(ValueError):
            age_band_for(-1)


class TestFamilyStructureAdjustment:
    @pytest.mark.parametrize(
        "family,expected",
        [
            (None, 1.0),
            (FamilyComposition(), 1.0),
            (FamilyComposition(spouse=1), 1.8),
            (FamilyComposition(children=1), 1.6),
            (FamilyComposition(principal=0), 1.0),
            (FamilyComposition(spouse=1, children=3), 2.2 + 2 * 0.3),
            (FamilyComposition(children=2, special_needs=1), (2.2 + 0.3 + 0.4) * 0.95),
        ],
    )
    def test_table(self, family, expected):
        assert calculate_family_structure_adjustment(family) == pytest.approx(expected)

    def test_negative_counts_rejected(self):
        with pytest.raises(ValueError):
            FamilyComposition(children=-1)


class TestGeographicAdjustment:
    def test_cost_index_wins(self):
        loc = GeographicLocation(state="CA", region="rural", cost_index=1.4)
        assert calculate_geographic_adjustment(loc) == 1.4

    def test_state_then_region(self):
        assert calculate_geographic_adjustment(GeographicLocation(state="ca", region="rural")) == 1.25
        assert calculate_geographic_adjustment(GeographicLocation(state="ZZ", region="Rural")) == 1.15

    def test_unknown_location(self):
        assert calculate_geographic_adjustment(GeographicLocation(state="ZZ")) == 1.0
        assert calculate_geographic_adjustment(None) == 1.0


class TestExperienceRating:
    @pytest.mark.parametrize(
        "loss_ratio,expected",
        [(0.55, 0.90), (0.6, 1.00), (0.79, 1.00), (0.8, 1.15), (0.95, 1.15), (1.0, 1.30), (1.7, 1.30)],
    )
    def test_step_function(self, loss_ratio, expected):
        assert calculate_experience_rating_modifier(HistoricalClaims(loss_ratio=loss_ratio)) == expected

    def test_no_history(self):
        assert calculate_experience_rating_modifier(None) == 1.0


class TestDiscounts:
    @pytest.mark.parametrize("size,expected", [(1, 0.0), (9, 0.0), (10, 0.02), (50, 0.05), (499, 0.08), (500, 0.10)])
    def test_group_size(self, size, expected):
        assert calculate_group_size_discount(size) == expected

    def test_wellness(self):
        assert calculate_wellness_discount(None) == 0.0
        assert calculate_wellness_discount(0.5) == pytest.approx(0.025)
        assert calculate_wellness_discount(2.0) == pytest.approx(0.05)
        assert calculate_wellness_discount(-1.0) == 0.0
