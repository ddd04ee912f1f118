import pytest

from premium_engine.actuarial.base_rates import (
    build_base_rates,
    calculate_age_cost_multiplier,
    calculate_benefit_design_multiplier,
    calculate_cost_components,
    calculate_gender_cost_multiplier,
    calculate_health_status_multiplier,
)
from premium_engine.actuarial.config import JurisdictionRules, get_jurisdiction_rules
from premium_engine.actuarial.schemas import (
    AgeBandData,
    BenefitDesign,
    DemographicProfile,
    GenderDistribution,
    HealthStatusDistribution,
)
from premium_engine.pricing.schemas import FamilyComposition, HistoricalClaims

MEAN_TREND = (0.064 + 0.054 + 0.101 + 0.050 + 0.032) / 5
DESIGN_MULTIPLIER = 1.2 * 1.8 * 0.9 * 1.1


@pytest.mark.parametrize(
    "age,expected",
    [(10, 0.7), (18, 0.7), (25, 0.8), (30, 1.0), (45, 1.2), (55, 1.5), (64, 1.8), (65, 2.2)],
)
def test_age_cost_multiplier(age, expected):
    assert calculate_age_cost_multiplier(age) == expected


def test_weighted_mixes():
    assert calculate_gender_cost_multiplier(GenderDistribution(male=0.5, female=0.5)) == pytest.approx(1.05)
    assert calculate_health_status_multiplier(HealthStatusDistribution()) == 1.0
    assert calculate_health_status_multiplier(
        HealthStatusDistribution(healthy=0.5, chronic_conditions=0.5)
    ) == pytest.approx(1.45)


def test_benefit_design_multiplier(benefit_design):
    assert calculate_benefit_design_multiplier(benefit_design) == pytest.approx(DESIGN_MULTIPLIER)


def test_benefit_design_floors():
    rich = BenefitDesign(deductible=0, coinsurance=0.0, out_of_pocket_max=0, network_type="HMO")
    lean = BenefitDesign(deductible=10000, coinsurance=0.5, out_of_pocket_max=20000, network_type="HMO")
    assert calculate_benefit_design_multiplier(rich) == pytest.approx(1.5 * 2.0 * 1.3 * 0.9)
    assert calculate_benefit_design_multiplier(lean) == pytest.approx(0.8 * 1.5 * 0.9 * 0.9)


class TestCostComponents:
    def test_gender_only_where_permitted(self, demographic_profile, benefit_design):
        federal = calculate_cost_components(demographic_profile, benefit_design, JurisdictionRules(code="US"))
        permissive = calculate_cost_components(
            demographic_profile, benefit_design, JurisdictionRules(code="XX", gender_rating_allowed=True)
        )
        assert federal.gender == 1.0
        assert permissive.gender == pytest.approx(1.05)

    def test_pmpm(self, demographic_profile, benefit_design):
        c = calculate_cost_components(demographic_profile, benefit_design, get_jurisdiction_rules("US"))
        assert c.inflation == pytest.approx(1 + MEAN_TREND)
        assert c.pmpm == pytest.approx(450 * DESIGN_MULTIPLIER * (1 + MEAN_TREND), abs=0.01)

    def test_experience_applies_with_history(self, demographic_profile, benefit_design):
        c = calculate_cost_components(
            demographic_profile,
            benefit_design,
            get_jurisdiction_rules("US"),
            historical_claims=HistoricalClaims(loss_ratio=0.95),
        )
        assert c.experience == 1.15


class TestBuildBaseRates:
    def test_tables_derive_from_pmpm(self, make_rate_input):
        rates, components = build_base_rates(make_rate_input(), get_jurisdiction_rules("US"))
        base = rates.per_member_per_month
        assert base == components.pmpm

        # default bands: 0.7 .. 2.0
        assert len(rates.age_banded_rates.bands) == 7
        assert rates.age_banded_rates.bands[0].rate == pytest.approx(base * 0.7, abs=0.01)
        assert rates.age_banded_rates.compression_ratio == pytest.approx(2.0 / 0.7, rel=1e-3)

        assert rates.family_rates.individual == base
        assert rates.family_rates.couple == pytest.approx(base * 1.85, abs=0.01)
        assert rates.family_rates.family == pytest.approx(base * 2.8, abs=0.01)

        assert rates.smoker_rates.non_smoker == base
        assert rates.smoker_rates.smoker == pytest.approx(base * 1.5, abs=0.01)

        assert rates.geographic_rates.by_region["northeast"] == pytest.approx(base * 1.18, abs=0.01)
        assert rates.geographic_rates.by_cost_class["low_cost"] == pytest.approx(base * 0.8, abs=0.01)

    def test_profile_age_bands_used(self, make_rate_input):
        profile = DemographicProfile(
            average_age=40,
            age_bands=(AgeBandData(20, 39, 12, 0.9), AgeBandData(40, 64, 8, 1.4)),
        )
        rates, _ = build_base_rates(make_rate_input(demographic_profile=profile), get_jurisdiction_rules("US"))
        assert [b.age_band for b in rates.age_banded_rates.bands] == ["20-39", "40-64"]
        assert [b.member_count for b in rates.age_banded_rates.bands] == [12, 8]

    def test_reported_tobacco_ratio_capped_by_jurisdiction(self, make_rate_input):
        rates, _ = build_base_rates(make_rate_input(tobacco_surcharge=1.0), get_jurisdiction_rules("TX"))
        assert rates.smoker_rates.tobacco_ratio == pytest.approx(2.0, abs=1e-3)
        assert rates.smoker_rates.max_tobacco_ratio == 1.5

    def test_family_rate_for_composition(self, make_rate_input):
        rates, _ = build_base_rates(make_rate_input(), get_jurisdiction_rules("US"))
        fam = rates.family_rates
        assert fam.tier_for(FamilyComposition()) == "individual"
        assert fam.tier_for(FamilyComposition(spouse=1)) == "couple"
        assert fam.tier_for(FamilyComposition(children=2)) == "single_parent_multiple_children"
        big = FamilyComposition(spouse=1, children=5)
        assert fam.rate_for(big) == pytest.approx(fam.family + 2 * fam.per_extra_child, abs=0.01)


def test_invalid_input_rejected(make_rate_input):
    with pytest.raises(ValueError):
        make_rate_input(market_segment="retail")
    with pytest.raises(ValueError):
        make_rate_input(projection_years=0)
    with pytest.raises(ValueError):
        BenefitDesign(deductible=1000, coinsurance=1.5, out_of_pocket_max=5000)
