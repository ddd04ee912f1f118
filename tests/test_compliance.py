import dataclasses

import pytest

from premium_engine.actuarial.base_rates import build_base_rates
from premium_engine.actuarial.compliance import (
    RATIO_TOLERANCE,
    project_medical_loss_ratio,
    validate_compliance,
)
from premium_engine.actuarial.config import JurisdictionRules, get_jurisdiction_rules
from premium_engine.actuarial.loadings import apply_expense_loadings


@pytest.fixture
def loaded_rates(make_rate_input):
    base, _ = build_base_rates(make_rate_input(), get_jurisdiction_rules("US"))
    return apply_expense_loadings(base).final_rates


def test_federal_default_is_compliant(loaded_rates):
    adjusted, report = validate_compliance(loaded_rates, get_jurisdiction_rules("US"))
    assert report.compliant
    assert report.violations == ()
    assert adjusted == loaded_rates
    assert report.projected_loss_ratio == pytest.approx(0.82)


def test_unknown_jurisdiction_uses_federal_default():
    rules = get_jurisdiction_rules("ZZ")
    assert rules.code == "US"
    assert rules.max_age_ratio == 3.0
    assert rules.max_tobacco_ratio == 1.5
    assert rules.minimum_loss_ratio == 0.80


class TestAgeCompression:
    @pytest.mark.parametrize("state,ratio", [("CA", 2.5), ("NY", 2.0)])
    def test_bands_clamped_to_allowed_ratio(self, loaded_rates, state, ratio):
        adjusted, report = validate_compliance(loaded_rates, get_jurisdiction_rules(state))
        rates = [b.rate for b in adjusted.age_banded_rates.bands]
        assert max(rates) / min(rates) <= ratio + RATIO_TOLERANCE
        assert report.compression_ratio <= ratio + RATIO_TOLERANCE

        violation = next(v for v in report.violations if v.rule == "age_band_compression")
        assert violation.resolved
        assert violation.observed == pytest.approx(2.0 / 0.7, rel=1e-3)

    def test_each_band_is_min_of_rate_and_cap(self, loaded_rates):
        adjusted, _ = validate_compliance(loaded_rates, get_jurisdiction_rules("CA"))
        lowest = min(b.rate for b in loaded_rates.age_banded_rates.bands)
        for before, after in zip(loaded_rates.age_banded_rates.bands, adjusted.age_banded_rates.bands):
            assert after.rate == pytest.approx(min(before.rate, lowest * 2.5), abs=0.01)
            assert after.rate <= lowest * 2.5

    def test_age_rating_forbidden_flattens_bands(self, loaded_rates):
        rules = JurisdictionRules(code="XX", age_rating_allowed=False)
        adjusted, _ = validate_compliance(loaded_rates, rules)
        rates = {b.rate for b in adjusted.age_banded_rates.bands}
        assert len(rates) == 1

    def test_zero_rate_band_is_an_unresolved_violation(self, loaded_rates):
        bands = loaded_rates.age_banded_rates.bands
        zeroed = dataclasses.replace(
            loaded_rates,
            age_banded_rates=dataclasses.replace(
                loaded_rates.age_banded_rates,
                bands=(dataclasses.replace(bands[0], rate=0.0),) + bands[1:],
            ),
        )
        adjusted, report = validate_compliance(zeroed, get_jurisdiction_rules("CA"))

        violation = next(v for v in report.violations if v.rule == "age_band_compression")
        assert not violation.resolved
        assert violation.observed == float("inf")
        assert report.compression_ratio == float("inf")
        assert violation in report.unresolved
        assert adjusted.age_banded_rates == zeroed.age_banded_rates

    def test_input_structure_is_not_modified(self, loaded_rates):
        before = dataclasses.replace(loaded_rates)
        validate_compliance(loaded_rates, get_jurisdiction_rules("NY"))
        assert loaded_rates == before


class TestTobacco:
    def test_jurisdiction_without_tobacco_rating(self, loaded_rates):
        adjusted, report = validate_compliance(loaded_rates, get_jurisdiction_rules("NY"))
        assert adjusted.smoker_rates.smoker == adjusted.smoker_rates.non_smoker
        assert report.tobacco_ratio == pytest.approx(1.0)
        assert "tobacco" not in report.permitted_rating_factors

    def test_surcharge_above_cap_is_clamped(self, make_rate_input):
        base, _ = build_base_rates(make_rate_input(tobacco_surcharge=1.0), get_jurisdiction_rules("TX"))
        adjusted, report = validate_compliance(base, get_jurisdiction_rules("TX"))
        assert adjusted.smoker_rates.tobacco_ratio <= 1.5 + RATIO_TOLERANCE
        assert [v.rule for v in report.violations] == ["tobacco_rating"]
        assert report.unresolved == ()


class TestReportedFindings:
    def test_large_group_loss_ratio(self, loaded_rates):
        _, report = validate_compliance(loaded_rates, get_jurisdiction_rules("US"), market_segment="large_group")
        assert report.minimum_loss_ratio == 0.85
        assert not report.loss_ratio_compliant
        (violation,) = report.unresolved
        assert violation.rule == "medical_loss_ratio"
        assert "Medical loss ratio shortfall and rebate exposure" in report.required_disclosures

    def test_rate_increase_over_maximum(self, loaded_rates):
        prior = loaded_rates.per_member_per_month / 1.25
        adjusted, report = validate_compliance(loaded_rates, get_jurisdiction_rules("CA"), prior_pmpm=prior)
        increase = next(v for v in report.violations if v.rule == "rate_increase")
        assert increase.observed == pytest.approx(0.25)
        assert increase.limit == 0.10
        assert not increase.resolved
        assert adjusted.per_member_per_month == loaded_rates.per_member_per_month

    def test_missing_essential_benefit(self, loaded_rates):
        _, report = validate_compliance(
            loaded_rates, get_jurisdiction_rules("US"), covered_benefits=("hospitalization",)
        )
        assert not report.essential_benefits_compliant
        assert [v.rule for v in report.unresolved] == ["essential_health_benefits"]


def test_projected_mlr_is_a_ratio(loaded_rates):
    assert 0 < project_medical_loss_ratio(loaded_rates) < 1
