from datetime import date

import pytest

from premium_engine.actuarial.certification import OPINION_STATEMENT, QUALIFIED_OPINION_STATEMENT
from premium_engine.actuarial.compliance import RATIO_TOLERANCE
from premium_engine.actuarial.config import LoadingSchedule
from premium_engine.actuarial.engine import calculate_actuarial_rates
from premium_engine.errors import ConfigurationError


def test_california_filing_is_clamped_and_certified(make_rate_input):
    result = calculate_actuarial_rates(make_rate_input(jurisdiction="CA"), certification_date=date(2025, 1, 1))

    assert result.jurisdiction.code == "CA"
    assert result.loaded_rates.final_rates.per_member_per_month == pytest.approx(
        result.base_rates.per_member_per_month / 0.725, abs=0.01
    )
    assert result.certified_rates.age_banded_rates.compression_ratio <= 2.5 + RATIO_TOLERANCE

    assert [v.rule for v in result.compliance.violations] == ["age_band_compression"]
    assert result.certification.certified
    assert result.certification.opinion_statement == OPINION_STATEMENT
    assert result.certification.certification_date == date(2025, 1, 1)

    categories = [(r.category, r.priority) for r in result.recommendations]
    assert ("compliance", "urgent") in categories
    assert ("benefit_design", "medium") in categories
    assert ("underwriting", "high") in categories
    assert ("pricing", "urgent") not in categories

    assert "Status: CERTIFIED" in result.certification_document.text
    assert result.sensitivity.base_pmpm == result.certified_rates.per_member_per_month


def test_unresolved_findings_block_certification(make_rate_input):
    result = calculate_actuarial_rates(make_rate_input(jurisdiction="NY", market_segment="large_group"))

    assert not result.certification.certified
    assert result.certification.opinion_statement == QUALIFIED_OPINION_STATEMENT
    assert "Status: NOT CERTIFIED" in result.certification_document.text
    assert ("pricing", "urgent") in [(r.category, r.priority) for r in result.recommendations]
    assert result.certified_rates.smoker_rates.tobacco_ratio == pytest.approx(1.0)


def test_unknown_state_priced_under_federal_rules(make_rate_input):
    result = calculate_actuarial_rates(make_rate_input(jurisdiction="ZZ"))
    assert result.jurisdiction.code == "US"
    assert result.compliance.compliant


def test_invalid_loadings_propagate(make_rate_input):
    with pytest.raises(ConfigurationError):
        calculate_actuarial_rates(make_rate_input(), loadings=LoadingSchedule(administrative=0.8, commission=0.2))


def test_identical_inputs_give_identical_rates(make_rate_input):
    a = calculate_actuarial_rates(make_rate_input(), certification_date=date(2025, 1, 1))
    b = calculate_actuarial_rates(make_rate_input(), certification_date=date(2025, 1, 1))
    assert a == b
