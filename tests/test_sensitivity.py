import pytest

from premium_engine.actuarial.sensitivity import perform_sensitivity_analysis


@pytest.fixture
def analysis():
    return perform_sensitivity_analysis(1000.0)


def _impacts(family):
    return {s.scenario: s.impact_on_rates for s in family.scenarios}


def test_trend_family(analysis):
    impacts = _impacts(analysis.medical_cost_trend)
    assert impacts["Base Trend"] == 0.0
    assert impacts["Low Trend"] == pytest.approx(round((1.04 / 1.064 - 1) * 100, 2))
    assert impacts["High Trend"] == pytest.approx(round((1.08 / 1.064 - 1) * 100, 2))


def test_trend_compounds_over_projection_years():
    two_year = perform_sensitivity_analysis(1000.0, projection_years=2)
    impacts = _impacts(two_year.medical_cost_trend)
    assert impacts["High Trend"] == pytest.approx(round(((1.08 / 1.064) ** 2 - 1) * 100, 2))


def test_utilization_investment_and_risk_mix(analysis):
    assert _impacts(analysis.utilization) == {
        "Reduced Utilization": -5.0,
        "Base Utilization": 0.0,
        "Increased Utilization": 5.0,
    }
    assert _impacts(analysis.investment_return)["Low Returns"] == pytest.approx(1.5)
    assert _impacts(analysis.investment_return)["High Returns"] == pytest.approx(-1.5)
    assert _impacts(analysis.risk_adjustment)["Favorable Risk Mix"] == pytest.approx(-6.0)
    assert _impacts(analysis.risk_adjustment)["Adverse Risk Mix"] == pytest.approx(9.0)


def test_projected_pmpm_and_bounds(analysis):
    increased = next(s for s in analysis.utilization.scenarios if s.scenario == "Increased Utilization")
    assert increased.projected_pmpm == 1050.0
    low, high = analysis.pmpm_bounds
    assert low == pytest.approx(940.0)
    assert high == pytest.approx(1090.0)


def test_expected_impact_and_range(analysis):
    risk = analysis.risk_adjustment
    assert risk.expected_impact == pytest.approx(0.25 * -6.0 + 0.15 * 9.0)
    assert risk.impact_range == (-6.0, 9.0)


def test_non_positive_years_rejected():
    with pytest.raises(ValueError):
        perform_sensitivity_analysis(1000.0, projection_years=0)
