import pytest

from premium_engine.actuarial.base_rates import build_base_rates
from premium_engine.actuarial.config import LoadingSchedule, get_jurisdiction_rules
from premium_engine.actuarial.loadings import (
    apply_expense_loadings,
    calculate_loss_ratio_targets,
    calculate_profit_margins,
    determine_expense_loadings,
    loading_factor,
)
from premium_engine.errors import ConfigurationError


def test_default_loading_factor():
    assert LoadingSchedule().total_load == pytest.approx(0.275)
    assert loading_factor() == pytest.approx(1 / 0.725)


def test_total_load_of_one_or_more_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        loading_factor(LoadingSchedule(administrative=0.9))


def test_negative_loading_rejected():
    with pytest.raises(ConfigurationError):
        loading_factor(LoadingSchedule(profit_margin=-0.01))


def test_configuration_error_is_a_value_error():
    assert issubclass(ConfigurationError, ValueError)


def test_every_rate_is_grossed_up(make_rate_input):
    base, _ = build_base_rates(make_rate_input(), get_jurisdiction_rules("US"))
    loaded = apply_expense_loadings(base)
    factor = 1 / 0.725

    assert loaded.loading_factor == pytest.approx(factor)
    assert loaded.final_rates.per_member_per_month == pytest.approx(base.per_member_per_month * factor, abs=0.01)
    for before, after in zip(base.age_banded_rates.bands, loaded.final_rates.age_banded_rates.bands):
        assert after.rate == pytest.approx(before.rate * factor, abs=0.01)
    assert loaded.final_rates.smoker_rates.smoker == pytest.approx(base.smoker_rates.smoker * factor, abs=0.01)

    summary = loaded.to_dict()
    assert summary["administrative"] == 0.12
    assert summary["total_load"] == pytest.approx(0.275)


class TestLoadingPolicy:
    def test_large_company(self):
        s = determine_expense_loadings(2000, "small_group")
        assert s.administrative == pytest.approx(0.096)
        assert s.commission == pytest.approx(0.036)

    def test_small_medicare_company(self):
        s = determine_expense_loadings(20, "medicare_advantage")
        assert s.administrative == pytest.approx(0.12 * 1.3 * 1.2)
        assert s.risk_charge == pytest.approx(0.06)
        assert s.profit_margin == pytest.approx(0.021)

    def test_profit_margins(self):
        assert calculate_profit_margins("large_group", 2000, "low") == pytest.approx(0.04 * 1.2 * 1.2)
        assert calculate_profit_margins("individual", 10, "high") == pytest.approx(0.02 * 0.8 * 0.7)
        assert calculate_profit_margins("unknown", 100) == pytest.approx(0.03)

    def test_unknown_risk_profile(self):
        with pytest.raises(ValueError):
            calculate_profit_margins("small_group", 100, "extreme")

    @pytest.mark.parametrize(
        "segment,expected",
        [("individual", 0.82), ("small_group", 0.85), ("large_group", 0.88), ("medicare_advantage", 0.85), ("x", 0.85)],
    )
    def test_loss_ratio_targets(self, segment, expected):
        assert calculate_loss_ratio_targets(segment) == expected
