# premium_engine/actuarial/sensitivity.py
"""
Sensitivity / scenario analysis.

Perturbs one assumption at a time and reports the percent impact on the
loaded PMPM:
- medical cost trend : ((1 + t)^N / (1 + base)^N - 1) * 100
- utilization        : change * 100 (claims scale linearly)
- investment return  : -(r - base) * pass-through * 100
- risk mix           : score shift * elasticity

Each family also reports a probability-weighted expected impact and the
min/max range, which bound the uncertainty of the filed rate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from premium_engine.actuarial.config import Scenario, SensitivityAssumptions
from premium_engine.utils.money import round_currency


@dataclass(frozen=True)
class ScenarioImpact:
    scenario: str
    assumption: float
    impact_on_rates: float  # percent
    probability: float
    projected_pmpm: float


@dataclass(frozen=True)
class ScenarioFamily:
    dimension: str
    scenarios: Tuple[ScenarioImpact, ...]

    @property
    def expected_impact(self) -> float:
        p = np.array([s.probability for s in self.scenarios], dtype=float)
        x = np.array([s.impact_on_rates for s in self.scenarios], dtype=float)
        if p.sum() <= 0:
            return 0.0
        return float(np.dot(p, x) / p.sum())

    @property
    def impact_range(self) -> Tuple[float, float]:
        x = [s.impact_on_rates for s in self.scenarios]
        return (min(x), max(x))


@dataclass(frozen=True)
class SensitivityAnalysis:
    base_pmpm: float
    medical_cost_trend: ScenarioFamily
    utilization: ScenarioFamily
    investment_return: ScenarioFamily
    risk_adjustment: ScenarioFamily

    @property
    def families(self) -> Tuple[ScenarioFamily, ...]:
        return (self.medical_cost_trend, self.utilization, self.investment_return, self.risk_adjustment)

    @property
    def pmpm_bounds(self) -> Tuple[float, float]:
        """Lowest and highest projected PMPM across every scenario."""
        values = [s.projected_pmpm for f in self.families for s in f.scenarios]
        return (min(values), max(values))


def _family(
    dimension: str,
    base_pmpm: float,
    scenarios: Tuple[Scenario, ...],
    impact: Callable[[float], float],
) -> ScenarioFamily:
    out = []
    for s in scenarios:
        pct = round(impact(s.value), 2)
        out.append(
            ScenarioImpact(
                scenario=s.name,
                assumption=s.value,
                impact_on_rates=pct,
                probability=s.probability,
                projected_pmpm=round_currency(base_pmpm * (1.0 + pct / 100.0)),
            )
        )
    return ScenarioFamily(dimension=dimension, scenarios=tuple(out))


def perform_sensitivity_analysis(
    base_pmpm: float,
    *,
    projection_years: int = 1,
    assumptions: Optional[SensitivityAssumptions] = None,
) -> SensitivityAnalysis:
    if projection_years <= 0:
        raise ValueError(f"projection_years must be >= 1, got: {projection_years}")
    a = assumptions or SensitivityAssumptions()
    n = projection_years

    def trend(t: float) -> float:
        return (((1.0 + t) ** n) / ((1.0 + a.base_trend) ** n) - 1.0) * 100.0

    def utilization(u: float) -> float:
        return u * 100.0

    def investment(r: float) -> float:
        return -(r - a.base_investment_return) * a.investment_pass_through * 100.0

    def risk_mix(shift: float) -> float:
        return shift * a.risk_score_elasticity

    return SensitivityAnalysis(
        base_pmpm=base_pmpm,
        medical_cost_trend=_family("medical_cost_trend", base_pmpm, a.trend_scenarios, trend),
        utilization=_family("utilization", base_pmpm, a.utilization_scenarios, utilization),
        investment_return=_family("investment_return", base_pmpm, a.investment_scenarios, investment),
        risk_adjustment=_family("risk_adjustment", base_pmpm, a.risk_mix_scenarios, risk_mix),
    )
