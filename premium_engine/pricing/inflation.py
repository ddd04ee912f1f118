# premium_engine/pricing/inflation.py
"""
Healthcare inflation projection.

Provides:
- compound trend factor over a projection horizon
- multi-year premium projections

Notes:
- Non-positive horizons are caller errors and raise; they are never
  silently replaced by a default.
"""

from __future__ import annotations

from typing import List, Mapping, Optional

import numpy as np

from premium_engine.pricing.config import InflationAssumptions
from premium_engine.pricing.schemas import Demographics
from premium_engine.utils.money import round_currency


def _check_years(years: int, name: str = "projection_years") -> None:
    if isinstance(years, bool) or not isinstance(years, (int, np.integer)):
        raise TypeError(f"{name} must be an integer, got: {type(years).__name__}")
    if years <= 0:
        raise ValueError(f"{name} must be >= 1, got: {years}")


def mean_annual_trend(category_trends: Mapping[str, float]) -> float:
    if not category_trends:
        raise ValueError("category_trends must not be empty")
    return float(np.mean(list(category_trends.values())))


def project_inflation_factor(
    projection_years: int = 1,
    *,
    region_cost_index: Optional[float] = None,
    assumptions: Optional[InflationAssumptions] = None,
) -> float:
    """
    factor = (1 + mean category trend) ** projection_years [* region_cost_index]
    """
    _check_years(projection_years)
    assumptions = assumptions or InflationAssumptions()

    factor = (1.0 + mean_annual_trend(assumptions.category_trends)) ** projection_years
    if region_cost_index is not None:
        if region_cost_index < 0:
            raise ValueError(f"region_cost_index must be >= 0, got: {region_cost_index}")
        factor *= region_cost_index
    return float(factor)


def generate_actuarial_projections(
    current_premium: float,
    demographics: Optional[Demographics] = None,
    years: int = 5,
    *,
    assumptions: Optional[InflationAssumptions] = None,
    seed: Optional[int] = None,
) -> List[float]:
    """
    Year-by-year premium path.

    premium_y = premium_{y-1} * (1 + hospital trend) * (1 + aging_rate * y) * market_trend

    market_trend is 1.0 unless a seed is given, in which case it is drawn from
    [1 - band, 1 + band] with a seeded generator so the path is reproducible.
    """
    _check_years(years, "years")
    if current_premium < 0:
        raise ValueError(f"current_premium must be >= 0, got: {current_premium}")
    assumptions = assumptions or InflationAssumptions()

    hospital = assumptions.category_trends.get("hospital", mean_annual_trend(assumptions.category_trends))
    rng = np.random.default_rng(seed) if seed is not None else None

    # Demographics only shift the aging drift for groups older than the base band
    aging_rate = assumptions.aging_rate
    if demographics is not None and demographics.average_age is not None and demographics.average_age >= 65:
        aging_rate *= 1.5

    out: List[float] = []
    premium = float(current_premium)
    for year in range(1, years + 1):
        market = 1.0
        if rng is not None:
            band = assumptions.market_trend_band
            market = float(rng.uniform(1.0 - band, 1.0 + band))
        premium = premium * (1.0 + hospital) * (1.0 + aging_rate * year) * market
        out.append(round_currency(premium))
    return out
