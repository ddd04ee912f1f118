# premium_engine/pricing/adjustments.py
"""
Independent adjustment calculators.

Each function is pure, reads one slice of the calculation input and returns
a multiplier >= 0 (or a discount in [0, 1]). Missing optional input is a
no-op: multiplier 1.0, discount 0.0.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from premium_engine.pricing.config import PricingConfig
from premium_engine.pricing.schemas import (
    Demographics,
    FamilyComposition,
    GeographicLocation,
    HistoricalClaims,
)


def calculate_demographic_adjustment(
    demographics: Optional[Demographics],
    cfg: Optional[PricingConfig] = None,
) -> float:
    """
    Member-weighted average of age band multipliers times the industry multiplier.
    Unknown bands and industries count as 1.0.
    """
    if demographics is None:
        return 1.0
    cfg = cfg or PricingConfig()

    adjustment = 1.0
    bands = list(demographics.age_distribution.items())
    counts = np.array([c for _, c in bands], dtype=float)
    if counts.sum() > 0:
        rates = np.array([cfg.age_band_rates.get(band, 1.0) for band, _ in bands], dtype=float)
        adjustment *= float(np.average(rates, weights=counts))

    if demographics.industry_risk is not None:
        adjustment *= cfg.industry_multipliers.get(demographics.industry_risk.lower(), 1.0)

    return adjustment


def calculate_family_structure_adjustment(
    family: Optional[FamilyComposition],
    cfg: Optional[PricingConfig] = None,
) -> float:
    """
    Stepped family table:
    - individual          -> 1.0
    - couple              -> 1.8
    - single parent + 1   -> 1.6
    - family of 3+        -> 2.2 + 0.3 per child beyond the first
                             + 0.4 per special-needs dependent,
                             x 0.95 for single-parent families
    """
    if family is None:
        return 1.0
    table = (cfg or PricingConfig()).family
    size = family.family_size

    if size <= 1:
        return table.individual
    if size == 2:
        return table.couple if family.has_spouse else table.single_parent_one_child

    rate = table.family_base
    if family.children > 1:
        rate += (family.children - 1) * table.per_extra_child
    rate += family.special_needs * table.per_special_needs
    if family.is_single_parent:
        rate *= table.single_parent_discount
    return rate


def calculate_geographic_adjustment(
    location: Optional[GeographicLocation],
    cfg: Optional[PricingConfig] = None,
) -> float:
    """
    Provided cost index wins; otherwise state table, then region class, then 1.0.
    """
    if location is None:
        return 1.0
    if location.cost_index is not None and location.cost_index > 0:
        return float(location.cost_index)

    cfg = cfg or PricingConfig()
    if location.state and location.state.upper() in cfg.state_cost_indices:
        return cfg.state_cost_indices[location.state.upper()]
    if location.region and location.region.lower() in cfg.region_cost_indices:
        return cfg.region_cost_indices[location.region.lower()]
    return 1.0


def calculate_experience_rating_modifier(
    claims: Optional[HistoricalClaims],
    cfg: Optional[PricingConfig] = None,
) -> float:
    """
    Step function on the historical loss ratio (not interpolated):
    - < 0.6 -> 0.90
    - < 0.8 -> 1.00
    - < 1.0 -> 1.15
    - else  -> 1.30
    """
    if claims is None:
        return 1.0
    cfg = cfg or PricingConfig()
    for upper, modifier in cfg.experience_bands:
        if claims.loss_ratio < upper:
            return modifier
    return cfg.experience_worst_modifier


def calculate_group_size_discount(group_size: int, cfg: Optional[PricingConfig] = None) -> float:
    cfg = cfg or PricingConfig()
    discount = 0.0
    for minimum, rate in cfg.group_size_discounts:
        if group_size >= minimum:
            discount = rate
    return discount


def calculate_wellness_discount(
    participation_rate: Optional[float],
    cfg: Optional[PricingConfig] = None,
) -> float:
    """Base wellness discount scaled by program participation (clamped to [0, 1])."""
    if participation_rate is None:
        return 0.0
    cfg = cfg or PricingConfig()
    participation = float(np.clip(participation_rate, 0.0, 1.0))
    return cfg.wellness_base_discount * participation
