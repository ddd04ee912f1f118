# premium_engine/actuarial/loadings.py
"""
Expense loading stage and loading policy helpers.

Gross premium = pure cost / (1 - total load), so every rate in the base
structure is scaled by 1 / (1 - total load). A total load of 1 or more has
no finite gross-up and is a configuration error.
"""

from __future__ import annotations

import dataclasses
from types import MappingProxyType
from typing import Dict, Optional

import numpy as np

from premium_engine.actuarial.config import LoadingSchedule
from premium_engine.actuarial.schemas import BaseRateStructure, LoadedRateStructure
from premium_engine.errors import ConfigurationError


def loading_factor(loadings: Optional[LoadingSchedule] = None) -> float:
    loadings = loadings or LoadingSchedule()
    negative = {k: v for k, v in loadings.items() if v < 0}
    if negative:
        raise ConfigurationError(f"Loadings must be >= 0, got: {negative}")
    total = loadings.total_load
    if total >= 1.0:
        raise ConfigurationError(f"Total loading must be < 1, got: {total:.4f}")
    return 1.0 / (1.0 - total)


def apply_expense_loadings(
    base_rates: BaseRateStructure,
    loadings: Optional[LoadingSchedule] = None,
) -> LoadedRateStructure:
    loadings = loadings or LoadingSchedule()
    factor = loading_factor(loadings)
    return LoadedRateStructure(
        loadings=loadings,
        total_load=loadings.total_load,
        loading_factor=factor,
        final_rates=base_rates.scaled(factor),
    )


def determine_expense_loadings(company_size: int, market_segment: str) -> LoadingSchedule:
    """
    Size and segment adjustments to the standard schedule:
    - more than 1000 members: administrative x0.8, commission x0.9
    - fewer than 50 members : administrative x1.3, risk charge x1.2
    - medicare_advantage    : administrative x1.2, profit x0.7
    """
    s = LoadingSchedule()
    changes: Dict[str, float] = {}
    if company_size > 1000:
        changes["administrative"] = s.administrative * 0.8
        changes["commission"] = s.commission * 0.9
    elif company_size < 50:
        changes["administrative"] = s.administrative * 1.3
        changes["risk_charge"] = s.risk_charge * 1.2

    if market_segment == "medicare_advantage":
        changes["administrative"] = changes.get("administrative", s.administrative) * 1.2
        changes["profit_margin"] = s.profit_margin * 0.7

    return dataclasses.replace(s, **changes)


_SEGMENT_PROFIT = MappingProxyType({
    "individual": 0.02,
    "small_group": 0.03,
    "large_group": 0.04,
    "medicare_advantage": 0.025,
})

_RISK_PROFILE_PROFIT = MappingProxyType({"low": 1.2, "medium": 1.0, "high": 0.7})


def calculate_profit_margins(market_segment: str, company_size: int, risk_profile: str = "medium") -> float:
    """Target profit margin, clamped to [1%, 8%]."""
    if risk_profile not in _RISK_PROFILE_PROFIT:
        raise ValueError(f"risk_profile must be one of {sorted(_RISK_PROFILE_PROFIT)}, got: {risk_profile!r}")
    profit = _SEGMENT_PROFIT.get(market_segment, 0.03)
    if company_size > 1000:
        profit *= 1.2
    if company_size < 50:
        profit *= 0.8
    profit *= _RISK_PROFILE_PROFIT[risk_profile]
    return float(np.clip(profit, 0.01, 0.08))


_LOSS_RATIO_TARGETS = MappingProxyType({
    "individual": 0.82,
    "small_group": 0.85,
    "large_group": 0.88,
    "medicare_advantage": 0.85,
})


def calculate_loss_ratio_targets(market_segment: str) -> float:
    return _LOSS_RATIO_TARGETS.get(market_segment, 0.85)
