# premium_engine/pricing/config.py
"""
Pricing configuration.

Every lookup table used by the premium pipeline lives here as an immutable
struct, injected into the calculators and the orchestrator at construction:
- risk adjustment matrix (score thresholds -> multiplier / tier)
- age band and industry multipliers
- family structure table
- geographic cost indices
- healthcare trend assumptions
- discount bands, default tax rate and member-type rate schedule
- confidence defaults
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from premium_engine.errors import ConfigurationError


def _frozen(d: Dict[str, float]) -> Mapping[str, float]:
    return MappingProxyType(dict(d))


@dataclass(frozen=True)
class RiskTierRow:
    min_score: float
    multiplier: float
    tier: str
    confidence: float


def default_risk_matrix() -> Tuple[RiskTierRow, ...]:
    return (
        RiskTierRow(min_score=0, multiplier=0.85, tier="Preferred", confidence=95),
        RiskTierRow(min_score=30, multiplier=1.00, tier="Standard", confidence=90),
        RiskTierRow(min_score=50, multiplier=1.35, tier="Substandard", confidence=85),
        RiskTierRow(min_score=75, multiplier=1.85, tier="High-risk", confidence=80),
    )


# Age band labels in ascending order with their inclusive upper age
AGE_BANDS: Tuple[Tuple[str, Optional[int]], ...] = (
    ("0-17", 17),
    ("18-25", 25),
    ("26-35", 35),
    ("36-45", 45),
    ("46-55", 55),
    ("56-65", 65),
    ("65+", None),
)


def age_band_for(age: float) -> str:
    """Map an age in years to its age band label."""
    if age < 0:
        raise ValueError(f"age must be >= 0, got: {age}")
    for label, hi in AGE_BANDS:
        if hi is None or age <= hi:
            return label
    return AGE_BANDS[-1][0]


@dataclass(frozen=True)
class FamilyRatingTable:
    individual: float = 1.0
    couple: float = 1.8
    single_parent_one_child: float = 1.6
    family_base: float = 2.2
    per_extra_child: float = 0.3
    per_special_needs: float = 0.4
    single_parent_discount: float = 0.95


@dataclass(frozen=True)
class InflationAssumptions:
    # Annual trend by category (CMS national health expenditure projections)
    category_trends: Mapping[str, float] = field(
        default_factory=lambda: _frozen(
            {
                "hospital": 0.064,
                "physician": 0.054,
                "pharmacy": 0.101,
                "mental_health": 0.050,
                "preventive": 0.032,
            }
        )
    )
    confidence_level: float = 85.0

    # Aging drift used by multi-year projections
    aging_rate: float = 0.03
    market_trend_band: float = 0.01


class RiskAggregation(str, Enum):
    MEAN = "mean"
    WEIGHTED = "weighted"


@dataclass(frozen=True)
class MemberRateSchedule:
    """Monthly rate per member type; also the shape returned for a period."""

    principal_rate: float = 450.0
    spouse_rate: float = 400.0
    child_rate: float = 250.0
    special_needs_rate: float = 500.0


@dataclass(frozen=True)
class ConfidenceDefaults:
    impact_weights: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"high": 3, "medium": 2, "low": 1})
    )
    empty: float = 75.0
    standard: float = 95.0
    base_premium: float = 95.0
    risk_not_assessed: float = 80.0
    risk_unresolved: float = 50.0
    risk_ceiling: float = 95.0
    experience_with_history: float = 75.0
    experience_without_history: float = 50.0


@dataclass(frozen=True)
class PricingConfig:
    currency: str = "USD"

    risk_matrix: Tuple[RiskTierRow, ...] = field(default_factory=default_risk_matrix)
    risk_aggregation: RiskAggregation = RiskAggregation.MEAN

    age_band_rates: Mapping[str, float] = field(
        default_factory=lambda: _frozen(
            {
                "0-17": 0.7,
                "18-25": 0.8,
                "26-35": 1.0,
                "36-45": 1.1,
                "46-55": 1.3,
                "56-65": 1.6,
                "65+": 2.0,
            }
        )
    )
    industry_multipliers: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"low": 0.9, "medium": 1.0, "high": 1.2})
    )
    family: FamilyRatingTable = field(default_factory=FamilyRatingTable)

    state_cost_indices: Mapping[str, float] = field(
        default_factory=lambda: _frozen(
            {
                "CA": 1.25, "NY": 1.22, "MA": 1.18, "CT": 1.16, "NJ": 1.15,
                "TX": 0.95, "FL": 0.92, "GA": 0.90, "NC": 0.88, "TN": 0.85,
                "WY": 0.82, "ND": 0.80, "IA": 0.78, "AR": 0.75, "MS": 0.73,
            }
        )
    )
    region_cost_indices: Mapping[str, float] = field(
        default_factory=lambda: _frozen(
            {
                "urban": 1.0,
                "suburban": 0.9,
                "rural": 1.15,
                "high_cost": 1.25,
                "low_cost": 0.85,
            }
        )
    )

    inflation: InflationAssumptions = field(default_factory=InflationAssumptions)

    # (upper loss ratio bound, modifier); anything above the last bound -> worst modifier
    experience_bands: Tuple[Tuple[float, float], ...] = ((0.6, 0.90), (0.8, 1.00), (1.0, 1.15))
    experience_worst_modifier: float = 1.30

    # (minimum group size, discount), ascending
    group_size_discounts: Tuple[Tuple[int, float], ...] = ((10, 0.02), (50, 0.05), (100, 0.08), (500, 0.10))
    wellness_base_discount: float = 0.05

    default_tax_rate: float = 0.08
    default_rate_schedule: MemberRateSchedule = field(default_factory=MemberRateSchedule)

    # Share of the risk-adjusted subtotal in a hybrid calculation
    hybrid_risk_weight: float = 0.3

    confidence: ConfidenceDefaults = field(default_factory=ConfidenceDefaults)

    def __post_init__(self) -> None:
        validate_risk_matrix(self.risk_matrix)
        if not 0.0 <= self.hybrid_risk_weight <= 1.0:
            raise ConfigurationError(f"hybrid_risk_weight must be in [0, 1], got: {self.hybrid_risk_weight}")
        if self.default_tax_rate < 0:
            raise ConfigurationError(f"default_tax_rate must be >= 0, got: {self.default_tax_rate}")


def validate_risk_matrix(rows: Tuple[RiskTierRow, ...]) -> None:
    """
    Thresholds must be strictly ascending and multipliers non-decreasing,
    otherwise the tier lookup would not be monotone in the risk score.
    """
    if not rows:
        raise ConfigurationError("risk matrix must contain at least one row")
    for prev, cur in zip(rows, rows[1:]):
        if cur.min_score <= prev.min_score:
            raise ConfigurationError(
                f"risk matrix thresholds must be ascending: {prev.min_score} then {cur.min_score}"
            )
        if cur.multiplier < prev.multiplier:
            raise ConfigurationError(
                f"risk matrix multipliers must be non-decreasing: {prev.tier}={prev.multiplier} "
                f"then {cur.tier}={cur.multiplier}"
            )
    for row in rows:
        if row.multiplier < 0:
            raise ConfigurationError(f"risk multiplier must be >= 0 for tier {row.tier}")


_OVERRIDABLE = (
    "currency",
    "risk_aggregation",
    "default_tax_rate",
    "wellness_base_discount",
    "hybrid_risk_weight",
    "experience_worst_modifier",
)


def merge_overrides(base: PricingConfig, overrides: Optional[Dict[str, Any]] = None) -> PricingConfig:
    """
    Apply caller overrides to a PricingConfig safely.
    Supported keys:
      currency, risk_aggregation, default_tax_rate, wellness_base_discount,
      hybrid_risk_weight, experience_worst_modifier
    Unknown keys raise ConfigurationError; None values are ignored.
    """
    overrides = overrides or {}
    unknown = sorted(k for k in overrides if k not in _OVERRIDABLE)
    if unknown:
        raise ConfigurationError(f"Unsupported pricing overrides: {unknown}")

    changes = {k: v for k, v in overrides.items() if v is not None}
    if "risk_aggregation" in changes:
        changes["risk_aggregation"] = RiskAggregation(changes["risk_aggregation"])
    return dataclasses.replace(base, **changes)
