# premium_engine/actuarial/config.py
"""
Actuarial assumptions and jurisdiction rating rules.

This is the immutable configuration behind the rate builder and the
compliance validator:
- baseline PMPM cost and the multiplier tables applied to it
- family tier, smoker and geographic rate multiples
- per-jurisdiction community rating rules (compression, tobacco, MLR)
- sensitivity scenario definitions
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from premium_engine.pricing.config import InflationAssumptions


def _frozen(d: Dict[str, float]) -> Mapping[str, float]:
    return MappingProxyType(dict(d))


@dataclass(frozen=True)
class FamilyTierMultiples:
    couple: float = 1.85
    single_parent_one_child: float = 1.65
    single_parent_multiple_children: float = 2.1
    family: float = 2.8

    # Additive loadings as a share of the individual rate
    per_extra_child: float = 0.3
    special_needs: float = 0.4

    # Children included in the family tier before per-child loadings apply
    family_included_children: int = 3


@dataclass(frozen=True)
class ActuarialAssumptions:
    # Industry average medical cost per member per month
    baseline_pmpm: float = 450.0

    # (inclusive upper average age, multiplier); above the last bound -> age_multiplier_max
    age_cost_bands: Tuple[Tuple[float, float], ...] = (
        (18, 0.7),
        (25, 0.8),
        (35, 1.0),
        (45, 1.2),
        (55, 1.5),
        (64, 1.8),
    )
    age_multiplier_max: float = 2.2

    gender_multipliers: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"male": 1.0, "female": 1.1, "other": 1.05})
    )
    health_status_multipliers: Mapping[str, float] = field(
        default_factory=lambda: _frozen(
            {"healthy": 0.8, "managed_conditions": 1.2, "high_risk": 1.6, "chronic_conditions": 2.1}
        )
    )
    network_multipliers: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"HMO": 0.9, "PPO": 1.1, "POS": 1.0, "EPO": 0.95})
    )
    industry_multipliers: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"low": 0.9, "medium": 1.0, "high": 1.15})
    )

    # Benefit design bounds: deductible max(0.8, 1.5 - d/5000), oop max(0.9, 1.3 - oop/10000)
    deductible_floor: float = 0.8
    deductible_ceiling: float = 1.5
    deductible_scale: float = 5000.0
    oop_floor: float = 0.9
    oop_ceiling: float = 1.3
    oop_scale: float = 10000.0

    inflation: InflationAssumptions = field(default_factory=InflationAssumptions)

    family_tiers: FamilyTierMultiples = field(default_factory=FamilyTierMultiples)
    tobacco_surcharge: float = 0.5

    region_multipliers: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"northeast": 1.18, "midwest": 0.95, "south": 0.88, "west": 1.12})
    )
    cost_index_classes: Mapping[str, float] = field(
        default_factory=lambda: _frozen(
            {"high_cost": 1.25, "above_average": 1.1, "average": 1.0, "below_average": 0.9, "low_cost": 0.8}
        )
    )

    # Default age bands used when the profile carries none: (min, max, relative cost)
    default_age_bands: Tuple[Tuple[int, int, float], ...] = (
        (0, 17, 0.7),
        (18, 25, 0.8),
        (26, 35, 1.0),
        (36, 45, 1.1),
        (46, 55, 1.3),
        (56, 64, 1.6),
        (65, 99, 2.0),
    )

    # Share of premium expected to be paid out as claims (MLR projection)
    assumed_claim_ratio: float = 0.82


@dataclass(frozen=True)
class LoadingSchedule:
    """Expense loadings as a share of gross premium."""

    administrative: float = 0.12
    profit_margin: float = 0.03
    risk_charge: float = 0.05
    tax: float = 0.02
    commission: float = 0.04
    reinsurance: float = 0.015

    def items(self) -> Tuple[Tuple[str, float], ...]:
        return (
            ("administrative", self.administrative),
            ("profit_margin", self.profit_margin),
            ("risk_charge", self.risk_charge),
            ("tax", self.tax),
            ("commission", self.commission),
            ("reinsurance", self.reinsurance),
        )

    @property
    def total_load(self) -> float:
        return float(sum(v for _, v in self.items()))


@dataclass(frozen=True)
class JurisdictionRules:
    code: str
    max_age_ratio: float = 3.0
    max_tobacco_ratio: float = 1.5
    minimum_loss_ratio: float = 0.80
    large_group_minimum_loss_ratio: float = 0.85
    age_rating_allowed: bool = True
    gender_rating_allowed: bool = False
    health_status_rating_allowed: bool = False
    geographic_rating_allowed: bool = True
    tobacco_rating_allowed: bool = True
    max_rate_increase: float = 0.20
    approval_process: str = "file_and_use"
    filing_frequency: str = "annual"
    mandated_benefits: Tuple[str, ...] = ("preventive_care",)

    @property
    def effective_age_ratio(self) -> float:
        """Community-rated jurisdictions allow no age variation at all."""
        return self.max_age_ratio if self.age_rating_allowed else 1.0

    @property
    def effective_tobacco_ratio(self) -> float:
        return self.max_tobacco_ratio if self.tobacco_rating_allowed else 1.0

    def minimum_loss_ratio_for(self, market_segment: str) -> float:
        if market_segment == "large_group":
            return self.large_group_minimum_loss_ratio
        return self.minimum_loss_ratio

    @property
    def permitted_rating_factors(self) -> Tuple[str, ...]:
        flags = (
            ("age", self.age_rating_allowed),
            ("gender", self.gender_rating_allowed),
            ("health_status", self.health_status_rating_allowed),
            ("geographic", self.geographic_rating_allowed),
            ("tobacco", self.tobacco_rating_allowed),
        )
        return tuple(name for name, allowed in flags if allowed)


FEDERAL_DEFAULT = "US"


def default_jurisdictions() -> Mapping[str, JurisdictionRules]:
    return MappingProxyType(
        {
            FEDERAL_DEFAULT: JurisdictionRules(code=FEDERAL_DEFAULT),
            "CA": JurisdictionRules(
                code="CA",
                max_age_ratio=2.5,
                max_rate_increase=0.10,
                approval_process="prior_approval",
                mandated_benefits=("maternity", "mental_health", "substance_abuse", "preventive_care"),
            ),
            "NY": JurisdictionRules(
                code="NY",
                max_age_ratio=2.0,
                tobacco_rating_allowed=False,
                max_rate_increase=0.15,
                filing_frequency="quarterly",
                mandated_benefits=(
                    "maternity",
                    "mental_health",
                    "substance_abuse",
                    "preventive_care",
                    "infertility",
                ),
            ),
            "TX": JurisdictionRules(code="TX", max_age_ratio=3.0, max_rate_increase=0.20),
        }
    )


def get_jurisdiction_rules(
    code: Optional[str],
    registry: Optional[Mapping[str, JurisdictionRules]] = None,
) -> JurisdictionRules:
    """Rules for a state code; unknown codes get the federal default rule set."""
    registry = registry if registry is not None else default_jurisdictions()
    if code and code.upper() in registry:
        return registry[code.upper()]
    return registry[FEDERAL_DEFAULT]


@dataclass(frozen=True)
class Scenario:
    name: str
    value: float
    probability: float


@dataclass(frozen=True)
class SensitivityAssumptions:
    trend_scenarios: Tuple[Scenario, ...] = (
        Scenario("Low Trend", 0.04, 0.15),
        Scenario("Base Trend", 0.064, 0.60),
        Scenario("High Trend", 0.08, 0.25),
    )
    utilization_scenarios: Tuple[Scenario, ...] = (
        Scenario("Reduced Utilization", -0.05, 0.20),
        Scenario("Base Utilization", 0.0, 0.65),
        Scenario("Increased Utilization", 0.05, 0.15),
    )
    investment_scenarios: Tuple[Scenario, ...] = (
        Scenario("Low Returns", 0.02, 0.30),
        Scenario("Base Returns", 0.04, 0.50),
        Scenario("High Returns", 0.06, 0.20),
    )
    risk_mix_scenarios: Tuple[Scenario, ...] = (
        Scenario("Favorable Risk Mix", -10.0, 0.25),
        Scenario("Base Risk Mix", 0.0, 0.60),
        Scenario("Adverse Risk Mix", 15.0, 0.15),
    )

    base_trend: float = 0.064
    base_investment_return: float = 0.04

    # Share of an investment-return change passed through to rates
    investment_pass_through: float = 0.75

    # Percent rate impact per risk score point
    risk_score_elasticity: float = 0.6
