# premium_engine/actuarial/base_rates.py
"""
Actuarial base rate builder.

Computes the expected claim cost per member per month (PMPM) from an
industry baseline, then derives the rate tables filed with a regulator:
- age-banded rates (base x band relative cost)
- family tier rates (fixed multiples of the individual rate)
- smoker / non-smoker rates
- geographic rates by region and cost-index class

Multipliers applied to the baseline, in order:
age -> gender (only where permitted) -> health status -> geographic cost index
-> benefit design -> industry risk -> experience (if history) -> trend projection
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from premium_engine.actuarial.config import ActuarialAssumptions, JurisdictionRules
from premium_engine.actuarial.schemas import (
    ActuarialRateInput,
    AgeBandData,
    AgeBandRate,
    AgeBandRates,
    BaseRateStructure,
    BenefitDesign,
    DemographicProfile,
    FamilyRates,
    GenderDistribution,
    GeographicRates,
    HealthStatusDistribution,
    SmokerRates,
)
from premium_engine.pricing.adjustments import calculate_experience_rating_modifier
from premium_engine.pricing.inflation import project_inflation_factor
from premium_engine.pricing.schemas import HistoricalClaims
from premium_engine.utils.money import round_currency


@dataclass(frozen=True)
class CostComponents:
    """Each multiplier applied to the baseline, kept for certification and audit."""

    baseline: float
    age: float
    gender: float
    health_status: float
    geographic: float
    benefit_design: float
    industry: float
    experience: float
    inflation: float

    @property
    def pmpm(self) -> float:
        return round_currency(
            self.baseline
            * self.age
            * self.gender
            * self.health_status
            * self.geographic
            * self.benefit_design
            * self.industry
            * self.experience
            * self.inflation
        )


def calculate_age_cost_multiplier(average_age: float, assumptions: Optional[ActuarialAssumptions] = None) -> float:
    a = assumptions or ActuarialAssumptions()
    for upper, multiplier in a.age_cost_bands:
        if average_age <= upper:
            return multiplier
    return a.age_multiplier_max


def _weighted_mix(shares: Tuple[float, ...], multipliers: Tuple[float, ...]) -> float:
    w = np.array(shares, dtype=float)
    if w.sum() <= 0:
        return 1.0
    return float(np.average(np.array(multipliers, dtype=float), weights=w))


def calculate_gender_cost_multiplier(
    gender: GenderDistribution,
    assumptions: Optional[ActuarialAssumptions] = None,
) -> float:
    m = (assumptions or ActuarialAssumptions()).gender_multipliers
    return _weighted_mix(
        (gender.male, gender.female, gender.other),
        (m["male"], m["female"], m["other"]),
    )


def calculate_health_status_multiplier(
    health: HealthStatusDistribution,
    assumptions: Optional[ActuarialAssumptions] = None,
) -> float:
    m = (assumptions or ActuarialAssumptions()).health_status_multipliers
    return _weighted_mix(
        (health.healthy, health.managed_conditions, health.high_risk, health.chronic_conditions),
        (m["healthy"], m["managed_conditions"], m["high_risk"], m["chronic_conditions"]),
    )


def calculate_benefit_design_multiplier(
    design: BenefitDesign,
    assumptions: Optional[ActuarialAssumptions] = None,
) -> float:
    """
    Richer benefits cost more:
    - deductible   : max(0.8, 1.5 - deductible / 5000)
    - coinsurance  : 2.0 - member coinsurance share
    - out-of-pocket: max(0.9, 1.3 - oop_max / 10000)
    - network      : HMO 0.9, PPO 1.1, POS 1.0, EPO 0.95
    """
    a = assumptions or ActuarialAssumptions()
    deductible = max(a.deductible_floor, a.deductible_ceiling - design.deductible / a.deductible_scale)
    coinsurance = 2.0 - design.coinsurance
    oop = max(a.oop_floor, a.oop_ceiling - design.out_of_pocket_max / a.oop_scale)
    network = a.network_multipliers.get(design.network_type.upper(), 1.0)
    return deductible * coinsurance * oop * network


def calculate_cost_components(
    profile: DemographicProfile,
    design: BenefitDesign,
    rules: JurisdictionRules,
    *,
    historical_claims: Optional[HistoricalClaims] = None,
    projection_years: int = 1,
    assumptions: Optional[ActuarialAssumptions] = None,
) -> CostComponents:
    a = assumptions or ActuarialAssumptions()
    return CostComponents(
        baseline=a.baseline_pmpm,
        age=calculate_age_cost_multiplier(profile.average_age, a),
        gender=calculate_gender_cost_multiplier(profile.gender, a) if rules.gender_rating_allowed else 1.0,
        health_status=calculate_health_status_multiplier(profile.health_status, a),
        geographic=float(profile.geographic_cost_index),
        benefit_design=calculate_benefit_design_multiplier(design, a),
        industry=a.industry_multipliers.get(profile.industry_risk.lower(), 1.0),
        experience=calculate_experience_rating_modifier(historical_claims),
        inflation=project_inflation_factor(projection_years, assumptions=a.inflation),
    )


def calculate_age_banded_rates(
    base_rate: float,
    profile: DemographicProfile,
    assumptions: Optional[ActuarialAssumptions] = None,
) -> AgeBandRates:
    bands = profile.age_bands
    if not bands:
        a = assumptions or ActuarialAssumptions()
        bands = tuple(
            AgeBandData(min_age=lo, max_age=hi, member_count=0, relative_cost=cost)
            for lo, hi, cost in a.default_age_bands
        )
    return AgeBandRates(
        bands=tuple(
            AgeBandRate(
                age_band=band.label,
                rate=round_currency(base_rate * band.relative_cost),
                member_count=band.member_count,
            )
            for band in bands
        )
    )


def calculate_family_rates(base_rate: float, assumptions: Optional[ActuarialAssumptions] = None) -> FamilyRates:
    t = (assumptions or ActuarialAssumptions()).family_tiers
    return FamilyRates(
        individual=base_rate,
        couple=round_currency(base_rate * t.couple),
        single_parent_one_child=round_currency(base_rate * t.single_parent_one_child),
        single_parent_multiple_children=round_currency(base_rate * t.single_parent_multiple_children),
        family=round_currency(base_rate * t.family),
        per_extra_child=round_currency(base_rate * t.per_extra_child),
        special_needs=round_currency(base_rate * t.special_needs),
        family_included_children=t.family_included_children,
    )


def calculate_smoker_rates(
    base_rate: float,
    rules: JurisdictionRules,
    surcharge: Optional[float] = None,
    assumptions: Optional[ActuarialAssumptions] = None,
) -> SmokerRates:
    """
    nonSmoker = base, smoker = base * (1 + surcharge).
    The reported permitted ratio is capped at the jurisdiction maximum; the
    smoker rate itself is left for the compliance validator to clamp.
    """
    a = assumptions or ActuarialAssumptions()
    surcharge = a.tobacco_surcharge if surcharge is None else surcharge
    smoker = round_currency(base_rate * (1.0 + surcharge))
    ratio = smoker / base_rate if base_rate > 0 else 1.0
    return SmokerRates(
        non_smoker=base_rate,
        smoker=smoker,
        tobacco_surcharge=surcharge,
        max_tobacco_ratio=min(ratio, rules.effective_tobacco_ratio),
    )


def calculate_geographic_rates(base_rate: float, assumptions: Optional[ActuarialAssumptions] = None) -> GeographicRates:
    a = assumptions or ActuarialAssumptions()
    return GeographicRates(
        by_region={k: round_currency(base_rate * v) for k, v in a.region_multipliers.items()},
        by_cost_class={k: round_currency(base_rate * v) for k, v in a.cost_index_classes.items()},
    )


def build_base_rates(
    rate_input: ActuarialRateInput,
    rules: JurisdictionRules,
    assumptions: Optional[ActuarialAssumptions] = None,
) -> Tuple[BaseRateStructure, CostComponents]:
    """Return the base rate structure and the cost components behind its PMPM."""
    a = assumptions or ActuarialAssumptions()
    components = calculate_cost_components(
        rate_input.demographic_profile,
        rate_input.benefit_design,
        rules,
        historical_claims=rate_input.historical_claims,
        projection_years=rate_input.projection_years,
        assumptions=a,
    )
    pmpm = components.pmpm
    structure = BaseRateStructure(
        per_member_per_month=pmpm,
        age_banded_rates=calculate_age_banded_rates(pmpm, rate_input.demographic_profile, a),
        family_rates=calculate_family_rates(pmpm, a),
        smoker_rates=calculate_smoker_rates(pmpm, rules, rate_input.tobacco_surcharge, a),
        geographic_rates=calculate_geographic_rates(pmpm, a),
    )
    return structure, components
