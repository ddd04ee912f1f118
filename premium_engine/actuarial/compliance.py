# premium_engine/actuarial/compliance.py
"""
Regulatory compliance validator.

Checks a loaded rate structure against one jurisdiction's rules:
- age band compression  max/min <= allowed ratio   (clamps on violation)
- tobacco rating        smoker/non-smoker <= max    (clamps on violation)
- projected medical loss ratio >= minimum           (report only)
- annual rate increase vs prior PMPM <= maximum     (report only)
- essential health benefits covered                 (report only)

Violations are returned as data together with the action taken so callers
can file the required disclosures. Nothing here raises on a violation.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from premium_engine.actuarial.config import ActuarialAssumptions, JurisdictionRules
from premium_engine.actuarial.schemas import (
    ESSENTIAL_HEALTH_BENEFITS,
    AgeBandRate,
    AgeBandRates,
    BaseRateStructure,
)
from premium_engine.utils.money import truncate_currency

logger = logging.getLogger(__name__)

# Cent rounding slack when comparing a ratio of loaded rates against its cap
RATIO_TOLERANCE = 1e-4


@dataclass(frozen=True)
class ComplianceViolation:
    rule: str
    message: str
    observed: float
    limit: float
    action: str
    resolved: bool


@dataclass(frozen=True)
class ComplianceReport:
    jurisdiction: str
    market_segment: str
    violations: Tuple[ComplianceViolation, ...]
    compression_ratio: float
    tobacco_ratio: float
    projected_loss_ratio: float
    minimum_loss_ratio: float
    essential_benefits_compliant: bool
    permitted_rating_factors: Tuple[str, ...]
    required_disclosures: Tuple[str, ...]

    @property
    def compliant(self) -> bool:
        return not self.violations

    @property
    def unresolved(self) -> Tuple[ComplianceViolation, ...]:
        return tuple(v for v in self.violations if not v.resolved)

    @property
    def loss_ratio_compliant(self) -> bool:
        return self.projected_loss_ratio >= self.minimum_loss_ratio


def _clamp_age_bands(
    rates: AgeBandRates, allowed_ratio: float
) -> Tuple[AgeBandRates, Optional[ComplianceViolation]]:
    values = [b.rate for b in rates.bands]
    if not values:
        return rates, None
    if min(values) <= 0:
        # No finite ratio to clamp against
        return rates, ComplianceViolation(
            rule="age_band_compression",
            message="Age band rates include a non-positive rate; compression ratio cannot be verified",
            observed=rates.compression_ratio,
            limit=allowed_ratio,
            action="Rates not adjusted; correct the age band relative costs and re-run",
            resolved=False,
        )

    observed = max(values) / min(values)
    if observed <= allowed_ratio + RATIO_TOLERANCE:
        return rates, None

    cap = truncate_currency(min(values) * allowed_ratio)
    clamped = AgeBandRates(
        bands=tuple(
            AgeBandRate(age_band=b.age_band, rate=min(b.rate, cap), member_count=b.member_count)
            for b in rates.bands
        )
    )
    violation = ComplianceViolation(
        rule="age_band_compression",
        message=f"Age band compression ratio {observed:.2f} exceeds maximum allowed {allowed_ratio:.2f}",
        observed=observed,
        limit=allowed_ratio,
        action=f"Clamped age band rates to {cap:.2f} (lowest band x {allowed_ratio:.2f})",
        resolved=True,
    )
    return clamped, violation


def project_medical_loss_ratio(
    rates: BaseRateStructure,
    assumptions: Optional[ActuarialAssumptions] = None,
) -> float:
    """Projected annual claims / projected annual premium at the assumed claim ratio."""
    a = assumptions or ActuarialAssumptions()
    premium = rates.per_member_per_month * 12
    if premium <= 0:
        return 0.0
    claims = premium * a.assumed_claim_ratio
    return claims / premium


def required_disclosures(violations: Sequence[ComplianceViolation]) -> Tuple[str, ...]:
    out: List[str] = [
        "Rate calculation methodology assumptions",
        "Data sources and credibility factors",
        "Expense loading breakdown",
        "Profit margin assumptions",
        "Medical loss ratio projections",
    ]
    rules = {v.rule for v in violations}
    if rules & {"age_band_compression", "tobacco_rating", "rate_increase"}:
        out.append("State compliance violations and remediation plans")
    if "medical_loss_ratio" in rules:
        out.append("Medical loss ratio shortfall and rebate exposure")
    if "essential_health_benefits" in rules:
        out.append("Essential health benefit coverage gaps")
    return tuple(out)


def validate_compliance(
    rates: BaseRateStructure,
    rules: JurisdictionRules,
    *,
    market_segment: str = "small_group",
    covered_benefits: Sequence[str] = ESSENTIAL_HEALTH_BENEFITS,
    prior_pmpm: Optional[float] = None,
    assumptions: Optional[ActuarialAssumptions] = None,
) -> Tuple[BaseRateStructure, ComplianceReport]:
    """
    Return (compliant rates, report). The input structure is not modified.
    """
    violations: List[ComplianceViolation] = []

    # (a) age band compression
    age_rates, age_violation = _clamp_age_bands(rates.age_banded_rates, rules.effective_age_ratio)
    if age_violation is not None:
        violations.append(age_violation)

    # (b) tobacco ratio
    smoker_rates = rates.smoker_rates
    max_tobacco = rules.effective_tobacco_ratio
    observed_tobacco = smoker_rates.tobacco_ratio
    if observed_tobacco > max_tobacco + RATIO_TOLERANCE:
        smoker_rates = dataclasses.replace(
            smoker_rates,
            smoker=truncate_currency(smoker_rates.non_smoker * max_tobacco),
            max_tobacco_ratio=max_tobacco,
        )
        violations.append(
            ComplianceViolation(
                rule="tobacco_rating",
                message=f"Tobacco rating ratio {observed_tobacco:.2f} exceeds maximum of {max_tobacco:.2f}:1",
                observed=observed_tobacco,
                limit=max_tobacco,
                action=f"Reduced smoker rate to non-smoker rate x {max_tobacco:.2f}",
                resolved=True,
            )
        )

    adjusted = dataclasses.replace(rates, age_banded_rates=age_rates, smoker_rates=smoker_rates)

    # (c) projected medical loss ratio
    projected_mlr = project_medical_loss_ratio(adjusted, assumptions)
    minimum_mlr = rules.minimum_loss_ratio_for(market_segment)
    if projected_mlr < minimum_mlr:
        violations.append(
            ComplianceViolation(
                rule="medical_loss_ratio",
                message=(
                    f"Projected medical loss ratio {projected_mlr:.2%} is below the "
                    f"{market_segment} minimum of {minimum_mlr:.0%}"
                ),
                observed=projected_mlr,
                limit=minimum_mlr,
                action="Re-run pricing with reduced loadings; rates not adjusted",
                resolved=False,
            )
        )

    # (d) rate increase against the prior filing
    if prior_pmpm is not None and prior_pmpm > 0:
        increase = adjusted.per_member_per_month / prior_pmpm - 1.0
        if increase > rules.max_rate_increase + RATIO_TOLERANCE:
            violations.append(
                ComplianceViolation(
                    rule="rate_increase",
                    message=(
                        f"Rate increase {increase:.1%} exceeds the {rules.code} maximum of "
                        f"{rules.max_rate_increase:.0%}"
                    ),
                    observed=increase,
                    limit=rules.max_rate_increase,
                    action=f"Requires {rules.approval_process} justification; rates not adjusted",
                    resolved=False,
                )
            )

    # (e) essential health benefits
    missing = [b for b in ESSENTIAL_HEALTH_BENEFITS if b not in covered_benefits]
    for benefit in missing:
        violations.append(
            ComplianceViolation(
                rule="essential_health_benefits",
                message=f"Missing essential health benefit: {benefit.replace('_', ' ')}",
                observed=0.0,
                limit=1.0,
                action="Add benefit to plan design; rates not adjusted",
                resolved=False,
            )
        )

    if violations:
        logger.info(
            "Compliance check for %s found %d violation(s): %s",
            rules.code,
            len(violations),
            ", ".join(v.rule for v in violations),
        )

    report = ComplianceReport(
        jurisdiction=rules.code,
        market_segment=market_segment,
        violations=tuple(violations),
        compression_ratio=age_rates.compression_ratio,
        tobacco_ratio=smoker_rates.tobacco_ratio,
        projected_loss_ratio=projected_mlr,
        minimum_loss_ratio=minimum_mlr,
        essential_benefits_compliant=not missing,
        permitted_rating_factors=rules.permitted_rating_factors,
        required_disclosures=required_disclosures(violations),
    )
    return adjusted, report
