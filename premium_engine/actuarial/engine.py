# premium_engine/actuarial/engine.py
"""
Actuarial rate engine.

Single source of truth for a rate filing:
- demographics + benefit design -> base rates
- base rates -> expense loadings -> loaded rates
- loaded rates -> compliance validation (clamping) -> certified rates
- certification, sensitivity analysis and recommendations
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional, Tuple

from premium_engine.actuarial.base_rates import CostComponents, build_base_rates
from premium_engine.actuarial.certification import (
    ActuarialCertification,
    ActuarialRecommendation,
    CertificationDocument,
    generate_actuarial_certification,
    generate_actuarial_recommendations,
    generate_pricing_certification,
)
from premium_engine.actuarial.compliance import ComplianceReport, validate_compliance
from premium_engine.actuarial.config import (
    ActuarialAssumptions,
    JurisdictionRules,
    LoadingSchedule,
    SensitivityAssumptions,
    get_jurisdiction_rules,
)
from premium_engine.actuarial.loadings import apply_expense_loadings
from premium_engine.actuarial.schemas import ActuarialRateInput, BaseRateStructure, LoadedRateStructure
from premium_engine.actuarial.sensitivity import SensitivityAnalysis, perform_sensitivity_analysis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActuarialRateResult:
    jurisdiction: JurisdictionRules
    cost_components: CostComponents
    base_rates: BaseRateStructure
    loaded_rates: LoadedRateStructure
    certified_rates: BaseRateStructure
    compliance: ComplianceReport
    certification: ActuarialCertification
    certification_document: CertificationDocument
    sensitivity: SensitivityAnalysis
    recommendations: Tuple[ActuarialRecommendation, ...]


def calculate_actuarial_rates(
    rate_input: ActuarialRateInput,
    *,
    assumptions: Optional[ActuarialAssumptions] = None,
    loadings: Optional[LoadingSchedule] = None,
    jurisdictions: Optional[Mapping[str, JurisdictionRules]] = None,
    sensitivity: Optional[SensitivityAssumptions] = None,
    certification_date: Optional[date] = None,
) -> ActuarialRateResult:
    """
    Build, load, validate and certify rates for one filing.

    Configuration errors (e.g. total loading >= 1) propagate to the caller.
    Compliance findings never raise; they are on result.compliance.
    """
    assumptions = assumptions or ActuarialAssumptions()
    rules = get_jurisdiction_rules(rate_input.jurisdiction, jurisdictions)

    base_rates, components = build_base_rates(rate_input, rules, assumptions)
    loaded = apply_expense_loadings(base_rates, loadings)

    certified_rates, compliance = validate_compliance(
        loaded.final_rates,
        rules,
        market_segment=rate_input.market_segment,
        covered_benefits=rate_input.covered_benefits,
        prior_pmpm=rate_input.prior_pmpm,
        assumptions=assumptions,
    )

    certification = generate_actuarial_certification(
        loaded,
        components,
        compliance,
        assumptions=assumptions,
        certification_date=certification_date,
    )
    document = generate_pricing_certification(rate_input, certified_rates.per_member_per_month, certification)

    analysis = perform_sensitivity_analysis(
        certified_rates.per_member_per_month,
        projection_years=rate_input.projection_years,
        assumptions=sensitivity,
    )

    logger.info(
        "Actuarial rates for company %s period %s (%s): base %.2f PMPM, loaded %.2f PMPM, %d finding(s)",
        rate_input.company_id,
        rate_input.period_id,
        rules.code,
        base_rates.per_member_per_month,
        certified_rates.per_member_per_month,
        len(compliance.violations),
    )

    return ActuarialRateResult(
        jurisdiction=rules,
        cost_components=components,
        base_rates=base_rates,
        loaded_rates=loaded,
        certified_rates=certified_rates,
        compliance=compliance,
        certification=certification,
        certification_document=document,
        sensitivity=analysis,
        recommendations=generate_actuarial_recommendations(compliance),
    )
