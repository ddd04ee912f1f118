# premium_engine/actuarial/certification.py
"""
Actuarial certification, recommendations and the certification document.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

from premium_engine.actuarial.base_rates import CostComponents
from premium_engine.actuarial.compliance import ComplianceReport
from premium_engine.actuarial.config import ActuarialAssumptions
from premium_engine.actuarial.schemas import ActuarialRateInput, LoadedRateStructure
from premium_engine.pricing.inflation import mean_annual_trend

OPINION_STATEMENT = (
    "Based on the analysis performed, I certify that the rates shown are actuarially sound, "
    "not unfairly discriminatory, and sufficient to cover anticipated claim costs, expenses, "
    "and profit requirements, in accordance with applicable state and federal regulations."
)

QUALIFIED_OPINION_STATEMENT = (
    "The rates shown cannot be certified until the unresolved compliance findings listed "
    "in this filing are remediated and pricing is re-run."
)


@dataclass(frozen=True)
class ActuarialCertification:
    certified: bool
    certified_by: str
    credentials: str
    certification_date: date
    assumptions: Tuple[str, ...]
    methodology: str
    data_sources: Tuple[str, ...]
    limitations: Tuple[str, ...]
    opinion_statement: str


@dataclass(frozen=True)
class ActuarialRecommendation:
    category: str  # pricing / benefit_design / underwriting / compliance
    priority: str  # urgent / high / medium / low
    recommendation: str
    rationale: str
    expected_impact: str
    implementation_cost: float
    timeframe: str


@dataclass(frozen=True)
class CertificationDocument:
    text: str
    supporting_documentation: Tuple[str, ...]
    required_filings: Tuple[str, ...]
    approval_checklist: Tuple[str, ...]


def generate_actuarial_certification(
    loaded: LoadedRateStructure,
    components: CostComponents,
    compliance: ComplianceReport,
    *,
    assumptions: Optional[ActuarialAssumptions] = None,
    certification_date: Optional[date] = None,
    certified_by: str = "Senior Actuary",
    credentials: str = "FSA, MAAA",
) -> ActuarialCertification:
    a = assumptions or ActuarialAssumptions()
    load = dict(loaded.loadings.items())
    certified = not compliance.unresolved
    return ActuarialCertification(
        certified=certified,
        certified_by=certified_by,
        credentials=credentials,
        certification_date=certification_date or date.today(),
        assumptions=(
            f"Baseline medical cost: {a.baseline_pmpm:.2f} PMPM",
            f"Medical trend (category mean): {mean_annual_trend(a.inflation.category_trends):.2%} annually",
            f"Trend projection factor applied: {components.inflation:.4f}",
            f"Administrative expense ratio: {load['administrative']:.1%} of premium",
            f"Target profit margin: {load['profit_margin']:.1%} of premium",
            f"Risk charge: {load['risk_charge']:.1%} of premium",
            f"Total expense load: {loaded.total_load:.1%}",
            f"Assumed claim ratio for MLR projection: {a.assumed_claim_ratio:.0%}",
            f"Experience modifier applied: {components.experience:.2f}",
        ),
        methodology="Actuarial Cost Approach with demographic and benefit design adjustments",
        data_sources=(
            "CMS Healthcare Cost Trend Data",
            "Industry Claims Experience Database",
            "Company Historical Claims Data",
            "Demographic Census Data",
        ),
        limitations=(
            "Projections based on current trend assumptions",
            "Limited by quality of historical experience data",
            "Subject to regulatory approval requirements",
            "Market conditions may impact actual experience",
        ),
        opinion_statement=OPINION_STATEMENT if certified else QUALIFIED_OPINION_STATEMENT,
    )


def generate_actuarial_recommendations(compliance: ComplianceReport) -> Tuple[ActuarialRecommendation, ...]:
    out: List[ActuarialRecommendation] = []

    if not compliance.loss_ratio_compliant:
        out.append(
            ActuarialRecommendation(
                category="pricing",
                priority="urgent",
                recommendation="Reduce expense loadings to meet minimum medical loss ratio requirements",
                rationale=(
                    f"Projected MLR of {compliance.projected_loss_ratio:.1%} is below minimum requirement "
                    f"of {compliance.minimum_loss_ratio:.0%}"
                ),
                expected_impact="Avoids MLR rebates; gross rates decrease",
                implementation_cost=5000,
                timeframe="30 days",
            )
        )

    out.append(
        ActuarialRecommendation(
            category="benefit_design",
            priority="medium",
            recommendation="Consider introducing higher deductible options to reduce premium costs",
            rationale="Higher deductibles typically reduce premiums by 15-25%",
            expected_impact="Premium reduction of 15-25% for high deductible options",
            implementation_cost=15000,
            timeframe="90 days",
        )
    )
    out.append(
        ActuarialRecommendation(
            category="underwriting",
            priority="high",
            recommendation="Enhance data collection for better risk assessment",
            rationale="Improved risk data will support more accurate pricing",
            expected_impact="5-10% improvement in pricing accuracy",
            implementation_cost=25000,
            timeframe="180 days",
        )
    )

    if not compliance.compliant:
        out.append(
            ActuarialRecommendation(
                category="compliance",
                priority="urgent",
                recommendation="Address state compliance violations immediately",
                rationale=f"{len(compliance.violations)} finding(s) must be disclosed in the rate filing",
                expected_impact="Ensure regulatory approval of rate filing",
                implementation_cost=10000,
                timeframe="15 days",
            )
        )

    return tuple(out)


def generate_pricing_certification(
    rate_input: ActuarialRateInput,
    certified_pmpm: float,
    certification: ActuarialCertification,
) -> CertificationDocument:
    text = "\n".join(
        [
            "ACTUARIAL RATE CERTIFICATION",
            "",
            f"Company ID: {rate_input.company_id}",
            f"Period: {rate_input.period_id}",
            f"Market Segment: {rate_input.market_segment}",
            f"Geographic Region: {rate_input.jurisdiction}",
            "",
            f"Rates Certified: {certified_pmpm:.2f} per member per month",
            "",
            "I hereby certify that the rates shown above are:",
            "1. Actuarially sound based on reasonable assumptions",
            "2. Not unfairly discriminatory",
            "3. Sufficient to cover anticipated costs, expenses, and profit requirements",
            "4. In compliance with applicable state and federal regulations",
            "",
            f"Status: {'CERTIFIED' if certification.certified else 'NOT CERTIFIED'}",
            f"Certified By: {certification.certified_by}",
            f"Credentials: {certification.credentials}",
            f"Date: {certification.certification_date.isoformat()}",
        ]
    )
    return CertificationDocument(
        text=text,
        supporting_documentation=(
            "Actuarial assumptions and methodology",
            "Data sources and credibility analysis",
            "Expense loading justification",
            "Compliance analysis report",
            "Sensitivity analysis results",
        ),
        required_filings=(
            "Rate filing form",
            "Actuarial certification",
            "Supporting documentation",
            "Compliance attestations",
            "Public comment responses",
        ),
        approval_checklist=(
            "State regulatory approval obtained",
            "Federal compliance verified",
            "Required documentation complete",
            "Public comment period completed",
            "Implementation timeline established",
        ),
    )
