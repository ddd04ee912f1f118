from datetime import date

from premium_engine.actuarial.engine import calculate_actuarial_rates
from premium_engine.actuarial.filing import export_rate_filing
from premium_engine.actuarial.schemas import (
    ActuarialRateInput,
    BenefitDesign,
    DemographicProfile,
    GenderDistribution,
    HealthStatusDistribution,
)
from premium_engine.calculation.data_access import InMemoryDataSource, Period, PremiumRates, RiskAssessment
from premium_engine.calculation.schemas import CalculationInput
from premium_engine.calculation.service import PremiumCalculator
from premium_engine.pricing.schemas import Demographics, FamilyComposition, GeographicLocation
from premium_engine.utils.config import configure_logging

configure_logging()

source = InMemoryDataSource(
    active_period=Period(id=1, start_date=date(2025, 1, 1), end_date=date(2025, 12, 31)),
    rates={1: PremiumRates(period_id=1, tax_rate=0.08, principal_rate=450, spouse_rate=400, child_rate=250)},
    assessments={101: RiskAssessment(101, 22.0), 102: RiskAssessment(102, 61.0)},
)

request = CalculationInput(
    company_id=7,
    member_ids=(101, 102, 103),
    demographics=Demographics.for_ages(
        [34, 41, 29, 52],
        industry_risk="medium",
        location=GeographicLocation(state="TX", region="urban"),
    ),
    family=FamilyComposition(principal=1, spouse=1, children=2),
    projection_years=1,
)

calculator = PremiumCalculator(source)
result = calculator.calculate(request)
print(result.to_dict())
print("5-year path:", calculator.project_premiums(result, request.demographics, years=5))

rates = calculate_actuarial_rates(
    ActuarialRateInput(
        company_id=7,
        period_id=1,
        jurisdiction="CA",
        benefit_design=BenefitDesign(deductible=1500, coinsurance=0.2, out_of_pocket_max=6000, network_type="PPO"),
        demographic_profile=DemographicProfile(
            average_age=39,
            gender=GenderDistribution(male=0.5, female=0.5),
            health_status=HealthStatusDistribution(healthy=0.7, managed_conditions=0.2, high_risk=0.1),
        ),
    )
)
print(rates.certification_document.text)
print(export_rate_filing(rates, filing_id="smoke-CA-7"))
