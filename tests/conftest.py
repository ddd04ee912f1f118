from __future__ import annotations

import pytest

from premium_engine.actuarial.schemas import (
    ActuarialRateInput,
    BenefitDesign,
    DemographicProfile,
    GenderDistribution,
    HealthStatusDistribution,
)
from premium_engine.pricing.config import PricingConfig
from premium_engine.utils.config import EngineSettings


@pytest.fixture
def pricing_cfg() -> PricingConfig:
    return PricingConfig()


@pytest.fixture
def fast_settings() -> EngineSettings:
    return EngineSettings(max_concurrency=4, fetch_timeout_seconds=0.5)


@pytest.fixture
def benefit_design() -> BenefitDesign:
    # deductible 1.2 x coinsurance 1.8 x out-of-pocket 0.9 x PPO 1.1
    return BenefitDesign(deductible=1500, coinsurance=0.2, out_of_pocket_max=6000, network_type="PPO")


@pytest.fixture
def demographic_profile() -> DemographicProfile:
    return DemographicProfile(
        average_age=30,
        gender=GenderDistribution(male=0.5, female=0.5),
        health_status=HealthStatusDistribution(),
    )


@pytest.fixture
def make_rate_input(benefit_design, demographic_profile):
    def _make(**kwargs) -> ActuarialRateInput:
        params = dict(
            company_id=7,
            period_id=1,
            benefit_design=benefit_design,
            demographic_profile=demographic_profile,
        )
        params.update(kwargs)
        return ActuarialRateInput(**params)

    return _make
