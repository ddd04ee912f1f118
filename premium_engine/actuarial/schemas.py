from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from premium_engine.actuarial.config import LoadingSchedule
from premium_engine.pricing.schemas import FamilyComposition, HistoricalClaims
from premium_engine.utils.money import round_currency

MARKET_SEGMENTS = ("individual", "small_group", "large_group", "medicare_advantage")

ESSENTIAL_HEALTH_BENEFITS = ("hospitalization", "prescription_drugs")


# -----------------------------
# Inputs
# -----------------------------
@dataclass(frozen=True)
class BenefitDesign:
    deductible: float
    coinsurance: float  # member share, 0-1
    out_of_pocket_max: float
    network_type: str = "PPO"  # HMO / PPO / POS / EPO
    copays: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.deductible < 0 or self.out_of_pocket_max < 0:
            raise ValueError("deductible and out_of_pocket_max must be >= 0")
        if not 0.0 <= self.coinsurance <= 1.0:
            raise ValueError(f"coinsurance must be in [0, 1], got: {self.coinsurance}")


@dataclass(frozen=True)
class AgeBandData:
    min_age: int
    max_age: int
    member_count: int
    relative_cost: float

    @property
    def label(self) -> str:
        return f"{self.min_age}-{self.max_age}"


@dataclass(frozen=True)
class GenderDistribution:
    male: float = 0.0
    female: float = 0.0
    other: float = 0.0


@dataclass(frozen=True)
class HealthStatusDistribution:
    healthy: float = 0.0
    managed_conditions: float = 0.0
    high_risk: float = 0.0
    chronic_conditions: float = 0.0


@dataclass(frozen=True)
class DemographicProfile:
    average_age: float
    age_bands: Tuple[AgeBandData, ...] = ()
    gender: GenderDistribution = field(default_factory=GenderDistribution)
    health_status: HealthStatusDistribution = field(default_factory=HealthStatusDistribution)
    industry_risk: str = "medium"
    geographic_cost_index: float = 1.0

    def __post_init__(self) -> None:
        if self.geographic_cost_index < 0:
            raise ValueError(f"geographic_cost_index must be >= 0, got: {self.geographic_cost_index}")


@dataclass(frozen=True)
class ActuarialRateInput:
    company_id: int
    period_id: int
    benefit_design: BenefitDesign
    demographic_profile: DemographicProfile
    jurisdiction: str = "US"
    market_segment: str = "small_group"
    historical_claims: Optional[HistoricalClaims] = None
    projection_years: int = 1
    tobacco_surcharge: Optional[float] = None
    covered_benefits: Tuple[str, ...] = ESSENTIAL_HEALTH_BENEFITS
    prior_pmpm: Optional[float] = None

    def __post_init__(self) -> None:
        if self.market_segment not in MARKET_SEGMENTS:
            raise ValueError(f"market_segment must be one of {MARKET_SEGMENTS}, got: {self.market_segment!r}")
        if self.projection_years <= 0:
            raise ValueError(f"projection_years must be >= 1, got: {self.projection_years}")
        if self.tobacco_surcharge is not None and self.tobacco_surcharge < 0:
            raise ValueError(f"tobacco_surcharge must be >= 0, got: {self.tobacco_surcharge}")


# -----------------------------
# Rate tables
# -----------------------------
@dataclass(frozen=True)
class AgeBandRate:
    age_band: str
    rate: float
    member_count: int


@dataclass(frozen=True)
class AgeBandRates:
    bands: Tuple[AgeBandRate, ...]

    @property
    def compression_ratio(self) -> float:
        rates = [b.rate for b in self.bands]
        if not rates:
            return 1.0
        if min(rates) <= 0:
            return float("inf")
        return max(rates) / min(rates)


@dataclass(frozen=True)
class FamilyRates:
    individual: float
    couple: float
    single_parent_one_child: float
    single_parent_multiple_children: float
    family: float
    per_extra_child: float
    special_needs: float
    family_included_children: int = 3
    tier_structure: str = "ageRated"

    def tier_for(self, composition: FamilyComposition) -> str:
        dependents = composition.children + composition.special_needs
        if composition.has_spouse:
            return "family" if dependents > 0 else "couple"
        if dependents == 0:
            return "individual"
        return "single_parent_one_child" if dependents == 1 else "single_parent_multiple_children"

    def rate_for(self, composition: FamilyComposition) -> float:
        """Tier rate plus per-extra-child and special-needs loadings."""
        tier = self.tier_for(composition)
        rate = float(getattr(self, tier))
        if tier in ("family", "single_parent_multiple_children"):
            extra = max(0, composition.children - self.family_included_children)
            rate += extra * self.per_extra_child
        rate += composition.special_needs * self.special_needs
        return round_currency(rate)


@dataclass(frozen=True)
class SmokerRates:
    non_smoker: float
    smoker: float
    tobacco_surcharge: float
    max_tobacco_ratio: float

    @property
    def tobacco_ratio(self) -> float:
        if self.non_smoker <= 0:
            return 1.0
        return self.smoker / self.non_smoker


@dataclass(frozen=True)
class GeographicRates:
    by_region: Mapping[str, float]
    by_cost_class: Mapping[str, float]


@dataclass(frozen=True)
class BaseRateStructure:
    per_member_per_month: float
    age_banded_rates: AgeBandRates
    family_rates: FamilyRates
    smoker_rates: SmokerRates
    geographic_rates: GeographicRates

    def scaled(self, factor: float) -> "BaseRateStructure":
        """Every rate multiplied by factor and rounded to cents."""
        return self.map_rates(lambda r: round_currency(r * factor))

    def map_rates(self, fn: Callable[[float], float]) -> "BaseRateStructure":
        fam = self.family_rates
        smk = self.smoker_rates
        geo = self.geographic_rates
        return BaseRateStructure(
            per_member_per_month=fn(self.per_member_per_month),
            age_banded_rates=AgeBandRates(
                bands=tuple(
                    AgeBandRate(age_band=b.age_band, rate=fn(b.rate), member_count=b.member_count)
                    for b in self.age_banded_rates.bands
                )
            ),
            family_rates=FamilyRates(
                individual=fn(fam.individual),
                couple=fn(fam.couple),
                single_parent_one_child=fn(fam.single_parent_one_child),
                single_parent_multiple_children=fn(fam.single_parent_multiple_children),
                family=fn(fam.family),
                per_extra_child=fn(fam.per_extra_child),
                special_needs=fn(fam.special_needs),
                family_included_children=fam.family_included_children,
                tier_structure=fam.tier_structure,
            ),
            smoker_rates=SmokerRates(
                non_smoker=fn(smk.non_smoker),
                smoker=fn(smk.smoker),
                tobacco_surcharge=smk.tobacco_surcharge,
                max_tobacco_ratio=smk.max_tobacco_ratio,
            ),
            geographic_rates=GeographicRates(
                by_region={k: fn(v) for k, v in geo.by_region.items()},
                by_cost_class={k: fn(v) for k, v in geo.by_cost_class.items()},
            ),
        )


@dataclass(frozen=True)
class LoadedRateStructure:
    loadings: LoadingSchedule
    total_load: float
    loading_factor: float
    final_rates: BaseRateStructure

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.loadings.items())
        out["total_load"] = self.total_load
        out["loading_factor"] = self.loading_factor
        out["per_member_per_month"] = self.final_rates.per_member_per_month
        return out
