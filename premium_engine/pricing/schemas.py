from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional

from premium_engine.pricing.config import age_band_for


@dataclass(frozen=True)
class GeographicLocation:
    state: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    region: Optional[str] = None  # urban / suburban / rural / high_cost / low_cost
    cost_index: Optional[float] = None

    def __post_init__(self) -> None:
        if self.cost_index is not None and self.cost_index < 0:
            raise ValueError(f"cost_index must be >= 0, got: {self.cost_index}")


@dataclass(frozen=True)
class Demographics:
    # Member count per age band label (see pricing.config.AGE_BANDS)
    age_distribution: Mapping[str, int] = field(default_factory=dict)
    industry_risk: Optional[str] = None  # low / medium / high
    location: Optional[GeographicLocation] = None
    group_size: int = 1
    average_age: Optional[float] = None

    def __post_init__(self) -> None:
        bad = {k: v for k, v in self.age_distribution.items() if v < 0}
        if bad:
            raise ValueError(f"age band counts must be >= 0, got: {bad}")
        if self.group_size < 0:
            raise ValueError(f"group_size must be >= 0, got: {self.group_size}")

    @classmethod
    def for_ages(
        cls,
        ages: Iterable[float],
        *,
        industry_risk: Optional[str] = None,
        location: Optional[GeographicLocation] = None,
    ) -> "Demographics":
        """Build demographics from individual member ages."""
        ages = list(ages)
        counts: Dict[str, int] = dict(Counter(age_band_for(a) for a in ages))
        return cls(
            age_distribution=counts,
            industry_risk=industry_risk,
            location=location,
            group_size=len(ages),
            average_age=(sum(ages) / len(ages)) if ages else None,
        )


@dataclass(frozen=True)
class FamilyComposition:
    principal: int = 1
    spouse: int = 0
    children: int = 0
    special_needs: int = 0
    single_parent: Optional[bool] = None

    def __post_init__(self) -> None:
        for name in ("principal", "spouse", "children", "special_needs"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got: {getattr(self, name)}")

    @property
    def family_size(self) -> int:
        return self.principal + self.spouse + self.children + self.special_needs

    @property
    def has_spouse(self) -> bool:
        return self.spouse > 0

    @property
    def is_single_parent(self) -> bool:
        if self.single_parent is not None:
            return self.single_parent
        return self.spouse == 0 and (self.children + self.special_needs) > 0


@dataclass(frozen=True)
class HistoricalClaims:
    loss_ratio: float
    total_claims: int = 0
    claim_frequency: float = 0.0
    average_claim_amount: float = 0.0
    trend_years: int = 3

    def __post_init__(self) -> None:
        if self.loss_ratio < 0:
            raise ValueError(f"loss_ratio must be >= 0, got: {self.loss_ratio}")
