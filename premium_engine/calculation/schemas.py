from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from premium_engine.pricing.premium import Methodology
from premium_engine.pricing.schemas import Demographics, FamilyComposition, HistoricalClaims


@dataclass(frozen=True)
class CalculationInput:
    company_id: int
    member_id: Optional[int] = None
    member_ids: Tuple[int, ...] = ()
    period_id: Optional[int] = None
    methodology: Methodology = Methodology.RISK_ADJUSTED
    include_risk_adjustment: bool = True
    demographics: Optional[Demographics] = None
    family: Optional[FamilyComposition] = None
    base_premium: Optional[float] = None
    historical_claims: Optional[HistoricalClaims] = None
    wellness_participation: Optional[float] = None
    projection_years: Optional[int] = None
    data_quality: float = 85.0
    # Risk score weights by member id, used with weighted risk aggregation
    risk_weights: Mapping[int, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "methodology", Methodology(self.methodology))
        object.__setattr__(self, "member_ids", tuple(self.member_ids))

        if self.projection_years is not None:
            if isinstance(self.projection_years, bool) or not isinstance(self.projection_years, int):
                raise ValueError(f"projection_years must be an integer, got: {self.projection_years!r}")
            if self.projection_years <= 0:
                raise ValueError(f"projection_years must be >= 1, got: {self.projection_years}")
        if not 0.0 <= self.data_quality <= 100.0:
            raise ValueError(f"data_quality must be in [0, 100], got: {self.data_quality}")
        if self.base_premium is not None and self.base_premium < 0:
            raise ValueError(f"base_premium must be >= 0, got: {self.base_premium}")

    @property
    def assessed_member_ids(self) -> Tuple[int, ...]:
        """Members whose risk assessment is requested: member_ids, else member_id."""
        if self.member_ids:
            return self.member_ids
        return (self.member_id,) if self.member_id is not None else ()
