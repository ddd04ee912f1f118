# premium_engine/pricing/premium.py
"""
Premium composition and the premium result object.

Provides:
- adjustment factors with provenance
- factor composition (multiplicative, discounts, additive tax)
- confidence scoring
- the immutable PremiumResult

Notes:
- Factors multiply, except discounts, which compose as (1 - sum(discounts)),
  and tax, which is an amount added to the adjusted subtotal.
- A result is never updated; a recalculation creates a new result with a new id.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

import numpy as np

from premium_engine.pricing.config import ConfidenceDefaults
from premium_engine.utils.money import round_half_up


class FactorKind(str, Enum):
    BASE = "base"
    RISK = "risk"
    DEMOGRAPHIC = "demographic"
    FAMILY = "family"
    GEOGRAPHIC = "geographic"
    INFLATION = "inflation"
    EXPERIENCE = "experience"
    DISCOUNT = "discount"
    LOADING = "loading"
    TAX = "tax"


class Methodology(str, Enum):
    STANDARD = "standard"
    RISK_ADJUSTED = "risk-adjusted"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class AdjustmentFactor:
    name: str
    value: float
    kind: FactorKind

    def __post_init__(self) -> None:
        if not np.isfinite(self.value) or self.value < 0:
            raise ValueError(f"Adjustment factor '{self.name}' must be a finite value >= 0, got: {self.value}")
        if self.kind is FactorKind.DISCOUNT:
            object.__setattr__(self, "value", float(np.clip(self.value, 0.0, 1.0)))

    @property
    def is_multiplicative(self) -> bool:
        return self.kind not in (FactorKind.DISCOUNT, FactorKind.TAX, FactorKind.BASE)


@dataclass(frozen=True)
class ConfidenceFactor:
    factor: str
    impact: str  # high / medium / low
    score: float
    description: str = ""


def calculate_premium_confidence(
    factors: Sequence[ConfidenceFactor],
    defaults: Optional[ConfidenceDefaults] = None,
) -> int:
    """
    Weighted mean of factor scores, weights {high: 3, medium: 2, low: 1},
    rounded half-up. No factors -> 75.
    """
    defaults = defaults or ConfidenceDefaults()
    if not factors:
        return int(defaults.empty)

    weights = np.array([defaults.impact_weights[f.impact] for f in factors], dtype=float)
    scores = np.array([f.score for f in factors], dtype=float)
    if weights.sum() <= 0:
        return int(defaults.empty)
    return round_half_up(float(np.dot(scores, weights) / weights.sum()))


def compose_subtotal(base_premium: float, factors: Iterable[AdjustmentFactor]) -> float:
    """
    base * prod(multiplicative factors) * (1 - sum(discounts)), discounts clamped to [0, 1].
    Tax factors are ignored here (see apply_tax).
    """
    product = 1.0
    discounts = 0.0
    for f in factors:
        if f.kind is FactorKind.DISCOUNT:
            discounts += f.value
        elif f.is_multiplicative:
            product *= f.value
    discounts = float(np.clip(discounts, 0.0, 1.0))
    return float(base_premium) * product * (1.0 - discounts)


def apply_tax(subtotal: float, tax_rate: float) -> Tuple[float, float]:
    """Return (tax amount, total)."""
    if tax_rate < 0:
        raise ValueError(f"tax_rate must be >= 0, got: {tax_rate}")
    tax = subtotal * tax_rate
    return tax, subtotal + tax


@dataclass(frozen=True)
class PremiumMetadata:
    calculation_version: str
    data_quality: float
    assumptions: Tuple[str, ...] = ()
    confidence_factors: Tuple[ConfidenceFactor, ...] = ()
    regulatory_notes: Tuple[str, ...] = ()
    risk_tier: Optional[str] = None
    failed_stage: Optional[str] = None
    calculated_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc), compare=False
    )


@dataclass(frozen=True)
class PremiumResult:
    currency: str
    base_premium: float
    adjusted_premium: float  # subtotal before tax
    tax_amount: float
    final_premium: float
    breakdown: Tuple[AdjustmentFactor, ...]
    methodology: Methodology
    confidence: int
    states: Tuple[str, ...]
    metadata: PremiumMetadata
    result_id: str = field(default_factory=lambda: str(uuid.uuid4()), compare=False)

    def factor(self, name: str) -> AdjustmentFactor:
        for f in self.breakdown:
            if f.name == name:
                return f
        raise KeyError(f"No factor named '{name}' in breakdown: {[f.name for f in self.breakdown]}")

    def factor_value(self, name: str) -> float:
        return self.factor(name).value

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["methodology"] = self.methodology.value
        out["breakdown"] = [
            {"name": f.name, "value": f.value, "kind": f.kind.value} for f in self.breakdown
        ]
        out["metadata"]["calculated_at"] = self.metadata.calculated_at.isoformat()
        return out
