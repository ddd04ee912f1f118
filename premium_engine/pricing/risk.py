# premium_engine/pricing/risk.py
"""
Risk tier lookup.

Provides:
- single score -> (multiplier, tier, confidence)
- group aggregation over the members whose assessment could be resolved

Notes:
- The lookup is a step function over the configured risk matrix; scores
  below every threshold get the neutral multiplier.
- Aggregation is a policy knob (simple mean by default, weighted on request).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import numpy as np

from premium_engine.pricing.config import PricingConfig, RiskAggregation, RiskTierRow

NEUTRAL_TIER = "Standard"


@dataclass(frozen=True)
class RiskTier:
    multiplier: float
    tier: str
    confidence: float


@dataclass(frozen=True)
class GroupRiskAdjustment:
    multiplier: float
    tier: str
    confidence: float
    mean_score: Optional[float]
    resolved: int
    total: int


def lookup_risk_tier(score: float, cfg: Optional[PricingConfig] = None) -> RiskTier:
    """
    Highest-threshold row whose min_score <= score.

    Default matrix:
    - Preferred  : score < 30   -> 0.85
    - Standard   : 30 <= s < 50 -> 1.00
    - Substandard: 50 <= s < 75 -> 1.35
    - High-risk  : s >= 75      -> 1.85
    """
    cfg = cfg or PricingConfig()
    match: Optional[RiskTierRow] = None
    for row in cfg.risk_matrix:
        if row.min_score <= score:
            match = row
        else:
            break
    if match is None:
        return RiskTier(multiplier=1.0, tier=NEUTRAL_TIER, confidence=cfg.confidence.risk_unresolved)
    return RiskTier(multiplier=float(match.multiplier), tier=match.tier, confidence=float(match.confidence))


def calculate_risk_adjustment_factor(score: float, cfg: Optional[PricingConfig] = None) -> float:
    return lookup_risk_tier(score, cfg).multiplier


def aggregate_group_risk(
    scores: Sequence[Optional[float]],
    cfg: Optional[PricingConfig] = None,
    *,
    weights: Optional[Mapping[int, float]] = None,
) -> GroupRiskAdjustment:
    """
    Aggregate member risk scores into one multiplier.

    scores: one entry per requested member; None marks an assessment that
            could not be resolved and is skipped.
    weights: positional weights used when cfg.risk_aggregation is WEIGHTED;
             members without a weight count as 1.0.
    """
    cfg = cfg or PricingConfig()
    conf = cfg.confidence
    total = len(scores)

    if total == 0:
        return GroupRiskAdjustment(
            multiplier=1.0,
            tier=NEUTRAL_TIER,
            confidence=conf.risk_not_assessed,
            mean_score=None,
            resolved=0,
            total=0,
        )

    idx = [i for i, s in enumerate(scores) if s is not None]
    if not idx:
        return GroupRiskAdjustment(
            multiplier=1.0,
            tier=NEUTRAL_TIER,
            confidence=conf.risk_unresolved,
            mean_score=None,
            resolved=0,
            total=total,
        )

    resolved = np.array([float(scores[i]) for i in idx], dtype=float)  # type: ignore[arg-type]
    if cfg.risk_aggregation is RiskAggregation.WEIGHTED and weights:
        w = np.array([float(weights.get(i, 1.0)) for i in idx], dtype=float)
        mean_score = float(np.average(resolved, weights=w)) if w.sum() > 0 else float(resolved.mean())
    else:
        mean_score = float(resolved.mean())

    tier = lookup_risk_tier(mean_score, cfg)
    confidence = min(conf.risk_ceiling, conf.risk_unresolved + (len(idx) / total) * 45)

    return GroupRiskAdjustment(
        multiplier=tier.multiplier,
        tier=tier.tier,
        confidence=float(confidence),
        mean_score=mean_score,
        resolved=len(idx),
        total=total,
    )
