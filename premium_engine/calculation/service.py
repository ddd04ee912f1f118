# premium_engine/calculation/service.py
"""
Premium calculation orchestrator.

Single source of truth for a premium request:
- prefetch (async, soft-failing): active period, period rates, claims history,
  member risk assessments (concurrent, capped, per-call timeout)
- pure pipeline: base -> risk -> demographic/family -> geographic -> inflation
  -> experience -> discounts + loading -> tax -> confidence
- any stage exception downgrades the request to the standard calculation

Notes:
- The orchestrator owns all I/O. Stages only read the fetched snapshot.
- Fallback is an explicit state on the result, never a silent default.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

import numpy as np

from premium_engine.actuarial.config import LoadingSchedule
from premium_engine.actuarial.loadings import loading_factor
from premium_engine.calculation.data_access import PremiumDataSource, PremiumRates
from premium_engine.calculation.schemas import CalculationInput
from premium_engine.errors import ConfigurationError, StageError
from premium_engine.pricing.adjustments import (
    calculate_demographic_adjustment,
    calculate_experience_rating_modifier,
    calculate_family_structure_adjustment,
    calculate_geographic_adjustment,
    calculate_group_size_discount,
    calculate_wellness_discount,
)
from premium_engine.pricing.config import MemberRateSchedule, PricingConfig, merge_overrides
from premium_engine.pricing.inflation import generate_actuarial_projections, project_inflation_factor
from premium_engine.pricing.premium import (
    AdjustmentFactor,
    ConfidenceFactor,
    FactorKind,
    Methodology,
    PremiumMetadata,
    PremiumResult,
    apply_tax,
    calculate_premium_confidence,
    compose_subtotal,
)
from premium_engine.pricing.risk import GroupRiskAdjustment, aggregate_group_risk
from premium_engine.pricing.schemas import Demographics, FamilyComposition, HistoricalClaims
from premium_engine.utils.config import EngineSettings, get_engine_settings
from premium_engine.utils.money import round_currency

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CalculationState(str, Enum):
    INIT = "Init"
    BASE_RATE_COMPUTED = "BaseRateComputed"
    RISK_ADJUSTED = "RiskAdjusted"
    DEMOGRAPHIC_ADJUSTED = "DemographicAdjusted"
    GEO_ADJUSTED = "GeoAdjusted"
    INFLATION_ADJUSTED = "InflationAdjusted"
    EXPERIENCE_ADJUSTED = "ExperienceAdjusted"
    LOADED = "Loaded"
    TAXED = "Taxed"
    CERTIFIED = "Certified"
    FALLBACK = "Fallback"


# Standard calculation breakdown between base_rate and tax
NEUTRAL_FACTORS: Tuple[AdjustmentFactor, ...] = (
    AdjustmentFactor("risk_adjustment", 1.0, FactorKind.RISK),
    AdjustmentFactor("demographic_adjustment", 1.0, FactorKind.DEMOGRAPHIC),
    AdjustmentFactor("family_adjustment", 1.0, FactorKind.FAMILY),
    AdjustmentFactor("geographic_adjustment", 1.0, FactorKind.GEOGRAPHIC),
    AdjustmentFactor("inflation_adjustment", 1.0, FactorKind.INFLATION),
    AdjustmentFactor("experience_adjustment", 1.0, FactorKind.EXPERIENCE),
    AdjustmentFactor("wellness_discount", 0.0, FactorKind.DISCOUNT),
    AdjustmentFactor("group_size_discount", 0.0, FactorKind.DISCOUNT),
    AdjustmentFactor("expense_loading", 1.0, FactorKind.LOADING),
)


def _usable_amount(value: Any) -> Optional[float]:
    """float(value) when it is a finite number >= 0, else None."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    return v if np.isfinite(v) and v >= 0 else None


def _schedule_premium(family: Optional[FamilyComposition], schedule: MemberRateSchedule) -> float:
    fam = family or FamilyComposition()
    return (
        fam.principal * schedule.principal_rate
        + fam.spouse * schedule.spouse_rate
        + fam.children * schedule.child_rate
        + fam.special_needs * schedule.special_needs_rate
    )


@dataclass(frozen=True)
class FetchedData:
    """Read-only snapshot the pipeline works from."""

    period_id: Optional[int]
    rates: Optional[PremiumRates]
    historical_claims: Optional[HistoricalClaims]
    risk_scores: Tuple[Optional[float], ...]
    notes: Tuple[str, ...] = ()


class PremiumCalculator:
    def __init__(
        self,
        data_source: PremiumDataSource,
        config: Optional[PricingConfig] = None,
        loadings: Optional[LoadingSchedule] = None,
        settings: Optional[EngineSettings] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._data_source = data_source
        self._config = merge_overrides(config or PricingConfig(), overrides)
        self._loadings = loadings or LoadingSchedule()
        # Raises ConfigurationError for an invalid schedule before any request is served
        self._loading_factor = loading_factor(self._loadings)
        self._settings = settings or get_engine_settings()

    @property
    def config(self) -> PricingConfig:
        return self._config

    def calculate(
        self,
        calculation_input: CalculationInput,
        *,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> PremiumResult:
        """Synchronous entry point. Must not be called from a running event loop."""
        return asyncio.run(self.calculate_async(calculation_input, overrides=overrides))

    async def calculate_async(
        self,
        calculation_input: CalculationInput,
        *,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> PremiumResult:
        cfg = merge_overrides(self._config, overrides)
        data = await self._prefetch(calculation_input)

        if calculation_input.methodology is Methodology.STANDARD:
            return self._standard_result(calculation_input, data, cfg, states=[CalculationState.INIT])

        states: List[CalculationState] = [CalculationState.INIT]
        try:
            return self._run_pipeline(calculation_input, data, cfg, states)
        except StageError as e:
            logger.exception(
                "Premium pipeline failed at stage %s for company %s; using standard calculation",
                e.stage,
                calculation_input.company_id,
            )
            return self._standard_result(calculation_input, data, cfg, states=states, failed_stage=e.stage)

    def project_premiums(
        self,
        result: PremiumResult,
        demographics: Optional[Demographics] = None,
        years: int = 5,
        *,
        seed: Optional[int] = None,
    ) -> List[float]:
        """Multi-year path starting from a result's pre-tax premium."""
        return generate_actuarial_projections(
            result.adjusted_premium,
            demographics,
            years,
            assumptions=self._config.inflation,
            seed=seed,
        )

    # -----------------------------
    # Prefetch (I/O)
    # -----------------------------
    async def _soft(self, what: str, call: Awaitable[T]) -> Optional[T]:
        try:
            return await asyncio.wait_for(call, timeout=self._settings.fetch_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Timed out fetching %s after %.1fs", what, self._settings.fetch_timeout_seconds)
        except Exception as e:
            logger.warning("Failed fetching %s: %s", what, e)
        return None

    async def _fetch_risk_scores(self, member_ids: Tuple[int, ...]) -> Tuple[Optional[float], ...]:
        semaphore = asyncio.Semaphore(self._settings.max_concurrency)

        async def one(member_id: int) -> Optional[float]:
            async with semaphore:
                assessment = await self._soft(
                    f"risk assessment for member {member_id}",
                    self._data_source.get_risk_assessment(member_id),
                )
            if assessment is None:
                logger.warning("No risk assessment resolved for member %s; skipping", member_id)
                return None
            score = _usable_amount(assessment.overall_risk_score)
            if score is None:
                logger.warning(
                    "Unusable risk score %r for member %s; skipping",
                    assessment.overall_risk_score,
                    member_id,
                )
            return score

        return tuple(await asyncio.gather(*(one(m) for m in member_ids)))

    async def _prefetch(self, inp: CalculationInput) -> FetchedData:
        notes: List[str] = []

        period_id = inp.period_id
        if period_id is None:
            period = await self._soft("active period", self._data_source.get_active_period())
            if period is not None:
                period_id = period.id
            else:
                notes.append("No active period found; default rates applied")

        rates = None
        if period_id is not None:
            rates = await self._soft(
                f"premium rates for period {period_id}",
                self._data_source.get_premium_rate_by_period(period_id),
            )
            if rates is None:
                notes.append(f"No premium rates for period {period_id}; default rates applied")

        claims = inp.historical_claims
        if claims is None and period_id is not None:
            claims = await self._soft(
                f"claims history for company {inp.company_id}",
                self._data_source.get_historical_claims(inp.company_id, period_id),
            )

        scores: Tuple[Optional[float], ...] = ()
        member_ids = inp.assessed_member_ids
        if inp.methodology is not Methodology.STANDARD and inp.include_risk_adjustment and member_ids:
            scores = await self._fetch_risk_scores(member_ids)
            missing = sum(1 for s in scores if s is None)
            if missing:
                notes.append(f"Risk assessment unavailable for {missing} of {len(scores)} member(s)")

        return FetchedData(
            period_id=period_id,
            rates=rates,
            historical_claims=claims,
            risk_scores=scores,
            notes=tuple(notes),
        )

    # -----------------------------
    # Pure pipeline
    # -----------------------------
    def _tax_rate(self, data: FetchedData, cfg: PricingConfig) -> float:
        if data.rates is not None and data.rates.tax_rate is not None:
            return float(data.rates.tax_rate)
        return cfg.default_tax_rate

    def _base_premium(self, inp: CalculationInput, data: FetchedData, cfg: PricingConfig) -> float:
        """Explicit base, else member-type counts x period rates (missing rates from the default schedule)."""
        if inp.base_premium is not None:
            return float(inp.base_premium)

        schedule: MemberRateSchedule = cfg.default_rate_schedule
        if data.rates is not None:
            schedule = data.rates.member_schedule(schedule)
        return _schedule_premium(inp.family, schedule)

    @staticmethod
    def _stage(state: CalculationState, fn: Callable[..., T], *args: Any) -> T:
        try:
            return fn(*args)
        except ConfigurationError:
            raise
        except Exception as e:
            raise StageError(state.value, e) from e

    def _factor(self, state: CalculationState, name: str, value: float, kind: FactorKind) -> AdjustmentFactor:
        return self._stage(state, AdjustmentFactor, name, value, kind)

    def _run_pipeline(
        self,
        inp: CalculationInput,
        data: FetchedData,
        cfg: PricingConfig,
        states: List[CalculationState],
    ) -> PremiumResult:
        factors: List[AdjustmentFactor] = []
        demographics = inp.demographics
        location = demographics.location if demographics is not None else None

        s = CalculationState

        base = self._stage(s.BASE_RATE_COMPUTED, self._base_premium, inp, data, cfg)
        factors.append(self._factor(s.BASE_RATE_COMPUTED, "base_rate", base, FactorKind.BASE))
        states.append(s.BASE_RATE_COMPUTED)

        risk = self._stage(s.RISK_ADJUSTED, self._risk_adjustment, inp, data, cfg)
        factors.append(self._factor(s.RISK_ADJUSTED, "risk_adjustment", risk.multiplier, FactorKind.RISK))
        states.append(s.RISK_ADJUSTED)

        demographic = self._stage(s.DEMOGRAPHIC_ADJUSTED, calculate_demographic_adjustment, demographics, cfg)
        family = self._stage(s.DEMOGRAPHIC_ADJUSTED, calculate_family_structure_adjustment, inp.family, cfg)
        factors.append(
            self._factor(s.DEMOGRAPHIC_ADJUSTED, "demographic_adjustment", demographic, FactorKind.DEMOGRAPHIC)
        )
        factors.append(self._factor(s.DEMOGRAPHIC_ADJUSTED, "family_adjustment", family, FactorKind.FAMILY))
        states.append(s.DEMOGRAPHIC_ADJUSTED)

        geographic = self._stage(s.GEO_ADJUSTED, calculate_geographic_adjustment, location, cfg)
        factors.append(self._factor(s.GEO_ADJUSTED, "geographic_adjustment", geographic, FactorKind.GEOGRAPHIC))
        states.append(s.GEO_ADJUSTED)

        inflation = self._stage(s.INFLATION_ADJUSTED, self._inflation_factor, inp, cfg)
        factors.append(self._factor(s.INFLATION_ADJUSTED, "inflation_adjustment", inflation, FactorKind.INFLATION))
        states.append(s.INFLATION_ADJUSTED)

        experience = self._stage(
            s.EXPERIENCE_ADJUSTED, calculate_experience_rating_modifier, data.historical_claims, cfg
        )
        factors.append(
            self._factor(s.EXPERIENCE_ADJUSTED, "experience_adjustment", experience, FactorKind.EXPERIENCE)
        )
        states.append(s.EXPERIENCE_ADJUSTED)

        group_size = demographics.group_size if demographics is not None else 1
        wellness = self._stage(s.LOADED, calculate_wellness_discount, inp.wellness_participation, cfg)
        group = self._stage(s.LOADED, calculate_group_size_discount, group_size, cfg)
        factors.append(self._factor(s.LOADED, "wellness_discount", wellness, FactorKind.DISCOUNT))
        factors.append(self._factor(s.LOADED, "group_size_discount", group, FactorKind.DISCOUNT))
        factors.append(self._factor(s.LOADED, "expense_loading", self._loading_factor, FactorKind.LOADING))
        risk_subtotal = self._stage(s.LOADED, compose_subtotal, base, factors)
        states.append(s.LOADED)

        assumptions: List[str] = [
            f"Expense loading factor {self._loading_factor:.4f} (total load {self._loadings.total_load:.1%})",
            (
                f"Inflation projected over {inp.projection_years} year(s)"
                if inp.projection_years is not None
                else "Priced for the current period (no inflation projection)"
            ),
        ]

        subtotal = risk_subtotal
        if inp.methodology is Methodology.HYBRID:
            w = cfg.hybrid_risk_weight
            subtotal = (1.0 - w) * base + w * risk_subtotal
            assumptions.append(f"Hybrid blend: {1.0 - w:.0%} standard / {w:.0%} risk-adjusted")

        tax_rate = self._stage(s.TAXED, self._tax_rate, data, cfg)
        adjusted = self._stage(s.TAXED, round_currency, subtotal)
        tax, total = self._stage(s.TAXED, apply_tax, adjusted, tax_rate)
        factors.append(self._factor(s.TAXED, "tax", tax_rate, FactorKind.TAX))
        states.append(s.TAXED)
        assumptions.append(f"Premium tax rate {tax_rate:.2%}")

        conf = cfg.confidence
        has_history = data.historical_claims is not None
        confidence_factors = (
            ConfidenceFactor("Base Premium", "high", conf.base_premium, "Standard calculation"),
            ConfidenceFactor("Risk Assessment", "high", risk.confidence, "Individual risk scoring"),
            ConfidenceFactor("Demographic Data", "medium", inp.data_quality, "Age and location data"),
            ConfidenceFactor("Inflation Factors", "medium", cfg.inflation.confidence_level, "CMS trend data"),
            ConfidenceFactor(
                "Experience Rating",
                "low",
                conf.experience_with_history if has_history else conf.experience_without_history,
                "Claims history",
            ),
        )
        confidence = self._stage(s.CERTIFIED, calculate_premium_confidence, confidence_factors, conf)
        states.append(s.CERTIFIED)

        logger.info(
            "Premium for company %s (%s): base %.2f, adjusted %.2f, final %.2f, confidence %d",
            inp.company_id,
            inp.methodology.value,
            base,
            adjusted,
            total,
            confidence,
        )

        return PremiumResult(
            currency=cfg.currency,
            base_premium=round_currency(base),
            adjusted_premium=adjusted,
            tax_amount=round_currency(tax),
            final_premium=round_currency(total),
            breakdown=tuple(factors),
            methodology=inp.methodology,
            confidence=confidence,
            states=tuple(s.value for s in states),
            metadata=PremiumMetadata(
                calculation_version=self._settings.calculation_version,
                data_quality=inp.data_quality,
                assumptions=tuple(assumptions),
                confidence_factors=confidence_factors,
                regulatory_notes=data.notes,
                risk_tier=risk.tier,
            ),
        )

    def _risk_adjustment(self, inp: CalculationInput, data: FetchedData, cfg: PricingConfig) -> GroupRiskAdjustment:
        if not inp.include_risk_adjustment or not inp.assessed_member_ids:
            return aggregate_group_risk((), cfg)
        weights = {i: inp.risk_weights[m] for i, m in enumerate(inp.assessed_member_ids) if m in inp.risk_weights}
        return aggregate_group_risk(data.risk_scores, cfg, weights=weights)

    def _inflation_factor(self, inp: CalculationInput, cfg: PricingConfig) -> float:
        if inp.projection_years is None:
            return 1.0
        location = inp.demographics.location if inp.demographics is not None else None
        cost_index = location.cost_index if location is not None else None
        return project_inflation_factor(
            inp.projection_years,
            region_cost_index=cost_index,
            assumptions=cfg.inflation,
        )

    def _standard_base(
        self, inp: CalculationInput, data: FetchedData, cfg: PricingConfig, notes: List[str]
    ) -> float:
        try:
            base = _usable_amount(self._base_premium(inp, data, cfg))
        except Exception as e:
            logger.warning("Base premium unavailable for company %s: %s", inp.company_id, e)
            base = None
        if base is not None:
            return base

        if inp.base_premium is not None:
            return float(inp.base_premium)
        notes.append("Period member rates unusable; default rate schedule applied")
        return _schedule_premium(inp.family, cfg.default_rate_schedule)

    def _standard_result(
        self,
        inp: CalculationInput,
        data: FetchedData,
        cfg: PricingConfig,
        *,
        states: List[CalculationState],
        failed_stage: Optional[str] = None,
    ) -> PremiumResult:
        """
        Base premium plus tax, every adjustment neutral, no loading.
        Used for the standard methodology and as the fallback after a stage failure.

        Never raises: an unusable base falls back to the default member schedule
        (or the explicit base), an unusable tax rate to cfg.default_tax_rate.
        """
        notes = list(data.notes)
        if failed_stage is not None:
            notes.append(f"Standard calculation used after failure in stage {failed_stage}")

        base = self._standard_base(inp, data, cfg, notes)

        try:
            tax_rate = _usable_amount(self._tax_rate(data, cfg))
        except Exception as e:
            logger.warning("Tax rate unavailable for company %s: %s", inp.company_id, e)
            tax_rate = None
        if tax_rate is None:
            tax_rate = cfg.default_tax_rate
            notes.append(f"Invalid period tax rate; default {tax_rate:.2%} applied")

        adjusted = round_currency(base)
        tax = adjusted * tax_rate
        total = adjusted + tax

        trace = list(states)
        if failed_stage is not None:
            trace.append(CalculationState.FALLBACK)
        else:
            trace.append(CalculationState.BASE_RATE_COMPUTED)
        trace += [CalculationState.TAXED, CalculationState.CERTIFIED]

        return PremiumResult(
            currency=cfg.currency,
            base_premium=adjusted,
            adjusted_premium=adjusted,
            tax_amount=round_currency(tax),
            final_premium=round_currency(total),
            breakdown=(
                (AdjustmentFactor("base_rate", base, FactorKind.BASE),)
                + NEUTRAL_FACTORS
                + (AdjustmentFactor("tax", tax_rate, FactorKind.TAX),)
            ),
            methodology=Methodology.STANDARD,
            confidence=int(cfg.confidence.standard),
            states=tuple(s.value for s in trace),
            metadata=PremiumMetadata(
                calculation_version=self._settings.standard_calculation_version,
                data_quality=inp.data_quality,
                assumptions=(f"Premium tax rate {tax_rate:.2%}",),
                regulatory_notes=tuple(notes),
                failed_stage=failed_stage,
            ),
        )


async def calculate_risk_adjusted_premium_async(
    calculation_input: CalculationInput,
    data_source: PremiumDataSource,
    **kwargs: Any,
) -> PremiumResult:
    return await PremiumCalculator(data_source, **kwargs).calculate_async(calculation_input)


def calculate_risk_adjusted_premium(
    calculation_input: CalculationInput,
    data_source: PremiumDataSource,
    **kwargs: Any,
) -> PremiumResult:
    """
    Convenience wrapper: build a calculator with the given config/loadings/settings
    and price one request synchronously.
    """
    return PremiumCalculator(data_source, **kwargs).calculate(calculation_input)
