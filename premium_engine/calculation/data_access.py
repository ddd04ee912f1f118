# premium_engine/calculation/data_access.py
"""
Data access for the premium orchestrator.

Provides:
- the async PremiumDataSource protocol the orchestrator depends on
- the records it returns (period, period rates, risk assessment)
- InMemoryDataSource for in-process callers and tests

Notes:
- A missing record is None, never an exception. Exceptions and timeouts are
  handled by the orchestrator, which fails soft into neutral defaults.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date
from typing import Dict, Mapping, Optional, Protocol

from premium_engine.pricing.config import MemberRateSchedule
from premium_engine.pricing.schemas import HistoricalClaims


@dataclass(frozen=True)
class Period:
    id: int
    start_date: date
    end_date: date
    status: str = "active"


@dataclass(frozen=True)
class PremiumRates:
    period_id: int
    tax_rate: Optional[float] = None
    principal_rate: Optional[float] = None
    spouse_rate: Optional[float] = None
    child_rate: Optional[float] = None
    special_needs_rate: Optional[float] = None

    def member_schedule(self, default: MemberRateSchedule) -> MemberRateSchedule:
        """Period rates with any missing member type taken from default."""
        return MemberRateSchedule(
            principal_rate=default.principal_rate if self.principal_rate is None else self.principal_rate,
            spouse_rate=default.spouse_rate if self.spouse_rate is None else self.spouse_rate,
            child_rate=default.child_rate if self.child_rate is None else self.child_rate,
            special_needs_rate=(
                default.special_needs_rate if self.special_needs_rate is None else self.special_needs_rate
            ),
        )


@dataclass(frozen=True)
class RiskAssessment:
    member_id: int
    overall_risk_score: float


class PremiumDataSource(Protocol):
    async def get_active_period(self) -> Optional[Period]:
        ...

    async def get_premium_rate_by_period(self, period_id: int) -> Optional[PremiumRates]:
        ...

    async def get_risk_assessment(self, member_id: int) -> Optional[RiskAssessment]:
        ...

    async def get_historical_claims(self, company_id: int, period_id: int) -> Optional[HistoricalClaims]:
        ...


class InMemoryDataSource:
    """
    Dict-backed PremiumDataSource.

    delays:   seconds to sleep before answering, keyed by method name
    failures: exception to raise, keyed by method name
    """

    def __init__(
        self,
        *,
        active_period: Optional[Period] = None,
        rates: Optional[Mapping[int, PremiumRates]] = None,
        assessments: Optional[Mapping[int, RiskAssessment]] = None,
        claims: Optional[Mapping[int, HistoricalClaims]] = None,
        delays: Optional[Mapping[str, float]] = None,
        failures: Optional[Mapping[str, BaseException]] = None,
    ) -> None:
        self.active_period = active_period
        self.rates: Dict[int, PremiumRates] = dict(rates or {})
        self.assessments: Dict[int, RiskAssessment] = dict(assessments or {})
        self.claims: Dict[int, HistoricalClaims] = dict(claims or {})
        self.delays: Dict[str, float] = dict(delays or {})
        self.failures: Dict[str, BaseException] = dict(failures or {})
        self.calls: Dict[str, int] = {}

    async def _enter(self, method: str) -> None:
        self.calls[method] = self.calls.get(method, 0) + 1
        delay = self.delays.get(method, 0.0)
        if delay > 0:
            await asyncio.sleep(delay)
        exc = self.failures.get(method)
        if exc is not None:
            raise exc

    async def get_active_period(self) -> Optional[Period]:
        await self._enter("get_active_period")
        return self.active_period

    async def get_premium_rate_by_period(self, period_id: int) -> Optional[PremiumRates]:
        await self._enter("get_premium_rate_by_period")
        return self.rates.get(period_id)

    async def get_risk_assessment(self, member_id: int) -> Optional[RiskAssessment]:
        await self._enter("get_risk_assessment")
        return self.assessments.get(member_id)

    async def get_historical_claims(self, company_id: int, period_id: int) -> Optional[HistoricalClaims]:
        # Claims are stored per company; the period is part of the lookup contract only
        await self._enter("get_historical_claims")
        return self.claims.get(company_id)
