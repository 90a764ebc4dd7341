"""Order matching strategies used by the linking workers.

Attribute tiers are plain functions over a candidate pool so they can be
exercised without a database; the matcher classes only decide which pool to
load and in which order the tiers run.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Protocol, Sequence

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carrier_recon.models.order import Order
from carrier_recon.services.reconciliation.normalization import (
    digits_only,
    normalize_city,
    normalize_name,
    normalize_phone,
    parse_amount,
    phones_match,
    prices_close,
    substring_match,
)
from carrier_recon.services.reconciliation.operations import OperationRef
from carrier_recon.services.reconciliation.records import StagingSnapshot

MIN_NAME_LENGTH = 3
MIN_CITY_LENGTH = 3


@dataclass(frozen=True, slots=True)
class MatchResult:
    matched: bool
    order: Any = None
    tier: int | None = None
    method: str | None = None
    ambiguous: bool = False

    @classmethod
    def no_match(cls, *, ambiguous: bool = False) -> "MatchResult":
        return cls(matched=False, ambiguous=ambiguous)

    @classmethod
    def hit(cls, order: Any, *, tier: int, method: str) -> "MatchResult":
        return cls(matched=True, order=order, tier=tier, method=method)


@dataclass(frozen=True, slots=True)
class TierOutcome:
    """Candidates retained by a single tier."""

    tier: int
    method: str
    candidates: tuple[Any, ...] = ()
    evaluated: bool = True

    @property
    def unique(self) -> Any | None:
        return self.candidates[0] if len(self.candidates) == 1 else None

    @property
    def ambiguous(self) -> bool:
        return len(self.candidates) > 1


# 4-tier carrier matcher --------------------------------------------------------


def match_by_phone(record: StagingSnapshot, pool: Sequence[Any]) -> TierOutcome:
    suffix = normalize_phone(record.customer_phone)
    if not suffix:
        return TierOutcome(tier=1, method="phone", evaluated=False)
    candidates = tuple(order for order in pool if _phone_ends_with(order.customer_phone, suffix))
    return TierOutcome(tier=1, method="phone", candidates=candidates)


def _phone_ends_with(raw: str | None, suffix: str) -> bool:
    digits = digits_only(raw)
    return bool(digits) and digits.endswith(suffix)


def match_by_name_and_value(
    record: StagingSnapshot,
    pool: Sequence[Any],
    *,
    tolerance: Decimal | float = 1,
) -> TierOutcome:
    name = normalize_name(record.customer_name)
    value = parse_amount(record.order_value)
    if len(name) < MIN_NAME_LENGTH or value is None:
        return TierOutcome(tier=2, method="name_value", evaluated=False)
    candidates = tuple(
        order
        for order in pool
        if substring_match(name, normalize_name(order.customer_name))
        and prices_close(order.total, value, tolerance)
    )
    return TierOutcome(tier=2, method="name_value", candidates=candidates)


def match_by_name_and_city(record: StagingSnapshot, pool: Sequence[Any]) -> TierOutcome:
    name = normalize_name(record.customer_name)
    city = normalize_city(record.customer_city)
    if len(name) < MIN_NAME_LENGTH or len(city) < MIN_CITY_LENGTH:
        return TierOutcome(tier=3, method="name_city", evaluated=False)
    candidates = tuple(
        order
        for order in pool
        if substring_match(name, normalize_name(order.customer_name))
        and substring_match(city, normalize_city(order.customer_city))
    )
    return TierOutcome(tier=3, method="name_city", candidates=candidates)


# 3-tier identity matcher -------------------------------------------------------


def match_by_generic_phone(record: StagingSnapshot, pool: Sequence[Any]) -> TierOutcome:
    if not digits_only(record.customer_phone):
        return TierOutcome(tier=3, method="phone", evaluated=False)
    candidates = tuple(order for order in pool if phones_match(record.customer_phone, order.customer_phone))
    return TierOutcome(tier=3, method="phone", candidates=candidates)


def decide(record: StagingSnapshot, outcomes: Sequence[TierOutcome | Callable[[], TierOutcome]]) -> MatchResult:
    """Return the first unique hit; ties are logged and never picked."""

    ambiguous = False
    for entry in outcomes:
        outcome = entry() if callable(entry) else entry
        if not outcome.evaluated:
            continue
        if outcome.unique is not None:
            return MatchResult.hit(outcome.unique, tier=outcome.tier, method=outcome.method)
        if outcome.ambiguous:
            ambiguous = True
            _log_ambiguity(record, outcome)
    return MatchResult.no_match(ambiguous=ambiguous)


def _log_ambiguity(record: StagingSnapshot, outcome: TierOutcome) -> None:
    logger.warning(
        "Ambiguous match, refusing to pick a candidate",
        record_id=str(record.id),
        provider_record_id=record.provider_record_id,
        tier=outcome.tier,
        method=outcome.method,
        candidates=len(outcome.candidates),
        candidate_ids=[str(getattr(order, "id", "")) for order in outcome.candidates[:5]],
    )


class OrderMatcher(Protocol):
    async def match(
        self,
        session: AsyncSession,
        record: StagingSnapshot,
        operation: OperationRef,
    ) -> MatchResult:
        ...


class TieredCarrierMatcher:
    """Direct id, phone, name+value, name+city; scoped to the store and operation."""

    def __init__(self, *, price_tolerance: Decimal | float = 1) -> None:
        self._tolerance = price_tolerance

    async def match(
        self,
        session: AsyncSession,
        record: StagingSnapshot,
        operation: OperationRef,
    ) -> MatchResult:
        direct = await self._match_direct(session, record, operation)
        if direct.unique is not None:
            return MatchResult.hit(direct.unique, tier=direct.tier, method=direct.method)

        pool = await self._load_pool(session, operation)
        outcomes: list[TierOutcome | Callable[[], TierOutcome]] = [
            direct,
            lambda: match_by_phone(record, pool),
            lambda: match_by_name_and_value(record, pool, tolerance=self._tolerance),
            lambda: match_by_name_and_city(record, pool),
        ]
        return decide(record, outcomes)

    async def _match_direct(
        self,
        session: AsyncSession,
        record: StagingSnapshot,
        operation: OperationRef,
    ) -> TierOutcome:
        if not record.provider_record_id:
            return TierOutcome(tier=4, method="carrier_order_id", evaluated=False)
        stmt = (
            self._scope(operation)
            .where(Order.carrier_order_id == record.provider_record_id)
            .limit(2)
        )
        result = await session.execute(stmt)
        return TierOutcome(tier=4, method="carrier_order_id", candidates=tuple(result.scalars().all()))

    async def _load_pool(self, session: AsyncSession, operation: OperationRef) -> Sequence[Order]:
        result = await session.execute(self._scope(operation))
        return result.scalars().all()

    @staticmethod
    def _scope(operation: OperationRef):
        return (
            select(Order)
            .where(Order.store_id == operation.store_id, Order.operation_id == operation.id)
            .order_by(Order.created_at.desc(), Order.id)
            .execution_options(populate_existing=True)
        )


class IdentityMatcher:
    """Order number, email, then phone over the operation's most recent orders."""

    def __init__(self, *, phone_scan_window: int = 1000) -> None:
        self._phone_scan_window = phone_scan_window

    async def match(
        self,
        session: AsyncSession,
        record: StagingSnapshot,
        operation: OperationRef,
    ) -> MatchResult:
        ambiguous = False
        for tier in (self._match_order_number, self._match_email, self._match_phone):
            outcome = await tier(session, record, operation)
            if not outcome.evaluated:
                continue
            if outcome.unique is not None:
                return MatchResult.hit(outcome.unique, tier=outcome.tier, method=outcome.method)
            if outcome.ambiguous:
                ambiguous = True
                _log_ambiguity(record, outcome)
        return MatchResult.no_match(ambiguous=ambiguous)

    async def _match_order_number(
        self,
        session: AsyncSession,
        record: StagingSnapshot,
        operation: OperationRef,
    ) -> TierOutcome:
        order_number = (record.order_number_hint or "").strip()
        if not order_number:
            return TierOutcome(tier=1, method="order_number", evaluated=False)
        stmt = self._scope(operation).where(Order.order_number == order_number).limit(2)
        result = await session.execute(stmt)
        return TierOutcome(tier=1, method="order_number", candidates=tuple(result.scalars().all()))

    async def _match_email(
        self,
        session: AsyncSession,
        record: StagingSnapshot,
        operation: OperationRef,
    ) -> TierOutcome:
        email = (record.customer_email or "").strip().lower()
        if not email:
            return TierOutcome(tier=2, method="email", evaluated=False)
        stmt = self._scope(operation).where(func.lower(Order.customer_email) == email).limit(2)
        result = await session.execute(stmt)
        return TierOutcome(tier=2, method="email", candidates=tuple(result.scalars().all()))

    async def _match_phone(
        self,
        session: AsyncSession,
        record: StagingSnapshot,
        operation: OperationRef,
    ) -> TierOutcome:
        if not digits_only(record.customer_phone):
            return TierOutcome(tier=3, method="phone", evaluated=False)
        stmt = (
            self._scope(operation)
            .where(Order.customer_phone.is_not(None))
            .order_by(Order.created_at.desc(), Order.id)
            .limit(self._phone_scan_window)
        )
        result = await session.execute(stmt)
        return match_by_generic_phone(record, result.scalars().all())

    @staticmethod
    def _scope(operation: OperationRef):
        return (
            select(Order)
            .where(Order.operation_id == operation.id)
            .execution_options(populate_existing=True)
        )


__all__ = [
    "IdentityMatcher",
    "MatchResult",
    "OrderMatcher",
    "TierOutcome",
    "TieredCarrierMatcher",
    "decide",
    "match_by_generic_phone",
    "match_by_name_and_city",
    "match_by_name_and_value",
    "match_by_phone",
]
