from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from carrier_recon.services.reconciliation.matching import (
    TierOutcome,
    decide,
    match_by_generic_phone,
    match_by_name_and_city,
    match_by_name_and_value,
    match_by_phone,
)
from carrier_recon.services.reconciliation.records import StagingSnapshot


def _record(**fields) -> StagingSnapshot:
    fields.setdefault("id", uuid4())
    fields.setdefault("account_id", uuid4())
    fields.setdefault("provider_record_id", "L-100")
    return StagingSnapshot(**fields)


def _order(**fields) -> SimpleNamespace:
    fields.setdefault("id", uuid4())
    fields.setdefault("customer_name", None)
    fields.setdefault("customer_phone", None)
    fields.setdefault("customer_city", None)
    fields.setdefault("total", None)
    return SimpleNamespace(**fields)


def test_phone_tier_matches_on_nine_digit_suffix() -> None:
    target = _order(customer_phone="+351 912 345 678")
    pool = [target, _order(customer_phone="+351 913 000 111")]

    outcome = match_by_phone(_record(customer_phone="912345678"), pool)

    assert outcome.unique is target
    assert outcome.tier == 1


def test_phone_tier_with_two_hits_is_ambiguous() -> None:
    pool = [_order(customer_phone="912345678"), _order(customer_phone="00351912345678")]

    outcome = match_by_phone(_record(customer_phone="+351912345678"), pool)

    assert outcome.ambiguous
    assert outcome.unique is None
    result = decide(_record(customer_phone="+351912345678"), [outcome])
    assert not result.matched
    assert result.ambiguous


def test_phone_tier_is_skipped_without_usable_phone() -> None:
    outcome = match_by_phone(_record(customer_phone="123"), [_order(customer_phone="123")])
    assert not outcome.evaluated


def test_name_value_tier_requires_both_name_and_price() -> None:
    target = _order(customer_name="Maria Silva", total=Decimal("50.00"))
    same_name_other_price = _order(customer_name="Maria Silva", total=Decimal("80.00"))
    other_name_same_price = _order(customer_name="Ana Costa", total=Decimal("50.00"))
    pool = [target, same_name_other_price, other_name_same_price]

    outcome = match_by_name_and_value(_record(customer_name="maria silva", order_value=Decimal("49.90")), pool)

    assert outcome.candidates == (target,)


def test_name_value_tier_ignores_orders_without_a_name() -> None:
    pool = [_order(customer_name="", total=Decimal("50.00")), _order(customer_name=None, total=Decimal("50.00"))]

    outcome = match_by_name_and_value(_record(customer_name="Maria Silva", order_value=Decimal("50")), pool)

    assert outcome.evaluated
    assert outcome.candidates == ()


def test_name_value_tier_needs_three_character_name() -> None:
    outcome = match_by_name_and_value(_record(customer_name="Al", order_value=Decimal("10")), [])
    assert not outcome.evaluated


def test_name_city_tier_matches_both_fields() -> None:
    target = _order(customer_name="João da Silva", customer_city="Porto")
    pool = [target, _order(customer_name="João da Silva", customer_city="Faro")]

    outcome = match_by_name_and_city(_record(customer_name="joao da silva", customer_city="PORTO"), pool)

    assert outcome.unique is target
    assert outcome.method == "name_city"


def test_generic_phone_tier_uses_phones_match() -> None:
    target = _order(customer_phone="+34 912 345 678")
    pool = [target, _order(customer_phone="+34 600 000 000")]

    outcome = match_by_generic_phone(_record(customer_phone="0034912345678"), pool)

    assert outcome.unique is target


def test_decide_returns_first_unique_tier() -> None:
    first = _order()
    second = _order()
    outcomes = [
        TierOutcome(tier=4, method="carrier_order_id", evaluated=False),
        TierOutcome(tier=1, method="phone", candidates=()),
        TierOutcome(tier=2, method="name_value", candidates=(first,)),
        TierOutcome(tier=3, method="name_city", candidates=(second,)),
    ]

    result = decide(_record(), outcomes)

    assert result.matched
    assert result.order is first
    assert result.tier == 2
    assert result.method == "name_value"


def test_decide_reports_unmatched_without_any_hit() -> None:
    result = decide(_record(), [TierOutcome(tier=1, method="phone"), TierOutcome(tier=2, method="name_value")])

    assert not result.matched
    assert not result.ambiguous
    assert result.order is None
