from decimal import Decimal

import pytest

from carrier_recon.services.reconciliation.normalization import (
    normalize_city,
    normalize_name,
    normalize_phone,
    normalize_phone_generic,
    parse_amount,
    phones_match,
    prices_close,
    substring_match,
)


def test_normalize_phone_keeps_last_nine_digits() -> None:
    assert normalize_phone("+351 912-345-678") == "912345678"
    assert normalize_phone("912345678") == "912345678"
    assert normalize_phone("+351 912-345-678") == normalize_phone("912345678")


@pytest.mark.parametrize("raw", [None, "", "12345", "tel: --"])
def test_normalize_phone_returns_empty_for_short_input(raw) -> None:
    assert normalize_phone(raw) == ""


def test_normalize_phone_generic_strips_prefixes_and_extensions() -> None:
    assert normalize_phone_generic("+34 (912) 345-678") == "34912345678"
    assert normalize_phone_generic("0034912345678") == "34912345678"
    assert normalize_phone_generic("011 212 555 0100") == "2125550100"
    assert normalize_phone_generic("912 345 678 ext. 12") == "912345678"
    assert normalize_phone_generic("912345678 x9") == "912345678"
    assert normalize_phone_generic("11 98765-4321 ramal 3") == "11987654321"
    assert normalize_phone_generic(None) == ""


def test_phones_match_uses_suffix_for_country_code_differences() -> None:
    assert phones_match("0034912345678", "+351 34912345678")
    assert phones_match("+39 06 1234 5678", "06 1234 5678")
    assert not phones_match("912345678", "913345678")
    assert not phones_match("123456", "0123456")
    assert not phones_match(None, "912345678")


def test_normalize_name_folds_accents_and_whitespace() -> None:
    assert normalize_name("João   Da  Silva") == normalize_name("joao da silva")
    assert normalize_name("  JOSÉ Müller ") == "jose muller"
    assert normalize_city("São Paulo") == "sao paulo"
    assert normalize_name(None) == ""


def test_substring_match_is_bidirectional_and_rejects_empty() -> None:
    assert substring_match("maria silva", "maria silva santos")
    assert substring_match("maria silva santos", "maria silva")
    assert not substring_match("", "maria")
    assert not substring_match("maria", "")


def test_prices_close_with_tolerance() -> None:
    assert prices_close(49.99, 50.9, 1)
    assert not prices_close(49.99, 52, 1)
    assert prices_close("49,90", "50.00")
    assert not prices_close("n/a", 50)
    assert not prices_close(None, 50)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("49,90", Decimal("49.90")),
        ("1.234,50", Decimal("1234.50")),
        ("1,234.50", Decimal("1234.50")),
        (50, Decimal("50")),
        (" 12.5 ", Decimal("12.5")),
        ("", None),
        ("abc", None),
        (True, None),
    ],
)
def test_parse_amount(raw, expected) -> None:
    assert parse_amount(raw) == expected
