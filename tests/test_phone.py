"""Phone normalization helpers."""

from narcisse.services.phone import (
    PHONE_CODES,
    format_international,
    input_to_e164,
    is_possible_local_digits,
    is_valid_e164,
    local_to_e164,
    normalize_incoming,
)


def test_local_number_drops_trunk_zero():
    assert local_to_e164("+33", "0612345678") == "+33612345678"
    assert local_to_e164("+33", "06 12 34 56 78") == "+33612345678"


def test_local_number_empty_input():
    assert local_to_e164("+33", "") == ""


def test_international_input_wins_over_country_code():
    assert input_to_e164("+33", "+49 30 1234567") == "+49301234567"
    assert input_to_e164("+33", "0041 44 668 18 00") == "+41446681800"


def test_possible_local_digits_bounds():
    assert is_possible_local_digits("061234")
    assert not is_possible_local_digits("12345")
    assert not is_possible_local_digits("1" * 15)


def test_valid_and_invalid_e164():
    assert is_valid_e164("+33612345678")
    assert not is_valid_e164("+330123")
    assert not is_valid_e164("")


def test_normalize_incoming_keeps_invalid_numbers_untouched():
    assert normalize_incoming("+330123") == "+330123"
    assert normalize_incoming("+33 6 12 34 56 78") == "+33612345678"


def test_format_international():
    assert format_international("+33612345678") == "+33 6 12 34 56 78"
    assert format_international("garbage") == "garbage"


def test_phone_codes_table_starts_with_france():
    assert PHONE_CODES[0].code == "+33"
    assert PHONE_CODES[0].iso2 == "FR"
