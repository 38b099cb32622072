from narcisse.services.booking_tokens import (
    compute_booking_token,
    format_booking_reference,
    verify_booking_token,
)


def test_token_is_deterministic_sixteen_hex_chars():
    token = compute_booking_token("b-123")
    assert token == compute_booking_token("b-123")
    assert len(token) == 16
    int(token, 16)


def test_token_differs_per_booking():
    assert compute_booking_token("b-1") != compute_booking_token("b-2")


def test_verify_rejects_tampering_and_missing_token():
    token = compute_booking_token("b-123")
    assert verify_booking_token("b-123", token)
    assert not verify_booking_token("b-123", token[:-1] + ("0" if token[-1] != "0" else "1"))
    assert not verify_booking_token("b-124", token)
    assert not verify_booking_token("b-123", None)


def test_reference_format():
    assert format_booking_reference(2031, 42) == "SN-31-0042"
    assert format_booking_reference(2031, 12345) == "SN-31-12345"
