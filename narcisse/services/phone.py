"""Phone number helpers (E.164 normalization and validation) backed by `phonenumbers`."""

from __future__ import annotations

import re
from typing import NamedTuple, Optional

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat


class PhoneCode(NamedTuple):
    code: str
    country: str
    iso2: str


PHONE_CODES: list[PhoneCode] = [
    PhoneCode("+33", "France", "FR"),
    PhoneCode("+32", "Belgique", "BE"),
    PhoneCode("+41", "Suisse", "CH"),
    PhoneCode("+44", "Royaume-Uni", "GB"),
    PhoneCode("+49", "Allemagne", "DE"),
    PhoneCode("+34", "Espagne", "ES"),
    PhoneCode("+39", "Italie", "IT"),
    PhoneCode("+1", "USA/Canada", "US"),
    PhoneCode("+351", "Portugal", "PT"),
    PhoneCode("+352", "Luxembourg", "LU"),
    PhoneCode("+31", "Pays-Bas", "NL"),
    PhoneCode("+46", "Suède", "SE"),
    PhoneCode("+47", "Norvège", "NO"),
    PhoneCode("+48", "Pologne", "PL"),
    PhoneCode("+420", "Tchéquie", "CZ"),
    PhoneCode("+421", "Slovaquie", "SK"),
    PhoneCode("+43", "Autriche", "AT"),
    PhoneCode("+370", "Lituanie", "LT"),
    PhoneCode("+371", "Lettonie", "LV"),
    PhoneCode("+372", "Estonie", "EE"),
    PhoneCode("+373", "Moldavie", "MD"),
    PhoneCode("+381", "Serbie", "RS"),
    PhoneCode("+382", "Monténégro", "ME"),
    PhoneCode("+386", "Slovénie", "SI"),
    PhoneCode("+387", "Bosnie-H.", "BA"),
    PhoneCode("+40", "Roumanie", "RO"),
    PhoneCode("+90", "Turquie", "TR"),
    PhoneCode("+212", "Maroc", "MA"),
    PhoneCode("+216", "Tunisie", "TN"),
]

_NON_DIGITS = re.compile(r"[^0-9]")
_SEPARATORS = re.compile(r"[\s \-().]")
_TRUNK_ZERO = re.compile(r"^0(\d{6,14})$")


def _parse(value: str) -> Optional[phonenumbers.PhoneNumber]:
    try:
        return phonenumbers.parse(value, None)
    except NumberParseException:
        return None


def _e164(number: phonenumbers.PhoneNumber) -> str:
    return phonenumbers.format_number(number, PhoneNumberFormat.E164)


def local_to_e164(country_code: str, local_digits: str) -> str:
    """Join a calling code and national digits, dropping one leading trunk zero."""
    digits = _NON_DIGITS.sub("", local_digits or "")
    if not digits:
        return ""
    return country_code + _TRUNK_ZERO.sub(r"\1", digits)


def input_to_e164(country_code: str, value: str) -> str:
    """Accept a national number or an international one (`+..` / `00..`)."""
    raw = (value or "").strip()
    if not raw:
        return ""

    compact = _SEPARATORS.sub("", raw)
    if compact.startswith("+"):
        international = compact
    elif compact.startswith("00"):
        international = "+" + compact[2:]
    else:
        international = None

    candidate = international or local_to_e164(country_code, raw)
    parsed = _parse(candidate)
    return _e164(parsed) if parsed else candidate


def is_possible_local_digits(local_digits: str) -> bool:
    digits = _NON_DIGITS.sub("", local_digits or "")
    return 6 <= len(digits) <= 14


def is_valid_e164(value: str) -> bool:
    if not value:
        return False
    parsed = _parse(value)
    return parsed is not None and phonenumbers.is_valid_number(parsed)


def format_international(value: str) -> str:
    parsed = _parse(value)
    if parsed is not None and phonenumbers.is_valid_number(parsed):
        return phonenumbers.format_number(parsed, PhoneNumberFormat.INTERNATIONAL)
    return value


def normalize_incoming(value: str) -> str:
    """Valid numbers come back in E.164; anything else is returned untouched."""
    if not value:
        return value
    parsed = _parse(value)
    if parsed is not None and phonenumbers.is_valid_number(parsed):
        return _e164(parsed)
    return value
