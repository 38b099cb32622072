"""Booking Pydantic schemas (public booking widget, admin planning)."""


import datetime as dt
import re
from typing import Any, Literal, Union

from pydantic import Field, field_validator, model_validator

from narcisse.core.business import normalize_language
from narcisse.schemas.common import CamelModel, UtcDateTime, clean_string, strip_script_tags
from narcisse.services.phone import is_valid_e164, normalize_incoming

_DAY = r"^\d{4}-\d{2}-\d{2}$"
_TIME = r"^\d{2}:\d{2}$"
_LANGUAGE = re.compile(r"^[A-Za-z]{2,5}$")

PaymentMethodName = Literal[
    "cash", "card", "paypal", "applepay", "googlepay", "ANCV", "CityPass", "voucher", "check"
]


def _language(value: str) -> str:
    if not _LANGUAGE.match((value or "").strip()):
        raise ValueError("Langue invalide")
    return normalize_language(value)


class UserDetails(CamelModel):
    first_name: str = Field(min_length=1, max_length=60)
    last_name: str = Field(min_length=1, max_length=60)
    email: str = Field(default="", max_length=120)
    phone: str | None = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _clean_name(cls, value: Any) -> Any:
        return clean_string(value, 60) if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def _clean_email(cls, value: Any) -> Any:
        return (clean_string(value, 120) or "").lower() if isinstance(value, str) else value

    @field_validator("phone", mode="before")
    @classmethod
    def _normalize_phone(cls, value: Any) -> Any:
        if not isinstance(value, str) or not value.strip():
            return None
        normalized = normalize_incoming(value.strip())
        if not is_valid_e164(normalized):
            raise ValueError("Numéro de téléphone invalide")
        return normalized


class ManualPaymentIn(CamelModel):
    """Structured counter payment (voucher partner, cheque) sent by the planning form."""

    provider: str
    method_type: str | None = None
    metadata: dict[str, Any] | None = None


class BookingRequest(CamelModel):
    date: str = Field(pattern=_DAY)
    time: str = Field(pattern=_TIME)
    adults: int = Field(default=0, ge=0, le=100)
    children: int = Field(default=0, ge=0, le=100)
    babies: int = Field(default=0, ge=0, le=100)
    language: str = "FR"
    user_details: UserDetails
    is_staff_override: bool = False
    captcha_token: str | None = None
    message: str | None = Field(default=None, max_length=1000)
    payment_method: Union[PaymentMethodName, ManualPaymentIn, None] = None
    pending_only: bool = False
    mark_as_paid: bool = False
    invoice_email: str | None = Field(default=None, max_length=120)
    forced_boat_id: int | None = None
    group_chain: int | None = Field(default=None, ge=0)
    inherit_payment_for_chain: bool = False
    is_private: bool = Field(default=False, alias="private")

    @field_validator("language", mode="before")
    @classmethod
    def _check_language(cls, value: Any) -> Any:
        return _language(value) if isinstance(value, str) else value

    @field_validator("message", mode="before")
    @classmethod
    def _clean_message(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        return strip_script_tags(clean_string(value, 1000)) or None

    @model_validator(mode="after")
    def _at_least_one_person(self) -> "BookingRequest":
        if self.adults + self.children + self.babies < 1:
            raise ValueError("Au moins une personne est requise")
        return self

    @property
    def people(self) -> int:
        return self.adults + self.children + self.babies

    @property
    def payment_method_name(self) -> str | None:
        if isinstance(self.payment_method, ManualPaymentIn):
            return self.payment_method.provider
        return self.payment_method

    @property
    def payment_method_type(self) -> str | None:
        if isinstance(self.payment_method, ManualPaymentIn):
            return self.payment_method.method_type
        return None

    @property
    def payment_metadata(self) -> dict[str, Any] | None:
        if isinstance(self.payment_method, ManualPaymentIn):
            return self.payment_method.metadata
        return None


class BoatBrief(CamelModel):
    id: int
    name: str
    capacity: int


class CustomerBrief(CamelModel):
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None


class BookingOut(CamelModel):
    id: str
    public_reference: str | None = None
    date: dt.date
    start_time: UtcDateTime
    end_time: UtcDateTime
    number_of_people: int
    adults: int
    children: int
    babies: int
    language: str
    total_price: float
    status: str
    checkin_status: str
    is_paid: bool
    is_private: bool
    message: str | None = None
    invoice_email: str | None = None
    boat_id: int
    user_id: str
    boat: BoatBrief | None = None
    user: CustomerBrief | None = None
    created_at: UtcDateTime


class ChainItem(CamelModel):
    index: int
    id: str
    boat_id: int
    start: str
    end: str
    people: int


class OverlapItem(CamelModel):
    index: int
    start: str
    end: str
    people: int
    reason: str


class BookingCreatedResponse(CamelModel):
    success: bool = True
    booking_id: str
    status: str
    booking: BookingOut
    chain_created: list[ChainItem] = []
    overlaps: list[OverlapItem] = []


class BookingUpdate(CamelModel):
    """Admin PATCH: every field optional, only sent fields are applied."""

    start: UtcDateTime | None = None
    date: str | None = Field(default=None, pattern=_DAY)
    time: str | None = Field(default=None, pattern=_TIME)
    checkin_status: Literal["CONFIRMED", "EMBARQUED", "NO_SHOW"] | None = None
    is_paid: bool | None = None
    payment_method: PaymentMethodName | None = None
    adults: int | None = Field(default=None, ge=0, le=100)
    children: int | None = Field(default=None, ge=0, le=100)
    babies: int | None = Field(default=None, ge=0, le=100)
    language: str | None = None
    message: str | None = Field(default=None, max_length=1000)

    @field_validator("language", mode="before")
    @classmethod
    def _check_language(cls, value: Any) -> Any:
        return _language(value) if isinstance(value, str) else value


class CheckinRequest(CamelModel):
    status: Literal["EMBARQUED", "NO_SHOW"] = "EMBARQUED"


class CompleteRequest(CamelModel):
    duration_minutes: int | None = Field(default=None, ge=1, le=600)


class BookingIdRequest(CamelModel):
    booking_id: str | None = None


class ConfirmRequest(CamelModel):
    booking_id: str | None = None
    provider: str | None = None
    intent_id: str | None = None
