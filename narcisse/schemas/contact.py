"""Group and private-tour contact forms, and the back-office request inbox."""


from typing import Any, Literal

from pydantic import Field, field_validator

from narcisse.schemas.booking import BookingCreatedResponse
from narcisse.schemas.common import CamelModel, UtcDateTime, clean_string, strip_script_tags
from narcisse.services.phone import normalize_incoming

ContactStatus = Literal["NEW", "CONTACTED", "CLOSED"]


class ContactForm(CamelModel):
    first_name: str = Field(min_length=1, max_length=60)
    last_name: str = Field(min_length=1, max_length=60)
    email: str = Field(min_length=3, max_length=120)
    phone: str | None = Field(default=None, max_length=32)
    date: str | None = Field(default=None, max_length=20)
    people: int | None = Field(default=None, ge=1, le=500)
    lang: str | None = Field(default=None, max_length=5)
    message: str | None = Field(default=None, max_length=2000)
    captcha_token: str | None = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _clean_name(cls, value: Any) -> Any:
        return clean_string(value, 60) if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def _lower_email(cls, value: Any) -> Any:
        return (clean_string(value, 120) or "").lower() if isinstance(value, str) else value

    @field_validator("phone", mode="before")
    @classmethod
    def _phone(cls, value: Any) -> Any:
        if not isinstance(value, str) or not value.strip():
            return None
        return normalize_incoming(value.strip())

    @field_validator("message", mode="before")
    @classmethod
    def _clean_message(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        return strip_script_tags(clean_string(value, 2000)) or None

    def details(self) -> dict[str, str | None]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "date": self.date,
            "people": str(self.people) if self.people is not None else None,
            "message": self.message,
        }


class ContactResponse(CamelModel):
    success: bool = True
    forwarded: bool
    id: str | None = None


# ---------------------------------------------------------------------------
# Back-office inbox
# ---------------------------------------------------------------------------

class ContactOut(CamelModel):
    id: str
    kind: str
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    date: str | None = None
    people: int | None = None
    lang: str | None = None
    message: str | None = None
    status: str
    booking_id: str | None = None
    created_at: UtcDateTime


class ContactStatusUpdate(CamelModel):
    status: ContactStatus


class ContactConvert(CamelModel):
    """Turn a request into a staff booking; date and time default to the request's day at 10:00."""

    contact_id: str | None = None
    date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    time: str = Field(default="10:00", pattern=r"^\d{2}:\d{2}$")


class ContactConversion(CamelModel):
    contact: ContactOut
    result: BookingCreatedResponse
