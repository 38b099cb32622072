"""Login and current-user schemas."""


from typing import Any

from pydantic import Field, field_validator

from narcisse.schemas.common import CamelModel


class LoginRequest(CamelModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=200)

    @field_validator("email", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class CurrentUser(CamelModel):
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: str
    is_active: bool
    employee_number: str | None = None
    admin_permissions: dict[str, Any] | None = None
