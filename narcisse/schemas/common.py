"""Shared Pydantic schema base with camelCase aliases, plus input sanitizers."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel
from pydantic.alias_generators import to_camel

from narcisse.core.timeutils import as_utc

_INVISIBLE = re.compile(r"[\u200B-\u200D\uFEFF]")
_SCRIPT_TAG = re.compile(r"</?script[^>]*>", re.IGNORECASE)


def clean_string(value: Any, max_length: int = 255) -> str | None:
    """Trim, drop zero-width characters and cut to `max_length`."""
    if not isinstance(value, str):
        return None
    return _INVISIBLE.sub("", value).strip()[:max_length]


def strip_script_tags(value: str | None) -> str | None:
    if not value:
        return value
    return _SCRIPT_TAG.sub("", value)


# SQLite hands back naive datetimes; every stored instant is UTC
UtcDateTime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    """All API schemas inherit from this to auto-generate camelCase aliases."""

    model_config = {
        "populate_by_name": True,
        "alias_generator": to_camel,
        "from_attributes": True,
    }


class HealthResponse(BaseModel):
    """Health-check response returned by /health."""
    status: str = "ok"
    app: str
    env: str
