"""JSON envelopes shared by the back-office routes.

Admin endpoints answer `{"data": ...}` or, for lists, `{"data": [...], "meta": {...}}`.
Public booking endpoints keep the flat `{success, ...}` payloads the booking widget reads.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from narcisse.core.pagination import PageMeta, PaginationParams

T = TypeVar("T")

_ENVELOPE_CONFIG = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class DataResponse(BaseModel, Generic[T]):
    """`{ data: {...} }`"""

    model_config = _ENVELOPE_CONFIG

    data: T


class ListResponse(BaseModel, Generic[T]):
    """`{ data: [...], meta: {total, page, limit, pages} }`"""

    model_config = _ENVELOPE_CONFIG

    data: list[T]
    meta: PageMeta


class SuccessResponse(BaseModel):
    success: bool = True


def _shape(rows: Iterable[Any], schema: Optional[type[BaseModel]], dump: bool) -> list:
    if schema is None:
        return list(rows)
    items = [schema.model_validate(row) for row in rows]
    if dump:
        # Routes without a response_model serialise camelCase themselves
        return [item.model_dump(by_alias=True, mode="json") for item in items]
    return items


def page_meta(total: int, page: int, limit: int) -> dict[str, int]:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if limit else 1,
    }


def paginated(
    rows: Iterable[Any],
    total: int,
    pagination: PaginationParams,
    schema: Optional[type[BaseModel]] = None,
) -> dict[str, Any]:
    """One page of ORM rows, validated through `schema` when given."""
    return {
        "data": _shape(rows, schema, dump=False),
        "meta": page_meta(total, pagination.page, pagination.limit),
    }


def listed(
    rows: Iterable[Any],
    schema: Optional[type[BaseModel]] = None,
    *,
    dump: bool = False,
) -> dict[str, Any]:
    """A bounded list (latest closures, cash sessions...) as a single page."""
    items = _shape(rows, schema, dump)
    return {"data": items, "meta": page_meta(len(items), 1, max(len(items), 1))}
