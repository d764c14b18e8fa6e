"""
Listing search — compiles validated search parameters into a filter, a
sort order and an offset/limit window, then runs them through
``ListingStore``.

Design notes
------------
- ``compile_listing_query`` is pure: it only builds SQLAlchemy clauses and
  never touches a session, so the compiled form can be inspected in tests.
- Every compiled filter starts with ``is_active = true`` and the resolved
  status; optional predicates are appended only when their parameter is
  present, and the store ANDs the list together.
- Free-text parameters (make, model, city, state) are case-insensitive
  substring matches.  ``LIKE`` wildcards in user input are escaped so they
  match literally.
- The total is counted with the same filter but without the page window.
"""
import math
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import asc, desc

from app.exceptions import ValidationError
from app.models import Car
from app.services.listing_service import listing_to_dict
from app.store import ListingStore

DEFAULT_SORT = "-createdAt"

# Public sort keys -> model columns.  A leading "-" means descending.
SORT_FIELDS = {
    "price": Car.price,
    "year": Car.year,
    "mileage": Car.mileage,
    "createdAt": Car.created_at,
}
SORT_OPTIONS: tuple[str, ...] = tuple(
    key for name in SORT_FIELDS for key in (name, f"-{name}")
)

_LIKE_ESCAPE = "\\"


@dataclass
class ListingQuery:
    """Validated search parameters (see ``app.dependencies.listing_query_params``)."""

    page: int = 1
    limit: int = 10
    sort: str = DEFAULT_SORT
    make: str | None = None
    model: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    min_year: int | None = None
    max_year: int | None = None
    fuel_type: str | None = None
    transmission: str | None = None
    body_type: str | None = None
    city: str | None = None
    state: str | None = None
    status: str = "available"


@dataclass
class CompiledQuery:
    filters: list = field(default_factory=list)
    order_by: list = field(default_factory=list)
    offset: int = 0
    limit: int = 10


def escape_like(text: str) -> str:
    """Escape ``%``, ``_`` and the escape character itself for LIKE patterns."""
    return (
        text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def contains_ci(column, text: str):
    return column.ilike(f"%{escape_like(text)}%", escape=_LIKE_ESCAPE)


def active_listing_filters(status: str = "available") -> list:
    return [Car.is_active.is_(True), Car.status == status]


def resolve_sort(sort: str) -> list:
    """Return ORDER BY expressions for *sort*; ties are broken by id."""
    descending = sort.startswith("-")
    name = sort[1:] if descending else sort
    column = SORT_FIELDS.get(name)
    if column is None:
        raise ValidationError(
            "Query validation error",
            errors=[{
                "field": "sort",
                "message": f"sort must be one of: {', '.join(SORT_OPTIONS)}",
            }],
        )
    direction = desc if descending else asc
    return [direction(column), direction(Car.id)]


def compile_listing_query(query: ListingQuery) -> CompiledQuery:
    filters = active_listing_filters(query.status)

    if query.make:
        filters.append(contains_ci(Car.make, query.make))
    if query.model:
        filters.append(contains_ci(Car.model, query.model))

    if query.min_price is not None:
        filters.append(Car.price >= query.min_price)
    if query.max_price is not None:
        filters.append(Car.price <= query.max_price)
    if query.min_year is not None:
        filters.append(Car.year >= query.min_year)
    if query.max_year is not None:
        filters.append(Car.year <= query.max_year)

    if query.fuel_type:
        filters.append(Car.fuel_type == query.fuel_type)
    if query.transmission:
        filters.append(Car.transmission == query.transmission)
    if query.body_type:
        filters.append(Car.body_type == query.body_type)

    if query.city:
        filters.append(contains_ci(Car.location_city, query.city))
    if query.state:
        filters.append(contains_ci(Car.location_state, query.state))

    return CompiledQuery(
        filters=filters,
        order_by=resolve_sort(query.sort),
        offset=(query.page - 1) * query.limit,
        limit=query.limit,
    )


def pagination_meta(page: int, limit: int, total: int) -> dict[str, Any]:
    total_pages = math.ceil(total / limit) if total > 0 else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


async def search_listings(store: ListingStore, query: ListingQuery) -> dict[str, Any]:
    """
    Return one page of matching listings plus pagination metadata.

    Two statements are issued: the windowed SELECT and an unwindowed COUNT.
    """
    compiled = compile_listing_query(query)
    cars = await store.find(
        compiled.filters,
        compiled.order_by,
        offset=compiled.offset,
        limit=compiled.limit,
    )
    total = await store.count(compiled.filters)
    return {
        "items": [listing_to_dict(car) for car in cars],
        "pagination": pagination_meta(query.page, query.limit, total),
    }
