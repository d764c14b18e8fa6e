"""
Listing statistics over active, available listings.

The three aggregates share one base filter but are independent read-only
queries; none of them depends on another's result.  They run one after
the other because they share the request's session.
"""
from typing import Any

from sqlalchemy import asc, desc, func

from app.models import Car
from app.services.listing_query import active_listing_filters
from app.store import ListingStore

TOP_MAKES_LIMIT = 10


def _as_float(value) -> float | None:
    # AVG over integer columns comes back as Decimal on PostgreSQL.
    return float(value) if value is not None else None


async def get_overview(store: ListingStore) -> dict[str, Any]:
    """Count and price/year/mileage summary; ``{}`` when there are no listings."""
    rows = await store.aggregate(
        [
            func.count(Car.id).label("totalCars"),
            func.avg(Car.price).label("avgPrice"),
            func.min(Car.price).label("minPrice"),
            func.max(Car.price).label("maxPrice"),
            func.avg(Car.year).label("avgYear"),
            func.avg(Car.mileage).label("avgMileage"),
        ],
        active_listing_filters(),
    )
    row = rows[0] if rows else None
    if not row or not row["totalCars"]:
        return {}
    return {
        "totalCars": row["totalCars"],
        "avgPrice": _as_float(row["avgPrice"]),
        "minPrice": _as_float(row["minPrice"]),
        "maxPrice": _as_float(row["maxPrice"]),
        "avgYear": _as_float(row["avgYear"]),
        "avgMileage": _as_float(row["avgMileage"]),
    }


async def get_top_makes(store: ListingStore, limit: int = TOP_MAKES_LIMIT) -> list[dict[str, Any]]:
    count = func.count(Car.id).label("count")
    rows = await store.aggregate(
        [Car.make.label("make"), count, func.avg(Car.price).label("avgPrice")],
        active_listing_filters(),
        group_by=[Car.make],
        order_by=[desc(count), asc(Car.make)],
        limit=limit,
    )
    return [
        {"make": row["make"], "count": row["count"], "avgPrice": _as_float(row["avgPrice"])}
        for row in rows
    ]


async def get_fuel_type_distribution(store: ListingStore) -> list[dict[str, Any]]:
    count = func.count(Car.id).label("count")
    rows = await store.aggregate(
        [Car.fuel_type.label("fuelType"), count],
        active_listing_filters(),
        group_by=[Car.fuel_type],
        order_by=[desc(count), asc(Car.fuel_type)],
    )
    return [{"fuelType": row["fuelType"], "count": row["count"]} for row in rows]


async def get_listing_stats(store: ListingStore) -> dict[str, Any]:
    return {
        "overview": await get_overview(store),
        "topMakes": await get_top_makes(store),
        "fuelTypeDistribution": await get_fuel_type_distribution(store),
    }
