from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from app.dependencies import (
    get_current_user,
    get_current_user_optional,
    get_listing_store,
    listing_query_params,
)
from app.models import User
from app.schemas import ListingCreate
from app.services import listing_service, listing_stats
from app.services.listing_query import ListingQuery, search_listings
from app.store import ListingStore

router = APIRouter(prefix="/api/cars", tags=["cars"])


@router.get("")
async def list_cars(
    query: ListingQuery = Depends(listing_query_params),
    store: ListingStore = Depends(get_listing_store),
):
    result = await search_listings(store, query)
    return {
        "success": True,
        "count": len(result["items"]),
        "pagination": result["pagination"],
        "data": result["items"],
    }


@router.get("/stats")
async def car_stats(store: ListingStore = Depends(get_listing_store)):
    return {"success": True, "data": await listing_stats.get_listing_stats(store)}


@router.get("/my-listings")
async def my_listings(
    user: User = Depends(get_current_user),
    store: ListingStore = Depends(get_listing_store),
):
    cars = await listing_service.list_my_listings(store, user)
    return {"success": True, "count": len(cars), "data": cars}


@router.get("/{car_id}")
async def get_car(
    car_id: int,
    include_inactive: bool = Query(False, alias="includeInactive"),
    viewer: User | None = Depends(get_current_user_optional),
    store: ListingStore = Depends(get_listing_store),
):
    # The override is an admin capability; anyone else silently gets the
    # default visibility.
    override = include_inactive and viewer is not None and viewer.role == "admin"
    car = await listing_service.get_listing(store, car_id, include_inactive=override)
    return {"success": True, "data": car}


@router.post("", status_code=201)
async def create_car(
    data: ListingCreate,
    user: User = Depends(get_current_user),
    store: ListingStore = Depends(get_listing_store),
):
    car = await listing_service.create_listing(store, user, data)
    return {"success": True, "message": "Car listing created successfully", "data": car}


@router.put("/{car_id}")
async def update_car(
    car_id: int,
    patch: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    store: ListingStore = Depends(get_listing_store),
):
    car = await listing_service.update_listing(store, car_id, user, patch)
    return {"success": True, "message": "Car listing updated successfully", "data": car}


@router.delete("/{car_id}")
async def delete_car(
    car_id: int,
    user: User = Depends(get_current_user),
    store: ListingStore = Depends(get_listing_store),
):
    await listing_service.delete_listing(store, car_id, user)
    return {"success": True, "message": "Car listing deleted successfully"}
