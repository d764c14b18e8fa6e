"""
Listing service — lifecycle operations for the Car aggregate.

Design notes
------------
- Seller attribution comes from the authenticated user: on create the
  seller email is always overwritten with the owner's email.
- Update and soft delete only check that the listing exists.  They do not
  check that the caller is the attributed seller; ownership is only used
  to select "my listings".
- Deletion is soft: ``is_active`` is set to False.  Default reads treat
  inactive rows as missing; ``include_inactive=True`` is the override used
  by admin paths.
- The view counter is incremented with an atomic UPDATE in the store.
  ``get_listing`` returns the snapshot read *before* that increment.
"""
import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import and_, or_

from app.exceptions import NotFound, ValidationError, errors_from_pydantic
from app.models import Car, User
from app.schemas import ListingCreate
from app.services.listing_fields import format_inr, listing_title
from app.store import ListingStore

logger = logging.getLogger(__name__)

# Nested objects merged key-by-key on update rather than replaced.
_NESTED_FIELDS = ("location", "seller")


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _isoformat(value) -> str | None:
    return value.isoformat() if value else None


def listing_document(car: Car) -> dict[str, Any]:
    """The writable fields of *car*, keyed the way clients submit them."""
    return {
        "make": car.make,
        "model": car.model,
        "year": car.year,
        "price": car.price,
        "mileage": car.mileage,
        "fuelType": car.fuel_type,
        "transmission": car.transmission,
        "bodyType": car.body_type,
        "color": car.color,
        "description": car.description,
        "features": list(car.features or []),
        "images": [dict(image) for image in (car.images or [])],
        "location": {
            "city": car.location_city,
            "state": car.location_state,
            "country": car.location_country,
        },
        "seller": {
            "name": car.seller_name,
            "phone": car.seller_phone,
            "email": car.seller_email,
        },
        "status": car.status,
    }


def listing_to_dict(car: Car) -> dict[str, Any]:
    """Serialise a Car ORM instance, including derived fields."""
    data = {"id": car.id}
    data.update(listing_document(car))
    data.update({
        "isActive": car.is_active,
        "viewCount": car.view_count,
        "title": listing_title(car.year, car.make, car.model),
        "formattedPrice": format_inr(car.price),
        "createdAt": _isoformat(car.created_at),
        "updatedAt": _isoformat(car.updated_at),
    })
    return data


def _columns_from_payload(payload: ListingCreate) -> dict[str, Any]:
    return {
        "make": payload.make,
        "model": payload.model,
        "year": payload.year,
        "price": payload.price,
        "mileage": payload.mileage,
        "fuel_type": payload.fuel_type,
        "transmission": payload.transmission,
        "body_type": payload.body_type,
        "color": payload.color,
        "description": payload.description,
        "features": list(payload.features),
        "images": [image.model_dump(mode="json") for image in payload.images],
        "location_city": payload.location.city,
        "location_state": payload.location.state,
        "location_country": payload.location.country,
        "seller_name": payload.seller.name,
        "seller_phone": payload.seller.phone,
        "seller_email": payload.seller.email,
        "status": payload.status,
    }


def merge_listing_patch(document: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Shallow-merge *patch* over *document*; location/seller merge per key."""
    merged = dict(document)
    for key, value in patch.items():
        if key in _NESTED_FIELDS and isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def validate_listing(document: dict[str, Any]) -> ListingCreate:
    """Run the full listing schema over *document*."""
    try:
        return ListingCreate.model_validate(document)
    except PydanticValidationError as exc:
        raise ValidationError(errors=errors_from_pydantic(exc.errors())) from exc


async def _require_listing(store: ListingStore, car_id: int) -> Car:
    car = await store.get(car_id)
    if car is None:
        raise NotFound("Car not found")
    return car


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_listing(store: ListingStore, owner: User, payload: ListingCreate) -> dict:
    """Create a listing attributed to *owner*, whatever seller email was sent."""
    seller = payload.seller.model_copy(update={"email": owner.email})
    payload = payload.model_copy(update={"seller": seller})

    car = await store.create(_columns_from_payload(payload))
    logger.info("Listing %s created by user %s", car.id, owner.id)
    return listing_to_dict(car)


async def get_listing(
    store: ListingStore, car_id: int, include_inactive: bool = False
) -> dict:
    """
    Return the listing detail and count one view.

    The returned ``viewCount`` is the value read before the increment.
    With ``include_inactive`` soft-deleted listings are returned as well
    and no view is counted.
    """
    car = await _require_listing(store, car_id)
    if include_inactive:
        return listing_to_dict(car)
    if not car.is_active:
        raise NotFound("Car not found")

    data = listing_to_dict(car)
    await store.increment_views(car_id)
    return data


async def update_listing(
    store: ListingStore, car_id: int, owner: User, patch: dict[str, Any]
) -> dict:
    """
    Merge *patch* into the listing and re-validate the whole document.

    Existence is checked first, so a missing id is NotFound even for an
    empty patch.
    """
    car = await _require_listing(store, car_id)
    merged = merge_listing_patch(listing_document(car), patch)
    payload = validate_listing(merged)

    car = await store.update(car, _columns_from_payload(payload))
    logger.info("Listing %s updated by user %s", car_id, owner.id)
    return listing_to_dict(car)


async def delete_listing(store: ListingStore, car_id: int, owner: User) -> None:
    car = await _require_listing(store, car_id)
    await store.update(car, {"is_active": False})
    logger.info("Listing %s soft-deleted by user %s", car_id, owner.id)


async def restore_listing(store: ListingStore, car_id: int, admin: User) -> dict:
    car = await _require_listing(store, car_id)
    car = await store.update(car, {"is_active": True})
    logger.info("Listing %s restored by admin %s", car_id, admin.id)
    return listing_to_dict(car)


def owned_by(owner: User):
    """
    Filter matching listings attributed to *owner*: by seller email, or,
    for legacy rows without a seller email, by seller name == username.
    """
    return or_(
        Car.seller_email == owner.email,
        and_(
            or_(Car.seller_email.is_(None), Car.seller_email == ""),
            Car.seller_name == owner.username,
        ),
    )


async def list_my_listings(store: ListingStore, owner: User) -> list[dict]:
    cars = await store.find(
        [Car.is_active.is_(True), owned_by(owner)],
        [Car.created_at.desc(), Car.id.desc()],
    )
    return [listing_to_dict(car) for car in cars]
