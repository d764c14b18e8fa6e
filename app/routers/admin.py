from fastapi import APIRouter, Depends

from app.dependencies import get_listing_store, require_roles
from app.models import User
from app.services import listing_service
from app.store import ListingStore

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/cars/{car_id}/restore")
async def restore_car(
    car_id: int,
    admin: User = Depends(require_roles("admin")),
    store: ListingStore = Depends(get_listing_store),
):
    car = await listing_service.restore_listing(store, car_id, admin)
    return {"success": True, "message": "Car listing restored", "data": car}
