from fastapi import APIRouter, Depends

from app.dependencies import get_current_user, get_user_store
from app.models import User
from app.schemas import PasswordChange, ProfileUpdate, RefreshRequest, UserLogin, UserRegister
from app.services import user_service
from app.store import UserStore

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=201)
async def register(data: UserRegister, store: UserStore = Depends(get_user_store)):
    user, tokens = await user_service.register(store, data)
    return {
        "success": True,
        "message": "User registered successfully",
        "data": {"user": user_service.user_to_dict(user), **tokens},
    }


@router.post("/login")
async def login(data: UserLogin, store: UserStore = Depends(get_user_store)):
    user, tokens = await user_service.login(store, data)
    return {
        "success": True,
        "message": "Login successful",
        "data": {"user": user_service.user_to_dict(user), **tokens},
    }


@router.post("/refresh")
async def refresh(data: RefreshRequest, store: UserStore = Depends(get_user_store)):
    tokens = await user_service.refresh(store, data.refresh_token)
    return {"success": True, "data": tokens}


@router.get("/me")
async def get_me(user: User = Depends(get_current_user)):
    return {"success": True, "data": {"user": user_service.user_to_dict(user)}}


@router.put("/profile")
async def update_profile(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    user = await user_service.update_profile(store, user, data.profile)
    return {
        "success": True,
        "message": "Profile updated successfully",
        "data": {"user": user_service.user_to_dict(user)},
    }


@router.put("/password")
async def change_password(
    data: PasswordChange,
    user: User = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    await user_service.change_password(store, user, data)
    return {"success": True, "message": "Password changed successfully"}
