"""
User service — registration, login, token refresh and profile upkeep.

Passwords only ever reach the database through
``auth_service.get_password_hash``, and ``user_to_dict`` never includes
the hash.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from app.exceptions import Conflict, TokenError, Unauthenticated, ValidationError
from app.models import User
from app.schemas import PasswordChange, Profile, UserLogin, UserRegister
from app.services import auth_service
from app.store import UserStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def user_to_dict(user: User) -> dict:
    """Public view of a user (no password hash)."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "profile": {
            "firstName": user.first_name,
            "lastName": user.last_name,
            "phone": user.phone,
        },
        "fullName": user.full_name,
        "isActive": user.is_active,
        "lastLogin": user.last_login.isoformat() if user.last_login else None,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


def _profile_columns(profile: Profile | None) -> dict:
    if profile is None:
        return {}
    return {
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "phone": profile.phone,
    }


async def _stamp_login(store: UserStore, user: User) -> User:
    return await store.update(user, {"last_login": datetime.now(timezone.utc)})


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def register(store: UserStore, data: UserRegister) -> tuple[User, dict]:
    """
    Create a user and return it together with a fresh token pair.

    Raises Conflict when the email or the username is already taken.  The
    unique constraints back this up if two registrations race.
    """
    existing = await store.find_by_email_or_username(data.email, data.username)
    if existing is not None:
        if existing.email == data.email:
            raise Conflict("Email already registered")
        raise Conflict("Username already taken")

    values = {
        "username": data.username,
        "email": data.email,
        "password_hash": auth_service.get_password_hash(data.password),
        **_profile_columns(data.profile),
    }
    try:
        user = await store.create(values)
    except IntegrityError as exc:
        raise Conflict("A user with this username or email already exists") from exc

    tokens = auth_service.issue_token_pair(user)
    user = await _stamp_login(store, user)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user, tokens


async def login(store: UserStore, data: UserLogin) -> tuple[User, dict]:
    """Check credentials of an active user; both failure modes look the same."""
    user = await store.find_by_email(data.email, active_only=True)
    if user is None or not auth_service.verify_password(data.password, user.password_hash):
        logger.info("Failed login for %s", data.email)
        raise Unauthenticated("Invalid email or password")

    tokens = auth_service.issue_token_pair(user)
    user = await _stamp_login(store, user)
    logger.info("User %s logged in", user.id)
    return user, tokens


async def refresh(store: UserStore, refresh_token: str) -> dict:
    """Exchange a valid refresh token for a new token pair."""
    try:
        claims = auth_service.decode_token(refresh_token)
        user_id = int(claims["sub"])
    except TokenError as exc:
        raise Unauthenticated(exc.message) from exc
    except (KeyError, TypeError, ValueError) as exc:
        raise Unauthenticated("Invalid token") from exc

    user = await store.get(user_id)
    if user is None or not user.is_active:
        raise Unauthenticated("Access denied. User not found or inactive.")
    return auth_service.issue_token_pair(user)


async def update_profile(store: UserStore, user: User, profile: Profile) -> User:
    return await store.update(user, _profile_columns(profile))


async def change_password(store: UserStore, user: User, data: PasswordChange) -> None:
    if not auth_service.verify_password(data.current_password, user.password_hash):
        raise ValidationError(
            "Current password is incorrect",
            errors=[{"field": "currentPassword", "message": "Current password is incorrect"}],
        )
    await store.update(user, {"password_hash": auth_service.get_password_hash(data.new_password)})
    logger.info("User %s changed password", user.id)
