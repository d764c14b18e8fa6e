"""
Reusable FastAPI dependencies: store injection, listing search
parameters, and the authentication / authorization guard.
"""
import logging
from dataclasses import dataclass
from typing import Literal

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.exceptions import (
    AppError,
    Forbidden,
    TokenError,
    TokenMalformed,
    Unauthenticated,
    ValidationError,
)
from app.models import User
from app.schemas import (
    MIN_YEAR,
    BodyType,
    FuelType,
    ListingStatus,
    Transmission,
    max_listing_year,
)
from app.services import auth_service
from app.services.listing_query import DEFAULT_SORT, ListingQuery
from app.store import ListingStore, UserStore

logger = logging.getLogger(__name__)

SortOption = Literal["price", "-price", "year", "-year", "mileage", "-mileage", "createdAt", "-createdAt"]


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------

def get_listing_store(db: AsyncSession = Depends(get_db)) -> ListingStore:
    return ListingStore(db)


def get_user_store(db: AsyncSession = Depends(get_db)) -> UserStore:
    return UserStore(db)


# ---------------------------------------------------------------------------
# Listing search parameters
# ---------------------------------------------------------------------------

def listing_query_params(
    page: int = Query(1, ge=1, description="Page number (1-based)."),
    limit: int = Query(
        settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=100,
        description="Number of listings per page (max 100).",
    ),
    sort: SortOption = Query(DEFAULT_SORT, description="Sort key; prefix with '-' for descending."),
    make: str | None = Query(None, description="Case-insensitive partial match."),
    model: str | None = Query(None, description="Case-insensitive partial match."),
    min_price: float | None = Query(None, alias="minPrice", ge=0),
    max_price: float | None = Query(None, alias="maxPrice", ge=0),
    min_year: int | None = Query(None, alias="minYear", ge=MIN_YEAR),
    max_year: int | None = Query(None, alias="maxYear"),
    fuel_type: FuelType | None = Query(None, alias="fuelType"),
    transmission: Transmission | None = Query(None),
    body_type: BodyType | None = Query(None, alias="bodyType"),
    city: str | None = Query(None, description="Case-insensitive partial match."),
    state: str | None = Query(None, description="Case-insensitive partial match."),
    status: ListingStatus = Query("available"),
) -> ListingQuery:
    """
    Parse and validate listing search parameters into a ``ListingQuery``.

    ``limit`` is additionally clamped to ``settings.MAX_PAGE_SIZE`` so a
    settings change is enough to lower the ceiling.  ``maxYear`` is
    checked against the current year here rather than in the signature
    because the bound moves every January.
    """
    if max_year is not None and max_year > max_listing_year():
        raise ValidationError(
            "Query validation error",
            errors=[{"field": "maxYear", "message": "Year cannot be in the future"}],
        )

    def _text(value: str | None) -> str | None:
        value = value.strip() if value else None
        return value or None

    return ListingQuery(
        page=page,
        limit=min(limit, settings.MAX_PAGE_SIZE),
        sort=sort,
        make=_text(make),
        model=_text(model),
        min_price=min_price,
        max_price=max_price,
        min_year=min_year,
        max_year=max_year,
        fuel_type=fuel_type,
        transmission=transmission,
        body_type=body_type,
        city=_text(city),
        state=_text(state),
        status=status,
    )


# ---------------------------------------------------------------------------
# Authentication guard
# ---------------------------------------------------------------------------

@dataclass
class AuthResult:
    """Outcome of resolving a request's bearer token: a user or an error."""

    user: User | None = None
    error: AppError | None = None


async def resolve_identity(request: Request, store: UserStore) -> AuthResult:
    """
    Resolve the bearer token on *request* to an active user.

    Never raises for authentication problems; they come back in
    ``AuthResult.error`` so each caller decides whether they are fatal.
    """
    token = auth_service.extract_bearer(request.headers.get("Authorization"))
    if token is None:
        return AuthResult(error=Unauthenticated("Access denied. No token provided."))

    try:
        claims = auth_service.decode_token(token)
        user_id = int(claims["sub"])
    except TokenError as exc:
        return AuthResult(error=exc)
    except (KeyError, TypeError, ValueError):
        return AuthResult(error=TokenMalformed())

    user = await store.get(user_id)
    if user is None or not user.is_active:
        return AuthResult(error=Unauthenticated("Access denied. User not found or inactive."))
    return AuthResult(user=user)


async def get_current_user(
    request: Request,
    store: UserStore = Depends(get_user_store),
) -> User:
    """
    Hard gate: the request must carry a valid token for an active user.

    Token errors are reported as ``Unauthenticated`` with the token
    error's message.  The user is bound to ``request.state.user``.
    """
    result = await resolve_identity(request, store)
    if result.error is not None:
        logger.debug("Rejected authentication: %s", result.error.message)
        if isinstance(result.error, TokenError):
            raise Unauthenticated(result.error.message) from result.error
        raise result.error
    request.state.user = result.user
    return result.user


async def get_current_user_optional(
    request: Request,
    store: UserStore = Depends(get_user_store),
) -> User | None:
    """
    Soft enrichment: bind the user when the token resolves, otherwise
    continue anonymously.  Any error in the result is discarded.
    """
    result = await resolve_identity(request, store)
    request.state.user = result.user
    return result.user


def authorize(user: User | None, allowed_roles) -> None:
    """Raise unless *user* is present and holds one of *allowed_roles*."""
    if user is None:
        raise Unauthenticated("Access denied. Authentication required.")
    if user.role not in allowed_roles:
        raise Forbidden("Access denied. Insufficient permissions.")


def require_roles(*roles: str):
    """
    Dependency factory: authenticate, then authorize against *roles*::

        @router.post("/...", dependencies=[Depends(require_roles("admin"))])
    """

    async def _require(request: Request, user: User = Depends(get_current_user)) -> User:
        authorize(getattr(request.state, "user", None), roles)
        return user

    return _require
