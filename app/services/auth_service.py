"""
Authentication Service
Handles password hashing, JWT issuance and verification, and bearer
header parsing.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from passlib.context import CryptContext

from app.config import settings
from app.exceptions import TokenExpired, TokenInvalid, TokenMalformed
from app.models import User

logger = logging.getLogger(__name__)

# Password hashing configuration
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check if plain password matches hashed version."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate a salted bcrypt hash of password."""
    return pwd_context.hash(password)


def create_token(
    claims: dict[str, Any],
    expires_delta: timedelta,
    now: datetime | None = None,
) -> str:
    """Sign *claims* with the server secret, adding exp/iat/iss/aud."""
    issued_at = now or datetime.now(timezone.utc)
    to_encode = dict(claims)
    to_encode.update({
        "iat": issued_at,
        "exp": issued_at + expires_delta,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def issue_token_pair(user: User, now: datetime | None = None) -> dict[str, Any]:
    """
    Issue an access/refresh token pair for *user*.

    The access token carries the identity (id, email, username, role) and
    lives ``ACCESS_TOKEN_EXPIRE_MINUTES``; the refresh token carries only
    the id and lives ``REFRESH_TOKEN_EXPIRE_DAYS``.  *now* exists so
    callers can backdate issuance.
    """
    access_lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_token(
        {
            "sub": str(user.id),
            "email": user.email,
            "username": user.username,
            "role": user.role,
        },
        access_lifetime,
        now,
    )
    refresh_token = create_token(
        {"sub": str(user.id)},
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        now,
    )
    return {
        "accessToken": access_token,
        "refreshToken": refresh_token,
        "expiresIn": int(access_lifetime.total_seconds()),
    }


def decode_token(token: str) -> dict[str, Any]:
    """
    Verify *token* and return its claims.

    Raises:
        TokenExpired: the ``exp`` claim is in the past.
        TokenInvalid: bad signature, wrong issuer/audience, or a required
            claim is missing.
        TokenMalformed: anything else PyJWT rejects.
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
            options={"require": ["exp", "iss", "aud", "sub"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except (
        jwt.InvalidSignatureError,
        jwt.InvalidIssuerError,
        jwt.InvalidAudienceError,
        jwt.MissingRequiredClaimError,
    ) as exc:
        raise TokenInvalid() from exc
    except jwt.PyJWTError as exc:
        raise TokenMalformed() from exc


def extract_bearer(header_value: str | None) -> str | None:
    """
    Return the token from an ``Authorization: Bearer <token>`` header.

    Anything other than exactly two space-separated parts with the literal
    ``Bearer`` scheme yields None, which callers treat as "no token".
    """
    if not header_value:
        return None
    parts = header_value.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return None
    return parts[1]
