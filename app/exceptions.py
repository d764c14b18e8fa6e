"""
Error taxonomy shared by services, dependencies and routers.

Services raise the most specific subclass; ``app.main`` registers handlers
that turn any ``AppError`` into the uniform JSON envelope::

    {"success": false, "message": "...", "errors": [...]}
"""


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or out-of-range input; carries per-field detail."""

    status_code = 400
    default_message = "Validation error"

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Access denied. Authentication required."


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied. Insufficient permissions."


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Resource already exists"


# Token verification failures.  The auth dependencies translate these into
# ``Unauthenticated`` so callers only ever see a 401.

class TokenError(AppError):
    status_code = 401
    default_message = "Token verification failed"


class TokenExpired(TokenError):
    default_message = "Token has expired"


class TokenInvalid(TokenError):
    default_message = "Invalid token"


class TokenMalformed(TokenError):
    default_message = "Token verification failed"


def errors_from_pydantic(errors: list[dict]) -> list[dict[str, str]]:
    """
    Convert pydantic / FastAPI error dicts into ``{field, message}`` pairs.

    Location prefixes added by FastAPI (``body``, ``query``, ``path``) are
    dropped so the field reads like the client-facing key path.
    """
    result = []
    for err in errors:
        loc = list(err.get("loc", ()))
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        result.append({
            "field": ".".join(str(part) for part in loc),
            "message": err.get("msg", "Invalid value"),
        })
    return result
