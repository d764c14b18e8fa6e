import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.database import close_db
from app.exceptions import AppError, ValidationError, errors_from_pydantic
from app.logging_config import setup_logging
from app.middleware import TimingMiddleware
from app.routers import admin, auth, cars

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    logger.info("Starting Car Listing API (%s)", settings.APP_ENV)
    yield
    # Shutdown
    await close_db()


app = FastAPI(
    title="Car Listing API",
    description="Vehicle classifieds with search, statistics and token authentication",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware, slow_request_ms=settings.SLOW_REQUEST_MS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------

def _error_response(status_code: int, message: str, headers=None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
        headers=headers,
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, ValidationError):
        return _error_response(exc.status_code, exc.message, errors=exc.errors)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _error_response(exc.status_code, exc.message, headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    raw = exc.errors()
    in_query = any((err.get("loc") or ("",))[0] == "query" for err in raw)
    message = "Query validation error" if in_query else "Validation error"
    return _error_response(400, message, errors=errors_from_pydantic(raw))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return _error_response(
            404,
            f"Not found - {request.url.path}",
            path=request.url.path,
            method=request.method,
        )
    return _error_response(exc.status_code, str(exc.detail))


# Routers
app.include_router(auth.router)
app.include_router(cars.router)
app.include_router(admin.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}
