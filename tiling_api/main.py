import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401 - register tables on Base
from .config import ALLOWED_ORIGINS, SECURITY_HEADERS_ENABLED
from .database import Base, engine
from .domain.accounts.router import router as auth_router
from .domain.availability.router import router as blocked_dates_router
from .domain.bookings.router import router as bookings_router
from .domain.files.router import router as files_router
from .domain.notifications.router import router as notifications_router
from .domain.ratings.router import router as ratings_router
from .errors import BookingAppError
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("botocore").setLevel(logging.WARNING)

HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        # Another worker may have created the tables first
        if "already exists" in str(e):
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Tiling & Roofing Bookings API", version="1.0.0", lifespan=lifespan)


def error_response(status_code: int, code: str, message: str, details=None, headers=None):
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers=headers,
    )


@app.exception_handler(BookingAppError)
async def booking_app_exception_handler(request: Request, exc: BookingAppError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} - {exc.code}: {exc.message}", exc_info=exc)
        return error_response(exc.status_code, exc.code, "An unexpected error occurred")

    logger.warning(f"⚠️ {request.method} {request.url.path} - {exc.code}: {exc.message}")
    return error_response(
        exc.status_code, exc.code, exc.message, exc.details, getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    400 with per-field messages; a missing or malformed Authorization header
    is reported as 401 instead
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return error_response(401, "UNAUTHORIZED", "Not authenticated")

    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    logger.warning(f"Validation error for {request.url.path}: {details}")
    return error_response(400, "VALIDATION_ERROR", "Validation failed", details)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # HTTPBearer reports a missing header as 403 on older FastAPI releases
    if exc.status_code == 403 and exc.detail == "Not authenticated":
        return error_response(401, "UNAUTHORIZED", "Not authenticated")
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return error_response(exc.status_code, code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"❌ Database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
# block-dates must be registered before /api/bookings/{booking_ref}
app.include_router(auth_router)
app.include_router(blocked_dates_router)
app.include_router(bookings_router)
app.include_router(ratings_router)
app.include_router(notifications_router)
app.include_router(files_router)


@app.get("/")
def root():
    return {"message": "Tiling & Roofing Bookings API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
