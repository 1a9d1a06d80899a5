import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bookings.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION-0123456789"  # noqa: S105 - Dev fallback only

# Session tokens are HS256; anything shorter than 32 chars is rejected at startup
MIN_SECRET_KEY_LENGTH = 32
JWT_EXPIRATION_MINUTES = int(os.getenv("JWT_EXPIRATION_MINUTES", "60"))

# Google Sign-In
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")

# Comma separated; users signing in with these emails get the ADMIN role
ADMIN_EMAILS = [e.strip().lower() for e in os.getenv("ADMIN_EMAILS", "").split(",") if e.strip()]
ADMIN_NOTIFICATION_EMAIL = os.getenv("ADMIN_NOTIFICATION_EMAIL")

# Booking references look like TR-48213
BOOKING_REF_PREFIX = os.getenv("BOOKING_REF_PREFIX", "TR")

# File uploads
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")
MAX_UPLOAD_SIZE_BYTES = int(os.getenv("MAX_UPLOAD_SIZE_BYTES", str(10 * 1024 * 1024)))
ALLOWED_UPLOAD_TYPES = [
    t.strip()
    for t in os.getenv(
        "ALLOWED_UPLOAD_TYPES", "image/jpeg,image/png,image/gif,image/webp,application/pdf"
    ).split(",")
    if t.strip()
]

# Cloudflare R2 Configuration (optional, local disk is used when unset)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "tiling-bookings")
STORAGE_TIMEOUT_SECONDS = int(os.getenv("STORAGE_TIMEOUT_SECONDS", "30"))

# Frontend base URL used in email links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Tiling Bookings <noreply@tilingbookings.com.au>")

# Optional ARQ queue for post-commit work
REDIS_URL = os.getenv("REDIS_URL")

ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"
