# fixilissimo/config.py
# Environment-aware configuration for the Fixilissimo backend

import os
from pathlib import Path
from typing import Literal

PACKAGE_ROOT = Path(__file__).resolve().parent

# Environment detection
ENV: Literal["dev", "staging", "prod"] = os.environ.get("ENV", "dev")  # type: ignore
IS_DEV = (ENV == "dev")
IS_STAGING = (ENV == "staging")
IS_PROD = (ENV == "prod")

# JWT configuration
SECRET_KEY = os.environ.get("SECRET_KEY", "fixilissimo-dev-secret-key-change-me-in-prod")
ALGORITHM = "HS256"
ACCESS_TOKEN_DAYS = int(os.environ.get("ACCESS_TOKEN_DAYS", "7"))
MIN_PASSWORD_LENGTH = 4

# Database configuration
# DATABASE_URL takes precedence (managed Postgres in staging/prod)
# Falls back to SQLite beside the package for local development
DATABASE_URL = os.environ.get("DATABASE_URL", "").strip()
DATABASE_PATH = os.environ.get("DATABASE_PATH", "fixilissimo.db")

IS_POSTGRES = DATABASE_URL.startswith(("postgres://", "postgresql://"))


def database_url() -> str:
    """Resolve the SQLAlchemy URL for the configured database."""
    if IS_POSTGRES:
        # SQLAlchemy only accepts the postgresql:// scheme
        if DATABASE_URL.startswith("postgres://"):
            return "postgresql://" + DATABASE_URL[len("postgres://"):]
        return DATABASE_URL
    return f"sqlite:///{PACKAGE_ROOT / DATABASE_PATH}"


# Uploaded photos and project images
UPLOAD_DIR = Path(os.environ.get("UPLOAD_DIR", str(PACKAGE_ROOT / "uploads")))
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# CORS origins (expand for staging/prod)
CORS_ORIGINS = [
    "http://localhost:5173",  # Vite dev server
    "http://127.0.0.1:5173",
]

if IS_STAGING or IS_PROD:
    extra_origins = os.environ.get("CORS_ORIGINS", "")
    if extra_origins:
        CORS_ORIGINS.extend(origin.strip() for origin in extra_origins.split(",") if origin.strip())

print(f"[CONFIG] Environment: {ENV}")
print(f"[CONFIG] Database: {'PostgreSQL' if IS_POSTGRES else 'SQLite (local dev)'}")
print(f"[CONFIG] Access token: {ACCESS_TOKEN_DAYS} days")
print(f"[CONFIG] Upload dir: {UPLOAD_DIR}")
