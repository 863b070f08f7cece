# ---------------------------------------------------------
# fixilissimo/main.py
# Fixilissimo - Home Improvement Project Tracker Backend
#
# Run: uvicorn fixilissimo.main:app --reload (from repo root)
#
# - FastAPI + SQLite (dev) / PostgreSQL (DATABASE_URL)
# - /api/auth        : register / login / me / logout
# - /api/locations   : locations + dashboard stats
# - /api/categories  : categories per location
# - /api/projects    : projects, photos, notes, cover image
# - /uploads         : stored photos and images
# ---------------------------------------------------------

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from fixilissimo import config
from fixilissimo.db import Database
from fixilissimo.errors import install_error_handlers
from fixilissimo.migrate import run_migrations
from fixilissimo.routes_auth import router as auth_router
from fixilissimo.routes_categories import router as categories_router
from fixilissimo.routes_locations import router as locations_router
from fixilissimo.routes_projects import router as projects_router
from fixilissimo.uploads import BlobStore


def create_app(database: Optional[Database] = None, blob_store: Optional[BlobStore] = None) -> FastAPI:
    """
    Build the API around an injected storage handle and blob store.
    Defaults come from config; tests pass their own throwaway instances.
    """
    database = database or Database(config.database_url())
    blob_store = blob_store or BlobStore(config.UPLOAD_DIR)
    run_migrations(database)

    app = FastAPI(title="Fixilissimo Backend", version="0.1")
    app.state.database = database
    app.state.blob_store = blob_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS if config.IS_PROD else ["*"],  # Restrict origins in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    app.include_router(auth_router)
    app.include_router(locations_router)
    app.include_router(categories_router)
    app.include_router(projects_router)
    app.mount("/uploads", StaticFiles(directory=str(blob_store.directory)), name="uploads")

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app


app = create_app()
