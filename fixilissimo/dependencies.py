"""
fixilissimo/dependencies.py

Reusable FastAPI dependencies that hand each route its service, built on the
storage handle and blob store injected into create_app().
"""

from __future__ import annotations

from fastapi import Depends, Request

from fixilissimo.auth_context import get_db
from fixilissimo.db import Database
from fixilissimo.modules.attachments import NoteService, PhotoService
from fixilissimo.modules.categories import CategoryService
from fixilissimo.modules.locations import LocationService
from fixilissimo.modules.projects import ProjectService
from fixilissimo.modules.stats import StatsService
from fixilissimo.store import OwnershipStore
from fixilissimo.uploads import BlobStore


def get_store(db: Database = Depends(get_db)) -> OwnershipStore:
    return OwnershipStore(db)


def get_blobs(request: Request) -> BlobStore:
    return request.app.state.blob_store


def get_location_service(store: OwnershipStore = Depends(get_store)) -> LocationService:
    return LocationService(store)


def get_category_service(store: OwnershipStore = Depends(get_store)) -> CategoryService:
    return CategoryService(store)


def get_project_service(
    store: OwnershipStore = Depends(get_store),
    blobs: BlobStore = Depends(get_blobs),
) -> ProjectService:
    return ProjectService(store, blobs)


def get_photo_service(
    store: OwnershipStore = Depends(get_store),
    blobs: BlobStore = Depends(get_blobs),
) -> PhotoService:
    return PhotoService(store, blobs)


def get_note_service(store: OwnershipStore = Depends(get_store)) -> NoteService:
    return NoteService(store)


def get_stats_service(store: OwnershipStore = Depends(get_store)) -> StatsService:
    return StatsService(store)
