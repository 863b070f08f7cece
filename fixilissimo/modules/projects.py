"""
fixilissimo/modules/projects.py

Project service: the repairs and renovations themselves.

- Every read and write is scoped to the caller
- A project's location must be one of the caller's locations, and its
  category must name a category of that location
- status is stored as given; only the HTTP schema restricts it to the four
  known values, and aggregation buckets anything but "completed" as not completed
- Deleting a project removes its photos and notes in the same transaction,
  then discards the stored blobs
"""

from __future__ import annotations

from typing import Any, BinaryIO, Dict, List, Mapping, Optional

from fixilissimo import config
from fixilissimo.db import now_iso
from fixilissimo.errors import FixitError, NotFoundError, ValidationError
from fixilissimo.models import Doer, ProjectStatus
from fixilissimo.store import OwnershipStore
from fixilissimo.tenant import public, public_rows
from fixilissimo.uploads import BlobStore

# Fields a client may set; image_filename is managed by set_image()
EDITABLE_FIELDS = (
    "name",
    "description",
    "category",
    "location",
    "status",
    "start_month",
    "start_year",
    "budget",
    "actual_cost",
    "estimated_days",
    "doer",
)


class ProjectService:
    def __init__(self, store: OwnershipStore, blobs: BlobStore):
        self.store = store
        self.blobs = blobs

    def list(
        self,
        owner_id: int,
        category: Optional[str] = None,
        status: Optional[str] = None,
        location: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Owner's projects, newest update first; all given filters must match."""
        with self.store.read() as conn:
            rows = self.store.list_projects(
                conn, owner_id, category=category, status=status, location=location, search=search
            )
        return public_rows(rows)

    def get(self, owner_id: int, project_id: int) -> Dict[str, Any]:
        with self.store.read() as conn:
            return public(self.store.get_project(conn, owner_id, project_id))

    def create(self, owner_id: int, payload: Mapping[str, Any]) -> Dict[str, Any]:
        values = self._normalize(payload)
        with self.store.transaction() as conn:
            self._check_references(conn, owner_id, values)
            row = self.store.insert_project(conn, owner_id, values, now_iso())

        if config.IS_DEV:
            print(f"[PROJECTS] Created project_id={row['id']}, owner_id={owner_id}")
        return public(row)

    def update(self, owner_id: int, project_id: int, payload: Mapping[str, Any]) -> Dict[str, Any]:
        values = self._normalize(payload)
        with self.store.transaction() as conn:
            existing = self.store.get_project(conn, owner_id, project_id)
            self._check_references(conn, owner_id, values)
            values["image_filename"] = existing.get("image_filename")
            row = self.store.update_project(conn, owner_id, project_id, values, now_iso())
        return public(row)

    def delete(self, owner_id: int, project_id: int) -> None:
        with self.store.transaction() as conn:
            blobs = self.store.delete_project(conn, owner_id, project_id)

        for filename in blobs:
            self.blobs.discard(filename)
        if config.IS_DEV:
            print(f"[PROJECTS] Deleted project_id={project_id}, owner_id={owner_id}, blobs={len(blobs)}")

    def set_image(
        self, owner_id: int, project_id: int, stream: Optional[BinaryIO], original_name: Optional[str]
    ) -> Dict[str, Any]:
        """Replace the project's cover image and bump updated_at."""
        if stream is None or not original_name:
            raise ValidationError("No image file uploaded")

        # Check ownership before touching the disk
        previous = self.get(owner_id, project_id).get("image_filename")
        stored = self.blobs.save(stream, original_name)
        try:
            with self.store.transaction() as conn:
                row = self.store.set_project_image(conn, owner_id, project_id, stored.filename, now_iso())
        except FixitError:
            self.blobs.discard(stored.filename)
            raise

        if previous and previous != stored.filename:
            self.blobs.discard(previous)
        return public(row)

    # -----------------------------------------------------
    # Helpers
    # -----------------------------------------------------
    @staticmethod
    def _normalize(payload: Mapping[str, Any]) -> Dict[str, Any]:
        values = {field: payload.get(field) for field in EDITABLE_FIELDS}
        if not values["name"] or not str(values["name"]).strip():
            raise ValidationError("Name is required")
        values["name"] = str(values["name"]).strip()
        values["status"] = values["status"] or ProjectStatus.planning.value
        values["doer"] = values["doer"] or Doer.me.value
        return values

    def _check_references(self, conn, owner_id: int, values: Mapping[str, Any]) -> None:
        location = values.get("location")
        category = values.get("category")

        if location:
            try:
                self.store.get_location(conn, owner_id, location)
            except NotFoundError:
                raise ValidationError(f"location: unknown location '{location}'")

        if category:
            if not location:
                raise ValidationError("category: a location is required when a category is set")
            if not self.store.category_exists(conn, owner_id, location, category):
                raise ValidationError(f"category: '{category}' is not a category of location '{location}'")
