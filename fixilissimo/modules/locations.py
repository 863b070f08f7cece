"""
fixilissimo/modules/locations.py

Location service: the places (home, boat, summer house...) a user's projects
belong to.

- Location ids are client-chosen slugs, unique per owner
- Deleting a location sweeps its categories
- Deleting is refused while any of the owner's projects points at it
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from fixilissimo import config
from fixilissimo.db import now_iso
from fixilissimo.errors import ConflictError, ValidationError
from fixilissimo.models import DEFAULT_LOCATION_COLOR, DEFAULT_LOCATION_ICON
from fixilissimo.store import OwnershipStore
from fixilissimo.tenant import public, public_rows


class LocationService:
    def __init__(self, store: OwnershipStore):
        self.store = store

    def list(self, owner_id: int) -> List[Dict[str, Any]]:
        with self.store.read() as conn:
            return public_rows(self.store.list_locations(conn, owner_id))

    def get(self, owner_id: int, location_id: str) -> Dict[str, Any]:
        with self.store.read() as conn:
            return public(self.store.get_location(conn, owner_id, location_id))

    def create(self, owner_id: int, payload: Mapping[str, Any]) -> Dict[str, Any]:
        if not payload.get("id") or not payload.get("name"):
            raise ValidationError("ID and name are required")

        values = {
            "id": payload["id"],
            "name": payload["name"],
            "icon": payload.get("icon") or DEFAULT_LOCATION_ICON,
            "color": payload.get("color") or DEFAULT_LOCATION_COLOR,
            "created_at": now_iso(),
        }
        with self.store.transaction(conflict="Location ID already exists") as conn:
            row = self.store.insert_location(conn, owner_id, values)

        if config.IS_DEV:
            print(f"[LOCATIONS] Created location_id={row['id']!r}, owner_id={owner_id}")
        return public(row)

    def update(self, owner_id: int, location_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        if not payload.get("name"):
            raise ValidationError("Name is required")

        values = {
            "name": payload["name"],
            "icon": payload.get("icon") or DEFAULT_LOCATION_ICON,
            "color": payload.get("color") or DEFAULT_LOCATION_COLOR,
        }
        with self.store.transaction() as conn:
            row = self.store.update_location(conn, owner_id, location_id, values)
        return public(row)

    def delete(self, owner_id: int, location_id: str) -> None:
        with self.store.transaction() as conn:
            # Ownership first, so a foreign location is a 404 and never reveals its usage
            self.store.get_location(conn, owner_id, location_id)
            in_use = self.store.count_projects_in_location(conn, owner_id, location_id)
            if in_use > 0:
                raise ConflictError("Cannot delete location that is being used by projects", project_count=in_use)
            self.store.delete_location(conn, owner_id, location_id)

        if config.IS_DEV:
            print(f"[LOCATIONS] Deleted location_id={location_id!r}, owner_id={owner_id}")

