"""
fixilissimo/modules/categories.py

Category service. Categories hang off a location and are owned through it.

Projects refer to categories by name (not id), so renames are carried onto
the owner's projects in the same location. The delete guard matches by name
only: any of the owner's projects carrying that category name blocks it,
whichever location the project sits in.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fixilissimo import config
from fixilissimo.db import now_iso
from fixilissimo.errors import ConflictError, ValidationError
from fixilissimo.store import OwnershipStore
from fixilissimo.tenant import public, public_rows

DUPLICATE_CATEGORY = "Category already exists for this location"


class CategoryService:
    def __init__(self, store: OwnershipStore):
        self.store = store

    def list_by_location(self, owner_id: int, location_id: str) -> List[Dict[str, Any]]:
        with self.store.read() as conn:
            return public_rows(self.store.list_categories(conn, owner_id, location_id))

    def create(self, owner_id: int, location_id: str, name: Optional[str]) -> Dict[str, Any]:
        with self.store.transaction(conflict=DUPLICATE_CATEGORY) as conn:
            self.store.get_location(conn, owner_id, location_id)
            if not name:
                raise ValidationError("Category name is required")
            row = self.store.insert_category(conn, owner_id, location_id, name, now_iso())

        if config.IS_DEV:
            print(f"[CATEGORIES] Created category_id={row['id']}, location_id={location_id!r}, owner_id={owner_id}")
        return public(row)

    def update(self, owner_id: int, location_id: str, category_id: int, name: Optional[str]) -> Dict[str, Any]:
        with self.store.transaction(conflict=DUPLICATE_CATEGORY) as conn:
            self.store.get_location(conn, owner_id, location_id)
            if not name:
                raise ValidationError("Category name is required")
            row = self.store.rename_category(conn, owner_id, location_id, category_id, name)
        return public(row)

    def delete(self, owner_id: int, location_id: str, category_id: int) -> None:
        with self.store.transaction() as conn:
            self.store.get_location(conn, owner_id, location_id)
            category = self.store.get_category(conn, owner_id, location_id, category_id)
            in_use = self.store.count_projects_in_category(conn, owner_id, category)
            if in_use > 0:
                raise ConflictError("Cannot delete category that is being used by projects", project_count=in_use)
            self.store.delete_category(conn, owner_id, location_id, category_id)

        if config.IS_DEV:
            print(f"[CATEGORIES] Deleted category_id={category_id}, location_id={location_id!r}, owner_id={owner_id}")
