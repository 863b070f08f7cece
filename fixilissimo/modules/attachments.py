"""
fixilissimo/modules/attachments.py

Photos and notes. Both are children of a project and are owned through it:
every call first proves the caller owns the project.
"""

from __future__ import annotations

from typing import Any, BinaryIO, Dict, List, Optional, Union

from fixilissimo import config
from fixilissimo.db import now_iso
from fixilissimo.errors import FixitError, ValidationError
from fixilissimo.store import OwnershipStore
from fixilissimo.uploads import BlobStore


def parse_flag(value: Union[str, bool, None]) -> bool:
    """Multipart forms send booleans as strings."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return value.strip().lower() in ("true", "1", "yes", "on")


class PhotoService:
    def __init__(self, store: OwnershipStore, blobs: BlobStore):
        self.store = store
        self.blobs = blobs

    def list(self, owner_id: int, project_id: int) -> List[Dict[str, Any]]:
        with self.store.read() as conn:
            self.store.get_project(conn, owner_id, project_id)
            return self.store.list_photos(conn, owner_id, project_id)

    def add(
        self,
        owner_id: int,
        project_id: int,
        stream: Optional[BinaryIO],
        original_name: Optional[str],
        caption: Optional[str] = None,
        is_before: Union[str, bool, None] = None,
    ) -> Dict[str, Any]:
        with self.store.read() as conn:
            self.store.get_project(conn, owner_id, project_id)

        if stream is None or not original_name:
            raise ValidationError("No file uploaded")

        stored = self.blobs.save(stream, original_name)
        values = {
            "filename": stored.filename,
            "original_name": stored.original_name,
            "caption": (caption or "").strip() or None,
            "is_before_photo": parse_flag(is_before),
            "upload_date": now_iso(),
        }
        try:
            with self.store.transaction() as conn:
                row = self.store.insert_photo(conn, owner_id, project_id, values)
        except FixitError:
            self.blobs.discard(stored.filename)
            raise

        if config.IS_DEV:
            print(f"[UPLOADS] Photo {row['id']} added to project_id={project_id}, owner_id={owner_id}")
        return row


class NoteService:
    def __init__(self, store: OwnershipStore):
        self.store = store

    def list(self, owner_id: int, project_id: int) -> List[Dict[str, Any]]:
        with self.store.read() as conn:
            self.store.get_project(conn, owner_id, project_id)
            return self.store.list_notes(conn, owner_id, project_id)

    def add(self, owner_id: int, project_id: int, content: Optional[str]) -> Dict[str, Any]:
        """Insert and return the note, created_at included, in one transaction."""
        with self.store.transaction() as conn:
            self.store.get_project(conn, owner_id, project_id)
            content = (content or "").strip()
            if not content:
                raise ValidationError("Content is required")
            return self.store.insert_note(conn, owner_id, project_id, content, now_iso())
