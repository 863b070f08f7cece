"""
fixilissimo/uploads.py

Blob storage for project photos and cover images: store a blob, get back the
generated filename it is served under (/uploads/<filename>).
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from fixilissimo import config
from fixilissimo.errors import ValidationError

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class StoredBlob:
    filename: str
    original_name: str
    size: int


class BlobStore:
    """Local-disk blob store with a per-file size cap."""

    def __init__(self, directory: Path, max_bytes: int = config.MAX_UPLOAD_BYTES):
        self.directory = Path(directory)
        self.max_bytes = max_bytes
        self.directory.mkdir(parents=True, exist_ok=True)

    def save(self, stream: BinaryIO, original_name: Optional[str]) -> StoredBlob:
        """
        Write the stream under a random filename that keeps the original extension.

        Raises:
            ValidationError: payload larger than max_bytes (nothing is kept)
        """
        original_name = Path(original_name or "upload").name
        suffix = Path(original_name).suffix.lower()[:10]
        filename = f"{secrets.token_hex(16)}{suffix}"
        target = self.directory / filename

        size = 0
        try:
            with open(target, "wb") as out:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_bytes:
                        limit_mb = self.max_bytes // (1024 * 1024)
                        raise ValidationError(f"File exceeds {limit_mb}MB limit")
                    out.write(chunk)
        except BaseException:
            # No partial blobs: over the cap, disk errors or a broken stream
            target.unlink(missing_ok=True)
            raise

        if config.IS_DEV:
            print(f"[UPLOADS] Stored {filename} ({size} bytes) from {original_name!r}")
        return StoredBlob(filename=filename, original_name=original_name, size=size)

    def discard(self, filename: Optional[str]) -> None:
        """Remove a blob; unknown or already-removed names are ignored."""
        if not filename:
            return
        # Only plain names produced by save() live here
        target = self.directory / Path(filename).name
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            print(f"[UPLOADS] Could not remove {filename}: {e}")

    def path_for(self, filename: str) -> Path:
        return self.directory / Path(filename).name
