import io

import pytest

from fixilissimo.errors import ValidationError
from fixilissimo.modules.attachments import parse_flag
from fixilissimo.uploads import BlobStore


def test_save_keeps_extension_and_content(tmp_path):
    store = BlobStore(tmp_path)
    stored = store.save(io.BytesIO(b"abc"), "../../etc/Photo.PNG")
    assert stored.filename.endswith(".png")
    assert stored.original_name == "Photo.PNG"
    assert stored.size == 3
    assert store.path_for(stored.filename).read_bytes() == b"abc"


def test_limit_is_inclusive(tmp_path):
    store = BlobStore(tmp_path, max_bytes=4)
    assert store.save(io.BytesIO(b"1234"), "a.bin").size == 4
    with pytest.raises(ValidationError):
        store.save(io.BytesIO(b"12345"), "b.bin")
    assert len(list(tmp_path.iterdir())) == 1


def test_discard_ignores_missing_and_path_parts(tmp_path):
    store = BlobStore(tmp_path / "blobs")
    outside = tmp_path / "keep.txt"
    outside.write_text("keep")

    store.discard(None)
    store.discard("never-stored.jpg")
    store.discard("../keep.txt")
    assert outside.exists()


@pytest.mark.parametrize(
    "value,expected",
    [("true", True), ("1", True), ("on", True), ("false", False), ("", False), (None, False), (True, True)],
)
def test_parse_flag(value, expected):
    assert parse_flag(value) is expected


class _BrokenStream:
    """Yields one chunk, then fails like a dropped connection."""

    def __init__(self):
        self.calls = 0

    def read(self, size):
        self.calls += 1
        if self.calls == 1:
            return b"partial"
        raise OSError("connection reset")


def test_failed_write_leaves_no_partial_blob(tmp_path):
    store = BlobStore(tmp_path)
    with pytest.raises(OSError):
        store.save(_BrokenStream(), "photo.jpg")
    assert list(tmp_path.iterdir()) == []
