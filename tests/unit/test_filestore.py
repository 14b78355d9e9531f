import pytest

from tholvi.adapters.fs.filestore import FileSystemStore
from tholvi.domain.errors import DependencyFailure


@pytest.fixture
def store(tmp_path):
    return FileSystemStore(
        base_path=str(tmp_path / "files"),
        public_base_url="https://cdn.example.com/",
        buckets=["screenshots", "thumbnails"],
    )


def test_put_returns_public_url(store):
    url = store.put("screenshots", "u1/proof.png", b"png-bytes")
    assert url == "https://cdn.example.com/screenshots/u1/proof.png"
    assert store.get("screenshots", "u1/proof.png") == b"png-bytes"


def test_unknown_bucket(store):
    with pytest.raises(ValueError, match="Unknown bucket"):
        store.put("avatars", "a.png", b"x")


@pytest.mark.parametrize("path", ["../../etc/passwd", "../thumbnails/x.png", ""])
def test_traversal_blocked(store, path):
    with pytest.raises(ValueError, match="traversal"):
        store.put("screenshots", path, b"x")


def test_get_missing(store):
    with pytest.raises(FileNotFoundError):
        store.get("screenshots", "missing.png")


def test_write_failure_is_dependency_failure(store, tmp_path):
    # A file where the bucket directory should be
    (tmp_path / "files" / "thumbnails").write_bytes(b"")
    with pytest.raises(DependencyFailure):
        store.put("thumbnails", "u1/t.png", b"x")
