import pytest

from condition_reports.config import settings
from condition_reports.core.errors import NotFound
from condition_reports.services.storage import StorageService, extension_for, media_path, pdf_path


def test_media_paths_follow_owner_layout():
    assert media_path("u1", "r1", "item-9", "jpg", timestamp=1700000000000) == "u1/r1/item-9/1700000000000.jpg"
    assert pdf_path("u1", "r1", timestamp=1700000000000) == "u1/r1/report-1700000000000.pdf"


def test_extension_for_content_types():
    assert extension_for("image/jpeg") == "jpg"
    assert extension_for("video/webm") == "webm"
    assert extension_for("application/x-unknown", "clip.MOV") == "mov"
    assert extension_for(None) == "bin"


def test_local_save_retrieve_and_delete(tmp_path):
    storage = StorageService(backend="local", upload_root=tmp_path)

    stored = storage.save_file("u1/r1/report-1.pdf", b"%PDF-1.4 test", "application/pdf")
    assert (tmp_path / "u1/r1/report-1.pdf").read_bytes() == b"%PDF-1.4 test"
    assert stored.public_path == f"{settings.uploads_public_prefix}/u1/r1/report-1.pdf"

    url = storage.public_url(stored.relative_path)
    assert url == f"{settings.api_base_url.rstrip('/')}/{settings.uploads_public_prefix}/u1/r1/report-1.pdf"

    retrieved = storage.retrieve_file(url)
    assert retrieved.content == b"%PDF-1.4 test"
    assert retrieved.content_type == "application/pdf"

    storage.delete_file(stored.relative_path)
    with pytest.raises(NotFound):
        storage.retrieve_file(stored.relative_path)


def test_path_traversal_is_rejected(tmp_path):
    storage = StorageService(backend="local", upload_root=tmp_path)
    with pytest.raises(NotFound):
        storage.save_file("../escape.txt", b"nope")
