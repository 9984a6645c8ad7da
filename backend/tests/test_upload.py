from __future__ import annotations

from unittest.mock import Mock

import pytest

from app.core.config import settings
from app.services.storage_service import storage_service


@pytest.fixture
def storage_mocks(monkeypatch):
    ensure = Mock(return_value=True)
    upload = Mock(return_value="https://project.supabase.test/storage/v1/object/public/chamber-assets/logos/a.png")
    monkeypatch.setattr(storage_service, "ensure_bucket", ensure)
    monkeypatch.setattr(storage_service, "upload_bytes", upload)
    return ensure, upload


def test_upload_requires_file_and_path(client, make_user, login_as, storage_mocks):
    login_as(make_user())

    response = client.post("/api/upload", files={"file": ("a.png", b"png", "image/png")})

    assert response.status_code == 400
    assert response.json() == {"error": "File and path are required"}


def test_upload_rejects_large_files(client, make_user, login_as, storage_mocks):
    login_as(make_user())
    payload = b"x" * (settings.max_upload_bytes + 1)

    response = client.post("/api/upload", files={"file": ("a.png", payload, "image/png")}, data={"path": "logos/a.png"})

    assert response.status_code == 400
    assert response.json() == {"error": "File must be less than 5MB"}


def test_upload_creates_bucket_and_upserts(client, make_user, login_as, storage_mocks):
    ensure, upload = storage_mocks
    login_as(make_user())

    response = client.post("/api/upload", files={"file": ("a.png", b"png", "image/png")}, data={"path": "logos/a.png"})

    assert response.status_code == 200
    assert response.json() == {
        "url": "https://project.supabase.test/storage/v1/object/public/chamber-assets/logos/a.png",
        "path": "logos/a.png",
    }
    ensure.assert_called_once_with("chamber-assets", public=True, allowed_mime_types=settings.allowed_image_types_list)
    upload.assert_called_once_with("chamber-assets", "logos/a.png", b"png", "image/png", upsert=True)


def test_public_url_strips_trailing_slash():
    assert storage_service.public_url("case-documents", "c1/1_a.pdf") == (
        "https://project.supabase.test/storage/v1/object/public/case-documents/c1/1_a.pdf"
    )
