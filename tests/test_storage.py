"""Tests for the CV bucket backends."""

import httpx
import pytest

from recruitcrm.core.config import settings
from recruitcrm.services.storage import (
    LocalBucket,
    StorageError,
    SupabaseBucket,
    get_cv_bucket,
)


@pytest.fixture
def local_bucket(tmp_path):
    return LocalBucket(str(tmp_path), "cv", "http://localhost:8000/")


class TestLocalBucket:
    def test_upload_writes_file(self, local_bucket, tmp_path):
        path = local_bucket.upload("1700000000000_cv.pdf", b"%PDF-1.4", "application/pdf")

        assert path == "1700000000000_cv.pdf"
        assert (tmp_path / "cv" / path).read_bytes() == b"%PDF-1.4"

    def test_upload_does_not_overwrite(self, local_bucket):
        local_bucket.upload("cv.pdf", b"first", "application/pdf")
        with pytest.raises(StorageError):
            local_bucket.upload("cv.pdf", b"second", "application/pdf")

    def test_rejects_paths_outside_bucket(self, local_bucket):
        with pytest.raises(StorageError):
            local_bucket.upload("../escape.pdf", b"x", "application/pdf")

    def test_remove(self, local_bucket, tmp_path):
        local_bucket.upload("cv.pdf", b"x", "application/pdf")
        local_bucket.remove(["cv.pdf", "missing.pdf"])
        assert not (tmp_path / "cv" / "cv.pdf").exists()

    def test_public_url(self, local_bucket):
        assert local_bucket.public_url("1_my cv.pdf") == "http://localhost:8000/storage/cv/1_my%20cv.pdf"


class TestSupabaseBucket:
    def test_public_url(self):
        bucket = SupabaseBucket("https://proj.supabase.co/", "service-key", "cv")
        assert bucket.public_url("1_cv.pdf") == "https://proj.supabase.co/storage/v1/object/public/cv/1_cv.pdf"

    @pytest.mark.parametrize(
        "response, message",
        [
            (httpx.Response(400, json={"message": "Duplicate"}), "Duplicate"),
            (httpx.Response(400, json={"error": "Bucket not found"}), "Bucket not found"),
            (httpx.Response(400, json={}), "HTTP 400"),
            (httpx.Response(400, json=["Duplicate"]), '["Duplicate"]'),
            (httpx.Response(502, json="Bad gateway"), '"Bad gateway"'),
            (httpx.Response(502, text="Bad gateway"), "Bad gateway"),
            (httpx.Response(500), "HTTP 500"),
        ],
    )
    def test_error_message(self, response, message):
        assert SupabaseBucket._error_message(response) == message

    def test_upload_failure_with_list_body(self, monkeypatch):
        bucket = SupabaseBucket("https://proj.supabase.co", "service-key", "cv")
        monkeypatch.setattr(
            httpx, "post", lambda *args, **kwargs: httpx.Response(400, json=[{"message": "Duplicate"}])
        )

        with pytest.raises(StorageError) as excinfo:
            bucket.upload("1_cv.pdf", b"%PDF-1.4", "application/pdf")

        assert "Duplicate" in str(excinfo.value)


class TestBucketSelection:
    def test_local_by_default(self):
        assert isinstance(get_cv_bucket(), LocalBucket)

    def test_supabase_backend(self, monkeypatch):
        monkeypatch.setattr(settings, "STORAGE_BACKEND", "supabase")
        monkeypatch.setattr(settings, "SUPABASE_URL", "https://proj.supabase.co")
        assert isinstance(get_cv_bucket(), SupabaseBucket)
