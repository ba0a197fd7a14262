"""
Object storage buckets.

Two interchangeable backends: the hosted storage REST API (addressed with
the service-role key) and a local directory tree served under ``/storage``.
"""

from pathlib import Path
from urllib.parse import quote

import httpx

from recruitcrm.core.config import settings
from recruitcrm.core.logging import get_logger

logger = get_logger("storage")


class StorageError(Exception):
    """Raised when the bucket rejects an upload or removal."""


class LocalBucket:
    """Bucket backed by a directory on disk."""

    def __init__(self, root: str, bucket: str, base_url: str):
        self.bucket = bucket
        self.base_path = Path(root) / bucket
        self.base_url = base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.base_path / path).resolve()
        if self.base_path.resolve() not in target.parents:
            raise StorageError(f"Invalid object path: {path}")
        return target

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        target = self._resolve(path)
        if target.exists():
            raise StorageError("The resource already exists")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(str(e)) from e

        logger.info(f"Saved {path} to bucket '{self.bucket}'")
        return path

    def remove(self, paths: list[str]) -> None:
        for path in paths:
            target = self._resolve(path)
            try:
                target.unlink(missing_ok=True)
            except OSError as e:
                raise StorageError(str(e)) from e
            logger.info(f"Removed {path} from bucket '{self.bucket}'")

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/{self.bucket}/{quote(path)}"


class SupabaseBucket:
    """Bucket in the hosted storage service."""

    def __init__(self, url: str, service_key: str, bucket: str, timeout: float = 30.0):
        self.url = url.rstrip("/")
        self.bucket = bucket
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
        }

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if not isinstance(body, dict):
            return response.text or f"HTTP {response.status_code}"
        return body.get("message") or body.get("error") or f"HTTP {response.status_code}"

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        endpoint = f"{self.url}/storage/v1/object/{self.bucket}/{quote(path)}"
        try:
            response = httpx.post(
                endpoint,
                content=data,
                headers={**self.headers, "Content-Type": content_type, "x-upsert": "false"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise StorageError(str(e)) from e

        if response.is_error:
            raise StorageError(self._error_message(response))
        return path

    def remove(self, paths: list[str]) -> None:
        endpoint = f"{self.url}/storage/v1/object/{self.bucket}"
        try:
            response = httpx.request(
                "DELETE",
                endpoint,
                json={"prefixes": paths},
                headers=self.headers,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise StorageError(str(e)) from e

        if response.is_error:
            raise StorageError(self._error_message(response))

    def public_url(self, path: str) -> str:
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{quote(path)}"


def get_cv_bucket():
    """FastAPI dependency returning the configured CV bucket."""
    if settings.STORAGE_BACKEND == "supabase":
        return SupabaseBucket(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_ROLE_KEY,
            settings.CV_BUCKET,
        )
    return LocalBucket(settings.STORAGE_LOCAL_PATH, settings.CV_BUCKET, settings.PUBLIC_BASE_URL)
