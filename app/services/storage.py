import asyncio
from functools import lru_cache
from pathlib import Path
from typing import Optional, Protocol

import boto3

from app.config import settings


class BlobStore(Protocol):
    async def put(self, data: bytes, key: str, content_type: str) -> str:
        """Store ``data`` under ``key`` and return its canonical public URL."""
        ...


class LocalBlobStore:
    def __init__(self, base_dir: str, public_base_url: str):
        self.base = Path(base_dir).resolve()
        self.public_base_url = public_base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.base / key).resolve()
        if not path.is_relative_to(self.base):
            raise ValueError(f"Key escapes storage directory: {key}")
        return path

    async def put(self, data: bytes, key: str, content_type: str) -> str:
        path = self._path(key)
        await asyncio.to_thread(self._write, path, data)
        return f"{self.public_base_url}/{key}"

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)


class S3BlobStore:
    def __init__(self, bucket: str, region: str, endpoint_url: Optional[str] = None):
        if not bucket:
            raise RuntimeError(
                "Invalid configuration: storage driver is set to s3, "
                "but S3_BUCKET is unset"
            )
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url or None
        self._s3_client = boto3.client("s3", region_name=region, endpoint_url=self.endpoint_url)

    def object_url(self, key: str) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def put(self, data: bytes, key: str, content_type: str) -> str:
        await asyncio.to_thread(
            self._s3_client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        return self.object_url(key)


@lru_cache
def get_blob_store() -> BlobStore:
    driver = settings.STORAGE_DRIVER.strip().lower()

    if driver == "local":
        return LocalBlobStore(settings.STORAGE_DIR, settings.PUBLIC_BASE_URL)
    elif driver == "s3":
        return S3BlobStore(settings.S3_BUCKET, settings.S3_REGION, settings.S3_ENDPOINT_URL)
    else:
        raise RuntimeError(
            'Invalid STORAGE_DRIVER configuration value: '
            'expected either "local" or "s3".'
        )
