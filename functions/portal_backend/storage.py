"""
Storage abstraction for S3-compatible object storage and in-memory testing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

import boto3
from botocore.config import Config

# Public links to attachments should outlive the admin's review of them.
PUBLIC_URL_EXPIRES_IN = 7 * 24 * 3600


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        ...

    def public_url(self, path: str) -> str:
        ...

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        ...

    def get_bytes(self, path: str) -> bytes:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    stored_objects: dict = None
    content_types: dict = None

    def __post_init__(self):
        if self.stored_objects is None:
            self.stored_objects = {}
        if self.content_types is None:
            self.content_types = {}

    def reset(self) -> None:
        self.stored_objects.clear()
        self.content_types.clear()

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        self.stored_objects[path] = bytes(data)
        self.content_types[path] = content_type

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        return f"{self.base_url}/{path}?op=get&expires={expires_in}"

    def get_bytes(self, path: str) -> bytes:
        stored = self.stored_objects.get(path)
        if stored is None:
            raise FileNotFoundError(path)
        return stored


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client (AWS S3, MinIO, COS, R2 ...).
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_base_url: Optional[str] = None

    def __post_init__(self):
        config = Config(signature_version="s3v4")
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        self._client.put_object(
            Bucket=self.bucket,
            Key=path,
            Body=data,
            ContentType=content_type or "application/octet-stream",
        )

    def public_url(self, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{path}"
        return self.presign_get(path, expires_in=PUBLIC_URL_EXPIRES_IN)

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        return self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": path},
            ExpiresIn=expires_in,
        )

    def get_bytes(self, path: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=path)
        except self._client.exceptions.NoSuchKey as exc:
            raise FileNotFoundError(path) from exc
        return response["Body"].read()
