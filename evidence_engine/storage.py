"""
Object Storage
==============

Binary object store for case files and generated reports.

Backends:
- local: files under LOCAL_STORAGE_DIR, downloads through short-lived
  JWT-signed links served by GET /files/{token}
- s3: any S3-compatible bucket via boto3, presigned GET URLs

Only three operations are needed: put, get and signed_url.
"""

import logging
import os
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import boto3
import jwt
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

URL_TOKEN_ALGORITHM = "HS256"


class StorageError(Exception):
    """Object storage operation failed"""
    pass


@dataclass
class StoredObject:
    """Bytes read back from a signed link"""
    path: str
    data: bytes
    content_type: str
    download_name: Optional[str] = None


def generate_report_key(case_id: str) -> str:
    """cases/<case_id>/generated/<uuid>.pdf"""
    return f"cases/{case_id}/generated/{uuid.uuid4()}.pdf"


def content_disposition(download_name: Optional[str]) -> Optional[str]:
    if not download_name:
        return None
    safe = download_name.replace('"', "")
    return f'attachment; filename="{safe}"'


class ObjectStorage(ABC):
    """Abstract base class for storage backends"""

    @abstractmethod
    def put(self, path: str, data: bytes, content_type: str) -> None:
        """Write bytes at path"""
        pass

    @abstractmethod
    def get(self, path: str) -> bytes:
        """Read bytes stored at path"""
        pass

    @abstractmethod
    def signed_url(self, path: str, ttl_seconds: int, download_name: Optional[str] = None) -> str:
        """Time-limited retrieval URL; download_name forces an attachment filename"""
        pass


# =============================================================================
# LOCAL FILESYSTEM
# =============================================================================

class LocalStorage(ObjectStorage):
    """Filesystem backend for development and single-node deployments"""

    def __init__(self, root: str, base_url: str, signing_secret: str):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")
        self.signing_secret = signing_secret

    def _resolve(self, path: str) -> Path:
        target = (self.root / path.lstrip("/")).resolve()
        if target != self.root and self.root not in target.parents:
            raise StorageError("Invalid storage path")
        return target

    def put(self, path: str, data: bytes, content_type: str) -> None:
        target = self._resolve(path)
        tmp = target.with_suffix(target.suffix + ".part")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(data)
            os.replace(tmp, target)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            logger.error(f"Local storage write failed for {path}: {e}")
            raise StorageError("Failed to store object") from e

    def get(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as e:
            raise StorageError("Object not found") from e
        except OSError as e:
            logger.error(f"Local storage read failed for {path}: {e}")
            raise StorageError("Failed to read object") from e

    def signed_url(self, path: str, ttl_seconds: int, download_name: Optional[str] = None) -> str:
        self._resolve(path)
        claims = {
            "path": path,
            "exp": datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds),
        }
        if download_name:
            claims["download"] = download_name
        token = jwt.encode(claims, self.signing_secret, algorithm=URL_TOKEN_ALGORITHM)
        return f"{self.base_url}/files/{token}"

    def open_signed(self, token: str) -> StoredObject:
        """
        Resolve a token issued by signed_url().

        Raises:
            StorageError: token invalid, expired, or the object is gone
        """
        try:
            claims = jwt.decode(token, self.signing_secret, algorithms=[URL_TOKEN_ALGORITHM])
        except jwt.ExpiredSignatureError as e:
            raise StorageError("Link expired") from e
        except jwt.InvalidTokenError as e:
            raise StorageError("Invalid link") from e

        path = claims.get("path")
        if not path:
            raise StorageError("Invalid link")
        content_type = "application/pdf" if path.endswith(".pdf") else "application/octet-stream"
        return StoredObject(
            path=path,
            data=self.get(path),
            content_type=content_type,
            download_name=claims.get("download"),
        )


# =============================================================================
# S3
# =============================================================================

class S3Storage(ObjectStorage):
    """S3 (or S3-compatible) bucket backend"""

    def __init__(self, bucket: str, region: str, endpoint_url: Optional[str] = None,
                 timeout_seconds: float = 30.0, client=None):
        self.bucket = bucket
        self.client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            config=BotoConfig(
                connect_timeout=timeout_seconds,
                read_timeout=timeout_seconds,
                retries={"max_attempts": 1},
            ),
        )

    def put(self, path: str, data: bytes, content_type: str) -> None:
        try:
            self.client.put_object(Bucket=self.bucket, Key=path, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 upload failed for {path}: {e}")
            raise StorageError("Failed to store object") from e

    def get(self, path: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=path)
            return response["Body"].read()
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 download failed for {path}: {e}")
            raise StorageError("Failed to read object") from e

    def signed_url(self, path: str, ttl_seconds: int, download_name: Optional[str] = None) -> str:
        params = {"Bucket": self.bucket, "Key": path}
        disposition = content_disposition(download_name)
        if disposition:
            params["ResponseContentDisposition"] = disposition
        try:
            return self.client.generate_presigned_url("get_object", Params=params, ExpiresIn=ttl_seconds)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 presign failed for {path}: {e}")
            raise StorageError("Failed to sign URL") from e


# =============================================================================
# FACTORY
# =============================================================================

def get_storage(settings: Optional[Settings] = None) -> ObjectStorage:
    """Build the configured storage backend"""
    settings = settings or get_settings()
    if settings.storage_backend == "s3":
        return S3Storage(
            bucket=settings.storage_bucket,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            timeout_seconds=settings.fetch_timeout_seconds,
        )
    return LocalStorage(
        root=settings.local_storage_dir,
        base_url=settings.public_base_url,
        signing_secret=settings.url_signing_secret,
    )
