from __future__ import annotations

import logging
import mimetypes
import time
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from ..config import settings
from ..core.errors import NotFound, TransientIO

logger = logging.getLogger(__name__)

EXTENSIONS_BY_TYPE = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "video/webm": "webm",
    "video/mp4": "mp4",
    "video/quicktime": "mov",
    "application/pdf": "pdf",
}


class StorageBackend(str, Enum):
    LOCAL = "local"
    S3 = "s3"


@dataclass
class StoredFile:
    relative_path: str
    public_path: str
    local_path: Optional[str] = None


@dataclass
class RetrievedFile:
    content: bytes
    content_type: str


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def extension_for(content_type: Optional[str], filename: Optional[str] = None) -> str:
    if content_type in EXTENSIONS_BY_TYPE:
        return EXTENSIONS_BY_TYPE[content_type]
    if filename and "." in filename:
        return filename.rsplit(".", 1)[1].lower()
    return "bin"


def media_path(user_id: str, report_id: str, owner_id: str, ext: str, timestamp: Optional[int] = None) -> str:
    """``{userId}/{reportId}/{itemOrRoomId}/{timestamp}.{ext}``"""
    return f"{user_id}/{report_id}/{owner_id}/{timestamp or _timestamp_ms()}.{ext.lstrip('.')}"


def pdf_path(user_id: str, report_id: str, timestamp: Optional[int] = None) -> str:
    return f"{user_id}/{report_id}/report-{timestamp or _timestamp_ms()}.pdf"


class StorageService:
    def __init__(self, backend: Optional[str] = None, upload_root: Optional[Path] = None) -> None:
        backend_name = (backend or settings.file_storage_backend or "local").lower()
        if backend_name.upper() not in StorageBackend.__members__:
            backend_name = "local"
        self.backend = StorageBackend[backend_name.upper()]
        self.upload_root = Path(upload_root) if upload_root is not None else settings.uploads_root_path
        self.public_prefix = settings.uploads_public_prefix.strip("/")
        self.api_base = settings.api_base_url.rstrip("/")
        self._s3_client = None
        if self.backend == StorageBackend.LOCAL:
            self.upload_root.mkdir(parents=True, exist_ok=True)
        else:
            self._configure_s3_client()

    def _configure_s3_client(self) -> None:
        try:
            import boto3
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("boto3 is required for the S3 storage backend; install the 's3' extra.") from exc

        if not settings.s3_bucket:
            raise RuntimeError("S3_BUCKET must be set when using the S3 storage backend.")

        session_kwargs = {
            "region_name": settings.s3_region,
            "aws_access_key_id": settings.s3_access_key,
            "aws_secret_access_key": settings.s3_secret_key,
            "endpoint_url": settings.s3_endpoint_url,
        }
        self._s3_client = boto3.client("s3", **{k: v for k, v in session_kwargs.items() if v})

    def _normalize_relative(self, relative_path: str) -> str:
        relative = relative_path.strip()
        for base in (self.api_base + "/", "/"):
            if relative.startswith(base):
                relative = relative[len(base):]
        if relative.startswith(self.public_prefix + "/"):
            relative = relative.split("/", 1)[1]
        if ".." in Path(relative).parts:
            raise NotFound("File not found.")
        return relative

    def _build_public_path(self, relative_path: str) -> str:
        if self.public_prefix.startswith("http"):
            return f"{self.public_prefix.rstrip('/')}/{relative_path}"
        return f"{self.public_prefix}/{relative_path}".lstrip("/")

    def _s3_call(self, operation: str, **kwargs):
        from botocore.exceptions import BotoCoreError, ClientError

        assert self._s3_client is not None
        try:
            return getattr(self._s3_client, operation)(Bucket=settings.s3_bucket, **kwargs)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in {"NoSuchKey", "404"}:
                raise NotFound("File not found.") from exc
            logger.exception("Object storage request failed", extra={"operation": operation})
            raise TransientIO("Object storage temporarily unavailable.") from exc
        except BotoCoreError as exc:
            logger.exception("Object storage request failed", extra={"operation": operation})
            raise TransientIO("Object storage temporarily unavailable.") from exc

    def save_file(self, relative_path: str, content: bytes, content_type: Optional[str] = None) -> StoredFile:
        relative = self._normalize_relative(relative_path)
        guessed_type = content_type or mimetypes.guess_type(relative)[0] or "application/octet-stream"
        public_path = self._build_public_path(relative)

        if self.backend == StorageBackend.LOCAL:
            target_path = self.upload_root / relative
            target_path.parent.mkdir(parents=True, exist_ok=True)
            target_path.write_bytes(content)
            logger.info("Stored file", extra={"path": relative, "bytes": len(content)})
            return StoredFile(relative_path=relative, public_path=public_path, local_path=str(target_path))

        self._s3_call("put_object", Key=relative, Body=content, ContentType=guessed_type)
        logger.info("Stored file", extra={"path": relative, "bytes": len(content), "backend": "s3"})
        return StoredFile(relative_path=relative, public_path=public_path, local_path=None)

    def delete_file(self, relative_or_public_path: str) -> None:
        relative = self._normalize_relative(relative_or_public_path)
        if not relative:
            return
        if self.backend == StorageBackend.LOCAL:
            target = self.upload_root / relative
            if target.exists():
                target.unlink()
            return
        self._s3_call("delete_object", Key=relative)

    def retrieve_file(self, relative_or_public_path: str) -> RetrievedFile:
        relative = self._normalize_relative(relative_or_public_path)
        if self.backend == StorageBackend.LOCAL:
            target = self.upload_root / relative
            if not target.is_file():
                raise NotFound("File not found.")
            content_type = mimetypes.guess_type(target.name)[0] or "application/octet-stream"
            return RetrievedFile(content=target.read_bytes(), content_type=content_type)

        obj = self._s3_call("get_object", Key=relative)
        content = obj["Body"].read()
        content_type = obj.get("ContentType") or mimetypes.guess_type(relative)[0] or "application/octet-stream"
        return RetrievedFile(content=content, content_type=content_type)

    def public_url(self, relative_or_public_path: str) -> str:
        relative = self._normalize_relative(relative_or_public_path)
        path = self._build_public_path(relative)
        if path.startswith("http"):
            return path
        return f"{self.api_base}/{path.lstrip('/')}"


@lru_cache
def get_storage() -> StorageService:
    return StorageService()
