"""
utils/file_storage.py

Validates uploaded files and stores them through a pluggable backend:
local disk (served by the /media static mount) or a MinIO / S3 bucket.
Routers and services only talk to ``AssetStorage``; which backend answers
is decided by STORAGE_BACKEND.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles
from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from domus.core.config import settings
from domus.core.exceptions import DomusError, StorageError, ValidationError

logger = logging.getLogger(__name__)


# ─── Upload rules ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class UploadRule:
    label: str
    # content type -> canonical extension
    content_types: Dict[str, str]
    max_size_mb: int

    @property
    def extensions(self) -> Dict[str, str]:
        """extension -> content type, used when the client sends octet-stream."""
        mapping: Dict[str, str] = {}
        for ctype, ext in self.content_types.items():
            mapping.setdefault(ext, ctype)
        if ".jpg" in mapping:
            mapping[".jpeg"] = mapping[".jpg"]
        return mapping


IMAGE_RULE = UploadRule(
    label="image",
    content_types={
        "image/jpeg": ".jpg",
        "image/jpg": ".jpg",
        "image/png": ".png",
        "image/gif": ".gif",
        "image/webp": ".webp",
    },
    max_size_mb=settings.MAX_UPLOAD_SIZE_MB,
)

DOCUMENT_RULE = UploadRule(
    label="document",
    content_types={
        "application/pdf": ".pdf",
        "application/msword": ".doc",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
        "application/vnd.ms-excel": ".xls",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ".xlsx",
        "text/plain": ".txt",
        "text/csv": ".csv",
        "application/rtf": ".rtf",
        "application/json": ".json",
        "application/xml": ".xml",
    },
    max_size_mb=settings.MAX_DOCUMENT_SIZE_MB,
)


@dataclass
class PreparedUpload:
    data: bytes
    content_type: str
    extension: str
    original_name: str


def _resolve_content_type(file: UploadFile, rule: UploadRule) -> tuple[str, str]:
    """
    Return (content_type, extension) for the uploaded file.

    Some mobile clients send 'application/octet-stream' instead of the real
    MIME type, so we fall back to the filename extension.
    """
    content_type = (file.content_type or "").lower()
    if content_type in rule.content_types:
        return content_type, rule.content_types[content_type]

    filename = file.filename or ""
    ext = Path(filename).suffix.lower()
    if ext in rule.extensions:
        resolved = rule.extensions[ext]
        return resolved, rule.content_types[resolved]

    allowed = ", ".join(sorted({e.lstrip(".") for e in rule.content_types.values()}))
    raise ValidationError(
        f"Unsupported {rule.label} type for '{filename}' (content-type: '{content_type}'). "
        f"Allowed: {allowed}."
    )


async def prepare_upload(file: UploadFile, rule: UploadRule) -> PreparedUpload:
    """Validate type and size and read the file into memory."""
    content_type, ext = _resolve_content_type(file, rule)
    limit = rule.max_size_mb * 1024 * 1024
    too_large = ValidationError(f"{rule.label.capitalize()} '{file.filename}' exceeds {rule.max_size_mb}MB limit.")

    # Reject on the declared size before buffering the body
    if file.size is not None and file.size > limit:
        raise too_large
    contents = await file.read()
    if len(contents) > limit:
        raise too_large
    return PreparedUpload(contents, content_type, ext, file.filename or "")


async def prepare_uploads(files: Optional[List[UploadFile]], rule: UploadRule, max_count: int) -> List[PreparedUpload]:
    real_files = [f for f in (files or []) if f is not None and f.filename]
    if len(real_files) > max_count:
        raise ValidationError(f"At most {max_count} {rule.label} files are allowed.")
    return [await prepare_upload(f, rule) for f in real_files]


# ─── Backends ─────────────────────────────────────────────────────────────────

class AssetStorage(ABC):
    """Object storage for uploaded assets, addressed by public URL."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``key`` and return its public URL."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete the object stored under ``key``; missing objects are ignored."""

    @abstractmethod
    def key_from_url(self, url: str) -> Optional[str]:
        """Map a public URL back to its key, or None when it is not ours."""

    async def upload(self, upload: PreparedUpload, folder: str) -> str:
        key = f"{folder.strip('/')}/{uuid.uuid4().hex}{upload.extension}"
        try:
            return await self.put(key, upload.data, upload.content_type)
        except DomusError:
            raise
        except Exception as e:
            logger.error(f"Upload of '{upload.original_name}' to {folder} failed: {e}")
            raise StorageError(f"Failed to store '{upload.original_name}'") from e

    async def upload_many(self, uploads: List[PreparedUpload], folder: str) -> List[str]:
        """
        Upload a batch concurrently and return the URLs in input order.

        If any upload fails the ones that succeeded are deleted again and the
        first failure is raised, so callers never persist a partial batch.
        """
        if not uploads:
            return []
        results = await asyncio.gather(
            *(self.upload(u, folder) for u in uploads),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            await self.delete_urls([r for r in results if isinstance(r, str)])
            raise failures[0]
        return list(results)

    async def delete_url(self, url: Optional[str]) -> None:
        if not url:
            return
        key = self.key_from_url(url)
        if key is None:
            logger.warning(f"Not deleting foreign asset URL: {url}")
            return
        try:
            await self.remove(key)
        except Exception as e:
            logger.error(f"Failed to delete asset {key}: {e}")
            raise StorageError(f"Failed to delete asset '{key}'") from e

    async def delete_urls(self, urls: List[str]) -> None:
        """Best-effort cleanup used after a failed batch or a row deletion."""
        for url in urls:
            try:
                await self.delete_url(url)
            except StorageError:
                logger.warning(f"Leaving orphaned asset behind: {url}")


class LocalDiskStorage(AssetStorage):
    """Files under MEDIA_ROOT, served by the /media static mount."""

    def __init__(self, root: Path, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValidationError(f"Invalid asset key: {key}")
        return path

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as out:
            await out.write(data)
        return f"{self.base_url}/media/{key}"

    async def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def key_from_url(self, url: str) -> Optional[str]:
        prefix = f"{self.base_url}/media/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):]


class MinIOStorage(AssetStorage):
    """S3-compatible bucket; the blocking client runs in the threadpool."""

    def __init__(self):
        from minio import Minio

        self.client = Minio(
            settings.MINIO_ENDPOINT,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_SECURE,
        )
        self.bucket = settings.MINIO_BUCKET
        scheme = "https" if settings.MINIO_SECURE else "http"
        self.public_base = (
            settings.MINIO_PUBLIC_URL.rstrip("/")
            or f"{scheme}://{settings.MINIO_ENDPOINT}/{self.bucket}"
        )
        if not self.client.bucket_exists(self.bucket):
            self.client.make_bucket(self.bucket)
            logger.info(f"Created bucket: {self.bucket}")
        logger.info(f"MinIO storage initialized with bucket: {self.bucket}")

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        await run_in_threadpool(
            self.client.put_object,
            self.bucket,
            key,
            BytesIO(data),
            len(data),
            content_type=content_type,
        )
        logger.info(f"Uploaded: {key} ({len(data)} bytes)")
        return f"{self.public_base}/{key}"

    async def remove(self, key: str) -> None:
        await run_in_threadpool(self.client.remove_object, self.bucket, key)
        logger.info(f"Deleted: {key}")

    def key_from_url(self, url: str) -> Optional[str]:
        prefix = f"{self.public_base}/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):]


_storage: Optional[AssetStorage] = None


def get_storage() -> AssetStorage:
    """FastAPI dependency returning the process-wide storage backend."""
    global _storage
    if _storage is None:
        if settings.STORAGE_BACKEND == "minio":
            _storage = MinIOStorage()
        else:
            _storage = LocalDiskStorage(Path(settings.MEDIA_ROOT), settings.BASE_URL)
    return _storage
