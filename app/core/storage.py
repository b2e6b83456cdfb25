from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from uuid import uuid4

import cloudinary.uploader

from .config import Settings

logger = logging.getLogger(__name__)

_VERSION_SEGMENT = re.compile(r"^v\d+$")


class StorageError(Exception):
    """Raised when an upload to the storage backend fails."""


@dataclass(frozen=True)
class StoredFile:
    filename: str
    content_type: str | None
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class StorageService(Protocol):
    def upload(self, file: StoredFile, folder: str) -> str:
        ...

    def delete(self, url: str) -> None:
        ...


@dataclass(frozen=True)
class CloudinaryConfig:
    cloud_name: str | None
    api_key: str | None
    api_secret: str | None

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudinaryConfig":
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
        )

    def as_options(self) -> dict[str, str]:
        return {
            "cloud_name": self.cloud_name or "",
            "api_key": self.api_key or "",
            "api_secret": self.api_secret or "",
        }


def cloudinary_public_id(url: str) -> str | None:
    """
    Recover the Cloudinary public id from a delivery URL.

    ``https://res.cloudinary.com/<cloud>/image/upload/v1712/products/abc.jpg``
    becomes ``products/abc``. Returns None for anything that does not look
    like a Cloudinary upload URL.
    """

    parts = url.split("cloudinary.com/")
    if len(parts) < 2 or not parts[1]:
        return None

    path_parts = parts[1].split("/")
    if "upload" not in path_parts:
        return None
    public_id_parts = path_parts[path_parts.index("upload") + 1 :]

    if public_id_parts and _VERSION_SEGMENT.match(public_id_parts[0]):
        public_id_parts = public_id_parts[1:]
    if not public_id_parts or not public_id_parts[-1]:
        return None

    stem, dot, _ext = public_id_parts[-1].rpartition(".")
    if dot:
        public_id_parts[-1] = stem

    return "/".join(public_id_parts) or None


class CloudinaryStorageService:
    def __init__(self, config: CloudinaryConfig):
        self.config = config

    def upload(self, file: StoredFile, folder: str) -> str:
        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(file.content),
                folder=folder,
                resource_type="auto",
                **self.config.as_options(),
            )
        except Exception as exc:
            logger.error("Cloudinary upload error: %s", exc)
            raise StorageError(str(exc)) from exc
        if not result or not result.get("secure_url"):
            raise StorageError("Cloudinary upload result is undefined")
        return result["secure_url"]

    def delete(self, url: str) -> None:
        try:
            public_id = cloudinary_public_id(url)
            if not public_id:
                logger.warning("Skipping delete of non-Cloudinary URL %s", url)
                return
            cloudinary.uploader.destroy(public_id, **self.config.as_options())
        except Exception:
            logger.exception("Error deleting %s from Cloudinary", url)


class LocalStorageService:
    """Stores files under MEDIA_ROOT and serves them through the files router."""

    def __init__(self, media_root: Path, url_prefix: str = ""):
        self.media_root = media_root
        self.url_prefix = url_prefix

    def path_for(self, folder: str, file_name: str) -> Path:
        safe_folder = Path(folder).name
        safe_name = Path(file_name).name
        return self.media_root / safe_folder / safe_name

    def upload(self, file: StoredFile, folder: str) -> str:
        ext = Path(file.filename or "").suffix.lower()
        file_name = f"{uuid4().hex}{ext}"
        destination = self.path_for(folder, file_name)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with destination.open("wb") as buffer:
                buffer.write(file.content)
        except OSError as exc:
            raise StorageError(str(exc)) from exc
        return f"{self.url_prefix}/files/{Path(folder).name}/{file_name}"

    def delete(self, url: str) -> None:
        marker = "/files/"
        if marker not in url:
            logger.warning("Skipping delete of foreign URL %s", url)
            return
        folder, _, file_name = url.split(marker, 1)[1].partition("/")
        if not folder or not file_name:
            return
        path = self.path_for(folder, file_name)
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.exception("Error deleting local file %s", path)


def build_storage_service(settings: Settings) -> StorageService:
    if settings.STORAGE_BACKEND == "local":
        return LocalStorageService(settings.media_root, url_prefix=settings.API_PREFIX)
    return CloudinaryStorageService(CloudinaryConfig.from_settings(settings))
