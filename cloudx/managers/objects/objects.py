"""ObjectManager - file and folder operations inside a bucket.

Every operation resolves the bucket for the caller first (NotFoundError for
missing or foreign buckets), then resolves each caller-supplied path with
``resolve_within`` before touching the filesystem. Blocking calls run via
``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import stat
import tempfile
from collections.abc import AsyncIterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiofiles
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from cloudx.config import get_settings
from cloudx.drivers.base import Driver
from cloudx.errors import ConflictError, FileTooLargeError, NotFoundError, ValidationError
from cloudx.managers.bucket import BucketManager
from cloudx.models.bucket import Bucket
from cloudx.models.identity import Identity
from cloudx.utils.datetime import from_timestamp
from cloudx.validators.path import normalize_relative_path, resolve_within, validate_filename

logger = structlog.get_logger()

KIND_FILE = "file"
KIND_FOLDER = "folder"


@dataclass(frozen=True, slots=True)
class Item:
    """One entry of a folder listing."""

    name: str
    kind: str
    size: int | None
    modified_at: datetime


@dataclass(frozen=True, slots=True)
class UploadResult:
    filename: str
    path: str
    size: int


@dataclass(frozen=True, slots=True)
class DownloadTarget:
    path: Path
    filename: str
    size: int


def _join(folder: str, name: str) -> str:
    return f"{folder}/{name}" if folder else name


def _scan_folder(folder: Path) -> list[Item]:
    if not folder.exists():
        return []
    if not folder.is_dir():
        raise NotFoundError("Folder not found", details={"reason": "not_a_folder"})

    items: list[Item] = []
    with os.scandir(folder) as entries:
        for entry in entries:
            try:
                st = entry.stat()
            except FileNotFoundError:
                # Removed between listing and stat
                continue
            is_dir = stat.S_ISDIR(st.st_mode)
            items.append(
                Item(
                    name=entry.name,
                    kind=KIND_FOLDER if is_dir else KIND_FILE,
                    size=None if is_dir else st.st_size,
                    modified_at=from_timestamp(st.st_mtime),
                )
            )
    return items


def _make_folder(folder: Path) -> None:
    try:
        folder.mkdir(parents=True, exist_ok=True)
    except (FileExistsError, NotADirectoryError) as exc:
        raise ConflictError(
            "A file already exists at this path",
            details={"reason": "not_a_folder"},
        ) from exc


def _remove(target: Path) -> None:
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    else:
        target.unlink()


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


class ObjectManager:
    """Manages objects (files and folders) within a caller's bucket."""

    def __init__(self, driver: Driver, db_session: AsyncSession) -> None:
        self._buckets = BucketManager(driver, db_session)
        self._log = logger.bind(manager="object")
        self._settings = get_settings()

    async def _resolve(
        self,
        identity: Identity,
        bucket_name: str,
        path: str | None,
        *,
        field_name: str = "path",
    ) -> tuple[Bucket, Path]:
        bucket = await self._buckets.get(identity, bucket_name)
        target = resolve_within(Path(bucket.storage_root), path, field_name=field_name)
        return bucket, target

    async def browse(
        self,
        identity: Identity,
        bucket_name: str,
        folder: str | None = "",
    ) -> list[Item]:
        """List immediate children of ``folder``.

        A folder that does not exist yields an empty list. Order is whatever
        the filesystem returns.
        """
        _, target = await self._resolve(identity, bucket_name, folder, field_name="folder")
        return await asyncio.to_thread(_scan_folder, target)

    async def create_folder(
        self,
        identity: Identity,
        bucket_name: str,
        folder_path: str | None,
    ) -> str:
        """Ensure a folder (and missing ancestors) exists.

        Returns:
            The normalized folder path
        """
        normalized = normalize_relative_path(folder_path, field_name="folderPath")
        if not normalized:
            raise ValidationError("folderPath is required", details={"field": "folderPath"})

        bucket, target = await self._resolve(
            identity, bucket_name, normalized, field_name="folderPath"
        )
        await asyncio.to_thread(_make_folder, target)

        self._log.info("object.create_folder", owner=bucket.owner_id, bucket=bucket.name, path=normalized)
        return normalized

    async def upload(
        self,
        identity: Identity,
        bucket_name: str,
        folder: str | None,
        filename: str | None,
        stream: AsyncIterable[bytes],
        declared_size: int | None = None,
    ) -> UploadResult:
        """Store ``stream`` as ``folder/filename``, replacing any existing file.

        The body is spooled into the staging area outside the bucket and
        only moved into place once complete, so a rejected upload leaves
        nothing behind in the bucket.

        Raises:
            FileTooLargeError: If the declared or actual size exceeds the cap
        """
        max_bytes = self._settings.storage.max_upload_bytes
        if declared_size is not None and declared_size > max_bytes:
            raise FileTooLargeError(
                f"File exceeds the {max_bytes} byte upload limit",
                details={"max_bytes": max_bytes, "declared_size": declared_size},
            )

        filename = validate_filename(filename)
        folder_rel = normalize_relative_path(folder, field_name="folder")
        bucket, folder_path = await self._resolve(
            identity, bucket_name, folder_rel, field_name="folder"
        )
        rel_path = _join(folder_rel, filename)
        target = resolve_within(Path(bucket.storage_root), rel_path, field_name="filename")

        staging_root = self._settings.storage.staging_root
        await asyncio.to_thread(staging_root.mkdir, parents=True, exist_ok=True)
        fd, tmp_path = await asyncio.to_thread(
            tempfile.mkstemp, dir=staging_root, prefix="upload-"
        )
        os.close(fd)

        written = 0
        try:
            async with aiofiles.open(tmp_path, "wb") as fh:
                async for chunk in stream:
                    if not chunk:
                        continue
                    written += len(chunk)
                    if written > max_bytes:
                        raise FileTooLargeError(
                            f"File exceeds the {max_bytes} byte upload limit",
                            details={"max_bytes": max_bytes},
                        )
                    await fh.write(chunk)

            await asyncio.to_thread(_make_folder, folder_path)
            if await asyncio.to_thread(target.is_dir):
                raise ConflictError(
                    f"A folder already exists at {rel_path}",
                    details={"path": rel_path},
                )
            await asyncio.to_thread(os.replace, tmp_path, target)
        except BaseException:
            await asyncio.to_thread(_discard, tmp_path)
            raise

        self._log.info(
            "object.upload",
            owner=bucket.owner_id,
            bucket=bucket.name,
            path=rel_path,
            size=written,
        )
        return UploadResult(filename=filename, path=rel_path, size=written)

    async def download(
        self,
        identity: Identity,
        bucket_name: str,
        path: str | None,
    ) -> DownloadTarget:
        """Locate a file for streaming.

        Raises:
            NotFoundError: If there is no regular file at ``path``
        """
        _, target = await self._resolve(identity, bucket_name, path)
        if not await asyncio.to_thread(target.is_file):
            raise NotFoundError("File not found")

        st = await asyncio.to_thread(target.stat)
        return DownloadTarget(path=target, filename=target.name, size=st.st_size)

    async def delete_item(
        self,
        identity: Identity,
        bucket_name: str,
        path: str | None,
    ) -> None:
        """Delete a file, or a folder and everything beneath it."""
        normalized = normalize_relative_path(path)
        if not normalized:
            raise ValidationError(
                "path is required; delete the bucket to remove everything",
                details={"field": "path"},
            )

        bucket, target = await self._resolve(identity, bucket_name, normalized)
        if not await asyncio.to_thread(os.path.lexists, target):
            raise NotFoundError("Item not found")

        await asyncio.to_thread(_remove, target)
        self._log.info("object.delete", owner=bucket.owner_id, bucket=bucket.name, path=normalized)

    async def rename(
        self,
        identity: Identity,
        bucket_name: str,
        old_path: str | None,
        new_path: str | None,
    ) -> str:
        """Move an entry to ``new_path`` within the same bucket.

        Returns:
            The normalized new path

        Raises:
            NotFoundError: If ``old_path`` does not exist
            ConflictError: If ``new_path`` already exists (nothing is changed)
        """
        old_rel = normalize_relative_path(old_path, field_name="oldPath")
        new_rel = normalize_relative_path(new_path, field_name="newPath")
        if not old_rel or not new_rel:
            raise ValidationError("oldPath and newPath are required")

        bucket, source = await self._resolve(identity, bucket_name, old_rel, field_name="oldPath")
        destination = resolve_within(Path(bucket.storage_root), new_rel, field_name="newPath")

        if not await asyncio.to_thread(os.path.lexists, source):
            raise NotFoundError("Item not found")
        if await asyncio.to_thread(os.path.lexists, destination):
            raise ConflictError(
                f"An item already exists at {new_rel}",
                details={"path": new_rel},
            )
        if source in destination.parents:
            raise ValidationError("Cannot move a folder inside itself")

        await asyncio.to_thread(_make_folder, destination.parent)
        await asyncio.to_thread(os.rename, source, destination)

        self._log.info(
            "object.rename",
            owner=bucket.owner_id,
            bucket=bucket.name,
            old_path=old_rel,
            new_path=new_rel,
        )
        return new_rel
