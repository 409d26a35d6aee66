"""Upload/download and storage stats endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import APIRouter, File, Form, Query, UploadFile
from fastapi.responses import FileResponse
from pydantic import BaseModel

from cloudx.api.dependencies import DriverDep, ObjectManagerDep, StorageReadDep, StorageWriteDep
from cloudx.config import get_settings
from cloudx.errors import ValidationError

router = APIRouter()


class FileUploadResponse(BaseModel):
    """File upload response."""

    filename: str
    path: str
    size: int


class StorageStatsResponse(BaseModel):
    total: int
    used: int
    available: int
    capacity: str
    mounted: str


async def _iter_upload(file: UploadFile, chunk_size: int) -> AsyncIterator[bytes]:
    while chunk := await file.read(chunk_size):
        yield chunk


@router.post("/{bucket_name}/upload", response_model=FileUploadResponse)
async def upload_file(
    bucket_name: str,
    object_mgr: ObjectManagerDep,
    identity: StorageWriteDep,
    file: UploadFile | None = File(None, description="File to upload"),
    folder: str = Form("", description="Target folder relative to the bucket root"),
) -> FileUploadResponse:
    """Upload a file into a bucket folder (multipart/form-data).

    - file: The file to upload; its filename is used as the object name
    - folder: Target folder, created if missing
    """
    if file is None:
        raise ValidationError("No file uploaded", details={"field": "file"})

    settings = get_settings()
    try:
        result = await object_mgr.upload(
            identity,
            bucket_name,
            folder,
            file.filename,
            _iter_upload(file, settings.storage.upload_chunk_size),
            declared_size=file.size,
        )
    finally:
        await file.close()

    return FileUploadResponse(filename=result.filename, path=result.path, size=result.size)


@router.get("/{bucket_name}/download/{filename}")
async def download_file(
    bucket_name: str,
    filename: str,
    object_mgr: ObjectManagerDep,
    identity: StorageReadDep,
    folder: str = Query("", description="Folder containing the file"),
) -> FileResponse:
    """Download a file as a binary stream."""
    path = f"{folder.rstrip('/')}/{filename}" if folder else filename
    target = await object_mgr.download(identity, bucket_name, path)

    return FileResponse(
        path=target.path,
        media_type="application/octet-stream",
        filename=target.filename,
    )


@router.get("/stats", response_model=StorageStatsResponse)
async def storage_stats(
    driver: DriverDep,
    identity: StorageReadDep,
) -> StorageStatsResponse:
    """Report capacity of the filesystem backing the storage root."""
    usage = await driver.disk_usage()
    return StorageStatsResponse(
        total=usage.total,
        used=usage.used,
        available=usage.available,
        capacity=usage.capacity,
        mounted=usage.mounted,
    )
