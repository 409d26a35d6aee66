"""Bucket and folder endpoints.

Request bodies accept the camelCase field names used by the web and mobile
clients (``folderPath``, ``oldPath``, ``newPath``) as well as snake_case.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query
from pydantic import AliasChoices, BaseModel, Field

from cloudx.api.dependencies import BucketManagerDep, ObjectManagerDep, StorageReadDep, StorageWriteDep
from cloudx.managers.objects import Item
from cloudx.models.bucket import Bucket

router = APIRouter()


# Request/Response Models


class CreateBucketRequest(BaseModel):
    """Request to create a bucket."""

    name: str | None = None
    region: str | None = None


class BucketResponse(BaseModel):
    """Bucket response model.

    Note: owner and storage root are intentionally not exposed.
    """

    name: str
    region: str
    created_at: datetime


class CreateFolderRequest(BaseModel):
    folder_path: str | None = Field(
        default=None,
        validation_alias=AliasChoices("folder_path", "folderPath"),
    )


class DeleteItemRequest(BaseModel):
    path: str | None = None


class RenameItemRequest(BaseModel):
    old_path: str | None = Field(
        default=None,
        validation_alias=AliasChoices("old_path", "oldPath"),
    )
    new_path: str | None = Field(
        default=None,
        validation_alias=AliasChoices("new_path", "newPath"),
    )


class ItemResponse(BaseModel):
    name: str
    kind: str
    size: int | None
    modified_at: datetime


class BrowseResponse(BaseModel):
    items: list[ItemResponse]


def _bucket_to_response(bucket: Bucket) -> BucketResponse:
    """Convert Bucket model to API response."""
    return BucketResponse(
        name=bucket.name,
        region=bucket.region,
        created_at=bucket.created_at,
    )


def _item_to_response(item: Item) -> ItemResponse:
    return ItemResponse(
        name=item.name,
        kind=item.kind,
        size=item.size,
        modified_at=item.modified_at,
    )


# Endpoints


@router.post("/buckets", response_model=BucketResponse)
async def create_bucket(
    request: CreateBucketRequest,
    bucket_mgr: BucketManagerDep,
    identity: StorageWriteDep,
) -> BucketResponse:
    """Create a bucket owned by the caller."""
    bucket = await bucket_mgr.create(identity, request.name, request.region)
    return _bucket_to_response(bucket)


@router.get("/buckets", response_model=dict[str, BucketResponse])
async def list_buckets(
    bucket_mgr: BucketManagerDep,
    identity: StorageReadDep,
) -> dict[str, BucketResponse]:
    """List the caller's buckets keyed by name."""
    buckets = await bucket_mgr.list(identity)
    return {b.name: _bucket_to_response(b) for b in buckets}


@router.delete("/buckets/{bucket_name}")
async def delete_bucket(
    bucket_name: str,
    bucket_mgr: BucketManagerDep,
    identity: StorageWriteDep,
) -> dict[str, str]:
    """Delete a bucket and everything in it."""
    await bucket_mgr.delete(identity, bucket_name)
    return {"status": "ok"}


@router.post("/buckets/{bucket_name}/folders")
async def create_folder(
    bucket_name: str,
    request: CreateFolderRequest,
    object_mgr: ObjectManagerDep,
    identity: StorageWriteDep,
) -> dict[str, str]:
    """Create a folder (and missing parents); existing folders are fine."""
    path = await object_mgr.create_folder(identity, bucket_name, request.folder_path)
    return {"status": "ok", "path": path}


@router.get("/buckets/{bucket_name}/browse", response_model=BrowseResponse)
async def browse_bucket(
    bucket_name: str,
    object_mgr: ObjectManagerDep,
    identity: StorageReadDep,
    folder: str = Query("", description="Folder relative to the bucket root"),
) -> BrowseResponse:
    """List the immediate children of a folder."""
    items = await object_mgr.browse(identity, bucket_name, folder)
    return BrowseResponse(items=[_item_to_response(i) for i in items])


@router.delete("/buckets/{bucket_name}/items")
async def delete_item(
    bucket_name: str,
    request: DeleteItemRequest,
    object_mgr: ObjectManagerDep,
    identity: StorageWriteDep,
) -> dict[str, str]:
    """Delete a file, or a folder recursively."""
    await object_mgr.delete_item(identity, bucket_name, request.path)
    return {"status": "ok"}


@router.put("/buckets/{bucket_name}/rename")
async def rename_item(
    bucket_name: str,
    request: RenameItemRequest,
    object_mgr: ObjectManagerDep,
    identity: StorageWriteDep,
) -> dict[str, str]:
    """Move/rename an item; fails with 409 if the target exists."""
    new_path = await object_mgr.rename(
        identity, bucket_name, request.old_path, request.new_path
    )
    return {"status": "ok", "path": new_path}
