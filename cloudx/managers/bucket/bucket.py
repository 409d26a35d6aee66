"""BucketManager - per-owner bucket catalog and storage roots.

Lookups are always scoped by ``identity.user_id``. A bucket owned by someone
else is reported exactly like a bucket that does not exist. The admin is not
special-cased: it only sees its own buckets.
"""

from __future__ import annotations

import uuid
from pathlib import Path

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cloudx.concurrency.locks import get_owner_lock
from cloudx.config import get_settings
from cloudx.drivers.base import Driver
from cloudx.errors import ConflictError, NotFoundError
from cloudx.models.bucket import Bucket
from cloudx.models.identity import Identity
from cloudx.utils.datetime import utcnow
from cloudx.validators.path import resolve_within, validate_name

logger = structlog.get_logger()


class BucketManager:
    """Manages bucket lifecycle and storage roots."""

    def __init__(self, driver: Driver, db_session: AsyncSession) -> None:
        self._driver = driver
        self._db = db_session
        self._log = logger.bind(manager="bucket")
        self._settings = get_settings()

    def _storage_root_for(self, owner_id: str, name: str) -> Path:
        owner_dir = resolve_within(self._settings.storage.root, owner_id, field_name="owner_id")
        return resolve_within(owner_dir, name, field_name="name")

    async def _find(self, owner_id: str, name: str) -> Bucket | None:
        result = await self._db.execute(
            select(Bucket).where(
                Bucket.owner_id == owner_id,
                Bucket.name == name,
            )
        )
        return result.scalars().first()

    async def create(
        self,
        identity: Identity,
        name: str,
        region: str | None = None,
    ) -> Bucket:
        """Create a new bucket for the caller.

        Args:
            identity: Caller identity (becomes the owner)
            name: Bucket name (letters, digits, hyphen, underscore)
            region: Free-form region label (defaults to config)

        Returns:
            Created bucket

        Raises:
            ValidationError: If the name is not allowed
            ConflictError: If the caller already has a bucket with that name
        """
        name = validate_name(name, field_name="name")
        owner = validate_name(identity.user_id, field_name="owner_id")
        region = (region or "").strip() or self._settings.storage.default_region

        lock = await get_owner_lock(owner)
        async with lock:
            if await self._find(owner, name) is not None:
                raise ConflictError(f"Bucket already exists: {name}")

            storage_root = self._storage_root_for(owner, name)

            self._log.info(
                "bucket.create",
                owner=owner,
                bucket=name,
                region=region,
                storage_root=str(storage_root),
            )

            # Directory first, then row. A crash in between leaves an
            # orphaned directory, never a row without storage.
            await self._driver.create_volume(
                storage_root,
                labels={"cloudx.owner": owner, "cloudx.bucket": name},
            )

            bucket = Bucket(
                id=f"bkt-{uuid.uuid4().hex[:12]}",
                owner_id=owner,
                name=name,
                region=region,
                storage_root=str(storage_root),
                created_at=utcnow(),
            )
            self._db.add(bucket)
            try:
                await self._db.commit()
            except IntegrityError as exc:
                # Another process won the race on (owner_id, name).
                await self._db.rollback()
                raise ConflictError(f"Bucket already exists: {name}") from exc
            await self._db.refresh(bucket)

        return bucket

    async def get(self, identity: Identity, name: str) -> Bucket:
        """Get one of the caller's buckets by name.

        Raises:
            NotFoundError: If the bucket does not exist or is not the caller's
        """
        bucket = await self._find(identity.user_id, name)
        if bucket is None:
            raise NotFoundError(f"Bucket not found: {name}")
        return bucket

    async def list(self, identity: Identity) -> list[Bucket]:
        """List the caller's buckets."""
        result = await self._db.execute(
            select(Bucket)
            .where(Bucket.owner_id == identity.user_id)
            .order_by(Bucket.name)
        )
        return list(result.scalars().all())

    async def delete(self, identity: Identity, name: str) -> None:
        """Delete a bucket: storage tree first, then the catalog row.

        Raises:
            NotFoundError: If the bucket does not exist or is not the caller's
        """
        lock = await get_owner_lock(identity.user_id)
        async with lock:
            bucket = await self.get(identity, name)

            self._log.info(
                "bucket.delete",
                owner=bucket.owner_id,
                bucket=bucket.name,
                storage_root=bucket.storage_root,
            )

            await self._driver.delete_volume(Path(bucket.storage_root))

            await self._db.delete(bucket)
            await self._db.commit()
