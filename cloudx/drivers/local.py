"""Local filesystem driver.

Bucket volumes are plain directories below the configured storage root.
Blocking calls run in a worker thread via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

import structlog

from cloudx.drivers.base import DiskUsage, Driver
from cloudx.errors import InternalError

logger = structlog.get_logger()


class LocalDriver(Driver):
    """Driver storing buckets as directories under ``root``."""

    def __init__(self, root: Path) -> None:
        self._root = root
        self._log = logger.bind(driver="local")

    @property
    def root(self) -> Path:
        return self._root

    def _ensure_under_root(self, path: Path) -> None:
        if path == self._root or self._root not in path.parents:
            raise InternalError(
                f"Refusing to manage volume outside storage root: {path}",
            )

    async def create_volume(self, path: Path, labels: dict[str, str] | None = None) -> Path:
        self._ensure_under_root(path)
        self._log.info("driver.create_volume", path=str(path), labels=labels or {})
        await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
        return path

    async def delete_volume(self, path: Path) -> None:
        self._ensure_under_root(path)
        self._log.info("driver.delete_volume", path=str(path))
        # Already gone is fine: the caller still drops the catalog row.
        if not await self.volume_exists(path):
            return
        await asyncio.to_thread(shutil.rmtree, path)

    async def volume_exists(self, path: Path) -> bool:
        return await asyncio.to_thread(path.is_dir)

    async def disk_usage(self) -> DiskUsage:
        await asyncio.to_thread(self._root.mkdir, parents=True, exist_ok=True)
        usage = await asyncio.to_thread(shutil.disk_usage, self._root)
        return DiskUsage(
            total=usage.total,
            used=usage.used,
            available=usage.free,
            mounted=str(self._root),
        )
