"""Driver base class - storage infrastructure abstraction.

Driver is responsible ONLY for creating and removing bucket volumes
(directory trees) on the backing store.
It does NOT handle:
- Authentication
- Owner scoping
- Path validation of caller input
- Catalog persistence
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass
class DiskUsage:
    """Capacity of the filesystem backing the storage root."""

    total: int
    used: int
    available: int
    mounted: str

    @property
    def capacity(self) -> str:
        """Used share as a percentage string, e.g. "10%"."""
        if self.total <= 0:
            return "0%"
        return f"{round(self.used * 100 / self.total)}%"


class Driver(ABC):
    """Abstract storage driver interface."""

    @abstractmethod
    async def create_volume(self, path: Path, labels: dict[str, str] | None = None) -> Path:
        """Create the storage root for a bucket.

        Args:
            path: Absolute path of the bucket root
            labels: Metadata describing the volume (owner, bucket)

        Returns:
            The created path
        """
        ...

    @abstractmethod
    async def delete_volume(self, path: Path) -> None:
        """Recursively delete a bucket root.

        Args:
            path: Absolute path of the bucket root
        """
        ...

    @abstractmethod
    async def volume_exists(self, path: Path) -> bool:
        """Check if a bucket root exists.

        Args:
            path: Absolute path of the bucket root

        Returns:
            True if volume exists
        """
        ...

    @abstractmethod
    async def disk_usage(self) -> DiskUsage:
        """Report capacity of the backing filesystem."""
        ...
