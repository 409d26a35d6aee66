"""Driver layer - storage infrastructure abstraction."""

from cloudx.drivers.base import DiskUsage, Driver
from cloudx.drivers.local import LocalDriver

__all__ = [
    "DiskUsage",
    "Driver",
    "LocalDriver",
]
