"""Manager layer - business logic."""

from cloudx.managers.bucket import BucketManager
from cloudx.managers.objects import ObjectManager

__all__ = ["BucketManager", "ObjectManager"]
