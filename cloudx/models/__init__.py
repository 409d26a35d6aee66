"""SQLModel data models."""

from cloudx.models.api_key import ApiKey
from cloudx.models.bucket import Bucket
from cloudx.models.identity import Identity

__all__ = [
    "ApiKey",
    "Bucket",
    "Identity",
]
