"""CloudX services layer."""

from cloudx.services.api_key import ApiKeyService

__all__ = ["ApiKeyService"]
