"""FastAPI dependencies for CloudX API.

Provides dependency injection for:
- Database sessions
- Driver
- Managers (Bucket, Object) and ApiKeyService
- Authentication (request -> Identity)
- Capability checks
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from cloudx.config import get_settings
from cloudx.db.session import get_session_dependency
from cloudx.drivers.base import Driver
from cloudx.drivers.local import LocalDriver
from cloudx.errors import ForbiddenError, UnauthorizedError
from cloudx.managers.bucket import BucketManager
from cloudx.managers.objects import ObjectManager
from cloudx.models.api_key import KEYS_READ, KEYS_WRITE, STORAGE_READ, STORAGE_WRITE
from cloudx.models.identity import Identity
from cloudx.services.api_key import ApiKeyService

logger = structlog.get_logger()


@lru_cache
def get_driver() -> Driver:
    """Get cached driver instance rooted at the configured storage path."""
    settings = get_settings()
    return LocalDriver(settings.storage.root)


async def get_api_key_service(
    session: Annotated[AsyncSession, Depends(get_session_dependency)],
) -> ApiKeyService:
    """Get ApiKeyService with injected dependencies."""
    return ApiKeyService(db_session=session)


async def get_bucket_manager(
    session: Annotated[AsyncSession, Depends(get_session_dependency)],
    driver: Annotated[Driver, Depends(get_driver)],
) -> BucketManager:
    """Get BucketManager with injected dependencies."""
    return BucketManager(driver=driver, db_session=session)


async def get_object_manager(
    session: Annotated[AsyncSession, Depends(get_session_dependency)],
    driver: Annotated[Driver, Depends(get_driver)],
) -> ObjectManager:
    """Get ObjectManager with injected dependencies."""
    return ObjectManager(driver=driver, db_session=session)


ApiKeyServiceDep = Annotated[ApiKeyService, Depends(get_api_key_service)]


async def authenticate(request: Request, api_key_svc: ApiKeyServiceDep) -> Identity:
    """Authenticate request and return the caller's Identity.

    Authentication flow:
    1. Read the raw secret from the configured header (default X-API-Key)
    2. Master credential → fixed admin Identity (no DB lookup)
    3. Issued key → owner Identity, last-used refreshed
    4. Missing or unknown → 401 Unauthorized

    Raises:
        UnauthorizedError: If authentication fails
    """
    header = get_settings().security.api_key_header
    secret = request.headers.get(header)

    if not secret:
        raise UnauthorizedError(f"API key required. Include {header} header.")

    return await api_key_svc.validate(secret)


# Type aliases for cleaner dependency injection
DriverDep = Annotated[Driver, Depends(get_driver)]
BucketManagerDep = Annotated[BucketManager, Depends(get_bucket_manager)]
ObjectManagerDep = Annotated[ObjectManager, Depends(get_object_manager)]
AuthDep = Annotated[Identity, Depends(authenticate)]


# ---- Capability enforcement ----


def require_capability(capability: str):
    """Factory for capability check dependency.

    Args:
        capability: Capability name (storage:read, storage:write, ...)

    Returns:
        A dependency function that returns the Identity if allowed.

    Raises:
        ForbiddenError: If the credential lacks the capability.
    """

    async def dependency(identity: AuthDep) -> Identity:
        if not ApiKeyService.authorize(identity, capability):
            logger.info(
                "auth.capability_denied",
                user_id=identity.user_id,
                capability=capability,
            )
            raise ForbiddenError(
                "Insufficient permissions",
                details={"required": capability},
            )
        return identity

    return dependency


# Capability-specific identity dependencies
StorageReadDep = Annotated[Identity, Depends(require_capability(STORAGE_READ))]
StorageWriteDep = Annotated[Identity, Depends(require_capability(STORAGE_WRITE))]
KeysReadDep = Annotated[Identity, Depends(require_capability(KEYS_READ))]
KeysWriteDep = Annotated[Identity, Depends(require_capability(KEYS_WRITE))]
