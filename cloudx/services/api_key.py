"""API Key service.

Handles key generation, validation (including the static master
credential), capability checks, owner-scoped listing and revocation.
Every mutation is committed before the method returns.
"""

from __future__ import annotations

import hmac
import secrets
import uuid
from collections.abc import Sequence

import structlog
from sqlalchemy import and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cloudx.config import Settings, get_settings
from cloudx.errors import ForbiddenError, NotFoundError, UnauthorizedError, ValidationError
from cloudx.models.api_key import ALL_CAPABILITIES, WILDCARD, ApiKey
from cloudx.models.identity import Identity
from cloudx.utils.datetime import utcnow
from cloudx.validators.path import validate_name

logger = structlog.get_logger()

# Key format: cx_{64 hex chars}
_KEY_PREFIX = "cx_"
_KEY_DISPLAY_LEN = 10  # chars of the secret kept as key_prefix for display


class ApiKeyService:
    """Service for API key lifecycle management."""

    def __init__(self, db_session: AsyncSession, settings: Settings | None = None) -> None:
        self._db = db_session
        self._settings = settings or get_settings()
        self._log = logger.bind(service="api_key")

    @staticmethod
    def generate_key() -> tuple[str, str]:
        """Generate a new API key secret.

        Returns:
            Tuple of (secret, key_prefix)
        """
        random_part = secrets.token_hex(32)  # 256 bits
        secret = f"{_KEY_PREFIX}{random_part}"
        return secret, secret[:_KEY_DISPLAY_LEN]

    @staticmethod
    def authorize(identity: Identity, capability: str) -> bool:
        """Check whether ``identity`` holds ``capability``.

        Admin always passes; otherwise the wildcard or the exact capability
        must be in the credential's permission set.
        """
        if identity.is_admin:
            return True
        return WILDCARD in identity.permissions or capability in identity.permissions

    def admin_identity(self) -> Identity:
        """Fixed identity of the master credential."""
        security = self._settings.security
        return Identity(
            user_id=security.admin_user_id,
            email=security.admin_email,
            display_name=security.admin_display_name,
            is_admin=True,
            permissions=(WILDCARD,),
            key_id=None,
        )

    @staticmethod
    def to_identity(api_key: ApiKey) -> Identity:
        return Identity(
            user_id=api_key.owner_id,
            email=api_key.owner_email,
            display_name=api_key.name,
            is_admin=False,
            permissions=tuple(api_key.permissions or ()),
            key_id=api_key.id,
        )

    async def validate(self, secret: str | None) -> Identity:
        """Resolve a raw secret to an Identity.

        The master credential is checked first and never touches the
        database. Issued keys refresh ``last_used_at`` and ``usage_count``.

        Raises:
            UnauthorizedError: If the secret is empty or unknown
        """
        if not secret:
            raise UnauthorizedError("API key required")

        master_key = self._settings.security.master_key
        if master_key and hmac.compare_digest(secret.encode(), master_key.encode()):
            self._log.debug("auth.success", source="master")
            return self.admin_identity()

        result = await self._db.execute(select(ApiKey).where(ApiKey.secret == secret))
        api_key = result.scalars().first()
        if api_key is None:
            self._log.info("auth.failed", reason="unknown_key")
            raise UnauthorizedError("Invalid API key")

        api_key.last_used_at = utcnow()
        api_key.usage_count = (api_key.usage_count or 0) + 1
        await self._db.commit()

        self._log.debug("auth.success", source="db", owner=api_key.owner_id)
        return self.to_identity(api_key)

    def _resolve_permissions(
        self,
        identity: Identity,
        requested: Sequence[str] | None,
    ) -> list[str]:
        if requested is None:
            requested = [WILDCARD]
        permissions = list(dict.fromkeys(p.strip() for p in requested))
        if not permissions:
            raise ValidationError("permissions must be a non-empty list")

        invalid = [p for p in permissions if p != WILDCARD and p not in ALL_CAPABILITIES]
        if invalid:
            raise ValidationError(
                f"invalid permission(s): {', '.join(invalid)}",
                details={"invalid": invalid, "allowed": sorted(ALL_CAPABILITIES)},
            )

        # A key can never carry more than the credential that minted it.
        if not identity.is_admin and WILDCARD not in identity.permissions:
            missing = [p for p in permissions if p not in identity.permissions]
            if missing:
                raise ForbiddenError(
                    "Cannot grant permissions the current key does not hold",
                    details={"missing": missing},
                )
        return permissions

    async def issue(
        self,
        identity: Identity,
        name: str | None,
        *,
        owner_id: str | None = None,
        owner_email: str | None = None,
        permissions: Sequence[str] | None = None,
    ) -> tuple[ApiKey, str]:
        """Issue a new key owned by the caller.

        Only the admin may provision a key for another owner id; for anyone
        else the key always belongs to ``identity.user_id``.

        Returns:
            Tuple of (stored ApiKey, secret). The secret is not retrievable
            afterwards.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required", details={"field": "name"})

        target_owner = identity.user_id
        target_email = identity.email
        if owner_id is not None and owner_id != identity.user_id:
            if not identity.is_admin:
                raise ForbiddenError("Cannot issue keys for another owner")
            target_owner = validate_name(owner_id, field_name="owner_id")
            target_email = owner_email or ""
        elif identity.is_admin and owner_email:
            target_email = owner_email

        granted = self._resolve_permissions(identity, permissions)
        secret, key_prefix = self.generate_key()

        api_key = ApiKey(
            id=f"key-{uuid.uuid4().hex[:12]}",
            secret=secret,
            key_prefix=key_prefix,
            owner_id=target_owner,
            owner_email=target_email,
            name=name,
            permissions=granted,
            created_at=utcnow(),
        )
        self._db.add(api_key)
        await self._db.commit()
        await self._db.refresh(api_key)

        self._log.info(
            "api_key.issue",
            key_id=api_key.id,
            key_prefix=key_prefix,
            owner=target_owner,
            issued_by=identity.user_id,
        )
        return api_key, secret

    async def list(self, identity: Identity) -> list[ApiKey]:
        """List keys visible to ``identity`` (admin: all, others: own)."""
        query = select(ApiKey)
        if not identity.is_admin:
            query = query.where(ApiKey.owner_id == identity.user_id)
        query = query.order_by(ApiKey.created_at, ApiKey.id)

        result = await self._db.execute(query)
        return list(result.scalars().all())

    async def revoke(self, identity: Identity, key_ref: str) -> ApiKey:
        """Revoke a key by exact id or by secret prefix.

        Raises:
            ValidationError: Empty/ambiguous reference, or the key is the one
                authenticating this request
            NotFoundError: No key matches
            ForbiddenError: The key id belongs to another owner
        """
        key_ref = (key_ref or "").strip()
        if not key_ref:
            raise ValidationError("Key id or prefix is required")

        # Prefix lookups only ever see the caller's own secrets
        by_prefix = ApiKey.secret.startswith(key_ref, autoescape=True)
        if not identity.is_admin:
            by_prefix = and_(ApiKey.owner_id == identity.user_id, by_prefix)

        result = await self._db.execute(
            select(ApiKey).where(or_(ApiKey.id == key_ref, by_prefix))
        )
        matches = list(result.scalars().all())

        if not matches:
            raise NotFoundError("Key not found")
        if len(matches) > 1:
            raise ValidationError(
                "Key prefix is ambiguous; use a longer prefix or the key id",
                details={"reason": "ambiguous_prefix"},
            )

        target = matches[0]
        if not identity.is_admin and target.owner_id != identity.user_id:
            self._log.warning(
                "api_key.revoke.forbidden",
                key_prefix=target.key_prefix,
                caller=identity.user_id,
            )
            raise ForbiddenError("Cannot revoke a key owned by another user")

        if identity.key_id is not None and target.id == identity.key_id:
            raise ValidationError(
                "Cannot revoke the key used to authenticate this request",
                details={"reason": "self_revocation"},
            )

        await self._db.delete(target)
        await self._db.commit()

        self._log.info(
            "api_key.revoke",
            key_id=target.id,
            key_prefix=target.key_prefix,
            owner=target.owner_id,
            revoked_by=identity.user_id,
        )
        return target
