"""API key endpoints.

The issue response is the only place a secret is ever returned.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter
from pydantic import AliasChoices, BaseModel, Field

from cloudx.api.dependencies import ApiKeyServiceDep, AuthDep, KeysReadDep, KeysWriteDep
from cloudx.models.api_key import ApiKey

router = APIRouter()


# Request/Response Models


class IssueKeyRequest(BaseModel):
    """Request to issue a new API key."""

    name: str | None = None
    owner_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("owner_id", "ownerId"),
        description="Admin only: provision the key for this owner id.",
    )
    owner_email: str | None = Field(
        default=None,
        validation_alias=AliasChoices("owner_email", "ownerEmail", "email"),
    )
    permissions: list[str] | None = Field(
        default=None,
        description="Subset of capabilities; defaults to the wildcard.",
    )


class ApiKeyResponse(BaseModel):
    """API key metadata. The secret is never part of this model."""

    id: str
    name: str
    key_prefix: str
    owner_id: str
    permissions: list[str]
    created_at: datetime
    last_used_at: datetime | None
    usage_count: int


class ApiKeyIssuedResponse(ApiKeyResponse):
    """Issue response: metadata plus the secret, shown exactly once."""

    secret: str
    message: str = "Store this key securely - it will not be shown again"


class IdentityResponse(BaseModel):
    user_id: str
    email: str
    display_name: str
    is_admin: bool
    permissions: list[str]


def _key_to_response(api_key: ApiKey) -> ApiKeyResponse:
    """Convert ApiKey model to API response."""
    return ApiKeyResponse(
        id=api_key.id,
        name=api_key.name,
        key_prefix=f"{api_key.key_prefix}...",
        owner_id=api_key.owner_id,
        permissions=list(api_key.permissions or []),
        created_at=api_key.created_at,
        last_used_at=api_key.last_used_at,
        usage_count=api_key.usage_count,
    )


# Endpoints


@router.post("/keys", response_model=ApiKeyIssuedResponse)
async def issue_key(
    request: IssueKeyRequest,
    api_key_svc: ApiKeyServiceDep,
    identity: KeysWriteDep,
) -> ApiKeyIssuedResponse:
    """Issue a key owned by the caller (or, for the admin, by ``owner_id``)."""
    api_key, secret = await api_key_svc.issue(
        identity,
        request.name,
        owner_id=request.owner_id,
        owner_email=request.owner_email,
        permissions=request.permissions,
    )
    base = _key_to_response(api_key)
    return ApiKeyIssuedResponse(**base.model_dump(), secret=secret)


@router.get("/keys", response_model=list[ApiKeyResponse])
async def list_keys(
    api_key_svc: ApiKeyServiceDep,
    identity: KeysReadDep,
) -> list[ApiKeyResponse]:
    """List keys: the admin sees every key, everyone else their own."""
    keys = await api_key_svc.list(identity)
    return [_key_to_response(k) for k in keys]


@router.delete("/keys/{key_ref}")
async def revoke_key(
    key_ref: str,
    api_key_svc: ApiKeyServiceDep,
    identity: KeysWriteDep,
) -> dict[str, str]:
    """Revoke a key by id or secret prefix."""
    revoked = await api_key_svc.revoke(identity, key_ref)
    return {"status": "ok", "id": revoked.id}


@router.get("/me", response_model=IdentityResponse)
async def whoami(identity: AuthDep) -> IdentityResponse:
    """Describe the authenticated caller."""
    return IdentityResponse(
        user_id=identity.user_id,
        email=identity.email,
        display_name=identity.display_name,
        is_admin=identity.is_admin,
        permissions=list(identity.permissions),
    )
