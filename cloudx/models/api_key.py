"""API Key data model.

Secrets are stored and compared in plaintext and never expire; see DESIGN.md.
Only ``key_prefix`` is ever shown after the issue response.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from cloudx.utils.datetime import utcnow

# Capability strings checked by ApiKeyService.authorize
WILDCARD = "*"
STORAGE_READ = "storage:read"
STORAGE_WRITE = "storage:write"
KEYS_READ = "keys:read"
KEYS_WRITE = "keys:write"

ALL_CAPABILITIES = frozenset({STORAGE_READ, STORAGE_WRITE, KEYS_READ, KEYS_WRITE})


class ApiKey(SQLModel, table=True):
    """Issued API key owned by exactly one user."""

    __tablename__ = "api_keys"

    id: str = Field(primary_key=True)
    secret: str = Field(unique=True, index=True)
    key_prefix: str = Field()  # First 10 chars of the secret (e.g., "cx_3f9a1c0")
    owner_id: str = Field(index=True)
    owner_email: str = Field(default="")
    name: str = Field()
    permissions: list[str] = Field(
        default_factory=lambda: [WILDCARD],
        sa_column=Column(JSON, nullable=False),
    )
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    last_used_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    usage_count: int = Field(default=0)
