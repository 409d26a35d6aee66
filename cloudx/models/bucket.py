"""Bucket data model.

A Bucket is a named, owner-scoped directory tree. Names are unique per
owner only: two owners can both have a bucket called "data".
"""

from datetime import datetime

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from cloudx.utils.datetime import utcnow


class Bucket(SQLModel, table=True):
    """Bucket - catalog entry for a storage root."""

    __tablename__ = "buckets"
    __table_args__ = (UniqueConstraint("owner_id", "name", name="uq_bucket_owner_name"),)

    id: str = Field(primary_key=True)
    owner_id: str = Field(index=True)
    name: str = Field(index=True)
    region: str = Field(default="us-east-1")

    # Absolute host path: <storage.root_path>/<owner_id>/<name>
    storage_root: str = Field()

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
