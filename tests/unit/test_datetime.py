"""Unit tests for UTC datetime helpers and catalog timestamp columns."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from cloudx.models.api_key import ApiKey
from cloudx.models.bucket import Bucket
from cloudx.utils.datetime import from_timestamp, utcnow


def test_utcnow_is_aware_utc():
    now = utcnow()

    assert now.tzinfo is not None
    assert now.utcoffset() == timedelta(0)
    assert abs(datetime.now(UTC) - now) < timedelta(seconds=5)


def test_from_timestamp_is_aware_utc():
    assert from_timestamp(0) == datetime(1970, 1, 1, tzinfo=UTC)
    assert from_timestamp(0).utcoffset() == timedelta(0)


def test_catalog_columns_store_timezone():
    assert ApiKey.__table__.c.created_at.type.timezone is True
    assert ApiKey.__table__.c.last_used_at.type.timezone is True
    assert Bucket.__table__.c.created_at.type.timezone is True


def test_model_defaults_are_aware():
    bucket = Bucket(id="bkt-1", owner_id="alice", name="photos", storage_root="/tmp/x")

    assert bucket.created_at.tzinfo is not None
