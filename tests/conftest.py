"""Shared fixtures: isolated settings and an in-memory catalog per test."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

import cloudx.models  # noqa: F401
from cloudx.config import Settings
from tests.fakes import make_settings

# Modules that import get_settings by name
SETTINGS_CONSUMERS = (
    "cloudx.api.dependencies",
    "cloudx.api.v1.objects",
    "cloudx.managers.bucket.bucket",
    "cloudx.managers.objects.objects",
    "cloudx.services.api_key",
)


@pytest.fixture
def fake_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Test settings, installed wherever get_settings is consumed."""
    settings = make_settings(tmp_path / "storage", max_upload_bytes=1024, upload_chunk_size=64)
    for module in SETTINGS_CONSUMERS:
        monkeypatch.setattr(f"{module}.get_settings", lambda: settings)
    return settings


@pytest.fixture
async def db_session():
    """Create in-memory SQLite database and session."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async_session_factory = sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_factory() as session:
        yield session

    await engine.dispose()
