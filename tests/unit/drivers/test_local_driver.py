"""Unit tests for LocalDriver."""

from __future__ import annotations

from pathlib import Path

import pytest

from cloudx.drivers.local import LocalDriver
from cloudx.errors import InternalError


@pytest.fixture
def root(tmp_path: Path) -> Path:
    return tmp_path / "storage"


@pytest.fixture
def driver(root: Path) -> LocalDriver:
    return LocalDriver(root)


class TestVolumes:
    async def test_create_and_exists(self, driver: LocalDriver, root: Path):
        path = root / "alice" / "photos"

        created = await driver.create_volume(path, labels={"cloudx.owner": "alice"})

        assert created == path
        assert path.is_dir()
        assert await driver.volume_exists(path) is True

    async def test_create_is_idempotent(self, driver: LocalDriver, root: Path):
        path = root / "alice" / "photos"
        await driver.create_volume(path)
        (path / "keep.txt").write_bytes(b"x")

        await driver.create_volume(path)

        assert (path / "keep.txt").exists()

    async def test_delete_removes_tree(self, driver: LocalDriver, root: Path):
        path = root / "alice" / "photos"
        await driver.create_volume(path)
        (path / "a" / "b").mkdir(parents=True)
        (path / "a" / "b" / "c.txt").write_bytes(b"x")

        await driver.delete_volume(path)

        assert not path.exists()
        assert (root / "alice").is_dir()
        assert await driver.volume_exists(path) is False

    async def test_delete_missing_volume_is_noop(self, driver: LocalDriver, root: Path):
        await driver.delete_volume(root / "alice" / "ghost")

    async def test_refuses_root_itself(self, driver: LocalDriver, root: Path):
        with pytest.raises(InternalError):
            await driver.create_volume(root)
        with pytest.raises(InternalError):
            await driver.delete_volume(root)

    async def test_refuses_paths_outside_root(self, driver: LocalDriver, tmp_path: Path):
        outside = tmp_path / "outside"

        with pytest.raises(InternalError):
            await driver.create_volume(outside)
        with pytest.raises(InternalError):
            await driver.delete_volume(outside)

        assert not outside.exists()


class TestDiskUsage:
    async def test_reports_filesystem_capacity(self, driver: LocalDriver, root: Path):
        usage = await driver.disk_usage()

        assert usage.total > 0
        assert 0 <= usage.available <= usage.total
        assert usage.mounted == str(root)
        assert usage.capacity.endswith("%")
