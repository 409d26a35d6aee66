"""Unit tests for settings loading.

Tests:
- Defaults
- YAML config file discovery
- CLOUDX_ environment overrides with nested delimiter
- MASTER_KEY fallback for the admin credential
"""

from __future__ import annotations

from pathlib import Path

import pytest

from cloudx.config import DEFAULT_MASTER_KEY, MiB, Settings, _load_config_file, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Run from an empty directory with no CloudX variables set."""
    for name in ("CLOUDX_CONFIG_FILE", "MASTER_KEY", "CLOUDX_STORAGE__MAX_UPLOAD_BYTES"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestDefaults:
    def test_defaults(self):
        settings = Settings()

        assert settings.server.port == 3000
        assert settings.storage.max_upload_bytes == 100 * MiB
        assert settings.storage.default_region == "us-east-1"
        assert settings.security.api_key_header == "X-API-Key"
        assert settings.security.master_key == DEFAULT_MASTER_KEY
        assert settings.uses_default_master_key is True

    def test_storage_paths_are_absolute(self):
        settings = Settings(storage={"root_path": "./data"})

        assert settings.storage.root.is_absolute()
        assert settings.storage.staging_root == settings.storage.root / ".staging"


class TestSources:
    def test_master_key_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("MASTER_KEY", "from-env")

        settings = Settings()

        assert settings.security.master_key == "from-env"
        assert settings.uses_default_master_key is False

    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CLOUDX_STORAGE__MAX_UPLOAD_BYTES", "2048")

        assert Settings().storage.max_upload_bytes == 2048

    def test_no_config_file(self):
        assert _load_config_file() == {}

    def test_config_file_from_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        config = tmp_path / "custom.yaml"
        config.write_text(
            "server:\n  port: 8080\nstorage:\n  root_path: /srv/cloudx\n"
        )
        monkeypatch.setenv("CLOUDX_CONFIG_FILE", str(config))

        settings = get_settings()

        assert settings.server.port == 8080
        assert settings.storage.root_path == "/srv/cloudx"

    def test_config_yaml_in_cwd(self, tmp_path: Path):
        (tmp_path / "config.yaml").write_text("security:\n  admin_user_id: root\n")

        assert _load_config_file() == {"security": {"admin_user_id": "root"}}
