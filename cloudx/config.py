"""CloudX configuration management.

Configuration sources:
1. Config file (config.yaml), passed to Settings as init values
2. Environment variables (CLOUDX_ prefix, ``__`` for nesting)
3. Defaults
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Shipped default; startup logs a warning while it is in use.
DEFAULT_MASTER_KEY = "cloudx-admin-2024-secure-key"

MiB = 1024 * 1024


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000


class DatabaseConfig(BaseModel):
    """Catalog database configuration."""

    url: str = "sqlite+aiosqlite:///./cloudx.db"
    echo: bool = False


class StorageConfig(BaseModel):
    """Bucket storage configuration."""

    # Every bucket lives at <root_path>/<owner_id>/<bucket_name>
    root_path: str = "./data/storage"
    max_upload_bytes: int = 100 * MiB
    upload_chunk_size: int = 1 * MiB
    default_region: str = "us-east-1"

    @property
    def root(self) -> Path:
        return Path(self.root_path).expanduser().resolve()

    @property
    def staging_root(self) -> Path:
        """In-flight uploads are spooled here, outside every bucket.

        Owner ids never contain ".", so this cannot collide with a tenant.
        """
        return self.root / ".staging"


class SecurityConfig(BaseModel):
    """Security configuration."""

    # Static admin credential; never stored in the api_keys table.
    master_key: str = Field(
        default_factory=lambda: os.environ.get("MASTER_KEY", DEFAULT_MASTER_KEY)
    )

    # Header carrying the raw secret (master key or an issued key)
    api_key_header: str = "X-API-Key"

    # Fixed identity the master key resolves to
    admin_user_id: str = "admin"
    admin_email: str = "admin@cloudx.local"
    admin_display_name: str = "Administrator"


class Settings(BaseSettings):
    """CloudX application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CLOUDX_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)

    @property
    def uses_default_master_key(self) -> bool:
        return self.security.master_key == DEFAULT_MASTER_KEY


def _load_config_file() -> dict:
    """Load configuration from YAML file if exists.

    Looks for config file in order:
    1. CLOUDX_CONFIG_FILE environment variable
    2. ./config.yaml
    3. /etc/cloudx/config.yaml
    """
    config_paths = [
        os.environ.get("CLOUDX_CONFIG_FILE"),
        Path("config.yaml"),
        Path("/etc/cloudx/config.yaml"),
    ]

    for path in config_paths:
        if path is None:
            continue
        path = Path(path)
        if path.exists():
            with open(path) as f:
                return yaml.safe_load(f) or {}

    return {}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    file_config = _load_config_file()
    return Settings(**file_config)
