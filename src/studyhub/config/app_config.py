"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml
(or the file named by STUDYHUB_CONFIG) with built-in defaults.

Usage:
    from studyhub.config.app_config import load_app_config

    config = load_app_config()
    print(config.backend.documents)
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")
CONFIG_ENV_VAR = "STUDYHUB_CONFIG"


@dataclass
class FirebaseConfig:
    """Connection settings for the managed Firebase services."""

    project_id: str | None = None
    api_key_env: str = "FIREBASE_API_KEY"
    credentials_path: str | None = None
    storage_bucket: str | None = None
    auth_emulator_host: str | None = None

    def get_api_key(self) -> str | None:
        """Get Web API key from environment variable."""
        return os.environ.get(self.api_key_env)


@dataclass
class BackendConfig:
    """Which document database and object storage to use."""

    documents: str = "sqlite"  # sqlite | firestore
    storage: str = "local"  # local | firebase
    db_path: str = "db/studyhub.db"
    storage_dir: str = "data/storage"


@dataclass
class LimitsConfig:
    """Size limits applied to uploads and extraction input."""

    max_upload_mb: int = 10
    max_extract_mb: int = 5

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def max_extract_bytes(self) -> int:
        return self.max_extract_mb * 1024 * 1024


@dataclass
class AppConfig:
    """Application-wide configuration."""

    llm: dict[str, Any] = field(default_factory=dict)
    firebase: FirebaseConfig = field(default_factory=FirebaseConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "llm": {
            "provider": "gemini",
            "model": "gemini-2.0-flash",
            "temperature": 0.7,
            "max_tokens": 4096,
            "timeout": 120,
        },
        "firebase": {
            "project_id": None,
            "api_key_env": "FIREBASE_API_KEY",
            "credentials_path": None,
            "storage_bucket": None,
            "auth_emulator_host": None,
        },
        "backend": {
            "documents": "sqlite",
            "storage": "local",
            "db_path": "db/studyhub.db",
            "storage_dir": "data/storage",
        },
        "limits": {
            "max_upload_mb": 10,
            "max_extract_mb": 5,
        },
    }


def _merge(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge one level of section overrides into defaults."""
    result = copy.deepcopy(defaults)
    for section, values in (overrides or {}).items():
        if isinstance(values, dict) and isinstance(result.get(section), dict):
            result[section].update(values)
        else:
            result[section] = values
    return result


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    fb = data.get("firebase", {})
    firebase = FirebaseConfig(
        project_id=fb.get("project_id"),
        api_key_env=fb.get("api_key_env", "FIREBASE_API_KEY"),
        credentials_path=fb.get("credentials_path"),
        storage_bucket=fb.get("storage_bucket"),
        auth_emulator_host=fb.get("auth_emulator_host"),
    )

    be = data.get("backend", {})
    backend = BackendConfig(
        documents=be.get("documents", "sqlite"),
        storage=be.get("storage", "local"),
        db_path=be.get("db_path", "db/studyhub.db"),
        storage_dir=be.get("storage_dir", "data/storage"),
    )

    lim = data.get("limits", {})
    limits = LimitsConfig(
        max_upload_mb=lim.get("max_upload_mb", 10),
        max_extract_mb=lim.get("max_extract_mb", 5),
    )

    return AppConfig(
        llm=dict(data.get("llm", {})),
        firebase=firebase,
        backend=backend,
        limits=limits,
    )


def get_config_path() -> Path:
    """Resolve the config file path, honouring STUDYHUB_CONFIG."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return CONFIG_FILE


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    config_path = get_config_path()
    defaults = _get_defaults()

    if config_path.exists():
        logger.debug("loading_app_config", source=str(config_path))
        loaded = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        data = _merge(defaults, loaded)
    else:
        logger.info("using_default_config", looked_at=str(config_path))
        data = defaults

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
