"""Configuration package for StudyHub."""

from studyhub.config.app_config import (
    AppConfig,
    BackendConfig,
    FirebaseConfig,
    LimitsConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "BackendConfig",
    "FirebaseConfig",
    "LimitsConfig",
    "clear_config_cache",
    "load_app_config",
]
