from .loader import load_config
from .models import (
    AutoCommitConfig,
    DrawVaultConfig,
    GitConfig,
    StoreConfig,
    StoreSettings,
    Theme,
    VCSConfig,
)
from .settings import SETTINGS_FILE_NAME, SettingsStore

__all__ = [
    "AutoCommitConfig",
    "DrawVaultConfig",
    "GitConfig",
    "SETTINGS_FILE_NAME",
    "SettingsStore",
    "StoreConfig",
    "StoreSettings",
    "Theme",
    "VCSConfig",
    "load_config",
]
