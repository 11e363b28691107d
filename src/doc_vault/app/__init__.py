from .core.env import ENV, IS_DEV, IS_LOCAL, IS_PROD, IS_TEST, Env, get_env
from .core.logging import setup_logging
from .settings import AppSettings, StorageSettings, get_app_settings, get_storage_settings

CURRENT_ENVIRONMENT = ENV

__all__ = [
    "CURRENT_ENVIRONMENT",
    "ENV",
    "Env",
    "IS_DEV",
    "IS_LOCAL",
    "IS_PROD",
    "IS_TEST",
    "get_env",
    "setup_logging",
    "AppSettings",
    "StorageSettings",
    "get_app_settings",
    "get_storage_settings",
]
