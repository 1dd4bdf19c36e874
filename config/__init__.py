import importlib
import os
from types import ModuleType

from dotenv import load_dotenv

_ENVIRONMENTS = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
}


def get_settings_module() -> str:
    """Settings module for APP_ENV (development when unset or unknown)."""
    return _ENVIRONMENTS.get(os.getenv("APP_ENV", "development").strip().lower(), "config.development")


def load_settings() -> ModuleType:
    # .env never overrides variables already set in the process environment
    load_dotenv(override=False)
    return importlib.import_module(get_settings_module())
