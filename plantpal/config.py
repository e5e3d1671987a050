"""
Centralized configuration for all environments.

Select a config by setting:
  PLANTPAL_CONFIG=plantpal.config.DevConfig      # local dev
  PLANTPAL_CONFIG=plantpal.config.ProdConfig     # default if unset
  PLANTPAL_CONFIG=plantpal.config.TestConfig     # pytest

Notes:
- The same config objects drive both the mock API server (Flask) and the
  client-side sync layer (see create_sync_service in plantpal.services.sync).
- Values are read from the environment at import time; .env is loaded by
  load_config() / create_app() before the class is resolved.
"""

from __future__ import annotations
import importlib
import os

from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = "plantpal.config.ProdConfig"


class BaseConfig:
    DEBUG = False
    TESTING = False

    # Remote API (mock server by default)
    API_BASE_URL = os.getenv("PLANTPAL_API_BASE_URL", "http://localhost:3001/api")
    API_TIMEOUT_SECONDS = float(os.getenv("PLANTPAL_API_TIMEOUT", "10"))

    # Local storage ("file" or "memory")
    STORAGE_BACKEND = os.getenv("PLANTPAL_STORAGE_BACKEND", "file").strip().lower()
    STORAGE_DIR = os.path.expanduser(os.getenv("PLANTPAL_STORAGE_DIR", "~/.plantpal"))
    STORAGE_QUOTA_BYTES = None  # memory backend only; None = unlimited

    # Mock server
    SEED_DEMO_DATA = os.getenv("PLANTPAL_SEED_DEMO_DATA", "true").lower() in {"1", "true", "yes"}
    JSON_SORT_KEYS = False

    LOG_LEVEL = os.getenv("PLANTPAL_LOG_LEVEL", "INFO").upper()


class ProdConfig(BaseConfig):
    """Default settings (selected if PLANTPAL_CONFIG is unset)."""
    pass


class DevConfig(BaseConfig):
    """Developer-friendly settings."""
    ENV = "development"
    DEBUG = True
    LOG_LEVEL = "DEBUG"


class TestConfig(BaseConfig):
    """CI/pytest settings."""
    TESTING = True
    DEBUG = True
    # Never touch the developer's real storage directory from tests
    STORAGE_BACKEND = "memory"
    # Keep fallback tests fast when nothing is listening
    API_TIMEOUT_SECONDS = 0.5


def load_config(path: str | None = None):
    """
    Resolve a config class from its dotted path.

    Resolution order: explicit ``path`` argument, then the PLANTPAL_CONFIG
    environment variable, then ProdConfig.

    Raises:
        ImportError / AttributeError if the path does not name a config object.
    """
    load_dotenv(override=False)
    cfg_path = path or os.getenv("PLANTPAL_CONFIG", DEFAULT_CONFIG_PATH)
    module_name, _, attr = cfg_path.rpartition(".")
    module = importlib.import_module(module_name)
    return getattr(module, attr)


def config_value(config, key: str, default=None):
    """Read a setting from either a config class or a Flask ``app.config`` mapping."""
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)
