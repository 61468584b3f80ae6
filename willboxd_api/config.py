"""
Configuration settings for the Willboxd API.

Every value can be overridden through the environment; ``create_app`` copies
them into ``app.config`` so tests can override them per instance.
"""

import logging
import os
from typing import Any


def parse_boolean(value: Any, default: bool = False):
    """
    Parse a value into a boolean.

    Args:
        value (Any): Candidate value.
        default (bool): Fallback when the value is empty.

    Returns:
        bool: Parsed boolean.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if not normalized:
            return default
        return normalized in {"1", "true", "yes", "on"}
    return default if value is None else bool(value)


def parse_origins(value: str | None):
    """
    Split a comma separated CORS origin list.

    Args:
        value (str | None): Raw environment value.

    Returns:
        list[str] | str: Origins, or ``"*"`` when the value is empty or a wildcard.
    """
    if not value or value.strip() == "*":
        return "*"
    return [origin.strip() for origin in value.split(",") if origin.strip()]


# Storage
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "json").strip().lower()
DATA_FILE = os.getenv("DATA_FILE", "willboxd.json")
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "willboxd")
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", 5000))

# Listing cache
CACHE_ENABLED = parse_boolean(os.getenv("CACHE_ENABLED"), True)
REDIS_HOST = os.environ.get("REDIS_HOST", "localhost")
REDIS_PORT = int(os.environ.get("REDIS_PORT", 6379))
REDIS_DB = int(os.environ.get("REDIS_DB", 0))
CACHE_TTL_SECONDS = int(os.environ.get("CACHE_TTL_SECONDS", 600))

# Voter identity
VOTER_IDENTITY = os.getenv("VOTER_IDENTITY", "address").strip().lower()
TRUST_PROXY_HEADERS = parse_boolean(os.getenv("TRUST_PROXY_HEADERS"), False)

# HTTP
CORS_ORIGINS = parse_origins(os.getenv("CORS_ORIGINS"))
STATIC_DIR = os.getenv("STATIC_DIR") or None
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

STORAGE_BACKENDS = {"json", "mongo"}
VOTER_IDENTITY_MODES = {"address", "none"}

SETTING_NAMES = [
    "STORAGE_BACKEND",
    "DATA_FILE",
    "MONGO_URI",
    "MONGO_DB",
    "MONGO_TIMEOUT_MS",
    "CACHE_ENABLED",
    "REDIS_HOST",
    "REDIS_PORT",
    "REDIS_DB",
    "CACHE_TTL_SECONDS",
    "VOTER_IDENTITY",
    "TRUST_PROXY_HEADERS",
    "CORS_ORIGINS",
    "STATIC_DIR",
    "HOST",
    "PORT",
    "LOG_LEVEL",
    "LOG_FORMAT",
]


def default_settings():
    """
    Collect the module level settings into a mapping for ``app.config``.

    Returns:
        dict: Setting name to value.
    """
    module_globals = globals()
    return {name: module_globals[name] for name in SETTING_NAMES}


def validate_settings(settings: dict):
    """
    Reject unknown enumerated values before the app starts serving.

    Args:
        settings (dict): Effective configuration.

    Raises:
        ValueError: When ``STORAGE_BACKEND`` or ``VOTER_IDENTITY`` is unknown.
    """
    backend = str(settings.get("STORAGE_BACKEND", "")).lower()
    if backend not in STORAGE_BACKENDS:
        raise ValueError(f"STORAGE_BACKEND must be one of {sorted(STORAGE_BACKENDS)}, got {backend!r}")
    mode = str(settings.get("VOTER_IDENTITY", "")).lower()
    if mode not in VOTER_IDENTITY_MODES:
        raise ValueError(f"VOTER_IDENTITY must be one of {sorted(VOTER_IDENTITY_MODES)}, got {mode!r}")


def configure_logging(level: str = LOG_LEVEL, fmt: str = LOG_FORMAT):
    """Configure root logging once for the process."""
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=fmt)
