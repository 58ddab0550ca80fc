"""
Centralized configuration management.

Supported sources, later ones override earlier ones:
1) `env.example` (committed, safe placeholders)
2) `env.local` (optional, MUST NOT be committed)
3) System environment variables (highest priority)
"""

import os
from pathlib import Path

from dotenv import dotenv_values
from loguru import logger


class EnvironConfig:
    """
    Singleton configuration class that loads environment variables from env files
    and system environment, providing dictionary-like access with default values.
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(EnvironConfig, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._config = {}
            self._load_config()
            EnvironConfig._initialized = True

    def _load_config(self):
        root = Path(__file__).parent.parent.parent

        example_path = root / "env.example"
        if example_path.exists():
            self._config.update(dotenv_values(example_path))
            logger.info("Loaded environment variables from {}", example_path)

        local_path = root / "env.local"
        if local_path.exists():
            self._config.update(dotenv_values(local_path))
            logger.info("Loaded and overrode environment variables from {}", local_path)

        self._config.update(os.environ)

    def __getitem__(self, key):
        """
        Get configuration value by key.

        Raises:
            KeyError: If key not found
        """
        if key not in self._config:
            raise KeyError(f"Configuration key '{key}' not found")

        return self._config[key]

    def get(self, key, default=None):
        return self._config.get(key, default)

    def reload(self):
        """
        Reload configuration from files and environment.
        Useful for testing or when configuration files change.
        """
        self._config.clear()
        self._load_config()
        logger.info("Configuration reloaded")

    def __contains__(self, key):
        return key in self._config

    def __iter__(self):
        return iter(self._config)

    def items(self):
        return self._config.items()

    def get_bool(self, key: str, default: bool = False) -> bool:
        raw = (self.get(key) or "").strip().lower()
        if not raw:
            return default
        return raw in {"true", "1", "yes", "on"}

    def get_int(self, key: str, default: int, minimum: int | None = None) -> int:
        """
        Get an integer value, falling back to `default` when missing or malformed.

        Values below `minimum` are rejected with a warning.
        """
        raw = (self.get(key) or "").strip()
        if not raw:
            return default
        try:
            value = int(raw)
        except ValueError:
            logger.warning("{} value {!r} is not an integer, defaulting to {}", key, raw, default)
            return default
        if minimum is not None and value < minimum:
            logger.warning("{} value {} is below {}, defaulting to {}", key, value, minimum, default)
            return default
        return value

    def get_mongo_url(self) -> str:
        """MONGO_URL_DEFAULT, then MONGO_URL, then localhost."""
        return (
            self.get("MONGO_URL_DEFAULT")
            or self.get("MONGO_URL")
            or "mongodb://localhost:27017"
        )

    def get_redis_url(self) -> str:
        """REDIS_URL_DEFAULT, then REDIS_URL, then localhost."""
        return (
            self.get("REDIS_URL_DEFAULT")
            or self.get("REDIS_URL")
            or "redis://localhost:6379"
        )


config = EnvironConfig()
