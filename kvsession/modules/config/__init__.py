"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: get_config(), ConfigModule.get()
Hidden: Config sources, validation logic, environment parsing

Can be replaced with different config systems (Consul, etcd, AWS Parameter Store).
"""

import logging
import os
import secrets
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


# Configuration Contract: Required Keys

REQUIRED_CONFIG_KEYS = {
    "redis_host": "Redis server hostname",
    "redis_port": "Redis server port number",
    "redis_db": "Redis database number",
    "host": "API server bind address",
    "port": "API server port",
    "log_level": "Logging level (DEBUG, INFO, WARNING, ERROR)",
    "session_timeout": "Seconds of inactivity before a session times out",
    "session_expiration": "TTL in seconds for session tokens and store entries",
    "cookie_name": "Name of the cookie carrying the session token",
}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class ConfigModule:
    """Configuration management module."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize from environment variables.

        Args:
            environ: Mapping to read instead of os.environ
        """
        self._environ = os.environ if environ is None else environ
        self._config = self._load_from_env()
        self._validate_required_keys()
        self._validate_windows()

        if not self._config["session_secret"]:
            logger.warning(
                "SESSION_SECRET is not set; using a random key. "
                "Session cookies will not survive a restart."
            )
            self._config["session_secret"] = secrets.token_urlsafe(32)

    def _validate_required_keys(self) -> None:
        """
        Validate that all required configuration keys are present.

        Raises:
            ValueError: If required keys are missing
        """
        missing_keys = [
            key for key in REQUIRED_CONFIG_KEYS
            if key not in self._config or self._config[key] is None
        ]

        if missing_keys:
            raise ValueError(
                f"Missing required configuration keys: {', '.join(missing_keys)}. "
                f"Check environment variables and deployment configuration."
            )

    def _validate_windows(self) -> None:
        for key in ("session_timeout", "session_expiration"):
            if self._config[key] <= 0:
                raise ValueError(f"{key} must be a positive number of seconds")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment."""
        env = self._environ

        # Redis port might be in tcp://host:port format from K8s
        redis_port_env = env.get("REDIS_PORT", "6379")
        if redis_port_env.startswith("tcp://"):
            redis_port = int(redis_port_env.split(":")[-1])
        else:
            redis_port = int(redis_port_env)

        return {
            # Redis settings
            "redis_host": env.get("REDIS_HOST", "localhost"),
            "redis_port": redis_port,
            "redis_db": int(env.get("REDIS_DB", "0")),
            "redis_password": env.get("REDIS_PASSWORD"),
            # API settings
            "host": env.get("API_HOST", "0.0.0.0"),
            "port": int(env.get("API_PORT", "8080")),
            "log_level": env.get("LOG_LEVEL", "INFO").upper(),
            # Session settings
            "session_timeout": int(env.get("SESSION_TIMEOUT", "3600")),
            "session_expiration": int(env.get("SESSION_EXPIRATION", "86400")),
            "cookie_name": env.get("SESSION_COOKIE_NAME", "GOSESSIONID"),
            "cookie_secure": _parse_bool(env.get("SESSION_COOKIE_SECURE", "false")),
            "session_secret": env.get("SESSION_SECRET"),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)


# Singleton instance
_instance = None


def get_config() -> ConfigModule:
    """Get the configuration module singleton."""
    global _instance
    if _instance is None:
        _instance = ConfigModule()
    return _instance


__all__ = ["get_config", "ConfigModule"]
