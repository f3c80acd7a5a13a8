"""Management API server configuration."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class ServerConfig:
    """Read-only inputs of the management API server."""

    port: int = 3000
    host: str = "localhost"
    enable_cors: bool = True
    api_key: Optional[str] = None
    enable_rate_limit: bool = True
    rate_limit_max: int = 60

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Build a config from DEVTOOLBOX_API_* environment variables."""
        return cls(
            port=int(os.getenv("DEVTOOLBOX_API_PORT", "3000")),
            host=os.getenv("DEVTOOLBOX_API_HOST", "localhost"),
            enable_cors=_env_bool("DEVTOOLBOX_API_CORS", True),
            api_key=os.getenv("DEVTOOLBOX_API_KEY") or None,
            enable_rate_limit=_env_bool("DEVTOOLBOX_API_RATE_LIMIT", True),
            rate_limit_max=int(os.getenv("DEVTOOLBOX_API_RATE_LIMIT_MAX", "60")),
        )

    def validate(self) -> tuple[bool, Optional[str]]:
        """
        Validate configuration.

        Returns:
            (is_valid, error_message)
        """
        if not 1 <= self.port <= 65535:
            return False, f"Invalid port number {self.port}. Must be between 1 and 65535."

        if self.rate_limit_max < 1:
            return False, f"Invalid rate limit {self.rate_limit_max}. Must be a positive number."

        return True, None
