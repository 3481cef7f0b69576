"""
Client configuration.

Values can be given explicitly or read from ``PIO_*`` environment variables.
"""

from __future__ import annotations

import os
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_EVENT_URL = "http://localhost:7070"
DEFAULT_ENGINE_URL = "http://localhost:8000"


def get_env_int(name: str, default: int) -> int:
    """Get integer from environment variable."""
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}, using {default}")
        return default


def get_env_float(name: str, default: float) -> float:
    """Get float from environment variable."""
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}, using {default}")
        return default


@dataclass
class ClientConfig:
    """Connection settings shared by every client flavor."""
    url: Optional[str] = None
    timeout: float = 60.0
    max_retries: int = 3
    retry_delay: float = 0.5
    threads: int = 1

    @classmethod
    def from_env(
        cls,
        prefix: str = "PIO_",
        default_url: str = DEFAULT_EVENT_URL
    ) -> "ClientConfig":
        """
        Build a configuration from environment variables.

        Reads ``<prefix>URL``, ``<prefix>TIMEOUT``, ``<prefix>MAX_RETRIES``,
        ``<prefix>RETRY_DELAY`` and ``<prefix>THREADS``. Unparseable values
        fall back to the defaults.
        """
        defaults = cls(url=default_url)
        return cls(
            url=os.environ.get(f"{prefix}URL") or defaults.url,
            timeout=get_env_float(f"{prefix}TIMEOUT", defaults.timeout),
            max_retries=get_env_int(f"{prefix}MAX_RETRIES", defaults.max_retries),
            retry_delay=get_env_float(f"{prefix}RETRY_DELAY", defaults.retry_delay),
            threads=get_env_int(f"{prefix}THREADS", defaults.threads),
        )
