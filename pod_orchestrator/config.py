"""
Environment-driven settings for the pod orchestrator.

Environment variables supported
--------------------------------
RUNPOD_API_KEY:             API key for the RunPod GraphQL API (required for remote commands)
RUNPOD_GRAPHQL_URL:         GraphQL endpoint (default: https://api.runpod.io/graphql)
POD_BATCH_CONCURRENCY:      Maximum in-flight requests per batch (default: 100)
RUNPOD_REQUEST_TIMEOUT_SEC: Per-request timeout in seconds (default: 30)
"""
import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_GRAPHQL_URL = "https://api.runpod.io/graphql"
DEFAULT_BATCH_CONCURRENCY = 100
DEFAULT_REQUEST_TIMEOUT_SEC = 30.0


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def mask_secret(value: Optional[str]) -> str:
    """Show a short prefix of a secret for log output."""
    if not value:
        return "<unset>"
    return f"{value[:6]}..." if len(value) > 10 else "***"


def load_env_file() -> bool:
    """Load a .env file from the working directory (or a parent) into os.environ.

    Variables already set in the process environment are left untouched.
    """
    return load_dotenv(find_dotenv(usecwd=True))


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str]
    graphql_url: str = DEFAULT_GRAPHQL_URL
    batch_concurrency: int = DEFAULT_BATCH_CONCURRENCY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SEC

    @classmethod
    def from_env(cls, read_env_file: bool = True) -> "Settings":
        """Build settings from the process environment (and a .env file, if present)."""
        if read_env_file:
            load_env_file()

        concurrency = _env_int("POD_BATCH_CONCURRENCY", DEFAULT_BATCH_CONCURRENCY)
        if concurrency < 1:
            raise ConfigurationError(f"POD_BATCH_CONCURRENCY must be at least 1, got {concurrency}")

        timeout = _env_float("RUNPOD_REQUEST_TIMEOUT_SEC", DEFAULT_REQUEST_TIMEOUT_SEC)
        if timeout <= 0:
            raise ConfigurationError(f"RUNPOD_REQUEST_TIMEOUT_SEC must be positive, got {timeout}")

        settings = cls(
            api_key=os.getenv("RUNPOD_API_KEY") or None,
            graphql_url=os.getenv("RUNPOD_GRAPHQL_URL") or DEFAULT_GRAPHQL_URL,
            batch_concurrency=concurrency,
            request_timeout=timeout,
        )
        logger.debug(
            f"Settings loaded: url={settings.graphql_url} api_key={mask_secret(settings.api_key)} "
            f"concurrency={settings.batch_concurrency} timeout={settings.request_timeout}s"
        )
        return settings

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("RUNPOD_API_KEY environment variable is required")
        return self.api_key
