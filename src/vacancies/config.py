# src/vacancies/config.py
"""
Process-wide settings for talking to the VDAB open-services API.

Values come from environment variables (the CLI loads a .env file first).
They are read once at startup and never reloaded.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BASE_URL = "https://api.vdab.be/openservices"
DEFAULT_PINNED_CERT = "sha256//VdabCertificateFingerprint="

# The API allows a small, fixed number of requests per second.
API_REQUEST_LIMIT_PER_SECOND = 3
DEFAULT_TIMEOUT = 15.0


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    rate_limit: float = API_REQUEST_LIMIT_PER_SECOND
    timeout: float = DEFAULT_TIMEOUT
    queue_timeout: Optional[float] = None
    pinned_cert: str = DEFAULT_PINNED_CERT
    api_key: Optional[str] = None

    def __post_init__(self) -> None:
        if self.rate_limit <= 0:
            raise ValueError("rate_limit must be > 0 requests per second")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0 seconds")
        if self.queue_timeout is not None and self.queue_timeout <= 0:
            raise ValueError("queue_timeout must be > 0 seconds when set")

    @property
    def dispatch_interval(self) -> float:
        """Minimum number of seconds between the start of two calls."""
        return 1.0 / self.rate_limit


def _float(env: Mapping[str, str], name: str, default: Optional[float]) -> Optional[float]:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables:
    VDAB_BASE_URL, VDAB_RATE_LIMIT, VDAB_TIMEOUT, VDAB_QUEUE_TIMEOUT,
    VDAB_PINNED_CERT and VDAB_API_KEY. Missing values fall back to defaults.
    """
    env = os.environ if env is None else env
    return Settings(
        base_url=(env.get("VDAB_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        rate_limit=_float(env, "VDAB_RATE_LIMIT", API_REQUEST_LIMIT_PER_SECOND),
        timeout=_float(env, "VDAB_TIMEOUT", DEFAULT_TIMEOUT),
        queue_timeout=_float(env, "VDAB_QUEUE_TIMEOUT", None),
        pinned_cert=env.get("VDAB_PINNED_CERT") or DEFAULT_PINNED_CERT,
        api_key=env.get("VDAB_API_KEY") or None,
    )
