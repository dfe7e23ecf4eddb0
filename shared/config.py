from __future__ import annotations
import os
from dataclasses import dataclass, asdict
from functools import lru_cache
from typing import Any, Dict

from .errors import ConfigError

API_KEY_ENV = "API_KEY"


@dataclass(frozen=True)
class AppConfig:
    # Generation
    GENERATION_MODEL: str
    MAX_DURATION_SEC: float
    MODEL_WORKERS: int          # threads available to model calls

    # Client
    TRANSCRIBE_ENDPOINT: str

    def safe_dict(self) -> Dict[str, Any]:
        # Do not include secrets; only presence booleans
        d = asdict(self)
        d["API_KEY_SET"] = bool(os.environ.get(API_KEY_ENV))
        return d


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    return AppConfig(
        GENERATION_MODEL=os.environ.get("GENERATION_MODEL", "gemini-2.5-flash"),
        MAX_DURATION_SEC=_float_env("MAX_DURATION_SEC", 60.0),
        MODEL_WORKERS=_int_env("MODEL_WORKERS", 16),
        TRANSCRIBE_ENDPOINT=os.environ.get("TRANSCRIBE_ENDPOINT", "http://localhost:8080/api/generate"),
    )


def get_api_key() -> str:
    """Read the model credential.

    Not cached: the key is looked up on every request so a missing secret
    fails that request instead of the process.
    """
    key = os.environ.get(API_KEY_ENV)
    if not key:
        raise ConfigError(f"{API_KEY_ENV} environment variable is not set on the server.")
    return key
