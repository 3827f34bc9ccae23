"""Environment variables read by mutewarden."""

from __future__ import annotations

import os
from typing import Final

from .errors import MissingConfigurationError

CONFIG_PATH_ENV: Final[str] = "MUTEWARDEN_CONFIG"
DATA_DIR_ENV: Final[str] = "MUTEWARDEN_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"


def get_env(name: str) -> str | None:
    """Return the stripped value of ``name``; unset and blank both read as ``None``."""

    value = os.getenv(name)
    if value is None:
        return None
    return value.strip() or None


def require_env_var(name: str, *, purpose: str | None = None) -> str:
    value = get_env(name)
    if value is None:
        detail = f" ({purpose})" if purpose else ""
        raise MissingConfigurationError(f"Missing configuration for: {name}{detail}")
    return value
