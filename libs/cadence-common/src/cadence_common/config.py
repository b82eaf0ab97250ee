"""Environment-backed configuration helpers for Cadence services."""

from __future__ import annotations

import os


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def get_env_int(key: str, default: int = 0) -> int:
    """Get environment variable as integer."""
    return int(os.environ.get(key, str(default)))


def get_env_float(key: str, default: float = 0.0) -> float:
    """Get environment variable as float."""
    return float(os.environ.get(key, str(default)))


def get_env_choice(key: str, choices: tuple[str, ...], default: str) -> str:
    """Get environment variable constrained to a fixed set of values."""
    val = os.environ.get(key, default).strip().lower()
    if val not in choices:
        raise ValueError(f"{key} must be one of {', '.join(choices)}; got '{val}'")
    return val
