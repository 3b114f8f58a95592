"""Runtime configuration helpers for the cwnote CLI."""

from __future__ import annotations

import logging
import os

DEFAULT_LABEL = "version"
DEFAULT_LOG_LEVEL = "INFO"


def _optional_env(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


def _positive_int_env(name: str, default: int) -> int:
    raw = _optional_env(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a positive integer, got: {raw}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got: {raw}")
    return value


def get_region(override: str | None = None) -> str | None:
    """Resolve the AWS region.

    An explicit override wins, then AWS_DEFAULT_REGION, then AWS_REGION. None
    leaves the decision to boto3 (shared config/profile files).
    """
    if override and override.strip():
        return override.strip()
    return _optional_env("AWS_DEFAULT_REGION") or _optional_env("AWS_REGION")


def get_log_level() -> int:
    """Get the log level from CWNOTE_LOG_LEVEL (name or number)."""
    raw = (_optional_env("CWNOTE_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw)
    if not isinstance(level, int):
        raise ValueError(f"CWNOTE_LOG_LEVEL is not a valid log level: {raw}")
    return level


def get_default_label() -> str:
    """Get the default annotation label (e.g. "version", "deploy")."""
    return _optional_env("CWNOTE_DEFAULT_LABEL") or DEFAULT_LABEL


def get_max_workers() -> int:
    """Get how many dashboards may be processed concurrently."""
    return _positive_int_env("CWNOTE_MAX_WORKERS", 1)
