"""
Configuration for file-backed cookie stores
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field

from .persistence import COOKIE_PREFS_FILE


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class CookieStoreConfig:
    """Where and how cookies are persisted

    Defaults come from COOKIEKEEP_* environment variables, read when the
    config is created.
    """
    directory: str = field(
        default_factory=lambda: os.path.expanduser(os.getenv("COOKIEKEEP_DIR", "~/.cookiekeep"))
    )
    prefs_name: str = field(
        default_factory=lambda: os.getenv("COOKIEKEEP_PREFS_NAME", COOKIE_PREFS_FILE)
    )
    max_pending: int = field(
        default_factory=lambda: int(os.getenv("COOKIEKEEP_MAX_PENDING", "0"))
    )
    sweep_on_load: bool = field(
        default_factory=lambda: _env_bool("COOKIEKEEP_SWEEP_ON_LOAD", False)
    )

    def __post_init__(self):
        if self.max_pending < 0:
            raise ValueError("max_pending must be >= 0 (0 means unbounded)")
        if not self.prefs_name:
            raise ValueError("prefs_name must not be empty")
