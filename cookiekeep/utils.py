from __future__ import annotations

import time
from urllib.parse import urlparse


def parse_url(url: str):
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError("Only http and https schemes are supported")
    host = (parsed.hostname or "").lower()
    path = parsed.path or "/"
    return parsed, host, path


def host_of(url: str) -> str:
    _, host, _ = parse_url(url)
    if not host:
        raise ValueError(f"URL has no host: {url!r}")
    return host


def now_millis() -> int:
    """Wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000
