from __future__ import annotations

import os
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from contextlib import ExitStack
from typing import TYPE_CHECKING

import structlog

from .errors import CookieParseError
from .models import Cookie
from .persistence import (
    COOKIE_KEY_PREFIX,
    COOKIE_PREFS_FILE,
    CookiePersistence,
    FilePersistence,
    Mutation,
    Put,
    Remove,
    cookie_key,
    host_from_key,
)
from .utils import now_millis
from .writer import BackgroundWriter

if TYPE_CHECKING:
    from .config import CookieStoreConfig

logger = structlog.get_logger(__name__)


class CookieStore(ABC):
    """Host-keyed cookie storage consulted by a cookie jar."""

    @abstractmethod
    def add(self, host: str, cookies: Iterable[Cookie]) -> None:
        """Record cookies a response from ``host`` returned."""

    @abstractmethod
    def get(self, host: str) -> list[Cookie]:
        """Cookies to send with a request to ``host``."""

    @abstractmethod
    def get_all(self) -> list[Cookie]:
        """Every stored cookie."""

    @abstractmethod
    def remove(self, host: str, cookie: Cookie) -> bool:
        """Remove one cookie; returns whether it was stored."""

    @abstractmethod
    def remove_all(self) -> bool:
        """Remove every cookie."""

    def now(self) -> int:
        """Current time in milliseconds, as used for expiry decisions."""
        return now_millis()


class _HostCookies:
    """
    Cookies of a single host keyed by name.

    Callers hold ``lock`` across a change and the queuing of its durable
    batch, so batches touching one host are queued in the order the changes
    were made.
    """

    def __init__(self) -> None:
        self._cookies: dict[str, Cookie] = {}
        self.lock = threading.RLock()

    def put(self, cookie: Cookie) -> None:
        with self.lock:
            self._cookies[cookie.name] = cookie

    def pop(self, name: str) -> Cookie | None:
        with self.lock:
            return self._cookies.pop(name, None)

    def values(self) -> list[Cookie]:
        with self.lock:
            return list(self._cookies.values())

    def pop_all(self) -> list[Cookie]:
        with self.lock:
            cookies = list(self._cookies.values())
            self._cookies.clear()
            return cookies

    def pop_expired(self, now_ms: int) -> list[Cookie]:
        with self.lock:
            expired = [c for c in self._cookies.values() if c.is_expired(now_ms)]
            for cookie in expired:
                del self._cookies[cookie.name]
            return expired

    def __len__(self) -> int:
        with self.lock:
            return len(self._cookies)


class PersistentCookieStore(CookieStore):
    """
    In-memory cookie cache backed by a durable key-value namespace.

    The namespace is loaded once, synchronously, on construction. Writes
    update memory immediately and queue one durable transaction per call;
    reads only consult memory. Durable writes are best-effort: a crash before
    the writer catches up loses them, and after ``close()`` they are dropped
    while memory keeps serving.

    Args:
        persistence: Durable backend
        clock: Returns the current time in milliseconds since epoch
        max_pending: Queued transactions before new ones are dropped
            (0 for unbounded)
        sweep_on_load: Evict cookies that already expired right after loading

    Raises:
        PersistenceError: If the initial load fails
    """

    def __init__(
        self,
        persistence: CookiePersistence,
        *,
        clock: Callable[[], int] = now_millis,
        max_pending: int = 0,
        sweep_on_load: bool = False,
    ) -> None:
        self.persistence = persistence
        self.clock = clock
        self._hosts: dict[str, _HostCookies] = {}
        self._hosts_lock = threading.Lock()
        self._writer = BackgroundWriter(persistence, max_pending=max_pending)
        self._load()
        if sweep_on_load:
            self.sweep_expired()

    @classmethod
    def open(
        cls,
        directory: str | os.PathLike[str],
        name: str = COOKIE_PREFS_FILE,
        **kwargs,
    ) -> PersistentCookieStore:
        return cls(FilePersistence(directory, name), **kwargs)

    @classmethod
    def from_config(cls, config: CookieStoreConfig, **kwargs) -> PersistentCookieStore:
        return cls(
            FilePersistence(config.directory, config.prefs_name),
            max_pending=config.max_pending,
            sweep_on_load=config.sweep_on_load,
            **kwargs,
        )

    def _load(self) -> None:
        records = self.persistence.load_all()
        loaded = 0
        for key, text in records.items():
            if not key.startswith(COOKIE_KEY_PREFIX):
                continue
            try:
                cookie = Cookie.from_json(text)
            except CookieParseError as e:
                logger.warning("cookie_record_skipped", key=key, error=str(e))
                continue
            self._host(host_from_key(key, cookie.name)).put(cookie)
            loaded += 1
        logger.debug("cookie_store_loaded", cookies=loaded, hosts=len(self._hosts))

    def _host(self, host: str) -> _HostCookies:
        with self._hosts_lock:
            cookies = self._hosts.get(host)
            if cookies is None:
                cookies = self._hosts[host] = _HostCookies()
            return cookies

    def _tables(self) -> list[tuple[str, _HostCookies]]:
        with self._hosts_lock:
            return list(self._hosts.items())

    def now(self) -> int:
        return self.clock()

    def add(self, host: str, cookies: Iterable[Cookie]) -> None:
        """
        Cache persistent cookies and drop same-named ones for session cookies.

        One durable transaction covering every cookie is queued; the call
        does not wait for it.
        """
        cookies = list(cookies)
        host_cookies = self._host(host)
        mutations: list[Mutation] = []
        with host_cookies.lock:
            for cookie in cookies:
                key = cookie_key(host, cookie.name)
                if cookie.persistent:
                    host_cookies.put(cookie)
                    mutations.append(Put(key, cookie.to_json()))
                else:
                    host_cookies.pop(cookie.name)
                    mutations.append(Remove(key))
            self._writer.submit(mutations)

    def get(self, host: str) -> list[Cookie]:
        """Cookies for ``host`` that have not expired yet."""
        with self._hosts_lock:
            host_cookies = self._hosts.get(host)
        if host_cookies is None:
            return []
        now = self.clock()
        return [c for c in host_cookies.values() if c.expires_at > now]

    def get_all(self) -> list[Cookie]:
        """Every cached cookie, expired ones included."""
        ret: list[Cookie] = []
        for _, host_cookies in self._tables():
            ret.extend(host_cookies.values())
        return ret

    def hosts(self) -> list[str]:
        return [host for host, host_cookies in self._tables() if len(host_cookies)]

    def remove(self, host: str, cookie: Cookie) -> bool:
        """
        Remove the cookie named like ``cookie`` for ``host``.

        Returns:
            Whether it was cached. The durable removal is queued either way.
        """
        host_cookies = self._host(host)
        with host_cookies.lock:
            removed = host_cookies.pop(cookie.name) is not None
            self._writer.submit([Remove(cookie_key(host, cookie.name))])
        return removed

    def _evict(self, select: Callable[[_HostCookies], list[Cookie]]) -> int:
        # All host locks are held until the batch is queued, so an add that
        # landed before the eviction is also queued before it.
        tables = self._tables()
        with ExitStack() as stack:
            for _, host_cookies in tables:
                stack.enter_context(host_cookies.lock)
            mutations: list[Mutation] = [
                Remove(cookie_key(host, cookie.name))
                for host, host_cookies in tables
                for cookie in select(host_cookies)
            ]
            self._writer.submit(mutations)
        return len(mutations)

    def remove_all(self) -> bool:
        self._evict(lambda host_cookies: host_cookies.pop_all())
        return True

    def sweep_expired(self) -> int:
        """
        Evict expired cookies from memory and disk.

        Returns:
            Number of cookies evicted
        """
        now = self.clock()
        evicted = self._evict(lambda host_cookies: host_cookies.pop_expired(now))
        if evicted:
            logger.info("cookies_swept", evicted=evicted)
        return evicted

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for queued durable writes. Returns False on timeout."""
        return self._writer.flush(timeout)

    def close(self, timeout: float | None = None) -> None:
        self._writer.close(timeout)

    def __enter__(self) -> PersistentCookieStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<PersistentCookieStore {len(self.get_all())} cookies in {len(self.hosts())} hosts>"
