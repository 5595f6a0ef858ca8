from __future__ import annotations

from collections.abc import Iterable
from http.cookies import CookieError, SimpleCookie

import structlog

from .models import Cookie
from .store import CookieStore
from .utils import host_of

logger = structlog.get_logger(__name__)


class PersistentCookieJar:
    """
    Host-scoped cookie jar for an HTTP client, backed by any
    :class:`CookieStore`, usually a :class:`PersistentCookieStore`.
    """

    def __init__(self, store: CookieStore) -> None:
        self.store = store

    def load_for_request(self, url: str) -> list[Cookie]:
        return self.store.get(host_of(url))

    def save_from_response(self, url: str, cookies: Iterable[Cookie]) -> None:
        self.store.add(host_of(url), cookies)

    def set_from_headers(self, headers: Iterable[tuple[str, str]], url: str) -> None:
        host = host_of(url)
        now = self.store.now()
        cookies: list[Cookie] = []
        for name, value in headers:
            if name.lower() != "set-cookie":
                continue
            parsed = SimpleCookie()
            try:
                parsed.load(value)
            except CookieError as e:
                logger.warning("set_cookie_skipped", host=host, error=str(e))
                continue
            for morsel in parsed.values():
                cookies.append(Cookie.from_morsel(morsel, host, now))
        if cookies:
            self.save_from_response(url, cookies)

    def cookie_header(self, url: str) -> str | None:
        cookies = self.load_for_request(url)
        if not cookies:
            return None
        return "; ".join(f"{c.name}={c.value}" for c in cookies)

    def __repr__(self) -> str:
        return f"<PersistentCookieJar {self.store!r}>"
