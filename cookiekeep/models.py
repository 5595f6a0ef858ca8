from __future__ import annotations

import json
from dataclasses import dataclass
from http.cookiejar import Cookie as JarCookie, http2time
from http.cookies import Morsel

from .errors import CookieParseError

# Session marker; the durable format stores it verbatim.
MAX_EXPIRES_AT = 2**63 - 1
# Explicit expirations are clamped to 9999-12-31T23:59:59.999Z.
MAX_DATE = 253402300799999

# Non-standard attribute holding the exact millisecond expiry on native cookies.
EXACT_EXPIRY_ATTR = "X-Expires-At-Ms"

_TEXT_FIELDS = ("name", "value", "domain", "path")
_BOOL_FIELDS = ("secure", "httpOnly")


@dataclass(frozen=True)
class Cookie:
    """
    Immutable cookie record as cached in memory and written to disk.

    Args:
        name: Cookie name, must not be empty
        value: Cookie value
        domain: Domain the cookie is scoped to
        path: Path the cookie is scoped to
        expires_at: Expiration in milliseconds since epoch. ``MAX_EXPIRES_AT``
            marks a session cookie that is never written to disk.
        secure: Only sent over HTTPS
        http_only: Hidden from scripts
    """

    name: str
    value: str
    domain: str
    path: str
    expires_at: int = MAX_EXPIRES_AT
    secure: bool = True
    http_only: bool = True

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Cookie name must not be empty")

    @property
    def persistent(self) -> bool:
        return self.expires_at != MAX_EXPIRES_AT

    def is_expired(self, now_ms: int) -> bool:
        return self.expires_at <= now_ms

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "expiresAt": self.expires_at,
            "secure": self.secure,
            "httpOnly": self.http_only,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, text: str) -> Cookie:
        """
        Parse the JSON form produced by ``to_json``.

        Raises:
            CookieParseError: If the text is not a JSON object, a field is
                missing or a field has the wrong type
        """
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise CookieParseError(f"Invalid cookie JSON: {e}") from e
        if not isinstance(data, dict):
            raise CookieParseError("Cookie JSON must be an object")

        for key in _TEXT_FIELDS:
            if not isinstance(data.get(key), str):
                raise CookieParseError(f"Cookie field {key!r} missing or not a string")
        for key in _BOOL_FIELDS:
            if not isinstance(data.get(key), bool):
                raise CookieParseError(f"Cookie field {key!r} missing or not a boolean")
        expires_at = data.get("expiresAt")
        # bool is an int subclass
        if isinstance(expires_at, bool) or not isinstance(expires_at, int):
            raise CookieParseError("Cookie field 'expiresAt' missing or not an integer")

        try:
            return cls(
                name=data["name"],
                value=data["value"],
                domain=data["domain"],
                path=data["path"],
                expires_at=expires_at,
                secure=data["secure"],
                http_only=data["httpOnly"],
            )
        except ValueError as e:
            raise CookieParseError(str(e)) from e

    @classmethod
    def from_cookiejar(cls, cookie: JarCookie) -> Cookie:
        """
        Convert a native cookie. The exact expiry carried by ``to_cookiejar``
        wins over ``expires``, which the cookiejar keeps in whole seconds.
        """
        exact = cookie.get_nonstandard_attr(EXACT_EXPIRY_ATTR)
        expires_at = None
        if exact is not None:
            try:
                expires_at = int(exact)
            except ValueError:
                expires_at = None
        if expires_at is None:
            if cookie.expires is None:
                expires_at = MAX_EXPIRES_AT
            else:
                expires_at = int(cookie.expires) * 1000
        http_only = cookie.has_nonstandard_attr("HttpOnly") or cookie.has_nonstandard_attr(
            "httponly"
        )
        return cls(
            name=cookie.name,
            value=cookie.value or "",
            domain=cookie.domain,
            path=cookie.path,
            expires_at=expires_at,
            secure=bool(cookie.secure),
            http_only=http_only,
        )

    def to_cookiejar(self) -> JarCookie:
        expires = None if not self.persistent else self.expires_at // 1000
        rest: dict[str, str | None] = {EXACT_EXPIRY_ATTR: str(self.expires_at)}
        if self.http_only:
            rest["HttpOnly"] = None
        return JarCookie(
            version=0,
            name=self.name,
            value=self.value,
            port=None,
            port_specified=False,
            domain=self.domain,
            domain_specified=bool(self.domain),
            domain_initial_dot=self.domain.startswith("."),
            path=self.path,
            path_specified=True,
            secure=self.secure,
            expires=expires,
            discard=not self.persistent,
            comment=None,
            comment_url=None,
            rest=rest,
        )

    @classmethod
    def from_morsel(cls, morsel: Morsel, host: str, now_ms: int) -> Cookie:
        """
        Build a cookie from one parsed ``Set-Cookie`` morsel.

        ``max-age`` takes precedence over ``expires``. Without either the
        cookie is a session cookie.
        """
        expires_at = MAX_EXPIRES_AT
        max_age = morsel["max-age"]
        if max_age != "":
            try:
                seconds = int(str(max_age).strip())
            except ValueError:
                seconds = None
            if seconds is not None:
                expires_at = min(now_ms + seconds * 1000, MAX_DATE)
        if expires_at == MAX_EXPIRES_AT and morsel["expires"]:
            parsed = http2time(str(morsel["expires"]))
            if parsed is not None:
                expires_at = min(int(parsed) * 1000, MAX_DATE)

        return cls(
            name=morsel.key,
            value=morsel.value,
            domain=(morsel["domain"] or host).lower(),
            path=morsel["path"] or "/",
            expires_at=expires_at,
            secure=bool(morsel["secure"]),
            http_only=bool(morsel["httponly"]),
        )

    def __repr__(self) -> str:
        return f"<Cookie {self.name}={self.value!r} for {self.domain}{self.path}>"


def serialize(cookie: Cookie) -> str:
    return cookie.to_json()


def deserialize(text: str) -> Cookie:
    return Cookie.from_json(text)
