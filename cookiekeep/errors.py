class CookieKeepError(Exception):
    """Base error for cookiekeep."""


class CookieParseError(CookieKeepError, ValueError):
    """Raised when serialized cookie text is malformed."""


class PersistenceError(CookieKeepError, OSError):
    """Raised when the durable cookie namespace cannot be read or written."""


class StoreClosedError(CookieKeepError):
    """Raised when a write is submitted after the store was closed."""
