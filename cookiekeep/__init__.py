from cookiekeep.models import Cookie, MAX_EXPIRES_AT, serialize, deserialize
from cookiekeep.persistence import (
    CookiePersistence,
    MemoryPersistence,
    FilePersistence,
    Put,
    Remove,
    cookie_key,
)
from cookiekeep.store import CookieStore, PersistentCookieStore
from cookiekeep.jar import PersistentCookieJar
from cookiekeep.config import CookieStoreConfig
from cookiekeep.errors import (
    CookieKeepError,
    CookieParseError,
    PersistenceError,
    StoreClosedError,
)

__all__ = [
    "Cookie",
    "MAX_EXPIRES_AT",
    "serialize",
    "deserialize",
    "CookiePersistence",
    "MemoryPersistence",
    "FilePersistence",
    "Put",
    "Remove",
    "cookie_key",
    "CookieStore",
    "PersistentCookieStore",
    "PersistentCookieJar",
    "CookieStoreConfig",
    "CookieKeepError",
    "CookieParseError",
    "PersistenceError",
    "StoreClosedError",
]
