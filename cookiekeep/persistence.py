"""Durable key-value backends for persisted cookies.

Storage layout:
 - Namespace: ``CookiePrefsFile``
 - Key format: ``cookie_<host>_<cookie name>``
 - Value format: JSON form of :class:`cookiekeep.models.Cookie`
"""

from __future__ import annotations

import json
import os
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from .errors import PersistenceError

COOKIE_KEY_PREFIX = "cookie_"
COOKIE_PREFS_FILE = "CookiePrefsFile"
KEY_SEPARATOR = "_"


def cookie_key(host: str, name: str) -> str:
    return f"{COOKIE_KEY_PREFIX}{host}{KEY_SEPARATOR}{name}"


def host_from_key(key: str, name: str | None = None) -> str:
    """
    Recover the host a durable key was written for.

    When the cookie name is known the host is whatever sits between the
    prefix and ``_<name>``, so underscores in either part survive. Otherwise
    the first segment after the prefix is used.
    """
    body = key[len(COOKIE_KEY_PREFIX):] if key.startswith(COOKIE_KEY_PREFIX) else key
    if name is not None:
        suffix = f"{KEY_SEPARATOR}{name}"
        if body.endswith(suffix) and len(body) > len(suffix):
            return body[: -len(suffix)]
    return body.split(KEY_SEPARATOR, 1)[0]


@dataclass(frozen=True)
class Put:
    key: str
    value: str


@dataclass(frozen=True)
class Remove:
    key: str


Mutation = Put | Remove


def _apply(data: dict[str, str], mutations: Sequence[Mutation]) -> None:
    for mutation in mutations:
        if isinstance(mutation, Put):
            data[mutation.key] = mutation.value
        else:
            data.pop(mutation.key, None)


class CookiePersistence(ABC):
    """Flat string key-value namespace with atomic batch writes."""

    @abstractmethod
    def load_all(self) -> dict[str, str]:
        """
        Return every persisted key and value.

        Raises:
            PersistenceError: If the namespace cannot be read
        """

    @abstractmethod
    def apply_batch(self, mutations: Sequence[Mutation]) -> None:
        """
        Apply all mutations in order as one transaction.

        Raises:
            PersistenceError: If the batch could not be written; nothing of
                it is applied in that case
        """


class MemoryPersistence(CookiePersistence):
    """In-process namespace, lost when the process exits."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def load_all(self) -> dict[str, str]:
        with self._lock:
            return dict(self._data)

    def apply_batch(self, mutations: Sequence[Mutation]) -> None:
        with self._lock:
            data = dict(self._data)
            _apply(data, mutations)
            self._data = data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __repr__(self) -> str:
        return f"<MemoryPersistence {len(self)} keys>"


class FilePersistence(CookiePersistence):
    """
    Namespace stored as a single JSON object in ``<directory>/<name>.json``.

    Every batch rewrites the file through a temporary file that is fsynced
    and renamed over the original, so readers see either the old or the new
    mapping.

    Args:
        directory: Directory holding the namespace file, created on first write
        name: Namespace name (default: ``CookiePrefsFile``)
    """

    def __init__(self, directory: str | os.PathLike[str], name: str = COOKIE_PREFS_FILE) -> None:
        self.directory = Path(directory).expanduser()
        self.name = name
        self.path = self.directory / f"{name}.json"
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read cookie namespace {self.path}: {e}") from e

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise PersistenceError(f"Cookie namespace {self.path} is not a string mapping")
        return data

    def _write(self, data: dict[str, str]) -> None:
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"Cannot write cookie namespace {self.path}: {e}") from e

    def load_all(self) -> dict[str, str]:
        with self._lock:
            return self._read()

    def apply_batch(self, mutations: Sequence[Mutation]) -> None:
        with self._lock:
            data = self._read()
            _apply(data, mutations)
            self._write(data)

    def __repr__(self) -> str:
        return f"<FilePersistence {self.path}>"
