"""Local key/value cache holding the always-available draft copy.

Keys follow the ``sb:<business_id>`` and ``sb:revert:<business_id>``
templates from :mod:`sb_sites._constants`. Values are JSON-compatible
objects. Reads never raise: a missing or unreadable entry is reported as
``None`` so hydration falls back to the remote store. Writes raise on
failure, which the lifecycle manager treats as a must-succeed step.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import typing as typ
from pathlib import Path
from urllib.parse import quote

logger = logging.getLogger(__name__)

_CACHE_FILE_MODE = 0o600


class LocalCache(typ.Protocol):
    """Synchronous storage used for the first step of every autosave."""

    def get(self, key: str) -> typ.Any | None: ...

    def set(self, key: str, value: typ.Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryCache:
    """In-process cache, useful for tests and embedding."""

    def __init__(self, initial: typ.Mapping[str, typ.Any] | None = None) -> None:
        self._entries: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> typ.Any | None:
        raw = self._entries.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: typ.Any) -> None:
        # Stored serialised so callers never share mutable state with the cache.
        self._entries[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


class FileCache:
    """Cache storing one JSON document per key inside ``directory``.

    Each write goes to a temporary file in the same directory, is restricted
    to ``0600`` permissions, and then atomically replaces the previous
    document, so a crash never leaves a half-written draft behind.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, key: str) -> Path:
        """Return the file backing ``key``."""
        return self.directory / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> typ.Any | None:
        path = self.path_for(key)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable cache entry %s", path, exc_info=True)
            return None

    def set(self, key: str, value: typ.Any) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=".sb-cache-", suffix=".json", dir=self.directory, text=True
        )
        tmp = Path(tmp_path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(value, handle)
            os.chmod(tmp, _CACHE_FILE_MODE)
            os.replace(tmp, self.path_for(key))
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


__all__ = ["FileCache", "LocalCache", "MemoryCache"]
