"""Operator settings stored in ``~/.config/sb-sites/config.toml``.

The file is optional; every value has a default. Tables:

* ``[remote]``: ``base_url``, ``token``, ``csrf_token`` and ``timeout`` for
  the site store client.
* ``[cache]``: ``directory`` holding the local draft cache.
* ``[site]``: ``apex_domain`` sites are provisioned under.
* ``[timing]``: ``autosave_debounce``, ``poll_interval`` and
  ``max_poll_attempts``.

``SB_API_URL``, ``SB_API_TOKEN`` and ``SB_CACHE_DIR`` override the stored
values so CI jobs need no config file at all.
"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ
from pathlib import Path

import tomlkit

from ._constants import (
    AUTOSAVE_DEBOUNCE_SECONDS,
    DEFAULT_APEX_DOMAIN,
    MAX_POLL_ATTEMPTS,
    POLL_INTERVAL_SECONDS,
)
from .remote import DEFAULT_TIMEOUT

DEFAULT_CONFIG_PATH = Path(
    os.getenv(
        "SB_CONFIG_FILE",
        Path.home() / ".config" / "sb-sites" / "config.toml",
    )
)
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "sb-sites"

# The file may hold an API token.
_CONFIG_FILE_MODE = 0o600


class SettingsError(ValueError):
    """Raised when the settings file holds values of the wrong shape."""


@dc.dataclass(slots=True)
class RemoteSettings:
    """Connection details for the remote site store."""

    base_url: str | None = None
    token: str | None = None
    csrf_token: str | None = None
    timeout: float = DEFAULT_TIMEOUT


@dc.dataclass(slots=True)
class TimingSettings:
    """Debounce and polling intervals, in seconds."""

    autosave_debounce: float = AUTOSAVE_DEBOUNCE_SECONDS
    poll_interval: float = POLL_INTERVAL_SECONDS
    max_poll_attempts: int = MAX_POLL_ATTEMPTS


@dc.dataclass(slots=True)
class Settings:
    """Aggregate operator configuration."""

    remote: RemoteSettings = dc.field(default_factory=RemoteSettings)
    cache_dir: Path = DEFAULT_CACHE_DIR
    apex_domain: str = DEFAULT_APEX_DOMAIN
    timing: TimingSettings = dc.field(default_factory=TimingSettings)


def _as_dict(table: typ.Any, name: str, path: Path) -> dict[str, typ.Any]:
    if table is None:
        return {}
    if not isinstance(table, dict):
        msg = f"[{name}] in {path} must be a table"
        raise SettingsError(msg)
    return {key: value for key, value in table.items()}


def _typed(data: dict[str, typ.Any], key: str, kind: type | tuple[type, ...], default: typ.Any) -> typ.Any:
    value = data.get(key, default)
    # bool is an int subclass; reject it for numeric settings.
    if value is not default and (isinstance(value, bool) or not isinstance(value, kind)):
        msg = f"Setting {key!r} has invalid value {value!r}"
        raise SettingsError(msg)
    return value


def load_settings(
    path: Path = DEFAULT_CONFIG_PATH,
    *,
    environ: typ.Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from ``path`` and apply environment overrides.

    Parameters
    ----------
    path : Path, optional
        TOML file to read. A missing file yields the defaults.
    environ : Mapping[str, str], optional
        Environment used for overrides; defaults to :data:`os.environ`.

    Returns
    -------
    Settings
        The resolved configuration.

    Raises
    ------
    SettingsError
        If the file cannot be parsed or a value has the wrong type.
    """
    env = os.environ if environ is None else environ
    try:
        doc = tomlkit.parse(path.read_text(encoding="utf-8")).unwrap()
    except FileNotFoundError:
        doc = {}
    except tomlkit.exceptions.ParseError as exc:
        msg = f"Unable to parse settings TOML at {path}"
        raise SettingsError(msg) from exc

    remote_data = _as_dict(doc.get("remote"), "remote", path)
    cache_data = _as_dict(doc.get("cache"), "cache", path)
    site_data = _as_dict(doc.get("site"), "site", path)
    timing_data = _as_dict(doc.get("timing"), "timing", path)

    remote = RemoteSettings(
        base_url=env.get("SB_API_URL") or _typed(remote_data, "base_url", str, None),
        token=env.get("SB_API_TOKEN") or _typed(remote_data, "token", str, None),
        csrf_token=_typed(remote_data, "csrf_token", str, None),
        timeout=float(_typed(remote_data, "timeout", (int, float), DEFAULT_TIMEOUT)),
    )
    cache_dir = env.get("SB_CACHE_DIR") or _typed(cache_data, "directory", str, None)
    timing = TimingSettings(
        autosave_debounce=float(
            _typed(timing_data, "autosave_debounce", (int, float), AUTOSAVE_DEBOUNCE_SECONDS)
        ),
        poll_interval=float(
            _typed(timing_data, "poll_interval", (int, float), POLL_INTERVAL_SECONDS)
        ),
        max_poll_attempts=_typed(timing_data, "max_poll_attempts", int, MAX_POLL_ATTEMPTS),
    )
    return Settings(
        remote=remote,
        cache_dir=Path(cache_dir).expanduser() if cache_dir else DEFAULT_CACHE_DIR,
        apex_domain=_typed(site_data, "apex_domain", str, DEFAULT_APEX_DOMAIN),
        timing=timing,
    )


def save_settings(settings: Settings, *, path: Path = DEFAULT_CONFIG_PATH) -> None:
    """Persist ``settings`` into ``path`` preserving existing formatting."""
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        doc = tomlkit.parse(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        doc = tomlkit.document()
    except tomlkit.exceptions.ParseError as exc:
        msg = f"Unable to parse settings TOML at {path}"
        raise SettingsError(msg) from exc

    def _table(name: str) -> typ.Any:
        table = doc.get(name)
        if not isinstance(table, tomlkit.items.Table):
            table = tomlkit.table()
        return table

    def _set(table: typ.Any, key: str, value: typ.Any) -> None:
        if value is None:
            table.pop(key, None)
        else:
            table[key] = value

    remote_table = _table("remote")
    _set(remote_table, "base_url", settings.remote.base_url)
    _set(remote_table, "token", settings.remote.token)
    _set(remote_table, "csrf_token", settings.remote.csrf_token)
    _set(remote_table, "timeout", settings.remote.timeout)
    doc["remote"] = remote_table

    cache_table = _table("cache")
    cache_table["directory"] = str(settings.cache_dir)
    doc["cache"] = cache_table

    site_table = _table("site")
    site_table["apex_domain"] = settings.apex_domain
    doc["site"] = site_table

    timing_table = _table("timing")
    timing_table["autosave_debounce"] = settings.timing.autosave_debounce
    timing_table["poll_interval"] = settings.timing.poll_interval
    timing_table["max_poll_attempts"] = settings.timing.max_poll_attempts
    doc["timing"] = timing_table

    path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    os.chmod(path, _CONFIG_FILE_MODE)


__all__ = [
    "DEFAULT_CACHE_DIR",
    "DEFAULT_CONFIG_PATH",
    "RemoteSettings",
    "Settings",
    "SettingsError",
    "TimingSettings",
    "load_settings",
    "save_settings",
]
