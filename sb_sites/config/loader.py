"""Load site configuration documents into typed dataclasses."""

from __future__ import annotations

import json
import logging
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .._constants import DEFAULT_CONFIG_VERSION
from .helpers import (
    _build_theme,
    _dump_theme,
    _mapping,
    _optional_int,
    _optional_str,
    _parse_timestamp,
    _string_list,
)
from .models import DraftRecord, SiteConfig, SiteConfigError, VersionRecord
from .sections import build_sections, dump_section

logger = logging.getLogger(__name__)

_JSON_SUFFIXES = frozenset({".json"})


def load_site_config(path: Path) -> SiteConfig:
    """Load a YAML or JSON site configuration file.

    Parameters
    ----------
    path : Path
        Filesystem path to the configuration. Files ending in ``.json`` are
        decoded as JSON; anything else is read as YAML 1.2 with the safe
        loader.

    Returns
    -------
    SiteConfig
        Parsed configuration with typed sections and theme.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    SiteConfigError
        If the top-level document is not a mapping.

    Examples
    --------
    >>> from pathlib import Path
    >>> from sb_sites.config import load_site_config
    >>> config = load_site_config(Path("site.yaml"))
    >>> config.theme.accent
    'blue'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    with path.open("r", encoding="utf-8") as handle:
        if path.suffix.lower() in _JSON_SUFFIXES:
            loaded = json.load(handle)
        else:
            loader = YAML(typ="safe")
            loader.version = (1, 2)
            loaded = loader.load(handle)
    return parse_site_config(loaded or {})


def parse_site_config(payload: object) -> SiteConfig:
    """Build a :class:`SiteConfig` from its camelCase wire mapping.

    Malformed sections are skipped; the theme keeps named defaults for any
    field it cannot read.
    """
    if not isinstance(payload, dict):
        msg = "Site configuration must be a mapping."
        raise SiteConfigError(msg)
    business_id = payload.get("business_id", payload.get("businessId"))
    return SiteConfig(
        version=_optional_str(payload.get("version")) or DEFAULT_CONFIG_VERSION,
        business_id=_optional_str(business_id) or "",
        theme=_build_theme(_mapping(payload.get("theme"))),
        sections=build_sections(payload.get("sections")),
        meta=dict(_mapping(payload.get("meta")) or {}),
    )


def dump_site_config(config: SiteConfig) -> dict[str, typ.Any]:
    """Return the wire mapping stored in the cache and sent to the remote store."""
    return {
        "version": config.version,
        "business_id": config.business_id,
        "theme": _dump_theme(config.theme),
        "sections": [dump_section(section) for section in config.sections],
        "meta": dict(config.meta),
    }


def parse_optional_site_config(payload: object) -> SiteConfig | None:
    """Parse ``payload`` when it is a mapping, logging and returning None otherwise."""
    if payload is None:
        return None
    try:
        return parse_site_config(payload)
    except SiteConfigError:
        logger.warning("Ignoring malformed site configuration payload: %r", payload)
        return None


def parse_draft_record(payload: object) -> DraftRecord | None:
    """Parse the ``{slug, draft}`` record kept in the local cache."""
    if not isinstance(payload, dict):
        return None
    return DraftRecord(
        slug=_optional_str(payload.get("slug")) or "",
        draft=parse_optional_site_config(payload.get("draft")),
    )


def dump_draft_record(record: DraftRecord) -> dict[str, typ.Any]:
    """Return the JSON-ready form of ``record``."""
    return {
        "slug": record.slug,
        "draft": dump_site_config(record.draft) if record.draft else None,
    }


def parse_version_record(payload: typ.Mapping[str, typ.Any]) -> VersionRecord | None:
    """Build a VersionRecord from one entry of the remote version list."""
    version_id = _optional_str(payload.get("id"))
    if version_id is None:
        logger.warning("Skipping version entry without an id: %r", payload)
        return None
    return VersionRecord(
        id=version_id,
        note=_optional_str(payload.get("note")) or "",
        created_at=_parse_timestamp(payload.get("created_at")),
        sections_count=_optional_int(payload.get("sections_count")) or 0,
        theme_name=_optional_str(payload.get("theme_name")),
        draft_name=_optional_str(payload.get("draft_name")),
        is_current=bool(payload.get("is_current")),
        is_published=bool(payload.get("is_published")),
        section_type_preview=tuple(_string_list(payload.get("section_type_preview"))),
    )


def parse_version_list(payload: object) -> list[VersionRecord]:
    """Parse the ``versions`` list returned by the remote store."""
    match payload:
        case {"versions": list() as entries}:
            pass
        case list() as entries:
            pass
        case _:
            return []
    records = (
        parse_version_record(entry) for entry in entries if isinstance(entry, dict)
    )
    return [record for record in records if record is not None]


__all__ = [
    "dump_draft_record",
    "dump_site_config",
    "load_site_config",
    "parse_draft_record",
    "parse_optional_site_config",
    "parse_site_config",
    "parse_version_list",
    "parse_version_record",
]
