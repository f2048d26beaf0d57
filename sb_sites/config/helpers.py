"""Utility helpers shared by the site configuration loader."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import logging
import re
import typing as typ
import uuid

from .._constants import SECTION_SLUG_PATTERN
from .models import SiteTheme, TypographyConfig

logger = logging.getLogger(__name__)

_INVALID_SLUG_CHARS = re.compile(r"[^a-z0-9-]+")
_REPEATED_DASHES = re.compile(r"-{2,}")


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_float(value: object | None) -> float | None:
    """Return ``value`` as a float, or None when it is not numeric."""
    match value:
        case bool():
            return None
        case int() | float():
            return float(value)
        case str() as text:
            try:
                return float(text.strip())
            except ValueError:
                return None
        case _:
            return None


def _optional_int(value: object | None) -> int | None:
    """Return ``value`` as an int, or None when it is not integral."""
    number = _optional_float(value)
    if number is None:
        return None
    return int(number)


def _string_list(value: object | None) -> list[str]:
    """Normalize a list of strings, dropping empty entries."""
    if not isinstance(value, list):
        return []
    return [text for item in value if (text := _optional_str(item))]


def _mapping(value: object | None) -> typ.Mapping[str, typ.Any] | None:
    return value if isinstance(value, dict) else None


def normalize_slug(value: object | None) -> str | None:
    """Return an anchor slug matching ``[a-z0-9-]+`` or None.

    Upper-case letters are lowered and runs of other characters collapse into
    a single dash. A value with no usable characters is rejected with a
    diagnostic rather than stored.
    """
    text = _optional_str(value)
    if text is None:
        return None
    if SECTION_SLUG_PATTERN.match(text):
        return text
    candidate = _INVALID_SLUG_CHARS.sub("-", text.lower())
    candidate = _REPEATED_DASHES.sub("-", candidate).strip("-")
    if not candidate:
        logger.warning("Rejected section slug %r: no valid characters", text)
        return None
    logger.info("Normalized section slug %r to %r", text, candidate)
    return candidate


def new_section_id(section_type: str) -> str:
    """Return a fresh stable identifier for a newly created section."""
    return f"{section_type}-{uuid.uuid4().hex[:8]}"


def _build_typography_config(payload: typ.Mapping[str, typ.Any] | None) -> TypographyConfig:
    """Build a TypographyConfig from a camelCase mapping, keeping defaults."""
    base = TypographyConfig()
    if not payload:
        return base
    adaptive = payload.get("adaptiveTitles", base.adaptive_titles)
    return TypographyConfig(
        preset=_optional_str(payload.get("preset")) or base.preset,
        display_scale=_optional_str(payload.get("displayScale")) or base.display_scale,
        text_scale=_optional_str(payload.get("textScale")) or base.text_scale,
        adaptive_titles=adaptive is not False,
    )


def _build_theme(payload: typ.Mapping[str, typ.Any] | None) -> SiteTheme:
    """Build a SiteTheme instance from the provided mapping payload."""
    base = SiteTheme()
    if not payload:
        return base
    return SiteTheme(
        theme_version=_optional_str(payload.get("theme_version")) or base.theme_version,
        mode=_optional_str(payload.get("mode")) or base.mode,
        accent=_optional_str(payload.get("accent")) or base.accent,
        typography=_build_typography_config(_mapping(payload.get("typography"))),
        logo_url=_optional_str(payload.get("logo_url")),
    )


def merge_theme(base: SiteTheme, override: typ.Mapping[str, typ.Any] | None) -> SiteTheme:
    """Replace-merge an override theme mapping into ``base``.

    Top-level keys in ``override`` replace the matching attribute wholesale;
    a ``typography`` entry is itself merged key by key so callers can change a
    single scale without resending the whole block.
    """
    if not override:
        return base
    typography = base.typography
    raw_typography = _mapping(override.get("typography"))
    if raw_typography:
        typography = dc.replace(
            typography,
            preset=_optional_str(raw_typography.get("preset")) or typography.preset,
            display_scale=_optional_str(raw_typography.get("displayScale"))
            or typography.display_scale,
            text_scale=_optional_str(raw_typography.get("textScale"))
            or typography.text_scale,
            adaptive_titles=raw_typography.get("adaptiveTitles", typography.adaptive_titles)
            is not False,
        )
    return SiteTheme(
        theme_version=_optional_str(override.get("theme_version")) or base.theme_version,
        mode=_optional_str(override.get("mode")) or base.mode,
        accent=_optional_str(override.get("accent")) or base.accent,
        typography=typography,
        logo_url=_optional_str(override.get("logo_url", base.logo_url)),
    )


def _dump_theme(theme: SiteTheme) -> dict[str, typ.Any]:
    payload: dict[str, typ.Any] = {
        "theme_version": theme.theme_version,
        "mode": theme.mode,
        "accent": theme.accent,
        "typography": {
            "preset": theme.typography.preset,
            "displayScale": theme.typography.display_scale,
            "textScale": theme.typography.text_scale,
            "adaptiveTitles": theme.typography.adaptive_titles,
        },
    }
    if theme.logo_url:
        payload["logo_url"] = theme.logo_url
    return payload


def _parse_timestamp(value: dt.datetime | str | None) -> dt.datetime | None:
    """Return a timezone-aware UTC datetime parsed from ``value``, or None."""
    match value:
        case dt.datetime():
            parsed = value
        case str() as text:
            sanitized = text.strip()
            if not sanitized:
                return None
            if sanitized.endswith("Z"):
                sanitized = sanitized[:-1] + "+00:00"
            try:
                parsed = dt.datetime.fromisoformat(sanitized)
            except ValueError:
                return None
        case _:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.UTC)
    return parsed.astimezone(dt.UTC)


__all__ = [
    "_build_theme",
    "_build_typography_config",
    "_dump_theme",
    "_mapping",
    "_optional_float",
    "_optional_int",
    "_optional_str",
    "_parse_timestamp",
    "_string_list",
    "merge_theme",
    "new_section_id",
    "normalize_slug",
]
