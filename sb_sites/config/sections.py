"""Builders translating wire-format section payloads into typed sections.

The remote store, the local cache and YAML site files all share the camelCase
payload shape produced by the editor (``backgroundImageUrl``,
``typographyOverride`` and so on). Every dataclass field in
:mod:`sb_sites.config.models` maps onto its camelCase key, so a single pair of
generic builders/dumpers handles the catalog; the tables below only name the
fields that hold nested value objects.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ

from .helpers import (
    _optional_float,
    _optional_int,
    _optional_str,
    _string_list,
    new_section_id,
    normalize_slug,
)
from .models import (
    SECTION_TYPES,
    BackgroundFocal,
    BusinessLocation,
    CustomScaling,
    FocalPoint,
    ImageOverlay,
    LinkItem,
    LocationActions,
    MediaItem,
    Section,
    SpecialOffer,
    TextOverlay,
    TypographyOverride,
    UnknownSection,
)

logger = logging.getLogger(__name__)

_NESTED_OBJECTS: dict[str, type] = {
    "typography_override": TypographyOverride,
    "custom_scaling": CustomScaling,
    "background_focal": BackgroundFocal,
    "desktop": FocalPoint,
    "mobile": FocalPoint,
    "image_overlay": ImageOverlay,
    "overlay": ImageOverlay,
    "text_overlay": TextOverlay,
    "location": BusinessLocation,
    "actions": LocationActions,
}

_NESTED_LISTS: dict[str, type] = {
    "media": MediaItem,
    "offers": SpecialOffer,
    "links": LinkItem,
}

_ID_PREFIXES: dict[type, str] = {SpecialOffer: "offer", LinkItem: "link"}


def camel_case(name: str) -> str:
    """Return the wire key for a snake_case field name."""
    first, *rest = name.split("_")
    return first + "".join(part.title() for part in rest)


def _coerce_scalar(annotation: str, value: object) -> object | None:
    """Coerce ``value`` according to the dataclass field's annotation text."""
    if annotation.startswith("bool"):
        return bool(value)
    if annotation.startswith("list[str]"):
        return _string_list(value)
    if annotation.startswith("int"):
        return _optional_int(value)
    if annotation.startswith("float"):
        return _optional_float(value)
    return _optional_str(value)


def _build_value_object(cls: type, payload: object) -> typ.Any:
    """Build a nested value dataclass, returning None for malformed input."""
    if not isinstance(payload, dict):
        return None
    kwargs: dict[str, typ.Any] = {}
    for field in dc.fields(cls):
        key = camel_case(field.name)
        if key not in payload:
            continue
        raw = payload[key]
        if nested := _NESTED_OBJECTS.get(field.name):
            value = _build_value_object(nested, raw)
        elif nested := _NESTED_LISTS.get(field.name):
            value = _build_value_list(nested, raw)
        else:
            value = _coerce_scalar(str(field.type), raw)
        if value is not None:
            kwargs[field.name] = value
    if cls in _ID_PREFIXES and "id" not in kwargs:
        kwargs["id"] = new_section_id(_ID_PREFIXES[cls])
    try:
        return cls(**kwargs)
    except TypeError:
        logger.warning("Dropping malformed %s entry: %r", cls.__name__, payload)
        return None


def _build_value_list(cls: type, payload: object) -> list[typ.Any]:
    if not isinstance(payload, list):
        return []
    items = (_build_value_object(cls, entry) for entry in payload)
    return [item for item in items if item is not None]


def build_section(payload: object) -> Section | None:
    """Build one typed section from its wire payload.

    Non-mapping entries are dropped with a diagnostic. A mapping whose
    ``type`` is outside the catalog becomes an :class:`UnknownSection` so the
    presentation layer can still give it fallback variables.
    """
    match payload:
        case {"type": str() as section_type, **rest}:
            pass
        case dict():
            section_type, rest = "unknown", dict(payload)
        case _:
            logger.warning("Dropping malformed section entry: %r", payload)
            return None
    section_id = _optional_str(rest.get("id")) or new_section_id(section_type)
    slug = normalize_slug(rest.get("slug"))
    section_cls = SECTION_TYPES.get(section_type)
    if section_cls is None:
        logger.warning("Unknown section type %r kept as-is", section_type)
        raw = {key: value for key, value in rest.items() if key not in {"id", "slug"}}
        return UnknownSection(id=section_id, type=section_type, slug=slug, raw=raw)

    built = _build_value_object(section_cls, {**rest, "id": section_id})
    if built is None:  # pragma: no cover - every section field has a default
        return None
    built.slug = slug
    return built


def build_sections(payload: object) -> list[Section]:
    """Build the ordered section list, skipping malformed entries."""
    if not isinstance(payload, list):
        return []
    sections = (build_section(entry) for entry in payload)
    return [section for section in sections if section is not None]


def _dump_value(value: object) -> object:
    if dc.is_dataclass(value) and not isinstance(value, type):
        return _dump_value_object(value)
    if isinstance(value, list | tuple):
        return [_dump_value(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump_value(item) for key, item in value.items()}
    return value


def _dump_value_object(obj: object) -> dict[str, typ.Any]:
    payload: dict[str, typ.Any] = {}
    for field in dc.fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, field.name)
        if value is None:
            continue
        payload[camel_case(field.name)] = _dump_value(value)
    return payload


def dump_section(section: Section) -> dict[str, typ.Any]:
    """Return the camelCase wire payload for ``section``."""
    if isinstance(section, UnknownSection):
        payload: dict[str, typ.Any] = {"id": section.id, "type": section.type}
        if section.slug:
            payload["slug"] = section.slug
        payload.update(section.raw)
        return payload
    return {"type": section.type, **_dump_value_object(section)}


__all__ = [
    "build_section",
    "build_sections",
    "camel_case",
    "dump_section",
]
