"""Typed site configuration for sb-sites builds.

This subpackage turns the camelCase documents shared by the editor, the local
cache and the remote store into dataclasses (:class:`SiteConfig`,
:class:`SiteTheme` and the section variants) that the render pipeline and the
lifecycle manager consume. The primary entry points are
:func:`load_site_config` for files on disk and :func:`parse_site_config` for
already-decoded payloads.

Examples
--------
>>> from sb_sites.config import parse_site_config
>>> site = parse_site_config({"sections": [{"type": "hero", "title": "Hi"}]})
>>> site.sections[0].type
'hero'
"""

from .helpers import merge_theme, new_section_id, normalize_slug
from .loader import (
    dump_draft_record,
    dump_site_config,
    load_site_config,
    parse_draft_record,
    parse_optional_site_config,
    parse_site_config,
    parse_version_list,
)
from .models import (
    SECTION_TYPES,
    BackgroundFocal,
    BusinessDataSection,
    BusinessLocation,
    ContentBlockSection,
    CustomScaling,
    DraftRecord,
    FocalPoint,
    HeroSection,
    ImageOverlay,
    LinkItem,
    LinksPageSection,
    LocationActions,
    MediaItem,
    ProvisionStatus,
    PublishStatus,
    ScheduleSection,
    Section,
    SiteConfig,
    SiteConfigError,
    SiteTheme,
    SpecialOffer,
    SpecialOffersSection,
    TextOverlay,
    TypographyConfig,
    TypographyOverride,
    UnknownSection,
    VersionRecord,
)
from .sections import build_section, dump_section

__all__ = [
    "SECTION_TYPES",
    "BackgroundFocal",
    "BusinessDataSection",
    "BusinessLocation",
    "ContentBlockSection",
    "CustomScaling",
    "DraftRecord",
    "FocalPoint",
    "HeroSection",
    "ImageOverlay",
    "LinkItem",
    "LinksPageSection",
    "LocationActions",
    "MediaItem",
    "ProvisionStatus",
    "PublishStatus",
    "ScheduleSection",
    "Section",
    "SiteConfig",
    "SiteConfigError",
    "SiteTheme",
    "SpecialOffer",
    "SpecialOffersSection",
    "TextOverlay",
    "TypographyConfig",
    "TypographyOverride",
    "UnknownSection",
    "VersionRecord",
    "build_section",
    "dump_section",
    "dump_draft_record",
    "dump_site_config",
    "load_site_config",
    "merge_theme",
    "new_section_id",
    "normalize_slug",
    "parse_draft_record",
    "parse_optional_site_config",
    "parse_site_config",
    "parse_version_list",
]
