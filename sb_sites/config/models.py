"""Typed dataclasses describing site configuration structures."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt  # noqa: TC003 - used for runtime type metadata
import enum
import typing as typ

from .._constants import DEFAULT_CONFIG_VERSION, DEFAULT_THEME_VERSION


class SiteConfigError(ValueError):
    """Raised when a site configuration document cannot be interpreted."""


class ProvisionStatus(enum.StrEnum):
    """Hosting allocation state persisted by the remote store."""

    NOT_PROVISIONED = "not_provisioned"
    PROVISIONING = "provisioning"
    PROVISIONED = "provisioned"
    ERROR = "error"


class PublishStatus(enum.StrEnum):
    """Presentation state derived while provisioning and publishing."""

    NOT_PROVISIONED = "not_provisioned"
    PROVISIONING = "provisioning"
    PROVISIONED = "provisioned"
    PUBLISHING = "publishing"
    LIVE = "live"
    ERROR = "error"


@dc.dataclass(slots=True)
class CustomScaling:
    """Explicit per-element font multipliers for a section."""

    title: float | None = None
    subtitle: float | None = None
    body: float | None = None


@dc.dataclass(slots=True)
class TypographyOverride:
    """Section-level typography adjustments layered on the theme defaults."""

    display_scale: str | None = None
    text_scale: str | None = None
    font_preset: str | None = None
    disable_adaptive_titles: bool = False
    custom_scaling: CustomScaling | None = None


@dc.dataclass(slots=True)
class FocalPoint:
    """Percentage coordinates of the interesting part of an image."""

    x_pct: float = 50
    y_pct: float = 50


@dc.dataclass(slots=True)
class BackgroundFocal:
    """Focal points for the desktop and mobile crops of a background."""

    desktop: FocalPoint | None = None
    mobile: FocalPoint | None = None


@dc.dataclass(slots=True)
class ImageOverlay:
    """Overlay drawn between a background image and the text above it."""

    type: str | None = None
    intensity: str = "medium"
    gradient_direction: str = "bottom"


@dc.dataclass(slots=True)
class TextOverlay:
    """Caption drawn on top of a content-block media item."""

    text: str
    overlay: ImageOverlay | None = None


@dc.dataclass(slots=True)
class MediaItem:
    """Image reference used by content blocks."""

    url: str
    alt: str = ""
    ratio: str | None = None
    fit: str | None = None
    text_overlay: TextOverlay | None = None


@dc.dataclass(slots=True)
class SpecialOffer:
    """A single promotional offer card."""

    id: str
    title: str
    description: str | None = None
    price: str | None = None
    cta_label: str | None = None
    cta_href: str | None = None


@dc.dataclass(slots=True)
class LinkItem:
    """An entry in the link list page."""

    id: str
    label: str
    href: str
    icon_name: str | None = None


@dc.dataclass(slots=True)
class LocationActions:
    """Quick actions offered next to a business address."""

    show_call: bool = True
    show_directions: bool = True
    show_copy_address: bool = False


@dc.dataclass(slots=True)
class BusinessLocation:
    """Address and map hints for the business-info panel."""

    address_lines: list[str] = dc.field(default_factory=list)
    lat: float | None = None
    lng: float | None = None
    map_provider: str = "auto"
    show_static_map: bool = False
    zoom: int | None = None
    actions: LocationActions | None = None
    phone: str | None = None


@dc.dataclass(slots=True)
class HeroSection:
    """Full-width banner with title, subtitle and optional imagery."""

    type: typ.ClassVar[str] = "hero"

    id: str
    slug: str | None = None
    title: str | None = None
    subtitle: str | None = None
    background_image_url: str | None = None
    background_size: str | None = None
    background_focal: BackgroundFocal | None = None
    image_overlay: ImageOverlay | None = None
    content_image_url: str | None = None
    content_image_alt: str | None = None
    content_image_ratio: str | None = None
    content_image_fit: str | None = None
    content_image_size: str | None = None
    layout: str | None = None
    align: str | None = None
    valign: str | None = None
    brand_emphasis: bool = False
    text_color_mode: str | None = None
    typography_override: TypographyOverride | None = None


@dc.dataclass(slots=True)
class ContentBlockSection:
    """Text block with up to three media items."""

    type: typ.ClassVar[str] = "content_block"

    id: str
    slug: str | None = None
    title: str | None = None
    body: str | None = None
    layout: str | None = None
    background: str | None = None
    brand_emphasis: bool = False
    text_align: str | None = None
    media: list[MediaItem] = dc.field(default_factory=list)
    figure_size: str | None = None
    typography_override: TypographyOverride | None = None


@dc.dataclass(slots=True)
class BusinessDataSection:
    """Panel listing business facts such as hours, phone and address."""

    type: typ.ClassVar[str] = "business_data"

    id: str
    slug: str | None = None
    title: str | None = None
    fields: list[str] = dc.field(default_factory=list)
    location: BusinessLocation | None = None
    typography_override: TypographyOverride | None = None


@dc.dataclass(slots=True)
class SpecialOffersSection:
    """Grid of promotional offers."""

    type: typ.ClassVar[str] = "special_offers"

    id: str
    slug: str | None = None
    title: str | None = None
    offers: list[SpecialOffer] = dc.field(default_factory=list)
    typography_override: TypographyOverride | None = None


@dc.dataclass(slots=True)
class LinksPageSection:
    """Link-in-bio style list of outbound links."""

    type: typ.ClassVar[str] = "links_page"

    id: str
    slug: str | None = None
    title: str | None = None
    links: list[LinkItem] = dc.field(default_factory=list)
    variant: str | None = None
    align: str | None = None
    size: str | None = None
    columns_desktop: str | None = None
    emphasize_first: bool = False
    color_mode: str | None = None
    hover_style: str | None = None
    truncate_lines: int | None = None
    show_icon: bool = False
    icon_position: str | None = None
    typography_override: TypographyOverride | None = None


@dc.dataclass(slots=True)
class ScheduleSection:
    """Upcoming classes or appointments for the next few days."""

    type: typ.ClassVar[str] = "schedule"

    id: str
    slug: str | None = None
    title: str | None = None
    window_days: int = 7
    view_mode: str = "stacked"
    typography_override: TypographyOverride | None = None


@dc.dataclass(slots=True)
class UnknownSection:
    """A section whose type is outside the catalog, kept verbatim."""

    id: str
    type: str
    slug: str | None = None
    raw: dict[str, typ.Any] = dc.field(default_factory=dict)


Section = (
    HeroSection
    | ContentBlockSection
    | BusinessDataSection
    | SpecialOffersSection
    | LinksPageSection
    | ScheduleSection
    | UnknownSection
)

SECTION_TYPES: dict[str, type[Section]] = {
    "hero": HeroSection,
    "content_block": ContentBlockSection,
    "business_data": BusinessDataSection,
    "special_offers": SpecialOffersSection,
    "links_page": LinksPageSection,
    "schedule": ScheduleSection,
}


@dc.dataclass(slots=True)
class TypographyConfig:
    """Theme-wide typography choices."""

    preset: str = "modern"
    display_scale: str = "standard"
    text_scale: str = "standard"
    adaptive_titles: bool = True


@dc.dataclass(slots=True)
class SiteTheme:
    """Global color mode, accent and typography descriptor.

    ``accent`` is stored exactly as supplied; unknown names and malformed hex
    strings are only replaced by the fallback palette when the theme is
    resolved for presentation.
    """

    theme_version: str = DEFAULT_THEME_VERSION
    mode: str = "light"
    accent: str = "blue"
    typography: TypographyConfig = dc.field(default_factory=TypographyConfig)
    logo_url: str | None = None


@dc.dataclass(slots=True)
class SiteConfig:
    """A complete site: theme plus an ordered list of sections."""

    version: str = DEFAULT_CONFIG_VERSION
    business_id: str = ""
    theme: SiteTheme = dc.field(default_factory=SiteTheme)
    sections: list[Section] = dc.field(default_factory=list)
    meta: dict[str, typ.Any] = dc.field(default_factory=dict)


@dc.dataclass(slots=True)
class DraftRecord:
    """The editable draft persisted under ``sb:<business_id>``."""

    slug: str = ""
    draft: SiteConfig | None = None


@dc.dataclass(frozen=True, slots=True)
class VersionRecord:
    """Immutable historical snapshot metadata returned by the remote store."""

    id: str
    note: str = ""
    created_at: dt.datetime | None = None
    sections_count: int = 0
    theme_name: str | None = None
    draft_name: str | None = None
    is_current: bool = False
    is_published: bool = False
    section_type_preview: tuple[str, ...] = ()


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
]
