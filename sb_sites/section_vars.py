"""Map section properties onto namespaced presentation variables.

Every mapper returns a plain ``dict`` whose keys start with ``--sb-``. The
page applies these at the section element so they win over the theme layer
set on the document root. :func:`map_section_vars` is the only entry point
callers need: it dispatches on the section variant, enforces the namespace,
and degrades to a single spacing variable for unknown or malformed input.

Examples
--------
>>> from sb_sites.config.models import ContentBlockSection, MediaItem
>>> section = ContentBlockSection(
...     id="cb-1", media=[MediaItem(url="a.jpg"), MediaItem(url="b.jpg")]
... )
>>> vars_for_content_block(section)["--sb-cb-media-grid"]
'1fr 1fr'
"""

from __future__ import annotations

import logging
import os
import typing as typ

from ._constants import FALLBACK_SECTION_VARS, VAR_PREFIX
from .config.models import (
    BusinessDataSection,
    ContentBlockSection,
    HeroSection,
    ImageOverlay,
    LinksPageSection,
    ScheduleSection,
    SpecialOffersSection,
    TypographyOverride,
)
from .theme.typography import (
    apply_typography_override,
    format_number,
    get_adaptive_title_multiplier,
)

logger = logging.getLogger(__name__)

_OVERLAY_ALPHA: dict[str, dict[str, float]] = {
    "dark": {"light": 0.2, "medium": 0.4, "heavy": 0.6},
    "light": {"light": 0.15, "medium": 0.3, "heavy": 0.5},
    "brand": {"light": 0.2, "medium": 0.35, "heavy": 0.5},
}
_GRADIENT_DIRECTIONS = frozenset({"top", "bottom", "left", "right"})
_JUSTIFY = {"left": "flex-start", "center": "center", "right": "flex-end"}
_CROSS_AXIS = {"top": "flex-start", "center": "center", "bottom": "flex-end"}
_BACKGROUNDS = {
    "surface": ("var(--sb-color-surface)", "var(--sb-color-text)"),
    "alt": ("var(--sb-color-surface-alt)", "var(--sb-color-text)"),
    "inverse": ("var(--sb-color-text)", "var(--sb-color-surface)"),
}
_CSS_STRING_ESCAPES = str.maketrans(
    {"\\": "\\\\", '"': '\\"', "\n": "\\a ", "\r": "\\d ", "\f": "\\c "}
)
_CONTENT_RATIOS = {
    "1x1": "1 / 1",
    "4x3": "4 / 3",
    "16x9": "16 / 9",
    "3x4": "3 / 4",
    "21x9": "21 / 9",
    "5x3": "5 / 3",
}
_CONTENT_IMAGE_SIZES = {"XS": "100px", "S": "150px", "M": "200px", "L": "300px"}
_FIGURE_SIZES = {"S": "300px", "M": "500px", "L": "700px"}
_AUTO_TEXT_COLORS = {
    "light": "var(--sb-color-text)",
    "brand": "var(--sb-color-on-brand, #fff)",
}
_MAX_MEDIA = 3


def map_alignment(align: str | None, valign: str | None) -> dict[str, str]:
    """Translate horizontal and vertical alignment into flex variables."""
    variables: dict[str, str] = {}
    if align in _JUSTIFY:
        variables["--sb-justify-content"] = _JUSTIFY[align]
        variables["--sb-text-align"] = align
    if valign in _CROSS_AXIS:
        variables["--sb-align-items"] = _CROSS_AXIS[valign]
    return variables


def map_background(background: str | None) -> dict[str, str]:
    """Return the background/foreground token pair for a background variant.

    ``inverse`` swaps the text and surface roles; unknown variants use
    ``surface``.
    """
    bg_color, text_color = _BACKGROUNDS.get(background or "surface", _BACKGROUNDS["surface"])
    return {"--sb-bg-color": bg_color, "--sb-text-color": text_color}


def overlay_background(overlay: ImageOverlay) -> str:
    """Return the CSS background expression drawn over a hero image.

    Examples
    --------
    >>> overlay_background(ImageOverlay(type="light", intensity="heavy"))
    'rgba(255, 255, 255, 0.5)'
    >>> overlay_background(ImageOverlay(type="none"))
    'transparent'
    """
    overlay_type = overlay.type or "none"
    if overlay_type == "none":
        return "transparent"
    intensity = overlay.intensity if overlay.intensity in _OVERLAY_ALPHA["dark"] else "medium"
    dark_alpha = format_number(_OVERLAY_ALPHA["dark"][intensity])
    match overlay_type:
        case "dark" | "blur":
            return f"rgba(0, 0, 0, {dark_alpha})"
        case "light":
            alpha = format_number(_OVERLAY_ALPHA["light"][intensity])
            return f"rgba(255, 255, 255, {alpha})"
        case "gradient":
            direction = overlay.gradient_direction or "bottom"
            if direction in _GRADIENT_DIRECTIONS:
                return f"linear-gradient(to {direction}, rgba(0,0,0,0), rgba(0,0,0,{dark_alpha}))"
            return f"radial-gradient(circle, rgba(0,0,0,0) 0%, rgba(0,0,0,{dark_alpha}) 100%)"
        case "brand":
            percent = round(_OVERLAY_ALPHA["brand"][intensity] * 100)
            return f"color-mix(in srgb, var(--sb-color-brand) {percent}%, transparent)"
        case _:
            logger.warning("Unknown overlay type %r, falling back to dark", overlay_type)
            return f"rgba(0, 0, 0, {dark_alpha})"


def _adaptive_enabled(override: TypographyOverride | None) -> bool:
    return not (override and override.disable_adaptive_titles)


def css_url(value: str) -> str:
    """Quote ``value`` as a CSS ``url()`` that cannot break out of its string.

    Examples
    --------
    >>> css_url("https://img.example.com/a.jpg")
    'url("https://img.example.com/a.jpg")'
    """
    return f'url("{value.translate(_CSS_STRING_ESCAPES)}")'


def _focal_position(focal: typ.Any) -> str:
    return f"{format_number(focal.x_pct)}% {format_number(focal.y_pct)}%"


def vars_for_hero(section: HeroSection) -> dict[str, str]:
    """Return hero variables: alignment, imagery, overlay, colors and scale."""
    variables = map_alignment(section.align, section.valign)

    if section.background_image_url:
        variables["--sb-hero-bg-image"] = css_url(section.background_image_url)
        focal = section.background_focal
        if focal and focal.desktop:
            variables["--sb-hero-bg-position"] = _focal_position(focal.desktop)
        if focal and focal.mobile:
            variables["--sb-hero-bg-position-mobile"] = _focal_position(focal.mobile)

    if section.image_overlay is not None:
        variables["--sb-hero-overlay"] = overlay_background(section.image_overlay)
        if section.text_color_mode == "auto":
            overlay_type = section.image_overlay.type or "dark"
            variables["--sb-hero-auto-text-color"] = _AUTO_TEXT_COLORS.get(
                overlay_type, "var(--sb-color-surface)"
            )

    if section.content_image_url:
        variables["--sb-hero-content-image"] = css_url(section.content_image_url)
        if section.content_image_ratio:
            variables["--sb-hero-content-aspect"] = _CONTENT_RATIOS.get(
                section.content_image_ratio, "1 / 1"
            )
        if section.content_image_fit:
            variables["--sb-hero-content-fit"] = section.content_image_fit
        if section.content_image_size:
            variables["--sb-hero-content-size"] = _CONTENT_IMAGE_SIZES.get(
                section.content_image_size, "200px"
            )

    if section.brand_emphasis:
        variables["--sb-hero-title-color"] = "var(--sb-color-brand)"
    match section.text_color_mode:
        case "brand":
            variables["--sb-hero-text-color"] = "var(--sb-color-brand)"
        case "neutral":
            variables["--sb-hero-text-color"] = "var(--sb-color-neutral)"
        case _:
            pass

    multiplier = get_adaptive_title_multiplier(
        section.title, _adaptive_enabled(section.typography_override)
    )
    if multiplier != 1:
        variables["--sb-hero-title-adaptive"] = format_number(multiplier)
    return apply_typography_override(variables, section.typography_override)


def vars_for_content_block(section: ContentBlockSection) -> dict[str, str]:
    """Return content-block layout, background, media grid and title scale."""
    variables: dict[str, str] = {}
    if section.layout:
        variables["--sb-cb-layout"] = section.layout
        match section.layout:
            case "media_left":
                variables.update(
                    {"--sb-cb-grid": "1fr 1fr", "--sb-cb-media-order": "1", "--sb-cb-text-order": "2"}
                )
            case "media_right":
                variables.update(
                    {"--sb-cb-grid": "1fr 1fr", "--sb-cb-media-order": "2", "--sb-cb-text-order": "1"}
                )
            case "media_top":
                variables.update(
                    {"--sb-cb-grid": "1fr", "--sb-cb-media-order": "1", "--sb-cb-text-order": "2"}
                )
            case "text_only":
                variables.update({"--sb-cb-grid": "1fr", "--sb-cb-media-display": "none"})
            case _:
                pass

    variables.update(map_background(section.background))
    if section.text_align:
        variables["--sb-cb-text-align"] = section.text_align
    if section.brand_emphasis:
        variables["--sb-cb-title-color"] = "var(--sb-color-brand)"
    if section.figure_size:
        variables["--sb-cb-figure-max-width"] = _FIGURE_SIZES.get(section.figure_size, "500px")

    media_count = min(len(section.media), _MAX_MEDIA)
    if media_count:
        variables["--sb-cb-media-count"] = str(media_count)
    if media_count > 1:
        variables["--sb-cb-media-grid"] = " ".join(["1fr"] * media_count)
        variables["--sb-cb-media-gap"] = "8px"

    multiplier = get_adaptive_title_multiplier(
        section.title, _adaptive_enabled(section.typography_override)
    )
    if multiplier != 1:
        variables["--sb-cb-title-adaptive"] = format_number(multiplier)
    return apply_typography_override(variables, section.typography_override)


def vars_for_business_data(section: BusinessDataSection) -> dict[str, str]:
    variables = map_background("surface")
    variables["--sb-bd-padding"] = "var(--sb-space-section)"
    return apply_typography_override(variables, section.typography_override)


def vars_for_special_offers(section: SpecialOffersSection) -> dict[str, str]:
    """Return offer grid variables; the grid never exceeds three columns."""
    variables = map_background("surface")
    variables["--sb-so-padding"] = "var(--sb-space-section)"
    if section.offers:
        variables["--sb-so-grid-cols"] = str(min(len(section.offers), 3))
    return apply_typography_override(variables, section.typography_override)


def vars_for_links_page(section: LinksPageSection) -> dict[str, str]:
    """Return link-list presentation variables."""
    variables = map_background("surface")
    variables["--sb-lp-padding"] = "var(--sb-space-section)"
    variables["--sb-lp-max-width"] = "600px"
    optional = {
        "--sb-lp-variant": section.variant,
        "--sb-lp-align": section.align,
        "--sb-lp-size": section.size,
        "--sb-lp-columns": section.columns_desktop,
        "--sb-lp-color-mode": section.color_mode,
        "--sb-lp-hover": section.hover_style,
    }
    variables.update({key: value for key, value in optional.items() if value})
    if section.truncate_lines:
        variables["--sb-lp-truncate"] = str(section.truncate_lines)
    if section.emphasize_first:
        variables["--sb-lp-emphasize-first"] = "1"
    return apply_typography_override(variables, section.typography_override)


def vars_for_schedule(section: ScheduleSection) -> dict[str, str]:
    variables = map_background("surface")
    variables["--sb-sc-padding"] = "var(--sb-space-section)"
    if section.view_mode:
        variables["--sb-sc-view-mode"] = section.view_mode
    variables["--sb-sc-window-days"] = str(section.window_days)
    return apply_typography_override(variables, section.typography_override)


def _is_debug_build() -> bool:
    return os.environ.get("SB_ENV", "development") != "production"


def validate_and_log_section_vars(
    section_type: str, variables: typ.Mapping[str, str]
) -> typ.Mapping[str, str]:
    """Report keys outside the namespace and dump variables in debug builds.

    The check never changes or gates the output; it is skipped entirely when
    ``SB_ENV`` is ``production``.
    """
    if not _is_debug_build():
        return variables
    invalid = [key for key in variables if not key.startswith(VAR_PREFIX)]
    if invalid:
        logger.warning(
            "Invalid variables in %s: %s (all keys must start with %r)",
            section_type,
            invalid,
            VAR_PREFIX,
        )
    if variables:
        logger.debug("Variables applied to %s: %s", section_type, dict(variables))
    return variables


def _enforce_prefix(section_type: str, variables: typ.Mapping[str, str]) -> dict[str, str]:
    accepted: dict[str, str] = {}
    for key, value in variables.items():
        if key.startswith(VAR_PREFIX):
            accepted[key] = value
        else:
            logger.warning("Dropping variable %r from %s: missing %s prefix", key, section_type, VAR_PREFIX)
    return accepted


def map_section_vars(section: object) -> dict[str, str]:
    """Return the section-scope variables for any section object.

    Parameters
    ----------
    section : object
        A typed section. Unknown section types, missing sections and sections
        whose mapper raises all yield the fallback spacing variable with one
        logged diagnostic.

    Returns
    -------
    dict[str, str]
        Variables whose keys all start with ``--sb-``.

    Examples
    --------
    >>> from sb_sites.config.models import UnknownSection
    >>> map_section_vars(UnknownSection(id="x-1", type="carousel"))
    {'--sb-padding': 'var(--sb-space-section)'}
    """
    section_type = getattr(section, "type", None) or "unknown"
    try:
        match section:
            case HeroSection():
                variables = vars_for_hero(section)
            case ContentBlockSection():
                variables = vars_for_content_block(section)
            case BusinessDataSection():
                variables = vars_for_business_data(section)
            case SpecialOffersSection():
                variables = vars_for_special_offers(section)
            case LinksPageSection():
                variables = vars_for_links_page(section)
            case ScheduleSection():
                variables = vars_for_schedule(section)
            case _:
                logger.warning("Unknown section type %r, using default variables", section_type)
                return dict(FALLBACK_SECTION_VARS)
    except Exception:
        logger.warning("Error mapping variables for section %s", section_type, exc_info=True)
        return dict(FALLBACK_SECTION_VARS)

    accepted = _enforce_prefix(section_type, variables)
    validate_and_log_section_vars(section_type, accepted)
    return accepted


__all__ = [
    "css_url",
    "map_alignment",
    "map_background",
    "map_section_vars",
    "overlay_background",
    "validate_and_log_section_vars",
    "vars_for_business_data",
    "vars_for_content_block",
    "vars_for_hero",
    "vars_for_links_page",
    "vars_for_schedule",
    "vars_for_special_offers",
]
