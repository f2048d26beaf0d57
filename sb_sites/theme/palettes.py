"""Accent palettes and surface colors for light and dark themes.

Named accents map onto a fixed palette table. A custom ``#rgb`` or
``#rrggbb`` accent derives hover and accent shades by scaling each channel,
and picks black or white contrast text from the color's relative luminance.
Everything else falls back to the blue palette with a warning.

Examples
--------
>>> from sb_sites.theme.palettes import resolve_accent_palette
>>> resolve_accent_palette("green", "dark").brand
'#10b981'
>>> resolve_accent_palette("#ffff00", "light").brand_contrast
'#000000'
"""

from __future__ import annotations

import dataclasses as dc
import functools
import logging
import re
import typing as typ

logger = logging.getLogger(__name__)

ThemeMode = typ.Literal["light", "dark"]

FALLBACK_ACCENT = "blue"
_HEX_COLOR = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
_NEUTRALS: dict[str, str] = {"light": "#6b7280", "dark": "#9ca3af"}


@dc.dataclass(frozen=True, slots=True)
class ColorPalette:
    """Brand colors resolved for one accent and mode."""

    brand: str
    brand_hover: str
    brand_contrast: str
    accent: str
    neutral: str


@dc.dataclass(frozen=True, slots=True)
class SurfaceColors:
    """Page-level surface and text colors for one mode."""

    surface: str
    surface_alt: str
    text: str
    text_muted: str
    border: str
    bg_alt: str


BRAND_PALETTES: dict[str, dict[str, ColorPalette]] = {
    "blue": {
        "light": ColorPalette("#2563eb", "#1d4ed8", "#ffffff", "#3b82f6", "#6b7280"),
        "dark": ColorPalette("#3b82f6", "#60a5fa", "#ffffff", "#2563eb", "#9ca3af"),
    },
    "green": {
        "light": ColorPalette("#059669", "#047857", "#ffffff", "#10b981", "#6b7280"),
        "dark": ColorPalette("#10b981", "#34d399", "#ffffff", "#059669", "#9ca3af"),
    },
    "purple": {
        "light": ColorPalette("#7c3aed", "#6d28d9", "#ffffff", "#8b5cf6", "#6b7280"),
        "dark": ColorPalette("#8b5cf6", "#a78bfa", "#ffffff", "#7c3aed", "#9ca3af"),
    },
    "orange": {
        "light": ColorPalette("#ea580c", "#dc2626", "#ffffff", "#f97316", "#6b7280"),
        "dark": ColorPalette("#f97316", "#fb923c", "#ffffff", "#ea580c", "#9ca3af"),
    },
    "red": {
        "light": ColorPalette("#dc2626", "#b91c1c", "#ffffff", "#ef4444", "#6b7280"),
        "dark": ColorPalette("#ef4444", "#f87171", "#ffffff", "#dc2626", "#9ca3af"),
    },
    "neutral": {
        "light": ColorPalette("#374151", "#1f2937", "#ffffff", "#6b7280", "#9ca3af"),
        "dark": ColorPalette("#9ca3af", "#d1d5db", "#000000", "#6b7280", "#4b5563"),
    },
}

SURFACE_COLORS: dict[str, SurfaceColors] = {
    "light": SurfaceColors(
        surface="#ffffff",
        surface_alt="#f7f7f8",
        text="#1f2937",
        text_muted="#6b7280",
        border="#e5e7eb",
        bg_alt="#f6f7f9",
    ),
    "dark": SurfaceColors(
        surface="#0f1115",
        surface_alt="#11131a",
        text="#eaeaea",
        text_muted="#9ca3af",
        border="#22262e",
        bg_alt="#1a1d24",
    ),
}


def normalize_mode(mode: str | None) -> ThemeMode:
    """Return ``dark`` for dark mode and ``light`` for anything else."""
    return "dark" if mode == "dark" else "light"


def is_valid_hex_color(value: str) -> bool:
    """Return True for ``#rgb`` and ``#rrggbb`` strings."""
    return bool(_HEX_COLOR.match(value))


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """Return the channels of a valid hex color, expanding shorthand form."""
    digits = value.lstrip("#")
    if len(digits) == 3:
        digits = "".join(char * 2 for char in digits)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def rgb_to_hex(red: float, green: float, blue: float) -> str:
    """Return a lowercase ``#rrggbb`` string for the given channels."""
    return "#" + "".join(f"{round(channel):02x}" for channel in (red, green, blue))


def adjust_color_lightness(value: str, amount: float) -> str:
    """Scale every channel of ``value`` by ``1 + amount``, clamped to 0-255."""
    channels = (
        max(0.0, min(255.0, channel + channel * amount))
        for channel in hex_to_rgb(value)
    )
    return rgb_to_hex(*channels)


def _linearize(channel: int) -> float:
    srgb = channel / 255
    if srgb <= 0.03928:
        return srgb / 12.92
    return ((srgb + 0.055) / 1.055) ** 2.4


def relative_luminance(value: str) -> float:
    """Return the linearised sRGB relative luminance of a hex color."""
    red, green, blue = (_linearize(channel) for channel in hex_to_rgb(value))
    return 0.2126 * red + 0.7152 * green + 0.0722 * blue


def contrast_color(value: str) -> str:
    """Return black text for light backgrounds and white text otherwise."""
    return "#000000" if relative_luminance(value) > 0.5 else "#ffffff"


@functools.lru_cache(maxsize=256)
def _custom_palette(accent: str, mode: ThemeMode) -> ColorPalette:
    # Light mode darkens on hover; dark mode lightens.
    step = -0.1 if mode == "light" else 0.1
    return ColorPalette(
        brand=accent,
        brand_hover=adjust_color_lightness(accent, step),
        brand_contrast=contrast_color(accent),
        accent=adjust_color_lightness(accent, -step),
        neutral=_NEUTRALS[mode],
    )


def resolve_accent_palette(accent: str | None, mode: str | None = "light") -> ColorPalette:
    """Resolve an accent name or hex color into a :class:`ColorPalette`.

    Parameters
    ----------
    accent : str | None
        Palette name (``blue``, ``green``, ``purple``, ``orange``, ``red``,
        ``neutral``) or a ``#rgb``/``#rrggbb`` hex color.
    mode : str | None
        ``light`` or ``dark``; other values resolve as ``light``.

    Returns
    -------
    ColorPalette
        The same object for the same ``accent`` and ``mode`` on every call.
        Unresolvable accents yield the blue palette and log one warning per
        call.
    """
    resolved_mode = normalize_mode(mode)
    text = accent or ""
    if text in BRAND_PALETTES:
        return BRAND_PALETTES[text][resolved_mode]
    if is_valid_hex_color(text):
        return _custom_palette(text, resolved_mode)
    logger.warning("Unknown accent color %r, falling back to %s", accent, FALLBACK_ACCENT)
    return BRAND_PALETTES[FALLBACK_ACCENT][resolved_mode]


__all__ = [
    "BRAND_PALETTES",
    "FALLBACK_ACCENT",
    "SURFACE_COLORS",
    "ColorPalette",
    "SurfaceColors",
    "ThemeMode",
    "adjust_color_lightness",
    "contrast_color",
    "hex_to_rgb",
    "is_valid_hex_color",
    "normalize_mode",
    "relative_luminance",
    "resolve_accent_palette",
    "rgb_to_hex",
]
