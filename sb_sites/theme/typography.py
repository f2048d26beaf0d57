"""Typography scales, font presets and section-level typography overrides."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from ..text import visible_character_count

if typ.TYPE_CHECKING:
    from ..config.models import TypographyConfig, TypographyOverride

DEFAULT_SCALE = "standard"
FALLBACK_FONT_PRESET = "system"


@dc.dataclass(frozen=True, slots=True)
class FontSize:
    """Lower and upper pixel bounds of a responsive font size."""

    base: int
    max: int


@dc.dataclass(frozen=True, slots=True)
class FontPreset:
    """Heading and body font stacks for a brand personality."""

    heading: str
    body: str


_SANS = "ui-sans-serif, system-ui, sans-serif"
_SYSTEM_STACK = (
    "ui-sans-serif, system-ui, -apple-system, BlinkMacSystemFont, 'Segoe UI', "
    "Roboto, 'Helvetica Neue', Arial, 'Noto Sans', sans-serif"
)

FONT_PRESETS: dict[str, FontPreset] = {
    "modern": FontPreset(f"'Inter', {_SANS}", f"'Inter', {_SANS}"),
    "classic": FontPreset("'Lora', Georgia, serif", f"'Lato', {_SANS}"),
    "minimal": FontPreset(f"'Manrope', {_SANS}", f"'Manrope', {_SANS}"),
    "energetic": FontPreset(f"'Oswald', {_SANS}", f"'Lato', {_SANS}"),
    "friendly": FontPreset(f"'Poppins', {_SANS}", f"'Inter', {_SANS}"),
    "system": FontPreset(_SYSTEM_STACK, _SYSTEM_STACK),
}

# Heading sizes for hero, h1, h2 and h3 in that order.
DISPLAY_SCALES: dict[str, dict[str, FontSize]] = {
    "compact": {
        "hero": FontSize(40, 56),
        "h1": FontSize(28, 38),
        "h2": FontSize(22, 28),
        "h3": FontSize(18, 22),
    },
    "standard": {
        "hero": FontSize(48, 72),
        "h1": FontSize(32, 56),
        "h2": FontSize(24, 36),
        "h3": FontSize(20, 28),
    },
    "expressive": {
        "hero": FontSize(56, 84),
        "h1": FontSize(38, 64),
        "h2": FontSize(28, 42),
        "h3": FontSize(22, 32),
    },
    "dramatic": {
        "hero": FontSize(64, 96),
        "h1": FontSize(44, 72),
        "h2": FontSize(32, 48),
        "h3": FontSize(24, 36),
    },
}

TEXT_SCALES: dict[str, dict[str, FontSize]] = {
    "compact": {
        "body": FontSize(14, 16),
        "subtitle": FontSize(16, 18),
        "small": FontSize(12, 14),
    },
    "standard": {
        "body": FontSize(16, 18),
        "subtitle": FontSize(18, 22),
        "small": FontSize(14, 16),
    },
    "comfortable": {
        "body": FontSize(17, 19),
        "subtitle": FontSize(19, 24),
        "small": FontSize(15, 17),
    },
}

_VIEWPORT_SCALING: dict[str, str] = {
    "hero": "8vw",
    "h1": "6vw",
    "h2": "5vw",
    "h3": "4.5vw",
    "body": "3.5vw",
    "subtitle": "4vw",
    "small": "3vw",
}

TYPOGRAPHY_MULTIPLIERS: dict[str, dict[str, float]] = {
    "display_scale": {
        "compact": 0.85,
        "standard": 1,
        "expressive": 1.15,
        "dramatic": 1.3,
    },
    "text_scale": {
        "compact": 0.9,
        "standard": 1,
        "comfortable": 1.1,
    },
}


def format_number(value: float) -> str:
    """Render a multiplier without trailing zeros (``1`` rather than ``1.0``)."""
    return f"{value:g}"


def _clamp(element: str, size: FontSize) -> str:
    return f"clamp({size.base}px, {_VIEWPORT_SCALING[element]}, {size.max}px)"


def generate_typography_variables(config: TypographyConfig | None) -> dict[str, str]:
    """Return theme-scope font size variables for ``config``.

    Unknown or missing scales resolve to ``standard``; adaptive titles default
    to enabled.

    Examples
    --------
    >>> generate_typography_variables(None)["--sb-fs-hero"]
    'clamp(48px, 8vw, 72px)'
    """
    display_scale = (config.display_scale if config else None) or DEFAULT_SCALE
    text_scale = (config.text_scale if config else None) or DEFAULT_SCALE
    adaptive_titles = config.adaptive_titles if config else True
    if display_scale not in DISPLAY_SCALES:
        display_scale = DEFAULT_SCALE
    if text_scale not in TEXT_SCALES:
        text_scale = DEFAULT_SCALE

    variables = {
        f"--sb-fs-{element}": _clamp(element, size)
        for element, size in DISPLAY_SCALES[display_scale].items()
    }
    variables.update(
        {
            f"--sb-fs-{element}": _clamp(element, size)
            for element, size in TEXT_SCALES[text_scale].items()
        }
    )
    variables["--sb-display-scale"] = display_scale
    variables["--sb-text-scale"] = text_scale
    variables["--sb-adaptive-titles"] = "1" if adaptive_titles is not False else "0"
    return variables


def generate_font_family_variables(preset: str | None) -> dict[str, str]:
    """Return heading and body font stacks; unknown presets use system fonts."""
    font_preset = FONT_PRESETS.get(preset or "", FONT_PRESETS[FALLBACK_FONT_PRESET])
    return {
        "--sb-font-heading": font_preset.heading,
        "--sb-font-body": font_preset.body,
    }


def get_adaptive_title_multiplier(text: str | None, enabled: bool = True) -> float:
    """Return the size multiplier for a title of the given visible length.

    Examples
    --------
    >>> get_adaptive_title_multiplier("x" * 81)
    0.8
    >>> get_adaptive_title_multiplier("Short")
    1.1
    >>> get_adaptive_title_multiplier("Short", enabled=False)
    1
    """
    if not enabled or not text:
        return 1
    length = visible_character_count(text)
    if length > 80:
        return 0.8
    if length > 50:
        return 0.9
    if length < 15:
        return 1.1
    return 1


def apply_typography_override(
    variables: dict[str, str],
    override: TypographyOverride | None,
) -> dict[str, str]:
    """Layer a section's typography override onto its variables.

    Parameters
    ----------
    variables : dict[str, str]
        Section variables produced by a mapper; updated in place.
    override : TypographyOverride | None
        Section override. Named scales set ``--sb-title-mult`` and
        ``--sb-text-mult``; explicit custom multipliers replace them.

    Returns
    -------
    dict[str, str]
        The same ``variables`` mapping, for chaining.
    """
    if override is None:
        return variables

    if override.display_scale:
        multiplier = TYPOGRAPHY_MULTIPLIERS["display_scale"].get(override.display_scale)
        if multiplier:
            variables["--sb-title-mult"] = format_number(multiplier)
    if override.text_scale:
        multiplier = TYPOGRAPHY_MULTIPLIERS["text_scale"].get(override.text_scale)
        if multiplier:
            variables["--sb-text-mult"] = format_number(multiplier)

    custom = override.custom_scaling
    if custom is not None:
        if custom.title:
            variables["--sb-title-mult"] = format_number(custom.title)
        if custom.subtitle:
            variables["--sb-subtitle-mult"] = format_number(custom.subtitle)
        if custom.body:
            variables["--sb-body-mult"] = format_number(custom.body)

    if override.disable_adaptive_titles:
        variables["--sb-adaptive-titles"] = "0"
    if override.font_preset:
        variables.update(generate_font_family_variables(override.font_preset))
    return variables


__all__ = [
    "DISPLAY_SCALES",
    "FONT_PRESETS",
    "TEXT_SCALES",
    "TYPOGRAPHY_MULTIPLIERS",
    "FontPreset",
    "FontSize",
    "apply_typography_override",
    "format_number",
    "generate_font_family_variables",
    "generate_typography_variables",
    "get_adaptive_title_multiplier",
]
