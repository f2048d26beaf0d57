"""Theme resolution: accent palettes, typography scales and root variables."""

from .palettes import (
    BRAND_PALETTES,
    SURFACE_COLORS,
    ColorPalette,
    SurfaceColors,
    resolve_accent_palette,
)
from .resolver import (
    DESIGN_TOKEN_DEFAULTS,
    ResolvedTheme,
    derive_theme_variables,
    resolve_theme,
)
from .typography import (
    TYPOGRAPHY_MULTIPLIERS,
    apply_typography_override,
    generate_font_family_variables,
    generate_typography_variables,
    get_adaptive_title_multiplier,
)

__all__ = [
    "BRAND_PALETTES",
    "DESIGN_TOKEN_DEFAULTS",
    "SURFACE_COLORS",
    "TYPOGRAPHY_MULTIPLIERS",
    "ColorPalette",
    "ResolvedTheme",
    "SurfaceColors",
    "apply_typography_override",
    "derive_theme_variables",
    "generate_font_family_variables",
    "generate_typography_variables",
    "get_adaptive_title_multiplier",
    "resolve_accent_palette",
    "resolve_theme",
]
