"""Resolve a site theme into the document-root variable layer."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from ..config.models import SiteTheme, TypographyConfig
from .palettes import (
    SURFACE_COLORS,
    ColorPalette,
    SurfaceColors,
    normalize_mode,
    resolve_accent_palette,
)
from .typography import generate_font_family_variables, generate_typography_variables

# Lowest layer of the cascade: emitted once as :root defaults, overridden by
# the theme layer and then by section-scope variables.
DESIGN_TOKEN_DEFAULTS: dict[str, str] = {
    "--sb-space-xs": "4px",
    "--sb-space-sm": "8px",
    "--sb-space-md": "16px",
    "--sb-space-lg": "32px",
    "--sb-space-xl": "64px",
    "--sb-space-section": "clamp(48px, 8vw, 96px)",
    "--sb-radius-sm": "4px",
    "--sb-radius-md": "8px",
    "--sb-radius-lg": "16px",
    "--sb-max-width": "1200px",
    "--sb-color-surface": "#ffffff",
    "--sb-color-surface-alt": "#f7f7f8",
    "--sb-color-text": "#1f2937",
    "--sb-color-text-muted": "#6b7280",
    "--sb-color-border": "#e5e7eb",
    "--sb-color-brand": "#2563eb",
    "--sb-color-on-brand": "#ffffff",
    "--sb-fs-body": "16px",
    "--sb-line-height-body": "1.6",
}


@dc.dataclass(frozen=True, slots=True)
class ResolvedTheme:
    """A theme resolved for presentation, passed explicitly to renderers."""

    mode: str
    accent: str
    palette: ColorPalette
    typography: TypographyConfig
    variables: typ.Mapping[str, str]
    logo_url: str | None = None


def _color_variables(surface: SurfaceColors, palette: ColorPalette) -> dict[str, str]:
    return {
        "--sb-color-surface": surface.surface,
        "--sb-color-surface-alt": surface.surface_alt,
        "--sb-color-text": surface.text,
        "--sb-color-text-muted": surface.text_muted,
        "--sb-color-border": surface.border,
        "--sb-color-bg-alt": surface.bg_alt,
        "--sb-color-brand": palette.brand,
        "--sb-color-brand-hover": palette.brand_hover,
        "--sb-color-brand-contrast": palette.brand_contrast,
        "--sb-color-on-brand": palette.brand_contrast,
        "--sb-color-accent": palette.accent,
        "--sb-color-neutral": palette.neutral,
    }


def resolve_theme(theme: SiteTheme | None) -> ResolvedTheme:
    """Resolve ``theme`` once for a render pass.

    Parameters
    ----------
    theme : SiteTheme | None
        Stored theme descriptor. ``None`` resolves the default light/blue
        theme.

    Returns
    -------
    ResolvedTheme
        Palette, typography and the complete theme-layer variable mapping:
        surface colors for the mode, brand colors, font sizes, font stacks,
        ``--sb-theme-mode`` and ``--sb-theme-accent``.
    """
    theme = theme or SiteTheme()
    mode = normalize_mode(theme.mode)
    accent = theme.accent or "blue"
    palette = resolve_accent_palette(accent, mode)
    variables = _color_variables(SURFACE_COLORS[mode], palette)
    variables.update(generate_typography_variables(theme.typography))
    variables.update(generate_font_family_variables(theme.typography.preset or "modern"))
    variables["--sb-theme-mode"] = mode
    variables["--sb-theme-accent"] = accent
    return ResolvedTheme(
        mode=mode,
        accent=accent,
        palette=palette,
        typography=theme.typography,
        variables=variables,
        logo_url=theme.logo_url,
    )


def derive_theme_variables(theme: SiteTheme | None) -> dict[str, str]:
    """Return the theme-layer variables applied at the document root.

    Examples
    --------
    >>> variables = derive_theme_variables(SiteTheme(mode="dark", accent="red"))
    >>> variables["--sb-color-brand"], variables["--sb-color-surface"]
    ('#ef4444', '#0f1115')
    """
    return dict(resolve_theme(theme).variables)


__all__ = [
    "DESIGN_TOKEN_DEFAULTS",
    "ResolvedTheme",
    "derive_theme_variables",
    "resolve_theme",
]
