"""Unit tests for palette resolution, typography and root variables."""

from __future__ import annotations

import logging

import pytest

from sb_sites.config.models import SiteTheme, TypographyConfig
from sb_sites.theme import (
    BRAND_PALETTES,
    derive_theme_variables,
    generate_typography_variables,
    get_adaptive_title_multiplier,
    resolve_accent_palette,
    resolve_theme,
)
from sb_sites.theme.palettes import hex_to_rgb, is_valid_hex_color


@pytest.mark.parametrize("mode", ["light", "dark"])
@pytest.mark.parametrize("accent", sorted(BRAND_PALETTES))
def test_named_accents_use_fixed_table(accent: str, mode: str) -> None:
    assert resolve_accent_palette(accent, mode) is BRAND_PALETTES[accent][mode]


def test_custom_hex_accent_derives_shades() -> None:
    palette = resolve_accent_palette("#336699", "light")
    assert palette.brand == "#336699"
    assert palette.brand_hover == "#2e5c8a"
    assert palette.accent == "#3870a8"
    assert palette.brand_contrast == "#ffffff"


def test_custom_palette_is_stable_per_accent_and_mode() -> None:
    assert resolve_accent_palette("#abc", "dark") is resolve_accent_palette("#abc", "dark")
    assert resolve_accent_palette("#abc", "dark") != resolve_accent_palette("#abc", "light")


@pytest.mark.parametrize("accent", ["not-a-color", "#12345", "", None])
def test_unresolvable_accent_falls_back_to_blue(
    accent: str | None, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING, logger="sb_sites.theme.palettes"):
        palette = resolve_accent_palette(accent, "light")
    assert palette == BRAND_PALETTES["blue"]["light"]
    assert len(caplog.records) == 1


def test_hex_helpers_expand_shorthand() -> None:
    assert is_valid_hex_color("#fff")
    assert not is_valid_hex_color("fff")
    assert hex_to_rgb("#0f8") == (0, 255, 136)


def test_unknown_mode_resolves_as_light() -> None:
    resolved = resolve_theme(SiteTheme(mode="sepia", accent="red"))
    assert resolved.mode == "light"
    assert resolved.variables["--sb-color-surface"] == "#ffffff"
    assert resolved.variables["--sb-color-brand"] == "#dc2626"


def test_dark_theme_variables() -> None:
    variables = derive_theme_variables(SiteTheme(mode="dark", accent="purple"))
    assert variables["--sb-theme-mode"] == "dark"
    assert variables["--sb-color-surface"] == "#0f1115"
    assert variables["--sb-color-brand"] == "#8b5cf6"
    assert all(key.startswith("--sb-") for key in variables)


def test_theme_with_bad_accent_warns_once(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        resolve_theme(SiteTheme(accent="chartreuse"))
    assert len([r for r in caplog.records if "chartreuse" in r.getMessage()]) == 1


def test_typography_unknown_scale_uses_standard() -> None:
    variables = generate_typography_variables(
        TypographyConfig(display_scale="gigantic", text_scale="compact", adaptive_titles=False)
    )
    assert variables["--sb-display-scale"] == "standard"
    assert variables["--sb-text-scale"] == "compact"
    assert variables["--sb-fs-body"].startswith("clamp(14px,")
    assert variables["--sb-adaptive-titles"] == "0"


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Short", 1.1),
        ("x" * 30, 1),
        ("x" * 60, 0.9),
        ("x" * 81, 0.8),
        ("line one\r\nline two", 1),
        (None, 1),
    ],
)
def test_adaptive_title_multiplier(title: str | None, expected: float) -> None:
    assert get_adaptive_title_multiplier(title) == expected
