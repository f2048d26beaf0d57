"""Unit tests for section rules, render visibility and normalisation."""

from __future__ import annotations

import typing as typ

import pytest

from sb_sites.config.models import (
    ContentBlockSection,
    HeroSection,
    LinksPageSection,
    UnknownSection,
)
from sb_sites.registry import (
    addable_types,
    get_rule,
    insert_position,
    is_addable,
    normalize_sections,
    should_render,
)


def test_unknown_type_gets_permissive_rule() -> None:
    rule = get_rule("carousel")
    assert rule.render_policy == "always"
    assert not rule.singleton
    assert not is_addable("carousel")


def test_special_offers_render_but_cannot_be_added() -> None:
    assert "special_offers" not in addable_types()
    assert "hero" in addable_types()
    assert get_rule("special_offers").render_policy == "always"


@pytest.mark.parametrize(
    ("selected_index", "expected"),
    [(None, False), (0, True), (2, False)],
)
def test_links_page_renders_only_when_selected(selected_index: int | None, expected: bool) -> None:
    section = LinksPageSection(id="lp")
    assert should_render(section, 0, selected_index=selected_index) is expected


def test_unknown_section_always_renders() -> None:
    section = UnknownSection(id="x", type="carousel")
    assert should_render(section, 3, selected_index=None, is_preview=True)


def test_normalize_pins_links_first_and_drops_duplicates() -> None:
    hero = HeroSection(id="hero")
    first = LinksPageSection(id="lp-1")
    content = ContentBlockSection(id="cb")
    second = LinksPageSection(id="lp-2")

    normalized = normalize_sections([hero, first, content, second])

    assert [section.id for section in normalized] == ["lp-1", "hero", "cb"]
    assert normalize_sections(normalized) == normalized


def test_normalize_leaves_lists_without_links_untouched() -> None:
    sections = [HeroSection(id="a"), ContentBlockSection(id="b")]
    assert normalize_sections(sections) == sections


def _links(count: int) -> list[LinksPageSection]:
    return [LinksPageSection(id=f"lp-{index}") for index in range(count)]


@pytest.mark.parametrize(
    "sections",
    [
        pytest.param([], id="empty"),
        pytest.param(_links(3), id="only-links"),
        pytest.param([HeroSection(id="h"), ContentBlockSection(id="c"), *_links(1)], id="links-last"),
        pytest.param(
            [*_links(2), HeroSection(id="h"), *_links(2), ContentBlockSection(id="c"), *_links(1)],
            id="many-duplicates",
        ),
        pytest.param(
            [UnknownSection(id="u", type="carousel"), *_links(1), UnknownSection(id="v", type="map")],
            id="mixed-unknown",
        ),
        pytest.param([UnknownSection(id="u", type="carousel"), HeroSection(id="h")], id="no-links"),
    ],
)
def test_normalize_keeps_one_pinned_links_page(sections: list[typ.Any]) -> None:
    normalized = normalize_sections(sections)

    link_positions = [index for index, section in enumerate(normalized) if section.type == "links_page"]
    assert len(link_positions) <= 1
    if any(section.type == "links_page" for section in sections):
        assert link_positions == [0]
        assert normalized[0].id == "lp-0"
    assert normalize_sections(normalized) == normalized
    others = [section.id for section in sections if section.type != "links_page"]
    assert [section.id for section in normalized if section.type != "links_page"] == others


def test_insert_position_honours_default_position() -> None:
    sections = [HeroSection(id="a"), ContentBlockSection(id="b")]
    assert insert_position(sections, "links_page") == 0
    assert insert_position(sections, "content_block") == 2
