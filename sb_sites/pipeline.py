"""Compose normalisation, theme resolution and variable mapping for a render.

The pipeline is pure: the same configuration and context always produce an
equal :class:`RenderResult`. It normalises the section list before anything
else so that no consumer sees a duplicate singleton or a misplaced link list,
resolves the theme once, and annotates every section with its variables and
visibility.

Examples
--------
>>> from sb_sites.config.models import HeroSection, LinksPageSection, SiteConfig
>>> config = SiteConfig(sections=[HeroSection(id="h"), LinksPageSection(id="l")])
>>> result = render_site(config, RenderContext(audience=Audience.LINKS))
>>> [(entry.section.id, entry.visible) for entry in result.sections]
[('l', True), ('h', False)]
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ
from urllib.parse import parse_qs

from .registry import LINKS_PAGE_TYPE, normalize_sections, should_render
from .section_vars import map_section_vars
from .theme.resolver import ResolvedTheme, resolve_theme

if typ.TYPE_CHECKING:
    from .config.models import Section, SiteConfig


class Audience(enum.StrEnum):
    """Which part of a published page is being presented."""

    ALL = "all"
    SECTIONS = "sections"
    LINKS = "links"


@dc.dataclass(frozen=True, slots=True)
class RenderContext:
    """Evaluation context for one render pass."""

    selected_index: int | None = None
    is_preview: bool = False
    audience: Audience = Audience.ALL


@dc.dataclass(frozen=True, slots=True)
class RenderedSection:
    """A normalised section annotated with its variables and visibility."""

    index: int
    section: Section
    variables: typ.Mapping[str, str]
    visible: bool


@dc.dataclass(frozen=True, slots=True)
class RenderResult:
    """Everything a presentation layer needs to draw a site."""

    theme: ResolvedTheme
    sections: tuple[RenderedSection, ...]
    context: RenderContext
    platform_data: typ.Mapping[str, typ.Any] = dc.field(default_factory=dict)

    @property
    def visible_sections(self) -> list[RenderedSection]:
        return [entry for entry in self.sections if entry.visible]


def _audience_allows(section: Section, audience: Audience) -> bool:
    match audience:
        case Audience.LINKS:
            return section.type == LINKS_PAGE_TYPE
        case Audience.SECTIONS:
            return section.type != LINKS_PAGE_TYPE
        case _:
            return True


def render_site(
    config: SiteConfig,
    context: RenderContext | None = None,
    *,
    platform_data: typ.Mapping[str, typ.Any] | None = None,
) -> RenderResult:
    """Produce the ordered, variable-annotated section list for ``config``.

    Parameters
    ----------
    config : SiteConfig
        Site to render. It is not modified.
    context : RenderContext | None
        Editor selection, preview flag and audience filter. Defaults to an
        empty editor context.
    platform_data : Mapping[str, Any] | None
        Business facts fetched from the public site data endpoint.

    Returns
    -------
    RenderResult
        Resolved theme plus one :class:`RenderedSection` per normalised
        section. With an audience filter the editor render policy is
        bypassed: published pages show the link list unconditionally when it
        is the selected audience.
    """
    context = context or RenderContext()
    theme = resolve_theme(config.theme)
    rendered: list[RenderedSection] = []
    for index, section in enumerate(normalize_sections(config.sections)):
        if context.audience is Audience.ALL:
            visible = should_render(
                section,
                index,
                selected_index=context.selected_index,
                is_preview=context.is_preview,
            )
        else:
            visible = _audience_allows(section, context.audience)
        rendered.append(
            RenderedSection(
                index=index,
                section=section,
                variables=map_section_vars(section),
                visible=visible,
            )
        )
    return RenderResult(
        theme=theme,
        sections=tuple(rendered),
        context=context,
        platform_data=dict(platform_data or {}),
    )


def visible_section_indices(sections: typ.Sequence[Section]) -> list[int]:
    """Return indices shown by the standalone preview, which hides the link list."""
    return [
        index for index, section in enumerate(sections) if section.type != LINKS_PAGE_TYPE
    ]


def audience_from_query(query: str | typ.Mapping[str, typ.Any] | None) -> Audience:
    """Pick the published-page audience from a request query.

    A ``links`` parameter, with or without a value, selects the link list;
    anything else selects the normal sections.

    Examples
    --------
    >>> audience_from_query("?links")
    <Audience.LINKS: 'links'>
    >>> audience_from_query({"utm_source": "x"})
    <Audience.SECTIONS: 'sections'>
    """
    match query:
        case str() as text:
            params = parse_qs(text.lstrip("?"), keep_blank_values=True)
        case None:
            params = {}
        case _:
            params = query
    return Audience.LINKS if "links" in params else Audience.SECTIONS


__all__ = [
    "Audience",
    "RenderContext",
    "RenderResult",
    "RenderedSection",
    "audience_from_query",
    "render_site",
    "visible_section_indices",
]
