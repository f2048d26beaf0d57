"""Static rules describing how each section type behaves in a site.

The registry is a total lookup: any section type, including ones outside the
catalog, maps to a :class:`SectionRule`. The rules decide which sections the
editor offers in its "add section" menu, which sections render for a given
editor selection, and how a section list is normalised so that singleton
types appear once and the link list is always pinned first.

Examples
--------
>>> from sb_sites.registry import get_rule, is_addable
>>> get_rule("links_page").render_policy
'only_selected'
>>> is_addable("special_offers")
False
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ

if typ.TYPE_CHECKING:
    from .config.models import Section

logger = logging.getLogger(__name__)

RenderPolicy = typ.Literal["always", "only_selected", "preview_only", "public_only"]
DefaultPosition = typ.Literal["top", "bottom"]

LINKS_PAGE_TYPE = "links_page"


@dc.dataclass(frozen=True, slots=True)
class SectionRule:
    """Rendering and editing constraints for one section type."""

    render_policy: RenderPolicy = "always"
    singleton: bool = False
    default_position: DefaultPosition | None = None
    addable: bool = True


_RULES: dict[str, SectionRule] = {
    "hero": SectionRule(),
    "content_block": SectionRule(),
    "business_data": SectionRule(),
    "special_offers": SectionRule(addable=False),
    LINKS_PAGE_TYPE: SectionRule(
        render_policy="only_selected",
        singleton=True,
        default_position="top",
    ),
    "schedule": SectionRule(),
}

_PERMISSIVE_RULE = SectionRule()


def get_rule(section_type: str) -> SectionRule:
    """Return the rule for ``section_type``; unknown types render always."""
    return _RULES.get(section_type, _PERMISSIVE_RULE)


def is_addable(section_type: str) -> bool:
    """Return True when the editor may offer ``section_type`` as a new section.

    Types outside the catalog are never addable even though their rule is
    permissive for rendering.
    """
    if section_type not in _RULES:
        return False
    return get_rule(section_type).addable


def addable_types() -> list[str]:
    """Return the catalog types offered in the "add section" menu, in order."""
    return [section_type for section_type in _RULES if is_addable(section_type)]


def should_render(
    section: Section,
    index: int,
    *,
    selected_index: int | None = None,
    is_preview: bool = False,
) -> bool:
    """Decide whether ``section`` at ``index`` renders in the editor preview.

    Parameters
    ----------
    section : Section
        Section under consideration.
    index : int
        Position of the section in the normalised list.
    selected_index : int | None
        Index of the section currently selected in the editor.
    is_preview : bool
        True when rendering inside the editor preview frame.

    Returns
    -------
    bool
        ``only_selected`` sections render only while selected;
        ``preview_only`` and ``public_only`` sections render only in their
        respective surfaces; everything else renders.
    """
    rule = get_rule(section.type)
    match rule.render_policy:
        case "only_selected":
            return selected_index == index
        case "preview_only":
            return is_preview
        case "public_only":
            return not is_preview
        case _:
            return True


def normalize_sections(sections: typ.Sequence[Section]) -> list[Section]:
    """Collapse singleton duplicates and pin the first link list at the top.

    The result never contains a second occurrence of a singleton type, and a
    ``links_page`` present anywhere in ``sections`` ends up at index 0. The
    function is idempotent: normalising its own output returns an equal list.

    Examples
    --------
    >>> from sb_sites.config.models import HeroSection, LinksPageSection
    >>> hero = HeroSection(id="hero-1")
    >>> first, second = LinksPageSection(id="lp-1"), LinksPageSection(id="lp-2")
    >>> [s.id for s in normalize_sections([hero, first, second])]
    ['lp-1', 'hero-1']
    """
    seen: set[str] = set()
    pinned: Section | None = None
    ordered: list[Section] = []
    for section in sections:
        rule = get_rule(section.type)
        if rule.singleton:
            if section.type in seen:
                logger.debug("Dropping duplicate singleton section %s", section.id)
                continue
            seen.add(section.type)
        if section.type == LINKS_PAGE_TYPE:
            pinned = section
            continue
        ordered.append(section)
    if pinned is not None:
        ordered.insert(0, pinned)
    return ordered


def insert_position(sections: typ.Sequence[Section], section_type: str) -> int:
    """Return the index at which a new ``section_type`` section is inserted.

    ``top`` positioned types go first; everything else is appended.
    """
    if get_rule(section_type).default_position == "top":
        return 0
    return len(sections)


__all__ = [
    "LINKS_PAGE_TYPE",
    "DefaultPosition",
    "RenderPolicy",
    "SectionRule",
    "addable_types",
    "get_rule",
    "insert_position",
    "is_addable",
    "normalize_sections",
    "should_render",
]
