"""Site page rendering pipeline.

This module turns a :class:`~sb_sites.pipeline.RenderResult` into a static
HTML document. Design-token defaults and the resolved theme variables are
applied on the root element, each visible section carries its own variables
on its element, and hidden sections are left out of the markup entirely, so
the cascade is purely a matter of CSS scope.

Typical usage mirrors the ``sb render`` command:

>>> from sb_sites.config import load_site_config
>>> from sb_sites.pipeline import render_site
>>> site = load_site_config(Path("site.yaml"))  # doctest: +SKIP
>>> builder = SitePageBuilder(render_site(site))  # doctest: +SKIP
>>> output_path = builder.write(Path("public/index.html"))  # doctest: +SKIP

Templates live under ``sb_sites/templates`` unless a custom directory is
provided. Rendering uses Jinja2 with autoescape enabled; content-block bodies
go through Markdown after escaping so operators cannot inject raw HTML.
"""

from __future__ import annotations

import datetime as dt
import html
import logging
import re
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from markdown import markdown

from .theme.resolver import DESIGN_TOKEN_DEFAULTS

if typ.TYPE_CHECKING:
    from .pipeline import RenderResult

_MARKDOWN_EXTENSIONS = ["nl2br", "sane_lists"]

_CSS_STRING = re.compile(r'"(?:\\.|[^"\\])*"')
_DECLARATION_BREAKERS = frozenset(';{}"')

logger = logging.getLogger(__name__)


def _safe_declaration_value(value: str) -> bool:
    bare = _CSS_STRING.sub("", value)
    return not any(char in _DECLARATION_BREAKERS for char in bare)


def style_attribute(variables: typ.Mapping[str, str]) -> str:
    """Serialise variables into an inline ``style`` declaration list.

    Values that would end their declaration early outside a quoted CSS string
    are dropped so one field cannot smuggle extra declarations into the
    element.
    """
    declarations = []
    for key, value in variables.items():
        if not _safe_declaration_value(value):
            logger.warning("Dropping unsafe value for %s: %r", key, value)
            continue
        declarations.append(f"{key}: {value}")
    return "; ".join(declarations)


def render_body(text: str | None) -> str:
    """Render a content-block body: paragraphs on blank lines, breaks kept."""
    normalized = (text or "").replace("\r\n", "\n").replace("\r", "\n").strip()
    if not normalized:
        return ""
    return markdown(
        html.escape(normalized, quote=False),
        extensions=_MARKDOWN_EXTENSIONS,
        output_format="html",
    )


class SitePageBuilder:
    """Render a pipeline result into a standalone HTML page."""

    def __init__(
        self,
        result: RenderResult,
        *,
        templates_dir: Path | None = None,
        title: str | None = None,
    ) -> None:
        """Initialize the builder and Jinja environment.

        Parameters
        ----------
        result : RenderResult
            Output of :func:`sb_sites.pipeline.render_site`; provides the
            resolved theme, annotated sections and platform data.
        templates_dir : Path, optional
            Directory containing Jinja templates. Defaults to
            ``sb_sites/templates``.
        title : str, optional
            Document title. Falls back to the business name from the platform
            data, then to ``"Site"``.
        """
        self.result = result
        self.title = title
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(self.templates_dir),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["sb_style"] = style_attribute
        self.env.filters["sb_body"] = render_body
        self.template = self.env.get_template("site_page.jinja")

    def _business_name(self) -> str:
        business_info = self.result.platform_data.get("business_info")
        if isinstance(business_info, dict):
            return str(business_info.get("name") or "")
        return ""

    def render(self) -> str:
        """Return the rendered HTML document, always newline terminated."""
        business_name = self._business_name()
        root_variables = {**DESIGN_TOKEN_DEFAULTS, **self.result.theme.variables}
        context = {
            "title": self.title or business_name or "Site",
            "business_name": business_name,
            "theme": self.result.theme,
            "root_variables": root_variables,
            "sections": self.result.visible_sections,
            "platform_data": self.result.platform_data,
            "generated_at": dt.datetime.now(dt.UTC),
        }
        rendered = self.template.render(**context)
        if not rendered.endswith("\n"):
            rendered += "\n"
        return rendered

    def write(self, output_path: Path) -> Path:
        """Render and write the page, creating parent directories as needed."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.render(), encoding="utf-8")
        return output_path


__all__ = ["SitePageBuilder", "render_body", "style_attribute"]
