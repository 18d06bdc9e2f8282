"""Template registry and layout resolution for Bloggo.

This module uses Jinja2 to render documents into complete pages. Layouts are
registered by name in a TemplateRegistry, which is built once per build and
passed explicitly to whatever needs it; there is no global template state.

Key classes:
- TemplateRegistry: Named layouts backed by a Jinja2 environment.
- JinjaTemplate: A layout loaded from the registry's environment.
- LayoutResolver: Looks up a document's layout and renders it.

Template context:
    page: The Document being rendered.
    page_content: The rendered body, marked safe.
    site: The Site aggregate.
    pages: Authored documents, newest first.
    tags: Normalized tag to documents.
    data: Free-form site data from the configuration.
    url_for: Prefix a site path with the configured base URL.

Filters:
    format_datetime: Format a datetime or ISO-8601 string with strftime.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import (
    BaseLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    select_autoescape,
)
from markupsafe import Markup

from .errors import BuildError, RenderFailure, UnknownLayout
from .protocols import Template
from .utils import join_root_url, to_utc_datetime

if TYPE_CHECKING:
    from .collections import Site
    from .content import Document

logger = logging.getLogger(__name__)

# Checked in order; the first suffix found names the layout
TEMPLATE_SUFFIXES = (".html.jinja", ".jinja", ".html")


def layout_name(template_name: str) -> str | None:
    """Return the layout name for a template file name, or None if not a layout.

    Files in ``_`` prefixed directories or starting with ``_`` are partials:
    loadable by other templates but not registered as layouts.

    Examples:
        >>> layout_name("post.html.jinja")
        'post'
        >>> layout_name("_partials/header.html") is None
        True
    """
    if any(part.startswith("_") for part in template_name.split("/")):
        return None
    for suffix in TEMPLATE_SUFFIXES:
        if template_name.endswith(suffix) and len(template_name) > len(suffix):
            return template_name[: -len(suffix)]
    return None


def format_datetime(value: datetime | str, fmt: str = "%c") -> str:
    """Format a date for display.

    Args:
        value: A datetime or an ISO-8601 string.
        fmt: strftime format; ``%c`` by default.

    Returns:
        The formatted date.

    Examples:
        {{ page.date | format_datetime("%A, %B %d, %Y") }}
    """
    parsed = to_utc_datetime(value)
    if parsed is None:
        raise ValueError(f"Could not parse as datetime: {value!r}")
    return parsed.strftime(fmt)


class JinjaTemplate:
    """A layout rendered through the registry's Jinja2 environment.

    The template source is compiled on first render, so a syntax error is
    reported against the document that uses the layout.
    """

    def __init__(self, registry: TemplateRegistry, template_name: str):
        self.registry = registry
        self.template_name = template_name

    def render(self, document: Document, site: Site) -> str:
        template = self.registry.env.get_template(self.template_name)
        return template.render(**self.registry.context(document, site))

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"JinjaTemplate({self.template_name!r})"


class _CallableTemplate:
    def __init__(self, func: Callable[[Document, Site], str]):
        self.func = func

    def render(self, document: Document, site: Site) -> str:
        return self.func(document, site)


class TemplateRegistry(Mapping[str, Template]):
    """Named layouts available to a build.

    Attributes:
        env: Jinja2 environment used by file or string templates.
        base_url: Prefix applied by ``url_for``.
    """

    def __init__(self, loader: BaseLoader | None = None, base_url: str = ""):
        """Initialize the registry.

        Args:
            loader: Jinja2 loader; every layout it lists is registered.
            base_url: Prefix applied by ``url_for`` in templates.
        """
        self.base_url = base_url
        self.env = Environment(
            loader=loader or DictLoader({}),
            autoescape=select_autoescape(["html", "xml", "jinja"], default=True),
            enable_async=False,
        )
        self.env.filters["format_datetime"] = format_datetime
        self.env.globals["url_for"] = self.url_for
        self._templates: dict[str, Template] = {}
        if loader is not None:
            self._register_loader_templates()

    @classmethod
    def from_directory(cls, templates_dir: Path, base_url: str = "") -> TemplateRegistry:
        """Register every layout file found in a directory.

        Args:
            templates_dir: Directory of ``.html.jinja``, ``.jinja`` or ``.html`` files.
            base_url: Prefix applied by ``url_for``.

        Raises:
            BuildError: The directory does not exist.
        """
        if not templates_dir.is_dir():
            raise BuildError(templates_dir, "Templates directory not found")
        logger.info("Registering templates in directory %s", templates_dir)
        return cls(FileSystemLoader(str(templates_dir)), base_url=base_url)

    @classmethod
    def from_mapping(cls, sources: Mapping[str, str], base_url: str = "") -> TemplateRegistry:
        """Register layouts from in-memory template sources keyed by layout name."""
        return cls(DictLoader(dict(sources)), base_url=base_url)

    def _register_loader_templates(self) -> None:
        names = self.env.list_templates()
        for suffix in TEMPLATE_SUFFIXES:
            for template_name in names:
                if not template_name.endswith(suffix):
                    continue
                name = layout_name(template_name)
                if name is not None and name not in self._templates:
                    self._templates[name] = JinjaTemplate(self, template_name)
        for template_name in names:
            if layout_name(template_name) is None and template_name not in self._templates:
                # Suffixless names, as given to from_mapping, name themselves
                if not template_name.startswith("_") and "." not in template_name:
                    self._templates[template_name] = JinjaTemplate(self, template_name)

    def register(
        self, name: str, template: Template | Callable[[Document, Site], str]
    ) -> None:
        """Register a layout under a name.

        Args:
            name: Layout name used by front matter.
            template: A Template or a ``render(document, site)`` callable.

        Raises:
            ValueError: The name is already registered.
        """
        if name in self._templates:
            raise ValueError(f"Layout '{name}' is already registered")
        if not isinstance(template, Template):
            template = _CallableTemplate(template)
        self._templates[name] = template

    def __getitem__(self, name: str) -> Template:
        return self._templates[name]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._templates))

    def __len__(self) -> int:
        return len(self._templates)

    def url_for(self, path: str) -> str:
        """Generate a URL for a path, applying base_url if configured.

        Args:
            path: Path to generate URL for.

        Returns:
            Full URL with base_url prefix if configured.
        """
        if path.startswith(("http://", "https://", "//")):
            return path
        if not path.startswith("/"):
            path = f"/{path}"
        return join_root_url(self.base_url, path)

    def context(self, document: Document, site: Site) -> dict[str, Any]:
        return {
            "page": document,
            "page_content": Markup(document.body_html),
            "site": site,
            "pages": site.index,
            "tags": site.tags,
            "data": site.data,
            "url_for": self.url_for,
        }


class LayoutResolver:
    """Resolves a document's layout and renders the final page.

    Attributes:
        registry: The layouts available to this build.
    """

    def __init__(self, registry: Mapping[str, Template]):
        self.registry = registry

    def resolve(self, document: Document) -> Template:
        """Return the template named by the document's layout.

        Raises:
            UnknownLayout: No template with that name is registered.
        """
        try:
            return self.registry[document.layout]
        except KeyError:
            if document.is_derived:
                setting = "tag_layout" if document.is_tag_page else "index_layout"
                raise UnknownLayout(
                    document.layout, page=document.label, setting=setting
                ) from None
            raise UnknownLayout(document.layout, document.source_path) from None

    def check(self, documents: Iterable[Document]) -> None:
        """Resolve every layout up front so a missing one fails before rendering."""
        for document in documents:
            self.resolve(document)

    def render(self, document: Document, site: Site) -> str:
        """Render a document with its layout.

        Args:
            document: Document to render.
            site: The Site aggregate.

        Returns:
            Rendered HTML page.

        Raises:
            UnknownLayout: The layout is not registered.
            RenderFailure: The template raised while rendering.
        """
        template = self.resolve(document)
        logger.info("Rendering %s with layout '%s'", document.label, document.layout)
        try:
            return template.render(document, site)
        except BuildError:
            raise
        except Exception as exc:
            raise RenderFailure(document.slug, exc, document.source_path) from exc
