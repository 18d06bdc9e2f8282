"""Content processing for Bloggo.

This module discovers content files, decodes their front matter, renders
their bodies and validates the result into immutable Document objects.

Key classes:
- Document: Frozen dataclass representing one page of the site.
- SourceKind: Whether a document was authored or derived by the aggregator.
- DocumentBuilder: Validates decoded metadata into a Document.
- FileContentLoader: Discovers content files in a directory.
- ContentProcessor: Facade that turns a content file into a Document.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from .errors import BuildError, InvalidDocument, IoFailure
from .frontmatter import parse_frontmatter
from .renderers import RendererRegistry, default_renderer_registry
from .utils import (
    extract_date_from_name,
    is_ignored,
    normalize_tag,
    slugify,
    to_utc_datetime,
)

logger = logging.getLogger(__name__)


class SourceKind(Enum):
    """Origin of a document."""

    AUTHORED = "authored"
    DERIVED = "derived"


@dataclass(frozen=True)
class Document:
    """Represents a site page with all its metadata and content.

    Attributes:
        title: Human-readable title of the page.
        date: Publication date, always timezone-aware.
        layout: Name of the template used to render the page.
        slug: URL-friendly identifier, unique within its output namespace.
        body_html: Rendered HTML body.
        tags: Tags as written in front matter, in order, duplicates kept.
        source_kind: Authored (from a content file) or Derived (tag/index page).
        source_path: Path to the source file, None for derived documents.
        path: Output path relative to the output root, assigned by the build.
        url: Site URL of the page, derived from the output path.
        frontmatter: Full decoded front matter, for templates.
        listing: Documents listed by a derived page, in index order.
    """

    title: str
    date: datetime
    layout: str
    slug: str
    body_html: str = ""
    tags: tuple[str, ...] = ()
    source_kind: SourceKind = SourceKind.AUTHORED
    source_path: Path | None = None
    path: str = ""
    url: str = ""
    frontmatter: Mapping[str, Any] = field(
        default_factory=dict, compare=False, hash=False, repr=False
    )
    listing: tuple[Document, ...] = field(default=(), compare=False, repr=False)

    @property
    def is_derived(self) -> bool:
        return self.source_kind is SourceKind.DERIVED

    @property
    def normalized_tags(self) -> tuple[str, ...]:
        """Distinct normalized tags, in first-seen order."""
        return tuple(dict.fromkeys(normalize_tag(tag) for tag in self.tags))

    @property
    def label(self) -> str:
        """Identify the document in messages: its source path, or what a derived page lists."""
        if self.source_path:
            return str(self.source_path)
        if self.is_derived:
            return f"tag page '{self.title}'" if self.is_tag_page else "index page"
        return self.slug

    @property
    def is_tag_page(self) -> bool:
        return self.is_derived and self.path.startswith("tags/")


def _scalar_text(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


class DocumentBuilder:
    """Validates decoded front matter into a Document.

    Required fields are checked in a fixed order (title, date, layout) and
    the first failure is reported. The result is either a complete Document
    or an InvalidDocument error, never a partial object.
    """

    def build(
        self,
        metadata: Mapping[str, Any],
        body_html: str,
        source_path: Path | None = None,
    ) -> Document:
        """Build a Document from metadata and a rendered body.

        Args:
            metadata: Decoded front matter.
            body_html: Rendered HTML body.
            source_path: Source file, used for the slug and the date fallback.

        Returns:
            A validated Document.

        Raises:
            InvalidDocument: Naming the first missing or invalid field.
        """
        title = self._title(metadata, source_path)
        date = self._date(metadata, source_path)
        layout = self._layout(metadata, source_path)
        tags = self._tags(metadata, source_path)
        slug = self._slug(metadata, title, source_path)
        return Document(
            title=title,
            date=date,
            layout=layout,
            slug=slug,
            body_html=body_html,
            tags=tags,
            source_kind=SourceKind.AUTHORED,
            source_path=source_path,
            frontmatter=dict(metadata),
        )

    def _title(self, metadata: Mapping[str, Any], source_path: Path | None) -> str:
        if metadata.get("title") is None:
            raise InvalidDocument(source_path, "title", "missing")
        title = _scalar_text(metadata["title"])
        if title is None:
            raise InvalidDocument(source_path, "title", "must be a string")
        if not title.strip():
            raise InvalidDocument(source_path, "title", "must not be empty")
        return title.strip()

    def _date(self, metadata: Mapping[str, Any], source_path: Path | None) -> datetime:
        raw = metadata.get("date")
        if raw is None:
            # Posts named YYYY-MM-DD-*.md may leave the date implicit
            fallback = extract_date_from_name(source_path.stem) if source_path else None
            if fallback is None:
                raise InvalidDocument(source_path, "date", "missing")
            return fallback
        parsed = to_utc_datetime(raw)
        if parsed is None:
            raise InvalidDocument(
                source_path, "date", f"'{raw}' is not a valid ISO-8601 timestamp"
            )
        return parsed

    def _layout(self, metadata: Mapping[str, Any], source_path: Path | None) -> str:
        layout = metadata.get("layout")
        if layout is None:
            raise InvalidDocument(source_path, "layout", "missing")
        if not isinstance(layout, str) or not layout.strip():
            raise InvalidDocument(source_path, "layout", "must be a non-empty string")
        return layout.strip()

    def _tags(
        self, metadata: Mapping[str, Any], source_path: Path | None
    ) -> tuple[str, ...]:
        raw = metadata.get("tags")
        if raw is None:
            return ()
        if isinstance(raw, str):
            raw = [raw]
        if not isinstance(raw, list):
            raise InvalidDocument(source_path, "tags", "must be a list of strings")
        tags: list[str] = []
        for item in raw:
            text = _scalar_text(item)
            if text is None:
                raise InvalidDocument(
                    source_path, "tags", f"'{item}' is not a string"
                )
            if not normalize_tag(text):
                raise InvalidDocument(source_path, "tags", "tags must not be blank")
            tags.append(text.strip())
        return tuple(tags)

    def _slug(
        self, metadata: Mapping[str, Any], title: str, source_path: Path | None
    ) -> str:
        explicit = metadata.get("slug")
        if explicit is not None:
            text = _scalar_text(explicit)
            slug = slugify(text, drop_date=False) if text is not None else ""
            if not slug:
                raise InvalidDocument(source_path, "slug", f"'{explicit}' is not a usable slug")
            return slug
        slug = slugify(source_path.stem) if source_path else ""
        slug = slug or slugify(title)
        if not slug:
            raise InvalidDocument(source_path, "slug", "cannot derive a slug")
        return slug


class FileContentLoader:
    """Loads content files from a directory.

    Hidden (``.``) and internal (``_``) files and directories are skipped, as
    are files no renderer handles.

    Attributes:
        content_dir: Directory containing content documents.
    """

    def __init__(
        self,
        content_dir: Path,
        renderer_registry: RendererRegistry | None = None,
    ):
        self.content_dir = content_dir
        self.renderer_registry = renderer_registry or default_renderer_registry

    def iter_files(self) -> list[Path]:
        """List all content files, sorted by path.

        Returns:
            List of paths to content files.

        Raises:
            IoFailure: The content directory does not exist.
        """
        if not self.content_dir.is_dir():
            raise IoFailure(
                self.content_dir,
                FileNotFoundError(2, "Content directory not found", str(self.content_dir)),
            )
        files: list[Path] = []
        for path in self.content_dir.rglob("*"):
            if path.is_dir():
                continue
            if is_ignored(path.relative_to(self.content_dir)):
                continue
            if self.renderer_registry.handles(path):
                files.append(path)
        return sorted(files)


class ContentProcessor:
    """Facade turning content files into Documents.

    Each call reads one file and shares no state with other calls, so
    documents can be processed concurrently.

    Attributes:
        renderer_registry: Registry of body renderers.
        builder: Validator producing Documents.
    """

    def __init__(
        self,
        renderer_registry: RendererRegistry | None = None,
        builder: DocumentBuilder | None = None,
    ):
        self.renderer_registry = renderer_registry or default_renderer_registry
        self.builder = builder or DocumentBuilder()

    def parse(self, text: str, source_path: Path) -> Document:
        """Parse raw document text into a Document.

        Args:
            text: Raw file content.
            source_path: Path to the source file.

        Returns:
            Validated Document with its body rendered.
        """
        metadata, body = parse_frontmatter(text, source_path)
        renderer = self.renderer_registry.get_renderer(source_path)
        body_html = renderer.render(body) if renderer else body
        return self.builder.build(metadata, body_html, source_path)

    def load(self, path: Path) -> Document:
        """Read and parse a content file.

        Args:
            path: Path to the source file.

        Returns:
            Validated Document.
        """
        logger.debug("Parsing %s", path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise IoFailure(path, exc) from exc
        except UnicodeDecodeError as exc:
            raise BuildError(path, "Content is not valid UTF-8", exc) from exc
        return self.parse(text, path)
