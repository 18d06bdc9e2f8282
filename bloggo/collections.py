"""Site aggregation for Bloggo.

This module groups authored documents into the site aggregate: the
chronological index, the per-tag collections, and the derived documents
(index page and tag pages) generated from them.

Key classes:
- DocumentCollection: Sequence of documents with template-friendly helpers.
- TagCollection: Mapping of normalized tag to DocumentCollection.
- Site: Immutable aggregate shared read-only by every render.
- SiteAggregator: Builds a Site from the authored documents.
"""

from __future__ import annotations

import hashlib
import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from markupsafe import escape

from .content import Document, SourceKind
from .utils import EPOCH, normalize_tag
from .writer import OutputLayout


def chronological(documents: Iterable[Document]) -> list[Document]:
    """Sort documents newest first, breaking date ties by slug ascending.

    The order is total, so any discovery order yields the same result.
    """
    by_slug = sorted(documents, key=lambda doc: doc.slug)
    return sorted(by_slug, key=lambda doc: doc.date, reverse=True)


def tag_slug(tag: str) -> str:
    """Convert a normalized tag to its path segment.

    Examples:
        >>> tag_slug("sherlock holmes")
        'sherlock-holmes'
    """
    return re.sub(r"[^\w]+", "-", tag).strip("-_").lower()


def unique_tag_slugs(tags: Iterable[str]) -> dict[str, str]:
    """Assign each normalized tag a distinct path segment.

    Tags are taken in sorted order and the first one keeps its plain slug.
    A tag whose slug is taken or empty gets a suffix from a hash of the tag,
    so ``c++`` and ``c#`` still get pages of their own.

    Examples:
        >>> unique_tag_slugs(["c", "c++"])["c"]
        'c'
    """
    assigned: dict[str, str] = {}
    used: set[str] = set()
    for tag in sorted(tags):
        slug = tag_slug(tag)
        if not slug or slug in used:
            digest = hashlib.sha1(tag.encode("utf-8")).hexdigest()[:8]
            slug = f"{slug or 'tag'}-{digest}"
        candidate, count = slug, 1
        while candidate in used:
            count += 1
            candidate = f"{slug}-{count}"
        used.add(candidate)
        assigned[tag] = candidate
    return assigned


class DocumentCollection(Sequence[Document]):
    """Lightweight helper for working with lists of Documents in templates and code."""

    def __init__(self, documents: Iterable[Document]):
        self._documents = list(documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __getitem__(self, item):
        return self._documents[item]

    def with_tag(self, tag: str) -> DocumentCollection:
        wanted = normalize_tag(tag)
        return DocumentCollection(d for d in self._documents if wanted in d.normalized_tags)

    def sorted(self) -> DocumentCollection:
        """Return the documents in chronological index order."""
        return DocumentCollection(chronological(self._documents))

    def latest(self, count: int = 5) -> DocumentCollection:
        return DocumentCollection(self.sorted()[:count])

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"DocumentCollection({len(self._documents)} documents)"


class TagCollection(Mapping[str, DocumentCollection]):
    """Mapping of normalized tag name to DocumentCollection, sorted by tag."""

    def __init__(self, mapping: Mapping[str, Iterable[Document]]):
        self._mapping = {k: DocumentCollection(mapping[k]) for k in sorted(mapping)}

    def __getitem__(self, key: str) -> DocumentCollection:
        return self._mapping[normalize_tag(key)]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize_tag(key) in self._mapping

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TagCollection({len(self._mapping)} tags)"


@dataclass(frozen=True)
class Site:
    """The site aggregate, computed once per build and read-only afterward.

    Attributes:
        title: Site title.
        index: Authored documents in chronological order.
        tags: Normalized tag to documents carrying it, in the same order.
        index_page: Derived document for the chronological index.
        tag_pages: Derived documents, one per tag, sorted by tag.
        data: Free-form site data from the configuration.
    """

    title: str
    index: DocumentCollection
    tags: TagCollection
    index_page: Document
    tag_pages: tuple[Document, ...]
    data: Mapping[str, Any]

    @property
    def derived(self) -> tuple[Document, ...]:
        return (self.index_page, *self.tag_pages)

    @property
    def documents(self) -> tuple[Document, ...]:
        """All documents to render: authored first, then derived."""
        return (*self.index, *self.derived)

    def tag_page(self, tag: str) -> Document | None:
        wanted = normalize_tag(tag)
        for page in self.tag_pages:
            if page.title == wanted:
                return page
        return None


def render_listing(documents: Iterable[Document]) -> str:
    """Generate the HTML listing body of a derived page."""
    items = []
    for doc in documents:
        items.append(
            f'<li><a href="{escape(doc.url)}">{escape(doc.title)}</a> '
            f'<time datetime="{doc.date.isoformat()}">{doc.date:%Y-%m-%d}</time></li>'
        )
    if not items:
        return '<ul class="listing"></ul>\n'
    return '<ul class="listing">\n' + "\n".join(items) + "\n</ul>\n"


class SiteAggregator:
    """Builds the Site aggregate and its derived documents.

    Derived documents use fixed layouts from the site configuration and go
    through the same layout resolution as authored ones.

    Attributes:
        title: Site title, used for the index page.
        index_layout: Layout name of the chronological index page.
        tag_layout: Layout name of the tag pages.
        paths: Output path and URL rules for the derived pages.
    """

    def __init__(
        self,
        title: str = "Bloggo",
        index_layout: str = "index",
        tag_layout: str = "tag",
        paths: OutputLayout | None = None,
        data: Mapping[str, Any] | None = None,
    ):
        self.title = title
        self.index_layout = index_layout
        self.tag_layout = tag_layout
        self.paths = paths or OutputLayout()
        self.data = dict(data or {})

    def aggregate(self, documents: Iterable[Document]) -> Site:
        """Aggregate authored documents into a Site.

        Args:
            documents: All authored documents of the build, in any order.

        Returns:
            The immutable Site.
        """
        index = chronological(documents)
        grouped: dict[str, list[Document]] = {}
        for doc in index:
            for tag in doc.normalized_tags:
                grouped.setdefault(tag, []).append(doc)
        tags = TagCollection(grouped)

        index_page = self._derived(
            title=self.title,
            slug="index",
            layout=self.index_layout,
            listing=index,
            path=self.paths.index_path(),
        )
        tag_pages = []
        for tag, slug in unique_tag_slugs(tags).items():
            tagged = tags[tag]
            tag_pages.append(
                self._derived(
                    title=tag,
                    slug=slug,
                    layout=self.tag_layout,
                    listing=tagged,
                    path=self.paths.tag_path(slug),
                )
            )
        return Site(
            title=self.title,
            index=DocumentCollection(index),
            tags=tags,
            index_page=index_page,
            tag_pages=tuple(tag_pages),
            data=self.data,
        )

    def _derived(
        self,
        title: str,
        slug: str,
        layout: str,
        listing: Sequence[Document],
        path: str,
    ) -> Document:
        return Document(
            title=title,
            date=listing[0].date if listing else EPOCH,
            layout=layout,
            slug=slug,
            body_html=render_listing(listing),
            source_kind=SourceKind.DERIVED,
            path=path,
            url=self.paths.url(path),
            listing=tuple(listing),
        )
