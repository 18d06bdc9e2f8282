"""Site building functionality for Bloggo.

This module contains the core logic for building a static site from source
files. A build is a single stateless pass in two phases separated by
barriers:

1. Parse every content file and render its body (fan-out over a thread
   pool), then aggregate the complete set into the Site.
2. Render every authored and derived page (fan-out again), then check all
   output paths for collisions before writing anything.

Any error aborts the build before the output directory is touched.

Key functions:
- build: Build a site from a content directory and a template registry.
- build_site: Load a project's configuration and templates, then build.
- clean: Remove the output directory.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, TypeVar

from .assets import AssetCollector
from .collections import Site, SiteAggregator
from .config import SiteConfig, load_config
from .content import ContentProcessor, Document, FileContentLoader
from .feeds import AtomGenerator
from .protocols import Template
from .templates import LayoutResolver, TemplateRegistry
from .writer import OutputFile, OutputLayout, OutputWriter
from .writer import clean as clean_output_dir

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class BuildReport:
    """Result of a site build.

    Attributes:
        pages_written: Number of HTML pages written.
        documents: Number of authored documents.
        tags: Number of distinct normalized tags.
        assets_copied: Number of asset files copied.
        output_dir: Directory where the site was built.
        paths: Every written path relative to output_dir, sorted.
        site: The Site aggregate the pages were rendered from.
    """

    pages_written: int
    documents: int
    tags: int
    assets_copied: int
    output_dir: Path
    paths: list[str] = field(default_factory=list)
    site: Site | None = field(default=None, repr=False)


def _fan_out(executor: Executor, func: Callable[[T], R], items: Iterable[T]) -> list[R]:
    """Run func over items in parallel and wait for all of them.

    Results keep the order of items. If several calls fail, the error of the
    earliest item is raised, so failures are reported deterministically.
    """
    return list(executor.map(func, items))


def build(
    content_root: Path,
    output_root: Path,
    template_registry: Mapping[str, Template],
    config: SiteConfig | None = None,
    assets_dir: Path | None = None,
    clean_output: bool = False,
) -> BuildReport:
    """Build the site.

    Args:
        content_root: Directory of content documents.
        output_root: Directory receiving the output tree.
        template_registry: Layouts by name, read-only for the whole build.
        config: Site configuration; defaults apply when omitted.
        assets_dir: Optional directory of static files to copy verbatim.
        clean_output: Empty output_root before writing.

    Returns:
        BuildReport describing what was written.

    Raises:
        BuildError: Any content, layout, render, collision or I/O error.
    """
    config = config or SiteConfig()
    logger.info("Building from %s to %s", content_root, output_root)
    paths = OutputLayout(flat=config.flat_urls, base_url=config.base_url)
    processor = ContentProcessor()
    resolver = LayoutResolver(template_registry)
    aggregator = SiteAggregator(
        title=config.title,
        index_layout=config.index_layout,
        tag_layout=config.tag_layout,
        paths=paths,
        data=config.data,
    )

    files = FileContentLoader(content_root).iter_files()
    with ThreadPoolExecutor(max_workers=config.workers) as executor:
        parsed = _fan_out(executor, processor.load, files)
        documents = [_place(doc, paths) for doc in parsed]
        site = aggregator.aggregate(documents)
        logger.info(
            "Parsed %d documents with %d tags", len(site.index), len(site.tags)
        )

        pages = site.documents
        resolver.check(pages)
        rendered = _fan_out(executor, lambda doc: resolver.render(doc, site), pages)

    outputs = [
        OutputFile.page(doc.path, html, doc.label) for doc, html in zip(pages, rendered)
    ]
    if config.feed:
        feed = AtomGenerator()
        outputs.append(
            OutputFile.page(feed.filename, feed.generate(site, config.base_url), "feed")
        )
    assets = AssetCollector(assets_dir).collect() if assets_dir else []
    outputs.extend(assets)

    written = OutputWriter(output_root).write(outputs, clean=clean_output)
    logger.info("Wrote %d files to %s", len(written), output_root)
    return BuildReport(
        pages_written=len(pages),
        documents=len(site.index),
        tags=len(site.tags),
        assets_copied=len(assets),
        output_dir=output_root,
        paths=written,
        site=site,
    )


def _place(doc: Document, paths: OutputLayout) -> Document:
    path = paths.document_path(doc.slug)
    return replace(doc, path=path, url=paths.url(path))


def build_site(
    source_dir: Path,
    dest_dir: Path | None = None,
    overrides: dict[str, Any] | None = None,
    clean_output: bool = False,
) -> BuildReport:
    """Build a project laid out as bloggo.yaml, posts/, templates/ and assets/.

    Args:
        source_dir: Project source directory.
        dest_dir: Output directory; defaults to the configured output_dir
            relative to the current directory.
        overrides: Configuration values taking precedence over the file.
        clean_output: Empty the output directory before writing.

    Returns:
        BuildReport describing what was written.
    """
    config = load_config(source_dir, overrides)
    output_root = dest_dir or Path(config.output_dir)
    registry = TemplateRegistry.from_directory(
        source_dir / config.templates_dir, base_url=config.base_url
    )
    return build(
        source_dir / config.posts_dir,
        output_root,
        registry,
        config=config,
        assets_dir=source_dir / config.assets_dir,
        clean_output=clean_output,
    )


def clean(output_root: Path) -> bool:
    """Remove the output directory; returns False if it did not exist."""
    return clean_output_dir(output_root)
