"""Bloggo static site generator.

This package turns a directory of Markdown posts with YAML front matter into
a static HTML site using Jinja2 layouts. Besides one page per post it derives
a chronological index page, one listing page per tag, and an Atom feed.

The main entry point for programs is :func:`bloggo.build.build`; the CLI module
wraps :func:`bloggo.build.build_site` with ``build`` and ``clean`` commands.

The pipeline runs in two phases:
- Parse and render every post in parallel, then aggregate the site.
- Render every page, check all output paths for collisions, then write.
A failed build never touches the output directory.
"""

__all__ = ["__version__"]
__version__ = "0.4.0"
