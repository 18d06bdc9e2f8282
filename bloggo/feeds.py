"""Feed generation for Bloggo.

This module generates the Atom feed of the chronological index. Feed
generation is separate from build orchestration and produces a string; the
build adds it to the output plan like any other file.

Classes:
    FeedGenerator: Base class for feed generators.
    AtomGenerator: Generates an Atom 1.0 feed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from markupsafe import escape

from .utils import EPOCH, join_root_url

if TYPE_CHECKING:
    from .collections import Site


class FeedGenerator(ABC):
    """Abstract base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename for this feed."""
        ...

    @abstractmethod
    def generate(self, site: Site, base_url: str) -> str:
        """Generate feed content from the site aggregate.

        Args:
            site: The Site aggregate.
            base_url: Absolute site URL used for the feed id and links.

        Returns:
            Feed content as a string.
        """
        ...


class AtomGenerator(FeedGenerator):
    """Generates an Atom 1.0 feed, newest entries first.

    The feed's ``updated`` element is the newest document date rather than
    the build time, so rebuilding unchanged content yields identical bytes.
    """

    @property
    def filename(self) -> str:
        return "atom.xml"

    def generate(self, site: Site, base_url: str) -> str:
        updated = site.index[0].date if site.index else EPOCH
        home = join_root_url(base_url, "/")
        lines = [
            '<?xml version="1.0" encoding="utf-8"?>',
            '<feed xmlns="http://www.w3.org/2005/Atom">',
            f"  <title>{escape(site.title)}</title>",
            f"  <id>{escape(home)}</id>",
            f'  <link href="{escape(home)}" />',
            f'  <link rel="self" href="{escape(join_root_url(base_url, self.filename))}" />',
            f"  <updated>{updated.isoformat()}</updated>",
        ]
        for doc in site.index:
            lines.extend(
                [
                    "  <entry>",
                    f"    <title>{escape(doc.title)}</title>",
                    f"    <id>{escape(doc.url)}</id>",
                    f'    <link href="{escape(doc.url)}" />',
                    f"    <published>{doc.date.isoformat()}</published>",
                    f"    <updated>{doc.date.isoformat()}</updated>",
                    "  </entry>",
                ]
            )
        lines.append("</feed>")
        return "\n".join(lines) + "\n"
