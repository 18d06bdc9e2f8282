"""Protocol definitions for Bloggo.

This module defines the interfaces the pipeline depends on, so renderers and
templates can be swapped without touching the build orchestration. Tests use
plain functions and small fakes in their place.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .collections import Site
    from .content import Document


@runtime_checkable
class ContentRenderer(Protocol):
    """Protocol for rendering document bodies to HTML.

    Implementations must be deterministic: the same input yields
    byte-identical output.
    """

    @abstractmethod
    def can_render(self, path: Path) -> bool:
        """Check if this renderer can handle the given file.

        Args:
            path: Path to the source file.

        Returns:
            True if this renderer can process the file.
        """
        ...

    @abstractmethod
    def render(self, content: str) -> str:
        """Render body text to an HTML fragment.

        Args:
            content: Body text with the front matter removed.

        Returns:
            Rendered HTML.
        """
        ...

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Return the source type identifier (e.g., 'markdown', 'html')."""
        ...


@runtime_checkable
class Template(Protocol):
    """Protocol for a named layout.

    A template receives one document plus the read-only site aggregate and
    returns the final HTML page.
    """

    @abstractmethod
    def render(self, document: Document, site: Site) -> str:
        """Render a document into a complete HTML page.

        Args:
            document: The document being rendered.
            site: The site aggregate (index and tag collections).

        Returns:
            Rendered HTML page.
        """
        ...
