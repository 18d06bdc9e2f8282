"""Output writing for Bloggo.

This module maps pages to destination paths and writes the output tree.
Every destination is checked for collisions before the first write, so a
failed build leaves the previous output untouched.

Path rules:
- Authored documents: ``<slug>/index.html`` (or ``<slug>.html`` when flat).
- Tag pages: ``tags/<tag>/index.html``.
- Chronological index: ``index.html``.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable
from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath

from .errors import BuildError, IoFailure, OutputCollision
from .utils import ensure_clean_dir, join_root_url

logger = logging.getLogger(__name__)


class OutputLayout:
    """Derives output paths and URLs.

    Attributes:
        flat: Write authored documents as ``<slug>.html``.
        base_url: Prefix applied to every URL.
    """

    def __init__(self, flat: bool = False, base_url: str = ""):
        self.flat = flat
        self.base_url = base_url

    def document_path(self, slug: str) -> str:
        return f"{slug}.html" if self.flat else f"{slug}/index.html"

    def tag_path(self, tag_slug: str) -> str:
        return f"tags/{tag_slug}/index.html"

    def index_path(self) -> str:
        return "index.html"

    def url(self, path: str) -> str:
        """Convert an output path to a site URL.

        Examples:
            >>> OutputLayout().url("holmes/index.html")
            '/holmes/'
            >>> OutputLayout(base_url="https://example.com").url("index.html")
            'https://example.com/'
        """
        if path == "index.html":
            url = "/"
        elif path.endswith("/index.html"):
            url = "/" + path[: -len("index.html")]
        else:
            url = "/" + path
        return join_root_url(self.base_url, url)


@dataclass(frozen=True)
class OutputFile:
    """One file of the output tree.

    Exactly one of ``content`` and ``source`` is set.

    Attributes:
        path: Destination relative to the output root, POSIX separators.
        origin: What produced the file, for collision reports.
        content: Bytes to write.
        source: File to copy verbatim.
    """

    path: str
    origin: str
    content: bytes | None = None
    source: Path | None = None

    @classmethod
    def page(cls, path: str, html: str, origin: str) -> OutputFile:
        return cls(path=path, origin=origin, content=html.encode("utf-8"))

    @classmethod
    def copy(cls, path: str, source: Path) -> OutputFile:
        return cls(path=path, origin=str(source), source=source)


def _normalize(path: str) -> str:
    pure = PurePosixPath(path)
    if pure.is_absolute() or ".." in pure.parts or not pure.parts:
        raise BuildError(None, f"Output path escapes the output root: '{path}'")
    return pure.as_posix()


class OutputWriter:
    """Writes the output tree under a root directory.

    Attributes:
        output_root: Directory receiving the site.
    """

    def __init__(self, output_root: Path):
        self.output_root = output_root

    def plan(self, files: Iterable[OutputFile]) -> list[OutputFile]:
        """Check all destinations for collisions without touching the disk.

        A collision is two files with the same path, or a file whose path is
        a directory needed by another file.

        Args:
            files: Every file the build will write.

        Returns:
            The files sorted by destination path.

        Raises:
            OutputCollision: Naming the first contested path.
        """
        by_path: dict[str, OutputFile] = {}
        for item in files:
            path = _normalize(item.path)
            if path in by_path:
                raise OutputCollision(path, (by_path[path].origin, item.origin))
            by_path[path] = item if item.path == path else replace(item, path=path)
        for path, item in sorted(by_path.items()):
            for parent in PurePosixPath(path).parents:
                owner = by_path.get(parent.as_posix())
                if owner is not None:
                    raise OutputCollision(parent.as_posix(), (owner.origin, item.origin))
        return [by_path[path] for path in sorted(by_path)]

    def write(self, files: Iterable[OutputFile], clean: bool = False) -> list[str]:
        """Write every file, creating directories and overwriting existing files.

        Args:
            files: Every file of the output tree.
            clean: Empty the output root before writing.

        Returns:
            Written paths relative to the output root, sorted.

        Raises:
            OutputCollision: Raised before anything is written.
            IoFailure: A directory or file could not be written.
        """
        planned = self.plan(files)
        try:
            if clean:
                ensure_clean_dir(self.output_root)
            else:
                self.output_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise IoFailure(self.output_root, exc) from exc

        for item in planned:
            target = self.output_root / item.path
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                if item.source is not None:
                    shutil.copyfile(item.source, target)
                else:
                    target.write_bytes(item.content or b"")
            except OSError as exc:
                raise IoFailure(target, exc) from exc
            logger.debug("Wrote %s", target)
        return [item.path for item in planned]


def clean(output_root: Path) -> bool:
    """Remove the output directory.

    Args:
        output_root: Directory to remove.

    Returns:
        True if a directory was removed, False if none existed.
    """
    if not output_root.exists():
        return False
    logger.info("Cleaning build directory: %s", output_root)
    try:
        shutil.rmtree(output_root)
    except OSError as exc:
        raise IoFailure(output_root, exc) from exc
    return True
