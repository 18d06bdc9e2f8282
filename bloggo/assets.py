"""Static asset handling for Bloggo.

Assets are copied verbatim into the output root, keeping their paths
relative to the assets directory. Hidden and internal files are skipped.
The copies join the same collision check as rendered pages.
"""

from __future__ import annotations

from pathlib import Path

from .utils import is_ignored
from .writer import OutputFile


class AssetCollector:
    """Collects the asset files of a site as planned output copies.

    Attributes:
        assets_dir: Directory containing source assets.
    """

    def __init__(self, assets_dir: Path):
        self.assets_dir = assets_dir

    def collect(self) -> list[OutputFile]:
        """List the assets to copy, sorted by path.

        Returns:
            Output copies; empty if the assets directory does not exist.
        """
        if not self.assets_dir.is_dir():
            return []
        files = []
        for path in sorted(self.assets_dir.rglob("*")):
            rel = path.relative_to(self.assets_dir)
            if path.is_dir() or is_ignored(rel):
                continue
            files.append(OutputFile.copy(rel.as_posix(), path))
        return files
