"""Front matter parsing for Bloggo.

A content document starts with a YAML block fenced by ``---`` lines,
followed by the body::

    ---
    title: The Red-Headed League
    date: 1891-08-18
    layout: post
    tags:
    - Holmes
    ---
    Body text in Markdown.

Front matter is mandatory because the layout and date must be known before
rendering.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .errors import MalformedFrontMatter, MissingFrontMatter

DELIMITER = "---"


class _FrontMatterLoader(yaml.SafeLoader):
    """SafeLoader that keeps timestamps as strings.

    Dates are validated by the document builder, which reports an invalid
    calendar date as a bad ``date`` field instead of a YAML error.
    """


_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"

_FrontMatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _is_delimiter(line: str) -> bool:
    return line.rstrip("\r\n").rstrip() == DELIMITER


def split_frontmatter(text: str, source_path: Path | None = None) -> tuple[str, str]:
    """Split raw document text into the front matter block and the body.

    Args:
        text: Raw file content.
        source_path: Source file, for error reporting.

    Returns:
        Tuple of (front matter source, body).

    Raises:
        MissingFrontMatter: The text does not open with a delimiter line.
        MalformedFrontMatter: The opening delimiter is never closed.
    """
    lines = text.lstrip("\ufeff").splitlines(keepends=True)
    if not lines or not _is_delimiter(lines[0]):
        raise MissingFrontMatter(source_path)
    for index, line in enumerate(lines[1:], start=1):
        if _is_delimiter(line):
            return "".join(lines[1:index]), "".join(lines[index + 1 :])
    raise MalformedFrontMatter(
        source_path, "Front matter opened with '---' but never closed"
    )


def parse_frontmatter(
    text: str, source_path: Path | None = None
) -> tuple[dict[str, Any], str]:
    """Extract YAML front matter from content.

    Args:
        text: Raw file content.
        source_path: Source file, for error reporting.

    Returns:
        Tuple of (metadata mapping, remaining body text).

    Raises:
        MissingFrontMatter: No front matter block at the start of the text.
        MalformedFrontMatter: Unterminated block, invalid YAML, or a block
            that does not decode to a ``key: value`` mapping.
    """
    block, body = split_frontmatter(text, source_path)
    try:
        data = yaml.load(block, Loader=_FrontMatterLoader)
    except (yaml.YAMLError, ValueError) as exc:
        raise MalformedFrontMatter(
            source_path, f"Invalid YAML front matter: {exc}", exc
        ) from exc
    if data is None:
        return {}, body
    if not isinstance(data, dict):
        raise MalformedFrontMatter(
            source_path,
            f"Front matter must be a mapping of 'key: value' entries, got {type(data).__name__}",
        )
    return {str(key): value for key, value in data.items()}, body
