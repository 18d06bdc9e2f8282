"""Utility functions for Bloggo.

This module contains small helpers shared across the pipeline: slug and tag
normalization, date handling, path classification and URL joining.

Key functions:
    slugify: Convert filenames and titles to URL slugs.
    normalize_tag: Case-fold and trim a tag for grouping.
    extract_date_from_name: Extract date from filename prefix.
    to_utc_datetime: Coerce front matter date values to aware datetimes.
    is_markdown: Check if a path is a Markdown file.
    is_html: Check if a path is a plain HTML file.
    is_ignored: Check for hidden or internal path components.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from datetime import date, datetime, timezone
from pathlib import Path

DATE_PREFIX_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:-|$)")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _strip_date_prefix(name: str) -> str:
    match = DATE_PREFIX_RE.match(name)
    if match and match.end() < len(name):
        return name[match.end() :]
    return name


def slugify(name: str, drop_date: bool = True) -> str:
    """Convert a filename stem or title to a slug.

    Non-alphanumeric runs become single hyphens and the result is lowercased.
    A leading ``YYYY-MM-DD-`` prefix is dropped when ``drop_date`` is set.

    Args:
        name: Filename stem or free text.
        drop_date: Whether to strip a date prefix first.

    Returns:
        URL-friendly slug, or an empty string if nothing usable remains.

    Examples:
        >>> slugify("2024-01-15-The-Red-Headed-League")
        'the-red-headed-league'

        >>> slugify("A Study in Scarlet")
        'a-study-in-scarlet'
    """
    cleaned = _strip_date_prefix(name) if drop_date else name
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    return cleaned.strip("-").lower()


def normalize_tag(tag: str) -> str:
    """Trim and case-fold a tag so equivalent spellings group together.

    Inner whitespace runs collapse to one space.

    Examples:
        >>> normalize_tag("  Holmes ")
        'holmes'
    """
    return " ".join(str(tag).split()).lower()


def extract_date_from_name(name: str) -> datetime | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Args:
        name: Filename stem (without extension).

    Returns:
        Midnight UTC on that date, or None if no valid prefix is found.

    Examples:
        >>> extract_date_from_name("2024-01-15-hello-world")
        datetime.datetime(2024, 1, 15, 0, 0, tzinfo=datetime.timezone.utc)

        >>> extract_date_from_name("hello-world") is None
        True
    """
    match = DATE_PREFIX_RE.match(name)
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError:
        return None


def to_utc_datetime(value: object) -> datetime | None:
    """Coerce a front matter date value to a timezone-aware datetime.

    YAML already decodes unquoted dates and timestamps; quoted values are
    parsed as ISO-8601. Values without a zone are taken as UTC. Aware values
    keep their offset.

    Args:
        value: A ``datetime``, ``date`` or ISO-8601 string.

    Returns:
        Aware datetime, or None if the value is not a valid timestamp.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file."""
    return path.suffix.lower() == ".md"


def is_html(path: Path) -> bool:
    """Check if a path is a plain HTML file."""
    return path.suffix.lower() == ".html"


def is_ignored(path: Path) -> bool:
    """Check if any path component is hidden (``.``) or internal (``_``).

    Args:
        path: Path relative to the directory being scanned.

    Returns:
        True if the path should be skipped.
    """
    return any(part.startswith((".", "_")) for part in path.parts)


def join_root_url(root_url: str, path: str) -> str:
    """Join a base URL with a site-relative path.

    Examples:
        >>> join_root_url("https://example.com/blog/", "/posts/")
        'https://example.com/blog/posts/'
    """
    if not root_url:
        return path
    return root_url.rstrip("/") + "/" + path.lstrip("/")


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)
