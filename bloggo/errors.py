"""Build errors for Bloggo.

Every error raised while building a site derives from BuildError and is
fatal to the build. Each one names the source file, slug, field or output
path needed to locate the fix.
"""

from __future__ import annotations

from pathlib import Path


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error, if known.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path | None,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        if source_path is None:
            super().__init__(message)
        else:
            super().__init__(f"{source_path}: {message}")


class ConfigError(BuildError):
    """The site configuration file or an override is invalid."""


class MissingFrontMatter(BuildError):
    """A content document does not start with a front matter block."""

    def __init__(self, source_path: Path | None):
        super().__init__(source_path, "Missing front matter")


class MalformedFrontMatter(BuildError):
    """The front matter block is unterminated or is not a key/value mapping."""


class InvalidDocument(BuildError):
    """A required front matter field is missing or has an invalid value.

    Attributes:
        field: Name of the first offending field.
        reason: Why the field was rejected.
    """

    def __init__(self, source_path: Path | None, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(source_path, f"Invalid field '{field}': {reason}")


class UnknownLayout(BuildError):
    """A document names a layout that is not registered.

    Attributes:
        name: The missing layout name.
        setting: Configuration key that chose the layout, for derived pages.
    """

    def __init__(
        self,
        name: str,
        source_path: Path | None = None,
        page: str | None = None,
        setting: str | None = None,
    ):
        self.name = name
        self.setting = setting
        message = f"Unknown layout '{name}'"
        if page:
            message += f" for {page}"
        if setting:
            message += f" (set by '{setting}' in the site configuration)"
        super().__init__(source_path, message)


class OutputCollision(BuildError):
    """Two outputs resolve to the same destination path.

    Attributes:
        path: The contested path, relative to the output root.
        sources: Descriptions of the outputs competing for the path.
    """

    def __init__(self, path: str, sources: tuple[str, ...] = ()):
        self.path = path
        self.sources = sources
        detail = f" ({', '.join(sources)})" if sources else ""
        super().__init__(None, f"Output collision at '{path}'{detail}")


class RenderFailure(BuildError):
    """A template raised while rendering a document."""

    def __init__(
        self, slug: str, cause: Exception, source_path: Path | None = None
    ):
        self.slug = slug
        self.cause = cause
        super().__init__(
            source_path, f"Failed to render '{slug}': {_describe(cause)}", cause
        )


class IoFailure(BuildError):
    """Reading a source or writing an output failed."""

    def __init__(self, path: Path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(path, f"I/O error: {cause.strerror or cause}", cause)


def _describe(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    lineno = getattr(exc, "lineno", None)
    if error_type == "TemplateSyntaxError" and lineno:
        return f"Template syntax error on line {lineno}: {getattr(exc, 'message', exc)}"
    if error_type == "UndefinedError":
        return f"Undefined variable: {exc}"
    return f"{error_type}: {exc}"
