"""
Content defect exceptions.

Every error raised here is fatal for a build: the site must never be
rendered from half-validated content. Each exception carries enough context
(source file and/or slug) to locate the offending document.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class ContentError(ValueError):
    """Base exception for content defects that abort the build."""

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        slug: Optional[str] = None,
    ):
        self.message = message
        self.path = str(path) if path is not None else None
        self.slug = slug
        super().__init__(self._format())

    def _format(self) -> str:
        context = []
        if self.path:
            context.append(f"file={self.path}")
        if self.slug:
            context.append(f"slug={self.slug}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class MetadataError(ContentError):
    """Exception raised when a metadata header is missing, malformed or invalid."""
    pass


class DuplicateSlugError(ContentError):
    """Exception raised when two documents of the same kind share a slug."""
    pass
