"""
Content loader.

Reads every content file of one kind from the content directory, parses and
validates it, and returns the documents in their canonical order:

- posts:    newest first (published date descending), ties by slug
- patterns: (chapter, number) ascending, ties by slug

File reads run in a thread pool; sorting happens only after every read has
completed, so the result never depends on file-system enumeration order or
read completion order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

from .errors import DuplicateSlugError
from .frontmatter import parse_document_text
from .models import (
    CONTENT_SUFFIXES,
    KIND_DIRECTORIES,
    PATTERN,
    POST,
    Document,
    pattern_number_key,
)

logger = logging.getLogger(__name__)


def content_files(kind: str, content_dir: Path) -> List[Path]:
    """List the content files of a kind, sorted by name."""
    if kind not in KIND_DIRECTORIES:
        raise ValueError(f"Unknown document kind: {kind!r}")

    kind_dir = Path(content_dir) / KIND_DIRECTORIES[kind]
    if not kind_dir.exists():
        logger.warning(f"Content directory not found: {kind_dir}")
        return []

    return sorted(
        path for path in kind_dir.iterdir()
        if path.is_file() and path.suffix in CONTENT_SUFFIXES
    )


def load_document(path: Path, kind: str) -> Document:
    """Read and parse a single content file."""
    text = path.read_text(encoding="utf-8")
    return parse_document_text(text, kind, path)


def load_documents(
    kind: str,
    content_dir: Path,
    include_drafts: bool = False,
    max_workers: Optional[int] = None,
) -> List[Document]:
    """Load all documents of a kind.

    Args:
        kind: Document kind ("post" or "pattern")
        content_dir: Content root containing posts/ and patterns/
        include_drafts: Keep documents marked ``published: false``
        max_workers: Thread pool size for file reads (default: executor default)

    Returns:
        Documents in canonical order for the kind

    Raises:
        MetadataError: If any file has a missing/invalid metadata field
        DuplicateSlugError: If two files resolve to the same slug
    """
    paths = content_files(kind, content_dir)
    if not paths:
        return []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        # map() re-raises the first parse failure when results are consumed
        documents = list(executor.map(lambda p: load_document(p, kind), paths))

    _check_unique_slugs(documents)

    drafts = [doc.slug for doc in documents if not doc.published]
    if drafts and not include_drafts:
        logger.info(f"Skipping {len(drafts)} unpublished {kind}(s): {', '.join(drafts)}")
        documents = [doc for doc in documents if doc.published]

    documents = sort_documents(documents, kind)
    logger.info(f"Loaded {len(documents)} {kind}(s) from {content_dir}")
    return documents


def sort_documents(documents: List[Document], kind: str) -> List[Document]:
    """Apply the canonical ordering for a kind."""
    if kind == POST:
        # Stable two-pass sort: slug ascending, then date descending
        by_slug = sorted(documents, key=lambda doc: doc.slug)
        return sorted(by_slug, key=lambda doc: doc.published_at or date.min, reverse=True)

    if kind == PATTERN:
        return sorted(
            documents,
            key=lambda doc: (doc.chapter or 0, pattern_number_key(doc.number), doc.slug),
        )

    raise ValueError(f"Unknown document kind: {kind!r}")


def get_document(documents: List[Document], slug: str) -> Optional[Document]:
    for document in documents:
        if document.slug == slug:
            return document
    return None


def patterns_by_chapter(patterns: List[Document], chapter: int) -> List[Document]:
    """Patterns of one chapter, keeping the given (canonical) order."""
    return [doc for doc in patterns if doc.kind == PATTERN and doc.chapter == chapter]


def _check_unique_slugs(documents: List[Document]) -> None:
    seen: Dict[str, Document] = {}
    for document in documents:
        previous = seen.get(document.slug)
        if previous is not None:
            raise DuplicateSlugError(
                f"Duplicate {document.kind} slug also defined in {previous.source_path}",
                path=document.source_path,
                slug=document.slug,
            )
        seen[document.slug] = document
