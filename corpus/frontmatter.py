"""
Frontmatter parser for site content documents.

Parses the YAML metadata header that precedes every post and pattern body.

Post format:
---
title: Caching Strategies
date: 2024-03-01
excerpt: Eviction and TTL patterns
tags: [Performance, Caching]
---
Body text...

Pattern format:
---
name: Context Budget
chapter: 2
number: "2.1"
intent: Keep the agent's working set small.
difficulty: beginner
relatedPatterns:
  - slug: task-slicing
    type: enables
    note: Smaller tasks need less context.
---
Body text...
"""

from __future__ import annotations

import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import frontmatter
import yaml

from .errors import MetadataError
from .models import (
    DIFFICULTY_LEVELS,
    PATTERN,
    POST,
    RELATIONSHIP_KINDS,
    Document,
    PatternRelationship,
)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

REQUIRED_FIELDS = {
    POST: ("title", "date", "excerpt"),
    PATTERN: ("name", "chapter", "number", "intent", "difficulty"),
}


def split_frontmatter(text: str, source: Optional[Union[str, Path]] = None) -> Tuple[Dict[str, Any], str]:
    """Split raw document text into (metadata dict, body).

    Raises:
        MetadataError: If the header is missing, is not valid YAML, or is not a mapping
    """
    try:
        parsed = frontmatter.loads(text)
    except (yaml.YAMLError, ValueError, TypeError) as exc:
        raise MetadataError(f"Malformed metadata header: {exc}", path=source) from exc

    metadata = parsed.metadata
    if not metadata:
        raise MetadataError("Missing metadata header", path=source)
    if not isinstance(metadata, dict):
        raise MetadataError(
            f"Metadata header must be a mapping, got: {type(metadata).__name__}",
            path=source,
        )

    return dict(metadata), parsed.content


def parse_document_text(
    text: str,
    kind: str,
    source: Optional[Union[str, Path]] = None,
) -> Document:
    """Parse and validate one content file into a Document.

    Args:
        text: Raw file content (metadata header + body)
        kind: Document kind ("post" or "pattern")
        source: Source file path, used for the fallback slug and error context

    Returns:
        Validated Document

    Raises:
        MetadataError: If any metadata field is missing or invalid, or the body is empty

    Example:
        >>> doc = parse_document_text('''---
        ... title: Routing Basics
        ... date: 2024-01-02
        ... excerpt: How requests find handlers
        ... ---
        ... Routes map paths to handlers.''', "post", "routing-basics.md")
        >>> doc.slug
        'routing-basics'
    """
    if kind not in REQUIRED_FIELDS:
        raise ValueError(f"Unknown document kind: {kind!r}")

    metadata, body = split_frontmatter(text, source)
    slug = _resolve_slug(metadata, source)

    for field_name in REQUIRED_FIELDS[kind]:
        value = metadata.get(field_name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise MetadataError(f"Missing required field: {field_name}", path=source, slug=slug)

    if not body.strip():
        raise MetadataError("Document body is empty", path=source, slug=slug)

    tags = _string_list(metadata.get("tags"), "tags", source, slug)
    published = _parse_bool(metadata.get("published", True), "published", source, slug)

    if kind == POST:
        return Document(
            kind=POST,
            slug=slug,
            title=str(metadata["title"]).strip(),
            excerpt=str(metadata["excerpt"]).strip(),
            body=body,
            tags=tuple(tags),
            published_at=_parse_date(metadata["date"], source, slug),
            published=published,
            extra=_post_extra(metadata, source, slug),
            source_path=Path(source) if source else None,
        )

    published_at = None
    if metadata.get("date") is not None:
        published_at = _parse_date(metadata["date"], source, slug)

    return Document(
        kind=PATTERN,
        slug=slug,
        title=str(metadata["name"]).strip(),
        excerpt=str(metadata["intent"]).strip(),
        body=body,
        tags=tuple(tags),
        published_at=published_at,
        published=published,
        extra=_pattern_extra(metadata, source, slug),
        source_path=Path(source) if source else None,
    )


def _resolve_slug(metadata: Dict[str, Any], source: Optional[Union[str, Path]]) -> str:
    raw = metadata.get("slug")
    if raw is None and source is not None:
        raw = Path(source).stem
    if raw is None:
        raise MetadataError("Missing required field: slug", path=source)

    slug = str(raw).strip()
    if not SLUG_PATTERN.match(slug):
        raise MetadataError(
            f"Invalid slug '{slug}'. Must be lowercase kebab-case (letters, digits, single hyphens).",
            path=source,
        )
    return slug


def _parse_date(value: Any, source, slug: str) -> date:
    # YAML already turns unquoted ISO dates into date/datetime objects
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise MetadataError(f"Invalid date '{text}'. Expected ISO format (YYYY-MM-DD).",
                            path=source, slug=slug) from None


def _parse_bool(value: Any, field_name: str, source, slug: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise MetadataError(f"'{field_name}' field must be true or false, got: {value!r}",
                        path=source, slug=slug)


def _string_list(value: Any, field_name: str, source, slug: str) -> List[str]:
    """Normalize a list field; comma-separated strings are accepted too."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = value
    else:
        raise MetadataError(
            f"'{field_name}' field must be a string or list, got: {type(value).__name__}",
            path=source, slug=slug,
        )
    return [str(item).strip() for item in items if item is not None and str(item).strip()]


def _post_extra(metadata: Dict[str, Any], source, slug: str) -> Dict[str, Any]:
    extra: Dict[str, Any] = {
        "keywords": _string_list(metadata.get("keywords"), "keywords", source, slug),
    }
    for key in ("author", "thumbnail", "hero"):
        if metadata.get(key) is not None:
            extra[key] = str(metadata[key])
    return extra


def _pattern_extra(metadata: Dict[str, Any], source, slug: str) -> Dict[str, Any]:
    try:
        chapter = int(metadata["chapter"])
    except (TypeError, ValueError):
        raise MetadataError(f"Invalid chapter '{metadata['chapter']}'. Must be an integer.",
                            path=source, slug=slug) from None
    if chapter < 1:
        raise MetadataError(f"Invalid chapter {chapter}. Must be >= 1.", path=source, slug=slug)

    number = str(metadata["number"]).strip()
    if not re.match(r"^\d+(\.\d+)*$", number):
        raise MetadataError(f"Invalid number '{number}'. Expected dotted digits like '2.1'.",
                            path=source, slug=slug)

    difficulty = str(metadata["difficulty"]).strip().lower()
    if difficulty not in DIFFICULTY_LEVELS:
        raise MetadataError(
            f"Invalid difficulty '{difficulty}'. Must be one of: {list(DIFFICULTY_LEVELS)}",
            path=source, slug=slug,
        )

    return {
        "chapter": chapter,
        "number": number,
        "difficulty": difficulty,
        "keywords": _string_list(metadata.get("keywords"), "keywords", source, slug),
        "related": _parse_relationships(metadata.get("relatedPatterns"), source, slug),
    }


def _parse_relationships(value: Any, source, slug: str) -> List[PatternRelationship]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MetadataError(
            f"'relatedPatterns' field must be a list, got: {type(value).__name__}",
            path=source, slug=slug,
        )

    relationships = []
    for item in value:
        if not isinstance(item, dict) or "slug" not in item or "type" not in item:
            raise MetadataError(f"Invalid relatedPatterns entry: {item!r}", path=source, slug=slug)
        kind = str(item["type"]).strip().lower()
        if kind not in RELATIONSHIP_KINDS:
            raise MetadataError(
                f"Invalid relationship type '{kind}'. Must be one of: {list(RELATIONSHIP_KINDS)}",
                path=source, slug=slug,
            )
        relationships.append(PatternRelationship(
            slug=str(item["slug"]).strip(),
            kind=kind,
            note=str(item.get("note") or "").strip(),
        ))
    return relationships
