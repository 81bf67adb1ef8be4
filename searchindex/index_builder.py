"""
Search index builder.

Turns loaded documents into a flat, order-preserving sequence of
``SearchIndexEntry`` records that can be serialized verbatim and searched
offline (in the browser or any other process) without the loader.

Serialized layout (compact UTF-8 JSON):
{
    "version": 1,
    "weights": {"title": 3, "excerpt": 2, "body": 1, "tags": 1},
    "entries": [
        {
            "slug": "caching-strategies",
            "kind": "post",
            "title": "Caching Strategies",
            "excerpt": "Eviction and TTL patterns",
            "tagsJoined": "performance caching",
            "keywords": [],
            "date": "2024-03-01",
            "tokens": ["caching", "strategies", "eviction", "ttl", ...],
            "fieldSpans": {"title": [0, 2], "excerpt": [2, 5], "body": [5, 90], "tags": [90, 92]}
        }
    ]
}
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union

from corpus.models import Document

from .text import BodyFormatter, strip_markdown
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

INDEX_VERSION = 1

# Field order inside an entry's token sequence
FIELDS = ("title", "excerpt", "body", "tags")


class IndexFormatError(ValueError):
    """Exception raised when a serialized index cannot be read."""
    pass


@dataclass(frozen=True)
class ScoringWeights:
    """Points per token occurrence in each field."""
    title: int = 3
    excerpt: int = 2
    body: int = 1
    tags: int = 1

    def for_field(self, name: str) -> int:
        return getattr(self, name)

    def to_dict(self) -> Dict[str, int]:
        return {name: self.for_field(name) for name in FIELDS}


DEFAULT_WEIGHTS = ScoringWeights()


@dataclass(frozen=True)
class SearchIndexEntry:
    slug: str
    kind: str
    title: str
    excerpt: str
    tags_joined: str
    tokens: Tuple[str, ...]
    field_spans: Dict[str, Tuple[int, int]]
    keywords: Tuple[str, ...] = ()
    date: Optional[str] = None

    def field_tokens(self, name: str) -> Tuple[str, ...]:
        start, end = self.field_spans.get(name, (0, 0))
        return self.tokens[start:end]

    def to_dict(self) -> Dict:
        return {
            "slug": self.slug,
            "kind": self.kind,
            "title": self.title,
            "excerpt": self.excerpt,
            "tagsJoined": self.tags_joined,
            "keywords": list(self.keywords),
            "date": self.date,
            "tokens": list(self.tokens),
            "fieldSpans": {name: list(self.field_spans[name]) for name in FIELDS if name in self.field_spans},
        }


@dataclass(frozen=True)
class SearchIndex:
    entries: Tuple[SearchIndexEntry, ...] = ()
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    version: int = INDEX_VERSION

    def __len__(self) -> int:
        return len(self.entries)

    def to_dict(self) -> Dict:
        return {
            "version": self.version,
            "weights": self.weights.to_dict(),
            "entries": [entry.to_dict() for entry in self.entries],
        }


def build_entry(document: Document, body_formatter: BodyFormatter = strip_markdown) -> SearchIndexEntry:
    """Tokenize one document into an index entry."""
    tags_joined = " ".join(tag.casefold() for tag in document.tags)
    keywords = tuple(document.keywords)

    field_texts = {
        "title": document.title,
        "excerpt": document.excerpt,
        "body": body_formatter(document.body),
        "tags": " ".join([tags_joined, *keywords]),
    }

    tokens: List[str] = []
    spans: Dict[str, Tuple[int, int]] = {}
    for name in FIELDS:
        start = len(tokens)
        tokens.extend(tokenize(field_texts[name]))
        spans[name] = (start, len(tokens))

    return SearchIndexEntry(
        slug=document.slug,
        kind=document.kind,
        title=document.title,
        excerpt=document.excerpt,
        tags_joined=tags_joined,
        tokens=tuple(tokens),
        field_spans=spans,
        keywords=keywords,
        date=document.published_at.isoformat() if document.published_at else None,
    )


def build_index(
    documents: Iterable[Document],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    body_formatter: BodyFormatter = strip_markdown,
) -> SearchIndex:
    """Build the search index in corpus order.

    Args:
        documents: Documents in their canonical order
        weights: Per-field scoring weights stored with the index
        body_formatter: Strategy applied to bodies before tokenizing

    Returns:
        SearchIndex with one entry per document
    """
    entries = tuple(build_entry(document, body_formatter) for document in documents)
    logger.info(f"Built search index: {len(entries)} entries, "
                f"{sum(len(e.tokens) for e in entries)} tokens")
    return SearchIndex(entries=entries, weights=weights)


def serialize_index(index: SearchIndex) -> bytes:
    """Serialize the index to its compact JSON byte payload."""
    return json.dumps(index.to_dict(), ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def deserialize_index(payload: Union[bytes, str]) -> SearchIndex:
    """Load an index from its serialized payload.

    Raises:
        IndexFormatError: If the payload is not a valid index of a supported version
    """
    try:
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        data = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise IndexFormatError(f"Search index payload is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise IndexFormatError("Search index payload must be a JSON object")
    if data.get("version") != INDEX_VERSION:
        raise IndexFormatError(
            f"Unsupported search index version {data.get('version')!r} (expected {INDEX_VERSION})"
        )

    try:
        raw_weights = _mapping(data.get("weights", {}), "weights")
        weights = ScoringWeights(**{name: int(value) for name, value in raw_weights.items()})
        entries = tuple(_entry_from_dict(item) for item in data.get("entries", []))
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise IndexFormatError(f"Malformed search index entry: {exc}") from exc

    return SearchIndex(entries=entries, weights=weights, version=INDEX_VERSION)


def index_fingerprint(payload: bytes) -> str:
    """Content hash of a serialized index, used as its cache key / ETag."""
    return hashlib.sha256(payload).hexdigest()


def _entry_from_dict(item: Dict) -> SearchIndexEntry:
    tokens = tuple(str(token) for token in item["tokens"])
    spans = {}
    for name, span in _mapping(item["fieldSpans"], "fieldSpans").items():
        if name not in FIELDS:
            raise ValueError(f"unknown field '{name}'")
        start, end = (int(value) for value in span)
        if not 0 <= start <= end <= len(tokens):
            raise ValueError(f"span {name}={span} out of range")
        spans[name] = (start, end)

    return SearchIndexEntry(
        slug=item["slug"],
        kind=item["kind"],
        title=item["title"],
        excerpt=item["excerpt"],
        tags_joined=item.get("tagsJoined", ""),
        tokens=tokens,
        field_spans=spans,
        keywords=tuple(item.get("keywords", [])),
        date=item.get("date"),
    )


def _mapping(value, name: str) -> Dict:
    if not isinstance(value, dict):
        raise ValueError(f"'{name}' must be an object, got {type(value).__name__}")
    return value
