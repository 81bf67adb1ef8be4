"""
Tag taxonomy aggregation.

Folds the tags of every document into a deduplicated, counted listing used
by the tag-filter UI. Tags group by their URL slug, so "AI Tools",
"ai tools" and "ai-tools" are one entry; the count is the number of
documents carrying the tag. Tags whose slug is empty (no URL can reach them)
are left out.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from .attributes import slugify
from .models import Document


@dataclass(frozen=True)
class TaxonomyEntry:
    slug: str
    label: str
    count: int


def normalize_tag(tag: str) -> str:
    """Case-fold a tag and collapse inner whitespace."""
    return " ".join(str(tag).casefold().split())


def tag_slug(tag: str) -> str:
    return slugify(normalize_tag(tag))


def aggregate_tags(documents: Iterable[Document]) -> List[TaxonomyEntry]:
    """Build the taxonomy: count descending, ties broken by label ascending.

    When several spellings share a slug, the alphabetically first normalized
    spelling becomes the label.

    Example:
        >>> docs = [Document("post", "a", "A", "", "x", tags=("AI", "Tools")),
        ...         Document("post", "b", "B", "", "x", tags=("ai",))]
        >>> [(t.label, t.count) for t in aggregate_tags(docs)]
        [('ai', 2), ('tools', 1)]
    """
    counts: Dict[str, int] = {}
    labels: Dict[str, Set[str]] = {}
    for document in documents:
        seen: Set[str] = set()
        for tag in document.tags:
            label = normalize_tag(tag)
            slug = slugify(label)
            if not slug:
                continue
            labels.setdefault(slug, set()).add(label)
            seen.add(slug)
        for slug in seen:
            counts[slug] = counts.get(slug, 0) + 1

    entries = [
        TaxonomyEntry(slug=slug, label=min(labels[slug]), count=count)
        for slug, count in counts.items()
    ]
    entries.sort(key=lambda entry: (-entry.count, entry.label, entry.slug))
    return entries


def documents_with_tag(documents: Iterable[Document], slug: str) -> List[Document]:
    """Filter documents to those carrying a tag, matched by slug."""
    return [
        document for document in documents
        if any(tag_slug(tag) == slug for tag in document.tags)
    ]


def get_taxonomy_entry(taxonomy: Iterable[TaxonomyEntry], slug: str) -> Optional[TaxonomyEntry]:
    for entry in taxonomy:
        if entry.slug == slug:
            return entry
    return None


def label_for_slug(taxonomy: Iterable[TaxonomyEntry], slug: str) -> Optional[str]:
    entry = get_taxonomy_entry(taxonomy, slug)
    return entry.label if entry else None
