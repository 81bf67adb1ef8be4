"""
Related-document selection: shared tags for posts, declared relationships
for patterns.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Sequence

from .models import PATTERN, Document, PatternRelationship
from .taxonomy import normalize_tag


def related_documents(documents: Sequence[Document], slug: str, limit: int = 3) -> List[Document]:
    """Pick documents related to ``slug``.

    Documents sharing more tags rank first (ties: newest first, then slug).
    When fewer than ``limit`` documents share a tag, the remaining slots are
    filled with the most recent other documents.

    Args:
        documents: Candidate documents, typically all posts in canonical order
        slug: Slug of the current document (excluded from the result)
        limit: Maximum number of documents to return

    Returns:
        Related documents, or an empty list if ``slug`` is unknown
    """
    current = next((doc for doc in documents if doc.slug == slug), None)
    if current is None or limit <= 0:
        return []

    current_tags = {normalize_tag(tag) for tag in current.tags}
    others = [doc for doc in documents if doc.slug != slug]

    scored = []
    for doc in others:
        score = len(current_tags & {normalize_tag(tag) for tag in doc.tags})
        if score > 0:
            scored.append((score, doc))

    by_slug = sorted(scored, key=lambda item: item[1].slug)
    ranked = sorted(
        by_slug,
        key=lambda item: (item[0], item[1].published_at or date.min),
        reverse=True,
    )
    related = [doc for _, doc in ranked][:limit]

    if len(related) < limit:
        chosen = {doc.slug for doc in related}
        newest = sorted(
            sorted(others, key=lambda doc: doc.slug),
            key=lambda doc: doc.published_at or date.min,
            reverse=True,
        )
        for doc in newest:
            if len(related) >= limit:
                break
            if doc.slug not in chosen:
                related.append(doc)

    return related


@dataclass(frozen=True)
class RelatedPattern:
    """A resolved pattern relationship: the declared link plus its target."""
    relationship: PatternRelationship
    document: Document


def related_patterns(patterns: Sequence[Document], slug: str) -> List[RelatedPattern]:
    """Resolve the declared relationships of one pattern, in declared order.

    Targets missing from ``patterns`` (unpublished drafts in a production
    build) are skipped. Unknown ``slug`` gives an empty list.
    """
    by_slug = {doc.slug: doc for doc in patterns if doc.kind == PATTERN}
    current = by_slug.get(slug)
    if current is None:
        return []

    resolved = []
    for relationship in current.related:
        target = by_slug.get(relationship.slug)
        if target is not None:
            resolved.append(RelatedPattern(relationship=relationship, document=target))
    return resolved
