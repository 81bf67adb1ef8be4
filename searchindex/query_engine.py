"""
Query engine for the serialized search index.

Pure and synchronous: no I/O, never mutates the index, never raises. An
empty, stop-word-only or otherwise unusable query simply yields no results.

Scoring (per query token, exact full-token matches only):
    title occurrence    3 points
    excerpt occurrence  2 points
    body occurrence     1 point
    tag/keyword         1 point
(the actual weights travel with the index, see ``ScoringWeights``)

Ranking: score descending, ties by original corpus order.

Usage:
    from searchindex import deserialize_index, search

    index = deserialize_index(payload)
    for result in search(index, "caching strategies", limit=10):
        print(result.slug, result.score)
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .index_builder import FIELDS, SearchIndex, SearchIndexEntry
from .tokenizer import tokenize


@dataclass(frozen=True)
class SearchResult:
    entry: SearchIndexEntry
    score: int
    position: int

    @property
    def slug(self) -> str:
        return self.entry.slug

    def to_dict(self) -> Dict:
        return {
            "slug": self.entry.slug,
            "kind": self.entry.kind,
            "title": self.entry.title,
            "excerpt": self.entry.excerpt,
            "date": self.entry.date,
            "score": self.score,
        }


class LinearScanScorer:
    """Score every entry by scanning its token spans."""

    def score(self, index: SearchIndex, terms: Sequence[str]) -> Dict[int, int]:
        """Return {entry position: total score} for entries scoring above zero."""
        weights = index.weights
        scores: Dict[int, int] = {}
        for position, entry in enumerate(index.entries):
            total = 0
            for name in FIELDS:
                field_tokens = entry.field_tokens(name)
                if not field_tokens:
                    continue
                weight = weights.for_field(name)
                for term in terms:
                    total += field_tokens.count(term) * weight
            if total > 0:
                scores[position] = total
        return scores


class InvertedIndexScorer:
    """Posting-list scorer producing the same scores as ``LinearScanScorer``.

    Postings are built once from an index and reused across queries. Asked
    to score a different index, it falls back to a linear scan.
    """

    def __init__(self, index: SearchIndex):
        self._index = index
        # term -> {position: weighted term frequency}
        self._postings: Dict[str, Dict[int, int]] = defaultdict(dict)
        for position, entry in enumerate(index.entries):
            for name in FIELDS:
                weight = index.weights.for_field(name)
                for term, count in Counter(entry.field_tokens(name)).items():
                    posting = self._postings[term]
                    posting[position] = posting.get(position, 0) + count * weight

    def score(self, index: SearchIndex, terms: Sequence[str]) -> Dict[int, int]:
        if index is not self._index:
            # Postings belong to another index
            return _DEFAULT_SCORER.score(index, terms)
        scores: Dict[int, int] = defaultdict(int)
        for term in terms:
            for position, points in self._postings.get(term, {}).items():
                scores[position] += points
        return {position: total for position, total in scores.items() if total > 0}


_DEFAULT_SCORER = LinearScanScorer()


def search(
    index: SearchIndex,
    query: str,
    limit: Optional[int] = None,
    scorer=None,
) -> List[SearchResult]:
    """Rank index entries against a free-text query.

    Args:
        index: Search index (typically deserialized from the build artifact)
        query: Free-text query
        limit: Maximum number of results (default: unlimited)
        scorer: Scoring strategy (default: linear scan)

    Returns:
        Results ordered by score descending, ties by corpus order

    Example:
        >>> [r.slug for r in search(index, "caching")]
        ['caching-strategies']
    """
    terms = tokenize(query)
    if not terms or index is None:
        return []
    if limit is not None and limit <= 0:
        return []

    scores = (scorer or _DEFAULT_SCORER).score(index, terms)
    ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    if limit is not None:
        ranked = ranked[:limit]

    return [
        SearchResult(entry=index.entries[position], score=score, position=position)
        for position, score in ranked
    ]
