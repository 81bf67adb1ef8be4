"""
Search index package for offline (client-side) content search.

Components:
- tokenizer: shared tokenization rule for documents and queries
- text: body formatter strategies applied before tokenizing
- index_builder: flat, serializable index built from documents
- query_engine: pure scoring/ranking over an in-memory index
"""

from .tokenizer import STOP_WORDS, tokenize
from .text import BODY_FORMATTERS, get_body_formatter, keep_raw, strip_markdown
from .index_builder import (
    DEFAULT_WEIGHTS,
    IndexFormatError,
    ScoringWeights,
    SearchIndex,
    SearchIndexEntry,
    build_entry,
    build_index,
    deserialize_index,
    index_fingerprint,
    serialize_index,
)
from .query_engine import InvertedIndexScorer, LinearScanScorer, SearchResult, search

__all__ = [
    "STOP_WORDS",
    "tokenize",
    "BODY_FORMATTERS",
    "get_body_formatter",
    "keep_raw",
    "strip_markdown",
    "DEFAULT_WEIGHTS",
    "IndexFormatError",
    "ScoringWeights",
    "SearchIndex",
    "SearchIndexEntry",
    "build_entry",
    "build_index",
    "deserialize_index",
    "index_fingerprint",
    "serialize_index",
    "InvertedIndexScorer",
    "LinearScanScorer",
    "SearchResult",
    "search",
]
