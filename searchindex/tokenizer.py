"""
Tokenizer shared by index building and querying.

Rule: case-fold, split on non-alphanumeric boundaries, drop tokens shorter
than two characters, drop stop words. Tokens are not deduplicated: term
frequency inside a field counts toward the score.
"""

from __future__ import annotations

import re
from typing import List

MIN_TOKEN_LENGTH = 2

TOKEN_PATTERN = re.compile(r"[^\W_]+")

STOP_WORDS = frozenset({
    # articles
    "a", "an", "the",
    # conjunctions
    "and", "or", "but", "nor", "so", "yet", "for", "if", "than", "then",
    # common prepositions
    "about", "above", "across", "after", "against", "along", "among", "around",
    "as", "at", "before", "behind", "below", "between", "by", "down", "during",
    "from", "in", "into", "near", "of", "off", "on", "onto", "out", "over",
    "per", "since", "through", "to", "toward", "under", "until", "up", "upon",
    "via", "with", "within", "without",
})


def tokenize(text: str) -> List[str]:
    """Split text into normalized search tokens.

    Example:
        >>> tokenize("The Caching-Strategies of 2024, and TTL!")
        ['caching', 'strategies', '2024', 'ttl']
    """
    if not isinstance(text, str) or not text:
        return []
    return [
        token for token in TOKEN_PATTERN.findall(text.casefold())
        if len(token) >= MIN_TOKEN_LENGTH and token not in STOP_WORDS
    ]
