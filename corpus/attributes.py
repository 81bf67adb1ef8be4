"""
Derived attributes computed from document bodies.

- reading time estimate (minutes)
- heading outline (table of contents) for level-2 and level-3 headings
- "Signals" bullet list for pattern entries
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .models import Document

DEFAULT_WORDS_PER_MINUTE = 225

OUTLINE_HEADING_PATTERN = re.compile(r"^(#{2,3})\s+(.+)$")
CODE_FENCE_PATTERN = re.compile(r"^(```|~~~)")
CLOSING_HASHES_PATTERN = re.compile(r"\s+#+\s*$")
SIGNALS_HEADING_PATTERN = re.compile(r"^##\s+Signals\b", re.IGNORECASE)
BULLET_PATTERN = re.compile(r"^[-*]\s+")


@dataclass(frozen=True)
class OutlineEntry:
    id: str
    text: str
    level: int


@dataclass(frozen=True)
class DerivedAttributes:
    reading_time_minutes: int
    outline: Tuple[OutlineEntry, ...] = ()
    signals: Tuple[str, ...] = ()

    def to_dict(self) -> Dict:
        return {
            "reading_time_minutes": self.reading_time_minutes,
            "outline": [
                {"id": entry.id, "text": entry.text, "level": entry.level}
                for entry in self.outline
            ],
            "signals": list(self.signals),
        }


def slugify(text: str) -> str:
    """Convert text to a URL-friendly slug.

    Shared by heading ids and tag slugs.

    Example:
        >>> slugify("Eviction & TTL  Patterns")
        'eviction-ttl-patterns'
    """
    cleaned = re.sub(r"[^a-z0-9\s-]", "", (text or "").lower())
    cleaned = re.sub(r"[\s-]+", "-", cleaned)
    return cleaned.strip("-")


def compute_reading_time(body: str, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE) -> int:
    """Estimate reading time in whole minutes (rounded up, minimum 1)."""
    if words_per_minute <= 0:
        raise ValueError(f"words_per_minute must be positive, got {words_per_minute}")
    word_count = len((body or "").split())
    return max(1, math.ceil(word_count / words_per_minute))


def extract_outline(body: str) -> List[OutlineEntry]:
    """Extract level-2/3 headings in document order, skipping fenced code.

    Ids are slugified heading text; repeats get a numeric suffix:
    "setup", "setup-1", "setup-2", ...
    """
    outline: List[OutlineEntry] = []
    used_ids = set()
    id_counts: Dict[str, int] = {}
    fence = None

    for line in (body or "").split("\n"):
        stripped = line.strip()

        fence_match = CODE_FENCE_PATTERN.match(stripped)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif marker == fence:
                fence = None
            continue

        if fence is not None:
            continue

        match = OUTLINE_HEADING_PATTERN.match(line.rstrip())
        if not match:
            continue

        level = len(match.group(1))
        text = CLOSING_HASHES_PATTERN.sub("", match.group(2)).strip()
        if not text:
            continue

        base_id = slugify(text) or "section"
        heading_id = base_id
        while heading_id in used_ids:
            id_counts[base_id] = id_counts.get(base_id, 0) + 1
            heading_id = f"{base_id}-{id_counts[base_id]}"
        used_ids.add(heading_id)

        outline.append(OutlineEntry(id=heading_id, text=text, level=level))

    return outline


def extract_signals(body: str, max_items: int = 3) -> List[str]:
    """Pull the first bullet items from a ``## Signals`` section."""
    signals: List[str] = []
    in_section = False

    for line in (body or "").split("\n"):
        stripped = line.strip()
        if not in_section:
            in_section = bool(SIGNALS_HEADING_PATTERN.match(stripped))
            continue
        if stripped.startswith("## "):
            break
        if BULLET_PATTERN.match(stripped):
            signals.append(BULLET_PATTERN.sub("", stripped, count=1))
            if len(signals) >= max_items:
                break

    return signals


def derive_attributes(
    document: Document,
    words_per_minute: int = DEFAULT_WORDS_PER_MINUTE,
) -> DerivedAttributes:
    return DerivedAttributes(
        reading_time_minutes=compute_reading_time(document.body, words_per_minute),
        outline=tuple(extract_outline(document.body)),
        signals=tuple(extract_signals(document.body)),
    )
