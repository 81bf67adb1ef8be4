"""
Canonical content model.

Posts and pattern entries are both loaded into ``Document`` records. Fields
shared by every kind live on the record itself; kind-specific metadata
(pattern number, chapter, difficulty, relationships, post author, ...) lives
in ``extra``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

POST = "post"
PATTERN = "pattern"
DOCUMENT_KINDS = (POST, PATTERN)

# Directory (under the content root) holding each kind
KIND_DIRECTORIES = {
    POST: "posts",
    PATTERN: "patterns",
}

CONTENT_SUFFIXES = (".md", ".mdx")

# Ordinal scale for pattern difficulty
DIFFICULTY_LEVELS = {
    "beginner": 1,
    "intermediate": 2,
    "advanced": 3,
}

RELATIONSHIP_KINDS = ("enables", "composes", "prevents", "contrasts")


@dataclass(frozen=True)
class PatternRelationship:
    """A declared relationship from one pattern to another."""
    slug: str
    kind: str
    note: str = ""


@dataclass(frozen=True)
class Chapter:
    number: int
    name: str
    slug: str
    description: str


CHAPTERS: Tuple[Chapter, ...] = (
    Chapter(1, "Foundation", "foundation",
            "Setting up your environment, codebase, and tools for agent success."),
    Chapter(2, "Context", "context",
            "Managing what the agent knows, and doesn't know."),
    Chapter(3, "Task", "task",
            "Breaking work into units that agents handle well."),
    Chapter(4, "Steering", "steering",
            "Guiding agent behavior toward the output you actually want."),
    Chapter(5, "Verification", "verification",
            "Ensuring the agent's output is correct, complete, and safe."),
    Chapter(6, "Recovery", "recovery",
            "What to do when things go wrong."),
)


def get_chapter(number: int) -> Optional[Chapter]:
    for chapter in CHAPTERS:
        if chapter.number == number:
            return chapter
    return None


def chapter_by_slug(slug: str) -> Optional[Chapter]:
    for chapter in CHAPTERS:
        if chapter.slug == slug:
            return chapter
    return None


@dataclass(frozen=True)
class Document:
    """A loaded content document (blog post or pattern entry)."""
    kind: str
    slug: str
    title: str
    excerpt: str
    body: str
    tags: Tuple[str, ...] = ()
    published_at: Optional[date] = None
    published: bool = True
    extra: Dict[str, Any] = field(default_factory=dict)
    source_path: Optional[Path] = None

    @property
    def keywords(self) -> List[str]:
        return list(self.extra.get("keywords", []))

    # Pattern-only accessors

    @property
    def chapter(self) -> Optional[int]:
        return self.extra.get("chapter")

    @property
    def number(self) -> Optional[str]:
        return self.extra.get("number")

    @property
    def difficulty(self) -> Optional[str]:
        return self.extra.get("difficulty")

    @property
    def related(self) -> List[PatternRelationship]:
        return list(self.extra.get("related", []))


def pattern_number_key(number: Optional[str]) -> Tuple[int, ...]:
    """Sort key for dotted pattern numbers ("2.10" sorts after "2.9")."""
    if not number:
        return ()
    parts = []
    for part in str(number).split("."):
        part = part.strip()
        parts.append(int(part) if part.isdigit() else 0)
    return tuple(parts)
