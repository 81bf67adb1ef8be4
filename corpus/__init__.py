"""
Corpus module for site content management.

This module provides functionality for:
- Parsing YAML metadata headers from content files
- Loading posts and pattern entries into canonical Document records
- Deriving reading time, heading outline and pattern signals
- Aggregating the tag taxonomy and picking related documents

File structure:
    content/
        posts/              - Blog posts (.md / .mdx)
        patterns/           - Pattern library entries (.md / .mdx)

Usage:
    from corpus import load_documents, derive_attributes, aggregate_tags

    posts = load_documents("post", Path("content"))
    attributes = {doc.slug: derive_attributes(doc) for doc in posts}
    taxonomy = aggregate_tags(posts)
"""

from .errors import ContentError, MetadataError, DuplicateSlugError
from .models import (
    CHAPTERS,
    DIFFICULTY_LEVELS,
    PATTERN,
    POST,
    RELATIONSHIP_KINDS,
    Chapter,
    Document,
    PatternRelationship,
    chapter_by_slug,
    get_chapter,
)
from .frontmatter import parse_document_text, split_frontmatter
from .loader import load_documents, get_document, patterns_by_chapter, sort_documents
from .attributes import (
    DerivedAttributes,
    OutlineEntry,
    compute_reading_time,
    derive_attributes,
    extract_outline,
    extract_signals,
    slugify,
)
from .taxonomy import (
    TaxonomyEntry,
    aggregate_tags,
    documents_with_tag,
    get_taxonomy_entry,
    label_for_slug,
    tag_slug,
)
from .related import RelatedPattern, related_documents, related_patterns

__all__ = [
    "ContentError",
    "MetadataError",
    "DuplicateSlugError",
    "CHAPTERS",
    "DIFFICULTY_LEVELS",
    "PATTERN",
    "POST",
    "RELATIONSHIP_KINDS",
    "Chapter",
    "Document",
    "PatternRelationship",
    "chapter_by_slug",
    "get_chapter",
    "parse_document_text",
    "split_frontmatter",
    "load_documents",
    "get_document",
    "patterns_by_chapter",
    "sort_documents",
    "DerivedAttributes",
    "OutlineEntry",
    "compute_reading_time",
    "derive_attributes",
    "extract_outline",
    "extract_signals",
    "slugify",
    "TaxonomyEntry",
    "aggregate_tags",
    "documents_with_tag",
    "get_taxonomy_entry",
    "label_for_slug",
    "tag_slug",
    "RelatedPattern",
    "related_documents",
    "related_patterns",
]

__version__ = "1.0.0"
