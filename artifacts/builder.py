"""
Artifact builder.

Runs the whole content pipeline in one pass and writes the results:

    loader -> derived attributes -> { taxonomy, search index, graph layout }

Output files (in the artifact directory):
- search-index.json   - serialized search index (served with a long-cache policy)
- taxonomy.json       - tag listing for the tag-filter UI
- attributes.json     - derived attributes per document, keyed by kind and slug
- pattern-graph.json  - graph layout, or null when the graph is skipped
- manifest.json       - build statistics and the search index fingerprint
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from corpus.attributes import DerivedAttributes, derive_attributes
from corpus.loader import load_documents
from corpus.models import PATTERN, POST, Document
from corpus.taxonomy import TaxonomyEntry, aggregate_tags
from patterngraph.layout import (
    GraphLayout,
    compute_layout,
    edges_from_documents,
    nodes_from_documents,
    select_edges,
)
from searchindex.index_builder import SearchIndex, build_index, deserialize_index, index_fingerprint, serialize_index

from .settings import Settings

logger = logging.getLogger(__name__)

SEARCH_INDEX_FILE = "search-index.json"
TAXONOMY_FILE = "taxonomy.json"
ATTRIBUTES_FILE = "attributes.json"
GRAPH_FILE = "pattern-graph.json"
MANIFEST_FILE = "manifest.json"


@dataclass(frozen=True)
class BuildArtifacts:
    """Everything one build produces; read-only once built."""
    posts: Tuple[Document, ...]
    patterns: Tuple[Document, ...]
    attributes: Dict[Tuple[str, str], DerivedAttributes]
    taxonomy: Tuple[TaxonomyEntry, ...]
    search_index: SearchIndex
    search_index_payload: bytes
    search_index_fingerprint: str
    graph: Optional[GraphLayout]
    built_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def documents(self) -> Tuple[Document, ...]:
        return self.posts + self.patterns

    def get_document(self, kind: str, slug: str) -> Optional[Document]:
        pool = self.posts if kind == POST else self.patterns if kind == PATTERN else ()
        for document in pool:
            if document.slug == slug:
                return document
        return None

    def get_attributes(self, kind: str, slug: str) -> Optional[DerivedAttributes]:
        return self.attributes.get((kind, slug))


def build_artifacts(settings: Settings) -> BuildArtifacts:
    """Load all content and compute every artifact.

    Raises:
        ContentError: On any content defect (missing field, duplicate slug,
            unknown graph node, ...); nothing is returned in that case
    """
    posts = load_documents(POST, settings.content_dir, settings.include_drafts, settings.load_workers)

    # Every declared pattern slug, drafts included, for edge validation
    loaded_patterns = load_documents(PATTERN, settings.content_dir, True, settings.load_workers)
    patterns = [doc for doc in loaded_patterns if doc.published or settings.include_drafts]
    if len(patterns) < len(loaded_patterns):
        logger.info(f"Skipping {len(loaded_patterns) - len(patterns)} unpublished pattern(s)")

    documents = posts + patterns

    attributes = {
        (doc.kind, doc.slug): derive_attributes(doc, settings.reading_speed_wpm)
        for doc in documents
    }

    taxonomy = aggregate_tags(documents)
    search_index = build_index(documents, settings.weights, settings.body_formatter)
    payload = serialize_index(search_index)

    edges = select_edges(
        edges_from_documents(loaded_patterns),
        known_slugs={doc.slug for doc in loaded_patterns},
        shown_slugs={doc.slug for doc in patterns},
    )
    graph = compute_layout(
        nodes_from_documents(patterns),
        edges,
        column_count=settings.graph_column_count,
        side_padding=settings.graph_side_padding,
        top_padding=settings.graph_top_padding,
    )

    return BuildArtifacts(
        posts=tuple(posts),
        patterns=tuple(patterns),
        attributes=attributes,
        taxonomy=tuple(taxonomy),
        search_index=search_index,
        search_index_payload=payload,
        search_index_fingerprint=index_fingerprint(payload),
        graph=graph,
    )


class ArtifactBuilder:
    """Writes build artifacts to a directory and reads them back."""

    def __init__(self, output_dir: Path):
        """Initialize artifact builder.

        Args:
            output_dir: Directory to store artifacts (e.g., output/artifacts)
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def write(self, artifacts: BuildArtifacts, clean_existing: bool = False) -> Dict:
        """Write every artifact file.

        Args:
            artifacts: Result of build_artifacts()
            clean_existing: If True, remove the existing artifact directory first

        Returns:
            Dictionary with build statistics
        """
        if clean_existing:
            self._clean()

        (self.output_dir / SEARCH_INDEX_FILE).write_bytes(artifacts.search_index_payload)
        self._save_json(TAXONOMY_FILE, [
            {"slug": entry.slug, "label": entry.label, "count": entry.count}
            for entry in artifacts.taxonomy
        ])
        self._save_json(ATTRIBUTES_FILE, self._attributes_data(artifacts))
        self._save_json(GRAPH_FILE, artifacts.graph.to_dict() if artifacts.graph else None)

        stats = {
            "posts_count": len(artifacts.posts),
            "patterns_count": len(artifacts.patterns),
            "tags_count": len(artifacts.taxonomy),
            "index_entries": len(artifacts.search_index),
            "index_bytes": len(artifacts.search_index_payload),
            "index_fingerprint": artifacts.search_index_fingerprint,
            "graph_nodes": len(artifacts.graph.nodes) if artifacts.graph else 0,
            "graph_edges": len(artifacts.graph.edges) if artifacts.graph else 0,
            "by_chapter": self._count_by_chapter(list(artifacts.patterns)),
            "built_at": artifacts.built_at,
            "output_dir": str(self.output_dir),
        }
        self._save_json(MANIFEST_FILE, stats)
        logger.info(f"Wrote artifacts to {self.output_dir}")

        return stats

    def read_search_index(self) -> SearchIndex:
        """Load the written search index.

        Raises:
            FileNotFoundError: If the artifacts have not been written
            IndexFormatError: If the file is not a valid index
        """
        index_file = self.output_dir / SEARCH_INDEX_FILE
        if not index_file.exists():
            raise FileNotFoundError("Search index not found. Build artifacts first.")
        return deserialize_index(index_file.read_bytes())

    def read_manifest(self) -> Dict:
        manifest_file = self.output_dir / MANIFEST_FILE
        if not manifest_file.exists():
            raise FileNotFoundError("Manifest not found. Build artifacts first.")
        return json.loads(manifest_file.read_text(encoding="utf-8"))

    def _attributes_data(self, artifacts: BuildArtifacts) -> Dict[str, Dict[str, Dict]]:
        data: Dict[str, Dict[str, Dict]] = {POST: {}, PATTERN: {}}
        for document in artifacts.documents:
            attrs = artifacts.get_attributes(document.kind, document.slug)
            data[document.kind][document.slug] = attrs.to_dict()
        return data

    def _save_json(self, filename: str, data) -> None:
        (self.output_dir / filename).write_text(
            json.dumps(data, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    def _clean(self) -> None:
        """Remove existing artifact files."""
        if self.output_dir.exists():
            shutil.rmtree(self.output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _count_by_chapter(self, patterns: List[Document]) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for pattern in patterns:
            key = str(pattern.chapter)
            counts[key] = counts.get(key, 0) + 1
        return counts
