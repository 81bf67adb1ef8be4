"""
Deterministic layout for the pattern relationship graph.

Single placement pass, no force simulation, so identical input always gives
identical (byte-for-byte) output and the graph can be pre-rendered.

Columns:
    Nodes are ordered by (chapter, number, slug) and split into
    ``column_count`` contiguous runs whose sizes differ by at most one, so
    chapters stay together in reading order and columns stay balanced.

Coordinates:
    column_width = (total_width - 2 * side_padding) / column_count
    x = side_padding + column * column_width
    y = top_padding + row * row_spacing

Edges:
    Edges must reference known nodes. Duplicate (from, to, kind) edges are
    dropped and a reverse edge of the same kind folds into the first one as
    ``bidirectional``. Edges between vertically adjacent nodes of one column
    are ``short``, everything else ``long``. Edges touching a pattern left
    out of the build (a draft in production) are dropped by ``select_edges``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from corpus.errors import ContentError
from corpus.models import DIFFICULTY_LEVELS, PATTERN, RELATIONSHIP_KINDS, Document, pattern_number_key

logger = logging.getLogger(__name__)

COLUMN_COUNT = 6
TOTAL_WIDTH = 1200
SIDE_PADDING = 70
TOP_PADDING = 80
BOTTOM_PADDING = 40
ROW_SPACING = 100
NODE_WIDTH = 150
NODE_HEIGHT = 62

# Below this the graph is not worth drawing
MIN_GRAPH_NODES = 3

SHORT = "short"
LONG = "long"


class GraphError(ContentError):
    """Exception raised when the pattern graph references unknown or invalid nodes."""
    pass


@dataclass(frozen=True)
class PatternNode:
    slug: str
    name: str
    chapter_id: int
    number: str
    difficulty: int


@dataclass(frozen=True)
class PatternEdge:
    source: str
    target: str
    kind: str


@dataclass(frozen=True)
class PositionedNode:
    slug: str
    name: str
    chapter_id: int
    number: str
    difficulty: int
    column: int
    row: int
    x: float
    y: float


@dataclass(frozen=True)
class ClassifiedEdge:
    source: str
    target: str
    kind: str
    bidirectional: bool
    span: str


@dataclass(frozen=True)
class GraphLayout:
    nodes: Tuple[PositionedNode, ...]
    edges: Tuple[ClassifiedEdge, ...]
    width: float
    height: float
    column_width: float
    node_width: float = NODE_WIDTH
    node_height: float = NODE_HEIGHT

    def to_dict(self) -> Dict:
        return {
            "nodes": [asdict(node) for node in self.nodes],
            "edges": [
                {
                    "from": edge.source,
                    "to": edge.target,
                    "kind": edge.kind,
                    "bidirectional": edge.bidirectional,
                    "span": edge.span,
                }
                for edge in self.edges
            ],
            "width": self.width,
            "height": self.height,
            "column_width": self.column_width,
            "node_width": self.node_width,
            "node_height": self.node_height,
        }

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def nodes_from_documents(patterns: Sequence[Document]) -> List[PatternNode]:
    return [
        PatternNode(
            slug=doc.slug,
            name=doc.title,
            chapter_id=doc.chapter or 0,
            number=doc.number or "",
            difficulty=DIFFICULTY_LEVELS.get(doc.difficulty or "", 0),
        )
        for doc in patterns
        if doc.kind == PATTERN
    ]


def edges_from_documents(patterns: Sequence[Document]) -> List[PatternEdge]:
    return [
        PatternEdge(source=doc.slug, target=rel.slug, kind=rel.kind)
        for doc in patterns
        if doc.kind == PATTERN
        for rel in doc.related
    ]


def select_edges(
    edges: Sequence[PatternEdge],
    known_slugs: Set[str],
    shown_slugs: Set[str],
) -> List[PatternEdge]:
    """Keep the edges whose endpoints are both shown in this build.

    Args:
        edges: Declared relationships of every loaded pattern
        known_slugs: Slugs of every loaded pattern, drafts included
        shown_slugs: Slugs of the patterns in this build

    Returns:
        Edges between shown patterns; edges touching an excluded draft are dropped

    Raises:
        GraphError: If an edge references a slug no pattern file declares
    """
    kept = []
    for edge in edges:
        if edge.source not in known_slugs:
            raise GraphError(f"Edge {edge.source} -> {edge.target} starts at an unknown pattern",
                             slug=edge.source)
        if edge.target not in known_slugs:
            raise GraphError(f"Edge {edge.source} -> {edge.target} points to an unknown pattern",
                             slug=edge.target)
        if edge.source in shown_slugs and edge.target in shown_slugs:
            kept.append(edge)

    if len(kept) < len(edges):
        logger.info(f"Dropped {len(edges) - len(kept)} edge(s) touching unpublished patterns")
    return kept


def compute_layout(
    nodes: Sequence[PatternNode],
    edges: Sequence[PatternEdge],
    column_count: int = COLUMN_COUNT,
    side_padding: float = SIDE_PADDING,
    top_padding: float = TOP_PADDING,
    total_width: float = TOTAL_WIDTH,
    row_spacing: float = ROW_SPACING,
    bottom_padding: float = BOTTOM_PADDING,
) -> Optional[GraphLayout]:
    """Place nodes on a column grid and classify edges.

    Args:
        nodes: Pattern nodes (any order)
        edges: Declared relationships between node slugs
        column_count: Number of columns
        side_padding: Left/right margin
        top_padding: Top margin before the first row
        total_width: Drawing width
        row_spacing: Vertical distance between rows
        bottom_padding: Margin below the last row

    Returns:
        GraphLayout, or None when there are fewer than MIN_GRAPH_NODES nodes

    Raises:
        GraphError: If node slugs repeat, or an edge is a self loop, references
            an unknown slug or has an unknown kind
        ValueError: If the layout parameters are unusable
    """
    _check_parameters(column_count, side_padding, top_padding, total_width, row_spacing, bottom_padding)

    ordered = sorted(nodes, key=lambda n: (n.chapter_id, pattern_number_key(n.number), n.slug))
    known = _index_nodes(ordered)
    _check_edges(edges, known)

    if len(ordered) < MIN_GRAPH_NODES:
        logger.info(f"Skipping graph layout: {len(ordered)} pattern(s), need {MIN_GRAPH_NODES}")
        return None

    column_width = (total_width - 2 * side_padding) / column_count
    placed: Dict[str, PositionedNode] = {}
    positioned: List[PositionedNode] = []
    for node, (column, row) in zip(ordered, _grid_positions(len(ordered), column_count)):
        item = PositionedNode(
            slug=node.slug,
            name=node.name,
            chapter_id=node.chapter_id,
            number=node.number,
            difficulty=node.difficulty,
            column=column,
            row=row,
            x=side_padding + column * column_width,
            y=top_padding + row * row_spacing,
        )
        placed[node.slug] = item
        positioned.append(item)

    max_rows = max(node.row for node in positioned) + 1
    height = top_padding + max_rows * row_spacing + bottom_padding

    classified = _classify_edges(edges, placed)
    logger.info(f"Graph layout: {len(positioned)} nodes, {len(classified)} edges, "
                f"{column_count} columns")

    return GraphLayout(
        nodes=tuple(positioned),
        edges=tuple(classified),
        width=total_width,
        height=height,
        column_width=column_width,
    )


def _grid_positions(count: int, column_count: int) -> List[Tuple[int, int]]:
    """(column, row) for each of ``count`` ordered nodes, balanced within one."""
    base, extra = divmod(count, column_count)
    positions = []
    for column in range(column_count):
        size = base + (1 if column < extra else 0)
        positions.extend((column, row) for row in range(size))
    return positions


def _index_nodes(nodes: Sequence[PatternNode]) -> Dict[str, PatternNode]:
    known: Dict[str, PatternNode] = {}
    for node in nodes:
        if node.slug in known:
            raise GraphError("Duplicate pattern node", slug=node.slug)
        known[node.slug] = node
    return known


def _check_edges(edges: Sequence[PatternEdge], known: Dict[str, PatternNode]) -> None:
    for edge in edges:
        if edge.kind not in RELATIONSHIP_KINDS:
            raise GraphError(f"Unknown relationship kind '{edge.kind}' on edge "
                             f"{edge.source} -> {edge.target}", slug=edge.source)
        if edge.source not in known:
            raise GraphError(f"Edge {edge.source} -> {edge.target} starts at an unknown pattern",
                             slug=edge.source)
        if edge.target not in known:
            raise GraphError(f"Edge {edge.source} -> {edge.target} points to an unknown pattern",
                             slug=edge.target)
        if edge.source == edge.target:
            raise GraphError("Pattern relates to itself", slug=edge.source)


def _classify_edges(edges: Sequence[PatternEdge], placed: Dict[str, PositionedNode]) -> List[ClassifiedEdge]:
    # (kind, unordered pair) -> index in result; first occurrence fixes direction
    seen: Dict[Tuple[str, Tuple[str, str]], int] = {}
    result: List[ClassifiedEdge] = []

    for edge in edges:
        key = (edge.kind, tuple(sorted((edge.source, edge.target))))
        if key in seen:
            existing = result[seen[key]]
            if existing.source == edge.target and not existing.bidirectional:
                result[seen[key]] = ClassifiedEdge(
                    source=existing.source,
                    target=existing.target,
                    kind=existing.kind,
                    bidirectional=True,
                    span=existing.span,
                )
            continue

        a, b = placed[edge.source], placed[edge.target]
        span = SHORT if a.column == b.column and abs(a.row - b.row) == 1 else LONG
        seen[key] = len(result)
        result.append(ClassifiedEdge(
            source=edge.source,
            target=edge.target,
            kind=edge.kind,
            bidirectional=False,
            span=span,
        ))

    return result


def _check_parameters(column_count, side_padding, top_padding, total_width, row_spacing, bottom_padding) -> None:
    if column_count < 1:
        raise ValueError(f"column_count must be >= 1, got {column_count}")
    if min(side_padding, top_padding, bottom_padding) < 0:
        raise ValueError("Padding values must not be negative")
    if row_spacing <= 0:
        raise ValueError(f"row_spacing must be positive, got {row_spacing}")
    if total_width - 2 * side_padding <= 0:
        raise ValueError(f"side_padding {side_padding} leaves no room in width {total_width}")
