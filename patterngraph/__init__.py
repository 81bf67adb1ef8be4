"""
Pattern relationship graph: node/edge extraction and deterministic layout.
"""

from .layout import (
    COLUMN_COUNT,
    MIN_GRAPH_NODES,
    NODE_HEIGHT,
    NODE_WIDTH,
    SIDE_PADDING,
    TOP_PADDING,
    TOTAL_WIDTH,
    ClassifiedEdge,
    GraphError,
    GraphLayout,
    PatternEdge,
    PatternNode,
    PositionedNode,
    compute_layout,
    edges_from_documents,
    nodes_from_documents,
    select_edges,
)

__all__ = [
    "COLUMN_COUNT",
    "MIN_GRAPH_NODES",
    "NODE_HEIGHT",
    "NODE_WIDTH",
    "SIDE_PADDING",
    "TOP_PADDING",
    "TOTAL_WIDTH",
    "ClassifiedEdge",
    "GraphError",
    "GraphLayout",
    "PatternEdge",
    "PatternNode",
    "PositionedNode",
    "compute_layout",
    "edges_from_documents",
    "nodes_from_documents",
    "select_edges",
]
