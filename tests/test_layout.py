"""Tests for patterngraph.layout."""

import json
from collections import Counter

import pytest

from corpus.models import Document, PatternRelationship
from patterngraph.layout import (
    LONG,
    NODE_HEIGHT,
    NODE_WIDTH,
    SHORT,
    GraphError,
    PatternEdge,
    PatternNode,
    compute_layout,
    edges_from_documents,
    nodes_from_documents,
    select_edges,
)


def make_nodes(count, per_chapter=3):
    return [
        PatternNode(
            slug=f"pattern-{i}",
            name=f"Pattern {i}",
            chapter_id=i // per_chapter + 1,
            number=f"{i // per_chapter + 1}.{i % per_chapter + 1}",
            difficulty=1,
        )
        for i in range(count)
    ]


class TestComputeLayout:
    def test_deterministic(self):
        nodes = make_nodes(10)
        edges = [PatternEdge("pattern-0", "pattern-5", "enables")]
        first = compute_layout(nodes, edges, column_count=4)
        second = compute_layout(list(reversed(nodes)), edges, column_count=4)
        assert first.to_json() == second.to_json()

    def test_coordinates(self):
        layout = compute_layout(make_nodes(6), [], column_count=3)
        column_width = (1200 - 2 * 70) / 3
        assert layout.column_width == column_width
        first, second, third = layout.nodes[:3]
        assert (first.x, first.y) == (70, 80)
        assert (second.column, second.row) == (0, 1)
        assert second.y == 180
        assert third.column == 1
        assert third.x == 70 + column_width
        assert layout.width == 1200
        assert layout.height == 80 + 2 * 100 + 40

    @pytest.mark.parametrize("count,columns", [(3, 6), (7, 3), (13, 6), (20, 4)])
    def test_columns_balanced(self, count, columns):
        layout = compute_layout(make_nodes(count), [], column_count=columns)
        sizes = Counter(node.column for node in layout.nodes)
        occupied = [sizes.get(column, 0) for column in range(columns)]
        assert max(occupied) - min(occupied) <= 1
        assert sum(occupied) == count

    def test_reading_order(self):
        nodes = make_nodes(6, per_chapter=2)
        layout = compute_layout(nodes, [], column_count=2)
        assert [node.slug for node in layout.nodes] == [f"pattern-{i}" for i in range(6)]

    def test_numeric_number_order(self):
        nodes = [
            PatternNode("ten", "Ten", 1, "1.10", 1),
            PatternNode("nine", "Nine", 1, "1.9", 1),
            PatternNode("one", "One", 1, "1.1", 1),
        ]
        layout = compute_layout(nodes, [], column_count=1)
        assert [node.slug for node in layout.nodes] == ["one", "nine", "ten"]

    def test_fewer_than_three_nodes_skipped(self):
        assert compute_layout(make_nodes(2), []) is None
        assert compute_layout([], []) is None

    def test_unknown_target_is_fatal(self):
        edges = [PatternEdge("pattern-0", "missing", "enables")]
        with pytest.raises(GraphError) as exc_info:
            compute_layout(make_nodes(5), edges)
        assert exc_info.value.slug == "missing"

    def test_unknown_target_fatal_even_when_skipped(self):
        with pytest.raises(GraphError):
            compute_layout(make_nodes(1), [PatternEdge("pattern-0", "missing", "enables")])

    def test_unknown_source_is_fatal(self):
        with pytest.raises(GraphError):
            compute_layout(make_nodes(5), [PatternEdge("missing", "pattern-0", "enables")])

    def test_self_loop_is_fatal(self):
        with pytest.raises(GraphError):
            compute_layout(make_nodes(5), [PatternEdge("pattern-1", "pattern-1", "composes")])

    def test_unknown_kind_is_fatal(self):
        with pytest.raises(GraphError):
            compute_layout(make_nodes(5), [PatternEdge("pattern-0", "pattern-1", "requires")])

    def test_duplicate_node_is_fatal(self):
        nodes = make_nodes(3) + make_nodes(1)
        with pytest.raises(GraphError):
            compute_layout(nodes, [])

    @pytest.mark.parametrize("kwargs", [
        {"column_count": 0},
        {"side_padding": 700},
        {"row_spacing": 0},
        {"top_padding": -1},
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            compute_layout(make_nodes(5), [], **kwargs)


class TestEdgeClassification:
    def test_short_and_long_spans(self):
        # 6 nodes, 3 columns: column 0 holds pattern-0 and pattern-1
        edges = [
            PatternEdge("pattern-0", "pattern-1", "enables"),
            PatternEdge("pattern-0", "pattern-2", "enables"),
        ]
        layout = compute_layout(make_nodes(6), edges, column_count=3)
        assert [edge.span for edge in layout.edges] == [SHORT, LONG]

    def test_same_column_far_rows_is_long(self):
        edges = [PatternEdge("pattern-0", "pattern-2", "composes")]
        layout = compute_layout(make_nodes(3), edges, column_count=1)
        assert layout.edges[0].span == LONG

    def test_reverse_edge_marks_bidirectional(self):
        edges = [
            PatternEdge("pattern-0", "pattern-3", "enables"),
            PatternEdge("pattern-3", "pattern-0", "enables"),
        ]
        layout = compute_layout(make_nodes(6), edges)
        assert len(layout.edges) == 1
        edge = layout.edges[0]
        assert (edge.source, edge.target) == ("pattern-0", "pattern-3")
        assert edge.bidirectional is True

    def test_duplicate_edges_dropped(self):
        edges = [PatternEdge("pattern-0", "pattern-3", "enables")] * 2
        layout = compute_layout(make_nodes(6), edges)
        assert len(layout.edges) == 1
        assert layout.edges[0].bidirectional is False

    def test_different_kinds_kept_separately(self):
        edges = [
            PatternEdge("pattern-0", "pattern-3", "enables"),
            PatternEdge("pattern-3", "pattern-0", "contrasts"),
        ]
        layout = compute_layout(make_nodes(6), edges)
        assert [edge.kind for edge in layout.edges] == ["enables", "contrasts"]
        assert not any(edge.bidirectional for edge in layout.edges)


class TestFromDocuments:
    def test_nodes_and_edges(self):
        patterns = [
            Document("pattern", "context-budget", "Context Budget", "", "x",
                     extra={"chapter": 2, "number": "2.1", "difficulty": "advanced",
                            "related": [PatternRelationship("task-slicing", "enables")]}),
            Document("pattern", "task-slicing", "Task Slicing", "", "x",
                     extra={"chapter": 3, "number": "3.1", "difficulty": "beginner"}),
            Document("post", "a-post", "A Post", "", "x"),
        ]
        nodes = nodes_from_documents(patterns)
        assert [node.slug for node in nodes] == ["context-budget", "task-slicing"]
        assert nodes[0].difficulty == 3
        assert edges_from_documents(patterns) == [PatternEdge("context-budget", "task-slicing", "enables")]

    def test_layout_dict_uses_from_to(self):
        layout = compute_layout(make_nodes(3), [PatternEdge("pattern-0", "pattern-1", "enables")])
        data = json.loads(layout.to_json())
        assert data["edges"][0]["from"] == "pattern-0"
        assert data["edges"][0]["to"] == "pattern-1"
        assert len(data["nodes"]) == 3


class TestSelectEdges:
    def test_edges_to_excluded_patterns_dropped(self):
        edges = [
            PatternEdge("a-one", "b-two", "enables"),
            PatternEdge("a-one", "d-draft", "enables"),
            PatternEdge("d-draft", "c-three", "composes"),
        ]
        kept = select_edges(
            edges,
            known_slugs={"a-one", "b-two", "c-three", "d-draft"},
            shown_slugs={"a-one", "b-two", "c-three"},
        )
        assert kept == [PatternEdge("a-one", "b-two", "enables")]

    def test_all_edges_kept_when_everything_shown(self):
        edges = [PatternEdge("a-one", "d-draft", "enables")]
        slugs = {"a-one", "d-draft"}
        assert select_edges(edges, slugs, slugs) == edges

    def test_undeclared_slug_is_fatal(self):
        with pytest.raises(GraphError) as exc_info:
            select_edges([PatternEdge("a-one", "typo", "enables")], {"a-one"}, {"a-one"})
        assert exc_info.value.slug == "typo"

    def test_undeclared_source_is_fatal(self):
        with pytest.raises(GraphError):
            select_edges([PatternEdge("typo", "a-one", "enables")], {"a-one"}, {"a-one"})


class TestLayoutOutput:
    def test_node_size_in_output(self):
        data = compute_layout(make_nodes(3), []).to_dict()
        assert data["node_width"] == NODE_WIDTH == 150
        assert data["node_height"] == NODE_HEIGHT == 62
