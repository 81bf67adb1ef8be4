"""Tests for the HTTP API (Backend/app.py)."""

import pytest
from fastapi.testclient import TestClient

from artifacts.cache import ArtifactCache
from artifacts.settings import Settings
from Backend import app as app_module
from searchindex.index_builder import deserialize_index

from conftest import write_post


def make_client(monkeypatch, content_dir, tmp_path, build_mode="production"):
    settings = Settings(content_dir=content_dir, output_dir=tmp_path / "out", build_mode=build_mode)
    monkeypatch.setattr(app_module, "cache", ArtifactCache(settings))
    return TestClient(app_module.app)


@pytest.fixture
def client(monkeypatch, content_dir, tmp_path):
    with make_client(monkeypatch, content_dir, tmp_path) as test_client:
        yield test_client


@pytest.fixture
def dev_client(monkeypatch, content_dir, tmp_path):
    with make_client(monkeypatch, content_dir, tmp_path, build_mode="development") as test_client:
        yield test_client


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["mode"] == "production"
        assert len(data["index"]) == 64


class TestSearchIndexEndpoint:
    def test_serves_payload_with_cache_headers(self, client):
        response = client.get("/api/search-index")
        assert response.status_code == 200
        assert response.headers["cache-control"] == "public, max-age=31536000, immutable"
        assert response.headers["etag"].startswith('"')
        index = deserialize_index(response.content)
        assert len(index) == 7

    def test_not_modified(self, client):
        etag = client.get("/api/search-index").headers["etag"]
        response = client.get("/api/search-index", headers={"If-None-Match": etag})
        assert response.status_code == 304


class TestSearchEndpoint:
    def test_search(self, client):
        response = client.get("/api/search", params={"q": "caching"})
        assert response.status_code == 200
        data = response.json()
        assert data["results"][0]["slug"] == "caching-strategies"
        assert data["total"] == len(data["results"])

    def test_stop_word_query(self, client):
        assert client.get("/api/search", params={"q": "the"}).json()["total"] == 0

    def test_empty_query(self, client):
        assert client.get("/api/search").json()["results"] == []

    def test_limit_validation(self, client):
        assert client.get("/api/search", params={"q": "caching", "limit": 0}).status_code == 422


class TestTagEndpoints:
    def test_list_tags(self, client):
        tags = client.get("/api/tags").json()
        assert tags[0] == {"slug": "ai", "label": "ai", "count": 2}

    def test_tag_documents(self, client):
        data = client.get("/api/tags/ai").json()
        assert data["tag"]["count"] == 2
        assert [doc["slug"] for doc in data["documents"]] == ["caching-strategies", "agent-tools"]

    def test_unknown_tag(self, client):
        assert client.get("/api/tags/unknown").status_code == 404

    def test_spellings_sharing_a_slug_resolve_together(self, monkeypatch, content_dir, tmp_path):
        write_post(content_dir, "tool-roundup", "Tool Roundup", "2024-04-01", "Roundup", tags=["AI Tools"])
        write_post(content_dir, "tool-notes", "Tool Notes", "2024-05-01", "Notes", tags=["ai-tools"])
        with make_client(monkeypatch, content_dir, tmp_path) as test_client:
            listed = [tag for tag in test_client.get("/api/tags").json() if tag["slug"] == "ai-tools"]
            data = test_client.get("/api/tags/ai-tools").json()
        assert listed == [{"slug": "ai-tools", "label": "ai tools", "count": 2}]
        assert data["tag"]["count"] == 2
        assert [doc["slug"] for doc in data["documents"]] == ["tool-notes", "tool-roundup"]


class TestDocumentEndpoints:
    def test_post_attributes(self, client):
        data = client.get("/api/posts/caching-strategies/attributes").json()
        assert data["kind"] == "post"
        assert data["reading_time_minutes"] == 1
        assert [item["id"] for item in data["outline"]] == ["why-cache", "eviction"]

    def test_pattern_attributes(self, client):
        data = client.get("/api/patterns/review-loop/attributes").json()
        assert data["signals"] == ["Bugs slip through", "Reviews take too long"]

    def test_unknown_document(self, client):
        assert client.get("/api/posts/missing/attributes").status_code == 404
        assert client.get("/api/pages/anything/attributes").status_code == 404

    def test_related_posts(self, client):
        data = client.get("/api/posts/agent-tools/related").json()
        assert data[0]["slug"] == "caching-strategies"
        assert len(data) == 2

    def test_related_unknown_post(self, client):
        assert client.get("/api/posts/missing/related").status_code == 404


class TestPatternEndpoints:
    def test_graph(self, client):
        layout = client.get("/api/patterns/graph").json()["layout"]
        assert [node["slug"] for node in layout["nodes"]] == [
            "project-map", "context-budget", "task-slicing", "review-loop",
        ]
        assert all("from" in edge and "to" in edge for edge in layout["edges"])

    def test_chapters(self, client):
        chapters = client.get("/api/chapters").json()
        assert len(chapters) == 6
        assert chapters[0]["pattern_count"] == 1
        assert chapters[3]["pattern_count"] == 0

    def test_chapter_detail(self, client):
        data = client.get("/api/chapters/context").json()
        assert data["chapter"]["number"] == 2
        assert data["chapter"]["pattern_count"] == 1
        assert [p["slug"] for p in data["patterns"]] == ["context-budget"]
        assert data["patterns"][0]["chapter_name"] == "Context"

    def test_empty_chapter(self, client):
        data = client.get("/api/chapters/steering").json()
        assert data["patterns"] == []

    def test_unknown_chapter(self, client):
        assert client.get("/api/chapters/unknown").status_code == 404

    def test_related_patterns(self, client):
        data = client.get("/api/patterns/task-slicing/related").json()
        assert [(item["relationship"], item["pattern"]["slug"]) for item in data] == [
            ("enables", "context-budget"),
            ("composes", "review-loop"),
        ]
        assert data[1]["pattern"]["chapter_name"] == "Verification"

    def test_related_unknown_pattern(self, client):
        assert client.get("/api/patterns/missing/related").status_code == 404

    def test_graph_node_size(self, client):
        layout = client.get("/api/patterns/graph").json()["layout"]
        assert (layout["node_width"], layout["node_height"]) == (150, 62)


class TestRebuild:
    def test_forbidden_in_production(self, client):
        assert client.post("/api/rebuild").status_code == 403

    def test_rebuild_in_development(self, dev_client, content_dir):
        write_post(content_dir, "new-post", "New Post", "2025-01-01", "Fresh")
        response = dev_client.post("/api/rebuild")
        assert response.status_code == 200
        assert response.json()["posts"] == 4

    def test_failed_rebuild_keeps_serving(self, dev_client, content_dir):
        before = dev_client.get("/health").json()["index"]
        (content_dir / "posts" / "broken.mdx").write_text("---\ntitle: x\n---\nbody\n", encoding="utf-8")
        response = dev_client.post("/api/rebuild")
        assert response.status_code == 422
        assert "date" in response.json()["detail"]
        assert dev_client.get("/health").json()["index"] == before
