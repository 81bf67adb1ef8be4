from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

# Add parent directory to path for package imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from artifacts import ArtifactCache, BuildArtifacts, Settings
from corpus import (
    CHAPTERS,
    ContentError,
    Document,
    chapter_by_slug,
    documents_with_tag,
    get_chapter,
    get_taxonomy_entry,
    patterns_by_chapter,
    related_documents,
    related_patterns,
)
from corpus.models import KIND_DIRECTORIES, PATTERN, POST
from searchindex import search

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_PORT = 8800
SEARCH_INDEX_CACHE_CONTROL = "public, max-age=31536000, immutable"
MAX_SEARCH_LIMIT = 100

# URL segment -> document kind ("posts" -> "post")
KIND_SEGMENTS = {segment: kind for kind, segment in KIND_DIRECTORIES.items()}

settings = Settings.from_env()
cache = ArtifactCache(settings)


class SearchHit(BaseModel):
    slug: str
    kind: str
    title: str
    excerpt: str
    date: Optional[str] = None
    score: int


class SearchResponse(BaseModel):
    query: str
    total: int
    results: List[SearchHit]


class TaxonomyItem(BaseModel):
    slug: str
    label: str
    count: int = Field(..., ge=1)


class DocumentSummary(BaseModel):
    slug: str
    kind: str
    title: str
    excerpt: str
    date: Optional[str] = None
    tags: List[str] = []


class TagDocumentsResponse(BaseModel):
    tag: TaxonomyItem
    documents: List[DocumentSummary]


class OutlineItem(BaseModel):
    id: str
    text: str
    level: int


class AttributesResponse(BaseModel):
    slug: str
    kind: str
    reading_time_minutes: int = Field(..., ge=1)
    outline: List[OutlineItem]
    signals: List[str]


class ChapterItem(BaseModel):
    number: int
    name: str
    slug: str
    description: str
    pattern_count: int


class PatternSummary(BaseModel):
    slug: str
    name: str
    intent: str
    number: str
    chapter: int
    chapter_name: Optional[str] = None
    difficulty: str


class ChapterDetail(BaseModel):
    chapter: ChapterItem
    patterns: List[PatternSummary]


class RelatedPatternItem(BaseModel):
    relationship: str
    note: str = ""
    pattern: PatternSummary


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A content defect raises here and the server refuses to start
    cache.build()
    yield


app = FastAPI(title="Content Index", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


def _summary(document: Document) -> DocumentSummary:
    return DocumentSummary(
        slug=document.slug,
        kind=document.kind,
        title=document.title,
        excerpt=document.excerpt,
        date=document.published_at.isoformat() if document.published_at else None,
        tags=list(document.tags),
    )


def _pattern_summary(pattern: Document) -> PatternSummary:
    chapter = get_chapter(pattern.chapter)
    return PatternSummary(
        slug=pattern.slug,
        name=pattern.title,
        intent=pattern.excerpt,
        number=pattern.number or "",
        chapter=pattern.chapter or 0,
        chapter_name=chapter.name if chapter else None,
        difficulty=pattern.difficulty or "",
    )


def _resolve_kind(segment: str) -> str:
    kind = KIND_SEGMENTS.get(segment)
    if kind is None:
        raise HTTPException(status_code=404, detail=f"Unknown content kind '{segment}'.")
    return kind


def current_artifacts() -> BuildArtifacts:
    return cache.get()


@app.get("/health")
def health_check() -> Dict[str, str]:
    status = {"status": "ok", "mode": cache.settings.build_mode}
    if cache.is_built:
        status["index"] = current_artifacts().search_index_fingerprint
    return status


@app.get("/api/search-index")
def get_search_index(request: Request) -> Response:
    """Serialized search index for client-side search."""
    artifacts = current_artifacts()
    etag = f'"{artifacts.search_index_fingerprint}"'
    headers = {"Cache-Control": SEARCH_INDEX_CACHE_CONTROL, "ETag": etag}

    if request.headers.get("if-none-match") == etag:
        return Response(status_code=304, headers=headers)

    return Response(
        content=artifacts.search_index_payload,
        media_type="application/json",
        headers=headers,
    )


@app.get("/api/search", response_model=SearchResponse)
def handle_search(
    q: str = Query("", max_length=1000, description="Free-text query."),
    limit: Optional[int] = Query(None, ge=1, le=MAX_SEARCH_LIMIT),
) -> SearchResponse:
    results = search(current_artifacts().search_index, q, limit=limit)
    logger.info(f"Search '{q[:100]}': {len(results)} result(s)")
    return SearchResponse(
        query=q,
        total=len(results),
        results=[SearchHit(**result.to_dict()) for result in results],
    )


@app.get("/api/tags", response_model=List[TaxonomyItem])
def list_tags() -> List[TaxonomyItem]:
    return [
        TaxonomyItem(slug=entry.slug, label=entry.label, count=entry.count)
        for entry in current_artifacts().taxonomy
    ]


@app.get("/api/tags/{tag_slug}", response_model=TagDocumentsResponse)
def get_tag(tag_slug: str) -> TagDocumentsResponse:
    artifacts = current_artifacts()
    entry = get_taxonomy_entry(artifacts.taxonomy, tag_slug)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Tag '{tag_slug}' not found.")

    documents = documents_with_tag(artifacts.documents, tag_slug)
    return TagDocumentsResponse(
        tag=TaxonomyItem(slug=entry.slug, label=entry.label, count=entry.count),
        documents=[_summary(doc) for doc in documents],
    )


@app.get("/api/{kind_segment}/{slug}/attributes", response_model=AttributesResponse)
def get_attributes(kind_segment: str, slug: str) -> AttributesResponse:
    kind = _resolve_kind(kind_segment)
    attributes = current_artifacts().get_attributes(kind, slug)
    if attributes is None:
        raise HTTPException(status_code=404, detail=f"Document '{kind_segment}/{slug}' not found.")

    data = attributes.to_dict()
    return AttributesResponse(slug=slug, kind=kind, **data)


@app.get("/api/posts/{slug}/related", response_model=List[DocumentSummary])
def get_related_posts(slug: str, limit: int = Query(3, ge=1, le=12)) -> List[DocumentSummary]:
    artifacts = current_artifacts()
    if artifacts.get_document(POST, slug) is None:
        raise HTTPException(status_code=404, detail=f"Post '{slug}' not found.")
    return [_summary(doc) for doc in related_documents(artifacts.posts, slug, limit)]


@app.get("/api/patterns/graph")
def get_pattern_graph() -> Dict:
    """Pattern graph layout; ``layout`` is null when the graph is skipped."""
    graph = current_artifacts().graph
    return {"layout": graph.to_dict() if graph else None}


@app.get("/api/chapters", response_model=List[ChapterItem])
def list_chapters() -> List[ChapterItem]:
    patterns = list(current_artifacts().patterns)
    return [
        _chapter_item(chapter, len(patterns_by_chapter(patterns, chapter.number)))
        for chapter in CHAPTERS
    ]


@app.get("/api/chapters/{chapter_slug}", response_model=ChapterDetail)
def get_chapter_detail(chapter_slug: str) -> ChapterDetail:
    """Chapter metadata with its patterns in (number, slug) order."""
    chapter = chapter_by_slug(chapter_slug)
    if chapter is None:
        raise HTTPException(status_code=404, detail=f"Chapter '{chapter_slug}' not found.")

    patterns = patterns_by_chapter(list(current_artifacts().patterns), chapter.number)
    return ChapterDetail(
        chapter=_chapter_item(chapter, len(patterns)),
        patterns=[_pattern_summary(pattern) for pattern in patterns],
    )


@app.get("/api/patterns/{slug}/related", response_model=List[RelatedPatternItem])
def get_related_patterns(slug: str) -> List[RelatedPatternItem]:
    artifacts = current_artifacts()
    if artifacts.get_document(PATTERN, slug) is None:
        raise HTTPException(status_code=404, detail=f"Pattern '{slug}' not found.")
    return [
        RelatedPatternItem(
            relationship=item.relationship.kind,
            note=item.relationship.note,
            pattern=_pattern_summary(item.document),
        )
        for item in related_patterns(artifacts.patterns, slug)
    ]


def _chapter_item(chapter, pattern_count: int) -> ChapterItem:
    return ChapterItem(
        number=chapter.number,
        name=chapter.name,
        slug=chapter.slug,
        description=chapter.description,
        pattern_count=pattern_count,
    )


@app.post("/api/rebuild")
def handle_rebuild() -> Dict:
    """Rebuild artifacts from content (development mode only)."""
    if not cache.settings.allow_rebuild:
        raise HTTPException(status_code=403, detail="Rebuild is only available in development mode.")

    try:
        artifacts = cache.rebuild()
    except ContentError as exc:
        # The previous build stays active
        logger.error(f"Rebuild failed: {exc}")
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return {
        "status": "rebuilt",
        "posts": len(artifacts.posts),
        "patterns": len(artifacts.patterns),
        "index": artifacts.search_index_fingerprint,
    }


def run_server(host: str = "0.0.0.0", port: int = DEFAULT_PORT, reload: bool = False) -> None:
    import uvicorn

    uvicorn.run(
        "app:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    run_server(port=DEFAULT_PORT, reload=False)
