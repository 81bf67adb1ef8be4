"""Shared fixtures: small on-disk content trees."""

from pathlib import Path
from textwrap import dedent

import pytest


def write_post(content_dir: Path, slug: str, title: str, date: str, excerpt: str,
               body: str = "Some body text.", tags=None, extra: str = "") -> Path:
    posts_dir = content_dir / "posts"
    posts_dir.mkdir(parents=True, exist_ok=True)
    tag_line = f"tags: [{', '.join(tags)}]\n" if tags else ""
    path = posts_dir / f"{slug}.mdx"
    path.write_text(
        f"---\ntitle: {title}\ndate: {date}\nexcerpt: {excerpt}\n{tag_line}{extra}---\n{body}\n",
        encoding="utf-8",
    )
    return path


def write_pattern(content_dir: Path, slug: str, name: str, chapter: int, number: str,
                  intent: str = "Do the thing well.", difficulty: str = "beginner",
                  related=None, body: str = "## Problem\n\nPattern body.", extra: str = "") -> Path:
    patterns_dir = content_dir / "patterns"
    patterns_dir.mkdir(parents=True, exist_ok=True)
    related_block = ""
    if related:
        related_block = "relatedPatterns:\n" + "".join(
            f"  - slug: {target}\n    type: {kind}\n" for target, kind in related
        )
    path = patterns_dir / f"{slug}.mdx"
    path.write_text(
        f"---\nname: {name}\nchapter: {chapter}\nnumber: \"{number}\"\nintent: {intent}\n"
        f"difficulty: {difficulty}\n{related_block}{extra}---\n{body}\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def content_dir(tmp_path):
    """Content tree with three posts and four patterns."""
    root = tmp_path / "content"
    write_post(root, "caching-strategies", "Caching Strategies", "2024-03-01",
               "Eviction and TTL patterns", tags=["Performance", "AI"],
               body=dedent("""
                   ## Why cache

                   Caching keeps hot data close. Caching also hides latency.

                   ## Eviction

                   LRU and TTL based eviction.
               """))
    write_post(root, "routing-basics", "Routing Basics", "2024-01-15",
               "How requests find handlers", tags=["Web"],
               body="Routes map paths to handlers.")
    write_post(root, "agent-tools", "Agent Tools", "2024-02-10",
               "Tools I use with coding agents", tags=["ai", "Tools"],
               body="A tour of agent tooling.")

    write_pattern(root, "context-budget", "Context Budget", 2, "2.1",
                  related=[("task-slicing", "enables")])
    write_pattern(root, "task-slicing", "Task Slicing", 3, "3.1",
                  related=[("context-budget", "enables"), ("review-loop", "composes")])
    write_pattern(root, "project-map", "Project Map", 1, "1.1",
                  related=[("context-budget", "enables")])
    write_pattern(root, "review-loop", "Review Loop", 5, "5.1", difficulty="advanced",
                  body=dedent("""
                      ## Signals

                      - Bugs slip through
                      - Reviews take too long

                      ## Solution

                      Review in small loops.
                  """))
    return root
