"""
Body formatters applied before a document body is tokenized.

The formatter is a strategy picked once from configuration (see
``artifacts.settings``), never switched at call sites:

    markdown - strip markdown/MDX syntax (code blocks, tags, link targets, ...)
    raw      - index the body verbatim
"""

from __future__ import annotations

import re
from typing import Callable, Dict

BodyFormatter = Callable[[str], str]

_MARKDOWN_RULES = [
    # Fenced code blocks
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r"~~~[\s\S]*?~~~"), ""),
    # Inline code
    (re.compile(r"`[^`]*`"), ""),
    # HTML / MDX component tags
    (re.compile(r"<[^>]*>"), ""),
    # Heading markers
    (re.compile(r"^#{1,6}\s+", re.MULTILINE), ""),
    # Images before links, the link rule would keep the alt text otherwise
    (re.compile(r"!\[([^\]]*)\]\([^)]+\)"), ""),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    # Bold / italic; underscores only at word edges so snake_case survives
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),
    (re.compile(r"(?<!\w)__(.+?)__(?!\w)"), r"\1"),
    (re.compile(r"\*(.*?)\*"), r"\1"),
    (re.compile(r"(?<!\w)_(.+?)_(?!\w)"), r"\1"),
    (re.compile(r"\s+"), " "),
]


def strip_markdown(content: str) -> str:
    """Reduce markdown/MDX content to plain prose."""
    text = content or ""
    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def keep_raw(content: str) -> str:
    return content or ""


BODY_FORMATTERS: Dict[str, BodyFormatter] = {
    "markdown": strip_markdown,
    "raw": keep_raw,
}


def get_body_formatter(name: str) -> BodyFormatter:
    """Resolve a formatter by name.

    Raises:
        ValueError: If the name is not a known formatter
    """
    try:
        return BODY_FORMATTERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown body format '{name}'. Must be one of: {sorted(BODY_FORMATTERS)}"
        ) from None
