"""
Build and serving configuration.

All values come from environment variables (a ``.env`` file at the project
root is loaded first). ``Settings.from_env()`` is called once at startup;
the resulting object is immutable and passed explicitly to whatever needs it.

BUILD_MODE selects the per-mode strategies in one place:
    development - drafts are loaded, the rebuild endpoint is enabled
    production  - drafts are skipped, the rebuild endpoint is disabled
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from corpus.attributes import DEFAULT_WORDS_PER_MINUTE
from patterngraph.layout import COLUMN_COUNT, SIDE_PADDING, TOP_PADDING, TOTAL_WIDTH
from searchindex.index_builder import ScoringWeights
from searchindex.text import BodyFormatter, get_body_formatter

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CONTENT_DIR = BASE_DIR / "content"
DEFAULT_OUTPUT_DIR = BASE_DIR / "output" / "artifacts"

DEVELOPMENT = "development"
PRODUCTION = "production"
BUILD_MODES = (DEVELOPMENT, PRODUCTION)


@dataclass(frozen=True)
class Settings:
    content_dir: Path = DEFAULT_CONTENT_DIR
    output_dir: Path = DEFAULT_OUTPUT_DIR
    build_mode: str = PRODUCTION
    reading_speed_wpm: int = DEFAULT_WORDS_PER_MINUTE
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    body_format: str = "markdown"
    graph_column_count: int = COLUMN_COUNT
    graph_side_padding: float = SIDE_PADDING
    graph_top_padding: float = TOP_PADDING
    load_workers: Optional[int] = None

    def __post_init__(self):
        if self.build_mode not in BUILD_MODES:
            raise ValueError(f"Invalid BUILD_MODE '{self.build_mode}'. Must be one of: {list(BUILD_MODES)}")
        if self.reading_speed_wpm <= 0:
            raise ValueError(f"READING_SPEED_WPM must be positive, got {self.reading_speed_wpm}")
        if self.graph_column_count < 1:
            raise ValueError(f"GRAPH_COLUMN_COUNT must be >= 1, got {self.graph_column_count}")
        if self.graph_side_padding < 0 or self.graph_top_padding < 0:
            raise ValueError("GRAPH_SIDE_PADDING and GRAPH_TOP_PADDING must not be negative")
        if TOTAL_WIDTH - 2 * self.graph_side_padding <= 0:
            raise ValueError(f"GRAPH_SIDE_PADDING {self.graph_side_padding} leaves no room "
                             f"in graph width {TOTAL_WIDTH}")
        if self.load_workers is not None and self.load_workers < 1:
            raise ValueError(f"LOAD_WORKERS must be >= 1, got {self.load_workers}")
        # Fail at startup, not at first index build
        get_body_formatter(self.body_format)

    @property
    def is_development(self) -> bool:
        return self.build_mode == DEVELOPMENT

    @property
    def include_drafts(self) -> bool:
        return self.is_development

    @property
    def allow_rebuild(self) -> bool:
        return self.is_development

    @property
    def body_formatter(self) -> BodyFormatter:
        return get_body_formatter(self.body_format)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, load_env_file: bool = True) -> "Settings":
        """Read settings from the environment.

        Args:
            environ: Mapping to read instead of os.environ (tests)
            load_env_file: Load BASE_DIR/.env into os.environ first

        Raises:
            ValueError: If a value has the wrong type or is out of range
        """
        if environ is None:
            if load_env_file:
                env_path = BASE_DIR / ".env"
                if env_path.exists():
                    load_dotenv(env_path)
                    logger.info(f"✓ Loaded environment from {env_path}")
            environ = os.environ

        def get(name: str, default):
            value = environ.get(name)
            return default if value is None or value.strip() == "" else value.strip()

        try:
            workers = get("LOAD_WORKERS", None)
            return cls(
                content_dir=Path(get("CONTENT_DIR", DEFAULT_CONTENT_DIR)),
                output_dir=Path(get("OUTPUT_DIR", DEFAULT_OUTPUT_DIR)),
                build_mode=str(get("BUILD_MODE", PRODUCTION)).lower(),
                reading_speed_wpm=int(get("READING_SPEED_WPM", DEFAULT_WORDS_PER_MINUTE)),
                weights=ScoringWeights(
                    title=int(get("SEARCH_WEIGHT_TITLE", 3)),
                    excerpt=int(get("SEARCH_WEIGHT_EXCERPT", 2)),
                    body=int(get("SEARCH_WEIGHT_BODY", 1)),
                    tags=int(get("SEARCH_WEIGHT_TAGS", 1)),
                ),
                body_format=str(get("SEARCH_BODY_FORMAT", "markdown")).lower(),
                graph_column_count=int(get("GRAPH_COLUMN_COUNT", COLUMN_COUNT)),
                graph_side_padding=float(get("GRAPH_SIDE_PADDING", SIDE_PADDING)),
                graph_top_padding=float(get("GRAPH_TOP_PADDING", TOP_PADDING)),
                load_workers=int(workers) if workers is not None else None,
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid configuration: {exc}") from exc
