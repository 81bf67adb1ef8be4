"""
Process-scoped artifact cache.

Built once at process start, read-only afterwards, replaced only by an
explicit ``rebuild()``. A rebuild computes a complete new artifact set before
swapping it in, so readers see either the old build or the new one, never a
mix. A failed rebuild leaves the previous build in place.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .builder import BuildArtifacts, build_artifacts
from .settings import Settings

logger = logging.getLogger(__name__)


class CacheNotBuiltError(RuntimeError):
    """Exception raised when artifacts are read before the first build."""
    pass


class ArtifactCache:
    """Holds the current BuildArtifacts for a process."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._artifacts: Optional[BuildArtifacts] = None
        self._lock = threading.Lock()

    @property
    def is_built(self) -> bool:
        return self._artifacts is not None

    def build(self) -> BuildArtifacts:
        """Build the artifacts unless already built; returns the current set."""
        with self._lock:
            if self._artifacts is None:
                self._artifacts = self._build()
            return self._artifacts

    def rebuild(self) -> BuildArtifacts:
        """Rebuild from content and swap the result in.

        Raises:
            ContentError: If the content has a defect (the old build is kept)
        """
        with self._lock:
            self._artifacts = self._build()
            return self._artifacts

    def get(self) -> BuildArtifacts:
        artifacts = self._artifacts
        if artifacts is None:
            raise CacheNotBuiltError("Artifacts not built yet. Call build() at startup.")
        return artifacts

    def _build(self) -> BuildArtifacts:
        logger.info(f"Building artifacts from {self.settings.content_dir} ({self.settings.build_mode})")
        artifacts = build_artifacts(self.settings)
        logger.info(
            f"✓ Artifacts ready: {len(artifacts.posts)} posts, {len(artifacts.patterns)} patterns, "
            f"index {artifacts.search_index_fingerprint[:12]}"
        )
        return artifacts
