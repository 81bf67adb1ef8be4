"""
Build artifacts: settings, one-pass build, on-disk writer and process cache.

Usage:
    from artifacts import ArtifactBuilder, Settings, build_artifacts

    settings = Settings.from_env()
    artifacts = build_artifacts(settings)
    stats = ArtifactBuilder(settings.output_dir).write(artifacts)
"""

from .settings import BUILD_MODES, DEVELOPMENT, PRODUCTION, Settings
from .builder import ArtifactBuilder, BuildArtifacts, build_artifacts
from .cache import ArtifactCache, CacheNotBuiltError

__all__ = [
    "BUILD_MODES",
    "DEVELOPMENT",
    "PRODUCTION",
    "Settings",
    "ArtifactBuilder",
    "BuildArtifacts",
    "build_artifacts",
    "ArtifactCache",
    "CacheNotBuiltError",
]
