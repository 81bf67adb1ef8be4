#!/usr/bin/env python3
"""
Build site content artifacts.

This script:
1. Loads posts and pattern entries (content/posts, content/patterns)
2. Computes reading time, outlines and pattern signals
3. Aggregates the tag taxonomy
4. Builds the serialized search index
5. Lays out the pattern relationship graph
6. Writes everything to the artifact directory

Any content defect (missing field, duplicate slug, unknown related pattern)
aborts the build with exit code 1.

Usage:
    python Ingress/build_index.py
    python Ingress/build_index.py --content-dir content --output-dir output/artifacts
    python Ingress/build_index.py --reset --mode development
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
from artifacts import BUILD_MODES, ArtifactBuilder, Settings, build_artifacts
from corpus.errors import ContentError
from searchindex import search


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Build search index, taxonomy and pattern graph from content files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Build with settings from the environment / .env
    python Ingress/build_index.py

    # Build from a specific content directory
    python Ingress/build_index.py --content-dir path/to/content

    # Include drafts and reset existing artifacts first
    python Ingress/build_index.py --mode development --reset

    # Verbose output with a sample query
    python Ingress/build_index.py --verbose --sample-query caching
        """
    )

    parser.add_argument(
        "--content-dir",
        type=Path,
        help="Content root containing posts/ and patterns/ (default: CONTENT_DIR)"
    )

    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Output directory for artifacts (default: OUTPUT_DIR)"
    )

    parser.add_argument(
        "--mode",
        choices=BUILD_MODES,
        help="Build mode (default: BUILD_MODE or production)"
    )

    parser.add_argument(
        "--reset",
        action="store_true",
        help="Remove existing artifacts before building"
    )

    parser.add_argument(
        "--sample-query",
        help="Run a query against the written index (with --verbose)"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show detailed output"
    )

    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"\n✗ Configuration error: {e}")
        return 1

    overrides = {}
    if args.content_dir:
        overrides["content_dir"] = args.content_dir
    if args.output_dir:
        overrides["output_dir"] = args.output_dir
    if args.mode:
        overrides["build_mode"] = args.mode
    settings = replace(settings, **overrides)

    print("\n" + "=" * 70)
    print("Content Artifact Builder")
    print("=" * 70)
    print(f"\nContent: {settings.content_dir}")
    print(f"Output:  {settings.output_dir}")
    print(f"Mode:    {settings.build_mode}")
    print("=" * 70)

    if not settings.content_dir.exists():
        print(f"\n✗ Error: Directory not found: {settings.content_dir}")
        return 1

    try:
        artifacts = build_artifacts(settings)
    except ContentError as e:
        print(f"\n✗ Content error: {e}")
        return 1
    except ValueError as e:
        print(f"\n✗ Build error: {e}")
        return 1

    builder = ArtifactBuilder(settings.output_dir)
    stats = builder.write(artifacts, clean_existing=args.reset)

    print(f"\n  ✓ Loaded {stats['posts_count']} posts, {stats['patterns_count']} patterns")
    print(f"  ✓ Taxonomy: {stats['tags_count']} tags")
    print(f"  ✓ Search index: {stats['index_entries']} entries, {stats['index_bytes']} bytes")
    if artifacts.graph:
        print(f"  ✓ Pattern graph: {stats['graph_nodes']} nodes, {stats['graph_edges']} edges")
    else:
        print("  ⚠ Pattern graph skipped (fewer than 3 patterns)")

    if args.verbose:
        print(f"    By Chapter: {stats['by_chapter']}")
        print(f"    Index fingerprint: {stats['index_fingerprint']}")
        for entry in artifacts.taxonomy[:5]:
            print(f"    • {entry.label} ({entry.count})")

        if args.sample_query:
            index = builder.read_search_index()
            results = search(index, args.sample_query, limit=5)
            print(f"\n  Sample query '{args.sample_query}': {len(results)} result(s)")
            for result in results:
                print(f"    • {result.entry.title} [{result.entry.kind}] score={result.score}")

    # Summary
    print("\n" + "=" * 70)
    print("BUILD COMPLETE")
    print("=" * 70)
    print(f"\nArtifacts location: {settings.output_dir}")
    print("  • search-index.json   - Search index")
    print("  • taxonomy.json       - Tag listing")
    print("  • attributes.json     - Reading time, outlines, signals")
    print("  • pattern-graph.json  - Pattern graph layout")
    print("  • manifest.json       - Build statistics")
    print("=" * 70 + "\n")

    return 0


if __name__ == "__main__":
    sys.exit(main())
