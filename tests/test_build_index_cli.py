"""Tests for the Ingress/build_index.py command."""

import pytest

from Ingress import build_index

from conftest import write_pattern


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CONTENT_DIR", "OUTPUT_DIR", "BUILD_MODE", "READING_SPEED_WPM", "SEARCH_BODY_FORMAT",
                 "GRAPH_COLUMN_COUNT", "GRAPH_SIDE_PADDING", "GRAPH_TOP_PADDING", "LOAD_WORKERS"):
        monkeypatch.delenv(name, raising=False)


class TestBuildIndexCommand:
    def test_successful_build(self, content_dir, tmp_path, capsys):
        output_dir = tmp_path / "out"
        exit_code = build_index.main([
            "--content-dir", str(content_dir),
            "--output-dir", str(output_dir),
            "--verbose",
            "--sample-query", "caching",
        ])
        assert exit_code == 0
        assert (output_dir / "search-index.json").exists()
        out = capsys.readouterr().out
        assert "BUILD COMPLETE" in out
        assert "Caching Strategies" in out

    def test_missing_content_dir(self, tmp_path, capsys):
        exit_code = build_index.main(["--content-dir", str(tmp_path / "nope"),
                                      "--output-dir", str(tmp_path / "out")])
        assert exit_code == 1
        assert "Directory not found" in capsys.readouterr().out

    def test_content_error_exits_nonzero(self, content_dir, tmp_path, capsys):
        write_pattern(content_dir, "orphan", "Orphan", 6, "6.1", related=[("nowhere", "enables")])
        exit_code = build_index.main(["--content-dir", str(content_dir),
                                      "--output-dir", str(tmp_path / "out")])
        assert exit_code == 1
        assert "Content error" in capsys.readouterr().out
        assert not (tmp_path / "out" / "search-index.json").exists()

    def test_bad_configuration(self, monkeypatch, content_dir, capsys):
        monkeypatch.setenv("BUILD_MODE", "staging")
        assert build_index.main(["--content-dir", str(content_dir)]) == 1
        assert "Configuration error" in capsys.readouterr().out

    @pytest.mark.parametrize("name,value", [
        ("GRAPH_COLUMN_COUNT", "0"),
        ("GRAPH_SIDE_PADDING", "600"),
        ("LOAD_WORKERS", "0"),
    ])
    def test_bad_graph_configuration(self, monkeypatch, content_dir, tmp_path, capsys, name, value):
        monkeypatch.setenv(name, value)
        exit_code = build_index.main(["--content-dir", str(content_dir),
                                      "--output-dir", str(tmp_path / "out")])
        assert exit_code == 1
        assert "Configuration error" in capsys.readouterr().out
        assert not (tmp_path / "out").exists()
