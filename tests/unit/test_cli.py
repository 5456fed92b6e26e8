"""
Unit tests for the gqlcache command-line tool.

Tests cover:
- normalize / denormalize / merge / stale commands
- Exit codes for partial results and invalid documents
"""

import json

import pytest

from gqlcache.cli import EXIT_PARTIAL, main
from gqlcache.config import Settings

from .conftest import POSTS_QUERY


@pytest.fixture
def settings():
    """Compact output, quiet logging."""
    return Settings(indent=0, log_level="ERROR")


@pytest.fixture
def files(tmp_path, posts_data, posts_norm_map):
    """Query, response and cache files on disk."""
    paths = {
        "query": tmp_path / "posts.graphql",
        "data": tmp_path / "response.json",
        "cache": tmp_path / "cache.json",
    }
    paths["query"].write_text(POSTS_QUERY)
    paths["data"].write_text(json.dumps({"data": posts_data}))
    paths["cache"].write_text(json.dumps(posts_norm_map))
    return {name: str(path) for name, path in paths.items()}


def run(capsys, settings, *argv):
    """Run the CLI, returning exit code and parsed stdout."""
    code = main(list(argv), settings)
    out = capsys.readouterr().out
    return code, json.loads(out) if out else None


class TestCli:
    """Tests for CLI commands."""

    def test_normalize(self, capsys, settings, files, posts_norm_map):
        """normalize accepts a data envelope and prints the NormMap."""
        code, output = run(
            capsys, settings, "normalize", "--query", files["query"], "--data", files["data"]
        )

        assert code == 0
        assert output == posts_norm_map

    def test_denormalize(self, capsys, settings, files, posts_data):
        """denormalize prints data and status."""
        code, output = run(
            capsys, settings, "denormalize", "--query", files["query"], "--cache", files["cache"]
        )

        assert code == 0
        assert output["data"] == posts_data
        assert output["partial"] is False
        assert output["visited_keys"] == ["Author;1", "Post;123", "ROOT_QUERY"]

    def test_denormalize_partial(self, capsys, settings, files, tmp_path, posts_norm_map):
        """A partial result exits with EXIT_PARTIAL."""
        del posts_norm_map["Author;1"]
        cache = tmp_path / "partial.json"
        cache.write_text(json.dumps(posts_norm_map))

        code, output = run(
            capsys, settings, "denormalize", "--query", files["query"], "--cache", str(cache)
        )

        assert code == EXIT_PARTIAL
        assert output["partial"] is True

    def test_denormalize_stale(self, capsys, settings, files, tmp_path):
        """Stale markers are read from --stale."""
        stale = tmp_path / "stale.json"
        stale.write_text(json.dumps({"Author;1": {"name": True}}))

        code, output = run(
            capsys,
            settings,
            "denormalize",
            "--query",
            files["query"],
            "--cache",
            files["cache"],
            "--stale",
            str(stale),
        )

        assert code == 0
        assert output["stale"] is True
        assert output["stale_entities"] == ["Author;1"]

    def test_merge(self, capsys, settings, tmp_path):
        """merge folds files left to right."""
        a = tmp_path / "a.json"
        b = tmp_path / "b.json"
        a.write_text(json.dumps({"A;1": {"x": 1, "y": 1}}))
        b.write_text(json.dumps({"A;1": {"x": 2}}))

        code, output = run(capsys, settings, "merge", str(a), str(b))

        assert code == 0
        assert output == {"A;1": {"x": 2, "y": 1}}

    def test_stale_mark_and_clear(self, capsys, settings, tmp_path):
        """stale mark/clear edit a stale file's content."""
        code, output = run(capsys, settings, "stale", "mark", "--key", "P;1", "-f", "age")
        assert code == 0
        assert output == {"P;1": {"age": True}}

        stale = tmp_path / "stale.json"
        stale.write_text(json.dumps(output))
        code, output = run(
            capsys, settings, "stale", "clear", "--key", "P;1", "--stale", str(stale)
        )
        assert code == 0
        assert output == {}

    def test_stale_mark_requires_field(self, capsys, settings):
        """Marking without fields is refused."""
        assert main(["stale", "mark", "--key", "P;1"], settings) == 1

    def test_invalid_document(self, capsys, settings, files, tmp_path):
        """Unparseable queries exit with 1."""
        query = tmp_path / "bad.graphql"
        query.write_text("{ posts ")

        code = main(["normalize", "--query", str(query), "--data", files["data"]], settings)

        assert code == 1
        assert "error:" in capsys.readouterr().err
