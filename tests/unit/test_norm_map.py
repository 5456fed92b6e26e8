"""
Unit tests for NormMap merging.

Tests cover:
- Field-level last-write-wins
- Entities present in one input only
- Idempotence and immutability
"""

import copy

from gqlcache import merge, normalize, parse_document
from gqlcache.norm_map import merge_all


class TestMerge:
    """Tests for merge."""

    def test_keeps_untouched_entities(self):
        """Entities only in base are carried through."""
        base = {"A;1": {"id": "1"}, "B;1": {"id": "1"}}
        incoming = {"A;1": {"id": "1", "name": "x"}}

        result = merge(base, incoming)

        assert result["B;1"] == {"id": "1"}
        assert result["A;1"] == {"id": "1", "name": "x"}

    def test_adds_new_entities(self):
        """Entities only in incoming are added."""
        result = merge({"A;1": {"id": "1"}}, {"C;1": {"id": "1"}})
        assert set(result) == {"A;1", "C;1"}

    def test_incoming_fields_win(self):
        """Overlapping fields take the incoming value."""
        base = {"A;1": {"name": "old", "age": 1}}
        incoming = {"A;1": {"name": "new"}}

        assert merge(base, incoming) == {"A;1": {"name": "new", "age": 1}}

    def test_null_overwrites(self):
        """An incoming null replaces a stored value."""
        assert merge({"A;1": {"name": "x"}}, {"A;1": {"name": None}}) == {"A;1": {"name": None}}

    def test_inline_objects_replaced(self):
        """Inline objects are replaced, not merged."""
        base = {"A;1": {"stats": {"views": 1, "likes": 2}}}
        incoming = {"A;1": {"stats": {"views": 5}}}

        assert merge(base, incoming)["A;1"]["stats"] == {"views": 5}

    def test_idempotent(self):
        """merge(a, a) == a."""
        a = {"ROOT_QUERY": {"p": "P;1"}, "P;1": {"id": "1", "tags": ["x"]}}
        assert merge(a, a) == a

    def test_deterministic(self):
        """Same inputs give equal outputs."""
        a = {"A;1": {"x": 1}}
        b = {"A;1": {"y": 2}, "B;1": {"z": 3}}
        assert merge(a, b) == merge(a, b)

    def test_inputs_not_modified(self):
        """Neither input is modified, and the result does not alias them."""
        base = {"A;1": {"name": "old"}}
        incoming = {"A;1": {"age": 1}, "B;1": {"id": "1"}}
        before = (copy.deepcopy(base), copy.deepcopy(incoming))

        result = merge(base, incoming)
        result["A;1"]["name"] = "changed"
        result["B;1"]["id"] = "changed"

        assert (base, incoming) == before

    def test_merges_independent_normalizations(self, posts_query, posts_data):
        """Two queries touching one entity combine into one record."""
        query = parse_document("{ post { id __typename body } }")
        other = normalize(query, {}, {"post": {"id": "123", "__typename": "Post", "body": "B"}})

        result = merge(normalize(posts_query, {}, posts_data), other)

        assert result["Post;123"]["title"] == "T"
        assert result["Post;123"]["body"] == "B"
        assert result["ROOT_QUERY"] == {"posts": ["Post;123"], "post": "Post;123"}


class TestMergeAll:
    """Tests for merge_all."""

    def test_left_to_right(self):
        """Later maps win."""
        maps = [{"A;1": {"v": 1}}, {"A;1": {"v": 2}}, {"A;1": {"v": 3, "w": 0}}]
        assert merge_all(maps) == {"A;1": {"v": 3, "w": 0}}

    def test_empty(self):
        """No maps merge to an empty map."""
        assert merge_all([]) == {}
