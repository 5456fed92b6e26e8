"""
Shared fixtures for gqlcache unit tests.

The posts scenario: a list of posts, each with an author entity, a scalar
title and a nullable list of comments.
"""

import pytest

from gqlcache import parse_document

POSTS_QUERY = """
query TestQuery {
  posts {
    id
    __typename
    author {
      id
      __typename
      name
    }
    title
    comments {
      id
      __typename
      commenter {
        id
        __typename
        name
      }
    }
  }
}
"""


@pytest.fixture
def posts_query():
    """Parsed posts query."""
    return parse_document(POSTS_QUERY)


@pytest.fixture
def posts_data():
    """Response to the posts query."""
    return {
        "posts": [
            {
                "id": "123",
                "__typename": "Post",
                "author": {"id": "1", "__typename": "Author", "name": "Ada"},
                "title": "T",
                "comments": None,
            }
        ]
    }


@pytest.fixture
def posts_norm_map():
    """NormMap of the posts response."""
    return {
        "ROOT_QUERY": {"posts": ["Post;123"]},
        "Post;123": {
            "id": "123",
            "__typename": "Post",
            "author": "Author;1",
            "title": "T",
            "comments": None,
        },
        "Author;1": {"id": "1", "__typename": "Author", "name": "Ada"},
    }
