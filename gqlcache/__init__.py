"""
gqlcache - Normalized client-side cache for GraphQL query data.

This package flattens query responses into an entity table and reads
queries back out of it:
- normalize: Response -> NormMap (entities keyed by type and id)
- denormalize: NormMap -> response, with partial/stale status
- merge: Fold a new NormMap into an existing one
- mark_stale / clear_stale: Field-level staleness markers

Example:
    >>> from gqlcache import denormalize, merge, normalize, parse_document
    >>>
    >>> query = parse_document("{ post { id __typename title } }")
    >>> cache = merge({}, normalize(query, {}, {"post": {"id": "1", "__typename": "Post", "title": "T"}}))
    >>> cache["Post;1"]
    {'id': '1', '__typename': 'Post', 'title': 'T'}
    >>> denormalize(query, {}, cache, {}).partial
    False

Invariants:
    - Every operation is pure; inputs are never modified
    - Documents are graphql-core ASTs; fragments are inlined by the engine
    - Missing data is reported, never raised

Version: 1.0.0
"""

__version__ = "1.0.0"

from .denormalize import denormalize
from .directives import is_included
from .document import FieldGroup, QueryContext, get_operation, parse_document, response_key
from .errors import GqlCacheError, InvalidDocumentError, VariableError
from .keys import DEFAULT_POLICY, ROOT_KEY, KeyPolicy, resolve_key
from .norm_map import merge, merge_all
from .normalize import normalize
from .stale import clear_stale, is_stale, mark_stale, update_stale
from .types import (
    DenormalizeResult,
    EntityKey,
    NormMap,
    NormObj,
    StaleEntities,
    Variables,
)

__all__ = [
    # Version
    "__version__",
    # Engine
    "normalize",
    "denormalize",
    "DenormalizeResult",
    # Keys
    "KeyPolicy",
    "DEFAULT_POLICY",
    "ROOT_KEY",
    "resolve_key",
    # Documents
    "parse_document",
    "get_operation",
    "response_key",
    "QueryContext",
    "FieldGroup",
    "is_included",
    # Tables
    "merge",
    "merge_all",
    "mark_stale",
    "clear_stale",
    "update_stale",
    "is_stale",
    # Types
    "EntityKey",
    "NormMap",
    "NormObj",
    "StaleEntities",
    "Variables",
    # Errors
    "GqlCacheError",
    "InvalidDocumentError",
    "VariableError",
]
