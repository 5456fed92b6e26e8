"""
Response normalization.

Flattens a nested query response into a NormMap: one record per identifiable
entity, with nested entities replaced by their keys.

    query { posts { id __typename title } }
    {"posts": [{"id": "123", "__typename": "Post", "title": "T"}]}

becomes

    {
        "ROOT_QUERY": {"posts": ["Post;123"]},
        "Post;123": {"id": "123", "__typename": "Post", "title": "T"},
    }

Invariants:
    - Fields are stored under their response key (alias, else name)
    - A key selected several times is written once, from all its selections
    - Excluded selections are neither read nor written
    - A selected field absent from the response is stored as None
    - Objects without an entity key are embedded inline in their parent
    - The response and the document are never modified
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Mapping, Optional

from graphql.language import DocumentNode, SelectionSetNode

from .document import QueryContext
from .keys import DEFAULT_POLICY, ROOT_KEY, KeyPolicy, resolve_key
from .types import EntityKey, NormFieldValue, NormMap, NormObj, Variables

logger = logging.getLogger(__name__)


def normalize(
    document: DocumentNode,
    variables: Optional[Variables] = None,
    data: Optional[Mapping[str, Any]] = None,
    *,
    policy: KeyPolicy = DEFAULT_POLICY,
    operation_name: Optional[str] = None,
) -> NormMap:
    """Normalize a query response.

    Args:
        document: Parsed query document
        variables: Operation variables
        data: Response data; None for an aborted response
        policy: Entity key policy
        operation_name: Operation to use if the document has several

    Returns:
        New NormMap; empty when data is None

    Raises:
        InvalidDocumentError: If the document cannot be handled
        VariableError: If a directive references an unknown variable
    """
    ctx = QueryContext.prepare(document, variables, operation_name, policy)

    if data is None:
        logger.debug("No response data, nothing to normalize")
        return {}

    norm_map: NormMap = {}
    _normalize_entity(
        ROOT_KEY, ctx.root_selection_set, data, ctx, norm_map, ctx.root_type_name
    )

    logger.debug("Normalized response into %d entities", len(norm_map))
    return norm_map


def _normalize_entity(
    key: EntityKey,
    selection_set: SelectionSetNode,
    obj: Mapping[str, Any],
    ctx: QueryContext,
    norm_map: NormMap,
    type_name: Optional[str] = None,
) -> None:
    # Record first so the parent precedes its children; later writes win.
    record = norm_map.setdefault(key, {})
    record.update(_normalize_fields(selection_set, obj, ctx, norm_map, type_name))


def _normalize_fields(
    selection_set: SelectionSetNode,
    obj: Mapping[str, Any],
    ctx: QueryContext,
    norm_map: NormMap,
    type_name: Optional[str] = None,
) -> NormObj:
    fields: NormObj = {}
    type_name = obj.get(ctx.policy.type_name_field) or type_name

    for name, group in ctx.collect_fields(selection_set, type_name).items():
        # Fields from fragments that cannot be matched are written only if sent
        if not group.matched and name not in obj:
            continue

        value = obj.get(name)
        sub_selection = group.selection_set
        if sub_selection is None:
            fields[name] = copy.deepcopy(value)
        else:
            fields[name] = _normalize_value(value, sub_selection, ctx, norm_map)

    return fields


def _normalize_value(
    value: Any,
    selection_set: SelectionSetNode,
    ctx: QueryContext,
    norm_map: NormMap,
) -> NormFieldValue:
    if value is None:
        return None

    if isinstance(value, list):
        return [_normalize_value(item, selection_set, ctx, norm_map) for item in value]

    if not isinstance(value, Mapping):
        return copy.deepcopy(value)

    key = resolve_key(value, ctx.policy)
    if key is None:
        return _normalize_fields(selection_set, value, ctx, norm_map)

    _normalize_entity(key, selection_set, value, ctx, norm_map)
    return key
