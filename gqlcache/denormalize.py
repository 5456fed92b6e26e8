"""
Response reconstruction from a NormMap.

Walks the query against the flat entity table, following references, and
reports how trustworthy the result is:
- partial: a selected field or referenced entity is missing from the table
- stale: a selected field of a visited entity is marked stale

Missing fields are omitted from the returned data; unresolved entities in a
list are dropped from the list. Either way the result is partial.

Fields selected several times under one response key are read once, with
their sub-selections combined.

Staleness is checked per (entity, field) as fields are read. A reference
field that is stale marks its owner, not the referenced entity; the
referenced entity's own stale fields are found when it is visited.

Invariants:
    - Never raises for missing data
    - Inputs are never modified
    - Inline objects are read from the parent record, not looked up
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Mapping, Optional, Set

from graphql.language import DocumentNode, SelectionSetNode

from .document import QueryContext
from .keys import DEFAULT_POLICY, ROOT_KEY, KeyPolicy
from .types import (
    DenormalizeResult,
    EntityKey,
    NormMap,
    NormObj,
    StaleEntities,
    Variables,
)

logger = logging.getLogger(__name__)

# Marks a value that could not be resolved
_MISSING = object()


def denormalize(
    document: DocumentNode,
    variables: Optional[Variables] = None,
    norm_map: Optional[NormMap] = None,
    stale_entities: Optional[StaleEntities] = None,
    *,
    policy: KeyPolicy = DEFAULT_POLICY,
    operation_name: Optional[str] = None,
) -> DenormalizeResult:
    """Reconstruct query data from a NormMap.

    Args:
        document: Parsed query document
        variables: Operation variables
        norm_map: Entity table
        stale_entities: Stale markers per entity and field
        policy: Entity key policy
        operation_name: Operation to use if the document has several

    Returns:
        DenormalizeResult with data and partial/stale status

    Raises:
        InvalidDocumentError: If the document cannot be handled
        VariableError: If a directive references an unknown variable
    """
    ctx = QueryContext.prepare(document, variables, operation_name, policy)
    reader = _Reader(ctx, norm_map or {}, stale_entities or {})

    data = reader.read_root()
    result = DenormalizeResult(
        data=data,
        partial=reader.partial,
        stale=bool(reader.stale_keys),
        stale_entities=frozenset(reader.stale_keys),
        visited_keys=frozenset(reader.visited),
    )

    logger.debug(
        "Denormalized %d entities (partial=%s, stale=%s)",
        len(result.visited_keys),
        result.partial,
        result.stale,
    )
    return result


class _Reader:
    """State of one denormalize walk."""

    def __init__(
        self,
        ctx: QueryContext,
        norm_map: NormMap,
        stale_entities: StaleEntities,
    ) -> None:
        self.ctx = ctx
        self.norm_map = norm_map
        self.stale_entities = stale_entities
        self.partial = False
        self.stale_keys: Set[EntityKey] = set()
        self.visited: Set[EntityKey] = set()

    def read_root(self) -> Dict[str, Any]:
        # A missing root record reads like an empty one
        record = self.norm_map.get(ROOT_KEY)
        if record is None:
            record = {}
        else:
            self.visited.add(ROOT_KEY)
        return self.read_fields(
            self.ctx.root_selection_set, record, ROOT_KEY, self.ctx.root_type_name
        )

    def read_entity(self, key: EntityKey, selection_set: SelectionSetNode) -> Any:
        record = self.norm_map.get(key)
        if record is None:
            logger.debug("Entity %s is not cached", key)
            self.partial = True
            return _MISSING
        self.visited.add(key)
        return self.read_fields(
            selection_set, record, key, self.ctx.policy.type_name_of(key)
        )

    def read_fields(
        self,
        selection_set: SelectionSetNode,
        record: NormObj,
        key: Optional[EntityKey],
        type_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        type_name = record.get(self.ctx.policy.type_name_field) or type_name
        stale_fields: Mapping[str, bool] = (
            self.stale_entities.get(key, {}) if key is not None else {}
        )

        for name, group in self.ctx.collect_fields(selection_set, type_name).items():
            # Unmatched fragment fields are optional: read if cached, never partial
            if not group.matched and name not in record:
                continue

            if stale_fields.get(name):
                self.stale_keys.add(key)

            if name not in record:
                self.partial = True
                continue

            value = record[name]
            sub_selection = group.selection_set
            if sub_selection is None:
                result[name] = copy.deepcopy(value)
                continue

            resolved = self.read_value(value, sub_selection)
            if resolved is not _MISSING:
                result[name] = resolved

        return result

    def read_value(self, value: Any, selection_set: SelectionSetNode) -> Any:
        if value is None:
            return None

        if isinstance(value, list):
            items = []
            for item in value:
                resolved = self.read_value(item, selection_set)
                if resolved is not _MISSING:
                    items.append(resolved)
            return items

        if isinstance(value, dict):
            return self.read_fields(selection_set, value, None)

        if isinstance(value, str):
            return self.read_entity(value, selection_set)

        return copy.deepcopy(value)
