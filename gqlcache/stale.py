"""
Stale field tracking.

StaleEntities records which fields of which entities the caller considers
out of date, typically after a mutation. Denormalize reports the markers it
meets; this module only creates and removes them.

Example:
    >>> stale = mark_stale({}, "Person;1", ["age"])
    >>> stale
    {'Person;1': {'age': True}}
    >>> clear_stale(stale, "Person;1", ["age"])
    {}

Invariants:
    - Inputs are never modified
    - An entity with no stale field has no entry at all
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .types import EntityKey, NormMap, StaleEntities

logger = logging.getLogger(__name__)


def _copy(stale_entities: StaleEntities) -> StaleEntities:
    return {key: dict(fields) for key, fields in stale_entities.items()}


def mark_stale(
    stale_entities: StaleEntities,
    entity_key: EntityKey,
    field_names: Iterable[str],
) -> StaleEntities:
    """Mark fields of an entity stale.

    Args:
        stale_entities: Current markers
        entity_key: Entity to mark
        field_names: Fields to mark

    Returns:
        Updated markers
    """
    updated = _copy(stale_entities)
    fields = updated.setdefault(entity_key, {})
    for name in field_names:
        fields[name] = True
    if not fields:
        del updated[entity_key]
    return updated


def clear_stale(
    stale_entities: StaleEntities,
    entity_key: EntityKey,
    field_names: Optional[Iterable[str]] = None,
) -> StaleEntities:
    """Remove stale markers from an entity.

    Args:
        stale_entities: Current markers
        entity_key: Entity to clear
        field_names: Fields to clear; None clears all of them

    Returns:
        Updated markers
    """
    if entity_key not in stale_entities:
        return _copy(stale_entities)

    updated = _copy(stale_entities)
    if field_names is None:
        del updated[entity_key]
        return updated

    fields = updated[entity_key]
    for name in field_names:
        fields.pop(name, None)
    if not any(fields.values()):
        del updated[entity_key]
    return updated


def update_stale(stale_entities: StaleEntities, norm_map: NormMap) -> StaleEntities:
    """Clear markers for every field a fresh NormMap has refreshed.

    Args:
        stale_entities: Current markers
        norm_map: Newly normalized data

    Returns:
        Updated markers
    """
    updated = stale_entities
    for key, record in norm_map.items():
        if key in updated:
            updated = clear_stale(updated, key, record.keys())
    if updated is stale_entities:
        updated = _copy(stale_entities)

    logger.debug(
        "Stale entities after refresh: %d (was %d)", len(updated), len(stale_entities)
    )
    return updated


def is_stale(
    stale_entities: StaleEntities,
    entity_key: EntityKey,
    field_name: str,
) -> bool:
    """Whether a single field of an entity is marked stale."""
    return bool(stale_entities.get(entity_key, {}).get(field_name, False))
