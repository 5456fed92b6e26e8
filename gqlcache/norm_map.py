"""
Merging of entity tables.

Folds a freshly normalized NormMap into an existing one. Records are merged
one level deep: fields of the incoming record replace fields of the base
record, other base fields are kept. Inline objects are replaced wholesale.

Invariants:
    - Neither input is modified
    - Every entity of both inputs is in the result
    - merge(a, a) == a
"""

from __future__ import annotations

from typing import Iterable

from .types import NormMap


def merge(base: NormMap, incoming: NormMap) -> NormMap:
    """Merge two NormMaps, incoming fields winning on conflict.

    Args:
        base: Existing table
        incoming: Newer table

    Returns:
        New NormMap
    """
    merged: NormMap = {key: dict(record) for key, record in base.items()}
    for key, record in incoming.items():
        merged[key] = {**merged.get(key, {}), **record}
    return merged


def merge_all(norm_maps: Iterable[NormMap]) -> NormMap:
    """Fold several NormMaps left to right."""
    result: NormMap = {}
    for norm_map in norm_maps:
        result = merge(result, norm_map)
    return result
