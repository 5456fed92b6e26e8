"""
Shared type aliases and result types for gqlcache.

The cache is made of plain nested dicts so it can be serialized with
``json`` as-is:

- NormMap: entity key -> NormObj
- NormObj: field name -> NormFieldValue
- StaleEntities: entity key -> field name -> stale flag

Invariants:
    - A reference field holds an entity key (str) or a list of them
    - A missing top-level entity means "unresolved", never an error
    - Entities absent from StaleEntities are not stale
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Union

EntityKey = str

Scalar = Union[str, int, float, bool, None]
NormFieldValue = Union[Scalar, List[Any], Dict[str, Any]]
NormObj = Dict[str, NormFieldValue]
NormMap = Dict[EntityKey, NormObj]

StaleEntities = Dict[EntityKey, Dict[str, bool]]
Variables = Mapping[str, Any]


@dataclass(frozen=True)
class DenormalizeResult:
    """Outcome of reading a query back out of a NormMap.

    Attributes:
        data: Reconstructed response; unresolved fields are omitted
        partial: Whether any selected entity or field was missing
        stale: Whether any selected field was marked stale
        stale_entities: Visited entity keys with at least one stale selected field
        visited_keys: Every entity key whose record was read
    """

    data: Dict[str, Any]
    partial: bool = False
    stale: bool = False
    stale_entities: FrozenSet[EntityKey] = field(default_factory=frozenset)
    visited_keys: FrozenSet[EntityKey] = field(default_factory=frozenset)
