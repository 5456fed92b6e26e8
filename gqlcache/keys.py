r"""
Entity key derivation.

An entity key identifies one logical entity across independently normalized
payloads. It is the type name followed by the identifying field value(s),
joined by a separator:

    {"__typename": "Post", "id": "123"}  ->  "Post;123"

Separators and backslashes inside id values are escaped with a backslash, so
composite keys stay unambiguous:

    ("a;b", "c")  ->  "Edition;a\;b;c"
    ("a", "b;c")  ->  "Edition;a;b\;c"

Objects without a type name or without every identifying field get no key
and are stored inline in their parent record.

The policy also decides which type-conditioned fragments apply to an object
(see KeyPolicy.fragment_matches), since there is no schema to consult.

Invariants:
    - The same object always yields the same key
    - Keys of different types or different id values never collide
    - ROOT_KEY is a fixed convention, not configuration
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, FrozenSet, Mapping, Optional, Tuple

from .types import EntityKey

if TYPE_CHECKING:
    from .config import Settings

ROOT_KEY: EntityKey = "ROOT_QUERY"

_ESCAPE = "\\"


@dataclass(frozen=True)
class KeyPolicy:
    """How entities are identified.

    Attributes:
        type_name_field: Field holding the concrete type name
        id_fields: Identifying fields used for every type by default
        id_fields_by_type: Per-type override of the identifying fields
        separator: String placed between key components
        possible_types: Concrete members of each interface or union. When
            empty, fragments on unknown types are matched heuristically.

    Example:
        >>> policy = KeyPolicy(id_fields_by_type={"Book": ("isbn",)})
        >>> resolve_key({"__typename": "Book", "isbn": "0-13"}, policy)
        'Book;0-13'
    """

    type_name_field: str = "__typename"
    id_fields: Tuple[str, ...] = ("id",)
    id_fields_by_type: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    separator: str = ";"
    possible_types: Mapping[str, FrozenSet[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate policy."""
        if not self.separator:
            raise ValueError("Key separator cannot be empty")
        if _ESCAPE in self.separator:
            raise ValueError("Key separator cannot contain a backslash")
        if not self.id_fields:
            raise ValueError("At least one id field is required")

    def id_fields_for(self, type_name: str) -> Tuple[str, ...]:
        """Get identifying fields for a type."""
        return self.id_fields_by_type.get(type_name, self.id_fields)

    def fragment_matches(self, condition: str, type_name: Optional[str]) -> Optional[bool]:
        """Whether a fragment on ``condition`` applies to an object.

        Args:
            condition: Type named by the fragment's type condition
            type_name: Concrete type of the object, if known

        Returns:
            True if it applies, False if it does not, None if it cannot be
            told without a schema (no possible_types configured and the
            condition is not the object's own type)
        """
        if type_name is None:
            return False
        if condition == type_name:
            return True
        members = self.possible_types.get(condition)
        if members is not None:
            return type_name in members
        if self.possible_types:
            return False
        return None

    def type_name_of(self, key: EntityKey) -> str:
        """Type name component of an entity key."""
        return key.split(self.separator, 1)[0]

    @classmethod
    def from_settings(cls, settings: Settings) -> KeyPolicy:
        """Build a policy from environment settings."""
        return cls(
            type_name_field=settings.type_name_field,
            id_fields=(settings.id_field,),
            separator=settings.key_separator,
            possible_types={
                name: frozenset(members)
                for name, members in settings.possible_types.items()
            },
        )


DEFAULT_POLICY = KeyPolicy()


def _escape(value: str, separator: str) -> str:
    return value.replace(_ESCAPE, _ESCAPE * 2).replace(separator, _ESCAPE + separator)


def resolve_key(obj: Mapping[str, Any], policy: KeyPolicy = DEFAULT_POLICY) -> Optional[EntityKey]:
    """Derive the entity key of a response object.

    Args:
        obj: Response object (as selected by the query)
        policy: Identity policy

    Returns:
        Entity key, or None if the object cannot be identified
    """
    type_name = obj.get(policy.type_name_field)
    if type_name is None:
        return None

    parts = [str(type_name)]
    for id_field in policy.id_fields_for(str(type_name)):
        value = obj.get(id_field)
        if value is None:
            return None
        parts.append(_escape(str(value), policy.separator))

    return policy.separator.join(parts)
