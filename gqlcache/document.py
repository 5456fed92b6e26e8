"""
Query document handling.

Turns a parsed graphql-core DocumentNode into what the normalize and
denormalize walks need:
- The selected operation and its variables (caller values + declared defaults)
- The fragment definitions of the document
- The included fields of a selection set, with fragments inlined

Fragment spreads and inline fragments are expanded here, at the point of the
spread. A type condition applies when the key policy says the walked type
matches it (see KeyPolicy.fragment_matches). Objects without a type name
take no type-conditioned fragment. Fields selected more than once under one
response key are grouped, and their sub-selections combined.

Invariants:
    - The document is never modified
    - Excluded selections (@skip/@include) are never collected
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from graphql import GraphQLSyntaxError, parse
from graphql.language import (
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    NamedTypeNode,
    OperationDefinitionNode,
    SelectionSetNode,
)
from graphql.utilities import value_from_ast_untyped

from .directives import is_included
from .errors import InvalidDocumentError
from .keys import DEFAULT_POLICY, KeyPolicy
from .types import Variables

logger = logging.getLogger(__name__)


def parse_document(source: str) -> DocumentNode:
    """Parse query source into a document.

    Raises:
        InvalidDocumentError: If the source is not valid GraphQL
    """
    try:
        return parse(source)
    except GraphQLSyntaxError as e:
        raise InvalidDocumentError(f"Cannot parse document: {e.message}") from e


def get_operation(
    document: DocumentNode,
    operation_name: Optional[str] = None,
) -> OperationDefinitionNode:
    """Select the operation to run.

    Args:
        document: Parsed document
        operation_name: Name of the operation, required if there are several

    Returns:
        The matching operation definition

    Raises:
        InvalidDocumentError: If no single operation matches
    """
    operations = [
        d for d in document.definitions if isinstance(d, OperationDefinitionNode)
    ]

    if operation_name is None:
        if len(operations) == 1:
            return operations[0]
        if not operations:
            raise InvalidDocumentError("Document contains no operation")
        raise InvalidDocumentError(
            f"Document contains {len(operations)} operations; an operation name is required"
        )

    for operation in operations:
        if operation.name and operation.name.value == operation_name:
            return operation
    raise InvalidDocumentError(
        f"Unknown operation '{operation_name}'", operation_name=operation_name
    )


def get_fragments(document: DocumentNode) -> Dict[str, FragmentDefinitionNode]:
    """Map fragment names to their definitions."""
    return {
        d.name.value: d
        for d in document.definitions
        if isinstance(d, FragmentDefinitionNode)
    }


def variables_with_defaults(
    operation: OperationDefinitionNode,
    variables: Optional[Variables],
) -> Dict[str, Any]:
    """Complete caller variables with the operation's declared defaults."""
    merged: Dict[str, Any] = dict(variables or {})
    for definition in operation.variable_definitions or ():
        name = definition.variable.name.value
        if name not in merged and definition.default_value is not None:
            merged[name] = value_from_ast_untyped(definition.default_value)
    return merged


def response_key(field_node: FieldNode) -> str:
    """Name a field is read and stored under: the alias, else the field name."""
    return field_node.alias.value if field_node.alias else field_node.name.value


@dataclass
class FieldGroup:
    """Field nodes sharing one response key.

    Attributes:
        nodes: Every included node selecting the key, in document order
        matched: False when every node was reached only through a fragment
            whose type condition could not be checked
    """

    nodes: List[FieldNode] = field(default_factory=list)
    matched: bool = False

    @property
    def selection_set(self) -> Optional[SelectionSetNode]:
        """Sub-selections of all nodes combined; None for leaf fields."""
        selection_sets = [n.selection_set for n in self.nodes if n.selection_set is not None]
        if not selection_sets:
            return None
        if len(selection_sets) == 1:
            return selection_sets[0]
        return SelectionSetNode(
            selections=tuple(s for ss in selection_sets for s in ss.selections)
        )


@dataclass(frozen=True)
class QueryContext:
    """Everything a walk needs besides the data itself.

    Attributes:
        operation: Selected operation
        fragments: Fragment definitions by name
        variables: Operation variables including defaults
        policy: Entity key policy
    """

    operation: OperationDefinitionNode
    fragments: Dict[str, FragmentDefinitionNode]
    variables: Dict[str, Any]
    policy: KeyPolicy

    @classmethod
    def prepare(
        cls,
        document: DocumentNode,
        variables: Optional[Variables] = None,
        operation_name: Optional[str] = None,
        policy: KeyPolicy = DEFAULT_POLICY,
    ) -> QueryContext:
        """Build a context for one normalize/denormalize call."""
        operation = get_operation(document, operation_name)
        return cls(
            operation=operation,
            fragments=get_fragments(document),
            variables=variables_with_defaults(operation, variables),
            policy=policy,
        )

    @property
    def root_selection_set(self) -> SelectionSetNode:
        return self.operation.selection_set

    @property
    def root_type_name(self) -> str:
        """Type name of the operation root ("Query", "Mutation", ...)."""
        return self.operation.operation.value.capitalize()

    def collect_fields(
        self,
        selection_set: SelectionSetNode,
        type_name: Optional[str] = None,
    ) -> Dict[str, FieldGroup]:
        """Group the included fields of a selection set by response key.

        Fragments are inlined. Fields selected more than once under the same
        response key end up in one group, so the value is walked once with
        the combined sub-selection.

        Args:
            selection_set: Selection set to expand
            type_name: Concrete type of the object being walked, if known

        Returns:
            Groups by response key, in document order

        Raises:
            InvalidDocumentError: On unknown or cyclic fragment spreads
        """
        groups: Dict[str, FieldGroup] = {}
        self._collect(selection_set, type_name, frozenset(), True, groups)
        return groups

    def _collect(
        self,
        selection_set: SelectionSetNode,
        type_name: Optional[str],
        spreads: FrozenSet[str],
        matched: bool,
        groups: Dict[str, FieldGroup],
    ) -> None:
        for selection in selection_set.selections:
            if not is_included(selection.directives, self.variables):
                continue

            if isinstance(selection, FieldNode):
                group = groups.setdefault(response_key(selection), FieldGroup())
                group.nodes.append(selection)
                group.matched = group.matched or matched

            elif isinstance(selection, InlineFragmentNode):
                verdict = self._type_applies(selection.type_condition, type_name)
                if verdict is not False:
                    self._collect(
                        selection.selection_set,
                        type_name,
                        spreads,
                        matched and verdict is True,
                        groups,
                    )

            elif isinstance(selection, FragmentSpreadNode):
                name = selection.name.value
                if name in spreads:
                    raise InvalidDocumentError(f"Fragment '{name}' spreads itself")
                fragment = self.fragments.get(name)
                if fragment is None:
                    raise InvalidDocumentError(f"Unknown fragment '{name}'")
                verdict = self._type_applies(fragment.type_condition, type_name)
                if verdict is not False:
                    self._collect(
                        fragment.selection_set,
                        type_name,
                        spreads | {name},
                        matched and verdict is True,
                        groups,
                    )

    def _type_applies(
        self,
        condition: Optional[NamedTypeNode],
        type_name: Optional[str],
    ) -> Optional[bool]:
        if condition is None:
            return True
        return self.policy.fragment_matches(condition.name.value, type_name)
