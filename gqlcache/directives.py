"""
Conditional inclusion directives.

Evaluates ``@skip(if: ...)`` and ``@include(if: ...)`` on a selection:
- @skip excludes the selection when its condition is true
- @include excludes the selection when its condition is false
- Both together: the selection is kept only if both keep it

Conditions may be boolean literals or variable references; both are
resolved to a plain bool before the verdict is taken.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from graphql.language import DirectiveNode, ValueNode, VariableNode
from graphql.utilities import value_from_ast_untyped

from .errors import InvalidDocumentError, VariableError
from .types import Variables

logger = logging.getLogger(__name__)

SKIP = "skip"
INCLUDE = "include"


def resolve_value(value_node: ValueNode, variables: Variables) -> Any:
    """Resolve an argument value, substituting variables.

    Raises:
        VariableError: If a top-level variable reference has no value
    """
    if isinstance(value_node, VariableNode):
        name = value_node.name.value
        if name not in variables:
            raise VariableError(name)
        return variables[name]
    return value_from_ast_untyped(value_node, dict(variables))


def _condition(directive: DirectiveNode, variables: Variables) -> bool:
    """Resolve the ``if`` argument of a skip/include directive."""
    name = directive.name.value
    for argument in directive.arguments or ():
        if argument.name.value == "if":
            value = resolve_value(argument.value, variables)
            if not isinstance(value, bool):
                raise InvalidDocumentError(
                    f"@{name}(if:) must be a boolean, got {type(value).__name__}"
                )
            return value
    raise InvalidDocumentError(f"@{name} requires an 'if' argument")


def is_included(
    directives: Optional[Sequence[DirectiveNode]],
    variables: Variables,
) -> bool:
    """Decide whether a selection takes part in traversal.

    Args:
        directives: Directives attached to the selection
        variables: Resolved operation variables

    Returns:
        False if @skip or @include excludes the selection

    Raises:
        InvalidDocumentError: If a condition is missing or not a boolean
        VariableError: If a condition references an unknown variable
    """
    included = True
    for directive in directives or ():
        name = directive.name.value
        if name == SKIP:
            included = included and not _condition(directive, variables)
        elif name == INCLUDE:
            included = included and _condition(directive, variables)
    return included
