from typing import Any, Dict, Optional
import json

from graphql import parse, print_ast
from graphql.language import (
    FieldNode,
    InlineFragmentNode,
    NameNode,
    OperationDefinitionNode,
    SelectionSetNode,
    Visitor,
    visit,
)

TYPENAME_FIELD = "__typename"


def _has_typename(selection_set: SelectionSetNode) -> bool:
    return any(
        isinstance(s, FieldNode) and s.alias is None and s.name.value == TYPENAME_FIELD
        for s in selection_set.selections
    )


def _typename_field() -> FieldNode:
    return FieldNode(
        alias=None,
        name=NameNode(value=TYPENAME_FIELD),
        arguments=(),
        directives=(),
        selection_set=None,
    )


class _TypenameAdder(Visitor):
    """
    Appends ``__typename`` to object selection sets. Returns new nodes rather
    than editing the parsed ones, so ``visit`` rebuilds the path above them.
    """

    def enter_selection_set(self, node, key, parent, path, ancestors):
        # the operation root has no typename to record, and an inline fragment
        # shares its parent's object, which already asks for it
        if isinstance(parent, (OperationDefinitionNode, InlineFragmentNode)):
            return None
        if _has_typename(node):
            return None
        return SelectionSetNode(selections=(*node.selections, _typename_field()))


def add_typename(document: str) -> str:
    """
    Return ``document`` with ``__typename`` requested on every object
    selection, except the operation root.

    Normalizing a result needs ``__typename`` plus ``id`` on each object, and
    callers should not have to remember to ask for it.
    """
    return print_ast(visit(parse(document), _TypenameAdder()))


def query_key(document: str, variables: Optional[Dict[str, Any]]) -> str:
    return document + "\n" + json.dumps(variables or {}, sort_keys=True, default=str)
