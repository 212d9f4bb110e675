"""
Node translator - converts AST nodes into query document fragments

Each node kind has one handler, selected from a dispatch table. Bracket
expressions are reclassified by their operators into conditions, condition
groups or expressions and handed to the matching handler.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional

from sqlquery.core.catalog import OperatorCatalog, OperatorCategory
from sqlquery.core.exceptions import (
    AmbiguousOperatorMix,
    EmptyAggregateOperands,
    InvalidConditionOperand,
    MalformedCondition,
    MalformedExpression,
    MaxDepthExceeded,
    MixedGroupOperators,
    NoValidOperator,
    UnaliasedExpression,
    UnknownReservedWord,
    UnsupportedNodeKind,
)
from sqlquery.sql.ast_nodes import AstNode, NodeKind

logger = logging.getLogger(__name__)

DEFAULT_RESOURCE = "t"
DEFAULT_MAX_DEPTH = 64

_INTEGER = re.compile(r"^\s*[+-]?\d+\s*$")
_NUMBER = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


class NodeTranslator:
    """
    Recursive AST translator

    Holds no per-call state: the recursion depth travels as an argument, so a
    single instance can serve concurrent callers.
    """

    def __init__(self, catalog: OperatorCatalog, max_depth: int = DEFAULT_MAX_DEPTH):
        """
        Initialize translator

        Args:
            catalog: Operator vocabularies used to classify bracket expressions
            max_depth: Deepest nesting accepted before failing
        """
        self.catalog = catalog
        self.max_depth = max_depth
        self._handlers: Dict[str, Callable[[AstNode, int], Any]] = {
            NodeKind.TABLE.value: self._table,
            NodeKind.COLREF.value: self._colref,
            NodeKind.ALIAS.value: self._alias,
            NodeKind.RESERVED.value: self._reserved,
            NodeKind.CONST.value: self._const,
            NodeKind.OPERATOR.value: self._operator,
            NodeKind.IN_LIST.value: self._in_list,
            NodeKind.AGGREGATE_FUNCTION.value: self._aggregate_function,
            NodeKind.BRACKET_EXPRESSION.value: self._bracket_expression,
        }
        self._bracket_handlers: Dict[OperatorCategory, Callable[[AstNode, int], Any]] = {
            OperatorCategory.CONDITION: self._condition,
            OperatorCategory.GROUP: self._condition_group,
            OperatorCategory.EXPRESSION: self._expression,
        }

    def translate(self, node: AstNode, depth: int = 0) -> Any:
        """
        Translate a node and its children

        Args:
            node: AST node
            depth: Nesting level of ``node``

        Returns:
            Resource, property, condition, group or expression dict, a
            constant, a list (in-list) or None for wildcard columns

        Raises:
            UnsupportedNodeKind: If the node kind has no handler
            MaxDepthExceeded: If the tree is nested deeper than ``max_depth``
        """
        if depth > self.max_depth:
            raise MaxDepthExceeded(f"Expression is nested deeper than {self.max_depth} levels.")

        handler = self._handlers.get(node.kind)
        if handler is None:
            raise UnsupportedNodeKind(f"Unsupported tree type '{node.kind}'.")
        return handler(node, depth)

    def _table(self, node: AstNode, depth: int) -> Dict[str, Any]:
        resource = {
            "id": node.parts[0] if node.parts else None,
            "alias": node.alias or DEFAULT_RESOURCE,
        }
        return _drop_none(resource)

    def _colref(self, node: AstNode, depth: int) -> Optional[Dict[str, Any]]:
        # "*" and "t.*" select everything; no property entry needed
        if _is_wildcard(node):
            return None

        parts = node.parts or (node.base_expr,)
        prop = {
            "resource": parts[0] if len(parts) > 1 else DEFAULT_RESOURCE,
            "property": parts[-1],
            "alias": node.alias,
            "order": node.direction.lower() if node.direction else None,
        }
        return _drop_none(prop)

    def _alias(self, node: AstNode, depth: int) -> Dict[str, Any]:
        prop = {
            "property": node.base_expr,
            "order": node.direction.lower() if node.direction else None,
        }
        return _drop_none(prop)

    def _reserved(self, node: AstNode, depth: int) -> bool:
        word = node.base_expr.lower()
        if word == "true":
            return True
        if word == "false":
            return False
        raise UnknownReservedWord(f"Unknown reserved word '{node.base_expr}' used in expression.")

    def _const(self, node: AstNode, depth: int) -> Any:
        const = node.base_expr
        if _INTEGER.match(const):
            return int(const)
        if _NUMBER.match(const):
            number = float(const)
            return int(number) if number.is_integer() else number
        return const.strip("'\"")

    def _operator(self, node: AstNode, depth: int) -> str:
        return node.base_expr.lower()

    def _in_list(self, node: AstNode, depth: int) -> List[Any]:
        return [self.translate(child, depth + 1) for child in node.sub_tree]

    def _aggregate_function(self, node: AstNode, depth: int) -> Dict[str, Any]:
        if not node.sub_tree:
            raise EmptyAggregateOperands(f"Missing arguments for aggregate function {node.base_expr}.")

        operands = [self.translate(child, depth + 1) for child in node.sub_tree]
        operands = [operand for operand in operands if operand is not None]
        if not operands:
            raise EmptyAggregateOperands(
                "Mathematical functions require property-specific arguments."
            )

        if not node.alias:
            raise UnaliasedExpression("Mathematical expressions must be aliased.")

        return {
            "expression": {"operator": node.base_expr.lower(), "operands": operands},
            "alias": node.alias,
        }

    def _bracket_expression(self, node: AstNode, depth: int) -> Dict[str, Any]:
        category = self.classify(node, depth)
        logger.debug("Bracket expression %r classified as %s", node, category.value)
        return self._bracket_handlers[category](node, depth)

    def classify(self, node: AstNode, depth: int = 0) -> OperatorCategory:
        """
        Decide what a bracket expression stands for

        Args:
            node: Bracket expression node

        Returns:
            The single operator category the bracket's operators belong to

        Raises:
            AmbiguousOperatorMix: If operators from several categories are mixed
            NoValidOperator: If no operator is recognized
        """
        operators = self._gather_operators(node, depth)
        matches = self.catalog.categories(operators)

        if len(matches) > 1:
            raise AmbiguousOperatorMix(
                "Invalid mix of expressions. Try separating expressions with parentheses."
            )
        if not matches:
            raise NoValidOperator("No valid operators found in expression.")
        return matches[0]

    def _condition(self, node: AstNode, depth: int) -> Dict[str, Any]:
        if len(node.sub_tree) != 3:
            raise MalformedCondition(
                "Conditions must have the form 'property operator value'."
            )

        left, operator, value = node.sub_tree
        prop = self.translate(left, depth + 1)
        if not isinstance(prop, dict) or "property" not in prop:
            raise InvalidConditionOperand(
                f"Left side of a condition must be a property, got '{left.base_expr}'."
            )

        condition = {
            "resource": prop.get("resource"),
            "property": prop["property"],
            "operator": self.translate(operator, depth + 1),
            "value": self.translate(value, depth + 1),
        }
        if condition["resource"] is None:
            del condition["resource"]
        return condition

    def _expression(self, node: AstNode, depth: int) -> Dict[str, Any]:
        operators = [child for child in node.sub_tree if child.is_operator]
        if len(operators) != 1 or len(node.sub_tree) < 2 or not node.sub_tree[1].is_operator:
            raise MalformedExpression(
                "Arithmetic expressions take one operator between operands. "
                "Try separating expressions with parentheses."
            )

        operands = [
            self.translate(child, depth + 1)
            for index, child in enumerate(node.sub_tree)
            if index != 1
        ]
        if not node.alias:
            raise UnaliasedExpression("Mathematical expressions must be aliased.")

        return {
            "expression": {
                "operator": self.translate(node.sub_tree[1], depth + 1),
                "operands": operands,
            },
            "alias": node.alias,
        }

    def _condition_group(self, node: AstNode, depth: int) -> Dict[str, Any]:
        operators = set(self._gather_operators(node, depth))
        if len(operators) != 1:
            raise MixedGroupOperators("Condition groups must not mix boolean operators.")

        return {
            "groupOperator": operators.pop(),
            "conditions": [
                self.translate(child, depth + 1)
                for child in node.sub_tree
                if not child.is_operator
            ],
        }

    def _gather_operators(self, node: AstNode, depth: int) -> List[str]:
        return [
            self.translate(child, depth + 1) for child in node.sub_tree if child.is_operator
        ]


def _is_wildcard(node: AstNode) -> bool:
    if not node.parts and node.base_expr == "*":
        return True
    return bool(node.parts) and len(node.parts) > 1 and node.parts[1] == "*"


def _drop_none(fragment: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in fragment.items() if value is not None}
