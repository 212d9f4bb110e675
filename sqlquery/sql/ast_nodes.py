"""
AST (Abstract Syntax Tree) node definitions for parsed SQL statements

These dataclasses mirror the tree shape produced by the SQL parser: every
node carries an ``expr_type``-style kind, its raw token text and an ordered
list of children. The same shape is accepted as JSON from an external parser
through ``from_dict``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from sqlquery.core.exceptions import MaxDepthExceeded, StructuralError

# Deepest bracket or aggregate nesting accepted from SQL text or a parsed tree
MAX_NESTING = 128


class NodeKind(str, Enum):
    """Supported AST node kinds"""

    TABLE = "table"
    COLREF = "colref"
    ALIAS = "alias"
    RESERVED = "reserved"
    CONST = "const"
    OPERATOR = "operator"
    IN_LIST = "in-list"
    AGGREGATE_FUNCTION = "aggregate_function"
    BRACKET_EXPRESSION = "bracket_expression"


@dataclass(frozen=True)
class AstNode:
    """
    A single node of a parsed SQL tree

    Examples:
        colref      t.name          -> parts=("t", "name")
        operator    LIKE
        bracket_expression (x = 1)  -> sub_tree=(colref, operator, const)
    """

    kind: str
    base_expr: str = ""
    sub_tree: Tuple["AstNode", ...] = ()
    alias: Optional[str] = None
    parts: Optional[Tuple[str, ...]] = None
    direction: Optional[str] = None

    @property
    def is_operator(self) -> bool:
        return self.kind == NodeKind.OPERATOR.value

    @classmethod
    def from_dict(cls, tree: Dict[str, Any], depth: int = 0) -> "AstNode":
        """
        Build a node from the external parser's JSON representation

        Args:
            tree: Mapping with ``expr_type``, ``base_expr`` and optional
                ``sub_tree``, ``alias``, ``no_quotes`` and ``direction`` keys
            depth: Nesting level of ``tree``

        Returns:
            The equivalent AstNode

        Raises:
            StructuralError: If the mapping has no ``expr_type``, a malformed
                ``no_quotes`` or ``sub_tree``, or nests deeper than MAX_NESTING
        """
        if not isinstance(tree, dict) or "expr_type" not in tree:
            raise StructuralError("Invalid parsed tree.")
        if depth > MAX_NESTING:
            raise MaxDepthExceeded(f"Parsed tree is nested deeper than {MAX_NESTING} levels.")

        sub_tree = tree.get("sub_tree") or ()
        alias = tree.get("alias") or None
        if isinstance(alias, dict):
            alias = alias.get("name") or None
        no_quotes = tree.get("no_quotes") or None
        if no_quotes is not None and not isinstance(no_quotes, dict):
            raise StructuralError("Invalid parsed tree: no_quotes must be a mapping.")
        if not isinstance(sub_tree, (list, tuple)):
            raise StructuralError("Invalid parsed tree: sub_tree must be a list.")
        parts = tuple(no_quotes["parts"]) if no_quotes and no_quotes.get("parts") else None

        return cls(
            kind=tree["expr_type"],
            base_expr=str(tree.get("base_expr", "")),
            sub_tree=tuple(cls.from_dict(child, depth + 1) for child in sub_tree),
            alias=alias,
            parts=parts,
            direction=tree.get("direction") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Render the node back into the external parser's JSON shape"""
        tree: Dict[str, Any] = {"expr_type": self.kind, "base_expr": self.base_expr}
        if self.alias:
            tree["alias"] = {"as": True, "name": self.alias}
        if self.parts:
            tree["no_quotes"] = {"delim": ".", "parts": list(self.parts)}
        if self.direction:
            tree["direction"] = self.direction
        tree["sub_tree"] = [child.to_dict() for child in self.sub_tree] or False
        return tree

    def __repr__(self) -> str:
        if self.sub_tree:
            children = " ".join(repr(child) for child in self.sub_tree)
            return f"{self.kind}({children})"
        return f"{self.kind}:{self.base_expr}"


@dataclass(frozen=True)
class LimitClause:
    """LIMIT clause tokens; empty strings mean the part was not given"""

    rowcount: Any = None
    offset: Any = None


@dataclass
class ParsedStatement:
    """
    A parsed SELECT statement, clause by clause

    ``where`` is kept exactly as supplied so that a malformed WHERE clause
    reaches the query builder and is rejected there.
    """

    select: Optional[List[AstNode]] = None
    from_: Optional[List[AstNode]] = None
    where: Any = None
    order: Optional[List[AstNode]] = None
    limit: Optional[LimitClause] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, parsed: Dict[str, Any]) -> "ParsedStatement":
        """
        Build a statement from the external parser's clause mapping

        Args:
            parsed: Mapping keyed by upper-case clause names (``SELECT``,
                ``FROM``, ``WHERE``, ``ORDER``, ``LIMIT``)

        Returns:
            ParsedStatement; unknown clauses are kept in ``extra``
        """
        if not isinstance(parsed, dict):
            raise StructuralError("Invalid parsed statement.")

        def nodes(key: str) -> Optional[List[AstNode]]:
            if parsed.get(key) is None:
                return None
            return [AstNode.from_dict(tree) for tree in parsed[key]]

        where = parsed.get("WHERE")
        if isinstance(where, list):
            where = [AstNode.from_dict(tree) for tree in where]

        limit = None
        if parsed.get("LIMIT") is not None:
            raw = parsed["LIMIT"]
            if not isinstance(raw, dict):
                raise StructuralError("Invalid LIMIT clause.")
            limit = LimitClause(rowcount=raw.get("rowcount"), offset=raw.get("offset"))

        known = {"SELECT", "FROM", "WHERE", "ORDER", "LIMIT"}
        return cls(
            select=nodes("SELECT"),
            from_=nodes("FROM"),
            where=where,
            order=nodes("ORDER"),
            limit=limit,
            extra={key: value for key, value in parsed.items() if key not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Render the statement back into the external parser's clause mapping"""
        parsed: Dict[str, Any] = {}
        if self.select is not None:
            parsed["SELECT"] = [node.to_dict() for node in self.select]
        if self.from_ is not None:
            parsed["FROM"] = [node.to_dict() for node in self.from_]
        if isinstance(self.where, list):
            parsed["WHERE"] = [node.to_dict() for node in self.where]
        elif self.where is not None:
            parsed["WHERE"] = self.where
        if self.order is not None:
            parsed["ORDER"] = [node.to_dict() for node in self.order]
        if self.limit is not None:
            parsed["LIMIT"] = {"offset": self.limit.offset, "rowcount": self.limit.rowcount}
        parsed.update(self.extra)
        return parsed
