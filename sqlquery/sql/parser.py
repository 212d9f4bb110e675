"""
SQL Parser - Hand-written recursive descent parser

Parses the SQL subset that maps onto query documents:
- SELECT columns, aggregates and bracketed expressions, with aliases
- FROM table [alias], additional tables by comma or JOIN
- WHERE as a flat sequence of operands, operators and bracket expressions
- ORDER BY column [ASC|DESC]
- LIMIT n | LIMIT offset, n | LIMIT n OFFSET offset

Design: the parser does not decide what a bracket means. Parenthesized parts
become bracket_expression nodes and the translator classifies them by their
operators.
"""

import logging
import re
from dataclasses import replace
from typing import List, NamedTuple, Optional, Set

from sqlquery.sql.ast_nodes import MAX_NESTING, AstNode, LimitClause, NodeKind, ParsedStatement

logger = logging.getLogger(__name__)

AGGREGATE_FUNCTIONS = {"COUNT", "SUM", "AVG", "MIN", "MAX"}

RESERVED_VALUES = {"TRUE", "FALSE", "NULL"}

KEYWORD_OPERATORS = {"AND", "OR", "LIKE", "IN", "NOT", "BETWEEN", "CONTAINS", "MATCH", "IS"}

CLAUSE_KEYWORDS = {
    "SELECT",
    "FROM",
    "WHERE",
    "GROUP",
    "HAVING",
    "ORDER",
    "LIMIT",
    "OFFSET",
    "JOIN",
    "INNER",
    "LEFT",
    "RIGHT",
    "OUTER",
    "CROSS",
    "ON",
    "AS",
    "ASC",
    "DESC",
    "UNION",
}

_TOKEN = re.compile(
    r"""
    \s*(?:
        (?P<string>'(?:[^']|'')*'|"(?:[^"]|"")*")
      | (?P<number>(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)
      | (?P<ident>(?:`[^`]+`|[A-Za-z_][\w$]*)(?:\.(?:`[^`]+`|[A-Za-z_][\w$]*|\*))*)
      | (?P<op><=|>=|<>|!=|[=<>+\-*/%])
      | (?P<punct>[(),;])
    )
    """,
    re.VERBOSE,
)


class ParseError(Exception):
    """Raised when SQL parsing fails"""

    pass


class Token(NamedTuple):
    type: str  # 'string', 'number', 'ident', 'op', 'punct'
    text: str

    @property
    def upper(self) -> str:
        return self.text.upper()


class SQLParser:
    """
    Recursive descent parser producing AstNode trees

    Grammar (simplified):
        SELECT_STMT := SELECT items [FROM tables] [WHERE sequence]
                       [ORDER BY orders] [LIMIT n [OFFSET m]]
        items       := item [, item]*
        item        := * | term [operator term]* [[AS] alias]
        sequence    := (term | operator | in-list)*
        term        := ( sequence ) | aggregate ( args ) | identifier | constant
    """

    def __init__(self, sql: str):
        self.sql = sql.strip()
        self.tokens = self._tokenize(self.sql)
        self.pos = 0
        self.nesting = 0

    def _tokenize(self, sql: str) -> List[Token]:
        tokens = []
        pos = 0
        sql = sql.rstrip()
        while pos < len(sql):
            match = _TOKEN.match(sql, pos)
            if not match or match.end() == pos:
                raise ParseError(f"Unexpected character '{sql[pos]}' at position {pos}")
            kind = match.lastgroup
            tokens.append(Token(kind, match.group(kind)))
            pos = match.end()
        return tokens

    def current(self) -> Optional[Token]:
        """Get current token without advancing"""
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def peek(self, offset: int = 1) -> Optional[Token]:
        """Look ahead at token"""
        pos = self.pos + offset
        if pos < len(self.tokens):
            return self.tokens[pos]
        return None

    def consume(self, expected: Optional[str] = None) -> Token:
        """
        Consume and return current token, optionally checking it matches expected

        Args:
            expected: If provided, raises ParseError if current token doesn't match

        Returns:
            The consumed token

        Raises:
            ParseError: If expected token doesn't match or no more tokens
        """
        if self.pos >= len(self.tokens):
            raise ParseError(f"Unexpected end of query. Expected: {expected}")

        token = self.tokens[self.pos]

        if expected and token.upper != expected.upper():
            raise ParseError(
                f"Expected '{expected}' but got '{token.text}' at position {self.pos}"
            )

        self.pos += 1
        return token

    def _descend(self) -> None:
        self.nesting += 1
        if self.nesting > MAX_NESTING:
            raise ParseError(f"Expression is nested deeper than {MAX_NESTING} levels")

    def at(self, *words: str) -> bool:
        """Check whether the current token is one of the given words"""
        token = self.current()
        return token is not None and token.upper in words

    def parse(self) -> ParsedStatement:
        """Parse SQL query into a ParsedStatement"""
        statement = self._parse_select()
        if self.at(";"):
            self.consume(";")
        if self.current() is not None:
            raise ParseError(f"Unexpected '{self.current().text}' at position {self.pos}")
        logger.debug("Parsed %r", statement)
        return statement

    def _parse_select(self) -> ParsedStatement:
        self.consume("SELECT")
        statement = ParsedStatement(select=self._parse_items())

        if self.at("FROM"):
            statement.from_ = self._parse_from()

        if self.at("WHERE"):
            self.consume("WHERE")
            statement.where = self._parse_sequence()

        if self.at("GROUP", "HAVING"):
            raise ParseError(f"{self.current().upper} clauses are not supported")

        if self.at("ORDER"):
            aliases = {node.alias for node in statement.select if node.alias}
            statement.order = self._parse_order_by(aliases)

        if self.at("LIMIT"):
            statement.limit = self._parse_limit()

        return statement

    def _parse_items(self) -> List[AstNode]:
        """
        Parse the SELECT list

        Examples:
            *
            t.name, age AS years
            COUNT(id) AS total, (price * 2) AS doubled
        """
        items = []
        while True:
            items.append(self._parse_item())
            if self.at(","):
                self.consume(",")
            else:
                break
        return items

    def _parse_item(self) -> AstNode:
        if self.at("*"):
            self.consume()
            return AstNode(kind=NodeKind.COLREF.value, base_expr="*")

        start = self.pos
        elements = [self._parse_term()]
        while self._at_operator():
            elements.append(self._parse_operator())
            elements.append(self._parse_term())
        text = " ".join(token.text for token in self.tokens[start : self.pos])

        alias = self._parse_alias()

        if len(elements) == 1:
            return replace(elements[0], alias=alias)
        # An unbracketed expression; the translator only accepts bracketed ones
        return AstNode(kind="expression", base_expr=text, sub_tree=tuple(elements), alias=alias)

    def _parse_alias(self) -> Optional[str]:
        if self.at("AS"):
            self.consume("AS")
            return _unquote(self.consume().text)
        token = self.current()
        if token and token.type == "ident" and token.upper not in CLAUSE_KEYWORDS | KEYWORD_OPERATORS:
            return _unquote(self.consume().text)
        return None

    def _parse_from(self) -> List[AstNode]:
        """
        Parse FROM clause

        Examples:
            FROM tablename
            FROM tablename t
            FROM a, b
            FROM a JOIN b ON a.id = b.a_id
        """
        self.consume("FROM")
        tables = [self._parse_table()]

        while True:
            if self.at(","):
                self.consume(",")
                tables.append(self._parse_table())
            elif self.at("JOIN", "INNER", "LEFT", "RIGHT", "CROSS"):
                while not self.at("JOIN"):
                    self.consume()
                self.consume("JOIN")
                tables.append(self._parse_table())
                if self.at("ON"):
                    self.consume("ON")
                    self._parse_sequence()
            else:
                break

        return tables

    def _parse_table(self) -> AstNode:
        token = self.consume()
        if token.type == "string":
            parts = (token.text[1:-1],)
        elif token.type == "ident":
            parts = tuple(_unquote(part) for part in token.text.split("."))
        else:
            raise ParseError(f"Expected a table name but got '{token.text}'")

        return AstNode(
            kind=NodeKind.TABLE.value,
            base_expr=token.text,
            parts=parts,
            alias=self._parse_alias(),
        )

    def _parse_sequence(self) -> List[AstNode]:
        """
        Parse a flat run of operands and operators

        Stops at a closing parenthesis, a clause keyword or the end of input.

        Example: (x LIKE '%w') AND y IN (1, 2) -> bracket, operator, colref, operator, in-list
        """
        elements: List[AstNode] = []
        while True:
            token = self.current()
            if token is None or token.text in (")", ";") or token.upper in CLAUSE_KEYWORDS:
                break

            if self._at_unary_minus(elements):
                self.consume("-")
                number = self.consume()
                elements.append(AstNode(kind=NodeKind.CONST.value, base_expr="-" + number.text))
            elif self._at_operator():
                operator = self._parse_operator()
                elements.append(operator)
                if operator.base_expr.upper() in ("IN", "NOT IN"):
                    elements.append(self._parse_in_list())
            elif token.text == ",":
                raise ParseError(f"Unexpected ',' at position {self.pos}")
            else:
                elements.append(self._parse_term())

        if not elements:
            raise ParseError(f"Expected an expression at position {self.pos}")
        return elements

    def _at_operator(self) -> bool:
        token = self.current()
        if token is None:
            return False
        return token.type == "op" or (token.type == "ident" and token.upper in KEYWORD_OPERATORS)

    def _at_unary_minus(self, elements: List[AstNode]) -> bool:
        token, following = self.current(), self.peek()
        if token is None or token.text != "-" or following is None:
            return False
        return following.type == "number" and (not elements or elements[-1].is_operator)

    def _parse_operator(self) -> AstNode:
        token = self.consume()
        text = token.text
        if token.upper == "NOT" and self.at("IN", "LIKE"):
            text = f"{text} {self.consume().text}"
        elif token.upper == "IS" and self.at("NOT"):
            text = f"{text} {self.consume().text}"
        return AstNode(kind=NodeKind.OPERATOR.value, base_expr=text)

    def _parse_in_list(self) -> AstNode:
        self.consume("(")
        items = []
        while not self.at(")"):
            items.append(self._parse_term())
            if self.at(","):
                self.consume(",")
            elif not self.at(")"):
                raise ParseError(f"Expected ',' or ')' in IN list at position {self.pos}")
        self.consume(")")
        text = "(" + ", ".join(item.base_expr for item in items) + ")"
        return AstNode(kind=NodeKind.IN_LIST.value, base_expr=text, sub_tree=tuple(items))

    def _parse_term(self) -> AstNode:
        """
        Parse a single operand

        Examples:
            (x = 1)
            COUNT(id)
            t.name
            'text', 42, -1.5
            TRUE
        """
        token = self.consume()

        if token.text == "(":
            self._descend()
            start = self.pos
            sub_tree = self._parse_sequence()
            text = " ".join(t.text for t in self.tokens[start : self.pos])
            self.consume(")")
            self.nesting -= 1
            return AstNode(
                kind=NodeKind.BRACKET_EXPRESSION.value,
                base_expr=f"({text})",
                sub_tree=tuple(sub_tree),
            )

        if token.type in ("string", "number"):
            return AstNode(kind=NodeKind.CONST.value, base_expr=token.text)

        if token.text == "-" and self.current() and self.current().type == "number":
            return AstNode(kind=NodeKind.CONST.value, base_expr="-" + self.consume().text)

        if token.type != "ident" or token.upper in CLAUSE_KEYWORDS:
            raise ParseError(f"Unexpected '{token.text}' at position {self.pos - 1}")

        if token.upper in AGGREGATE_FUNCTIONS and self.at("("):
            self._descend()
            node = self._parse_aggregate(token)
            self.nesting -= 1
            return node

        if token.upper in RESERVED_VALUES:
            return AstNode(kind=NodeKind.RESERVED.value, base_expr=token.text)

        return AstNode(
            kind=NodeKind.COLREF.value,
            base_expr=token.text,
            parts=tuple(_unquote(part) for part in token.text.split(".")),
        )

    def _parse_aggregate(self, name: Token) -> AstNode:
        """
        Parse aggregate function arguments

        Examples:
            COUNT(*)
            SUM(amount)
            MAX(t.price)
        """
        self.consume("(")
        arguments = []
        while not self.at(")"):
            if self.at("*"):
                self.consume()
                arguments.append(AstNode(kind=NodeKind.COLREF.value, base_expr="*"))
            else:
                arguments.append(self._parse_term())
            if self.at(","):
                self.consume(",")
        self.consume(")")
        return AstNode(
            kind=NodeKind.AGGREGATE_FUNCTION.value,
            base_expr=name.text,
            sub_tree=tuple(arguments),
        )

    def _parse_order_by(self, aliases: Set[str]) -> List[AstNode]:
        """
        Parse ORDER BY clause

        Examples:
            ORDER BY name
            ORDER BY age DESC
            ORDER BY total DESC  (total being a SELECT alias)
        """
        self.consume("ORDER")
        self.consume("BY")

        order = []
        while True:
            node = self._parse_term()

            direction = "ASC"
            if self.at("ASC", "DESC"):
                direction = self.consume().upper

            if node.kind == NodeKind.COLREF.value and node.base_expr in aliases:
                node = AstNode(kind=NodeKind.ALIAS.value, base_expr=node.base_expr)
            order.append(replace(node, direction=direction))

            if self.at(","):
                self.consume(",")
            else:
                break

        return order

    def _parse_limit(self) -> LimitClause:
        """
        Parse LIMIT clause

        Examples:
            LIMIT 10
            LIMIT 20, 10
            LIMIT 10 OFFSET 20
        """
        self.consume("LIMIT")
        first = self._parse_limit_number()

        if self.at(","):
            self.consume(",")
            return LimitClause(rowcount=self._parse_limit_number(), offset=first)
        if self.at("OFFSET"):
            self.consume("OFFSET")
            return LimitClause(rowcount=first, offset=self._parse_limit_number())
        return LimitClause(rowcount=first, offset="")

    def _parse_limit_number(self) -> str:
        token = self.consume()
        if token.type != "number" or not token.text.isdigit():
            raise ParseError(f"LIMIT must be a non-negative integer, got '{token.text}'")
        return token.text


def _unquote(identifier: str) -> str:
    if len(identifier) > 1 and identifier[0] == identifier[-1] and identifier[0] in "`\"'":
        return identifier[1:-1]
    return identifier


def parse(sql: str) -> ParsedStatement:
    """
    Convenience function to parse SQL query

    Args:
        sql: SQL query string

    Returns:
        ParsedStatement of AstNode trees

    Raises:
        ParseError: If query is invalid

    Examples:
        >>> statement = parse("SELECT * FROM data")
        >>> statement = parse("SELECT name FROM users t WHERE (age > 25) AND (city = 'NYC')")
    """
    parser = SQLParser(sql)
    return parser.parse()
