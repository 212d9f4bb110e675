"""
Query builder - assembles a parsed statement into a query document

Translates each clause with the node translator, applies the resource and
join policies, and hands the assembled structure to QueryDocument for
defaulting and validation.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlquery.core.catalog import OperatorCatalog
from sqlquery.core.document import QueryDocument
from sqlquery.core.exceptions import (
    ConflictingResourceSpecification,
    InvalidWhereClause,
    JoinsNotSupported,
    QueryTranslationError,
    StructuralError,
    TooManyResources,
)
from sqlquery.core.models import SchemaValidator
from sqlquery.core.translator import DEFAULT_MAX_DEPTH, DEFAULT_RESOURCE, NodeTranslator
from sqlquery.schema import DEFAULT_ROWS_LIMIT
from sqlquery.sql.ast_nodes import AstNode, NodeKind, ParsedStatement

logger = logging.getLogger(__name__)


@contextmanager
def _clause(name: str) -> Iterator[None]:
    """Tag translation errors raised inside the block with the clause name"""
    try:
        yield
    except QueryTranslationError as e:
        if e.clause is None:
            e.clause = name
        raise


class QueryBuilder:
    """
    Builds query documents from parsed statements

    Example:
        >>> builder = QueryBuilder(default_catalog())
        >>> doc = builder.build(parse("SELECT name FROM people"))
    """

    def __init__(
        self,
        catalog: OperatorCatalog,
        max_depth: int = DEFAULT_MAX_DEPTH,
        rows_limit: int = DEFAULT_ROWS_LIMIT,
        schema: Optional[Dict[str, Any]] = None,
        validator: Optional[SchemaValidator] = None,
    ):
        """
        Initialize builder

        Args:
            catalog: Operator vocabularies for bracket classification
            max_depth: Deepest AST nesting accepted
            rows_limit: Largest permitted ``limit``; also its default
            schema: Query schema (default: packaged schema with ``rows_limit``)
            validator: Schema validator passed to QueryDocument
        """
        self.translator = NodeTranslator(catalog, max_depth=max_depth)
        self.rows_limit = rows_limit
        self.schema = schema
        self.validator = validator

    def build(
        self,
        parsed: ParsedStatement,
        resource: Optional[str] = None,
        allow_joins: bool = False,
    ) -> QueryDocument:
        """
        Build a validated query document

        Args:
            parsed: Parsed SELECT statement
            resource: Resource id to query when the statement has no FROM clause
            allow_joins: Whether several FROM resources may be requested

        Returns:
            QueryDocument

        Raises:
            QueryTranslationError: On any structural, classification,
                constraint, policy or schema violation
        """
        assembled = self.assemble(parsed, resource=resource, allow_joins=allow_joins)
        return QueryDocument(
            assembled,
            schema=self.schema,
            rows_limit=self.rows_limit,
            validator=self.validator,
        )

    def assemble(
        self,
        parsed: ParsedStatement,
        resource: Optional[str] = None,
        allow_joins: bool = False,
    ) -> Dict[str, Any]:
        """
        Translate every clause without validating the result

        Returns:
            Query structure with empty and absent clauses dropped
        """
        self._check_resources(parsed, resource, allow_joins)

        query: Dict[str, Any] = {}

        if parsed.select is not None:
            with _clause("SELECT"):
                query["properties"] = self._translate_select(parsed.select)

        if resource:
            query["resources"] = [{"id": resource, "alias": DEFAULT_RESOURCE}]
        elif parsed.from_ is not None:
            with _clause("FROM"):
                query["resources"] = [self.translator.translate(table) for table in parsed.from_]

        if parsed.where is not None:
            with _clause("WHERE"):
                query["conditions"] = self._translate_where(parsed.where)

        if parsed.limit is not None:
            with _clause("LIMIT"):
                query["limit"] = _to_int(parsed.limit.rowcount)
                query["offset"] = _to_int(parsed.limit.offset)

        if parsed.order is not None:
            with _clause("ORDER"):
                query["sorts"] = self._translate_order(parsed.order)

        return {key: value for key, value in query.items() if value is not None and value != []}

    def _check_resources(
        self, parsed: ParsedStatement, resource: Optional[str], allow_joins: bool
    ) -> None:
        if resource and parsed.from_ is not None:
            raise ConflictingResourceSpecification(
                "You may not pass a FROM clause in a resource query.", clause="FROM"
            )

        tables = parsed.from_ or []
        if len(tables) > 1:
            if not allow_joins:
                raise TooManyResources(
                    "Joins are not permitted for this query; "
                    "you have requested too many resources.",
                    clause="FROM",
                )
            raise JoinsNotSupported("Joins not yet supported in SQL queries.", clause="FROM")
        logger.debug("Resource policy passed for %d FROM entries", len(tables))

    def _translate_select(self, select: List[AstNode]) -> List[Any]:
        properties = [self.translator.translate(node) for node in select]
        return [prop for prop in properties if prop is not None]

    def _translate_where(self, where: Any) -> List[Any]:
        if not isinstance(where, (list, tuple)) or not where:
            raise InvalidWhereClause("Expected a non-empty list of expressions.")

        # A single element is already a complete bracket expression
        if len(where) == 1:
            return [self.translator.translate(where[0])]

        group = self.translator.translate(
            AstNode(kind=NodeKind.BRACKET_EXPRESSION.value, sub_tree=tuple(where))
        )
        # Top-level AND is implicit in the conditions list
        if group.get("groupOperator") == "and":
            return group["conditions"]
        return [group]

    def _translate_order(self, order: List[AstNode]) -> List[Any]:
        sorts = [self.translator.translate(node) for node in order]
        return [sort for sort in sorts if sort is not None]


def _to_int(token: Any) -> Optional[int]:
    if token is None or token == "":
        return None
    try:
        return int(str(token).strip())
    except ValueError:
        raise StructuralError(f"Expected an integer, got '{token}'.")
