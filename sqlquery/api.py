"""
Main API - user-facing entry points for sqlquery

Example:
    >>> from sqlquery import translate
    >>> doc = translate("SELECT record_number FROM tablename t WHERE something LIKE '%whatever'")
    >>> doc["conditions"]
    [{'resource': 't', 'property': 'something', 'operator': 'like', 'value': '%whatever'}]
"""

from typing import Optional

from sqlquery.core.builder import QueryBuilder
from sqlquery.core.config import QueryConfig
from sqlquery.core.document import QueryDocument
from sqlquery.sql.ast_nodes import ParsedStatement
from sqlquery.sql.parser import parse


def translate(
    sql: str,
    resource: Optional[str] = None,
    config: Optional[QueryConfig] = None,
) -> QueryDocument:
    """
    Parse and translate a SQL statement

    Args:
        sql: SQL SELECT statement
        resource: Resource id to query when the statement has no FROM clause
        config: Translation settings (default: QueryConfig())

    Returns:
        Validated QueryDocument

    Raises:
        ParseError: If the SQL cannot be parsed
        QueryTranslationError: If the statement cannot be translated
    """
    return translate_parsed(parse(sql), resource=resource, config=config)


def translate_parsed(
    parsed: ParsedStatement,
    resource: Optional[str] = None,
    config: Optional[QueryConfig] = None,
) -> QueryDocument:
    """
    Translate an already-parsed statement

    Args:
        parsed: ParsedStatement, e.g. from ParsedStatement.from_dict()
        resource: Resource id to query when the statement has no FROM clause
        config: Translation settings (default: QueryConfig())

    Returns:
        Validated QueryDocument
    """
    config = config or QueryConfig()
    builder = QueryBuilder(
        config.catalog,
        max_depth=config.max_depth,
        rows_limit=config.rows_limit,
        schema=config.schema,
    )
    return builder.build(parsed, resource=resource, allow_joins=config.allow_joins)
