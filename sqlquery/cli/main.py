"""
sqlquery CLI - Translate SQL statements into query documents

Usage:
    sqlquery parse <sql> [options]       # Parse and translate a SQL statement
    sqlquery translate <file> [options]  # Translate a parsed tree stored as JSON
"""

import json
import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from sqlquery import __version__
from sqlquery.api import translate_parsed
from sqlquery.cli.formatters import get_formatter
from sqlquery.core.config import QueryConfig
from sqlquery.core.exceptions import QueryTranslationError
from sqlquery.core.translator import DEFAULT_MAX_DEPTH
from sqlquery.schema import DEFAULT_ROWS_LIMIT
from sqlquery.sql.ast_nodes import ParsedStatement
from sqlquery.sql.parser import ParseError, parse

LEGACY_NOTICE = "Legacy SQL endpoint format detected."


def is_legacy(sql: str) -> bool:
    """Legacy payloads are bracketed, e.g. '[SELECT * FROM id][WHERE ...]'"""
    return sql[:1] == "["


def _configure_logging(debug: bool) -> None:
    if not debug:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def translation_options(func):
    """Options shared by the parse and translate commands"""
    options = [
        click.option(
            "--resource",
            "-r",
            type=str,
            default=None,
            help="Resource id to query; the statement must not have a FROM clause",
        ),
        click.option(
            "--allow-joins",
            is_flag=True,
            envvar="SQLQUERY_ALLOW_JOINS",
            help="Permit several FROM resources (joins are not implemented yet)",
        ),
        click.option(
            "--rows-limit",
            type=click.IntRange(min=0),
            default=DEFAULT_ROWS_LIMIT,
            envvar="SQLQUERY_ROWS_LIMIT",
            show_default=True,
            help="Largest permitted LIMIT; also the default limit",
        ),
        click.option(
            "--max-depth",
            type=click.IntRange(min=1),
            default=DEFAULT_MAX_DEPTH,
            envvar="SQLQUERY_MAX_DEPTH",
            show_default=True,
            help="Deepest expression nesting accepted",
        ),
        click.option(
            "--format",
            "-f",
            type=click.Choice(["json", "pretty"], case_sensitive=False),
            default="json",
            help="Output format (default: json)",
        ),
        click.option("--compact", is_flag=True, help="Compact JSON output"),
        click.option("--no-color", is_flag=True, help="Disable colored output"),
        click.option(
            "--debug",
            is_flag=True,
            help="Log translation steps and show full tracebacks",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _emit(
    parsed: ParsedStatement,
    resource: Optional[str],
    allow_joins: bool,
    rows_limit: int,
    max_depth: int,
    fmt: str,
    compact: bool,
    no_color: bool,
) -> None:
    config = QueryConfig(rows_limit=rows_limit, max_depth=max_depth, allow_joins=allow_joins)
    document = translate_parsed(parsed, resource=resource, config=config)
    formatter = get_formatter(fmt.lower())
    click.echo(
        formatter.format(
            document.to_dict(),
            compact=compact,
            no_color=no_color or (not sys.stdout.isatty()),
        )
    )


@click.group()
@click.version_option(version=__version__, prog_name="sqlquery")
def cli():
    """
    sqlquery - Translate SQL statements into datastore query documents
    """


@cli.command("parse")
@click.argument("sql", type=str)
@click.option("--show-ast", is_flag=True, help="Print the parsed tree before translating")
@translation_options
def parse_command(
    sql: str,
    show_ast: bool,
    resource: Optional[str],
    allow_joins: bool,
    rows_limit: int,
    max_depth: int,
    format: str,
    compact: bool,
    no_color: bool,
    debug: bool,
):
    """
    Parse a SQL statement and print its query document

    Examples:

        \b
        $ sqlquery parse "SELECT record_number FROM tablename t WHERE something LIKE '%whatever'"

        \b
        # Query a resource by id instead of a FROM clause
        $ sqlquery parse "SELECT record_number WHERE (x = 1) AND (y > 2)" --resource=tablename

        \b
        # Highlighted output
        $ sqlquery parse "SELECT * FROM tablename LIMIT 10" -f pretty
    """
    fmt = format
    del format
    _configure_logging(debug)

    if is_legacy(sql):
        click.echo(LEGACY_NOTICE)
        return

    try:
        parsed = parse(sql)
        if show_ast:
            click.echo(get_formatter("json").format(parsed.to_dict()), err=True)
        _emit(parsed, resource, allow_joins, rows_limit, max_depth, fmt, compact, no_color)
    except (ParseError, QueryTranslationError) as e:
        click.echo(f"Error: {e}", err=True)
        if debug:
            raise
        sys.exit(1)


@cli.command("translate")
@click.argument("file", type=click.File("r"))
@translation_options
def translate_command(
    file,
    resource: Optional[str],
    allow_joins: bool,
    rows_limit: int,
    max_depth: int,
    format: str,
    compact: bool,
    no_color: bool,
    debug: bool,
):
    """
    Translate a parsed statement stored as JSON

    FILE holds the clause mapping of an external SQL parser
    ({"SELECT": [...], "FROM": [...], "WHERE": [...]}); use - for stdin.

    Examples:

        \b
        $ sqlquery translate parsed.json
        $ cat parsed.json | sqlquery translate - --resource=tablename
    """
    fmt = format
    del format
    _configure_logging(debug)

    try:
        parsed = ParsedStatement.from_dict(json.load(file))
        _emit(parsed, resource, allow_joins, rows_limit, max_depth, fmt, compact, no_color)
    except json.JSONDecodeError as e:
        click.echo(f"Error: Invalid JSON - {e}", err=True)
        sys.exit(1)
    except QueryTranslationError as e:
        click.echo(f"Error: {e}", err=True)
        if debug:
            raise
        sys.exit(1)


if __name__ == "__main__":
    cli()
