"""
Pytest configuration and shared fixtures
"""

import pytest

from sqlquery.core.builder import QueryBuilder
from sqlquery.core.catalog import default_catalog
from sqlquery.core.translator import NodeTranslator


@pytest.fixture
def catalog():
    """Operator catalog of the packaged schema"""
    return default_catalog()


@pytest.fixture
def translator(catalog):
    return NodeTranslator(catalog)


@pytest.fixture
def builder(catalog):
    return QueryBuilder(catalog)


@pytest.fixture
def parsed_tree():
    """A parsed statement as an external parser would emit it"""
    return {
        "SELECT": [
            {
                "expr_type": "colref",
                "alias": False,
                "base_expr": "record_number",
                "no_quotes": {"delim": False, "parts": ["record_number"]},
                "sub_tree": False,
                "delim": False,
            }
        ],
        "FROM": [
            {
                "expr_type": "table",
                "table": "tablename",
                "no_quotes": {"delim": False, "parts": ["tablename"]},
                "alias": {"as": False, "name": "t", "no_quotes": {"delim": False, "parts": ["t"]}, "base_expr": "t"},
                "hints": False,
                "join_type": "JOIN",
                "ref_type": False,
                "ref_clause": False,
                "base_expr": "tablename t",
                "sub_tree": False,
            }
        ],
        "WHERE": [
            {
                "expr_type": "colref",
                "base_expr": "something",
                "no_quotes": {"delim": False, "parts": ["something"]},
                "sub_tree": False,
            },
            {"expr_type": "operator", "base_expr": "LIKE", "sub_tree": False},
            {"expr_type": "const", "base_expr": "'%whatever'", "sub_tree": False},
        ],
    }
