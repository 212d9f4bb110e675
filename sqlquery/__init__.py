"""
sqlquery - Translate SQL statements into datastore query documents

This package parses a SQL SELECT statement, translates its syntax tree into a
structured query document and validates the result against the query schema.
"""

__version__ = "0.1.0"

# Main API
from sqlquery.api import translate, translate_parsed

__all__ = ["__version__", "translate", "translate_parsed"]
