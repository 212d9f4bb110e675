"""
Query document schema

The packaged ``query.json`` describes the output document and is the source of
the operator vocabularies used to classify bracket expressions.
"""

import copy
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Union

SCHEMA_PATH = Path(__file__).parent / "query.json"

DEFAULT_ROWS_LIMIT = 500


@lru_cache(maxsize=8)
def _read_schema(path: str) -> Dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def load_schema(
    path: Optional[Union[str, Path]] = None, rows_limit: int = DEFAULT_ROWS_LIMIT
) -> Dict[str, Any]:
    """
    Load the query schema with the row limit applied

    Args:
        path: Schema file to read (default: packaged query.json)
        rows_limit: Maximum and default value for ``limit``

    Returns:
        A fresh copy of the schema; callers may modify it freely
    """
    schema = copy.deepcopy(_read_schema(str(path or SCHEMA_PATH)))
    limit = schema.setdefault("properties", {}).setdefault("limit", {"type": "integer"})
    limit["maximum"] = rows_limit
    limit["default"] = rows_limit
    return schema


__all__ = ["DEFAULT_ROWS_LIMIT", "SCHEMA_PATH", "load_schema"]
