"""
Translation settings

One immutable value carries everything a translation needs besides the
statement itself. The CLI builds it from options and environment variables.
"""

from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Optional, Union

from sqlquery.core.catalog import OperatorCatalog, default_catalog
from sqlquery.core.translator import DEFAULT_MAX_DEPTH
from sqlquery.schema import DEFAULT_ROWS_LIMIT, load_schema


@dataclass(frozen=True)
class QueryConfig:
    """
    Settings for a translation

    Attributes:
        rows_limit: Largest permitted ``limit``; also its default
        max_depth: Deepest AST nesting accepted
        allow_joins: Whether several FROM resources may be requested
        schema_path: Query schema file (None for the packaged schema)
    """

    rows_limit: int = DEFAULT_ROWS_LIMIT
    max_depth: int = DEFAULT_MAX_DEPTH
    allow_joins: bool = False
    schema_path: Optional[Union[str, Path]] = None

    @cached_property
    def schema(self) -> Dict[str, Any]:
        return load_schema(self.schema_path, rows_limit=self.rows_limit)

    @cached_property
    def catalog(self) -> OperatorCatalog:
        if self.schema_path is None:
            return default_catalog()
        return OperatorCatalog.from_schema(self.schema)
