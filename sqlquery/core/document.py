"""
Query document - the validated output of a translation

Root-level schema defaults are filled in before validation, then the document
is frozen: callers read it through mapping access or ``to_dict()`` copies.
"""

import copy
import json
import logging
from collections.abc import Iterator, Mapping
from typing import Any, Dict, FrozenSet, Optional

from sqlquery.core.catalog import OperatorCatalog
from sqlquery.core.models import PydanticSchemaValidator, SchemaValidator
from sqlquery.schema import DEFAULT_ROWS_LIMIT, load_schema

logger = logging.getLogger(__name__)


class QueryDocument(Mapping):
    """
    Schema-conformant query document

    Example:
        >>> doc = QueryDocument({"resources": [{"id": "tablename", "alias": "t"}]})
        >>> doc["limit"]
        500
    """

    def __init__(
        self,
        assembled: Dict[str, Any],
        schema: Optional[Dict[str, Any]] = None,
        rows_limit: int = DEFAULT_ROWS_LIMIT,
        validator: Optional[SchemaValidator] = None,
    ):
        """
        Construct, default and validate a document

        Args:
            assembled: Query structure from the query builder
            schema: Query schema (default: packaged schema with ``rows_limit``)
            rows_limit: Maximum and default ``limit`` when loading the packaged schema
            validator: Schema validator (default: PydanticSchemaValidator)

        Raises:
            SchemaValidationError: If the document violates the schema
        """
        self._schema = schema if schema is not None else load_schema(rows_limit=rows_limit)
        self._catalog: Optional[OperatorCatalog] = None
        self._data = copy.deepcopy(assembled)
        self._populate_defaults()

        error = (validator or PydanticSchemaValidator()).validate(self._data, self._schema)
        if error is not None:
            raise error

    def _populate_defaults(self) -> None:
        """Set defaults explicitly for root-level properties that are unset"""
        for key, definition in self._schema.get("properties", {}).items():
            if "default" in definition and key not in self._data:
                logger.debug("Defaulting %s to %r", key, definition["default"])
                self._data[key] = copy.deepcopy(definition["default"])

    @property
    def schema(self) -> Dict[str, Any]:
        return copy.deepcopy(self._schema)

    @property
    def catalog(self) -> OperatorCatalog:
        if self._catalog is None:
            self._catalog = OperatorCatalog.from_schema(self._schema)
        return self._catalog

    @property
    def condition_operators(self) -> FrozenSet[str]:
        return self.catalog.condition_operators

    @property
    def group_operators(self) -> FrozenSet[str]:
        return self.catalog.group_operators

    @property
    def expression_operators(self) -> FrozenSet[str]:
        return self.catalog.expression_operators

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self._data, indent=indent)

    def __getitem__(self, key: str) -> Any:
        return copy.deepcopy(self._data[key])

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, QueryDocument):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return f"QueryDocument({self._data!r})"
