"""
Pydantic models of the query document and the default schema validator

The models describe the document's shape; operator enumerations and the
``limit`` bounds are read from the schema passed to the validator, so the
schema document stays the single source of those values.
"""

from typing import Any, Dict, List, Literal, Optional, Protocol, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from sqlquery.core.catalog import OperatorCatalog
from sqlquery.core.exceptions import CatalogError, SchemaValidationError


def _check_operator(value: str, info: ValidationInfo, vocabulary: str) -> str:
    context = info.context or {}
    catalog: Optional[OperatorCatalog] = context.get("catalog")
    if catalog is not None:
        allowed = getattr(catalog, vocabulary)
        if value not in allowed:
            raise ValueError(f"'{value}' is not one of {sorted(allowed)}")
    return value


class Resource(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    id: StrictStr
    alias: StrictStr


class Property(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    resource: Optional[StrictStr] = None
    property: StrictStr
    alias: Optional[StrictStr] = None
    order: Optional[Literal["asc", "desc"]] = None


class Expression(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    operator: StrictStr
    operands: List[Union[StrictInt, StrictFloat, StrictStr, Property, "ExpressionProperty"]] = Field(
        min_length=1
    )

    @field_validator("operator")
    @classmethod
    def _known_operator(cls, value: str, info: ValidationInfo) -> str:
        return _check_operator(value, info, "expression_operators")


class ExpressionProperty(BaseModel):
    """An aliased expression, usable wherever a property is"""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    expression: Expression
    alias: StrictStr


Scalar = Union[StrictBool, StrictInt, StrictFloat, StrictStr]

ConditionValue = Union[Scalar, List[Union[Scalar, Property]], Property]


class Condition(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    resource: Optional[StrictStr] = None
    property: StrictStr
    operator: StrictStr
    value: ConditionValue

    @field_validator("operator")
    @classmethod
    def _known_operator(cls, value: str, info: ValidationInfo) -> str:
        return _check_operator(value, info, "condition_operators")


class ConditionGroup(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, allow_inf_nan=False)

    group_operator: StrictStr = Field(alias="groupOperator")
    conditions: List[Union[Condition, "ConditionGroup"]] = Field(min_length=1)

    @field_validator("group_operator")
    @classmethod
    def _known_operator(cls, value: str, info: ValidationInfo) -> str:
        return _check_operator(value, info, "group_operators")


class QueryModel(BaseModel):
    """Root of the query document"""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    properties: Optional[List[Union[Property, ExpressionProperty]]] = None
    resources: Optional[List[Resource]] = None
    joins: None = None
    conditions: Optional[List[Union[Condition, ConditionGroup]]] = None
    limit: Optional[StrictInt] = Field(default=None, ge=0)
    offset: Optional[StrictInt] = Field(default=None, ge=0)
    sorts: Optional[List[Property]] = None

    @field_validator("limit")
    @classmethod
    def _within_maximum(cls, value: Optional[int], info: ValidationInfo) -> Optional[int]:
        maximum = (info.context or {}).get("max_limit")
        if value is not None and maximum is not None and value > maximum:
            raise ValueError(f"limit must be less than or equal to {maximum}")
        return value


Expression.model_rebuild()
ExpressionProperty.model_rebuild()
ConditionGroup.model_rebuild()
QueryModel.model_rebuild()


class SchemaValidator(Protocol):
    """Validates a query document against a schema"""

    def validate(
        self, document: Dict[str, Any], schema: Dict[str, Any]
    ) -> Optional[SchemaValidationError]:
        ...


class PydanticSchemaValidator:
    """Schema validator backed by the pydantic query models"""

    def validate(
        self, document: Dict[str, Any], schema: Dict[str, Any]
    ) -> Optional[SchemaValidationError]:
        """
        Validate a document

        Args:
            document: Assembled, defaulted query document
            schema: Query schema supplying operator enumerations and limit bounds

        Returns:
            None if the document is valid, otherwise the error describing
            every violation
        """
        try:
            catalog = OperatorCatalog.from_schema(schema)
        except CatalogError as e:
            return SchemaValidationError([str(e)])

        context = {
            "catalog": catalog,
            "max_limit": schema.get("properties", {}).get("limit", {}).get("maximum"),
        }
        try:
            QueryModel.model_validate(document, context=context)
        except ValidationError as e:
            return SchemaValidationError([_format_error(error) for error in e.errors()])
        return None


def _format_error(error: Dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error["loc"])
    return f"{location}: {error['msg']}" if location else error["msg"]
