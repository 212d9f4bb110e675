"""Exception hierarchy for SQL to query document translation."""

from typing import List, Optional


class QueryTranslationError(ValueError):
    """
    Base exception for translation errors

    ``clause`` names the SQL clause being translated when the error was
    raised (``SELECT``, ``WHERE``...), filled in by the query builder.
    """

    def __init__(self, message: str, clause: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.clause = clause

    def __str__(self) -> str:
        if self.clause:
            return f"Invalid {self.clause} clause. {self.message}"
        return self.message


class StructuralError(QueryTranslationError):
    """Raised when the AST has a malformed or unsupported shape."""


class UnsupportedNodeKind(StructuralError):
    """Raised when no translation exists for a node kind."""


class InvalidWhereClause(StructuralError):
    """Raised when the WHERE clause is empty or not a list of nodes."""


class MalformedCondition(StructuralError):
    """Raised when a condition bracket lacks its operand, operator, operand children."""


class InvalidConditionOperand(StructuralError):
    """Raised when the left side of a condition is not a property."""


class MalformedExpression(StructuralError):
    """Raised when an arithmetic bracket holds more than one operator."""


class MaxDepthExceeded(StructuralError):
    """Raised when the AST nests deeper than the configured limit."""


class ClassificationError(QueryTranslationError):
    """Raised when a bracket expression cannot be classified by its operators."""


class AmbiguousOperatorMix(ClassificationError):
    """Raised when operators from more than one category share a bracket."""


class NoValidOperator(ClassificationError):
    """Raised when a bracket contains no known operator."""


class MixedGroupOperators(ClassificationError):
    """Raised when AND and OR are mixed within one condition group."""


class ConstraintError(QueryTranslationError):
    """Raised when a well-shaped node violates a semantic constraint."""


class UnaliasedExpression(ConstraintError):
    """Raised when an expression or aggregate has no alias."""


class EmptyAggregateOperands(ConstraintError):
    """Raised when an aggregate function has no property arguments."""


class UnknownReservedWord(ConstraintError):
    """Raised when a reserved word other than TRUE/FALSE is used as a value."""


class PolicyError(QueryTranslationError):
    """Raised when a query is well-formed but not allowed."""


class ConflictingResourceSpecification(PolicyError):
    """Raised when both a resource id and a FROM clause are supplied."""


class TooManyResources(PolicyError):
    """Raised when FROM names several resources and joins are disabled."""


class JoinsNotSupported(PolicyError):
    """Raised when joins are enabled and requested; not yet implemented."""


class SchemaValidationError(QueryTranslationError):
    """Raised when the assembled document does not conform to the schema."""

    def __init__(self, errors: List[str], clause: Optional[str] = None):
        self.errors = list(errors)
        message = "Query does not match schema: " + "; ".join(self.errors)
        super().__init__(message, clause)


class CatalogError(QueryTranslationError):
    """Raised when the schema's operator vocabularies are missing or overlap."""


__all__ = [
    "AmbiguousOperatorMix",
    "CatalogError",
    "ClassificationError",
    "ConflictingResourceSpecification",
    "ConstraintError",
    "EmptyAggregateOperands",
    "InvalidConditionOperand",
    "InvalidWhereClause",
    "JoinsNotSupported",
    "MalformedCondition",
    "MalformedExpression",
    "MaxDepthExceeded",
    "MixedGroupOperators",
    "NoValidOperator",
    "PolicyError",
    "QueryTranslationError",
    "SchemaValidationError",
    "StructuralError",
    "TooManyResources",
    "UnaliasedExpression",
    "UnknownReservedWord",
    "UnsupportedNodeKind",
]
