"""
Operator catalog - the three operator vocabularies of the query schema

Bracket expressions in the AST can stand for a condition, a condition group or
an arithmetic/aggregate expression. The only way to tell them apart is the
operators they contain, so each operator token must belong to exactly one
vocabulary.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, FrozenSet, Iterable, List

from sqlquery.core.exceptions import CatalogError
from sqlquery.schema import load_schema


class OperatorCategory(str, Enum):
    """What a bracket expression turns into"""

    CONDITION = "condition"
    GROUP = "conditionGroup"
    EXPRESSION = "expression"


@dataclass(frozen=True)
class OperatorCatalog:
    """Immutable operator vocabularies, pairwise disjoint"""

    condition_operators: FrozenSet[str]
    group_operators: FrozenSet[str]
    expression_operators: FrozenSet[str]

    def __post_init__(self):
        vocabularies = {
            OperatorCategory.CONDITION: self.condition_operators,
            OperatorCategory.GROUP: self.group_operators,
            OperatorCategory.EXPRESSION: self.expression_operators,
        }
        seen: Dict[str, OperatorCategory] = {}
        for category, operators in vocabularies.items():
            for operator in operators:
                if operator in seen:
                    raise CatalogError(
                        f"Operator '{operator}' belongs to both {seen[operator].value} "
                        f"and {category.value} operators."
                    )
                seen[operator] = category

    @classmethod
    def from_schema(cls, schema: Dict[str, Any]) -> "OperatorCatalog":
        """
        Read the operator enumerations from a query schema

        Args:
            schema: Parsed query schema document

        Returns:
            OperatorCatalog

        Raises:
            CatalogError: If an enumeration is missing or the sets overlap
        """
        try:
            definitions = schema["definitions"]
            condition = definitions["condition"]["properties"]["operator"]["enum"]
            group = definitions["conditionGroup"]["properties"]["groupOperator"]["enum"]
            expression = definitions["expression"]["properties"]["operator"]["enum"]
        except (KeyError, TypeError) as e:
            raise CatalogError(f"Schema does not define operator enumerations: missing {e}") from e

        return cls(
            condition_operators=frozenset(condition),
            group_operators=frozenset(group),
            expression_operators=frozenset(expression),
        )

    def categories(self, operators: Iterable[str]) -> List[OperatorCategory]:
        """
        Find the categories a set of operator tokens intersects

        Args:
            operators: Lower-cased operator tokens

        Returns:
            Matching categories, in condition, group, expression order
        """
        tokens = set(operators)
        matches = []
        if tokens & self.condition_operators:
            matches.append(OperatorCategory.CONDITION)
        if tokens & self.group_operators:
            matches.append(OperatorCategory.GROUP)
        if tokens & self.expression_operators:
            matches.append(OperatorCategory.EXPRESSION)
        return matches


@lru_cache(maxsize=1)
def default_catalog() -> OperatorCatalog:
    """Catalog of the packaged schema, loaded once per process"""
    return OperatorCatalog.from_schema(load_schema())
