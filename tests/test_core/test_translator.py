"""
Tests for the node translator
"""

import pytest

from sqlquery.core.catalog import OperatorCatalog, OperatorCategory
from sqlquery.core.exceptions import (
    AmbiguousOperatorMix,
    ClassificationError,
    ConstraintError,
    EmptyAggregateOperands,
    InvalidConditionOperand,
    MalformedCondition,
    MalformedExpression,
    MaxDepthExceeded,
    MixedGroupOperators,
    NoValidOperator,
    StructuralError,
    UnaliasedExpression,
    UnknownReservedWord,
    UnsupportedNodeKind,
)
from sqlquery.core.translator import NodeTranslator
from sqlquery.sql.ast_nodes import AstNode


def colref(name, alias=None, direction=None):
    return AstNode(
        kind="colref",
        base_expr=name,
        parts=tuple(name.split(".")),
        alias=alias,
        direction=direction,
    )


def const(text):
    return AstNode(kind="const", base_expr=text)


def op(text):
    return AstNode(kind="operator", base_expr=text)


def bracket(*children, alias=None):
    return AstNode(kind="bracket_expression", sub_tree=tuple(children), alias=alias)


def condition(name, operator, value):
    return bracket(colref(name), op(operator), const(value))


class TestSimpleNodes:
    """Test translation of leaf node kinds"""

    def test_table_with_alias(self, translator):
        node = AstNode(kind="table", base_expr="tablename x", parts=("tablename",), alias="x")

        assert translator.translate(node) == {"id": "tablename", "alias": "x"}

    def test_table_default_alias(self, translator):
        node = AstNode(kind="table", base_expr="tablename", parts=("tablename",))

        assert translator.translate(node) == {"id": "tablename", "alias": "t"}

    def test_colref_default_resource(self, translator):
        assert translator.translate(colref("name")) == {"resource": "t", "property": "name"}

    def test_colref_qualified(self, translator):
        assert translator.translate(colref("p.name")) == {"resource": "p", "property": "name"}

    def test_colref_alias_and_direction(self, translator):
        node = colref("p.name", alias="n", direction="DESC")

        assert translator.translate(node) == {
            "resource": "p",
            "property": "name",
            "alias": "n",
            "order": "desc",
        }

    def test_colref_star(self, translator):
        """Test bare * produces no property"""
        assert translator.translate(AstNode(kind="colref", base_expr="*")) is None

    def test_colref_qualified_star(self, translator):
        """Test t.* produces no property"""
        assert translator.translate(colref("t.*")) is None

    def test_alias(self, translator):
        node = AstNode(kind="alias", base_expr="total", direction="DESC")

        assert translator.translate(node) == {"property": "total", "order": "desc"}

    def test_alias_without_direction(self, translator):
        node = AstNode(kind="alias", base_expr="total")

        assert translator.translate(node) == {"property": "total"}

    def test_reserved_booleans(self, translator):
        assert translator.translate(AstNode(kind="reserved", base_expr="TRUE")) is True
        assert translator.translate(AstNode(kind="reserved", base_expr="false")) is False

    def test_reserved_unknown(self, translator):
        with pytest.raises(UnknownReservedWord):
            translator.translate(AstNode(kind="reserved", base_expr="NULL"))

    def test_operator_lowercased(self, translator):
        assert translator.translate(op("LIKE")) == "like"
        assert translator.translate(op("NOT IN")) == "not in"

    def test_in_list(self, translator):
        node = AstNode(kind="in-list", sub_tree=(const("1"), const("2"), const("'a'")))

        assert translator.translate(node) == [1, 2, "a"]

    def test_unsupported_kind(self, translator):
        with pytest.raises(UnsupportedNodeKind):
            translator.translate(AstNode(kind="subquery", base_expr="(SELECT 1)"))

    def test_unsupported_kind_is_structural(self, translator):
        with pytest.raises(StructuralError):
            translator.translate(AstNode(kind="expression", base_expr="a + 1"))


class TestConstants:
    """Test constant coercion"""

    def test_integer(self, translator):
        value = translator.translate(const("42"))

        assert value == 42
        assert isinstance(value, int)

    def test_integral_float_becomes_int(self, translator):
        value = translator.translate(const("4.0"))

        assert value == 4
        assert isinstance(value, int)

    def test_float(self, translator):
        assert translator.translate(const("3.14")) == 3.14

    def test_negative(self, translator):
        assert translator.translate(const("-7")) == -7

    def test_exponent(self, translator):
        assert translator.translate(const("1e3")) == 1000

    def test_quoted_strings(self, translator):
        assert translator.translate(const("'hello'")) == "hello"
        assert translator.translate(const('"hello"')) == "hello"

    def test_quoted_number_stays_string(self, translator):
        assert translator.translate(const("'123'")) == "123"


class TestAggregates:
    """Test aggregate function translation"""

    def test_sum(self, translator):
        node = AstNode(
            kind="aggregate_function",
            base_expr="SUM",
            sub_tree=(colref("amount"),),
            alias="total",
        )

        assert translator.translate(node) == {
            "expression": {
                "operator": "sum",
                "operands": [{"resource": "t", "property": "amount"}],
            },
            "alias": "total",
        }

    def test_missing_alias(self, translator):
        node = AstNode(kind="aggregate_function", base_expr="MAX", sub_tree=(colref("amount"),))

        with pytest.raises(UnaliasedExpression):
            translator.translate(node)

    def test_no_arguments(self, translator):
        node = AstNode(kind="aggregate_function", base_expr="COUNT", alias="c")

        with pytest.raises(EmptyAggregateOperands):
            translator.translate(node)

    def test_count_star_has_no_property_arguments(self, translator):
        node = AstNode(
            kind="aggregate_function",
            base_expr="COUNT",
            sub_tree=(AstNode(kind="colref", base_expr="*"),),
            alias="c",
        )

        with pytest.raises(ConstraintError):
            translator.translate(node)


class TestBracketClassification:
    """Test classification of bracket expressions by their operators"""

    def test_condition(self, translator):
        assert translator.translate(condition("x", "=", "1")) == {
            "resource": "t",
            "property": "x",
            "operator": "=",
            "value": 1,
        }

    def test_condition_keeps_falsy_value(self, translator):
        result = translator.translate(condition("x", "=", "0"))

        assert result["value"] == 0

    def test_condition_with_in_list(self, translator):
        node = bracket(
            colref("id"),
            op("IN"),
            AstNode(kind="in-list", sub_tree=(const("1"), const("2"))),
        )

        assert translator.translate(node) == {
            "resource": "t",
            "property": "id",
            "operator": "in",
            "value": [1, 2],
        }

    def test_condition_on_alias_has_no_resource(self, translator):
        node = bracket(AstNode(kind="alias", base_expr="total"), op(">"), const("5"))

        assert translator.translate(node) == {"property": "total", "operator": ">", "value": 5}

    def test_condition_left_side_must_be_property(self, translator):
        with pytest.raises(InvalidConditionOperand):
            translator.translate(bracket(const("1"), op("="), colref("x")))

    def test_condition_needs_three_children(self, translator):
        with pytest.raises(MalformedCondition):
            translator.translate(bracket(colref("x"), op("="), const("1"), op("="), const("2")))

    def test_or_group(self, translator):
        node = bracket(condition("x", "=", "1"), op("OR"), condition("y", ">", "2"))

        assert translator.translate(node) == {
            "groupOperator": "or",
            "conditions": [
                {"resource": "t", "property": "x", "operator": "=", "value": 1},
                {"resource": "t", "property": "y", "operator": ">", "value": 2},
            ],
        }

    def test_nested_groups(self, translator):
        inner = bracket(condition("b", "=", "2"), op("AND"), condition("c", "=", "3"))
        node = bracket(condition("a", "=", "1"), op("OR"), inner)

        result = translator.translate(node)

        assert result["groupOperator"] == "or"
        assert result["conditions"][1]["groupOperator"] == "and"
        assert len(result["conditions"][1]["conditions"]) == 2

    def test_mixed_group_operators(self, translator):
        node = bracket(
            condition("a", "=", "1"),
            op("AND"),
            condition("b", "=", "2"),
            op("OR"),
            condition("c", "=", "3"),
        )

        with pytest.raises(MixedGroupOperators):
            translator.translate(node)

    def test_ambiguous_mix(self, translator):
        """Test unbracketed conditions joined by AND"""
        node = bracket(
            colref("x"), op("="), const("1"), op("AND"), colref("y"), op("="), const("2")
        )

        with pytest.raises(AmbiguousOperatorMix):
            translator.translate(node)

    def test_ambiguous_condition_and_arithmetic(self, translator):
        node = bracket(colref("x"), op("+"), const("1"), op(">"), const("2"))

        with pytest.raises(ClassificationError):
            translator.translate(node)

    def test_no_valid_operator(self, translator):
        node = bracket(colref("x"), op("IS"), AstNode(kind="reserved", base_expr="NULL"))

        with pytest.raises(NoValidOperator):
            translator.translate(node)

    def test_classify(self, translator):
        assert translator.classify(condition("x", "=", "1")) == OperatorCategory.CONDITION


class TestExpressions:
    """Test arithmetic bracket expressions"""

    def test_aliased_expression(self, translator):
        node = bracket(colref("object_id"), op("+"), const("4"), alias="total")

        assert translator.translate(node) == {
            "expression": {
                "operator": "+",
                "operands": [{"resource": "t", "property": "object_id"}, 4],
            },
            "alias": "total",
        }

    def test_unaliased_expression(self, translator):
        with pytest.raises(UnaliasedExpression):
            translator.translate(bracket(colref("object_id"), op("+"), const("4")))

    def test_nested_expression_needs_alias(self, translator):
        inner = bracket(colref("a"), op("*"), const("2"))
        node = bracket(inner, op("+"), const("1"), alias="total")

        with pytest.raises(UnaliasedExpression):
            translator.translate(node)

    def test_nested_aliased_expression(self, translator):
        inner = bracket(colref("a"), op("*"), const("2"), alias="doubled")
        node = bracket(inner, op("+"), const("1"), alias="total")

        result = translator.translate(node)

        assert result["expression"]["operands"][0]["alias"] == "doubled"

    def test_one_operator_per_bracket(self, translator):
        node = bracket(colref("a"), op("+"), colref("b"), op("+"), colref("c"), alias="s")

        with pytest.raises(MalformedExpression):
            translator.translate(node)


class TestDepthLimit:
    """Test recursion depth protection"""

    def nested(self, levels):
        node = condition("x", "=", "1")
        for _ in range(levels):
            node = bracket(node, op("OR"), condition("y", "=", "2"))
        return node

    def test_within_limit(self, catalog):
        translator = NodeTranslator(catalog, max_depth=20)

        result = translator.translate(self.nested(5))

        assert result["groupOperator"] == "or"

    def test_exceeds_limit(self, catalog):
        translator = NodeTranslator(catalog, max_depth=5)

        with pytest.raises(MaxDepthExceeded):
            translator.translate(self.nested(10))


class TestSyntheticCatalog:
    """Test that classification follows the catalog it is given"""

    @pytest.fixture
    def synthetic(self):
        catalog = OperatorCatalog(
            condition_operators=frozenset({"~"}),
            group_operators=frozenset({"&&"}),
            expression_operators=frozenset({"^"}),
        )
        return NodeTranslator(catalog)

    def test_condition_operator(self, synthetic):
        assert synthetic.translate(condition("x", "~", "1"))["operator"] == "~"

    def test_standard_operator_unknown(self, synthetic):
        with pytest.raises(NoValidOperator):
            synthetic.translate(condition("x", "=", "1"))

    def test_group_operator(self, synthetic):
        node = bracket(condition("x", "~", "1"), op("&&"), condition("y", "~", "2"))

        assert synthetic.translate(node)["groupOperator"] == "&&"
