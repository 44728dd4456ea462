"""Tests for variable substitution, conditions and loop headers."""
from __future__ import annotations

import pytest

from .conditions import ConditionEvaluator
from .errors import InvalidLoopExpression
from .loops import parse_loop_expression
from .variables import VariableEnvironment


def test_substitute_bound_and_unbound_names():
    variables = VariableEnvironment({"x": "v"})

    assert variables.substitute("{x}") == "v"
    assert variables.substitute("{y}") == "{y}"
    assert variables.substitute("a {x} b { x } c {}") == "a v b v c {}"
    assert variables.substitute("") == ""
    assert variables.substitute(None) == ""


def test_substitute_stringifies_values():
    variables = VariableEnvironment()
    variables.set("count", 3)

    assert variables.substitute("{count} items") == "3 items"
    assert variables.get("count") == 3
    assert "count" in variables
    assert len(variables) == 1


def test_page_title_condition_in_both_languages():
    evaluator = ConditionEvaluator()
    variables = VariableEnvironment({"pageTitle": "Swag Labs"})

    assert evaluator.evaluate('page title contains "Swag"', variables) is True
    assert evaluator.evaluate('Page title contains "Checkout"', variables) is False
    assert evaluator.evaluate("заголовок страницы содержит Labs", variables) is True


def test_page_title_condition_without_title():
    evaluator = ConditionEvaluator()

    assert evaluator.evaluate('page title contains "Swag"', VariableEnvironment()) is False


def test_unknown_condition_is_true():
    assert ConditionEvaluator().evaluate("the cart is empty", VariableEnvironment()) is True


def test_registered_predicate_takes_the_remainder():
    evaluator = ConditionEvaluator(register_defaults=False)
    seen = []

    def variable_is_set(argument, variables):
        seen.append(argument)
        return argument in variables

    evaluator.register("variable is set ", variable_is_set)
    variables = VariableEnvironment({"price": "$9.99"})

    assert evaluator.evaluate("variable is set price", variables) is True
    assert evaluator.evaluate("variable is set total", variables) is False
    assert seen == ["price", "total"]


@pytest.mark.parametrize("expression, expected", [
    ('item in ["a", "b"]', ("item", ["a", "b"])),
    ('item in ["a","b"]', ("item", ["a", "b"])),
    ("url in [https://one.test, https://two.test]", ("url", ["https://one.test", "https://two.test"])),
    ('товар в ["Рюкзак", "Фонарик"]', ("товар", ["Рюкзак", "Фонарик"])),
    ("x in []", ("x", [])),
])
def test_parse_loop_expression(expression, expected):
    assert parse_loop_expression(expression) == expected


@pytest.mark.parametrize("expression", ["elements", "item in list", " in [a]"])
def test_invalid_loop_expression_carries_text(expression):
    with pytest.raises(InvalidLoopExpression) as excinfo:
        parse_loop_expression(expression)
    assert excinfo.value.expression == expression
