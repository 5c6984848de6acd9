"""Tests for workflow condition evaluation"""

import pytest

from wa_automation.application.use_cases.workflows.condition_evaluator import (ConditionEvaluator,
                                                                               values_equal)
from wa_automation.domain.entities.workflow import Condition
from wa_automation.domain.exceptions import ConditionEvaluationError, ValidationException


@pytest.fixture
def evaluator() -> ConditionEvaluator:
    return ConditionEvaluator()


def cond(field, operator, value=None, logic=""):
    return Condition(field=field, operator=operator, value=value, logic=logic)


class TestListLogic:
    def test_empty_list_passes(self, evaluator):
        assert evaluator.evaluate([], {}) is True

    def test_and_requires_every_condition(self, evaluator):
        conditions = [cond("total", "greater_than", 100), cond("city", "equals", "Jakarta")]

        assert evaluator.evaluate(conditions, {"total": 150, "city": "Jakarta"}) is True
        assert evaluator.evaluate(conditions, {"total": 150, "city": "Bandung"}) is False

    def test_or_on_middle_condition_makes_whole_list_a_disjunction(self, evaluator):
        """
        GIVEN three conditions where only the middle one carries logic OR
        WHEN only the last condition passes
        THEN the whole list passes.
        """
        conditions = [
            cond("total", "greater_than", 1000),
            cond("city", "equals", "Surabaya", logic="OR"),
            cond("member", "equals", True),
        ]

        assert evaluator.evaluate(conditions, {"total": 5, "city": "Jakarta", "member": True}) is True
        assert evaluator.evaluate(conditions, {"total": 5, "city": "Jakarta", "member": False}) is False

    def test_or_short_circuits_before_a_failing_condition(self, evaluator):
        conditions = [cond("total", "greater_than", 1, logic="OR"), cond("missing", "contains", "x")]

        assert evaluator.evaluate(conditions, {"total": 5}) is True

    def test_and_short_circuits_before_a_failing_condition(self, evaluator):
        conditions = [cond("total", "greater_than", 10), cond("missing", "contains", "x")]

        assert evaluator.evaluate(conditions, {"total": 5}) is False


class TestMissingFields:
    def test_not_equals_on_missing_field_passes(self, evaluator):
        assert evaluator.evaluate([cond("status", "not_equals", "paid")], {}) is True

    @pytest.mark.parametrize("operator", ["equals", "greater_than", "contains", "in_list"])
    def test_other_operators_error_on_missing_field(self, evaluator, operator):
        with pytest.raises(ConditionEvaluationError, match="field 'status' not found"):
            evaluator.evaluate([cond("status", operator, "paid")], {})


class TestOperators:
    def test_numeric_comparisons(self, evaluator):
        data = {"total": 100}

        assert evaluator.evaluate_single(cond("total", "greater_or_equal", 100), data) is True
        assert evaluator.evaluate_single(cond("total", "less_than", 100.5), data) is True
        assert evaluator.evaluate_single(cond("total", "less_or_equal", 99), data) is False

    def test_greater_than_with_string_operand_is_an_error_not_false(self, evaluator):
        with pytest.raises(ConditionEvaluationError, match="condition value is not a number"):
            evaluator.evaluate_single(cond("total", "greater_than", "3"), {"total": 5})

    def test_booleans_are_not_numbers(self, evaluator):
        with pytest.raises(ConditionEvaluationError, match="field value is not a number"):
            evaluator.evaluate_single(cond("flag", "greater_than", 0), {"flag": True})

    def test_string_operators_ignore_case(self, evaluator):
        data = {"message": "Hello PROMO code"}

        assert evaluator.evaluate_single(cond("message", "contains", "promo"), data) is True
        assert evaluator.evaluate_single(cond("message", "not_contains", "refund"), data) is True
        assert evaluator.evaluate_single(cond("message", "starts_with", "hello"), data) is True
        assert evaluator.evaluate_single(cond("message", "ends_with", "CODE"), data) is True

    def test_contains_on_non_string_is_an_error(self, evaluator):
        with pytest.raises(ConditionEvaluationError, match="field value is not a string"):
            evaluator.evaluate_single(cond("total", "contains", "1"), {"total": 100})

    def test_in_list_uses_structural_equality(self, evaluator):
        condition = cond("tier", "in_list", ["gold", 2, {"a": 1}])

        assert evaluator.evaluate_single(condition, {"tier": "gold"}) is True
        assert evaluator.evaluate_single(condition, {"tier": 2.0}) is True
        assert evaluator.evaluate_single(condition, {"tier": {"a": 1}}) is True
        assert evaluator.evaluate_single(condition, {"tier": "silver"}) is False
        assert evaluator.evaluate_single(cond("tier", "not_in_list", ["gold"]), {"tier": "bronze"}) is True

    def test_in_list_requires_a_list(self, evaluator):
        with pytest.raises(ConditionEvaluationError, match="not a list"):
            evaluator.evaluate_single(cond("tier", "in_list", "gold"), {"tier": "gold"})

    def test_unknown_operator(self, evaluator):
        with pytest.raises(ValidationException, match="unknown operator: matches"):
            evaluator.evaluate_single(cond("tier", "matches", "g.*"), {"tier": "gold"})


class TestValuesEqual:
    def test_int_and_float_compare_by_value(self):
        assert values_equal(1, 1.0) is True

    def test_bool_never_equals_number(self):
        assert values_equal(True, 1) is False
        assert values_equal(0, False) is False

    def test_nested_structures(self):
        assert values_equal({"a": [1, "x"]}, {"a": [1.0, "x"]}) is True
        assert values_equal([1, 2], [2, 1]) is False
        assert values_equal({"a": 1}, {"a": 1, "b": 2}) is False

    def test_none_and_mixed_types(self):
        assert values_equal(None, None) is True
        assert values_equal("1", 1) is False
