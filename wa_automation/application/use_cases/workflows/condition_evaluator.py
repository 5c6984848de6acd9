"""
Condition evaluation for workflow triggers.

Conditions are evaluated against the trigger data as one list: if any
condition carries logic "OR" the list is a disjunction, otherwise a
conjunction. Both forms short-circuit.
"""

from collections.abc import Callable
from typing import Any

from wa_automation.domain.entities.workflow import Condition
from wa_automation.domain.exceptions import ConditionEvaluationError, ValidationException
from wa_automation.shared.enums import ConditionOperator


def values_equal(left: Any, right: Any) -> bool:
    """
    Structural equality over JSON-shaped values.

    Booleans never equal numbers, ints and floats compare by value, lists
    compare element-wise in order and dicts compare keys and values.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(values_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(values_equal(left[k], right[k]) for k in left)
    if type(left) is not type(right):
        return False
    return left == right


def _to_number(value: Any, side: str, condition: Condition) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConditionEvaluationError(
            f"{side} value is not a number: cannot convert {type(value).__name__} to float",
            field=condition.field,
            operator=condition.operator,
        )
    return float(value)


def _to_string(value: Any, side: str, condition: Condition) -> str:
    if not isinstance(value, str):
        raise ConditionEvaluationError(
            f"{side} value is not a string", field=condition.field, operator=condition.operator
        )
    return value.lower()


def _numeric(compare: Callable[[float, float], bool]):
    def evaluate(field_value: Any, condition: Condition) -> bool:
        return compare(
            _to_number(field_value, "field", condition),
            _to_number(condition.value, "condition", condition),
        )

    return evaluate


def _textual(compare: Callable[[str, str], bool]):
    def evaluate(field_value: Any, condition: Condition) -> bool:
        return compare(
            _to_string(field_value, "field", condition),
            _to_string(condition.value, "condition", condition),
        )

    return evaluate


def _in_list(field_value: Any, condition: Condition) -> bool:
    if not isinstance(condition.value, (list, tuple)):
        raise ConditionEvaluationError(
            "condition value is not a list", field=condition.field, operator=condition.operator
        )
    return any(values_equal(field_value, item) for item in condition.value)


def _negate(evaluate):
    return lambda field_value, condition: not evaluate(field_value, condition)


def _equals(field_value: Any, condition: Condition) -> bool:
    return values_equal(field_value, condition.value)


_contains = _textual(lambda field, value: value in field)

_OPERATORS: dict[str, Callable[[Any, Condition], bool]] = {
    ConditionOperator.EQUALS.value: _equals,
    ConditionOperator.NOT_EQUALS.value: _negate(_equals),
    ConditionOperator.GREATER_THAN.value: _numeric(lambda a, b: a > b),
    ConditionOperator.GREATER_OR_EQUAL.value: _numeric(lambda a, b: a >= b),
    ConditionOperator.LESS_THAN.value: _numeric(lambda a, b: a < b),
    ConditionOperator.LESS_OR_EQUAL.value: _numeric(lambda a, b: a <= b),
    ConditionOperator.CONTAINS.value: _contains,
    ConditionOperator.NOT_CONTAINS.value: _negate(_contains),
    ConditionOperator.STARTS_WITH.value: _textual(lambda field, value: field.startswith(value)),
    ConditionOperator.ENDS_WITH.value: _textual(lambda field, value: field.endswith(value)),
    ConditionOperator.IN_LIST.value: _in_list,
    ConditionOperator.NOT_IN_LIST.value: _negate(_in_list),
}


class ConditionEvaluator:
    """Evaluates workflow conditions against trigger data"""

    def evaluate(self, conditions: list[Condition], data: dict[str, Any]) -> bool:
        """
        Evaluate a condition list.

        Returns True for an empty list. Raises ConditionEvaluationError for a
        missing field (except under not_equals) or a type mismatch, and
        ValidationException for an unknown operator.
        """
        if not conditions:
            return True

        if any(condition.is_or for condition in conditions):
            return any(self.evaluate_single(condition, data) for condition in conditions)
        return all(self.evaluate_single(condition, data) for condition in conditions)

    def evaluate_single(self, condition: Condition, data: dict[str, Any]) -> bool:
        operator = _OPERATORS.get(condition.operator)

        if condition.field not in data:
            if condition.operator == ConditionOperator.NOT_EQUALS.value:
                return True
            raise ConditionEvaluationError(
                f"field '{condition.field}' not found in data",
                field=condition.field,
                operator=condition.operator,
            )

        if operator is None:
            raise ValidationException(f"unknown operator: {condition.operator}", field="operator")

        return operator(data[condition.field], condition)
