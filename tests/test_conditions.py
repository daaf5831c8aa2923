"""Tests for element conditions."""

from decimal import Decimal

import pytest

from kano_tools_core.conditions import Action, ActionCondition, Condition, Equals
from kano_tools_core.errors import ConditionError


def test_equals_same_value():
    assert Equals(3).test(3) is True
    assert Equals("a").test("a") is True


def test_equals_none_never_matches():
    assert Equals("None").test(None) is False


def test_equals_requires_target():
    with pytest.raises(ConditionError):
        Equals(None)


def test_equals_same_type_unequal_skips_string_fallback():
    assert Equals("3").test("03") is False
    assert Equals(3).test(4) is False


def test_equals_cross_type_string_fallback():
    assert Equals(3).test("3") is True
    assert Equals("3").test(3) is True
    assert Equals("2.5").test(2.5) is True
    assert Equals(Decimal("1.50")).test("1.50") is True
    assert Equals("x").test(3) is False


def test_equals_numeric_equality_before_type_check():
    assert Equals(1).test(1.0) is True


def test_action_condition_requires_both_parts():
    with pytest.raises(ConditionError):
        ActionCondition(None, Equals(1))
    with pytest.raises(ConditionError):
        ActionCondition(Action.STOP, None)


def test_action_condition_accepts_action_string():
    ac = ActionCondition("exclude", Equals(1))
    assert ac.action is Action.EXCLUDE
    with pytest.raises(ConditionError):
        ActionCondition("explode", Equals(1))


def test_action_condition_is_immutable():
    ac = ActionCondition(Action.STOP, Equals(1))
    with pytest.raises(AttributeError):
        ac.action = Action.EXCLUDE


def test_action_condition_matches_delegates_to_condition():
    class Negative(Condition):
        def test(self, value):
            return isinstance(value, int) and value < 0

    ac = ActionCondition(Action.EXCLUDE, Negative())
    assert ac.matches(-1) is True
    assert ac.matches(1) is False
    assert ac.matches("x") is False


def test_condition_is_abstract():
    with pytest.raises(TypeError):
        Condition()
