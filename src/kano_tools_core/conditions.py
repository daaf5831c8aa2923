"""Element conditions applied by managed loops during lookahead.

A managed loop checks every candidate element against its registered
``ActionCondition`` list before caching it. The first condition that matches
decides the element's fate through its ``Action``:

- ``EXCLUDE``: drop the element and pull the next one
- ``STOP``: drop the element and end the loop
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .errors import ConditionError


class Action(str, Enum):
    """Automatic action taken when a condition matches the next element."""

    EXCLUDE = "exclude"
    STOP = "stop"


class Condition(ABC):
    """Predicate over a single candidate element."""

    @abstractmethod
    def test(self, value: Any) -> bool:
        ...


class Comparison(Condition):
    """Base for conditions that compare elements against a fixed target."""

    def __init__(self, compare: Any) -> None:
        if compare is None:
            raise ConditionError("Condition must have something to compare to")
        self.compare = compare

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.compare!r})"


class Equals(Comparison):
    """Matches elements equal to the target, falling back to string equality.

    Values of the same concrete type that are unequal never fall through to
    the string comparison. ``Equals(3)`` matches ``"3"`` while
    ``Equals("3")`` does not match ``"03"``.
    """

    def test(self, value: Any) -> bool:
        if value is None:
            return False
        if self.compare == value:
            return True
        if type(value) is type(self.compare):
            return False
        return str(value) == str(self.compare)


@dataclass(frozen=True)
class ActionCondition:
    """Associates an ``Action`` with the ``Condition`` that triggers it."""

    action: Union[Action, str]
    condition: Condition

    def __post_init__(self) -> None:
        if self.action is None or self.condition is None:
            raise ConditionError("Condition and Action must both not be null")
        try:
            resolved = Action(self.action)
        except ValueError as e:
            raise ConditionError(f"Unknown action: {self.action!r}") from e
        # Accept the string form of an action from template code.
        object.__setattr__(self, "action", resolved)

    def matches(self, value: Any) -> bool:
        """Return True if ``value`` satisfies the bound condition."""
        return self.condition.test(value)
