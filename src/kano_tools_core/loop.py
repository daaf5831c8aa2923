"""Managed iteration for template loops.

Template languages rarely offer ``break`` or ``continue``. ``LoopController``
gives templates the same control imperatively: each loop the template enters
is registered with ``watch()``, which wraps the loop source in a
``ManagedIterator`` and pushes it on a stack (innermost loop on top). While
rendering a loop body the template calls back into the controller to stop,
skip, or inspect the current loop or any enclosing loop by name.

Example (pseudo-template)::

    for item in loop.watch([1, 2, 3, 4, 5, 6]):
        emit(item)
        if item >= 1: loop.skip(1)
        if item >= 5: loop.stop()

emits ``1, 3, 5``.

Each controller is scoped to a single rendering pass and is not thread-safe.
"""

import logging
from typing import Any, Callable, List, Optional

from .conditions import Action, ActionCondition, Equals
from .errors import UnsupportedOperationError
from .iteration import to_iterator

logger = logging.getLogger(__name__)

# Marks an empty lookahead slot; None is a legal element.
_EMPTY = object()
_UNSET = object()

DEFAULT_NAME_PREFIX = "loop"


class ManagedIterator:
    """Stoppable, skippable, nameable iterator with one-element lookahead.

    Elements pulled from the wrapped iterator are checked against the
    registered ``ActionCondition`` list before they are cached. Excluded
    elements are silently discarded and never counted; a STOP match ends the
    iteration before the matching element.

    The iterator does not know its controller. When a popping lookahead finds
    nothing left it calls ``on_release`` once so the owner can drop it from
    its stack.
    """

    def __init__(
        self,
        name: str,
        iterator: Any,
        on_release: Optional[Callable[["ManagedIterator"], None]] = None,
    ) -> None:
        if name is None:
            raise ValueError("name cannot be None")
        self._name = name
        self._iterator = iterator
        self._on_release = on_release
        self._released = False
        self._stopped = False
        self._first: Optional[bool] = None
        self._count = 0
        self._next: Any = _EMPTY
        self._conditions: List[ActionCondition] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def stopped(self) -> bool:
        return self._stopped

    # Iterator protocol

    def __iter__(self) -> "ManagedIterator":
        return self

    def __next__(self) -> Any:
        """Return the next element that passes all conditions.

        Raises:
            StopIteration: No valid element remains (or the loop was stopped).
        """
        if not self._has_next(release_when_done=True):
            raise StopIteration("There are no more valid elements in this iterator")

        if self._first is None:
            self._first = True
        elif self._first:
            self._first = False
        self._count += 1

        value = self._next
        self._next = _EMPTY
        return value

    def has_next(self) -> bool:
        """Return True if a valid element is available without consuming it.

        Releases this iterator from its owner once nothing is left.
        """
        return self._has_next(release_when_done=True)

    def remove(self) -> None:
        raise UnsupportedOperationError("remove is not currently supported")

    # State

    def is_first(self) -> bool:
        """True while zero or one elements have been returned."""
        return self._first is None or self._first

    def is_last(self) -> bool:
        """True if no valid element follows the last one returned.

        Peeks without releasing this iterator from its owner's stack.
        """
        return not self._has_next(release_when_done=False)

    def get_count(self) -> int:
        """Number of elements returned so far, including manually skipped ones."""
        return self._count

    first = property(is_first)
    last = property(is_last)
    count = property(get_count)

    # Control

    def stop(self, value: Any = _UNSET) -> Optional["ManagedIterator"]:
        """Stop iterating now, or stop just before any element equal to ``value``.

        Without an argument the iterator is stopped immediately and the
        lookahead slot is cleared. With an argument a STOP condition is
        registered and this iterator is returned for chaining.
        """
        if value is _UNSET:
            self._stopped = True
            self._next = _EMPTY
            return None
        return self.condition(ActionCondition(Action.STOP, Equals(value)))

    def exclude(self, value: Any) -> "ManagedIterator":
        """Skip every element equal to ``value``."""
        return self.condition(ActionCondition(Action.EXCLUDE, Equals(value)))

    def condition(self, condition: Optional[ActionCondition]) -> Optional["ManagedIterator"]:
        if condition is None:
            return None
        self._conditions.append(condition)
        return self

    # Lookahead

    def _has_next(self, *, release_when_done: bool) -> bool:
        if not self._stopped and self._next is not _EMPTY:
            return True
        if not self._stopped and self._cache_next(release_when_done=release_when_done):
            return True
        if release_when_done:
            self._release()
        return False

    def _cache_next(self, *, release_when_done: bool) -> bool:
        # Drains any run of excluded elements in one call.
        while True:
            try:
                candidate = next(self._iterator)
            except StopIteration:
                if release_when_done:
                    self.stop()
                return False

            action = self._match(candidate)
            if action is Action.EXCLUDE:
                continue
            if action is Action.STOP:
                logger.debug(f"{self!r} stopped by condition at {candidate!r}")
                self.stop()
                return False

            self._next = candidate
            return True

    def _match(self, candidate: Any) -> Optional[Action]:
        for condition in self._conditions:
            if condition.matches(candidate):
                return condition.action
        return None

    def _release(self) -> None:
        if self._released:
            return
        self._released = True
        if self._on_release is not None:
            self._on_release(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}:{self._name}"


class LoopController:
    """Stack of managed loops for a single rendering pass.

    Lookups by name never fail: a name that matches no loop (explicit None
    included) or an empty stack makes commands no-ops and queries return None, so
    templates may reference a loop defensively without knowing whether it
    is active. Leaving the name out targets the innermost loop.
    """

    def __init__(self) -> None:
        self._iterators: List[ManagedIterator] = []

    def watch(self, obj: Any, name: Any = _UNSET) -> Optional[ManagedIterator]:
        """Wrap ``obj`` in a ``ManagedIterator`` and push it on the stack.

        Args:
            obj: Anything ``to_iterator`` can resolve.
            name: Optional loop name for targeted commands. An explicit None
                returns None without looking at ``obj``. When omitted the name
                is ``"loop<depth>"``.

        Returns:
            The managed iterator, or None if ``obj`` cannot be iterated.
        """
        if name is None:
            return None
        iterator = to_iterator(obj)
        if iterator is None:
            logger.debug(f"Cannot watch {type(obj).__name__}; loop body will not run")
            return None

        if name is _UNSET:
            name = f"{DEFAULT_NAME_PREFIX}{self.get_depth()}"
        managed = ManagedIterator(name, iterator, on_release=self._release)
        self._iterators.append(managed)
        logger.debug(f"Watching {managed!r} at depth {self.get_depth()}")
        return managed

    # Commands

    def stop(self, name: Any = _UNSET) -> None:
        """Make the current (or named) loop finish after this iteration.

        Unlike ``break`` the rest of the current iteration still renders.
        """
        managed = self._find(name)
        if managed is not None:
            managed.stop()

    def stop_to(self, name: str) -> None:
        """Stop the named loop and every loop nested inside it.

        Loops enclosing the named one are left running. Nothing happens if
        no loop has that name.
        """
        for index in range(len(self._iterators) - 1, -1, -1):
            if self._iterators[index].name == name:
                for managed in self._iterators[index:]:
                    managed.stop()
                return

    def stop_all(self) -> None:
        for managed in self._iterators:
            managed.stop()

    def skip(self, number: int, name: Any = _UNSET) -> None:
        """Advance the current (or named) loop by up to ``number`` elements.

        Skipped elements count toward ``count`` and ``first``, unlike
        elements dropped by ``exclude``.
        """
        managed = self._find(name)
        if managed is None:
            return
        for _ in range(number):
            if not managed.has_next():
                break
            next(managed)

    # Queries

    def is_first(self, name: Any = _UNSET) -> Optional[bool]:
        managed = self._find(name)
        return None if managed is None else managed.is_first()

    def is_last(self, name: Any = _UNSET) -> Optional[bool]:
        managed = self._find(name)
        return None if managed is None else managed.is_last()

    def get_count(self, name: Any = _UNSET) -> Optional[int]:
        """Number of elements the current (or named) loop has handled."""
        managed = self._find(name)
        return None if managed is None else managed.get_count()

    def get_depth(self) -> int:
        """How many loops are currently being watched."""
        return len(self._iterators)

    first = property(is_first)
    last = property(is_last)
    count = property(get_count)
    depth = property(get_depth)

    # Internals

    def _find(self, name: Any) -> Optional[ManagedIterator]:
        # An omitted name means the current loop; an explicit None matches nothing.
        if name is _UNSET:
            return self._iterators[-1] if self._iterators else None
        if name is None:
            return None
        for managed in self._iterators:
            if managed.name == name:
                return managed
        return None

    def _release(self, managed: ManagedIterator) -> None:
        for index in range(len(self._iterators) - 1, -1, -1):
            if self._iterators[index] is managed:
                del self._iterators[index]
                logger.debug(f"Released {managed!r}; depth is now {len(self._iterators)}")
                return
