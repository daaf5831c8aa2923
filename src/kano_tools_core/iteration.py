"""Resolve arbitrary template values into iterators.

Templates hand the loop controller whatever object they are about to loop
over: lists, tuples, sets, dicts, generators, or Java-bean style objects that
expose an ``iterator()`` method. ``to_iterator`` turns each of these into a
plain iterator, or returns None when the value cannot be looped over.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from functools import singledispatch
from typing import Any, Optional

logger = logging.getLogger(__name__)


@singledispatch
def _resolve(obj: Any) -> Optional[Iterator]:
    factory = getattr(obj, "iterator", None)
    if callable(factory):
        result = factory()
        if isinstance(result, Iterator):
            return result
        if isinstance(result, Iterable):
            return iter(result)
    return None


@_resolve.register
def _(obj: Iterator) -> Optional[Iterator]:
    return obj


@_resolve.register
def _(obj: Mapping) -> Optional[Iterator]:
    return iter(obj.values())


@_resolve.register
def _(obj: Iterable) -> Optional[Iterator]:
    return iter(obj)


@_resolve.register(str)
@_resolve.register(bytes)
def _(obj: Any) -> Optional[Iterator]:
    # Scalars in templates; looping them character by character is never intended.
    return None


def to_iterator(obj: Any) -> Optional[Iterator]:
    """Return an iterator over ``obj`` or None if it cannot be iterated.

    Never raises: any error raised while resolving the value (including
    errors from user-defined ``__iter__`` or ``iterator()`` methods) is
    logged and reported as None.
    """
    if obj is None:
        return None
    try:
        return _resolve(obj)
    except Exception as e:
        logger.debug(f"Cannot iterate over {type(obj).__name__}: {e}")
        return None
