# jsi/core/utils.py
from __future__ import annotations
import copy
from collections.abc import Iterable
from typing import Any, TypeVar

from jsi.core.typelike import isArraylike, isHashlike

__all__ = ["deepCopy", "deepEquals", "distinctValues"]

T = TypeVar("T")



def deepCopy(value: T) -> T:
    """Deep-copies JSON-like data, reporting failures as RuntimeError."""
    try:
        return copy.deepcopy(value)
    except Exception as err:
        raise RuntimeError(f"deepCopy failed - {err.__class__.__name__} {err}") from err



def deepEquals(first: Any, second: Any) -> bool:
    """
    Type-aware equality for JSON-like trees.

      • mappings: same key set and equal values per key
      • sequences (not strings): positional equality
      • bool never equals a number (True != 1 here, unlike Python's ==)
      • other scalars: Python ==

    Raises TypeError when a custom __eq__ gives a non-bool result.
    """
    if first is second:
        return True
    if isHashlike(first) and isHashlike(second):
        if first.keys() != second.keys():
            return False
        return all(deepEquals(first[key], second[key]) for key in first.keys())
    if isArraylike(first) and isArraylike(second):
        if len(first) != len(second):
            return False
        return all(deepEquals(itemA, itemB) for itemA, itemB in zip(first, second))
    if isinstance(first, bool) != isinstance(second, bool):
        return False
    result = first == second
    if not isinstance(result, bool):
        raise TypeError(
            f"Equality check between '{type(first).__name__}' and '{type(second).__name__}' produced unexpected"
            f" result of type '{type(result).__name__}'. Expected a boolean result."
        )
    return result



def distinctValues(values: Iterable[Any]) -> list[Any]:
    """Values in first-seen order, dropping any deepEquals to an earlier one."""
    out: list[Any] = []
    for value in values:
        if not any(deepEquals(value, seen) for seen in out):
            out.append(value)
    return out
