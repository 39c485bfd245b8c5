# jsi/core/typelike.py
from __future__ import annotations
import copy
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from enum import Enum
from typing import Any

__all__ = [
    "NodeShape",
    "shapeOf",
    "isHashlike",
    "isArraylike",
    "isComplex",
    "isIndexToken",
    "asJson",
    "shallowCopy",
    "withChild",
]



class NodeShape(Enum):
    """The closed set of instance shapes a node may have."""
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    SCALAR = "scalar"



def isHashlike(value: Any) -> bool:
    return isinstance(value, Mapping)



def isArraylike(value: Any) -> bool:
    # Strings and bytes are sequences to Python but scalars to JSON
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))



def isComplex(value: Any) -> bool:
    return isHashlike(value) or isArraylike(value)



def shapeOf(value: Any) -> NodeShape:
    if isHashlike(value):
        return NodeShape.MAPPING
    if isArraylike(value):
        return NodeShape.SEQUENCE
    return NodeShape.SCALAR



def isIndexToken(token: Any) -> bool:
    # bool is an int subclass but never an array index
    return isinstance(token, int) and not isinstance(token, bool) and token >= 0



def asJson(value: Any) -> Any:
    """
    Returns a plain JSON-like structure for `value`:
      • wrappers (anything exposing `nodeContent`) are replaced by their content
      • mappings become dicts with string keys, sequences become lists
      • scalars are returned as-is
    """
    if hasattr(value, "nodeContent"):
        return asJson(value.nodeContent)
    if isHashlike(value):
        return {str(key): asJson(item) for key, item in value.items()}
    if isArraylike(value):
        return [asJson(item) for item in value]
    return value



# ----------------------------------------------
#               copy-on-write helpers
# ----------------------------------------------

def shallowCopy(value: Any) -> Any:
    """
    One-level copy of a mapping or sequence that accepts item assignment.
    Immutable containers (mappingproxy, tuple) are copied into dict / list.
    """
    if isinstance(value, MutableMapping):
        return copy.copy(value)
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, MutableSequence):
        return copy.copy(value)
    if isArraylike(value):
        return list(value)
    raise TypeError(f"Cannot shallow-copy a non-container value of type '{type(value).__name__}'")



def withChild(container: Any, token: Any, child: Any) -> Any:
    """
    Shallow copy of `container` with `token` set to `child`.
    Array tokens one past the end append; tokens beyond that pad with None.
    """
    modified = shallowCopy(container)
    if isHashlike(modified):
        modified[token] = child
        return modified
    if not isIndexToken(token):
        raise TypeError(f"Array token must be a non-negative integer, got {token!r}")
    while len(modified) < token:
        modified.append(None)
    if token == len(modified):
        modified.append(child)
    else:
        modified[token] = child
    return modified
