# jsi/simple_wrap.py
from __future__ import annotations
import threading
import weakref
from typing import Any, TYPE_CHECKING

from jsi.core.utils import deepCopy

if TYPE_CHECKING:
    from jsi.base import Base
    from jsi.registry import Registry
    from jsi.schema.schema import Schema

__all__ = ["SIMPLE_WRAP_SCHEMA_CONTENT", "simpleWrapSchema", "simpleWrap"]

# Describes nothing except that every child is described by this same schema
SIMPLE_WRAP_SCHEMA_CONTENT = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "additionalProperties": {"$ref": "#"},
    "items": {"$ref": "#"},
}

_schemas: weakref.WeakKeyDictionary[Registry, Schema] = weakref.WeakKeyDictionary()
_lock = threading.Lock()



def simpleWrapSchema(registry: Registry | None = None) -> Schema:
    """The SimpleWrap schema, one per registry."""
    from jsi.defaults import defaultRegistry
    from jsi.schema.schema import newSchema

    if registry is None:
        registry = defaultRegistry()
    with _lock:
        schema = _schemas.get(registry)
        if schema is None:
            schema = newSchema(deepCopy(SIMPLE_WRAP_SCHEMA_CONTENT), registry=registry, register=False)
            _schemas[registry] = schema
        return schema



def simpleWrap(value: Any, registry: Registry | None = None) -> Base:
    """Wraps `value` so that every object and array in it is a JSI, with no other schema semantics."""
    return simpleWrapSchema(registry).newJsi(value)
