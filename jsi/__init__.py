# jsi/__init__.py
from .core.errors import (
    JSIError,
    Bug,
    PtrError,
    PointerSyntaxError,
    PointerResolutionError,
    ResolutionError,
    Collision,
    NotASchemaError,
    SimpleNodeChildError,
    FrozenRegistryError,
    ValidationError,
)
from .core.ptr import Ptr
from .pathed_node import PathedNode, JSONNode
from .registry import Registry
from .ref import Ref, SchemaRef
from .schema.dialect import Dialect, Vocabulary, DRAFT04, DRAFT06, DRAFT07
from .schema.schema import Schema, newSchema
from .schema.schema_set import SchemaSet
from .base import Base, SchemaJSI
from .metaschema_node import MetaschemaNode, newMetaschemaNode
from .simple_wrap import simpleWrap, simpleWrapSchema
from .defaults import defaultRegistry, setDefaultRegistry, newDefaultRegistry

__all__ = [
    "JSIError",
    "Bug",
    "PtrError",
    "PointerSyntaxError",
    "PointerResolutionError",
    "ResolutionError",
    "Collision",
    "NotASchemaError",
    "SimpleNodeChildError",
    "FrozenRegistryError",
    "ValidationError",
    "Ptr",
    "PathedNode",
    "JSONNode",
    "Registry",
    "Ref",
    "SchemaRef",
    "Dialect",
    "Vocabulary",
    "DRAFT04",
    "DRAFT06",
    "DRAFT07",
    "Schema",
    "newSchema",
    "SchemaSet",
    "Base",
    "SchemaJSI",
    "MetaschemaNode",
    "newMetaschemaNode",
    "simpleWrap",
    "simpleWrapSchema",
    "defaultRegistry",
    "setDefaultRegistry",
    "newDefaultRegistry",
]
