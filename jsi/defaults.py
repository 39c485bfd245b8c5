# jsi/defaults.py
from __future__ import annotations
import json
import logging
import threading
from pathlib import Path
from typing import Any

from jsi.core.ptr import Ptr
from jsi.registry import Registry
from jsi.schema.dialect import DRAFT04, DRAFT06, DRAFT07, DRAFTS, Dialect

logger = logging.getLogger(__name__)

__all__ = [
    "METASCHEMA_DIR",
    "METASCHEMA_FILES",
    "defaultRegistry",
    "setDefaultRegistry",
    "newDefaultRegistry",
    "loadMetaschemaDocument",
]

METASCHEMA_DIR = Path(__file__).resolve().parent / "metaschemas"

# Dialect id -> bundled meta-schema file
METASCHEMA_FILES: dict[str, str] = {
    DRAFT04.id: "draft-04.json",
    DRAFT06.id: "draft-06.json",
    DRAFT07.id: "draft-07.json",
}

# Draft-04 allows `true`/`false` for these two keywords; the object branch is a schema
_DRAFT04_BOOLEAN_SCHEMA_PTRS = (
    Ptr.of("properties", "additionalProperties", "anyOf", 0),
    Ptr.of("properties", "additionalItems", "anyOf", 0),
)

_defaultRegistry: Registry | None = None
_lock = threading.Lock()



def defaultRegistry() -> Registry:
    """The process-wide registry, created with the draft meta-schemas on first use."""
    global _defaultRegistry
    with _lock:
        if _defaultRegistry is None:
            _defaultRegistry = newDefaultRegistry()
        return _defaultRegistry



def setDefaultRegistry(registry: Registry | None) -> None:
    """Replaces the process-wide registry. None makes the next defaultRegistry() build a fresh one."""
    global _defaultRegistry
    if registry is not None and not isinstance(registry, Registry):
        raise TypeError(f"default registry must be a Registry, got '{type(registry).__name__}': {registry!r}")
    with _lock:
        _defaultRegistry = registry



def newDefaultRegistry() -> Registry:
    """A registry with autoloaders for the draft-04, -06 and -07 meta-schemas, dialects and vocabularies."""
    registry = Registry()
    for dialect in DRAFTS:
        registry.autoloadUri(dialect.id, _metaschemaAutoloader(dialect))
        registry.autoloadDialectUri(dialect.id, _constantLoader(dialect))
        for vocabulary in dialect.vocabularies:
            registry.autoloadVocabularyUri(vocabulary.id, _constantLoader(vocabulary))
    return registry



def loadMetaschemaDocument(dialect: Dialect) -> Any:
    """Parses the bundled meta-schema document for `dialect`."""
    fileName = METASCHEMA_FILES.get(dialect.id)
    if fileName is None:
        raise ValueError(
            f"No bundled meta-schema for dialect {dialect.id}.\n"
            "⚠️ META-SCHEMA MISSING ⚠️\n"
            "jsi went looking for the schema that describes schemas and found a blank page.\n"
            "Every $schema now points at a shrug."
        )
    text = (METASCHEMA_DIR / fileName).read_text(encoding="utf-8")
    return json.loads(text)



# ----- Autoloaders -----

def _metaschemaAutoloader(dialect: Dialect):
    def load(registry: Registry, uri: str):
        from jsi.metaschema_node import newMetaschemaNode

        logger.debug("Loading bundled meta-schema for %s", dialect.id)
        return newMetaschemaNode(
            loadMetaschemaDocument(dialect),
            dialect=dialect,
            alsoDescribesSchemaPtrs=_DRAFT04_BOOLEAN_SCHEMA_PTRS if dialect is DRAFT04 else (),
            schemaBaseUri=uri,
            registry=registry,
        )
    return load



def _constantLoader(value: Any):
    def load():
        return value
    return load
