# jsi/registry.py
from __future__ import annotations
import inspect
import logging
import threading
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, TYPE_CHECKING

from jsi.core.errors import Collision, FrozenRegistryError, ResolutionError
from jsi.core.logging import logContext
from jsi.core.uri import registrationUri

if TYPE_CHECKING:
    from jsi.base import Base
    from jsi.schema.dialect import Dialect, Vocabulary
    from jsi.schema.schema import Schema

logger = logging.getLogger(__name__)

__all__ = ["Registry", "Autoloader"]

# Called with whichever of `registry=` / `uri=` it declares
Autoloader = Callable[..., Any]

_AUTOLOAD_PARAMS = ("registry", "uri")



class Registry:
    """
    URI-keyed store of resources (documents and schemas), vocabularies, and dialects,
    each with lazy autoloaders.

    Keys are absolute, fragment-less, normalized URIs. A URI maps to at most one object:
    storing the same object again is a no-op, storing a different one raises Collision.
    An autoloader runs at most once, on the first `find` of its URI, and is then removed.

    Thread safe: check-then-act sequences (collision checks, autoload-then-register) run
    under an internal RLock. Autoloaders run while that lock is held, so they may use
    the registry themselves from the same thread.
    """
    Collision = Collision

    def __init__(self):
        self._resources: dict[str, Base] = {}
        self._resourceAutoloaders: dict[str, Autoloader] = {}
        self._vocabularies: dict[str, Vocabulary] = {}
        self._vocabularyAutoloaders: dict[str, Autoloader] = {}
        self._dialects: dict[str, Dialect] = {}
        self._dialectAutoloaders: dict[str, Autoloader] = {}
        self._lock = threading.RLock()
        self._frozen = False

    # ----- Resources -----

    def register(self, resource: Base) -> None:
        """
        Registers a document root under its base URI (if it has one), then every
        schema in it under each of that schema's absolute URIs.
        """
        from jsi.base import Base
        from jsi.schema.schema import Schema

        if not isinstance(resource, Base):
            raise TypeError(f"resource must be a jsi Base node, got '{type(resource).__name__}': {resource!r}")
        if not isinstance(resource, Schema) and not resource.ptr.isRoot:
            raise ValueError(
                "undefined behavior: registration of a node which is not a schema and is not at the root of a document"
            )
        with self._lock:
            if resource.schemaBaseUri and resource.ptr.isRoot:
                self._store(self._resources, resource.schemaBaseUri, resource, "resource")
            for schema in resource.eachDescendantSchema():
                self.registerImmediate(schema)

    def registerImmediate(self, schema: Schema) -> None:
        """Registers `schema` under each of its absolute URIs, without visiting its descendants."""
        for uri in schema.schemaAbsoluteUris:
            self._store(self._resources, uri, schema, "resource")

    def autoloadUri(self, uri: str, loader: Autoloader) -> None:
        self._autoload(self._resourceAutoloaders, uri, loader)

    def find(self, uri: str) -> Base:
        return self._find(uri, self._resources, self._resourceAutoloaders, lambda resource, _uri: self.register(resource), "resource")

    def isRegistered(self, uri: str) -> bool:
        uri = registrationUri(uri)
        with self._lock:
            return uri in self._resources or uri in self._resourceAutoloaders

    # ----- Vocabularies -----

    def registerVocabulary(self, vocabulary: Vocabulary, uri: str | None = None) -> None:
        from jsi.schema.dialect import Vocabulary
        if not isinstance(vocabulary, Vocabulary):
            raise TypeError(f"not a Vocabulary: {vocabulary!r}")
        self._store(self._vocabularies, uri or vocabulary.id, vocabulary, "vocabulary")

    def autoloadVocabularyUri(self, uri: str, loader: Autoloader) -> None:
        self._autoload(self._vocabularyAutoloaders, uri, loader)

    def findVocabulary(self, uri: str) -> Vocabulary:
        return self._find(uri, self._vocabularies, self._vocabularyAutoloaders, lambda voc, voUri: self.registerVocabulary(voc, uri=voUri), "vocabulary")

    def isVocabularyRegistered(self, uri: str) -> bool:
        uri = registrationUri(uri)
        with self._lock:
            return uri in self._vocabularies or uri in self._vocabularyAutoloaders

    # ----- Dialects -----

    def registerDialect(self, dialect: Dialect, uri: str | None = None) -> None:
        from jsi.schema.dialect import Dialect
        if not isinstance(dialect, Dialect):
            raise TypeError(f"not a Dialect: {dialect!r}")
        self._store(self._dialects, uri or dialect.id, dialect, "dialect")

    def autoloadDialectUri(self, uri: str, loader: Autoloader) -> None:
        self._autoload(self._dialectAutoloaders, uri, loader)

    def findDialect(self, uri: str) -> Dialect:
        return self._find(uri, self._dialects, self._dialectAutoloaders, lambda dia, diUri: self.registerDialect(dia, uri=diUri), "dialect")

    def isDialectRegistered(self, uri: str) -> bool:
        uri = registrationUri(uri)
        with self._lock:
            return uri in self._dialects or uri in self._dialectAutoloaders

    # ----- Copy / freeze -----

    def dup(self) -> Registry:
        """An independent, mutable registry with the same entries."""
        with self._lock:
            reg = Registry()
            reg._resources.update(self._resources)
            reg._resourceAutoloaders.update(self._resourceAutoloaders)
            reg._vocabularies.update(self._vocabularies)
            reg._vocabularyAutoloaders.update(self._vocabularyAutoloaders)
            reg._dialects.update(self._dialects)
            reg._dialectAutoloaders.update(self._dialectAutoloaders)
            return reg

    def freeze(self) -> Registry:
        with self._lock:
            for attr in (
                "_resources", "_resourceAutoloaders",
                "_vocabularies", "_vocabularyAutoloaders",
                "_dialects", "_dialectAutoloaders",
            ):
                setattr(self, attr, MappingProxyType(dict(getattr(self, attr))))
            self._frozen = True
        return self

    @property
    def isFrozen(self) -> bool:
        return self._frozen

    def knownUris(self) -> list[str]:
        """Resource URIs that are registered or have an autoloader."""
        with self._lock:
            return _union(self._resources, self._resourceAutoloaders)

    def __repr__(self) -> str:
        labelsUris = [
            ("resources", list(self._resources)),
            ("resources autoload", list(self._resourceAutoloaders)),
            ("vocabularies", list(self._vocabularies)),
            ("vocabularies autoload", list(self._vocabularyAutoloaders)),
            ("dialects", list(self._dialects)),
            ("dialects autoload", list(self._dialectAutoloaders)),
        ]
        parts = [f"{label} ({len(uris)})" + (f": {uris!r}" if uris else "") for label, uris in labelsUris]
        return f"<Registry {', '.join(parts)}>"

    # ----- Internal: storage -----

    def _mutating(self) -> None:
        if self._frozen:
            raise FrozenRegistryError(f"cannot modify frozen {type(self).__name__}")

    def _store(self, store: dict[str, Any], uri: str, entity: Any, typename: str) -> None:
        with self._lock:
            self._mutating()
            uri = registrationUri(uri)
            existing = store.get(uri)
            if existing is None:
                store[uri] = entity
                logger.debug("Registered %s URI %s", typename, uri)
                return
            if existing is not entity:
                logger.warning("URI collision on %s (%s)", uri, typename)
                raise Collision(f"URI collision on {uri}.\nexisting:\n{existing!r}\nnew:\n{entity!r}")

    def _autoload(self, autoloaders: dict[str, Autoloader], uri: str, loader: Autoloader) -> None:
        uri = registrationUri(uri)
        if not callable(loader):
            raise TypeError(f"Registry autoload requires a callable loader\nURI: {uri}")
        with self._lock:
            self._mutating()
            if uri in autoloaders:
                raise Collision(f"already registered URI for autoload\nURI: {uri}\nloader: {autoloaders[uri]!r}")
            autoloaders[uri] = loader

    def _find(
            self,
            uri: str,
            store: Mapping[str, Any],
            autoloaders: Mapping[str, Autoloader],
            registerer: Callable[[Any, str], None],
            typename: str,
    ) -> Any:
        uri = registrationUri(uri)
        with self._lock:
            autoloaded = None
            if uri in autoloaders:
                self._mutating()
                loader = autoloaders[uri]
                # Removed before running so a loader runs at most once, even if it raises
                del autoloaders[uri]
                with logContext(uri=uri):
                    logger.info("Autoloading %s URI %s", typename, uri)
                    autoloaded = loader(**_autoloadParams(loader, registry=self, uri=uri))
                registerer(autoloaded, uri)

            if uri not in store:
                if autoloaded is not None:
                    raise ResolutionError([
                        f"{typename} URI {uri} was registered for autoload but the result did not contain an entity with that URI.",
                        "autoload result was:",
                        repr(autoloaded),
                    ], uri=uri)
                raise ResolutionError(
                    [f"{typename} URI {uri} is not registered. registered URIs:", *_union(store, autoloaders)],
                    uri=uri,
                )
            return store[uri]



def _autoloadParams(loader: Autoloader, **available: Any) -> dict[str, Any]:
    """The subset of `available` keyword arguments that `loader` declares (all of them for **kwargs)."""
    try:
        params = inspect.signature(loader).parameters.values()
    except (TypeError, ValueError):
        return {}
    if any(param.kind is inspect.Parameter.VAR_KEYWORD for param in params):
        return dict(available)
    accepted = {
        param.name for param in params
        if param.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)
    }
    return {name: value for name, value in available.items() if name in accepted and name in _AUTOLOAD_PARAMS}



def _union(*maps: Mapping[str, Any]) -> list[str]:
    out: list[str] = []
    for mapping in maps:
        for key in mapping:
            if key not in out:
                out.append(key)
    return out
