# jsi/ref.py
from __future__ import annotations
import logging
import threading
from collections.abc import Callable
from typing import Any, TYPE_CHECKING

from jsi.core.errors import NotASchemaError, PointerResolutionError, PointerSyntaxError, ResolutionError
from jsi.core.ptr import Ptr
from jsi.core.typelike import isHashlike
from jsi.core.uri import isAbsoluteUri, joinUri, parseUri, uriFragment, uriWithoutFragment

if TYPE_CHECKING:
    from jsi.base import Base
    from jsi.registry import Registry

logger = logging.getLogger(__name__)

__all__ = ["Ref", "SchemaRef", "UNSET"]



class _Unset:
    def __repr__(self) -> str:
        return "UNSET"



# Distinguishes "no registry given" from an explicit registry=None
UNSET: Any = _Unset()



class Ref:
    """
    A reference to a node identified by a URI, usually the value of a `$ref`.

    A ref consisting only of a fragment resolves within the referrer's document. Anything
    else is found in the registry, joined against the referrer's base URI when relative.
    The fragment is then resolved from that resource as a JSON pointer (`#/a/b`) or,
    for schema refs, as a plain-name anchor (`#foo`).

    `resolve` is memoized: the first successful resolution is returned every time after,
    even if the registry changes in between.
    """
    resolvesSchema = False

    def __init__(self, ref: str, referrer: Any = None, registry: Registry | None = UNSET):
        if not isinstance(ref, str):
            raise TypeError(f"ref is not a string: {ref!r}")
        self.ref = parseUri(ref)
        if referrer is not None and self.resolvesSchema:
            from jsi.schema.schema import ensureSchema
            referrer = ensureSchema(referrer, "referrer of a schema ref is not a schema:")
        self.referrer = referrer
        if registry is not UNSET:
            self.registry = registry
        elif referrer is not None:
            self.registry = referrer.registry
        else:
            from jsi.defaults import defaultRegistry
            self.registry = defaultRegistry()
        self._resolved: Any = None
        self._lock = threading.Lock()

    def resolve(self) -> Base:
        """
        The node this ref identifies.

        Raises ResolutionError when the resource or the fragment within it cannot be
        found, and NotASchemaError when a schema ref identifies something else.
        """
        if self._resolved is not None:
            return self._resolved
        with self._lock:
            if self._resolved is None:
                self._resolved = self._resolve()
                logger.debug("Resolved ref %s to %r", self.ref, self._resolved)
            return self._resolved

    def _resolve(self) -> Any:
        referrer = self.referrer
        refNoFragment = uriWithoutFragment(self.ref)
        fragment = uriFragment(self.ref)
        resourceRoot: Any = None
        resolveFragmentPtr: Callable[[Ptr], Any]

        if refNoFragment == "":
            if referrer is None:
                raise ResolutionError([f"cannot resolve ref: {self.ref}", "with no referrer"], uri=self.ref)
            if self.resolvesSchema:
                # Pointers resolve through the resource root so that the nodes they pass
                # through are schemas even where the document does not describe them as such
                resourceRoot = referrer.schemaResourceRoot
                resolveFragmentPtr = referrer.resourceRootSubschema
            else:
                resourceRoot = referrer.rootNode
                resolveFragmentPtr = resourceRoot.descendantNode
        else:
            if isAbsoluteUri(refNoFragment):
                absoluteUri = refNoFragment
            elif referrer is not None and referrer.resourceAncestorUri:
                absoluteUri = joinUri(referrer.resourceAncestorUri, refNoFragment)
            else:
                absoluteUri = None

            if absoluteUri is not None:
                if self.registry is None:
                    raise ResolutionError([
                        "could not resolve remote ref with no registry specified",
                        f"ref URI: {self.ref}",
                        f"from: {referrer!r}" if referrer is not None else None,
                    ], uri=self.ref)
                if self.resolvesSchema and not self.registry.isRegistered(absoluteUri):
                    resourceRoot = self._schemasMapResource(refNoFragment)
                if resourceRoot is None:
                    resourceRoot = self.registry.find(absoluteUri)
            elif self.resolvesSchema:
                resourceRoot = self._schemasMapResource(refNoFragment)

            if resourceRoot is None:
                raise ResolutionError([
                    f"cannot resolve ref: {self.ref}",
                    f"from: {referrer!r}" if referrer is not None else None,
                ], uri=self.ref)

            from jsi.schema.schema import Schema
            if self.resolvesSchema and isinstance(resourceRoot, Schema):
                resolveFragmentPtr = resourceRoot.resourceRootSubschema
            else:
                resolveFragmentPtr = resourceRoot.descendantNode

        fragmentPtr: Ptr | None = None
        if fragment is not None:
            try:
                fragmentPtr = Ptr.parseFragment("#" + fragment)
            except PointerSyntaxError:
                fragmentPtr = None

        if fragmentPtr is not None:
            try:
                resolved = resolveFragmentPtr(fragmentPtr)
            except PointerResolutionError as err:
                raise ResolutionError([
                    f"could not resolve pointer: {fragmentPtr.pointer!r}",
                    f"from: {referrer!r}" if referrer is not None else None,
                    f"in resource root: {resourceRoot!r}" if resourceRoot is not None else None,
                ], uri=self.ref) from err
        elif fragment is None:
            resolved = resourceRoot
        elif self.resolvesSchema:
            candidates = resourceRoot.anchorSubschemas(fragment)
            if len(candidates) == 1:
                resolved = candidates[0]
            elif not candidates:
                raise ResolutionError([
                    f"could not resolve fragment: {fragment!r}",
                    f"in resource root: {resourceRoot!r}",
                ], uri=self.ref)
            else:
                raise ResolutionError([
                    f"found multiple schemas for plain name fragment {fragment!r}:",
                    *(repr(candidate) for candidate in candidates),
                ], uri=self.ref)
        else:
            raise ResolutionError([
                f"could not resolve fragment {fragment!r}. fragment must be a pointer.",
                f"in resource root: {resourceRoot!r}" if resourceRoot is not None else None,
            ], uri=self.ref)

        if self.resolvesSchema:
            from jsi.schema.schema import ensureSchema
            ensureSchema(resolved, f"object identified by uri {self.ref} is not a schema:")
        return resolved

    def _schemasMapResource(self, refNoFragment: str) -> Any:
        """
        Refs in the style of Google API discovery documents: a top-level `schemas` object
        whose entries carry an `id` equal to the ref.
        """
        referrer = self.referrer
        if referrer is None:
            return None
        schemas = referrer.document.get("schemas") if isHashlike(referrer.document) else None
        if not isHashlike(schemas):
            return None
        found = None
        for name, entry in schemas.items():
            if isHashlike(entry) and entry.get("id") == refNoFragment:
                found = referrer.resourceRootSubschema(Ptr.of("schemas", name))
        return found

    # ----- Identity -----

    def _fingerprint(self) -> tuple[Any, ...]:
        return (type(self), self.ref, self.referrer, id(self.registry))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Ref) and other._fingerprint() == self._fingerprint()

    def __hash__(self) -> int:
        return hash(self._fingerprint())

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.ref}>"



class SchemaRef(Ref):
    """A ref from a schema which must resolve to a schema."""
    resolvesSchema = True
