# jsi/schema/bootstrap.py
from __future__ import annotations
from collections.abc import Iterator
from typing import Any, TYPE_CHECKING

from jsi.core.memo import Memoize
from jsi.core.ptr import Ptr
from jsi.core.typelike import isComplex
from jsi.pathed_node import PathedNode
from jsi.schema.schema import Schema

if TYPE_CHECKING:
    from jsi.registry import Registry
    from jsi.schema.dialect import Dialect

__all__ = ["BootstrapSchema"]



class BootstrapSchema(Memoize, Schema, PathedNode):
    """
    A schema whose rules come directly from a dialect rather than from a meta-schema.

    Meta-schema documents describe themselves, so something has to apply their keywords
    before any meta-schema exists: bootstrap schemas do that. Every node reached through
    `subschema` is taken to be a schema. They are not JSIs: subscripting is not supported.
    """
    def __init__(
            self,
            document: Any,
            ptr: Ptr = Ptr(),
            *,
            dialect: Dialect,
            schemaBaseUri: str | None = None,
            resourceAncestors: tuple[Schema, ...] = (),
            registry: Registry | None = None,
            documentRoot: BootstrapSchema | None = None,
    ):
        if isinstance(document, PathedNode):
            raise TypeError(f"document of a bootstrap schema must not be another node: {document!r}")
        self._initMemos()
        self.document = document
        self.ptr = ptr
        self.dialect = dialect
        self.schemaBaseUri = schemaBaseUri
        self.resourceAncestors = tuple(resourceAncestors)
        self.registry = registry
        self._documentRoot = documentRoot if documentRoot is not None else self

    @property
    def rootNode(self) -> BootstrapSchema:
        return self._documentRoot

    @property
    def parentNode(self) -> BootstrapSchema:
        return self._documentRoot.subschema(self.ptr.parent())

    def _computeSubschema(self, subptr: Ptr) -> BootstrapSchema:
        # One token at a time, so each step takes its base URI from the step before
        node = self
        for token in subptr.resolveAgainst(self.nodeContent):
            node = node._memomap("child", node._childSubschema)(token)
        return node

    def _childSubschema(self, token: Any) -> BootstrapSchema:
        return BootstrapSchema(
            self.document,
            self.ptr.child(token),
            dialect=self.dialect,
            schemaBaseUri=self.subschemaBaseUri,
            resourceAncestors=self.subschemaResourceAncestors,
            registry=self.registry,
            documentRoot=self._documentRoot,
        )

    def _computeResourceRootSubschema(self, ptr: Ptr) -> BootstrapSchema:
        root = self.schemaResourceRoot
        if root is self:
            return self.subschema(ptr)
        return root.resourceRootSubschema(ptr)

    def descendantNode(self, ptr: Ptr) -> BootstrapSchema:
        return self.subschema(ptr)

    def eachDescendantNode(self) -> Iterator[BootstrapSchema]:
        yield self
        content = self.nodeContent
        if isComplex(content):
            for token in self.childTokens():
                yield from self.subschema(Ptr.of(token)).eachDescendantNode()

    def __getitem__(self, token: Any) -> Any:
        raise TypeError(f"bootstrap schemas do not support subscripting; use subschema: {self!r}")

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, BootstrapSchema)
            and other.document is self.document
            and other.ptr == self.ptr
            and other.dialect is self.dialect
        )

    def __hash__(self) -> int:
        return hash((BootstrapSchema, id(self.document), self.ptr, self.dialect.id))

    def __repr__(self) -> str:
        return f"<BootstrapSchema {self.dialect.id} {self.ptr.fragment}>"
