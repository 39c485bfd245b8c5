# jsi/metaschema_node.py
from __future__ import annotations
from collections.abc import Callable
from typing import Any, TYPE_CHECKING

from jsi.base import AUTO, MISSING, Base
from jsi.core.errors import Bug
from jsi.core.memo import Identity
from jsi.core.ptr import Ptr, Token
from jsi.core.typelike import NodeShape, isComplex, shapeOf
from jsi.schema.schema import Schema, ensureSchema
from jsi.schema.schema_set import SchemaSet

if TYPE_CHECKING:
    from jsi.registry import Registry
    from jsi.schema.bootstrap import BootstrapSchema
    from jsi.schema.dialect import Dialect

__all__ = ["MetaschemaNode", "MetaschemaSchemaNode", "newMetaschemaNode"]



class MetaschemaNode(Base):
    """
    A node of a document that contains the schema describing it: a meta-schema.

    Which schemas apply where is worked out with bootstrap schemas (dialect rules applied
    to the raw document), and each bootstrap schema is then swapped for the node of this
    same document at its pointer. `metaschemaRootPtr` locates the meta-schema and
    `rootSchemaPtr` the schema describing the document root; both are fixed for the
    document and shared by every node in it.

    Meta-schema nodes are read-only: `set` raises and defaults are never filled in.
    Use `modifiedCopy` to derive a changed document.
    """
    def __init__(
            self,
            document: Any,
            *,
            ptr: Ptr = Ptr(),
            dialect: Dialect,
            metaschemaRootPtr: Ptr,
            rootSchemaPtr: Ptr,
            alsoDescribesSchemaPtrs: tuple[Ptr, ...] = (),
            bootstrapRoot: BootstrapSchema,
            bootstrapIndicated: SchemaSet,
            bootstrapApplied: SchemaSet,
            schemaBaseUri: str | None = None,
            resourceAncestors: tuple[Schema, ...] = (),
            registry: Registry | None = None,
            rootNode: MetaschemaNode | None = None,
    ):
        if ptr.isRoot:
            if rootNode is not None:
                raise Bug(f"rootNode given for a document root: {rootNode!r}")
        elif not (isinstance(rootNode, MetaschemaNode) and rootNode.ptr.isRoot and rootNode.document is document):
            raise Bug(f"rootNode must be the meta-schema node at the root of the same document, got: {rootNode!r}")
        self._initMemos()
        self.document = document
        self.ptr = ptr
        self.dialect = dialect
        self.metaschemaRootPtr = metaschemaRootPtr
        self.rootSchemaPtr = rootSchemaPtr
        self.alsoDescribesSchemaPtrs = tuple(alsoDescribesSchemaPtrs)
        self.schemaBaseUri = schemaBaseUri
        self.resourceAncestors = tuple(resourceAncestors)
        self.registry = registry
        self._rootNode = rootNode
        self._bootstrapRoot = bootstrapRoot
        self._bootstrapIndicated = bootstrapIndicated
        self._bootstrapApplied = bootstrapApplied
        self._shape = shapeOf(self.nodeContent)

    # Both are computed on first use: the nodes they contain may be this node or its ancestors
    @property
    def indicatedSchemas(self) -> SchemaSet:
        return self._memoize("indicatedSchemas", lambda: self._documentSchemas(self._bootstrapIndicated))

    @property
    def schemas(self) -> SchemaSet:
        return self._memoize("schemas", lambda: self._documentSchemas(self._bootstrapApplied))

    def _documentSchemas(self, bootstrapSchemas: SchemaSet) -> SchemaSet:
        root = self.rootNode
        return SchemaSet(
            ensureSchema(root.descendantNode(bootstrap.ptr), "bootstrap schema does not correspond to a schema node:")
            for bootstrap in bootstrapSchemas
        )

    # ----- Subscripting -----

    def _get(self, token: Any, asJsi: bool | str, useDefault: bool, derefSeen: tuple[Base, ...]) -> Any:
        if self.shape is NodeShape.SCALAR:
            self._simpleNodeChildError(token)
        if not self.isChildTokenInRange(token):
            return MISSING
        value = self.nodeContent[token]
        child = self._memomap("child", self._childNode, keyBy=lambda token, *_: token)(token, Identity(value))
        if asJsi == AUTO:
            return child if isComplex(value) or isinstance(child, Schema) else value
        if not isinstance(asJsi, bool):
            raise ValueError(f"asJsi must be True, False or {AUTO!r}, got: {asJsi!r}")
        return child if asJsi else value

    def _childNode(self, token: Token, _value: Identity) -> MetaschemaNode:
        content = self.nodeContent
        indicated = self._bootstrapApplied.childApplicatorSchemas(token, content)
        applied = indicated.inplaceApplicatorSchemas(content[token])
        return _nodeClass(self._bootstrapRoot, self.metaschemaRootPtr, applied)(
            self.document,
            ptr=self.ptr.child(token),
            dialect=self.dialect,
            metaschemaRootPtr=self.metaschemaRootPtr,
            rootSchemaPtr=self.rootSchemaPtr,
            alsoDescribesSchemaPtrs=self.alsoDescribesSchemaPtrs,
            bootstrapRoot=self._bootstrapRoot,
            bootstrapIndicated=indicated,
            bootstrapApplied=applied,
            schemaBaseUri=self.resourceAncestorUri,
            resourceAncestors=self._childResourceAncestors,
            registry=self.registry,
            rootNode=self.rootNode,
        )

    # ----- Mutation -----

    def set(self, token: Any, value: Any) -> None:
        raise TypeError(f"meta-schema nodes are immutable; use modifiedCopy instead: {self!r}")

    def modifiedCopy(self, fn: Callable[[Any], Any]) -> MetaschemaNode:
        modifiedDocument = self.ptr.modifiedDocumentCopy(self.document, fn)
        newRoot = newMetaschemaNode(
            modifiedDocument,
            dialect=self.dialect,
            metaschemaRootPtr=self.metaschemaRootPtr,
            rootSchemaPtr=self.rootSchemaPtr,
            alsoDescribesSchemaPtrs=self.alsoDescribesSchemaPtrs,
            schemaBaseUri=self.rootNode.schemaBaseUri,
            registry=self.registry,
        )
        return newRoot.descendantNode(self.ptr)

    # ----- Identity -----

    def _fingerprint(self) -> tuple[Any, ...]:
        return (type(self), id(self.document), self.ptr, self.dialect.id, self.metaschemaRootPtr, self.rootSchemaPtr)



class MetaschemaSchemaNode(Schema, MetaschemaNode):
    """
    A meta-schema node that is itself a schema. The one at `metaschemaRootPtr`, and any at
    `alsoDescribesSchemaPtrs`, describe schemas.
    """
    def __init__(self, document: Any, **kwargs: Any):
        super().__init__(document, **kwargs)
        if self.ptr == self.metaschemaRootPtr or self.ptr in self.alsoDescribesSchemaPtrs:
            self.describesSchemaDialect = self.dialect

    def _computeSubschema(self, subptr: Ptr) -> Schema:
        return ensureSchema(self.descendantNode(subptr), f"subschema is not a schema at pointer: {subptr.pointer}")

    def _computeResourceRootSubschema(self, ptr: Ptr) -> Schema:
        root = self.schemaResourceRoot
        if isinstance(root, Schema) and root is not self:
            return root.resourceRootSubschema(ptr)
        return ensureSchema(root.descendantNode(ptr), f"object identified by pointer {ptr.pointer} is not a schema:")



def _nodeClass(bootstrapRoot: BootstrapSchema, metaschemaRootPtr: Ptr, bootstrapApplied: SchemaSet) -> type[MetaschemaNode]:
    if bootstrapRoot.subschema(metaschemaRootPtr) in bootstrapApplied:
        return MetaschemaSchemaNode
    return MetaschemaNode



def newMetaschemaNode(
        document: Any,
        *,
        dialect: Dialect,
        metaschemaRootPtr: Ptr = Ptr(),
        rootSchemaPtr: Ptr = Ptr(),
        alsoDescribesSchemaPtrs: tuple[Ptr, ...] = (),
        schemaBaseUri: str | None = None,
        registry: Registry | None = None,
) -> MetaschemaNode:
    """
    The root node of a meta-schema document. With the default pointers the document is a
    meta-schema at its root describing itself, as the draft meta-schemas do.
    `alsoDescribesSchemaPtrs` marks further nodes whose instances are schemas, such as the
    boolean branches draft-04 allows for additionalItems and additionalProperties.
    """
    bootstrapRoot = dialect.bootstrapSchema(document, schemaBaseUri=schemaBaseUri, registry=registry)
    indicated = SchemaSet([bootstrapRoot.subschema(rootSchemaPtr)])
    applied = indicated.inplaceApplicatorSchemas(document)
    return _nodeClass(bootstrapRoot, metaschemaRootPtr, applied)(
        document,
        dialect=dialect,
        metaschemaRootPtr=metaschemaRootPtr,
        rootSchemaPtr=rootSchemaPtr,
        alsoDescribesSchemaPtrs=alsoDescribesSchemaPtrs,
        bootstrapRoot=bootstrapRoot,
        bootstrapIndicated=indicated,
        bootstrapApplied=applied,
        schemaBaseUri=schemaBaseUri,
        registry=registry,
    )
