# jsi/base.py
from __future__ import annotations
import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Any, TYPE_CHECKING

from jsi.core.errors import Bug, NotASchemaError, ResolutionError
from jsi.core.memo import Identity, Memoize
from jsi.core.ptr import Ptr, Token
from jsi.core.typelike import NodeShape, asJson, isComplex, isHashlike, isIndexToken, shallowCopy, shapeOf, withChild
from jsi.core.utils import deepCopy, distinctValues
from jsi.pathed_node import PathedNode
from jsi.ref import Ref
from jsi.schema.schema import Schema, ensureSchema
from jsi.schema.schema_set import SchemaSet

if TYPE_CHECKING:
    from jsi.registry import Registry
    from jsi.schema.dialect import Dialect

logger = logging.getLogger(__name__)

__all__ = ["Base", "SchemaJSI", "classForSchemas", "dialectForSchemas", "AUTO", "MISSING"]

# asJsi="auto": wrap complex children and children that are schemas, return other values raw
AUTO = "auto"



class _Missing:
    def __repr__(self) -> str:
        return "MISSING"



MISSING: Any = _Missing()



class Base(Memoize, PathedNode):
    """
    A JSI: a node of a JSON document paired with the schemas that describe it.

    `indicatedSchemas` are the schemas the parent's child applicators (or the caller, at the
    root) gave for this node; `schemas` are those plus everything that applies in place
    (`$ref` targets, allOf/anyOf/oneOf branches, ...).

    A node never holds its parent. It keeps the document root and its own pointer, and
    every other node (parents included) is reached by walking a pointer down from the root.
    """
    def __init__(
            self,
            document: Any,
            *,
            ptr: Ptr = Ptr(),
            rootNode: Base | None = None,
            indicatedSchemas: SchemaSet | Iterable[Schema],
            schemas: SchemaSet | None = None,
            schemaBaseUri: str | None = None,
            resourceAncestors: tuple[Schema, ...] = (),
            registry: Registry | None = None,
    ):
        if isinstance(document, (PathedNode, Schema)):
            raise TypeError(f"document of a JSI must not itself be a JSI or a schema: {document!r}")
        if not isinstance(ptr, Ptr):
            raise TypeError(f"ptr must be a Ptr, got '{type(ptr).__name__}': {ptr!r}")
        if ptr.isRoot:
            if rootNode is not None:
                raise Bug(f"rootNode given for a document root: {rootNode!r}")
        elif not (isinstance(rootNode, Base) and rootNode.ptr.isRoot and rootNode.document is document):
            raise Bug(f"rootNode must be the JSI at the root of the same document, got: {rootNode!r}")

        self._initMemos()
        self.document = document
        self.ptr = ptr
        self._rootNode = rootNode
        self.indicatedSchemas = indicatedSchemas if isinstance(indicatedSchemas, SchemaSet) else SchemaSet(indicatedSchemas)
        self.schemaBaseUri = schemaBaseUri
        self.resourceAncestors = tuple(resourceAncestors)
        self.registry = registry
        content = self.nodeContent
        self._shape = shapeOf(content)
        self.schemas = schemas if schemas is not None else self.indicatedSchemas.inplaceApplicatorSchemas(content)

    @property
    def shape(self) -> NodeShape:
        return self._shape

    @property
    def rootNode(self) -> Base:
        return self if self._rootNode is None else self._rootNode

    @property
    def resourceAncestorUri(self) -> str | None:
        return self.schemaBaseUri

    @property
    def _childResourceAncestors(self) -> tuple[Schema, ...]:
        if isinstance(self, Schema):
            return self.subschemaResourceAncestors
        return self.resourceAncestors

    # ----------------------------------------------
    #                  Subscripting
    # ----------------------------------------------

    def get(self, token: Any, *, asJsi: bool | str = AUTO, useDefault: bool = True) -> Any:
        """
        The child at `token`: a JSI for complex children and for children that are schemas,
        the raw value otherwise (`asJsi` True or False forces either).

        A token this node lacks is looked up through this node's `$ref` when it has one.
        Failing that, when the schemas that apply to the missing child agree on a single
        `default`, the child is taken from a modified copy with that default filled in.
        The document itself is not changed. Otherwise None.
        """
        value = self._get(token, asJsi, useDefault, ())
        return None if value is MISSING else value

    def __getitem__(self, token: Any) -> Any:
        value = self._get(token, AUTO, True, ())
        if value is MISSING:
            raise KeyError(token)
        return value

    def _get(self, token: Any, asJsi: bool | str, useDefault: bool, derefSeen: tuple[Base, ...]) -> Any:
        if self.shape is NodeShape.SCALAR:
            self._simpleNodeChildError(token)
        tokenIsOurs = self.isChildTokenInRange(token)

        if not tokenIsOurs and self not in derefSeen:
            target = self.tryDeref()
            if target is not None and target is not self:
                return target._get(token, asJsi, useDefault, derefSeen + (self,))

        value = self.nodeContent[token] if tokenIsOurs else None
        indicated = self.schemas.childApplicatorSchemas(token, self.nodeContent)
        applied = indicated.inplaceApplicatorSchemas(value)

        if not tokenIsOurs:
            if useDefault and self._canInsert(token):
                defaults = distinctValues(schema.schemaContent["default"] for schema in applied if schema.keyword("default"))
                if len(defaults) == 1:
                    default = defaults[0]
                    filled = self.modifiedCopy(lambda content: withChild(content, token, deepCopy(default)))
                    return filled._get(token, asJsi, False, ())
            return MISSING

        if self._childAsJsi(value, applied, asJsi):
            return self._memomap("child", self._childJsi, keyBy=lambda token, *_: token)(
                token, Identity(value), indicated, applied,
            )
        return value

    def _canInsert(self, token: Any) -> bool:
        if self.shape is NodeShape.MAPPING:
            return isinstance(token, str)
        return isIndexToken(token)

    @staticmethod
    def _childAsJsi(value: Any, applied: SchemaSet, asJsi: bool | str) -> bool:
        if asJsi == AUTO:
            return isComplex(value) or any(schema.describesSchema for schema in applied)
        if isinstance(asJsi, bool):
            return asJsi
        raise ValueError(f"asJsi must be True, False or {AUTO!r}, got: {asJsi!r}")

    def _childJsi(self, token: Token, _value: Identity, indicated: SchemaSet, applied: SchemaSet) -> Base:
        return classForSchemas(applied)(
            self.document,
            ptr=self.ptr.child(token),
            rootNode=self.rootNode,
            indicatedSchemas=indicated,
            schemas=applied,
            schemaBaseUri=self.resourceAncestorUri,
            resourceAncestors=self._childResourceAncestors,
            registry=self.registry,
        )

    # ----------------------------------------------
    #                    Mutation
    # ----------------------------------------------

    def set(self, token: Any, value: Any) -> None:
        """
        Assigns into the document in place: every JSI over this document sees the change.
        A JSI value is stored as its content. Array tokens past the end pad with None.
        """
        if self.shape is NodeShape.SCALAR:
            self._simpleNodeChildError(token)
        if isinstance(value, PathedNode):
            value = value.nodeContent
        content = self.nodeContent
        if self.shape is NodeShape.MAPPING:
            content[token] = value
        else:
            if not isIndexToken(token):
                raise TypeError(f"array index must be a non-negative integer, got {token!r}")
            while len(content) < token:
                content.append(None)
            if token == len(content):
                content.append(value)
            else:
                content[token] = value
        self._clearMemos()

    def __setitem__(self, token: Any, value: Any) -> None:
        self.set(token, value)

    def modifiedCopy(self, fn: Callable[[Any], Any]) -> Base:
        """
        A JSI at this pointer in a copy of the document where `fn` has replaced this node's
        content. Only the containers from the root down to this node are copied; the
        original document is untouched. Schemas are applied afresh to the new content.
        """
        root = self.rootNode
        modifiedDocument = self.ptr.modifiedDocumentCopy(self.document, fn)
        newRoot = root.indicatedSchemas.newJsi(modifiedDocument, uri=root.schemaBaseUri, registry=self.registry)
        return newRoot.descendantNode(self.ptr)

    def dup(self) -> Base:
        return self.modifiedCopy(lambda content: shallowCopy(content) if isComplex(content) else content)

    # ----------------------------------------------
    #                      Refs
    # ----------------------------------------------

    @property
    def ref(self) -> Ref | None:
        content = self.nodeContent
        if not (isHashlike(content) and isinstance(content.get("$ref"), str)):
            return None
        return self._memoize("ref", lambda ref: Ref(ref, referrer=self), content["$ref"])

    def deref(self) -> Base:
        """The node this node's `$ref` identifies; this node when it has no `$ref`."""
        ref = self.ref
        if ref is None:
            return self
        return ref.resolve()

    def tryDeref(self) -> Base | None:
        """The node this node's `$ref` identifies, or None when there is no `$ref` or it does not resolve."""
        ref = self.ref
        if ref is None:
            return None
        try:
            return ref.resolve()
        except (ResolutionError, NotASchemaError) as err:
            logger.debug("Could not dereference %s at %s: %s", ref.ref, self.ptr.fragment, err)
            return None

    # ----------------------------------------------
    #                   Navigation
    # ----------------------------------------------

    def descendantNode(self, ptr: Ptr | Iterable[Token]) -> Base:
        """The JSI at `ptr` below this one. Raises PointerResolutionError when it does not exist."""
        ptr = Ptr.ensure(ptr if isinstance(ptr, Ptr) else list(ptr))
        node = self
        for token in ptr.resolveAgainst(self.nodeContent):
            node = node._get(token, True, False, ())
        return node

    def __truediv__(self, ptr: Ptr | str | Iterable[Token]) -> Base:
        if isinstance(ptr, str):
            ptr = Ptr.parse(ptr)
        return self.descendantNode(ptr)

    @property
    def parentNode(self) -> Base:
        return self.rootNode.descendantNode(self.ptr.parent())

    def parentJsis(self) -> list[Base]:
        """
        The JSIs from this node's parent up to the document root, nearest first. A hop no
        schema describes is wrapped with the SimpleWrap schema instead.
        """
        from jsi.simple_wrap import simpleWrapSchema

        hops: list[Base] = []
        for ancestor in self.ancestorNodes()[1:]:
            if not ancestor.schemas:
                indicated = SchemaSet([simpleWrapSchema(self.registry)])
                ancestor = classForSchemas(indicated)(
                    ancestor.document,
                    ptr=ancestor.ptr,
                    rootNode=None if ancestor.ptr.isRoot else ancestor.rootNode,
                    indicatedSchemas=indicated,
                    schemaBaseUri=ancestor.schemaBaseUri,
                    resourceAncestors=ancestor.resourceAncestors,
                    registry=self.registry,
                )
            hops.append(ancestor)
        return hops

    def ancestorNodes(self) -> list[Base]:
        """This node, then each node above it up to the root."""
        root = self.rootNode
        nodes: list[Base] = [self]
        for length in range(len(self.ptr) - 1, -1, -1):
            nodes.append(root.descendantNode(self.ptr.take(length)))
        return nodes

    def eachDescendantNode(self) -> Iterator[Base]:
        """This node and every node below it, as JSIs, parents before children."""
        yield self
        for token in self.childTokens():
            yield from self._get(token, True, False, ()).eachDescendantNode()

    def eachDescendantSchema(self) -> Iterator[Schema]:
        for node in self.eachDescendantNode():
            if isinstance(node, Schema):
                yield node

    def anchorSubschemas(self, anchor: str) -> list[Schema]:
        return [schema for schema in self.eachDescendantSchema() if schema.anchor == anchor]

    def selectDescendantsNodeFirst(self, predicate: Callable[[Base], bool]) -> Base:
        """
        A modified copy keeping only descendants `predicate` accepts. A node is tested
        before its children, so a rejected node's children are never tested.
        """
        return self.modifiedCopy(lambda _content: self._selectNodeFirst(predicate))

    def _selectNodeFirst(self, predicate: Callable[[Base], bool]) -> Any:
        if self.shape is NodeShape.SCALAR:
            return self.nodeContent
        selected: list[tuple[Token, Any]] = []
        for token in self.childTokens():
            child = self._get(token, True, False, ())
            if predicate(child):
                selected.append((token, child._selectNodeFirst(predicate)))
        return self._rebuild(selected)

    def selectDescendantsLeafFirst(self, predicate: Callable[[Base], bool]) -> Base:
        """
        A modified copy keeping only descendants `predicate` accepts. Children are filtered
        first, and `predicate` then sees each node with its children already filtered.
        """
        if self.shape is NodeShape.SCALAR:
            return self.modifiedCopy(lambda content: content)
        selected: list[tuple[Token, Any]] = []
        for token in self.childTokens():
            child = self._get(token, True, False, ()).selectDescendantsLeafFirst(predicate)
            if predicate(child):
                selected.append((token, child.nodeContent))
        rebuilt = self._rebuild(selected)
        return self.modifiedCopy(lambda _content: rebuilt)

    def _rebuild(self, selected: list[tuple[Token, Any]]) -> Any:
        if self.shape is NodeShape.MAPPING:
            return {token: content for token, content in selected}
        return [content for _token, content in selected]

    def isDescribedBy(self, schema: Schema) -> bool:
        return schema in self.schemas

    # ----------------------------------------------
    #                   Validation
    # ----------------------------------------------

    def validate(self) -> None:
        """Raises ValidationError unless this node is valid against its indicated schemas."""
        self.indicatedSchemas.validateInstance(self.nodeContent)

    def isValid(self) -> bool:
        return self.indicatedSchemas.isInstanceValid(self.nodeContent)

    def asJson(self) -> Any:
        return asJson(self.nodeContent)

    # ----------------------------------------------
    #                    Identity
    # ----------------------------------------------

    def _fingerprint(self) -> tuple[Any, ...]:
        return (type(self), id(self.document), self.ptr, self.indicatedSchemas, self.resourceAncestorUri)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Base) and other._fingerprint() == self._fingerprint()

    def __hash__(self) -> int:
        return hash(self._fingerprint())

    def __repr__(self) -> str:
        described = ", ".join(schema.schemaUri or schema.ptr.fragment for schema in self.schemas)
        content = repr(self.nodeContent)
        if len(content) > 120:
            content = content[:120] + "..."
        return f"<{type(self).__name__} {self.ptr.fragment} ({described}) {content}>"



class SchemaJSI(Schema, Base):
    """A JSI whose instance is itself a schema, described by a meta-schema."""
    def __init__(self, document: Any, **kwargs: Any):
        super().__init__(document, **kwargs)
        self.dialect: Dialect = dialectForSchemas(self.schemas)

    def _computeSubschema(self, subptr: Ptr) -> Schema:
        return ensureSchema(self.descendantNode(subptr), f"subschema is not a schema at pointer: {subptr.pointer}")

    def _computeResourceRootSubschema(self, ptr: Ptr) -> Schema:
        root = self.schemaResourceRoot
        if isinstance(root, Schema) and root is not self:
            return root.resourceRootSubschema(ptr)
        node = root.descendantNode(ptr)
        if isinstance(node, Schema):
            return node
        return self._asSchema(node, root)

    def _asSchema(self, node: Base, root: Base) -> Schema:
        """
        Re-instantiates a node the document does not describe as a schema, using the
        meta-schema that describes this schema. Refs may point at such nodes.
        """
        metaschemas = SchemaSet(schema for schema in self.schemas if schema.describesSchema)
        if not metaschemas:
            ensureSchema(node, "object identified by pointer is not a schema:")
        applied = metaschemas.inplaceApplicatorSchemas(node.nodeContent)
        baseUri = root.subschemaBaseUri if isinstance(root, Schema) else root.schemaBaseUri
        ancestors = root.subschemaResourceAncestors if isinstance(root, Schema) else ()
        reinstantiated = classForSchemas(applied)(
            node.document,
            ptr=node.ptr,
            rootNode=None if node.ptr.isRoot else node.rootNode,
            indicatedSchemas=metaschemas,
            schemas=applied,
            schemaBaseUri=baseUri,
            resourceAncestors=ancestors,
            registry=self.registry,
        )
        return ensureSchema(reinstantiated, "object identified by pointer is not a schema:")



# ----------------------------------------------
#                 class selection
# ----------------------------------------------

def dialectForSchemas(schemas: Iterable[Schema]) -> Dialect | None:
    """The dialect of schemas described by `schemas`, None when none of them describes schemas."""
    dialects: list[Dialect] = []
    for schema in schemas:
        dialect = schema.describesSchemaDialect
        if dialect is not None and dialect not in dialects:
            dialects.append(dialect)
    if len(dialects) > 1:
        raise TypeError(f"instance is described by meta-schemas of more than one dialect: {dialects!r}")
    return dialects[0] if dialects else None



def classForSchemas(schemas: Iterable[Schema]) -> type[Base]:
    """SchemaJSI when one of `schemas` is a meta-schema, otherwise Base."""
    return SchemaJSI if dialectForSchemas(schemas) is not None else Base
