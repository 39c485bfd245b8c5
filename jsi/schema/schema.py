# jsi/schema/schema.py
from __future__ import annotations
import logging
from collections.abc import Iterable, Iterator
from typing import Any, TYPE_CHECKING
from urllib.parse import unquote

from jsi.core.errors import NotASchemaError
from jsi.core.ptr import Ptr, Token
from jsi.core.typelike import isArraylike, isHashlike
from jsi.core.uri import isAbsoluteUri, joinUri, uriFragment, uriWithoutFragment
from jsi.ref import UNSET, SchemaRef

if TYPE_CHECKING:
    from jsi.base import Base
    from jsi.registry import Registry
    from jsi.schema.dialect import Dialect
    from jsi.schema.schema_set import SchemaSet

logger = logging.getLogger(__name__)

__all__ = ["Schema", "ensureSchema", "newSchema"]



class Schema:
    """
    Mixin for nodes whose content is a JSON Schema (an object or a boolean).

    Hosts provide `document`, `ptr`, `nodeContent`, `dialect`, `registry`, `schemaBaseUri`,
    `resourceAncestors`, `rootNode`, `parentNode`, `eachDescendantNode`, memo maps
    (`Memoize`), and the two lookups `_computeSubschema` / `_computeResourceRootSubschema`.
    """
    dialect: Dialect
    registry: Registry | None
    schemaBaseUri: str | None
    resourceAncestors: tuple[Schema, ...]
    # Set on meta-schemas: instances of this schema are schemas of this dialect
    describesSchemaDialect: Dialect | None = None

    @property
    def schemaContent(self) -> Any:
        return self.nodeContent

    @property
    def describesSchema(self) -> bool:
        return self.describesSchemaDialect is not None

    def keyword(self, name: str) -> bool:
        """Whether this schema is an object with the given keyword."""
        content = self.schemaContent
        return isHashlike(content) and name in content

    # ----- Identification -----

    @property
    def id(self) -> str | None:
        """The value of this dialect's id keyword, when it is a string."""
        content = self.schemaContent
        if isHashlike(content) and isinstance(content.get(self.dialect.idKeyword), str):
            return content[self.dialect.idKeyword]
        return None

    @property
    def idWithoutFragment(self) -> str | None:
        """
        The non-fragment part of the id, or None when the id is only an anchor
        (`#foo`, or the base URI plus `#foo`).
        """
        schemaId = self.id
        if schemaId is None:
            return None
        withoutFragment = uriWithoutFragment(schemaId)
        fragment = uriFragment(schemaId)
        if withoutFragment == "":
            return None
        if fragment is None or fragment == "":
            return withoutFragment
        if self.schemaBaseUri and uriWithoutFragment(joinUri(self.schemaBaseUri, schemaId)) == self.schemaBaseUri:
            return None
        return withoutFragment

    @property
    def anchor(self) -> str | None:
        """A plain-name anchor defined by this schema, from the id fragment or an anchor keyword."""
        anchorKeyword = self.dialect.anchorKeyword
        content = self.schemaContent
        if anchorKeyword and isHashlike(content) and isinstance(content.get(anchorKeyword), str):
            return content[anchorKeyword]
        schemaId = self.id
        if schemaId is None:
            return None
        fragment = uriFragment(schemaId)
        if not fragment or fragment.startswith("/"):
            return None
        return fragment

    @property
    def schemaAbsoluteUri(self) -> str | None:
        """The id joined against the base URI, when that gives an absolute URI."""
        withoutFragment = self.idWithoutFragment
        if withoutFragment is None:
            return None
        absoluteUri = joinUri(self.schemaBaseUri, withoutFragment)
        return absoluteUri if isAbsoluteUri(absoluteUri) else None

    @property
    def schemaAbsoluteUris(self) -> list[str]:
        absoluteUri = self.schemaAbsoluteUri
        return [absoluteUri] if absoluteUri else []

    @property
    def schemaUris(self) -> list[str]:
        """
        Every URI identifying this schema: its absolute URI, then for each enclosing resource
        (nearest first) the anchor form and the pointer-fragment form.
        """
        uris: list[str] = []
        ownUri = _resourceUri(self)
        if ownUri:
            uris.append(ownUri)
        anchor = self.anchor
        for ancestor in reversed(self.resourceAncestors):
            ancestorUri = _resourceUri(ancestor)
            if not ancestorUri:
                continue
            if anchor:
                uris.append(f"{ancestorUri}#{anchor}")
            uris.append(ancestorUri + self.ptr.relativeTo(ancestor.ptr).fragment)
        return list(dict.fromkeys(uris))

    @property
    def schemaUri(self) -> str | None:
        uris = self.schemaUris
        return uris[0] if uris else None

    @property
    def schemaId(self) -> str | None:
        """
        The id of the nearest schema at or above this one carrying `$id`/`id`, with a pointer
        fragment from there to this schema. Without such an ancestor, the document's base URI
        with a fragment from the document root; None when there is neither.
        """
        return self._memoize("schemaId", self._computeSchemaId)

    def _computeSchemaId(self) -> str | None:
        node: Any = self
        pathFromIdNode: list[Token] = []
        parentId: str | None = None
        while True:
            content = node.nodeContent
            if isinstance(node, Schema) and isHashlike(content):
                for idKeyword in ("$id", "id"):
                    candidate = content.get(idKeyword)
                    if isinstance(candidate, str):
                        # A plain-name anchor id names the schema without locating it
                        if uriWithoutFragment(candidate) or not _isAnchorFragment(uriFragment(candidate)):
                            parentId = candidate
                        break
            if parentId is not None or node.ptr.isRoot:
                break
            pathFromIdNode.insert(0, node.ptr.tokens[-1])
            node = node.parentNode

        if parentId is not None:
            parentFragment = uriFragment(parentId)
            tokens = list(pathFromIdNode)
            if parentFragment and not _isAnchorFragment(parentFragment):
                tokens = list(Ptr.parseFragment("#" + parentFragment).tokens) + tokens
            return uriWithoutFragment(parentId) + Ptr(tokens).fragment

        documentBaseUri = self.rootNode.schemaBaseUri
        if documentBaseUri:
            return documentBaseUri + self.ptr.fragment
        return None

    # ----- Resources -----

    @property
    def subschemaBaseUri(self) -> str | None:
        """The base URI for schemas below this one."""
        return self.schemaAbsoluteUri or self.schemaBaseUri

    @property
    def resourceAncestorUri(self) -> str | None:
        return self.subschemaBaseUri

    @property
    def isSchemaResourceRoot(self) -> bool:
        return self.ptr.isRoot or self.schemaAbsoluteUri is not None

    @property
    def subschemaResourceAncestors(self) -> tuple[Schema, ...]:
        if self.isSchemaResourceRoot:
            return tuple(self.resourceAncestors) + (self,)
        return tuple(self.resourceAncestors)

    @property
    def schemaResourceRoot(self) -> Any:
        """The nearest enclosing schema resource (possibly this schema), else the document root."""
        ancestors = self.subschemaResourceAncestors
        return ancestors[-1] if ancestors else self.rootNode

    def subschema(self, subptr: Ptr | Iterable[Token]) -> Schema:
        """The schema at `subptr` relative to this one."""
        subptr = Ptr.ensure(subptr if isinstance(subptr, Ptr) else list(subptr))
        if subptr.isRoot:
            return self
        return self._memomap("subschema", self._computeSubschema)(subptr)

    def resourceRootSubschema(self, ptr: Ptr | Iterable[Token]) -> Schema:
        """The schema at `ptr` relative to this schema's resource root."""
        ptr = Ptr.ensure(ptr if isinstance(ptr, Ptr) else list(ptr))
        return self._memomap("resourceRootSubschema", self._computeResourceRootSubschema)(ptr)

    def anchorSubschemas(self, anchor: str) -> list[Schema]:
        """Schemas in this schema's resource (not descending into embedded resources) with the given anchor."""
        return [schema for schema in self.eachResourceSchema() if schema.anchor == anchor]

    def eachResourceSchema(self) -> Iterator[Schema]:
        """This schema and its subschemas, stopping at subschemas that begin a resource of their own."""
        yield self
        for subptr in self.eachImmediateSubschemaPtr():
            try:
                subschema = self.subschema(subptr)
            except NotASchemaError:
                continue
            if subschema.schemaAbsoluteUri is None:
                yield from subschema.eachResourceSchema()

    def eachImmediateSubschemaPtr(self) -> Iterator[Ptr]:
        """Relative pointers to the subschemas this schema's keywords contain."""
        content = self.schemaContent
        if not isHashlike(content):
            return
        for keyword in _SUBSCHEMA_KEYWORDS:
            if _isSchemaContent(content.get(keyword)):
                yield Ptr.of(keyword)
        for keyword in _SUBSCHEMA_ARRAY_KEYWORDS:
            value = content.get(keyword)
            if isArraylike(value):
                for index, item in enumerate(value):
                    if _isSchemaContent(item):
                        yield Ptr.of(keyword, index)
            elif keyword == "items" and _isSchemaContent(value):
                yield Ptr.of(keyword)
        for keyword in _SUBSCHEMA_MAP_KEYWORDS:
            value = content.get(keyword)
            if isHashlike(value):
                for name, item in value.items():
                    if _isSchemaContent(item):
                        yield Ptr.of(keyword, name)

    @property
    def ref(self) -> SchemaRef | None:
        """The ref made of this schema's `$ref`, when it is a string."""
        content = self.schemaContent
        if not (isHashlike(content) and isinstance(content.get("$ref"), str)):
            return None
        return self._memoize("ref", lambda ref: SchemaRef(ref, referrer=self), content["$ref"])

    @property
    def describedObjectPropertyNames(self) -> frozenset[str]:
        """Keys of `properties` and names listed in `required`."""
        content = self.schemaContent
        names: set[str] = set()
        if isHashlike(content) and isHashlike(content.get("properties")):
            names.update(content["properties"].keys())
        if isHashlike(content) and isArraylike(content.get("required")):
            names.update(name for name in content["required"] if isinstance(name, str))
        return frozenset(names)

    # ----- Application -----

    def eachChildApplicatorSchema(self, token: Any, instance: Any) -> Iterator[Schema]:
        """Schemas applying to the child of `instance` at `token`, from this schema's child applicators."""
        if not isHashlike(self.schemaContent):
            return iter(())
        return self.dialect.childApplicate(self, token, instance)

    def eachInplaceApplicatorSchema(self, instance: Any, *, visitedRefs: tuple = ()) -> Iterator[Schema]:
        """Schemas applying to `instance` itself: this one (unless replaced by `$ref`) and its in-place applicators."""
        if not isHashlike(self.schemaContent):
            return iter((self,))
        return self.dialect.inplaceApplicate(self, instance, visitedRefs)

    def childApplicatorSchemas(self, token: Any, instance: Any) -> SchemaSet:
        from jsi.schema.schema_set import SchemaSet
        return SchemaSet(self.eachChildApplicatorSchema(token, instance))

    def inplaceApplicatorSchemas(self, instance: Any) -> SchemaSet:
        from jsi.schema.schema_set import SchemaSet
        return SchemaSet(self.eachInplaceApplicatorSchema(instance))

    def matchToInstance(self, instance: Any) -> Schema:
        """
        The one schema that best describes `instance`: `$ref` is followed, then the first
        oneOf/anyOf branch the instance is valid against is descended into. For allOf the
        first valid branch is chosen (the first branch when none is valid); branches are
        not merged.
        """
        return self._matchToInstance(instance, ())

    def _matchToInstance(self, instance: Any, visitedRefs: tuple) -> Schema:
        content = self.schemaContent
        if not isHashlike(content):
            return self
        ref = self.ref
        if ref is not None and ref not in visitedRefs:
            return ref.resolve()._matchToInstance(instance, visitedRefs + (ref,))
        for keyword in ("oneOf", "anyOf"):
            if isArraylike(content.get(keyword)):
                for index in range(len(content[keyword])):
                    branch = self.subschema([keyword, index])
                    if branch.isInstanceValid(instance):
                        return branch._matchToInstance(instance, visitedRefs)
        if isArraylike(content.get("allOf")) and content["allOf"]:
            branches = [self.subschema(["allOf", index]) for index in range(len(content["allOf"]))]
            chosen = next((branch for branch in branches if branch.isInstanceValid(instance)), branches[0])
            return chosen._matchToInstance(instance, visitedRefs)
        return self

    # ----- Instances -----

    def newJsi(self, instance: Any, *, uri: str | None = None, registry: Registry | None = UNSET, register: bool = False) -> Base:
        """A JSI over `instance` described by this schema (and whatever applies in place of it)."""
        from jsi.schema.schema_set import SchemaSet
        return SchemaSet([self]).newJsi(instance, uri=uri, registry=self.registry if registry is UNSET else registry, register=register)

    def newSchema(self, content: Any, *, uri: str | None = None, registry: Registry | None = UNSET, register: bool = True) -> Schema:
        """Instantiates `content` as a schema described by this meta-schema."""
        if not self.describesSchema:
            raise NotASchemaError(f"this schema does not describe schemas, so cannot instantiate a schema from it:\n{self!r}")
        if not (isHashlike(content) or isinstance(content, bool)):
            raise TypeError(f"schema content must be an object or boolean, got '{type(content).__name__}': {content!r}")
        schema = self.newJsi(content, uri=uri, registry=registry, register=register)
        return ensureSchema(schema, "instantiating content with a meta-schema did not produce a schema:")

    # ----- Validation -----

    def validateInstance(self, instance: Any) -> None:
        """Raises ValidationError when `instance` is not valid against this schema."""
        from jsi.schema.validation import validateWith
        validateWith(self, self._validator(), instance)

    def isInstanceValid(self, instance: Any) -> bool:
        from jsi.schema.validation import isValidWith
        return isValidWith(self._validator(), instance)

    def _validator(self) -> Any:
        from jsi.schema.validation import compileValidator
        return self._memoize("validator", compileValidator, self)



def ensureSchema(value: Any, message: str = "indicated object is not a schema:") -> Schema:
    if isinstance(value, Schema):
        return value
    raise NotASchemaError(f"{message}\n{value!r}")



def newSchema(
        content: Any,
        *,
        defaultMetaschema: Schema | str | None = None,
        uri: str | None = None,
        registry: Registry | None = UNSET,
        register: bool = True,
) -> Schema:
    """
    Instantiates `content` as a schema.

    The meta-schema is the one named by a `$schema` keyword (found through the registry),
    else `defaultMetaschema`, else the configured default dialect. A schema passed in is
    returned unchanged.
    """
    from jsi.base import Base
    from jsi.config.settings import loadSettings
    from jsi.defaults import defaultRegistry

    if isinstance(content, Schema):
        return content
    if isinstance(content, Base):
        raise NotASchemaError(f"cannot instantiate a schema from a JSI that is not a schema:\n{content!r}")
    if not (isHashlike(content) or isinstance(content, bool)):
        raise TypeError(f"schema content must be an object or boolean, got '{type(content).__name__}': {content!r}")
    if registry is UNSET:
        registry = defaultRegistry()

    if isHashlike(content) and "$schema" in content:
        if not isinstance(content["$schema"], str):
            raise TypeError(f"$schema must be a string, got: {content['$schema']!r}")
        metaschema = _findMetaschema(content["$schema"], registry)
    elif isinstance(defaultMetaschema, Schema):
        metaschema = defaultMetaschema
    elif defaultMetaschema is not None:
        metaschema = _findMetaschema(defaultMetaschema, registry)
    else:
        metaschema = _findMetaschema(loadSettings().defaultDialect, registry)

    return metaschema.newSchema(content, uri=uri, registry=registry, register=register)



def _findMetaschema(uri: str, registry: Registry | None) -> Schema:
    if registry is None:
        raise NotASchemaError(f"cannot find meta-schema {uri} with no registry")
    metaschema = ensureSchema(registry.find(uri), f"meta-schema identified by {uri} is not a schema:")
    if not metaschema.describesSchema:
        raise NotASchemaError(f"schema identified by {uri} does not describe schemas:\n{metaschema!r}")
    return metaschema



# ----------------------------------------------
#              keyword-located subschemas
# ----------------------------------------------

_SUBSCHEMA_KEYWORDS = ("additionalItems", "contains", "additionalProperties", "propertyNames", "not", "if", "then", "else")
_SUBSCHEMA_ARRAY_KEYWORDS = ("items", "allOf", "anyOf", "oneOf")
_SUBSCHEMA_MAP_KEYWORDS = ("properties", "patternProperties", "dependencies", "definitions")



def _isSchemaContent(value: Any) -> bool:
    return isHashlike(value) or isinstance(value, bool)



def _isAnchorFragment(fragment: str | None) -> bool:
    return bool(fragment) and not unquote(fragment).startswith("/")



def _resourceUri(schema: Schema) -> str | None:
    """The URI a schema resource is addressed by: its absolute URI, or the base URI of a document root."""
    if schema.schemaAbsoluteUri:
        return schema.schemaAbsoluteUri
    if schema.ptr.isRoot and schema.schemaBaseUri:
        return schema.schemaBaseUri
    return None
