# jsi/schema/schema_set.py
from __future__ import annotations
from collections.abc import Iterable, Iterator
from typing import Any, TYPE_CHECKING

from jsi.core.errors import ValidationError
from jsi.core.uri import parseUri, registrationUri
from jsi.ref import UNSET
from jsi.schema.schema import Schema

if TYPE_CHECKING:
    from jsi.base import Base
    from jsi.registry import Registry

__all__ = ["SchemaSet"]



class SchemaSet:
    """
    An immutable, ordered set of schemas. Duplicates (by schema equality) keep their first
    position; equality ignores order.
    """
    __slots__ = ("_schemas",)

    def __init__(self, schemas: Iterable[Schema] = ()):
        ordered: dict[Schema, None] = {}
        for schema in schemas:
            if not isinstance(schema, Schema):
                raise TypeError(f"SchemaSet members must be schemas, got '{type(schema).__name__}': {schema!r}")
            ordered.setdefault(schema, None)
        self._schemas: tuple[Schema, ...] = tuple(ordered)

    def __iter__(self) -> Iterator[Schema]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

    def __contains__(self, schema: object) -> bool:
        return schema in self._schemas

    def __bool__(self) -> bool:
        return bool(self._schemas)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SchemaSet) and frozenset(other._schemas) == frozenset(self._schemas)

    def __hash__(self) -> int:
        return hash((SchemaSet, frozenset(self._schemas)))

    def __or__(self, other: Iterable[Schema]) -> SchemaSet:
        return SchemaSet((*self._schemas, *other))

    def __repr__(self) -> str:
        return f"SchemaSet({list(self._schemas)!r})"

    # ----- Instantiation -----

    def newJsi(
            self,
            instance: Any,
            *,
            uri: str | None = None,
            registry: Registry | None = UNSET,
            register: bool = False,
    ) -> Base:
        """
        Wraps `instance` as the root of a new document described by these schemas.

        `uri` is the base URI of the document; with `register`, the new root (and every
        schema in it with an absolute URI) is added to the registry.
        """
        from jsi.base import Base, classForSchemas
        from jsi.defaults import defaultRegistry

        if isinstance(instance, (Base, Schema)):
            raise TypeError(f"instance to wrap must not itself be a JSI or a schema: {instance!r}")
        if uri is not None:
            uri = parseUri(uri)
            registrationUri(uri)
        if registry is UNSET:
            registry = defaultRegistry()

        applied = self.inplaceApplicatorSchemas(instance)
        jsi = classForSchemas(applied)(
            instance,
            indicatedSchemas=self,
            schemas=applied,
            schemaBaseUri=uri,
            registry=registry,
        )
        if register:
            if registry is None:
                raise TypeError("cannot register a new JSI with no registry")
            registry.register(jsi)
        return jsi

    # ----- Application -----

    def inplaceApplicatorSchemas(self, instance: Any) -> SchemaSet:
        """Every schema that applies to `instance` in place of one of these."""
        return SchemaSet(
            applied
            for schema in self._schemas
            for applied in schema.eachInplaceApplicatorSchema(instance)
        )

    def childApplicatorSchemas(self, token: Any, instance: Any) -> SchemaSet:
        """Schemas the child applicators of these schemas give for the child of `instance` at `token`."""
        return SchemaSet(
            child
            for schema in self._schemas
            for child in schema.eachChildApplicatorSchema(token, instance)
        )

    # ----- Validation -----

    def validateInstance(self, instance: Any) -> None:
        errors: list[str] = []
        for schema in self._schemas:
            try:
                schema.validateInstance(instance)
            except ValidationError as err:
                errors.append(str(err))
        if errors:
            raise ValidationError("\n".join(errors))

    def isInstanceValid(self, instance: Any) -> bool:
        return all(schema.isInstanceValid(instance) for schema in self._schemas)