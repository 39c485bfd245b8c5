# tests/jsi/schema/test_schema_set.py
from __future__ import annotations

import pytest

from jsi.base import Base, SchemaJSI
from jsi.core.errors import ValidationError
from jsi.defaults import defaultRegistry
from jsi.registry import Registry
from jsi.schema.schema import newSchema
from jsi.schema.schema_set import SchemaSet


def test_schemaSet_isOrderedAndDeduplicated(registry: Registry) -> None:
    first = newSchema({"type": "string"}, registry=registry)
    second = newSchema({"minLength": 1}, registry=registry)

    schemas = SchemaSet([second, first, second])
    assert list(schemas) == [second, first]
    assert len(schemas) == 2
    assert first in schemas
    assert schemas == SchemaSet([first, second])
    assert hash(schemas) == hash(SchemaSet([first, second]))
    assert (SchemaSet([first]) | [second, first]) == schemas
    assert not SchemaSet()


def test_schemaSet_rejectsNonSchemas() -> None:
    with pytest.raises(TypeError):
        SchemaSet([{"type": "string"}])  # type: ignore[list-item]


def test_newJsi_appliesInplaceSchemas(registry: Registry) -> None:
    schema = newSchema({"anyOf": [{"type": "string"}, {"type": "object"}]}, registry=registry)
    document = SchemaSet([schema]).newJsi({"a": 1})

    assert isinstance(document, Base)
    assert not isinstance(document, SchemaJSI)
    assert document.indicatedSchemas == SchemaSet([schema])
    assert [s.ptr.tokens for s in document.schemas] == [(), ("anyOf", 1)]
    assert document.registry is defaultRegistry()


def test_newJsi_registersUnderUri(registry: Registry) -> None:
    schema = newSchema({}, registry=registry)
    document = SchemaSet([schema]).newJsi({"a": 1}, uri="http://example.com/doc", registry=registry, register=True)
    assert document.schemaBaseUri == "http://example.com/doc"
    assert registry.find("http://example.com/doc") is document


def test_newJsi_rejectsBadInput(registry: Registry) -> None:
    schema = newSchema({}, registry=registry)
    schemas = SchemaSet([schema])
    with pytest.raises(TypeError):
        schemas.newJsi(schemas.newJsi({}))
    with pytest.raises(ValueError):
        schemas.newJsi({}, uri="relative/doc.json")
    with pytest.raises(TypeError):
        schemas.newJsi({}, registry=None, register=True)


def test_childApplicatorSchemas_unionOfMembers(registry: Registry) -> None:
    first = newSchema({"properties": {"a": {"type": "string"}}}, registry=registry)
    second = newSchema({"additionalProperties": {"type": "number"}}, registry=registry)
    children = SchemaSet([first, second]).childApplicatorSchemas("a", {"a": 1})
    assert list(children) == [first.subschema(["properties", "a"]), second.subschema(["additionalProperties"])]


def test_validateInstance_reportsEveryFailingSchema(registry: Registry) -> None:
    schemas = SchemaSet([
        newSchema({"$id": "http://example.com/str", "type": "string"}, registry=registry),
        newSchema({"$id": "http://example.com/long", "minLength": 5}, registry=registry),
    ])
    assert schemas.isInstanceValid("long enough")
    assert not schemas.isInstanceValid("abc")
    assert not schemas.isInstanceValid(3)

    with pytest.raises(ValidationError) as excinfo:
        schemas.validateInstance(["x"])
    message = str(excinfo.value)
    assert "http://example.com/str" in message
