# tests/jsi/test_base.py
from __future__ import annotations
from typing import Any

import pytest

from jsi.base import Base, SchemaJSI
from jsi.core.errors import PointerResolutionError, SimpleNodeChildError, ValidationError
from jsi.core.ptr import Ptr
from jsi.registry import Registry
from jsi.schema.dialect import DRAFT07
from jsi.schema.schema import Schema, newSchema

PERSON = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "tags": {"type": "array", "items": {"type": "string"}},
        "address": {
            "type": "object",
            "properties": {"city": {"type": "string"}},
        },
    },
}


def person(registry: Registry, instance: Any = None) -> Base:
    if instance is None:
        instance = {"name": "Ada", "tags": ["math", "code"], "address": {"city": "London"}}
    return newSchema(PERSON, registry=registry).newJsi(instance)


# ----------------------------------------
# Subscripting
# ----------------------------------------

def test_get_wrapsComplexChildrenAndReturnsScalarsRaw(registry: Registry) -> None:
    jsi = person(registry)

    assert jsi["name"] == "Ada"
    address = jsi["address"]
    assert isinstance(address, Base)
    assert address.ptr == Ptr.of("address")
    assert address["city"] == "London"
    assert jsi["tags"][1] == "code"


def test_get_asJsiForcesEitherWay(registry: Registry) -> None:
    jsi = person(registry)

    name = jsi.get("name", asJsi=True)
    assert isinstance(name, Base)
    assert name.nodeContent == "Ada"
    assert jsi.get("address", asJsi=False) == {"city": "London"}
    with pytest.raises(ValueError):
        jsi.get("name", asJsi="sometimes")


def test_get_missingTokenIsNoneButSubscriptRaises(registry: Registry) -> None:
    jsi = person(registry)
    assert jsi.get("nope") is None
    with pytest.raises(KeyError):
        jsi["nope"]
    assert jsi["tags"].get(5) is None


def test_get_onScalarRaises(registry: Registry) -> None:
    scalar = newSchema({}, registry=registry).newJsi(3)
    with pytest.raises(SimpleNodeChildError):
        scalar["x"]
    with pytest.raises(TypeError):
        scalar.get(0)


def test_children_areDescribedByChildSchemas(registry: Registry) -> None:
    jsi = person(registry)
    schema = next(iter(jsi.schemas))

    address = jsi["address"]
    assert list(address.indicatedSchemas) == [schema.subschema(["properties", "address"])]
    assert address.isDescribedBy(schema.subschema(["properties", "address"]))
    assert not address.isDescribedBy(schema)
    assert list(jsi["tags"].get(0, asJsi=True).schemas) == [schema.subschema(["properties", "tags", "items"])]


def test_children_areMemoized(registry: Registry) -> None:
    jsi = person(registry)
    assert jsi["address"] is jsi["address"]
    assert jsi["address"] == jsi / "/address"


def test_schemaValuedChildIsWrappedEvenWhenScalar(registry: Registry) -> None:
    schema = newSchema({"items": True, "additionalProperties": False}, registry=registry)
    items = schema["items"]
    assert isinstance(items, Schema)
    assert items.schemaContent is True
    assert schema["additionalProperties"].schemaContent is False
    assert isinstance(schema, SchemaJSI)


def test_mappingAndSequenceProtocols(registry: Registry) -> None:
    jsi = person(registry)
    assert jsi.keys() == ["name", "tags", "address"]
    assert list(jsi) == ["name", "tags", "address"]
    assert len(jsi) == 3
    assert "name" in jsi
    assert jsi.items()[0] == ("name", "Ada")

    tags = jsi["tags"]
    assert list(tags) == ["math", "code"]
    assert len(tags) == 2
    assert "code" in tags
    assert tags.childTokens() == [0, 1]
    with pytest.raises(TypeError):
        tags.keys()


# ----------------------------------------
# Navigation
# ----------------------------------------

def test_descendantNodeAndSlash(registry: Registry) -> None:
    jsi = person(registry)
    city = jsi.descendantNode(Ptr.of("address", "city"))
    assert isinstance(city, Base)
    assert city.nodeContent == "London"
    assert (jsi / "/tags/0").nodeContent == "math"
    assert (jsi / ["tags", 1]).nodeContent == "code"
    with pytest.raises(PointerResolutionError):
        jsi / "/address/zip"


def test_parentNodeAndAncestors(registry: Registry) -> None:
    jsi = person(registry)
    city = jsi / "/address/city"

    assert city.parentNode == jsi["address"]
    assert city.rootNode is jsi
    assert [node.ptr for node in city.ancestorNodes()] == [Ptr.of("address", "city"), Ptr.of("address"), Ptr()]


def test_parentJsis_nearestFirst(registry: Registry) -> None:
    jsi = person(registry)
    tag = jsi["tags"].get(0, asJsi=True)
    parents = tag.parentJsis()
    assert [node.ptr for node in parents] == [Ptr.of("tags"), Ptr()]
    assert parents[0] == jsi["tags"]
    assert parents[1] is jsi


def test_parentJsis_undescribedHopsAreSimpleWrapped(registry: Registry) -> None:
    document = newSchema({}, registry=registry).newJsi({"a": {"b": {"c": 1}}})
    leaf = document / "/a/b"
    parents = leaf.parentJsis()
    assert [node.ptr for node in parents] == [Ptr.of("a"), Ptr()]
    assert parents[0].schemas
    assert isinstance(parents[0]["b"], Base)


def test_eachDescendantNode_parentsFirst(registry: Registry) -> None:
    jsi = person(registry)
    pointers = [node.ptr.pointer for node in jsi.eachDescendantNode()]
    assert pointers == ["", "/name", "/tags", "/tags/0", "/tags/1", "/address", "/address/city"]


def test_selectDescendantsNodeFirst(registry: Registry) -> None:
    jsi = person(registry)
    selected = jsi.selectDescendantsNodeFirst(lambda node: node.nodeContent != "code" and node.ptr != Ptr.of("address"))
    assert selected.nodeContent == {"name": "Ada", "tags": ["math"]}
    assert jsi.nodeContent["tags"] == ["math", "code"]


def test_selectDescendantsLeafFirst(registry: Registry) -> None:
    jsi = person(registry)
    # Containers left empty after filtering are dropped too
    selected = jsi.selectDescendantsLeafFirst(
        lambda node: not isinstance(node.nodeContent, str) and node.nodeContent != {} or node.ptr == Ptr.of("name")
    )
    assert selected.nodeContent == {"name": "Ada", "tags": []}


# ----------------------------------------
# Identity / validation
# ----------------------------------------

def test_equality_byDocumentPointerAndSchemas(registry: Registry) -> None:
    schema = newSchema(PERSON, registry=registry)
    instance = {"name": "x"}
    first = schema.newJsi(instance)
    second = schema.newJsi(instance)
    third = schema.newJsi({"name": "x"})

    assert first == second
    assert hash(first) == hash(second)
    assert first != third
    assert first != newSchema({}, registry=registry).newJsi(instance)


def test_validate(registry: Registry) -> None:
    assert person(registry).isValid()
    invalid = person(registry, {"name": 5})
    assert not invalid.isValid()
    with pytest.raises(ValidationError):
        invalid.validate()
    assert invalid["name"] == 5


def test_asJson(registry: Registry) -> None:
    jsi = person(registry)
    assert jsi.asJson() == {"name": "Ada", "tags": ["math", "code"], "address": {"city": "London"}}
    assert jsi["address"].asJson() == {"city": "London"}


def test_repr_mentionsPointerAndSchema(registry: Registry) -> None:
    jsi = newSchema({"$id": "http://example.com/thing"}, registry=registry).newJsi({"a": 1})
    text = repr(jsi)
    assert "http://example.com/thing" in text
    assert "#" in text


def test_metaschemaDescribesSchemaDocuments(registry: Registry) -> None:
    schema = newSchema({"properties": {"a": {"type": "string"}}}, registry=registry)
    assert isinstance(schema, SchemaJSI)
    assert schema.dialect is DRAFT07
    assert registry.find(DRAFT07.id) in schema.schemas
    assert isinstance(schema["properties"], Base)
    assert not isinstance(schema["properties"], Schema)
    assert isinstance(schema["properties"]["a"], SchemaJSI)
