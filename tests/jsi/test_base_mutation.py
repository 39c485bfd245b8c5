# tests/jsi/test_base_mutation.py
from __future__ import annotations

import pytest

from jsi.base import Base
from jsi.core.errors import SimpleNodeChildError
from jsi.core.ptr import Ptr
from jsi.registry import Registry
from jsi.schema.schema import newSchema

PERSON = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "tags": {"type": "array", "items": {"type": "string"}},
        "address": {"type": "object", "properties": {"city": {"type": "string"}}},
    },
}


def newPerson(registry: Registry) -> Base:
    return newSchema(PERSON, registry=registry).newJsi(
        {"name": "Ada", "tags": ["math", "code"], "address": {"city": "London"}}
    )


# ----------------------------------------
# set
# ----------------------------------------

def test_set_isSeenByEveryJsiOverTheDocument(registry: Registry) -> None:
    schema = newSchema(PERSON, registry=registry)
    instance = {"name": "Ada", "address": {"city": "London"}}
    first = schema.newJsi(instance)
    second = schema.newJsi(instance)

    first["name"] = "Grace"
    assert second["name"] == "Grace"
    assert instance["name"] == "Grace"

    second["address"].set("city", "Paris")
    assert first["address"]["city"] == "Paris"


def test_set_replacesMemoizedChildren(registry: Registry) -> None:
    jsi = newPerson(registry)
    before = jsi["address"]
    jsi.set("address", {"city": "Rome"})

    assert jsi["address"]["city"] == "Rome"
    assert jsi["address"] is not before


def test_set_arrayPadsWithNone(registry: Registry) -> None:
    jsi = newPerson(registry)
    tags = jsi["tags"]
    tags.set(4, "late")
    assert tags.nodeContent == ["math", "code", None, None, "late"]
    tags.set(2, "middle")
    assert tags[2] == "middle"
    tags.set(5, "end")
    assert len(tags) == 6


def test_set_jsiValueStoresItsContent(registry: Registry) -> None:
    jsi = newPerson(registry)
    other = newPerson(registry)
    jsi.set("address", other["address"])
    assert jsi.nodeContent["address"] is other.nodeContent["address"]
    assert not isinstance(jsi.nodeContent["address"], Base)


def test_set_invalidTargets(registry: Registry) -> None:
    with pytest.raises(SimpleNodeChildError):
        newSchema({}, registry=registry).newJsi(3).set("a", 1)
    with pytest.raises(TypeError):
        newPerson(registry)["tags"].set("x", 1)
    with pytest.raises(TypeError):
        newPerson(registry)["tags"].set(-1, "x")


# ----------------------------------------
# modifiedCopy / dup
# ----------------------------------------

def test_modifiedCopy_leavesOriginalAlone(registry: Registry) -> None:
    jsi = newPerson(registry)
    address = jsi["address"]
    moved = address.modifiedCopy(lambda content: {**content, "city": "Paris"})

    assert moved.ptr == Ptr.of("address")
    assert moved["city"] == "Paris"
    assert address["city"] == "London"
    assert jsi.nodeContent["address"] == {"city": "London"}
    assert moved.rootNode is not jsi
    assert moved.rootNode.nodeContent["name"] == "Ada"


def test_modifiedCopy_sharesUntouchedSubtrees(registry: Registry) -> None:
    jsi = newPerson(registry)
    moved = jsi["address"].modifiedCopy(lambda content: {"city": "Paris"})
    assert moved.rootNode.nodeContent["tags"] is jsi.nodeContent["tags"]
    assert moved.rootNode.nodeContent is not jsi.nodeContent


def test_modifiedCopy_reappliesSchemas(registry: Registry) -> None:
    schema = newSchema({"oneOf": [{"type": "string"}, {"type": "object"}]}, registry=registry)
    jsi = schema.newJsi({"a": 1})
    assert [s.ptr.tokens for s in jsi.schemas] == [(), ("oneOf", 1)]

    changed = jsi.modifiedCopy(lambda content: "now a string")
    assert changed.nodeContent == "now a string"
    assert [s.ptr.tokens for s in changed.schemas] == [(), ("oneOf", 0)]
    assert changed.indicatedSchemas == jsi.indicatedSchemas


def test_dup_copiesTheDocument(registry: Registry) -> None:
    jsi = newPerson(registry)
    copy = jsi.dup()

    assert copy == copy.rootNode
    assert copy.nodeContent == jsi.nodeContent
    assert copy.document is not jsi.document
    copy["name"] = "Grace"
    assert jsi["name"] == "Ada"


# ----------------------------------------
# Defaults
# ----------------------------------------

def test_default_isFilledInFromACopy(registry: Registry) -> None:
    schema = newSchema({"properties": {"color": {"default": "red"}}}, registry=registry)
    jsi = schema.newJsi({})

    assert jsi["color"] == "red"
    assert jsi.get("color") == "red"
    assert jsi.nodeContent == {}


def test_default_complexValueComesBackAsJsi(registry: Registry) -> None:
    schema = newSchema({"properties": {"opts": {"type": "object", "default": {"a": 1}}}}, registry=registry)
    jsi = schema.newJsi({})

    opts = jsi["opts"]
    assert isinstance(opts, Base)
    assert opts.nodeContent == {"a": 1}
    assert opts.ptr == Ptr.of("opts")
    assert opts.rootNode.nodeContent == {"opts": {"a": 1}}

    opts["a"] = 2
    assert schema.schemaContent["properties"]["opts"]["default"] == {"a": 1}
    assert jsi.nodeContent == {}


def test_default_conflictingDefaultsGiveNothing(registry: Registry) -> None:
    schema = newSchema({
        "properties": {"color": {"default": "red"}},
        "allOf": [{"properties": {"color": {"default": "blue"}}}],
    }, registry=registry)
    assert schema.newJsi({}).get("color") is None


def test_default_agreeingDefaultsCountOnce(registry: Registry) -> None:
    schema = newSchema({
        "properties": {"color": {"default": "red"}},
        "allOf": [{"properties": {"color": {"default": "red"}}}],
    }, registry=registry)
    assert schema.newJsi({}).get("color") == "red"


def test_default_canBeDisabled(registry: Registry) -> None:
    schema = newSchema({"properties": {"color": {"default": "red"}}}, registry=registry)
    jsi = schema.newJsi({})
    assert jsi.get("color", useDefault=False) is None


def test_default_presentValueWins(registry: Registry) -> None:
    schema = newSchema({"properties": {"color": {"default": "red"}}}, registry=registry)
    assert schema.newJsi({"color": "green"})["color"] == "green"


def test_default_arrayIndex(registry: Registry) -> None:
    schema = newSchema({"items": {"default": 0}}, registry=registry)
    jsi = schema.newJsi([])
    assert jsi.get(0) == 0
    assert jsi.nodeContent == []
