# tests/jsi/schema/test_application.py
from __future__ import annotations
from typing import Any

from jsi.registry import Registry
from jsi.schema.schema import Schema, newSchema

DRAFT04 = "http://json-schema.org/draft-04/schema#"
DRAFT06 = "http://json-schema.org/draft-06/schema#"


def ptrsOf(schemas: Any) -> list[tuple]:
    return [schema.ptr.tokens for schema in schemas]


# ----------------------------------------
# Child application
# ----------------------------------------

def test_properties_patternProperties_additionalProperties(registry: Registry) -> None:
    schema = newSchema({
        "properties": {"name": {"type": "string"}},
        "patternProperties": {"^x-": {}, "^na": {}},
        "additionalProperties": {"type": "integer"},
    }, registry=registry)
    instance = {"name": "a", "x-note": "b", "other": 1}

    assert ptrsOf(schema.childApplicatorSchemas("name", instance)) == [("properties", "name")]
    assert ptrsOf(schema.childApplicatorSchemas("x-note", instance)) == [("patternProperties", "^x-")]
    assert ptrsOf(schema.childApplicatorSchemas("other", instance)) == [("additionalProperties",)]


def test_properties_suppressesMatchingPatternProperties(registry: Registry) -> None:
    schema = newSchema({
        "properties": {"foo": {"type": "string"}},
        "patternProperties": {"^f": {"minLength": 2}},
    }, registry=registry)
    document = schema.newJsi({"foo": "x", "fab": "yz"})

    assert ptrsOf(document.get("foo", asJsi=True).indicatedSchemas) == [("properties", "foo")]
    assert ptrsOf(document.get("fab", asJsi=True).indicatedSchemas) == [("patternProperties", "^f")]


def test_items_tupleThenAdditionalItems(registry: Registry) -> None:
    schema = newSchema({"items": [{"type": "string"}, {"type": "number"}], "additionalItems": False}, registry=registry)
    instance = ["a", 1, None]

    assert ptrsOf(schema.childApplicatorSchemas(0, instance)) == [("items", 0)]
    assert ptrsOf(schema.childApplicatorSchemas(1, instance)) == [("items", 1)]
    assert ptrsOf(schema.childApplicatorSchemas(2, instance)) == [("additionalItems",)]


def test_items_singleSchemaAppliesToEveryIndex(registry: Registry) -> None:
    schema = newSchema({"items": {"type": "string"}}, registry=registry)
    for index in range(3):
        assert ptrsOf(schema.childApplicatorSchemas(index, ["a", "b", "c"])) == [("items",)]


def test_contains_appliesToMatchingChildren(registry: Registry) -> None:
    schema = newSchema({"contains": {"type": "string"}}, registry=registry)
    instance = [1, "two", 3]

    assert ptrsOf(schema.childApplicatorSchemas(1, instance)) == [("contains",)]
    assert ptrsOf(schema.childApplicatorSchemas(0, instance)) == []


def test_contains_appliesToAllWhenNoneMatch(registry: Registry) -> None:
    schema = newSchema({"contains": {"type": "string"}}, registry=registry)
    instance = [1, 2]
    assert ptrsOf(schema.childApplicatorSchemas(0, instance)) == [("contains",)]
    assert ptrsOf(schema.childApplicatorSchemas(1, instance)) == [("contains",)]


def test_contains_appliesInDraft06(registry: Registry) -> None:
    schema = newSchema({"$schema": DRAFT06, "contains": {"type": "string"}}, registry=registry)
    assert ptrsOf(schema.childApplicatorSchemas(0, ["s"])) == [("contains",)]


def test_childApplication_followsInstanceShape(registry: Registry) -> None:
    schema = newSchema({"items": {}, "additionalProperties": {}}, registry=registry)
    assert ptrsOf(schema.childApplicatorSchemas("0", {"0": 1})) == [("additionalProperties",)]
    assert ptrsOf(schema.childApplicatorSchemas(0, [1])) == [("items",)]


def test_draft04_childApplicationFollowsTokenType(registry: Registry) -> None:
    schema = newSchema({"$schema": DRAFT04, "items": {}, "additionalProperties": {}}, registry=registry)
    assert ptrsOf(schema.childApplicatorSchemas(0, {"0": 1})) == [("items",)]
    assert ptrsOf(schema.childApplicatorSchemas("a", [1])) == [("additionalProperties",)]


def test_booleanSchema_hasNoChildApplicators(registry: Registry) -> None:
    schema = newSchema({"items": True}, registry=registry).subschema(["items"])
    assert schema.schemaContent is True
    assert list(schema.eachChildApplicatorSchema(0, [1])) == []
    assert list(schema.eachInplaceApplicatorSchema(1)) == [schema]


# ----------------------------------------
# In-place application
# ----------------------------------------

def test_ref_replacesSchemaAndSiblings(registry: Registry) -> None:
    schema = newSchema({
        "definitions": {"target": {"type": "string"}},
        "items": {"$ref": "#/definitions/target", "type": "number"},
    }, registry=registry)
    items = schema.subschema(["items"])
    assert ptrsOf(items.inplaceApplicatorSchemas("x")) == [("definitions", "target")]


def test_ref_cycleTerminates(registry: Registry) -> None:
    schema = newSchema({"$ref": "#"}, registry=registry)
    assert list(schema.inplaceApplicatorSchemas({})) == [schema]


def test_allOf_appliesEveryBranch(registry: Registry) -> None:
    schema = newSchema({"allOf": [{"type": "string"}, {"type": "number"}]}, registry=registry)
    assert ptrsOf(schema.inplaceApplicatorSchemas(1)) == [(), ("allOf", 0), ("allOf", 1)]


def test_anyOf_appliesValidBranchesElseAll(registry: Registry) -> None:
    schema = newSchema({"anyOf": [{"type": "string"}, {"type": "number"}, {"minimum": 0}]}, registry=registry)
    assert ptrsOf(schema.inplaceApplicatorSchemas(5)) == [(), ("anyOf", 1), ("anyOf", 2)]
    assert ptrsOf(schema.inplaceApplicatorSchemas(None)) == [(), ("anyOf", 2)]
    assert ptrsOf(schema.inplaceApplicatorSchemas(-1)) == [(), ("anyOf", 1)]


def test_anyOf_noValidBranchAppliesAll(registry: Registry) -> None:
    schema = newSchema({"anyOf": [{"type": "string"}, {"type": "number"}]}, registry=registry)
    assert ptrsOf(schema.inplaceApplicatorSchemas([])) == [(), ("anyOf", 0), ("anyOf", 1)]


def test_oneOf_appliesTheSingleValidBranch(registry: Registry) -> None:
    schema = newSchema({"oneOf": [{"type": "string"}, {"type": "number"}]}, registry=registry)
    assert ptrsOf(schema.inplaceApplicatorSchemas("s")) == [(), ("oneOf", 0)]


def test_oneOf_ambiguousAppliesAll(registry: Registry) -> None:
    schema = newSchema({"oneOf": [{"type": "number"}, {"minimum": 0}]}, registry=registry)
    assert ptrsOf(schema.inplaceApplicatorSchemas(3)) == [(), ("oneOf", 0), ("oneOf", 1)]


def test_ifThenElse_choosesBranchByIf(registry: Registry) -> None:
    schema = newSchema({
        "if": {"type": "string"},
        "then": {"minLength": 1},
        "else": {"type": "number"},
    }, registry=registry)
    assert ptrsOf(schema.inplaceApplicatorSchemas("s")) == [(), ("then",)]
    assert ptrsOf(schema.inplaceApplicatorSchemas(1)) == [(), ("else",)]


def test_ifThenElse_notInDraft06(registry: Registry) -> None:
    schema = newSchema({"$schema": DRAFT06, "if": {"type": "string"}, "then": {}}, registry=registry)
    assert ptrsOf(schema.inplaceApplicatorSchemas("s")) == [()]


def test_dependencies_schemaAppliesWhenPropertyPresent(registry: Registry) -> None:
    schema = newSchema({
        "dependencies": {
            "card": {"required": ["billing"]},
            "name": ["first"],
        },
    }, registry=registry)
    assert ptrsOf(schema.inplaceApplicatorSchemas({"card": 1})) == [(), ("dependencies", "card")]
    assert ptrsOf(schema.inplaceApplicatorSchemas({"name": 1})) == [()]


def test_inplaceApplication_isDeduplicated(registry: Registry) -> None:
    schema = newSchema({
        "definitions": {"shared": {}},
        "allOf": [{"$ref": "#/definitions/shared"}, {"$ref": "#/definitions/shared"}],
    }, registry=registry)
    applied = schema.inplaceApplicatorSchemas({})
    assert ptrsOf(applied) == [(), ("definitions", "shared")]
    assert all(isinstance(item, Schema) for item in applied)


# ----------------------------------------
# Branches through $ref
# ----------------------------------------

def choicesDocument(**keywords: Any) -> dict:
    return {
        **keywords,
        "definitions": {"s": {"type": "string"}, "n": {"type": "number"}},
    }


def test_oneOf_branchesThroughRefs(registry: Registry) -> None:
    schema = newSchema(choicesDocument(oneOf=[{"$ref": "#/definitions/s"}, {"$ref": "#/definitions/n"}]), registry=registry)

    assert ptrsOf(schema.inplaceApplicatorSchemas("x")) == [(), ("definitions", "s")]
    assert ptrsOf(schema.inplaceApplicatorSchemas(3)) == [(), ("definitions", "n")]
    assert ptrsOf(schema.newJsi("x").schemas) == [(), ("definitions", "s")]


def test_anyOf_branchesThroughRefs_withId(registry: Registry) -> None:
    schema = newSchema(
        choicesDocument(**{"$id": "http://example.com/choices", "anyOf": [{"$ref": "#/definitions/s"}, {"$ref": "#/definitions/n"}]}),
        registry=registry,
    )

    assert ptrsOf(schema.inplaceApplicatorSchemas(3)) == [(), ("definitions", "n")]
    assert schema.matchToInstance(3).ptr.tokens == ("definitions", "n")
    assert schema.matchToInstance("x").ptr.tokens == ("definitions", "s")


def test_ifThenElse_ifThroughRef(registry: Registry) -> None:
    schema = newSchema(choicesDocument(**{
        "if": {"$ref": "#/definitions/s"},
        "then": {"minLength": 1},
        "else": {"$ref": "#/definitions/n"},
    }), registry=registry)

    assert ptrsOf(schema.inplaceApplicatorSchemas("s")) == [(), ("then",)]
    assert ptrsOf(schema.inplaceApplicatorSchemas(1)) == [(), ("definitions", "n")]


def test_contains_throughRef(registry: Registry) -> None:
    schema = newSchema(choicesDocument(contains={"$ref": "#/definitions/s"}), registry=registry)
    instance = [1, "two"]

    assert ptrsOf(schema.childApplicatorSchemas(1, instance)) == [("contains",)]
    assert ptrsOf(schema.childApplicatorSchemas(0, instance)) == []
