# jsi/schema/application/child.py
from __future__ import annotations
import re
from collections.abc import Iterator
from typing import Any, TYPE_CHECKING

from jsi.core.typelike import isArraylike, isHashlike, isIndexToken

if TYPE_CHECKING:
    from jsi.schema.schema import Schema

__all__ = [
    "applicateItems",
    "applicateContains",
    "applicateProperties",
    "childApplicateDraft04",
    "childApplicateDraft06",
    "childApplicateDraft07",
]



# ----------------------------------------------
#                    keywords
# ----------------------------------------------

def applicateItems(schema: Schema, index: Any) -> Iterator[Schema]:
    """`items` / `additionalItems`: tuple items by position, then additionalItems; a single items schema applies everywhere."""
    content = schema.schemaContent
    items = content.get("items")
    if isArraylike(items):
        if isIndexToken(index) and index < len(items):
            yield schema.subschema(["items", index])
        elif "additionalItems" in content:
            yield schema.subschema(["additionalItems"])
    elif "items" in content:
        yield schema.subschema(["items"])



def applicateContains(schema: Schema, index: Any, instance: Any) -> Iterator[Schema]:
    """
    `contains` applies to each child that validates against it. When no child validates,
    it applies to every child, so an invalid instance still has its children described.
    """
    if "contains" not in schema.schemaContent:
        return
    containsSchema = schema.subschema(["contains"])
    childValid = [containsSchema.isInstanceValid(child) for child in instance]
    if isIndexToken(index) and index < len(childValid) and childValid[index]:
        yield containsSchema
    elif not any(childValid):
        yield containsSchema



def applicateProperties(schema: Schema, propertyName: Any) -> Iterator[Schema]:
    """
    `properties` when it names the property, otherwise every matching `patternProperties`
    entry in declared order. Either kind of match suppresses `additionalProperties`.
    """
    content = schema.schemaContent
    properties = content.get("properties")
    if isHashlike(properties) and propertyName in properties:
        yield schema.subschema(["properties", propertyName])
        return
    matched = False
    patternProperties = content.get("patternProperties")
    if isHashlike(patternProperties):
        for pattern in patternProperties:
            if re.search(pattern, str(propertyName)):
                matched = True
                yield schema.subschema(["patternProperties", pattern])
    if not matched and "additionalProperties" in content:
        yield schema.subschema(["additionalProperties"])



# ----------------------------------------------
#                     drafts
# ----------------------------------------------

def childApplicateDraft04(schema: Schema, token: Any, instance: Any) -> Iterator[Schema]:
    # 5.3.1 additionalItems and items
    if isIndexToken(token):
        yield from applicateItems(schema, token)
    # 5.4.4 additionalProperties, properties and patternProperties
    if isinstance(token, str):
        yield from applicateProperties(schema, token)



def childApplicateDraft06(schema: Schema, token: Any, instance: Any) -> Iterator[Schema]:
    if isArraylike(instance):
        # 6.9 items, 6.10 additionalItems
        yield from applicateItems(schema, token)
        # 6.14 contains
        yield from applicateContains(schema, token, instance)
    if isHashlike(instance):
        # 6.18 properties, 6.19 patternProperties, 6.20 additionalProperties
        yield from applicateProperties(schema, token)



def childApplicateDraft07(schema: Schema, token: Any, instance: Any) -> Iterator[Schema]:
    if isArraylike(instance):
        # 6.4.1 items, 6.4.2 additionalItems
        yield from applicateItems(schema, token)
        # 6.4.6 contains
        yield from applicateContains(schema, token, instance)
    if isHashlike(instance):
        # 6.5.4 properties, 6.5.5 patternProperties, 6.5.6 additionalProperties
        yield from applicateProperties(schema, token)
