# jsi/schema/application/inplace.py
from __future__ import annotations
from collections.abc import Generator, Iterator
from typing import Any, TYPE_CHECKING

from jsi.core.typelike import isArraylike, isHashlike

if TYPE_CHECKING:
    from jsi.ref import SchemaRef
    from jsi.schema.schema import Schema

__all__ = [
    "applicateRef",
    "applicateDependencies",
    "applicateIfThenElse",
    "applicateSomeOf",
    "inplaceApplicateDraft04",
    "inplaceApplicateDraft06",
    "inplaceApplicateDraft07",
]

VisitedRefs = tuple["SchemaRef", ...]



# ----------------------------------------------
#                    keywords
# ----------------------------------------------

def applicateRef(schema: Schema, instance: Any, visitedRefs: VisitedRefs) -> Generator[Schema, None, bool]:
    """
    Applies the target of `$ref` in place of this schema. The generator returns True
    when the ref applied, in which case sibling keywords do not apply.

    A ref already followed on the way here is not followed again, so cyclic refs
    terminate; the schema then applies as if it had no `$ref`.
    """
    if not isinstance(schema.schemaContent.get("$ref"), str):
        return False
    ref = schema.ref
    if ref in visitedRefs:
        return False
    yield from ref.resolve().eachInplaceApplicatorSchema(instance, visitedRefs=visitedRefs + (ref,))
    return True



def applicateDependencies(schema: Schema, instance: Any, visitedRefs: VisitedRefs) -> Iterator[Schema]:
    dependencies = schema.schemaContent.get("dependencies")
    if not isHashlike(dependencies):
        return
    for propertyName, dependency in dependencies.items():
        # Array-form dependencies name required properties; they apply no schema
        if isArraylike(dependency):
            continue
        if isHashlike(instance) and propertyName in instance:
            yield from schema.subschema(["dependencies", propertyName]).eachInplaceApplicatorSchema(
                instance, visitedRefs=visitedRefs
            )



def applicateIfThenElse(schema: Schema, instance: Any, visitedRefs: VisitedRefs) -> Iterator[Schema]:
    content = schema.schemaContent
    if "if" not in content:
        return
    branch = "then" if schema.subschema(["if"]).isInstanceValid(instance) else "else"
    if branch in content:
        yield from schema.subschema([branch]).eachInplaceApplicatorSchema(instance, visitedRefs=visitedRefs)



def applicateSomeOf(schema: Schema, instance: Any, visitedRefs: VisitedRefs) -> Iterator[Schema]:
    """
    allOf applies every branch. anyOf applies the branches the instance is valid against,
    oneOf the single valid branch; when that selection is empty (or, for oneOf, ambiguous)
    every branch applies.
    """
    content = schema.schemaContent
    if isArraylike(content.get("allOf")):
        for index in range(len(content["allOf"])):
            yield from schema.subschema(["allOf", index]).eachInplaceApplicatorSchema(instance, visitedRefs=visitedRefs)

    if isArraylike(content.get("anyOf")):
        anyOf = [schema.subschema(["anyOf", index]) for index in range(len(content["anyOf"]))]
        validOf = [branch for branch in anyOf if branch.isInstanceValid(instance)]
        for branch in (validOf or anyOf):
            yield from branch.eachInplaceApplicatorSchema(instance, visitedRefs=visitedRefs)

    if isArraylike(content.get("oneOf")):
        oneOf = [schema.subschema(["oneOf", index]) for index in range(len(content["oneOf"]))]
        validOf = [branch for branch in oneOf if branch.isInstanceValid(instance)]
        for branch in (validOf if len(validOf) == 1 else oneOf):
            yield from branch.eachInplaceApplicatorSchema(instance, visitedRefs=visitedRefs)



# ----------------------------------------------
#                     drafts
# ----------------------------------------------

def inplaceApplicateDraft04(schema: Schema, instance: Any, visitedRefs: VisitedRefs) -> Iterator[Schema]:
    if (yield from applicateRef(schema, instance, visitedRefs)):
        return
    # The schema itself applies unless $ref replaced it
    yield schema
    # 5.4.5 dependencies
    yield from applicateDependencies(schema, instance, visitedRefs)
    # 5.5.3 allOf, 5.5.4 anyOf, 5.5.5 oneOf
    yield from applicateSomeOf(schema, instance, visitedRefs)



def inplaceApplicateDraft06(schema: Schema, instance: Any, visitedRefs: VisitedRefs) -> Iterator[Schema]:
    if (yield from applicateRef(schema, instance, visitedRefs)):
        return
    yield schema
    # 6.21 dependencies
    yield from applicateDependencies(schema, instance, visitedRefs)
    # 6.26 allOf, 6.27 anyOf, 6.28 oneOf
    yield from applicateSomeOf(schema, instance, visitedRefs)



def inplaceApplicateDraft07(schema: Schema, instance: Any, visitedRefs: VisitedRefs) -> Iterator[Schema]:
    if (yield from applicateRef(schema, instance, visitedRefs)):
        return
    yield schema
    # 6.5.7 dependencies
    yield from applicateDependencies(schema, instance, visitedRefs)
    # 6.6 if, then, else
    yield from applicateIfThenElse(schema, instance, visitedRefs)
    # 6.7.1 allOf, 6.7.2 anyOf, 6.7.3 oneOf
    yield from applicateSomeOf(schema, instance, visitedRefs)
