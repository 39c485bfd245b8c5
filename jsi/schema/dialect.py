# jsi/schema/dialect.py
from __future__ import annotations
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

from jsi.schema.application.child import childApplicateDraft04, childApplicateDraft06, childApplicateDraft07
from jsi.schema.application.inplace import inplaceApplicateDraft04, inplaceApplicateDraft06, inplaceApplicateDraft07

if TYPE_CHECKING:
    from jsi.core.ptr import Ptr
    from jsi.registry import Registry
    from jsi.schema.bootstrap import BootstrapSchema
    from jsi.schema.schema import Schema

__all__ = [
    "Vocabulary",
    "Dialect",
    "DRAFT04",
    "DRAFT06",
    "DRAFT07",
    "DRAFTS",
    "DRAFT04_VOCABULARY",
    "DRAFT06_VOCABULARY",
    "DRAFT07_VOCABULARY",
]

ChildApplicateFn = Callable[["Schema", Any, Any], Iterator["Schema"]]
InplaceApplicateFn = Callable[["Schema", Any, tuple], Iterator["Schema"]]



@dataclass(frozen=True)
class Vocabulary:
    """A set of keywords identified by a URI."""
    id: str
    keywords: frozenset[str] = field(default_factory=frozenset)



@dataclass(frozen=True, eq=False)
class Dialect:
    """
    The rules a schema's keywords follow.

    `id` is the URI of the meta-schema that describes schemas of this dialect; it is also the
    key under which a registry stores the dialect. `validatorSchemaUri` is the `$schema`
    value handed to the validator so that it picks the same draft.
    """
    id: str
    idKeyword: str
    validatorSchemaUri: str
    childApplicate: ChildApplicateFn
    inplaceApplicate: InplaceApplicateFn
    vocabularies: tuple[Vocabulary, ...] = ()
    anchorKeyword: str | None = None

    @property
    def keywords(self) -> frozenset[str]:
        return frozenset().union(*(vocabulary.keywords for vocabulary in self.vocabularies))

    def bootstrapSchema(
            self,
            document: Any,
            ptr: Ptr | None = None,
            *,
            schemaBaseUri: str | None = None,
            registry: Registry | None = None,
    ) -> BootstrapSchema:
        from jsi.core.ptr import Ptr
        from jsi.schema.bootstrap import BootstrapSchema

        root = BootstrapSchema(document, dialect=self, schemaBaseUri=schemaBaseUri, registry=registry)
        return root if ptr is None else root.subschema(Ptr.ensure(ptr))

    def __repr__(self) -> str:
        return f"<Dialect {self.id}>"



# ----------------------------------------------
#                  vocabularies
# ----------------------------------------------

_CORE_04 = {"id", "$schema", "$ref", "definitions"}
_APPLICATOR_04 = {
    "items", "additionalItems", "properties", "patternProperties", "additionalProperties",
    "dependencies", "allOf", "anyOf", "oneOf", "not",
}
_VALIDATION_04 = {
    "multipleOf", "maximum", "exclusiveMaximum", "minimum", "exclusiveMinimum",
    "maxLength", "minLength", "pattern", "maxItems", "minItems", "uniqueItems",
    "maxProperties", "minProperties", "required", "enum", "type", "format",
}
_METADATA_04 = {"title", "description", "default"}

DRAFT04_VOCABULARY = Vocabulary(
    id="http://json-schema.org/draft-04/schema",
    keywords=frozenset(_CORE_04 | _APPLICATOR_04 | _VALIDATION_04 | _METADATA_04),
)

DRAFT06_VOCABULARY = Vocabulary(
    id="http://json-schema.org/draft-06/schema",
    keywords=frozenset(
        (_CORE_04 - {"id"}) | {"$id"}
        | _APPLICATOR_04 | {"contains", "propertyNames"}
        | _VALIDATION_04 | {"const"}
        | _METADATA_04 | {"examples"}
    ),
)

DRAFT07_VOCABULARY = Vocabulary(
    id="http://json-schema.org/draft-07/schema",
    keywords=DRAFT06_VOCABULARY.keywords | frozenset({
        "$comment", "if", "then", "else", "readOnly", "writeOnly", "contentMediaType", "contentEncoding",
    }),
)



# ----------------------------------------------
#                    dialects
# ----------------------------------------------

DRAFT04 = Dialect(
    id="http://json-schema.org/draft-04/schema",
    idKeyword="id",
    validatorSchemaUri="http://json-schema.org/draft-04/schema#",
    childApplicate=childApplicateDraft04,
    inplaceApplicate=inplaceApplicateDraft04,
    vocabularies=(DRAFT04_VOCABULARY,),
)

DRAFT06 = Dialect(
    id="http://json-schema.org/draft-06/schema",
    idKeyword="$id",
    validatorSchemaUri="http://json-schema.org/draft-06/schema#",
    childApplicate=childApplicateDraft06,
    inplaceApplicate=inplaceApplicateDraft06,
    vocabularies=(DRAFT06_VOCABULARY,),
)

DRAFT07 = Dialect(
    id="http://json-schema.org/draft-07/schema",
    idKeyword="$id",
    validatorSchemaUri="http://json-schema.org/draft-07/schema#",
    childApplicate=childApplicateDraft07,
    inplaceApplicate=inplaceApplicateDraft07,
    vocabularies=(DRAFT07_VOCABULARY,),
)

DRAFTS: tuple[Dialect, ...] = (DRAFT04, DRAFT06, DRAFT07)
