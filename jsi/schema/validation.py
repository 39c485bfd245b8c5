# jsi/schema/validation.py
from __future__ import annotations
import logging
from collections.abc import Callable
from typing import Any, TYPE_CHECKING, cast

import fastjsonschema

from jsi.config.settings import loadSettings
from jsi.core.errors import NotASchemaError, ResolutionError, ValidationError
from jsi.core.ptr import Ptr
from jsi.core.typelike import asJson, isHashlike
from jsi.core.uri import normalizeUri

if TYPE_CHECKING:
    from jsi.schema.schema import Schema

logger = logging.getLogger(__name__)

__all__ = ["ValidatorFn", "BUNDLE_URI", "bundleSchema", "compileValidator", "validateWith", "isValidWith"]

ValidatorFn = Callable[[Any], Any]

# Every `$ref` in a bundle is rewritten to an absolute URI under this one
BUNDLE_URI = "urn:jsi:validation-bundle"



# ----------------------------------------------
#                $ref bundling
# ----------------------------------------------

def bundleSchema(schema: Schema) -> dict[str, Any]:
    """
    Returns a self-contained copy of `schema` for the validator.

    Each schema reached through `$ref` (and `schema` itself) is copied once into
    `definitions`, and every `$ref` becomes `BUNDLE_URI#/definitions/<key>`. Refs are
    resolved with jsi's own resolution, so relative refs, embedded resources, anchors
    and remote refs from the registry behave the same as they do for application.
    Recursive refs point back into the bundle rather than being expanded.
    """
    keys: dict[tuple[int, Ptr, str | None], str] = {}
    pending: list[tuple[str, Schema]] = []
    definitions: dict[str, Any] = {}

    def refTo(target: Schema) -> str:
        identity = (id(target.document), target.ptr, target.schemaBaseUri)
        key = keys.get(identity)
        if key is None:
            key = keys[identity] = f"s{len(keys)}"
            pending.append((key, target))
        return f"{BUNDLE_URI}#/definitions/{key}"

    def copySchema(node: Schema) -> Any:
        content = node.schemaContent
        if not isHashlike(content):
            return content
        ref = node.ref
        if ref is not None:
            # Keywords beside $ref are ignored in these drafts
            return {"$ref": refTo(ref.resolve())}
        copied = {str(key): asJson(value) for key, value in content.items() if key != "definitions"}
        for subptr in node.eachImmediateSubschemaPtr():
            if subptr.tokens[0] == "definitions":
                continue
            try:
                subschema = node.subschema(subptr)
            except NotASchemaError:
                continue
            subptr.parent().evaluate(copied)[subptr.tokens[-1]] = copySchema(subschema)
        return copied

    rootRef = refTo(schema)
    while pending:
        key, target = pending.pop(0)
        definitions[key] = copySchema(target)
    return {
        "$schema": schema.dialect.validatorSchemaUri,
        "definitions": definitions,
        "$ref": rootRef,
    }



class _Handlers(dict):
    """
    Answers every URI scheme with the same fetch function, so fastjsonschema never
    falls back to fetching a ref over the network.
    """
    def __init__(self, fetch: Callable[[str], Any]):
        super().__init__()
        self._fetch = fetch

    def __contains__(self, scheme: object) -> bool:
        return True

    def __getitem__(self, scheme: Any) -> Callable[[str], Any]:
        return self._fetch



def compileValidator(schema: Schema) -> ValidatorFn:
    """
    Compiles a fastjsonschema validator for `schema`.

    The validator sees the bundle from `bundleSchema`; the only document it ever fetches
    is that bundle, under `BUNDLE_URI`.
    """
    content = schema.schemaContent
    if isinstance(content, bool):
        # Boolean schema
        def boolValidator(instance: Any) -> None:
            if not content:
                raise fastjsonschema.JsonSchemaValueException("Instance is not allowed by boolean schema false")
        return boolValidator

    bundle = bundleSchema(schema)

    def fetch(uri: str) -> Any:
        if normalizeUri(uri) == normalizeUri(BUNDLE_URI):
            return bundle
        raise ResolutionError([f"validator asked for a document outside its bundle: {uri}", f"from: {schema!r}"], uri=uri)

    try:
        # use_default=False: validating must never write defaults into the instance
        validator = cast(ValidatorFn, fastjsonschema.compile(
            bundle,
            handlers=_Handlers(fetch),
            use_default=False,
            use_formats=loadSettings().validatorFormats,
        ))
    except fastjsonschema.JsonSchemaDefinitionException as err:
        raise ValidationError(f"could not compile a validator for schema {schema.schemaUri or schema.ptr.fragment}: {err}") from err
    logger.debug("Compiled validator for %s (%d bundled schemas)", schema.schemaUri or schema.ptr.fragment, len(bundle["definitions"]))
    return validator



def validateWith(schema: Schema, validator: ValidatorFn, instance: Any) -> None:
    try:
        validator(asJson(instance))
    except fastjsonschema.JsonSchemaValueException as err:
        raise ValidationError(
            f"instance is not valid against schema {schema.schemaUri or schema.ptr.fragment}: {err.message}"
        ) from err



def isValidWith(validator: ValidatorFn, instance: Any) -> bool:
    try:
        validator(asJson(instance))
    except fastjsonschema.JsonSchemaValueException:
        return False
    return True
