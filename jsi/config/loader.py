# jsi/config/loader.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, TYPE_CHECKING

import json5

if TYPE_CHECKING:
    from jsi.registry import Registry
    from jsi.schema.schema import Schema

logger = logging.getLogger(__name__)

__all__ = ["readDocument", "autoloadSchemaFile", "loadSchemaDirectory"]

_SUFFIXES = (".schema.json", ".schema.json5")



def readDocument(path: Path | str) -> Any:
    """
    Read a JSON or JSON5 file and return parsed data.
    """
    file = Path(path)
    text = file.read_text(encoding="utf-8")
    try:
        if file.name.endswith(".json5"):
            return json5.loads(text)
        return json.loads(text)
    except Exception as err:
        raise ValueError(f"Parse error in '{file}': {err}") from err



def autoloadSchemaFile(registry: Registry, uri: str, path: Path | str) -> None:
    """
    Registers an autoloader for `uri` that reads `path` and instantiates it as a schema
    with base URI `uri`. The file is not touched until the URI is first found.
    """
    file = Path(path)

    def load(registry: Registry, uri: str) -> Schema:
        from jsi.schema.schema import newSchema

        logger.debug("Reading schema for %s from '%s'", uri, file)
        return newSchema(readDocument(file), uri=uri, registry=registry, register=False)

    registry.autoloadUri(uri, load)



def loadSchemaDirectory(registry: Registry, directory: Path | str) -> int:
    """
    Instantiates and registers every `*.schema.json` / `*.schema.json5` file in `directory`.

    Each schema gets the file's `file://` URI as its base URI, so relative `$ref`s between
    files in the directory resolve; a schema with an absolute `$id` is registered under
    that as well.

    Returns the number of successfully registered schemas.
    """
    from jsi.schema.schema import newSchema

    schemaDir = Path(directory)
    if not schemaDir.exists():
        logger.warning("Schema directory does not exist: '%s'", schemaDir)
        return 0

    count = 0
    for file in sorted(schemaDir.iterdir()):
        # Skip directories and dotfiles/temporary files
        if not file.is_file():
            continue
        if file.name.startswith(".") or file.name.endswith("~"):
            continue
        if not file.name.endswith(_SUFFIXES):
            continue

        try:
            data = readDocument(file)
            if not isinstance(data, (dict, bool)):
                raise TypeError(
                    f"Top-level of '{file.name}' must be a JSON object or boolean schema, not '{type(data).__name__}'"
                )
            schema = newSchema(data, uri=file.resolve().as_uri(), registry=registry, register=True)
            count += 1

            logger.debug("Loaded schema %s from '%s'", schema.schemaUri or file.name, file.name)
        except Exception as err:
            logger.error("Failed to load schema from '%s': %s", file, err)

    return count
