# tests/jsi/config/test_loader.py
from __future__ import annotations
from pathlib import Path

import pytest

from jsi.config.loader import autoloadSchemaFile, loadSchemaDirectory, readDocument
from jsi.registry import Registry
from jsi.schema.schema import Schema


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_readDocument_jsonAndJson5(tmp_path: Path) -> None:
    assert readDocument(write(tmp_path / "a.json", '{"a": [1, 2]}')) == {"a": [1, 2]}
    assert readDocument(write(tmp_path / "b.json5", "{ b: 'x', // trailing\n }")) == {"b": "x"}


def test_readDocument_parseErrorsAreValueErrors(tmp_path: Path) -> None:
    with pytest.raises(ValueError) as excinfo:
        readDocument(write(tmp_path / "broken.json", "{ b: 'json5 only' }"))
    assert "broken.json" in str(excinfo.value)
    with pytest.raises(FileNotFoundError):
        readDocument(tmp_path / "missing.json")


def test_autoloadSchemaFile_readsOnFirstFind(tmp_path: Path, registry: Registry) -> None:
    file = tmp_path / "lazy.schema.json"
    autoloadSchemaFile(registry, "http://example.com/lazy", file)
    # The file need only exist once the URI is looked up
    write(file, '{"type": "integer"}')

    schema = registry.find("http://example.com/lazy")
    assert isinstance(schema, Schema)
    assert schema.schemaBaseUri == "http://example.com/lazy"
    assert schema.isInstanceValid(3)
    assert registry.find("http://example.com/lazy") is schema


def test_loadSchemaDirectory_registersSchemaFiles(tmp_path: Path, registry: Registry) -> None:
    write(tmp_path / "a.schema.json", '{"$id": "http://example.com/a", "type": "string"}')
    b = write(tmp_path / "b.schema.json5", "{ type: 'integer', /* json5 */ }")
    c = write(tmp_path / "c.schema.json", '{"properties": {"x": {"$ref": "b.schema.json5"}}}')
    write(tmp_path / "notes.txt", "not a schema")
    write(tmp_path / ".hidden.schema.json", "{}")
    write(tmp_path / "backup.schema.json~", "{}")
    write(tmp_path / "nested" / "d.schema.json", "{}")

    assert loadSchemaDirectory(registry, tmp_path) == 3
    assert registry.find("http://example.com/a").isInstanceValid("s")
    assert registry.find(b.resolve().as_uri()).isInstanceValid(1)

    schemaC = registry.find(c.resolve().as_uri())
    assert schemaC.subschema(["properties", "x"]).ref.resolve() is registry.find(b.resolve().as_uri())
    assert not registry.isRegistered((tmp_path / "nested" / "d.schema.json").resolve().as_uri())


def test_loadSchemaDirectory_skipsBadFiles(tmp_path: Path, registry: Registry) -> None:
    write(tmp_path / "broken.schema.json", "{")
    write(tmp_path / "list.schema.json", "[1, 2]")
    write(tmp_path / "good.schema.json", "true")

    assert loadSchemaDirectory(registry, tmp_path) == 1


def test_loadSchemaDirectory_missingDirectory(tmp_path: Path, registry: Registry) -> None:
    assert loadSchemaDirectory(registry, tmp_path / "nowhere") == 0
