# jsi/config/settings.py
from __future__ import annotations
import json5, os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, JsonValue

import logging
logger = logging.getLogger(__name__)

__all__ = [
    "SETTINGS_ENV_VAR", "SETTINGS_DEFAULTS", "JSISettings",
    "loadUserSettings", "loadSettings", "resetSettings", "deepMerge",
]


SETTINGS_ENV_VAR = "JSI_SETTINGS"
SETTINGS_DEFAULTS: dict[str, JsonValue] = {
    "__source": "JSI_DEFAULTS",
    "defaultDialect": "http://json-schema.org/draft-07/schema",
    "devMode": False,
    "logFile": None,
    "logLevel": "WARNING",
    "validatorFormats": True,
}



class JSISettings(BaseModel):
    """Library-wide settings. Unknown keys are rejected so typos surface immediately."""
    model_config = ConfigDict(extra="forbid")

    source: str = "JSI_DEFAULTS"
    defaultDialect: str = "http://json-schema.org/draft-07/schema"
    devMode: bool = False
    logFile: str | None = None
    logLevel: str = "WARNING"
    validatorFormats: bool = True



def loadUserSettings() -> JsonValue:
    """Reads the JSON5 file named by $JSI_SETTINGS, or {} when unset or unreadable."""
    fileName = os.environ.get(SETTINGS_ENV_VAR)
    if not fileName:
        return {}
    filePath = Path(os.path.expanduser(fileName))
    if not filePath.exists():
        logger.error("Settings file from $%s does not exist: '%s'", SETTINGS_ENV_VAR, filePath)
        return {}
    try:
        return json5.loads(filePath.read_text(encoding="utf-8"))
    except Exception as err:
        logger.error("Failed to parse '%s': %s", filePath, err)
    return {}



@lru_cache(maxsize=1)
def loadSettings() -> JSISettings:
    merged = deepMerge(SETTINGS_DEFAULTS, loadUserSettings())
    if not isinstance(merged, dict):
        raise TypeError(f"Settings must be a JSON object, got '{type(merged).__name__}'")
    data: dict[str, Any] = dict(merged)
    data["source"] = data.pop("__source", "JSI_DEFAULTS")
    return JSISettings.model_validate(data)



def resetSettings() -> None:
    """Forget cached settings so the next loadSettings() re-reads the environment."""
    loadSettings.cache_clear()



def deepMerge(first: JsonValue, second: JsonValue) -> JsonValue:
    """
    Returns a new JsonValue where keys from `second` override/extend `first`.
    Only merges recursively when BOTH sides are JSON objects (dicts).
    For all other JSON types (lists, strings, numbers, booleans, null),
    the right-hand value `second` replaces `first`.
    """
    if isinstance(first, dict) and isinstance(second, dict):
        out: dict[str, JsonValue] = dict(first)
        for key, value in second.items():
            out[key] = deepMerge(out[key], value) if key in out else value
        return cast(JsonValue, out)

    # If not both dicts, replace with right-hand side
    return second
