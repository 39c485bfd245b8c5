# jsi/core/logging/context.py
from __future__ import annotations
import contextlib
import contextvars
from collections.abc import Iterator

__all__ = ["setLogContext", "clearLogContext", "getLogContext", "logContext"]

# All log context lives here. Registry autoloads tag their records with the URI being loaded.
_logContextVar: contextvars.ContextVar[dict[str, object] | None] = contextvars.ContextVar("jsi.logctx", default=None)

def setLogContext(**kvs):
    """Set or update per-log context values (uri, ptr, etc.)."""
    current = dict(_logContextVar.get() or {}) # use copy
    for key, value in kvs.items():
        if value is not None:
            current[key] = value
    _logContextVar.set(current)

def clearLogContext():
    """Clear context after an operation is fully handled."""
    _logContextVar.set(None)

def getLogContext():
    """Return current context dict or None."""
    return _logContextVar.get()

@contextlib.contextmanager
def logContext(**kvs) -> Iterator[None]:
    """Adds context values for the duration of a block, restoring the previous context after."""
    token = _logContextVar.set(dict(_logContextVar.get() or {}))
    try:
        setLogContext(**kvs)
        yield
    finally:
        _logContextVar.reset(token)
