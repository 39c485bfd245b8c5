# jsi/core/errors.py
from __future__ import annotations
from collections.abc import Iterable

__all__ = [
    "JSIError",
    "Bug",
    "PtrError",
    "PointerSyntaxError",
    "PointerResolutionError",
    "ResolutionError",
    "Collision",
    "NotASchemaError",
    "SimpleNodeChildError",
    "FrozenRegistryError",
    "ValidationError",
]



class JSIError(Exception):
    """Base of every error raised by jsi."""
    pass



class Bug(JSIError):
    """Raised when jsi violates a core invariant. Correct use never gets here."""
    pass



# ----------------------------------------------
#                  Pointer errors
# ----------------------------------------------

class PtrError(JSIError):
    pass



class PointerSyntaxError(PtrError):
    """A pointer or fragment string is not well-formed."""
    pass



class PointerResolutionError(PtrError):
    """A well-formed pointer does not identify a value in the given document."""
    pass



# ----------------------------------------------
#             Reference / registry errors
# ----------------------------------------------

class ResolutionError(JSIError):
    """
    A reference could not be resolved.

    `lines` may be a string or an iterable of message lines; None entries are dropped
    so callers can write optional context lines inline.
    """
    def __init__(self, lines: str | Iterable[str | None], *, uri: str | None = None):
        if isinstance(lines, str):
            message = lines
        else:
            message = "\n".join(line for line in lines if line is not None)
        super().__init__(message)
        self.uri = uri



class Collision(JSIError):
    """Two different resources (or autoloaders) were registered under one URI."""
    pass



class NotASchemaError(JSIError):
    pass



class SimpleNodeChildError(JSIError, TypeError):
    """Raised when accessing a child of a node whose instance is neither an object nor an array."""
    pass



class FrozenRegistryError(JSIError, RuntimeError):
    pass



class ValidationError(JSIError):
    """An instance is not valid against a schema."""
    pass
