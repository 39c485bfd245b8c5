# jsi/core/ptr.py
from __future__ import annotations
import re
from collections.abc import Callable, Iterable, Iterator
from typing import Any
from urllib.parse import quote, unquote

from jsi.core.errors import PtrError, PointerSyntaxError, PointerResolutionError
from jsi.core.typelike import isArraylike, isHashlike, isIndexToken, withChild

__all__ = ["Ptr", "Token"]

Token = str | int

_INDEX_RE = re.compile(r"0|[1-9][0-9]*")
# RFC 3986 fragment characters besides unreserved ones
_FRAGMENT_SAFE = "/?:@!$&'()*+,;="



# ----------------------------------------------
#                token escaping
# ----------------------------------------------

def _escapeToken(token: Token) -> str:
    return str(token).replace("~", "~0").replace("/", "~1")



def _unescapeToken(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")



def _checkToken(token: Any) -> Token:
    if isinstance(token, Ptr):
        raise TypeError(f"Pointer tokens must be strings or integers, not a Ptr: {token!r}")
    if isinstance(token, bool) or not isinstance(token, (str, int)):
        raise TypeError(f"Pointer tokens must be strings or integers, got '{type(token).__name__}': {token!r}")
    return token



class Ptr:
    """
    An immutable RFC 6901 JSON Pointer: a sequence of reference tokens (str or int)
    identifying a location in a tree of mappings and sequences.

    Two pointers are equal when their token sequences are equal.
    """
    Error = PtrError
    PointerSyntaxError = PointerSyntaxError
    ResolutionError = PointerResolutionError

    __slots__ = ("_tokens",)

    def __init__(self, tokens: Iterable[Token] = ()):
        if isinstance(tokens, (str, bytes)):
            raise TypeError(f"Ptr tokens must be a sequence of tokens, not a string: {tokens!r}")
        self._tokens: tuple[Token, ...] = tuple(_checkToken(token) for token in tokens)

    # ----- Construction -----

    @classmethod
    def of(cls, *tokens: Token) -> Ptr:
        return cls(tokens)

    @classmethod
    def ensure(cls, value: Ptr | Iterable[Token]) -> Ptr:
        """Returns `value` when it is already a Ptr, otherwise a Ptr of its tokens."""
        if isinstance(value, Ptr):
            return value
        if isinstance(value, (list, tuple)):
            return cls(value)
        raise TypeError(f"Expected a Ptr or a list of tokens, got '{type(value).__name__}': {value!r}")

    @classmethod
    def parse(cls, pointer: str) -> Ptr:
        """
        Parses an RFC 6901 pointer string.

          ""        -> Ptr([])
          "/a/b"    -> Ptr(['a', 'b'])
          "/a~1b/~0" -> Ptr(['a/b', '~'])
        """
        if not isinstance(pointer, str):
            raise TypeError(f"Pointer must be a string, got '{type(pointer).__name__}'")
        if pointer == "":
            return cls()
        if not pointer.startswith("/"):
            raise PointerSyntaxError(f"Invalid pointer syntax in {pointer!r}: pointer must begin with /")
        return cls(_unescapeToken(token) for token in pointer.split("/")[1:])

    @classmethod
    def parseFragment(cls, fragment: str) -> Ptr:
        """Parses a URI fragment form such as '#/a%20b/0'."""
        if not isinstance(fragment, str):
            raise TypeError(f"Fragment must be a string, got '{type(fragment).__name__}'")
        unescaped = unquote(fragment)
        if not unescaped.startswith("#"):
            raise PointerSyntaxError(f"Invalid fragment syntax in {fragment!r}: fragment must begin with #")
        return cls.parse(unescaped[1:])

    # ----- Serialization -----

    @property
    def tokens(self) -> tuple[Token, ...]:
        return self._tokens

    @property
    def pointer(self) -> str:
        return "".join("/" + _escapeToken(token) for token in self._tokens)

    @property
    def fragment(self) -> str:
        return "#" + quote(self.pointer, safe=_FRAGMENT_SAFE)

    # Same value as `fragment`; reads better where a URI reference is expected
    uri = fragment

    # ----- Structure -----

    @property
    def isRoot(self) -> bool:
        return not self._tokens

    def parent(self) -> Ptr:
        if not self._tokens:
            raise PtrError(f"Cannot access parent of root pointer: {self!r}")
        return Ptr(self._tokens[:-1])

    def take(self, n: int) -> Ptr:
        if n < 0 or n > len(self._tokens):
            raise PtrError(f"Cannot take {n} tokens from pointer {self!r}")
        return Ptr(self._tokens[:n])

    def isAncestorOf(self, other: Ptr) -> bool:
        """True when `other` is this pointer or lies below it."""
        other = Ptr.ensure(other)
        return other._tokens[: len(self._tokens)] == self._tokens

    contains = isAncestorOf

    def relativeTo(self, ancestor: Ptr) -> Ptr:
        ancestor = Ptr.ensure(ancestor)
        if not ancestor.isAncestorOf(self):
            raise PtrError(f"Pointer {ancestor.pointer!r} is not an ancestor of {self.pointer!r}")
        return Ptr(self._tokens[len(ancestor._tokens):])

    def child(self, token: Token) -> Ptr:
        return Ptr(self._tokens + (_checkToken(token),))

    def __add__(self, other: Ptr | Iterable[Token]) -> Ptr:
        if isinstance(other, Ptr):
            return Ptr(self._tokens + other._tokens)
        if isinstance(other, (list, tuple)):
            return Ptr(self._tokens + tuple(other))
        return NotImplemented

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Ptr) and other._tokens == self._tokens

    def __hash__(self) -> int:
        return hash((Ptr, self._tokens))

    def __repr__(self) -> str:
        return f"Ptr({list(self._tokens)!r})"

    # ----- Evaluation -----

    def evaluate(self, document: Any) -> Any:
        """Returns the value in `document` this pointer identifies."""
        value = document
        for position in range(len(self._tokens)):
            _token, value = self._step(document, value, position)
        return value

    def resolveAgainst(self, document: Any) -> Ptr:
        """
        Returns an equivalent pointer whose tokens index `document` directly:
        array tokens become ints, object tokens become the matching keys.
        """
        value = document
        resolved: list[Token] = []
        for position in range(len(self._tokens)):
            token, value = self._step(document, value, position)
            resolved.append(token)
        return Ptr(resolved)

    def _step(self, document: Any, value: Any, position: int) -> tuple[Token, Any]:
        token = self._tokens[position]
        if isArraylike(value):
            index = _arrayIndex(token)
            if index is None:
                if token == "-":
                    raise PointerResolutionError(self._resolutionMessage(
                        document, position, "token '-' refers to a nonexistent element past the end of the array"
                    ))
                raise PointerResolutionError(self._resolutionMessage(
                    document, position, f"token {token!r} is not an array index"
                ))
            if index >= len(value):
                raise PointerResolutionError(self._resolutionMessage(
                    document, position, f"index {index} is out of range for an array of length {len(value)}"
                ))
            return index, value[index]
        if isHashlike(value):
            if token in value:
                return token, value[token]
            if isinstance(token, int) and str(token) in value:
                return str(token), value[str(token)]
            raise PointerResolutionError(self._resolutionMessage(
                document, position, f"key {token!r} is not present"
            ))
        raise PointerResolutionError(self._resolutionMessage(
            document, position, f"value of type '{type(value).__name__}' cannot be subscripted"
        ))

    def _resolutionMessage(self, document: Any, position: int, reason: str) -> str:
        return (
            f"Cannot resolve pointer {self.pointer!r} at {Ptr(self._tokens[:position + 1]).pointer!r}: {reason}\n"
            f"document: {_preview(document)}"
        )

    # ----- Copy-on-write -----

    def modifiedDocumentCopy(self, document: Any, fn: Callable[[Any], Any]) -> Any:
        """
        Applies `fn` to the value at this pointer without modifying `document`.

        Only the containers on the path from the root to the modified value are
        copied; every other subtree keeps its identity. When `fn` returns its
        argument unchanged, `document` itself is returned.
        """
        if not self._tokens:
            return fn(document)
        token, child = Ptr(self._tokens[:1])._step(document, document, 0)
        modifiedChild = Ptr(self._tokens[1:]).modifiedDocumentCopy(child, fn)
        if modifiedChild is child:
            return document
        return withChild(document, token, modifiedChild)



def _arrayIndex(token: Token) -> int | None:
    if isIndexToken(token):
        return int(token)
    if isinstance(token, str) and _INDEX_RE.fullmatch(token):
        return int(token)
    return None



def _preview(value: Any, limit: int = 200) -> str:
    text = repr(value)
    return text if len(text) <= limit else text[:limit] + "..."
