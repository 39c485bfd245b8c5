# jsi/pathed_node.py
from __future__ import annotations
from collections.abc import Callable, Iterator
from typing import Any

from jsi.core.errors import PointerResolutionError, PointerSyntaxError, SimpleNodeChildError
from jsi.core.ptr import Ptr, Token
from jsi.core.typelike import NodeShape, isComplex, isIndexToken, shapeOf

__all__ = ["PathedNode", "JSONNode"]



class PathedNode:
    """
    A location in a document: the document plus a Ptr to a node in it.

    Subclasses set `document` and `ptr`. The node's content is evaluated from them on
    demand; the document object is shared, never copied, by every node over it.
    """
    document: Any
    ptr: Ptr

    @property
    def nodeContent(self) -> Any:
        return self.ptr.evaluate(self.document)

    @property
    def shape(self) -> NodeShape:
        return shapeOf(self.nodeContent)

    @property
    def isHashlike(self) -> bool:
        return self.shape is NodeShape.MAPPING

    @property
    def isArraylike(self) -> bool:
        return self.shape is NodeShape.SEQUENCE

    # ----- Children -----

    def childTokens(self) -> list[Token]:
        """Keys of a mapping node, indexes of a sequence node, nothing for a scalar."""
        shape = self.shape
        if shape is NodeShape.MAPPING:
            return list(self.nodeContent.keys())
        if shape is NodeShape.SEQUENCE:
            return list(range(len(self.nodeContent)))
        return []

    def isChildTokenInRange(self, token: Any) -> bool:
        shape = self.shape
        if shape is NodeShape.MAPPING:
            return token in self.nodeContent
        if shape is NodeShape.SEQUENCE:
            return isIndexToken(token) and token < len(self.nodeContent)
        return False

    def nodeContentChild(self, token: Any) -> Any:
        """The raw child at `token`, or None when the token names no existing child."""
        shape = self.shape
        if shape is NodeShape.SCALAR:
            self._simpleNodeChildError(token)
        if not self.isChildTokenInRange(token):
            return None
        return self.nodeContent[token]

    def _simpleNodeChildError(self, token: Any) -> None:
        raise SimpleNodeChildError(
            "cannot access a child of this node because this node is not complex\n"
            f"using token: {token!r}\n"
            f"instance: {self.nodeContent!r}"
        )

    # ----- Mapping / sequence protocol -----

    def __getitem__(self, token: Any) -> Any:
        raise NotImplementedError

    def __len__(self) -> int:
        if self.shape is NodeShape.SCALAR:
            raise TypeError(f"object of type '{type(self).__name__}' with a scalar instance has no len()")
        return len(self.nodeContent)

    def __iter__(self) -> Iterator[Any]:
        shape = self.shape
        if shape is NodeShape.MAPPING:
            return iter(list(self.nodeContent.keys()))
        if shape is NodeShape.SEQUENCE:
            return (self[index] for index in range(len(self.nodeContent)))
        raise TypeError(f"object of type '{type(self).__name__}' with a scalar instance is not iterable")

    def __contains__(self, item: Any) -> bool:
        shape = self.shape
        if shape is NodeShape.MAPPING:
            return item in self.nodeContent
        if shape is NodeShape.SEQUENCE:
            return item in self.nodeContent
        return False

    def keys(self) -> list[Token]:
        if self.shape is not NodeShape.MAPPING:
            raise TypeError(f"keys() requires a mapping instance, this node is {self.shape.value}")
        return list(self.nodeContent.keys())

    def values(self) -> list[Any]:
        return [self[token] for token in self.childTokens()]

    def items(self) -> list[tuple[Token, Any]]:
        if self.shape is not NodeShape.MAPPING:
            raise TypeError(f"items() requires a mapping instance, this node is {self.shape.value}")
        return [(token, self[token]) for token in self.childTokens()]



class JSONNode(PathedNode):
    """
    A schema-less node in a JSON document.

    Subscripting returns a JSONNode for object/array children and the raw value otherwise.
    Same-document `$ref` pointers can be followed with `deref`.
    """
    def __init__(self, document: Any, ptr: Ptr = Ptr()):
        if isinstance(document, PathedNode):
            raise TypeError(f"document of a JSONNode must not be another node: {document!r}")
        if not isinstance(ptr, Ptr):
            raise TypeError(f"ptr must be a Ptr, got '{type(ptr).__name__}': {ptr!r}")
        self.document = document
        self.ptr = ptr

    @classmethod
    def newDoc(cls, document: Any) -> JSONNode:
        return cls(document, Ptr())

    def __getitem__(self, token: Any) -> Any:
        if self.shape is NodeShape.SCALAR:
            self._simpleNodeChildError(token)
        if not self.isChildTokenInRange(token):
            raise KeyError(token)
        childContent = self.nodeContent[token]
        if isComplex(childContent):
            return JSONNode(self.document, self.ptr.child(token))
        return childContent

    def get(self, token: Any, default: Any = None) -> Any:
        if self.shape is NodeShape.SCALAR:
            self._simpleNodeChildError(token)
        if not self.isChildTokenInRange(token):
            return default
        return self[token]

    def __setitem__(self, token: Any, value: Any) -> None:
        """Assigns into the shared document in place."""
        if self.shape is NodeShape.SCALAR:
            self._simpleNodeChildError(token)
        if isinstance(value, PathedNode):
            value = value.nodeContent
        self.nodeContent[token] = value

    @property
    def documentRootNode(self) -> JSONNode:
        return JSONNode(self.document, Ptr())

    @property
    def parentNode(self) -> JSONNode:
        return JSONNode(self.document, self.ptr.parent())

    def tryDeref(self) -> JSONNode | None:
        """
        The node a same-document `$ref` pointer at this node identifies, or None when
        this node has no such `$ref` or the pointer does not resolve.
        """
        content = self.nodeContent
        if self.shape is not NodeShape.MAPPING or not isinstance(content.get("$ref"), str):
            return None
        ref = content["$ref"]
        if not ref.startswith("#"):
            return None
        try:
            ptr = Ptr.parseFragment(ref).resolveAgainst(self.document)
        except (PointerSyntaxError, PointerResolutionError):
            return None
        return JSONNode(self.document, ptr)

    def deref(self) -> JSONNode:
        target = self.tryDeref()
        return self if target is None else target

    def modifiedCopy(self, fn: Callable[[Any], Any]) -> JSONNode:
        """A node at the same pointer in a copy of the document where `fn` replaced this node's content."""
        return JSONNode(self.ptr.modifiedDocumentCopy(self.document, fn), self.ptr)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, JSONNode) and other.document is self.document and other.ptr == self.ptr

    def __hash__(self) -> int:
        return hash((JSONNode, id(self.document), self.ptr))

    def __repr__(self) -> str:
        return f"<JSONNode {self.ptr.fragment} {self.nodeContent!r}>"
