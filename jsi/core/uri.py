# jsi/core/uri.py
from __future__ import annotations
from typing import Any
from urllib.parse import urljoin, urlsplit, urlunsplit

__all__ = [
    "parseUri",
    "isAbsoluteUri",
    "uriWithoutFragment",
    "uriFragment",
    "joinUri",
    "normalizeUri",
    "registrationUri",
]

# Schemes whose bare authority normalizes to a "/" path
_HIERARCHICAL_DEFAULT_PATH = ("http", "https")



def parseUri(value: Any) -> str:
    """Validates that `value` is a URI reference string and returns it."""
    if not isinstance(value, str):
        raise TypeError(f"URI must be a string, got '{type(value).__name__}': {value!r}")
    try:
        urlsplit(value)
    except ValueError as err:
        raise ValueError(f"Invalid URI {value!r}: {err}") from err
    return value



def uriWithoutFragment(uri: str) -> str:
    return uri.split("#", 1)[0]



def uriFragment(uri: str) -> str | None:
    """The fragment of `uri` (unescaped as written), '' for a trailing '#', None when absent."""
    if "#" not in uri:
        return None
    return uri.split("#", 1)[1]



def isAbsoluteUri(uri: str) -> bool:
    """An absolute URI has a scheme and no fragment."""
    return bool(urlsplit(uri).scheme) and uriFragment(uri) is None



def joinUri(base: str | None, ref: str) -> str:
    """
    Resolves `ref` against `base`.

    urljoin leaves references relative to non-hierarchical bases (urn:, tag:) alone;
    fragment-only references are still attached to such a base here.
    """
    if not base:
        return ref
    if urlsplit(ref).scheme:
        return ref
    if ref.startswith("#") or ref == "":
        return uriWithoutFragment(base) + ref
    return urljoin(base, ref)



def normalizeUri(uri: str) -> str:
    """Lowercases scheme and host and gives bare http(s) authorities a '/' path."""
    parts = urlsplit(uri)
    scheme = parts.scheme.lower()
    netloc = parts.netloc
    if netloc:
        userinfo, sep, hostport = netloc.rpartition("@")
        netloc = f"{userinfo}{sep}{hostport.lower()}"
    path = parts.path
    if scheme in _HIERARCHICAL_DEFAULT_PATH and netloc and not path:
        path = "/"
    return urlunsplit((scheme, netloc, path, parts.query, parts.fragment))



def registrationUri(uri: Any) -> str:
    """
    The form of `uri` used as a registry key: absolute, fragment stripped, normalized.
    Raises ValueError for relative URIs.
    """
    uri = parseUri(uri)
    stripped = uriWithoutFragment(uri)
    if not urlsplit(stripped).scheme:
        raise ValueError(f"URI must be absolute to be used with a registry, got: {uri!r}")
    return normalizeUri(stripped)
