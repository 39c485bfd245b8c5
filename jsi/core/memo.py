# jsi/core/memo.py
from __future__ import annotations
import threading
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

__all__ = ["MemoMap", "Memoize", "Identity"]



class Identity:
    """Compares and hashes by the identity of the wrapped object."""
    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Identity) and other.value is self.value

    def __hash__(self) -> int:
        return id(self.value)

    def __repr__(self) -> str:
        return f"Identity({self.value!r})"



@dataclass
class _Result:
    value: Any
    inputs: tuple[Any, ...]



class MemoMap:
    """
    Memoizes `compute(*inputs)` per key.

    The key is `keyBy(*inputs)` (or the inputs themselves). A stored result is reused
    only while the inputs it was computed from compare equal to the current ones,
    so changing inputs for the same key replaces the result.

    Thread-safe: each key has its own lock, so one slow computation does not block others.
    """
    def __init__(self, compute: Callable[..., Any], *, keyBy: Callable[..., Hashable] | None = None):
        self._compute = compute
        self._keyBy = keyBy
        self._results: dict[Hashable, _Result] = {}
        self._keyLocks: dict[Hashable, threading.RLock] = {}
        self._lock = threading.Lock()

    def __call__(self, *inputs: Any) -> Any:
        key = self._keyBy(*inputs) if self._keyBy else inputs
        with self._lock:
            keyLock = self._keyLocks.setdefault(key, threading.RLock())
        with keyLock:
            result = self._results.get(key)
            if result is not None and result.inputs == inputs:
                return result.value
            value = self._compute(*inputs)
            self._results[key] = _Result(value=value, inputs=inputs)
            return value

    def clear(self) -> None:
        with self._lock:
            self._results.clear()
            self._keyLocks.clear()



class Memoize:
    """Mixin giving an object named memo maps."""
    def _initMemos(self) -> None:
        self._memomaps: dict[str, MemoMap] = {}
        self._memomapsLock = threading.Lock()

    def _memomap(self, name: str, compute: Callable[..., Any], *, keyBy: Callable[..., Hashable] | None = None) -> MemoMap:
        memomap = self._memomaps.get(name)
        if memomap is None:
            with self._memomapsLock:
                memomap = self._memomaps.setdefault(name, MemoMap(compute, keyBy=keyBy))
        return memomap

    def _memoize(self, name: str, compute: Callable[..., Any], *inputs: Any) -> Any:
        return self._memomap(name, compute)(*inputs)

    def _clearMemos(self, *names: str) -> None:
        with self._memomapsLock:
            targets = names or tuple(self._memomaps)
            for name in targets:
                memomap = self._memomaps.get(name)
                if memomap is not None:
                    memomap.clear()
