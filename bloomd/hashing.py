from __future__ import annotations

import math
import struct
from functools import singledispatch
from typing import Any, Iterable

# One tag byte per encoding so that e.g. b"1", "1" and 1 never collide.
_TAG_BYTES = b"b"
_TAG_STR = b"s"
_TAG_INT = b"i"
_TAG_BOOL = b"?"
_TAG_FLOAT = b"f"
_TAG_NONE = b"n"
_TAG_SEQ = b"t"
_TAG_SET = b"S"
_TAG_MAP = b"m"
_TAG_OBJ = b"o"


def _length(n: int) -> bytes:
    return n.to_bytes(8, "big", signed=False)


def _sequence(tag: bytes, parts: Iterable[bytes]) -> bytes:
    parts = list(parts)
    out = bytearray(tag)
    out += _length(len(parts))
    for p in parts:
        out += _length(len(p))
        out += p
    return bytes(out)


@singledispatch
def stable_bytes(item: Any) -> bytes:
    """
    Canonical byte encoding of `item`, identical across processes and runs.

    Python's builtin hash() is salted per process for str/bytes, so it cannot
    feed a deterministic filter. Types opt in either by registering an
    implementation (stable_bytes.register) or by defining __stable_bytes__().
    """
    hook = getattr(item, "__stable_bytes__", None)
    if hook is None:
        raise TypeError(f"cannot derive a stable hash for {type(item).__name__!r}")
    data = hook()
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"{type(item).__name__}.__stable_bytes__ must return bytes")
    return _sequence(_TAG_OBJ, [type(item).__qualname__.encode("utf-8"), bytes(data)])


@stable_bytes.register(bytes)
@stable_bytes.register(bytearray)
@stable_bytes.register(memoryview)
def _(item) -> bytes:
    return _TAG_BYTES + bytes(item)


@stable_bytes.register(str)
def _(item: str) -> bytes:
    return _TAG_STR + item.encode("utf-8")


@stable_bytes.register(bool)
def _(item: bool) -> bytes:
    return _TAG_BOOL + (b"\x01" if item else b"\x00")


@stable_bytes.register(int)
def _(item: int) -> bytes:
    width = item.bit_length() // 8 + 1
    return _TAG_INT + item.to_bytes(width, "big", signed=True)


@stable_bytes.register(float)
def _(item: float) -> bytes:
    if math.isnan(item):
        item = math.nan  # collapse NaN payloads
    return _TAG_FLOAT + struct.pack(">d", item)


@stable_bytes.register(type(None))
def _(item: None) -> bytes:
    return _TAG_NONE


@stable_bytes.register(tuple)
@stable_bytes.register(list)
def _(item) -> bytes:
    return _sequence(_TAG_SEQ, (stable_bytes(x) for x in item))


@stable_bytes.register(frozenset)
@stable_bytes.register(set)
def _(item) -> bytes:
    # iteration order of sets is not stable; the encoding order must be
    return _sequence(_TAG_SET, sorted(stable_bytes(x) for x in item))


@stable_bytes.register(dict)
def _(item: dict) -> bytes:
    pairs = sorted(
        _sequence(_TAG_SEQ, (stable_bytes(k), stable_bytes(v)))
        for k, v in item.items()
    )
    return _sequence(_TAG_MAP, pairs)
