"""Batch comparisons that turn up to 64 values into a bit mask of matches.

Bit ``i`` of a returned mask is set when the ``i``-th value matches.
Strings are compared as UTF-8 bytes. Case-insensitive comparisons fold
ASCII letters only.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Iterable, Sequence
from typing import Union

from .common import StrLocation

MAX_BATCH = 64

StrLike = Union[str, bytes]


def _as_list(values: Iterable) -> list:
    items = list(values)
    if len(items) > MAX_BATCH:
        raise ValueError(f"a batch holds at most {MAX_BATCH} values, got {len(items)}")
    return items


def _mask(flags: Iterable[bool]) -> int:
    mask = 0
    for position, flag in enumerate(flags):
        if flag:
            mask |= 1 << position
    return mask


def _match(values: Iterable, cmp, op: Callable) -> int:
    return _mask(op(value, cmp) for value in _as_list(values))


def match_eq(values, cmp) -> int:
    """Mask of values equal to ``cmp``."""
    return _match(values, cmp, operator.eq)


def match_lt(values, cmp) -> int:
    """Mask of values less than ``cmp``."""
    return _match(values, cmp, operator.lt)


def match_gt(values, cmp) -> int:
    """Mask of values greater than ``cmp``."""
    return _match(values, cmp, operator.gt)


def _encode(value: StrLike) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8", "surrogateescape")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"string or bytes required, got {type(value).__name__}")


def _match_str(
    strings: Sequence[StrLike],
    cmp: StrLike,
    case_sensitive: bool,
    test: Callable[[bytes, bytes], bool],
) -> int:
    items = [_encode(item) for item in _as_list(strings)]
    needle = _encode(cmp)
    if not case_sensitive:
        items = [item.lower() for item in items]
        needle = needle.lower()
    return _mask(test(item, needle) for item in items)


def match_str_eq(strings, cmp, case_sensitive=True) -> int:
    """Mask of strings equal to ``cmp``."""
    return _match_str(strings, cmp, case_sensitive, operator.eq)


def match_str_lt(strings, cmp, case_sensitive=True) -> int:
    """Mask of strings ordered before ``cmp`` byte by byte."""
    return _match_str(strings, cmp, case_sensitive, operator.lt)


def match_str_gt(strings, cmp, case_sensitive=True) -> int:
    """Mask of strings ordered after ``cmp`` byte by byte."""
    return _match_str(strings, cmp, case_sensitive, operator.gt)


def _contains_any(item: bytes, needle: bytes) -> bool:
    return len(item) >= len(needle) and needle in item


def _contains_start(item: bytes, needle: bytes) -> bool:
    return item.startswith(needle)


def _contains_end(item: bytes, needle: bytes) -> bool:
    return item.endswith(needle)


_CONTAINS = {
    StrLocation.START: _contains_start,
    StrLocation.END: _contains_end,
    StrLocation.ANY: _contains_any,
}


def match_str_contains(strings, cmp, case_sensitive=True, location=StrLocation.ANY) -> int:
    """Mask of strings holding ``cmp`` at the start, the end or anywhere."""
    test = _CONTAINS[StrLocation(location)]
    return _match_str(strings, cmp, case_sensitive, test)