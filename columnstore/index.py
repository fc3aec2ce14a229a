"""Per-column min/max summaries used to skip or accept whole row groups."""

from __future__ import annotations

import math
import struct
import sys
from dataclasses import dataclass
from typing import Union

from .column import Column
from .common import ColumnType, IndexMatch

IndexValue = Union[bool, int, float]

_FLT_MAX = struct.unpack("<f", struct.pack("<I", 0x7F7FFFFF))[0]

_INITIAL_MIN = {
    ColumnType.BIT: True,
    ColumnType.I32: 2**31 - 1,
    ColumnType.I64: 2**63 - 1,
    ColumnType.FLT: _FLT_MAX,
    ColumnType.DBL: sys.float_info.max,
    ColumnType.STR: 2**64 - 1,
}

_INITIAL_MAX = {
    ColumnType.BIT: False,
    ColumnType.I32: 0,
    ColumnType.I64: 0,
    ColumnType.FLT: 0.0,
    ColumnType.DBL: 0.0,
    ColumnType.STR: 0,
}

_ORDERED = (ColumnType.I32, ColumnType.I64, ColumnType.FLT, ColumnType.DBL)


def _to_float32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _byte_length(value: str) -> int:
    return len(value.encode("utf-8", "surrogateescape"))


@dataclass(frozen=True)
class Index:
    """Value count and bounds of a column.

    For string columns the bounds are of the strings' byte lengths. For
    the other types the maximum starts from zero, as the bounds are
    accumulated from a zero-initialised summary.
    """

    column_type: ColumnType
    count: int
    minimum: IndexValue
    maximum: IndexValue

    @classmethod
    def from_column(cls, column: Column) -> Index:
        """Scan every value of ``column`` and summarise it."""
        column_type = column.column_type
        lo = _INITIAL_MIN[column_type]
        hi = _INITIAL_MAX[column_type]
        count = 0
        for batch in column.cursor():
            count += len(batch)
            if column_type is ColumnType.BIT:
                lo = lo and all(batch)
                hi = hi or any(batch)
                continue
            if column_type is ColumnType.STR:
                values = [_byte_length(value) for value in batch]
            else:
                values = [value for value in batch if not math.isnan(value)]
            if values:
                lo = min(lo, min(values))
                hi = max(hi, max(values))
        return cls(column_type, count, lo, hi)

    def _coerce(self, value):
        if self.column_type is ColumnType.FLT:
            return _to_float32(float(value))
        if self.column_type is ColumnType.DBL:
            return float(value)
        return value

    def _require_ordered(self, operation: str) -> None:
        if self.column_type not in _ORDERED:
            raise TypeError(
                f"{operation} is not supported for {self.column_type.name} indexes"
            )

    def match_eq(self, value) -> IndexMatch:
        """Whether all, none or an unknown share of values equal ``value``."""
        if self.column_type is ColumnType.BIT:
            if self.minimum and self.maximum:
                return IndexMatch.ALL if value else IndexMatch.NONE
            if not self.minimum and not self.maximum:
                return IndexMatch.NONE if value else IndexMatch.ALL
            return IndexMatch.UNKNOWN
        if self.column_type is ColumnType.STR:
            length = _byte_length(value)
            if self.minimum > length or self.maximum < length:
                return IndexMatch.NONE
            return IndexMatch.UNKNOWN
        value = self._coerce(value)
        if self.minimum > value or self.maximum < value:
            return IndexMatch.NONE
        if self.minimum == value and self.maximum == value:
            return IndexMatch.ALL
        return IndexMatch.UNKNOWN

    def match_lt(self, value) -> IndexMatch:
        """Whether all, none or an unknown share of values are below ``value``."""
        self._require_ordered("less-than")
        value = self._coerce(value)
        if self.minimum >= value:
            return IndexMatch.NONE
        if self.maximum < value:
            return IndexMatch.ALL
        return IndexMatch.UNKNOWN

    def match_gt(self, value) -> IndexMatch:
        """Whether all, none or an unknown share of values are above ``value``."""
        self._require_ordered("greater-than")
        value = self._coerce(value)
        if self.minimum > value:
            return IndexMatch.ALL
        if self.maximum <= value:
            return IndexMatch.NONE
        return IndexMatch.UNKNOWN

    def match_contains(self, value: str) -> IndexMatch:
        """NONE when every string is shorter than ``value``, else UNKNOWN."""
        if self.column_type is not ColumnType.STR:
            raise TypeError("contains is only supported for STR indexes")
        if self.maximum < _byte_length(value):
            return IndexMatch.NONE
        return IndexMatch.UNKNOWN