"""Predicate trees over row-group columns, with validation, cost ordering and
index-based pruning."""

from __future__ import annotations

import math
import struct
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from .common import ColumnType, IndexMatch, StrLocation
from .index import Index

_INT_RANGES = {
    ColumnType.I32: (-(2**31), 2**31 - 1),
    ColumnType.I64: (-(2**63), 2**63 - 1),
}

_COLUMN_COST = {
    ColumnType.BIT: 1,
    ColumnType.I32: 8,
    ColumnType.FLT: 8,
    ColumnType.I64: 16,
    ColumnType.DBL: 16,
    ColumnType.STR: 128,
}

_SCALAR_TYPES = (
    ColumnType.BIT,
    ColumnType.I32,
    ColumnType.I64,
    ColumnType.FLT,
    ColumnType.DBL,
)

_ORDERED_TYPES = (ColumnType.I32, ColumnType.I64, ColumnType.FLT, ColumnType.DBL)


@dataclass(frozen=True)
class RowGroupStats:
    """What a predicate needs to know about a row group without reading rows.

    ``indexes[i]`` summarises the values of column ``i`` and
    ``null_indexes[i]`` summarises its null bitmap.
    """

    column_types: Sequence[ColumnType]
    indexes: Sequence[Index]
    null_indexes: Sequence[Index]
    row_count: int

    def __post_init__(self) -> None:
        types = tuple(ColumnType(t) for t in self.column_types)
        object.__setattr__(self, "column_types", types)
        object.__setattr__(self, "indexes", tuple(self.indexes))
        object.__setattr__(self, "null_indexes", tuple(self.null_indexes))
        if len(self.indexes) != len(types) or len(self.null_indexes) != len(types):
            raise ValueError("one index and one null index are required per column")
        if self.row_count < 0:
            raise ValueError("row count must not be negative")

    def column_count(self) -> int:
        """Number of columns in the row group."""
        return len(self.column_types)


@dataclass(eq=False)
class Predicate:
    """A node of a predicate tree.

    Leaves compare one column with a value; ``AND`` and ``OR`` nodes combine
    their operands. ``negate`` inverts the node's outcome.
    """

    class Kind(Enum):
        TRUE = auto()
        NULL = auto()
        EQ = auto()
        LT = auto()
        GT = auto()
        CONTAINS = auto()
        AND = auto()
        OR = auto()
        CUSTOM = auto()

    kind: Kind
    column: int = 0
    column_type: ColumnType = ColumnType.BIT
    value: Any = None
    operands: list[Predicate] = field(default_factory=list)
    case_sensitive: bool = False
    location: StrLocation = StrLocation.START
    negate: bool = False
    match_rows: Callable | None = None
    match_index: Callable | None = None
    custom_cost: int = 0
    data: Any = None

    @property
    def is_operator(self) -> bool:
        return self.kind in (Predicate.Kind.AND, Predicate.Kind.OR)

    def valid(self, group: RowGroupStats) -> bool:
        """Whether the predicate can be evaluated against ``group``."""
        if self.column >= group.column_count():
            return False
        column_type = group.column_types[self.column]
        kind = self.kind
        if (
            not self.is_operator
            and kind not in (Predicate.Kind.TRUE, Predicate.Kind.NULL)
            and self.column_type is not column_type
        ):
            return False
        if kind in (Predicate.Kind.LT, Predicate.Kind.GT):
            return column_type is not ColumnType.BIT
        if kind is Predicate.Kind.CONTAINS:
            return column_type is ColumnType.STR
        if self.is_operator:
            return all(operand.valid(group) for operand in self.operands)
        return True

    def cost(self, group: RowGroupStats) -> int:
        """Relative cost of evaluating the predicate row by row."""
        kind = self.kind
        if kind is Predicate.Kind.TRUE:
            return 0
        if kind is Predicate.Kind.NULL:
            return _COLUMN_COST[ColumnType.BIT]
        if self.is_operator:
            return sum(operand.cost(group) for operand in self.operands)
        if kind is Predicate.Kind.CUSTOM and self.custom_cost >= 0:
            return self.custom_cost
        return _COLUMN_COST[group.column_types[self.column]]

    def optimize(self, group: RowGroupStats) -> None:
        """Order operands cheapest first, throughout the tree."""
        self.operands.sort(key=lambda operand: operand.cost(group))
        if self.is_operator:
            for operand in self.operands:
                operand.optimize(group)

    def match_indexes(self, group: RowGroupStats) -> IndexMatch:
        """Decide from the indexes alone whether all, none or some rows match."""
        if not group.row_count:
            return IndexMatch.NONE
        result = self._match_indexes(group)
        return result.negated() if self.negate else result

    def _match_indexes(self, group: RowGroupStats) -> IndexMatch:
        kind = self.kind
        if kind is Predicate.Kind.TRUE:
            return IndexMatch.ALL
        if kind is Predicate.Kind.NULL:
            return group.null_indexes[self.column].match_eq(True)
        if kind is Predicate.Kind.AND:
            result = IndexMatch.ALL
            for operand in self.operands:
                if result is IndexMatch.NONE:
                    break
                result = min(result, operand.match_indexes(group))
            return result
        if kind is Predicate.Kind.OR:
            result = IndexMatch.NONE
            for operand in self.operands:
                if result is IndexMatch.ALL:
                    break
                result = max(result, operand.match_indexes(group))
            return result

        index = group.indexes[self.column]
        column_type = group.column_types[self.column]
        if kind is Predicate.Kind.EQ:
            return index.match_eq(self.value)
        if kind is Predicate.Kind.LT:
            if column_type not in _ORDERED_TYPES:
                return IndexMatch.UNKNOWN
            return index.match_lt(self.value)
        if kind is Predicate.Kind.GT:
            if column_type not in _ORDERED_TYPES:
                return IndexMatch.UNKNOWN
            return index.match_gt(self.value)
        if kind is Predicate.Kind.CONTAINS:
            return index.match_contains(self.value)
        if self.match_index is None:
            return IndexMatch.UNKNOWN
        return IndexMatch(self.match_index(column_type, index, self.data))


def _check_column(column: int) -> int:
    column = int(column)
    if column < 0:
        raise ValueError("column index must not be negative")
    return column


def _to_float32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _coerce(column_type: ColumnType, value):
    if column_type is ColumnType.BIT:
        return bool(value)
    if column_type in _INT_RANGES:
        value = int(value)
        low, high = _INT_RANGES[column_type]
        if not low <= value <= high:
            raise OverflowError(f"{value} does not fit a {column_type.name} column")
        return value
    if column_type is ColumnType.FLT:
        return _to_float32(float(value))
    return float(value)


def _scalar(kind: Predicate.Kind, column, column_type, value) -> Predicate:
    column_type = ColumnType(column_type)
    if column_type not in _SCALAR_TYPES:
        raise ValueError("use the str_* constructors for string columns")
    if kind is not Predicate.Kind.EQ and column_type is ColumnType.BIT:
        raise ValueError("bit columns support equality only")
    return Predicate(
        kind,
        column=_check_column(column),
        column_type=column_type,
        value=_coerce(column_type, value),
    )


def _string(kind: Predicate.Kind, column, value, case_sensitive) -> Predicate:
    if not isinstance(value, str):
        raise TypeError("string value required")
    if "\0" in value:
        raise ValueError("strings may not contain NUL characters")
    return Predicate(
        kind,
        column=_check_column(column),
        column_type=ColumnType.STR,
        value=value,
        case_sensitive=bool(case_sensitive),
    )


def true() -> Predicate:
    """A predicate that every row matches."""
    return Predicate(Predicate.Kind.TRUE)


def null(column) -> Predicate:
    """Rows whose value in ``column`` is null."""
    return Predicate(Predicate.Kind.NULL, column=_check_column(column))


def eq(column, column_type, value) -> Predicate:
    """Rows whose value in ``column`` equals ``value``."""
    return _scalar(Predicate.Kind.EQ, column, column_type, value)


def lt(column, column_type, value) -> Predicate:
    """Rows whose value in ``column`` is less than ``value``."""
    return _scalar(Predicate.Kind.LT, column, column_type, value)


def gt(column, column_type, value) -> Predicate:
    """Rows whose value in ``column`` is greater than ``value``."""
    return _scalar(Predicate.Kind.GT, column, column_type, value)


def str_eq(column, value, case_sensitive=True) -> Predicate:
    """Rows whose string in ``column`` equals ``value``."""
    return _string(Predicate.Kind.EQ, column, value, case_sensitive)


def str_lt(column, value, case_sensitive=True) -> Predicate:
    """Rows whose string in ``column`` sorts before ``value``."""
    return _string(Predicate.Kind.LT, column, value, case_sensitive)


def str_gt(column, value, case_sensitive=True) -> Predicate:
    """Rows whose string in ``column`` sorts after ``value``."""
    return _string(Predicate.Kind.GT, column, value, case_sensitive)


def str_contains(column, value, case_sensitive=True, location=StrLocation.ANY) -> Predicate:
    """Rows whose string in ``column`` holds ``value`` at ``location``."""
    predicate = _string(Predicate.Kind.CONTAINS, column, value, case_sensitive)
    predicate.location = StrLocation(location)
    return predicate


def custom(column, column_type, match_rows, match_index, cost, data=None) -> Predicate:
    """A predicate evaluated by user callbacks.

    ``match_rows(type, count, values, data)`` returns a row mask and
    ``match_index(type, index, data)`` an ``IndexMatch``; either may be None.
    A negative ``cost`` means the cost of the column's type.
    """
    return Predicate(
        Predicate.Kind.CUSTOM,
        column=_check_column(column),
        column_type=ColumnType(column_type),
        match_rows=match_rows,
        match_index=match_index,
        custom_cost=int(cost),
        data=data,
    )


def _operator(kind: Predicate.Kind, operands: tuple) -> Predicate:
    if not operands:
        raise ValueError("at least one operand is required")
    for operand in operands:
        if not isinstance(operand, Predicate):
            raise TypeError(f"operand must be a Predicate, got {type(operand).__name__}")
    return Predicate(kind, operands=list(operands))


def and_(*args) -> Predicate:
    """Rows that match every operand."""
    return _operator(Predicate.Kind.AND, args)


def or_(*args) -> Predicate:
    """Rows that match at least one operand."""
    return _operator(Predicate.Kind.OR, args)


def negate(predicate: Predicate) -> Predicate:
    """Invert ``predicate`` in place and return it."""
    predicate.negate = not predicate.negate
    return predicate