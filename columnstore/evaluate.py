"""Row-level evaluation of predicate trees against one batch of a row group."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .common import ColumnType
from .match import (
    MAX_BATCH,
    match_eq,
    match_gt,
    match_lt,
    match_str_contains,
    match_str_eq,
    match_str_gt,
    match_str_lt,
)
from .predicate import Predicate

_FULL_MASK = (1 << 64) - 1


def _cap(mask: int, count: int) -> int:
    """Keep only the bits of the first ``count`` rows."""
    if count < 64:
        mask &= (1 << count) - 1
    return mask & _FULL_MASK


@dataclass(frozen=True)
class RowBatch:
    """Values and null flags of up to 64 consecutive rows of a row group.

    ``values[i]`` holds the batch's values of column ``i`` and ``nulls[i]``
    the matching null flags. Every column holds the same number of rows.
    Without ``nulls`` no value is null.
    """

    column_types: Sequence[ColumnType]
    values: Sequence[Sequence]
    nulls: Sequence[Sequence[bool]] | None = None

    def __post_init__(self) -> None:
        types = tuple(ColumnType(t) for t in self.column_types)
        values = tuple(tuple(column) for column in self.values)
        if len(values) != len(types):
            raise ValueError("one sequence of values is required per column")
        lengths = {len(column) for column in values}
        if len(lengths) > 1:
            raise ValueError("every column of a batch must hold the same number of rows")
        count = lengths.pop() if lengths else 0
        if count > MAX_BATCH:
            raise ValueError(f"a batch holds at most {MAX_BATCH} rows, got {count}")
        values = tuple(
            tuple(bool(v) for v in column) if column_type is ColumnType.BIT else column
            for column_type, column in zip(types, values)
        )
        if self.nulls is None:
            nulls = tuple((False,) * count for _ in types)
        else:
            nulls = tuple(tuple(bool(flag) for flag in column) for column in self.nulls)
            if len(nulls) != len(types):
                raise ValueError("one sequence of null flags is required per column")
            if any(len(column) != count for column in nulls):
                raise ValueError("null flags must cover every row of the batch")
        object.__setattr__(self, "column_types", types)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "nulls", nulls)

    @property
    def count(self) -> int:
        """Number of rows in the batch."""
        return len(self.values[0]) if self.values else 0

    def _check(self, column: int) -> None:
        if not 0 <= column < len(self.column_types):
            raise IndexError(f"column {column} is out of range")

    def column(self, column: int) -> tuple[ColumnType, tuple]:
        """Type and values of ``column``."""
        self._check(column)
        return self.column_types[column], self.values[column]

    def column_nulls(self, column: int) -> tuple[bool, ...]:
        """Null flags of ``column``."""
        self._check(column)
        return self.nulls[column]


def _leaf(predicate: Predicate, batch: RowBatch) -> tuple[int, int]:
    column_type, values = batch.column(predicate.column)
    count = len(values)
    kind = predicate.kind
    if predicate.column_type is not column_type:
        raise TypeError(
            f"predicate on a {predicate.column_type.name} column applied to a "
            f"{column_type.name} column"
        )

    if kind is Predicate.Kind.CUSTOM:
        if predicate.match_rows is None:
            return 0, count
        result = predicate.match_rows(column_type, count, values, predicate.data)
        return int(result), count

    if kind is Predicate.Kind.CONTAINS:
        if column_type is not ColumnType.STR:
            raise TypeError("contains is only supported for STR columns")
        mask = match_str_contains(
            values, predicate.value, predicate.case_sensitive, predicate.location
        )
        return mask, count

    if column_type is ColumnType.STR:
        string_ops = {
            Predicate.Kind.EQ: match_str_eq,
            Predicate.Kind.LT: match_str_lt,
            Predicate.Kind.GT: match_str_gt,
        }
        mask = string_ops[kind](values, predicate.value, predicate.case_sensitive)
        return mask, count

    if column_type is ColumnType.BIT:
        if kind is not Predicate.Kind.EQ:
            raise TypeError("BIT columns support equality only")
        return match_eq(values, bool(predicate.value)), count

    scalar_ops = {
        Predicate.Kind.EQ: match_eq,
        Predicate.Kind.LT: match_lt,
        Predicate.Kind.GT: match_gt,
    }
    return scalar_ops[kind](values, predicate.value), count


def _evaluate(predicate: Predicate, batch: RowBatch) -> tuple[int, int]:
    kind = predicate.kind
    if kind is Predicate.Kind.TRUE:
        count = batch.count
        mask = _cap(_FULL_MASK, count)
    elif kind is Predicate.Kind.NULL:
        nulls = batch.column_nulls(predicate.column)
        count = len(nulls)
        mask = match_eq(nulls, True)
    elif kind is Predicate.Kind.AND:
        mask, count = _FULL_MASK, batch.count
        for operand in predicate.operands:
            if not mask:
                break
            operand_mask, count = _evaluate(operand, batch)
            mask &= operand_mask
    elif kind is Predicate.Kind.OR:
        mask, count = 0, batch.count
        for operand in predicate.operands:
            if mask == _FULL_MASK:
                break
            operand_mask, count = _evaluate(operand, batch)
            mask |= operand_mask
    else:
        mask, count = _leaf(predicate, batch)
    if predicate.negate:
        mask = _cap(~mask, count)
    return mask, count


def match_rows(predicate: Predicate, batch: RowBatch) -> int:
    """Mask of the batch's rows that ``predicate`` matches; bit ``i`` is row ``i``."""
    mask, _ = _evaluate(predicate, batch)
    return mask