"""Shared enumerations for column types, encodings, compression and index matches."""

from __future__ import annotations

from enum import IntEnum


class ColumnType(IntEnum):
    """Physical type of the values stored in a column."""

    BIT = 0
    I32 = 1
    I64 = 2
    FLT = 3
    DBL = 4
    STR = 5


class EncodingType(IntEnum):
    """Encoding applied to a column's values."""

    NONE = 0


class CompressionType(IntEnum):
    """Compression applied to a column's exported bytes."""

    NONE = 0
    LZ4 = 1
    LZ4HC = 2
    ZSTD = 3


class StrLocation(IntEnum):
    """Where a substring must occur for a string "contains" match."""

    START = 0
    END = 1
    ANY = 2


class IndexMatch(IntEnum):
    """Outcome of testing a predicate against an index.

    The values are ordered so that the weakest outcome of a conjunction is
    the minimum and the strongest outcome of a disjunction is the maximum.
    """

    NONE = -1
    UNKNOWN = 0
    ALL = 1

    def negated(self) -> IndexMatch:
        """Return the outcome for the negated predicate."""
        return IndexMatch(-int(self))