"""Append-only typed columns and sequential batch cursors over them."""

from __future__ import annotations

import struct
from collections.abc import Iterator

from .common import ColumnType, EncodingType

BATCH_SIZE = 64

_WORD = struct.Struct("<Q")
_WORD_BITS = 64

_FIXED_FORMATS = {
    ColumnType.I32: "i",
    ColumnType.I64: "q",
    ColumnType.FLT: "f",
    ColumnType.DBL: "d",
}


def _pack(fmt: str, value) -> bytes:
    try:
        return struct.pack("<" + fmt, value)
    except struct.error as exc:
        raise OverflowError(f"value {value!r} does not fit: {exc}") from None


class Column:
    """A column of values of one type, stored as little-endian bytes.

    Bits are packed 64 to a word, strings are stored NUL terminated.
    A column built from an existing buffer is read-only.
    """

    def __init__(self, column_type: ColumnType, encoding: EncodingType = EncodingType.NONE):
        self._type = ColumnType(column_type)
        self._encoding = EncodingType(encoding)
        self._data: bytes | bytearray = bytearray()
        self._count = 0
        self._read_only = False

    @classmethod
    def from_buffer(cls, column_type, encoding, data, count) -> Column:
        """Wrap already serialised column bytes holding ``count`` values."""
        if count < 0:
            raise ValueError("count must not be negative")
        column = cls(column_type, encoding)
        column._data = bytes(data)
        column._count = count
        column._read_only = True
        return column

    @property
    def column_type(self) -> ColumnType:
        return self._type

    @property
    def encoding(self) -> EncodingType:
        return self._encoding

    @property
    def count(self) -> int:
        return self._count

    @property
    def read_only(self) -> bool:
        return self._read_only

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return (
            f"Column({self._type.name}, encoding={self._encoding.name}, "
            f"count={self._count}, size={len(self._data)})"
        )

    def _check_writable(self, column_type: ColumnType) -> None:
        if self._read_only:
            raise ValueError("column is read-only")
        if self._type is not column_type:
            raise TypeError(
                f"cannot put a {column_type.name} value into a {self._type.name} column"
            )

    def _put(self, column_type: ColumnType, payload: bytes) -> None:
        self._check_writable(column_type)
        self._data += payload
        self._count += 1

    def put_bit(self, value) -> None:
        """Append a boolean."""
        self._check_writable(ColumnType.BIT)
        bit = self._count % _WORD_BITS
        if bit == 0:
            self._data += _WORD.pack(1 if value else 0)
        elif value:
            offset = len(self._data) - _WORD.size
            (word,) = _WORD.unpack_from(self._data, offset)
            _WORD.pack_into(self._data, offset, word | (1 << bit))
        self._count += 1

    def put_i32(self, value: int) -> None:
        """Append a signed 32-bit integer."""
        self._put(ColumnType.I32, _pack("i", value))

    def put_i64(self, value: int) -> None:
        """Append a signed 64-bit integer."""
        self._put(ColumnType.I64, _pack("q", value))

    def put_flt(self, value: float) -> None:
        """Append a single-precision float."""
        self._put(ColumnType.FLT, _pack("f", value))

    def put_dbl(self, value: float) -> None:
        """Append a double-precision float."""
        self._put(ColumnType.DBL, _pack("d", value))

    def put_str(self, value: str) -> None:
        """Append a string, stored as UTF-8 followed by a NUL byte."""
        if not isinstance(value, str):
            raise TypeError("string value required")
        raw = value.encode("utf-8", "surrogateescape")
        if b"\0" in raw:
            raise ValueError("strings may not contain NUL characters")
        self._put(ColumnType.STR, raw + b"\0")

    def put_unit(self) -> None:
        """Append the zero value of the column's type."""
        putters = {
            ColumnType.BIT: lambda: self.put_bit(False),
            ColumnType.I32: lambda: self.put_i32(0),
            ColumnType.I64: lambda: self.put_i64(0),
            ColumnType.FLT: lambda: self.put_flt(0.0),
            ColumnType.DBL: lambda: self.put_dbl(0.0),
            ColumnType.STR: lambda: self.put_str(""),
        }
        putters[self._type]()

    def export(self) -> bytes:
        """Return the serialised column bytes."""
        return bytes(self._data)

    def cursor(self) -> ColumnCursor:
        """Return a cursor over the values present now."""
        return ColumnCursor(self)


class ColumnCursor:
    """Reads a column sequentially in batches of up to ``BATCH_SIZE`` values."""

    def __init__(self, column: Column):
        self._column = column
        self._end = len(column._data)
        self._position = 0

    @property
    def column(self) -> Column:
        return self._column

    @property
    def position(self) -> int:
        """Current byte offset into the column."""
        return self._position

    def rewind(self) -> None:
        self._position = 0

    def valid(self) -> bool:
        """Whether values remain to be read."""
        return self._position < self._end

    def __iter__(self) -> Iterator[tuple]:
        while self.valid():
            yield self.next_batch()

    def _skip_fixed(self, size: int, count: int) -> int:
        remaining = (self._end - self._position) // size
        count = min(count, remaining)
        self._position += size * count
        return count

    def _skip_bits(self, count: int) -> int:
        if count % _WORD_BITS:
            raise ValueError("bit columns are skipped in multiples of 64")
        skipped = self._skip_fixed(_WORD.size, count // _WORD_BITS) * _WORD_BITS
        if skipped and not self.valid():
            trailing = self._column.count % _WORD_BITS
            if trailing:
                skipped -= _WORD_BITS - trailing
        return skipped

    def _read_string(self) -> str:
        data = self._column._data
        nul = data.find(b"\0", self._position, self._end)
        if nul < 0:
            raise ValueError("unterminated string in column data")
        raw = bytes(data[self._position:nul])
        self._position = nul + 1
        return raw.decode("utf-8", "surrogateescape")

    def skip(self, count: int) -> int:
        """Skip up to ``count`` values and return how many were skipped."""
        if count < 0:
            raise ValueError("count must not be negative")
        column_type = self._column.column_type
        if column_type is ColumnType.BIT:
            return self._skip_bits(count)
        if column_type is ColumnType.STR:
            skipped = 0
            while skipped < count and self.valid():
                self._read_string()
                skipped += 1
            return skipped
        size = struct.calcsize("<" + _FIXED_FORMATS[column_type])
        return self._skip_fixed(size, count)

    def next_batch(self) -> tuple:
        """Return the next batch of values; empty once the cursor is exhausted."""
        column_type = self._column.column_type
        data = self._column._data
        start = self._position
        if column_type is ColumnType.BIT:
            available = self._skip_bits(BATCH_SIZE)
            if not available:
                return ()
            (word,) = _WORD.unpack_from(data, start)
            return tuple(bool((word >> i) & 1) for i in range(available))
        if column_type is ColumnType.STR:
            values = []
            while len(values) < BATCH_SIZE and self.valid():
                values.append(self._read_string())
            return tuple(values)
        fmt = _FIXED_FORMATS[column_type]
        available = self._skip_fixed(struct.calcsize("<" + fmt), BATCH_SIZE)
        return struct.unpack_from(f"<{available}{fmt}", data, start)