# columnstore

Building blocks for a columnar data store:

- **Columns** (`columnstore.column`): append-only typed columns of bits,
  32/64-bit integers, single/double floats and strings, stored as
  little-endian bytes, with a `ColumnCursor` that reads them in batches of
  up to 64 values.
- **Indexes** (`columnstore.index`): `Index`, a per-column count and min/max
  summary that tells whether a comparison matches all, none or an unknown
  share of a column's values.
- **Matching** (`columnstore.match`): turn a batch of up to 64 values into an
  integer bitmask of the values that satisfy a comparison.
- **Predicates** (`columnstore.predicate`, `columnstore.evaluate`):
  composable filter trees (`and_`, `or_`, `negate`, comparisons, string
  containment, null checks and custom callbacks) that can be validated,
  ordered cheapest first, checked against indexes and evaluated against row
  batches.
- **Compression** (`columnstore.compress`): LZ4, LZ4HC and Zstandard block
  compression of column buffers.
- **Enumerations** (`columnstore.common`): `ColumnType`, `EncodingType`,
  `CompressionType`, `StrLocation` and `IndexMatch`.

## Installation

```
pip install columnstore
```

To run the test suite, install the `test` extra and run `pytest`:

```
pip install "columnstore[test]"
pytest
```

## Examples

### Columns and cursors

```python
from columnstore.column import Column
from columnstore.common import ColumnType

ints = Column(ColumnType.I32)
for value in (3, 5, 7):
    ints.put_i32(value)

ints.count                  # 3
ints.cursor().next_batch()  # (3, 5, 7)
```

Each column accepts only values of its own type: putting a value of another
type raises `TypeError`, an integer out of range raises `OverflowError`, and
strings may not contain NUL characters. `put_unit()` appends the zero value
of the column's type. `export()` returns the serialised bytes, and
`Column.from_buffer(column_type, encoding, data, count)` wraps such bytes in
a read-only column.

### Indexes

```python
from columnstore.index import Index

index = Index.from_column(ints)
index.match_lt(10)   # IndexMatch.ALL
index.match_gt(7)    # IndexMatch.NONE
index.match_eq(5)    # IndexMatch.UNKNOWN
```

For string columns the bounds are of the strings' byte lengths, so
`match_eq` and `match_contains` can only rule a column out.

### Matching a batch

Matching functions return an integer bitmask in which bit `i` is set when
value `i` of the batch satisfies the comparison:

```python
from columnstore.match import match_eq, match_gt

match_eq([1, 2, 3, 2], 2)   # 0b1010
match_gt([1, 2, 3, 2], 1)   # 0b1110
```

The string functions (`match_str_eq`, `match_str_lt`, `match_str_gt`,
`match_str_contains`) compare UTF-8 bytes; case-insensitive matching folds
ASCII letters only.

### Building predicates

```python
from columnstore.common import ColumnType, StrLocation
from columnstore.predicate import and_, or_, gt, null, str_contains, negate

# column 0 is an I32 column, column 1 a string column
wanted = and_(
    gt(0, ColumnType.I32, 10),
    or_(
        str_contains(1, "foo", False, StrLocation.ANY),
        negate(null(1)),
    ),
)
```

A row group is described to a predicate by `RowGroupStats`, which holds the
column types, one value `Index` and one null `Index` per column, and the row
count:

```python
from columnstore.predicate import RowGroupStats

nulls = Column(ColumnType.BIT)
for _ in range(3):
    nulls.put_bit(False)

stats = RowGroupStats(
    [ColumnType.I32], [Index.from_column(ints)], [Index.from_column(nulls)], 3
)

predicate = gt(0, ColumnType.I32, 10)
predicate.valid(stats)           # True
predicate.match_indexes(stats)   # IndexMatch.NONE
```

`Predicate.optimize` sorts the operands of the tree by `Predicate.cost`,
cheapest first.

### Evaluating rows

```python
from columnstore.evaluate import RowBatch, match_rows

batch = RowBatch([ColumnType.I32], [[3, 5, 7]])
match_rows(gt(0, ColumnType.I32, 4), batch)          # 0b110
match_rows(negate(gt(0, ColumnType.I32, 4)), batch)  # 0b001
```

### Compressing a buffer

```python
from columnstore.common import CompressionType
from columnstore.compress import compress, decompress

data = b"abc" * 1000
packed = compress(CompressionType.ZSTD, 3, data)
assert decompress(CompressionType.ZSTD, packed, len(data)) == data
```

For LZ4 the level is the acceleration factor, for LZ4HC and Zstandard the
compression level. Decompression checks that the output has exactly the
expected size and raises `CompressionError` otherwise, as it does for an
unsupported compression type.

## What it does not do

columnstore has no file format of its own: there is no reader or writer for
files of row groups, no storage of metadata and no command-line tools. The
caller builds the `RowGroupStats` and `RowBatch` objects that predicates are
checked and evaluated against.