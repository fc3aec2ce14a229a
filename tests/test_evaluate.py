import pytest

from columnstore.column import Column
from columnstore.common import ColumnType, StrLocation
from columnstore.evaluate import RowBatch, match_rows
from columnstore.match import match_eq, match_gt, match_lt
from columnstore.predicate import (
    Predicate,
    and_,
    custom,
    eq,
    gt,
    lt,
    negate,
    null,
    or_,
    str_contains,
    str_eq,
    true,
)

INTS = [3, -7, 5, 5, 12, 0, 5, 99]
STRINGS = ["banana", "Apple", "apple", "pear", "mango", "bandana", "kiwi", "an"]
BITS = [True, False, True, True, False, False, True, False]
NULLS = [False, True, False, False, True, False, False, True]


def _bits(mask, count):
    return [bool((mask >> i) & 1) for i in range(count)]


def _batch_from_columns():
    ints = Column(ColumnType.I32)
    strings = Column(ColumnType.STR)
    bits = Column(ColumnType.BIT)
    for value in INTS:
        ints.put_i32(value)
    for value in STRINGS:
        strings.put_str(value)
    for value in BITS:
        bits.put_bit(value)
    return RowBatch(
        [ColumnType.I32, ColumnType.STR, ColumnType.BIT],
        [c.cursor().next_batch() for c in (ints, strings, bits)],
        [NULLS, [False] * 8, [False] * 8],
    )


@pytest.fixture
def batch():
    return _batch_from_columns()


def test_batch_count_and_values(batch):
    assert batch.count == len(INTS)
    assert batch.column(0) == (ColumnType.I32, tuple(INTS))
    assert batch.column(2)[1] == tuple(BITS)


def test_true_matches_every_row(batch):
    mask = match_rows(true(), batch)
    assert _bits(mask, batch.count) == [True] * batch.count
    assert mask >> batch.count == 0


@pytest.mark.parametrize(
    "factory, matcher",
    [(eq, match_eq), (lt, match_lt), (gt, match_gt)],
)
def test_scalar_predicates_follow_match(batch, factory, matcher):
    predicate = factory(0, ColumnType.I32, 5)
    assert match_rows(predicate, batch) == matcher(INTS, 5)


def test_eq_marks_equal_rows(batch):
    mask = match_rows(eq(0, ColumnType.I32, 5), batch)
    assert _bits(mask, len(INTS)) == [v == 5 for v in INTS]


def test_negation_complements_within_batch(batch):
    predicate = eq(0, ColumnType.I32, 5)
    mask = match_rows(predicate, batch)
    negated = match_rows(negate(eq(0, ColumnType.I32, 5)), batch)
    assert mask & negated == 0
    assert mask | negated == match_rows(true(), batch)


def test_bit_equality_true_and_false_complement(batch):
    on = match_rows(eq(2, ColumnType.BIT, True), batch)
    off = match_rows(eq(2, ColumnType.BIT, False), batch)
    assert _bits(on, len(BITS)) == BITS
    assert on ^ off == match_rows(true(), batch)


def test_null_predicate_uses_null_flags(batch):
    mask = match_rows(null(0), batch)
    assert _bits(mask, len(NULLS)) == NULLS
    assert match_rows(null(1), batch) == 0


def test_missing_nulls_mean_no_nulls():
    plain = RowBatch([ColumnType.I32], [[1, 2, 3]])
    assert match_rows(null(0), plain) == 0
    assert match_rows(negate(null(0)), plain) == match_rows(true(), plain)


def test_and_or_combine_operand_masks(batch):
    a = lt(0, ColumnType.I32, 10)
    b = gt(0, ColumnType.I32, 0)
    ma, mb = match_rows(a, batch), match_rows(b, batch)
    assert match_rows(and_(lt(0, ColumnType.I32, 10), gt(0, ColumnType.I32, 0)), batch) == ma & mb
    assert match_rows(or_(lt(0, ColumnType.I32, 10), gt(0, ColumnType.I32, 0)), batch) == ma | mb


def test_negated_and_is_or_of_negations(batch):
    left = match_rows(
        negate(and_(eq(0, ColumnType.I32, 5), eq(2, ColumnType.BIT, True))), batch
    )
    right = match_rows(
        or_(negate(eq(0, ColumnType.I32, 5)), negate(eq(2, ColumnType.BIT, True))), batch
    )
    assert left == right


def test_and_short_circuits_after_empty_mask(batch):
    calls = []

    def rows(column_type, count, values, data):
        calls.append(count)
        return 0

    predicate = and_(eq(0, ColumnType.I32, 1000), custom(0, ColumnType.I32, rows, None, 1))
    assert match_rows(predicate, batch) == 0
    assert calls == []


def test_string_equality_case_insensitive():
    strings = RowBatch([ColumnType.STR], [["Apple", "apple", "pear"]])
    assert match_rows(str_eq(0, "APPLE", False), strings) == 0b011
    assert match_rows(str_eq(0, "APPLE", True), strings) == 0


def test_string_contains_anywhere(batch):
    mask = match_rows(str_contains(0 + 1, "an", True, StrLocation.ANY), batch)
    assert _bits(mask, len(STRINGS)) == ["an" in s for s in STRINGS]


def test_string_contains_at_start(batch):
    mask = match_rows(str_contains(1, "ban", True, StrLocation.START), batch)
    assert _bits(mask, len(STRINGS)) == [s.startswith("ban") for s in STRINGS]


def test_custom_receives_batch_and_data(batch):
    seen = {}

    def rows(column_type, count, values, data):
        seen.update(type=column_type, count=count, values=values, data=data)
        return match_eq(values, data)

    predicate = custom(0, ColumnType.I32, rows, None, -1, 5)
    assert match_rows(predicate, batch) == match_eq(INTS, 5)
    assert seen == {"type": ColumnType.I32, "count": 8, "values": tuple(INTS), "data": 5}


def test_custom_without_row_callback_matches_nothing(batch):
    predicate = custom(0, ColumnType.I32, None, None, 1)
    assert match_rows(predicate, batch) == 0
    assert match_rows(negate(custom(0, ColumnType.I32, None, None, 1)), batch) == match_rows(
        true(), batch
    )


def test_order_on_bit_column_is_rejected(batch):
    predicate = Predicate(Predicate.Kind.LT, column=2, column_type=ColumnType.BIT, value=True)
    with pytest.raises(TypeError):
        match_rows(predicate, batch)


def test_type_mismatch_is_rejected(batch):
    with pytest.raises(TypeError):
        match_rows(eq(1, ColumnType.I32, 5), batch)


def test_column_out_of_range(batch):
    with pytest.raises(IndexError):
        match_rows(eq(7, ColumnType.I32, 5), batch)


def test_unequal_column_lengths_rejected():
    with pytest.raises(ValueError):
        RowBatch([ColumnType.I32, ColumnType.I32], [[1, 2], [1]])


def test_batch_larger_than_64_rejected():
    with pytest.raises(ValueError):
        RowBatch([ColumnType.I32], [list(range(65))])


def test_null_flags_must_cover_batch():
    with pytest.raises(ValueError):
        RowBatch([ColumnType.I32], [[1, 2]], [[True]])


def test_full_batch_negation_stays_within_64_bits():
    full = RowBatch([ColumnType.I64], [list(range(64))])
    mask = match_rows(negate(lt(0, ColumnType.I64, 10)), full)
    assert mask.bit_length() <= 64
    assert mask == match_rows(negate(lt(0, ColumnType.I64, 10)), full) & match_rows(true(), full)
    assert _bits(mask, 64) == [v >= 10 for v in range(64)]