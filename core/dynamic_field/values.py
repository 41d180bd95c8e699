"""
Dynamic Field Value Codec

Converts between the logical value a caller works with and the flat rows
stored in dynamic_field_value.

Logical shapes (ValueShape):
    SCALAR    'abc'                       non-multi-value, non-set field
    SEQUENCE  ['a', 'b', None]            multi-value field
    SET       [['a', 'b'], ['c']]         set-capable multi-value field
              ['a', 'c']                  set-capable single-value field

Usage:
    rows = to_rows(['a', None, 'c'], multi_value=True, is_set=False)
    # [ValueRow('a', 0, 0), ValueRow(None, 1, 0), ValueRow('c', 2, 0)]
    from_rows(rows, multi_value=True, is_set=False)
    # ['a', None, 'c']
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ValueShape(Enum):
    """Logical shape of a dynamic field value."""

    SCALAR = 'scalar'
    SEQUENCE = 'sequence'
    SET = 'set'

    @classmethod
    def for_field(cls, multi_value, is_set):
        if is_set:
            return cls.SET
        if multi_value:
            return cls.SEQUENCE
        return cls.SCALAR


@dataclass(frozen=True)
class ValueRow:
    """One stored value unit, independent of the physical value column."""

    value: Any
    index_value: int = 0
    index_set: int = 0


def _as_list(value):
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def value_is_empty(value):
    """None and empty sequences both mean "no value"."""
    return value is None or (isinstance(value, (list, tuple)) and not value)


def to_rows(value, multi_value=False, is_set=False):
    """
    Linearize a logical value into rows, preserving order.

    None elements inside sequences become NULL rows so the row count
    always matches the caller's cardinality. A scalar None and an empty
    sequence produce no rows at all.
    """
    shape = ValueShape.for_field(multi_value, is_set)

    if shape is ValueShape.SCALAR:
        if value is None:
            return []
        return [ValueRow(value=value)]

    if shape is ValueShape.SEQUENCE:
        return [
            ValueRow(value=item, index_value=index)
            for index, item in enumerate(_as_list(value))
        ]

    rows = []
    for set_index, group in enumerate(_as_list(value)):
        if multi_value:
            for index, item in enumerate(_as_list(group)):
                rows.append(ValueRow(value=item, index_value=index, index_set=set_index))
        else:
            rows.append(ValueRow(value=group, index_value=0, index_set=set_index))
    return rows


def _sort_key(row):
    return (row.index_set or 0, row.index_value or 0)


def from_rows(rows, multi_value=False, is_set=False):
    """
    Rebuild the logical value from rows (inverse of to_rows).

    Rows are grouped by index_set, then ordered by index_value. Missing set
    groups between existing ones come back as empty groups (None for
    single-value sets).
    """
    shape = ValueShape.for_field(multi_value, is_set)
    rows = sorted(rows, key=_sort_key)

    if shape is ValueShape.SCALAR:
        if not rows:
            return None
        return rows[0].value

    if shape is ValueShape.SEQUENCE:
        return [row.value for row in rows]

    if not rows:
        return []

    groups = {}
    for row in rows:
        groups.setdefault(row.index_set or 0, []).append(row.value)

    result = []
    for set_index in range(max(groups) + 1):
        group = groups.get(set_index, [])
        if multi_value:
            result.append(group)
        else:
            result.append(group[0] if group else None)
    return result


def map_values(value, func, multi_value=False, is_set=False):
    """Apply func to every item of a logical value, keeping its shape."""
    if value is None:
        return None

    shape = ValueShape.for_field(multi_value, is_set)

    if shape is ValueShape.SCALAR:
        return func(value)

    if shape is ValueShape.SEQUENCE or not multi_value:
        return [func(item) for item in _as_list(value)]

    return [[func(item) for item in _as_list(group)] for group in _as_list(value)]


def flatten(value):
    """Iterate over the items of any logical value shape."""
    if isinstance(value, (list, tuple)):
        for item in value:
            yield from flatten(item)
    else:
        yield value
