"""Conversion of parse results into Arrow tables."""
from __future__ import annotations

import pyarrow as pa
from pyarrow import compute as pac

from ..utils import uniquify
from .abc import ParseResult


def clean_column_names(names: list[str]) -> list[str]:
    """Handle empty and duplicate column names."""
    names = [name.strip() for name in names]
    unnamed = [i for i, x in enumerate(names) if not x]
    for i, col_idx in enumerate(unnamed):
        names[col_idx] = f"Unnamed_{i}"

    return uniquify(names)


def empty_to_null(arr: pa.Array) -> pa.Array:
    """Convert empty strings to null values."""
    is_empty = pac.equal(arr, "")
    return pac.if_else(is_empty, None, arr)


def to_arrow(result: ParseResult, empty_as_null: bool = False) -> pa.Table:
    """Make a string-typed table from parsed records.

    Header-keyed records produce one column per distinct header name. Positional records
    produce as many columns as the longest row, shorter rows being padded with nulls.
    """
    rows = result.rows

    if result.headers is not None:
        keys = list(dict.fromkeys(result.headers))
        columns = [[row.get(key, "") for row in rows] for key in keys]
    else:
        keys = [""] * max((len(row) for row in rows), default=0)
        columns = [[row[i] if i < len(row) else None for row in rows] for i in range(len(keys))]

    arrays = [pa.array(values, type=pa.string()) for values in columns]
    if empty_as_null:
        arrays = [empty_to_null(arr) for arr in arrays]

    return pa.Table.from_arrays(arrays, names=clean_column_names(keys))
