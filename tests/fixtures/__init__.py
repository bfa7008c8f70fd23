"""Test fixtures for lhcdata tests."""

from tests.fixtures.synthetic_tables import (
    EDGES,
    CENTERS,
    HALF_WIDTHS,
    CENTRAL,
    STAT_FRACTION,
    TOTAL_LOW_FRACTION,
    TOTAL_HIGH_FRACTION,
    SOURCES,
    make_series,
    make_histogram,
    make_stat_histogram,
    make_table,
    write_table_mirror,
)

__all__ = [
    "EDGES",
    "CENTERS",
    "HALF_WIDTHS",
    "CENTRAL",
    "STAT_FRACTION",
    "TOTAL_LOW_FRACTION",
    "TOTAL_HIGH_FRACTION",
    "SOURCES",
    "make_series",
    "make_histogram",
    "make_stat_histogram",
    "make_table",
    "write_table_mirror",
]
