"""Data output utilities for powder diffraction results.

Extended Summary
----------------
This module writes computed stick patterns and broadened curves to pandas
DataFrames, CSV files and the two-column XY format.

Routine Listings
----------------
pattern_to_dataframe : function
    Peak table of a stick pattern, ascending in 2θ
broadened_to_dataframe : function
    Sample table of a broadened curve
write_pattern_csv : function
    Write a stick pattern as CSV
write_broadened_csv : function
    Write a broadened curve as CSV
write_pattern_xy : function
    Write a stick pattern in XY format
write_broadened_xy : function
    Write a broadened curve in XY format

Notes
-----
Writers raise FileNotFoundError when the destination directory is missing
and never create directories.
"""

from .export import (
    broadened_to_dataframe,
    pattern_to_dataframe,
    write_broadened_csv,
    write_broadened_xy,
    write_pattern_csv,
    write_pattern_xy,
)

__all__ = [
    "broadened_to_dataframe",
    "pattern_to_dataframe",
    "write_broadened_csv",
    "write_broadened_xy",
    "write_pattern_csv",
    "write_pattern_xy",
]
