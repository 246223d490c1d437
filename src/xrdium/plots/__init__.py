"""Plotting utilities for powder diffraction patterns.

Routine Listings
----------------
top_peaks : function
    The N most intense peaks of a pattern
plot_stick_pattern : function
    Stick plot of a discrete pattern
plot_broadened_pattern : function
    Line plot of a broadened curve
"""

from .patterns import plot_broadened_pattern, plot_stick_pattern, top_peaks

__all__ = [
    "plot_broadened_pattern",
    "plot_stick_pattern",
    "top_peaks",
]
