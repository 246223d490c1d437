"""Writers for computed diffraction patterns.

Extended Summary
----------------
Exports stick patterns and broadened curves as pandas DataFrames, CSV files
and the plain two-column XY exchange format read by most powder diffraction
software. Peaks are written in ascending 2θ order.

Routine Listings
----------------
pattern_to_dataframe : function
    Peak table with 2theta, d_spacing, intensity, h, k, l columns
broadened_to_dataframe : function
    Curve table with 2theta and intensity columns
write_pattern_csv : function
    Write a stick pattern as CSV
write_broadened_csv : function
    Write a broadened curve as CSV
write_pattern_xy : function
    Write a stick pattern in XY format
write_broadened_xy : function
    Write a broadened curve in XY format
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd
from beartype import beartype
from beartype.typing import Dict, Union

from xrdium.types import BroadenedPattern, XRDPattern

logger = logging.getLogger(__name__)

PATTERN_COLUMNS = ("2theta", "d_spacing", "intensity", "h", "k", "l")
BROADENED_COLUMNS = ("2theta", "intensity")
PATTERN_FORMATS: Dict[str, str] = {
    "2theta": "{:.4f}",
    "d_spacing": "{:.6f}",
    "intensity": "{:.2f}",
}
BROADENED_FORMATS: Dict[str, str] = {"2theta": "{:.4f}", "intensity": "{:.4f}"}


@beartype
def pattern_to_dataframe(pattern: XRDPattern) -> pd.DataFrame:
    """Peak table of `pattern`, one row per peak, ascending in 2θ."""
    hkl = np.asarray(pattern.miller_indices).reshape(-1, 3)
    frame = pd.DataFrame(
        {
            "2theta": np.asarray(pattern.two_theta),
            "d_spacing": np.asarray(pattern.d_spacing),
            "intensity": np.asarray(pattern.intensities),
            "h": hkl[:, 0],
            "k": hkl[:, 1],
            "l": hkl[:, 2],
        },
        columns=list(PATTERN_COLUMNS),
    )
    return frame.sort_values("2theta", kind="mergesort").reset_index(drop=True)


@beartype
def broadened_to_dataframe(broadened: BroadenedPattern) -> pd.DataFrame:
    """Curve table of `broadened` in sample order."""
    return pd.DataFrame(
        {
            "2theta": np.asarray(broadened.two_theta),
            "intensity": np.asarray(broadened.intensities),
        },
        columns=list(BROADENED_COLUMNS),
    )


def _check_parent(path: Union[str, Path]) -> Path:
    path = Path(path)
    if not path.parent.is_dir():
        raise FileNotFoundError(f"Output directory not found: {path.parent}")
    return path


def _format_columns(frame: pd.DataFrame, formats: Dict[str, str]) -> pd.DataFrame:
    formatted = frame.copy()
    for column, spec in formats.items():
        if column not in frame.columns:
            continue
        formatted[column] = frame[column].map(spec.format)
    return formatted


def _xy_header(title: str, wavelength: float) -> str:
    return (
        f"# XRD Pattern: {title}\n"
        f"# Wavelength: {wavelength:.6f} Angstrom\n"
        "# Columns: 2theta (degrees), Intensity (relative)\n"
        "#\n"
    )


@beartype
def write_pattern_csv(pattern: XRDPattern, path: Union[str, Path]) -> Path:
    """
    Description
    -----------
    Write the peaks of `pattern` as CSV with columns
    2theta, d_spacing, intensity, h, k, l.

    Parameters
    ----------
    - `pattern` (XRDPattern):
        Computed stick pattern.
    - `path` (Union[str, Path]):
        Destination file. Overwritten if it exists.

    Returns
    -------
    - `path` (Path):
        The written file.

    Raises
    ------
    - FileNotFoundError:
        If the destination directory does not exist.
    """
    path = _check_parent(path)
    frame = _format_columns(pattern_to_dataframe(pattern), PATTERN_FORMATS)
    frame.to_csv(path, index=False)
    logger.info("Wrote %d peaks to %s", len(frame), path)
    return path


@beartype
def write_broadened_csv(broadened: BroadenedPattern, path: Union[str, Path]) -> Path:
    """Write a broadened curve as CSV with columns 2theta, intensity."""
    path = _check_parent(path)
    frame = _format_columns(broadened_to_dataframe(broadened), BROADENED_FORMATS)
    frame.to_csv(path, index=False)
    logger.info("Wrote %d samples to %s", len(frame), path)
    return path


@beartype
def write_pattern_xy(pattern: XRDPattern, path: Union[str, Path]) -> Path:
    """Write a stick pattern in XY format.

    Four comment lines (structure name, wavelength, column legend and a
    bare "#") are followed by tab-separated 2θ and intensity rows.
    """
    path = _check_parent(path)
    frame = _format_columns(
        pattern_to_dataframe(pattern)[["2theta", "intensity"]],
        PATTERN_FORMATS,
    )
    with open(path, "w", newline="") as handle:
        handle.write(_xy_header(pattern.structure_name, float(pattern.wavelength)))
        frame.to_csv(handle, sep="\t", header=False, index=False)
    logger.info("Wrote %d peaks to %s", len(frame), path)
    return path


@beartype
def write_broadened_xy(broadened: BroadenedPattern, path: Union[str, Path]) -> Path:
    """Write a broadened curve in XY format, titled "<name> (broadened)"."""
    path = _check_parent(path)
    frame = _format_columns(broadened_to_dataframe(broadened), BROADENED_FORMATS)
    title = f"{broadened.structure_name} (broadened)"
    with open(path, "w", newline="") as handle:
        handle.write(_xy_header(title, float(broadened.wavelength)))
        frame.to_csv(handle, sep="\t", header=False, index=False)
    logger.info("Wrote %d samples to %s", len(frame), path)
    return path
