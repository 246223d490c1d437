"""Matplotlib plots of powder diffraction patterns.

Extended Summary
----------------
Stick plots of discrete peak lists and line plots of broadened curves, with
optional (h k l) labels on the strongest peaks. Every function draws into a
supplied Axes or a new one and returns it.

Routine Listings
----------------
top_peaks : function
    The N most intense peaks of a pattern
plot_stick_pattern : function
    Vertical lines at each peak position
plot_broadened_pattern : function
    Broadened curve, optionally overlaid with the stick pattern
"""

import matplotlib.pyplot as plt
import numpy as np
from beartype import beartype
from beartype.typing import List, Optional
from matplotlib.axes import Axes

from xrdium.types import BroadenedPattern, Peak, XRDPattern, pattern_peaks

X_LABEL: str = "2θ (degrees)"
Y_LABEL: str = "Intensity (a.u.)"


@beartype
def top_peaks(pattern: XRDPattern, count: int) -> List[Peak]:
    """The `count` most intense peaks, strongest first.

    Ties keep the order of `pattern`.
    """
    peaks = sorted(pattern_peaks(pattern), key=lambda p: -p.intensity)
    return peaks[: max(count, 0)]


def _label_peaks(ax: Axes, peaks: List[Peak], offset: float) -> None:
    for peak in peaks:
        ax.annotate(
            f"({peak.h} {peak.k} {peak.l})",
            xy=(peak.two_theta, peak.intensity),
            xytext=(0.0, offset),
            textcoords="offset points",
            ha="center",
            va="bottom",
            fontsize=8,
        )


@beartype
def plot_stick_pattern(
    pattern: XRDPattern,
    label_peaks: bool = False,
    label_count: int = 10,
    ax: Optional[Axes] = None,
) -> Axes:
    """
    Description
    -----------
    Draw a stick pattern, one vertical line per peak.

    Parameters
    ----------
    - `pattern` (XRDPattern):
        Computed peak list.
    - `label_peaks` (bool):
        Annotate the strongest peaks with "(h k l)". Default: False
    - `label_count` (int):
        Number of peaks to annotate. Default: 10
    - `ax` (Optional[Axes]):
        Axes to draw into. A new figure is created when None.

    Returns
    -------
    - `ax` (Axes):
        The axes drawn into.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 5))
    peaks = pattern_peaks(pattern)
    positions = [p.two_theta for p in peaks]
    heights = [p.intensity for p in peaks]
    ax.vlines(positions, 0.0, heights, colors="C0", linewidth=1.2)
    ax.set_ylim(0.0, 110.0)
    ax.set_xlabel(X_LABEL)
    ax.set_ylabel(Y_LABEL)
    if pattern.structure_name:
        ax.set_title(f"XRD Pattern: {pattern.structure_name}")
    if label_peaks:
        _label_peaks(ax, top_peaks(pattern, label_count), offset=2.0)
    return ax


@beartype
def plot_broadened_pattern(
    broadened: BroadenedPattern,
    pattern: Optional[XRDPattern] = None,
    label_peaks: bool = False,
    label_count: int = 10,
    ax: Optional[Axes] = None,
) -> Axes:
    """Draw a broadened curve.

    When `pattern` is given its peaks are overlaid as faint sticks and, with
    `label_peaks`, the strongest `label_count` of them are annotated.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 5))
    ax.plot(
        np.asarray(broadened.two_theta),
        np.asarray(broadened.intensities),
        color="C0",
        linewidth=1.0,
    )
    if pattern is not None:
        peaks = pattern_peaks(pattern)
        ax.vlines(
            [p.two_theta for p in peaks],
            0.0,
            [p.intensity for p in peaks],
            colors="C1",
            linewidth=0.8,
            alpha=0.5,
        )
        if label_peaks:
            _label_peaks(ax, top_peaks(pattern, label_count), offset=2.0)
    ax.set_xlim(float(broadened.two_theta[0]), float(broadened.two_theta[-1]))
    ax.set_ylim(0.0, 110.0)
    ax.set_xlabel(X_LABEL)
    ax.set_ylabel(Y_LABEL)
    if broadened.structure_name:
        ax.set_title(f"XRD Pattern: {broadened.structure_name} (broadened)")
    return ax
