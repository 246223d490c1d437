"""Powder X-ray diffraction simulation utilities.

Extended Summary
----------------
This module computes powder diffraction patterns from crystal structures:
atomic scattering factors, kinematic peak positions and intensities, peak
merging and normalisation, and profile broadening onto a continuous 2θ grid.

Routine Listings
----------------
ScatteringFactorParams : NamedTuple
    Analytic scattering factor parameters of one element
SCATTERING_FACTORS : Mapping
    Read-only element table of scattering factor parameters
get_scattering_params : function
    Resolve an element label with prefix fallback
calculate_scattering_factor : function
    f(s) for an element label, zero when unknown
evaluate_scattering_factor : function
    f(s) for packed coefficient arrays
scattering_factor_table : function
    Packed coefficients for a list of element labels
XRDCalculator : NamedTuple
    Wavelength-bound powder pattern calculator
calculate_xrd_pattern : function
    Complete powder pattern from a crystal structure
miller_search_bound : function
    Miller-index search bound for a 2θ window
bragg_angles : function
    d-spacing, sin(θ) and 2θ of reciprocal lattice vectors
structure_factor_intensity : function
    Squared structure factor |F|²
lorentz_polarization : function
    Lorentz-polarization factor
merge_equivalent_peaks : function
    Merge reflections overlapping in 2θ
normalize_intensities : function
    Rescale intensities to a maximum of 100
BROADENING_PROFILES : frozenset
    Accepted broadening profile names
gaussian_profile : function
    Unit-height Gaussian profile
lorentzian_profile : function
    Unit-height Lorentzian profile
pseudo_voigt_profile : function
    Equal-weight pseudo-Voigt profile
sample_grid : function
    Uniform 2θ sampling grid
sum_peak_profiles : function
    Dense sum of weighted peak profiles
broaden_pattern : function
    Broadened, normalised curve from a stick pattern
XRAY_WAVELENGTHS : Mapping
    Characteristic wavelengths of common X-ray sources
resolve_wavelength : function
    Wavelength from a source name or number
parse_two_theta_range : function
    2θ window from a "min-max" string

Notes
-----
Numeric kernels support JAX transformations. The full pattern calculation
filters reflections with data-dependent shapes and runs eagerly.
"""

from .broadening import (
    BROADENING_PROFILES,
    broaden_pattern,
    gaussian_profile,
    lorentzian_profile,
    pseudo_voigt_profile,
    sample_grid,
    sum_peak_profiles,
)
from .form_factors import (
    SCATTERING_FACTORS,
    ScatteringFactorParams,
    calculate_scattering_factor,
    evaluate_scattering_factor,
    get_scattering_params,
    scattering_factor_table,
)
from .powder import (
    XRDCalculator,
    bragg_angles,
    calculate_xrd_pattern,
    lorentz_polarization,
    merge_equivalent_peaks,
    miller_search_bound,
    normalize_intensities,
    structure_factor_intensity,
)
from .sources import (
    DEFAULT_FWHM,
    DEFAULT_STEP,
    DEFAULT_TWO_THETA_RANGE,
    DEFAULT_WAVELENGTH,
    XRAY_WAVELENGTHS,
    parse_two_theta_range,
    resolve_wavelength,
)

__all__ = [
    "ScatteringFactorParams",
    "SCATTERING_FACTORS",
    "get_scattering_params",
    "calculate_scattering_factor",
    "evaluate_scattering_factor",
    "scattering_factor_table",
    "XRDCalculator",
    "calculate_xrd_pattern",
    "miller_search_bound",
    "bragg_angles",
    "structure_factor_intensity",
    "lorentz_polarization",
    "merge_equivalent_peaks",
    "normalize_intensities",
    "BROADENING_PROFILES",
    "gaussian_profile",
    "lorentzian_profile",
    "pseudo_voigt_profile",
    "sample_grid",
    "sum_peak_profiles",
    "broaden_pattern",
    "XRAY_WAVELENGTHS",
    "DEFAULT_WAVELENGTH",
    "DEFAULT_TWO_THETA_RANGE",
    "DEFAULT_FWHM",
    "DEFAULT_STEP",
    "resolve_wavelength",
    "parse_two_theta_range",
]
