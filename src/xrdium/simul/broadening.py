"""Peak broadening of discrete diffraction patterns.

Extended Summary
----------------
Turns a stick pattern into a continuous intensity curve sampled on a uniform
2θ grid. Every peak contributes a unit-height profile of fixed FWHM scaled by
its intensity; the summed curve is rescaled to a maximum of 100.

Routine Listings
----------------
BROADENING_PROFILES : frozenset
    Accepted profile names
gaussian_profile : function
    Unit-height Gaussian of given FWHM
lorentzian_profile : function
    Unit-height Lorentzian of given FWHM
pseudo_voigt_profile : function
    Equal-weight sum of the Gaussian and Lorentzian
sample_grid : function
    Uniform 2θ samples covering a window
sum_peak_profiles : function
    Dense sum of weighted profiles over a sample grid
broaden_pattern : function
    Broadened, normalised curve of a pattern or peak list

Notes
-----
The sum is dense, one profile evaluation per peak and sample. The profile
"none" contributes nothing, so it yields an all-zero curve.
"""

import logging
import math

import jax
import jax.numpy as jnp
from beartype import beartype
from beartype.typing import Callable, Dict, Optional, Sequence, Union
from jaxtyping import Array, Float, jaxtyped

from xrdium.types import (
    BroadenedPattern,
    Peak,
    XRDPattern,
    create_broadened_pattern,
    scalar_float,
    scalar_num,
)

from .sources import DEFAULT_FWHM, DEFAULT_STEP

jax.config.update("jax_enable_x64", True)

logger = logging.getLogger(__name__)

BROADENING_PROFILES: frozenset = frozenset(
    {"none", "gaussian", "lorentzian", "pseudo-voigt"}
)
MIN_BROADENED_INTENSITY: float = 0.1


@jaxtyped(typechecker=beartype)
def gaussian_profile(
    delta: Union[scalar_float, Float[Array, "..."]],
    fwhm: scalar_float,
) -> Float[Array, "..."]:
    """Unit-height Gaussian exp(-Δ²/(2σ²)) with σ = FWHM/(2·sqrt(2·ln2))."""
    sigma = fwhm / (2.0 * jnp.sqrt(2.0 * jnp.log(2.0)))
    delta = jnp.asarray(delta, dtype=jnp.float64)
    return jnp.exp(-(delta**2) / (2.0 * sigma**2))


@jaxtyped(typechecker=beartype)
def lorentzian_profile(
    delta: Union[scalar_float, Float[Array, "..."]],
    fwhm: scalar_float,
) -> Float[Array, "..."]:
    """Unit-height Lorentzian γ²/(Δ² + γ²) with γ = FWHM/2."""
    gamma = fwhm / 2.0
    delta = jnp.asarray(delta, dtype=jnp.float64)
    return gamma**2 / (delta**2 + gamma**2)


@jaxtyped(typechecker=beartype)
def pseudo_voigt_profile(
    delta: Union[scalar_float, Float[Array, "..."]],
    fwhm: scalar_float,
) -> Float[Array, "..."]:
    """Pseudo-Voigt with mixing 0.5: 0.5·(Gaussian + Lorentzian)."""
    return 0.5 * (gaussian_profile(delta, fwhm) + lorentzian_profile(delta, fwhm))


def _no_profile(delta, fwhm):
    return jnp.zeros_like(jnp.asarray(delta, dtype=jnp.float64))


PROFILE_KERNELS: Dict[str, Callable] = {
    "none": _no_profile,
    "gaussian": gaussian_profile,
    "lorentzian": lorentzian_profile,
    "pseudo-voigt": pseudo_voigt_profile,
}


@beartype
def sample_grid(
    two_theta_min: scalar_num,
    two_theta_max: scalar_num,
    step: scalar_num,
) -> Float[Array, "S"]:
    """Samples min + i·step for i in [0, ceil((max - min)/step)].

    The last sample may overshoot `two_theta_max` by less than one step.
    """
    two_theta_min = float(two_theta_min)
    span: float = float(two_theta_max) - two_theta_min
    n_samples: int = math.ceil(span / float(step)) + 1
    return two_theta_min + jnp.arange(n_samples, dtype=jnp.float64) * float(step)


@jaxtyped(typechecker=beartype)
def sum_peak_profiles(
    samples: Float[Array, "S"],
    positions: Float[Array, "P"],
    intensities: Float[Array, "P"],
    fwhm: scalar_float,
    kernel: Callable = pseudo_voigt_profile,
) -> Float[Array, "S"]:
    """Sum of intensity-weighted profiles evaluated at every sample.

    Parameters
    ----------
    samples : Float[Array, "S"]
        2θ sample points in degrees.
    positions : Float[Array, "P"]
        Peak centres in degrees.
    intensities : Float[Array, "P"]
        Peak weights.
    fwhm : scalar_float
        Full width at half maximum in degrees.
    kernel : Callable, optional
        One of the unit-height profile functions. Default: pseudo-Voigt.

    Returns
    -------
    Float[Array, "S"]
        Unnormalised summed curve. Jittable with `kernel` held static.
    """
    delta: Float[Array, "S P"] = samples[:, None] - positions[None, :]
    return jnp.sum(intensities[None, :] * kernel(delta, fwhm), axis=1)


@jaxtyped(typechecker=beartype)
def broaden_pattern(
    pattern: Union[XRDPattern, Sequence[Peak]],
    two_theta_min: scalar_num,
    two_theta_max: scalar_num,
    step: scalar_num = DEFAULT_STEP,
    fwhm: scalar_num = DEFAULT_FWHM,
    profile: str = "pseudo-voigt",
    wavelength: Optional[scalar_num] = None,
) -> BroadenedPattern:
    """
    Description
    -----------
    Convert discrete peaks into a continuous, normalised intensity curve.

    Parameters
    ----------
    - `pattern` (Union[XRDPattern, Sequence[Peak]]):
        Stick pattern, or a bare list of Peak records.
    - `two_theta_min` (scalar_num):
        First sample in degrees.
    - `two_theta_max` (scalar_num):
        End of the window in degrees.
    - `step` (scalar_num):
        Sample spacing in degrees. Default: 0.02
    - `fwhm` (scalar_num):
        Full width at half maximum in degrees. Default: 0.1
    - `profile` (str):
        One of "none", "gaussian", "lorentzian", "pseudo-voigt".
        Default: "pseudo-voigt"
    - `wavelength` (Optional[scalar_num]):
        Wavelength recorded on the result. Required for a Peak list;
        defaults to the pattern's own wavelength.

    Returns
    -------
    - `broadened` (BroadenedPattern):
        ceil((max - min)/step) + 1 samples, maximum 100 unless every
        sample is zero.

    Raises
    ------
    - ValueError:
        If the profile is unknown, `step` or `fwhm` is not positive,
        `two_theta_max <= two_theta_min`, or a Peak list comes without a
        wavelength.

    Flow
    ----
    - Validate the arguments
    - Drop peaks weaker than 0.1
    - Build the sample grid
    - Sum the weighted profiles over all peaks at every sample
    - Rescale so the curve's maximum is 100
    """
    if profile not in BROADENING_PROFILES:
        raise ValueError(
            f"Unknown broadening profile {profile!r}, "
            f"expected one of {sorted(BROADENING_PROFILES)}"
        )
    if float(step) <= 0.0:
        raise ValueError(f"step must be positive, got {float(step)}")
    if profile != "none" and float(fwhm) <= 0.0:
        raise ValueError(f"fwhm must be positive, got {float(fwhm)}")
    if float(two_theta_max) <= float(two_theta_min):
        raise ValueError(
            f"Empty 2θ range: max {float(two_theta_max)} <= "
            f"min {float(two_theta_min)}"
        )

    if isinstance(pattern, XRDPattern):
        positions = pattern.two_theta
        intensities = pattern.intensities
        structure_name = pattern.structure_name
        if wavelength is None:
            wavelength = pattern.wavelength
    else:
        if wavelength is None:
            raise ValueError("wavelength is required when broadening a Peak list")
        positions = jnp.array([p.two_theta for p in pattern], dtype=jnp.float64)
        intensities = jnp.array([p.intensity for p in pattern], dtype=jnp.float64)
        structure_name = ""

    strong = jnp.nonzero(intensities >= MIN_BROADENED_INTENSITY)[0]
    samples: Float[Array, "S"] = sample_grid(two_theta_min, two_theta_max, step)
    curve: Float[Array, "S"] = sum_peak_profiles(
        samples,
        positions[strong],
        intensities[strong],
        float(fwhm),
        PROFILE_KERNELS[profile],
    )
    max_intensity = float(jnp.max(curve))
    if max_intensity > 0.0:
        curve = curve / max_intensity * 100.0
    logger.debug(
        "Broadened %d peaks with %s (FWHM %.4f) onto %d samples",
        strong.shape[0],
        profile,
        float(fwhm),
        samples.shape[0],
    )
    return create_broadened_pattern(
        two_theta=samples,
        intensities=curve,
        wavelength=float(wavelength),
        structure_name=structure_name,
    )
