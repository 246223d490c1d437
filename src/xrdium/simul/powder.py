"""Powder X-ray diffraction pattern calculation.

Extended Summary
----------------
This module predicts the powder diffraction peaks of a crystal: positions in
2θ, d-spacings, relative intensities and Miller indices. Reflections are
enumerated on the reciprocal lattice inside a conservative Miller-index cube,
kinematic intensities are computed from the structure factor and the
Lorentz-polarization factor, reflections that coincide within 0.01° are
merged and the result is normalised to a strongest peak of 100.

Routine Listings
----------------
XRDCalculator : NamedTuple
    Wavelength-bound calculator with a `calculate` method
calculate_xrd_pattern : function
    Full powder pattern of a crystal over a 2θ window
miller_search_bound : function
    Largest Miller index needed to reach a given 2θ
bragg_angles : function
    d-spacing, sin(θ) and 2θ for reciprocal lattice vectors
structure_factor_intensity : function
    |F(G)|² for a set of reciprocal lattice vectors
lorentz_polarization : function
    Lorentz-polarization factor (1 + cos²2θ)/(sin²θ·cosθ)
merge_equivalent_peaks : function
    Merge reflections whose 2θ agree within a tolerance
normalize_intensities : function
    Rescale intensities to a maximum of 100

Notes
-----
The calculation is a pure function of its inputs. Invalid wavelengths and
degenerate lattices raise ValueError; reflections that are unreachable,
outside the window or systematically absent are skipped silently. Thermal
factors, anomalous dispersion and preferred orientation are not modelled.
"""

import logging
import math

import jax
import jax.numpy as jnp
from beartype import beartype
from beartype.typing import NamedTuple, Tuple, Union
from jax import lax
from jaxtyping import Array, Bool, Float, Int, jaxtyped

from xrdium.types import (
    Crystal,
    Lattice,
    XRDPattern,
    create_xrd_pattern,
    scalar_float,
    scalar_num,
)
from xrdium.ucell import (
    frac_to_cart,
    generate_miller_indices,
    lattice_parameters,
    lattice_volume,
    miller_to_reciprocal,
    reciprocal_lattice_vectors,
)

from .form_factors import evaluate_scattering_factor, scattering_factor_table

jax.config.update("jax_enable_x64", True)

logger = logging.getLogger(__name__)

MAX_MILLER_INDEX: int = 30
MERGE_TOLERANCE: float = 0.01
ZERO_G: float = 1e-10
ZERO_INTENSITY: float = 1e-10
DEGENERATE_VOLUME: float = 1e-10
LP_SINGULARITY: float = 1e-10


@jaxtyped(typechecker=beartype)
def lorentz_polarization(
    theta: Union[scalar_float, Float[Array, "..."]],
) -> Float[Array, "..."]:
    """Lorentz-polarization factor for unpolarised powder geometry.

    Parameters
    ----------
    theta : Union[scalar_float, Float[Array, "..."]]
        Bragg angle θ in radians (half the scattering angle).

    Returns
    -------
    Float[Array, "..."]
        (1 + cos²2θ) / (sin²θ·cosθ), and 0 where |sinθ| or |cosθ| is
        below 1e-10.
    """
    theta = jnp.asarray(theta, dtype=jnp.float64)
    sin_theta = jnp.sin(theta)
    cos_theta = jnp.cos(theta)
    cos_two_theta = jnp.cos(2.0 * theta)
    singular: Bool[Array, "..."] = jnp.logical_or(
        jnp.abs(sin_theta) < LP_SINGULARITY,
        jnp.abs(cos_theta) < LP_SINGULARITY,
    )
    denominator = jnp.where(singular, 1.0, sin_theta**2 * cos_theta)
    factor = (1.0 + cos_two_theta**2) / denominator
    return jnp.where(singular, 0.0, factor)


@jaxtyped(typechecker=beartype)
def miller_search_bound(
    lattice: Lattice,
    wavelength: scalar_num,
    two_theta_max: scalar_num,
) -> int:
    """Largest |h|, |k|, |l| that can diffract below `two_theta_max`.

    Parameters
    ----------
    lattice : Lattice
        Real-space lattice.
    wavelength : scalar_num
        X-ray wavelength in Å.
    two_theta_max : scalar_num
        Upper end of the 2θ window in degrees.

    Returns
    -------
    int
        int(g_max·max(a, b, c)) + 1 with g_max = 2·sin(θ_max)/λ, clamped to
        [1, 30]. The estimate errs on the large side so no reachable
        reflection is missed.
    """
    theta_max: float = math.radians(float(two_theta_max)) / 2.0
    g_max: float = 2.0 * math.sin(theta_max) / float(wavelength)
    lengths, _ = lattice_parameters(lattice)
    bound = int(g_max * float(jnp.max(lengths))) + 1
    return max(1, min(bound, MAX_MILLER_INDEX))


@jaxtyped(typechecker=beartype)
def bragg_angles(
    g_vectors: Float[Array, "M 3"],
    wavelength: scalar_num,
) -> Tuple[
    Float[Array, "M"], Float[Array, "M"], Float[Array, "M"], Bool[Array, "M"]
]:
    """Bragg geometry of reciprocal lattice vectors.

    Parameters
    ----------
    g_vectors : Float[Array, "M 3"]
        Reciprocal lattice vectors in 1/Å, including the 2π factor.
    wavelength : scalar_num
        X-ray wavelength in Å.

    Returns
    -------
    d_spacing : Float[Array, "M"]
        2π/|G| in Å.
    sin_theta : Float[Array, "M"]
        λ/(2d).
    two_theta : Float[Array, "M"]
        2·asin(sinθ) in degrees, clipped for unreachable vectors.
    reachable : Bool[Array, "M"]
        True where |G| is non-zero and |sinθ| <= 1.
    """
    g_magnitude: Float[Array, "M"] = jnp.linalg.norm(g_vectors, axis=1)
    nonzero: Bool[Array, "M"] = g_magnitude >= ZERO_G
    safe_magnitude = jnp.where(nonzero, g_magnitude, 1.0)
    d_spacing: Float[Array, "M"] = 2.0 * jnp.pi / safe_magnitude
    sin_theta: Float[Array, "M"] = wavelength / (2.0 * d_spacing)
    reachable: Bool[Array, "M"] = jnp.logical_and(
        nonzero, jnp.abs(sin_theta) <= 1.0
    )
    theta = jnp.arcsin(jnp.clip(sin_theta, -1.0, 1.0))
    two_theta: Float[Array, "M"] = 2.0 * jnp.degrees(theta)
    return d_spacing, sin_theta, two_theta, reachable


@jaxtyped(typechecker=beartype)
def structure_factor_intensity(
    g_vectors: Float[Array, "M 3"],
    sin_theta: Float[Array, "M"],
    wavelength: scalar_num,
    cart_positions: Float[Array, "N 3"],
    coefficients: Float[Array, "N 9"],
) -> Float[Array, "M"]:
    """Squared structure factor |F(G)|² for each reciprocal vector.

    Parameters
    ----------
    g_vectors : Float[Array, "M 3"]
        Reciprocal lattice vectors in 1/Å, including the 2π factor.
    sin_theta : Float[Array, "M"]
        sin(θ) of each reflection.
    wavelength : scalar_num
        X-ray wavelength in Å.
    cart_positions : Float[Array, "N 3"]
        Cartesian atom positions in Å.
    coefficients : Float[Array, "N 9"]
        Scattering factor coefficients per atom, see
        `scattering_factor_table`.

    Returns
    -------
    Float[Array, "M"]
        (Σ f·cos φ)² + (Σ f·sin φ)² with φ = G·r and f evaluated at
        s = sinθ/λ.

    Notes
    -----
    The phase is the Cartesian dot product G·r. G already carries the 2π
    factor, so no further scaling is applied.
    """
    s: Float[Array, "M"] = sin_theta / wavelength
    form_factors: Float[Array, "M N"] = evaluate_scattering_factor(
        coefficients, s[:, None]
    )
    phases: Float[Array, "M N"] = g_vectors @ cart_positions.T
    real_part: Float[Array, "M"] = jnp.sum(form_factors * jnp.cos(phases), axis=1)
    imag_part: Float[Array, "M"] = jnp.sum(form_factors * jnp.sin(phases), axis=1)
    return real_part**2 + imag_part**2


@jaxtyped(typechecker=beartype)
def merge_equivalent_peaks(
    two_theta: Float[Array, "N"],
    d_spacing: Float[Array, "N"],
    intensities: Float[Array, "N"],
    miller_indices: Int[Array, "N 3"],
    tolerance: scalar_float = MERGE_TOLERANCE,
) -> Tuple[
    Float[Array, "K"], Float[Array, "K"], Float[Array, "K"], Int[Array, "K 3"]
]:
    """Merge reflections that overlap in 2θ.

    Parameters
    ----------
    two_theta : Float[Array, "N"]
        Candidate peak positions in degrees, in enumeration order.
    d_spacing : Float[Array, "N"]
        Candidate d-spacings.
    intensities : Float[Array, "N"]
        Candidate intensities.
    miller_indices : Int[Array, "N 3"]
        Candidate Miller indices.
    tolerance : scalar_float, optional
        Two reflections are the same peak when their 2θ differ by strictly
        less than this many degrees. Default: 0.01

    Returns
    -------
    two_theta, d_spacing, intensities, miller_indices
        One entry per merged peak, in order of first appearance. Position,
        d-spacing and hkl are those of the first reflection of the group;
        the intensity is the sum over the group.

    Flow
    ----
    - Sort the candidates by 2θ and find, for each, the sorted slice of
      candidates strictly within tolerance of it
    - Walk the candidates in enumeration order with `lax.fori_loop`
    - Look up group leaders only inside that slice and add the candidate
      to the earliest-created group found, or open a new group
    - Slice the preallocated group arrays to the final group count

    Notes
    -----
    Each step touches a fixed window as wide as the most crowded slice,
    so the cost grows with N times the local peak density rather than N².
    """
    n_candidates: int = two_theta.shape[0]
    if n_candidates == 0:
        return two_theta, d_spacing, intensities, miller_indices
    by_angle: Int[Array, "N"] = jnp.argsort(two_theta, stable=True)
    sorted_theta: Float[Array, "N"] = two_theta[by_angle]
    rank: Int[Array, "N"] = (
        jnp.zeros_like(by_angle).at[by_angle].set(jnp.arange(n_candidates))
    )
    lower: Int[Array, "N"] = jnp.searchsorted(
        sorted_theta, two_theta - tolerance, side="right"
    )
    upper: Int[Array, "N"] = jnp.searchsorted(
        sorted_theta, two_theta + tolerance, side="left"
    )
    window: int = max(1, int(jnp.max(upper - lower)))
    offsets: Int[Array, "W"] = jnp.arange(window, dtype=by_angle.dtype)
    no_group = jnp.array(n_candidates, dtype=by_angle.dtype)

    def body_fn(i, carry):
        group_at, group_sum, leaders, count = carry
        start = jnp.minimum(lower[i], n_candidates - window)
        positions = start + offsets
        nearby_groups = lax.dynamic_slice(group_at, (start,), (window,))
        within: Bool[Array, "W"] = (
            (positions >= lower[i]) & (positions < upper[i]) & (nearby_groups >= 0)
        )
        earliest = jnp.min(jnp.where(within, nearby_groups, no_group))
        found = earliest < no_group
        target = jnp.where(found, earliest, count)
        group_sum = group_sum.at[target].add(intensities[i])
        leaders = leaders.at[target].set(jnp.where(found, leaders[target], i))
        group_at = group_at.at[rank[i]].set(jnp.where(found, -1, count))
        count = count + jnp.where(found, 0, 1)
        return group_at, group_sum, leaders, count

    init_carry = (
        jnp.full(n_candidates, -1, dtype=by_angle.dtype),
        jnp.zeros_like(intensities),
        jnp.zeros(n_candidates, dtype=by_angle.dtype),
        jnp.array(0, dtype=by_angle.dtype),
    )
    _, group_sum, leaders, final_count = lax.fori_loop(
        0, n_candidates, body_fn, init_carry
    )
    n_groups: int = int(final_count)
    leaders = leaders[:n_groups]
    return (
        two_theta[leaders],
        d_spacing[leaders],
        group_sum[:n_groups],
        miller_indices[leaders],
    )


@jaxtyped(typechecker=beartype)
def normalize_intensities(intensities: Float[Array, "N"]) -> Float[Array, "N"]:
    """Rescale so the largest intensity is exactly 100.

    Intensities are returned unchanged when empty or when their maximum is
    not positive.
    """
    if intensities.shape[0] == 0:
        return intensities
    max_intensity = jnp.max(intensities)
    return jnp.where(
        max_intensity > 0.0,
        intensities / jnp.where(max_intensity > 0.0, max_intensity, 1.0) * 100.0,
        intensities,
    )


@jaxtyped(typechecker=beartype)
def calculate_xrd_pattern(
    crystal: Crystal,
    wavelength: scalar_num,
    two_theta_min: scalar_num,
    two_theta_max: scalar_num,
) -> XRDPattern:
    """Simulate the powder diffraction peaks of a crystal.

    Parameters
    ----------
    crystal : Crystal
        Structure with every atom listed explicitly.
    wavelength : scalar_num
        X-ray wavelength in Å, e.g. 1.5418 for Cu Kα.
    two_theta_min : scalar_num
        Lower end of the 2θ window in degrees, inclusive.
    two_theta_max : scalar_num
        Upper end of the 2θ window in degrees, inclusive.

    Returns
    -------
    XRDPattern
        Peaks sorted by intensity, strongest first, normalised so the
        strongest is 100. Empty if no reflection survives.

    Raises
    ------
    ValueError
        If the wavelength is not positive or the lattice volume is below
        1e-10 Å³.

    Flow
    ----
    - Validate the wavelength and the lattice volume
    - Build the reciprocal lattice and the Miller-index search cube
    - Compute d, sinθ and 2θ for every (h, k, l) and keep the reachable
      reflections inside [two_theta_min, two_theta_max]
    - Compute |F|² for the kept reflections and drop those below 1e-10
    - Apply the Lorentz-polarization factor
    - Merge reflections closer than 0.01° in 2θ
    - Sort by intensity (stable, descending) and normalise to 100

    Examples
    --------
    >>> import xrdium as xr
    >>> a = 5.64
    >>> nacl = xr.types.create_crystal(
    ...     [[a, 0, 0], [0, a, 0], [0, 0, a]],
    ...     ["Na", "Na", "Na", "Na", "Cl", "Cl", "Cl", "Cl"],
    ...     [[0, 0, 0], [0.5, 0.5, 0], [0.5, 0, 0.5], [0, 0.5, 0.5],
    ...      [0.5, 0, 0], [0, 0.5, 0], [0, 0, 0.5], [0.5, 0.5, 0.5]],
    ...     name="NaCl",
    ... )
    >>> pattern = xr.simul.calculate_xrd_pattern(nacl, 1.5418, 10.0, 90.0)
    """
    if float(wavelength) <= 0.0:
        raise ValueError(f"Invalid wavelength: {float(wavelength)}")
    volume: float = float(lattice_volume(crystal.lattice))
    if abs(volume) < DEGENERATE_VOLUME:
        raise ValueError(f"Degenerate lattice: volume {volume:.3e} is zero")
    wavelength = float(wavelength)
    two_theta_min = float(two_theta_min)
    two_theta_max = float(two_theta_max)

    reciprocal: Float[Array, "3 3"] = reciprocal_lattice_vectors(crystal.lattice)
    bound: int = miller_search_bound(crystal.lattice, wavelength, two_theta_max)
    hkl: Int[Array, "P 3"] = generate_miller_indices(bound)
    g_vectors: Float[Array, "P 3"] = miller_to_reciprocal(hkl, reciprocal)
    d_spacing, sin_theta, two_theta, reachable = bragg_angles(g_vectors, wavelength)
    in_window: Bool[Array, "P"] = jnp.logical_and(
        reachable,
        jnp.logical_and(two_theta >= two_theta_min, two_theta <= two_theta_max),
    )
    keep: Int[Array, "Q"] = jnp.nonzero(in_window)[0]
    logger.debug(
        "%s: Miller bound %d, %d of %d reflections inside %.2f-%.2f deg",
        crystal.name,
        bound,
        keep.shape[0],
        hkl.shape[0],
        two_theta_min,
        two_theta_max,
    )

    cart_positions: Float[Array, "N 3"] = frac_to_cart(
        crystal.frac_positions, crystal.lattice
    )
    coefficients: Float[Array, "N 9"] = scattering_factor_table(crystal.elements)
    f_squared: Float[Array, "Q"] = structure_factor_intensity(
        g_vectors[keep], sin_theta[keep], wavelength, cart_positions, coefficients
    )
    present: Int[Array, "R"] = jnp.nonzero(f_squared >= ZERO_INTENSITY)[0]
    kept = keep[present]
    theta = jnp.arcsin(sin_theta[kept])
    intensities = f_squared[present] * lorentz_polarization(theta)

    merged_theta, merged_d, merged_intensity, merged_hkl = merge_equivalent_peaks(
        two_theta[kept], d_spacing[kept], intensities, hkl[kept]
    )
    logger.debug(
        "%s: %d reflections merged into %d peaks",
        crystal.name,
        kept.shape[0],
        merged_theta.shape[0],
    )

    order = jnp.argsort(-merged_intensity, stable=True)
    return create_xrd_pattern(
        two_theta=merged_theta[order],
        d_spacing=merged_d[order],
        intensities=normalize_intensities(merged_intensity[order]),
        miller_indices=merged_hkl[order],
        wavelength=wavelength,
        structure_name=crystal.name,
    )


class XRDCalculator(NamedTuple):
    """Powder diffraction calculator bound to one wavelength.

    Attributes
    ----------
    wavelength : float
        X-ray wavelength in Å.

    Notes
    -----
    Holds no mutable state; one instance can serve many crystals from
    several threads at once.
    """

    wavelength: float

    def calculate(
        self,
        crystal: Crystal,
        two_theta_min: scalar_num,
        two_theta_max: scalar_num,
    ) -> XRDPattern:
        """Pattern of `crystal` between `two_theta_min` and `two_theta_max`."""
        return calculate_xrd_pattern(
            crystal, self.wavelength, two_theta_min, two_theta_max
        )
