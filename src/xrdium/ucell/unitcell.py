"""Functions for unit cell calculations and transformations.

Extended Summary
----------------
This module provides the linear algebra of a real-space lattice in one place:
lattice parameters and volume, fractional/Cartesian coordinate conversion,
reciprocal lattice construction and Miller-index enumeration.

Routine Listings
----------------
build_cell_vectors : function
    Construct unit cell vectors from lengths and angles
lattice_parameters : function
    Compute unit cell lengths and angles from a lattice
lattice_volume : function
    Signed unit cell volume a·(b×c)
frac_to_cart : function
    Convert fractional coordinates to Cartesian coordinates
cart_to_frac : function
    Convert Cartesian coordinates to fractional coordinates
reciprocal_lattice_vectors : function
    Reciprocal lattice vectors b1, b2, b3 including the 2π factor
generate_miller_indices : function
    Enumerate all (h, k, l) in a symmetric cube except the origin
miller_to_reciprocal : function
    Convert Miller indices to reciprocal lattice vectors G

Notes
-----
All functions are JAX-compatible and can be jitted. Matrices follow the row
convention: lattice vectors are rows and coordinates are row vectors, so
Cartesian = fractional @ matrix.
"""

import jax
import jax.numpy as jnp
from beartype import beartype
from beartype.typing import Tuple
from jaxtyping import Array, Bool, Float, Int, Num, jaxtyped

from xrdium.types import Lattice, scalar_float

jax.config.update("jax_enable_x64", True)

DEGENERATE_VOLUME: float = 1e-10


@jaxtyped(typechecker=beartype)
def build_cell_vectors(
    a: scalar_float,
    b: scalar_float,
    c: scalar_float,
    alpha: scalar_float,
    beta: scalar_float,
    gamma: scalar_float,
) -> Float[Array, "3 3"]:
    r"""Construct unit cell vectors from lengths and angles.

    Parameters
    ----------
    a, b, c : scalar_float
        Direct cell lengths in angstroms.
    alpha, beta, gamma : scalar_float
        Direct cell angles in degrees.

    Returns
    -------
    Float[Array, "3 3"]
        Unit cell vectors as rows of 3x3 matrix.

    Algorithm
    ---------
    - Convert angles to radians
    - Build first vector along x-axis
    - Build second vector in x-y plane
    - Build third vector using all angles
    - Return 3x3 matrix of vectors

    Examples
    --------
    >>> import xrdium as xr
    >>> vectors = xr.ucell.build_cell_vectors(3.0, 3.0, 5.0, 90.0, 90.0, 120.0)
    >>> lattice = xr.types.create_lattice(vectors)
    """
    alpha_rad: Float[Array, " "] = jnp.radians(alpha)
    beta_rad: Float[Array, " "] = jnp.radians(beta)
    gamma_rad: Float[Array, " "] = jnp.radians(gamma)
    a_vec: Float[Array, " 3"] = jnp.array([a, 0.0, 0.0], dtype=jnp.float64)
    b_x: Float[Array, " "] = b * jnp.cos(gamma_rad)
    b_y: Float[Array, " "] = b * jnp.sin(gamma_rad)
    b_vec: Float[Array, " 3"] = jnp.array([b_x, b_y, 0.0], dtype=jnp.float64)
    c_x: Float[Array, " "] = c * jnp.cos(beta_rad)
    c_y: Float[Array, " "] = c * (
        (jnp.cos(alpha_rad) - jnp.cos(beta_rad) * jnp.cos(gamma_rad))
        / jnp.sin(gamma_rad)
    )
    c_z_sq: Float[Array, " "] = (c**2) - (c_x**2) - (c_y**2)
    c_z: Float[Array, " "] = jnp.sqrt(jnp.clip(c_z_sq, min=0.0))
    c_vec: Float[Array, " 3"] = jnp.array([c_x, c_y, c_z], dtype=jnp.float64)
    cell_vectors: Float[Array, "3 3"] = jnp.stack([a_vec, b_vec, c_vec], axis=0)
    return cell_vectors


@jaxtyped(typechecker=beartype)
def lattice_parameters(
    lattice: Lattice,
) -> Tuple[Float[Array, " 3"], Float[Array, " 3"]]:
    """Compute unit cell lengths and angles from a lattice.

    Parameters
    ----------
    lattice : Lattice
        Real-space lattice.

    Returns
    -------
    lengths : Float[Array, " 3"]
        Cell lengths [a, b, c] in angstroms.
    angles : Float[Array, " 3"]
        Cell angles [α, β, γ] in degrees, where α is the angle between
        b and c, β between a and c, and γ between a and b.
    """
    vectors: Float[Array, "3 3"] = lattice.matrix
    lengths: Float[Array, " 3"] = jnp.linalg.norm(vectors, axis=1)
    pairs: Tuple[Tuple[int, int], ...] = ((1, 2), (0, 2), (0, 1))
    cosines: Float[Array, " 3"] = jnp.array(
        [
            jnp.dot(vectors[i], vectors[j]) / (lengths[i] * lengths[j])
            for i, j in pairs
        ]
    )
    angles: Float[Array, " 3"] = jnp.degrees(
        jnp.arccos(jnp.clip(cosines, -1.0, 1.0))
    )
    return lengths, angles


@jaxtyped(typechecker=beartype)
def lattice_volume(lattice: Lattice) -> Float[Array, " "]:
    """Signed unit cell volume a·(b×c) in cubic angstroms."""
    a_vec: Float[Array, " 3"] = lattice.matrix[0]
    b_vec: Float[Array, " 3"] = lattice.matrix[1]
    c_vec: Float[Array, " 3"] = lattice.matrix[2]
    return jnp.dot(a_vec, jnp.cross(b_vec, c_vec))


@jaxtyped(typechecker=beartype)
def frac_to_cart(
    frac_positions: Num[Array, "N 3"],
    lattice: Lattice,
) -> Float[Array, "N 3"]:
    """Convert fractional coordinates to Cartesian coordinates.

    Parameters
    ----------
    frac_positions : Num[Array, "N 3"]
        Fractional coordinates, one row per atom.
    lattice : Lattice
        Real-space lattice.

    Returns
    -------
    Float[Array, "N 3"]
        Cartesian coordinates in angstroms, x·a + y·b + z·c per row.
    """
    return jnp.asarray(frac_positions, dtype=jnp.float64) @ lattice.matrix


@jaxtyped(typechecker=beartype)
def cart_to_frac(
    cart_positions: Num[Array, "N 3"],
    lattice: Lattice,
) -> Float[Array, "N 3"]:
    """Convert Cartesian coordinates to fractional coordinates.

    Parameters
    ----------
    cart_positions : Num[Array, "N 3"]
        Cartesian coordinates in angstroms.
    lattice : Lattice
        Real-space lattice. Must be non-degenerate, which `create_lattice`
        guarantees.

    Returns
    -------
    Float[Array, "N 3"]
        Fractional coordinates. Values are not wrapped into [0, 1).
    """
    cart: Float[Array, "N 3"] = jnp.asarray(cart_positions, dtype=jnp.float64)
    return jnp.linalg.solve(lattice.matrix.T, cart.T).T


@jaxtyped(typechecker=beartype)
def reciprocal_lattice_vectors(lattice: Lattice) -> Float[Array, "3 3"]:
    r"""Reciprocal lattice vectors including the 2π factor.

    Parameters
    ----------
    lattice : Lattice
        Real-space lattice with rows a, b, c.

    Returns
    -------
    Float[Array, "3 3"]
        Rows b1 = 2π(b×c)/V, b2 = 2π(c×a)/V, b3 = 2π(a×b)/V, so that
        a_i · b_j = 2π δ_ij. All zeros when |V| < 1e-10.

    Notes
    -----
    The zero result for a degenerate cell keeps the function jittable;
    callers that need a usable reciprocal lattice must reject degenerate
    cells before calling.
    """
    a_vec: Float[Array, " 3"] = lattice.matrix[0]
    b_vec: Float[Array, " 3"] = lattice.matrix[1]
    c_vec: Float[Array, " 3"] = lattice.matrix[2]
    b_cross_c: Float[Array, " 3"] = jnp.cross(b_vec, c_vec)
    c_cross_a: Float[Array, " 3"] = jnp.cross(c_vec, a_vec)
    a_cross_b: Float[Array, " 3"] = jnp.cross(a_vec, b_vec)
    volume: Float[Array, " "] = jnp.dot(a_vec, b_cross_c)
    is_degenerate: Bool[Array, " "] = jnp.abs(volume) < DEGENERATE_VOLUME
    safe_volume: Float[Array, " "] = jnp.where(is_degenerate, 1.0, volume)
    reciprocal: Float[Array, "3 3"] = (
        2.0
        * jnp.pi
        * jnp.stack([b_cross_c, c_cross_a, a_cross_b], axis=0)
        / safe_volume
    )
    return jnp.where(is_degenerate, jnp.zeros_like(reciprocal), reciprocal)


@beartype
def generate_miller_indices(bound: int) -> Int[Array, "M 3"]:
    """Enumerate every integer (h, k, l) in [-bound, bound]³ except (0,0,0).

    Parameters
    ----------
    bound : int
        Largest absolute index. Must be at least 1.

    Returns
    -------
    Int[Array, "M 3"]
        Miller indices with M = (2·bound + 1)³ - 1, ordered with h
        outermost and l innermost, each ascending from -bound.

    Raises
    ------
    ValueError
        If `bound` is smaller than 1.
    """
    if bound < 1:
        raise ValueError(f"Miller index bound must be >= 1, got {bound}")
    indices: Int[Array, " n"] = jnp.arange(-bound, bound + 1)
    hh, kk, ll = jnp.meshgrid(indices, indices, indices, indexing="ij")
    hkl: Int[Array, "P 3"] = jnp.stack(
        [hh.ravel(), kk.ravel(), ll.ravel()], axis=-1
    )
    origin_row: int = (hkl.shape[0] - 1) // 2
    return jnp.delete(hkl, origin_row, axis=0)


@jaxtyped(typechecker=beartype)
def miller_to_reciprocal(
    hkl: Num[Array, "M 3"],
    reciprocal_vectors: Float[Array, "3 3"],
) -> Float[Array, "M 3"]:
    """Reciprocal lattice vectors G = h·b1 + k·b2 + l·b3 in 1/angstroms."""
    return jnp.asarray(hkl, dtype=jnp.float64) @ reciprocal_vectors
