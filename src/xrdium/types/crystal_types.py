"""
Module: types.crystal_types
---------------------------
Data structures and factory functions for crystal structure representation.

Classes
-------
- `Lattice`:
    JAX-compatible 3x3 matrix of real-space lattice vectors (rows a, b, c)
- `Atom`:
    Element label plus fractional coordinate triple
- `Crystal`:
    JAX-compatible crystal structure with a lattice, fractional positions
    and element labels

Factory Functions
-----------------
- `create_lattice`:
    Factory function to create Lattice instances with data validation
- `create_crystal`:
    Factory function to create Crystal instances with data validation
- `crystal_from_atoms`:
    Build a Crystal from a sequence of Atom records
- `crystal_atoms`:
    Return the atoms of a Crystal as Atom records
- `crystal_formula`:
    Chemical formula string from the element labels of a Crystal
"""

from collections import Counter

import jax
import jax.numpy as jnp
import numpy as np
from beartype import beartype
from beartype.typing import List, NamedTuple, Sequence, Tuple, Union
from jax.tree_util import register_pytree_node_class
from jaxtyping import Array, Float, Num, jaxtyped

from .custom_types import non_jax_number

jax.config.update("jax_enable_x64", True)

DEGENERATE_VOLUME: float = 1e-10


@register_pytree_node_class
class Lattice(NamedTuple):
    """
    Description
    -----------
    Real-space lattice of a periodic crystal.

    Attributes
    ----------
    - `matrix` (Float[Array, "3 3"]):
        Lattice vectors as rows [a, b, c] in Cartesian Ångstroms.

    Notes
    -----
    A Lattice is immutable. Lengths, angles and volume are derived on
    demand by the functions in `xrdium.ucell` and never stored.
    """

    matrix: Float[Array, "3 3"]

    def tree_flatten(self):
        return ((self.matrix,), None)

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        return cls(*children)


class Atom(NamedTuple):
    """
    Description
    -----------
    A single atomic site.

    Attributes
    ----------
    - `element` (str):
        Element symbol or site label, case-sensitive (e.g. "Fe", "Fe1").
    - `position` (Tuple[float, float, float]):
        Fractional coordinates. Not wrapped into [0, 1).
    """

    element: str
    position: Tuple[float, float, float]


@register_pytree_node_class
class Crystal(NamedTuple):
    """
    Description
    -----------
    A JAX-compatible crystal structure: one lattice plus an ordered list of
    explicit atoms. Symmetry is never expanded, duplicates are kept.

    Attributes
    ----------
    - `lattice` (Lattice):
        Real-space lattice.
    - `frac_positions` (Float[Array, "N 3"]):
        Fractional coordinates of every atom, one row per atom.
    - `elements` (Tuple[str, ...]):
        Element labels, same order and length as `frac_positions`.
    - `name` (str):
        Structure name carried through to the diffraction pattern.

    Notes
    -----
    `elements` and `name` are stored as auxiliary PyTree data, so a Crystal
    can be passed through `jax.jit` with its labels treated as static.
    """

    lattice: Lattice
    frac_positions: Float[Array, "N 3"]
    elements: Tuple[str, ...]
    name: str

    def tree_flatten(self):
        return (
            (self.lattice, self.frac_positions),
            (self.elements, self.name),
        )

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        elements, name = aux_data
        lattice, frac_positions = children
        return cls(
            lattice=lattice,
            frac_positions=frac_positions,
            elements=elements,
            name=name,
        )


@jaxtyped(typechecker=beartype)
def create_lattice(
    matrix: Union[
        Num[Array, "3 3"],
        Num[np.ndarray, "3 3"],
        Sequence[Sequence[non_jax_number]],
    ],
) -> Lattice:
    """
    Description
    -----------
    Factory function to create a Lattice with validation.

    Parameters
    ----------
    - `matrix` (Union[Num[Array, "3 3"], Num[np.ndarray, "3 3"], Sequence]):
        Lattice vectors as rows in Ångstroms.

    Returns
    -------
    - `lattice` (Lattice):
        Validated lattice with a float64 matrix.

    Raises
    ------
    - ValueError:
        If the matrix is not 3x3, contains non-finite values, or has a
        near-zero determinant (|det| < 1e-10).
    """
    matrix = jnp.asarray(matrix, dtype=jnp.float64)
    if matrix.shape != (3, 3):
        raise ValueError(f"lattice matrix must have shape (3, 3), got {matrix.shape}")
    if not bool(jnp.all(jnp.isfinite(matrix))):
        raise ValueError("lattice matrix contains non-finite values")
    volume = float(jnp.linalg.det(matrix))
    if abs(volume) < DEGENERATE_VOLUME:
        raise ValueError(f"Degenerate lattice: volume {volume:.3e} is zero")
    return Lattice(matrix=matrix)


@jaxtyped(typechecker=beartype)
def create_crystal(
    lattice: Union[
        Lattice,
        Num[Array, "3 3"],
        Num[np.ndarray, "3 3"],
        Sequence[Sequence[non_jax_number]],
    ],
    elements: Sequence[str],
    frac_positions: Union[
        Num[Array, "N 3"],
        Num[np.ndarray, "N 3"],
        Sequence[Sequence[non_jax_number]],
    ],
    name: str = "",
) -> Crystal:
    """
    Description
    -----------
    Factory function to create a Crystal instance with validation.

    Parameters
    ----------
    - `lattice` (Union[Lattice, matrix-like]):
        Lattice, or a 3x3 matrix of row vectors that is passed through
        `create_lattice`.
    - `elements` (Sequence[str]):
        Element label for every atom.
    - `frac_positions` (Union[Num[Array, "N 3"], matrix-like]):
        Fractional coordinates, one row per atom.
    - `name` (str, optional):
        Structure name. Default: "".

    Returns
    -------
    - `crystal` (Crystal):
        Validated crystal structure.

    Raises
    ------
    - ValueError:
        If positions are not (N, 3), contain non-finite values, or the
        number of labels does not match the number of positions.

    Flow
    ----
    - Promote a raw matrix to a Lattice through `create_lattice`
    - Convert positions to float64, reshaping an empty input to (0, 3)
    - Check position shape and finiteness
    - Check one element label per position
    - Return the Crystal with labels frozen into a tuple
    """
    if not isinstance(lattice, Lattice):
        lattice = create_lattice(lattice)
    frac_positions = jnp.asarray(frac_positions, dtype=jnp.float64)
    if frac_positions.size == 0:
        frac_positions = frac_positions.reshape(0, 3)
    elements = tuple(elements)

    def check_shape():
        if frac_positions.ndim != 2 or frac_positions.shape[1] != 3:
            raise ValueError("frac_positions must have shape (N, 3)")
        if len(elements) != frac_positions.shape[0]:
            raise ValueError(
                f"got {len(elements)} element labels for "
                f"{frac_positions.shape[0]} positions"
            )

    def check_finiteness():
        if not bool(jnp.all(jnp.isfinite(frac_positions))):
            raise ValueError("frac_positions contain non-finite values")

    check_shape()
    check_finiteness()
    return Crystal(
        lattice=lattice,
        frac_positions=frac_positions,
        elements=elements,
        name=name,
    )


@beartype
def crystal_from_atoms(
    lattice: Union[
        Lattice,
        Num[Array, "3 3"],
        Num[np.ndarray, "3 3"],
        Sequence[Sequence[non_jax_number]],
    ],
    atoms: Sequence[Atom],
    name: str = "",
) -> Crystal:
    """Build a Crystal from Atom records, keeping their order."""
    elements = [atom.element for atom in atoms]
    positions = [[float(x) for x in atom.position] for atom in atoms]
    return create_crystal(lattice, elements, positions, name=name)


@beartype
def crystal_atoms(crystal: Crystal) -> List[Atom]:
    """Return the atoms of `crystal` as Atom records."""
    positions = np.asarray(crystal.frac_positions, dtype=np.float64)
    return [
        Atom(element, (float(pos[0]), float(pos[1]), float(pos[2])))
        for element, pos in zip(crystal.elements, positions)
    ]


@beartype
def crystal_formula(crystal: Crystal) -> str:
    """
    Description
    -----------
    Chemical formula built from the element labels of a crystal.

    Labels are counted verbatim and listed alphabetically; a count of one
    is omitted, so rock-salt NaCl with eight atoms gives "Cl4Na4".

    Parameters
    ----------
    - `crystal` (Crystal):
        Crystal structure.

    Returns
    -------
    - `formula` (str):
        Formula string, empty for a crystal without atoms.
    """
    counts = Counter(crystal.elements)
    return "".join(
        element if count == 1 else f"{element}{count}"
        for element, count in sorted(counts.items())
    )
