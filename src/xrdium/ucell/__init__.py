"""Unit cell and crystallographic utilities for powder diffraction.

Extended Summary
----------------
This module collects the lattice linear algebra used throughout xrdium:
lattice parameters, coordinate transforms, reciprocal space construction and
Miller-index enumeration.

Routine Listings
----------------
build_cell_vectors : function
    Convert lattice parameters to Cartesian cell vectors
lattice_parameters : function
    Extract lattice lengths and angles from a lattice
lattice_volume : function
    Signed cell volume
frac_to_cart : function
    Fractional to Cartesian coordinates
cart_to_frac : function
    Cartesian to fractional coordinates
reciprocal_lattice_vectors : function
    Reciprocal lattice vectors with the 2π factor
generate_miller_indices : function
    All Miller indices in a symmetric cube except the origin
miller_to_reciprocal : function
    Reciprocal lattice vectors for given Miller indices
"""

from .unitcell import (
    build_cell_vectors,
    cart_to_frac,
    frac_to_cart,
    generate_miller_indices,
    lattice_parameters,
    lattice_volume,
    miller_to_reciprocal,
    reciprocal_lattice_vectors,
)

__all__ = [
    "build_cell_vectors",
    "cart_to_frac",
    "frac_to_cart",
    "generate_miller_indices",
    "lattice_parameters",
    "lattice_volume",
    "miller_to_reciprocal",
    "reciprocal_lattice_vectors",
]
