"""Custom types and data structures for powder diffraction simulation.

Extended Summary
----------------
This module defines JAX-compatible data structures for representing crystal
structures and computed diffraction patterns. Array-carrying types are
PyTrees that support JAX transformations.

Routine Listings
----------------
Lattice : class
    JAX-compatible real-space lattice (rows a, b, c)
Atom : class
    Element label plus fractional coordinates
Crystal : class
    JAX-compatible crystal structure with lattice, positions and labels
Peak : class
    A single diffraction peak record
XRDPattern : class
    Discrete powder diffraction peak list
BroadenedPattern : class
    Uniformly sampled, broadened diffraction profile
create_lattice : function
    Factory function to create Lattice instances
create_crystal : function
    Factory function to create Crystal instances
crystal_from_atoms : function
    Build a Crystal from Atom records
crystal_atoms : function
    Return the atoms of a Crystal as Atom records
crystal_formula : function
    Chemical formula of a Crystal
create_xrd_pattern : function
    Factory function to create XRDPattern instances
create_broadened_pattern : function
    Factory function to create BroadenedPattern instances
pattern_peaks : function
    Unpack an XRDPattern into Peak records

Type Aliases
------------
- `scalar_float`:
    Union type for scalar float values (float or JAX scalar array)
- `scalar_int`:
    Union type for scalar integer values (int or JAX scalar array)
- `scalar_num`:
    Union type for scalar numeric values (int, float, or JAX scalar array)
- `non_jax_number`:
    Union type for non-JAX numeric values (int or float)
"""

from .crystal_types import (
    Atom,
    Crystal,
    Lattice,
    create_crystal,
    create_lattice,
    crystal_atoms,
    crystal_formula,
    crystal_from_atoms,
)
from .custom_types import non_jax_number, scalar_float, scalar_int, scalar_num
from .xrd_types import (
    BroadenedPattern,
    Peak,
    XRDPattern,
    create_broadened_pattern,
    create_xrd_pattern,
    pattern_peaks,
)

__all__ = [
    "Atom",
    "Crystal",
    "Lattice",
    "create_crystal",
    "create_lattice",
    "crystal_atoms",
    "crystal_formula",
    "crystal_from_atoms",
    "BroadenedPattern",
    "Peak",
    "XRDPattern",
    "create_broadened_pattern",
    "create_xrd_pattern",
    "pattern_peaks",
    "scalar_float",
    "scalar_int",
    "scalar_num",
    "non_jax_number",
]
