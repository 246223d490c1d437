"""Type aliases shared across xrdium.

Extended Summary
----------------
Scalar aliases accept either plain Python numbers or zero-dimensional JAX
arrays, so the same public functions work eagerly and under `jax.jit`.

Routine Listings
----------------
scalar_float : TypeAlias
    Union of float and a 0-d float JAX array
scalar_int : TypeAlias
    Union of int and a 0-d integer JAX array
scalar_num : TypeAlias
    Union of int, float and a 0-d numeric JAX array
non_jax_number : TypeAlias
    Union of int and float
"""

from typing import TypeAlias, Union

from jaxtyping import Array, Float, Int, Num

scalar_float: TypeAlias = Union[float, Float[Array, " "]]
scalar_int: TypeAlias = Union[int, Int[Array, " "]]
scalar_num: TypeAlias = Union[int, float, Num[Array, " "]]
non_jax_number: TypeAlias = Union[int, float]
