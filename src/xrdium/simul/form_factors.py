"""Atomic X-ray scattering factors.

Extended Summary
----------------
Lookup and evaluation of the nine-parameter analytic X-ray scattering factor
f(s) = c + Σ aᵢ·exp(−bᵢ·s²) with s = sin(θ)/λ. Element labels that are not
in the table degrade to a two-character prefix, then a one-character prefix,
and finally to a scattering factor of zero.

Routine Listings
----------------
ScatteringFactorParams : NamedTuple
    Four amplitudes, four decay constants and a constant offset
SCATTERING_FACTORS : Mapping
    Read-only table from element symbol to ScatteringFactorParams
get_scattering_params : function
    Resolve an element label to its parameters, or None
evaluate_scattering_factor : function
    Evaluate f(s) for packed coefficient arrays
calculate_scattering_factor : function
    f(s) for an element label, zero for unknown labels
scattering_factor_table : function
    Packed coefficient rows for a sequence of element labels

Notes
-----
The prefix fallback is ambiguous for labels whose first letter is itself an
element symbol: "Sn" is not tabulated and resolves to "S". The matching order
exact → two characters → one character → zero is kept deliberately.
"""

from types import MappingProxyType

import jax
import jax.numpy as jnp
from beartype import beartype
from beartype.typing import Mapping, NamedTuple, Optional, Sequence, Tuple, Union
from jaxtyping import Array, Float, jaxtyped

from xrdium.types import scalar_num

from .scattering_tables import ITC_COEFFICIENTS

jax.config.update("jax_enable_x64", True)

N_COEFFICIENTS: int = 9


class ScatteringFactorParams(NamedTuple):
    """Parameters of the analytic scattering factor of one element.

    Attributes
    ----------
    a : Tuple[float, float, float, float]
        Gaussian amplitudes a1..a4 in electrons.
    b : Tuple[float, float, float, float]
        Gaussian decay constants b1..b4 in Å².
    c : float
        Constant offset in electrons.
    """

    a: Tuple[float, float, float, float]
    b: Tuple[float, float, float, float]
    c: float

    def as_array(self) -> Float[Array, " 9"]:
        """Pack as [a1, a2, a3, a4, b1, b2, b3, b4, c]."""
        return jnp.array([*self.a, *self.b, self.c], dtype=jnp.float64)

    def evaluate(self, s: scalar_num) -> Float[Array, " "]:
        """Scattering factor at s = sin(θ)/λ."""
        return evaluate_scattering_factor(self.as_array(), s)


SCATTERING_FACTORS: Mapping[str, ScatteringFactorParams] = MappingProxyType(
    {
        symbol: ScatteringFactorParams(a=a, b=b, c=c)
        for symbol, (a, b, c) in ITC_COEFFICIENTS.items()
    }
)


@beartype
def get_scattering_params(element: str) -> Optional[ScatteringFactorParams]:
    """
    Description
    -----------
    Resolve an element label to scattering factor parameters.

    Parameters
    ----------
    - `element` (str):
        Element symbol or site label, e.g. "Fe", "Fe1", "O2".

    Returns
    -------
    - `params` (Optional[ScatteringFactorParams]):
        Parameters of the first match, or None if nothing matches.

    Flow
    ----
    - Try the label exactly
    - Try its first two characters ("Fe1" -> "Fe")
    - Try its first character ("O2" -> "O")
    - Give up and return None
    """
    for candidate in (element, element[:2], element[:1]):
        params = SCATTERING_FACTORS.get(candidate)
        if params is not None:
            return params
    return None


@jaxtyped(typechecker=beartype)
def evaluate_scattering_factor(
    coefficients: Float[Array, "*batch 9"],
    s: Union[scalar_num, Float[Array, "..."]],
) -> Float[Array, "..."]:
    """Evaluate packed scattering factor coefficients.

    Parameters
    ----------
    coefficients : Float[Array, "*batch 9"]
        Rows of [a1..a4, b1..b4, c]. An all-zero row evaluates to zero.
    s : Union[scalar_num, Float[Array, "..."]]
        sin(θ)/λ in 1/Å. Broadcast against the batch dimensions of
        `coefficients`, so s of shape (M, 1) with coefficients of shape
        (N, 9) gives an (M, N) result.

    Returns
    -------
    Float[Array, "..."]
        f(s) in electrons.
    """
    amplitudes: Float[Array, "*batch 4"] = coefficients[..., 0:4]
    decays: Float[Array, "*batch 4"] = coefficients[..., 4:8]
    offset: Float[Array, "*batch"] = coefficients[..., 8]
    s_squared = jnp.square(jnp.asarray(s, dtype=jnp.float64))[..., None]
    gaussians = amplitudes * jnp.exp(-decays * s_squared)
    return offset + jnp.sum(gaussians, axis=-1)


@jaxtyped(typechecker=beartype)
def calculate_scattering_factor(
    element: str,
    s: scalar_num,
) -> Float[Array, " "]:
    """Scattering factor f(s) of an element label.

    Parameters
    ----------
    element : str
        Element symbol or site label.
    s : scalar_num
        sin(θ)/λ in 1/Å.

    Returns
    -------
    Float[Array, " "]
        f(s) in electrons; zero when the label resolves to no element.

    Examples
    --------
    >>> import xrdium as xr
    >>> f_si = xr.simul.calculate_scattering_factor("Si", 0.0)  # close to 14
    """
    params = get_scattering_params(element)
    if params is None:
        return jnp.asarray(0.0, dtype=jnp.float64)
    return params.evaluate(s)


@beartype
def scattering_factor_table(elements: Sequence[str]) -> Float[Array, "N 9"]:
    """Packed coefficient rows for each label in `elements`.

    Unknown labels get an all-zero row, so those atoms scatter with f = 0
    at every s and drop out of every structure factor.
    """
    rows = []
    for element in elements:
        params = get_scattering_params(element)
        if params is None:
            rows.append(jnp.zeros(N_COEFFICIENTS, dtype=jnp.float64))
        else:
            rows.append(params.as_array())
    if not rows:
        return jnp.zeros((0, N_COEFFICIENTS), dtype=jnp.float64)
    return jnp.stack(rows, axis=0)
