"""Data structures and factory functions for powder diffraction results.

Extended Summary
----------------
This module defines the containers handed from the diffraction calculator to
exporters and plotters: a discrete peak list and a broadened, uniformly
sampled intensity curve. Both are PyTrees, so they can be returned from
jitted code and manipulated with `jax.tree_util`.

Routine Listings
----------------
Peak : NamedTuple
    A single diffraction peak record
XRDPattern : PyTree
    Discrete peak list with angles, d-spacings, intensities and hkl
BroadenedPattern : PyTree
    Uniformly sampled profile intensities over a 2θ window
create_xrd_pattern : function
    Factory function to create XRDPattern instances with data validation
create_broadened_pattern : function
    Factory function to create BroadenedPattern instances with data
    validation
pattern_peaks : function
    Unpack an XRDPattern into a list of Peak records
"""

import jax
import jax.numpy as jnp
import numpy as np
from beartype import beartype
from beartype.typing import List, NamedTuple
from jax.tree_util import register_pytree_node_class
from jaxtyping import Array, Float, Int, Num, jaxtyped

from .custom_types import scalar_float

jax.config.update("jax_enable_x64", True)


class Peak(NamedTuple):
    """A computed diffraction peak.

    Attributes
    ----------
    two_theta : float
        Scattering angle 2θ in degrees.
    d_spacing : float
        Interplanar spacing in Ångstroms.
    intensity : float
        Relative intensity, 0 to 100 once normalised.
    h, k, l : int
        Miller indices of the first reflection merged into this peak.
    """

    two_theta: float
    d_spacing: float
    intensity: float
    h: int
    k: int
    l: int


@register_pytree_node_class
class XRDPattern(NamedTuple):
    """JAX-compatible powder diffraction peak list.

    Attributes
    ----------
    two_theta : Float[Array, "N"]
        Peak positions 2θ in degrees.
    d_spacing : Float[Array, "N"]
        d-spacings in Ångstroms.
    intensities : Float[Array, "N"]
        Relative intensities. The calculator orders peaks by intensity,
        strongest first, with the strongest at exactly 100.
    miller_indices : Int[Array, "N 3"]
        Miller indices (h, k, l) labelling each peak.
    wavelength : Float[Array, " "]
        X-ray wavelength in Ångstroms used for the calculation.
    structure_name : str
        Name of the source structure. Stored as auxiliary data.
    """

    two_theta: Float[Array, "N"]
    d_spacing: Float[Array, "N"]
    intensities: Float[Array, "N"]
    miller_indices: Int[Array, "N 3"]
    wavelength: Float[Array, " "]
    structure_name: str

    def tree_flatten(self):
        return (
            (
                self.two_theta,
                self.d_spacing,
                self.intensities,
                self.miller_indices,
                self.wavelength,
            ),
            self.structure_name,
        )

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        return cls(*children, structure_name=aux_data)


@register_pytree_node_class
class BroadenedPattern(NamedTuple):
    """JAX-compatible broadened powder diffraction profile.

    Attributes
    ----------
    two_theta : Float[Array, "S"]
        Sample angles in degrees, uniformly spaced.
    intensities : Float[Array, "S"]
        Profile intensity at each sample, rescaled to a maximum of 100.
    wavelength : Float[Array, " "]
        X-ray wavelength in Ångstroms.
    structure_name : str
        Name of the source structure. Stored as auxiliary data.
    """

    two_theta: Float[Array, "S"]
    intensities: Float[Array, "S"]
    wavelength: Float[Array, " "]
    structure_name: str

    def tree_flatten(self):
        return (
            (self.two_theta, self.intensities, self.wavelength),
            self.structure_name,
        )

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        return cls(*children, structure_name=aux_data)


@jaxtyped(typechecker=beartype)
def create_xrd_pattern(
    two_theta: Num[Array, "N"],
    d_spacing: Num[Array, "N"],
    intensities: Num[Array, "N"],
    miller_indices: Int[Array, "N 3"],
    wavelength: scalar_float,
    structure_name: str = "",
) -> XRDPattern:
    """Factory function to create an XRDPattern with validation.

    Parameters
    ----------
    two_theta : Num[Array, "N"]
        Peak positions in degrees.
    d_spacing : Num[Array, "N"]
        d-spacings in Ångstroms.
    intensities : Num[Array, "N"]
        Peak intensities.
    miller_indices : Int[Array, "N 3"]
        Miller indices per peak.
    wavelength : scalar_float
        Wavelength in Ångstroms, must be positive.
    structure_name : str, optional
        Source structure name. Default: "".

    Returns
    -------
    XRDPattern
        Validated pattern with float64 arrays.

    Raises
    ------
    ValueError
        If the wavelength is not positive or any intensity is negative.
    """
    two_theta = jnp.asarray(two_theta, dtype=jnp.float64)
    d_spacing = jnp.asarray(d_spacing, dtype=jnp.float64)
    intensities = jnp.asarray(intensities, dtype=jnp.float64)
    wavelength = jnp.asarray(wavelength, dtype=jnp.float64)
    if float(wavelength) <= 0.0:
        raise ValueError(f"Invalid wavelength: {float(wavelength)}")
    if bool(jnp.any(intensities < 0.0)):
        raise ValueError("intensities must be non-negative")
    return XRDPattern(
        two_theta=two_theta,
        d_spacing=d_spacing,
        intensities=intensities,
        miller_indices=miller_indices,
        wavelength=wavelength,
        structure_name=structure_name,
    )


@jaxtyped(typechecker=beartype)
def create_broadened_pattern(
    two_theta: Num[Array, "S"],
    intensities: Num[Array, "S"],
    wavelength: scalar_float,
    structure_name: str = "",
) -> BroadenedPattern:
    """Factory function to create a BroadenedPattern with validation.

    Raises
    ------
    ValueError
        If the wavelength is not positive.
    """
    two_theta = jnp.asarray(two_theta, dtype=jnp.float64)
    intensities = jnp.asarray(intensities, dtype=jnp.float64)
    wavelength = jnp.asarray(wavelength, dtype=jnp.float64)
    if float(wavelength) <= 0.0:
        raise ValueError(f"Invalid wavelength: {float(wavelength)}")
    return BroadenedPattern(
        two_theta=two_theta,
        intensities=intensities,
        wavelength=wavelength,
        structure_name=structure_name,
    )


@beartype
def pattern_peaks(pattern: XRDPattern) -> List[Peak]:
    """Unpack `pattern` into Peak records, keeping the stored order."""
    two_theta = np.asarray(pattern.two_theta)
    d_spacing = np.asarray(pattern.d_spacing)
    intensities = np.asarray(pattern.intensities)
    hkl = np.asarray(pattern.miller_indices)
    return [
        Peak(
            two_theta=float(two_theta[i]),
            d_spacing=float(d_spacing[i]),
            intensity=float(intensities[i]),
            h=int(hkl[i, 0]),
            k=int(hkl[i, 1]),
            l=int(hkl[i, 2]),
        )
        for i in range(two_theta.shape[0])
    ]
