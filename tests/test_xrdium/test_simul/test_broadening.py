"""Test suite for broadening.py.

Tests the unit-height profile kernels, the sampling grid and the broadened
curve built from stick patterns and Peak lists.
"""

import functools

import chex
import jax.numpy as jnp
import numpy as np
import pytest
from absl.testing import parameterized

from xrdium.simul.broadening import (
    BROADENING_PROFILES,
    broaden_pattern,
    gaussian_profile,
    lorentzian_profile,
    pseudo_voigt_profile,
    sample_grid,
    sum_peak_profiles,
)
from xrdium.simul.powder import calculate_xrd_pattern
from xrdium.types import BroadenedPattern, Peak, create_crystal

CU_KA = 1.5418


def _rock_salt():
    a = 5.64
    return create_crystal(
        np.eye(3) * a,
        ["Na", "Na", "Na", "Na", "Cl", "Cl", "Cl", "Cl"],
        [
            [0.0, 0.0, 0.0],
            [0.5, 0.5, 0.0],
            [0.5, 0.0, 0.5],
            [0.0, 0.5, 0.5],
            [0.5, 0.0, 0.0],
            [0.0, 0.5, 0.0],
            [0.0, 0.0, 0.5],
            [0.5, 0.5, 0.5],
        ],
        name="NaCl",
    )


class TestProfiles(chex.TestCase, parameterized.TestCase):
    """Test the profile kernels."""

    @chex.variants(with_jit=True, without_jit=True)
    @parameterized.named_parameters(
        ("gaussian", gaussian_profile),
        ("lorentzian", lorentzian_profile),
        ("pseudo_voigt", pseudo_voigt_profile),
    )
    def test_unit_height_and_half_width(self, kernel) -> None:
        """Height 1 at the centre and 1/2 at ±FWHM/2."""
        var_kernel = self.variant(kernel)
        fwhm = 0.2
        values = var_kernel(jnp.array([0.0, fwhm / 2.0, -fwhm / 2.0]), fwhm)
        chex.assert_trees_all_close(values, jnp.array([1.0, 0.5, 0.5]), rtol=1e-12)

    @chex.variants(with_jit=True, without_jit=True)
    def test_lorentzian_tails_heavier(self) -> None:
        """Far from the centre the Lorentzian dominates the Gaussian."""
        var_gaussian = self.variant(gaussian_profile)
        var_lorentzian = self.variant(lorentzian_profile)
        delta = jnp.array([0.5, 1.0, 2.0])
        self.assertTrue(
            bool(jnp.all(var_lorentzian(delta, 0.1) > var_gaussian(delta, 0.1)))
        )

    def test_pseudo_voigt_is_mean(self) -> None:
        """Pseudo-Voigt is the average of the two pure profiles."""
        delta = jnp.linspace(-1.0, 1.0, 41)
        chex.assert_trees_all_close(
            pseudo_voigt_profile(delta, 0.3),
            0.5 * (gaussian_profile(delta, 0.3) + lorentzian_profile(delta, 0.3)),
        )

    @chex.variants(with_jit=True, without_jit=True)
    def test_sum_peak_profiles(self) -> None:
        """The dense sum weights each profile by its intensity."""
        var_sum = self.variant(
            functools.partial(sum_peak_profiles, kernel=gaussian_profile)
        )
        samples = jnp.array([20.0, 30.0])
        curve = var_sum(samples, jnp.array([20.0, 30.0]), jnp.array([2.0, 5.0]), 0.1)
        chex.assert_trees_all_close(curve, jnp.array([2.0, 5.0]), atol=1e-12)


class TestSampleGrid(chex.TestCase, parameterized.TestCase):
    """Test the uniform 2θ grid."""

    @parameterized.named_parameters(
        ("exact", 10.0, 20.0, 0.5, 21, 20.0),
        ("overshoot", 10.0, 20.0, 0.3, 35, 20.2),
        ("single_step", 10.0, 10.5, 1.0, 2, 11.0),
    )
    def test_sample_count(self, lo, hi, step, count, last) -> None:
        """ceil((max - min)/step) + 1 samples starting at min."""
        grid = sample_grid(lo, hi, step)
        chex.assert_shape(grid, (count,))
        self.assertEqual(float(grid[0]), lo)
        self.assertAlmostEqual(float(grid[-1]), last, places=10)
        chex.assert_trees_all_close(jnp.diff(grid), jnp.full(count - 1, step))


class TestBroadenPattern(chex.TestCase, parameterized.TestCase):
    """Test broaden_pattern."""

    def setUp(self) -> None:
        """NaCl stick pattern."""
        super().setUp()
        self.pattern = calculate_xrd_pattern(_rock_salt(), CU_KA, 10.0, 90.0)

    @parameterized.named_parameters(
        ("gaussian", "gaussian"),
        ("lorentzian", "lorentzian"),
        ("pseudo_voigt", "pseudo-voigt"),
    )
    def test_maximum_at_strongest_peak(self, profile: str) -> None:
        """The curve peaks within one step of the strongest stick."""
        step = 0.01
        broadened = broaden_pattern(
            self.pattern, 10.0, 90.0, step=step, fwhm=0.1, profile=profile
        )
        self.assertIsInstance(broadened, BroadenedPattern)
        self.assertEqual(float(jnp.max(broadened.intensities)), 100.0)
        top = float(broadened.two_theta[jnp.argmax(broadened.intensities)])
        self.assertLessEqual(abs(top - float(self.pattern.two_theta[0])), step)
        self.assertEqual(broadened.structure_name, "NaCl")
        self.assertAlmostEqual(float(broadened.wavelength), CU_KA)

    def test_narrow_profiles_converge_to_sticks(self) -> None:
        """With a small FWHM, the curve reproduces stick heights."""
        broadened = broaden_pattern(
            self.pattern, 10.0, 90.0, step=0.001, fwhm=0.01, profile="gaussian"
        )
        for position, height in zip(
            np.asarray(self.pattern.two_theta), np.asarray(self.pattern.intensities)
        ):
            nearest = int(jnp.argmin(jnp.abs(broadened.two_theta - position)))
            self.assertAlmostEqual(
                float(broadened.intensities[nearest]), float(height), delta=2.0
            )

    def test_sample_count_and_start(self) -> None:
        """Defaults give a 0.02° grid from the lower bound."""
        broadened = broaden_pattern(self.pattern, 20.0, 40.0)
        chex.assert_shape(broadened.two_theta, (1001,))
        self.assertEqual(float(broadened.two_theta[0]), 20.0)

    def test_none_profile_is_flat_zero(self) -> None:
        """The "none" profile contributes nothing at all."""
        broadened = broaden_pattern(self.pattern, 10.0, 90.0, profile="none", fwhm=0.0)
        chex.assert_trees_all_equal(
            broadened.intensities, jnp.zeros_like(broadened.two_theta)
        )

    def test_peak_list_input(self) -> None:
        """Peak records are accepted when a wavelength is given."""
        peaks = [
            Peak(two_theta=30.0, d_spacing=2.98, intensity=50.0, h=1, k=1, l=1),
            Peak(two_theta=40.0, d_spacing=2.25, intensity=100.0, h=2, k=0, l=0),
        ]
        broadened = broaden_pattern(
            peaks,
            25.0,
            45.0,
            step=0.01,
            fwhm=0.2,
            profile="gaussian",
            wavelength=CU_KA,
        )
        index_30 = int(jnp.argmin(jnp.abs(broadened.two_theta - 30.0)))
        index_40 = int(jnp.argmin(jnp.abs(broadened.two_theta - 40.0)))
        self.assertAlmostEqual(float(broadened.intensities[index_40]), 100.0, places=6)
        self.assertAlmostEqual(float(broadened.intensities[index_30]), 50.0, places=6)

    def test_weak_peaks_ignored(self) -> None:
        """Peaks weaker than 0.1 do not contribute."""
        peaks = [
            Peak(two_theta=30.0, d_spacing=2.98, intensity=0.05, h=1, k=1, l=1),
            Peak(two_theta=40.0, d_spacing=2.25, intensity=100.0, h=2, k=0, l=0),
        ]
        broadened = broaden_pattern(
            peaks,
            25.0,
            45.0,
            step=0.01,
            fwhm=0.1,
            profile="gaussian",
            wavelength=CU_KA,
        )
        index_30 = int(jnp.argmin(jnp.abs(broadened.two_theta - 30.0)))
        self.assertEqual(float(broadened.intensities[index_30]), 0.0)

    def test_peak_list_needs_wavelength(self) -> None:
        """A bare Peak list does not carry a wavelength."""
        peaks = [Peak(30.0, 2.98, 50.0, 1, 1, 1)]
        with pytest.raises(ValueError, match="wavelength"):
            broaden_pattern(peaks, 25.0, 45.0)

    def test_empty_pattern(self) -> None:
        """No peaks gives a flat zero curve."""
        empty = calculate_xrd_pattern(_rock_salt(), CU_KA, 10.0, 20.0)
        broadened = broaden_pattern(empty, 10.0, 20.0, profile="gaussian")
        self.assertEqual(float(jnp.max(broadened.intensities)), 0.0)

    @parameterized.named_parameters(
        ("unknown_profile", {"profile": "voigt"}, "profile"),
        ("zero_step", {"step": 0.0}, "step"),
        ("negative_step", {"step": -0.02}, "step"),
        ("zero_fwhm", {"fwhm": 0.0}, "fwhm"),
        ("empty_range", {"two_theta_max": 10.0}, "range"),
        ("reversed_range", {"two_theta_max": 5.0}, "range"),
    )
    def test_invalid_arguments(self, overrides, message: str) -> None:
        """Bad parameters raise ValueError."""
        arguments = {
            "two_theta_min": 10.0,
            "two_theta_max": 90.0,
            "step": 0.02,
            "fwhm": 0.1,
            "profile": "gaussian",
        }
        arguments.update(overrides)
        with pytest.raises(ValueError, match=message):
            broaden_pattern(self.pattern, **arguments)

    def test_profile_names(self) -> None:
        """All four profile names are accepted."""
        self.assertEqual(
            BROADENING_PROFILES,
            frozenset({"none", "gaussian", "lorentzian", "pseudo-voigt"}),
        )


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
