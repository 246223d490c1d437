"""Tests for types.crystal_types module.

Covers lattice and crystal factories, their validation errors, PyTree
behaviour under JAX transformations and the Atom/formula helpers.
"""

import chex
import jax
import jax.numpy as jnp
import numpy as np
import pytest
from absl.testing import parameterized

from xrdium.types import (
    Atom,
    Crystal,
    Lattice,
    create_crystal,
    create_lattice,
    crystal_atoms,
    crystal_formula,
    crystal_from_atoms,
)

NACL_A = 5.64
NACL_ELEMENTS = ["Na", "Na", "Na", "Na", "Cl", "Cl", "Cl", "Cl"]
NACL_POSITIONS = [
    [0.0, 0.0, 0.0],
    [0.5, 0.5, 0.0],
    [0.5, 0.0, 0.5],
    [0.0, 0.5, 0.5],
    [0.5, 0.0, 0.0],
    [0.0, 0.5, 0.0],
    [0.0, 0.0, 0.5],
    [0.5, 0.5, 0.5],
]


class TestCreateLattice(chex.TestCase, parameterized.TestCase):
    """Test create_lattice validation."""

    def test_accepts_nested_lists(self) -> None:
        """Nested Python lists are converted to a float64 matrix."""
        lattice = create_lattice([[3, 0, 0], [0, 4, 0], [0, 0, 5]])
        self.assertIsInstance(lattice, Lattice)
        chex.assert_shape(lattice.matrix, (3, 3))
        self.assertEqual(lattice.matrix.dtype, jnp.float64)
        chex.assert_trees_all_close(
            lattice.matrix, jnp.diag(jnp.array([3.0, 4.0, 5.0]))
        )

    def test_accepts_numpy_array(self) -> None:
        """A numpy matrix is accepted."""
        lattice = create_lattice(np.eye(3) * 2.5)
        chex.assert_trees_all_close(lattice.matrix, jnp.eye(3) * 2.5)

    @parameterized.named_parameters(
        ("coplanar", [[1.0, 0.0, 0.0], [2.0, 0.0, 0.0], [0.0, 0.0, 1.0]]),
        ("zero", [[0.0, 0.0, 0.0], [0.0, 0.0, 0.0], [0.0, 0.0, 0.0]]),
        ("tiny", [[1e-4, 0.0, 0.0], [0.0, 1e-4, 0.0], [0.0, 0.0, 1e-4]]),
    )
    def test_degenerate_lattice_raises(self, matrix) -> None:
        """Lattices with |det| < 1e-10 are rejected."""
        with pytest.raises(ValueError, match="Degenerate lattice"):
            create_lattice(matrix)

    def test_wrong_shape_raises(self) -> None:
        """A 2x2 matrix is rejected."""
        with pytest.raises(ValueError, match="shape"):
            create_lattice([[1.0, 0.0], [0.0, 1.0]])

    def test_non_finite_raises(self) -> None:
        """NaN entries are rejected."""
        with pytest.raises(ValueError, match="non-finite"):
            create_lattice(
                [[float("nan"), 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
            )

    def test_left_handed_lattice_allowed(self) -> None:
        """A negative determinant is a valid lattice."""
        lattice = create_lattice(
            [[0.0, 1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]]
        )
        self.assertLess(float(jnp.linalg.det(lattice.matrix)), 0.0)


class TestCreateCrystal(chex.TestCase, parameterized.TestCase):
    """Test create_crystal and the Atom helpers."""

    def setUp(self) -> None:
        """Build rock-salt NaCl."""
        super().setUp()
        self.lattice = create_lattice(np.eye(3) * NACL_A)
        self.nacl = create_crystal(
            self.lattice, NACL_ELEMENTS, NACL_POSITIONS, name="NaCl"
        )

    def test_fields(self) -> None:
        """Positions, labels and name are stored in order."""
        chex.assert_shape(self.nacl.frac_positions, (8, 3))
        self.assertEqual(self.nacl.elements, tuple(NACL_ELEMENTS))
        self.assertEqual(self.nacl.name, "NaCl")
        chex.assert_trees_all_close(
            self.nacl.frac_positions, jnp.array(NACL_POSITIONS)
        )

    def test_raw_matrix_promoted(self) -> None:
        """A raw 3x3 matrix is turned into a Lattice."""
        crystal = create_crystal(
            [[4.0, 0.0, 0.0], [0.0, 4.0, 0.0], [0.0, 0.0, 4.0]],
            ["Si"],
            [[0.0, 0.0, 0.0]],
        )
        self.assertIsInstance(crystal.lattice, Lattice)

    def test_empty_crystal(self) -> None:
        """A crystal may hold no atoms."""
        crystal = create_crystal(self.lattice, [], [])
        chex.assert_shape(crystal.frac_positions, (0, 3))
        self.assertEqual(crystal.elements, ())

    def test_label_count_mismatch_raises(self) -> None:
        """Every position needs exactly one label."""
        with pytest.raises(ValueError, match="element labels"):
            create_crystal(self.lattice, ["Na"], NACL_POSITIONS)

    def test_bad_position_shape_raises(self) -> None:
        """Positions must have three columns."""
        with pytest.raises(ValueError, match="shape"):
            create_crystal(self.lattice, ["Na"], [[0.0, 0.0]])

    def test_non_finite_positions_raise(self) -> None:
        """Infinite coordinates are rejected."""
        with pytest.raises(ValueError, match="non-finite"):
            create_crystal(self.lattice, ["Na"], [[float("inf"), 0.0, 0.0]])

    def test_duplicates_and_unwrapped_positions_allowed(self) -> None:
        """Coordinates outside [0, 1) and repeated atoms are kept as given."""
        crystal = create_crystal(
            self.lattice, ["Fe", "Fe"], [[1.25, -0.5, 0.0], [1.25, -0.5, 0.0]]
        )
        chex.assert_trees_all_close(
            crystal.frac_positions[0], jnp.array([1.25, -0.5, 0.0])
        )

    def test_pytree_round_trip(self) -> None:
        """tree_map keeps labels and name as auxiliary data."""
        doubled = jax.tree_util.tree_map(lambda x: x * 2.0, self.nacl)
        self.assertIsInstance(doubled, Crystal)
        self.assertEqual(doubled.elements, self.nacl.elements)
        self.assertEqual(doubled.name, "NaCl")
        chex.assert_trees_all_close(
            doubled.lattice.matrix, self.lattice.matrix * 2.0
        )

    @chex.variants(with_jit=True, without_jit=True)
    def test_crystal_passes_through_jit(self) -> None:
        """A Crystal can be an argument of a transformed function."""

        def centroid(crystal: Crystal):
            return jnp.mean(crystal.frac_positions, axis=0)

        var_centroid = self.variant(centroid)
        chex.assert_trees_all_close(
            var_centroid(self.nacl), jnp.array([0.25, 0.25, 0.25])
        )

    def test_crystal_atoms(self) -> None:
        """Atoms come back in order with Python floats."""
        atoms = crystal_atoms(self.nacl)
        self.assertLen(atoms, 8)
        self.assertEqual(atoms[0], Atom("Na", (0.0, 0.0, 0.0)))
        self.assertEqual(atoms[-1], Atom("Cl", (0.5, 0.5, 0.5)))

    def test_crystal_from_atoms(self) -> None:
        """Building from Atom records matches create_crystal."""
        rebuilt = crystal_from_atoms(
            self.lattice, crystal_atoms(self.nacl), name="NaCl"
        )
        chex.assert_trees_all_close(
            rebuilt.frac_positions, self.nacl.frac_positions
        )
        self.assertEqual(rebuilt.elements, self.nacl.elements)

    @parameterized.named_parameters(
        ("rock_salt", NACL_ELEMENTS, "Cl4Na4"),
        ("single", ["Si"], "Si"),
        ("mixed", ["O", "Ti", "O"], "O2Ti"),
        ("empty", [], ""),
    )
    def test_crystal_formula(self, elements, expected: str) -> None:
        """Counts are listed alphabetically with ones omitted."""
        positions = [[0.1 * i, 0.0, 0.0] for i in range(len(elements))]
        crystal = create_crystal(self.lattice, elements, positions)
        self.assertEqual(crystal_formula(crystal), expected)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
