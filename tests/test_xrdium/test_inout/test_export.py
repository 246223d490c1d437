"""Tests for inout.export: DataFrames, CSV and XY writers."""

import jax.numpy as jnp
import numpy as np
import pandas as pd
import pytest

from xrdium.inout import (
    broadened_to_dataframe,
    pattern_to_dataframe,
    write_broadened_csv,
    write_broadened_xy,
    write_pattern_csv,
    write_pattern_xy,
)
from xrdium.simul import calculate_xrd_pattern
from xrdium.types import (
    create_broadened_pattern,
    create_crystal,
    create_xrd_pattern,
)


@pytest.fixture
def pattern():
    """Two peaks stored strongest first, as the calculator returns them."""
    return create_xrd_pattern(
        two_theta=jnp.array([45.0, 30.0]),
        d_spacing=jnp.array([2.0, 3.0]),
        intensities=jnp.array([100.0, 50.0]),
        miller_indices=jnp.array([[2, 2, 0], [2, 0, 0]]),
        wavelength=1.5418,
        structure_name="NaCl",
    )


@pytest.fixture
def broadened():
    """Three-sample curve."""
    return create_broadened_pattern(
        two_theta=jnp.array([10.0, 10.02, 10.04]),
        intensities=jnp.array([0.0, 100.0, 12.5]),
        wavelength=1.5418,
        structure_name="NaCl",
    )


class TestDataFrames:
    """DataFrame views of patterns."""

    def test_pattern_columns_and_order(self, pattern) -> None:
        """Columns follow the export layout; rows ascend in 2θ."""
        frame = pattern_to_dataframe(pattern)
        assert isinstance(frame, pd.DataFrame)
        assert list(frame.columns) == [
            "2theta",
            "d_spacing",
            "intensity",
            "h",
            "k",
            "l",
        ]
        np.testing.assert_allclose(frame["2theta"], [30.0, 45.0])
        np.testing.assert_allclose(frame["intensity"], [50.0, 100.0])
        assert frame.loc[0, ["h", "k", "l"]].tolist() == [2, 0, 0]

    def test_broadened_columns(self, broadened) -> None:
        """Curve keeps its sample order."""
        frame = broadened_to_dataframe(broadened)
        assert list(frame.columns) == ["2theta", "intensity"]
        assert len(frame) == 3
        np.testing.assert_allclose(frame["intensity"], [0.0, 100.0, 12.5])

    def test_empty_pattern(self) -> None:
        """An empty pattern gives an empty table with all columns."""
        empty = create_xrd_pattern(
            two_theta=jnp.zeros(0),
            d_spacing=jnp.zeros(0),
            intensities=jnp.zeros(0),
            miller_indices=jnp.zeros((0, 3), dtype=jnp.int64),
            wavelength=1.5418,
        )
        frame = pattern_to_dataframe(empty)
        assert len(frame) == 0
        assert len(frame.columns) == 6


class TestWriters:
    """CSV and XY files."""

    def test_pattern_csv(self, pattern, tmp_path) -> None:
        """Header plus formatted rows sorted by 2θ."""
        path = write_pattern_csv(pattern, tmp_path / "nacl.csv")
        lines = path.read_text().splitlines()
        assert lines == [
            "2theta,d_spacing,intensity,h,k,l",
            "30.0000,3.000000,50.00,2,0,0",
            "45.0000,2.000000,100.00,2,2,0",
        ]

    def test_broadened_csv(self, broadened, tmp_path) -> None:
        """Both columns use four decimals."""
        path = write_broadened_csv(broadened, str(tmp_path / "curve.csv"))
        lines = path.read_text().splitlines()
        assert lines[0] == "2theta,intensity"
        assert lines[1:] == [
            "10.0000,0.0000",
            "10.0200,100.0000",
            "10.0400,12.5000",
        ]

    def test_pattern_xy(self, pattern, tmp_path) -> None:
        """Commented header then tab-separated rows."""
        path = write_pattern_xy(pattern, tmp_path / "nacl.xy")
        lines = path.read_text().splitlines()
        assert lines == [
            "# XRD Pattern: NaCl",
            "# Wavelength: 1.541800 Angstrom",
            "# Columns: 2theta (degrees), Intensity (relative)",
            "#",
            "30.0000\t50.00",
            "45.0000\t100.00",
        ]

    def test_broadened_xy(self, broadened, tmp_path) -> None:
        """The title is marked as broadened."""
        path = write_broadened_xy(broadened, tmp_path / "curve.xy")
        lines = path.read_text().splitlines()
        assert lines[0] == "# XRD Pattern: NaCl (broadened)"
        assert lines[3] == "#"
        assert lines[4:] == ["10.0000\t0.0000", "10.0200\t100.0000", "10.0400\t12.5000"]

    def test_calculated_pattern_xy(self, tmp_path) -> None:
        """A computed NaCl pattern writes one XY row per peak."""
        a = 5.64
        nacl = create_crystal(
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
        computed = calculate_xrd_pattern(nacl, 1.5418, 10.0, 90.0)
        path = write_pattern_xy(computed, tmp_path / "p.xy")
        lines = path.read_text().splitlines()
        assert lines[0] == "# XRD Pattern: NaCl"
        body = lines[4:]
        assert len(body) == computed.two_theta.shape[0]
        assert all(len(row.split("\t")) == 2 for row in body)
        assert "100.00" in [row.split("\t")[1] for row in body]

    def test_xy_loads_with_pandas(self, pattern, tmp_path) -> None:
        """The XY body reads back as two numeric columns."""
        path = write_pattern_xy(pattern, tmp_path / "nacl.xy")
        frame = pd.read_csv(path, sep="\t", comment="#", header=None)
        np.testing.assert_allclose(frame[0], [30.0, 45.0])
        np.testing.assert_allclose(frame[1], [50.0, 100.0])

    @pytest.mark.parametrize(
        "writer, fixture_name",
        [
            (write_pattern_csv, "pattern"),
            (write_pattern_xy, "pattern"),
            (write_broadened_csv, "broadened"),
            (write_broadened_xy, "broadened"),
        ],
    )
    def test_missing_directory(self, writer, fixture_name, request, tmp_path) -> None:
        """Writers do not create directories."""
        data = request.getfixturevalue(fixture_name)
        with pytest.raises(FileNotFoundError):
            writer(data, tmp_path / "missing" / "out.dat")

    def test_overwrites_existing_file(self, pattern, tmp_path) -> None:
        """An existing file is replaced."""
        target = tmp_path / "nacl.csv"
        target.write_text("stale\n")
        write_pattern_csv(pattern, target)
        assert target.read_text().splitlines()[0].startswith("2theta")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
