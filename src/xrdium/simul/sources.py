"""Characteristic X-ray sources and calculation defaults.

Extended Summary
----------------
Named laboratory radiation sources, the default calculation settings and
parsers that turn user-facing strings ("cu-ka", "5-90") into numbers.

Routine Listings
----------------
XRAY_WAVELENGTHS : Mapping
    Read-only table from source name to wavelength in Å
resolve_wavelength : function
    Wavelength in Å from a source name, numeric string or number
parse_two_theta_range : function
    (min, max) in degrees from a "min-max" string
"""

from types import MappingProxyType

from beartype import beartype
from beartype.typing import Mapping, Tuple, Union

DEFAULT_WAVELENGTH: str = "cu-ka"
DEFAULT_TWO_THETA_RANGE: Tuple[float, float] = (5.0, 90.0)
DEFAULT_FWHM: float = 0.1
DEFAULT_STEP: float = 0.02

XRAY_WAVELENGTHS: Mapping[str, float] = MappingProxyType(
    {
        "cu-ka": 1.5418,
        "cu-ka1": 1.5406,
        "cu-ka2": 1.5444,
        "cu-kb1": 1.3922,
        "mo-ka": 0.7107,
        "mo-ka1": 0.7093,
        "co-ka": 1.7903,
        "fe-ka": 1.9373,
        "cr-ka": 2.2910,
        "ag-ka": 0.5609,
    }
)

_COMPACT_NAMES: Mapping[str, str] = MappingProxyType(
    {name.replace("-", ""): name for name in XRAY_WAVELENGTHS}
)


@beartype
def resolve_wavelength(source: Union[str, int, float]) -> float:
    """
    Description
    -----------
    Resolve a radiation source name or a number to a wavelength.

    Parameters
    ----------
    - `source` (Union[str, int, float]):
        Source name such as "cu-ka", "CuKa" or "mo-ka1" (case-insensitive,
        hyphen optional), a numeric string such as "0.424589", or a number.

    Returns
    -------
    - `wavelength` (float):
        Wavelength in Å.

    Raises
    ------
    - ValueError:
        If the name is unknown and not a number, or the value is not
        positive.
    """
    if isinstance(source, str):
        key = source.strip().lower()
        name = _COMPACT_NAMES.get(key.replace("-", ""))
        if name is not None:
            return XRAY_WAVELENGTHS[name]
        try:
            wavelength = float(key)
        except ValueError as err:
            raise ValueError(
                f"Invalid wavelength {source!r}. Use a number (e.g. 0.424589) "
                f"or one of: {', '.join(XRAY_WAVELENGTHS)}"
            ) from err
    else:
        wavelength = float(source)
    if not wavelength > 0.0:
        raise ValueError(f"Invalid wavelength: {wavelength}")
    return wavelength


@beartype
def parse_two_theta_range(text: str) -> Tuple[float, float]:
    """Parse "min-max" into a 2θ window in degrees.

    Both ends must be numbers with 0 <= min < max <= 180.

    >>> parse_two_theta_range("5-90")
    (5.0, 90.0)
    """
    parts = text.split("-")
    if len(parts) != 2:
        raise ValueError(f"Invalid range {text!r}, expected 'min-max' such as '5-90'")
    try:
        lower = float(parts[0].strip())
        upper = float(parts[1].strip())
    except ValueError as err:
        raise ValueError(f"Invalid range {text!r}: bounds must be numbers") from err
    if lower < 0.0 or upper > 180.0 or lower >= upper:
        raise ValueError(
            f"Invalid range {text!r}: need 0 <= min < max <= 180, "
            f"got min={lower}, max={upper}"
        )
    return lower, upper
