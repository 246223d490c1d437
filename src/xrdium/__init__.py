"""
=========================================================

XRDIUM Package (:mod:`xrdium`)

=========================================================

This is the root of the xrdium package, containing submodules for:
- Data output (`inout`)
- Plotting (`plots`)
- Simulations (`simul`)
- Custom types (`types`)
- Unit cell computations (`ucell`)

Each submodule can be directly accessed after importing xrdium.
"""

from . import inout, plots, simul, types, ucell
