"""Reading and writing sampled heterogeneity data."""

from .hdf5 import geographic_grid, read_perturbation_grid, write_perturbation_grid

__all__ = [
    "geographic_grid",
    "read_perturbation_grid",
    "write_perturbation_grid",
]
