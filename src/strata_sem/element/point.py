"""Mesh nodes shared between spectral elements.

A Point owns the field state at one GLL node: its displacement and the
stiffness accumulator that every element sharing the node adds into. The
azimuthal dependence is stored as the Fourier coefficients of a real
signal sampled at nr equispaced azimuths (numpy rfft convention), so
arrays hold nu + 1 = nr // 2 + 1 orders.

Points are created and owned by the mesh. Elements hold references to
them and must not outlive the mesh that built them.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import ArrayLike, NDArray

# Nodes closer to the axis than this (meters) are treated as on the axis
AXIS_TOLERANCE = 1e-9


@dataclass(eq=False)
class Point:
    """A GLL node with azimuthal Fourier field storage.

    Args:
        coords: (s, z) meridional coordinates in meters
        nr: Number of azimuthal samples (>= 1)
        ncomp: Number of field components (1 for a fluid potential)
        mass: Lumped mass, used by the time scheme

    Attributes:
        nu: Highest Fourier order, nr // 2
        displ: (nu + 1, ncomp) complex displacement coefficients
        stiff: (nu + 1, ncomp) complex stiffness accumulator

    Example:
        >>> point = Point(coords=(1000.0, 0.0), nr=8)
        >>> point.nu, point.stiff.shape
        (4, (5, 1))
    """

    coords: tuple[float, float]
    nr: int
    ncomp: int = 1
    mass: float = 1.0
    displ: NDArray[np.complex128] = field(init=False, repr=False)
    stiff: NDArray[np.complex128] = field(init=False, repr=False)

    def __post_init__(self):
        if self.nr < 1:
            raise ValueError(f"nr must be >= 1, got {self.nr}")
        if self.ncomp < 1:
            raise ValueError(f"ncomp must be >= 1, got {self.ncomp}")
        s, z = self.coords
        if s < -AXIS_TOLERANCE:
            raise ValueError(f"s must be non-negative, got {s}")
        self.coords = (float(s) if s > 0 else 0.0, float(z))
        self.displ = np.zeros((self.nu + 1, self.ncomp), dtype=np.complex128)
        self.stiff = np.zeros((self.nu + 1, self.ncomp), dtype=np.complex128)

    @property
    def nu(self) -> int:
        return self.nr // 2

    @property
    def axial(self) -> bool:
        """Whether the node lies on the symmetry axis."""
        return self.coords[0] <= AXIS_TOLERANCE

    def set_displ(self, values: ArrayLike) -> None:
        """Overwrite displacement coefficients, truncating or zero-padding orders."""
        self.displ[...] = _fit_orders(values, self.nu, self.ncomp)

    def add_to_stiff(self, values: ArrayLike) -> None:
        """Accumulate into the stiffness, truncating or zero-padding orders."""
        self.stiff += _fit_orders(values, self.nu, self.ncomp)

    def reset_to_zero(self) -> None:
        """Clear displacement and stiffness."""
        self.displ[:] = 0.0
        self.stiff[:] = 0.0


def _fit_orders(values: ArrayLike, nu: int, ncomp: int) -> NDArray[np.complex128]:
    values = np.asarray(values, dtype=np.complex128)
    if values.ndim == 1:
        values = values[:, np.newaxis]
    if values.ndim != 2 or values.shape[1] != ncomp:
        raise ValueError(f"expected (orders, {ncomp}) array, got shape {values.shape}")
    out = np.zeros((nu + 1, ncomp), dtype=np.complex128)
    n = min(nu + 1, values.shape[0])
    out[:n] = values[:n]
    return out
