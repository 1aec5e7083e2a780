"""Particle relabelling transformation (PRT).

A PRT corrects an element's gradient for geometry that the axisymmetric
mesh does not represent (topography, ellipticity, rotated frames). It is a
3×3 matrix per node, applied to physical-domain gradients:

    ∇'f = M · ∇f          (apply)
    σ   = Mᵀ · σ'         (apply_transpose)

The matrices are either shared by all azimuths, shape (5, 5, 3, 3), or
given per azimuth sample, shape (nr, 5, 5, 3, 3).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .gll import N_PNT_EDGE


class PRT:
    """Per-node gradient correction.

    Args:
        matrices: (5, 5, 3, 3) or (nr, 5, 5, 3, 3) real matrices

    Example:
        >>> prt = PRT(np.broadcast_to(np.eye(3), (5, 5, 3, 3)))
        >>> prt.signature
        'PRT1D'
    """

    def __init__(self, matrices: ArrayLike):
        matrices = np.array(matrices, dtype=np.float64)
        node_shape = (N_PNT_EDGE, N_PNT_EDGE, 3, 3)
        if matrices.shape != node_shape and (
            matrices.ndim != 5 or matrices.shape[1:] != node_shape
        ):
            raise ValueError(
                f"PRT matrices must have shape {node_shape} or (nr, *{node_shape}), "
                f"got {matrices.shape}"
            )
        self.matrices = matrices

    @property
    def is_3d(self) -> bool:
        """Whether the correction varies with azimuth."""
        return self.matrices.ndim == 5

    @property
    def nr(self) -> int | None:
        """Azimuthal sample count of a 3-D correction, None for 1-D."""
        return self.matrices.shape[0] if self.is_3d else None

    @property
    def signature(self) -> str:
        return "PRT3D" if self.is_3d else "PRT1D"

    def apply(self, grad: NDArray) -> NDArray:
        """Apply M to (nr, 5, 5, 3) physical gradients."""
        return np.einsum("...ab,...b->...a", self.matrices, grad)

    def apply_transpose(self, stress: NDArray) -> NDArray:
        """Apply Mᵀ to (nr, 5, 5, 3) physical stresses."""
        return np.einsum("...ba,...b->...a", self.matrices, stress)
