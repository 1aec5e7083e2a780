"""Gradient operator of an axisymmetric spectral element.

Fields are stored per Fourier order α as complex nodal values f_α(s, z).
The gradient in cylindrical components is

    (∂f/∂s, iα f / s, ∂f/∂z)

computed per order with the GLL derivative matrix and the inverse
Jacobian of the element mapping. On the axis (s = 0) the azimuthal term
is dropped: regular fields have f_α = 0 there for α ≠ 0.

compute_quad() is the exact adjoint of compute_grad() weighted by the
cylindrical integration factor w_i w_j |J| s, so that

    <f, compute_quad(σ)> = Σ W · <compute_grad(f), σ>

which keeps stiffness operators built from the pair symmetric.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .gll import N_PNT_EDGE, N_POL, gll_points, gll_weights, lagrange_derivative_matrix
from .point import AXIS_TOLERANCE


class Gradient:
    """Gradient and weighted-quadrature operator for one element.

    Args:
        nodes: (N_PNT_EDGE, N_PNT_EDGE, 2) array of (s, z) node coordinates

    Attributes:
        dxi_ds, dxi_dz, deta_ds, deta_dz: Inverse Jacobian entries per node
        jacobian: Jacobian determinant per node
        integration_factor: w_i w_j |J| s per node
        axial: Whether any node lies on the axis

    Example:
        >>> nodes = map_quadrilateral([(1e3, 0), (2e3, 0), (2e3, 1e3), (1e3, 1e3)])
        >>> grad = Gradient(nodes)
        >>> g = grad.compute_grad(np.ones((3, 5, 5), dtype=complex))
    """

    def __init__(self, nodes: ArrayLike):
        nodes = np.asarray(nodes, dtype=np.float64)
        if nodes.shape != (N_PNT_EDGE, N_PNT_EDGE, 2):
            raise ValueError(
                f"nodes must have shape ({N_PNT_EDGE}, {N_PNT_EDGE}, 2), got {nodes.shape}"
            )
        self.nodes = nodes
        self.D = lagrange_derivative_matrix(gll_points(N_POL))

        s, z = nodes[..., 0], nodes[..., 1]
        ds_dxi, dz_dxi = self._d_xi(s), self._d_xi(z)
        ds_deta, dz_deta = self._d_eta(s), self._d_eta(z)

        jacobian = ds_dxi * dz_deta - ds_deta * dz_dxi
        if np.any(np.abs(jacobian) <= 0.0):
            raise ValueError("Degenerate element mapping: Jacobian vanishes at a node")

        self.jacobian = jacobian
        self.dxi_ds = dz_deta / jacobian
        self.dxi_dz = -ds_deta / jacobian
        self.deta_ds = -dz_dxi / jacobian
        self.deta_dz = ds_dxi / jacobian

        on_axis = s <= AXIS_TOLERANCE
        self.on_axis = on_axis
        self.inv_s = np.where(on_axis, 0.0, 1.0 / np.where(on_axis, 1.0, s))

        w = gll_weights(N_POL)
        self.integration_factor = np.outer(w, w) * np.abs(jacobian) * np.where(on_axis, 0.0, s)

    def _d_xi(self, f: NDArray) -> NDArray:
        return np.einsum("ik,...kj->...ij", self.D, f)

    def _d_eta(self, f: NDArray) -> NDArray:
        return np.einsum("jk,...ik->...ij", self.D, f)

    @property
    def axial(self) -> bool:
        return bool(np.any(self.on_axis))

    def compute_grad(self, field: ArrayLike) -> NDArray[np.complex128]:
        """Gradient of a Fourier-coefficient field.

        Args:
            field: (nu + 1, N_PNT_EDGE, N_PNT_EDGE) complex coefficients

        Returns:
            (nu + 1, N_PNT_EDGE, N_PNT_EDGE, 3) components (s, φ, z)
        """
        field = np.asarray(field, dtype=np.complex128)
        alpha = np.arange(field.shape[0])[:, np.newaxis, np.newaxis]

        f_xi = self._d_xi(field)
        f_eta = self._d_eta(field)

        grad = np.empty(field.shape + (3,), dtype=np.complex128)
        grad[..., 0] = self.dxi_ds * f_xi + self.deta_ds * f_eta
        grad[..., 1] = 1j * alpha * self.inv_s * field
        grad[..., 2] = self.dxi_dz * f_xi + self.deta_dz * f_eta
        return grad

    def compute_quad(self, stress: ArrayLike) -> NDArray[np.complex128]:
        """Weighted adjoint of compute_grad().

        Args:
            stress: (nu + 1, N_PNT_EDGE, N_PNT_EDGE, 3) complex components

        Returns:
            (nu + 1, N_PNT_EDGE, N_PNT_EDGE) complex coefficients
        """
        stress = np.asarray(stress, dtype=np.complex128)
        alpha = np.arange(stress.shape[0])[:, np.newaxis, np.newaxis]
        weighted = stress * self.integration_factor[..., np.newaxis]

        a = self.dxi_ds * weighted[..., 0] + self.dxi_dz * weighted[..., 2]
        b = self.deta_ds * weighted[..., 0] + self.deta_dz * weighted[..., 2]

        quad = np.einsum("ik,...ij->...kj", self.D, a)
        quad += np.einsum("jk,...ij->...ik", self.D, b)
        quad += -1j * alpha * self.inv_s * weighted[..., 1]
        return quad
