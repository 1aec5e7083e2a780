"""Gauss-Lobatto-Legendre quadrature on the reference element.

Elements use a tensor-product GLL grid of N_PNT_EDGE × N_PNT_EDGE nodes on
the reference square [-1, 1]². Node (i, j) sits at (ξ_i, η_j); arrays over
element nodes are laid out with ξ on the first axis and η on the second.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import eval_legendre, roots_jacobi

# Polynomial order of the element basis
N_POL = 4
N_PNT_EDGE = N_POL + 1
N_PNT_ELEM = N_PNT_EDGE * N_PNT_EDGE


def gll_points(n_pol: int = N_POL) -> NDArray[np.float64]:
    """GLL nodes on [-1, 1] for polynomial order n_pol.

    The interior nodes are the roots of P'_n, i.e. of the Jacobi
    polynomial P_{n-1}^{(1,1)}.
    """
    if n_pol < 1:
        raise ValueError(f"n_pol must be >= 1, got {n_pol}")
    if n_pol == 1:
        return np.array([-1.0, 1.0])
    interior, _ = roots_jacobi(n_pol - 1, 1.0, 1.0)
    return np.concatenate([[-1.0], np.sort(interior), [1.0]])


def gll_weights(n_pol: int = N_POL) -> NDArray[np.float64]:
    """GLL quadrature weights, w_i = 2 / (n (n+1) P_n(x_i)²)."""
    x = gll_points(n_pol)
    return 2.0 / (n_pol * (n_pol + 1) * eval_legendre(n_pol, x) ** 2)


def _barycentric_weights(nodes: NDArray[np.float64]) -> NDArray[np.float64]:
    diff = nodes[:, np.newaxis] - nodes[np.newaxis, :]
    np.fill_diagonal(diff, 1.0)
    return 1.0 / np.prod(diff, axis=1)


def lagrange_derivative_matrix(nodes: ArrayLike) -> NDArray[np.float64]:
    """Derivative matrix D[i, j] = l_j'(x_i) of the Lagrange basis on nodes.

    Rows sum to zero, so constants are differentiated exactly to zero.
    """
    nodes = np.asarray(nodes, dtype=np.float64)
    b = _barycentric_weights(nodes)
    diff = nodes[:, np.newaxis] - nodes[np.newaxis, :]
    np.fill_diagonal(diff, 1.0)
    D = (b[np.newaxis, :] / b[:, np.newaxis]) / diff
    np.fill_diagonal(D, 0.0)
    np.fill_diagonal(D, -D.sum(axis=1))
    return D


def lagrange_weights(nodes: ArrayLike, x: float) -> NDArray[np.float64]:
    """Values l_j(x) of the Lagrange basis on nodes at a point x."""
    nodes = np.asarray(nodes, dtype=np.float64)
    n = len(nodes)
    values = np.ones(n)
    for j in range(n):
        for k in range(n):
            if k != j:
                values[j] *= (x - nodes[k]) / (nodes[j] - nodes[k])
    return values


def interpolation_weights(xi: float, eta: float, n_pol: int = N_POL) -> NDArray[np.float64]:
    """(n_pol+1, n_pol+1) weights interpolating nodal values at (ξ, η)."""
    nodes = gll_points(n_pol)
    return np.outer(lagrange_weights(nodes, xi), lagrange_weights(nodes, eta))


def map_quadrilateral(corners: ArrayLike, n_pol: int = N_POL) -> NDArray[np.float64]:
    """Node coordinates of a bilinear quadrilateral in the (s, z) plane.

    Args:
        corners: (4, 2) array of (s, z) corners, ordered counter-clockwise
            starting at reference corner (-1, -1)

    Returns:
        (n_pol+1, n_pol+1, 2) array of node coordinates
    """
    corners = np.asarray(corners, dtype=np.float64)
    if corners.shape != (4, 2):
        raise ValueError(f"corners must be a 4x2 array, got shape {corners.shape}")

    x = gll_points(n_pol)
    xi, eta = np.meshgrid(x, x, indexing="ij")
    shape = np.stack(
        [
            (1 - xi) * (1 - eta),
            (1 + xi) * (1 - eta),
            (1 + xi) * (1 + eta),
            (1 - xi) * (1 + eta),
        ],
        axis=-1,
    ) / 4.0
    return shape @ corners
