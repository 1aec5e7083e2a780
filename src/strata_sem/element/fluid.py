"""Fluid spectral element.

The fluid field is a scalar displacement potential χ with displacement
u = ∇χ / ρ. The stiffness term is

    f = -∫ κ ∇χ · ∇w dV,   κ = ρ vp²

evaluated per element as Gᴴ · FFT(κ · IFFT(G χ)): the gradient is taken in
the Fourier domain, transformed to max_nr azimuth samples where the
(possibly azimuth dependent) bulk modulus and the optional PRT act
pointwise, and transformed back before the weighted quadrature.

Example:
    >>> element = FluidElement(gradient, None, points, rho=1000.0, vp=1500.0)
    >>> element.test()
    >>> element.compute_stiff()
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .base import Element, ElementConsistencyError
from .gll import N_PNT_EDGE
from .gradient import Gradient
from .point import Point
from .prt import PRT

logger = logging.getLogger(__name__)

# Relative tolerance of the self-consistency checks in test()
TEST_RTOL = 1e-8


class FluidElement(Element):
    """Spectral element for a fluid (acoustic) medium.

    Args:
        gradient: Gradient operator of the element
        prt: Optional PRT correction
        points: N_PNT_ELEM points with ncomp == 1
        rho: Density in kg/m³, scalar, (5, 5) or (max_nr, 5, 5)
        vp: P-wave speed in m/s, scalar, (5, 5) or (max_nr, 5, 5)

    Attributes:
        rho: (max_nr, 5, 5) density per azimuth sample and node
        kappa: (max_nr, 5, 5) bulk modulus per azimuth sample and node
    """

    def __init__(
        self,
        gradient: Gradient,
        prt: PRT | None,
        points: Sequence[Point],
        rho: ArrayLike,
        vp: ArrayLike,
    ):
        super().__init__(gradient, prt, points)
        if any(p.ncomp != 1 for p in self.points):
            raise ValueError("FluidElement points must carry a single field component")

        self.rho = self._expand_material(rho, "rho")
        vp = self._expand_material(vp, "vp")
        if np.any(self.rho <= 0):
            raise ValueError("rho must be positive")
        if np.any(vp <= 0):
            raise ValueError("vp must be positive")
        self.kappa = self.rho * vp**2

    def _expand_material(self, values: ArrayLike, name: str) -> NDArray[np.float64]:
        values = np.asarray(values, dtype=np.float64)
        full_shape = (self.max_nr, N_PNT_EDGE, N_PNT_EDGE)
        if values.ndim == 0 or values.shape == (N_PNT_EDGE, N_PNT_EDGE):
            return np.broadcast_to(values, full_shape).copy()
        if values.shape == full_shape:
            return values.copy()
        raise ValueError(
            f"{name} must be a scalar, ({N_PNT_EDGE}, {N_PNT_EDGE}) or {full_shape}, "
            f"got {values.shape}"
        )

    # === Field transfer ===

    def _gather_displ(self) -> NDArray[np.complex128]:
        chi = np.zeros((self.max_nu + 1, N_PNT_EDGE, N_PNT_EDGE), dtype=np.complex128)
        for index, point in enumerate(self.points):
            i, j = divmod(index, N_PNT_EDGE)
            chi[: point.nu + 1, i, j] = point.displ[:, 0]
        return chi

    def _scatter_stiff(self, force: NDArray[np.complex128]) -> None:
        for index, point in enumerate(self.points):
            i, j = divmod(index, N_PNT_EDGE)
            point.add_to_stiff(force[: point.nu + 1, i, j])

    def _physical_gradient(self, chi: NDArray[np.complex128]) -> NDArray[np.float64]:
        grad = self.gradient.compute_grad(chi)
        grad_phys = np.fft.irfft(grad, n=self.max_nr, axis=0)
        if self.has_prt:
            grad_phys = self.prt.apply(grad_phys)
        return grad_phys

    def _stiffness(self, chi: NDArray[np.complex128]) -> NDArray[np.complex128]:
        stress = self.kappa[..., np.newaxis] * self._physical_gradient(chi)
        if self.has_prt:
            stress = self.prt.apply_transpose(stress)
        stress_hat = np.fft.rfft(stress, axis=0)
        return -self.gradient.compute_quad(stress_hat)

    # === Element interface ===

    def compute_stiff(self) -> None:
        self._scatter_stiff(self._stiffness(self._gather_displ()))

    def measure(self, count: int) -> float:
        return self._time_stiff(count)

    def test(self, seed: int | None = 0) -> None:
        """Check the stiffness operator on random fields.

        Verifies that a constant monopole potential produces no force, that
        the operator is symmetric and that it is negative semi-definite
        under the real-signal Fourier inner product.
        """
        rng = np.random.default_rng(seed)

        def random_field() -> NDArray[np.complex128]:
            phys = rng.standard_normal((self.max_nr, N_PNT_EDGE, N_PNT_EDGE))
            return np.fft.rfft(phys, axis=0)

        a, b = random_field(), random_field()
        ka, kb = self._stiffness(a), self._stiffness(b)

        scale = np.max(np.abs(ka)) / np.max(np.abs(a))
        if not np.isfinite(scale) or scale == 0.0:
            raise ElementConsistencyError(f"{self.describe()}: stiffness of a random field is {scale}")

        constant = np.zeros_like(a)
        constant[0] = 1.0
        residual = np.max(np.abs(self._stiffness(constant)))
        if residual > TEST_RTOL * scale:
            raise ElementConsistencyError(
                f"{self.describe()}: constant potential produces force {residual:.3e}"
            )

        aKb = self._inner(a, kb)
        bKa = self._inner(ka, b)
        aKa = self._inner(a, ka)
        energy_scale = abs(aKa) + abs(self._inner(b, kb))
        if abs(aKb - bKa) > TEST_RTOL * energy_scale:
            raise ElementConsistencyError(
                f"{self.describe()}: stiffness is not symmetric ({aKb:.6e} vs {bKa:.6e})"
            )
        if aKa > TEST_RTOL * energy_scale:
            raise ElementConsistencyError(
                f"{self.describe()}: stiffness is not negative semi-definite ({aKa:.6e})"
            )
        logger.debug("%s passed self test", self.describe())

    def _order_weights(self) -> NDArray[np.float64]:
        weights = np.full(self.max_nu + 1, 2.0)
        weights[0] = 1.0
        if self.max_nr % 2 == 0 and self.max_nu > 0:
            weights[-1] = 1.0
        return weights

    def _inner(self, a: NDArray[np.complex128], b: NDArray[np.complex128]) -> float:
        """Real-signal inner product of two Fourier-coefficient fields."""
        products = np.real(a * np.conj(b)).reshape(a.shape[0], -1).sum(axis=1)
        return float(np.dot(self._order_weights(), products))

    def compute_ground_motion(self, phi: float, weights: ArrayLike) -> NDArray[np.float64]:
        """Displacement ∇χ / ρ at azimuth phi.

        Args:
            phi: Azimuth in radians
            weights: (5, 5) nodal interpolation weights

        Returns:
            (3,) displacement in (s, φ, z) components
        """
        weights = np.asarray(weights, dtype=np.float64)
        if weights.shape != (N_PNT_EDGE, N_PNT_EDGE):
            raise ValueError(
                f"weights must have shape ({N_PNT_EDGE}, {N_PNT_EDGE}), got {weights.shape}"
            )

        displ = self._physical_gradient(self._gather_displ()) / self.rho[..., np.newaxis]
        displ_hat = np.fft.rfft(displ, axis=0)

        alpha = np.arange(self.max_nu + 1)
        phase = self._order_weights() * np.exp(1j * alpha * phi) / self.max_nr
        at_phi = np.real(np.einsum("a,aijc->ijc", phase, displ_hat))
        return np.einsum("ij,ijc->c", weights, at_phi)

    def describe(self) -> str:
        desc = "FluidElement"
        if self.axial():
            desc += "$Axial"
        if self.has_prt:
            desc += f"${self.prt.signature}"
        return desc
