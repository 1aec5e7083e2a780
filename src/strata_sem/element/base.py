"""Base class of spectral elements.

An element binds N_PNT_ELEM mesh nodes to a gradient operator and an
optional PRT correction, and defines what every concrete element type
provides to the time scheme: its stiffness contribution, a cost
measurement, a self test, ground motion for receivers, and a description.

Elements borrow their points and operators. The mesh creates them, keeps
them alive for the element's lifetime and tears them down afterwards.

Concurrency: compute_stiff() and add_source_term() accumulate into point
buffers shared with neighbouring elements. Callers must serialize writes
to the same element (and to elements sharing points); no locking happens
here.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from strata_sem.geometry.spatial import meridional_to_spherical

from .gll import N_PNT_EDGE, N_PNT_ELEM
from .gradient import Gradient
from .point import Point
from .prt import PRT

logger = logging.getLogger(__name__)


class ElementConsistencyError(RuntimeError):
    """Raised by Element.test() when an operator fails a self-consistency check."""

    pass


class Element(ABC):
    """Abstract spectral element.

    Subclasses must implement:
        - compute_stiff(): accumulate the stiffness term into the points
        - measure(count): seconds per compute_stiff() call
        - test(): operator self-consistency check
        - compute_ground_motion(phi, weights): displacement at an azimuth
        - describe(): short type description

    Args:
        gradient: Gradient operator built from the element's node coordinates
        prt: Optional PRT correction, None when absent
        points: Exactly N_PNT_ELEM points, ordered ξ-major (index i * 5 + j)

    Attributes:
        points: The borrowed points
        gradient: The borrowed gradient operator
        prt: The borrowed PRT or None
        has_prt: Whether a PRT is attached
        max_nu: Highest Fourier order over the points
        max_nr: Largest azimuthal sample count over the points
    """

    def __init__(self, gradient: Gradient, prt: PRT | None, points: Sequence[Point]):
        points = list(points)
        if len(points) != N_PNT_ELEM:
            raise ValueError(f"Element requires exactly {N_PNT_ELEM} points, got {len(points)}")

        self.points = points
        self.gradient = gradient
        self.prt = prt
        self.has_prt = prt is not None

        self.max_nu = max(p.nu for p in points)
        self.max_nr = max(p.nr for p in points)

        if self.has_prt and prt.is_3d and prt.nr != self.max_nr:
            raise ValueError(
                f"3-D PRT has {prt.nr} azimuthal samples, element needs {self.max_nr}"
            )

        self._domain_tag = 0

    # === Per-type physics ===

    @abstractmethod
    def compute_stiff(self) -> None:
        """Accumulate this element's stiffness term into its points."""
        ...

    @abstractmethod
    def measure(self, count: int) -> float:
        """Seconds per compute_stiff() call, averaged over count calls.

        Must leave the simulation state as it found it.
        """
        ...

    @abstractmethod
    def test(self) -> None:
        """Check operator self-consistency.

        Raises:
            ElementConsistencyError: If a check fails
        """
        ...

    @abstractmethod
    def compute_ground_motion(self, phi: float, weights: ArrayLike) -> NDArray[np.float64]:
        """Displacement (s, φ, z) at azimuth phi, interpolated with nodal weights."""
        ...

    @abstractmethod
    def describe(self) -> str:
        ...

    # === Shared ===

    def get_point(self, index: int) -> Point:
        """Point at a node index in [0, N_PNT_ELEM)."""
        if not 0 <= index < N_PNT_ELEM:
            raise IndexError(f"point index {index} out of range [0, {N_PNT_ELEM})")
        return self.points[index]

    def add_source_term(self, source: ArrayLike) -> None:
        """Add a source term to the points' stiffness.

        Contributions accumulate, so several sources can act on the same
        element within one time step.

        Args:
            source: (N_PNT_ELEM, orders, ncomp) or (5, 5, orders, ncomp)
                complex Fourier coefficients
        """
        source = np.asarray(source, dtype=np.complex128)
        if source.shape[:2] == (N_PNT_EDGE, N_PNT_EDGE) and source.ndim == 4:
            source = source.reshape(N_PNT_ELEM, *source.shape[2:])
        if source.shape[0] != N_PNT_ELEM:
            raise ValueError(
                f"source must cover {N_PNT_ELEM} points, got shape {source.shape}"
            )
        for point, values in zip(self.points, source):
            point.add_to_stiff(values)

    def get_max_nr(self) -> int:
        return self.max_nr

    def cost_signature(self) -> str:
        """Key shared by elements with the same computational cost profile."""
        return f"{self.describe()}$DimAzimuth={self.max_nr}"

    def axial(self) -> bool:
        """Whether any node of the element lies on the symmetry axis."""
        return any(p.axial for p in self.points)

    def node_coords(self) -> NDArray[np.float64]:
        """(5, 5, 2) array of (s, z) node coordinates."""
        return np.array([p.coords for p in self.points], dtype=np.float64).reshape(
            N_PNT_EDGE, N_PNT_EDGE, 2
        )

    def form_theta_mat(self) -> NDArray[np.float64]:
        """(5, 5) colatitude of every node, 0 or π on the axis."""
        coords = self.node_coords()
        _, theta = meridional_to_spherical(coords[..., 0], coords[..., 1])
        return theta

    def form_radius_mat(self) -> NDArray[np.float64]:
        """(5, 5) spherical radius of every node."""
        coords = self.node_coords()
        r, _ = meridional_to_spherical(coords[..., 0], coords[..., 1])
        return r

    def set_domain_tag(self, tag: int) -> None:
        self._domain_tag = int(tag)

    def get_domain_tag(self) -> int:
        return self._domain_tag

    @property
    def domain_tag(self) -> int:
        """Diagnostic tag of the domain (e.g. MPI rank) the element belongs to."""
        return self._domain_tag

    @domain_tag.setter
    def domain_tag(self, tag: int) -> None:
        self.set_domain_tag(tag)

    # === Helpers for subclasses ===

    def _snapshot_stiff(self) -> list[NDArray[np.complex128]]:
        return [p.stiff.copy() for p in self.points]

    def _restore_stiff(self, snapshot: list[NDArray[np.complex128]]) -> None:
        for point, stiff in zip(self.points, snapshot):
            point.stiff[...] = stiff

    def _time_stiff(self, count: int) -> float:
        """Time count calls of compute_stiff(), restoring point stiffness."""
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        snapshot = self._snapshot_stiff()
        try:
            start = time.perf_counter()
            for _ in range(count):
                self.compute_stiff()
            elapsed = time.perf_counter() - start
        finally:
            self._restore_stiff(snapshot)
        logger.debug("%s: %.3e s per stiffness call", self.cost_signature(), elapsed / count)
        return elapsed / count

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(max_nr={self.max_nr}, axial={self.axial()}, "
            f"prt={self.has_prt}, tag={self._domain_tag})"
        )
