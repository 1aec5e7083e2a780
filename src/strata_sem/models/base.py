"""Base classes for 3-D volumetric heterogeneity sources.

A heterogeneity source answers one question: what perturbation of the
elastic properties and density applies at a given point of the earth
model? Every concrete shape (the Gaussian bubble and its siblings) is
configured once from a flat list of numbers, is immutable afterwards, and
is then queried many times per simulation.

The perturbation returned by a source is raw: it names the five quantities
(vpv, vph, vsv, vsh, rho) it touches and a reference type declaring how the
consumer should combine it with the background model. The combination
itself is the consumer's business.

Example:
    >>> from strata_sem.models import BubbleSource
    >>> bubble = BubbleSource.from_params([100, 0, 0, 50, 20, 0.05, 0])
    >>> p = bubble.evaluate(6271e3, np.pi / 2, 0.0)
    >>> p.in_range, p.dvpv
    (True, 0.05)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

import numpy as np
from numpy.typing import ArrayLike, NDArray

from strata_sem.geometry.spatial import R_EARTH

# Threshold above which an on/off flag parameter counts as "on"
TINY_DOUBLE = 1e-100

# Order of the five perturbed quantities in array form
QUANTITIES = ("dvpv", "dvph", "dvsv", "dvsh", "drho")


class HeterogeneityConfigError(ValueError):
    """Raised when a heterogeneity source or library cannot be configured."""

    pass


class ReferenceType(Enum):
    """How a perturbation combines with the reference model downstream.

    ABSOLUTE: the value replaces the reference value.
    REFERENCE_1D: the value is relative to the 1-D reference model.
    REFERENCE_DIFF: the value is a difference to the current model.
    REFERENCE_3D: the value is relative to the current 3-D model.
    """

    ABSOLUTE = "Absolute"
    REFERENCE_1D = "Reference1D"
    REFERENCE_DIFF = "ReferenceDiff"
    REFERENCE_3D = "Reference3D"

    @classmethod
    def from_code(cls, code: float) -> ReferenceType:
        """Bucket a real-valued configuration code into a reference type.

        [0, 0.5) -> ABSOLUTE, [0.5, 1.5) -> REFERENCE_1D,
        [1.5, 2.5) -> REFERENCE_DIFF, [2.5, inf) -> REFERENCE_3D.
        Negative codes fall into ABSOLUTE.
        """
        if code < 0.5:
            return cls.ABSOLUTE
        elif code < 1.5:
            return cls.REFERENCE_1D
        elif code < 2.5:
            return cls.REFERENCE_DIFF
        else:
            return cls.REFERENCE_3D


@dataclass(frozen=True)
class Perturbation:
    """Perturbation of the five material quantities at one point.

    Attributes:
        dvpv: Vertically polarised P-wave speed perturbation
        dvph: Horizontally polarised P-wave speed perturbation
        dvsv: Vertically polarised S-wave speed perturbation
        dvsh: Horizontally polarised S-wave speed perturbation
        drho: Density perturbation
        in_range: Whether the point lies within the source's support. A
            source may report in_range=True with all values zero if it
            affects none of the quantities.
    """

    dvpv: float = 0.0
    dvph: float = 0.0
    dvsv: float = 0.0
    dvsh: float = 0.0
    drho: float = 0.0
    in_range: bool = False

    @classmethod
    def zero(cls) -> Perturbation:
        """Perturbation of a point outside the source's support."""
        return cls()

    def as_array(self) -> NDArray[np.float64]:
        """Return (dvpv, dvph, dvsv, dvsh, drho) as a (5,) array."""
        return np.array([self.dvpv, self.dvph, self.dvsv, self.dvsh, self.drho])

    @property
    def is_zero(self) -> bool:
        return not np.any(self.as_array())


@dataclass(frozen=True)
class HeterogeneitySource(ABC):
    """Abstract base class for volumetric heterogeneity sources.

    Subclasses must implement:
        - from_params: parse a flat configuration record
        - evaluate_many: vectorised evaluation at (N, 3) spherical points
        - describe: human-readable summary block

    Sources are frozen dataclasses. Evaluation reads only immutable state,
    so a single instance can be queried concurrently from any number of
    threads without locking.

    Attributes:
        reference_type: How the perturbation combines downstream
        affects_vp: Whether vpv/vph are perturbed
        affects_vs: Whether vsv/vsh are perturbed
        affects_rho: Whether density is perturbed
        r_outer: Outer radius of the reference sphere in meters
        flattening: Flattening used for geographic latitudes
    """

    model_name: ClassVar[str] = "unnamed"

    reference_type: ReferenceType = ReferenceType.ABSOLUTE
    affects_vp: bool = True
    affects_vs: bool = True
    affects_rho: bool = True
    r_outer: float = R_EARTH
    flattening: float = 0.0

    @classmethod
    @abstractmethod
    def from_params(
        cls,
        params: Sequence[float],
        r_outer: float = R_EARTH,
        flattening: float = 0.0,
    ) -> HeterogeneitySource:
        """Build a source from its flat configuration record.

        Raises:
            HeterogeneityConfigError: If the record is malformed
        """
        ...

    @abstractmethod
    def evaluate_many(
        self, rtp: ArrayLike
    ) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
        """Evaluate the source at many points.

        Args:
            rtp: (N, 3) array of (radius, colatitude, azimuth)

        Returns:
            Tuple of:
            - values: (N, 5) array of (dvpv, dvph, dvsv, dvsh, drho)
            - in_range: (N,) boolean array
        """
        ...

    @abstractmethod
    def describe(self) -> str:
        """Generate a fixed-layout text summary of the source."""
        ...

    def evaluate(
        self,
        r: float,
        theta: float,
        phi: float,
        r_elem_center: float | None = None,
    ) -> Perturbation:
        """Evaluate the source at a single point.

        Args:
            r: Radius in meters
            theta: Colatitude in radians
            phi: Azimuth in radians
            r_elem_center: Reference-model radius of the element the point
                belongs to, for sources that depend on it

        Returns:
            Perturbation at the point
        """
        values, in_range = self.evaluate_many(np.array([[r, theta, phi]], dtype=np.float64))
        if not in_range[0]:
            return Perturbation.zero()
        return Perturbation(*(float(v) for v in values[0]), in_range=True)

    @property
    def affects_any(self) -> bool:
        """Whether the source perturbs at least one quantity."""
        return self.affects_vp or self.affects_vs or self.affects_rho

    def _apply_flags(self, response: NDArray[np.float64]) -> NDArray[np.float64]:
        """Spread a scalar response over the quantities this source affects."""
        values = np.zeros((response.shape[0], 5), dtype=np.float64)
        if self.affects_vp:
            values[:, 0] = response
            values[:, 1] = response
        if self.affects_vs:
            values[:, 2] = response
            values[:, 3] = response
        if self.affects_rho:
            values[:, 4] = response
        return values

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(reference={self.reference_type.value}, "
            f"vp={self.affects_vp}, vs={self.affects_vs}, rho={self.affects_rho})"
        )


def parse_flags(params: Sequence[float], start: int) -> dict[str, bool]:
    """Read up to three trailing on/off flags (vp, vs, rho).

    Flags missing from the end of the record are left out of the result so
    the caller's defaults (all on) apply.
    """
    flags = {}
    for offset, name in enumerate(("affects_vp", "affects_vs", "affects_rho")):
        index = start + offset
        if index >= len(params):
            break
        flags[name] = float(params[index]) > TINY_DOUBLE
    return flags
