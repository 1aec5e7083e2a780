"""Gaussian bubble heterogeneity.

A bubble is a localized anomaly with a flat top and a Gaussian shoulder:

    d = max(|x - x_center| - radius, 0)
    g(d) = magnitude · exp(-d² / (2σ²)),   σ = HWHM / √(2 ln 2)

so the response is saturated at the peak magnitude anywhere inside the
core radius and falls to half of it one HWHM beyond the core edge. The
support is cut off hard at d = 4·HWHM: beyond that the bubble reports no
effect at all, which bounds the cost of range queries across a full mesh.
The residual 2⁻¹⁶ of the peak at the cutoff is not tapered away.

Configuration record (lengths in km, angles in degrees):

    [depth, lat, lon, radius, hwhm, magnitude, reference_code,
     (vp_flag), (vs_flag), (rho_flag)]

Flags missing from the end of the record leave the quantity affected.

Example:
    >>> bubble = BubbleSource.from_params([100, 0, 0, 50, 20, 0.05, 0])
    >>> bubble.evaluate(6271e3, np.pi / 2, 0.0).drho
    0.05
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar

import numpy as np
from numpy.typing import ArrayLike, NDArray

from strata_sem.geometry.spatial import R_EARTH, lat_to_theta, lon_to_phi, to_cartesian

from .base import (
    HeterogeneityConfigError,
    HeterogeneitySource,
    ReferenceType,
    parse_flags,
)

logger = logging.getLogger(__name__)

# Number of leading parameters every bubble record must carry
N_REQUIRED_PARAMS = 7

# Support cutoff in units of HWHM, measured from the core edge
CUTOFF_HWHM = 4.0


@dataclass(frozen=True)
class BubbleSource(HeterogeneitySource):
    """Radially symmetric Gaussian anomaly with a flat core.

    Args:
        depth: Depth of the bubble center in meters
        lat: Geographic latitude of the center in degrees
        lon: Longitude of the center in degrees
        radius: Radius of the saturated core in meters (>= 0)
        hwhm: Half width at half maximum of the shoulder in meters (> 0)
        magnitude: Peak fractional perturbation (any sign)

    Attributes:
        center_xyz: Cartesian position of the bubble center in meters
        stddev: Standard deviation of the Gaussian shoulder in meters
    """

    model_name: ClassVar[str] = "bubble"

    depth: float = 0.0
    lat: float = 0.0
    lon: float = 0.0
    radius: float = 0.0
    hwhm: float = 1.0
    magnitude: float = 0.0

    def __post_init__(self):
        """Validate shape parameters."""
        if self.radius < 0:
            raise HeterogeneityConfigError(f"bubble radius must be non-negative, got {self.radius}")
        if self.hwhm <= 0:
            raise HeterogeneityConfigError(f"bubble HWHM must be positive, got {self.hwhm}")

    @classmethod
    def from_params(
        cls,
        params: Sequence[float],
        r_outer: float = R_EARTH,
        flattening: float = 0.0,
    ) -> BubbleSource:
        """Build a bubble from its configuration record.

        Args:
            params: [depth_km, lat_deg, lon_deg, radius_km, hwhm_km,
                magnitude, reference_code, (vp), (vs), (rho)]
            r_outer: Outer radius of the reference sphere in meters
            flattening: Flattening for geographic latitude conversion

        Returns:
            Configured BubbleSource

        Raises:
            HeterogeneityConfigError: If fewer than 7 parameters are given,
                a parameter is not a number, or the shape parameters are
                invalid
        """
        try:
            params = [float(p) for p in params]
        except (TypeError, ValueError) as e:
            raise HeterogeneityConfigError(f"Invalid bubble parameter: {e}") from e
        if len(params) < N_REQUIRED_PARAMS:
            raise HeterogeneityConfigError(
                f"Not enough parameters to initialize a bubble: need at least "
                f"{N_REQUIRED_PARAMS}, got {len(params)}"
            )

        flags = parse_flags(params, N_REQUIRED_PARAMS)
        if 0 < len(flags) < 3:
            logger.warning(
                "bubble record gives %d of 3 quantity flags; the missing ones stay enabled",
                len(flags),
            )

        return cls(
            depth=params[0] * 1e3,
            lat=params[1],
            lon=params[2],
            radius=params[3] * 1e3,
            hwhm=params[4] * 1e3,
            magnitude=params[5],
            reference_type=ReferenceType.from_code(params[6]),
            r_outer=r_outer,
            flattening=flattening,
            **flags,
        )

    @property
    def center_xyz(self) -> NDArray[np.float64]:
        """Cartesian position of the bubble center."""
        return to_cartesian(
            (
                self.r_outer - self.depth,
                lat_to_theta(self.lat, self.depth, self.flattening),
                lon_to_phi(self.lon),
            )
        )

    @property
    def stddev(self) -> float:
        """Standard deviation that makes hwhm the half width at half maximum."""
        return self.hwhm / np.sqrt(2.0 * np.log(2.0))

    def response(self, distance: ArrayLike) -> NDArray[np.float64]:
        """Gaussian response at a given distance from the bubble center.

        Flat at the peak inside the core. The hard cutoff is applied by
        evaluate_many(), not here.
        """
        d = np.maximum(np.asarray(distance, dtype=np.float64) - self.radius, 0.0)
        stddev = self.stddev
        return self.magnitude * np.exp(-d * d / (stddev * stddev * 2.0))

    def evaluate_many(
        self, rtp: ArrayLike
    ) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
        """Evaluate the bubble at (N, 3) spherical points."""
        rtp = np.asarray(rtp, dtype=np.float64)
        if rtp.ndim != 2 or rtp.shape[1] != 3:
            raise ValueError(f"rtp must be Nx3 array, got shape {rtp.shape}")

        distance = np.linalg.norm(to_cartesian(rtp) - self.center_xyz, axis=1)

        in_range = np.maximum(distance - self.radius, 0.0) <= CUTOFF_HWHM * self.hwhm
        gaussian = np.where(in_range, self.response(distance), 0.0)
        return self._apply_flags(gaussian), in_range

    def describe(self) -> str:
        """Generate the 3D Volumetric summary block."""

        def yes_no(flag: bool) -> str:
            return "YES" if flag else "NO"

        rule = "======================= 3D Volumetric ======================"
        lines = [
            "",
            rule,
            f"  Model Name          =   {self.model_name}",
            f"  Depth / km          =   {self.depth / 1e3:g}",
            f"  Lat / degree        =   {self.lat:g}",
            f"  Lon / degree        =   {self.lon:g}",
            f"  Bubble Radius / km  =   {self.radius / 1e3:g}",
            f"  HWHM / km           =   {self.hwhm / 1e3:g}",
            f"  Maximum at Center   =   {self.magnitude:g}",
            f"  Reference Type      =   {self.reference_type.value}",
            f"  Affect VP           =   {yes_no(self.affects_vp)}",
            f"  Affect VS           =   {yes_no(self.affects_vs)}",
            f"  Affect Density      =   {yes_no(self.affects_rho)}",
            rule,
            "",
        ]
        return "\n".join(lines)
