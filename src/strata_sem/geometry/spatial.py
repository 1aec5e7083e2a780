"""
Spherical and geographic coordinate conversions.

All functions are pure and vectorised: they accept a single point or an
(N, 3) array of points and return the same leading shape. Radii are in
meters, angles in radians unless the argument name says degrees.

Conventions:
    - theta is the colatitude, 0 at the north pole, π at the south pole
    - phi is the azimuth (longitude in radians), wrapped to [0, 2π)
    - s, z are the meridional (cylindrical radius, axial height) coordinates
      used by axisymmetric spectral elements

Example:
    >>> from strata_sem.geometry import spatial
    >>> xyz = spatial.to_cartesian((spatial.R_EARTH, np.pi / 2, 0.0))
    >>> rtp = spatial.to_spherical(xyz)
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

# Outer radius of the reference sphere in meters
R_EARTH = 6371e3


def to_cartesian(rtp: ArrayLike) -> NDArray[np.floating]:
    """Convert spherical (r, theta, phi) to Cartesian (x, y, z).

    Args:
        rtp: (3,) or (N, 3) array of (radius, colatitude, azimuth)

    Returns:
        Array of the same shape holding (x, y, z)
    """
    rtp = np.asarray(rtp, dtype=np.float64)
    if rtp.shape[-1] != 3:
        raise ValueError(f"rtp must have 3 components, got shape {rtp.shape}")

    r, theta, phi = rtp[..., 0], rtp[..., 1], rtp[..., 2]
    sin_theta = np.sin(theta)
    return np.stack(
        [r * sin_theta * np.cos(phi), r * sin_theta * np.sin(phi), r * np.cos(theta)],
        axis=-1,
    )


def to_spherical(xyz: ArrayLike) -> NDArray[np.floating]:
    """Convert Cartesian (x, y, z) to spherical (r, theta, phi).

    The origin maps to (0, 0, 0). Points on the z-axis get phi = 0.

    Args:
        xyz: (3,) or (N, 3) array of Cartesian coordinates

    Returns:
        Array of the same shape holding (radius, colatitude, azimuth)
    """
    xyz = np.asarray(xyz, dtype=np.float64)
    if xyz.shape[-1] != 3:
        raise ValueError(f"xyz must have 3 components, got shape {xyz.shape}")

    x, y, z = xyz[..., 0], xyz[..., 1], xyz[..., 2]
    r = np.sqrt(x * x + y * y + z * z)
    theta = np.arctan2(np.hypot(x, y), z)
    phi = np.mod(np.arctan2(y, x), 2 * np.pi)
    return np.stack([r, theta, phi], axis=-1)


def lat_to_theta(
    lat: ArrayLike, depth: ArrayLike = 0.0, flattening: float = 0.0
) -> NDArray[np.floating] | float:
    """Convert geographic latitude to geocentric colatitude.

    With zero flattening the earth is a sphere and this is simply
    π/2 - lat. Otherwise the geographic latitude is first mapped to the
    geocentric one via tan(lat_c) = (1 - f)² tan(lat_g).

    Args:
        lat: Geographic latitude in degrees
        depth: Depth in meters (accepted for interface symmetry with
            depth-dependent ellipticity profiles; unused for a constant
            flattening)
        flattening: Ellipsoid flattening f, 0 for a sphere

    Returns:
        Colatitude in radians
    """
    lat_rad = np.radians(np.asarray(lat, dtype=np.float64))
    if flattening != 0.0:
        lat_rad = np.arctan((1.0 - flattening) ** 2 * np.tan(lat_rad))
    theta = np.pi / 2 - lat_rad
    return float(theta) if np.ndim(theta) == 0 else theta


def theta_to_lat(theta: ArrayLike, flattening: float = 0.0) -> NDArray[np.floating] | float:
    """Convert geocentric colatitude (radians) to geographic latitude (degrees)."""
    lat_rad = np.pi / 2 - np.asarray(theta, dtype=np.float64)
    if flattening != 0.0:
        lat_rad = np.arctan(np.tan(lat_rad) / (1.0 - flattening) ** 2)
    lat = np.degrees(lat_rad)
    return float(lat) if np.ndim(lat) == 0 else lat


def lon_to_phi(lon: ArrayLike) -> NDArray[np.floating] | float:
    """Convert longitude in degrees to azimuth in [0, 2π)."""
    phi = np.mod(np.radians(np.asarray(lon, dtype=np.float64)), 2 * np.pi)
    return float(phi) if np.ndim(phi) == 0 else phi


def phi_to_lon(phi: ArrayLike) -> NDArray[np.floating] | float:
    """Convert azimuth in radians to longitude in (-180, 180]."""
    lon = np.degrees(np.asarray(phi, dtype=np.float64))
    lon = 180.0 - np.mod(180.0 - lon, 360.0)
    return float(lon) if np.ndim(lon) == 0 else lon


def meridional_to_spherical(
    s: ArrayLike, z: ArrayLike
) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
    """Convert meridional (s, z) node coordinates to (r, theta).

    Nodes on the axis (s == 0) get theta = 0 above the equatorial plane and
    theta = π below it.

    Args:
        s: Cylindrical radius in meters (>= 0)
        z: Axial height in meters

    Returns:
        Tuple of (radius, colatitude) arrays
    """
    s = np.asarray(s, dtype=np.float64)
    z = np.asarray(z, dtype=np.float64)
    r = np.hypot(s, z)
    theta = np.arctan2(s, z)
    return r, theta
