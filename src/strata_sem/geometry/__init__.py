"""Coordinate conversions shared by heterogeneity models and elements."""

from .spatial import (
    R_EARTH,
    lat_to_theta,
    lon_to_phi,
    meridional_to_spherical,
    phi_to_lon,
    theta_to_lat,
    to_cartesian,
    to_spherical,
)

__all__ = [
    "R_EARTH",
    "to_cartesian",
    "to_spherical",
    "lat_to_theta",
    "theta_to_lat",
    "lon_to_phi",
    "phi_to_lon",
    "meridional_to_spherical",
]
