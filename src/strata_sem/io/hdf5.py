"""HDF5 export of heterogeneity perturbations on geographic grids.

File layout:

    /metadata            attrs: created_at, format, n_sources
    /grid/depth_km       (nd,)
    /grid/lat            (nlat,)
    /grid/lon            (nlon,)
    /sources/source_<i>  group per library source, in library order
        values           (nd, nlat, nlon, 5) dvpv, dvph, dvsv, dvsh, drho
        in_range         (nd, nlat, nlon) uint8
        attrs: model, reference_type, description,
               affects_vp, affects_vs, affects_rho
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import h5py
import numpy as np
from numpy.typing import ArrayLike, NDArray

from strata_sem.geometry.spatial import R_EARTH, lat_to_theta, lon_to_phi
from strata_sem.models.base import QUANTITIES
from strata_sem.models.library import HeterogeneityLibrary

logger = logging.getLogger(__name__)

FILE_FORMAT = "strata-sem/perturbation-grid/1"


def geographic_grid(
    depths_km: ArrayLike,
    lats: ArrayLike,
    lons: ArrayLike,
    r_outer: float = R_EARTH,
    flattening: float = 0.0,
) -> NDArray[np.float64]:
    """(nd, nlat, nlon, 3) spherical coordinates of a depth/lat/lon grid."""
    depth, lat, lon = np.meshgrid(
        np.asarray(depths_km, dtype=np.float64),
        np.asarray(lats, dtype=np.float64),
        np.asarray(lons, dtype=np.float64),
        indexing="ij",
    )
    rtp = np.empty(depth.shape + (3,), dtype=np.float64)
    rtp[..., 0] = r_outer - depth * 1e3
    rtp[..., 1] = lat_to_theta(lat, depth * 1e3, flattening)
    rtp[..., 2] = lon_to_phi(lon)
    return rtp


def write_perturbation_grid(
    filename: str | Path,
    library: HeterogeneityLibrary,
    depths_km: ArrayLike,
    lats: ArrayLike,
    lons: ArrayLike,
    r_outer: float = R_EARTH,
    flattening: float = 0.0,
    compression: str | None = "gzip",
    compression_level: int = 4,
) -> Path:
    """Sample every library source on a geographic grid and write to HDF5.

    Args:
        filename: Output file path
        library: Sources to sample
        depths_km: Depths in km
        lats: Latitudes in degrees
        lons: Longitudes in degrees
        r_outer: Outer radius of the reference sphere in meters
        flattening: Flattening for geographic latitudes
        compression: Compression algorithm ('gzip', 'lzf', None)
        compression_level: Compression level (0-9 for gzip)

    Returns:
        Path of the written file
    """
    filename = Path(filename)
    compression_opts = compression_level if compression == "gzip" else None

    depths_km = np.atleast_1d(np.asarray(depths_km, dtype=np.float64))
    lats = np.atleast_1d(np.asarray(lats, dtype=np.float64))
    lons = np.atleast_1d(np.asarray(lons, dtype=np.float64))
    rtp = geographic_grid(depths_km, lats, lons, r_outer, flattening)
    samples = library.evaluate_many(rtp)

    with h5py.File(filename, "w") as f:
        meta = f.create_group("metadata")
        meta.attrs["created_at"] = datetime.now(timezone.utc).isoformat()
        meta.attrs["format"] = FILE_FORMAT
        meta.attrs["n_sources"] = len(samples)
        meta.attrs["quantities"] = list(QUANTITIES)

        grid = f.create_group("grid")
        grid.create_dataset("depth_km", data=depths_km)
        grid.create_dataset("lat", data=lats)
        grid.create_dataset("lon", data=lons)
        grid.attrs["r_outer"] = r_outer
        grid.attrs["flattening"] = flattening

        sources = f.create_group("sources")
        for i, sample in enumerate(samples):
            group = sources.create_group(f"source_{i}")
            group.create_dataset(
                "values",
                data=sample.values,
                compression=compression,
                compression_opts=compression_opts,
            )
            group.create_dataset(
                "in_range",
                data=sample.in_range.astype(np.uint8),
                compression=compression,
                compression_opts=compression_opts,
            )
            source = sample.source
            group.attrs["model"] = source.model_name
            group.attrs["reference_type"] = source.reference_type.value
            group.attrs["description"] = source.describe()
            group.attrs["affects_vp"] = source.affects_vp
            group.attrs["affects_vs"] = source.affects_vs
            group.attrs["affects_rho"] = source.affects_rho

    logger.info("Wrote %d source(s) on a %s grid to %s", len(samples), rtp.shape[:3], filename)
    return filename


def read_perturbation_grid(filename: str | Path) -> dict[str, Any]:
    """Load a file written by write_perturbation_grid().

    Returns:
        Dict with "metadata", "grid" (depth_km, lat, lon arrays plus attrs)
        and "sources" (list of dicts with values, in_range and attrs)
    """
    with h5py.File(filename, "r") as f:
        if f["metadata"].attrs.get("format") != FILE_FORMAT:
            raise ValueError(f"{filename} is not a perturbation grid file")

        grid = dict(f["grid"].attrs)
        for name in ("depth_km", "lat", "lon"):
            grid[name] = f[f"grid/{name}"][:]

        sources = []
        for i in range(int(f["metadata"].attrs["n_sources"])):
            group = f[f"sources/source_{i}"]
            entry = dict(group.attrs)
            entry["values"] = group["values"][:]
            entry["in_range"] = group["in_range"][:].astype(bool)
            sources.append(entry)

        return {"metadata": dict(f["metadata"].attrs), "grid": grid, "sources": sources}
