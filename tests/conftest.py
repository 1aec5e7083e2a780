"""Shared fixtures for the strata-sem test suite."""

import numpy as np
import pytest

from strata_sem.element import FluidElement, Gradient, Point, map_quadrilateral


def _make_points(nodes, nr):
    nr_grid = np.broadcast_to(nr, nodes.shape[:2])
    return [
        Point(coords=(float(nodes[i, j, 0]), float(nodes[i, j, 1])), nr=int(nr_grid[i, j]))
        for i in range(nodes.shape[0])
        for j in range(nodes.shape[1])
    ]


def _make_element(corners, nr=8, rho=1000.0, vp=1500.0, prt=None):
    nodes = map_quadrilateral(corners)
    return FluidElement(Gradient(nodes), prt, _make_points(nodes, nr), rho=rho, vp=vp)


@pytest.fixture
def bubble_params():
    """Reference bubble: depth 100 km, lat/lon 0, core 50 km, HWHM 20 km, +5 %, absolute."""
    return [100, 0, 0, 50, 20, 0.05, 0]


@pytest.fixture
def points_factory():
    """Build one Point per node of a (5, 5, 2) coordinate array."""
    return _make_points


@pytest.fixture
def element_factory():
    """Build a FluidElement over a bilinear quad, with fresh points.

    Call as element_factory(corners, nr=8, rho=1000.0, vp=1500.0, prt=None);
    nr may be a scalar or a (5, 5) array.
    """
    return _make_element


@pytest.fixture
def rect_corners():
    """Off-axis rectangle in the (s, z) plane."""
    return [(1000.0, 0.0), (2000.0, 0.0), (2000.0, 1000.0), (1000.0, 1000.0)]


@pytest.fixture
def axial_corners():
    """Rectangle with its left edge on the symmetry axis."""
    return [(0.0, 0.0), (1000.0, 0.0), (1000.0, 1000.0), (0.0, 1000.0)]


@pytest.fixture
def fluid_element(rect_corners):
    return _make_element(rect_corners)


@pytest.fixture
def axial_element(axial_corners):
    return _make_element(axial_corners)
