"""Spectral elements and the operators they borrow from the mesh.

Classes:
    - Point: Mesh node with azimuthal Fourier field storage
    - Gradient: Gradient/quadrature operator of an element
    - PRT: Optional per-node gradient correction
    - Element: Abstract element contract
    - FluidElement: Scalar-potential (acoustic) element

Example:
    >>> from strata_sem.element import FluidElement, Gradient, Point, map_quadrilateral
    >>> nodes = map_quadrilateral([(1e3, 0), (2e3, 0), (2e3, 1e3), (1e3, 1e3)])
    >>> points = [Point(coords=tuple(c), nr=8) for c in nodes.reshape(-1, 2)]
    >>> element = FluidElement(Gradient(nodes), None, points, rho=1000.0, vp=1500.0)
    >>> element.test()
"""

from .base import Element, ElementConsistencyError
from .cost import CostTable, group_by_signature, measure_element_costs
from .fluid import FluidElement
from .gll import (
    N_PNT_EDGE,
    N_PNT_ELEM,
    N_POL,
    gll_points,
    gll_weights,
    interpolation_weights,
    lagrange_derivative_matrix,
    lagrange_weights,
    map_quadrilateral,
)
from .gradient import Gradient
from .point import AXIS_TOLERANCE, Point
from .prt import PRT

__all__ = [
    "Element",
    "ElementConsistencyError",
    "FluidElement",
    "Gradient",
    "PRT",
    "Point",
    "AXIS_TOLERANCE",
    "CostTable",
    "group_by_signature",
    "measure_element_costs",
    "N_POL",
    "N_PNT_EDGE",
    "N_PNT_ELEM",
    "gll_points",
    "gll_weights",
    "interpolation_weights",
    "lagrange_derivative_matrix",
    "lagrange_weights",
    "map_quadrilateral",
]
