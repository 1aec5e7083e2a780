"""
Strata SEM - material heterogeneity and element core of a spectral-element solver.

Main exports:
- BubbleSource: Gaussian "bubble" heterogeneity with a flat core
- HeterogeneityLibrary: Ordered collection of heterogeneity sources
- ConfigManager, load_library: YAML configuration of libraries
- Element: Abstract spectral element contract
- FluidElement: Scalar-potential element
- Point, Gradient, PRT: Mesh-owned collaborators of elements
"""

from strata_sem.element import (
    PRT,
    Element,
    ElementConsistencyError,
    FluidElement,
    Gradient,
    Point,
    map_quadrilateral,
    measure_element_costs,
)
from strata_sem.geometry import R_EARTH
from strata_sem.models import (
    BubbleSource,
    ConfigManager,
    HeterogeneityConfigError,
    HeterogeneityLibrary,
    HeterogeneitySource,
    Perturbation,
    ReferenceType,
    load_library,
    sample_element,
)

# Submodules for more specific imports
from . import element, geometry, io, models

__version__ = "0.1.0"

__all__ = [
    # Heterogeneity
    "HeterogeneitySource",
    "BubbleSource",
    "HeterogeneityLibrary",
    "HeterogeneityConfigError",
    "Perturbation",
    "ReferenceType",
    "ConfigManager",
    "load_library",
    "sample_element",
    # Elements
    "Element",
    "ElementConsistencyError",
    "FluidElement",
    "Gradient",
    "PRT",
    "Point",
    "map_quadrilateral",
    "measure_element_costs",
    "R_EARTH",
    # Submodules
    "element",
    "geometry",
    "io",
    "models",
]
