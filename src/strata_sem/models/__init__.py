"""3-D volumetric heterogeneity models.

Heterogeneity sources perturb the reference earth model locally. Each
source is configured from a flat parameter record, is immutable, and
reports at any point the perturbation of (vpv, vph, vsv, vsh, rho) plus
whether the point lies in its support.

Source Types:
    - BubbleSource: Gaussian anomaly with a flat core ("bubble")

Example:
    >>> from strata_sem.models import load_library
    >>> library = load_library("model.yaml")
    >>> print(library.describe())
"""

from .base import (
    QUANTITIES,
    TINY_DOUBLE,
    HeterogeneityConfigError,
    HeterogeneitySource,
    Perturbation,
    ReferenceType,
)
from .bubble import BubbleSource
from .config import ConfigManager, load_library, parse_record
from .library import (
    SOURCE_TYPES,
    HeterogeneityLibrary,
    SampledPerturbation,
    build_source,
    get_source_type,
    list_source_types,
)
from .sampling import ElementPerturbations, element_coordinates, sample_element

__all__ = [
    "HeterogeneitySource",
    "HeterogeneityConfigError",
    "Perturbation",
    "ReferenceType",
    "QUANTITIES",
    "TINY_DOUBLE",
    "BubbleSource",
    "HeterogeneityLibrary",
    "SampledPerturbation",
    "SOURCE_TYPES",
    "build_source",
    "get_source_type",
    "list_source_types",
    "ConfigManager",
    "load_library",
    "parse_record",
    "ElementPerturbations",
    "element_coordinates",
    "sample_element",
]
