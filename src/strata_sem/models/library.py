"""Heterogeneity source registry and ordered source library.

The registry maps model names used in configuration records to source
classes. A HeterogeneityLibrary holds the configured sources in the order
they were declared; that order is the order in which a consumer combines
their perturbations with the reference model, each according to its own
reference type.

Example:
    >>> library = HeterogeneityLibrary.from_records([
    ...     ("bubble", [100, 0, 0, 50, 20, 0.05, 0]),
    ...     ("bubble", [300, 45, 90, 0, 40, -0.02, 1]),
    ... ])
    >>> for source, perturbation in library.evaluate(6271e3, np.pi / 2, 0.0):
    ...     print(source.model_name, perturbation.dvsv)
    bubble 0.05
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import ArrayLike, NDArray

from strata_sem.geometry.spatial import R_EARTH

from .base import HeterogeneitySource, Perturbation, ReferenceType
from .bubble import BubbleSource

logger = logging.getLogger(__name__)

# =============================================================================
# Registry
# =============================================================================

SOURCE_TYPES: dict[str, type[HeterogeneitySource]] = {
    BubbleSource.model_name: BubbleSource,
}


def get_source_type(name: str) -> type[HeterogeneitySource]:
    """Look up a heterogeneity source class by model name.

    Args:
        name: Model name (case-insensitive)

    Returns:
        HeterogeneitySource subclass

    Raises:
        KeyError: If no source type has this name
    """
    name_lower = name.strip().lower()
    if name_lower not in SOURCE_TYPES:
        raise KeyError(
            f"Heterogeneity model '{name}' not found. Available: {list_source_types()}"
        )
    return SOURCE_TYPES[name_lower]


def list_source_types() -> list[str]:
    """List registered heterogeneity model names."""
    return sorted(SOURCE_TYPES)


def build_source(
    name: str,
    params: Sequence[float],
    r_outer: float = R_EARTH,
    flattening: float = 0.0,
) -> HeterogeneitySource:
    """Build a heterogeneity source from a model name and its record."""
    return get_source_type(name).from_params(params, r_outer=r_outer, flattening=flattening)


# =============================================================================
# Library
# =============================================================================


@dataclass(frozen=True)
class SampledPerturbation:
    """Result of evaluating one source at many points.

    Attributes:
        source: The evaluated source
        values: (..., 5) array of (dvpv, dvph, dvsv, dvsh, drho)
        in_range: (...) boolean array
    """

    source: HeterogeneitySource
    values: NDArray[np.float64]
    in_range: NDArray[np.bool_]

    @property
    def reference_type(self) -> ReferenceType:
        return self.source.reference_type

    @property
    def n_in_range(self) -> int:
        return int(np.count_nonzero(self.in_range))


@dataclass
class HeterogeneityLibrary:
    """Ordered collection of heterogeneity sources.

    Args:
        sources: Initial sources, in combination order

    Example:
        >>> library = HeterogeneityLibrary()
        >>> library.add(BubbleSource.from_params([100, 0, 0, 50, 20, 0.05, 0]))
        >>> len(library)
        1
    """

    sources: list[HeterogeneitySource] = field(default_factory=list)

    @classmethod
    def from_records(
        cls,
        records: Iterable[tuple[str, Sequence[float]]],
        r_outer: float = R_EARTH,
        flattening: float = 0.0,
    ) -> HeterogeneityLibrary:
        """Build a library from (model name, parameter list) records.

        Raises:
            KeyError: If a model name is unknown
            HeterogeneityConfigError: If a record is malformed
        """
        library = cls()
        for name, params in records:
            library.add(build_source(name, params, r_outer=r_outer, flattening=flattening))
        logger.info("Loaded %d heterogeneity source(s)", len(library))
        return library

    def add(self, source: HeterogeneitySource) -> None:
        """Append a source; later sources combine after earlier ones."""
        if not isinstance(source, HeterogeneitySource):
            raise TypeError(f"expected a HeterogeneitySource, got {type(source).__name__}")
        self.sources.append(source)
        logger.debug("Added heterogeneity source %r", source)

    def __len__(self) -> int:
        return len(self.sources)

    def __iter__(self) -> Iterator[HeterogeneitySource]:
        return iter(self.sources)

    def __getitem__(self, index: int) -> HeterogeneitySource:
        return self.sources[index]

    def evaluate(
        self,
        r: float,
        theta: float,
        phi: float,
        r_elem_center: float | None = None,
    ) -> list[tuple[HeterogeneitySource, Perturbation]]:
        """Evaluate every source at one point.

        Args:
            r: Radius in meters
            theta: Colatitude in radians
            phi: Azimuth in radians
            r_elem_center: Reference-model radius of the owning element

        Returns:
            (source, perturbation) pairs for the sources whose support
            contains the point, in library order
        """
        hits = []
        for source in self.sources:
            perturbation = source.evaluate(r, theta, phi, r_elem_center)
            if perturbation.in_range:
                hits.append((source, perturbation))
        return hits

    def evaluate_many(self, rtp: ArrayLike) -> list[SampledPerturbation]:
        """Evaluate every source at many points.

        Args:
            rtp: (..., 3) array of (radius, colatitude, azimuth)

        Returns:
            One SampledPerturbation per source, in library order, with
            values shaped (..., 5) and masks shaped (...)
        """
        rtp = np.asarray(rtp, dtype=np.float64)
        if rtp.shape[-1] != 3:
            raise ValueError(f"rtp must have 3 components, got shape {rtp.shape}")

        lead_shape = rtp.shape[:-1]
        flat = rtp.reshape(-1, 3)
        samples = []
        for source in self.sources:
            values, in_range = source.evaluate_many(flat)
            samples.append(
                SampledPerturbation(
                    source=source,
                    values=values.reshape(*lead_shape, 5),
                    in_range=in_range.reshape(lead_shape),
                )
            )
        return samples

    def describe(self) -> str:
        """Concatenate the summary blocks of all sources."""
        return "".join(source.describe() for source in self.sources)

    def __repr__(self) -> str:
        names = ", ".join(source.model_name for source in self.sources)
        return f"HeterogeneityLibrary([{names}])"
