"""Sampling heterogeneity sources at the nodes of spectral elements.

Each element node (s, z) sweeps a circle of max_nr equispaced azimuths
φ_k = 2πk / max_nr. The node's spherical coordinates come from the
element's own geometry (form_theta_mat() and node radii); every library
source is then evaluated at all (azimuth, node) pairs at once.

Combining the returned perturbations with a reference model is left to the
caller, who applies each source's reference type in library order.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from strata_sem.element.base import Element

from .base import ReferenceType
from .library import HeterogeneityLibrary, SampledPerturbation


@dataclass(frozen=True)
class ElementPerturbations:
    """Heterogeneity samples over one element.

    Attributes:
        rtp: (max_nr, 5, 5, 3) sampled (radius, colatitude, azimuth)
        samples: One SampledPerturbation per library source, with values
            shaped (max_nr, 5, 5, 5) and masks shaped (max_nr, 5, 5)
    """

    rtp: NDArray[np.float64]
    samples: list[SampledPerturbation]

    @property
    def reference_types(self) -> list[ReferenceType]:
        return [sample.reference_type for sample in self.samples]

    @property
    def any_in_range(self) -> bool:
        """Whether any source touches any node of the element."""
        return any(sample.n_in_range > 0 for sample in self.samples)

    def active(self) -> list[SampledPerturbation]:
        """Samples of sources that touch the element and affect something."""
        return [s for s in self.samples if s.n_in_range > 0 and s.source.affects_any]


def element_coordinates(element: Element) -> NDArray[np.float64]:
    """(max_nr, 5, 5, 3) spherical coordinates of the element's azimuth samples."""
    theta = element.form_theta_mat()
    r = element.form_radius_mat()
    phi = 2 * np.pi * np.arange(element.max_nr) / element.max_nr

    nr = element.max_nr
    rtp = np.empty((nr,) + theta.shape + (3,), dtype=np.float64)
    rtp[..., 0] = r
    rtp[..., 1] = theta
    rtp[..., 2] = phi[:, np.newaxis, np.newaxis]
    return rtp


def sample_element(library: HeterogeneityLibrary, element: Element) -> ElementPerturbations:
    """Evaluate every library source at every azimuth sample of an element."""
    rtp = element_coordinates(element)
    return ElementPerturbations(rtp=rtp, samples=library.evaluate_many(rtp))
