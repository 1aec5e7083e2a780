"""Tests for sampling heterogeneity at element nodes."""

import numpy as np
import pytest

from strata_sem.models import (
    HeterogeneityLibrary,
    ReferenceType,
    element_coordinates,
    sample_element,
)

# Depth of the first bubble is 100 km
BUBBLE_CENTER_R = 6371e3 - 100e3


@pytest.fixture
def bubble_element(element_factory):
    """Element of 20 km × 20 km around the bubble center, on the equator."""
    r = BUBBLE_CENTER_R
    corners = [(r - 10e3, -10e3), (r + 10e3, -10e3), (r + 10e3, 10e3), (r - 10e3, 10e3)]
    return element_factory(corners, nr=8)


@pytest.fixture
def library(bubble_params):
    return HeterogeneityLibrary.from_records(
        [("bubble", bubble_params), ("bubble", [300, 45, 90, 0, 40, -0.02, 2])]
    )


class TestElementCoordinates:
    def test_shape_and_azimuths(self, fluid_element):
        rtp = element_coordinates(fluid_element)
        assert rtp.shape == (8, 5, 5, 3)
        np.testing.assert_allclose(rtp[:, 2, 2, 2], 2 * np.pi * np.arange(8) / 8)

    def test_uses_element_geometry(self, fluid_element):
        rtp = element_coordinates(fluid_element)
        np.testing.assert_array_equal(rtp[3, ..., 1], fluid_element.form_theta_mat())
        np.testing.assert_array_equal(rtp[5, ..., 0], fluid_element.form_radius_mat())


class TestSampleElement:
    def test_bubble_hits_prime_meridian_only(self, bubble_element, library):
        result = sample_element(library, bubble_element)
        first = result.samples[0]
        assert first.values.shape == (8, 5, 5, 5)
        # Every node lies within the 50 km core at φ = 0
        assert np.all(first.in_range[0])
        np.testing.assert_array_equal(first.values[0], 0.05)
        # A quarter turn away the bubble is thousands of km off
        assert not np.any(first.in_range[2])

    def test_active_sources(self, bubble_element, library):
        result = sample_element(library, bubble_element)
        assert result.any_in_range
        assert result.reference_types == [ReferenceType.ABSOLUTE, ReferenceType.REFERENCE_DIFF]
        active = result.active()
        assert len(active) == 1
        assert active[0].source is library[0]

    def test_no_hits(self, fluid_element, library):
        result = sample_element(library, fluid_element)
        assert not result.any_in_range
        assert result.active() == []
