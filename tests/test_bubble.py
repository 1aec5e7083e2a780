"""Tests for the Gaussian bubble heterogeneity.

Tests verify:
- Parsing of configuration records, including default-on flags
- Flat response inside the core and the half-maximum at one HWHM
- Hard cutoff at 4 HWHM beyond the core edge
- Flag handling and in-range reporting
- Vectorised evaluation and the summary block
"""

import dataclasses
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from strata_sem.models import (
    BubbleSource,
    HeterogeneityConfigError,
    HeterogeneityLibrary,
    Perturbation,
    ReferenceType,
)

EQUATOR = np.pi / 2


def center_radius(bubble):
    return bubble.r_outer - bubble.depth


def radial_query(bubble, distance):
    """Perturbation at a point `distance` meters below the bubble center."""
    return bubble.evaluate(center_radius(bubble) - distance, EQUATOR, 0.0)


# =============================================================================
# Configuration
# =============================================================================


class TestFromParams:
    def test_units_converted(self, bubble_params):
        """Lengths are given in km and stored in meters."""
        bubble = BubbleSource.from_params(bubble_params)
        assert bubble.depth == 100e3
        assert bubble.radius == 50e3
        assert bubble.hwhm == 20e3
        assert bubble.lat == 0.0
        assert bubble.lon == 0.0
        assert bubble.magnitude == 0.05
        assert bubble.reference_type == ReferenceType.ABSOLUTE

    def test_seven_params_enable_all_quantities(self, bubble_params):
        """Without flags every quantity is affected."""
        bubble = BubbleSource.from_params(bubble_params)
        assert bubble.affects_vp
        assert bubble.affects_vs
        assert bubble.affects_rho

    def test_eighth_param_disables_only_vp(self, bubble_params):
        """A single zero flag disables Vp; the missing flags stay on."""
        bubble = BubbleSource.from_params(bubble_params + [0])
        assert not bubble.affects_vp
        assert bubble.affects_vs
        assert bubble.affects_rho

    def test_partial_flags_warn(self, bubble_params, caplog):
        with caplog.at_level("WARNING"):
            BubbleSource.from_params(bubble_params + [1, 0])
        assert "missing ones stay enabled" in caplog.text

    def test_all_flags(self, bubble_params):
        bubble = BubbleSource.from_params(bubble_params + [1, 0, 1])
        assert bubble.affects_vp
        assert not bubble.affects_vs
        assert bubble.affects_rho

    def test_tiny_flag_counts_as_off(self, bubble_params):
        """Flags must exceed a tiny positive epsilon to count as on."""
        bubble = BubbleSource.from_params(bubble_params + [1e-200, 1e-50, -1])
        assert not bubble.affects_vp
        assert bubble.affects_vs
        assert not bubble.affects_rho

    @pytest.mark.parametrize("n", range(7))
    def test_too_few_params(self, bubble_params, n):
        """Fewer than 7 parameters is a configuration error."""
        with pytest.raises(HeterogeneityConfigError, match="Not enough parameters"):
            BubbleSource.from_params(bubble_params[:n])

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            BubbleSource.from_params([1, 2, 3])

    @pytest.mark.parametrize("bad", [None, "deep", [1]])
    def test_non_numeric_param(self, bubble_params, bad):
        bubble_params[5] = bad
        with pytest.raises(HeterogeneityConfigError, match="Invalid bubble parameter"):
            BubbleSource.from_params(bubble_params)

    @pytest.mark.parametrize(
        "code,expected",
        [
            (0, ReferenceType.ABSOLUTE),
            (0.49, ReferenceType.ABSOLUTE),
            (0.5, ReferenceType.REFERENCE_1D),
            (1.49, ReferenceType.REFERENCE_1D),
            (1.5, ReferenceType.REFERENCE_DIFF),
            (2.49, ReferenceType.REFERENCE_DIFF),
            (2.5, ReferenceType.REFERENCE_3D),
            (17, ReferenceType.REFERENCE_3D),
        ],
    )
    def test_reference_type_buckets(self, bubble_params, code, expected):
        params = bubble_params[:6] + [code]
        assert BubbleSource.from_params(params).reference_type == expected

    def test_rejects_non_positive_hwhm(self, bubble_params):
        bubble_params[4] = 0
        with pytest.raises(HeterogeneityConfigError, match="HWHM"):
            BubbleSource.from_params(bubble_params)

    def test_rejects_negative_radius(self, bubble_params):
        bubble_params[3] = -1
        with pytest.raises(HeterogeneityConfigError, match="radius"):
            BubbleSource.from_params(bubble_params)

    def test_immutable(self, bubble_params):
        bubble = BubbleSource.from_params(bubble_params)
        with pytest.raises(dataclasses.FrozenInstanceError):
            bubble.magnitude = 1.0


# =============================================================================
# Evaluation
# =============================================================================


class TestEvaluate:
    def test_anchor_point(self, bubble_params):
        """The center returns the peak on every quantity."""
        bubble = BubbleSource.from_params(bubble_params)
        p = radial_query(bubble, 0.0)
        assert p == Perturbation(0.05, 0.05, 0.05, 0.05, 0.05, in_range=True)

    def test_far_point(self, bubble_params):
        """250 km below the center is far outside the support."""
        bubble = BubbleSource.from_params(bubble_params)
        p = radial_query(bubble, 250e3)
        assert p == Perturbation(0.0, 0.0, 0.0, 0.0, 0.0, in_range=False)

    @pytest.mark.parametrize("distance", [0.0, 10e3, 25e3, 49.999e3])
    def test_flat_inside_core(self, bubble_params, distance):
        """Anywhere inside the core the response is the exact peak."""
        bubble = BubbleSource.from_params(bubble_params)
        p = radial_query(bubble, distance)
        assert p.in_range
        np.testing.assert_array_equal(p.as_array(), np.full(5, 0.05))

    def test_half_maximum_one_hwhm_beyond_core(self, bubble_params):
        """One HWHM past the core edge the response is half the peak."""
        bubble = BubbleSource.from_params(bubble_params)
        p = radial_query(bubble, 50e3 + 20e3)
        assert p.dvsh == pytest.approx(0.025, rel=1e-12)

    def test_cutoff_boundary_in_range(self, bubble_params):
        """Exactly 4 HWHM past the core edge is still in range with a residual."""
        bubble = BubbleSource.from_params(bubble_params)
        p = radial_query(bubble, 50e3 + 80e3)
        assert p.in_range
        assert p.drho > 0
        assert p.drho == pytest.approx(0.05 * 2.0**-16, rel=1e-9)

    def test_cutoff_is_hard(self, bubble_params):
        """Just beyond 4 HWHM the bubble reports nothing at all."""
        bubble = BubbleSource.from_params(bubble_params)
        p = radial_query(bubble, 50e3 + 80e3 + 1.0)
        assert not p.in_range
        assert p.is_zero

    def test_monotonic_decay(self, bubble_params):
        """Response never increases with distance."""
        bubble = BubbleSource.from_params(bubble_params)
        distances = np.linspace(0, 140e3, 200)
        rtp = np.column_stack(
            [center_radius(bubble) - distances, np.full_like(distances, EQUATOR), np.zeros_like(distances)]
        )
        values, _ = bubble.evaluate_many(rtp)
        assert np.all(np.diff(values[:, 0]) <= 0)

    def test_negative_magnitude(self, bubble_params):
        bubble_params[5] = -0.1
        bubble = BubbleSource.from_params(bubble_params)
        assert radial_query(bubble, 0.0).dvpv == -0.1

    def test_flags_zero_unaffected_quantities(self, bubble_params):
        """Quantities whose flag is off stay exactly zero."""
        bubble = BubbleSource.from_params(bubble_params + [1, 0, 0])
        p = radial_query(bubble, 0.0)
        assert (p.dvpv, p.dvph) == (0.05, 0.05)
        assert (p.dvsv, p.dvsh, p.drho) == (0.0, 0.0, 0.0)

    def test_in_range_without_effect(self, bubble_params):
        """In range and having an effect are reported separately."""
        bubble = BubbleSource.from_params(bubble_params + [0, 0, 0])
        p = radial_query(bubble, 0.0)
        assert p.in_range
        assert p.is_zero
        assert not bubble.affects_any

    def test_lateral_offset(self, bubble_params):
        """Distance is Euclidean, so a lateral offset behaves like a radial one."""
        bubble = BubbleSource.from_params(bubble_params)
        # Arc of 70 km along the equator at the bubble's radius
        r = center_radius(bubble)
        dphi = 70e3 / r
        chord = 2 * r * np.sin(dphi / 2)
        p = bubble.evaluate(r, EQUATOR, dphi)
        expected = bubble.response(chord)
        assert p.dvpv == pytest.approx(float(expected), rel=1e-9)

    def test_negative_longitude_center(self):
        """Centers west of Greenwich are found at the wrapped azimuth."""
        bubble = BubbleSource.from_params([0, 0, -90, 10, 10, 1.0, 0])
        p = bubble.evaluate(bubble.r_outer, EQUATOR, 1.5 * np.pi)
        assert p.dvpv == pytest.approx(1.0)

    def test_evaluate_many_matches_evaluate(self, bubble_params):
        bubble = BubbleSource.from_params(bubble_params)
        rng = np.random.default_rng(7)
        rtp = np.column_stack(
            [
                center_radius(bubble) + rng.uniform(-200e3, 200e3, 40),
                EQUATOR + rng.uniform(-0.03, 0.03, 40),
                rng.uniform(-0.03, 0.03, 40) % (2 * np.pi),
            ]
        )
        values, in_range = bubble.evaluate_many(rtp)
        for row, flag, point in zip(values, in_range, rtp):
            p = bubble.evaluate(*point)
            assert p.in_range == flag
            np.testing.assert_allclose(p.as_array(), row, rtol=1e-14)

    def test_evaluate_many_shape_check(self, bubble_params):
        bubble = BubbleSource.from_params(bubble_params)
        with pytest.raises(ValueError, match="Nx3"):
            bubble.evaluate_many(np.zeros((4, 2)))

    def test_custom_outer_radius(self, bubble_params):
        """The anchor radius follows the configured outer radius."""
        bubble = BubbleSource.from_params(bubble_params, r_outer=3390e3)
        p = bubble.evaluate(3390e3 - 100e3, EQUATOR, 0.0)
        assert p.dvpv == 0.05


class TestDescribe:
    def test_summary_block(self, bubble_params):
        text = BubbleSource.from_params(bubble_params + [0]).describe()
        assert "3D Volumetric" in text
        assert "Model Name          =   bubble" in text
        assert "Depth / km          =   100" in text
        assert "Bubble Radius / km  =   50" in text
        assert "HWHM / km           =   20" in text
        assert "Maximum at Center   =   0.05" in text
        assert "Reference Type      =   Absolute" in text
        assert "Affect VP           =   NO" in text
        assert "Affect VS           =   YES" in text
        assert "Affect Density      =   YES" in text


# =============================================================================
# Thread safety
# =============================================================================


def scattered_points(bubble, n, seed=11):
    """Points spread across the support of the bubble and beyond it."""
    rng = np.random.default_rng(seed)
    return np.column_stack(
        [
            center_radius(bubble) + rng.uniform(-200e3, 200e3, n),
            EQUATOR + rng.uniform(-0.04, 0.04, n),
            rng.uniform(-0.04, 0.04, n) % (2 * np.pi),
        ]
    )


class TestConcurrentEvaluation:
    """Sources are immutable, so evaluation can be shared across threads."""

    def test_evaluate_from_threads(self, bubble_params):
        bubble = BubbleSource.from_params(bubble_params + [1, 0, 1])
        rtp = scattered_points(bubble, 2000)
        serial = [bubble.evaluate(*point) for point in rtp]

        with ThreadPoolExecutor(max_workers=8) as pool:
            threaded = list(pool.map(lambda point: bubble.evaluate(*point), rtp))

        assert threaded == serial
        assert any(p.in_range for p in serial)
        assert not all(p.in_range for p in serial)

    def test_library_evaluate_many_from_threads(self, bubble_params):
        library = HeterogeneityLibrary.from_records(
            [("bubble", bubble_params), ("bubble", [150, 1, 1, 0, 40, -0.02, 1])]
        )
        rtp = scattered_points(library[0], 4000)
        serial = library.evaluate_many(rtp)

        chunks = np.array_split(rtp, 32)
        with ThreadPoolExecutor(max_workers=8) as pool:
            threaded = list(pool.map(library.evaluate_many, chunks))

        for index, expected in enumerate(serial):
            values = np.concatenate([samples[index].values for samples in threaded])
            in_range = np.concatenate([samples[index].in_range for samples in threaded])
            np.testing.assert_array_equal(in_range, expected.in_range)
            np.testing.assert_allclose(values, expected.values, rtol=1e-14, atol=0)
