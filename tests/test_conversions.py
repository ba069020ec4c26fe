"""
Tests for MIDI value transforms.
"""

import math

import pytest

from cc_router.conversions import (
    apply_curve,
    midi_to_normalized,
    normalized_to_midi,
    scale_to_range,
    transform_value,
)
from cc_router.mappings import Curve, ParameterMapping


class TestNormalization:

    def test_boundaries(self):
        assert midi_to_normalized(0) == 0.0
        assert midi_to_normalized(127) == 1.0

    def test_midpoint(self):
        assert midi_to_normalized(64) == pytest.approx(64 / 127)

    def test_normalized_to_midi_rounds_and_clamps(self):
        assert normalized_to_midi(0.5) == 64
        assert normalized_to_midi(1.0) == 127
        assert normalized_to_midi(-0.3) == 0
        assert normalized_to_midi(2.0) == 127


class TestCurves:

    def test_linear(self):
        assert apply_curve(0.3, Curve.LINEAR) == 0.3

    def test_exponential_squares(self):
        assert apply_curve(0.5, Curve.EXPONENTIAL) == pytest.approx(0.25)

    def test_logarithmic_square_root(self):
        assert apply_curve(0.25, Curve.LOGARITHMIC) == pytest.approx(0.5)

    @pytest.mark.parametrize("curve", list(Curve))
    def test_curves_fix_endpoints(self, curve):
        assert apply_curve(0.0, curve) == 0.0
        assert apply_curve(1.0, curve) == 1.0


class TestRange:

    def test_needs_both_bounds(self):
        assert scale_to_range(0.5, 0.2, None) == 0.5
        assert scale_to_range(0.5, None, 0.8) == 0.5

    def test_remaps(self):
        assert scale_to_range(0.5, 0.2, 0.8) == pytest.approx(0.5)
        assert scale_to_range(0.0, 0.2, 0.8) == pytest.approx(0.2)


class TestTransformValue:

    def test_linear_full_range_is_identity_on_midi(self):
        m = ParameterMapping(13, 1, 0, min_value=0, max_value=127)
        for v in range(128):
            assert transform_value(v, m) == pytest.approx(v)

    def test_exponential_64(self):
        m = ParameterMapping(13, 1, 0, curve=Curve.EXPONENTIAL)
        assert transform_value(64, m) == pytest.approx((64 / 127) ** 2)

    def test_logarithmic_64(self):
        m = ParameterMapping(13, 1, 0, curve=Curve.LOGARITHMIC)
        assert transform_value(64, m) == pytest.approx(math.sqrt(64 / 127))

    @pytest.mark.parametrize("curve", list(Curve))
    def test_endpoints_per_curve(self, curve):
        m = ParameterMapping(13, 1, 0, curve=curve)
        assert transform_value(0, m) == 0.0
        assert transform_value(127, m) == 1.0

    @pytest.mark.parametrize("curve", list(Curve))
    def test_output_stays_within_range(self, curve):
        m = ParameterMapping(13, 1, 0, curve=curve, min_value=0.2, max_value=0.7)
        for v in range(128):
            assert 0.2 - 1e-9 <= transform_value(v, m) <= 0.7 + 1e-9
