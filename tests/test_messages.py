"""
Tests for typed shell messages.
"""

import mido
import pytest

from cc_router.errors import MalformedMessage
from cc_router.mappings import Curve
from cc_router.messages import (
    AutoMapMessage,
    CCMessage,
    DebugMessage,
    FloatMessage,
    RemoveMappingMessage,
    SetMappingMessage,
)


class TestCCMessage:

    def test_two_args(self):
        assert CCMessage.from_args([13, 64]) == CCMessage(13, 64, 0)

    def test_with_channel(self):
        assert CCMessage.from_args([13, 64, 9]).channel == 9

    def test_accepts_integral_floats_and_strings(self):
        assert CCMessage.from_args([13.0, "64"]) == CCMessage(13, 64, 0)

    @pytest.mark.parametrize("args", [
        [13],
        [13, 64, 0, 1],
        [13, 64.5],
        [True, 64],
        ["thirteen", 64],
        [128, 0],
        [13, -1],
        [13, 64, 16],
    ])
    def test_malformed(self, args):
        with pytest.raises(MalformedMessage):
            CCMessage.from_args(args)

    def test_arity_error_shows_usage(self):
        with pytest.raises(MalformedMessage) as exc:
            CCMessage.from_args([13])
        assert "Usage: list <ccNumber> <value> [channel]" in str(exc.value)

    def test_from_mido(self):
        msg = mido.Message('control_change', channel=2, control=21, value=100)
        assert CCMessage.from_mido(msg) == CCMessage(21, 100, 2)

    def test_from_mido_rejects_other_types(self):
        with pytest.raises(MalformedMessage):
            CCMessage.from_mido(mido.Message('note_on', note=60, velocity=100))


class TestOtherMessages:

    def test_setmapping_minimal(self):
        m = SetMappingMessage.from_args([21, 1, 4])
        assert (m.cc_number, m.device_index, m.parameter_index) == (21, 1, 4)
        assert m.parameter_name is None
        assert m.curve == Curve.LINEAR

    def test_setmapping_full(self):
        m = SetMappingMessage.from_args([21, 1, 4, "Cutoff", "exponential"])
        assert m.parameter_name == "Cutoff"
        assert m.curve == Curve.EXPONENTIAL

    def test_setmapping_bad_curve(self):
        with pytest.raises(MalformedMessage):
            SetMappingMessage.from_args([21, 1, 4, "Cutoff", "wobbly"])

    def test_setmapping_negative_index(self):
        with pytest.raises(MalformedMessage):
            SetMappingMessage.from_args([21, -1, 4])

    def test_removemapping(self):
        assert RemoveMappingMessage.from_args([21]).cc_number == 21
        with pytest.raises(MalformedMessage):
            RemoveMappingMessage.from_args([])

    def test_debug(self):
        assert DebugMessage.from_args([1]).enabled is True
        assert DebugMessage.from_args([0]).enabled is False
        with pytest.raises(MalformedMessage):
            DebugMessage.from_args([2])

    def test_automap(self):
        assert AutoMapMessage.from_args([]).device_index is None
        assert AutoMapMessage.from_args([2]).device_index == 2

    def test_float(self):
        assert FloatMessage.from_args([0.25]).value == 0.25
        with pytest.raises(MalformedMessage):
            FloatMessage.from_args([1.5])
        with pytest.raises(MalformedMessage):
            FloatMessage.from_args(["loud"])
