"""
Tests for the mapping table.

Tests default mappings, upsert/remove semantics and snapshot independence.
"""

import pytest

from cc_router.errors import MalformedMessage
from cc_router.mappings import (
    Curve,
    MappingTable,
    ParameterMapping,
    default_mappings,
    DEFAULT_DEVICE_INDEX,
)


class TestCurve:
    """Tests for curve parsing."""

    def test_parse_none_is_linear(self):
        assert Curve.parse(None) == Curve.LINEAR

    def test_parse_is_case_insensitive(self):
        assert Curve.parse("Exponential") == Curve.EXPONENTIAL
        assert Curve.parse(" LOGARITHMIC ") == Curve.LOGARITHMIC

    def test_parse_passes_curve_through(self):
        assert Curve.parse(Curve.EXPONENTIAL) is Curve.EXPONENTIAL

    def test_parse_unknown_raises(self):
        with pytest.raises(MalformedMessage) as exc:
            Curve.parse("s-curve")
        assert "s-curve" in str(exc.value)


class TestDefaults:
    """Tests for the built-in knob mappings."""

    def test_eight_knobs_on_cc_13_to_20(self):
        mappings = default_mappings()
        assert [m.cc_number for m in mappings] == list(range(13, 21))

    def test_defaults_target_first_plugin_after_router(self):
        for i, m in enumerate(default_mappings()):
            assert m.device_index == DEFAULT_DEVICE_INDEX == 1
            assert m.parameter_index == i
            assert m.parameter_name == f"Knob {i + 1}"
            assert m.curve == Curve.LINEAR

    def test_initialize_defaults_resets_table(self):
        table = MappingTable()
        table.upsert(99, 3, 3)
        table.initialize_defaults()
        assert len(table) == 8
        assert 99 not in table


class TestParameterMapping:
    """Tests for the mapping record."""

    def test_default_name(self):
        m = ParameterMapping(cc_number=21, device_index=2, parameter_index=5)
        assert m.parameter_name == "CC 21 -> Param 5"

    def test_string_curve_is_parsed(self):
        m = ParameterMapping(21, 2, 5, "Cutoff", "exponential")
        assert m.curve is Curve.EXPONENTIAL

    def test_has_range_needs_both_bounds(self):
        assert not ParameterMapping(1, 1, 1, min_value=0.2).has_range
        assert ParameterMapping(1, 1, 1, min_value=0.2, max_value=0.8).has_range

    def test_to_dict_omits_unset_range(self):
        data = ParameterMapping(21, 2, 5, "Cutoff").to_dict()
        assert data == {
            'deviceIndex': 2,
            'parameterIndex': 5,
            'parameterName': 'Cutoff',
            'curve': 'linear',
        }

    def test_from_dict(self):
        m = ParameterMapping.from_dict("21", {
            'deviceIndex': 0, 'parameterIndex': 7, 'parameterName': 'Drive',
            'curve': 'logarithmic', 'minValue': 0.1, 'maxValue': 0.9,
        })
        assert m.cc_number == 21
        assert m.curve == Curve.LOGARITHMIC
        assert (m.min_value, m.max_value) == (0.1, 0.9)

    def test_str(self):
        assert str(ParameterMapping(21, 2, 5)) == "CC 21 -> Device 2 Param 5 (linear)"


class TestMappingTable:
    """Tests for upsert/remove/find."""

    def test_upsert_adds(self):
        table = MappingTable()
        table.upsert(21, 2, 5, "Cutoff", "exponential")
        m = table.find(21)
        assert (m.device_index, m.parameter_index) == (2, 5)
        assert m.curve == Curve.EXPONENTIAL

    def test_upsert_same_cc_replaces_in_place(self):
        table = MappingTable()
        table.initialize_defaults()
        table.upsert(15, 4, 9, "Drive")
        assert len(table) == 8
        assert [m.cc_number for m in table][2] == 15
        assert table.find(15).parameter_name == "Drive"

    def test_upsert_is_idempotent(self):
        table = MappingTable()
        table.upsert(21, 2, 5, "Cutoff")
        before = table.snapshot()
        table.upsert(21, 2, 5, "Cutoff")
        assert table.snapshot() == before

    def test_upsert_without_name_uses_default(self):
        table = MappingTable()
        assert table.upsert(40, 1, 3).parameter_name == "CC 40 -> Param 3"

    def test_upsert_then_remove_leaves_cc_unmapped(self):
        table = MappingTable()
        table.initialize_defaults()
        table.upsert(21, 2, 5)
        assert table.remove(21) is True
        assert table.find(21) is None
        assert len(table) == 8

    def test_remove_unmapped_is_not_an_error(self):
        table = MappingTable()
        assert table.remove(77) is False

    def test_indices_are_not_validated(self):
        table = MappingTable()
        table.upsert(21, 50, 500)
        assert table.find(21).device_index == 50

    def test_snapshot_is_independent(self):
        table = MappingTable()
        table.initialize_defaults()
        snap = table.snapshot()
        snap[0].device_index = 42
        snap.clear()
        assert len(table) == 8
        assert table.find(13).device_index == 1

    def test_replace_all_keeps_last_duplicate(self):
        table = MappingTable()
        table.replace_all([
            ParameterMapping(10, 0, 1, "A"),
            ParameterMapping(11, 0, 2, "B"),
            ParameterMapping(10, 0, 3, "C"),
        ])
        assert len(table) == 2
        assert table.find(10).parameter_name == "C"

    def test_clear(self):
        table = MappingTable(default_mappings())
        table.clear()
        assert len(table) == 0
