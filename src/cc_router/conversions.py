"""
Value Conversions for the CC Router.

Converts raw 7-bit MIDI values (0-127) to the float written to a Live
parameter: normalize, shape through the mapping's curve, then remap to
the mapping's range if it has one.

Curve naming follows existing mapping data: "exponential" squares the
value and "logarithmic" takes its square root.
"""

import math
from typing import Optional

from .mappings import Curve, ParameterMapping


MIDI_MAX = 127


# =============================================================================
# MIDI Normalization
# =============================================================================

def midi_to_normalized(midi_value: int) -> float:
    """
    Convert a MIDI value to 0.0-1.0.

    Args:
        midi_value: MIDI value 0-127

    Returns:
        midi_value / 127

    Examples:
        >>> midi_to_normalized(0)    # 0.0
        >>> midi_to_normalized(64)   # ~0.504
        >>> midi_to_normalized(127)  # 1.0
    """
    return midi_value / float(MIDI_MAX)


def normalized_to_midi(normalized: float) -> int:
    """
    Convert a 0.0-1.0 value to the nearest MIDI value.

    Args:
        normalized: Normalized value 0.0-1.0

    Returns:
        MIDI value 0-127
    """
    normalized = max(0.0, min(1.0, normalized))  # Clamp to range
    return int(round(normalized * MIDI_MAX))


# =============================================================================
# Curves
# =============================================================================

def apply_curve(normalized: float, curve: Curve) -> float:
    """
    Shape a normalized value.

    Args:
        normalized: Value 0.0-1.0
        curve: Response curve

    Returns:
        Shaped value 0.0-1.0
    """
    if curve == Curve.EXPONENTIAL:
        return normalized * normalized
    if curve == Curve.LOGARITHMIC:
        return math.sqrt(normalized)
    return normalized


# =============================================================================
# Range Remapping
# =============================================================================

def scale_to_range(normalized: float,
                   min_value: Optional[float] = None,
                   max_value: Optional[float] = None) -> float:
    """
    Remap a normalized value into [min_value, max_value].

    Only applies when both bounds are given; otherwise the value is
    returned unchanged.
    """
    if min_value is None or max_value is None:
        return normalized
    return min_value + normalized * (max_value - min_value)


def transform_value(midi_value: int, mapping: ParameterMapping) -> float:
    """
    Transform a MIDI value (0-127) through a mapping's curve and range.

    Args:
        midi_value: MIDI value 0-127
        mapping: Mapping providing curve and optional range

    Returns:
        Value in [0, 1], or in [min_value, max_value] when the mapping has a range

    Examples:
        >>> m = ParameterMapping(13, 2, 5, "Cutoff", Curve.EXPONENTIAL)
        >>> transform_value(64, m)   # (64/127)^2 ~0.254
    """
    normalized = midi_to_normalized(midi_value)
    shaped = apply_curve(normalized, mapping.curve)
    return scale_to_range(shaped, mapping.min_value, mapping.max_value)
