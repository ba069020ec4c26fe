"""
Typed messages for the router shell.

The host delivers loosely typed argument lists ("list 13 64",
"setmapping 21 1 4 Cutoff exponential"). Each message kind is parsed into
a fixed-arity dataclass here; anything with the wrong arity, type or range
raises MalformedMessage.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .errors import MalformedMessage
from .mappings import Curve


MIDI_DATA_MAX = 127
MIDI_CHANNEL_MAX = 15


def _as_int(value: Any, name: str, low: Optional[int] = None, high: Optional[int] = None) -> int:
    """Coerce a host argument to int, rejecting non-integral values."""
    if isinstance(value, bool):
        raise MalformedMessage(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        result = value
    elif isinstance(value, float) and value.is_integer():
        result = int(value)
    elif isinstance(value, str):
        try:
            result = int(value.strip())
        except ValueError:
            raise MalformedMessage(f"{name} must be an integer, got {value!r}") from None
    else:
        raise MalformedMessage(f"{name} must be an integer, got {value!r}")

    if low is not None and result < low:
        raise MalformedMessage(f"{name} must be >= {low}, got {result}")
    if high is not None and result > high:
        raise MalformedMessage(f"{name} must be <= {high}, got {result}")
    return result


def _check_arity(selector: str, args: Sequence[Any], minimum: int, maximum: int, usage: str) -> None:
    if not minimum <= len(args) <= maximum:
        expected = str(minimum) if minimum == maximum else f"{minimum}-{maximum}"
        raise MalformedMessage(
            f"Invalid {selector} format (expected {expected} values, got {len(args)}). Usage: {usage}"
        )


@dataclass(frozen=True)
class CCMessage:
    """A Control Change: controller number, value and channel (0-15)."""
    cc_number: int
    value: int
    channel: int = 0

    USAGE = "list <ccNumber> <value> [channel]"

    @classmethod
    def from_args(cls, args: Sequence[Any]) -> 'CCMessage':
        _check_arity("MIDI", args, 2, 3, cls.USAGE)
        return cls(
            cc_number=_as_int(args[0], "ccNumber", 0, MIDI_DATA_MAX),
            value=_as_int(args[1], "value", 0, MIDI_DATA_MAX),
            channel=_as_int(args[2], "channel", 0, MIDI_CHANNEL_MAX) if len(args) > 2 else 0,
        )

    @classmethod
    def from_mido(cls, message: Any) -> 'CCMessage':
        """Convert a mido control_change message."""
        if getattr(message, 'type', None) != 'control_change':
            raise MalformedMessage(f"Not a control_change message: {message!r}")
        return cls(cc_number=message.control, value=message.value, channel=message.channel)


@dataclass(frozen=True)
class SetMappingMessage:
    cc_number: int
    device_index: int
    parameter_index: int
    parameter_name: Optional[str] = None
    curve: Curve = Curve.LINEAR

    USAGE = "setmapping <ccNumber> <deviceIndex> <parameterIndex> [parameterName] [curve]"

    @classmethod
    def from_args(cls, args: Sequence[Any]) -> 'SetMappingMessage':
        _check_arity("setmapping", args, 3, 5, cls.USAGE)
        return cls(
            cc_number=_as_int(args[0], "ccNumber", 0, MIDI_DATA_MAX),
            device_index=_as_int(args[1], "deviceIndex", 0),
            parameter_index=_as_int(args[2], "parameterIndex", 0),
            parameter_name=str(args[3]) if len(args) > 3 else None,
            curve=Curve.parse(args[4]) if len(args) > 4 else Curve.LINEAR,
        )


@dataclass(frozen=True)
class RemoveMappingMessage:
    cc_number: int

    USAGE = "removemapping <ccNumber>"

    @classmethod
    def from_args(cls, args: Sequence[Any]) -> 'RemoveMappingMessage':
        _check_arity("removemapping", args, 1, 1, cls.USAGE)
        return cls(cc_number=_as_int(args[0], "ccNumber", 0, MIDI_DATA_MAX))


@dataclass(frozen=True)
class DebugMessage:
    enabled: bool

    USAGE = "debug <0|1>"

    @classmethod
    def from_args(cls, args: Sequence[Any]) -> 'DebugMessage':
        _check_arity("debug", args, 1, 1, cls.USAGE)
        return cls(enabled=_as_int(args[0], "enabled", 0, 1) == 1)


@dataclass(frozen=True)
class AutoMapMessage:
    device_index: Optional[int] = None

    USAGE = "automap [deviceIndex]"

    @classmethod
    def from_args(cls, args: Sequence[Any]) -> 'AutoMapMessage':
        _check_arity("automap", args, 0, 1, cls.USAGE)
        if not args:
            return cls()
        return cls(device_index=_as_int(args[0], "deviceIndex", 0))


@dataclass(frozen=True)
class FloatMessage:
    """A bare normalized value (0.0-1.0) from a dial or slider."""
    value: float

    USAGE = "float <0.0-1.0>"

    @classmethod
    def from_args(cls, args: Sequence[Any]) -> 'FloatMessage':
        _check_arity("float", args, 1, 1, cls.USAGE)
        raw = args[0]
        if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
            raise MalformedMessage(f"value must be a number, got {raw!r}")
        try:
            value = float(raw)
        except ValueError:
            raise MalformedMessage(f"value must be a number, got {raw!r}") from None
        if not 0.0 <= value <= 1.0:
            raise MalformedMessage(f"value must be between 0.0 and 1.0, got {value}")
        return cls(value=value)
