"""
CC -> Parameter Mapping Table.

Holds the active routing rules for the router. Each rule maps one MIDI CC
number to a (device index, parameter index) pair on the selected track.
At most one rule per CC number is active; order is insertion order.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, List, Dict, Any, Iterable, Iterator, Union

from .errors import MalformedMessage


class Curve(Enum):
    """Response curve applied to the normalized MIDI value."""
    LINEAR = "linear"
    EXPONENTIAL = "exponential"    # x^2
    LOGARITHMIC = "logarithmic"    # sqrt(x)

    @classmethod
    def parse(cls, value: Union['Curve', str, None]) -> 'Curve':
        """Accept a Curve or its string value (case-insensitive). None means linear."""
        if value is None:
            return cls.LINEAR
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(c.value for c in cls)
            raise MalformedMessage(f"Unknown curve '{value}' (expected one of: {valid})") from None


@dataclass
class ParameterMapping:
    """One routing rule: CC number -> device parameter."""
    cc_number: int
    device_index: int
    parameter_index: int
    parameter_name: str = ""
    curve: Curve = Curve.LINEAR
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    def __post_init__(self):
        self.curve = Curve.parse(self.curve)
        if not self.parameter_name:
            self.parameter_name = default_parameter_name(self.cc_number, self.parameter_index)

    @property
    def has_range(self) -> bool:
        """Whether both range bounds are set."""
        return self.min_value is not None and self.max_value is not None

    def copy(self) -> 'ParameterMapping':
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the catalog JSON shape (without the CC key)."""
        data = {
            'deviceIndex': self.device_index,
            'parameterIndex': self.parameter_index,
            'parameterName': self.parameter_name,
            'curve': self.curve.value,
        }
        if self.min_value is not None:
            data['minValue'] = self.min_value
        if self.max_value is not None:
            data['maxValue'] = self.max_value
        return data

    @classmethod
    def from_dict(cls, cc_number: int, data: Dict[str, Any]) -> 'ParameterMapping':
        """Deserialize from the catalog JSON shape."""
        return cls(
            cc_number=int(cc_number),
            device_index=int(data.get('deviceIndex', 0)),
            parameter_index=int(data['parameterIndex']),
            parameter_name=data.get('parameterName', ''),
            curve=Curve.parse(data.get('curve')),
            min_value=data.get('minValue'),
            max_value=data.get('maxValue'),
        )

    def __str__(self) -> str:
        return (f"CC {self.cc_number} -> Device {self.device_index} "
                f"Param {self.parameter_index} ({self.curve.value})")


def default_parameter_name(cc_number: int, parameter_index: int) -> str:
    return f"CC {cc_number} -> Param {parameter_index}"


# Launch Control XL3 top-row knobs. Device 0 is the router's own slot,
# so the defaults target the first plugin after it.
DEFAULT_FIRST_CC = 13
DEFAULT_KNOB_COUNT = 8
DEFAULT_DEVICE_INDEX = 1


def default_mappings() -> List[ParameterMapping]:
    """The 8 built-in mappings: CC 13-20 -> device 1, parameters 0-7."""
    return [
        ParameterMapping(
            cc_number=DEFAULT_FIRST_CC + i,
            device_index=DEFAULT_DEVICE_INDEX,
            parameter_index=i,
            parameter_name=f"Knob {i + 1}",
            curve=Curve.LINEAR,
        )
        for i in range(DEFAULT_KNOB_COUNT)
    ]


class MappingTable:
    """
    Ordered table of ParameterMapping records keyed by CC number.

    Usage:
        table = MappingTable()
        table.initialize_defaults()
        table.upsert(21, 2, 5, "Cutoff", "exponential")
        mapping = table.find(21)
        table.remove(21)
    """

    def __init__(self, mappings: Optional[Iterable[ParameterMapping]] = None):
        self._mappings: List[ParameterMapping] = []
        if mappings is not None:
            self.replace_all(mappings)

    def initialize_defaults(self) -> None:
        """Reset the table to the built-in mappings."""
        self._mappings = default_mappings()

    def upsert(self, cc_number: int, device_index: int, parameter_index: int,
               parameter_name: Optional[str] = None,
               curve: Union[Curve, str, None] = None,
               min_value: Optional[float] = None,
               max_value: Optional[float] = None) -> ParameterMapping:
        """
        Add a mapping, or replace the existing one for cc_number in place.

        Device and parameter indices are not validated here; they are
        checked against the live session when a message is routed.

        Returns:
            The stored mapping
        """
        mapping = ParameterMapping(
            cc_number=cc_number,
            device_index=device_index,
            parameter_index=parameter_index,
            parameter_name=parameter_name or default_parameter_name(cc_number, parameter_index),
            curve=Curve.parse(curve),
            min_value=min_value,
            max_value=max_value,
        )

        position = self._position(cc_number)
        if position is None:
            self._mappings.append(mapping)
        else:
            self._mappings[position] = mapping
        return mapping

    def remove(self, cc_number: int) -> bool:
        """
        Remove the mapping for cc_number.

        Returns:
            True if a mapping was removed, False if none existed
        """
        position = self._position(cc_number)
        if position is None:
            return False
        del self._mappings[position]
        return True

    def find(self, cc_number: int) -> Optional[ParameterMapping]:
        """Exact-key lookup."""
        for mapping in self._mappings:
            if mapping.cc_number == cc_number:
                return mapping
        return None

    def replace_all(self, mappings: Iterable[ParameterMapping]) -> None:
        """Clear the table, then upsert every mapping in sequence order."""
        mappings = list(mappings)
        self._mappings = []
        for m in mappings:
            self.upsert(m.cc_number, m.device_index, m.parameter_index,
                        m.parameter_name, m.curve, m.min_value, m.max_value)

    def snapshot(self) -> List[ParameterMapping]:
        """Independent copy of the table contents."""
        return [m.copy() for m in self._mappings]

    def clear(self) -> None:
        self._mappings = []

    def _position(self, cc_number: int) -> Optional[int]:
        for i, mapping in enumerate(self._mappings):
            if mapping.cc_number == cc_number:
                return i
        return None

    def __len__(self) -> int:
        return len(self._mappings)

    def __iter__(self) -> Iterator[ParameterMapping]:
        return iter(self.snapshot())

    def __contains__(self, cc_number: int) -> bool:
        return self._position(cc_number) is not None
