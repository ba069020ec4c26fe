"""
Live Session Capability.

The router only needs three things from the host: the selected track, a
device on that track by index, and a parameter on that device by index.
These are modelled as small abstract handles that are resolved fresh for
every message and never held between calls.

StaticLiveSession is an in-memory implementation built from plain data.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Union


class LiveSessionError(Exception):
    """The host failed while resolving, reading or writing."""


@dataclass(frozen=True)
class TrackInfo:
    """Snapshot of the selected track."""
    id: Union[int, str]
    name: str
    device_count: int


@dataclass(frozen=True)
class DeviceInfo:
    """Snapshot of a device on the selected track."""
    index: int
    name: str
    parameter_count: int


# =============================================================================
# Handles
# =============================================================================

class ParameterHandle(ABC):
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def set_value(self, value: float) -> None:
        """Write a value. May raise LiveSessionError."""


class DeviceHandle(ABC):
    @abstractmethod
    def index(self) -> int:
        ...

    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def parameter_count(self) -> int:
        ...


class TrackHandle(ABC):
    @abstractmethod
    def id(self) -> Union[int, str]:
        ...

    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def device_count(self) -> int:
        ...


class LiveSession(ABC):
    """
    Capability over the host's live set.

    Implementations must not cache handles across calls; selection and
    device order can change between MIDI events.
    """

    @abstractmethod
    def resolve_selected_track(self) -> Optional[TrackHandle]:
        """The selected track, or None when nothing is selected."""

    @abstractmethod
    def resolve_device(self, track: TrackHandle, index: int) -> DeviceHandle:
        ...

    @abstractmethod
    def resolve_parameter(self, device: DeviceHandle, index: int) -> ParameterHandle:
        ...

    def close(self) -> None:
        """Release host resources. Default does nothing."""


def track_info(track: TrackHandle) -> TrackInfo:
    return TrackInfo(id=track.id(), name=track.name(), device_count=track.device_count())


def device_info(device: DeviceHandle) -> DeviceInfo:
    return DeviceInfo(index=device.index(), name=device.name(),
                      parameter_count=device.parameter_count())


# =============================================================================
# In-memory session
# =============================================================================

@dataclass
class ParameterWrite:
    """A value written to a StaticLiveSession."""
    track_name: str
    device_index: int
    parameter_index: int
    parameter_name: str
    value: float


@dataclass
class _StaticParameter:
    name: str
    value: float = 0.0


@dataclass
class _StaticDevice:
    name: str
    parameters: List[_StaticParameter] = field(default_factory=list)


@dataclass
class _StaticTrack:
    id: Union[int, str]
    name: str
    devices: List[_StaticDevice] = field(default_factory=list)


class _StaticParameterHandle(ParameterHandle):
    def __init__(self, session: 'StaticLiveSession', track: _StaticTrack,
                 device_index: int, parameter_index: int):
        self._session = session
        self._track = track
        self._device_index = device_index
        self._parameter_index = parameter_index

    def _parameter(self) -> _StaticParameter:
        try:
            return self._track.devices[self._device_index].parameters[self._parameter_index]
        except IndexError:
            raise LiveSessionError(
                f"No parameter {self._parameter_index} on device {self._device_index}"
            ) from None

    def name(self) -> str:
        return self._parameter().name

    def set_value(self, value: float) -> None:
        param = self._parameter()
        param.value = value
        self._session.writes.append(ParameterWrite(
            track_name=self._track.name,
            device_index=self._device_index,
            parameter_index=self._parameter_index,
            parameter_name=param.name,
            value=value
        ))


class _StaticDeviceHandle(DeviceHandle):
    def __init__(self, track: _StaticTrack, index: int):
        if not 0 <= index < len(track.devices):
            raise LiveSessionError(f"No device {index} on track '{track.name}'")
        self.track = track
        self._index = index
        self._device = track.devices[index]

    def index(self) -> int:
        return self._index

    def name(self) -> str:
        return self._device.name

    def parameter_count(self) -> int:
        return len(self._device.parameters)


class _StaticTrackHandle(TrackHandle):
    def __init__(self, track: _StaticTrack):
        self.track = track

    def id(self) -> Union[int, str]:
        return self.track.id

    def name(self) -> str:
        return self.track.name

    def device_count(self) -> int:
        return len(self.track.devices)


class StaticLiveSession(LiveSession):
    """
    In-memory live session.

    Usage:
        session = StaticLiveSession.from_dict({
            'selected_track': 0,
            'tracks': [
                {'name': 'Bass', 'devices': [
                    {'name': 'CC Router', 'parameters': ['Device On']},
                    {'name': 'Diva', 'parameters': ['Cutoff', 'Resonance']},
                ]},
            ],
        })
        session.writes   # every ParameterWrite, in order
    """

    def __init__(self, tracks: Optional[List[_StaticTrack]] = None,
                 selected_track: Optional[int] = 0):
        self.tracks: List[_StaticTrack] = tracks or []
        self.selected_track = selected_track
        self.writes: List[ParameterWrite] = []

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StaticLiveSession':
        tracks = []
        for t_idx, track_data in enumerate(data.get('tracks', [])):
            devices = []
            for device_data in track_data.get('devices', []):
                params = [
                    _StaticParameter(name=p) if isinstance(p, str)
                    else _StaticParameter(name=p['name'], value=float(p.get('value', 0.0)))
                    for p in device_data.get('parameters', [])
                ]
                devices.append(_StaticDevice(name=device_data['name'], parameters=params))
            tracks.append(_StaticTrack(
                id=track_data.get('id', t_idx + 1),
                name=track_data.get('name', f"Track {t_idx + 1}"),
                devices=devices
            ))
        selected = data.get('selected_track', 0 if tracks else None)
        return cls(tracks=tracks, selected_track=selected)

    def resolve_selected_track(self) -> Optional[TrackHandle]:
        if self.selected_track is None:
            return None
        if not 0 <= self.selected_track < len(self.tracks):
            return None
        return _StaticTrackHandle(self.tracks[self.selected_track])

    def resolve_device(self, track: TrackHandle, index: int) -> DeviceHandle:
        return _StaticDeviceHandle(track.track, index)

    def resolve_parameter(self, device: DeviceHandle, index: int) -> ParameterHandle:
        return _StaticParameterHandle(self, device.track, device.index(), index)

    def parameter_value(self, track_index: int, device_index: int, parameter_index: int) -> float:
        return self.tracks[track_index].devices[device_index].parameters[parameter_index].value
