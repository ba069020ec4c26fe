"""
AbletonOSC Live Session.

Implements the live-session capability on top of the AbletonOSC remote
script, which listens on port 11000 and replies on port 11001.

Requirements:
- AbletonOSC must be installed in Ableton's Remote Scripts folder
- AbletonOSC must be enabled in Ableton's Preferences -> Link/Tempo/MIDI -> Control Surface

Replies echo the leading index arguments of the query
(e.g. /live/device/get/name 1 2 -> 1 2 "EQ Eight"); the handles strip them.
"""

import logging
import queue
import threading
from typing import Any, Dict, Optional, Tuple, Union

from pythonosc import dispatcher, osc_server, udp_client

from .live_session import (
    DeviceHandle,
    LiveSession,
    LiveSessionError,
    ParameterHandle,
    TrackHandle,
)


logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_SEND_PORT = 11000
DEFAULT_RECEIVE_PORT = 11001
DEFAULT_TIMEOUT = 2.0


class OscTimeout(LiveSessionError):
    """No reply from AbletonOSC within the timeout."""


class OscClient:
    """
    Request/reply transport for AbletonOSC.

    Queries are sent with a UDP client; replies are collected by an OSC
    server running in a daemon thread and handed back per address.

    Usage:
        client = OscClient()
        client.connect()
        (tempo,) = client.query("/live/song/get/tempo")
        client.close()
    """

    def __init__(self,
                 host: str = DEFAULT_HOST,
                 send_port: int = DEFAULT_SEND_PORT,
                 receive_port: int = DEFAULT_RECEIVE_PORT,
                 timeout: float = DEFAULT_TIMEOUT):
        self.host = host
        self.send_port = send_port
        self.receive_port = receive_port
        self.timeout = timeout

        self._client: Optional[udp_client.SimpleUDPClient] = None
        self._server: Optional[osc_server.ThreadingOSCUDPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._replies: Dict[str, "queue.Queue[Tuple[Any, ...]]"] = {}
        self._replies_lock = threading.Lock()
        self._query_lock = threading.Lock()

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._server is not None

    def connect(self) -> None:
        """Open the UDP client and start the reply server."""
        if self.is_connected:
            return

        disp = dispatcher.Dispatcher()
        disp.set_default_handler(self._on_reply)

        try:
            self._server = osc_server.ThreadingOSCUDPServer(("0.0.0.0", self.receive_port), disp)
        except OSError as e:
            raise LiveSessionError(
                f"Could not listen on port {self.receive_port}: {e}"
            ) from e

        self._client = udp_client.SimpleUDPClient(self.host, self.send_port)
        self._thread = threading.Thread(target=self._server.serve_forever,
                                        name="abletonosc-replies", daemon=True)
        self._thread.start()
        logger.info(f"AbletonOSC: sending to {self.host}:{self.send_port}, "
                    f"listening on {self.receive_port}")

    def close(self) -> None:
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
        self._server = None
        self._client = None
        self._thread = None

    def _queue_for(self, address: str) -> "queue.Queue[Tuple[Any, ...]]":
        with self._replies_lock:
            if address not in self._replies:
                self._replies[address] = queue.Queue()
            return self._replies[address]

    def _on_reply(self, address: str, *args: Any) -> None:
        self._queue_for(address).put(tuple(args))

    def send(self, address: str, *args: Any) -> None:
        """Fire-and-forget message."""
        if self._client is None:
            raise LiveSessionError("AbletonOSC client is not connected")
        self._client.send_message(address, list(args))

    def query(self, address: str, *args: Any) -> Tuple[Any, ...]:
        """Send a query and wait for the reply on the same address."""
        if self._client is None:
            raise LiveSessionError("AbletonOSC client is not connected")

        with self._query_lock:
            replies = self._queue_for(address)
            while not replies.empty():
                replies.get_nowait()

            self._client.send_message(address, list(args))
            try:
                return replies.get(timeout=self.timeout)
            except queue.Empty:
                raise OscTimeout(
                    f"No reply to {address} within {self.timeout}s. "
                    f"Is Ableton running with AbletonOSC enabled?"
                ) from None


# =============================================================================
# Handles
# =============================================================================

def _strip(reply: Tuple[Any, ...], echoed: int, address: str) -> Tuple[Any, ...]:
    if len(reply) < echoed:
        raise LiveSessionError(f"Short reply to {address}: {reply!r}")
    return reply[echoed:]


def _first(reply: Tuple[Any, ...], address: str) -> Any:
    if not reply:
        raise LiveSessionError(f"Empty reply to {address}")
    return reply[0]


class OscTrackHandle(TrackHandle):
    def __init__(self, transport: OscClient, track_index: int):
        self.transport = transport
        self.track_index = track_index

    def id(self) -> Union[int, str]:
        return self.track_index

    def name(self) -> str:
        address = "/live/track/get/name"
        reply = _strip(self.transport.query(address, self.track_index), 1, address)
        return str(_first(reply, address))

    def device_count(self) -> int:
        address = "/live/track/get/num_devices"
        reply = _strip(self.transport.query(address, self.track_index), 1, address)
        return int(_first(reply, address))


class OscDeviceHandle(DeviceHandle):
    def __init__(self, transport: OscClient, track_index: int, device_index: int):
        self.transport = transport
        self.track_index = track_index
        self.device_index = device_index

    def index(self) -> int:
        return self.device_index

    def name(self) -> str:
        address = "/live/device/get/name"
        reply = _strip(self.transport.query(address, self.track_index, self.device_index), 2, address)
        return str(_first(reply, address))

    def parameter_count(self) -> int:
        address = "/live/device/get/num_parameters"
        reply = _strip(self.transport.query(address, self.track_index, self.device_index), 2, address)
        return int(_first(reply, address))


class OscParameterHandle(ParameterHandle):
    def __init__(self, transport: OscClient, track_index: int, device_index: int,
                 parameter_index: int):
        self.transport = transport
        self.track_index = track_index
        self.device_index = device_index
        self.parameter_index = parameter_index

    def name(self) -> str:
        address = "/live/device/get/parameters/name"
        names = _strip(self.transport.query(address, self.track_index, self.device_index), 2, address)
        if not 0 <= self.parameter_index < len(names):
            raise LiveSessionError(
                f"Parameter {self.parameter_index} not in reply to {address} ({len(names)} names)"
            )
        return str(names[self.parameter_index])

    def set_value(self, value: float) -> None:
        self.transport.send("/live/device/set/parameter/value",
                            self.track_index, self.device_index, self.parameter_index, float(value))


# =============================================================================
# Session
# =============================================================================

class OscLiveSession(LiveSession):
    """
    Live session backed by AbletonOSC.

    Every handle method issues a fresh query; nothing is cached.

    Usage:
        session = OscLiveSession.connect_to()
        router.attach(session)
    """

    def __init__(self, transport: OscClient):
        self.transport = transport

    @classmethod
    def connect_to(cls,
                   host: str = DEFAULT_HOST,
                   send_port: int = DEFAULT_SEND_PORT,
                   receive_port: int = DEFAULT_RECEIVE_PORT,
                   timeout: float = DEFAULT_TIMEOUT) -> 'OscLiveSession':
        """Create a connected session."""
        client = OscClient(host=host, send_port=send_port,
                           receive_port=receive_port, timeout=timeout)
        client.connect()
        return cls(client)

    @classmethod
    def from_config(cls, osc_config: Optional[Dict[str, Any]] = None) -> 'OscLiveSession':
        """Create a connected session from the 'osc' config section."""
        osc_config = osc_config or {}
        return cls.connect_to(
            host=osc_config.get('host', DEFAULT_HOST),
            send_port=int(osc_config.get('send_port', DEFAULT_SEND_PORT)),
            receive_port=int(osc_config.get('receive_port', DEFAULT_RECEIVE_PORT)),
            timeout=float(osc_config.get('timeout', DEFAULT_TIMEOUT)),
        )

    def resolve_selected_track(self) -> Optional[TrackHandle]:
        reply = self.transport.query("/live/view/get/selected_track")
        if not reply or reply[0] is None:
            return None
        track_index = int(reply[0])
        if track_index < 0:
            return None
        return OscTrackHandle(self.transport, track_index)

    def resolve_device(self, track: TrackHandle, index: int) -> DeviceHandle:
        return OscDeviceHandle(self.transport, int(track.id()), index)

    def resolve_parameter(self, device: DeviceHandle, index: int) -> ParameterHandle:
        if not isinstance(device, OscDeviceHandle):
            raise LiveSessionError(f"Not an AbletonOSC device handle: {device!r}")
        return OscParameterHandle(self.transport, device.track_index, device.device_index, index)

    def close(self) -> None:
        self.transport.close()
