"""
Router Device Shell.

The object an embedding host talks to. It owns one CCRouter and turns host
lifecycle events and messages into router calls:

    device = RouterDevice(session_factory=OscLiveSession.from_config)
    device.on_load()               # patch loaded, Live API not ready yet
    device.on_live_api_ready()     # attach the session (Uninitialized -> Ready)
    device.on_cc_message(13, 64)   # route a CC
    device.dispatch("setmapping", 21, 1, 4, "Cutoff", "exponential")

Host message arguments are parsed by cc_router.messages; malformed
messages are reported and dropped, never raised to the host.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from . import __version__
from .catalog import CanonicalCatalog
from .conversions import normalized_to_midi
from .errors import MalformedMessage, malformed_message
from .live_session import LiveSession, DeviceInfo, TrackInfo
from .mappings import Curve, ParameterMapping, DEFAULT_DEVICE_INDEX, DEFAULT_FIRST_CC
from .messages import (
    AutoMapMessage,
    CCMessage,
    DebugMessage,
    FloatMessage,
    RemoveMappingMessage,
    SetMappingMessage,
)
from .router import CCRouter, RouteResult, StatusCallback, MAX_LISTED_PARAMETERS


logger = logging.getLogger(__name__)

SessionFactory = Callable[[], LiveSession]


class RouterDevice:
    """
    Entry points for the embedding shell.

    Two status sinks: `status` for the main display and `build_status`
    for the build/version line.
    """

    def __init__(self,
                 session_factory: SessionFactory,
                 catalog: Optional[CanonicalCatalog] = None,
                 status: Optional[StatusCallback] = None,
                 build_status: Optional[StatusCallback] = None,
                 debug_mode: bool = True,
                 default_device_index: int = DEFAULT_DEVICE_INDEX,
                 max_listed_parameters: int = MAX_LISTED_PARAMETERS):
        self._session_factory = session_factory
        self._status = status or (lambda token: logger.debug(f"status: {token}"))
        self._build_status = build_status or (lambda token: logger.debug(f"build: {token}"))
        self._debug_mode = debug_mode
        self.loaded = False
        self.build_time: Optional[str] = None

        self.router = CCRouter(
            catalog=catalog,
            status_callback=self._status,
            debug_mode=debug_mode,
            default_device_index=default_device_index,
            max_listed_parameters=max_listed_parameters,
        )

        self._handlers: Dict[str, Callable[[List[Any]], None]] = {
            'list': self._on_list,
            'testcc': self._on_list,
            'setmapping': self._on_setmapping,
            'removemapping': self._on_removemapping,
            'debug': self._on_debug,
            'automap': self._on_automap,
            'config': lambda args: self.print_configuration(),
            'trackinfo': lambda args: self.track_info(),
            'float': self._on_float,
        }

    @property
    def is_ready(self) -> bool:
        return self.router.is_ready

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def on_load(self) -> None:
        """Patch loaded. Safe to call any number of times."""
        if self.loaded:
            return
        self.loaded = True
        logger.info("Waiting for Live API to initialize...")
        self._status("Initializing...")

    def on_live_api_ready(self) -> bool:
        """
        Live API is available: create the session and attach it.

        No effect while already attached; after on_unload() a later
        call attaches a fresh session.

        Returns:
            True if this call attached the session
        """
        if self.router.is_ready:
            return False

        logger.info("Live API ready, initializing...")
        try:
            session = self._session_factory()
        except Exception as e:
            logger.error(f"Failed to initialize Live API - {e}")
            self._status("ERROR: Live API unavailable")
            return False
        self.router.attach(session)

        self.build_time = datetime.now().strftime("%H:%M:%S")
        logger.info(f"CC Router v{__version__} loaded at {self.build_time}")

        self.router.set_debug_mode(self._debug_mode)
        self.print_configuration()

        self._status(f"CC Router v{__version__} - Ready")
        self._build_status(f"Build: {self.build_time}")

        self._log_device_chain()
        return True

    def on_unload(self) -> None:
        """Detach and close the live session."""
        session = self.router.detach()
        if session is not None:
            session.close()
        logger.info("CC Router closed")

    def _log_device_chain(self) -> None:
        logger.info("=== Track Device Chain ===")
        devices = self.router.get_selected_track_devices()
        if devices:
            for d in devices:
                logger.info(f"Device {d.index}: {d.name} ({d.parameter_count} params)")
        else:
            logger.info("No devices found on track")
        logger.info("==========================")

    # =========================================================================
    # Entry Points
    # =========================================================================

    def on_cc_message(self, cc_number: int, value: int, channel: int = 0) -> RouteResult:
        """Route a CC message (the router handles the not-ready case)."""
        self._status(f"RX: CC{cc_number}={value}")
        return self.router.handle_cc_message(cc_number, value, channel)

    def set_mapping(self, cc_number: int, device_index: int, parameter_index: int,
                    parameter_name: Optional[str] = None,
                    curve: Union[Curve, str, None] = None) -> ParameterMapping:
        return self.router.set_mapping(cc_number, device_index, parameter_index,
                                       parameter_name, curve)

    def remove_mapping(self, cc_number: int) -> bool:
        return self.router.remove_mapping(cc_number)

    def get_mappings(self) -> List[ParameterMapping]:
        return self.router.get_mappings()

    def set_debug_mode(self, enabled: bool) -> None:
        self._debug_mode = bool(enabled)
        self.router.set_debug_mode(enabled)

    def auto_apply_canonical_mapping(self, device_index: Optional[int] = None) -> int:
        return self.router.auto_apply_canonical_mapping(device_index)

    def print_configuration(self) -> List[str]:
        return self.router.print_configuration()

    def track_info(self) -> Optional[TrackInfo]:
        """Log the selected track and its devices."""
        info = self.router.get_selected_track_info()
        if info is None:
            logger.info("No track selected")
            return None

        logger.info(f"Selected Track: {info.name} (ID: {info.id})")
        logger.info(f"Devices: {info.device_count}")
        devices: List[DeviceInfo] = self.router.get_selected_track_devices()
        for d in devices:
            logger.info(f"  Device {d.index}: {d.name} ({d.parameter_count} parameters)")
        return info

    # =========================================================================
    # Host Message Dispatch
    # =========================================================================

    def dispatch(self, selector: str, *args: Any) -> bool:
        """
        Handle a host message such as ("list", 13, 64).

        Returns:
            True if the message was understood and handled
        """
        handler = self._handlers.get(selector)
        if handler is None:
            self._report_malformed(selector, f"Unknown message '{selector}'")
            return False

        try:
            handler(list(args))
        except MalformedMessage as e:
            self._report_malformed(selector, str(e))
            return False
        return True

    def _report_malformed(self, selector: str, reason: str) -> None:
        self.router.errors.handle(malformed_message(selector, reason))
        logger.warning(reason)
        self._status(f"ERROR: {reason}")

    def _on_list(self, args: List[Any]) -> None:
        message = CCMessage.from_args(args)
        self.on_cc_message(message.cc_number, message.value, message.channel)

    def _on_setmapping(self, args: List[Any]) -> None:
        message = SetMappingMessage.from_args(args)
        self.set_mapping(message.cc_number, message.device_index, message.parameter_index,
                         message.parameter_name, message.curve)

    def _on_removemapping(self, args: List[Any]) -> None:
        self.remove_mapping(RemoveMappingMessage.from_args(args).cc_number)

    def _on_debug(self, args: List[Any]) -> None:
        self.set_debug_mode(DebugMessage.from_args(args).enabled)

    def _on_automap(self, args: List[Any]) -> None:
        self.auto_apply_canonical_mapping(AutoMapMessage.from_args(args).device_index)

    def _on_float(self, args: List[Any]) -> None:
        # A bare dial value drives the first default knob
        value = normalized_to_midi(FloatMessage.from_args(args).value)
        self.on_cc_message(DEFAULT_FIRST_CC, value)
