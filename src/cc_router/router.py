"""
CC Router.

Routes MIDI CC messages to parameters on the currently selected track.

For each message the router looks up the mapping, transforms the value,
then re-resolves track -> device -> parameter through the live session,
bounds-checking each step before writing. Nothing is cached between
messages because the selection and device chain can change at any time.

Every outcome is reported on two channels: a verbose log (gated by debug
mode) and a short status token for a status display.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, List, Callable, Union

from .catalog import CanonicalCatalog
from .conversions import transform_value
from .errors import (
    ErrorHandler,
    RoutingError,
    no_mapping,
    not_initialized,
    no_track_selected,
    device_out_of_range,
    parameter_out_of_range,
    capability_failure,
    catalog_miss,
)
from .live_session import LiveSession, TrackHandle, TrackInfo, DeviceInfo, track_info, device_info
from .mappings import Curve, MappingTable, ParameterMapping, DEFAULT_DEVICE_INDEX


logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]

MAX_LISTED_PARAMETERS = 10


class RouterState(Enum):
    """Router lifecycle."""
    UNINITIALIZED = "uninitialized"   # No live session attached
    READY = "ready"


@dataclass
class RouteResult:
    """Outcome of routing one CC message."""
    cc_number: int
    midi_value: int
    success: bool = False
    value: Optional[float] = None
    status: str = ""
    mapping: Optional[ParameterMapping] = None
    track_name: Optional[str] = None
    device_name: Optional[str] = None
    parameter_name: Optional[str] = None
    error: Optional[RoutingError] = None


def _log_status(token: str) -> None:
    logger.debug(f"status: {token}")


class CCRouter:
    """
    Routes CC messages through the mapping table to the live session.

    Usage:
        router = CCRouter(catalog=catalog)
        router.attach(session)                  # Uninitialized -> Ready
        result = router.handle_cc_message(13, 64, 0)
        if not result.success:
            print(result.status)
    """

    def __init__(self,
                 catalog: Optional[CanonicalCatalog] = None,
                 status_callback: Optional[StatusCallback] = None,
                 debug_mode: bool = True,
                 default_device_index: int = DEFAULT_DEVICE_INDEX,
                 max_listed_parameters: int = MAX_LISTED_PARAMETERS):
        self.table = MappingTable()
        self.table.initialize_defaults()

        self.catalog = catalog if catalog is not None else CanonicalCatalog()
        self.debug_mode = debug_mode
        self.default_device_index = default_device_index
        self.max_listed_parameters = max_listed_parameters
        self.errors = ErrorHandler()
        self.last_status: Optional[str] = None

        self._status_callback = status_callback or _log_status
        self._session: Optional[LiveSession] = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def state(self) -> RouterState:
        return RouterState.READY if self._session is not None else RouterState.UNINITIALIZED

    @property
    def is_ready(self) -> bool:
        return self.state == RouterState.READY

    @property
    def session(self) -> Optional[LiveSession]:
        return self._session

    def attach(self, session: LiveSession) -> None:
        """Attach the live session capability (Uninitialized -> Ready)."""
        if session is None:
            raise ValueError("session must not be None")
        self._session = session
        self._post("Live API initialized")

    def detach(self) -> Optional[LiveSession]:
        """Detach and return the live session (Ready -> Uninitialized)."""
        session, self._session = self._session, None
        return session

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def _post(self, message: str) -> None:
        """Verbose log line, only in debug mode."""
        if self.debug_mode:
            logger.info(message)

    def _status(self, token: str) -> None:
        self.last_status = token
        self._status_callback(token)

    def _fail(self, result: RouteResult, error: RoutingError, status: str) -> RouteResult:
        self.errors.handle(error)
        result.error = error
        result.status = status
        self._status(status)
        return result

    # =========================================================================
    # Message Handling
    # =========================================================================

    def handle_cc_message(self, cc_number: int, midi_value: int, channel: int = 0) -> RouteResult:
        """
        Route one CC message to its mapped parameter.

        Never raises; the outcome is returned and reported on the
        diagnostic and status channels.
        """
        result = RouteResult(cc_number=cc_number, midi_value=midi_value)

        if not self.is_ready:
            error = not_initialized(cc_number)
            logger.info(f"{error.message} (CC {cc_number})")
            return self._fail(result, error, "ERROR: Not initialized")

        mapping = self.table.find(cc_number)
        if mapping is None:
            error = no_mapping(cc_number)
            self._post(error.message)
            return self._fail(result, error, f"CC{cc_number} - No mapping")

        result.mapping = mapping
        self._post(f"Processing CC {cc_number} = {midi_value} (ch {channel}) -> "
                   f"Device[{mapping.device_index}] Param[{mapping.parameter_index}]")

        value = transform_value(midi_value, mapping)
        result.value = value

        try:
            return self._route_to_selected_track(result, mapping, value)
        except Exception as e:
            error = capability_failure("routing CC", e)
            logger.error(f"Error routing CC {cc_number}: {e}")
            return self._fail(result, error, f"ERROR: {e}")

    def _route_to_selected_track(self, result: RouteResult, mapping: ParameterMapping,
                                 value: float) -> RouteResult:
        session = self._session

        track = session.resolve_selected_track()
        if track is None:
            self._post("No track selected")
            return self._fail(result, no_track_selected(), "ERROR: No track selected")

        track_name = track.name()
        device_count = track.device_count()
        result.track_name = track_name
        self._post(f"Track '{track_name}' has {device_count} devices")

        if not 0 <= mapping.device_index < device_count:
            names = self._device_names(track, device_count)
            error = device_out_of_range(mapping.device_index, device_count, track_name, names)
            self._post(f"ERROR - Device[{mapping.device_index}] not found")
            self._post(f"  Track: {track_name}")
            self._post(f"  {error.technical_detail}")
            for i, name in enumerate(names):
                self._post(f"    Device[{i}]: {name}")
            return self._fail(
                result, error,
                f"ERROR: Dev[{mapping.device_index}] not found (have {device_count})"
            )

        device = session.resolve_device(track, mapping.device_index)
        device_name = device.name()
        parameter_count = device.parameter_count()
        result.device_name = device_name

        if not 0 <= mapping.parameter_index < parameter_count:
            shown = min(self.max_listed_parameters, parameter_count)
            names = [session.resolve_parameter(device, i).name() for i in range(shown)]
            error = parameter_out_of_range(mapping.parameter_index, parameter_count,
                                           mapping.device_index, device_name, names)
            self._post(f"ERROR - Parameter[{mapping.parameter_index}] not found")
            self._post(f"  Device[{mapping.device_index}]: {device_name}")
            self._post(f"  {error.technical_detail}")
            for i, name in enumerate(names):
                self._post(f"    Param[{i}]: {name}")
            if parameter_count > shown:
                self._post(f"    ... and {parameter_count - shown} more")
            return self._fail(
                result, error,
                f"ERROR: Param[{mapping.parameter_index}] not found (have {parameter_count})"
            )

        parameter = session.resolve_parameter(device, mapping.parameter_index)
        parameter.set_value(value)

        parameter_name = parameter.name()
        result.parameter_name = parameter_name
        result.success = True

        self._post("SUCCESS!")
        self._post(f"  Track: {track_name}")
        self._post(f"  Device[{mapping.device_index}]: {device_name}")
        self._post(f"  Param[{mapping.parameter_index}]: {parameter_name}")
        self._post(f"  Value: {result.midi_value} (MIDI) -> {value:.3f} (normalized)")

        result.status = (f"OK: Dev[{mapping.device_index}]:{device_name} > "
                         f"{parameter_name}={value:.2f}")
        self._status(result.status)
        return result

    def _device_names(self, track: TrackHandle, device_count: int) -> List[str]:
        return [self._session.resolve_device(track, i).name() for i in range(device_count)]

    # =========================================================================
    # Mapping Management
    # =========================================================================

    def set_mapping(self, cc_number: int, device_index: int, parameter_index: int,
                    parameter_name: Optional[str] = None,
                    curve: Union[Curve, str, None] = None,
                    min_value: Optional[float] = None,
                    max_value: Optional[float] = None) -> ParameterMapping:
        """Add or update a mapping."""
        mapping = self.table.upsert(cc_number, device_index, parameter_index,
                                    parameter_name, curve, min_value, max_value)
        self._post(f"Updated mapping CC {cc_number} -> Device {device_index} Param {parameter_index}")
        return mapping

    def remove_mapping(self, cc_number: int) -> bool:
        """Remove a mapping. Removing an unmapped CC is not an error."""
        removed = self.table.remove(cc_number)
        self._post(f"Removed mapping for CC {cc_number}")
        return removed

    def get_mappings(self) -> List[ParameterMapping]:
        """Copy of all current mappings."""
        return self.table.snapshot()

    def set_debug_mode(self, enabled: bool) -> None:
        self.debug_mode = bool(enabled)
        logger.info(f"Debug mode {'enabled' if self.debug_mode else 'disabled'}")

    # =========================================================================
    # Canonical Auto-Mapping
    # =========================================================================

    def auto_apply_canonical_mapping(self, device_index: Optional[int] = None) -> int:
        """
        Detect the plugin at device_index on the selected track and replace
        the mapping table with its canonical mapping.

        Args:
            device_index: Device to inspect (default: first plugin after the router)

        Returns:
            Number of mappings applied (0 if nothing was applied)
        """
        if not self.is_ready:
            self.errors.handle(not_initialized())
            logger.info("Not initialized")
            self._status("ERROR: Not initialized")
            return 0

        target_index = self.default_device_index if device_index is None else device_index

        try:
            session = self._session
            track = session.resolve_selected_track()
            if track is None:
                self.errors.handle(no_track_selected())
                logger.info("No track selected")
                self._status("ERROR: No track selected")
                return 0

            device_count = track.device_count()
            if not 0 <= target_index < device_count:
                self.errors.handle(device_out_of_range(target_index, device_count, track.name()))
                logger.info(f"Device index {target_index} not found (only {device_count} devices)")
                self._status(f"ERROR: Dev[{target_index}] not found (have {device_count})")
                return 0

            device_name = session.resolve_device(track, target_index).name()
        except Exception as e:
            self.errors.handle(capability_failure("auto-applying canonical mapping", e))
            logger.error(f"Error auto-applying canonical mapping - {e}")
            self._status(f"ERROR: {e}")
            return 0

        logger.info(f"Detected plugin: {device_name}")

        entry = self.catalog.lookup(device_name)
        if entry is None:
            error = catalog_miss(device_name, self.catalog.keys())
            self.errors.handle(error)
            logger.info(error.message)
            logger.info(f"Available mappings: {', '.join(self.catalog.keys())}")
            self._status(f"AUTOMAP: No mapping for {device_name}")
            return 0

        logger.info(f"Found canonical mapping for {entry.plugin_name}")
        self.table.replace_all(entry.mappings)
        applied = len(self.table)
        logger.info(f"Applied {applied} canonical mappings for {entry.plugin_name}")
        self._status(f"AUTOMAP: {entry.plugin_name} ({applied})")
        return applied

    # =========================================================================
    # Track / Device Info
    # =========================================================================

    def get_selected_track_info(self) -> Optional[TrackInfo]:
        """Snapshot of the selected track, or None."""
        if not self.is_ready:
            return None
        try:
            track = self._session.resolve_selected_track()
            if track is None:
                return None
            return track_info(track)
        except Exception as e:
            self.errors.handle(capability_failure("getting track info", e))
            logger.error(f"Error getting track info - {e}")
            return None

    def get_selected_track_devices(self) -> List[DeviceInfo]:
        """Snapshots of every device on the selected track."""
        if not self.is_ready:
            return []
        try:
            track = self._session.resolve_selected_track()
            if track is None:
                return []
            return [device_info(self._session.resolve_device(track, i))
                    for i in range(track.device_count())]
        except Exception as e:
            self.errors.handle(capability_failure("getting device info", e))
            logger.error(f"Error getting device info - {e}")
            return []

    def print_configuration(self) -> List[str]:
        """Log the current configuration and return the lines."""
        lines = ["=== CC Router Configuration ===",
                 f"Mappings: {len(self.table)}"]
        for m in self.table.snapshot():
            lines.append(f"  {m}")

        info = self.get_selected_track_info()
        if info:
            lines.append(f"Selected Track: {info.name} ({info.device_count} devices)")
        else:
            lines.append("No track selected")

        for line in lines:
            logger.info(line)
        return lines
