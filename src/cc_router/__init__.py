"""
CC Router Package.

Routes MIDI Control Change messages to plugin parameters on the selected
Ableton Live track.

This package provides:
- A CC -> (device, parameter, curve) mapping table
- Value transforms (MIDI 0-127 to normalized 0.0-1.0, curves, ranges)
- The router, which re-resolves track/device/parameter on every message
- A canonical plugin mapping catalog built from YAML MIDI maps
- Live sessions: in-memory, and AbletonOSC over UDP
- A host shell with lifecycle hooks and message dispatch

Usage:
    1. Build a RouterDevice with a session factory (e.g. OscLiveSession.from_config)
    2. on_load() then on_live_api_ready() attaches the session
    3. on_cc_message(13, 64) routes a CC to Device[1] Param[0]
    4. auto_apply_canonical_mapping() swaps in the plugin's canonical map
"""

__version__ = "1.0.0"

from .errors import (
    CCRouterError,
    MalformedMessage,
    CatalogError,
    ErrorCategory,
    RoutingError,
    ErrorHandler,
    # Factory functions
    no_mapping,
    not_initialized,
    no_track_selected,
    device_out_of_range,
    parameter_out_of_range,
    capability_failure,
    catalog_miss,
    malformed_message,
)

from .mappings import (
    Curve,
    ParameterMapping,
    MappingTable,
    default_mappings,
    default_parameter_name,
    DEFAULT_FIRST_CC,
    DEFAULT_KNOB_COUNT,
    DEFAULT_DEVICE_INDEX,
)

from .conversions import (
    midi_to_normalized,
    normalized_to_midi,
    apply_curve,
    scale_to_range,
    transform_value,
)

from .catalog import (
    PluginMapping,
    CanonicalCatalog,
    normalize_plugin_name,
    convert_descriptor,
    load_catalog,
)

from .live_session import (
    LiveSession,
    LiveSessionError,
    TrackHandle,
    DeviceHandle,
    ParameterHandle,
    TrackInfo,
    DeviceInfo,
    StaticLiveSession,
    ParameterWrite,
)

from .osc_session import (
    OscClient,
    OscLiveSession,
    OscTimeout,
)

from .router import (
    CCRouter,
    RouterState,
    RouteResult,
)

from .device import RouterDevice

from .config import RouterConfig, load_config

__all__ = [
    # Errors
    "CCRouterError",
    "MalformedMessage",
    "CatalogError",
    "ErrorCategory",
    "RoutingError",
    "ErrorHandler",
    "no_mapping",
    "not_initialized",
    "no_track_selected",
    "device_out_of_range",
    "parameter_out_of_range",
    "capability_failure",
    "catalog_miss",
    "malformed_message",
    # Mappings
    "Curve",
    "ParameterMapping",
    "MappingTable",
    "default_mappings",
    "default_parameter_name",
    "DEFAULT_FIRST_CC",
    "DEFAULT_KNOB_COUNT",
    "DEFAULT_DEVICE_INDEX",
    # Conversions
    "midi_to_normalized",
    "normalized_to_midi",
    "apply_curve",
    "scale_to_range",
    "transform_value",
    # Catalog
    "PluginMapping",
    "CanonicalCatalog",
    "normalize_plugin_name",
    "convert_descriptor",
    "load_catalog",
    # Live sessions
    "LiveSession",
    "LiveSessionError",
    "TrackHandle",
    "DeviceHandle",
    "ParameterHandle",
    "TrackInfo",
    "DeviceInfo",
    "StaticLiveSession",
    "ParameterWrite",
    "OscClient",
    "OscLiveSession",
    "OscTimeout",
    # Router
    "CCRouter",
    "RouterState",
    "RouteResult",
    "RouterDevice",
    # Config
    "RouterConfig",
    "load_config",
]
