"""
Error Handling for the CC Router.

Provides structured error records for every routing outcome that is not a
successful parameter write, plus the exception types raised at the edges
(message parsing, catalog loading).

Routing failures are never raised out of the router. They are recorded as
RoutingError instances, logged, and turned into a status token.
"""

from dataclasses import dataclass
from typing import Optional, List, Dict, Any
from enum import Enum


class CCRouterError(Exception):
    """Base class for exceptions raised by cc_router."""


class MalformedMessage(CCRouterError, ValueError):
    """A message from the embedding shell has the wrong arity or types."""


class CatalogError(CCRouterError):
    """A canonical mapping catalog file could not be read."""


class ErrorCategory(Enum):
    """Categories of routing outcomes."""
    NO_MAPPING = "no_mapping"                          # CC not in table (normal no-op)
    NOT_INITIALIZED = "not_initialized"                # Live session not attached yet
    NO_TRACK_SELECTED = "no_track_selected"
    DEVICE_OUT_OF_RANGE = "device_out_of_range"
    PARAMETER_OUT_OF_RANGE = "parameter_out_of_range"
    CAPABILITY_FAILURE = "capability_failure"          # Host raised during resolve/get/set
    CATALOG_MISS = "catalog_miss"                      # No canonical mapping for a device
    MALFORMED_MESSAGE = "malformed_message"


@dataclass
class RoutingError:
    """
    Structured record of a routing outcome that did not write a parameter.
    """
    category: ErrorCategory
    message: str                     # One-line description
    technical_detail: Optional[str]  # Exception text or enumeration details
    context: Dict[str, Any] = None   # Indices, names, counts

    def __post_init__(self):
        if self.context is None:
            self.context = {}

    @property
    def is_failure(self) -> bool:
        """A missing mapping is a normal no-op, everything else is a failure."""
        return self.category != ErrorCategory.NO_MAPPING

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category.value,
            'message': self.message,
            'technical_detail': self.technical_detail,
            'context': self.context
        }

    def __str__(self) -> str:
        parts = [self.message]
        if self.technical_detail:
            parts.append(self.technical_detail)
        return " | ".join(parts)


# =============================================================================
# Error Factory Functions
# =============================================================================

def no_mapping(cc_number: int) -> RoutingError:
    """No mapping exists for the CC number."""
    return RoutingError(
        category=ErrorCategory.NO_MAPPING,
        message=f"No mapping found for CC {cc_number}",
        technical_detail=None,
        context={'cc_number': cc_number}
    )


def not_initialized(cc_number: Optional[int] = None) -> RoutingError:
    """A message arrived before the live session was attached."""
    context = {'cc_number': cc_number} if cc_number is not None else {}
    return RoutingError(
        category=ErrorCategory.NOT_INITIALIZED,
        message="Received MIDI before initialization complete",
        technical_detail="Live API not ready",
        context=context
    )


def no_track_selected() -> RoutingError:
    """The live session reports no selected track."""
    return RoutingError(
        category=ErrorCategory.NO_TRACK_SELECTED,
        message="No track selected",
        technical_detail=None
    )


def device_out_of_range(device_index: int, device_count: int, track_name: str,
                        available: List[str] = None) -> RoutingError:
    """Mapped device index is not on the selected track."""
    detail = f"Available devices: {device_count}"
    if device_count > 0:
        detail += f" (indices 0-{device_count - 1})"

    return RoutingError(
        category=ErrorCategory.DEVICE_OUT_OF_RANGE,
        message=f"Device[{device_index}] not found on '{track_name}'",
        technical_detail=detail,
        context={
            'device_index': device_index,
            'device_count': device_count,
            'track_name': track_name,
            'available': available or []
        }
    )


def parameter_out_of_range(parameter_index: int, parameter_count: int,
                           device_index: int, device_name: str,
                           available: List[str] = None) -> RoutingError:
    """Mapped parameter index is not on the target device."""
    detail = f"Available parameters: {parameter_count}"
    if parameter_count > 0:
        detail += f" (indices 0-{parameter_count - 1})"

    return RoutingError(
        category=ErrorCategory.PARAMETER_OUT_OF_RANGE,
        message=f"Parameter[{parameter_index}] not found on Device[{device_index}] '{device_name}'",
        technical_detail=detail,
        context={
            'parameter_index': parameter_index,
            'parameter_count': parameter_count,
            'device_index': device_index,
            'device_name': device_name,
            'available': available or []
        }
    )


def capability_failure(operation: str, error: BaseException) -> RoutingError:
    """The live session raised while resolving or writing."""
    return RoutingError(
        category=ErrorCategory.CAPABILITY_FAILURE,
        message=f"Error {operation}",
        technical_detail=str(error),
        context={'operation': operation, 'exception': type(error).__name__}
    )


def catalog_miss(device_name: str, known_keys: List[str]) -> RoutingError:
    """No canonical mapping for the detected device."""
    return RoutingError(
        category=ErrorCategory.CATALOG_MISS,
        message=f"No canonical mapping found for {device_name}",
        technical_detail=f"Available mappings: {', '.join(known_keys)}" if known_keys else None,
        context={'device_name': device_name, 'known_keys': list(known_keys)}
    )


def malformed_message(selector: str, reason: str) -> RoutingError:
    """A shell message could not be parsed."""
    return RoutingError(
        category=ErrorCategory.MALFORMED_MESSAGE,
        message=f"Malformed '{selector}' message",
        technical_detail=reason,
        context={'selector': selector}
    )


# =============================================================================
# Error Handler Class
# =============================================================================

class ErrorHandler:
    """
    Keeps a bounded log of routing errors for diagnostics.
    """

    def __init__(self, max_errors: int = 100):
        self.max_errors = max_errors
        self.error_log: List[RoutingError] = []

    def handle(self, error: RoutingError) -> str:
        """Record an error and return its one-line form."""
        self.error_log.append(error)
        if len(self.error_log) > self.max_errors:
            del self.error_log[:-self.max_errors]
        return str(error)

    def get_recent_errors(self, count: int = 5) -> List[RoutingError]:
        """Get most recent errors."""
        return self.error_log[-count:]

    def count(self, category: ErrorCategory) -> int:
        """Number of logged errors in a category."""
        return sum(1 for e in self.error_log if e.category == category)

    def clear(self) -> None:
        """Clear error log."""
        self.error_log.clear()

    @property
    def has_errors(self) -> bool:
        return len(self.error_log) > 0

    @property
    def error_count(self) -> int:
        return len(self.error_log)
