"""Cached cloud status and control for Nexia thermostats."""

__version__ = "1.0.0"

from .client import StatusClient
from .const import ZoneMode, ZoneStatus
from .exceptions import (
    FeatureNotFoundError,
    FetchError,
    MalformedDocumentError,
    MutationError,
    NexiaError,
    NotFoundError,
)
from .models import (
    HouseStatus,
    Thermostat,
    ThermostatFeature,
    ThermostatModeFeature,
    UnknownFeature,
    Zone,
)
from .temperature import celsius_to_fahrenheit, fahrenheit_to_celsius
from .throttle import CacheState, CoalescingCache
from .transport import MobileClient, load_credentials, save_credentials

__all__ = [
    "CacheState",
    "CoalescingCache",
    "FeatureNotFoundError",
    "FetchError",
    "HouseStatus",
    "MalformedDocumentError",
    "MobileClient",
    "MutationError",
    "NexiaError",
    "NotFoundError",
    "StatusClient",
    "Thermostat",
    "ThermostatFeature",
    "ThermostatModeFeature",
    "UnknownFeature",
    "Zone",
    "ZoneMode",
    "ZoneStatus",
    "celsius_to_fahrenheit",
    "fahrenheit_to_celsius",
    "load_credentials",
    "save_credentials",
]
