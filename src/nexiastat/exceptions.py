"""Exception classes for nexiastat."""

from __future__ import annotations


class NexiaError(Exception):
    """Base exception for nexiastat."""


class FetchError(NexiaError):
    """Fetching the house status failed."""


class MutationError(NexiaError):
    """A write request to the remote API failed."""


class MalformedDocumentError(NexiaError):
    """The status document does not have a usable shape."""


class FeatureNotFoundError(NexiaError):
    """A zone does not carry the feature an operation needs."""

    def __init__(self, zone_id: int, feature: str) -> None:
        super().__init__(f"Zone {zone_id} has no {feature!r} feature")
        self.zone_id = zone_id
        self.feature = feature


class NotFoundError(NexiaError):
    """A thermostat or zone is not present in the current status."""

    def __init__(self, thermostat_id: int, zone_id: int | None = None) -> None:
        if zone_id is None:
            msg = f"Thermostat not found: {thermostat_id}"
        else:
            msg = f"Zone not found: {zone_id} for thermostat: {thermostat_id}"
        super().__init__(msg)
        self.thermostat_id = thermostat_id
        self.zone_id = zone_id
