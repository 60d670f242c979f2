"""Wire format and read-only views over the house status document."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, TypedDict

from .const import (
    ACTION_SET_COOL_SETPOINT,
    ACTION_SET_HEAT_SETPOINT,
    ACTION_UPDATE_MODE,
    DEVICE_ITEM_TYPE,
    FEATURE_THERMOSTAT,
    FEATURE_THERMOSTAT_MODE,
    THERMOSTAT_DEVICE_TYPE,
    ZoneMode,
    ZoneStatus,
)
from .exceptions import FeatureNotFoundError, MalformedDocumentError
from .temperature import fahrenheit_to_celsius

if TYPE_CHECKING:
    from collections.abc import Mapping

_LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Wire TypedDicts: field names exactly as the remote API sends them
# ---------------------------------------------------------------------------


class ActionLink(TypedDict):
    """An action endpoint inside a feature."""

    href: str


class _FeatureRequired(TypedDict):
    name: str


class FeatureRecord(_FeatureRequired, total=False):
    """A named capability block of a zone."""

    actions: dict[str, ActionLink]


class ThermostatFeatureRecord(FeatureRecord, total=False):
    """The ``thermostat`` feature: setpoint actions and system status."""

    temperature: float
    scale: str
    setpoint_cool: float
    setpoint_heat: float
    system_status: str


class ThermostatModeFeatureRecord(FeatureRecord, total=False):
    """The ``thermostat_mode`` feature: current mode and its update action."""

    value: str


class SetpointsRecord(TypedDict):
    """Zone setpoints, in Fahrenheit."""

    heat: float
    cool: float


class ZoneRecord(TypedDict):
    """A zone served by a thermostat."""

    id: int
    name: str
    type: str
    current_zone_mode: str
    temperature: float
    setpoints: SetpointsRecord
    features: list[FeatureRecord]


class _ThermostatRequired(TypedDict):
    id: int
    name: str
    type: str
    zones: list[ZoneRecord]


class ThermostatRecord(_ThermostatRequired, total=False):
    """A device item of thermostat type.

    outdoor_temperature and indoor_humidity arrive as strings and are
    only meaningful when the matching has_* flag is set.
    """

    has_outdoor_temperature: bool
    outdoor_temperature: str
    has_indoor_humidity: bool
    indoor_humidity: str
    system_status: str
    manufacturer: str


class StatusChildData(TypedDict):
    """Payload of one child link."""

    item_type: str
    items: list[dict[str, Any]]


class StatusChild(TypedDict, total=False):
    """A child link of the house resource."""

    href: str
    type: str
    data: StatusChildData


class StatusLinks(TypedDict):
    """Links of the house resource."""

    child: list[StatusChild]


class _StatusResultRequired(TypedDict):
    _links: StatusLinks


class StatusResult(_StatusResultRequired, total=False):
    """The house resource."""

    name: str


class _StatusDocumentRequired(TypedDict):
    result: StatusResult


class StatusDocument(_StatusDocumentRequired, total=False):
    """Root of the house status response."""

    success: bool
    error: Any


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _require(record: Mapping[str, Any], key: str, owner: str) -> Any:
    """Return record[key] or fail loudly if the field is absent."""
    try:
        return record[key]
    except (KeyError, TypeError) as exc:
        raise MalformedDocumentError(f"{owner} record has no {key!r}") from exc


def _as_int(value: Any, owner: str, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedDocumentError(f"{owner} {key!r} is not an integer: {value!r}")
    return value


def _as_str(value: Any, owner: str, key: str) -> str:
    if not isinstance(value, str):
        raise MalformedDocumentError(f"{owner} {key!r} is not a string: {value!r}")
    return value


def _as_float(value: Any, owner: str, key: str) -> float:
    """Coerce a number or numeric string, as the remote mixes both."""
    if isinstance(value, bool):
        raise MalformedDocumentError(f"{owner} {key!r} is not a number: {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedDocumentError(
            f"{owner} {key!r} is not a number: {value!r}"
        ) from exc


def _as_records(value: Any, owner: str, key: str) -> list[dict[str, Any]]:
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise MalformedDocumentError(f"{owner} {key!r} is not a list of objects")
    return value


def _action_href(record: Mapping[str, Any], action: str) -> str:
    owner = f"Feature {record.get('name')!r}"
    actions = _require(record, "actions", owner)
    link = _require(actions, action, owner)
    return _as_str(_require(link, "href", owner), owner, f"{action}.href")


# ---------------------------------------------------------------------------
# Features, tagged by name; unknown kinds are kept as-is
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ThermostatFeature:
    """Setpoint actions and the current system status of a zone."""

    raw: ThermostatFeatureRecord
    name: ClassVar[str] = FEATURE_THERMOSTAT

    @property
    def system_status(self) -> ZoneStatus:
        """Return what the equipment is doing for this zone."""
        value = _require(self.raw, "system_status", "Thermostat feature")
        try:
            return ZoneStatus(value)
        except ValueError as exc:
            raise MalformedDocumentError(f"Unknown system status: {value!r}") from exc

    @property
    def set_cool_setpoint_url(self) -> str:
        """Return the endpoint that updates the cool setpoint."""
        return _action_href(self.raw, ACTION_SET_COOL_SETPOINT)

    @property
    def set_heat_setpoint_url(self) -> str:
        """Return the endpoint that updates the heat setpoint."""
        return _action_href(self.raw, ACTION_SET_HEAT_SETPOINT)

    @property
    def scale(self) -> str | None:
        return self.raw.get("scale")

    @property
    def temperature(self) -> float | None:
        value = self.raw.get("temperature")
        if value is None:
            return None
        return _as_float(value, "Thermostat feature", "temperature")


@dataclass(frozen=True, slots=True)
class ThermostatModeFeature:
    """The zone's operating mode and the action that changes it."""

    raw: ThermostatModeFeatureRecord
    name: ClassVar[str] = FEATURE_THERMOSTAT_MODE

    @property
    def value(self) -> ZoneMode:
        """Return the mode as reported by the feature."""
        value = _require(self.raw, "value", "Thermostat mode feature")
        try:
            return ZoneMode(value)
        except ValueError as exc:
            raise MalformedDocumentError(f"Unknown zone mode: {value!r}") from exc

    @property
    def update_mode_url(self) -> str:
        """Return the endpoint that updates the zone mode."""
        return _action_href(self.raw, ACTION_UPDATE_MODE)


@dataclass(frozen=True, slots=True)
class UnknownFeature:
    """A feature kind this library does not interpret."""

    raw: FeatureRecord

    @property
    def name(self) -> str | None:
        return self.raw.get("name")


Feature = ThermostatFeature | ThermostatModeFeature | UnknownFeature

_FEATURE_KINDS: dict[str, type[ThermostatFeature | ThermostatModeFeature]] = {
    FEATURE_THERMOSTAT: ThermostatFeature,
    FEATURE_THERMOSTAT_MODE: ThermostatModeFeature,
}


def parse_feature(raw: FeatureRecord) -> Feature:
    """Wrap a raw feature record in the view matching its name."""
    kind = _FEATURE_KINDS.get(raw.get("name", ""))
    if kind is None:
        return UnknownFeature(raw)
    return kind(raw)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Views, recomputed from the raw snapshot on every access
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Zone:
    """A zone of a thermostat. Temperatures are reported in Celsius."""

    raw: ZoneRecord

    @property
    def id(self) -> int:
        return _as_int(_require(self.raw, "id", "Zone"), "Zone", "id")

    @property
    def name(self) -> str:
        return _as_str(_require(self.raw, "name", "Zone"), "Zone", "name")

    @property
    def current_temperature_f(self) -> float:
        return _as_float(
            _require(self.raw, "temperature", "Zone"), "Zone", "temperature"
        )

    @property
    def current_temperature(self) -> float:
        return fahrenheit_to_celsius(self.current_temperature_f)

    @property
    def mode(self) -> ZoneMode:
        value = _require(self.raw, "current_zone_mode", "Zone")
        try:
            return ZoneMode(value)
        except ValueError as exc:
            raise MalformedDocumentError(f"Unknown zone mode: {value!r}") from exc

    def _setpoint_f(self, key: str) -> float:
        setpoints = _require(self.raw, "setpoints", "Zone")
        return _as_float(_require(setpoints, key, "Zone setpoints"), "Zone", key)

    @property
    def setpoint_heat_f(self) -> float:
        return self._setpoint_f("heat")

    @property
    def setpoint_cool_f(self) -> float:
        return self._setpoint_f("cool")

    @property
    def setpoint_heat(self) -> float:
        return fahrenheit_to_celsius(self.setpoint_heat_f)

    @property
    def setpoint_cool(self) -> float:
        return fahrenheit_to_celsius(self.setpoint_cool_f)

    @property
    def target_temperature(self) -> float | None:
        """
        Return the setpoint the zone is currently driving towards.

        Only COOL and HEAT have a single target; other modes return None.
        """
        mode = self.mode
        if mode is ZoneMode.COOL:
            return self.setpoint_cool
        if mode is ZoneMode.HEAT:
            return self.setpoint_heat
        return None

    @property
    def features(self) -> list[Feature]:
        records = _as_records(
            _require(self.raw, "features", "Zone"), "Zone", "features"
        )
        return [parse_feature(record) for record in records]  # type: ignore[arg-type]

    @property
    def thermostat_feature(self) -> ThermostatFeature:
        """
        Return the zone's ``thermostat`` feature.

        Raises:
            FeatureNotFoundError: If the zone has no such feature.

        """
        for feature in self.features:
            if isinstance(feature, ThermostatFeature):
                return feature
        raise FeatureNotFoundError(self.id, FEATURE_THERMOSTAT)

    @property
    def thermostat_mode_feature(self) -> ThermostatModeFeature:
        """
        Return the zone's ``thermostat_mode`` feature.

        Raises:
            FeatureNotFoundError: If the zone has no such feature.

        """
        for feature in self.features:
            if isinstance(feature, ThermostatModeFeature):
                return feature
        raise FeatureNotFoundError(self.id, FEATURE_THERMOSTAT_MODE)

    @property
    def status(self) -> ZoneStatus:
        return self.thermostat_feature.system_status


@dataclass(frozen=True, slots=True)
class Thermostat:
    """A thermostat device item and its zones."""

    raw: ThermostatRecord

    @property
    def id(self) -> int:
        return _as_int(_require(self.raw, "id", "Thermostat"), "Thermostat", "id")

    @property
    def name(self) -> str:
        return _as_str(
            _require(self.raw, "name", "Thermostat"), "Thermostat", "name"
        )

    @property
    def has_outdoor_temperature(self) -> bool:
        return bool(self.raw.get("has_outdoor_temperature", False))

    @property
    def outdoor_temperature_f(self) -> float | None:
        if not self.has_outdoor_temperature:
            return None
        value = _require(self.raw, "outdoor_temperature", "Thermostat")
        return _as_float(value, "Thermostat", "outdoor_temperature")

    @property
    def outdoor_temperature(self) -> float | None:
        """Return the outdoor temperature in Celsius, if the unit reports one."""
        fahrenheit = self.outdoor_temperature_f
        if fahrenheit is None:
            return None
        return fahrenheit_to_celsius(fahrenheit)

    @property
    def has_indoor_humidity(self) -> bool:
        return bool(self.raw.get("has_indoor_humidity", False))

    @property
    def indoor_humidity(self) -> float | None:
        """Return relative indoor humidity in percent, if reported."""
        if not self.has_indoor_humidity:
            return None
        value = _require(self.raw, "indoor_humidity", "Thermostat")
        return _as_float(value, "Thermostat", "indoor_humidity")

    @property
    def zones(self) -> list[Zone]:
        records = _as_records(
            _require(self.raw, "zones", "Thermostat"), "Thermostat", "zones"
        )
        return [Zone(record) for record in records]  # type: ignore[arg-type]

    def zone(self, zone_id: int) -> Zone | None:
        """Return the zone with the given id, or None."""
        return next((z for z in self.zones if z.id == zone_id), None)


class HouseStatus:
    """
    One fetched status snapshot.

    Thermostats and zones are rebuilt from ``raw`` on every call; views
    taken from one snapshot must not be reused after a new fetch, since
    action URLs may change between snapshots.
    """

    def __init__(self, raw: StatusDocument) -> None:
        self._raw = raw

    @property
    def raw(self) -> StatusDocument:
        """Return the document this snapshot was built from."""
        return self._raw

    @property
    def name(self) -> str | None:
        """Return the house name, if the document carries one."""
        result = _require(self._raw, "result", "Status")
        return result.get("name") if isinstance(result, dict) else None

    def _children(self) -> list[dict[str, Any]]:
        try:
            children = self._raw["result"]["_links"]["child"]
        except (KeyError, TypeError) as exc:
            raise MalformedDocumentError(
                "Status document has no result._links.child"
            ) from exc
        return _as_records(children, "Status", "child")

    def _device_items(self) -> list[dict[str, Any]] | None:
        """Return the device item list, or None if the house has no devices link."""
        for child in self._children():
            data = child.get("data")
            if isinstance(data, dict) and data.get("item_type") == DEVICE_ITEM_TYPE:
                return _as_records(
                    _require(data, "items", "Device collection"),
                    "Device collection",
                    "items",
                )
        return None

    def thermostats(self) -> list[Thermostat]:
        """Return every thermostat device in document order."""
        items = self._device_items()
        if items is None:
            _LOGGER.debug("Status document has no device collection")
            return []
        return [
            Thermostat(item)  # type: ignore[arg-type]
            for item in items
            if item.get("type") == THERMOSTAT_DEVICE_TYPE
        ]

    def thermostat(self, thermostat_id: int) -> Thermostat | None:
        """Return the thermostat with the given id, or None."""
        return next((t for t in self.thermostats() if t.id == thermostat_id), None)
