"""Constants and enums for the Nexia mobile status API."""

from __future__ import annotations

from enum import StrEnum


class ZoneMode(StrEnum):
    """HVAC zone operating mode, as sent on the wire."""

    COOL = "COOL"
    HEAT = "HEAT"
    AUTO = "AUTO"
    OFF = "OFF"


class ZoneStatus(StrEnum):
    """What the equipment serving a zone is currently doing."""

    IDLE = "System Idle"
    COOLING = "Cooling"
    HEATING = "Heating"
    WAITING = "Waiting..."
    FAN_RUNNING = "Fan Running"


API_BASE_URL = "https://www.mynexia.com/mobile"
HOUSE_PATH_FMT = "/houses/{house_id}"

DEVICE_ITEM_TYPE = "application/vnd.nexia.device+json"
THERMOSTAT_DEVICE_TYPE = "xxl_thermostat"

FEATURE_THERMOSTAT = "thermostat"
FEATURE_THERMOSTAT_MODE = "thermostat_mode"
ACTION_SET_COOL_SETPOINT = "set_cool_setpoint"
ACTION_SET_HEAT_SETPOINT = "set_heat_setpoint"
ACTION_UPDATE_MODE = "update_thermostat_mode"

STATUS_CACHE_WINDOW = 5  # seconds a fetched status stays fresh
REQUEST_TIMEOUT = 25
CREDENTIALS_FILE = "nexia_credentials.json"
