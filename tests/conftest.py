"""Shared fixtures for nexiastat tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from nexiastat.client import StatusClient
from nexiastat.const import DEVICE_ITEM_TYPE, THERMOSTAT_DEVICE_TYPE

ZONE_URL = "https://www.mynexia.com/mobile/xxl_zones"


def thermostat_feature(
    zone_id: int, system_status: str = "System Idle"
) -> dict[str, Any]:
    """Build a wire-format ``thermostat`` feature."""
    return {
        "name": "thermostat",
        "scale": "f",
        "temperature": 75,
        "setpoint_cool": 72,
        "setpoint_heat": 68,
        "system_status": system_status,
        "actions": {
            "set_cool_setpoint": {"href": f"{ZONE_URL}/{zone_id}/setpoints/cool"},
            "set_heat_setpoint": {"href": f"{ZONE_URL}/{zone_id}/setpoints/heat"},
        },
    }


def mode_feature(zone_id: int, value: str = "COOL") -> dict[str, Any]:
    """Build a wire-format ``thermostat_mode`` feature."""
    return {
        "name": "thermostat_mode",
        "value": value,
        "actions": {
            "update_thermostat_mode": {"href": f"{ZONE_URL}/{zone_id}/zone_mode"},
        },
    }


def make_zone(
    zone_id: int = 10,
    *,
    name: str = "NativeZone",
    temperature: float = 75,
    mode: str = "COOL",
    heat: float = 68,
    cool: float = 72,
    features: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a wire-format zone record."""
    if features is None:
        features = [thermostat_feature(zone_id), mode_feature(zone_id, mode)]
    return {
        "id": zone_id,
        "name": name,
        "type": "xxl_zone",
        "current_zone_mode": mode,
        "temperature": temperature,
        "setpoints": {"heat": heat, "cool": cool},
        "features": features,
    }


def make_thermostat(
    thermostat_id: int = 1,
    *,
    name: str = "Hallway",
    zones: list[dict[str, Any]] | None = None,
    outdoor_temperature: str | None = "91.0",
    indoor_humidity: str | None = "45.0",
) -> dict[str, Any]:
    """Build a wire-format thermostat device item."""
    return {
        "id": thermostat_id,
        "name": name,
        "type": THERMOSTAT_DEVICE_TYPE,
        "manufacturer": "Trane",
        "has_outdoor_temperature": outdoor_temperature is not None,
        "outdoor_temperature": outdoor_temperature or "",
        "has_indoor_humidity": indoor_humidity is not None,
        "indoor_humidity": indoor_humidity or "",
        "zones": [make_zone()] if zones is None else zones,
    }


def make_document(
    items: list[dict[str, Any]], *, device_link: bool = True
) -> dict[str, Any]:
    """Build a house status document holding the given device items."""
    children: list[dict[str, Any]] = [
        {
            "href": "https://www.mynexia.com/mobile/houses/123/automations",
            "type": "application/vnd.nexia.collection+json",
            "data": {
                "item_type": "application/vnd.nexia.automation+json",
                "items": [{"id": 7, "name": "Away"}],
            },
        }
    ]
    if device_link:
        children.append(
            {
                "href": "https://www.mynexia.com/mobile/houses/123/devices",
                "type": "application/vnd.nexia.collection+json",
                "data": {"item_type": DEVICE_ITEM_TYPE, "items": items},
            }
        )
    return {
        "success": True,
        "error": None,
        "result": {"name": "Home", "_links": {"child": children}},
    }


class FakeTransport:
    """In-memory stand-in for MobileClient that counts requests."""

    def __init__(self, document: dict[str, Any]) -> None:
        self.document = document
        self.fetch_count = 0
        self.posts: list[tuple[str, dict[str, Any]]] = []
        self.fetch_error: Exception | None = None
        self.post_error: Exception | None = None

    async def fetch_status(self) -> dict[str, Any]:
        self.fetch_count += 1
        await asyncio.sleep(0)
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.document

    async def post(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        self.posts.append((url, payload))
        await asyncio.sleep(0)
        if self.post_error is not None:
            raise self.post_error
        return {"success": True}

    async def __aenter__(self) -> FakeTransport:
        return self

    async def __aexit__(self, *args: object) -> None:
        return None


@pytest.fixture
def document() -> dict[str, Any]:
    """Return a house with one thermostat (id 1, zone 10) and a non-thermostat."""
    return make_document(
        [
            make_thermostat(),
            {"id": 55, "name": "Garage door", "type": "xxl_garage_door"},
        ]
    )


@pytest.fixture
def transport(document: dict[str, Any]) -> FakeTransport:
    """Return a FakeTransport serving the default document."""
    return FakeTransport(document)


@pytest.fixture
def client(transport: FakeTransport) -> StatusClient:
    """Return a StatusClient over the fake transport with a long cache window."""
    return StatusClient(transport.fetch_status, transport.post, cache_window=60)
