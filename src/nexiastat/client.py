"""Cached status reads and invalidating writes for one house."""

from __future__ import annotations

import logging
import math
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from .const import STATUS_CACHE_WINDOW, ZoneMode
from .exceptions import NotFoundError
from .models import HouseStatus, StatusDocument, Thermostat, Zone
from .temperature import celsius_to_fahrenheit
from .throttle import CoalescingCache

if TYPE_CHECKING:
    from .transport import MobileClient

_LOGGER = logging.getLogger(__name__)

FetchCallable = Callable[[], Awaitable[StatusDocument]]
PostCallable = Callable[[str, dict[str, Any]], Awaitable[Any]]


def _setpoint_fahrenheit(celsius: float) -> float:
    if not math.isfinite(celsius):
        raise ValueError(f"Setpoint must be a finite temperature, got {celsius!r}")
    return celsius_to_fahrenheit(celsius)


class StatusClient:
    """
    Read model of one house backed by a single coalescing cache.

    Reads go through the cache, so concurrent readers share one fetch and
    repeat reads within ``cache_window`` seconds cost nothing. Every write
    drops the cached status afterwards, so the next read in this process
    sees the result of the write.

    ``fetch`` and ``post`` are the transport: MobileClient.fetch_status and
    MobileClient.post, or any coroutines with the same shape.
    """

    def __init__(
        self,
        fetch: FetchCallable,
        post: PostCallable,
        *,
        cache_window: float = STATUS_CACHE_WINDOW,
    ) -> None:
        self._fetch = fetch
        self._post = post
        self._cache: CoalescingCache[HouseStatus] = CoalescingCache(
            self._fetch_status, cache_window
        )

    @classmethod
    def for_mobile_client(
        cls, mobile: MobileClient, *, cache_window: float = STATUS_CACHE_WINDOW
    ) -> StatusClient:
        """Build a status client on top of a MobileClient."""
        return cls(mobile.fetch_status, mobile.post, cache_window=cache_window)

    @property
    def cache(self) -> CoalescingCache[HouseStatus]:
        """Return the status cache."""
        return self._cache

    async def _fetch_status(self) -> HouseStatus:
        _LOGGER.debug("Getting status")
        return HouseStatus(await self._fetch())

    def invalidate(self) -> None:
        """Drop the cached status so the next read refetches."""
        self._cache.reset()

    # --- Reads ---

    async def status(self) -> HouseStatus:
        """
        Return the current status snapshot.

        Raises:
            FetchError: If the fetch behind this read failed.

        """
        return await self._cache.get()

    async def thermostats(self) -> list[Thermostat]:
        """Return every thermostat of the house."""
        return (await self.status()).thermostats()

    async def thermostat(self, thermostat_id: int) -> Thermostat | None:
        """Return the thermostat with the given id, or None."""
        return (await self.status()).thermostat(thermostat_id)

    async def get_thermostat(self, thermostat_id: int) -> Thermostat:
        """
        Return the thermostat with the given id.

        Raises:
            NotFoundError: If the house has no such thermostat.

        """
        thermostat = await self.thermostat(thermostat_id)
        if thermostat is None:
            raise NotFoundError(thermostat_id)
        return thermostat

    async def zone(self, thermostat_id: int, zone_id: int) -> Zone:
        """
        Return a zone of a thermostat.

        Raises:
            NotFoundError: If the thermostat or the zone is absent.

        """
        thermostat = await self.thermostat(thermostat_id)
        zone = thermostat.zone(zone_id) if thermostat is not None else None
        if zone is None:
            raise NotFoundError(thermostat_id, zone_id)
        return zone

    # --- Writes ---

    async def _post_and_invalidate(self, url: str, payload: dict[str, Any]) -> Any:
        """POST to an action endpoint, then drop the cache whatever the outcome."""
        _LOGGER.debug("POST %s %s", url, payload)
        try:
            return await self._post(url, payload)
        finally:
            self._cache.reset()

    async def set_mode(self, zone: Zone, mode: ZoneMode | str) -> Any:
        """
        Change a zone's operating mode.

        Raises:
            FeatureNotFoundError: If the zone has no thermostat_mode feature.
            MutationError: If the request failed.

        """
        value = ZoneMode(mode)
        url = zone.thermostat_mode_feature.update_mode_url
        return await self._post_and_invalidate(url, {"value": str(value)})

    async def set_cool_setpoint(self, zone: Zone, celsius: float) -> Any:
        """
        Set a zone's cool setpoint, given in Celsius.

        Raises:
            ValueError: If celsius is not a finite number.
            FeatureNotFoundError: If the zone has no thermostat feature.
            MutationError: If the request failed.

        """
        fahrenheit = _setpoint_fahrenheit(celsius)
        url = zone.thermostat_feature.set_cool_setpoint_url
        return await self._post_and_invalidate(url, {"cool": fahrenheit})

    async def set_heat_setpoint(self, zone: Zone, celsius: float) -> Any:
        """
        Set a zone's heat setpoint, given in Celsius.

        Raises:
            ValueError: If celsius is not a finite number.
            FeatureNotFoundError: If the zone has no thermostat feature.
            MutationError: If the request failed.

        """
        fahrenheit = _setpoint_fahrenheit(celsius)
        url = zone.thermostat_feature.set_heat_setpoint_url
        return await self._post_and_invalidate(url, {"heat": fahrenheit})
