"""Command-line interface for nexiastat."""

from __future__ import annotations

import argparse
import asyncio
import logging
import math
import sys
from dataclasses import dataclass
from pathlib import Path

import orjson

from .client import StatusClient
from .const import CREDENTIALS_FILE, STATUS_CACHE_WINDOW, ZoneMode
from .exceptions import FeatureNotFoundError, NexiaError
from .models import HouseStatus, Thermostat
from .transport import Credentials, MobileClient, load_credentials, save_credentials

_LOGGER = logging.getLogger(__name__)

_MODE_MAP: dict[str, ZoneMode] = {
    "off": ZoneMode.OFF,
    "auto": ZoneMode.AUTO,
    "cool": ZoneMode.COOL,
    "heat": ZoneMode.HEAT,
}


@dataclass
class _Selection:
    """Zone that mode/heat/cool commands act on."""

    thermostat_id: int | None = None
    zone_id: int | None = None


def _fmt_temp(celsius: float | None) -> str:
    return "N/A" if celsius is None else f"{celsius:.1f}°C"


def _print_thermostat(thermostat: Thermostat) -> None:
    """Display one thermostat and its zones."""
    print(f"  Thermostat {thermostat.id} ({thermostat.name}):")
    print(f"    Outdoor temperature: {_fmt_temp(thermostat.outdoor_temperature)}")
    humidity = thermostat.indoor_humidity
    print(f"    Indoor humidity: {'N/A' if humidity is None else f'{humidity:g}%'}")
    for zone in thermostat.zones:
        print(f"    Zone {zone.id} ({zone.name}):")
        print(f"      Temperature: {_fmt_temp(zone.current_temperature)}")
        print(f"      Mode: {zone.mode}")
        try:
            status = str(zone.status)
        except FeatureNotFoundError:
            status = "N/A"
        print(f"      Status: {status}")
        print(f"      Heat setpoint: {_fmt_temp(zone.setpoint_heat)}")
        print(f"      Cool setpoint: {_fmt_temp(zone.setpoint_cool)}")
        print(f"      Target: {_fmt_temp(zone.target_temperature)}")


def _print_status(status: HouseStatus) -> None:
    """Display the whole house."""
    print(f"\n--- House {status.name or ''} ---")
    thermostats = status.thermostats()
    if not thermostats:
        print("  No thermostats")
    for thermostat in thermostats:
        _print_thermostat(thermostat)
    print("------------------------\n")


def _print_help(selection: _Selection) -> None:
    """Display available commands."""
    if selection.zone_id is None:
        active = "none"
    else:
        active = f"{selection.thermostat_id}/{selection.zone_id}"
    print("Commands:")
    print("  status                      Show house status")
    print("  thermostat <id>             Show one thermostat")
    print(f"  zone <tid> <zid>            Select active zone (current: {active})")
    print("  mode <off|auto|cool|heat>   Set zone mode")
    print("  heat <celsius>              Set heat setpoint")
    print("  cool <celsius>              Set cool setpoint")
    print("  refresh                     Drop the cached status")
    print("  raw                         Dump the raw status document")
    print("  quit                        Exit")


async def _cmd_setpoint(
    client: StatusClient, selection: _Selection, kind: str, value: str
) -> None:
    """Handle the heat and cool commands."""
    try:
        celsius = float(value)
    except ValueError:
        celsius = math.nan
    if not math.isfinite(celsius):
        print(f"Invalid temperature: {value}")
        return
    zone = await client.zone(selection.thermostat_id, selection.zone_id)  # type: ignore[arg-type]
    print(f"Setting {kind} setpoint to {celsius:g}°C (zone {zone.id})")
    if kind == "heat":
        await client.set_heat_setpoint(zone, celsius)
    else:
        await client.set_cool_setpoint(zone, celsius)


async def _handle_command(
    client: StatusClient,
    parts: list[str],
    selection: _Selection,
) -> bool:
    """Handle a single interactive command.

    Returns False to quit.
    """
    if parts[0] in ("quit", "q"):
        return False

    if parts[0] == "status":
        _print_status(await client.status())

    elif parts[0] == "thermostat" and len(parts) >= 2:
        if not parts[1].isdigit():
            print(f"Invalid id: {parts[1]}")
            return True
        _print_thermostat(await client.get_thermostat(int(parts[1])))

    elif parts[0] == "zone" and len(parts) >= 3:
        if not (parts[1].isdigit() and parts[2].isdigit()):
            print("Usage: zone <thermostat id> <zone id>")
            return True
        zone = await client.zone(int(parts[1]), int(parts[2]))
        selection.thermostat_id = int(parts[1])
        selection.zone_id = zone.id
        print(f"Active zone: {zone.id} ({zone.name})")

    elif parts[0] in ("mode", "heat", "cool") and selection.zone_id is None:
        print("No active zone. Select one with: zone <tid> <zid>")

    elif parts[0] == "mode" and len(parts) >= 2:
        mode = _MODE_MAP.get(parts[1])
        if mode is None:
            print(f"Unknown mode: {parts[1]}")
            return True
        zone = await client.zone(selection.thermostat_id, selection.zone_id)  # type: ignore[arg-type]
        print(f"Setting zone mode to {mode} (zone {zone.id})")
        await client.set_mode(zone, mode)

    elif parts[0] in ("heat", "cool") and len(parts) >= 2:
        await _cmd_setpoint(client, selection, parts[0], parts[1])

    elif parts[0] == "refresh":
        client.invalidate()
        print("Cached status dropped")

    elif parts[0] == "raw":
        status = await client.status()
        print(orjson.dumps(status.raw, option=orjson.OPT_INDENT_2).decode())

    elif parts[0] in ("help", "?"):
        _print_help(selection)

    else:
        print("Unknown command. Type 'help' for available commands.")

    return True


async def _resolve_credentials(args: argparse.Namespace) -> Credentials | None:
    """Take credentials from the flags, else from the credentials file."""
    path = Path(args.credentials)
    if args.house_id and args.mobile_id and args.api_key:
        credentials: Credentials = {
            "house_id": args.house_id,
            "mobile_id": args.mobile_id,
            "api_key": args.api_key,
        }
        if args.save:
            await save_credentials(credentials, path)
        return credentials
    return await load_credentials(path)


async def _do_monitor(credentials: Credentials, window: float) -> None:
    """Run the interactive command loop against one house."""
    print("\n=== NEXIA STATUS ===")
    print(f"House {credentials['house_id']}")

    async with MobileClient.from_credentials(credentials) as mobile:
        client = StatusClient.for_mobile_client(mobile, cache_window=window)
        selection = _Selection()
        _print_help(selection)
        print()

        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            cmd = line.strip()
            if not cmd:
                continue

            try:
                if not await _handle_command(client, cmd.lower().split(), selection):
                    break
            except NexiaError as exc:
                print(f"Error: {exc}")

    print("\nDisconnected.")


async def _run(args: argparse.Namespace) -> None:
    credentials = await _resolve_credentials(args)
    if credentials is None:
        print(
            f"No credentials found in {args.credentials}. "
            "Pass --house-id, --mobile-id and --api-key (add --save to keep them)."
        )
        return
    await _do_monitor(credentials, args.window)


def main() -> None:
    """Entry point for the nexiastat CLI."""
    parser = argparse.ArgumentParser(description="Nexia Thermostat Status CLI")
    parser.add_argument(
        "--credentials",
        default=CREDENTIALS_FILE,
        help=f"Credentials file (default: {CREDENTIALS_FILE})",
    )
    parser.add_argument("--house-id", help="House id")
    parser.add_argument("--mobile-id", help="Mobile id")
    parser.add_argument("--api-key", help="API key")
    parser.add_argument(
        "--save", action="store_true", help="Save the given credentials"
    )
    parser.add_argument(
        "--window",
        type=float,
        default=STATUS_CACHE_WINDOW,
        help=f"Seconds a fetched status stays fresh (default: {STATUS_CACHE_WINDOW})",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    args = parser.parse_args()

    level = logging.DEBUG if args.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        asyncio.run(_run(args))
    except KeyboardInterrupt:
        pass
