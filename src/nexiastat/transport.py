"""Async HTTP transport for the Nexia mobile API."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypedDict

import aiohttp
import orjson

from .const import API_BASE_URL, CREDENTIALS_FILE, HOUSE_PATH_FMT, REQUEST_TIMEOUT
from .exceptions import FetchError, MutationError

if TYPE_CHECKING:
    from typing import Self

    from .models import StatusDocument

_LOGGER = logging.getLogger(__name__)


class Credentials(TypedDict):
    """Identity of one house on the mobile API."""

    house_id: str
    mobile_id: str
    api_key: str


def _credentials_path(path: Path | None = None) -> Path:
    return path or Path.cwd() / CREDENTIALS_FILE


async def load_credentials(path: Path | None = None) -> Credentials | None:
    """
    Read the house id, mobile id and api key saved by an earlier session.

    Args:
        path: JSON file written by save_credentials. Without one, the
            nexia_credentials.json in the working directory is used.

    Returns:
        The stored credentials, or None when nothing has been saved yet.

    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None, _read_credentials, _credentials_path(path)
    )


def _read_credentials(path: Path) -> Credentials | None:
    try:
        return orjson.loads(path.read_bytes())  # type: ignore[no-any-return]
    except FileNotFoundError:
        _LOGGER.debug("No credentials at %s", path)
        return None


async def save_credentials(credentials: Credentials, path: Path | None = None) -> None:
    """
    Store mobile API credentials so the CLI can reconnect without flags.

    The api key grants control of the house, so the file is created with
    mode 0600 and swapped into place in one rename.

    Args:
        credentials: Identity returned by the Nexia mobile sign-in.
        path: Destination JSON file, nexia_credentials.json in the working
            directory when omitted.

    """
    target = _credentials_path(path)
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, _write_credentials, target, credentials)
    _LOGGER.info(
        "Credentials for house %s saved to %s", credentials["house_id"], target
    )


def _write_credentials(path: Path, credentials: Credentials) -> None:
    staging = path.with_name(f".{path.name}.partial")
    fd = os.open(staging, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as handle:
        handle.write(orjson.dumps(credentials, option=orjson.OPT_INDENT_2))
    staging.replace(path)


class MobileClient:
    """
    Thin async client for the mobile API of one house.

    Provides the two operations the status client depends on:
    fetch_status() and post(). Pass an aiohttp session to share it;
    otherwise one is created on first use and closed by close().
    """

    def __init__(
        self,
        house_id: str,
        mobile_id: str,
        api_key: str,
        *,
        session: aiohttp.ClientSession | None = None,
        base_url: str = API_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self._house_id = house_id
        self._mobile_id = mobile_id
        self._api_key = api_key
        self._session = session
        self._owns_session = session is None
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @classmethod
    def from_credentials(cls, credentials: Credentials, **kwargs: Any) -> Self:
        """Build a client from a credentials dict."""
        return cls(
            credentials["house_id"],
            credentials["mobile_id"],
            credentials["api_key"],
            **kwargs,
        )

    @property
    def house_id(self) -> str:
        """Return the house this client reads."""
        return self._house_id

    @property
    def status_url(self) -> str:
        """Return the URL of the full house status resource."""
        return self._base_url + HOUSE_PATH_FMT.format(house_id=self._house_id)

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def _request(
        self, method: str, url: str, payload: dict[str, Any] | None = None
    ) -> Any:
        """
        Perform an authenticated request and decode the JSON body.

        Returns None for an empty body. HTTP statuses >= 400 raise
        aiohttp.ClientResponseError.
        """
        session = await self._ensure_session()
        headers = {
            "X-MobileId": self._mobile_id,
            "X-ApiKey": self._api_key,
            "Accept": "application/json",
        }
        data: bytes | None = None
        if payload is not None:
            headers["Content-Type"] = "application/json"
            data = orjson.dumps(payload)
        _LOGGER.debug("HTTP %s %s", method, url)
        async with session.request(
            method,
            url,
            headers=headers,
            data=data,
            timeout=aiohttp.ClientTimeout(total=self._timeout),
        ) as resp:
            body = await resp.read()
            if resp.status >= 400:
                _LOGGER.warning("HTTP %s %s -> %s", method, url, resp.status)
                resp.raise_for_status()
            _LOGGER.debug("HTTP %s %s -> %s", method, url, resp.status)
        if not body:
            return None
        return orjson.loads(body)

    async def fetch_status(self) -> StatusDocument:
        """
        Fetch the full house status document.

        Raises:
            FetchError: On connection, HTTP or decoding failure.

        """
        try:
            body = await self._request("GET", self.status_url)
        except (aiohttp.ClientError, TimeoutError, orjson.JSONDecodeError) as exc:
            raise FetchError(f"Status fetch failed: {exc!r}") from exc
        if not isinstance(body, dict):
            raise FetchError(f"Status response is not an object: {type(body).__name__}")
        return body  # type: ignore[return-value]

    async def post(self, url: str, payload: dict[str, Any]) -> Any:
        """
        POST a JSON payload to an action endpoint.

        Raises:
            MutationError: On connection, HTTP or decoding failure.

        """
        try:
            return await self._request("POST", url, payload)
        except (aiohttp.ClientError, TimeoutError, orjson.JSONDecodeError) as exc:
            raise MutationError(f"POST to {url} failed: {exc!r}") from exc
