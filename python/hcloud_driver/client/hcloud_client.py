"""
An asynchronous, read-only Hetzner Cloud inventory client.

Requests go through the host's authenticating proxy: the client sends an
opaque credential reference in the auth header and the proxy substitutes the
stored API token. The client never sees the token itself.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Type

import aiohttp

from hcloud_driver.models.settings import DriverSettings
from hcloud_driver.models.validator import validate_type
from hcloud_driver.utils.async_retry import async_retry


class HCloudError(Exception):
    """Base class for failures talking to the inventory API."""


class HCloudRequestError(HCloudError):
    """A request completed with a non-2xx status or an unusable body.

    Attributes:
        status (Optional[int]): HTTP status, if a response was received.
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class HCloudAuthError(HCloudRequestError):
    """The proxy or the API rejected the credential (HTTP 401)."""


TRANSIENT_ERRORS = (aiohttp.ClientConnectionError, asyncio.TimeoutError)


class AsyncHCloudClient:
    """Fetches single pages of inventory resources as raw JSON dicts.

    Usage:
        async with AsyncHCloudClient(settings) as client:
            page = await client.get_page("locations", 1)
    """

    def __init__(self, settings: DriverSettings) -> None:
        """
        Initialize the AsyncHCloudClient.

        Args:
            settings (DriverSettings): Host URL, base path, credential id, etc.
        """
        self._settings = settings
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> AsyncHCloudClient:
        """Async context manager entry, creates an aiohttp session."""
        await self.ensure_session()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        """Async context manager exit, closes the aiohttp session."""
        await self.close()

    async def ensure_session(self) -> aiohttp.ClientSession:
        """Ensure an aiohttp session is available, creating one if needed."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._settings.request_timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session:
            await self._session.close()
        self._session = None

    def _headers(self) -> Dict[str, str]:
        return {
            self._settings.auth_header: self._settings.auth_header_value(),
            "Accept": "application/json",
        }

    def url_for(self, resource: str) -> str:
        return f"{self._settings.api_root}/{resource.lstrip('/')}"

    async def get_page(self, resource: str, page: int) -> Dict[str, Any]:
        """Fetch one page of a resource listing, e.g. get_page("server_types", 2).

        Connection errors and timeouts are retried according to the settings.

        Raises:
            HCloudAuthError: On HTTP 401.
            HCloudRequestError: On any other non-2xx status or a non-JSON body.
            aiohttp.ClientError / asyncio.TimeoutError: If all attempts fail.
        """
        fetch = async_retry(
            retries=self._settings.retries,
            delay=self._settings.retry_delay_seconds,
            retry_on=TRANSIENT_ERRORS,
            noisy=True,
        )(self._get_json)
        return await fetch(self.url_for(resource), {"page": str(page)})

    async def _get_json(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        session = await self.ensure_session()
        async with session.get(
            url, params=params, headers=self._headers(), ssl=self._settings.verify_ssl
        ) as resp:
            if resp.status == 401:
                raise HCloudAuthError(
                    "Authentication failed. Please check your Hetzner Cloud API token.",
                    status=resp.status,
                )
            if resp.status < 200 or resp.status >= 300:
                detail = await resp.text()
                raise HCloudRequestError(
                    f"HTTP error! status: {resp.status}, message: {detail}",
                    status=resp.status,
                )
            try:
                raw_js = await resp.json(content_type=None)
            except ValueError as ex:
                raise HCloudRequestError(
                    f"Invalid JSON from {url}: {ex}", status=resp.status
                ) from ex
        try:
            return validate_type(raw_js, Dict[str, Any])
        except ValueError as ex:
            raise HCloudRequestError(str(ex), status=200) from ex


__all__ = [
    "HCloudError",
    "HCloudRequestError",
    "HCloudAuthError",
    "AsyncHCloudClient",
]
