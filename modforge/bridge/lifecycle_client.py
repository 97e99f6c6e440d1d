"""Client for the host process's resource lifecycle API.

Endpoints (all bearer-authenticated)::

    GET  /resources                -> {success, resources: [name], count}
    POST /restart?resource=<name>  -> {success, resource, message}
    POST /start?resource=<name>    -> {success, resource, message}
    POST /restart                  -> {success, message, results: {name: bool}}

Failures are classified as NoResponseError (connectivity), HttpStatusError
(non-2xx, status and body kept), or RequestSetupError (the request could
not be built).  ``sync_resource`` applies the rebuild policy and never
raises: a failed restart is a warning, the local build still stands.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import aiohttp

from modforge.errors import (
    HttpStatusError,
    LifecycleApiError,
    NoResponseError,
    RequestSetupError,
)
from modforge.models.results import LifecycleResult

logger = logging.getLogger(__name__)


class LifecycleClient:
    """Async client for the lifecycle API.

    Use as an async context manager, or call ``close()`` when done.

    Parameters
    ----------
    base_url:
        Root URL of the API, e.g. ``http://localhost:3414``.
    api_key:
        Bearer credential sent with every request.
    session:
        Optional externally owned ``aiohttp.ClientSession``.
    timeout:
        Optional total timeout in seconds; ``None`` waits indefinitely.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        session: aiohttp.ClientSession | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def __aenter__(self) -> LifecycleClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def _request(
        self, method: str, path: str, *, params: dict[str, str] | None = None
    ) -> dict[str, Any]:
        if not self._api_key:
            raise RequestSetupError(
                "API key is not configured; set MODFORGE_API_KEY or pass api_key"
            )
        if not self.base_url.startswith(("http://", "https://")):
            raise RequestSetupError(f"Invalid lifecycle API base URL: {self.base_url!r}")

        url = f"{self.base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with self._get_session().request(
                method, url, params=params, headers=headers
            ) as response:
                body = await response.text()
                status = response.status
        except aiohttp.InvalidURL as exc:
            raise RequestSetupError(f"Invalid request URL {url}: {exc}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NoResponseError(
                f"{method} {path}: no response received from server ({exc})"
            ) from exc

        if not 200 <= status < 300:
            raise HttpStatusError(status, body, f"{method} {path} returned {status}: {body[:200]}")
        if not body:
            return {}
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise LifecycleApiError(f"{method} {path} returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise LifecycleApiError(f"{method} {path} returned unexpected JSON: {data!r}")
        return data

    # ------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------

    async def list_resources(self) -> list[str]:
        """Names of the units the host currently knows about."""
        data = await self._request("GET", "/resources")
        if not data.get("success"):
            raise LifecycleApiError("Host reported failure listing resources")
        return [str(name) for name in data.get("resources", [])]

    async def exists(self, name: str) -> bool:
        """Whether ``name`` is in the host's current resource list."""
        return name in await self.list_resources()

    async def restart(self, name: str) -> LifecycleResult:
        """Restart one named unit."""
        data = await self._request("POST", "/restart", params={"resource": name})
        return LifecycleResult(
            success=bool(data.get("success")),
            message=str(data.get("message", "")),
        )

    async def start(self, name: str) -> LifecycleResult:
        """Start a unit the host is not running yet."""
        data = await self._request("POST", "/start", params={"resource": name})
        return LifecycleResult(
            success=bool(data.get("success")),
            message=str(data.get("message", "")),
        )

    async def restart_all(self) -> LifecycleResult:
        """Restart every unit except the host's own manager."""
        data = await self._request("POST", "/restart")
        return LifecycleResult(
            success=bool(data.get("success")),
            message=str(data.get("message", "")),
            results={str(k): bool(v) for k, v in (data.get("results") or {}).items()},
        )


async def sync_resource(client: LifecycleClient, name: str) -> LifecycleResult:
    """Start ``name`` if the host lacks it, otherwise restart it.

    Lifecycle errors are logged as warnings and returned as a failed
    result; they never propagate.
    """
    try:
        if await client.exists(name):
            action = "restart"
            result = await client.restart(name)
        else:
            action = "start"
            result = await client.start(name)
    except LifecycleApiError as exc:
        logger.warning("Could not sync resource '%s' with host: %s", name, exc)
        return LifecycleResult(success=False, message=str(exc))

    if result.success:
        logger.info("Host %sed resource '%s'", action, name)
    else:
        logger.warning("Host could not %s resource '%s': %s", action, name, result.message)
    return result
