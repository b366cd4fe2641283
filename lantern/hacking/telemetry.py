"""Boost reporting to the external hacking API.

Reports are fire-and-forget: ``notify_boost`` schedules the POST and returns
right away. Failures are logged and never reach the caller.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from lantern.config import settings

logger = logging.getLogger(__name__)

SET_BOOST_PATH = "/reports/set_boost"


class BoostNotifier:
    def __init__(
        self,
        host: str | None = None,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.host = settings.hacking_api_host if host is None else host
        self.api_key = settings.hacking_api_key if api_key is None else api_key
        self._client = client
        self._owns_client = client is None
        self._pending: set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.telemetry_timeout)
        return self._client

    def notify_boost(self, station_id: int, value: int) -> asyncio.Task | None:
        """Schedule a boost report. Must be called from a running event loop."""
        if not self.enabled:
            return None
        task = asyncio.create_task(self.send_boost(station_id, value))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def send_boost(self, station_id: int, value: int) -> int | None:
        """POST the report and return the status code, None on failure."""
        url = f"http://{self.host}{SET_BOOST_PATH}"
        body = {"data": {"station": station_id, "boost": value, "key": self.api_key}}
        try:
            response = await self._get_client().post(url, json=body)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Boost report for station {station_id} failed: {e}")
            return None

        if response.status_code >= 400:
            logger.warning(
                f"Boost report for station {station_id} rejected with {response.status_code}"
            )
        return response.status_code

    async def drain(self):
        """Wait for every report scheduled so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self):
        await self.drain()
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
