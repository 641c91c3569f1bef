# movienight/services/watchlist.py
from __future__ import annotations

import asyncio
import logging

import aiohttp

from movienight.services.errors import ExternalServiceUnavailable

log = logging.getLogger(__name__)

MDBLIST_API = "https://api.mdblist.com"


class MdbListClient:
    """Adds archived winners to a shared MDBList list."""

    def __init__(
        self,
        api_key: str | None,
        list_id: str | None,
        *,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.list_id = list_id
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.list_id)

    async def add(self, external_id: str, title: str) -> bool:
        """
        Returns False when the integration is not configured.
        Raises ExternalServiceUnavailable on transport or API errors.
        """
        if not self.enabled:
            log.info("MDBList not configured, skipping %s", title)
            return False

        url = f"{MDBLIST_API}/lists/{self.list_id}/items"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as http:
                async with http.post(
                    url,
                    json={"items": [external_id]},
                    headers={"apikey": str(self.api_key)},
                ) as r:
                    if r.status >= 400:
                        body = await r.text()
                        raise ExternalServiceUnavailable(f"MDBList HTTP {r.status}: {body[:200]}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ExternalServiceUnavailable(f"MDBList unreachable: {e!r}") from e

        log.info("Added to MDBList: %s (%s)", title, external_id)
        return True
