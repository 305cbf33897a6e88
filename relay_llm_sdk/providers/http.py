"""Shared httpx plumbing for transports that speak raw HTTP (Ollama, Replicate)."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx


class HttpSession:
    """
    Yields an ``httpx.AsyncClient`` per call.

    An injected client is reused and never closed here; otherwise a client
    is opened for the duration of one request.
    """

    def __init__(self, timeout: float = 120.0, headers: Optional[Dict[str, str]] = None,
                 client: Optional[httpx.AsyncClient] = None):
        self.timeout = timeout
        self.headers = dict(headers or {})
        self._client = client

    @asynccontextmanager
    async def open(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def post_json(self, url: str, body: Dict[str, Any],
                        headers: Optional[Dict[str, str]] = None) -> Any:
        """POST ``body`` as JSON and return the decoded reply; raises on HTTP errors."""
        async with self.open() as client:
            response = await client.post(url, json=body, headers={**self.headers, **(headers or {})})
            response.raise_for_status()
            return response.json()

    async def get_json(self, url: str) -> Any:
        async with self.open() as client:
            response = await client.get(url, headers=self.headers)
            response.raise_for_status()
            return response.json()
