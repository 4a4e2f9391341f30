"""
Network plumbing for the scraper: an aiohttp-backed transport, round-robin
proxy rotation, and sinks that receive comment batches as they arrive.
"""

import itertools
import json
import logging
from dataclasses import dataclass
from pathlib import Path

import aiohttp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    body: str


class AiohttpTransport:
    """fetch(url, ...) -> TransportResponse over a shared aiohttp session.

    Usable as an async context manager; a session passed in by the caller
    is never closed here.
    """

    def __init__(self, session: aiohttp.ClientSession | None = None, headers: dict | None = None):
        self._session = session
        self._owns_session = session is None
        self._headers = headers or {}

    async def __aenter__(self):
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(limit=10, keepalive_timeout=30)
            self._session = aiohttp.ClientSession(headers=self._headers, connector=connector)
            self._owns_session = True
        return self._session

    async def close(self):
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def fetch(
        self,
        url: str,
        method: str = "GET",
        headers: dict | None = None,
        json_body: dict | None = None,
        proxy: str | None = None,
        timeout: float | None = None,
    ) -> TransportResponse:
        session = self._ensure_session()
        async with session.request(
            method,
            url,
            headers=headers,
            json=json_body,
            proxy=proxy,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as resp:
            body = await resp.text()
            return TransportResponse(status_code=resp.status, body=body)


class ProxyRotation:
    """Round-robin egress handles; with no proxies every call goes direct."""

    def __init__(self, proxy_urls: list[str] | None = None):
        self.proxy_urls = [p.strip() for p in (proxy_urls or []) if p and p.strip()]
        self._cycle = itertools.cycle(self.proxy_urls) if self.proxy_urls else None

    def next_egress(self) -> str | None:
        if self._cycle is None:
            return None
        return next(self._cycle)


class ListSink:
    """Collects pushed comment batches in memory."""

    def __init__(self):
        self.batches = []

    def push(self, comments):
        self.batches.append(list(comments))

    @property
    def comments(self) -> list:
        return [c for batch in self.batches for c in batch]


class JsonLinesSink:
    """Appends each pushed comment as one JSON line (output schema)."""

    def __init__(self, path):
        self.path = Path(path)

    def push(self, comments):
        if not comments:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            for c in comments:
                f.write(json.dumps(c.to_dict(), ensure_ascii=False) + "\n")
        logger.debug("Appended %d comments to %s", len(comments), self.path)
