"""Download attachment and embed payloads."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from chronicler.logging import get_logger

logger = get_logger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; chronicler/0.1)"


@dataclass(frozen=True)
class FetchedMedia:
    content_type: str | None
    data: bytes


class MediaFetcher:
    """Fetches binary payloads over HTTP. Errors propagate as httpx.HTTPError."""

    def __init__(self, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout
        self._transport = transport

    async def fetch(self, url: str) -> FetchedMedia:
        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            r = await client.get(url, headers={"User-Agent": USER_AGENT})
            r.raise_for_status()
        content_type = r.headers.get("content-type")
        logger.debug("media_fetched", url=url.split("?", 1)[0], content_type=content_type, size=len(r.content))
        return FetchedMedia(content_type=content_type, data=r.content)
