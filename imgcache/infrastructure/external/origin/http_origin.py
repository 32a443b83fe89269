"""Origin fetcher for originals served over HTTP(S) under a base URL."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx

from imgcache.application.services.negotiation import get_max_age
from imgcache.core.constants import DEFAULT_MIN_MAX_AGE
from imgcache.domain.entities import OriginAsset
from imgcache.domain.exceptions import UpstreamException
from imgcache.shared.utils.mime import normalize_content_type

logger = logging.getLogger(__name__)

BAD_GATEWAY = 502
GATEWAY_TIMEOUT = 504


class HttpOriginFetcher:
    """Fetch originals with httpx from base_url joined with the url parameter.

    Requests never leave base_url. Pass a shared AsyncClient for
    connection reuse.
    """

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        min_max_age: int = DEFAULT_MIN_MAX_AGE,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.min_max_age = min_max_age
        self.timeout = timeout
        self._shared_http = http_client

    @asynccontextmanager
    async def _http_cm(self):
        """Yield shared HTTP client or a short-lived one."""
        if self._shared_http is not None:
            yield self._shared_http
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    def resolve(self, url: str) -> str:
        """Origin URL for a url parameter, always under base_url."""
        return self.base_url + url.lstrip("/")

    async def fetch(self, url: str) -> OriginAsset:
        """GET the original; error statuses and transport failures raise UpstreamException."""
        target = self.resolve(url)
        try:
            async with self._http_cm() as client:
                resp = await client.get(target, follow_redirects=True)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Origin responded %d for %s", e.response.status_code, target
            )
            raise UpstreamException(e.response.status_code, url, "error status") from e
        except httpx.TimeoutException as e:
            logger.warning("Origin timed out for %s", target)
            raise UpstreamException(GATEWAY_TIMEOUT, url, "timeout") from e
        except httpx.HTTPError as e:
            logger.warning("Origin request failed for %s: %s", target, e)
            raise UpstreamException(BAD_GATEWAY, url, str(e)) from e

        return OriginAsset(
            buffer=resp.content,
            content_type=normalize_content_type(resp.headers.get("content-type")),
            status_code=resp.status_code,
            max_age=get_max_age(resp.headers.get("cache-control"), self.min_max_age),
        )
