"""Fetch IMDb pages and hand them to the parser as parsed documents.

Status policy:
    200          -> parsed body
    4xx / 5xx    -> FetchError
    anything else (204, unfollowed 3xx, ...) -> empty document, with a warning
Network failures also raise FetchError. Nothing here retries beyond the
httpx transport retries configured in config.HTTP_RETRIES.
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

import httpx

import config
from dom import Node, empty_document, parse_html
from utils import RateLimiter, get_http_client

log = logging.getLogger(__name__)


class FetchError(Exception):
    """Transport failure or HTTP error status from the remote site."""

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


def _log_request(request: httpx.Request) -> None:
    log.debug("HTTP > %s %s headers=%s", request.method, request.url, dict(request.headers))


def _log_response(response: httpx.Response) -> None:
    request = response.request
    log.debug(
        "HTTP < %s %s %s headers=%s",
        response.status_code, request.method, request.url, dict(response.headers),
    )


class Fetcher:
    """Document fetcher backed by an httpx client.

    Args:
        client: Pre-built httpx client (tests pass one with a MockTransport).
            When omitted a client is created on first use and closed by close().
        headers: Extra headers overriding the defaults (User-Agent, Accept-Language).
        log_http: Log every request/response at DEBUG. Defaults to IMDB_LOG_HTTP.
        min_delay: Minimum seconds between requests to the same host.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        headers: dict[str, str] | None = None,
        log_http: bool | None = None,
        min_delay: float = 0.0,
    ):
        self._client = client
        self._owns_client = client is None
        self.headers = dict(headers or {})
        self.log_http = config.log_http_enabled() if log_http is None else log_http
        self._rate_limiter = RateLimiter(min_delay=min_delay)

    # ------------------------------------------------------------------
    # Client lifecycle
    # ------------------------------------------------------------------

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            hooks = {"request": [_log_request], "response": [_log_response]} if self.log_http else None
            self._client = get_http_client(
                retries=config.HTTP_RETRIES,
                timeout=config.HTTP_TIMEOUT,
                event_hooks=hooks,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> Fetcher:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    @staticmethod
    def url_for(locator: str) -> str:
        """Absolute URL for a site path like '/title/tt0111161/'."""
        if locator.startswith(("http://", "https://")):
            return locator
        return f"{config.BASE_URL}/{locator.lstrip('/')}"

    def request_headers(self, locale: str | None = None) -> dict[str, str]:
        headers = {
            "User-Agent": config.get_user_agent(),
            "Accept-Language": config.accept_language(locale),
        }
        headers.update(self.headers)
        return headers

    def _get(self, url: str, locale: str | None) -> httpx.Response | None:
        """GET url. Returns None for non-error, non-200 statuses."""
        self._rate_limiter.wait(urlparse(url).netloc)
        try:
            resp = self.client.get(url, headers=self.request_headers(locale))
        except (httpx.HTTPError, OSError) as e:
            raise FetchError(f"Request to {url} failed: {e}", url=url) from e

        if resp.status_code >= 400:
            raise FetchError(f"HTTP {resp.status_code} for {url}", url=url, status_code=resp.status_code)
        if resp.status_code != 200:
            log.warning("Unexpected HTTP %s for %s, treating as empty", resp.status_code, url)
            return None
        return resp

    def fetch(self, locator: str, locale: str | None = None) -> Node:
        """Fetch a page and return it parsed."""
        url = self.url_for(locator)
        log.info("Fetching %s", url)
        resp = self._get(url, locale)
        if resp is None:
            return empty_document()
        return parse_html(resp.text)

    def raw(self, url: str, locale: str | None = None) -> str:
        """Fetch a URL and return the body text ('' for unexpected statuses)."""
        url = self.url_for(url)
        log.info("Fetching %s", url)
        resp = self._get(url, locale)
        return resp.text if resp is not None else ""
