"""
Async client for the funding portal.

All pages live on one host, so requests share a single throttle. Timeouts
and network errors are retried with exponential backoff; HTTP error
statuses are raised to the caller.
"""

import asyncio
import time
from typing import TYPE_CHECKING, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

if TYPE_CHECKING:
    from finance_scraper.config.loader import PortalConfig

logger = structlog.get_logger(__name__)


USER_AGENT = "finance-scraper/0.1"

MAX_ATTEMPTS = 3


class Throttle:
    """Spaces requests at least ``1 / rate`` seconds apart."""

    def __init__(self, rate: float):
        self.interval = 1.0 / rate if rate > 0 else 0.0
        self._next_slot = 0.0
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            delay = self._next_slot - time.monotonic()
            if delay > 0:
                await asyncio.sleep(delay)
            self._next_slot = time.monotonic() + self.interval


class PortalClient:
    """
    Fetches listing and detail pages as HTML text.

    Usage:
        async with PortalClient(portal) as client:
            html = await client.fetch_listing(1031)
    """

    def __init__(
        self,
        portal: "PortalConfig",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize portal client.

        Args:
            portal: Portal location, page paths, rate and timeout
            transport: Optional httpx transport (used to stub the portal)
        """
        self.portal = portal
        self.transport = transport
        self.throttle = Throttle(portal.requests_per_second)
        self._session: Optional[httpx.AsyncClient] = None

    @property
    def is_open(self) -> bool:
        return self._session is not None

    async def __aenter__(self) -> "PortalClient":
        self._session = httpx.AsyncClient(
            base_url=self.portal.base_url,
            timeout=self.portal.timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._session is not None:
            await self._session.aclose()
            self._session = None

    async def fetch_listing(self, term_id: int) -> str:
        """HTML of the funded-events listing for a term."""
        return await self.fetch(self.portal.listing_page(term_id))

    async def fetch_application(self, fin_id: int) -> str:
        """HTML of an event's application form."""
        return await self.fetch(self.portal.application_page(fin_id))

    async def fetch_post_evaluation(self, fin_id: int) -> str:
        """HTML of an event's post-evaluation form."""
        return await self.fetch(self.portal.post_evaluation_page(fin_id))

    async def fetch(self, path: str) -> str:
        """
        Fetch a portal path relative to the base URL.

        Raises:
            RuntimeError: Client used outside ``async with``
            httpx.HTTPStatusError: Portal answered with an error status
            httpx.TransportError: Network failure after all retries
        """
        if self._session is None:
            raise RuntimeError("PortalClient is closed. Use 'async with' context.")

        retrying = AsyncRetrying(
            stop=stop_after_attempt(MAX_ATTEMPTS),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                await self.throttle.wait()
                logger.debug(
                    "fetching_page",
                    path=path,
                    attempt=attempt.retry_state.attempt_number,
                )
                response = await self._session.get(path)

        response.raise_for_status()
        return response.text
