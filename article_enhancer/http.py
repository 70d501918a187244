from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional

import aiohttp


logger = logging.getLogger(__name__)


class HttpError(Exception):
    def __init__(self, status: int, url: str, message: str = "") -> None:
        self.status = status
        self.url = url
        self.message = message
        super().__init__(f"HTTP {status} from {url}" + (f": {message}" if message else ""))


class IntervalLimiter:
    """Enforces a minimum interval between successive acquisitions.

    Fixed, not adaptive: failures do not lengthen the interval. An interval of 0
    makes ``acquire`` a no-op.
    """

    def __init__(self, min_interval_seconds: float) -> None:
        self._interval = max(0.0, float(min_interval_seconds))
        self._lock = asyncio.Lock()
        self._last: Optional[float] = None

    @property
    def interval(self) -> float:
        return self._interval

    async def acquire(self) -> None:
        if self._interval <= 0:
            return
        async with self._lock:
            loop = asyncio.get_running_loop()
            now = loop.time()
            if self._last is not None:
                wait_for = (self._last + self._interval) - now
                if wait_for > 0:
                    await asyncio.sleep(wait_for)
            self._last = loop.time()


class HttpClient:
    def __init__(
        self,
        session: aiohttp.ClientSession,
        user_agent: str,
        timeout_seconds: float,
    ) -> None:
        self._session = session
        self._ua = user_agent
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    def _browser_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self._ua,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "DNT": "1",
            "Upgrade-Insecure-Requests": "1",
        }

    async def get_text(self, url: str, params: Mapping[str, Any] | None = None) -> Optional[str]:
        """GET a page as text. Returns None on any transport failure or HTTP status >= 400."""

        # malformed hosts surface as ValueError (UnicodeError from IDNA encoding)
        try:
            async with self._session.get(url, params=params, headers=self._browser_headers(), timeout=self._timeout) as r:
                if r.status >= 400:
                    logger.warning("GET %s returned HTTP %d", url, r.status)
                    return None
                return await r.text(errors="ignore")
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("GET %s failed: %s", url, str(e) or type(e).__name__)
            return None

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
    ) -> Any:
        """Send a JSON request and decode the JSON response.

        Raises HttpError on non-2xx responses; aiohttp transport errors propagate.
        """

        hdrs = {"Accept": "application/json", "Content-Type": "application/json"}
        if headers:
            hdrs.update(headers)

        async with self._session.request(
            method,
            url,
            params=params,
            json=json,
            headers=hdrs,
            timeout=timeout if timeout is not None else self._timeout,
        ) as r:
            if r.status >= 400:
                body = await r.text(errors="ignore")
                raise HttpError(r.status, url, body[:500])
            return await r.json(content_type=None)
