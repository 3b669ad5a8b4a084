"""
backend/matchdesk/providers/http_client.py

Purpose:
    httpx.AsyncClient wrapper used by the feed provider: fixed identifying
    headers, bounded retry with exponential backoff on transient failures,
    and a circuit breaker the provider consults before each request.

Dependencies:
    - httpx
"""

import asyncio
import logging
import time
from typing import Optional
from urllib.parse import urlparse

import httpx

logger = logging.getLogger("matchdesk.http_client")

_RETRYABLE_STATUSES = {429, 500, 502, 503, 504}
_MAX_DELAY_SECONDS = 30.0


class CircuitBreaker:
    """Opens after consecutive failures, half-opens after a cool-down."""

    def __init__(self, failure_threshold: int = 3, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.last_failure_time: Optional[float] = None
        self.is_open = False

    def record_success(self) -> None:
        self.failure_count = 0
        self.is_open = False

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.monotonic()
        if self.failure_count >= self.failure_threshold and not self.is_open:
            self.is_open = True
            logger.warning("Circuit breaker OPEN after %d failures", self.failure_count)

    def can_attempt(self) -> bool:
        if not self.is_open:
            return True
        if self.last_failure_time and (
            time.monotonic() - self.last_failure_time > self.recovery_timeout
        ):
            logger.info("Circuit breaker half-open, allowing retry")
            return True
        return False


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def safe_url(url: str) -> str:
    """Strip query params for logging."""
    parsed = urlparse(str(url))
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path}"


class ResilientClient:
    def __init__(
        self,
        name: str,
        headers: Optional[dict[str, str]] = None,
        timeout: float = 15.0,
        max_retries: int = 1,
        base_delay: float = 1.0,
    ):
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers or {})
        self._name = name
        self._max_retries = max_retries
        self._base_delay = base_delay
        self.circuit = CircuitBreaker()

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """GET with retry on 429/5xx and transport errors.

        Returns the last response once retries are exhausted so the caller can
        inspect the status; re-raises the last transport error if no response
        was ever received.
        """
        last_exc: Optional[Exception] = None
        last_resp: Optional[httpx.Response] = None

        for attempt in range(self._max_retries + 1):
            try:
                resp = await self._client.get(url, **kwargs)
            except (httpx.TimeoutException, httpx.ConnectError, httpx.RemoteProtocolError) as exc:
                last_exc = exc
                logger.warning(
                    "[%s] Network error on GET %s (attempt %d/%d): %s",
                    self._name, safe_url(url), attempt + 1, self._max_retries + 1, exc,
                )
                delay = self._base_delay * (2 ** attempt)
            else:
                if resp.status_code not in _RETRYABLE_STATUSES:
                    return resp
                last_resp = resp
                logger.warning(
                    "[%s] HTTP %d on GET %s (attempt %d/%d)",
                    self._name, resp.status_code, safe_url(url), attempt + 1, self._max_retries + 1,
                )
                delay = _retry_after(resp)
                if delay is None:
                    delay = self._base_delay * (2 ** attempt)

            if attempt < self._max_retries:
                await asyncio.sleep(min(delay, _MAX_DELAY_SECONDS))

        if last_resp is not None:
            return last_resp
        raise last_exc  # type: ignore[misc]

    async def aclose(self) -> None:
        await self._client.aclose()
