"""Base async HTTP client with rate limiting and connection pooling.

All API clients inherit from this base to ensure consistent behavior:
- Async/await for non-blocking I/O
- Connection pooling for performance
- Client-side rate limiting to respect API quotas
- Waiting out upstream rate-limit windows instead of failing
- Automatic retries with exponential backoff
- Distinct error kinds for auth, not-found and transport failures

Usage:
    class MyAPIClient(BaseAsyncClient):
        def __init__(self, token: str, rate_limit: int = 10):
            super().__init__(
                base_url="https://api.example.com",
                headers={"Authorization": f"Bearer {token}"},
                rate_limit=rate_limit
            )

        async def get_data(self, key: str) -> dict:
            return await self._request("GET", f"/data/{key}")
"""

import asyncio
import logging
import time
from email.utils import parsedate_to_datetime
from typing import Any

import httpx


logger = logging.getLogger(__name__)

# Retry configuration
_RETRYABLE_STATUS_CODES = {429, 502, 503, 504}
_MAX_RETRIES = 3
_BASE_BACKOFF = 1.0  # seconds
_MAX_RATE_LIMIT_WAITS = 5
_MIN_RATE_LIMIT_WAIT = 1.0  # seconds, doubled for each consecutive wait


class Clock:
    """Wall clock and sleep used for backoff and rate-limit waits.

    Tests substitute a fake that records sleeps instead of blocking.
    """

    def now(self) -> float:
        """Current time as epoch seconds."""
        return time.time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class RateLimiter:
    """Token bucket rate limiter for async operations.

    Ensures we don't exceed API rate limits using a token bucket algorithm.
    Thread-safe for async operations.

    Args:
        rate: Maximum requests per second
    """

    def __init__(self, rate: int) -> None:
        self.rate = rate
        self.tokens = rate
        self.updated_at: float = 0.0
        self._initialized: bool = False
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Acquire a token, waiting if necessary."""
        async with self._lock:
            loop = asyncio.get_running_loop()

            if not self._initialized:
                self.updated_at = loop.time()
                self._initialized = True

            while self.tokens < 1:
                now = loop.time()
                elapsed = now - self.updated_at
                self.tokens = min(self.rate, self.tokens + elapsed * self.rate)
                self.updated_at = now

                if self.tokens < 1:
                    wait_time = (1 - self.tokens) / self.rate
                    await asyncio.sleep(wait_time)

            self.tokens -= 1
            self.updated_at = loop.time()


class APIProviderError(Exception):
    """Base exception for API provider errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class AuthenticationError(APIProviderError):
    """Credentials missing, invalid, or lacking permission (401/403)."""


class NotFoundError(APIProviderError):
    """The requested resource does not exist (404)."""


class TransportError(APIProviderError):
    """Network failure or timeout that persisted through all retries."""


class BaseAsyncClient:
    """Base async HTTP client with rate limiting and connection pooling.

    Provides a foundation for all API clients with consistent error handling,
    rate limiting, and logging.

    Args:
        base_url: Base URL for all API requests
        headers: Default headers for all requests
        rate_limit: Maximum requests per second (default: 10)
        timeout: Request timeout in seconds (default: 30)
        clock: Time source for backoff and rate-limit waits
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        rate_limit: int = 10,
        timeout: float = 30.0,
        clock: Clock | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.timeout = timeout
        self.clock = clock or Clock()
        self._rate_limiter = RateLimiter(rate=rate_limit)
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "BaseAsyncClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _server_now(self, response: httpx.Response) -> float:
        """Epoch seconds on the server's clock (``Date`` header), else local."""
        date = response.headers.get("date")
        if date:
            try:
                return parsedate_to_datetime(date).timestamp()
            except (TypeError, ValueError):
                logger.debug("Ignoring malformed Date header: %r", date)
        return self.clock.now()

    def _rate_limit_wait(self, response: httpx.Response, waits: int = 0) -> float | None:
        """Seconds to wait if the response is an upstream rate-limit signal.

        Honors ``Retry-After`` first, then ``X-RateLimit-Remaining: 0`` with
        an ``X-RateLimit-Reset`` epoch timestamp, measured against the
        server's ``Date`` so local clock skew does not shorten the wait. The
        minimum wait doubles with each consecutive wait. Returns None when the
        response carries no rate-limit signal.
        """
        if response.status_code not in (403, 429):
            return None

        retry_after = response.headers.get("retry-after")
        if retry_after is not None:
            try:
                return max(float(retry_after), 0.0)
            except ValueError:
                logger.warning("Ignoring malformed Retry-After header: %r", retry_after)

        if response.headers.get("x-ratelimit-remaining") == "0":
            floor = _MIN_RATE_LIMIT_WAIT * (2 ** waits)
            reset = response.headers.get("x-ratelimit-reset")
            try:
                reset_at = float(reset)
            except (TypeError, ValueError):
                return floor
            return max(reset_at - self._server_now(response), floor)

        return None

    def _error_for(self, response: httpx.Response, message: str) -> APIProviderError:
        error_body = response.text[:500]
        if response.status_code in (401, 403):
            error_cls = AuthenticationError
        elif response.status_code == 404:
            error_cls = NotFoundError
        else:
            error_cls = APIProviderError
        return error_cls(
            message=message,
            status_code=response.status_code,
            response_body=error_body,
        )

    async def _send(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Make an HTTP request with rate limiting, retries, and error handling.

        Waits out upstream rate-limit windows (these waits do not consume the
        retry budget). Retries on transient failures (429, 502, 503, 504,
        timeouts, network errors) with exponential backoff. Non-retryable
        errors raise immediately.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path (relative to base_url) or absolute URL
            params: Query parameters
            json_data: JSON body for POST/PUT requests

        Returns:
            The successful httpx.Response

        Raises:
            AuthenticationError: On 401, or 403 without a rate-limit signal
            NotFoundError: On 404
            TransportError: If timeouts/network errors persist through retries
            APIProviderError: On any other failure
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with context manager.")

        # Ensure endpoint starts with /
        if not endpoint.startswith(("/", "http://", "https://")):
            endpoint = f"/{endpoint}"

        last_error: APIProviderError | None = None
        attempt = 0
        rate_limit_waits = 0

        while attempt <= _MAX_RETRIES:
            # Rate limit before each attempt
            await self._rate_limiter.acquire()

            logger.debug(
                "%s %s params=%s (attempt %d/%d)",
                method, endpoint, params, attempt + 1, _MAX_RETRIES + 1,
            )

            try:
                response = await self._client.request(
                    method=method,
                    url=endpoint,
                    params=params,
                    json=json_data,
                )
            except httpx.TimeoutException as e:
                if attempt < _MAX_RETRIES:
                    backoff = _BASE_BACKOFF * (2 ** attempt)
                    logger.warning(
                        "Timeout for %s, retrying in %.1fs (attempt %d/%d)",
                        endpoint, backoff, attempt + 1, _MAX_RETRIES + 1,
                    )
                    last_error = TransportError(f"Request timeout: {e}")
                    await self.clock.sleep(backoff)
                    attempt += 1
                    continue
                logger.error("Request timeout for %s: %s", endpoint, e)
                raise TransportError(f"Request timeout: {e}") from e

            except httpx.TransportError as e:
                if attempt < _MAX_RETRIES:
                    backoff = _BASE_BACKOFF * (2 ** attempt)
                    logger.warning(
                        "Network error for %s, retrying in %.1fs (attempt %d/%d)",
                        endpoint, backoff, attempt + 1, _MAX_RETRIES + 1,
                    )
                    last_error = TransportError(f"Network error: {e}")
                    await self.clock.sleep(backoff)
                    attempt += 1
                    continue
                logger.error("Network error for %s: %s", endpoint, e)
                raise TransportError(f"Network error: {e}") from e

            logger.debug("Response: %d for %s", response.status_code, endpoint)

            if response.status_code < 400:
                return response

            # Upstream rate-limit window: block until reset, then re-request
            wait = self._rate_limit_wait(response, rate_limit_waits)
            if wait is not None:
                if rate_limit_waits >= _MAX_RATE_LIMIT_WAITS:
                    logger.error("Rate limit on %s did not clear after %d waits", endpoint, rate_limit_waits)
                    raise APIProviderError(
                        message=f"Rate limit did not clear after {rate_limit_waits} waits",
                        status_code=response.status_code,
                        response_body=response.text[:500],
                    )
                rate_limit_waits += 1
                logger.warning(
                    "Rate limited on %s, waiting %.1fs for reset (%d/%d)",
                    endpoint, wait, rate_limit_waits, _MAX_RATE_LIMIT_WAITS,
                )
                await self.clock.sleep(wait)
                continue

            # Retry on transient status codes
            if response.status_code in _RETRYABLE_STATUS_CODES and attempt < _MAX_RETRIES:
                backoff = _BASE_BACKOFF * (2 ** attempt)
                logger.warning(
                    "Retryable %d for %s, retrying in %.1fs (attempt %d/%d)",
                    response.status_code, endpoint, backoff,
                    attempt + 1, _MAX_RETRIES + 1,
                )
                last_error = self._error_for(
                    response, f"API request failed: {response.status_code}"
                )
                await self.clock.sleep(backoff)
                attempt += 1
                continue

            error = self._error_for(response, f"API request failed: {response.status_code}")
            if not isinstance(error, NotFoundError):
                logger.error(
                    "API error: %d %s - %s",
                    response.status_code, endpoint, error.response_body,
                )
            raise error

        # Exhausted retries
        raise last_error or APIProviderError("Request failed after retries")

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> Any:
        """Make a request and return the parsed JSON body.

        Raises:
            APIProviderError: If the request fails or the body is not JSON
        """
        response = await self._send(method, endpoint, params=params, json_data=json_data)
        try:
            return response.json()
        except ValueError as e:
            logger.error("Failed to parse JSON response: %s", e)
            raise APIProviderError(
                message=f"Invalid JSON response: {e}",
                status_code=response.status_code,
                response_body=response.text[:500],
            ) from e

    async def get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Convenience method for GET requests."""
        return await self._request("GET", endpoint, params=params)
