from __future__ import annotations
import asyncio
import time
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from ..models.config import ClientSettings
from ..models.results import HostSelection
from ..exceptions import (
    NetworkError,
    TimeoutError as RequestTimeoutError,
    ConnectionError as RequestConnectionError,
    retry_after_from_response,
)
from ..observability.events import Event, EventEmitter
from ..observability.logging import get_baas_logger, log_rate_limit, log_retry
from ..session.store import SessionStore


class BaseClient(ABC):
    """
    Abstract base class for the async API client.

    Provides shared functionality:
      - Async HTTP client management (``async with``)
      - Authentication headers (API key, optional bearer token)
      - Retry logic: fixed delay for transport failures and 5xx,
        unbounded Retry-After waits for 429

    Subclasses implement ``connect()`` to choose the active host.
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        *,
        events: Optional[EventEmitter] = None,
        session: Optional[SessionStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or ClientSettings()
        self._client: Optional[httpx.AsyncClient] = None
        self._transport = transport
        self._active_host: Optional[str] = None
        self._logger = self.settings.logger or get_baas_logger(__name__)
        self.events = events or EventEmitter(logger=self._logger)
        self.session = session or SessionStore()

    async def __aenter__(self) -> "BaseClient":
        self._client = httpx.AsyncClient(
            headers={
                "User-Agent": self.settings.user_agent,
                "Accept": self.settings.accept,
                "Accept-Encoding": self.settings.accept_encoding,
            },
            timeout=httpx.Timeout(self.settings.timeout_seconds),
            http2=self.settings.http2,
            follow_redirects=True,
            transport=self._transport,
        )

        self._logger.debug(
            "client.initialized",
            http2=self.settings.http2,
            host_count=len(self.settings.hosts),
            timeout_seconds=self.settings.timeout_seconds,
            max_retry_attempts=self.settings.retry.max_attempts,
        )
        return self

    async def __aexit__(self, *exc) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            self._logger.debug("client.closed")

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Use async context manager: `async with RestClient(settings)`")
        return self._client

    @abstractmethod
    async def connect(self) -> HostSelection:
        """Select the active host. Must be implemented by subclasses."""
        raise NotImplementedError

    @property
    def active_host(self) -> Optional[str]:
        return self._active_host

    @property
    def is_connected(self) -> bool:
        return self._active_host is not None

    def _build_headers(self, authenticated: bool = False, content_type: Optional[str] = None) -> dict[str, str]:
        """API key on every request; bearer token only when the caller opts in."""
        headers = {"X-API-Key": self.settings.api_key}
        if content_type:
            headers["Content-Type"] = content_type
        if authenticated:
            token = self.session.token
            if token:
                headers["Authorization"] = f"Bearer {token}"
            else:
                self._logger.warning("request.missing_session_token")
        return headers

    async def _do_request_with_retry(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        content: Optional[bytes] = None,
        max_attempts: Optional[int] = None,
        retry_rate_limits: bool = True,
    ) -> tuple[httpx.Response, int]:
        """
        Execute an HTTP request with retry and rate-limit handling.

        Attempts are strictly sequential. Transport failures and 5xx responses
        consume the attempt budget and wait ``retry.delay_seconds`` between
        attempts. A 429 never consumes the budget: the client waits for the
        server's Retry-After (or the retry delay) and tries again, for as long
        as the server keeps answering 429.

        Args:
            method: HTTP method (GET, POST)
            url: Absolute target URL
            headers: Request headers
            content: Encoded request body
            max_attempts: Attempt budget; defaults to ``retry.max_attempts + 1``
            retry_rate_limits: When False a 429 is returned to the caller as is

        Returns:
            Tuple of (final response, attempts used). The final response may be
            a 4xx, or a 5xx once the budget is spent; classifying it is up to
            the caller.

        Raises:
            ConnectionError: When the host cannot be reached on the last attempt
            TimeoutError: When the last attempt times out
            NetworkError: For any other transport failure on the last attempt,
                or at once for a redirect loop or an undecodable body
        """
        client = self._require_client()
        rp = self.settings.retry
        total_attempts = rp.max_attempts + 1 if max_attempts is None else max_attempts
        attempt = 0
        request_start = time.time()

        self._logger.info("request.started", method=method, url=url)

        while True:
            try:
                resp = await client.request(method, url, headers=headers, content=content)
            except httpx.TimeoutException as exc:
                attempt += 1
                if attempt >= total_attempts:
                    self._log_failure(method, url, "timeout", attempt, request_start, exc)
                    raise RequestTimeoutError(
                        message=f"Request timed out after {attempt} attempts",
                        url=url,
                        attempts=attempt,
                        timeout_seconds=self.settings.timeout_seconds,
                        cause=exc,
                    ) from exc
                await self._retry_pause(attempt, total_attempts, "timeout", method, url)
                continue
            except httpx.ConnectError as exc:
                attempt += 1
                if attempt >= total_attempts:
                    self._log_failure(method, url, "connection_error", attempt, request_start, exc)
                    raise RequestConnectionError(
                        message=f"Connection failed after {attempt} attempts",
                        url=url,
                        attempts=attempt,
                        host=httpx.URL(url).host,
                        cause=exc,
                    ) from exc
                await self._retry_pause(attempt, total_attempts, "connection_error", method, url)
                continue
            except httpx.TransportError as exc:
                attempt += 1
                if attempt >= total_attempts:
                    self._log_failure(method, url, "network_error", attempt, request_start, exc)
                    raise NetworkError(
                        message=f"Request failed after {attempt} attempts: {exc}",
                        url=url,
                        attempts=attempt,
                        cause=exc,
                    ) from exc
                await self._retry_pause(attempt, total_attempts, "network_error", method, url)
                continue
            except httpx.RequestError as exc:
                # redirect loops and undecodable bodies are not worth retrying
                attempt += 1
                self._log_failure(method, url, "request_error", attempt, request_start, exc)
                raise NetworkError(
                    message=f"Request failed: {exc}",
                    url=url,
                    attempts=attempt,
                    cause=exc,
                ) from exc

            status = resp.status_code

            # 429 does not count against the budget
            if status == 429 and retry_rate_limits:
                wait_seconds = retry_after_from_response(resp, rp.delay_seconds)
                await resp.aclose()
                log_rate_limit(self._logger, wait_ms=wait_seconds * 1000, method=method, url=url)
                self.events.emit(Event.RATE_LIMITED, wait_seconds=wait_seconds, url=url)
                await self._sleep(wait_seconds)
                continue

            attempt += 1

            if status >= 500 and attempt < total_attempts:
                await resp.aclose()
                await self._retry_pause(attempt, total_attempts, f"server_error_{status}", method, url, status_code=status)
                continue

            duration_ms = (time.time() - request_start) * 1000
            self._logger.info(
                "request.completed",
                method=method,
                url=url,
                status_code=status,
                attempts=attempt,
                duration_ms=round(duration_ms, 2),
            )
            return resp, attempt

    async def _retry_pause(
        self,
        attempt: int,
        total_attempts: int,
        reason: str,
        method: str,
        url: str,
        **context,
    ) -> None:
        """Fixed (non-exponential) delay between attempts."""
        delay = self.settings.retry.delay_seconds
        log_retry(
            self._logger,
            attempt=attempt,
            max_attempts=total_attempts,
            delay_ms=delay * 1000,
            reason=reason,
            method=method,
            url=url,
            **context,
        )
        await self._sleep(delay)

    async def _sleep(self, seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)

    def _log_failure(
        self,
        method: str,
        url: str,
        error_type: str,
        attempts: int,
        request_start: float,
        exc: BaseException,
    ) -> None:
        duration_ms = (time.time() - request_start) * 1000
        self._logger.error(
            "request.failed",
            method=method,
            url=url,
            error_type=error_type,
            attempts=attempts,
            duration_ms=round(duration_ms, 2),
            exc_info=exc,
        )
