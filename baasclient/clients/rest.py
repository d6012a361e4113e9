from __future__ import annotations
import time
from typing import Any, Callable, Mapping, Optional

import httpx

from .base import BaseClient
from .hosts import HostSelector
from ..models.config import ClientSettings
from ..models.results import HostSelection, NetworkResponse
from ..exceptions import (
    BaasError,
    NetworkError,
    NotConnectedError,
    ServerError,
    classify_http_error,
    extract_error_message,
)
from ..observability.events import Event, EventEmitter
from ..session.store import SessionStore
from ..utils import join_url, parse_json_body, to_json_exclude_empty

JSON_CONTENT_TYPE = "application/json"
BINARY_CONTENT_TYPE = "application/octet-stream"


class RestClient(BaseClient):
    """
    Async REST client for the backend.

    Responsibilities:
      - Active host selection (health check or latency probing)
      - JSON and binary GET/POST against the active host
      - Retries (fixed delay) for transport failures and 5xx
      - Unbounded Retry-After waits for 429
      - Uniform NetworkResponse results; transport exceptions never escape

    Example:
        async with RestClient(settings) as client:
            await client.connect()
            response = await client.get("/api/v1/app/news")
            if response.ok:
                print(response.data)
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        *,
        events: Optional[EventEmitter] = None,
        session: Optional[SessionStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        super().__init__(settings, events=events, session=session, transport=transport)
        self._selector = HostSelector(self.settings, self.events, logger=self._logger, clock=clock)

    @property
    def ping_results(self) -> dict[str, Optional[float]]:
        return self._selector.ping_results

    async def connect(self) -> HostSelection:
        """
        Select the active host for all subsequent requests.

        Raises:
            ConfigError: When the API key or the host list is missing
            HostUnavailableError: When no host is healthy
        """
        self._active_host = None
        # configuration problems surface even outside ``async with``
        self._selector.validate()
        selection = await self._selector.select(self._require_client())
        self._active_host = selection.host
        return selection

    async def disconnect(self) -> None:
        """Forget the active host; requests fail with NotConnectedError until reconnected."""
        host = self._active_host
        self._active_host = None
        self._selector.reset()
        if host is not None:
            self._logger.info("client.disconnected", host=host)
            self.events.emit(Event.DISCONNECTED, host=host)

    async def get(self, path: str, *, authenticated: bool = False) -> NetworkResponse:
        return await self.request("GET", path, authenticated=authenticated)

    async def post(
        self,
        path: str,
        body: Optional[Mapping[str, Any]] = None,
        *,
        authenticated: bool = False,
    ) -> NetworkResponse:
        return await self.request("POST", path, body=body if body is not None else {}, authenticated=authenticated)

    async def post_binary(self, path: str, data: bytes, *, authenticated: bool = False) -> NetworkResponse:
        """Upload ``data`` verbatim. Single attempt: no transport retry, 429 is terminal."""
        return await self.request(
            "POST", path, content=data, authenticated=authenticated, single_attempt=True,
        )

    async def get_binary(self, path: str, *, authenticated: bool = False) -> NetworkResponse:
        """
        Download raw bytes. Single attempt.

        A 204 is "not found, not an error": the response is ok with ``data=None``.
        """
        return await self.request(
            "GET", path, authenticated=authenticated, single_attempt=True, raw_response=True,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: Optional[Mapping[str, Any]] = None,
        content: Optional[bytes] = None,
        authenticated: bool = False,
        single_attempt: bool = False,
        raw_response: bool = False,
    ) -> NetworkResponse:
        """
        Execute one logical request against the active host.

        Args:
            method: HTTP method
            path: Path relative to the active host
            body: JSON body; keys with None or "" values are dropped
            content: Raw binary body (ignored when ``body`` is given)
            authenticated: Send the session bearer token
            single_attempt: Disable transport/5xx retries and 429 waits
            raw_response: Return the body as bytes instead of parsed JSON

        Returns:
            NetworkResponse, always; failures carry the classified exception
        """
        if self._active_host is None:
            exc = NotConnectedError(message="", url=path)
            self._logger.warning("request.not_connected", method=method, path=path)
            return NetworkResponse.failure(exc, attempts=0)

        url = join_url(self._active_host, path)
        payload: Optional[bytes] = None
        content_type: Optional[str] = None
        if body is not None:
            payload = to_json_exclude_empty(body).encode("utf-8")
            content_type = JSON_CONTENT_TYPE
        elif content is not None:
            payload = content
            content_type = BINARY_CONTENT_TYPE

        headers = self._build_headers(authenticated, content_type)

        try:
            resp, attempts = await self._do_request_with_retry(
                method,
                url,
                headers=headers,
                content=payload,
                max_attempts=1 if single_attempt else None,
                retry_rate_limits=not single_attempt,
            )
            return self._to_network_response(resp, url, attempts, raw_response)
        except NetworkError as exc:
            return NetworkResponse.failure(exc, attempts=exc.attempts)
        except BaasError as exc:
            return NetworkResponse.failure(exc)
        except httpx.DecodingError as exc:
            self._logger.error("request.decode_failed", url=url, exc_info=exc)
            return NetworkResponse.failure(
                NetworkError(message=f"Response could not be decoded: {exc}", url=url, attempts=1, cause=exc),
            )

    def _to_network_response(
        self,
        resp: httpx.Response,
        url: str,
        attempts: int,
        raw_response: bool,
    ) -> NetworkResponse:
        status = resp.status_code

        if status >= 400:
            message = extract_error_message(resp.text, status)
            exc = classify_http_error(
                status_code=status,
                url=url,
                message=message,
                response=resp,
                default_retry_after=self.settings.retry.delay_seconds,
            )
            if isinstance(exc, ServerError):
                exc.attempts = attempts
            self._logger.error(
                "request.http_error",
                url=url,
                status_code=status,
                error_kind=exc.kind.value,
                error_message=message,
                attempts=attempts,
            )
            return NetworkResponse.failure(exc, status_code=status, attempts=attempts)

        if raw_response:
            if status == 204:
                self._logger.debug("request.not_found", url=url, status_code=status)
                return NetworkResponse.success(None, status_code=status, attempts=attempts)
            return NetworkResponse.success(resp.content, status_code=status, attempts=attempts)

        return NetworkResponse.success(
            parse_json_body(resp.text, self._logger),
            status_code=status,
            attempts=attempts,
        )
