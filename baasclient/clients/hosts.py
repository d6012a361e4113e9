"""
Active host selection.

With one configured host the selector only checks that it is healthy. With
several it probes every host a few times and keeps the one with the lowest
best-case round trip.
"""

from __future__ import annotations

import time
from typing import Callable, Dict, Optional

import httpx

from ..exceptions import BaasError, HostUnavailableError
from ..models.config import ClientSettings, HEALTH_PATH
from ..models.results import HostSelection
from ..observability.events import Event, EventEmitter
from ..observability.logging import BaasLoggerAdapter, get_baas_logger, log_exception
from ..utils import join_url

PROBES_PER_HOST = 3


class HostSelector:
    """
    Choose the active host via health check or latency probing.

    Every ``select()`` starts from scratch: previous ping results are cleared
    before any probe is made.
    """

    def __init__(
        self,
        settings: ClientSettings,
        events: EventEmitter,
        *,
        logger: Optional[BaasLoggerAdapter] = None,
        clock: Callable[[], float] = time.perf_counter,
        probes: int = PROBES_PER_HOST,
    ):
        self.settings = settings
        self._events = events
        self._logger = logger or get_baas_logger(__name__)
        self._clock = clock
        self._probes = probes
        self._ping_results: Dict[str, Optional[float]] = {}

    @property
    def ping_results(self) -> Dict[str, Optional[float]]:
        """Host -> best latency in ms, or None when every probe failed."""
        return dict(self._ping_results)

    def reset(self) -> None:
        self._ping_results = {}

    async def check_health(self, client: httpx.AsyncClient, host: str) -> bool:
        """True iff the health endpoint answers 200 with ``{"status": "UP"}``."""
        url = join_url(host, HEALTH_PATH)
        try:
            resp = await client.get(
                url,
                headers={"X-API-Key": self.settings.api_key},
                timeout=self.settings.timeout_seconds,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._logger.debug("host.health_check_failed", url=url, error_message=str(exc))
            return False

        if resp.status_code != 200:
            self._logger.debug("host.health_check_failed", url=url, status_code=resp.status_code)
            return False
        try:
            body = resp.json()
        except ValueError:
            return False
        return isinstance(body, dict) and body.get("status") == "UP"

    async def measure_latency(self, client: httpx.AsyncClient, host: str) -> Optional[float]:
        """Best round trip in milliseconds over the probes, None if none succeeded."""
        best: Optional[float] = None
        for _ in range(self._probes):
            start = self._clock()
            healthy = await self.check_health(client, host)
            elapsed_ms = (self._clock() - start) * 1000
            if healthy and (best is None or elapsed_ms < best):
                best = elapsed_ms
        return best

    async def select(self, client: httpx.AsyncClient) -> HostSelection:
        """
        Pick exactly one active host.

        Raises:
            ConfigError: When no hosts are configured or the API key is unset
            HostUnavailableError: When no host passed its health check
        """
        self.reset()
        self.validate()
        try:
            hosts = list(self.settings.hosts)
            if len(hosts) == 1:
                selection = await self._select_single(client, hosts[0])
            else:
                selection = await self._select_fastest(client, hosts)
        except BaasError as exc:
            self._fail(exc)
            raise

        self._logger.info(
            "host.selected",
            host=selection.host,
            latency_ms=round(selection.latency_ms, 2),
            candidates=len(self.settings.hosts),
        )
        self._events.emit(Event.HOST_SELECTED, host=selection.host, latency_ms=selection.latency_ms)
        return selection

    def validate(self) -> None:
        """Raise ConfigError (after CONNECTION_FAILED) when the settings cannot connect."""
        try:
            self.settings.validate()
        except BaasError as exc:
            self._fail(exc)
            raise

    def _fail(self, exc: BaasError) -> None:
        log_exception(self._logger, exc, "host.selection_failed")
        self._events.emit(Event.CONNECTION_FAILED, error=exc)

    async def _select_single(self, client: httpx.AsyncClient, host: str) -> HostSelection:
        if not await self.check_health(client, host):
            raise HostUnavailableError(message=f"Health check failed for {host}", hosts=[host])
        # no probe on this path; latency is reported as 0
        return HostSelection(host=host, latency_ms=0.0)

    async def _select_fastest(self, client: httpx.AsyncClient, hosts: list[str]) -> HostSelection:
        for host in hosts:
            self._ping_results[host] = await self.measure_latency(client, host)
            self._logger.debug("host.probed", host=host, latency_ms=self._ping_results[host])

        best_host: Optional[str] = None
        best_latency: Optional[float] = None
        for host in hosts:
            latency = self._ping_results[host]
            if latency is None:
                continue
            # strict comparison: ties keep the earlier host
            if best_latency is None or latency < best_latency:
                best_host, best_latency = host, latency

        if best_host is None or best_latency is None:
            raise HostUnavailableError(message="No host answered its health check", hosts=hosts)
        return HostSelection(host=best_host, latency_ms=best_latency, ping_results=dict(self._ping_results))
