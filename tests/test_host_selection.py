"""
Tests for active host selection.

Latency is simulated with a fake clock that the mock transport advances by a
per-host round-trip time, so probes are deterministic.
"""

import httpx
import pytest

from baasclient import (
    ClientSettings,
    ConfigError,
    Event,
    HostUnavailableError,
    RestClient,
)

FAST = "https://fast.example.com"
SLOW = "https://slow.example.com"
DEAD = "https://dead.example.com"


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class LatencyBackend:
    """Answers health checks after advancing the clock by the host's latency."""

    def __init__(self, clock: FakeClock, latencies: dict, status: str = "UP"):
        self.clock = clock
        self.latencies = latencies
        self.status = status
        self.calls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        host = f"{request.url.scheme}://{request.url.host}"
        self.calls.append(host)
        latency = self.latencies.get(host)
        if latency is None:
            raise httpx.ConnectError("unreachable")
        if isinstance(latency, list):
            latency = latency[self.calls.count(host) - 1]
        self.clock.now += latency
        return httpx.Response(200, json={"status": self.status})


def make_client(hosts, backend, clock, api_key="test-key"):
    settings = ClientSettings(api_key=api_key, hosts=hosts, http2=False)
    return RestClient(settings, transport=httpx.MockTransport(backend), clock=clock)


class TestSingleHost:

    @pytest.mark.asyncio
    async def test_healthy_single_host_is_selected_without_probing(self):
        clock = FakeClock()
        backend = LatencyBackend(clock, {FAST: 0.05})
        selected = []

        async with make_client([FAST], backend, clock) as client:
            client.events.on(Event.HOST_SELECTED, lambda host, latency_ms: selected.append((host, latency_ms)))
            selection = await client.connect()

            assert client.active_host == FAST
            assert client.is_connected is True

        assert selection.host == FAST
        assert selection.latency_ms == 0.0
        assert backend.calls == [FAST]
        assert client.ping_results == {}
        assert selected == [(FAST, 0.0)]

    @pytest.mark.asyncio
    async def test_unhealthy_single_host_fails_connect(self):
        clock = FakeClock()
        backend = LatencyBackend(clock, {FAST: 0.05}, status="DOWN")
        failures = []

        async with make_client([FAST], backend, clock) as client:
            client.events.on(Event.CONNECTION_FAILED, lambda error: failures.append(error))
            with pytest.raises(HostUnavailableError):
                await client.connect()

            assert client.is_connected is False

        assert len(failures) == 1
        assert isinstance(failures[0], HostUnavailableError)

    @pytest.mark.asyncio
    async def test_non_200_health_check_is_unhealthy(self):
        def handler(request):
            return httpx.Response(503, json={"status": "UP"})

        settings = ClientSettings(api_key="test-key", hosts=[FAST], http2=False)
        async with RestClient(settings, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(HostUnavailableError):
                await client.connect()

    @pytest.mark.asyncio
    async def test_health_check_sends_api_key(self):
        seen = []

        def handler(request):
            seen.append((request.url.path, request.headers.get("X-API-Key")))
            return httpx.Response(200, json={"status": "UP"})

        settings = ClientSettings(api_key="secret", hosts=[FAST], http2=False)
        async with RestClient(settings, transport=httpx.MockTransport(handler)) as client:
            await client.connect()

        assert seen == [("/actuator/health", "secret")]


class TestMultipleHosts:

    @pytest.mark.asyncio
    async def test_lowest_latency_host_wins(self):
        """Latencies 80 ms, 30 ms and unreachable select the 30 ms host."""
        clock = FakeClock()
        backend = LatencyBackend(clock, {SLOW: 0.080, FAST: 0.030})

        async with make_client([SLOW, FAST, DEAD], backend, clock) as client:
            selection = await client.connect()

        assert selection.host == FAST
        assert selection.latency_ms == pytest.approx(30.0)
        assert client.active_host == FAST
        assert client.ping_results[SLOW] == pytest.approx(80.0)
        assert client.ping_results[FAST] == pytest.approx(30.0)
        assert client.ping_results[DEAD] is None

    @pytest.mark.asyncio
    async def test_each_host_probed_three_times(self):
        clock = FakeClock()
        backend = LatencyBackend(clock, {SLOW: 0.080, FAST: 0.030})

        async with make_client([SLOW, FAST, DEAD], backend, clock) as client:
            await client.connect()

        assert backend.calls.count(SLOW) == 3
        assert backend.calls.count(FAST) == 3
        assert backend.calls.count(DEAD) == 3

    @pytest.mark.asyncio
    async def test_best_probe_is_recorded(self):
        clock = FakeClock()
        backend = LatencyBackend(clock, {SLOW: [0.050, 0.020, 0.040], FAST: 0.030})

        async with make_client([SLOW, FAST], backend, clock) as client:
            selection = await client.connect()

        assert client.ping_results[SLOW] == pytest.approx(20.0)
        assert selection.host == SLOW

    @pytest.mark.asyncio
    async def test_tie_keeps_first_configured_host(self):
        clock = FakeClock()
        backend = LatencyBackend(clock, {SLOW: 0.03125, FAST: 0.03125})

        async with make_client([SLOW, FAST], backend, clock) as client:
            selection = await client.connect()

        assert selection.host == SLOW

    @pytest.mark.asyncio
    async def test_all_hosts_unreachable(self):
        clock = FakeClock()
        backend = LatencyBackend(clock, {})
        failures = []

        async with make_client([SLOW, FAST], backend, clock) as client:
            client.events.on(Event.CONNECTION_FAILED, lambda error: failures.append(error))
            with pytest.raises(HostUnavailableError) as exc_info:
                await client.connect()

        assert exc_info.value.hosts == [SLOW, FAST]
        assert client.ping_results == {SLOW: None, FAST: None}
        assert len(failures) == 1

    @pytest.mark.asyncio
    async def test_reconnect_starts_from_fresh_ping_results(self):
        clock = FakeClock()
        backend = LatencyBackend(clock, {SLOW: 0.080, FAST: 0.030})

        async with make_client([SLOW, FAST, DEAD], backend, clock) as client:
            await client.connect()
            backend.latencies = {SLOW: 0.010}
            selection = await client.connect()

        assert selection.host == SLOW
        assert client.ping_results[SLOW] == pytest.approx(10.0)
        assert client.ping_results[FAST] is None
        assert client.ping_results[DEAD] is None


class TestConfiguration:

    @pytest.mark.asyncio
    async def test_no_hosts_is_a_config_error(self):
        clock = FakeClock()
        backend = LatencyBackend(clock, {})
        failures = []

        async with make_client([], backend, clock) as client:
            client.events.on(Event.CONNECTION_FAILED, lambda error: failures.append(error))
            with pytest.raises(ConfigError) as exc_info:
                await client.connect()

        assert exc_info.value.setting_name == "hosts"
        assert backend.calls == []
        assert len(failures) == 1

    @pytest.mark.asyncio
    async def test_missing_api_key_is_a_config_error(self):
        clock = FakeClock()
        backend = LatencyBackend(clock, {FAST: 0.01})

        async with make_client([FAST], backend, clock, api_key="") as client:
            with pytest.raises(ConfigError) as exc_info:
                await client.connect()

        assert exc_info.value.setting_name == "api_key"
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_connect_outside_context_manager(self):
        client = RestClient(ClientSettings(api_key="k", hosts=[FAST]))
        with pytest.raises(RuntimeError):
            await client.connect()

    @pytest.mark.asyncio
    async def test_config_error_wins_over_missing_context_manager(self):
        client = RestClient(ClientSettings(api_key="", hosts=[FAST]))
        failures = []
        client.events.on(Event.CONNECTION_FAILED, lambda error: failures.append(error))

        with pytest.raises(ConfigError) as exc_info:
            await client.connect()

        assert exc_info.value.setting_name == "api_key"
        assert len(failures) == 1
