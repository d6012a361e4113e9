from __future__ import annotations

from typing import Optional

import httpx

from .clients.rest import RestClient
from .crash.reporter import CrashReporter
from .models.config import ClientSettings
from .models.results import HostSelection
from .observability.events import EventEmitter
from .observability.logging import get_baas_logger
from .session.store import SessionStore


class BaasClient:
    """
    One-stop entry point wiring the SDK components together.

    Builds a single event emitter, session store, REST client and crash
    reporter and hands the shared pieces to each. Feature modules (auth,
    leaderboards, cloud save, ...) take ``client.rest`` the same way the crash
    reporter does.

    Example:
        settings = ClientSettings(api_key="key", hosts=["https://eu.example.com"])
        async with BaasClient(settings) as sdk:
            await sdk.connect()
            sdk.crash.record_breadcrumb("state", "main menu")
            await sdk.crash.submit("NON_FATAL", "save failed")
    """

    def __init__(
        self,
        settings: ClientSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self._logger = settings.logger or get_baas_logger(__name__)
        self.events = EventEmitter(logger=self._logger)
        self.session = SessionStore(settings.session_file)
        self.rest = RestClient(settings, events=self.events, session=self.session, transport=transport)
        self.crash = CrashReporter(self.rest, settings.crash_reporting, session=self.session)

    async def __aenter__(self) -> "BaasClient":
        await self.session.load()
        await self.rest.__aenter__()
        return self

    async def __aexit__(self, *exc) -> None:
        try:
            await self.rest.__aexit__(*exc)
        finally:
            await self.session.save()

    async def connect(self) -> HostSelection:
        return await self.rest.connect()

    async def disconnect(self) -> None:
        await self.rest.disconnect()

    @property
    def is_connected(self) -> bool:
        return self.rest.is_connected
