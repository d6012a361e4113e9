"""
Tests for the logger adapter and logger factory injection.
"""

from unittest.mock import MagicMock

import pytest

from baasclient.observability.logging import (
    BaasLoggerAdapter,
    configure_logging,
    get_baas_logger,
    log_exception,
    log_rate_limit,
    log_retry,
)
from baasclient import NotFoundError


@pytest.fixture
def injected_factory():
    """Install a mock logger factory for the duration of a test."""
    base = MagicMock()
    factory = MagicMock(return_value=base)
    configure_logging(factory)
    yield factory, base
    configure_logging(None)


class TestLoggerFactory:

    def test_custom_factory_receives_context(self, injected_factory):
        factory, base = injected_factory
        logger = get_baas_logger("baasclient.test", host="https://a", session_id="s1", component="x")

        factory.assert_called_once_with("baasclient.test", component="x", host="https://a", session_id="s1")
        logger.info("client.initialized", http2=True)

        base.info.assert_called_once_with(
            "client.initialized",
            extra={"component": "x", "host": "https://a", "session_id": "s1", "http2": True},
        )

    def test_default_factory_uses_stdlib(self, caplog):
        logger = get_baas_logger("baasclient.test.default")
        with caplog.at_level("WARNING", logger="baasclient.test.default"):
            logger.warning("request.retry", attempt=1)

        assert "request.retry" in caplog.text

    def test_default_factory_keeps_structured_fields(self, caplog):
        logger = get_baas_logger("baasclient.test.fields", host="https://a")
        with caplog.at_level("INFO", logger="baasclient.test.fields"):
            logger.info("request.completed", status_code=503, attempts=4)

        [record] = [r for r in caplog.records if r.name == "baasclient.test.fields"]
        assert record.getMessage() == "request.completed"
        assert record.status_code == 503
        assert record.attempts == 4
        assert record.host == "https://a"

    def test_default_factory_prefixes_reserved_fields(self, caplog):
        logger = get_baas_logger("baasclient.test.reserved")
        with caplog.at_level("INFO", logger="baasclient.test.reserved"):
            logger.info("crash.initialized", module="crash", filename="x.py")

        [record] = [r for r in caplog.records if r.name == "baasclient.test.reserved"]
        assert record.ctx_module == "crash"
        assert record.ctx_filename == "x.py"


class TestHelpers:

    def test_bind_adds_context(self):
        base = MagicMock()
        logger = BaasLoggerAdapter(base, {"host": "h"}).bind(session_id="s")
        logger.debug("crash.initialized")

        base.debug.assert_called_once_with("crash.initialized", extra={"host": "h", "session_id": "s"})

    def test_log_retry(self):
        base = MagicMock()
        log_retry(BaasLoggerAdapter(base), attempt=2, max_attempts=4, delay_ms=1000.004, reason="timeout")

        base.warning.assert_called_once_with(
            "request.retry",
            extra={"attempt": 2, "max_attempts": 4, "delay_ms": 1000.0, "reason": "timeout"},
        )

    def test_log_rate_limit(self):
        base = MagicMock()
        log_rate_limit(BaasLoggerAdapter(base), wait_ms=2000.0, url="u")

        base.warning.assert_called_once_with("rate_limit.wait", extra={"wait_ms": 2000.0, "url": "u"})

    def test_log_exception(self):
        base = MagicMock()
        exc = NotFoundError(message="gone")
        log_exception(BaasLoggerAdapter(base), exc, "request.failed", method="GET")

        base.error.assert_called_once_with(
            "request.failed",
            extra={"method": "GET", "error_type": "NotFoundError", "error_message": "gone"},
            exc_info=exc,
        )
