"""Pytest fixtures for dnshook test suite."""

import contextlib
import logging
import logging.handlers
import os
from collections.abc import Generator
from unittest.mock import MagicMock

import httpx
import pytest

from dnshook.exceptions import DnsLookupError, NoSuchRecordError
from dnshook.lifecycle import ChallengeLifecycle
from dnshook.propagation import PropagationPoller
from dnshook.providers.base import RecordProvider

# Default URLs for local PowerDNS setup
POWERDNS_API_URL = os.environ.get("POWERDNS_API_URL", "http://localhost:8081")
POWERDNS_API_KEY = os.environ.get("POWERDNS_API_KEY", "test-api-key")

CHALLENGE_DOMAIN = "s.example.com"
CHALLENGE_ZONE_ID = "123456"
CHALLENGE_VALUE = "abc123"


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class StubResolver:
    """Scripted TXT resolver.

    Each entry in ``responses`` is either a list of TXT values or an
    exception instance to raise. The last entry repeats once the script
    runs out.
    """

    def __init__(self, *responses: list[str] | Exception, on_lookup=None):
        self.responses = list(responses) or [NoSuchRecordError("no such host")]
        self.on_lookup = on_lookup
        self.calls: list[tuple[str, float]] = []

    def lookup_txt(self, fqdn: str, timeout: float) -> list[str]:
        self.calls.append((fqdn, timeout))
        if self.on_lookup is not None:
            self.on_lookup(len(self.calls))
        index = min(len(self.calls), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return list(response)


@pytest.fixture
def absent() -> NoSuchRecordError:
    return NoSuchRecordError("no such host")


@pytest.fixture
def lookup_failure() -> DnsLookupError:
    return DnsLookupError("some random thing")


@pytest.fixture
def provider() -> MagicMock:
    """Record provider mock holding a single zone and no records."""
    mock = MagicMock(spec=RecordProvider)
    mock.list_zones.return_value = {CHALLENGE_DOMAIN: CHALLENGE_ZONE_ID}
    mock.list_records.return_value = {}
    mock.find_record_ids.return_value = []
    mock.create_record.return_value = None
    mock.delete_record.return_value = None
    return mock


@pytest.fixture
def make_lifecycle(provider: MagicMock):
    """Build a ChallengeLifecycle with a scripted resolver and no retry delay."""

    def factory(
        resolver: StubResolver | None = None, max_attempts: int = 30, **kwargs
    ) -> ChallengeLifecycle:
        resolver = resolver or StubResolver([CHALLENGE_VALUE])
        poller = PropagationPoller(
            resolver, max_attempts=max_attempts, lookup_timeout=1, retry_delay=0
        )
        return ChallengeLifecycle(provider=provider, poller=poller, **kwargs)

    return factory


@pytest.fixture(scope="session")
def powerdns_api_url() -> str:
    """Return the PowerDNS API URL."""
    return POWERDNS_API_URL


@pytest.fixture(scope="session")
def powerdns_api_key() -> str:
    """Return the PowerDNS API key."""
    return POWERDNS_API_KEY


@pytest.fixture(scope="session", autouse=False)
def powerdns_test_zone(powerdns_api_url: str, powerdns_api_key: str) -> Generator[str]:
    """Create a test zone in PowerDNS for integration tests.

    This fixture creates the example.org zone via the PowerDNS API
    and cleans it up after all tests complete.
    """
    zone_name = "example.org."
    headers = {
        "X-API-Key": powerdns_api_key,
        "Content-Type": "application/json",
    }

    zone_data = {
        "name": zone_name,
        "kind": "Native",
        "nameservers": ["ns1.example.org."],
        "soa_edit_api": "DEFAULT",
    }

    try:
        response = httpx.post(
            f"{powerdns_api_url}/api/v1/servers/localhost/zones",
            headers=headers,
            json=zone_data,
            timeout=30,
        )
        # 201 = created, 409 = already exists (which is fine)
        if response.status_code not in (201, 409):
            response.raise_for_status()
    except httpx.ConnectError:
        pytest.skip("PowerDNS not available")

    yield zone_name

    # Cleanup: delete the zone (best effort)
    with contextlib.suppress(httpx.HTTPError):
        httpx.delete(
            f"{powerdns_api_url}/api/v1/servers/localhost/zones/{zone_name}",
            headers=headers,
            timeout=30,
        )


class LogCapture:
    """Helper class to capture and inspect log records."""

    def __init__(self, handler: logging.handlers.MemoryHandler) -> None:
        self._handler = handler

    @property
    def records(self) -> list[logging.LogRecord]:
        """Get all captured log records."""
        return self._handler.buffer

    def get_records(
        self, level: int | None = None, name: str | None = None
    ) -> list[logging.LogRecord]:
        """Get log records filtered by level and/or logger name.

        Args:
            level: Filter by log level (e.g., logging.INFO).
            name: Filter by logger name prefix (e.g., "dnshook.lifecycle").

        Returns:
            List of matching log records.
        """
        records = self.records
        if level is not None:
            records = [r for r in records if r.levelno == level]
        if name is not None:
            records = [r for r in records if r.name.startswith(name)]
        return records

    def get_messages(self, level: int | None = None, name: str | None = None) -> list[str]:
        """Get log messages filtered by level and/or logger name."""
        return [r.getMessage() for r in self.get_records(level, name)]

    def clear(self) -> None:
        """Clear all captured log records."""
        self._handler.buffer.clear()


@pytest.fixture
def log_capture() -> Generator[LogCapture]:
    """Capture logs from the dnshook package during a test.

    Usage:
        def test_something(log_capture):
            # do something that logs
            assert "Challenge created" in log_capture.get_messages(logging.INFO)
    """
    # Capacity is high enough that the handler never flushes mid-test
    handler = logging.handlers.MemoryHandler(capacity=10000, flushLevel=logging.CRITICAL + 1)
    handler.setLevel(logging.DEBUG)

    dnshook_logger = logging.getLogger("dnshook")
    original_level = dnshook_logger.level
    dnshook_logger.setLevel(logging.DEBUG)
    dnshook_logger.addHandler(handler)

    try:
        yield LogCapture(handler)
    finally:
        dnshook_logger.removeHandler(handler)
        dnshook_logger.setLevel(original_level)
        handler.close()
