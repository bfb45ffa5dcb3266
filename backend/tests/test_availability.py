"""Tests for the circuit breaker and connectivity probe"""
import pytest

from availability import BreakerState, CircuitBreaker, ConnectivityProbe
from document_store import NEWS_ARTICLES


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_breaker_opens_on_failure():
    breaker = CircuitBreaker(reset_timeout=30)
    assert breaker.allow_primary()
    breaker.record_failure(ConnectionError("offline"))
    assert breaker.state == BreakerState.OPEN
    assert not breaker.allow_primary()
    assert breaker.snapshot()["last_error"] == "ConnectionError: offline"


def test_breaker_half_opens_after_timeout():
    clock = FakeClock()
    breaker = CircuitBreaker(reset_timeout=30, clock=clock)
    breaker.record_failure(ConnectionError("offline"))
    clock.now += 29
    assert not breaker.allow_primary()
    clock.now += 2
    assert breaker.allow_primary()
    assert breaker.state == BreakerState.HALF_OPEN
    breaker.record_success()
    assert breaker.state == BreakerState.CLOSED
    assert breaker.consecutive_failures == 0


def test_half_open_failure_reopens():
    clock = FakeClock()
    breaker = CircuitBreaker(reset_timeout=10, clock=clock)
    breaker.record_failure(ConnectionError("offline"))
    clock.now += 11
    assert breaker.allow_primary()
    breaker.record_failure(ConnectionError("still offline"))
    assert breaker.state == BreakerState.OPEN
    assert breaker.consecutive_failures == 2
    assert not breaker.allow_primary()


def test_no_reset_timeout_stays_open():
    clock = FakeClock()
    breaker = CircuitBreaker(reset_timeout=None, clock=clock)
    breaker.force_open("maintenance")
    clock.now += 10_000
    assert not breaker.allow_primary()
    breaker.reset()
    assert breaker.allow_primary()


@pytest.mark.asyncio
async def test_probe_reports_available(primary, breaker):
    probe = ConnectivityProbe(primary, breaker, NEWS_ARTICLES)
    result = await probe.check_connectivity()
    assert result.available is True
    assert result.error is None
    assert breaker.available


@pytest.mark.asyncio
async def test_probe_failure_opens_breaker(primary, breaker):
    primary.failing = True
    probe = ConnectivityProbe(primary, breaker, NEWS_ARTICLES)
    result = await probe.check_connectivity()
    assert result.available is False
    assert "primary store offline" in result.error
    assert breaker.state == BreakerState.OPEN


@pytest.mark.asyncio
async def test_probe_closes_breaker_after_recovery(primary, breaker):
    probe = ConnectivityProbe(primary, breaker, NEWS_ARTICLES)
    primary.failing = True
    await probe.check_connectivity()
    primary.failing = False
    result = await probe.check_connectivity()
    assert result.available is True
    assert breaker.state == BreakerState.CLOSED
