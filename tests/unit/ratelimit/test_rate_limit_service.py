"""Tests for the rate limit service and its reclamation task."""

import asyncio

import pytest

from bookcatalog.core.core import Core


@pytest.fixture
def rate_limit(config, clock):
    config.rate_limit_reclaim_interval_seconds = 0.01
    config.rate_limit_grace_seconds = 0.0
    service = Core(config).services.rate_limit
    service.clock = clock
    return service


def test_uses_configured_quota(rate_limit):
    assert [rate_limit.admit("client").allowed for _ in range(4)] == [True, True, True, False]


def test_explicit_time_overrides_clock(rate_limit, clock):
    for _ in range(3):
        rate_limit.admit("client", now=clock.now)

    assert rate_limit.admit("client", now=clock.now + 60).allowed


async def test_background_task_reclaims_idle_clients(rate_limit, clock):
    rate_limit.admit("client")
    clock.advance(3600)

    await rate_limit.on_start()
    try:
        for _ in range(100):
            if rate_limit.limiter.client_count() == 0:
                break
            await asyncio.sleep(0.01)
    finally:
        await rate_limit.on_stop()

    assert rate_limit.limiter.client_count() == 0


async def test_stop_is_idempotent(rate_limit):
    await rate_limit.on_start()
    await rate_limit.on_stop()
    await rate_limit.on_stop()


async def test_failed_pass_does_not_stop_reclamation(rate_limit, clock, monkeypatch):
    """Test that the loop survives an error in one pass and keeps reclaiming."""
    calls = []
    reclaim = rate_limit.limiter.reclaim

    def flaky_reclaim(now):
        calls.append(now)
        if len(calls) == 1:
            raise RuntimeError("reclaim failed")
        return reclaim(now)

    monkeypatch.setattr(rate_limit.limiter, "reclaim", flaky_reclaim)
    rate_limit.admit("client")
    clock.advance(3600)

    await rate_limit.on_start()
    try:
        for _ in range(100):
            if rate_limit.limiter.client_count() == 0:
                break
            await asyncio.sleep(0.01)
    finally:
        await rate_limit.on_stop()

    assert len(calls) >= 2
    assert rate_limit.limiter.client_count() == 0
