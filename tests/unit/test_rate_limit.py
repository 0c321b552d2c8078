# tests/unit/test_rate_limit.py
"""Unit tests for the shared token bucket."""

import asyncio

import pytest

from newsingest.utils.rate_limit import TokenBucket


class FakeClock:
    """Manual clock whose sleep advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.mark.unit
class TestTokenBucket:
    """Tests for TokenBucket."""

    def test_rejects_invalid_parameters(self):
        with pytest.raises(ValueError):
            TokenBucket(rate=0, burst=1)
        with pytest.raises(ValueError):
            TokenBucket(rate=1, burst=0)

    @pytest.mark.asyncio
    async def test_burst_is_immediate(self, clock):
        """Should hand out `burst` tokens without waiting."""
        bucket = TokenBucket(rate=1.0, burst=3, clock=clock, sleep=clock.sleep)

        waits = [await bucket.acquire() for _ in range(3)]

        assert waits == [0.0, 0.0, 0.0]
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_paces_after_burst(self, clock):
        """Should wait 1/rate seconds per token once the burst is spent."""
        bucket = TokenBucket(rate=2.0, burst=1, clock=clock, sleep=clock.sleep)

        await bucket.acquire()
        waited = await bucket.acquire()

        assert waited == pytest.approx(0.5)
        assert clock.now == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_refills_over_time(self, clock):
        """Should refill up to burst while idle."""
        bucket = TokenBucket(rate=1.0, burst=2, clock=clock, sleep=clock.sleep)
        await bucket.acquire()
        await bucket.acquire()

        clock.now += 10.0

        assert bucket.available == pytest.approx(2.0)

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_budget(self, clock):
        """Should pace concurrent callers as one stream."""
        bucket = TokenBucket(rate=1.0, burst=1, clock=clock, sleep=clock.sleep)

        await asyncio.gather(*(bucket.acquire() for _ in range(3)))

        # Three tokens at one per second with one up front
        assert clock.now == pytest.approx(2.0)
