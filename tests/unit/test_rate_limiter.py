"""RateLimiterのテスト"""

import pytest

from member_map.shared.http.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_first_call_does_not_wait() -> None:
    clock = FakeClock()
    limiter = RateLimiter(min_interval=1.0, clock=clock.time, sleep=clock.sleep)

    assert limiter.wait() == 0.0
    assert clock.sleeps == []


def test_waits_for_remaining_interval() -> None:
    """前回から経過した分だけ待ち時間を短くする"""
    clock = FakeClock()
    limiter = RateLimiter(min_interval=1.0, clock=clock.time, sleep=clock.sleep)

    limiter.wait()
    clock.now += 0.25
    slept = limiter.wait()

    assert slept == pytest.approx(0.75)
    assert clock.sleeps == [pytest.approx(0.75)]


def test_no_wait_after_interval_elapsed() -> None:
    clock = FakeClock()
    limiter = RateLimiter(min_interval=1.0, clock=clock.time, sleep=clock.sleep)

    limiter.wait()
    clock.now += 5
    assert limiter.wait() == 0.0


def test_requests_per_second_overrides_interval() -> None:
    limiter = RateLimiter(min_interval=5.0, requests_per_second=4)
    assert limiter.min_interval == pytest.approx(0.25)


def test_reset_skips_next_wait() -> None:
    clock = FakeClock()
    limiter = RateLimiter(min_interval=1.0, clock=clock.time, sleep=clock.sleep)

    limiter.wait()
    limiter.reset()
    assert limiter.wait() == 0.0


def test_negative_interval_rejected() -> None:
    with pytest.raises(ValueError):
        RateLimiter(min_interval=-1)
