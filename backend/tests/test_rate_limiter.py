import threading
from repairtrack.services.rate_limiter import SlidingWindowRateLimiter


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self):
        return self.now


def _limiter(clock, **kw):
    kw.setdefault('rng', lambda: 1.0)  # never sweep unless asked
    return SlidingWindowRateLimiter(window_seconds=60, max_requests=10, clock=clock, **kw)


def test_eleventh_request_in_window_is_denied():
    clock = FakeClock()
    rl = _limiter(clock)
    results = [rl.allow('1.2.3.4') for _ in range(11)]
    assert results[:10] == [True] * 10
    assert results[10] is False


def test_new_window_allows_again():
    clock = FakeClock()
    rl = _limiter(clock)
    for _ in range(11):
        rl.allow('1.2.3.4')
    clock.now += 59
    assert rl.allow('1.2.3.4') is False
    clock.now += 2  # past reset_at
    assert rl.allow('1.2.3.4') is True


def test_keys_are_independent():
    clock = FakeClock()
    rl = _limiter(clock)
    for _ in range(10):
        rl.allow('a')
    assert rl.allow('a') is False
    assert rl.allow('b') is True


def test_sweep_drops_only_expired_entries():
    clock = FakeClock()
    draws = iter([1.0, 1.0, 0.0])
    rl = _limiter(clock, rng=lambda: next(draws))
    rl.allow('old')
    clock.now += 61
    rl.allow('fresh')
    assert len(rl) == 2
    rl.allow('fresh')  # rng returns 0.0 -> sweep
    assert len(rl) == 1


def test_concurrent_requests_do_not_lose_updates():
    rl = SlidingWindowRateLimiter(window_seconds=60, max_requests=50, rng=lambda: 1.0)
    allowed = []
    lock = threading.Lock()

    def worker():
        for _ in range(20):
            ok = rl.allow('shared')
            with lock:
                allowed.append(ok)

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert allowed.count(True) == 50
    assert allowed.count(False) == 50
