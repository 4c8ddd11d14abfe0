from badminton_club.utils.cache import AvailabilityCache


class FakeTimer:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_value_is_fresh_within_ttl():
    timer = FakeTimer()
    cache = AvailabilityCache(ttl=5, timer=timer)
    cache.set('2026-10-23', ['friday'])

    timer.now = 4.9
    assert cache.get('2026-10-23') == ['friday']
    assert cache.stats['hits'] == 1


def test_value_expires_after_ttl_but_stays_available_as_stale():
    timer = FakeTimer()
    cache = AvailabilityCache(ttl=5, timer=timer)
    cache.set('key', 'value')

    timer.now = 5.0
    assert cache.get('key') is None
    assert cache.get_stale('key') == 'value'


def test_invalidate_expires_immediately():
    cache = AvailabilityCache(ttl=60)
    cache.set('a', 1)
    cache.set('b', 2)

    cache.invalidate('a')
    assert cache.get('a') is None
    assert cache.get('b') == 2

    cache.invalidate()
    assert cache.get('b') is None
    assert cache.get_stale('b') == 2
    assert cache.stats['invalidations'] == 2


def test_clear_drops_stale_values():
    cache = AvailabilityCache()
    cache.set('a', 1)
    cache.clear()
    assert cache.get_stale('a') is None
