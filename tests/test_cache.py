from admin.cache import AdminCache, CacheState, CampaignLists
from models import AnalyticsSnapshot


def make_cache(clock, ttl=300):
    return AdminCache(ttl=ttl, clock=clock)


def test_new_cache_is_stale(clock):
    cache = make_cache(clock)
    assert cache.state is CacheState.STALE
    assert not cache.is_fresh()


def test_completed_refresh_is_fresh_until_window_elapses(clock):
    cache = make_cache(clock)
    token = cache.begin_refresh()
    assert cache.state is CacheState.REFRESHING

    assert cache.complete_refresh(token, users=[]) is CacheState.FRESH
    clock.advance(299)
    assert cache.state is CacheState.FRESH
    clock.advance(1)
    assert cache.state is CacheState.STALE


def test_second_refresh_is_refused_while_one_runs(clock):
    cache = make_cache(clock)
    assert cache.begin_refresh() is not None
    assert cache.begin_refresh() is None
    cache.abort_refresh()
    assert cache.begin_refresh() is not None


def test_invalidate_marks_fresh_cache_stale(clock):
    cache = make_cache(clock)
    cache.complete_refresh(cache.begin_refresh(), users=[])
    cache.invalidate()
    assert cache.state is CacheState.STALE
    assert cache.record.last_fetch is None


def test_invalidate_during_refresh_keeps_cache_stale(clock):
    cache = make_cache(clock)
    token = cache.begin_refresh()
    cache.invalidate()
    state = cache.complete_refresh(token, analytics=AnalyticsSnapshot(total_users=5))

    assert state is CacheState.STALE
    # data is still stored for display
    assert cache.record.analytics.total_users == 5


def test_slices_not_refreshed_keep_previous_value(clock):
    cache = make_cache(clock)
    lists = CampaignLists(pending=[], all=[])
    cache.complete_refresh(cache.begin_refresh(), campaigns=lists, users=["old"], analytics=AnalyticsSnapshot())

    cache.complete_refresh(cache.begin_refresh(), users=["new"])

    assert cache.record.campaigns is lists
    assert cache.record.users == ["new"]


def test_abort_leaves_timestamp_alone(clock):
    cache = make_cache(clock)
    cache.complete_refresh(cache.begin_refresh(), users=[])
    stamp = cache.record.last_fetch
    cache.begin_refresh()
    cache.abort_refresh()
    assert cache.record.last_fetch == stamp
    assert cache.state is CacheState.FRESH
