##########################################################################################
#
# Script name: test_cache.py
#
# Description: File and memory cache store tests.
#
##########################################################################################

import json
from datetime import datetime, timezone

from claude_news.cache import FileCacheStore, MemoryCacheStore
from claude_news.models import NewsItem, Scores


TTL_MS = 60_000


class FakeClock:
    def __init__(self, value: int = 1_000_000):
        self.value = value

    def __call__(self) -> int:
        return self.value


def _item() -> NewsItem:
    published = datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)
    return NewsItem(
        id='abc123',
        title='Claude news',
        description='Something happened',
        url='https://example.com/claude',
        date='2026-10-19',
        date_time=published,
        source='Example',
        source_icon='📰',
        category='product',
        scores=Scores(relevance=10, credibility=5, social=0, recency=96.5, total=156.5),
        is_relevant=True,
        author='Writer',
    )


def test_file_cache_round_trip(tmp_path) -> None:
    clock = FakeClock()
    store = FileCacheStore(tmp_path / 'nested' / 'news.json', ttl_ms=TTL_MS, clock=clock)

    assert store.load() is None
    store.save([_item()])

    payload = json.loads((tmp_path / 'nested' / 'news.json').read_text(encoding='utf-8'))
    assert payload['timestamp'] == clock.value
    assert payload['count'] == 1
    assert payload['news'][0]['dateTime'] == '2026-10-19T08:30:00+00:00'
    assert payload['news'][0]['isRelevant'] is True

    record = store.load()
    assert record is not None
    assert record.items == [_item()]


def test_file_cache_expires_after_ttl(tmp_path) -> None:
    clock = FakeClock()
    store = FileCacheStore(tmp_path / 'news.json', ttl_ms=TTL_MS, clock=clock)
    store.save([_item()])

    clock.value += TTL_MS
    assert store.load() is not None
    clock.value += 1
    assert store.load() is None


def test_corrupt_cache_file_is_a_miss(tmp_path) -> None:
    path = tmp_path / 'news.json'
    path.write_text('{not json', encoding='utf-8')
    assert FileCacheStore(path, ttl_ms=TTL_MS).load() is None

    path.write_text(json.dumps({'fetchedAt': 'x'}), encoding='utf-8')
    assert FileCacheStore(path, ttl_ms=TTL_MS).load() is None


def test_save_failure_is_logged_not_raised(tmp_path) -> None:
    blocker = tmp_path / 'blocker'
    blocker.write_text('file, not a directory', encoding='utf-8')
    store = FileCacheStore(blocker / 'news.json', ttl_ms=TTL_MS)

    store.save([_item()])
    assert store.load() is None


def test_clear_removes_file(tmp_path) -> None:
    path = tmp_path / 'news.json'
    store = FileCacheStore(path, ttl_ms=TTL_MS)
    store.save([_item()])

    assert store.clear() is True
    assert not path.exists()
    assert store.clear() is True


def test_memory_store_honours_ttl() -> None:
    clock = FakeClock()
    store = MemoryCacheStore(ttl_ms=TTL_MS, clock=clock)
    store.save([_item()])

    assert store.load().count == 1
    clock.value += TTL_MS + 1
    assert store.load() is None

    store.save([])
    assert store.load().items == []
    store.clear()
    assert store.load() is None
