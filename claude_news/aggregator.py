##########################################################################################
#
# Script name: aggregator.py
#
# Description: Cache-aside news aggregation: concurrent fetch, score, filter, dedupe, rank.
#
##########################################################################################

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta
from typing import Callable

from .adapters import ListingApiAdapter, SearchApiAdapter
from .cache import CacheStore, FileCacheStore
from .config import Settings, load_settings
from .curation import dedupe_news, filter_news, sort_news
from .errors import Error
from .fetchers import FeedFetcher, fetch_feed_source
from .http_client import HttpClient
from .models import FetchReport, NewsItem, NewsStats, RawItem
from .registry import FormatFamily, SourceRegistry, default_registry
from .scoring import build_news_item, score_item
from .utils import utc_now


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

_default_aggregator = None


# ****************************************************************************************
# Classes
# ****************************************************************************************


class Aggregator:
    def __init__(
        self,
        settings: Settings | None = None,
        registry: SourceRegistry | None = None,
        cache_store: CacheStore | None = None,
        http_client: HttpClient | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings or Settings()
        self.registry = registry or default_registry()
        self.cache_store = cache_store or FileCacheStore(self.settings.cache_file, ttl_ms=self.settings.cache_ttl_ms)
        self.http_client = http_client or HttpClient.from_settings(self.settings)
        self.fetcher = FeedFetcher(self.http_client)
        self.search_adapter = SearchApiAdapter(
            self.registry.sources_of(FormatFamily.SEARCH_API),
            self.http_client,
            timeout_ms=self.settings.http_timeout_ms,
            hits_per_page=self.settings.hn_hits_per_page,
        )
        self.listing_adapter = ListingApiAdapter(
            self.registry.sources_of(FormatFamily.LISTING_API),
            self.http_client,
            timeout_ms=self.settings.http_timeout_ms,
            limit=self.settings.reddit_limit,
        )
        self._clock = clock
        self.last_report = FetchReport()

    # ------------------------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------------------------

    def _fetch_tasks(self) -> list[tuple[str, str, Callable[[], list[RawItem]]]]:
        # (report key, display name, task)
        tasks = []
        timeout_ms = self.settings.http_timeout_ms
        for source in self.registry.feed_sources():
            task = lambda source=source: fetch_feed_source(source, self.fetcher, timeout_ms)
            tasks.append((source.key, source.name, task))
        for adapter in (self.search_adapter, self.listing_adapter):
            if adapter.sources:
                tasks.append((adapter.key, adapter.name, adapter.fetch_all))
        return tasks

    def fetch_raw_items(self) -> tuple[list[RawItem], FetchReport]:
        tasks = self._fetch_tasks()
        report = FetchReport()
        if not tasks:
            return [], report

        results: dict[int, list[RawItem]] = {}
        with ThreadPoolExecutor(max_workers=len(tasks)) as executor:
            futures = {executor.submit(task): idx for idx, (_, _, task) in enumerate(tasks)}
            for future in as_completed(futures):
                idx = futures[future]
                key, name, _ = tasks[idx]
                try:
                    items = future.result()
                except Error as exc:
                    report.failed[key] = str(exc)
                    log.warning('Failed to fetch %s: %s', name, exc)
                    continue
                except Exception as exc:  # noqa: BLE001
                    report.failed[key] = f'{type(exc).__name__}: {exc}'
                    log.exception('Source fetch failed for %s: %s', name, exc)
                    continue
                results[idx] = items
                report.succeeded[key] = len(items)
                log.debug('Fetched %d item(s) from %s', len(items), name)

        raw_items = [item for idx in sorted(results) for item in results[idx]]
        return raw_items, report

    # ------------------------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------------------------

    def process(self, raw_items: list[RawItem], now: datetime | None = None) -> list[NewsItem]:
        now = now or self._clock()
        news = []
        for raw in raw_items:
            scores = score_item(raw, raw.source.credibility_hint, now=now)
            news.append(build_news_item(raw, scores, self.settings.relevance_threshold))
        window = timedelta(milliseconds=self.settings.recency_window_ms)
        news = filter_news(news, window, now=now)
        news = dedupe_news(sort_news(news), self.settings.similarity_threshold)
        return sort_news(news)

    def refresh(self) -> list[NewsItem]:
        log.info('Aggregating news from %d source(s)...', len(self.registry))
        raw_items, report = self.fetch_raw_items()
        self.last_report = report
        log.info(
            'Fetched %d raw item(s): %d source(s) ok, %d failed.',
            len(raw_items),
            len(report.succeeded),
            len(report.failed),
        )
        if report.degraded:
            log.error('Every source failed; returning an empty result and keeping the existing cache.')
            return []
        news = self.process(raw_items)
        log.info('After filtering: %d relevant item(s).', len(news))
        self.cache_store.save(news)
        return news

    def load_news(self, force_refresh: bool = False) -> list[NewsItem]:
        if not force_refresh:
            record = self.cache_store.load()
            if record is not None:
                log.debug('Serving %d cached item(s) from %s', record.count, record.fetched_at)
                self.last_report = FetchReport(from_cache=True)
                return record.items
        return self.refresh()

    # ------------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------------

    def aggregate(self, force_refresh: bool = False, limit: int | None = None) -> list[NewsItem]:
        limit = self.settings.default_limit if limit is None else limit
        return self.load_news(force_refresh=force_refresh)[:max(0, limit)]

    def get_by_category(self, category: str, limit: int = 5) -> list[NewsItem]:
        matches = [item for item in self.load_news() if item.category == category]
        return matches[:max(0, limit)]

    def get_top_story(self) -> NewsItem | None:
        news = self.load_news()
        return news[0] if news else None

    def get_stats(self) -> NewsStats:
        news = self.load_news()
        dates = sorted(item.date for item in news)
        return NewsStats(
            total=len(news),
            by_category=dict(Counter(item.category for item in news)),
            by_source=dict(Counter(item.source for item in news)),
            latest_date=dates[-1] if dates else None,
            oldest_date=dates[0] if dates else None,
        )

    def clear_cache(self) -> bool:
        return self.cache_store.clear()


# ****************************************************************************************
# Functions
# ****************************************************************************************


def get_default_aggregator() -> Aggregator:
    global _default_aggregator
    if _default_aggregator is None:
        _default_aggregator = Aggregator(settings=load_settings())
    return _default_aggregator


def aggregate(force_refresh: bool = False, limit: int | None = None) -> list[NewsItem]:
    return get_default_aggregator().aggregate(force_refresh=force_refresh, limit=limit)


def get_by_category(category: str, limit: int = 5) -> list[NewsItem]:
    return get_default_aggregator().get_by_category(category, limit=limit)


def get_top_story() -> NewsItem | None:
    return get_default_aggregator().get_top_story()


def get_stats() -> NewsStats:
    return get_default_aggregator().get_stats()


def clear_cache() -> bool:
    return get_default_aggregator().clear_cache()
