from __future__ import annotations

from datetime import datetime, timedelta

from .models import NewsItem
from .utils import normalize_title, utc_now


DEFAULT_SIMILARITY_THRESHOLD = 0.8


def jaccard_similarity(first: str, second: str) -> float:
    first_words = set(first.split())
    second_words = set(second.split())
    union = first_words | second_words
    if not union:
        return 0.0
    return len(first_words & second_words) / len(union)


def filter_news(items: list[NewsItem], recency_window: timedelta, now: datetime | None = None) -> list[NewsItem]:
    now = now or utc_now()
    cutoff = now - recency_window
    return [item for item in items if item.is_relevant and item.date_time >= cutoff]


def sort_news(items: list[NewsItem]) -> list[NewsItem]:
    # sorted() is stable, so ties keep their incoming order
    return sorted(items, key=lambda item: item.scores.total, reverse=True)


def dedupe_news(items: list[NewsItem], threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> list[NewsItem]:
    kept: list[NewsItem] = []
    kept_titles: list[str] = []
    for item in items:
        title = normalize_title(item.title)
        for idx, kept_title in enumerate(kept_titles):
            if jaccard_similarity(title, kept_title) > threshold:
                if item.scores.total > kept[idx].scores.total:
                    kept[idx] = item
                    kept_titles[idx] = title
                break
        else:
            kept.append(item)
            kept_titles.append(title)
    return kept
