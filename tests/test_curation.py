##########################################################################################
#
# Script name: test_curation.py
#
# Description: Recency filtering, ranking and near-duplicate removal tests.
#
##########################################################################################

from datetime import datetime, timedelta, timezone

import pytest

from claude_news.curation import dedupe_news, filter_news, jaccard_similarity, sort_news
from claude_news.models import NewsItem, Scores


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
WINDOW = timedelta(days=14)


def _news(item_id: str, title: str, total: float, published: datetime = NOW, relevant: bool = True) -> NewsItem:
    return NewsItem(
        id=item_id,
        title=title,
        description='',
        url=f'https://example.com/{item_id}',
        date=published.date().isoformat(),
        date_time=published,
        source='Example',
        source_icon='📰',
        category='product',
        scores=Scores(relevance=10, total=total),
        is_relevant=relevant,
    )


def test_jaccard_similarity() -> None:
    assert jaccard_similarity('claude 4 released', 'claude 4 released') == 1.0
    assert jaccard_similarity('a b', 'c d') == 0.0
    assert jaccard_similarity('', '') == 0.0
    assert jaccard_similarity('a b c', 'a b d') == pytest.approx(0.5)


def test_filter_drops_stale_and_irrelevant_items() -> None:
    fresh = _news('fresh', 'Claude fresh', 50)
    stale = _news('stale', 'Claude stale', 90, published=datetime(2020, 1, 1, tzinfo=timezone.utc))
    off_topic = _news('off', 'Gardening', 80, relevant=False)
    edge = _news('edge', 'Claude edge', 10, published=NOW - WINDOW)

    kept = filter_news([fresh, stale, off_topic, edge], WINDOW, now=NOW)

    assert [item.id for item in kept] == ['fresh', 'edge']


def test_sort_is_descending_and_stable_for_ties() -> None:
    items = [_news('a', 'A', 10), _news('b', 'B', 30), _news('c', 'C', 10), _news('d', 'D', 30)]
    assert [item.id for item in sort_news(items)] == ['b', 'd', 'a', 'c']


def test_dedupe_keeps_higher_scored_near_duplicate_in_place() -> None:
    low = _news('low', 'Claude 4 Released by Anthropic', 40)
    other = _news('other', 'Completely different headline', 30)
    high = _news('high', 'Claude 4 Released by Anthropic!', 70)

    kept = dedupe_news([low, other, high])

    assert [item.id for item in kept] == ['high', 'other']


def test_dedupe_keeps_first_when_duplicate_scores_lower() -> None:
    first = _news('first', 'Anthropic ships Claude Code update today', 70)
    second = _news('second', 'Anthropic ships Claude Code update today.', 40)
    assert [item.id for item in dedupe_news([first, second])] == ['first']


def test_dedupe_threshold_is_strict() -> None:
    # 4 shared words of 5 total is exactly 0.8, which is not above the threshold
    first = _news('first', 'claude code gets plugins', 10)
    second = _news('second', 'claude code gets plugins now', 10)
    assert len(dedupe_news([first, second], threshold=0.8)) == 2
    assert len(dedupe_news([first, second], threshold=0.7)) == 1
