##########################################################################################
#
# Script name: test_main.py
#
# Description: CLI argument handling and command dispatch tests.
#
##########################################################################################

import json

import pytest

import claude_news.main as main_module
from claude_news.aggregator import Aggregator
from claude_news.cache import MemoryCacheStore
from claude_news.config import Settings
from claude_news.main import handle_args, run_command
from claude_news.registry import SourceRegistry
from conftest import FakeHttpClient, feed_source, rss_feed, rss_item


GOOD = feed_source('good', 'https://good.example/feed.xml', name='Good Feed')
BROKEN = feed_source('broken', 'https://broken.example/feed.xml', name='Broken Feed')


@pytest.fixture
def aggregator(now) -> Aggregator:
    payload = rss_feed(
        rss_item('Claude 4 Released by Anthropic', 'https://good.example/claude-4', now),
        rss_item('Anthropic raises funding', 'https://good.example/funding', now),
    )
    return Aggregator(
        settings=Settings(),
        registry=SourceRegistry([GOOD, BROKEN]),
        cache_store=MemoryCacheStore(),
        http_client=FakeHttpClient({GOOD.url: payload}),
        clock=lambda: now,
    )


def test_handle_args_defaults() -> None:
    args = handle_args([])
    assert args.limit == 10
    assert args.refresh is False
    assert args.category is None


def test_handle_args_rejects_unknown_category() -> None:
    with pytest.raises(SystemExit):
        handle_args(['--category', 'sports'])


def test_default_command_lists_news_and_failures(aggregator) -> None:
    result = run_command(handle_args(['--limit', '1']), aggregator)

    assert result['count'] == 1
    assert result['degraded'] is False
    assert list(result['failedSources']) == ['broken']
    assert result['news'][0]['title'] == 'Claude 4 Released by Anthropic'
    assert 'isRelevant' in result['news'][0]
    json.dumps(result)


def test_category_top_and_stats_commands(aggregator) -> None:
    category = run_command(handle_args(['-c', 'business']), aggregator)
    assert [row['title'] for row in category['news']] == ['Anthropic raises funding']

    top = run_command(handle_args(['--top']), aggregator)
    assert top['top']['title'] == 'Claude 4 Released by Anthropic'

    stats = run_command(handle_args(['--stats']), aggregator)
    assert stats['total'] == 2
    assert set(stats) == {'total', 'byCategory', 'bySource', 'latestDate', 'oldestDate'}


def test_clear_cache_command(aggregator) -> None:
    aggregator.aggregate()
    assert run_command(handle_args(['--clear-cache']), aggregator) == {'cleared': True}
    assert aggregator.cache_store.load() is None


def test_main_prints_json(monkeypatch, capsys, aggregator) -> None:
    monkeypatch.setattr(main_module, 'configure_logging', lambda verbose=False, quiet=False: None)
    monkeypatch.setattr(main_module, 'Aggregator', lambda settings, registry: aggregator)

    main_module.main(['--top'])

    printed = json.loads(capsys.readouterr().out)
    assert printed['top']['title'] == 'Claude 4 Released by Anthropic'
