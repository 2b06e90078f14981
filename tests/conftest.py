##########################################################################################
#
# Script name: conftest.py
#
# Description: Shared fakes and feed builders for the news pipeline tests.
#
##########################################################################################

from datetime import datetime, timezone
from email.utils import format_datetime

import pytest

from claude_news.errors import NetworkError, NetworkErrorKind
from claude_news.registry import FormatFamily, SourceDescriptor


class FakeHttpClient:
    '''
    Maps URL -> payload, exception, or callable(params) returning a payload.
    Unknown URLs fail with a refused connection.
    '''

    def __init__(self, routes: dict | None = None):
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, dict | None]] = []

    def _resolve(self, url: str, params: dict | None):
        self.calls.append((url, params))
        outcome = self.routes.get(url)
        if outcome is None:
            raise NetworkError(NetworkErrorKind.CONNECTION_REFUSED, url)
        if isinstance(outcome, Exception):
            raise outcome
        if callable(outcome):
            return outcome(params or {})
        return outcome

    def get_bytes(self, url, params=None, timeout_ms=None):
        return self._resolve(url, params)

    def get_json(self, url, params=None, timeout_ms=None):
        return self._resolve(url, params)


def rss_item(title: str, link: str, published: datetime, description: str = '') -> str:
    return (
        '<item>'
        f'<title>{title}</title>'
        f'<link>{link}</link>'
        f'<description><![CDATA[{description}]]></description>'
        f'<pubDate>{format_datetime(published)}</pubDate>'
        '</item>'
    )


def rss_feed(*items: str) -> bytes:
    body = ''.join(items)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel><title>Test Feed</title>'
        '<link>https://example.com/</link><description>Test</description>'
        f'{body}</channel></rss>'
    ).encode('utf-8')


def feed_source(key: str, url: str, name: str | None = None, category: str = 'tech_news') -> SourceDescriptor:
    return SourceDescriptor(
        key=key,
        name=name or key,
        format_family=FormatFamily.RSS,
        category=category,
        priority=2,
        icon='📰',
        url=url,
    )


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)
