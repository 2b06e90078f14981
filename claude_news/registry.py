##########################################################################################
#
# Script name: registry.py
#
# Description: Source registry for feeds and JSON APIs, built-in or loaded from YAML.
#
##########################################################################################

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

import yaml


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)


class FormatFamily(Enum):
    RSS = 'rss'
    ATOM = 'atom'
    RDF = 'rdf'
    SEARCH_API = 'search'
    LISTING_API = 'listing'

    @property
    def is_feed(self) -> bool:
        return self in (FormatFamily.RSS, FormatFamily.ATOM, FormatFamily.RDF)


@dataclass(frozen=True)
class SourceDescriptor:
    key: str
    name: str
    format_family: FormatFamily
    category: str
    priority: int = 1
    icon: str = '📰'
    credibility_hint: float | None = None
    url: str = ''
    base_url: str = ''
    search_endpoint: str = ''
    queries: tuple[str, ...] = field(default_factory=tuple)
    endpoints: tuple[str, ...] = field(default_factory=tuple)


def _feed(key: str, name: str, url: str, category: str, priority: int, icon: str,
          family: FormatFamily = FormatFamily.RSS) -> SourceDescriptor:
    return SourceDescriptor(
        key=key, name=name, format_family=family, category=category,
        priority=priority, icon=icon, url=url,
    )


OLSHANSK_FEEDS = 'https://raw.githubusercontent.com/Olshansk/rss-feeds/main/feeds'

DEFAULT_SOURCES = [
    _feed('anthropic_news', 'Anthropic News', f'{OLSHANSK_FEEDS}/feed_anthropic_news.xml', 'official', 1, '🏢'),
    _feed('anthropic_engineering', 'Anthropic Engineering', f'{OLSHANSK_FEEDS}/feed_anthropic_engineering.xml',
          'official', 1, '⚙️'),
    _feed('anthropic_research', 'Anthropic Research', f'{OLSHANSK_FEEDS}/feed_anthropic_research.xml',
          'official', 1, '🔬'),
    _feed('claude_code_changelog', 'Claude Code Changelog',
          f'{OLSHANSK_FEEDS}/feed_anthropic_changelog_claude_code.xml', 'official', 1, '📋'),
    _feed('techcrunch_ai', 'TechCrunch AI', 'https://techcrunch.com/category/artificial-intelligence/feed/',
          'tech_news', 2, '📰'),
    _feed('verge_ai', 'The Verge AI', 'https://www.theverge.com/rss/ai-artificial-intelligence/index.xml',
          'tech_news', 2, '📱', FormatFamily.ATOM),
    _feed('arstechnica_ai', 'Ars Technica AI', 'https://arstechnica.com/ai/feed/', 'tech_news', 2, '🖥️'),
    _feed('venturebeat_ai', 'VentureBeat AI', 'https://venturebeat.com/category/ai/feed/', 'tech_news', 2, '💼'),
    _feed('wired_ai', 'WIRED AI', 'https://www.wired.com/feed/tag/ai/latest/rss', 'tech_news', 3, '🔌'),
    _feed('mit_tech_review', 'MIT Technology Review', 'https://www.technologyreview.com/feed/',
          'tech_news', 3, '🎓'),
    SourceDescriptor(
        key='hacker_news',
        name='Hacker News',
        format_family=FormatFamily.SEARCH_API,
        category='community',
        priority=1,
        icon='🟠',
        base_url='https://hn.algolia.com/api/v1',
        search_endpoint='/search_by_date',
        queries=('anthropic', 'claude ai', 'claude code', 'claude sonnet', 'claude opus'),
    ),
    SourceDescriptor(
        key='reddit_claudeai',
        name='r/ClaudeAI',
        format_family=FormatFamily.LISTING_API,
        category='community',
        priority=2,
        icon='🔴',
        base_url='https://www.reddit.com/r/ClaudeAI',
        endpoints=('/hot.json', '/new.json', '/top.json'),
    ),
    SourceDescriptor(
        key='reddit_anthropic',
        name='r/Anthropic',
        format_family=FormatFamily.LISTING_API,
        category='community',
        priority=3,
        icon='🔴',
        base_url='https://www.reddit.com/r/Anthropic',
        endpoints=('/hot.json', '/new.json'),
    ),
]

FEED_FORMATS = {
    'rss': FormatFamily.RSS,
    'atom': FormatFamily.ATOM,
    'rdf': FormatFamily.RDF,
}
API_TYPES = {
    'search': FormatFamily.SEARCH_API,
    'listing': FormatFamily.LISTING_API,
}


# ****************************************************************************************
# Classes
# ****************************************************************************************


class SourceRegistry:
    def __init__(self, sources: list[SourceDescriptor]):
        self._sources: dict[str, SourceDescriptor] = {}
        for source in sources:
            if source.key in self._sources:
                raise ValueError(f'Duplicate source key: {source.key}')
            self._sources[source.key] = source

    def __iter__(self):
        return iter(self._sources.values())

    def __len__(self) -> int:
        return len(self._sources)

    def get(self, key: str) -> SourceDescriptor | None:
        return self._sources.get(key)

    def sources_of(self, family: FormatFamily) -> list[SourceDescriptor]:
        return [source for source in self._sources.values() if source.format_family is family]

    def feed_sources(self) -> list[SourceDescriptor]:
        return [source for source in self._sources.values() if source.format_family.is_feed]


# ****************************************************************************************
# Functions
# ****************************************************************************************


def default_registry() -> SourceRegistry:
    return SourceRegistry(DEFAULT_SOURCES)


def _registry_key(value: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '_', value.lower()).strip('_')
    return slug or 'source'


def _string_list(entry: dict, key: str, name: str) -> tuple[str, ...]:
    values = entry.get(key) or []
    if not isinstance(values, list) or not all(isinstance(value, str) and value for value in values):
        raise ValueError(f'Source "{name}": "{key}" must be a list of non-empty strings')
    return tuple(values)


def _credibility(entry: dict, name: str) -> float | None:
    value = entry.get('credibility')
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f'Source "{name}": credibility must be a number') from None


def _build_feed_source(entry: dict) -> SourceDescriptor:
    if not isinstance(entry, dict):
        raise ValueError(f'Feed source entry must be a mapping: {entry!r}')
    name = entry.get('name')
    url = entry.get('url')
    if not name or not url:
        raise ValueError(f'Feed source requires "name" and "url": {entry}')
    fmt = str(entry.get('format') or 'rss').lower()
    if fmt not in FEED_FORMATS:
        raise ValueError(f'Feed source "{name}": unknown format "{fmt}"')
    return SourceDescriptor(
        key=entry.get('key') or _registry_key(name),
        name=name,
        format_family=FEED_FORMATS[fmt],
        category=entry.get('category') or 'tech_news',
        priority=int(entry.get('priority', 2)),
        icon=entry.get('icon') or '📰',
        credibility_hint=_credibility(entry, name),
        url=url,
    )


def _build_api_source(entry: dict) -> SourceDescriptor:
    if not isinstance(entry, dict):
        raise ValueError(f'API source entry must be a mapping: {entry!r}')
    name = entry.get('name')
    base_url = entry.get('base_url')
    if not name or not base_url:
        raise ValueError(f'API source requires "name" and "base_url": {entry}')
    api_type = str(entry.get('type') or '').lower()
    if api_type not in API_TYPES:
        raise ValueError(f'API source "{name}": type must be "search" or "listing"')
    family = API_TYPES[api_type]
    queries = _string_list(entry, 'queries', name) if family is FormatFamily.SEARCH_API else ()
    endpoints = _string_list(entry, 'endpoints', name) if family is FormatFamily.LISTING_API else ()
    if family is FormatFamily.SEARCH_API and not queries:
        raise ValueError(f'Search source "{name}" needs at least one query')
    if family is FormatFamily.LISTING_API and not endpoints:
        raise ValueError(f'Listing source "{name}" needs at least one endpoint')
    return SourceDescriptor(
        key=entry.get('key') or _registry_key(name),
        name=name,
        format_family=family,
        category=entry.get('category') or 'community',
        priority=int(entry.get('priority', 2)),
        icon=entry.get('icon') or '📰',
        credibility_hint=_credibility(entry, name),
        base_url=base_url.rstrip('/'),
        search_endpoint=entry.get('search_endpoint') or '/search_by_date',
        queries=queries,
        endpoints=endpoints,
    )


def load_registry(path: str) -> SourceRegistry:
    with open(path, 'r', encoding='utf-8') as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError(f'{path} must contain a mapping')
    feeds = payload.get('feeds', [])
    apis = payload.get('apis', [])
    if not isinstance(feeds, list):
        raise ValueError('registry.feeds must be a list')
    if not isinstance(apis, list):
        raise ValueError('registry.apis must be a list')
    sources = [_build_feed_source(entry) for entry in feeds]
    sources.extend(_build_api_source(entry) for entry in apis)
    log.info('Loaded %d feed source(s) and %d API source(s) from %s.', len(feeds), len(apis), path)
    return SourceRegistry(sources)
