##########################################################################################
#
# Script name: fetchers.py
#
# Description: Fetches feed payloads and normalizes RSS 2.0, Atom and RDF entries.
#
##########################################################################################

import logging
from datetime import datetime
from enum import Enum

import feedparser

from .errors import Error, ParseError, ParseErrorKind
from .http_client import HttpClient
from .models import RawItem
from .registry import FormatFamily, SourceDescriptor
from .utils import parse_datetime, strip_html, truncate, utc_now


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)
DESCRIPTION_MAX_CHARS = 500


class FeedFormat(Enum):
    RSS = 'rss'
    ATOM = 'atom'
    RDF = 'rdf'

    @property
    def family(self) -> FormatFamily:
        return FormatFamily(self.value)


# feedparser version prefixes, checked in this order.
FORMAT_VERSIONS = [
    (FeedFormat.RSS, ('rss20', 'rss094', 'rss093', 'rss092', 'rss091u', 'rss091n', 'rss091')),
    (FeedFormat.ATOM, ('atom10', 'atom03', 'atom02', 'atom01', 'atom')),
    (FeedFormat.RDF, ('rss10', 'rss090')),
]


# ****************************************************************************************
# Classes
# ****************************************************************************************


class FeedFetcher:
    '''
    Single logical GET of a feed URL. Retries live in the shared HttpClient.
    '''

    def __init__(self, client: HttpClient):
        self.client = client

    def fetch(self, url: str, timeout_ms: int | None = None) -> bytes:
        return self.client.get_bytes(url, timeout_ms=timeout_ms)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def detect_format(version: str) -> FeedFormat | None:
    for feed_format, versions in FORMAT_VERSIONS:
        if version in versions:
            return feed_format
    # feedparser reports bare 'rss' when a 0.9x/2.0 feed has no version attribute
    if version == 'rss':
        return FeedFormat.RSS
    return None


def _entry_text(entry, *keys: str) -> str:
    for key in keys:
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ''


def _entry_content(entry) -> str:
    for block in entry.get('content') or []:
        value = block.get('value')
        if value:
            return value
    return ''


def _entry_author(entry) -> str | None:
    author = _entry_text(entry, 'author')
    if not author:
        author = (entry.get('author_detail') or {}).get('name') or ''
    return author.strip() or None


def _entry_datetime(entry, *keys: str) -> datetime | None:
    for key in keys:
        parsed = parse_datetime(entry.get(key))
        if parsed is not None:
            return parsed
    return None


def _description(raw: str) -> str:
    return truncate(strip_html(raw), DESCRIPTION_MAX_CHARS)


def _map_rss_entry(entry) -> dict:
    link = _entry_text(entry, 'link')
    if not link:
        guid = _entry_text(entry, 'id', 'guid')
        link = guid if guid.startswith(('http://', 'https://')) else ''
    return {
        'title': _entry_text(entry, 'title'),
        'link': link,
        'description': _description(_entry_text(entry, 'summary', 'description') or _entry_content(entry)),
        'published_at': _entry_datetime(entry, 'published', 'updated'),
        'author': _entry_author(entry),
    }


def _atom_link(entry) -> str:
    links = [link for link in entry.get('links') or [] if link.get('href')]
    for link in links:
        if not link.get('rel') or link.get('rel') == 'alternate':
            return link['href']
    if links:
        return links[0]['href']
    return _entry_text(entry, 'link')


def _map_atom_entry(entry) -> dict:
    return {
        'title': _entry_text(entry, 'title'),
        'link': _atom_link(entry),
        'description': _description(_entry_text(entry, 'summary') or _entry_content(entry)),
        'published_at': _entry_datetime(entry, 'published', 'updated'),
        'author': _entry_author(entry),
    }


def _map_rdf_entry(entry) -> dict:
    return {
        'title': _entry_text(entry, 'title'),
        'link': _entry_text(entry, 'link'),
        'description': _description(_entry_text(entry, 'summary', 'description')),
        'published_at': _entry_datetime(entry, 'updated', 'published', 'created'),
        'author': _entry_author(entry),
    }


ENTRY_MAPPERS = {
    FeedFormat.RSS: _map_rss_entry,
    FeedFormat.ATOM: _map_atom_entry,
    FeedFormat.RDF: _map_rdf_entry,
}


def parse_feed(payload: bytes, source: SourceDescriptor, fetched_at: datetime | None = None) -> list[RawItem]:
    fetched_at = fetched_at or utc_now()
    try:
        parsed = feedparser.parse(payload)
    except Exception as exc:  # noqa: BLE001
        raise ParseError(ParseErrorKind.MALFORMED, str(exc)) from exc

    entries = parsed.get('entries') or []
    if parsed.get('bozo') and not entries:
        reason = parsed.get('bozo_exception') or 'unreadable document'
        raise ParseError(ParseErrorKind.MALFORMED, f'{source.name}: {reason}')

    feed_format = detect_format(parsed.get('version') or '')
    if feed_format is None:
        raise ParseError(ParseErrorKind.UNKNOWN_FORMAT, f'{source.name}: version={parsed.get("version")!r}')
    if parsed.get('bozo'):
        log.warning('Feed %s is malformed, keeping %d recovered entries: %s',
                    source.name, len(entries), parsed.get('bozo_exception'))
    if feed_format.family is not source.format_family:
        log.debug('Feed %s declared %s but parsed as %s.', source.name, source.format_family.value, feed_format.value)

    mapper = ENTRY_MAPPERS[feed_format]
    items: list[RawItem] = []
    for entry in entries:
        fields = mapper(entry)
        title = strip_html(fields['title'])
        link = fields['link']
        if not title or not link:
            continue
        items.append(
            RawItem(
                title=title,
                link=link,
                description=fields['description'],
                published_at=fields['published_at'] or fetched_at,
                author=fields['author'],
                source=source,
            )
        )
    if parsed.get('bozo') and not items:
        raise ParseError(
            ParseErrorKind.MALFORMED,
            f'{source.name}: no usable entries recovered ({parsed.get("bozo_exception")})',
        )
    log.debug('Parsed %d %s item(s) from %s', len(items), feed_format.value, source.name)
    return items


def fetch_feed_source(source: SourceDescriptor, fetcher: FeedFetcher, timeout_ms: int | None = None) -> list[RawItem]:
    if not source.url:
        raise Error(f'Feed source {source.key} has no url')
    payload = fetcher.fetch(source.url, timeout_ms=timeout_ms)
    return parse_feed(payload, source)
