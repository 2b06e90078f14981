##########################################################################################
#
# Script name: adapters.py
#
# Description: Hacker News search and Reddit listing adapters with concurrent sub-requests.
#
##########################################################################################

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

from .errors import Error
from .http_client import HttpClient
from .models import RawItem
from .registry import SourceDescriptor
from .utils import parse_datetime, strip_html, truncate, utc_now


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)
DESCRIPTION_MAX_CHARS = 500
HN_ITEM_URL = 'https://news.ycombinator.com/item?id={}'
REDDIT_BASE_URL = 'https://reddit.com'


@dataclass(frozen=True)
class SubRequest:
    source: SourceDescriptor
    url: str
    params: dict
    label: str


# ****************************************************************************************
# Classes
# ****************************************************************************************


class ApiAdapter:
    '''
    Base for adapters that issue several independent requests and merge the results.

    Every sub-request is resolved on its own; failures are logged and dropped,
    successes are merged and deduplicated by the source-native id. When every
    sub-request fails the last error is raised so the caller can account for it.
    '''

    key = 'api'
    name = 'api'

    def __init__(self, sources: list[SourceDescriptor], client: HttpClient, timeout_ms: int | None = None):
        self.sources = list(sources)
        self.client = client
        self.timeout_ms = timeout_ms

    def build_requests(self) -> list[SubRequest]:
        raise NotImplementedError

    def parse_response(self, request: SubRequest, payload) -> list[RawItem]:
        raise NotImplementedError

    def _run(self, request: SubRequest) -> list[RawItem]:
        payload = self.client.get_json(request.url, params=request.params, timeout_ms=self.timeout_ms)
        return self.parse_response(request, payload)

    def fetch_all(self) -> list[RawItem]:
        requests_ = self.build_requests()
        if not requests_:
            return []

        results: dict[int, list[RawItem]] = {}
        last_error: Exception | None = None
        with ThreadPoolExecutor(max_workers=len(requests_)) as executor:
            futures = {executor.submit(self._run, request): idx for idx, request in enumerate(requests_)}
            for future in as_completed(futures):
                idx = futures[future]
                request = requests_[idx]
                try:
                    results[idx] = future.result()
                except Error as exc:
                    last_error = exc
                    log.warning('%s %s failed: %s', self.name, request.label, exc)
                except Exception as exc:  # noqa: BLE001
                    last_error = exc
                    log.exception('%s %s failed unexpectedly: %s', self.name, request.label, exc)

        if not results and last_error is not None:
            raise last_error

        merged: list[RawItem] = []
        seen_ids: set[str] = set()
        # request order, not completion order, so output is deterministic
        for idx in sorted(results):
            for item in results[idx]:
                key = f'{item.source.key}:{item.native_id or item.link}'
                if key in seen_ids:
                    continue
                seen_ids.add(key)
                merged.append(item)
        log.debug('%s fetched %d item(s) from %d/%d request(s)', self.name, len(merged), len(results), len(requests_))
        return merged


class SearchApiAdapter(ApiAdapter):
    '''
    Hacker News Algolia search: one request per configured query term.
    '''

    key = 'search_api'
    name = 'Hacker News'

    def __init__(self, sources, client, timeout_ms=None, hits_per_page: int = 30):
        super().__init__(sources, client, timeout_ms)
        self.hits_per_page = hits_per_page

    def build_requests(self) -> list[SubRequest]:
        requests_ = []
        for source in self.sources:
            url = f'{source.base_url}{source.search_endpoint}'
            for query in source.queries:
                params = {'query': query, 'tags': 'story', 'hitsPerPage': self.hits_per_page}
                requests_.append(SubRequest(source, url, params, f'query "{query}"'))
        return requests_

    def parse_response(self, request: SubRequest, payload) -> list[RawItem]:
        hits = payload.get('hits') if isinstance(payload, dict) else None
        items: list[RawItem] = []
        for hit in hits or []:
            if not isinstance(hit, dict):
                continue
            object_id = str(hit.get('objectID') or '').strip()
            title = strip_html(hit.get('title') or hit.get('story_title') or '')
            if not object_id or not title:
                continue
            published_at = parse_datetime(hit.get('created_at')) or parse_datetime(hit.get('created_at_i'))
            items.append(
                RawItem(
                    title=title,
                    link=(hit.get('url') or '').strip() or HN_ITEM_URL.format(object_id),
                    description=truncate(strip_html(hit.get('story_text') or ''), DESCRIPTION_MAX_CHARS),
                    published_at=published_at or utc_now(),
                    author=hit.get('author'),
                    source=request.source,
                    native_id=object_id,
                    points=float(hit.get('points') or 0),
                    num_comments=float(hit.get('num_comments') or 0),
                )
            )
        return items


class ListingApiAdapter(ApiAdapter):
    '''
    Reddit JSON listings: one request per configured endpoint of every listing source.
    '''

    key = 'listing_api'
    name = 'Reddit'

    def __init__(self, sources, client, timeout_ms=None, limit: int = 50):
        super().__init__(sources, client, timeout_ms)
        self.limit = limit

    def build_requests(self) -> list[SubRequest]:
        requests_ = []
        for source in self.sources:
            for endpoint in source.endpoints:
                url = f'{source.base_url}{endpoint}'
                requests_.append(SubRequest(source, url, {'limit': self.limit}, f'{source.name}{endpoint}'))
        return requests_

    def parse_response(self, request: SubRequest, payload) -> list[RawItem]:
        data = payload.get('data') if isinstance(payload, dict) else None
        children = (data or {}).get('children') or []
        items: list[RawItem] = []
        for child in children:
            post = child.get('data') if isinstance(child, dict) else None
            if not isinstance(post, dict):
                continue
            post_id = str(post.get('id') or '').strip()
            title = strip_html(post.get('title') or '')
            if not post_id or not title:
                continue
            url = (post.get('url') or '').strip()
            if not url.startswith('http'):
                url = f'{REDDIT_BASE_URL}{post.get("permalink") or ""}'
            items.append(
                RawItem(
                    title=title,
                    link=url,
                    description=truncate(strip_html(post.get('selftext') or ''), DESCRIPTION_MAX_CHARS),
                    published_at=parse_datetime(post.get('created_utc')) or utc_now(),
                    author=post.get('author'),
                    source=request.source,
                    native_id=post_id,
                    score=float(post.get('score') or 0),
                    num_comments=float(post.get('num_comments') or 0),
                )
            )
        return items
