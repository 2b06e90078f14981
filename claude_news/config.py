##########################################################################################
#
# Script name: config.py
#
# Description: Runtime settings, keyword tables, host credibility and news categories.
#
##########################################################################################

import logging
import os
from dataclasses import dataclass, fields, replace

import yaml


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

USER_AGENT = 'claude-news-feed/1.0 (+https://github.com/)'
DAY_MS = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class Settings:
    http_retries: int = 3
    http_timeout_ms: int = 10_000
    http_retry_delay_ms: int = 1_000
    http_backoff_multiplier: float = 2.0
    http_jitter: float = 0.2
    cache_ttl_ms: int = 2 * 60 * 60 * 1000
    recency_window_ms: int = 14 * DAY_MS
    similarity_threshold: float = 0.8
    relevance_threshold: int = 10
    default_limit: int = 20
    hn_hits_per_page: int = 30
    reddit_limit: int = 50
    cache_file: str = '.cache/aggregated-news.json'
    user_agent: str = USER_AGENT


# YAML section -> {yaml key: settings field}
YAML_KEYS = {
    'http': {
        'retries': 'http_retries',
        'timeout_ms': 'http_timeout_ms',
        'retry_delay_ms': 'http_retry_delay_ms',
        'backoff_multiplier': 'http_backoff_multiplier',
        'jitter': 'http_jitter',
        'user_agent': 'user_agent',
    },
    'news': {
        'recency_window_ms': 'recency_window_ms',
        'similarity_threshold': 'similarity_threshold',
        'relevance_threshold': 'relevance_threshold',
        'default_limit': 'default_limit',
        'hn_hits_per_page': 'hn_hits_per_page',
        'reddit_limit': 'reddit_limit',
    },
    'cache': {
        'ttl_ms': 'cache_ttl_ms',
        'file': 'cache_file',
    },
}

ENV_KEYS = {
    'HTTP_RETRIES': 'http_retries',
    'HTTP_TIMEOUT': 'http_timeout_ms',
    'HTTP_RETRY_DELAY': 'http_retry_delay_ms',
    'HTTP_BACKOFF_MULTIPLIER': 'http_backoff_multiplier',
    'NEWS_CACHE_TTL': 'cache_ttl_ms',
    'NEWS_RECENCY_WINDOW': 'recency_window_ms',
    'NEWS_SIMILARITY_THRESHOLD': 'similarity_threshold',
    'NEWS_RELEVANCE_THRESHOLD': 'relevance_threshold',
    'NEWS_DEFAULT_LIMIT': 'default_limit',
    'NEWS_HN_HITS_PER_PAGE': 'hn_hits_per_page',
    'NEWS_REDDIT_LIMIT': 'reddit_limit',
    'NEWS_CACHE_FILE': 'cache_file',
}

FILTER_KEYWORDS = {
    'primary': [
        'anthropic',
        'claude',
        'claude code',
        'claude ai',
        'claude sonnet',
        'claude opus',
        'claude haiku',
    ],
    'secondary': [
        'mcp',
        'model context protocol',
        'constitutional ai',
        'claude.ai',
        'dario amodei',
        'daniela amodei',
        'boris cherny',
        'vibe coding',
        'claude cowork',
    ],
    'exclusions': [
        'chatgpt only',
        'openai exclusive',
        'gemini only',
    ],
}

SOURCE_CREDIBILITY = {
    'anthropic.com': 10,
    'techcrunch.com': 9,
    'theverge.com': 8,
    'venturebeat.com': 8,
    'wired.com': 8,
    'arstechnica.com': 8,
    'technologyreview.com': 9,
    'axios.com': 8,
    'cnbc.com': 7,
    'bloomberg.com': 9,
    'news.ycombinator.com': 7,
    'reddit.com': 6,
    'medium.com': 5,
    'dev.to': 6,
    'github.com': 8,
}
DEFAULT_CREDIBILITY = 5


@dataclass(frozen=True)
class Category:
    slug: str
    label: str
    icon: str
    description: str


CATEGORIES = [
    Category('product', 'Product', '🚀', 'New features, updates, and launches'),
    Category('research', 'Research', '🔬', 'Papers, studies, and technical advances'),
    Category('business', 'Business', '💰', 'Funding, partnerships, and enterprise'),
    Category('viral', 'Viral', '🔥', 'Trending stories and social buzz'),
    Category('community', 'Community', '👥', 'Developer stories and user content'),
    Category('tutorial', 'Tutorial', '📚', 'Guides, tips, and how-tos'),
    Category('opinion', 'Opinion', '💭', 'Analysis and commentary'),
    Category('changelog', 'Changelog', '📋', 'Version updates and release notes'),
]

CATEGORY_BY_SLUG = {category.slug: category for category in CATEGORIES}
DEFAULT_CATEGORY = 'product'


# ****************************************************************************************
# Functions
# ****************************************************************************************


def _coerce(field_name: str, value) -> int | float | str:
    default = getattr(Settings(), field_name)
    if isinstance(default, int):
        return int(float(value))
    if isinstance(default, float):
        return float(value)
    return str(value)


def validate_settings(settings: Settings) -> Settings:
    errors = []
    if settings.http_retries < 0:
        errors.append(f'http_retries must be >= 0, got {settings.http_retries}')
    if settings.http_timeout_ms < 1000:
        errors.append(f'http_timeout_ms must be >= 1000, got {settings.http_timeout_ms}')
    if settings.cache_ttl_ms < 60 * 1000:
        errors.append(f'cache_ttl_ms must be >= 60000, got {settings.cache_ttl_ms}')
    if not 0 <= settings.similarity_threshold <= 1:
        errors.append(f'similarity_threshold must be 0-1, got {settings.similarity_threshold}')
    if settings.recency_window_ms <= 0:
        errors.append(f'recency_window_ms must be positive, got {settings.recency_window_ms}')
    if errors:
        raise ValueError('Invalid settings: ' + '; '.join(errors))
    return settings


def _yaml_overrides(path: str) -> dict:
    with open(path, 'r', encoding='utf-8') as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError(f'{path} must contain a mapping')
    overrides = {}
    for section, mapping in YAML_KEYS.items():
        block = payload.get(section) or {}
        if not isinstance(block, dict):
            raise ValueError(f'{path}: "{section}" must be a mapping')
        for key, field_name in mapping.items():
            if key in block and block[key] is not None:
                overrides[field_name] = _coerce(field_name, block[key])
    return overrides


def _env_overrides(environ) -> dict:
    overrides = {}
    for env_key, field_name in ENV_KEYS.items():
        value = environ.get(env_key)
        if value in (None, ''):
            continue
        try:
            overrides[field_name] = _coerce(field_name, value)
        except ValueError:
            log.warning('Ignoring invalid %s=%r', env_key, value)
    return overrides


def load_settings(path: str | None = None, environ=None) -> Settings:
    '''
    Build Settings from defaults, then an optional YAML file, then the environment.
    '''
    environ = os.environ if environ is None else environ
    overrides: dict = {}
    if path:
        overrides.update(_yaml_overrides(path))
    overrides.update(_env_overrides(environ))
    known = {field.name for field in fields(Settings)}
    settings = replace(Settings(), **{key: value for key, value in overrides.items() if key in known})
    return validate_settings(settings)
