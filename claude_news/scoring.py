from __future__ import annotations

import re
from datetime import datetime

from .config import (
    DEFAULT_CATEGORY,
    DEFAULT_CREDIBILITY,
    FILTER_KEYWORDS,
    SOURCE_CREDIBILITY,
)
from .models import NewsItem, RawItem, Scores
from .utils import canonicalize_url, extract_domain, normalize_title, stable_id, truncate, utc_now


PRIMARY_KEYWORD_POINTS = 10
SECONDARY_KEYWORD_POINTS = 5
EXCLUSION_KEYWORD_POINTS = -20

RELEVANCE_WEIGHT = 3
CREDIBILITY_WEIGHT = 2
SOCIAL_WEIGHT = 0.1
RECENCY_WEIGHT = 1
RECENCY_MAX = 100.0

DEFAULT_RELEVANCE_THRESHOLD = 10
NEWS_DESCRIPTION_MAX_CHARS = 300

# First match wins.
CATEGORY_RULES = [
    ("changelog", re.compile(r"changelog|release|version|update \d|v\d")),
    ("business", re.compile(r"funding|valuation|raise|million|billion|revenue|ipo")),
    ("research", re.compile(r"paper|research|study|arxiv|findings")),
    ("tutorial", re.compile(r"tutorial|guide|how to|tips|workflow")),
    ("viral", re.compile(r"viral|trending|million views|going crazy|losing their minds")),
    ("product", re.compile(r"launch|announce|introducing|new feature|now available")),
]
COMMUNITY_SOURCE_PATTERN = re.compile(r"reddit|hacker news|community|developer")
OPINION_PATTERN = re.compile(r"opinion|analysis|think|believe|future")


def _keyword_hits(text: str, keywords: list[str]) -> int:
    lowered = text.lower()
    return sum(1 for keyword in keywords if keyword.lower() in lowered)


def relevance_score(title: str, description: str = "") -> float:
    text = f"{title} {description}"
    score = (
        _keyword_hits(text, FILTER_KEYWORDS["primary"]) * PRIMARY_KEYWORD_POINTS
        + _keyword_hits(text, FILTER_KEYWORDS["secondary"]) * SECONDARY_KEYWORD_POINTS
        + _keyword_hits(text, FILTER_KEYWORDS["exclusions"]) * EXCLUSION_KEYWORD_POINTS
    )
    return float(max(0, score))


def credibility_score(url: str, source_credibility: float | None = None) -> float:
    domain = extract_domain(url)
    if domain in SOURCE_CREDIBILITY:
        return float(SOURCE_CREDIBILITY[domain])
    if source_credibility is not None:
        return float(source_credibility)
    return float(DEFAULT_CREDIBILITY)


def social_score(item: RawItem) -> float:
    return item.points + item.score + item.num_comments * 2


def recency_score(published_at: datetime, now: datetime) -> float:
    age_hours = (now - published_at).total_seconds() / 3600
    return max(0.0, RECENCY_MAX - age_hours)


def total_score(relevance: float, credibility: float, social: float, recency: float) -> float:
    return (
        relevance * RELEVANCE_WEIGHT
        + credibility * CREDIBILITY_WEIGHT
        + social * SOCIAL_WEIGHT
        + recency * RECENCY_WEIGHT
    )


def score_item(item: RawItem, source_credibility: float | None = None, now: datetime | None = None) -> Scores:
    now = now or utc_now()
    relevance = relevance_score(item.title, item.description)
    credibility = credibility_score(item.link, source_credibility)
    social = social_score(item)
    recency = recency_score(item.published_at, now)
    return Scores(
        relevance=relevance,
        credibility=credibility,
        social=social,
        recency=recency,
        total=total_score(relevance, credibility, social, recency),
    )


def categorize_article(title: str, description: str = "", source_name: str = "", source_category: str = "") -> str:
    text = f"{title} {description}".lower()
    for slug, pattern in CATEGORY_RULES:
        if pattern.search(text):
            return slug
    if source_category == "community" or COMMUNITY_SOURCE_PATTERN.search(source_name.lower()):
        return "community"
    if OPINION_PATTERN.search(text):
        return "opinion"
    return DEFAULT_CATEGORY


def build_news_item(item: RawItem, scores: Scores, relevance_threshold: float = DEFAULT_RELEVANCE_THRESHOLD) -> NewsItem:
    url = canonicalize_url(item.link)
    category = categorize_article(item.title, item.description, item.source.name, item.source.category)
    return NewsItem(
        id=stable_id(normalize_title(item.title), url),
        title=item.title,
        description=truncate(item.description, NEWS_DESCRIPTION_MAX_CHARS),
        url=url,
        date=item.published_at.date().isoformat(),
        date_time=item.published_at,
        author=item.author,
        source=item.source.name,
        source_icon=item.source.icon or "📰",
        category=category,
        scores=scores,
        is_relevant=scores.relevance >= relevance_threshold,
    )
