from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from .registry import SourceDescriptor


@dataclass
class RawItem:
    title: str
    link: str
    description: str
    published_at: datetime
    source: SourceDescriptor
    author: str | None = None
    native_id: str | None = None
    points: float = 0.0
    score: float = 0.0
    num_comments: float = 0.0


@dataclass
class Scores:
    relevance: float = 0.0
    credibility: float = 0.0
    social: float = 0.0
    recency: float = 0.0
    total: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "relevance": self.relevance,
            "credibility": self.credibility,
            "social": self.social,
            "recency": self.recency,
            "total": self.total,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> Scores:
        return cls(**{key: float(payload.get(key, 0.0)) for key in cls().to_dict()})


@dataclass
class NewsItem:
    id: str
    title: str
    description: str
    url: str
    date: str
    date_time: datetime
    source: str
    source_icon: str
    category: str
    scores: Scores = field(default_factory=Scores)
    is_relevant: bool = False
    author: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "date": self.date,
            "dateTime": self.date_time.isoformat(),
            "author": self.author,
            "source": self.source,
            "sourceIcon": self.source_icon,
            "category": self.category,
            "scores": self.scores.to_dict(),
            "isRelevant": self.is_relevant,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> NewsItem:
        date_time = datetime.fromisoformat(payload["dateTime"])
        if date_time.tzinfo is None:
            date_time = date_time.replace(tzinfo=timezone.utc)
        return cls(
            id=payload["id"],
            title=payload["title"],
            description=payload.get("description", ""),
            url=payload["url"],
            date=payload.get("date") or date_time.date().isoformat(),
            date_time=date_time,
            author=payload.get("author"),
            source=payload.get("source", ""),
            source_icon=payload.get("sourceIcon", ""),
            category=payload.get("category", ""),
            scores=Scores.from_dict(payload.get("scores") or {}),
            is_relevant=bool(payload.get("isRelevant", False)),
        )


@dataclass
class CacheRecord:
    timestamp: int
    fetched_at: str
    items: list[NewsItem]

    @property
    def count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "fetchedAt": self.fetched_at,
            "count": self.count,
            "news": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, payload: dict) -> CacheRecord:
        return cls(
            timestamp=int(payload["timestamp"]),
            fetched_at=str(payload.get("fetchedAt", "")),
            items=[NewsItem.from_dict(row) for row in payload.get("news", [])],
        )


@dataclass
class FetchReport:
    succeeded: dict[str, int] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)
    from_cache: bool = False

    @property
    def degraded(self) -> bool:
        return not self.from_cache and not self.succeeded


@dataclass
class NewsStats:
    total: int
    by_category: dict[str, int]
    by_source: dict[str, int]
    latest_date: str | None
    oldest_date: str | None

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "byCategory": self.by_category,
            "bySource": self.by_source,
            "latestDate": self.latest_date,
            "oldestDate": self.oldest_date,
        }
