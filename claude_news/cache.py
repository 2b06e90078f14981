##########################################################################################
#
# Script name: cache.py
#
# Description: TTL-bounded cache-aside storage for the ranked news list.
#
##########################################################################################

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

from .errors import CacheError, CacheErrorKind
from .models import CacheRecord, NewsItem
from .utils import epoch_ms, utc_now_iso


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)
DEFAULT_TTL_MS = 2 * 60 * 60 * 1000


# ****************************************************************************************
# Classes
# ****************************************************************************************


class CacheStore(ABC):
    '''
    Cache-aside store for one ranked result set. Failures are logged, never raised.
    '''

    def __init__(self, ttl_ms: int = DEFAULT_TTL_MS, clock: Callable[[], int] = epoch_ms):
        self.ttl_ms = ttl_ms
        self._clock = clock

    def is_fresh(self, record: CacheRecord) -> bool:
        return self._clock() - record.timestamp <= self.ttl_ms

    def build_record(self, items: list[NewsItem]) -> CacheRecord:
        return CacheRecord(timestamp=self._clock(), fetched_at=utc_now_iso(), items=list(items))

    @abstractmethod
    def load(self) -> CacheRecord | None:
        ...

    @abstractmethod
    def save(self, items: list[NewsItem]) -> None:
        ...

    @abstractmethod
    def clear(self) -> bool:
        ...


class MemoryCacheStore(CacheStore):
    def __init__(self, ttl_ms: int = DEFAULT_TTL_MS, clock: Callable[[], int] = epoch_ms):
        super().__init__(ttl_ms, clock)
        self.record: CacheRecord | None = None

    def load(self) -> CacheRecord | None:
        if self.record is None or not self.is_fresh(self.record):
            return None
        return self.record

    def save(self, items: list[NewsItem]) -> None:
        self.record = self.build_record(items)

    def clear(self) -> bool:
        self.record = None
        return True


class FileCacheStore(CacheStore):
    def __init__(self, path: str | Path, ttl_ms: int = DEFAULT_TTL_MS, clock: Callable[[], int] = epoch_ms):
        super().__init__(ttl_ms, clock)
        self.path = Path(path)

    def _read(self) -> CacheRecord:
        try:
            with self.path.open('r', encoding='utf-8') as handle:
                payload = json.load(handle)
            return CacheRecord.from_dict(payload)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise CacheError(CacheErrorKind.READ_FAILURE, str(self.path), str(exc)) from exc

    def load(self) -> CacheRecord | None:
        if not self.path.exists():
            return None
        try:
            record = self._read()
        except CacheError as exc:
            log.warning('%s', exc)
            return None
        if not self.is_fresh(record):
            log.debug('Cache at %s expired (%d ms old).', self.path, self._clock() - record.timestamp)
            return None
        return record

    def save(self, items: list[NewsItem]) -> None:
        record = self.build_record(items)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(record.to_dict(), ensure_ascii=True, indent=2), encoding='utf-8')
        except (OSError, TypeError, ValueError) as exc:
            log.warning('%s', CacheError(CacheErrorKind.WRITE_FAILURE, str(self.path), str(exc)))
            return
        log.debug('Cached %d item(s) at %s', record.count, self.path)

    def clear(self) -> bool:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            log.warning('Failed removing cache %s: %s', self.path, exc)
            return False
        return True
