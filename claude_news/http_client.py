##########################################################################################
#
# Script name: http_client.py
#
# Description: Shared HTTP layer with a single retry/backoff policy for feeds and APIs.
#
##########################################################################################

import json
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable

import requests
from urllib3.exceptions import HTTPError as TransportError
from urllib3.exceptions import ReadTimeoutError

from .config import Settings
from .errors import HttpError, NetworkError, NetworkErrorKind, ParseError, ParseErrorKind


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({408, 429, 500, 502, 503, 504})
CHUNK_SIZE = 16 * 1024


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay_ms: int = 1000
    backoff_multiplier: float = 2.0
    jitter: float = 0.2
    retry_statuses: frozenset = RETRYABLE_STATUSES

    @classmethod
    def from_settings(cls, settings: Settings) -> 'RetryPolicy':
        return cls(
            max_retries=settings.http_retries,
            base_delay_ms=settings.http_retry_delay_ms,
            backoff_multiplier=settings.http_backoff_multiplier,
            jitter=settings.http_jitter,
        )

    def should_retry_status(self, status: int) -> bool:
        return status in self.retry_statuses

    def delay_seconds(self, attempt: int) -> float:
        base = self.base_delay_ms / 1000.0 * (self.backoff_multiplier ** attempt)
        return base * (1.0 + random.uniform(0.0, self.jitter))


@dataclass(frozen=True)
class HttpResponse:
    url: str
    status: int
    body: bytes = b''

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


# ****************************************************************************************
# Classes
# ****************************************************************************************


class HttpClient:
    '''
    GET-only client shared by the feed fetcher and both API adapters.

    Each attempt gets one deadline covering connect, headers and the whole body.
    Network errors and retryable statuses are retried up to policy.max_retries
    extra attempts; any other non-2xx status fails immediately with HttpError.
    Each request goes through requests.get; no session is shared across threads.
    '''

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        timeout_ms: int = 10_000,
        user_agent: str = '',
        session=None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.policy = policy or RetryPolicy()
        self.timeout_ms = timeout_ms
        self.headers = {'User-Agent': user_agent} if user_agent else {}
        self.session = session or requests
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> 'HttpClient':
        return cls(
            policy=RetryPolicy.from_settings(settings),
            timeout_ms=settings.http_timeout_ms,
            user_agent=settings.user_agent,
        )

    def _timed_out(self, url: str, timeout_ms: int) -> NetworkError:
        return NetworkError(NetworkErrorKind.TIMEOUT, url, f'no complete response after {timeout_ms}ms')

    def _read_body(self, response, url: str, deadline: float, timeout_ms: int) -> bytes:
        chunks = []
        while True:
            if self._clock() > deadline:
                raise self._timed_out(url, timeout_ms)
            try:
                # read1 returns as soon as any bytes arrive
                chunk = response.raw.read1(CHUNK_SIZE, decode_content=True)
            except ReadTimeoutError as exc:
                raise self._timed_out(url, timeout_ms) from exc
            except TransportError as exc:
                raise NetworkError(NetworkErrorKind.OTHER, url, str(exc)) from exc
            if not chunk:
                return b''.join(chunks)
            chunks.append(chunk)

    def _send(self, url: str, params: dict | None, timeout_ms: int) -> HttpResponse:
        deadline = self._clock() + timeout_ms / 1000.0
        try:
            response = self.session.get(
                url,
                params=params,
                headers=self.headers,
                timeout=timeout_ms / 1000.0,
                stream=True,
            )
        except requests.Timeout as exc:
            raise self._timed_out(url, timeout_ms) from exc
        except requests.ConnectionError as exc:
            raise NetworkError(NetworkErrorKind.CONNECTION_REFUSED, url, str(exc)) from exc
        except requests.RequestException as exc:
            raise NetworkError(NetworkErrorKind.OTHER, url, str(exc)) from exc

        try:
            if not 200 <= response.status_code < 300:
                return HttpResponse(url, response.status_code)
            return HttpResponse(url, response.status_code, self._read_body(response, url, deadline, timeout_ms))
        finally:
            response.close()

    def get(self, url: str, params: dict | None = None, timeout_ms: int | None = None) -> HttpResponse:
        timeout_ms = timeout_ms or self.timeout_ms
        attempts = self.policy.max_retries + 1
        last_error: Exception | None = None
        for attempt in range(attempts):
            log.debug('HTTP GET %s (attempt %d/%d)', url, attempt + 1, attempts)
            try:
                response = self._send(url, params, timeout_ms)
            except NetworkError as exc:
                last_error = exc
                log.debug('%s', exc)
            else:
                if response.ok:
                    return response
                last_error = HttpError(response.status, url)
                if not self.policy.should_retry_status(response.status):
                    raise last_error
                log.debug('HTTP %s from %s is retryable.', response.status, url)
            if attempt < attempts - 1:
                delay = self.policy.delay_seconds(attempt)
                log.debug('Waiting %.2fs before retrying %s', delay, url)
                self._sleep(delay)
        raise last_error

    def get_bytes(self, url: str, params: dict | None = None, timeout_ms: int | None = None) -> bytes:
        return self.get(url, params=params, timeout_ms=timeout_ms).body

    def get_json(self, url: str, params: dict | None = None, timeout_ms: int | None = None) -> Any:
        body = self.get(url, params=params, timeout_ms=timeout_ms).body
        try:
            return json.loads(body)
        except ValueError as exc:
            raise ParseError(ParseErrorKind.MALFORMED, f'invalid JSON from {url}') from exc
