##########################################################################################
#
# Script name: errors.py
#
# Description: Error taxonomy shared by the fetch, parse and cache layers.
#
##########################################################################################

from enum import Enum


# ****************************************************************************************
# Exceptions
# ****************************************************************************************


class NetworkErrorKind(Enum):
    TIMEOUT = 'timeout'
    CONNECTION_REFUSED = 'connection-refused'
    OTHER = 'other'


class ParseErrorKind(Enum):
    UNKNOWN_FORMAT = 'unknown-format'
    MALFORMED = 'malformed'


class CacheErrorKind(Enum):
    READ_FAILURE = 'read-failure'
    WRITE_FAILURE = 'write-failure'


class Error(Exception):
    '''
    Base class for exceptions in this package.
    '''
    pass


class NetworkError(Error):
    '''
    The request never produced an HTTP response (timeout, refused connection, ...).
    '''
    def __init__(self, kind: NetworkErrorKind, url: str = '', detail: str = ''):
        self.kind = kind
        self.url = url
        self.detail = detail
        self.message = f'Network error ({kind.value}) fetching {url or "<unknown>"}'
        if detail:
            self.message += f': {detail}'
        super().__init__(self.message)


class HttpError(Error):
    '''
    The server answered with a non-2xx status.
    '''
    def __init__(self, status: int, url: str = ''):
        self.status = status
        self.url = url
        self.message = f'HTTP {status} from {url or "<unknown>"}'
        super().__init__(self.message)


class ParseError(Error):
    def __init__(self, kind: ParseErrorKind, detail: str = ''):
        self.kind = kind
        self.detail = detail
        self.message = f'Parse error ({kind.value})'
        if detail:
            self.message += f': {detail}'
        super().__init__(self.message)


class CacheError(Error):
    def __init__(self, kind: CacheErrorKind, path: str = '', detail: str = ''):
        self.kind = kind
        self.path = path
        self.detail = detail
        self.message = f'Cache {kind.value} for {path or "<memory>"}'
        if detail:
            self.message += f': {detail}'
        super().__init__(self.message)
