'''Classified failures and advisory diagnostics for a data source read.'''

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    CONFIGURATION = 'configuration'
    TRANSPORT_FAILURE = 'transport_failure'
    HTTP_STATUS_ERROR = 'http_status_error'
    BODY_DECODE_WARNING = 'body_decode_warning'


class FetchError(Exception):
    '''
    Base for every fatal failure of one read. Carries a kind and a detail
    (status code, or the underlying cause).
    '''

    kind: ErrorKind

    def __init__(self, message: str, detail: object = None) -> None:
        super().__init__(message)
        self.detail = detail


class ConfigurationError(FetchError):
    '''Declared inputs are invalid. Raised before any request is sent.'''

    kind = ErrorKind.CONFIGURATION


class TransportFailure(FetchError):
    '''DNS, connect, TLS or read failure, or the deadline expired.'''

    kind = ErrorKind.TRANSPORT_FAILURE


class HTTPStatusError(FetchError):
    '''
    Response status outside [200, 300). The message is always
    "HTTP request error. Response code: <code>."
    '''

    kind = ErrorKind.HTTP_STATUS_ERROR

    def __init__(self, status_code: int) -> None:
        super().__init__(f'HTTP request error. Response code: {status_code}.', detail=status_code)
        self.status_code = status_code


@dataclass(frozen=True)
class Diagnostic:
    '''Non-fatal note attached to a successful result.'''

    kind: ErrorKind
    summary: str
    detail: str = ''
