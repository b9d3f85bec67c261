'''Read-only http data source: fetch a URL, expose body and response headers.'''

from httpdata.config import Settings
from httpdata.datasource import fetch, fetch_blocking
from httpdata.errors import (
    ConfigurationError,
    Diagnostic,
    ErrorKind,
    FetchError,
    HTTPStatusError,
    TransportFailure,
)
from httpdata.request import DataSourceConfig, Request, build_request
from httpdata.result import Result, flatten_headers
from httpdata.transport import RawResponse, create_client, execute
from httpdata.validate import ContentType, check_content_type, check_status, parse_content_type

__all__ = [
    'ConfigurationError',
    'ContentType',
    'DataSourceConfig',
    'Diagnostic',
    'ErrorKind',
    'FetchError',
    'HTTPStatusError',
    'RawResponse',
    'Request',
    'Result',
    'Settings',
    'TransportFailure',
    'build_request',
    'check_content_type',
    'check_status',
    'create_client',
    'execute',
    'fetch',
    'fetch_blocking',
    'flatten_headers',
    'parse_content_type',
]
