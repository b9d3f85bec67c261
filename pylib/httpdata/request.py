'''
Request building: turn declared data source inputs into an outbound request.

No network I/O happens here. Every failure is a ConfigurationError raised
before anything is sent.
'''

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from httpdata.errors import ConfigurationError
from httpdata.validate import TOKEN

ALLOWED_METHODS = ('GET', 'POST')
DEFAULT_METHOD = 'GET'

CONFIG_KEYS = ('url', 'request_method', 'request_headers', 'request_body')

_HEADER_NAME = re.compile(rf'^{TOKEN}$')
_FORBIDDEN_IN_VALUE = ('\r', '\n', '\0')


@dataclass
class DataSourceConfig:
    '''Declared inputs of the data source, as resolved by the host.'''

    url: str
    request_method: str | None = None
    request_headers: Mapping[str, str] | None = None
    request_body: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DataSourceConfig:
        '''Build from a plain mapping (e.g. parsed JSON). Unknown keys are rejected.'''
        unknown = sorted(set(data) - set(CONFIG_KEYS))
        if unknown:
            raise ConfigurationError(f'Unsupported argument(s): {", ".join(unknown)}', detail=unknown)
        if 'url' not in data:
            raise ConfigurationError('The argument "url" is required', detail='url')
        return cls(**{k: data[k] for k in CONFIG_KEYS if k in data})


@dataclass
class Request:
    '''An outbound request, validated and ready to send.'''

    url: httpx.URL
    method: str = DEFAULT_METHOD
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: bytes | None = None


def _validate_url(url: object) -> httpx.URL:
    if not isinstance(url, str) or not url.strip():
        raise ConfigurationError('url must be a non-empty string', detail=url)
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f'url is not a valid URI: {url!r} ({e})', detail=url) from e
    if parsed.scheme not in ('http', 'https') or not parsed.host:
        raise ConfigurationError(f'url must be an absolute http or https URI, got {url!r}', detail=url)
    return parsed


def _validate_method(method: object) -> str:
    if method is None:
        return DEFAULT_METHOD
    if method not in ALLOWED_METHODS:
        raise ConfigurationError(
            f'request_method must be one of {", ".join(ALLOWED_METHODS)}, got {method!r}',
            detail=method,
        )
    return method


def _validate_headers(headers: object) -> httpx.Headers:
    if headers is None:
        return httpx.Headers()
    if not isinstance(headers, Mapping):
        raise ConfigurationError('request_headers must be a mapping of strings', detail=headers)
    seen: dict[str, str] = {}
    pairs: list[tuple[str, bytes]] = []
    for name, value in headers.items():
        if not isinstance(name, str) or not _HEADER_NAME.match(name):
            raise ConfigurationError(f'request header names must be HTTP tokens, got {name!r}', detail=name)
        if not isinstance(value, str):
            raise ConfigurationError(f'request header {name!r} must have a string value, got {value!r}', detail=name)
        if any(c in value for c in _FORBIDDEN_IN_VALUE):
            raise ConfigurationError(f'request header {name!r} value must not contain CR, LF or NUL', detail=name)
        key = name.lower()
        if key in seen:
            raise ConfigurationError(
                f'request header {name!r} duplicates {seen[key]!r} (header names are case-insensitive)',
                detail=name,
            )
        seen[key] = name
        # sent as UTF-8 bytes
        pairs.append((name, value.encode('utf-8')))
    return httpx.Headers(pairs)


def build_request(config: DataSourceConfig) -> Request:
    '''
    Validate declared inputs and produce a Request.

    Raises ConfigurationError for a bad url, an unsupported method, non-token header
    names, header values that are not strings or hold CR, LF or NUL, or a body combined with GET.
    '''
    url = _validate_url(config.url)
    method = _validate_method(config.request_method)
    headers = _validate_headers(config.request_headers)

    body = config.request_body
    if body is not None and not isinstance(body, str):
        raise ConfigurationError('request_body must be a string', detail=body)
    if body and method != 'POST':
        raise ConfigurationError(f'request_body is only valid with POST, not {method}', detail=method)

    return Request(
        url=url,
        method=method,
        headers=headers,
        body=body.encode('utf-8') if body else None,
    )
