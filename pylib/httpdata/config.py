'''
Runtime settings for the HTTP executor.

Declared data source inputs (url, method, ...) live in httpdata.request;
these are the knobs of the process running the read: deadline, redirects, TLS.
'''

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from httpdata.errors import ConfigurationError

DEFAULT_TIMEOUT = 30.0

_TRUE = ('1', 'true', 'yes', 'on')
_FALSE = ('0', 'false', 'no', 'off')


def _parse_bool(name: str, raw: str | None, default: bool) -> bool:
    if raw is None or raw.strip() == '':
        return default
    val = raw.strip().lower()
    if val in _TRUE:
        return True
    if val in _FALSE:
        return False
    raise ConfigurationError(f'{name} must be a boolean, got {raw!r}', detail=name)


def parse_timeout(raw: str | None, name: str = 'HTTPDATA_TIMEOUT') -> float | None:
    '''Seconds as a positive float; empty means the default, "none" means no deadline.'''
    if raw is None or raw.strip() == '':
        return DEFAULT_TIMEOUT
    if raw.strip().lower() == 'none':
        return None
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigurationError(f'{name} must be a number of seconds, got {raw!r}', detail=name) from None
    if not timeout > 0:
        raise ConfigurationError(f'{name} must be positive, got {raw!r}', detail=name)
    return timeout


@dataclass(frozen=True)
class Settings:
    '''Executor settings.'''

    timeout: float | None = DEFAULT_TIMEOUT  # None: no deadline
    follow_redirects: bool = True
    verify_tls: bool = True

    @classmethod
    def from_env(cls, env: Mapping[str, str | None] | None = None) -> Settings:
        '''
        Build settings from env vars. Pass env to read from another mapping,
        e.g. a .env file layered over os.environ.
        '''
        env = os.environ if env is None else env
        return cls(
            timeout=parse_timeout(env.get('HTTPDATA_TIMEOUT')),
            follow_redirects=_parse_bool('HTTPDATA_FOLLOW_REDIRECTS', env.get('HTTPDATA_FOLLOW_REDIRECTS'), True),
            verify_tls=_parse_bool('HTTPDATA_VERIFY_TLS', env.get('HTTPDATA_VERIFY_TLS'), True),
        )
