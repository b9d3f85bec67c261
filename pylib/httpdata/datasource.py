'''
The http data source: build, send, validate, map.

fetch() is the entry point the host adapter calls with fully-resolved inputs.
It returns a Result (advisory diagnostics attached) or raises a FetchError.
'''

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from httpdata.config import Settings
from httpdata.request import DataSourceConfig, build_request
from httpdata.result import Result, map_result
from httpdata.transport import create_client, execute
from httpdata.validate import check_content_type, check_status


log = structlog.get_logger()


def _coerce_config(config: DataSourceConfig | Mapping[str, Any]) -> DataSourceConfig:
    if isinstance(config, DataSourceConfig):
        return config
    return DataSourceConfig.from_mapping(config)


async def fetch(
    config: DataSourceConfig | Mapping[str, Any],
    *,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> Result:
    '''
    Read the data source once.

    config: declared inputs (DataSourceConfig or a plain mapping of them)
    client: transport to use; if omitted, one is built from settings for this
      call only and closed afterwards
    settings: executor settings; settings.timeout is the deadline for the call

    Raises ConfigurationError, TransportFailure or HTTPStatusError.
    '''
    config = _coerce_config(config)
    settings = settings or Settings()
    request = build_request(config)
    log.info('reading http data source', url=config.url, method=request.method)

    if client is None:
        async with create_client(settings) as own_client:
            raw = await execute(request, client=own_client, timeout=settings.timeout)
    else:
        raw = await execute(request, client=client, timeout=settings.timeout)

    check_status(raw)
    diagnostics = []
    warning = check_content_type(raw)
    if warning:
        diagnostics.append(warning)

    result = map_result(config.url, raw, diagnostics)
    log.info(
        'http data source read',
        url=config.url,
        status_code=raw.status_code,
        body_bytes=len(raw.body_bytes),
        warnings=len(diagnostics),
    )
    return result


def fetch_blocking(
    config: DataSourceConfig | Mapping[str, Any],
    *,
    settings: Settings | None = None,
) -> Result:
    '''Synchronous fetch() for callers without an event loop.'''
    return asyncio.run(fetch(config, settings=settings))
