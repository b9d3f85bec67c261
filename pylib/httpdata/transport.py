'''HTTP executor using httpx. One request, no retries.'''

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import httpx
import structlog

from httpdata.config import Settings
from httpdata.errors import TransportFailure
from httpdata.request import Request


log = structlog.get_logger()


@dataclass
class RawResponse:
    '''Status, headers and body exactly as received.'''

    status_code: int
    headers: list[tuple[str, str]]  # received order; a name may repeat
    body_bytes: bytes

    def header(self, name: str) -> str | None:
        '''First value of a header, matched case-insensitively.'''
        key = name.lower()
        for k, v in self.headers:
            if k.lower() == key:
                return v
        return None


def create_client(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    '''
    Build a client for one read. Callers own it and must close it.
    transport: replaces the network transport (e.g. httpx.MockTransport)
    '''
    settings = settings or Settings()
    return httpx.AsyncClient(
        timeout=settings.timeout,
        follow_redirects=settings.follow_redirects,
        verify=settings.verify_tls,
        transport=transport,
    )


async def _send(client: httpx.AsyncClient, request: Request) -> RawResponse:
    response = await client.request(
        request.method,
        request.url,
        headers=request.headers,
        content=request.body,
    )
    enc = response.headers.encoding
    return RawResponse(
        status_code=response.status_code,
        headers=[(k.decode(enc), v.decode(enc)) for k, v in response.headers.raw],
        body_bytes=response.content,
    )


async def execute(
    request: Request,
    *,
    client: httpx.AsyncClient,
    timeout: float | None = None,
) -> RawResponse:
    '''
    Send request over client and read the whole body.

    timeout: deadline in seconds for the whole exchange; None waits indefinitely.
    Raises TransportFailure on any transport error or when the deadline expires.
    '''
    try:
        return await asyncio.wait_for(_send(client, request), timeout)
    except asyncio.TimeoutError as e:
        log.error('request cancelled', url=str(request.url), timeout=timeout)
        raise TransportFailure(
            f'HTTP request to {request.url} cancelled: no complete response within {timeout}s',
            detail='cancelled',
        ) from e
    except httpx.RequestError as e:
        log.error('request failed', url=str(request.url), error=repr(e))
        raise TransportFailure(f'HTTP request to {request.url} failed: {e!r}', detail=e) from e
