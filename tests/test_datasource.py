import asyncio

import httpx
import pytest

from httpdata import datasource
from httpdata.config import Settings
from httpdata.errors import (
    ConfigurationError,
    ErrorKind,
    HTTPStatusError,
    TransportFailure,
)
from httpdata.request import DataSourceConfig
from httpdata.transport import create_client
from mockserver import BASE_URL, RecordingHandler, mock_server, read


def test_get_200_body_and_headers() -> None:
    result = read(DataSourceConfig(url=f'{BASE_URL}/meta_200.txt'))
    assert result.body == '1.0.0,GET'
    assert result.response_headers['X-Single'] == 'foobar'
    assert result.response_headers['X-Double'] == '1, 2'
    assert result.status_code == 200
    assert result.id == f'{BASE_URL}/meta_200.txt'
    assert result.diagnostics == []


def test_post_200_sends_body(recorder: RecordingHandler) -> None:
    config = DataSourceConfig(
        url=f'{BASE_URL}/meta_200.txt',
        request_method='POST',
        request_body='mytest',
    )
    result = read(config, handler=recorder)
    assert recorder.requests[0].content == b'mytest'
    assert recorder.requests[0].method == 'POST'
    assert result.body == '1.0.0,POST,mytest'
    assert result.response_headers['X-Double'] == '1, 2'


def test_404_is_fatal_with_fixed_message() -> None:
    with pytest.raises(HTTPStatusError, match=r'HTTP request error\. Response code: 404\.') as exc_info:
        read(DataSourceConfig(url=f'{BASE_URL}/meta_404.txt'))
    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == 404
    assert exc_info.value.kind is ErrorKind.HTTP_STATUS_ERROR


def test_request_headers_pass_through(recorder: RecordingHandler) -> None:
    config = DataSourceConfig(
        url=f'{BASE_URL}/restricted/meta_200.txt',
        request_headers={'Authorization': 'Zm9vOmJhcg=='},
    )
    result = read(config, handler=recorder)
    assert recorder.requests[0].headers['Authorization'] == 'Zm9vOmJhcg=='
    assert result.body == '1.0.0'


def test_wrong_authorization_maps_to_status_error() -> None:
    config = DataSourceConfig(
        url=f'{BASE_URL}/restricted/meta_200.txt',
        request_headers={'Authorization': 'nope'},
    )
    with pytest.raises(HTTPStatusError, match='Response code: 403.'):
        read(config)


def test_utf8_charset_has_no_warning() -> None:
    result = read(DataSourceConfig(url=f'{BASE_URL}/utf-8/meta_200.txt'))
    assert result.body == '1.0.0'
    assert result.diagnostics == []


def test_utf16_charset_warns_but_returns_body() -> None:
    result = read(DataSourceConfig(url=f'{BASE_URL}/utf-16/meta_200.txt'))
    assert result.body == '"1.0.0"'
    assert len(result.diagnostics) == 1
    diag = result.diagnostics[0]
    assert diag.kind is ErrorKind.BODY_DECODE_WARNING
    assert 'application/json; charset=UTF-16' in diag.summary


def test_plain_mapping_config() -> None:
    result = read({'url': f'{BASE_URL}/meta_200.txt'})
    assert result.body == '1.0.0,GET'


def test_configuration_error_sends_nothing(recorder: RecordingHandler) -> None:
    config = DataSourceConfig(url=f'{BASE_URL}/meta_200.txt', request_body='oops')
    with pytest.raises(ConfigurationError):
        read(config, handler=recorder)
    assert recorder.requests == []


def test_transport_failure_carries_cause() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError('connection refused', request=request)

    with pytest.raises(TransportFailure) as exc_info:
        read(DataSourceConfig(url=f'{BASE_URL}/meta_200.txt'), handler=refuse)
    assert isinstance(exc_info.value.detail, httpx.ConnectError)
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
    assert exc_info.value.kind is ErrorKind.TRANSPORT_FAILURE


def test_read_error_is_transport_failure() -> None:
    def broken(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadError('connection reset', request=request)

    with pytest.raises(TransportFailure):
        read(DataSourceConfig(url=f'{BASE_URL}/meta_200.txt'), handler=broken)


def test_deadline_cancels_request() -> None:
    async def slow(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, content=b'too late')

    with pytest.raises(TransportFailure) as exc_info:
        read(
            DataSourceConfig(url=f'{BASE_URL}/meta_200.txt'),
            handler=slow,
            settings=Settings(timeout=0.05),
        )
    assert exc_info.value.detail == 'cancelled'


def test_fetch_builds_and_closes_own_client(monkeypatch: pytest.MonkeyPatch) -> None:
    clients: list[httpx.AsyncClient] = []

    def fake_create_client(settings=None) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(mock_server))
        clients.append(client)
        return client

    monkeypatch.setattr(datasource, 'create_client', fake_create_client)
    result = datasource.fetch_blocking(DataSourceConfig(url=f'{BASE_URL}/meta_200.txt'))
    assert result.body == '1.0.0,GET'
    assert len(clients) == 1
    assert clients[0].is_closed


def test_outputs_are_serializable_attributes() -> None:
    result = read(DataSourceConfig(url=f'{BASE_URL}/utf-16/meta_200.txt'))
    outputs = result.outputs()
    assert set(outputs) == {'id', 'body', 'response_headers', 'status_code'}
    assert outputs['response_headers']['Content-Type'] == 'application/json; charset=UTF-16'


def _use_mock_network(monkeypatch: pytest.MonkeyPatch, handler=mock_server) -> None:
    '''Keep the real create_client, swapping only its network transport.'''

    def patched(settings=None) -> httpx.AsyncClient:
        return create_client(settings, transport=httpx.MockTransport(handler))

    monkeypatch.setattr(datasource, 'create_client', patched)


def test_redirect_followed_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_mock_network(monkeypatch)
    result = datasource.fetch_blocking(DataSourceConfig(url=f'{BASE_URL}/redirect'))
    assert result.body == '1.0.0,GET'
    assert result.status_code == 200


def test_redirect_not_followed_when_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    _use_mock_network(monkeypatch)
    settings = Settings.from_env({'HTTPDATA_FOLLOW_REDIRECTS': 'false'})
    with pytest.raises(HTTPStatusError, match=r'HTTP request error\. Response code: 302\.'):
        datasource.fetch_blocking(DataSourceConfig(url=f'{BASE_URL}/redirect'), settings=settings)


def test_create_client_applies_settings() -> None:
    client = create_client(Settings(timeout=5.0, follow_redirects=False, verify_tls=False))
    try:
        assert client.follow_redirects is False
        assert client.timeout == httpx.Timeout(5.0)
    finally:
        asyncio.run(client.aclose())


def test_create_client_passes_tls_verification(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = {}

    class RecordingClient:
        def __init__(self, **kwargs) -> None:
            seen.update(kwargs)

    monkeypatch.setattr(httpx, 'AsyncClient', RecordingClient)
    create_client(Settings.from_env({'HTTPDATA_VERIFY_TLS': 'false'}))
    assert seen['verify'] is False
    create_client(Settings())
    assert seen['verify'] is True
