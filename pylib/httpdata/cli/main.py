'''CLI adapter for the http data source: read once, print outputs as JSON.'''

import json
import dataclasses
import os
import sys
from pathlib import Path

import fire
import structlog
from dotenv import dotenv_values
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from httpdata.config import Settings, parse_timeout
from httpdata.datasource import fetch_blocking
from httpdata.errors import ConfigurationError, FetchError
from httpdata.request import DataSourceConfig
from httpdata.result import Result


def _configure_logging() -> None:
    '''Plain tracebacks, everything on stderr so stdout stays machine-readable.'''
    from structlog.contextvars import merge_contextvars
    from structlog.dev import ConsoleRenderer, plain_traceback, set_exc_info
    from structlog.processors import StackInfoRenderer, TimeStamper, add_log_level

    structlog.configure(
        processors=[
            merge_contextvars,
            add_log_level,
            StackInfoRenderer(),
            set_exc_info,
            TimeStamper(fmt='%Y-%m-%d %H:%M:%S', utc=False),
            ConsoleRenderer(exception_formatter=plain_traceback),
        ],
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _build_settings(timeout: float | None = None, env_file: str = '') -> Settings:
    '''Settings from env, a .env file layered on top, then CLI overrides.'''
    env = dict(os.environ)
    if env_file:
        env.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    settings = Settings.from_env(env)
    if timeout is not None:
        # 0 on the command line means no deadline
        value = None if timeout == 0 else parse_timeout(str(timeout), name='--timeout')
        settings = dataclasses.replace(settings, timeout=value)
    return settings


def _load_declared(
    config: str = '',
    url: str = '',
    request_method: str = '',
    request_headers=None,
    request_body=None,
) -> DataSourceConfig:
    '''
    Merge declared inputs from a JSON file (config) with CLI flags; flags win.
    '''
    data: dict = {}
    if config:
        try:
            data = json.loads(Path(config).read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f'Could not load config {config}: {e}', detail=config) from e
        if not isinstance(data, dict):
            raise ConfigurationError(f'Config {config} must hold a JSON object', detail=config)
    if url:
        data['url'] = url
    if request_method:
        data['request_method'] = request_method
    if request_headers is not None:
        # fire parses dict literals itself; a raw string is taken as JSON
        if isinstance(request_headers, str):
            try:
                request_headers = json.loads(request_headers)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f'request_headers is not valid JSON: {e}', detail=request_headers) from e
        data['request_headers'] = request_headers
    if request_body is not None:
        # fire turns 123 or {"a": 1} into Python values
        data['request_body'] = request_body if isinstance(request_body, str) else json.dumps(request_body)
    return DataSourceConfig.from_mapping(data)


def _show_diagnostics(console: Console, result: Result) -> None:
    for diag in result.diagnostics:
        console.print(Panel(Text(f'{diag.summary}\n\n{diag.detail}'), title='Warning', border_style='yellow'))


def read(
    url: str = '',
    request_method: str = '',
    request_headers=None,
    request_body=None,
    config: str = '',
    timeout: float | None = None,
    env_file: str = '',
) -> None:
    '''
    Read the data source once and print its outputs as JSON on stdout.
    url: URL to request (http or https)
    request_method: GET (default) or POST
    request_headers: JSON object of header name -> value
    request_body: body to send; POST only
    config: JSON file with any of url, request_method, request_headers, request_body
    timeout: deadline in seconds (0 for none). Default from HTTPDATA_TIMEOUT env, else 30
    env_file: .env file with HTTPDATA_* settings
    '''
    console = Console(stderr=True)
    try:
        declared = _load_declared(config, url, request_method, request_headers, request_body)
        settings = _build_settings(timeout, env_file)
        result = fetch_blocking(declared, settings=settings)
    except FetchError as e:
        console.print(f'Error: {e}', style='bold red', markup=False, highlight=False)
        sys.exit(1)
    _show_diagnostics(console, result)
    print(json.dumps(result.outputs(), ensure_ascii=False, indent=2))


def main() -> None:
    '''httpdata: read-only HTTP data source.'''
    _configure_logging()
    fire.Fire({
        'read': read,
    })
