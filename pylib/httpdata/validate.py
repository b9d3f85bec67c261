'''
Response validation: status classification and text-safety of the body.

The two checks are independent. A bad status is fatal; a body whose declared
Content-Type disagrees with the UTF-8 assumption is only worth a warning.
'''

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from httpdata.errors import Diagnostic, ErrorKind, HTTPStatusError

if TYPE_CHECKING:
    from httpdata.transport import RawResponse


log = structlog.get_logger()

# RFC 9110 token
TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_MEDIA_TYPE = re.compile(rf'^({TOKEN})/({TOKEN})$')
_PARAM = re.compile(rf'\s*;\s*(?:({TOKEN})\s*=\s*("(?:[^"\\]|\\.)*"|{TOKEN}))?\s*')

TEXT_MEDIA_TYPES = (
    re.compile(r'^text/.+'),
    re.compile(r'^application/json$'),
    re.compile(r'^application/.+\+json$'),
    re.compile(r'^application/xml$'),
    re.compile(r'^application/.+\+xml$'),  # includes samlmetadata+xml
    re.compile(r'^application/javascript$'),
    re.compile(r'^application/x-www-form-urlencoded$'),
)

SAFE_CHARSETS = ('utf-8', 'us-ascii')


@dataclass(frozen=True)
class ContentType:
    '''Parsed Content-Type header.'''

    media_type: str  # lower-cased type/subtype
    charset: str | None
    raw: str


def parse_content_type(value: str) -> ContentType:
    '''
    Parse a Content-Type header value into media type and charset.
    Raises ValueError if the media type or a parameter is malformed, or a
    parameter is repeated.
    '''
    media, sep, rest = value.partition(';')
    media = media.strip()
    if not _MEDIA_TYPE.match(media):
        raise ValueError(f'malformed media type: {media!r}')
    rest = sep + rest
    params: dict[str, str] = {}
    pos = 0
    while pos < len(rest):
        m = _PARAM.match(rest, pos)
        if not m:
            raise ValueError(f'malformed media type parameter: {rest[pos:].strip()!r}')
        pos = m.end()
        if m.group(1) is None:
            continue  # empty parameter, e.g. a trailing ';'
        name, val = m.group(1).lower(), m.group(2)
        if name in params:
            raise ValueError(f'duplicate media type parameter: {name!r}')
        if val.startswith('"'):
            val = re.sub(r'\\(.)', r'\1', val[1:-1])
        params[name] = val
    return ContentType(media_type=media.lower(), charset=params.get('charset'), raw=value)


def is_text_content_type(content_type: ContentType) -> bool:
    '''True if the media type is textual and its charset (if any) is UTF-8 compatible.'''
    if not any(r.match(content_type.media_type) for r in TEXT_MEDIA_TYPES):
        return False
    return content_type.charset is None or content_type.charset.lower() in SAFE_CHARSETS


def check_status(raw: RawResponse) -> None:
    '''Raise HTTPStatusError unless the status is 2xx.'''
    if not 200 <= raw.status_code < 300:
        log.error('http status error', status_code=raw.status_code)
        raise HTTPStatusError(raw.status_code)


def _body_decode_warning(header: str) -> Diagnostic:
    return Diagnostic(
        kind=ErrorKind.BODY_DECODE_WARNING,
        summary=f'Content-Type is not recognized as a text type, got "{header}"',
        detail='The body is decoded as UTF-8 regardless. If the content is binary '
        'or in another encoding, the body attribute may not hold the original data.',
    )


def check_content_type(raw: RawResponse) -> Diagnostic | None:
    '''
    Return a BodyDecodeWarning diagnostic if the declared Content-Type is not
    safely readable as UTF-8 text. A missing header is the safe default.
    '''
    header = raw.header('Content-Type')
    if header is None:
        return None
    try:
        content_type = parse_content_type(header)
    except ValueError as e:
        log.warning('unparseable content type', content_type=header, error=str(e))
        return _body_decode_warning(header)
    if is_text_content_type(content_type):
        return None
    log.warning('content type is not utf-8 text', content_type=header)
    return _body_decode_warning(header)
