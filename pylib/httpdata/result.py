'''
Result mapping: flatten the raw response into the attributes the host stores.

Header flattening is lossy by nature: one header whose value contains a comma
and the same header sent twice come out identical.
'''

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from httpdata.errors import Diagnostic
from httpdata.transport import RawResponse

HEADER_VALUE_SEPARATOR = ', '


@dataclass
class Result:
    '''Outputs of one successful read, plus advisory diagnostics.'''

    id: str
    body: str
    response_headers: dict[str, str]
    status_code: int
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def outputs(self) -> dict:
        '''Serializable attributes handed back to the host.'''
        return {
            'id': self.id,
            'body': self.body,
            'response_headers': dict(self.response_headers),
            'status_code': self.status_code,
        }


def decode_body(body_bytes: bytes) -> str:
    # Malformed sequences become U+FFFD rather than failing the read
    return body_bytes.decode('utf-8', errors='replace')


def flatten_headers(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
    '''
    Join repeated header values with ", " in received order.
    Names are grouped case-insensitively and keep the casing first seen.
    '''
    names: dict[str, str] = {}  # lower -> first-seen casing
    values: dict[str, list[str]] = {}
    for name, value in pairs:
        key = name.lower()
        if key not in names:
            names[key] = name
            values[key] = []
        values[key].append(value)
    return {names[key]: HEADER_VALUE_SEPARATOR.join(vals) for key, vals in values.items()}


def map_result(url: str, raw: RawResponse, diagnostics: list[Diagnostic] | None = None) -> Result:
    return Result(
        id=url,
        body=decode_body(raw.body_bytes),
        response_headers=flatten_headers(raw.headers),
        status_code=raw.status_code,
        diagnostics=list(diagnostics or []),
    )
