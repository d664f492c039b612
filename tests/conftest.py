"""
Shared fixtures for the Warden API tests.

- RecordingTransport: in-memory Transport that records every call
- authority_key: the Warden Ed25519 key pair
- api: an Api wired to a RecordingTransport serving the authority public key
- make_token: builds base64(JSON {"time", "signature"}) tokens
"""

import base64
import json
import threading
from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest
from nacl.signing import SigningKey

from warden_api import Api, NaclHybridCipher
from warden_api.transport import Transport, TransportResponse

T = 1_700_000_000


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def encode_wire(obj) -> str:
    """base64(JSON) of any value, as Warden would send it."""
    return b64(json.dumps(obj).encode('utf-8'))


def ok(content: bytes = b"") -> TransportResponse:
    return TransportResponse(status_code=200, reason="OK", content=content)


def error(status_code: int = 500, reason: str = "Internal Server Error") -> TransportResponse:
    return TransportResponse(status_code=status_code, reason=reason, content=b"")


Handler = Union[TransportResponse, Callable[[], TransportResponse]]


class RecordingTransport(Transport):
    """Serves canned responses per path and records every request."""

    def __init__(self, routes: Optional[Dict[str, Handler]] = None):
        self.routes: Dict[str, Handler] = dict(routes or {})
        self.calls: List[Tuple[str, str, Optional[str]]] = []
        self._lock = threading.Lock()

    def _respond(self, method: str, path: str, body: Optional[str]) -> TransportResponse:
        with self._lock:
            self.calls.append((method, path, body))
        handler = self.routes.get(path, error(404, "Not Found"))
        return handler() if callable(handler) else handler

    def get(self, path: str) -> TransportResponse:
        return self._respond('GET', path, None)

    def post(self, path: str, body: str) -> TransportResponse:
        return self._respond('POST', path, body)

    def count(self, method: str, path: str) -> int:
        return sum(1 for m, p, _ in self.calls if m == method and p == path)


@pytest.fixture
def authority_key() -> SigningKey:
    return SigningKey.generate()


@pytest.fixture
def public_key_body(authority_key) -> bytes:
    return base64.b64encode(bytes(authority_key.verify_key))


@pytest.fixture
def transport(public_key_body) -> RecordingTransport:
    return RecordingTransport({
        '/public-key': ok(public_key_body),
        '/site-update': ok(b""),
    })


@pytest.fixture
def api(transport, authority_key) -> Api:
    return Api(
        'https://warden.example.com',
        transport=transport,
        cipher=NaclHybridCipher([authority_key]),
    )


@pytest.fixture
def make_token(authority_key):
    """
    Build a token the way Warden does.

    make_token(T)                     signed timestamp T
    make_token(T, signer=other_key)   signed with another key
    make_token(T, time_raw=b"abc")    arbitrary raw time bytes (signed)
    """
    def _make(timestamp=T, signer: Optional[SigningKey] = None, time_raw: Optional[bytes] = None) -> str:
        raw = time_raw if time_raw is not None else str(timestamp).encode('ascii')
        signature = (signer or authority_key).sign(raw).signature
        return encode_wire({'time': b64(raw), 'signature': b64(signature)})
    return _make
