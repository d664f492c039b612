"""
Warden API Facade Tests

Usage:
    python -m pytest tests/test_api.py -v
"""

import base64

import httpx
import pytest
from nacl.encoding import Base64Encoder

from conftest import T, RecordingTransport, error, ok
from warden_api import (
    Api,
    EncryptionError,
    HttpTransport,
    NaclHybridCipher,
    RemoteCommunicationError,
    WardenSettings,
)


# =============================================================================
# Construction
# =============================================================================

def test_create():
    """The basic operation to create a Warden API connection."""
    api = Api('http://www.example.com', 'user', 'pass', '/dev/null')

    assert api.warden_url == 'http://www.example.com'
    assert api.username == 'user'
    assert api.password == 'pass'
    assert api.certificate_path == '/dev/null'
    assert isinstance(api.transport, HttpTransport)
    assert api.transport.username == 'user'
    assert api.transport.certificate_path == '/dev/null'


def test_components_share_one_key_cache(api):
    assert api.codec.key_cache is api.key_cache
    assert api.token_verifier.codec is api.codec


def test_from_settings_can_open_envelopes(transport, authority_key):
    settings = WardenSettings(
        warden_url='https://warden.example.com/',
        site_key=authority_key.encode(encoder=Base64Encoder).decode(),
    )
    api = Api.from_settings(settings, transport=transport)

    assert api.warden_url == 'https://warden.example.com'
    assert api.decrypt(api.encrypt({"site": 1})) == {"site": 1}


def test_from_settings_without_site_key(transport):
    api = Api.from_settings(WardenSettings(warden_url='https://warden.example.com'), transport=transport)

    with pytest.raises(EncryptionError):
        api.decrypt(api.encrypt({"site": 1}))


# =============================================================================
# Public Key
# =============================================================================

def test_public_key_fetched_once(api, transport, authority_key):
    for _ in range(5):
        assert api.public_key() == bytes(authority_key.verify_key)

    assert transport.count('GET', '/public-key') == 1


def test_public_key_failure():
    api = Api('https://warden.example.com', transport=RecordingTransport({'/public-key': error(500)}))

    with pytest.raises(RemoteCommunicationError):
        api.public_key()
    with pytest.raises(RemoteCommunicationError):
        api.encrypt({"a": 1})


def test_all_operations_share_the_cached_key(api, transport, make_token):
    api.public_key()
    api.decrypt(api.encrypt([1, 2, 3]))
    api.is_valid_token(make_token(T), T)

    assert transport.count('GET', '/public-key') == 1


# =============================================================================
# Site Data
# =============================================================================

def test_post_site_data(api, transport):
    data = {"core": {"drupal": {"version": "7.50"}}, "url": "https://site.example.com"}

    api.post_site_data(data)

    posts = [c for c in transport.calls if c[0] == 'POST']
    assert len(posts) == 1
    _, path, body = posts[0]
    assert path == '/site-update'
    assert api.decrypt(body) == data


def test_post_site_data_rejected(api, transport):
    transport.routes['/site-update'] = error(403, "Forbidden")

    with pytest.raises(RemoteCommunicationError) as exc_info:
        api.post_site_data({"a": 1})

    assert exc_info.value.status_code == 403
    assert "Forbidden" in str(exc_info.value)


# =============================================================================
# Raw Requests
# =============================================================================

def test_request_without_content_is_get(api, transport):
    transport.routes['/status'] = ok(b"fine")

    response = api.request('/status')

    assert response.content == b"fine"
    assert transport.calls[-1] == ('GET', '/status', None)


def test_request_with_content_is_post(api, transport):
    transport.routes['/status'] = ok(b"")

    api.request('/status', 'payload')

    assert transport.calls[-1] == ('POST', '/status', 'payload')


def test_request_non_200(api):
    with pytest.raises(RemoteCommunicationError) as exc_info:
        api.request('/missing')

    assert exc_info.value.status_code == 404


def test_public_key_body_decoding(transport, public_key_body, authority_key):
    """The /public-key body is the base64 of the raw key."""
    api = Api('https://warden.example.com', transport=transport, cipher=NaclHybridCipher([authority_key]))

    assert api.public_key() == base64.b64decode(public_key_body)


# =============================================================================
# Lifecycle
# =============================================================================

def test_context_manager_closes_http_transport(public_key_body):
    http = HttpTransport(
        'https://warden.example.com',
        http_transport=httpx.MockTransport(lambda r: httpx.Response(200, content=public_key_body)),
    )

    with Api('https://warden.example.com', transport=http) as api:
        api.public_key()
        assert http._client is not None

    assert http._client is None


def test_close_without_closable_transport(api, transport):
    api.close()
    api.close()

    assert api.public_key()
