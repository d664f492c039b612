"""
Warden API
Site-side client for exchanging encrypted data with a Warden server.

Security Model: Hybrid Encryption (NaCl SealedBox + SecretBox) + Ed25519 Signed Timestamps
Library: PyNaCl (libsodium binding)
"""

from .api import Api
from .config import WardenSettings
from .crypto_engine import EnvelopeCodec, HybridCipher, NaclHybridCipher
from .exceptions import EncryptionError, RemoteCommunicationError, WardenError
from .key_cache import PublicKeyCache
from .models import Envelope, TokenEnvelope
from .token_verifier import TokenVerdict, TokenVerifier
from .transport import HttpTransport, Transport, TransportResponse

__all__ = [
    'Api',
    'WardenSettings',
    'EnvelopeCodec',
    'HybridCipher',
    'NaclHybridCipher',
    'EncryptionError',
    'RemoteCommunicationError',
    'WardenError',
    'PublicKeyCache',
    'Envelope',
    'TokenEnvelope',
    'TokenVerdict',
    'TokenVerifier',
    'HttpTransport',
    'Transport',
    'TransportResponse',
]
