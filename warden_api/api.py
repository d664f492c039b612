"""
Warden API - Facade
The single entry point a site uses to talk to the Warden server.

Operations:
- public_key()      Warden public key (fetched once, then cached)
- encrypt(data)     Envelope string Warden can open
- decrypt(text)     Original data from a Warden envelope
- is_valid_token()  Whether an inbound request really came from Warden
- post_site_data()  Encrypt and POST to /site-update
"""

import logging
from typing import Any, Optional

from .config import WardenSettings
from .crypto_engine import EnvelopeCodec, HybridCipher, NaclHybridCipher
from .key_cache import PublicKeyCache
from .token_verifier import TokenVerdict, TokenVerifier
from .transport import DEFAULT_TIMEOUT, HttpTransport, Transport, TransportResponse, ensure_ok

logger = logging.getLogger(__name__)

SITE_UPDATE_PATH = '/site-update'


class Api:
    """
    The API for communicating with the Warden server application.

    Args:
        warden_url: The URL to the server
        username: Basic HTTP username of Warden, if set
        password: Basic HTTP password of Warden, if set
        certificate_path: Path to a PEM client side certificate, if any
        transport: Replaces the default HttpTransport
        cipher: Replaces the default NaclHybridCipher
    """

    def __init__(
        self,
        warden_url: str,
        username: str = "",
        password: str = "",
        certificate_path: str = "",
        transport: Optional[Transport] = None,
        cipher: Optional[HybridCipher] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.warden_url = warden_url
        self.username = username
        self.password = password
        self.certificate_path = certificate_path

        self.transport = transport or HttpTransport(
            warden_url,
            username=username,
            password=password,
            certificate_path=certificate_path,
            timeout=timeout,
        )
        self.key_cache = PublicKeyCache(self.transport)
        self.codec = EnvelopeCodec(self.key_cache, cipher)
        self.token_verifier = TokenVerifier(self.codec)

    @classmethod
    def from_settings(cls, settings: WardenSettings, transport: Optional[Transport] = None) -> "Api":
        """Build an Api from WardenSettings (see WardenSettings.from_env)."""
        signing_key = settings.signing_key()
        cipher = NaclHybridCipher([signing_key] if signing_key is not None else None)
        return cls(
            settings.warden_url,
            username=settings.username,
            password=settings.password,
            certificate_path=settings.certificate_path,
            transport=transport,
            cipher=cipher,
            timeout=settings.timeout,
        )

    def close(self) -> None:
        """Release the transport's connections, if it holds any."""
        close = getattr(self.transport, 'close', None)
        if close is not None:
            close()

    def __enter__(self) -> "Api":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def public_key(self) -> bytes:
        """
        Get the Warden public key.

        Raises:
            RemoteCommunicationError: if the response status was not 200
        """
        return self.key_cache.get_public_key()

    def encrypt(self, data: Any) -> str:
        """Encrypt data for Warden. See EnvelopeCodec.encrypt."""
        return self.codec.encrypt(data)

    def decrypt(self, cypher_text: str) -> Any:
        """Decrypt a message from Warden. See EnvelopeCodec.decrypt."""
        return self.codec.decrypt(cypher_text)

    def is_valid_token(self, encrypted_remote_token: str, timestamp: Optional[int] = None) -> bool:
        """
        Check the validity of a token sent from Warden.

        Args:
            encrypted_remote_token: The token from the request
            timestamp: Trusted local time in seconds (default: now)

        Returns:
            True if we can trust the token
        """
        return self.token_verifier.is_valid(encrypted_remote_token, timestamp)

    def check_token(self, encrypted_remote_token: str, timestamp: Optional[int] = None) -> TokenVerdict:
        """Like is_valid_token, but reports why a token was rejected."""
        return self.token_verifier.check(encrypted_remote_token, timestamp)

    def post_site_data(self, data: Any) -> None:
        """
        Send the site data to Warden.

        Raises:
            EncryptionError: data could not be encrypted
            RemoteCommunicationError: if the response status was not 200
        """
        self.request(SITE_UPDATE_PATH, self.encrypt(data))
        logger.info(f"Posted site data to {SITE_UPDATE_PATH}")

    def request(self, path: str, content: str = "") -> TransportResponse:
        """
        Send a message to Warden.

        Args:
            path: The query path including the leading slash (e.g. '/public-key')
            content: The body of the request. If this is not empty, the request is a POST.

        Raises:
            RemoteCommunicationError: if the response status was not 200
        """
        if content:
            return ensure_ok(self.transport.post(path, content))
        return ensure_ok(self.transport.get(path))
