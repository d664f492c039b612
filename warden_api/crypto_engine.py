"""
Warden API - Crypto Engine
Hybrid encryption of payloads exchanged with the Warden server.

Security Architecture:
- Key: the Warden Ed25519 public key (signature verification as-is,
  converted to Curve25519 for sealing)
- Payload: NaCl SecretBox (XSalsa20 + Poly1305) under a fresh random key
- Key wrapping: NaCl SealedBox to the Warden key
- Wire format: base64(JSON {"key": base64(sealed key), "message": base64(ciphertext)})
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional, Tuple

import nacl.utils
from nacl.exceptions import BadSignatureError, CryptoError
from nacl.public import PrivateKey, SealedBox
from nacl.secret import SecretBox
from nacl.signing import SigningKey, VerifyKey

from .exceptions import EncryptionError
from .key_cache import PublicKeyCache
from .models import Envelope, WireFormatError, b64decode, b64encode, parse_wire_object

logger = logging.getLogger(__name__)


class HybridCipher(ABC):
    """
    Seal/open/verify capability used by EnvelopeCodec.

    seal() returns (sealed_symmetric_key, message_ciphertext).
    Implementations signal failure by raising.
    """

    @abstractmethod
    def seal(self, plaintext: bytes, public_key: bytes) -> Tuple[bytes, bytes]:
        pass

    @abstractmethod
    def open(self, sealed_key: bytes, message: bytes, public_key: bytes) -> bytes:
        pass

    @abstractmethod
    def verify(self, message: bytes, signature: bytes, public_key: bytes) -> bool:
        pass


class NaclHybridCipher(HybridCipher):
    """
    PyNaCl implementation of the hybrid envelope.

    Opening needs the private half of the key that sealed the message. The
    cipher keeps a keyring of site signing keys indexed by their public
    key, so the public key handed to open() selects the private key to use.
    """

    def __init__(self, signing_keys: Optional[Iterable[SigningKey]] = None):
        self._private_keys: Dict[bytes, PrivateKey] = {}
        for signing_key in signing_keys or ():
            self.add_signing_key(signing_key)

    def add_signing_key(self, signing_key: SigningKey) -> None:
        """Register a key pair whose public half may be used to open envelopes."""
        public = bytes(signing_key.verify_key)
        self._private_keys[public] = signing_key.to_curve25519_private_key()

    def seal(self, plaintext: bytes, public_key: bytes) -> Tuple[bytes, bytes]:
        recipient = VerifyKey(public_key).to_curve25519_public_key()

        symmetric_key = nacl.utils.random(SecretBox.KEY_SIZE)
        message = bytes(SecretBox(symmetric_key).encrypt(plaintext))
        sealed_key = SealedBox(recipient).encrypt(symmetric_key)

        return sealed_key, message

    def open(self, sealed_key: bytes, message: bytes, public_key: bytes) -> bytes:
        private_key = self._private_keys.get(bytes(public_key))
        if private_key is None:
            raise CryptoError("No private key registered for the Warden public key")

        symmetric_key = SealedBox(private_key).decrypt(sealed_key)
        return SecretBox(symmetric_key).decrypt(message)

    def verify(self, message: bytes, signature: bytes, public_key: bytes) -> bool:
        try:
            VerifyKey(public_key).verify(message, signature)
        except BadSignatureError:
            return False
        return True


class EnvelopeCodec:
    """
    Encrypts data for Warden and decrypts envelopes from Warden.

    Workflow (encrypt):
    1. Serialise data to JSON
    2. Fetch the Warden public key (cached)
    3. Seal: random symmetric key encrypts the JSON, public key wraps the symmetric key
    4. Check the seal actually produced ciphertext
    5. Package into an Envelope and encode it
    """

    def __init__(self, key_cache: PublicKeyCache, cipher: Optional[HybridCipher] = None):
        self.key_cache = key_cache
        self.cipher = cipher or NaclHybridCipher()

    def encrypt(self, data: Any) -> str:
        """
        Encrypt data for transport to Warden.

        Args:
            data: Any JSON-serialisable value

        Returns:
            The encoded envelope string

        Raises:
            EncryptionError: data could not be serialised or sealed
            RemoteCommunicationError: the public key could not be fetched
        """
        # 1. Serialise
        try:
            plaintext = json.dumps(data, separators=(',', ':'), allow_nan=False).encode('utf-8')
        except (TypeError, ValueError) as e:
            raise EncryptionError(f"Unable to serialise data for encryption: {e}") from e

        # 2. Public key
        public_key = self.key_cache.get_public_key()

        # 3. Seal
        try:
            sealed_key, message = self.cipher.seal(plaintext, public_key)
        except (CryptoError, ValueError, TypeError) as e:
            logger.error(f"Sealing failed: {type(e).__name__}")
            raise EncryptionError(f"Unable to encrypt a message: {e}") from e

        # 4. A no-op encryption must never pass as success
        if not sealed_key or not message or message == plaintext:
            raise EncryptionError("Unable to encrypt a message: cipher produced no ciphertext")

        # 5. Package
        envelope = Envelope(key=b64encode(sealed_key), message=b64encode(message))
        return envelope.encode()

    def decrypt(self, cypher_text: str) -> Any:
        """
        Decrypt an envelope produced by Warden.

        Args:
            cypher_text: The encoded envelope string

        Returns:
            The original data

        Raises:
            EncryptionError: envelope malformed or could not be opened
            RemoteCommunicationError: the public key could not be fetched
        """
        sealed_key, message = self.decode_envelope(cypher_text)

        public_key = self.key_cache.get_public_key()

        try:
            plaintext = self.cipher.open(sealed_key, message, public_key)
        except (CryptoError, ValueError, TypeError) as e:
            logger.error(f"Opening failed: {type(e).__name__}")
            raise EncryptionError(f"Unable to decrypt a message: {e}") from e

        if not plaintext:
            raise EncryptionError("Unable to decrypt a message: cipher produced no plaintext")

        try:
            return json.loads(plaintext.decode('utf-8'))
        except (UnicodeDecodeError, ValueError) as e:
            raise EncryptionError(f"Decrypted message is not valid JSON: {e}") from e

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Check a detached signature against the Warden public key."""
        return self.cipher.verify(message, signature, self.key_cache.get_public_key())

    @staticmethod
    def decode_envelope(cypher_text: str) -> Tuple[bytes, bytes]:
        """
        Decode and validate an envelope without touching any key.

        Returns:
            (sealed_key, message) raw bytes

        Raises:
            EncryptionError: "Encrypted message is not understood"
        """
        try:
            envelope = Envelope.model_validate(parse_wire_object(cypher_text))
            sealed_key = b64decode(envelope.key)
            message = b64decode(envelope.message)
        except (WireFormatError, ValueError) as e:
            raise EncryptionError(f"Encrypted message is not understood: {e}") from e
        if not sealed_key or not message:
            raise EncryptionError("Encrypted message is not understood: empty key or message")
        return sealed_key, message
