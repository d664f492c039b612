"""
Warden API - Token Verifier
Checks that an inbound request genuinely comes from the Warden server.

Warden signs the current timestamp with its private key; only the real
Warden can produce the signature. A captured token could be replayed, so
it is only accepted within TOKEN_WINDOW_SECONDS of the local clock.

Verification Steps:
1. Structural validation (base64 JSON object, time and signature present)
2. Freshness check (numeric timestamp inside the window)
3. Signature verification (Ed25519 over the raw timestamp bytes)

Any failure yields a verdict other than VALID; nothing is raised.
"""

import logging
import math
import re
import time
from enum import Enum
from typing import Optional

from .crypto_engine import EnvelopeCodec
from .exceptions import RemoteCommunicationError
from .models import TokenEnvelope, WireFormatError, b64decode, parse_wire_object

logger = logging.getLogger(__name__)

TOKEN_WINDOW_SECONDS = 20

# PHP-style numeric string: "1700000000", " 17e8", "-3.5"
_NUMERIC_RE = re.compile(r'^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$')


class TokenVerdict(Enum):
    """Outcome of a token check."""
    VALID = "VALID"
    MALFORMED = "MALFORMED"              # Not a well-formed token envelope
    STALE = "STALE"                      # Timestamp outside the freshness window
    BAD_SIGNATURE = "BAD_SIGNATURE"      # Well formed, signature does not verify
    KEY_UNAVAILABLE = "KEY_UNAVAILABLE"  # Warden public key could not be fetched
    ERROR = "ERROR"                      # Unexpected failure during verification

    @property
    def is_valid(self) -> bool:
        return self is TokenVerdict.VALID


def parse_timestamp(raw: bytes) -> Optional[float]:
    """Parse a decimal ASCII timestamp, None if it is not numeric."""
    try:
        text = raw.decode('ascii')
    except UnicodeDecodeError:
        return None
    if not _NUMERIC_RE.match(text):
        return None
    return float(text)


class TokenVerifier:
    """
    Verifies authentication tokens issued by Warden.

    Usage:
        verifier = TokenVerifier(codec)
        if verifier.is_valid(token, int(time.time())):
            ...
    """

    def __init__(self, codec: EnvelopeCodec, window_seconds: int = TOKEN_WINDOW_SECONDS):
        self.codec = codec
        self.window_seconds = window_seconds

    def check(self, encrypted_remote_token: str, trusted_timestamp: Optional[int] = None) -> TokenVerdict:
        """
        Verify a token and report why it was accepted or rejected.

        Args:
            encrypted_remote_token: base64(JSON {"time": ..., "signature": ...})
            trusted_timestamp: Local clock reading in seconds (default: now);
                anything not numeric yields ERROR

        Returns:
            TokenVerdict
        """
        if trusted_timestamp is None:
            trusted_timestamp = int(time.time())

        try:
            trusted = float(trusted_timestamp)
        except (TypeError, ValueError):
            return TokenVerdict.ERROR
        if not math.isfinite(trusted):
            return TokenVerdict.ERROR

        # Step 1: Structure
        try:
            token = TokenEnvelope.model_validate(parse_wire_object(encrypted_remote_token))
            raw_time = b64decode(token.time)
            signature = b64decode(token.signature)
        except (WireFormatError, ValueError):
            return TokenVerdict.MALFORMED

        if not raw_time or not signature:
            return TokenVerdict.MALFORMED

        # Step 2: Freshness
        remote_timestamp = parse_timestamp(raw_time)
        if remote_timestamp is None:
            return TokenVerdict.MALFORMED

        if (remote_timestamp > trusted + self.window_seconds
                or remote_timestamp < trusted - self.window_seconds):
            return TokenVerdict.STALE

        # Step 3: Signature
        try:
            valid = self.codec.verify(raw_time, signature)
        except RemoteCommunicationError:
            return TokenVerdict.KEY_UNAVAILABLE
        except Exception as e:
            logger.error(f"Token signature check failed unexpectedly: {type(e).__name__}: {e}")
            return TokenVerdict.ERROR

        return TokenVerdict.VALID if valid else TokenVerdict.BAD_SIGNATURE

    def is_valid(self, encrypted_remote_token: str, trusted_timestamp: Optional[int] = None) -> bool:
        """
        Check the validity of a token sent from Warden.

        Returns:
            True only if the token is fresh and carries a valid Warden signature.
            Never raises.
        """
        try:
            verdict = self.check(encrypted_remote_token, trusted_timestamp)
        except Exception as e:
            logger.error(f"Token check failed unexpectedly: {type(e).__name__}: {e}")
            return False

        if not verdict.is_valid:
            logger.warning(f"Rejected Warden token: {verdict.value}")
        return verdict.is_valid
