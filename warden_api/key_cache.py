"""
Warden API - Public Key Cache
Holds the Warden server's public key for the lifetime of the process.

The key is fetched from GET /public-key the first time it is needed and
served from memory afterwards. A failed fetch leaves the cache empty so
the next call tries again.
"""

import base64
import binascii
import logging
import threading
from typing import Optional

from .exceptions import RemoteCommunicationError
from .transport import Transport, ensure_ok

logger = logging.getLogger(__name__)

PUBLIC_KEY_PATH = '/public-key'


class PublicKeyCache:
    """
    Thread-safe, fetch-once holder of the Warden public key.

    Usage:
        cache = PublicKeyCache(transport)
        key = cache.get_public_key()  # first call hits the network
        key = cache.get_public_key()  # served from memory
    """

    def __init__(self, transport: Transport, path: str = PUBLIC_KEY_PATH):
        self.transport = transport
        self.path = path
        self._public_key: Optional[bytes] = None
        self._lock = threading.Lock()

    @property
    def is_cached(self) -> bool:
        """True once a key has been fetched successfully."""
        return self._public_key is not None

    def get_public_key(self) -> bytes:
        """
        Get the Warden public key, fetching it on first use.

        Returns:
            Raw public key bytes

        Raises:
            RemoteCommunicationError: the fetch failed (nothing is cached)
        """
        key = self._public_key
        if key is not None:
            return key

        with self._lock:
            # Another thread may have populated it while we waited
            if self._public_key is None:
                self._public_key = self._fetch()
            return self._public_key

    def _fetch(self) -> bytes:
        response = ensure_ok(self.transport.get(self.path))

        try:
            key = base64.b64decode(response.content.strip(), validate=True)
        except (binascii.Error, ValueError) as e:
            raise RemoteCommunicationError(
                f"Warden returned an unreadable public key: {e}",
                status_code=response.status_code,
                reason=response.reason,
            ) from e

        if not key:
            raise RemoteCommunicationError(
                "Warden returned an empty public key",
                status_code=response.status_code,
                reason=response.reason,
            )

        logger.info(f"Fetched Warden public key ({len(key)} bytes) from {self.path}")
        return key
