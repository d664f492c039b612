"""
Warden API - Exceptions

RemoteCommunicationError: the Warden server answered with anything but 200
EncryptionError: sealing/opening failed or an envelope was not understood
"""

from typing import Optional


class WardenError(Exception):
    """Base exception for the Warden client."""
    pass


class RemoteCommunicationError(WardenError):
    """Raised when the Warden server cannot be reached or responds with a non-200 status."""

    def __init__(self, message: str, status_code: Optional[int] = None, reason: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class EncryptionError(WardenError):
    """Raised when encryption or decryption fails."""
    pass
