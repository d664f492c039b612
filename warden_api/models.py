"""
Warden API - Pydantic Models
Defines the strict schema of the two wire structures exchanged with Warden.

Wire format (both structures):
    base64( JSON object )

Envelope:       {"key": base64(sealed symmetric key), "message": base64(ciphertext)}
TokenEnvelope:  {"time": base64(decimal timestamp), "signature": base64(Ed25519 signature)}
"""

import base64
import binascii
import json
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class WireFormatError(ValueError):
    """Raised when a wire string cannot be decoded into a JSON object."""
    pass


def b64encode(data: bytes) -> str:
    """Encode bytes as a standard Base64 string."""
    return base64.b64encode(data).decode('ascii')


def b64decode(value: str) -> bytes:
    """
    Strictly decode a standard Base64 string.

    Raises:
        WireFormatError: value is not a string or not valid Base64
    """
    if not isinstance(value, str):
        raise WireFormatError(f"Expected a Base64 string, got {type(value).__name__}")
    try:
        return base64.b64decode(value.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise WireFormatError(f"Invalid Base64: {e}") from e


def parse_wire_object(encoded: str) -> Dict[str, Any]:
    """
    Decode base64(JSON object) into a dict.

    Anything that is not a JSON object (bare numbers, arrays, strings, null)
    is rejected as a whole.
    """
    raw = b64decode(encoded)
    try:
        obj = json.loads(raw.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise WireFormatError(f"Invalid JSON: {e}") from e

    if not isinstance(obj, dict):
        raise WireFormatError(f"Expected a JSON object, got {type(obj).__name__}")
    return obj


class Envelope(BaseModel):
    """
    Hybrid-encrypted payload as exchanged with Warden.

    Both fields are Base64 strings and must be non-empty.
    Field names are the compatibility contract with the server.
    """
    model_config = ConfigDict(frozen=True, strict=True)

    key: str = Field(..., min_length=1, description="Base64 asymmetrically sealed symmetric key")
    message: str = Field(..., min_length=1, description="Base64 symmetric ciphertext")

    def encode(self) -> str:
        """Serialise to the base64(JSON) wire string."""
        return b64encode(self.model_dump_json().encode('utf-8'))


class TokenEnvelope(BaseModel):
    """Authentication token issued by Warden to prove a request came from it."""
    model_config = ConfigDict(frozen=True, strict=True)

    time: str = Field(..., min_length=1, description="Base64 decimal Unix timestamp")
    signature: str = Field(..., min_length=1, description="Base64 Ed25519 signature over the raw timestamp")
