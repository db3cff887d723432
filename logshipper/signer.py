"""
Shared-key request signing for the HTTP Data Collector API.

The service recomputes the same canonical string from the received request
and compares HMAC-SHA256 digests, so every field must match byte for byte.
"""

import base64
import binascii
import hashlib
import hmac

from .constants import (
    AUTH_SCHEME,
    CONTENT_TYPE,
    HEADER_MS_DATE,
    RESOURCE,
    SIGNING_METHOD
)
from .exceptions import SigningKeyError


def decode_signing_key(workspace_secret: str) -> bytes:
    """
    Decode the base64 workspace secret into the raw HMAC key.

    Args:
        workspace_secret: Primary or secondary workspace key

    Returns:
        Decoded key bytes

    Raises:
        SigningKeyError: If the secret is not valid base64 or decodes to nothing
    """
    if not workspace_secret:
        raise SigningKeyError("workspace_secret cannot be empty")

    try:
        key = base64.b64decode(workspace_secret, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SigningKeyError(f"workspace_secret is not valid base64: {e}") from e

    if not key:
        raise SigningKeyError("workspace_secret decodes to an empty key")
    return key


def build_string_to_sign(content_length: int, date: str,
                         method: str = SIGNING_METHOD,
                         content_type: str = CONTENT_TYPE,
                         resource: str = RESOURCE) -> str:
    """
    Build the canonical string to sign.

    Format: METHOD\\nCONTENT-LENGTH\\nCONTENT-TYPE\\nx-ms-date:DATE\\nRESOURCE
    """
    x_headers = f"{HEADER_MS_DATE}:{date}"
    return "\n".join([method, str(content_length), content_type, x_headers, resource])


def sign(string_to_sign: str, key: bytes) -> str:
    """Return the base64 HMAC-SHA256 of the UTF-8 encoded string."""
    mac = hmac.new(key, string_to_sign.encode('utf-8'), hashlib.sha256)
    return base64.b64encode(mac.digest()).decode('ascii')


def build_authorization(workspace_id: str, signature: str) -> str:
    """Format the Authorization header value."""
    return f"{AUTH_SCHEME} {workspace_id}:{signature}"
