"""Receiving side: turn an encoded payload back into its JSON text.

Inverse of usagestats.pipeline.encode. Needs the private half of the key,
which only the collecting service has.
"""
from __future__ import annotations

import base64
import binascii
import gzip
import json
import logging
import zlib
from typing import Any

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from usagestats.errors import DecodeError

logger = logging.getLogger(__name__)


def load_private_key(pem: bytes) -> rsa.RSAPrivateKey:
    """Load an unencrypted PEM RSA private key."""
    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError) as e:
        raise DecodeError(f"invalid private key: {e}") from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise DecodeError(f"expected an RSA private key, got {type(key).__name__}")
    return key


def decrypt_payload(text: str, private_key: rsa.RSAPrivateKey) -> bytes:
    """Return the UTF-8 JSON bytes carried by an encoded payload."""
    try:
        ciphertext = base64.b64decode(text.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"payload is not valid base64: {e}") from e

    k = (private_key.key_size + 7) // 8
    if len(ciphertext) % k:
        raise DecodeError(
            f"payload length {len(ciphertext)} is not a multiple of the {k}-byte RSA block"
        )

    compressed = bytearray()
    for offset in range(0, len(ciphertext), k):
        try:
            compressed += private_key.decrypt(ciphertext[offset:offset + k], padding.PKCS1v15())
        except ValueError as e:
            raise DecodeError(f"RSA block at offset {offset} failed to decrypt") from e

    try:
        data = gzip.decompress(bytes(compressed))
    except (OSError, EOFError, zlib.error) as e:
        raise DecodeError(f"payload is not valid gzip: {e}") from e
    logger.debug("Decoded %d ciphertext bytes into %d JSON bytes", len(ciphertext), len(data))
    return data


def load_payload(text: str, private_key: rsa.RSAPrivateKey) -> dict[str, Any]:
    """Decrypt and parse a payload into the snapshot's wire dict."""
    data = decrypt_payload(text, private_key)
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"payload is not valid JSON: {e}") from e
