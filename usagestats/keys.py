"""Fixed RSA public key used to encrypt usage statistics.

Only the receiving service holds the private half. The key image is the hex
form of a DER SubjectPublicKeyInfo structure.
"""
from __future__ import annotations

import logging
import threading

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from usagestats.errors import KeyDecodeError

logger = logging.getLogger(__name__)

# PKCS#1 v1.5 padding overhead per block
PKCS1_OVERHEAD = 11

DEFAULT_KEY_IMAGE = (
    "30819f300d06092a864886f70d010101050003818d0030818902818100c14970473bd90fd1"
    "f2d20e4fa6e36ea21f7d46db2f4104a3a8f2eb097d6e26278dfadf3fe9ed05bbbb00a4433f"
    "4b7151e6683a169182e6ff2f6b4f2bb6490b2cddef73148c37a2a7421fc75f99fb0fadab46"
    "f191806599a208652f4829fd6f76e13195fb81ff3f2fce15a8e9a85ebe15c07c90b34ebdb4"
    "16bd119f0d74105f3b0203010001"
)


class RSABlockCipher:
    """Encrypts one payload, one key-sized block at a time.

    Plaintext blocks are at most block_size bytes; each encrypts to exactly
    output_block_size bytes.
    """

    def __init__(self, public_key: rsa.RSAPublicKey) -> None:
        self.public_key = public_key
        self.output_block_size = (public_key.key_size + 7) // 8
        self.block_size = self.output_block_size - PKCS1_OVERHEAD

    def encrypt_block(self, block: bytes) -> bytes:
        if len(block) > self.block_size:
            raise ValueError(
                f"block of {len(block)} bytes exceeds RSA limit of {self.block_size}"
            )
        return self.public_key.encrypt(block, padding.PKCS1v15())


class KeyMaterial:
    """Key image plus a lazily decoded, cached RSA public key."""

    def __init__(self, key_image: str = DEFAULT_KEY_IMAGE) -> None:
        self.key_image = key_image
        self._key: rsa.RSAPublicKey | None = None
        self._lock = threading.Lock()

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        if self._key is None:
            with self._lock:
                if self._key is None:
                    self._key = _decode_key(self.key_image)
        return self._key

    def get_encrypt_cipher(self) -> RSABlockCipher:
        """Fresh cipher per payload, always backed by the same key object."""
        return RSABlockCipher(self.public_key)


def _decode_key(key_image: str) -> rsa.RSAPublicKey:
    try:
        der = bytes.fromhex(key_image)
        key = serialization.load_der_public_key(der)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyDecodeError(f"invalid public key image: {e}") from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise KeyDecodeError(f"expected an RSA public key, got {type(key).__name__}")
    logger.debug("Decoded %d-bit RSA public key", key.key_size)
    return key
