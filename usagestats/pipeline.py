"""Snapshot -> transport-safe string.

json -> UTF-8 encode -> gzip -> RSA encrypt -> base64 -> string

All stages are chained as file objects, so the JSON text is never held in
memory as a whole. RSA cannot encrypt more than one key block at a time, so
the encrypting stage cuts the gzip stream into blocks of at most
(key bytes - 11) and encrypts each with PKCS#1 v1.5 on its own. Ciphertext
blocks are exactly key-bytes long and concatenated in order; the receiver
splits on that boundary (see usagestats.decode).
"""
from __future__ import annotations

import base64
import gzip
import io
import json
import logging
import zlib

from usagestats.errors import EncodingError
from usagestats.keys import RSABlockCipher
from usagestats.models import Snapshot

logger = logging.getLogger(__name__)

JSON_SEPARATORS = (",", ":")


class RSABlockStream(io.RawIOBase):
    """Write-only stream that RSA-encrypts everything written to it.

    Input is buffered until a full plaintext block is available. close()
    encrypts the trailing partial block, if any. The target is not closed.
    """

    def __init__(self, target: io.BufferedIOBase | io.BytesIO, cipher: RSABlockCipher) -> None:
        super().__init__()
        self._target = target
        self._cipher = cipher
        self._pending = bytearray()
        self.blocks_written = 0

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        if self.closed:
            raise ValueError("write to closed RSABlockStream")
        self._pending += b
        size = self._cipher.block_size
        while len(self._pending) >= size:
            self._emit(bytes(self._pending[:size]))
            del self._pending[:size]
        return len(b)

    def close(self) -> None:
        if not self.closed:
            try:
                if self._pending:
                    self._emit(bytes(self._pending))
                    self._pending.clear()
            finally:
                super().close()

    def _emit(self, block: bytes) -> None:
        self._target.write(self._cipher.encrypt_block(block))
        self.blocks_written += 1


def serialize(snapshot: Snapshot) -> bytes:
    """The exact UTF-8 JSON bytes encode() feeds into gzip."""
    return json.dumps(
        snapshot.to_dict(), separators=JSON_SEPARATORS, ensure_ascii=False,
    ).encode("utf-8")


def encode(snapshot: Snapshot, cipher: RSABlockCipher) -> str:
    """Serialize, compress, encrypt and base64-encode a snapshot.

    Raises EncodingError if any stage fails. Nothing is returned in that case.
    """
    out = io.BytesIO()
    try:
        encrypted = RSABlockStream(out, cipher)
        with encrypted:
            with gzip.GzipFile(fileobj=encrypted, mode="wb", mtime=0) as compressed:
                with io.TextIOWrapper(compressed, encoding="utf-8", newline="") as w:
                    json.dump(
                        snapshot.to_dict(), w,
                        separators=JSON_SEPARATORS, ensure_ascii=False,
                    )
    except (OSError, ValueError, TypeError, zlib.error) as e:
        raise EncodingError(f"failed to encode usage statistics: {e}") from e

    data = out.getvalue()
    logger.debug(
        "Encoded usage statistics: %d ciphertext bytes in %d blocks",
        len(data), encrypted.blocks_written,
    )
    return base64.b64encode(data).decode("ascii")
