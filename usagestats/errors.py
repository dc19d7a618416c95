"""Exceptions raised by the usage statistics pipeline."""
from __future__ import annotations


class UsageStatsError(Exception):
    """Base class for all usagestats errors."""


class KeyDecodeError(UsageStatsError):
    """The public key image could not be turned into an RSA key.

    For the embedded default key this never happens; it means the constant
    itself is broken.
    """


class EncodingError(UsageStatsError):
    """Serialization, compression or encryption failed for one payload."""


class DecodeError(UsageStatsError):
    """A payload could not be decrypted or decompressed."""
