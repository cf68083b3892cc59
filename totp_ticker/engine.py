"""RFC 6238 TOTP computation on top of RFC 4226 HOTP (HMAC-SHA1)."""

from __future__ import annotations

import hmac
import math
import struct
from datetime import datetime
from hashlib import sha1
from typing import Union


Timestamp = Union[datetime, int, float]

MAC_LENGTH = 20
MAX_COUNTER = 0xFFFFFFFFFFFFFFFF


class TotpTickerError(Exception):
    """Base class for all errors raised by this package."""


class TOTPError(TotpTickerError):
    """Raised when a code cannot be computed from the given inputs."""


def _unix_seconds(at: Timestamp) -> int:
    """Return whole Unix seconds for a datetime or a numeric timestamp."""
    if isinstance(at, datetime):
        return math.floor(at.timestamp())
    return math.floor(at)


def time_step(at: Timestamp, interval_seconds: int) -> int:
    """Return the number of whole intervals elapsed since the Unix epoch.

    Args:
        at: Point in time, either a datetime or Unix seconds.
        interval_seconds: Length of one time step in seconds.
    """
    if interval_seconds <= 0:
        raise TOTPError(f"interval must be positive, got {interval_seconds}")
    seconds = _unix_seconds(at)
    if seconds < 0:
        raise TOTPError(f"timestamp before the Unix epoch: {seconds}")
    return seconds // interval_seconds


def dynamic_truncate(mac: bytes) -> int:
    """Apply RFC 4226 dynamic truncation to a 20-byte HMAC-SHA1 digest.

    The low nibble of the last byte selects a 4-byte window (offset 0..15,
    so the window never extends past byte 19). The window is read
    big-endian and its high bit is cleared.
    """
    if len(mac) != MAC_LENGTH:
        raise TOTPError(f"expected a {MAC_LENGTH}-byte MAC, got {len(mac)} bytes")
    offset = mac[-1] & 0x0F
    (value,) = struct.unpack("!I", mac[offset : offset + 4])
    return value & 0x7FFFFFFF


def hotp(secret: bytes, counter: int, digits: int) -> str:
    """Generate an HOTP code using SHA1.

    Args:
        secret: Raw shared secret bytes. May be empty.
        counter: Moving factor, packed as an unsigned 64-bit big-endian integer.
        digits: Number of digits in the output code.
    """
    if digits <= 0:
        raise TOTPError(f"digits must be positive, got {digits}")
    if not 0 <= counter <= MAX_COUNTER:
        raise TOTPError(f"counter out of range: {counter}")
    counter_bytes = struct.pack("!Q", counter)
    hmac_digest = hmac.new(bytes(secret), counter_bytes, sha1).digest()
    hotp_value = dynamic_truncate(hmac_digest) % (10 ** digits)
    return str(hotp_value).zfill(digits)


def generate(secret: bytes, at: Timestamp, interval_seconds: int, digits: int) -> str:
    """Generate the TOTP code for ``secret`` at time ``at``.

    Args:
        secret: Raw shared secret bytes.
        at: Point in time the code is valid for.
        interval_seconds: Time step length in seconds.
        digits: Number of digits in the output code.

    Returns:
        Decimal string of exactly ``digits`` characters.

    Raises:
        TOTPError: if the interval, digit count or timestamp is invalid.
    """
    return hotp(secret, time_step(at, interval_seconds), digits)
