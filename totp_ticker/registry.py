"""Provider registry: parsing of tab-separated secrets and base32 decoding.

Input is UTF-8 text, one provider per line, ``<display name>\\t<secret>``.
Secrets are standard base32. A secret that does not decode is used as its
raw UTF-8 bytes instead.
"""

from __future__ import annotations

import base64
import logging
import sys
from typing import Iterable, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from .engine import TotpTickerError


logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "\t"


class SecretDecodeError(TotpTickerError):
    """Raised when a stored secret is not valid base32."""


class NoProvidersError(TotpTickerError):
    """Raised when the input yields no valid provider entries."""


class SourceOpenError(TotpTickerError):
    """Raised when the secrets file cannot be opened."""


class UnknownProviderError(TotpTickerError, KeyError):
    """Raised when a provider name is not in the registry."""


class ProviderEntry(BaseModel):
    """A named secret. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Display name of the provider")
    secret: bytes = Field(..., description="Decoded raw secret bytes")
    decoded: bool = Field(
        default=True,
        description="False when base32 decoding failed and the raw text is used",
    )


def decode_secret(text: str, normalize: bool = False) -> bytes:
    """Decode a base32 secret into raw bytes.

    Args:
        text: Base32 text, upper-case alphabet ``A-Z2-7`` with ``=`` padding.
        normalize: Strip spaces, upper-case and add missing padding first.

    Raises:
        SecretDecodeError: if the text is not valid base32.
    """
    value = text
    if normalize:
        value = value.strip().replace(" ", "").upper()
        missing = (-len(value)) % 8
        if missing:
            value += "=" * missing
    try:
        return base64.b32decode(value)
    except ValueError as e:
        raise SecretDecodeError(str(e)) from e


class ProviderRegistry:
    """Ordered name -> ProviderEntry mapping owned by the caller."""

    def __init__(self, entries: Optional[Iterable[ProviderEntry]] = None) -> None:
        self._entries: dict[str, ProviderEntry] = {}
        for entry in entries or ():
            self.add(entry)

    def add(self, entry: ProviderEntry) -> None:
        """Add an entry, replacing any earlier entry with the same name."""
        if entry.name in self._entries:
            logger.debug(f"Provider {entry.name!r} redefined, keeping the later secret")
        self._entries[entry.name] = entry

    def get(self, name: str) -> ProviderEntry:
        try:
            return self._entries[name]
        except KeyError:
            raise UnknownProviderError(name) from None

    def names(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ProviderEntry]:
        return iter(list(self._entries.values()))

    def __contains__(self, name: object) -> bool:
        return name in self._entries


def parse_providers(lines: Iterable[str], normalize: bool = False) -> ProviderRegistry:
    """Build a registry from tab-separated lines.

    Malformed lines are skipped with a warning. Secrets that fail to decode
    fall back to their raw UTF-8 bytes, also with a warning.

    Raises:
        NoProvidersError: if no line produced a valid entry.
    """
    registry = ProviderRegistry()
    for raw_line in lines:
        line = raw_line.removesuffix("\n").removesuffix("\r")
        parts = line.split(FIELD_SEPARATOR)
        if len(parts) != 2:
            logger.warning(f"invalid line: {line!r}, ignoring")
            continue
        name, text = parts
        try:
            entry = ProviderEntry(name=name, secret=decode_secret(text, normalize))
        except SecretDecodeError as e:
            logger.warning(f"decoding failed: {e} ({name}), using the raw secret text")
            entry = ProviderEntry(name=name, secret=text.encode("utf-8"), decoded=False)
        registry.add(entry)
    if len(registry) < 1:
        raise NoProvidersError("invalid data provided")
    return registry


def load_registry(path: Optional[str] = None, normalize: bool = False) -> ProviderRegistry:
    """Load providers from ``path``, or from standard input when unset or ``-``.

    Raises:
        SourceOpenError: if the file cannot be opened or is not valid UTF-8.
        NoProvidersError: if the input holds no valid entries.
    """
    if path is None or path == "-":
        logger.debug("Reading providers from standard input")
        return _parse_stream(sys.stdin, normalize)
    try:
        handle = open(path, encoding="utf-8")
    except OSError as e:
        raise SourceOpenError(f"open: {e}") from e
    with handle:
        logger.debug(f"Reading providers from {path}")
        return _parse_stream(handle, normalize)


def _parse_stream(stream: Iterable[str], normalize: bool) -> ProviderRegistry:
    try:
        return parse_providers(stream, normalize)
    except UnicodeDecodeError as e:
        raise SourceOpenError(f"read: {e}") from e
