from __future__ import annotations

import logging
import os
import sys
import time
from functools import lru_cache
from typing import Dict, List, Optional, Union

from fastmcp import FastMCP
from pydantic import BaseModel, Field

from .engine import generate, time_step
from .registry import (
    ProviderRegistry,
    SecretDecodeError,
    decode_secret,
    load_registry,
)


logger = logging.getLogger(__name__)

mcp = FastMCP("TOTP Ticker MCP Server")


class GetProviderCodeRequest(BaseModel):
    """Request the current code of a configured provider.

    Attributes:
        name: Display name of the provider in the secrets file.
        period: The time step in seconds. Defaults to 30 seconds.
        digits: Number of digits in the TOTP code. Defaults to 6.
    """

    name: str = Field(..., min_length=1)
    period: int = Field(default=30, ge=1)
    digits: int = Field(default=6, ge=1, le=10)


class GenerateTotpCodeRequest(BaseModel):
    """Request a code for an ad-hoc base32 secret."""

    secret: str = Field(...)
    period: int = Field(default=30, ge=1)
    digits: int = Field(default=6, ge=1, le=10)


@lru_cache(maxsize=1)
def _get_registry() -> ProviderRegistry:
    """Return the registry loaded from TOTP_SECRETS_FILE, cached per process."""
    path = os.environ.get("TOTP_SECRETS_FILE", "").strip()
    if not path:
        raise ValueError("TOTP_SECRETS_FILE environment variable is required")
    normalize = os.environ.get("TOTP_NORMALIZE_SECRETS", "").lower() in ("1", "true", "yes")
    return load_registry(path, normalize=normalize)


def _provider_code(
    registry: ProviderRegistry,
    request: GetProviderCodeRequest,
    now: Optional[float] = None,
) -> Dict[str, Union[str, int]]:
    """Compute the code for one provider.

    Args:
        registry: Registry holding the provider.
        request: Provider name and code parameters.
        now: Optional unix timestamp override for testing.
    """
    unix_time = int(now if now is not None else time.time())
    entry = registry.get(request.name)
    return {
        "name": entry.name,
        "code": generate(entry.secret, unix_time, request.period, request.digits),
        "step": time_step(unix_time, request.period),
        "valid_for": request.period - unix_time % request.period,
    }


def _code_from_secret(request: GenerateTotpCodeRequest, now: Optional[float] = None) -> str:
    """Compute a code for a base32 secret, falling back to the raw text."""
    unix_time = int(now if now is not None else time.time())
    try:
        secret = decode_secret(request.secret, normalize=True)
    except SecretDecodeError as e:
        logger.warning(f"decoding failed: {e}, using the raw secret text")
        secret = request.secret.encode("utf-8")
    return generate(secret, unix_time, request.period, request.digits)


@mcp.tool(
    name="list_providers",
    description="List the provider names configured in the secrets file.",
)
def list_providers() -> Dict[str, List[str]]:
    """Return the configured provider names."""
    return {"providers": _get_registry().names()}


@mcp.tool(
    name="get_provider_code",
    description="Return the current TOTP code of a configured provider.",
)
def get_provider_code(request: GetProviderCodeRequest) -> Dict[str, Union[str, int]]:
    """Return the current code of the named provider."""
    return _provider_code(_get_registry(), request)


@mcp.tool(
    name="generate_totp_code",
    description="Generate the current code for a base32 secret.",
)
def generate_totp_code(request: GenerateTotpCodeRequest) -> Dict[str, str]:
    """Return the current TOTP code for a base32 secret."""
    return {"code": _code_from_secret(request)}


if __name__ == "__main__":
    logging.basicConfig(stream=sys.stderr, level=logging.WARNING)
    mcp.run(transport="stdio")
