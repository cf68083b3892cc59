"""Runtime configuration for the ticker."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TickerConfig(BaseModel):
    """Process-lifetime settings for code generation and display."""

    model_config = ConfigDict(frozen=True)

    digits: int = Field(default=6, ge=1, description="Number of digits per code")
    interval_seconds: int = Field(default=30, ge=1, description="TOTP time step in seconds")
    date_format: str = Field(default="%H:%M:%S", description="strftime format of the block header")
    name_width: int = Field(default=25, ge=1, description="Display width of provider names")
    once: bool = Field(default=False, description="Print a single block and exit")
    normalize_secrets: bool = Field(
        default=False,
        description="Accept lower-case, spaced or unpadded base32 secrets",
    )
