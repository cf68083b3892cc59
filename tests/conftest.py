from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Keep a developer's shell or .env from leaking into CLI tests
for _name in ("TOTP_SECRETS_FILE", "TOTP_DIGITS", "TOTP_INTERVAL", "TOTP_NORMALIZE_SECRETS"):
    os.environ.pop(_name, None)

# base32 of the RFC 4226 / RFC 6238 SHA1 test secret "12345678901234567890"
RFC_SECRET = b"12345678901234567890"
RFC_SECRET_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


@pytest.fixture
def secrets_file(tmp_path: Path) -> Path:
    path = tmp_path / "secrets.tsv"
    path.write_text(
        f"rfc\t{RFC_SECRET_B32}\nhello\tJBSWY3DPEHPK3PXP\n",
        encoding="utf-8",
    )
    return path
