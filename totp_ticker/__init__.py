"""TOTP ticker package.

Generates RFC 6238 codes for a set of named secrets and re-displays them
once per interval. Also ships a minimal MCP server exposing the same codes.
"""

__all__ = [
    "cli",
    "config",
    "engine",
    "loop",
    "mcp_server",
    "registry",
]
