# credshare/config.py
"""
Centralized configuration for Credshare.

All configurable values are read from environment variables with sensible defaults.
This allows different environments (dev, staging, production) to use different
settings without code changes.

Usage:
    from credshare.config import VIEWER_URL, get_share_url

    url = get_share_url(token)

Environment Variables:
    CREDSHARE_HOST: Bind address for the redemption server (default: 127.0.0.1)
    CREDSHARE_PORT: Port for the redemption server (default: 3003)
    CREDSHARE_DB_PATH: JSON credential store location (default: data/db.json)
    CREDSHARE_VIEWER_URL: Base URL of the page that renders shared credentials
    CREDSHARE_LOG_LEVEL: Server log level (default: INFO)
    CREDSHARE_GATE_STRIPES: Lock stripes used by the in-memory view-count gate
    CREDSHARE_MAX_TOKEN_LENGTH: Longest encoded token accepted (default: 4096)
"""

import os
from typing import Final

# =============================================================================
# Server Configuration
# =============================================================================

HOST: Final[str] = os.getenv("CREDSHARE_HOST", "127.0.0.1")

PORT: Final[int] = int(os.getenv("CREDSHARE_PORT", "3003"))

LOG_LEVEL: Final[str] = os.getenv("CREDSHARE_LOG_LEVEL", "INFO").upper()

# JSON document holding indexed credentials; created on first access
DB_PATH: Final[str] = os.getenv(
    "CREDSHARE_DB_PATH",
    os.path.join("data", "db.json"),
)

# Number of independent locks guarding view counters. Different nonces
# hashing to different stripes never contend.
GATE_STRIPES: Final[int] = int(os.getenv("CREDSHARE_GATE_STRIPES", "64"))

# Encoded tokens longer than this are rejected before decoding
MAX_TOKEN_LENGTH: Final[int] = int(os.getenv("CREDSHARE_MAX_TOKEN_LENGTH", "4096"))

# =============================================================================
# Share Link Configuration
# =============================================================================

# Page that receives ?data=<token> and calls the redemption endpoint
VIEWER_URL: Final[str] = os.getenv(
    "CREDSHARE_VIEWER_URL",
    "http://localhost:3000/"
)

# Hash-router route of the secure viewer
VIEWER_ROUTE: Final[str] = "#/verify/access"

# Query parameter carrying the token
TOKEN_PARAM: Final[str] = "data"

# =============================================================================
# Helper Functions
# =============================================================================

def get_share_url(token: str, base_url: str = VIEWER_URL) -> str:
    """
    Generate a shareable link for an encoded share token.

    Args:
        token: The encoded share token.
        base_url: Viewer origin and path (defaults to VIEWER_URL).

    Returns:
        Full link (e.g., "http://localhost:3000/#/verify/access?data=eyJ...")
    """
    return f"{base_url}{VIEWER_ROUTE}?{TOKEN_PARAM}={token}"


def print_config() -> None:
    """Print current configuration (useful for debugging)."""
    print("Credshare Configuration:")
    print(f"  HOST:         {HOST}")
    print(f"  PORT:         {PORT}")
    print(f"  LOG_LEVEL:    {LOG_LEVEL}")
    print(f"  DB_PATH:      {DB_PATH}")
    print(f"  VIEWER_URL:   {VIEWER_URL}")
    print(f"  GATE_STRIPES: {GATE_STRIPES}")
    print(f"  MAX_TOKEN_LENGTH: {MAX_TOKEN_LENGTH}")


if __name__ == "__main__":
    print_config()
