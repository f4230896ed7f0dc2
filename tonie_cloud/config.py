"""Configuration constants and .env loading.

WHY: Endpoint URLs, the OAuth client id, the chapter origin tag and the
external tool names are plain data. Keeping them in one module makes them
easy to find and to override for staging environments or tests.

HOW: python-dotenv loads the .env file on import. Constants are module-level
strings read from the environment with production defaults.
load_credentials() returns the optional username/password pair used for
non-interactive logins.

RULES:
- Nothing here performs network or process I/O
- Credentials are never hardcoded; they come from the environment or a prompt
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the working directory (where the tool is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Service endpoints
# ---------------------------------------------------------------------------

TONIE_AUTH_URL = os.getenv(
    "TONIE_AUTH_URL",
    "https://login.tonies.com/auth/realms/tonies/protocol/openid-connect/token",
)
TONIE_API_BASE_URL = os.getenv("TONIE_API_BASE_URL", "https://api.tonie.cloud")
TONIE_CLIENT_ID = os.getenv("TONIE_CLIENT_ID", "my-tonies")

DEFAULT_ORIGIN = os.getenv("TONIE_ORIGIN", "file-python")
"""Origin tag recorded with every chapter this client uploads."""

# ---------------------------------------------------------------------------
# External media tools
# ---------------------------------------------------------------------------

YTDLP_BIN = os.getenv("TONIE_YTDLP_BIN", "yt-dlp")
FFMPEG_BIN = os.getenv("TONIE_FFMPEG_BIN", "ffmpeg")


def load_credentials() -> tuple[str, str] | None:
    """Return (username, password) from the environment, or None.

    Both TONIE_USERNAME and TONIE_PASSWORD must be set and non-empty;
    a half-configured pair counts as absent so the caller falls back to
    the interactive prompt.
    """
    username = os.getenv("TONIE_USERNAME", "").strip()
    password = os.getenv("TONIE_PASSWORD", "")
    if not username or not password:
        return None
    return username, password
