"""Configuration for the Discogs format filter."""

import os
from typing import Optional

from dotenv import load_dotenv

# Discogs API
API_BASE = "https://api.discogs.com"
WEB_BASE = "https://www.discogs.com"
USER_AGENT = "DiscogsFormatFilter/0.1"
TOKEN_ENV_VAR = "DISCOGS_TOKEN"
TOKEN_HELP_URL = "https://www.discogs.com/settings/developers"

# Request settings
REQUEST_TIMEOUT = 30
PER_PAGE = 100
ARTIST_SEARCH_PER_PAGE = 10

# Rate limiting (seconds)
DEFAULT_QUOTA = 60
LOW_QUOTA_THRESHOLD = 3
LOW_QUOTA_COOLDOWN = 10.0
RATE_LIMIT_COOLDOWN = 30.0

# Retry queue: 1 initial attempt + 4 retries
MAX_ATTEMPTS = 5

# Major format names as the catalog spells them, keyed by lower case.
# Used to recognise formats inside inline hints like "2×CD, Album".
INLINE_FORMATS = {
    "vinyl": "Vinyl",
    "cd": "CD",
    "file": "File",
    "cassette": "Cassette",
    "dvd": "DVD",
    "blu-ray": "Blu-ray",
    "box set": "Box Set",
    "shellac": "Shellac",
    "flexi-disc": "Flexi-disc",
    "lathe cut": "Lathe Cut",
}

# Formats probed through search when pre-excluding masters in --only mode
BULK_SEARCH_FORMATS = [
    "Vinyl", "CD", "Cassette", "File", "DVD", "Blu-ray", "Box Set", "Shellac",
]


def catalog_format_name(name: str) -> str:
    """Return the catalog spelling of a lower-cased format name."""
    known = INLINE_FORMATS.get(name.lower())
    if known:
        return known
    return name[:1].upper() + name[1:]


def load_token() -> Optional[str]:
    """Read the personal access token from the environment or a .env file."""
    load_dotenv()
    token = os.environ.get(TOKEN_ENV_VAR, "").strip()
    return token or None
