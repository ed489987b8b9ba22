"""Configuration: IMDb endpoints, HTTP client settings, cache location and TTL."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

log = logging.getLogger(__name__)

# Load .env from the project root (won't override existing env vars)
load_dotenv(Path(__file__).parent / ".env")

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
BASE_URL = os.environ.get("IMDB_BASE_URL", "https://www.imdb.com").rstrip("/")
SUGGESTION_URL = os.environ.get(
    "IMDB_SUGGESTION_URL",
    "https://v3.sg.media-imdb.com/suggestion/x/{keyword}.json?includeVideos=0",
)

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
ROOT = Path(os.environ.get("IMDB_ROOT", str(Path(__file__).parent)))
CACHE_DIR = Path(os.environ.get("IMDB_CACHE_DIR", str(ROOT / "cache")))
CACHE_DB = CACHE_DIR / "imdb.db"

# ---------------------------------------------------------------------------
# Cache and HTTP settings
# ---------------------------------------------------------------------------
# 31 days
CACHE_TTL = int(os.environ.get("IMDB_CACHE_TTL", "2678400"))

DEFAULT_LOCALE = os.environ.get("IMDB_LOCALE", "en")

HTTP_TIMEOUT = float(os.environ.get("IMDB_HTTP_TIMEOUT", "20.0"))
HTTP_RETRIES = int(os.environ.get("IMDB_HTTP_RETRIES", "2"))
HTTP_MAX_REDIRECTS = 10

# Validate numeric settings at import time
if CACHE_TTL <= 0:
    raise ValueError(f"IMDB_CACHE_TTL must be a positive number of seconds, got {CACHE_TTL!r}")
if HTTP_TIMEOUT <= 0:
    raise ValueError(f"IMDB_HTTP_TIMEOUT must be positive, got {HTTP_TIMEOUT!r}")
if HTTP_RETRIES < 0:
    raise ValueError(f"IMDB_HTTP_RETRIES must be non-negative, got {HTTP_RETRIES!r}")

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/58.0.3029.110 Safari/537.3"
)


# ---------------------------------------------------------------------------
# Runtime switches, read from the environment on every call
# ---------------------------------------------------------------------------

def get_user_agent() -> str:
    return os.environ.get("IMDB_USER_AGENT", USER_AGENT)


def log_http_enabled() -> bool:
    return os.environ.get("IMDB_LOG_HTTP", "").lower() in ("1", "true", "yes")


def accept_language(locale: str | None = None) -> str:
    """Build an Accept-Language header value from a locale hint.

    'en' -> 'en-US,en;q=0.5', 'it' -> 'it-IT,it;q=0.5', 'pt-BR' -> 'pt-BR,pt;q=0.5'.
    """
    locale = (locale or DEFAULT_LOCALE).strip().replace("_", "-")
    if not locale:
        locale = "en"
    if "-" in locale:
        lang, region = locale.split("-", 1)
        lang = lang.lower()
        return f"{lang}-{region.upper()},{lang};q=0.5"
    lang = locale.lower()
    region = "US" if lang == "en" else lang.upper()
    return f"{lang}-{region},{lang};q=0.5"
