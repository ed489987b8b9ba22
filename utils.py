from __future__ import annotations

import html as html_mod
import re
import time
from collections.abc import Callable
from datetime import date
from decimal import Decimal, InvalidOperation
from threading import Lock

import httpx

import config

# IMDb identifiers: 'tt' + 7 or 8 digits
IMDB_ID_RE = re.compile(r"^tt[0-9]{7,8}$")


class InvalidIdentifierError(ValueError):
    """Raised for an IMDb identifier that is not of the form 'tt1234567'."""


def validate_id(imdb_id: str) -> str:
    """Return imdb_id unchanged, or raise InvalidIdentifierError."""
    if not isinstance(imdb_id, str) or not IMDB_ID_RE.match(imdb_id):
        raise InvalidIdentifierError(
            f"Invalid IMDb identifier provided: {imdb_id!r}. Must be in the form of 'tt1234567'"
        )
    return imdb_id


def get_http_client(
    retries: int = 2,
    timeout: float = 20.0,
    headers: dict[str, str] | None = None,
    event_hooks: dict[str, list[Callable]] | None = None,
) -> httpx.Client:
    """Create an httpx client with retry transport and standard headers."""
    transport = httpx.HTTPTransport(retries=retries)
    return httpx.Client(
        transport=transport,
        timeout=timeout,
        follow_redirects=True,
        max_redirects=config.HTTP_MAX_REDIRECTS,
        headers=headers or {"User-Agent": config.get_user_agent()},
        event_hooks=event_hooks or {},
    )


class RateLimiter:
    """Enforce minimum delay between requests to the same domain."""

    def __init__(self, min_delay: float = 1.0):
        self.min_delay = min_delay
        self._last_request: dict[str, float] = {}
        self._lock = Lock()

    def wait(self, domain: str) -> None:
        """Sleep if needed to respect rate limit for domain."""
        if self.min_delay <= 0:
            return
        with self._lock:
            now = time.time()
            if domain in self._last_request:
                elapsed = now - self._last_request[domain]
                if elapsed < self.min_delay:
                    time.sleep(self.min_delay - elapsed)
            self._last_request[domain] = time.time()


# ---------------------------------------------------------------------------
# Text normalization
# ---------------------------------------------------------------------------

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def clean(text: str | None) -> str:
    """Decode entities, strip tags and non-breaking spaces, collapse whitespace.

    Entity decoding and tag stripping repeat until the text stops changing, so
    double-escaped markup ('&amp;lt;b&amp;gt;') is fully reduced on the first
    call and clean(clean(x)) == clean(x).
    """
    if not text:
        return ""
    previous = None
    while previous != text:
        previous = text
        text = html_mod.unescape(text).replace("\xa0", " ")
        text = _TAG_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


# ---------------------------------------------------------------------------
# Human-formatted counts: "1.5M", "456K", "1,2 mln", "(12)"
# ---------------------------------------------------------------------------

_COUNT_RE = re.compile(r"([0-9][0-9,.]*)\s*(mln|m|k)?", re.IGNORECASE)
_DECIMAL_RE = re.compile(r"[0-9]+(?:\.[0-9]+)?")

_COUNT_MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "mln": 1_000_000}


def parse_count(text: str | None) -> int | None:
    """Parse a count like '1.5M' into 1500000. Returns None when no digits are found."""
    if not text:
        return None
    m = _COUNT_RE.search(text)
    if not m:
        return None
    number = _DECIMAL_RE.match(m.group(1).replace(",", "."))
    try:
        value = Decimal(number.group(0))
    except (AttributeError, InvalidOperation):
        return None
    multiplier = _COUNT_MULTIPLIERS.get((m.group(2) or "").lower(), 1)
    return int(value * multiplier)


# ---------------------------------------------------------------------------
# Localized dates
# ---------------------------------------------------------------------------

_MONTHS = {
    # English
    "january": 1, "jan": 1, "february": 2, "feb": 2, "march": 3, "mar": 3,
    "april": 4, "apr": 4, "may": 5, "june": 6, "jun": 6, "july": 7, "jul": 7,
    "august": 8, "aug": 8, "september": 9, "sep": 9, "sept": 9,
    "october": 10, "oct": 10, "november": 11, "nov": 11, "december": 12, "dec": 12,
    # Italian
    "gennaio": 1, "gen": 1, "febbraio": 2, "marzo": 3, "aprile": 4, "maggio": 5,
    "mag": 5, "giugno": 6, "giu": 6, "luglio": 7, "lug": 7, "agosto": 8, "ago": 8,
    "settembre": 9, "set": 9, "ottobre": 10, "ott": 10, "novembre": 11,
    "dicembre": 12, "dic": 12,
    # French
    "janvier": 1, "janv": 1, "février": 2, "fevrier": 2, "févr": 2, "fevr": 2,
    "fév": 2, "mars": 3, "avril": 4, "avr": 4, "mai": 5, "juin": 6,
    "juillet": 7, "juil": 7, "août": 8, "aout": 8, "septembre": 9,
    "octobre": 10, "décembre": 12, "déc": 12,
    # Spanish
    "enero": 1, "ene": 1, "febrero": 2, "abril": 4, "abr": 4, "mayo": 5,
    "junio": 6, "julio": 7, "septiembre": 9, "setiembre": 9, "octubre": 10,
    "noviembre": 11, "diciembre": 12,
    # Portuguese
    "janeiro": 1, "fevereiro": 2, "fev": 2, "março": 3, "marco": 3, "maio": 5,
    "junho": 6, "julho": 7, "setembro": 9, "outubro": 10, "out": 10,
    "novembro": 11, "dezembro": 12, "dez": 12,
    # German
    "januar": 1, "jänner": 1, "februar": 2, "märz": 3, "mär": 3, "juni": 6,
    "juli": 7, "oktober": 10, "okt": 10, "dezember": 12,
}

_WEEKDAY = r"[^\W\d_]+\.?,\s*"
_MONTH = r"(?P<month>[^\W\d_]+)\.?"
_DAY = r"(?P<day>\d{1,2})"
_YEAR = r"(?P<year>\d{4})"

# Tried in order; the first pattern that yields a valid calendar date wins.
_DATE_PATTERNS = [
    # Mon, Sep 22, 2014
    re.compile(rf"{_WEEKDAY}{_MONTH}\s+{_DAY},?\s+{_YEAR}"),
    # lun, 22 sept 2014 / dom, 21 set 2014
    re.compile(rf"{_WEEKDAY}{_DAY}\s+{_MONTH}\s+{_YEAR}"),
    # seg., 22 de set. de 2014
    re.compile(rf"{_WEEKDAY}{_DAY}\s+de\s+{_MONTH}\s+de\s+{_YEAR}", re.IGNORECASE),
    # Sep 22, 2014
    re.compile(rf"{_MONTH}\s+{_DAY},?\s+{_YEAR}"),
    # 22 Sep 2014
    re.compile(rf"{_DAY}\s+{_MONTH}\s+{_YEAR}"),
    # 22 de set. de 2014
    re.compile(rf"{_DAY}\s+de\s+{_MONTH}\s+de\s+{_YEAR}", re.IGNORECASE),
]


def parse_date(text: str | None) -> str | None:
    """Parse a localized air date like 'Mon, Sep 22, 2014'. Returns YYYY-MM-DD or None."""
    text = clean(text)
    if not text:
        return None

    for pattern in _DATE_PATTERNS:
        m = pattern.fullmatch(text)
        if not m:
            continue
        month = _MONTHS.get(m.group("month").lower())
        if month is None:
            continue
        try:
            parsed = date(int(m.group("year")), month, int(m.group("day")))
        except ValueError:
            continue
        return parsed.isoformat()

    return None


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------

def absolutize_url(url: str) -> str:
    """Prefix site-relative URLs with the IMDb origin and drop any query string."""
    if url.startswith("/"):
        url = f"{config.BASE_URL}{url}"
    return url.split("?", 1)[0]
