"""
Pure text-to-value converters.

Every parser returns None when the input cannot be understood. None of them
fall back to a default such as zero, so callers can tell "absent" from "0".
"""
import logging
import re
from datetime import date
from urllib.parse import urlparse

from .config import MONTH_ABBREVIATIONS, DOMAIN_FULL, DOMAIN_SHORT

logger = logging.getLogger(__name__)

_SHORTHAND_MULTIPLIERS = {"K": 1_000, "M": 1_000_000, "B": 1_000_000_000}
_SHORTHAND_RE = re.compile(r"^(\d+(?:\.\d+)?)([KMB])?$", re.IGNORECASE)
_RATING_OUT_OF_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(?:/|out of)\s*(\d+(?:\.\d+)?)")
_RUNTIME_HM_RE = re.compile(r"^(?:(\d+)\s*h(?:ours?|rs?)?)?\s*(?:(\d+)\s*m(?:in(?:ute)?s?)?)?$")
_RUNTIME_MINS_RE = re.compile(r"(\d[\d,]*)\s*min")
_YEAR_RE = re.compile(r"\b(1[89]\d{2}|2[01]\d{2})\b")


def clean_text(text: str | None) -> str:
    """Collapse runs of whitespace (including nbsp) into single spaces and trim."""
    if not text:
        return ""
    return " ".join(text.split())


def parse_shorthand_count(text: str | None) -> int | None:
    """
    Parse counts like '1.2K', '3.4M', '12,345' or '0'.

    Thin spaces and commas used as thousands separators are ignored.
    Returns None for anything that is not a non-negative count.
    """
    if text is None:
        return None
    cleaned = clean_text(text).replace(",", "").replace(" ", "")
    match = _SHORTHAND_RE.match(cleaned)
    if not match:
        return None
    number, suffix = match.groups()
    if suffix:
        return int(round(float(number) * _SHORTHAND_MULTIPLIERS[suffix.upper()]))
    if "." in number:
        return None
    return int(number)


def extract_numeric(text: str | None) -> int | None:
    """Keep only the ASCII digits of a string and return them as an integer."""
    if not text:
        return None
    digits = "".join(c for c in text if c.isascii() and c.isdigit())
    return int(digits) if digits else None


def parse_rating(text: str | None) -> float | None:
    """
    Parse a rating into the 0.5-5.0 scale.

    Accepts plain fixed-point text ('4.5'), star glyphs ('★★★½'),
    fractions ('4.2/5') and the site's meta phrasing ('4.6 out of 5').
    """
    if text is None:
        return None
    cleaned = clean_text(text)
    if not cleaned:
        return None

    if "★" in cleaned or "½" in cleaned:
        stars = cleaned.replace(" ", "")
        if stars.strip("★½"):
            return None
        value = stars.count("★") + (0.5 if "½" in stars else 0.0)
    else:
        match = _RATING_OUT_OF_RE.match(cleaned)
        try:
            if match:
                numerator, scale = float(match.group(1)), float(match.group(2))
                if scale <= 0:
                    return None
                value = numerator / scale * 5.0
            else:
                value = float(cleaned)
        except ValueError:
            return None

    value = round(value, 2)
    if 0.5 <= value <= 5.0:
        return value
    return None


def parse_rating_class(classes: str | None) -> float | None:
    """
    Parse a rating from a class list containing 'rated-N' (N is half-stars).

    'rated-8' is 4.0 stars. Values outside 0.5-5.0 are rejected.
    """
    if not classes:
        return None
    for cls in classes.split():
        if cls.startswith("rated-"):
            try:
                val = int(cls.replace("rated-", "")) / 2
            except ValueError:
                logger.debug(f"Unexpected rating format in class '{cls}'")
                return None
            if 0.5 <= val <= 5.0:
                return val
            logger.debug(f"Rating value outside range [0.5-5.0]: {val} from class '{cls}'")
            return None
    return None


def parse_runtime(text: str | None) -> int | None:
    """
    Parse a runtime into whole minutes.

    Handles '142 mins', '142 mins More at IMDb', '2h 22m' and '2:22'.
    Zero or negative durations are rejected.
    """
    if not text:
        return None
    cleaned = clean_text(text).lower()

    minutes = None
    mins_match = _RUNTIME_MINS_RE.search(cleaned)
    hm_match = _RUNTIME_HM_RE.match(cleaned.replace(" ", ""))
    if hm_match and any(hm_match.groups()) and "h" in cleaned:
        hours = int(hm_match.group(1) or 0)
        mins = int(hm_match.group(2) or 0)
        minutes = hours * 60 + mins
    elif mins_match:
        minutes = int(mins_match.group(1).replace(",", ""))
    elif hm_match and hm_match.group(2):
        minutes = int(hm_match.group(2))
    elif ":" in cleaned:
        parts = cleaned.split(":")
        if len(parts) == 2 and all(p.strip().isdigit() for p in parts):
            minutes = int(parts[0]) * 60 + int(parts[1])

    if minutes is None or minutes <= 0:
        return None
    return minutes


def parse_year(text: str | None) -> int | None:
    """Pull the first plausible four-digit year out of free text such as 'Barbie (2023)'."""
    if not text:
        return None
    match = _YEAR_RE.search(text)
    return int(match.group(1)) if match else None


def month_to_index(month_abbr: str) -> int | None:
    """Convert a month abbreviation (case-insensitive, 'Sept' tolerated) to 1-12."""
    key = month_abbr.strip()[:3].lower()
    for idx, abbr in enumerate(MONTH_ABBREVIATIONS, start=1):
        if abbr.lower() == key:
            return idx
    return None


def parse_iso_date(text: str | None) -> date | None:
    """Parse '2024-03-15' or '2024-03-15T20:11:00Z' into a date."""
    if not text:
        return None
    parts = text.strip().split("T")[0].split("-")
    if len(parts) != 3:
        return None
    try:
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except ValueError:
        return None


def parse_written_date(text: str | None) -> date | None:
    """Parse a written date like '01 Jan 2025' or 'Jan 1, 2025'."""
    if not text:
        return None
    parts = clean_text(text).replace(",", "").split()
    if len(parts) != 3:
        return None
    if parts[0].isdigit():
        day_text, month_text, year_text = parts
    else:
        month_text, day_text, year_text = parts
    month = month_to_index(month_text)
    if month is None or not day_text.isdigit() or not year_text.isdigit():
        return None
    try:
        return date(int(year_text), month, int(day_text))
    except ValueError:
        return None


def _path_parts(url: str) -> list[str]:
    parsed = urlparse(url if "://" in url else f"https://{DOMAIN_FULL}/{url.lstrip('/')}")
    return [p for p in parsed.path.split("/") if p]


def extract_film_slug(url: str | None) -> str | None:
    """Extract the film slug from '/film/parasite-2019/' style URLs or paths."""
    if not url or "/film/" not in url:
        return None
    parts = _path_parts(url)
    try:
        slug = parts[parts.index("film") + 1]
    except (ValueError, IndexError):
        return None
    return slug or None


def extract_user_slug(url: str | None) -> str | None:
    """Extract the member handle from a profile URL or a '/handle/' path."""
    if not url:
        return None
    parsed = urlparse(url if "://" in url else f"https://{DOMAIN_FULL}/{url.lstrip('/')}")
    host = parsed.netloc.lower().removeprefix("www.")
    if host not in (DOMAIN_FULL, DOMAIN_SHORT):
        return None
    parts = [p for p in parsed.path.split("/") if p]
    if not parts or parts[0] in ("film", "films", "s", "search", "list", "csi", "ajax"):
        return None
    return parts[0].lower()


def extract_list_path(url: str | None) -> tuple[str, str] | None:
    """Return (author, list_slug) for '/author/list/slug/' URLs."""
    if not url:
        return None
    parts = _path_parts(url)
    if len(parts) >= 3 and parts[1] == "list":
        return parts[0].lower(), parts[2]
    return None


def sanitize_for_url(text: str) -> str:
    """Turn a title into a slug-like token: 'Spider-Man: No Way Home' -> 'spider-man-no-way-home'."""
    lowered = "".join(c if c.isalnum() else "-" for c in text.lower())
    return re.sub(r"-{2,}", "-", lowered).strip("-")
