"""
Input validators.

The is_* functions answer yes/no, the check_* functions return a failure
reason (or None when the value is fine) and the require_* functions raise
ValidationError. None of them raise anything else.
"""
import logging
import math
import re

from .config import (
    DEFAULT_SITE,
    MAX_FILM_SLUG_LENGTH,
    MAX_LIST_SLUG_LENGTH,
    MAX_USERNAME_LENGTH,
    SiteConfig,
)
from .errors import ValidationError

logger = logging.getLogger(__name__)

_USERNAME_RE = re.compile(r"^[a-z0-9_]+$")
_SLUG_RE = re.compile(r"^[a-z0-9-]+$")
_LETTERBOXD_URL_RE = re.compile(r"^https?://(www\.)?letterboxd\.com/.+$")

_DANGEROUS_PATTERNS = (
    re.compile(r"<\s*/?\s*script\b[^>]*>", re.IGNORECASE),
    re.compile(r"<\s*/?\s*(iframe|embed|object)\b[^>]*>", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(r"\bon[a-z]+\s*=", re.IGNORECASE),
)
_SCRIPT_BLOCK_RE = re.compile(r"<\s*script\b[^>]*>.*?<\s*/\s*script\s*>", re.IGNORECASE | re.DOTALL)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def check_username(username) -> str | None:
    if not isinstance(username, str) or not username:
        return "username must be a non-empty string"
    if len(username) > MAX_USERNAME_LENGTH:
        return f"username longer than {MAX_USERNAME_LENGTH} characters"
    if not _USERNAME_RE.match(username):
        return "username may only contain lowercase letters, digits and underscores"
    return None


def check_film_slug(slug, max_length: int = MAX_FILM_SLUG_LENGTH) -> str | None:
    if not isinstance(slug, str) or not slug:
        return "slug must be a non-empty string"
    if len(slug) > max_length:
        return f"slug longer than {max_length} characters"
    if not _SLUG_RE.match(slug):
        return "slug may only contain lowercase letters, digits and hyphens"
    return None


def check_list_slug(slug) -> str | None:
    return check_film_slug(slug, max_length=MAX_LIST_SLUG_LENGTH)


def check_search_filter(search_filter, site: SiteConfig = DEFAULT_SITE) -> str | None:
    if search_filter is None or search_filter in site.search_filters:
        return None
    return f"search filter must be one of {', '.join(site.search_filters)}"


def is_valid_username(username: str) -> bool:
    """Handles are lowercase alphanumerics plus underscore, 1-50 characters."""
    return check_username(username) is None


def is_valid_film_slug(slug: str) -> bool:
    return check_film_slug(slug) is None


def is_valid_list_slug(slug: str) -> bool:
    return check_list_slug(slug) is None


def is_valid_rating(rating, site: SiteConfig = DEFAULT_SITE) -> bool:
    """Ratings must be one of the half-step values between 0.5 and 5.0."""
    if not _is_int(rating) and not isinstance(rating, float):
        return False
    return float(rating) in site.valid_ratings


def normalize_rating(rating: float, site: SiteConfig = DEFAULT_SITE) -> float | None:
    """Round a rating to the nearest half step, or None when outside 0-5 or not a number."""
    if not _is_int(rating) and not isinstance(rating, float):
        return None
    if math.isnan(rating) or rating < 0.0 or rating > 5.0:
        return None
    rounded = round(rating * 2) / 2
    return rounded if is_valid_rating(rounded, site) else None


def is_valid_year(year, site: SiteConfig = DEFAULT_SITE) -> bool:
    if not _is_int(year):
        return False
    return site.min_year <= year <= site.max_year


def is_valid_month(month) -> bool:
    return _is_int(month) and 1 <= month <= 12


def is_valid_day(day) -> bool:
    return _is_int(day) and 1 <= day <= 31


def is_valid_genre(genre, site: SiteConfig = DEFAULT_SITE) -> bool:
    if not isinstance(genre, str):
        return False
    return genre.strip().lower().replace(" ", "-") in site.genres


def is_valid_search_filter(search_filter: str, site: SiteConfig = DEFAULT_SITE) -> bool:
    return search_filter in site.search_filters


def is_valid_letterboxd_url(url) -> bool:
    return isinstance(url, str) and _LETTERBOXD_URL_RE.match(url) is not None


def is_safe_text(text) -> bool:
    """Reject free text carrying markup-injection patterns (script tags, inline handlers)."""
    if not isinstance(text, str):
        return False
    return not any(pattern.search(text) for pattern in _DANGEROUS_PATTERNS)


def sanitize_text(text: str) -> tuple[str, bool]:
    """
    Strip script blocks and injection patterns from free text.

    Returns (clean_text, flagged) where flagged tells whether anything was removed.
    The text is otherwise left as decoded plain text (no HTML escaping).
    """
    if is_safe_text(text):
        return text, False
    cleaned = _SCRIPT_BLOCK_RE.sub("", text)
    for pattern in _DANGEROUS_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    return " ".join(cleaned.split()), True


def clean_and_validate_text(text, max_length: int) -> str | None:
    if not isinstance(text, str):
        return None
    cleaned = " ".join(text.split())
    if not cleaned or len(cleaned) > max_length:
        return None
    return cleaned


def require_username(username) -> str:
    reason = check_username(username)
    if reason:
        raise ValidationError(username, reason)
    return username


def require_film_slug(slug) -> str:
    reason = check_film_slug(slug)
    if reason:
        raise ValidationError(slug, reason)
    return slug


def require_list_slug(slug) -> str:
    reason = check_list_slug(slug)
    if reason:
        raise ValidationError(slug, reason)
    return slug


def require_search_filter(search_filter, site: SiteConfig = DEFAULT_SITE):
    reason = check_search_filter(search_filter, site)
    if reason:
        raise ValidationError(search_filter, reason)
    return search_filter


def require_rating(rating, site: SiteConfig = DEFAULT_SITE) -> float:
    if not is_valid_rating(rating, site):
        raise ValidationError(rating, "rating must be a half-step value between 0.5 and 5.0")
    return float(rating)


def require_year(year, site: SiteConfig = DEFAULT_SITE) -> int:
    if not is_valid_year(year, site):
        raise ValidationError(year, f"year must be between {site.min_year} and {site.max_year}")
    return year


def require_date_parts(year: int | None, month: int | None, day: int | None) -> None:
    """Diary URLs nest day under month under year; each part must be in range."""
    if year is not None:
        require_year(year)
    if month is not None:
        if year is None:
            raise ValidationError(month, "month requires a year")
        if not is_valid_month(month):
            raise ValidationError(month, "month must be between 1 and 12")
    if day is not None:
        if month is None:
            raise ValidationError(day, "day requires a month")
        if not is_valid_day(day):
            raise ValidationError(day, "day must be between 1 and 31")
