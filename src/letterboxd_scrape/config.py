"""
Configuration constants for the Letterboxd scraper.

This module centralizes all magic numbers and site tables.
Runtime knobs can be overridden via environment variables.
"""
import os
import logging
from dataclasses import dataclass
from datetime import datetime

logger = logging.getLogger(__name__)


def _get_float_env(key: str, default: float, min_val: float = 0) -> float:
    """
    Safely parse float from environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set or invalid
        min_val: Minimum allowed value

    Returns:
        Validated float value
    """
    try:
        val = float(os.environ.get(key, default))
        if val < min_val:
            logger.warning(f"{key}={val} is below minimum {min_val}, using {min_val}")
            return min_val
        return val
    except ValueError:
        logger.warning(f"Invalid {key}='{os.environ.get(key)}', using default {default}")
        return default


def _get_int_env(key: str, default: int, min_val: int = 1) -> int:
    """
    Safely parse integer from environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set or invalid
        min_val: Minimum allowed value

    Returns:
        Validated integer value
    """
    try:
        val = int(os.environ.get(key, default))
        if val < min_val:
            logger.warning(f"{key}={val} is below minimum {min_val}, using {min_val}")
            return min_val
        return val
    except ValueError:
        logger.warning(f"Invalid {key}='{os.environ.get(key)}', using default {default}")
        return default


def _get_bool_env(key: str, default: bool) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Domain/URL Configuration
DOMAIN = "https://letterboxd.com"
DOMAIN_FULL = "letterboxd.com"
DOMAIN_SHORT = "boxd.it"

# HTTP Configuration
HTTP_TIMEOUT = _get_float_env("LETTERBOXD_HTTP_TIMEOUT", 30.0, min_val=1.0)
SCRAPER_HTTP2 = _get_bool_env("LETTERBOXD_HTTP2", False)
USER_AGENT = os.environ.get(
    "LETTERBOXD_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0 Safari/537.36",
)

# Pagination limits
DEFAULT_MAX_PAGES = _get_int_env("LETTERBOXD_MAX_PAGES", 50, min_val=1)

# CLI pacing (the engine itself never sleeps)
DEFAULT_CLI_DELAY = _get_float_env("LETTERBOXD_CLI_DELAY", 1.0, min_val=0.0)

# Length limits
MAX_USERNAME_LENGTH = 50
MAX_FILM_SLUG_LENGTH = 200
MAX_LIST_SLUG_LENGTH = 100
MAX_SNIPPET_LENGTH = 120

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

VALID_RATINGS = (0.5, 1.0, 1.5, 2.0, 2.5, 3.0, 3.5, 4.0, 4.5, 5.0)

GENRES = (
    "action", "adventure", "animation", "comedy", "crime",
    "documentary", "drama", "family", "fantasy", "history",
    "horror", "music", "mystery", "romance", "science-fiction",
    "tv-movie", "thriller", "war", "western",
)

SEARCH_FILTERS = (
    "films", "reviews", "lists", "original-lists",
    "stories", "cast-crew", "members", "tags",
    "articles", "episodes", "full-text",
)

# Cinema started around 1888; announced productions can be dated years ahead
FIRST_FILM_YEAR = 1888
FUTURE_YEAR_MARGIN = 10


@dataclass(frozen=True)
class SiteConfig:
    """Process-wide site tables, built once and shared read-only by extractors."""
    domain: str = DOMAIN
    valid_ratings: tuple[float, ...] = VALID_RATINGS
    genres: tuple[str, ...] = GENRES
    search_filters: tuple[str, ...] = SEARCH_FILTERS
    min_year: int = FIRST_FILM_YEAR
    max_year: int = datetime.now().year + FUTURE_YEAR_MARGIN


DEFAULT_SITE = SiteConfig()
