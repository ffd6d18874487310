"""Deterministic mapping from identifiers to Letterboxd URLs."""
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from .config import DOMAIN


def build_letterboxd_url(path: str) -> str:
    return f"{DOMAIN}/{path.lstrip('/')}"


def build_user_url(username: str) -> str:
    return f"{DOMAIN}/{username}/"


def build_user_section_url(username: str, section: str) -> str:
    return f"{DOMAIN}/{username}/{section.strip('/')}/"


def build_film_url(slug: str) -> str:
    return f"{DOMAIN}/film/{slug}/"


def build_film_section_url(slug: str, section: str) -> str:
    return f"{DOMAIN}/film/{slug}/{section.strip('/')}/"


def build_rating_summary_url(slug: str) -> str:
    return f"{DOMAIN}/csi/film/{slug}/ratings-summary/"


def build_list_url(author: str, slug: str) -> str:
    return f"{DOMAIN}/{author}/list/{slug}/"


def build_list_comments_url(author: str, slug: str) -> str:
    return f"{DOMAIN}/{author}/list/{slug}/comments/"


def build_search_url(query: str, search_filter: str | None = None) -> str:
    encoded = quote(query.strip(), safe="")
    if search_filter:
        return f"{DOMAIN}/s/search/{search_filter}/{encoded}/"
    return f"{DOMAIN}/s/search/{encoded}/"


def build_diary_url(
    username: str,
    year: int | None = None,
    month: int | None = None,
    day: int | None = None,
) -> str:
    url = f"{DOMAIN}/{username}/films/diary/"
    if year is not None:
        url += f"for/{year}/"
        if month is not None:
            url += f"{month:02d}/"
            if day is not None:
                url += f"{day:02d}/"
    return url


def build_films_url(username: str, film_filter: str | None = None) -> str:
    url = f"{DOMAIN}/{username}/films/"
    if film_filter:
        url += f"{film_filter.strip('/')}/"
    return url


def format_rating_path(rating: float) -> str:
    """Letterboxd writes whole ratings without a decimal ('4') and halves with one ('3.5')."""
    return str(int(rating)) if float(rating).is_integer() else str(rating)


def add_page_to_url(base_url: str, page: int) -> str:
    """Append '/page/N/' to a base URL, keeping any query string at the end."""
    parts = urlsplit(base_url)
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme, parts.netloc, f"{path}/page/{page}/", parts.query, parts.fragment))


def add_query_to_url(base_url: str, **params) -> str:
    parts = urlsplit(base_url)
    query = "&".join(q for q in (parts.query, urlencode(params)) if q)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def extract_page_from_url(url: str) -> int | None:
    if "/page/" not in url:
        return None
    page_part = url.split("/page/", 1)[1].split("/", 1)[0]
    return int(page_part) if page_part.isdigit() else None


def remove_page_from_url(url: str) -> str:
    """Strip a trailing '/page/N/' segment so pagination can be re-derived."""
    if "/page/" not in url:
        return url
    base, rest = url.split("/page/", 1)
    tail = rest.split("/", 1)[1] if "/" in rest else ""
    query = ""
    if "?" in tail:
        query = "?" + tail.split("?", 1)[1]
    return f"{base}/{query}"


def get_ajax_url(url: str) -> str:
    """Map a regular page URL to the AJAX endpoint that serves its continuation fragments."""
    if "/ajax/" in url:
        return url
    for segment in ("/films/", "/film/", "/lists/", "/reviews/"):
        if segment in url:
            return url.replace(segment, f"/ajax{segment}", 1)
    return f"{url.rstrip('/')}/ajax/"


def normalize_letterboxd_url(url: str) -> str:
    url = url.strip()
    if url.startswith(("http://", "https://")):
        return url
    return build_letterboxd_url(url)


def absolute_url(href: str | None, base: str = DOMAIN) -> str | None:
    """Resolve a site-relative href ('/film/x/') against the domain root."""
    if not href:
        return None
    href = href.strip()
    if href.startswith(("http://", "https://")):
        return href
    if href.startswith("//"):
        return f"https:{href}"
    return f"{base.rstrip('/')}/{href.lstrip('/')}"
