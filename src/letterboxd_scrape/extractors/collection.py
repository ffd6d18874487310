"""Poster grids: user films, watchlists, likes, similar films and other film listings."""
import logging
import re

from ..document import Document
from ..models import CollectionEntry, FilmCollection
from ..parsing import parse_shorthand_count
from ..urls import build_film_url
from ._common import film_name_of, film_slug_of, film_year_of, member_rating_of, warn

logger = logging.getLogger(__name__)

COLLECTION_CONTENT = (
    "ul.poster-list, ul.grid, .poster-grid, li.poster-container, li.griditem, "
    ".ui-block-heading, .js-film-count, p.text-count"
)
GRID_ITEMS = "li.poster-container, li.griditem, li.posteritem"
COUNT_HEADINGS = ".js-film-count, p.text-count, .ui-block-heading, h1.section-heading"

_FIRST_NUMBER_RE = re.compile(r"(\d[\d,. ]*[KMB]?)\s*(?:films?|movies?|entries)", re.IGNORECASE)


def extract_declared_count(doc: Document, warnings: list) -> int | None:
    """Total the page claims to list, e.g. 'You have watched 1,234 films'."""
    raw = doc.select_text(COUNT_HEADINGS)
    if raw is None:
        return None
    match = _FIRST_NUMBER_RE.search(raw)
    if match is None:
        logger.debug(f"No film count in heading '{raw}'")
        return None
    count = parse_shorthand_count(match.group(1).strip())
    if count is None:
        warn(warnings, "count", "unparsable declared film count", raw)
    return count


def extract_collection_items(doc: Document, warnings: list) -> list[CollectionEntry]:
    """Every poster on one page of a grid, in page order."""
    entries = []
    for item in doc.find_all(GRID_ITEMS):
        slug = film_slug_of(item)
        if slug is None:
            warn(warnings, "films", "poster without a film slug", item.html)
            continue
        viewing = item.css_first("p.poster-viewingdata")
        if viewing is None:
            viewing = item
        img = item.css_first("img")
        entries.append(CollectionEntry(
            slug=slug,
            title=film_name_of(item),
            url=build_film_url(slug),
            year=film_year_of(item),
            poster=Document.attr(img, "src"),
            rating=member_rating_of(viewing),
            liked=viewing.css_first("span.like, .icon-liked") is not None,
        ))
    return entries


def assemble_collection(url: str, count: int | None, entries, complete: bool) -> FilmCollection:
    return FilmCollection(
        url=url,
        count=count,
        films={entry.slug: entry for entry in entries},
        complete=complete,
    )
