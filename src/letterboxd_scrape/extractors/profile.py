"""Member profile pages."""
import logging

from ..document import Document
from ..errors import FieldParseError
from ..models import FavoriteFilm, Profile, ProfileStats
from ..parsing import parse_shorthand_count
from ..urls import absolute_url, build_film_url, build_user_url
from ._common import ensure_content, film_name_of, film_slug_of, sanitized, warn

logger = logging.getLogger(__name__)

PROFILE_CONTENT = "section.profile-header, .profile-header, #profile-header"
DISPLAY_NAME = "h1.title-1, .profile-name .displayname, span.displayname, .profile-name h1"
STAT_ITEMS = ".profile-stats .profile-statistic, .profile-statistic"
FAVORITES = "#favourites .poster-container, section.profile-favorites li.poster-container, #favourites li.posteritem"

# Letterboxd labels the statistics block in prose; map the labels to fields.
_STAT_LABELS = {
    "film": "watched",
    "films": "watched",
    "this year": "this_year",
    "review": "reviews",
    "reviews": "reviews",
    "list": "lists",
    "lists": "lists",
    "following": "following",
    "follower": "followers",
    "followers": "followers",
}


def extract_stats(doc: Document, warnings: list) -> ProfileStats | None:
    items = doc.find_all(STAT_ITEMS)
    if not items:
        return None

    values = {}
    for item in items:
        label = doc.select_text("span.definition", item)
        raw = doc.select_text("span.value", item)
        if label is None or raw is None:
            continue
        key = _STAT_LABELS.get(label.lower())
        if key is None:
            logger.debug(f"Ignoring unknown profile statistic '{label}'")
            continue
        if key in values:
            continue
        count = parse_shorthand_count(raw)
        if count is None:
            warn(warnings, f"stats.{key}", "unparsable count", raw)
        values[key] = count
    return ProfileStats(**values)


def extract_favorites(doc: Document, warnings: list) -> tuple[FavoriteFilm, ...] | None:
    section = doc.find("#favourites, section.profile-favorites")
    if section is None:
        return None
    favorites = []
    for item in doc.find_all(FAVORITES):
        slug = film_slug_of(item)
        if slug is None:
            warn(warnings, "favorites", "favorite without a film slug", item.html)
            continue
        favorites.append(FavoriteFilm(slug=slug, title=film_name_of(item), url=build_film_url(slug)))
    return tuple(favorites)


def extract_profile(doc: Document, username: str, warnings: list) -> Profile:
    """Build a Profile from a member's main page."""
    ensure_content(doc, PROFILE_CONTENT)

    display_name = doc.select_text(DISPLAY_NAME)
    if not display_name:
        header = doc.find(PROFILE_CONTENT)
        raise FieldParseError("display_name", doc.url, header.html if header is not None else None)

    bio = None
    bio_node = doc.find(".profile-summary .bio, .profile-bio, .bio")
    if bio_node is not None:
        text = Document.text(bio_node)
        if text:
            bio, flagged = sanitized(text)
            if flagged:
                warn(warnings, "bio", "unsafe markup removed", text)

    location = doc.select_text(".profile-metadata .metadatum.-location, .profile-location, .location")
    website = doc.select_attr(".profile-metadata a.-website, .profile-website a, a.website", "href")
    avatar = doc.select_attr(".profile-avatar img, .avatar img", "src")
    is_hq = doc.has(".badge.-hq, .profile-badge.-hq, body.hq-profile")

    return Profile(
        username=username,
        url=build_user_url(username),
        display_name=display_name,
        bio=bio,
        location=location,
        website=absolute_url(website) if website else None,
        avatar=avatar,
        is_hq=is_hq,
        stats=extract_stats(doc, warnings),
        favorites=extract_favorites(doc, warnings),
    )
