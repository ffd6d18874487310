"""Helpers shared by the entity extractors."""
import logging
import re

from selectolax.parser import Node

from ..document import Document
from ..errors import FieldWarning, NotFoundError, RestrictedContentError
from ..parsing import extract_film_slug, parse_rating_class
from ..validators import check_film_slug, sanitize_text

logger = logging.getLogger(__name__)

RESTRICTED_SELECTOR = ".restricted-notice, .private-account, .content-restricted, body.private-profile"
ERROR_PAGE_SELECTOR = "body.error, .error-page, section.error-message, .error-container"

_TITLE_YEAR_RE = re.compile(r"^(.*\S)\s*\(((?:1[89]|2[01])\d{2})\)$")
_SLUG_ATTRIBUTES = ("data-film-slug", "data-item-slug", "data-target-link", "data-film-link", "data-item-link")


def warn(warnings: list, field: str, message: str, raw: str | None = None) -> None:
    """Record a non-fatal problem with an optional field."""
    warning = FieldWarning.create(field, message, raw)
    logger.debug(f"Field warning for '{field}': {message} (raw: {warning.snippet!r})")
    warnings.append(warning)


def ensure_content(doc: Document, content_selector: str, required: bool = True) -> None:
    """
    Check page shape before any field is read.

    Restricted markers win over everything; an error marker only counts as
    not-found when the expected content is missing too. With required=False
    only the markers are checked (AJAX fragments carry items without the
    surrounding page).
    """
    if doc.has(RESTRICTED_SELECTOR):
        raise RestrictedContentError(doc.url, "content is private or restricted")
    if doc.has(content_selector):
        return
    if doc.has(ERROR_PAGE_SELECTOR):
        raise NotFoundError(doc.url, "source returned an error page")
    if not required:
        return
    raise NotFoundError(doc.url, f"expected content '{content_selector}' missing")


def film_slug_of(item: Node) -> str | None:
    """
    Find the film slug of a poster/grid item.

    Letterboxd has moved the slug between the item, a nested react-component
    and its link over time, so every carrier is tried in that order.
    """
    candidates = [item]
    candidates.extend(item.css("div.react-component, div.film-poster, div.poster, [data-film-slug], [data-item-slug]"))
    for node in candidates:
        for attr in _SLUG_ATTRIBUTES:
            value = Document.attr(node, attr)
            if not value:
                continue
            slug = extract_film_slug(value) if "/" in value else value.lower()
            if slug:
                return _valid_slug(slug)
    link = item.css_first("a[href*='/film/']")
    if link is not None:
        slug = extract_film_slug(Document.attr(link, "href"))
        if slug:
            return _valid_slug(slug)
    return None


def _valid_slug(slug: str) -> str | None:
    reason = check_film_slug(slug)
    if reason:
        logger.warning(f"Invalid slug format: '{slug[:50]}' ({reason})")
        return None
    return slug


def film_name_of(item: Node) -> str | None:
    for node in [item, *item.css("div.react-component, div.film-poster, div.poster")]:
        for attr in ("data-film-name", "data-item-name", "data-item-full-display-name"):
            value = Document.attr(node, attr)
            if value:
                return split_title_year(value)[0]
    img = item.css_first("img")
    return split_title_year(Document.attr(img, "alt"))[0]


def member_rating_of(scope: Node | None) -> float | None:
    """Half-step rating from a 'rated-N' span inside scope."""
    if scope is None:
        return None
    span = scope.css_first("span.rating")
    if span is None:
        return None
    return parse_rating_class(span.attributes.get("class"))


def sanitized(text: str) -> tuple[str, bool]:
    content, flagged = sanitize_text(text)
    if flagged:
        logger.warning(f"Stripped unsafe markup from text: {text[:50]!r}")
    return content, flagged


def split_title_year(name: str | None) -> tuple[str | None, int | None]:
    """Split 'Parasite (2019)' into ('Parasite', 2019); names without a suffix keep year None."""
    if not name:
        return None, None
    match = _TITLE_YEAR_RE.match(name.strip())
    if match:
        return match.group(1).strip(), int(match.group(2))
    return name.strip(), None


def film_year_of(item: Node) -> int | None:
    for node in [item, *item.css("div.react-component, div.film-poster, div.poster")]:
        raw = Document.attr(node, "data-film-release-year") or Document.attr(node, "data-item-release-year")
        if raw and raw.isdigit():
            return int(raw)
        full_name = Document.attr(node, "data-item-full-display-name")
        if full_name:
            return split_title_year(full_name)[1]
    return None
