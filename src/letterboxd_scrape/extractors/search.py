"""
Search result pages.

Each result item is classified by its result-kind class and parsed into the
matching typed result; kinds without a schema become GenericResult. With a
search filter, only items of the filtered kind are extracted.
"""
import logging
import re

from selectolax.parser import Node

from ..document import Document, classes_of
from ..models import (
    GenericResult,
    SearchFilm,
    SearchMember,
    SearchPerson,
    SearchResults,
    SearchReview,
    SearchStory,
    SearchTag,
)
from ..parsing import extract_film_slug, extract_user_slug, parse_shorthand_count, parse_year
from ..urls import absolute_url, build_film_url, build_user_url
from ._common import film_name_of, film_slug_of, member_rating_of, sanitized, warn
from .lists import parse_list_summary

logger = logging.getLogger(__name__)

SEARCH_CONTENT = "ul.results, .search-results, section.results, .ui-block-heading, p.no-results"
RESULT_ITEMS = "li.search-result"
RESULT_ITEMS_FALLBACK = "ul.results > li"

# result-kind class -> SearchResults field
_KIND_CLASSES = (
    (("-production", "-film", "film-detail"), "films"),
    (("-review", "-viewing"), "reviews"),
    (("-list", "list-item"), "lists"),
    (("-member", "person-summary"), "members"),
    (("-contributor", "-person", "-actor", "-director"), "cast_crew"),
    (("-tag",), "tags"),
    (("-story",), "stories"),
    (("-article", "-journal"), "articles"),
)

FILTER_FIELDS = {
    "films": "films",
    "reviews": "reviews",
    "lists": "lists",
    "original-lists": "lists",
    "stories": "stories",
    "cast-crew": "cast_crew",
    "members": "members",
    "tags": "tags",
    "articles": "articles",
    "episodes": "other",
    "full-text": "other",
}

RESULT_FIELDS = ("films", "reviews", "lists", "members", "cast_crew", "tags", "stories", "articles", "other")

_COUNT_RE = re.compile(r"(\d[\d,.]*[KMB]?)\s+(?:films?|members?|uses?)", re.IGNORECASE)


def result_field(item: Node) -> str:
    classes = classes_of(item).split()
    for markers, field_name in _KIND_CLASSES:
        if any(marker in classes for marker in markers):
            return field_name
    return "other"


def _kind_name(item: Node) -> str:
    for cls in classes_of(item).split():
        if cls.startswith("-") and len(cls) > 1:
            return cls[1:]
    return "unknown"


def _count(raw: str | None) -> int | None:
    if not raw:
        return None
    match = _COUNT_RE.search(raw)
    return parse_shorthand_count(match.group(1)) if match else None


def _title_link(doc: Document, item: Node) -> Node | None:
    for selector in ("h2 a", "h3 a", ".title a", "a"):
        node = doc.find(selector, item)
        if node is not None:
            return node
    return None


def parse_film_result(doc: Document, item: Node, warnings: list) -> SearchFilm | None:
    link = doc.find(".film-title-wrapper a[href*='/film/'], .film-title a[href*='/film/'], h2 a[href*='/film/']", item)
    slug = extract_film_slug(Document.attr(link, "href")) if link is not None else None
    if slug is None:
        slug = film_slug_of(item)
    if slug is None:
        warn(warnings, "films", "film result without a film link", item.html)
        return None
    title = Document.text(link) or film_name_of(item) or slug
    year_raw = doc.select_text(".film-title-wrapper small a, small.metadata a, .film-year", item)
    return SearchFilm(
        slug=slug,
        title=title,
        url=build_film_url(slug),
        year=parse_year(year_raw),
        directors=tuple(doc.texts("a[href*='/director/']", item)),
        poster=doc.select_attr("img", "src", item),
    )


def parse_review_result(doc: Document, item: Node, warnings: list) -> SearchReview | None:
    author_href = doc.select_attr("a.avatar, .attribution a", "href", item) or doc.select_attr("a.context", "href", item)
    author = extract_user_slug(author_href)
    if author is None:
        warn(warnings, "reviews", "review result without an author link", item.html)
        return None
    film_link = doc.find("h2 a[href*='/film/'], .film-title-wrapper a[href*='/film/'], a.context[href*='/film/']", item)
    content, flagged = sanitized(Document.text(doc.find(".body-text, .review-body", item)))
    likes_raw = doc.select_attr("[data-likes-count]", "data-likes-count", item)
    return SearchReview(
        author=author,
        film_slug=extract_film_slug(Document.attr(film_link, "href")),
        film_title=Document.text(film_link) or None,
        content=content,
        rating=member_rating_of(item),
        likes=parse_shorthand_count(likes_raw),
        flagged=flagged,
    )


def parse_member_result(doc: Document, item: Node, warnings: list) -> SearchMember | None:
    link = doc.find("h3.title-3 a, a.name, h2 a, a.avatar", item)
    username = extract_user_slug(Document.attr(link, "href"))
    if username is None:
        warn(warnings, "members", "member result without a profile link", item.html)
        return None
    return SearchMember(
        username=username,
        display_name=doc.select_text("h3.title-3 a, a.name, h2 a", item),
        url=build_user_url(username),
        avatar=doc.select_attr("img", "src", item),
        films_watched=_count(doc.select_text("small.metadata, .metadata", item)),
    )


def parse_person_result(doc: Document, item: Node, warnings: list) -> SearchPerson | None:
    link = _title_link(doc, item)
    name = Document.text(link)
    href = Document.attr(link, "href")
    if not name or not href:
        warn(warnings, "cast_crew", "person result without a name link", item.html)
        return None
    parts = [p for p in href.split("/") if p]
    return SearchPerson(
        name=name,
        slug=parts[-1] if len(parts) >= 2 else None,
        url=absolute_url(href),
        known_for=tuple(doc.texts(".film-metadata a, p.film-metadata a", item)),
    )


def parse_tag_result(doc: Document, item: Node, warnings: list) -> SearchTag | None:
    link = _title_link(doc, item)
    name = Document.text(link)
    if not name:
        warn(warnings, "tags", "tag result without a name", item.html)
        return None
    return SearchTag(
        name=name,
        url=absolute_url(Document.attr(link, "href")),
        film_count=_count(Document.text(item)),
    )


def parse_story_result(doc: Document, item: Node, warnings: list) -> SearchStory | None:
    link = _title_link(doc, item)
    title = Document.text(link)
    href = Document.attr(link, "href")
    if not title or not href:
        warn(warnings, "stories", "story result without a title link", item.html)
        return None
    return SearchStory(
        title=title,
        url=absolute_url(href),
        author=doc.select_text(".attribution a, .author", item),
        date=doc.select_attr("time[datetime]", "datetime", item) or doc.select_text(".date", item),
        summary=doc.select_text(".body-text, p.summary, .excerpt", item),
    )


def parse_generic_result(doc: Document, item: Node, warnings: list) -> GenericResult:
    link = _title_link(doc, item)
    fields = {}
    metadata = doc.select_text(".metadata, .film-metadata", item)
    if metadata:
        fields["metadata"] = metadata
    text = Document.text(item)
    if text:
        fields["text"] = text
    return GenericResult(
        kind=_kind_name(item),
        title=Document.text(link) or None,
        url=absolute_url(Document.attr(link, "href")),
        fields=fields,
    )


_PARSERS = {
    "films": parse_film_result,
    "reviews": parse_review_result,
    "lists": parse_list_summary,
    "members": parse_member_result,
    "cast_crew": parse_person_result,
    "tags": parse_tag_result,
    "stories": parse_story_result,
    "articles": parse_story_result,
    "other": parse_generic_result,
}


def extract_search_items(doc: Document, warnings: list, search_filter: str | None = None) -> list[tuple[str, object]]:
    """(field, result) pairs for one page of results, in page order."""
    wanted = FILTER_FIELDS.get(search_filter) if search_filter else None
    items = doc.find_all(RESULT_ITEMS) or doc.find_all(RESULT_ITEMS_FALLBACK)
    results = []
    skipped = 0
    for item in items:
        field_name = result_field(item)
        if wanted is not None and field_name != wanted:
            skipped += 1
            continue
        result = _PARSERS[field_name](doc, item, warnings)
        if result is not None:
            results.append((field_name, result))
    if skipped:
        logger.debug(f"Skipped {skipped} results outside filter '{search_filter}'")
    return results


# natural key of each result kind, used to drop results repeated across pages
_RESULT_KEYS = {
    "films": lambda r: r.slug,
    "reviews": lambda r: (r.author, r.film_slug, r.content),
    "lists": lambda r: (r.author, r.slug),
    "members": lambda r: r.username,
    "cast_crew": lambda r: r.url,
    "tags": lambda r: r.name,
    "stories": lambda r: r.url,
    "articles": lambda r: r.url,
    "other": lambda r: (r.kind, r.url, r.title, tuple(sorted(r.fields.items()))),
}


def search_key(pair: tuple[str, object]):
    field_name, result = pair
    return (field_name, _RESULT_KEYS[field_name](result))


def assemble_search(query: str, search_filter: str | None, url: str, pairs, complete: bool) -> SearchResults:
    buckets = {name: [] for name in RESULT_FIELDS}
    for field_name, result in pairs:
        buckets[field_name].append(result)
    return SearchResults(
        query=query,
        search_filter=search_filter,
        url=url,
        complete=complete,
        **{name: tuple(values) for name, values in buckets.items()},
    )
