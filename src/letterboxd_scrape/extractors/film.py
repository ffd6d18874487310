"""Film pages, their rating-summary fragment and review listings."""
import logging
import re

from selectolax.parser import Node

from ..config import DEFAULT_SITE, SiteConfig
from ..document import Document
from ..errors import FieldParseError
from ..models import Film, FilmPerson, RatingSummary, Review
from ..parsing import (
    extract_numeric,
    extract_user_slug,
    parse_iso_date,
    parse_rating,
    parse_runtime,
    parse_shorthand_count,
    parse_written_date,
    parse_year,
)
from ..urls import build_film_url
from ._common import ensure_content, member_rating_of, sanitized, warn

logger = logging.getLogger(__name__)

FILM_CONTENT = "#film-page-wrapper, .film-header, section.production-masthead, h1.headline-1"
REVIEW_ITEMS = "li.film-detail, div.listitem article.production-viewing"
REVIEWS_CONTENT = "li.film-detail, section.viewing-list, .ui-block-heading, #content-nav"
RATINGS_CONTENT = ".ratings-histogram-chart, .rating-histogram, .average-rating, li.rating-histogram-bar"

_FAN_COUNT_RE = re.compile(r"([0-9][0-9,. KMB]*)\s+fans", re.IGNORECASE)
_HISTOGRAM_RE = re.compile(r"([\d,. KMB]+)\s+((?:★|½)+|half-★)")
_RATINGS_BASED_ON_RE = re.compile(r"based on\s+([\d,. KMB]+)\s+ratings?", re.IGNORECASE)
_TITLE_YEAR_SUFFIX_RE = re.compile(r"\s*\((?:1[89]|2[01])\d{2}\)\s*$")

CREW_FALLBACK = (
    "a[href*='/director/'], a[href*='/writer/'], a[href*='/producer/'], "
    "a[href*='/cinematography/'], a[href*='/editor/'], a[href*='/composer/']"
)


def _aggregate_rating(doc: Document) -> dict:
    data = doc.json_ld()
    aggregate = data.get("aggregateRating")
    return aggregate if isinstance(aggregate, dict) else {}


def _links(doc: Document, tab: str, fallback: str) -> list[str]:
    """Texts of taxonomy links, preferring the details tab when the page has one."""
    scoped = ", ".join(f"{tab} {part.strip()}" for part in fallback.split(","))
    texts = doc.texts(scoped)
    if texts:
        return texts
    return doc.texts(fallback)


def _extract_year(doc: Document, warnings: list, site: SiteConfig) -> int | None:
    raw = doc.select_text("small.number a, div.releaseyear a, span.releasedate a")
    if raw is None:
        raw = doc.select_text("a[href*='/films/year/']")
    if raw is None:
        og_title = doc.meta(property="og:title")
        if og_title and parse_year(og_title) is not None:
            raw = og_title
    if raw is None:
        return None
    year = parse_year(raw)
    if year is None or not site.min_year <= year <= site.max_year:
        warn(warnings, "year", "no plausible release year", raw)
        return None
    return year


def _extract_rating(doc: Document, aggregate: dict, warnings: list) -> float | None:
    raw = doc.meta(name="twitter:data2")
    if raw is None:
        raw = doc.select_text(".average-rating .display-rating, .average-rating a")
    if raw is None and aggregate.get("ratingValue") is not None:
        raw = str(aggregate["ratingValue"])
    if raw is None:
        return None
    rating = parse_rating(raw)
    if rating is None:
        warn(warnings, "rating", "unparsable average rating", raw)
    return rating


def _extract_rating_count(doc: Document, aggregate: dict, warnings: list) -> int | None:
    if aggregate.get("ratingCount") is not None:
        raw = str(aggregate["ratingCount"])
    else:
        raw = doc.select_text("a[href*='/ratings/']")
    if raw is None:
        return None
    count = parse_shorthand_count(raw)
    if count is None:
        warn(warnings, "rating_count", "unparsable rating count", raw)
    return count


def _extract_runtime(doc: Document, warnings: list) -> int | None:
    raw = doc.select_text("p.text-link.text-footer, .text-footer")
    if raw is None or "min" not in raw.lower():
        return None
    runtime = parse_runtime(raw)
    if runtime is None:
        warn(warnings, "runtime", "unparsable runtime", raw)
    return runtime


def _person(node: Node, role: str | None) -> FilmPerson | None:
    name = Document.text(node)
    if not name:
        return None
    href = Document.attr(node, "href") or ""
    parts = [p for p in href.split("/") if p]
    slug = parts[1] if len(parts) >= 2 else None
    return FilmPerson(name=name, role=role, slug=slug)


def extract_cast(doc: Document) -> tuple[FilmPerson, ...]:
    nodes = doc.find_all("#tab-cast a.text-slug, .cast-list a.text-slug")
    if not nodes:
        nodes = doc.find_all("a[href*='/actor/']")
    cast = []
    for node in nodes:
        if "show-cast-overflow" in (node.attributes.get("id") or ""):
            continue
        role = Document.attr(node, "title") or Document.attr(node, "data-original-title")
        person = _person(node, role)
        if person is not None:
            cast.append(person)
    return tuple(cast)


def extract_crew(doc: Document) -> tuple[FilmPerson, ...]:
    nodes = doc.find_all("#tab-crew a.text-slug")
    if not nodes:
        nodes = doc.find_all(CREW_FALLBACK)
    crew = []
    for node in nodes:
        href = Document.attr(node, "href") or ""
        parts = [p for p in href.split("/") if p]
        role = parts[0] if parts else None
        person = _person(node, role)
        if person is not None:
            crew.append(person)
    return tuple(crew)


def extract_film(doc: Document, slug: str, warnings: list, site: SiteConfig = DEFAULT_SITE) -> Film:
    """
    Build a Film from its main page.

    The title is required; every other field degrades to None (or an empty
    tuple) with a FieldWarning when its markup is present but unparsable.
    """
    ensure_content(doc, FILM_CONTENT)

    title = doc.select_text("h1.headline-1, h1.filmtitle, .film-title-wrapper h1")
    if not title:
        og_title = doc.meta(property="og:title")
        if og_title:
            title = _TITLE_YEAR_SUFFIX_RE.sub("", og_title).strip() or None
    if not title:
        header = doc.find(FILM_CONTENT)
        raise FieldParseError("title", doc.url, header.html if header is not None else None)

    aggregate = _aggregate_rating(doc)

    film_id = None
    raw_id = doc.select_attr("[data-film-id]", "data-film-id")
    if raw_id is not None:
        film_id = extract_numeric(raw_id)
        if film_id is None:
            warn(warnings, "film_id", "non-numeric film id", raw_id)

    description = doc.select_text(".review .truncate, .film-text-description, div.truncate")
    if description is None:
        description = doc.meta(property="og:description")

    poster = doc.select_attr(".film-poster img, div.poster img", "src")
    if poster is None:
        image = doc.json_ld().get("image")
        poster = image if isinstance(image, str) else None

    return Film(
        slug=slug,
        url=build_film_url(slug),
        title=title,
        film_id=film_id,
        original_title=doc.select_text("h2.originalname, .originalname em, .originalname"),
        year=_extract_year(doc, warnings, site),
        runtime=_extract_runtime(doc, warnings),
        rating=_extract_rating(doc, aggregate, warnings),
        rating_count=_extract_rating_count(doc, aggregate, warnings),
        tagline=doc.select_text("h4.tagline, .tagline"),
        description=description,
        poster=poster,
        tmdb_link=doc.select_attr("a[data-track-action='TMDb'], a[href*='themoviedb.org']", "href"),
        imdb_link=doc.select_attr("a[data-track-action='IMDb'], a[href*='imdb.com']", "href"),
        genres=tuple(_links(doc, "#tab-genres", "a[href*='/films/genre/']")),
        themes=tuple(_links(doc, "#tab-genres", "a[href*='/films/theme/'], a[href*='/films/mini-theme/']")),
        countries=tuple(_links(doc, "#tab-details", "a[href*='/films/country/']")),
        languages=tuple(_links(doc, "#tab-details", "a[href*='/films/language/']")),
        studios=tuple(_links(doc, "#tab-details", "a[href*='/studio/']")),
        cast=extract_cast(doc),
        crew=extract_crew(doc),
    )


def _parse_histogram_bar(title: str) -> tuple[float, int] | None:
    match = _HISTOGRAM_RE.search(title)
    if not match:
        return None
    count = parse_shorthand_count(match.group(1))
    glyphs = match.group(2)
    rating = 0.5 if glyphs == "half-★" else parse_rating(glyphs)
    if count is None or rating is None:
        return None
    return rating, count


def extract_rating_summary(doc: Document, slug: str, warnings: list) -> RatingSummary:
    """Parse the ratings-summary CSI fragment (average, histogram, fans)."""
    ensure_content(doc, RATINGS_CONTENT)
    average = None
    rating_count = None
    avg_node = doc.find(".average-rating .display-rating, a.display-rating, .average-rating a")
    if avg_node is not None:
        raw = Document.text(avg_node)
        average = parse_rating(raw)
        if average is None:
            warn(warnings, "average", "unparsable average rating", raw)
        based_on = _RATINGS_BASED_ON_RE.search(Document.attr(avg_node, "title") or Document.attr(avg_node, "data-original-title") or "")
        if based_on:
            rating_count = parse_shorthand_count(based_on.group(1))

    fan_count = None
    fans_text = doc.select_text("a[href*='/fans/'], .fans")
    if fans_text:
        match = _FAN_COUNT_RE.search(fans_text)
        if match:
            fan_count = parse_shorthand_count(match.group(1))
        if fan_count is None:
            warn(warnings, "fan_count", "unparsable fan count", fans_text)

    histogram = {}
    for bar in doc.find_all("li.rating-histogram-bar"):
        link = bar.css_first("a")
        if link is None:
            link = bar
        raw = Document.attr(link, "data-original-title") or Document.attr(link, "title") or Document.text(link)
        if not raw:
            continue
        parsed = _parse_histogram_bar(raw)
        if parsed is None:
            warn(warnings, "histogram", "unparsable histogram bar", raw)
            continue
        rating, count = parsed
        histogram[rating] = count

    return RatingSummary(
        slug=slug,
        average=average,
        rating_count=rating_count,
        fan_count=fan_count,
        histogram=histogram,
    )


def _review_date(doc: Document, item: Node):
    stamp = doc.find("time[datetime]", item)
    if stamp is not None:
        return parse_iso_date(Document.attr(stamp, "datetime"))
    return parse_written_date(doc.select_text("span._nobr, .date a, span.date", item))


def extract_review(doc: Document, item: Node, warnings: list,
                   film_slug: str | None = None, film_title: str | None = None) -> Review | None:
    author_href = (
        doc.select_attr("a.avatar", "href", item)
        or doc.select_attr("a.context, .attribution a", "href", item)
    )
    author = extract_user_slug(author_href)
    if author is None:
        warn(warnings, "reviews.author", "review without an author link", item.html)
        return None

    body = doc.find(".body-text, .review-body, div.js-review-body", item)
    content, flagged = sanitized(Document.text(body))

    likes = None
    likes_node = doc.find("[data-likes-count], .like-link-target[data-count]", item)
    if likes_node is not None:
        raw = Document.attr(likes_node, "data-likes-count") or Document.attr(likes_node, "data-count")
        likes = parse_shorthand_count(raw)

    return Review(
        author=author,
        film_slug=film_slug,
        film_title=film_title,
        rating=member_rating_of(item),
        content=content,
        date=_review_date(doc, item),
        likes=likes,
        flagged=flagged,
    )


def extract_review_items(doc: Document, warnings: list, film_slug: str | None = None) -> list[Review]:
    """All reviews on one page of a film's review listing."""
    film_title = doc.select_text(".film-title-wrapper a, h1.headline-2 a, .context-header a")
    reviews = []
    for item in doc.find_all(REVIEW_ITEMS):
        review = extract_review(doc, item, warnings, film_slug=film_slug, film_title=film_title)
        if review is not None:
            reviews.append(review)
    return reviews
