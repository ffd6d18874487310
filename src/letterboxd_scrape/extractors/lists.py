"""Member lists: header, entries, comments and per-user list summaries."""
import logging
from dataclasses import dataclass

from selectolax.parser import Node

from ..document import Document
from ..errors import FieldParseError
from ..models import Comment, FilmList, ListEntry, ListSummary
from ..parsing import extract_list_path, extract_numeric, extract_user_slug, parse_shorthand_count
from ..urls import absolute_url, build_film_url, build_list_url
from ._common import ensure_content, film_name_of, film_slug_of, film_year_of, member_rating_of, sanitized, warn

logger = logging.getLogger(__name__)

LIST_CONTENT = "section.list-title-intro, .list-title-intro, h1.list-title, ul.poster-list, ul.js-list-entries"
LIST_TITLE = "h1.title-1, h1.list-title, .list-title-intro h1"
LIST_ENTRIES = "li.poster-container, li.posteritem, .poster-list li.film-list-entry"
RANKED_MARKERS = ".poster-list.-numbered, ol.poster-list, ol.js-list-entries, p.list-number"
COMMENT_ITEMS = "li.comment, .comments-body .comment"
COMMENTS_CONTENT = "li.comment, .comments-body, section#comments, .list-title-intro"
LIST_SUMMARIES = "section.list-summary, section.film-list-summary, article.list-summary, .list-item"
LIST_OVERVIEW_CONTENT = "section.list-set, .list-summary, .film-list-summary, .ui-block-heading"


@dataclass(frozen=True)
class ListHeader:
    """Fields read once from the first page of a list."""
    title: str
    description: str | None
    tags: tuple[str, ...]
    likes: int | None
    comments: int | None
    declared_film_count: int | None
    is_ranked: bool


def _stat(warnings: list, label: str, raw: str) -> int | None:
    count = parse_shorthand_count(raw.split()[0]) if raw.split() else None
    if count is None:
        warn(warnings, label, f"unparsable {label} count", raw)
    return count


def extract_list_header(doc: Document, warnings: list) -> ListHeader:
    ensure_content(doc, LIST_CONTENT)

    title = doc.select_text(LIST_TITLE)
    if not title:
        intro = doc.find(LIST_CONTENT)
        raise FieldParseError("title", doc.url, intro.html if intro is not None else None)

    description = None
    desc_node = doc.find(".list-description, .list-title-intro .body-text")
    if desc_node is not None:
        text = Document.text(desc_node)
        if text:
            description, flagged = sanitized(text)
            if flagged:
                warn(warnings, "description", "unsafe markup removed", text)

    stats = {}
    for item in doc.find_all(".list-stats li, .list-statistic"):
        raw = Document.text(item)
        lowered = raw.lower()
        for label in ("likes", "comments", "films"):
            if label.rstrip("s") in lowered and label not in stats:
                stats[label] = _stat(warnings, label, raw)
                break

    if "films" not in stats:
        count_raw = doc.select_text(".list-count, .js-film-count")
        if count_raw is not None:
            stats["films"] = _stat(warnings, "films", count_raw)

    return ListHeader(
        title=title,
        description=description,
        tags=tuple(doc.texts(".list-tags a, ul.tags a")),
        likes=stats.get("likes"),
        comments=stats.get("comments"),
        declared_film_count=stats.get("films"),
        is_ranked=doc.has(RANKED_MARKERS),
    )


def extract_list_entries(doc: Document, warnings: list) -> list[ListEntry]:
    """
    Entries on one page of a list.

    position is the page-local order; assemble_list renumbers the whole list.
    """
    entries = []
    for item in doc.find_all(LIST_ENTRIES):
        slug = film_slug_of(item)
        if slug is None:
            warn(warnings, "films", "list entry without a film slug", item.html)
            continue
        title = film_name_of(item) or slug
        entries.append(ListEntry(
            position=len(entries) + 1,
            slug=slug,
            title=title,
            url=build_film_url(slug),
            year=film_year_of(item),
            rating=member_rating_of(item),
        ))
    return entries


def assemble_list(author: str, slug: str, header: ListHeader, entries, complete: bool) -> FilmList:
    """Combine header and accumulated entries, renumbering positions from 1."""
    films = tuple(
        ListEntry(
            position=index,
            slug=entry.slug,
            title=entry.title,
            url=entry.url,
            year=entry.year,
            rating=entry.rating,
        )
        for index, entry in enumerate(entries, start=1)
    )
    if header.declared_film_count is not None and header.declared_film_count != len(films):
        logger.info(f"List {author}/{slug} declares {header.declared_film_count} films, extracted {len(films)}")
    return FilmList(
        author=author,
        slug=slug,
        url=build_list_url(author, slug),
        title=header.title,
        description=header.description,
        tags=header.tags,
        likes=header.likes,
        comments=header.comments,
        is_ranked=header.is_ranked,
        declared_film_count=header.declared_film_count,
        film_count=len(films),
        films=films,
        complete=complete,
    )


def extract_comment_items(doc: Document, warnings: list) -> list[Comment]:
    comments = []
    for item in doc.find_all(COMMENT_ITEMS):
        author_link = doc.find("a.avatar, .comment-author a, strong.name a, a.name", item)
        author = extract_user_slug(Document.attr(author_link, "href"))
        if author is None:
            author = Document.attr(item, "data-person") or doc.select_text(".comment-author", item)
        if not author:
            warn(warnings, "comments.author", "comment without an author", item.html)
            continue
        body = doc.find(".comment-body, .comment-content, div.body-text", item)
        content, flagged = sanitized(Document.text(body))
        timestamp = doc.select_attr("time[datetime]", "datetime", item) or doc.select_text(".comment-date, span._nobr", item)
        comments.append(Comment(author=author, content=content, timestamp=timestamp, flagged=flagged))
    return comments


def comment_key(comment: Comment):
    return (comment.author, comment.timestamp, comment.content)


def parse_list_summary(doc: Document, item: Node, warnings: list) -> ListSummary | None:
    link = doc.find("h2.title-2 a, h2.title a, h3.title-3 a, a.list-link, .list-name a", item)
    href = Document.attr(link, "href") or Document.attr(item, "data-list-url")
    path = extract_list_path(href)
    if path is None:
        warn(warnings, "lists", "list summary without a list link", item.html)
        return None
    author, slug = path

    title = Document.text(link) or slug
    film_count = None
    count_raw = doc.select_text(".list-count, small.value, .value", item)
    if count_raw is not None:
        film_count = extract_numeric(count_raw)
    likes = None
    likes_raw = doc.select_text("a.icon-like .label, .list-likes, a.has-icon.icon-like", item)
    if likes_raw is not None:
        likes = parse_shorthand_count(likes_raw.split()[0]) if likes_raw.split() else None

    return ListSummary(
        author=author,
        slug=slug,
        title=title,
        url=absolute_url(href) or build_list_url(author, slug),
        film_count=film_count,
        likes=likes,
        is_ranked=doc.has(".-numbered, .icon-numbered, .list-ranked", item),
    )


def extract_list_summaries(doc: Document, warnings: list) -> list[ListSummary]:
    summaries = []
    for item in doc.find_all(LIST_SUMMARIES):
        summary = parse_list_summary(doc, item, warnings)
        if summary is not None:
            summaries.append(summary)
    return summaries
