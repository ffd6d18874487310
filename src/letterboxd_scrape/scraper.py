"""
Public facade: validate identifiers, build URLs, fetch, extract.

LetterboxdScraper and AsyncLetterboxdScraper share every operation. Each
operation is described once as an acquisition plan; the two classes only
differ in how they run plans (blocking vs awaited fetches).
"""
import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Callable

from .client import AsyncLetterboxdClient, LetterboxdClient
from .config import DEFAULT_MAX_PAGES, DEFAULT_SITE, SiteConfig
from .document import Document
from .errors import ScraperError, ValidationError
from .extractors._common import ensure_content
from .extractors.collection import (
    COLLECTION_CONTENT,
    assemble_collection,
    extract_collection_items,
    extract_declared_count,
)
from .extractors.diary import DIARY_CONTENT, diary_key, extract_diary_items
from .extractors.film import REVIEWS_CONTENT, extract_film, extract_rating_summary, extract_review_items
from .extractors.lists import (
    COMMENTS_CONTENT,
    LIST_CONTENT,
    LIST_OVERVIEW_CONTENT,
    assemble_list,
    comment_key,
    extract_comment_items,
    extract_list_entries,
    extract_list_header,
    extract_list_summaries,
)
from .extractors.members import MEMBER_CONTENT, extract_member_items
from .extractors.profile import extract_profile
from .extractors.search import SEARCH_CONTENT, assemble_search, extract_search_items, search_key
from .models import Extraction
from .pagination import ItemExtractor, PageCursor, Traversal, drive, drive_async
from .urls import (
    build_diary_url,
    build_film_section_url,
    build_film_url,
    build_films_url,
    build_list_comments_url,
    build_list_url,
    build_rating_summary_url,
    build_search_url,
    build_user_section_url,
    build_user_url,
    format_rating_path,
    normalize_letterboxd_url,
)
from .validators import (
    is_valid_letterboxd_url,
    require_date_parts,
    require_film_slug,
    require_list_slug,
    require_rating,
    require_search_filter,
    require_username,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Plan:
    """
    How to acquire one entity.

    head runs on the first page only (page-shape check and one-off fields).
    Single-page plans stop there; paged plans then walk items/key across pages,
    checking later pages against content, and call build(head_result, traversal).
    """
    label: str
    url: str
    head: Callable[[Document, list], object]
    items: ItemExtractor | None = None
    key: Callable | None = None
    build: Callable[[object, Traversal], object] | None = None
    max_pages: int = DEFAULT_MAX_PAGES
    content: str | None = None

    def cursor(self) -> PageCursor:
        return PageCursor(self.url, self.items, self.key, max_pages=self.max_pages, content=self.content)


def _requires(selector: str):
    def head(doc: Document, warnings: list) -> None:
        ensure_content(doc, selector)
    return head


def _as_tuple(_head, traversal: Traversal) -> tuple:
    return traversal.items


def _normalize_username(username) -> str:
    if isinstance(username, str):
        username = username.strip().lower()
    return require_username(username)


def _collected(plan: _Plan, head, warnings: list, traversal: Traversal) -> Extraction:
    entity = plan.build(head, traversal)
    suffix = "" if traversal.complete else " (partial)"
    logger.info(
        f"  Found {len(traversal.items)} items for {plan.label} "
        f"across {traversal.pages_fetched} pages{suffix}"
    )
    return Extraction(entity=entity, warnings=tuple(warnings) + traversal.warnings, failure=traversal.error)


class _ScraperBase:
    """Operation catalogue shared by the sync and async facades."""

    def __init__(self, max_pages: int = DEFAULT_MAX_PAGES, site: SiteConfig = DEFAULT_SITE):
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self.max_pages = max_pages
        self.site = site

    def _run(self, plan: _Plan):
        raise NotImplementedError

    def _pages(self, max_pages: int | None) -> int:
        return self.max_pages if max_pages is None else max_pages

    # -- Single pages ---------------------------------------------------------

    def get_user(self, username: str):
        """Profile page of a member."""
        username = _normalize_username(username)
        return self._run(_Plan(
            label=f"{username}'s profile",
            url=build_user_url(username),
            head=lambda doc, warnings: extract_profile(doc, username, warnings),
        ))

    def get_film(self, slug: str):
        """Film page by slug (e.g. 'parasite-2019')."""
        slug = require_film_slug(slug)
        site = self.site
        return self._run(_Plan(
            label=f"film {slug}",
            url=build_film_url(slug),
            head=lambda doc, warnings: extract_film(doc, slug, warnings, site),
        ))

    def get_rating_summary(self, slug: str):
        """Average, histogram and fan count from the film's ratings fragment."""
        slug = require_film_slug(slug)
        return self._run(_Plan(
            label=f"rating summary of {slug}",
            url=build_rating_summary_url(slug),
            head=lambda doc, warnings: extract_rating_summary(doc, slug, warnings),
        ))

    # -- Search ---------------------------------------------------------------

    def search(self, query: str, search_filter: str | None = None, max_pages: int | None = 1):
        """
        Search the site. Without a filter every result kind is collected; with one,
        only the matching kind is. Only the first results page is read unless
        max_pages says otherwise.
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError(query, "search query must not be empty")
        if search_filter is not None:
            require_search_filter(search_filter, self.site)
        url = build_search_url(query, search_filter)
        return self._run(_Plan(
            label=f"search '{query}'",
            url=url,
            head=_requires(SEARCH_CONTENT),
            items=functools.partial(extract_search_items, search_filter=search_filter),
            key=search_key,
            build=lambda _head, t: assemble_search(query, search_filter, url, t.items, t.complete),
            max_pages=self._pages(max_pages),
            content=SEARCH_CONTENT,
        ))

    # -- Lists ----------------------------------------------------------------

    def get_list(self, author: str, slug: str, max_pages: int | None = None):
        author = _normalize_username(author)
        slug = require_list_slug(slug)
        return self._run(_Plan(
            label=f"list {author}/{slug}",
            url=build_list_url(author, slug),
            head=extract_list_header,
            items=extract_list_entries,
            key=lambda entry: entry.slug,
            build=lambda header, t: assemble_list(author, slug, header, t.items, t.complete),
            max_pages=self._pages(max_pages),
            content=LIST_CONTENT,
        ))

    def get_list_comments(self, author: str, slug: str, max_pages: int | None = None):
        author = _normalize_username(author)
        slug = require_list_slug(slug)
        return self._run(_Plan(
            label=f"comments on {author}/{slug}",
            url=build_list_comments_url(author, slug),
            head=_requires(COMMENTS_CONTENT),
            items=extract_comment_items,
            key=comment_key,
            build=_as_tuple,
            max_pages=self._pages(max_pages),
            content=COMMENTS_CONTENT,
        ))

    def get_user_lists(self, username: str, max_pages: int | None = None):
        username = _normalize_username(username)
        return self._run(_Plan(
            label=f"{username}'s lists",
            url=build_user_section_url(username, "lists"),
            head=_requires(LIST_OVERVIEW_CONTENT),
            items=extract_list_summaries,
            key=lambda summary: (summary.author, summary.slug),
            build=_as_tuple,
            max_pages=self._pages(max_pages),
            content=LIST_OVERVIEW_CONTENT,
        ))

    # -- Poster grids ---------------------------------------------------------

    def get_collection(self, url: str, max_pages: int | None = None):
        """Any poster-grid page: genre, decade, year, user films..."""
        url = normalize_letterboxd_url(url) if isinstance(url, str) else url
        if not isinstance(url, str) or not is_valid_letterboxd_url(url):
            raise ValidationError(url, "not a letterboxd.com URL")
        return self._collection(url, f"collection {url}", max_pages)

    def get_user_films(self, username: str, film_filter: str | None = None, max_pages: int | None = None):
        username = _normalize_username(username)
        return self._collection(build_films_url(username, film_filter), f"{username}'s films", max_pages)

    def get_watchlist(self, username: str, max_pages: int | None = None):
        username = _normalize_username(username)
        return self._collection(build_user_section_url(username, "watchlist"), f"{username}'s watchlist", max_pages)

    def get_liked_films(self, username: str, max_pages: int | None = None):
        username = _normalize_username(username)
        return self._collection(build_user_section_url(username, "likes/films"), f"{username}'s liked films", max_pages)

    def get_films_by_rating(self, username: str, rating: float, max_pages: int | None = None):
        username = _normalize_username(username)
        rating = require_rating(rating, self.site)
        url = build_films_url(username, f"rated/{format_rating_path(rating)}")
        return self._collection(url, f"{username}'s films rated {rating}", max_pages)

    def get_films_not_rated(self, username: str, max_pages: int | None = None):
        username = _normalize_username(username)
        url = build_films_url(username, "not-rated")
        return self._collection(url, f"{username}'s unrated films", max_pages)

    def get_similar_films(self, slug: str, max_pages: int | None = None):
        slug = require_film_slug(slug)
        return self._collection(build_film_section_url(slug, "similar"), f"films similar to {slug}", max_pages)

    def _collection(self, url: str, label: str, max_pages: int | None):
        def head(doc: Document, warnings: list):
            ensure_content(doc, COLLECTION_CONTENT)
            return extract_declared_count(doc, warnings)

        return self._run(_Plan(
            label=label,
            url=url,
            head=head,
            items=extract_collection_items,
            key=lambda entry: entry.slug,
            build=lambda count, t: assemble_collection(url, count, t.items, t.complete),
            max_pages=self._pages(max_pages),
            content=COLLECTION_CONTENT,
        ))

    # -- Activity and people --------------------------------------------------

    def get_diary(self, username: str, year: int | None = None, month: int | None = None,
                  day: int | None = None, max_pages: int | None = None):
        username = _normalize_username(username)
        require_date_parts(year, month, day)
        return self._run(_Plan(
            label=f"{username}'s diary",
            url=build_diary_url(username, year, month, day),
            head=_requires(DIARY_CONTENT),
            items=extract_diary_items,
            key=diary_key,
            build=_as_tuple,
            max_pages=self._pages(max_pages),
            content=DIARY_CONTENT,
        ))

    def get_followers(self, username: str, max_pages: int | None = None):
        username = _normalize_username(username)
        return self._members(build_user_section_url(username, "followers"), f"{username}'s followers", max_pages)

    def get_following(self, username: str, max_pages: int | None = None):
        username = _normalize_username(username)
        return self._members(build_user_section_url(username, "following"), f"{username}'s following", max_pages)

    def get_film_fans(self, slug: str, max_pages: int | None = None):
        slug = require_film_slug(slug)
        return self._members(build_film_section_url(slug, "fans"), f"fans of {slug}", max_pages)

    def get_film_members(self, slug: str, max_pages: int | None = None):
        slug = require_film_slug(slug)
        return self._members(build_film_section_url(slug, "members"), f"members who watched {slug}", max_pages)

    def _members(self, url: str, label: str, max_pages: int | None):
        return self._run(_Plan(
            label=label,
            url=url,
            head=_requires(MEMBER_CONTENT),
            items=extract_member_items,
            key=lambda member: member.username,
            build=_as_tuple,
            max_pages=self._pages(max_pages),
            content=MEMBER_CONTENT,
        ))

    def get_film_reviews(self, slug: str, max_pages: int | None = None):
        slug = require_film_slug(slug)
        return self._run(_Plan(
            label=f"reviews of {slug}",
            url=build_film_section_url(slug, "reviews"),
            head=_requires(REVIEWS_CONTENT),
            items=functools.partial(extract_review_items, film_slug=slug),
            key=lambda review: (review.author, review.date, review.content),
            build=_as_tuple,
            max_pages=self._pages(max_pages),
            content=REVIEWS_CONTENT,
        ))


class LetterboxdScraper(_ScraperBase):
    """
    Blocking facade. Every operation returns an Extraction.

    First-page failures (transport, not found, restricted) raise; a failure on
    a later page is returned in Extraction.failure next to the pages gathered.
    """

    def __init__(
        self,
        client: LetterboxdClient | None = None,
        max_pages: int = DEFAULT_MAX_PAGES,
        site: SiteConfig = DEFAULT_SITE,
        **client_kwargs,
    ):
        super().__init__(max_pages=max_pages, site=site)
        self._owns_client = client is None
        self.client = client if client is not None else LetterboxdClient(**client_kwargs)

    def _run(self, plan: _Plan) -> Extraction:
        logger.info(f"Scraping {plan.label}...")
        warnings = []
        doc = self.client.fetch(plan.url)
        head = plan.head(doc, warnings)
        if plan.items is None:
            return Extraction(entity=head, warnings=tuple(warnings))
        traversal = drive(plan.cursor(), self.client.fetch, first_doc=doc)
        return _collected(plan, head, warnings, traversal)

    def close(self):
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class AsyncLetterboxdScraper(_ScraperBase):
    """
    Async facade for concurrent acquisitions.

    Operations have the same names and arguments as LetterboxdScraper and return
    awaitables; identifier validation still happens at call time, before any
    request is scheduled.
    """

    def __init__(
        self,
        client: AsyncLetterboxdClient | None = None,
        max_pages: int = DEFAULT_MAX_PAGES,
        site: SiteConfig = DEFAULT_SITE,
        **client_kwargs,
    ):
        super().__init__(max_pages=max_pages, site=site)
        self._owns_client = client is None
        self.client = client if client is not None else AsyncLetterboxdClient(**client_kwargs)

    async def _run(self, plan: _Plan) -> Extraction:
        logger.info(f"Scraping {plan.label} (async)...")
        warnings = []
        doc = await self.client.fetch(plan.url)
        head = plan.head(doc, warnings)
        if plan.items is None:
            return Extraction(entity=head, warnings=tuple(warnings))
        traversal = await drive_async(plan.cursor(), self.client.fetch, first_doc=doc)
        return _collected(plan, head, warnings, traversal)

    async def get_films(self, slugs: list[str]) -> dict[str, Extraction]:
        """
        Fetch many films concurrently.

        Invalid slugs and films that fail are logged and left out; one failure
        never cancels the others. Pace the batch through the client's
        before_request hook.
        """
        valid = []
        for slug in dict.fromkeys(slugs):
            try:
                valid.append(require_film_slug(slug))
            except ValidationError as exc:
                logger.warning(f"Skipping invalid slug: {exc}")

        tasks = [self.get_film(slug) for slug in valid]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        successful = {}
        error_summary = {}
        for slug, result in zip(valid, results):
            if isinstance(result, ScraperError):
                error_type = type(result).__name__
                logger.error(f"Failed to scrape {slug}: {error_type}: {result}")
                error_summary.setdefault(error_type, []).append(slug)
            elif isinstance(result, BaseException):
                raise result
            else:
                successful[slug] = result

        failed = len(valid) - len(successful)
        if failed:
            logger.warning(f"Batch complete: {len(successful)}/{len(valid)} successful, {failed} failed")
            logger.info(f"Error breakdown: {dict((k, len(v)) for k, v in error_summary.items())}")
        else:
            logger.info(f"Batch complete: {len(successful)}/{len(valid)} successful")
        return successful

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False
