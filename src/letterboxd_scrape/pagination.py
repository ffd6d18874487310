"""
Multi-page traversal.

PageCursor holds the traversal state and decides the next URL from each
page it consumes; drive() and drive_async() feed it documents. Keeping the
decisions in the cursor lets sync and async callers share them, and keeps
every traversal's state local to one acquisition.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

from .config import DEFAULT_MAX_PAGES
from .document import Document
from .errors import FieldWarning, NotFoundError, ScraperError
from .extractors._common import ensure_content
from .urls import (
    absolute_url,
    add_page_to_url,
    add_query_to_url,
    extract_page_from_url,
    get_ajax_url,
    remove_page_from_url,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

NEXT_PAGE_SELECTOR = ".paginate-nextprev a.next, .pagination a.next, a.next-page, a[rel='next']"
LOAD_MORE_SELECTOR = ".load-more, [data-load-more-url], .js-load-more, a.ajax-load-more"

ItemExtractor = Callable[[Document, list], list]


class TraversalMode(str, Enum):
    NUMBERED = "numbered"
    CONTINUATION = "continuation"


def detect_mode(doc: Document) -> TraversalMode:
    """Pages carrying a load-more affordance are continued via AJAX, others by page number."""
    if doc.has(LOAD_MORE_SELECTOR):
        return TraversalMode.CONTINUATION
    return TraversalMode.NUMBERED


def find_continuation_url(doc: Document, base_url: str) -> str | None:
    """
    Build the next continuation request from the load-more affordance.

    An explicit endpoint (data-load-more-url / data-url / href) wins; otherwise
    the AJAX endpoint of base_url is combined with data-next-page or data-offset.
    """
    node = doc.find(LOAD_MORE_SELECTOR)
    if node is None:
        return None
    for attr in ("data-load-more-url", "data-url", "href"):
        value = Document.attr(node, attr)
        if value and value != "#" and not value.startswith("javascript"):
            return absolute_url(value)

    ajax_base = get_ajax_url(base_url)
    next_page = Document.attr(node, "data-next-page")
    if next_page and next_page.isdigit():
        return add_page_to_url(ajax_base, int(next_page))
    offset = Document.attr(node, "data-offset")
    if offset and offset.isdigit():
        return add_query_to_url(ajax_base, offset=int(offset))
    return None


@dataclass(frozen=True)
class Traversal(Generic[T]):
    """Outcome of walking a paginated source."""
    items: tuple[T, ...]
    pages_fetched: int
    mode: TraversalMode | None
    exhausted: bool
    truncated: bool
    warnings: tuple[FieldWarning, ...] = ()
    error: ScraperError | None = None

    @property
    def complete(self) -> bool:
        return self.exhausted and self.error is None


class PageCursor(Generic[T]):
    """
    Accumulates items across pages, deduplicating by natural key.

    Stops when a page adds nothing new, when the source stops offering a next
    page, after max_pages pages, or on the first failure. Items gathered before
    a failure are always kept.

    With a content selector, every page after the first gets the same
    page-shape check as the first: a restricted or error page mid-way is a
    failure, not the end of the source. Continuation fragments are only
    checked for restricted/error markers.
    """

    def __init__(
        self,
        url: str,
        extract: ItemExtractor,
        key: Callable[[T], Hashable],
        max_pages: int = DEFAULT_MAX_PAGES,
        mode: TraversalMode | None = None,
        content: str | None = None,
    ):
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self.base_url = remove_page_from_url(url)
        self.max_pages = max_pages
        self.mode = mode
        self.content = content
        self.pages_fetched = 0
        # a start URL like '.../page/3/' resumes numbering from there
        self.page_index = (extract_page_from_url(url) or 1) - 1
        self.exhausted = False
        self.truncated = False
        self.error: ScraperError | None = None
        self.warnings: list[FieldWarning] = []
        self._extract = extract
        self._key = key
        self._items: dict = {}
        self._next_url: str | None = url

    @property
    def next_url(self) -> str | None:
        return self._next_url

    @property
    def done(self) -> bool:
        return self._next_url is None

    def consume(self, doc: Document) -> int:
        """
        Extract one page; returns the number of new items it contributed.

        A ScraperError on the first page propagates. On later pages it becomes
        the traversal's failure and the items gathered so far are kept.
        """
        if self.mode is None:
            self.mode = detect_mode(doc)
            logger.debug(f"Traversal mode for {self.base_url}: {self.mode.value}")
        self.pages_fetched += 1
        self.page_index += 1

        try:
            page_items = self._page_items(doc)
        except ScraperError as exc:
            if self.pages_fetched == 1:
                raise
            self._stop(exc)
            return 0

        new_items = 0
        duplicates = 0
        for item in page_items:
            key = self._key(item)
            if key in self._items:
                duplicates += 1
                continue
            self._items[key] = item
            new_items += 1
        if duplicates:
            logger.debug(f"  Skipped {duplicates} duplicate items on {doc.url}")

        if new_items == 0:
            self._finish(exhausted=True)
            return 0

        following = self._following_url(doc)
        if following is None:
            self._finish(exhausted=True)
        elif self.pages_fetched >= self.max_pages:
            logger.info(f"Page limit ({self.max_pages}) reached for {self.base_url}, stopping")
            self.truncated = True
            self._finish(exhausted=False)
        else:
            self._next_url = following
        return new_items

    def fail(self, exc: ScraperError) -> None:
        """Record a fetch failure and stop; past-the-end 404s on numbered pages just end traversal."""
        if (
            isinstance(exc, NotFoundError)
            and self.pages_fetched > 0
            and self.mode == TraversalMode.NUMBERED
        ):
            logger.debug(f"Page {self.page_index + 1} of {self.base_url} not found, treating as last page")
            self._finish(exhausted=True)
            return
        self._stop(exc)

    def result(self) -> Traversal[T]:
        return Traversal(
            items=tuple(self._items.values()),
            pages_fetched=self.pages_fetched,
            mode=self.mode,
            exhausted=self.exhausted,
            truncated=self.truncated,
            warnings=tuple(self.warnings),
            error=self.error,
        )

    def _page_items(self, doc: Document) -> list:
        if self.pages_fetched > 1 and self.content is not None:
            ensure_content(doc, self.content, required=self.mode == TraversalMode.NUMBERED)
        return self._extract(doc, self.warnings)

    def _following_url(self, doc: Document) -> str | None:
        if self.mode == TraversalMode.CONTINUATION:
            return find_continuation_url(doc, self.base_url)
        if not doc.has(NEXT_PAGE_SELECTOR):
            return None
        return add_page_to_url(self.base_url, self.page_index + 1)

    def _stop(self, exc: ScraperError) -> None:
        logger.warning(f"Traversal of {self.base_url} stopped after {self.pages_fetched} pages: {exc}")
        self.error = exc
        self._finish(exhausted=False)

    def _finish(self, exhausted: bool) -> None:
        self.exhausted = exhausted
        self._next_url = None


def drive(
    cursor: PageCursor[T],
    fetch: Callable[[str], Document],
    first_doc: Document | None = None,
) -> Traversal[T]:
    """Run a cursor to completion with a blocking fetch."""
    if first_doc is not None:
        cursor.consume(first_doc)
    while not cursor.done:
        try:
            doc = fetch(cursor.next_url)
        except ScraperError as exc:
            cursor.fail(exc)
            break
        cursor.consume(doc)
    return cursor.result()


async def drive_async(
    cursor: PageCursor[T],
    fetch: Callable[[str], Awaitable[Document]],
    first_doc: Document | None = None,
) -> Traversal[T]:
    """Run a cursor to completion with an async fetch."""
    if first_doc is not None:
        cursor.consume(first_doc)
    while not cursor.done:
        try:
            doc = await fetch(cursor.next_url)
        except ScraperError as exc:
            cursor.fail(exc)
            break
        cursor.consume(doc)
    return cursor.result()
