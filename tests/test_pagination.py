import pytest

from letterboxd_scrape.document import Document
from letterboxd_scrape.errors import FieldParseError, NotFoundError, RestrictedContentError, TransportError
from letterboxd_scrape.extractors.collection import COLLECTION_CONTENT, extract_collection_items
from letterboxd_scrape.pagination import (
    PageCursor,
    TraversalMode,
    detect_mode,
    drive,
    drive_async,
    find_continuation_url,
)

BASE = "https://letterboxd.com/dave/films/"


def _grid(slugs, has_next=True, extra=""):
    items = "".join(
        f'<li class="poster-container"><div class="film-poster" data-film-slug="{slug}"></div></li>'
        for slug in slugs
    )
    nav = '<div class="pagination"><a class="next" href="#">Older</a></div>' if has_next else ""
    return f"<html><body><ul class='poster-list'>{items}</ul>{nav}{extra}</body></html>"


def _page_url(n):
    return BASE if n == 1 else f"{BASE}page/{n}/"


class FakeSite:
    """url -> html or exception; records every fetch."""

    def __init__(self, pages):
        self.pages = pages
        self.fetched = []

    def fetch(self, url):
        self.fetched.append(url)
        page = self.pages.get(url, NotFoundError(url, "HTTP 404"))
        if isinstance(page, Exception):
            raise page
        return Document.from_html(page, url=url)

    async def afetch(self, url):
        return self.fetch(url)


def _cursor(max_pages=50, url=BASE, content=None):
    return PageCursor(url, extract_collection_items, key=lambda entry: entry.slug, max_pages=max_pages,
                      content=content)


def _slugs(traversal):
    return [entry.slug for entry in traversal.items]


def test_numbered_traversal_until_last_page():
    site = FakeSite({
        _page_url(1): _grid(["a", "b"]),
        _page_url(2): _grid(["c", "d"]),
        _page_url(3): _grid(["e"], has_next=False),
    })

    traversal = drive(_cursor(), site.fetch)

    assert _slugs(traversal) == ["a", "b", "c", "d", "e"]
    assert traversal.pages_fetched == 3
    assert traversal.mode == TraversalMode.NUMBERED
    assert traversal.complete is True
    assert traversal.truncated is False
    assert site.fetched == [_page_url(1), _page_url(2), _page_url(3)]


def test_failure_mid_traversal_keeps_earlier_pages():
    boom = TransportError(_page_url(3), "HTTP 500", status_code=500)
    site = FakeSite({
        _page_url(1): _grid(["a", "b"]),
        _page_url(2): _grid(["c", "d"]),
        _page_url(3): boom,
        _page_url(4): _grid(["g"]),
        _page_url(5): _grid(["h"], has_next=False),
    })

    traversal = drive(_cursor(), site.fetch)

    assert _slugs(traversal) == ["a", "b", "c", "d"]
    assert traversal.error is boom
    assert traversal.complete is False
    assert traversal.exhausted is False
    assert _page_url(4) not in site.fetched


def test_not_found_after_first_page_means_exhausted():
    site = FakeSite({
        _page_url(1): _grid(["a"]),
        _page_url(2): _grid(["b"]),
    })

    traversal = drive(_cursor(), site.fetch)

    assert _slugs(traversal) == ["a", "b"]
    assert traversal.error is None
    assert traversal.complete is True


def test_not_found_on_first_page_is_a_failure():
    traversal = drive(_cursor(), FakeSite({}).fetch)

    assert traversal.items == ()
    assert isinstance(traversal.error, NotFoundError)
    assert traversal.complete is False


def test_page_limit_truncates():
    site = FakeSite({_page_url(n): _grid([f"film-{n}"]) for n in range(1, 6)})

    traversal = drive(_cursor(max_pages=2), site.fetch)

    assert _slugs(traversal) == ["film-1", "film-2"]
    assert traversal.truncated is True
    assert traversal.complete is False
    assert len(site.fetched) == 2


def test_page_without_new_items_stops():
    site = FakeSite({
        _page_url(1): _grid(["a", "b"]),
        _page_url(2): _grid(["a", "b"]),
        _page_url(3): _grid(["c"]),
    })

    traversal = drive(_cursor(), site.fetch)

    assert _slugs(traversal) == ["a", "b"]
    assert traversal.pages_fetched == 2
    assert traversal.complete is True


def test_items_repeated_across_pages_are_kept_once():
    site = FakeSite({
        _page_url(1): _grid(["a", "b"]),
        _page_url(2): _grid(["b", "c"], has_next=False),
    })

    assert _slugs(drive(_cursor(), site.fetch)) == ["a", "b", "c"]


def test_traversal_is_repeatable():
    pages = {
        _page_url(1): _grid(["a", "b"]),
        _page_url(2): _grid(["c"], has_next=False),
    }

    first = drive(_cursor(), FakeSite(pages).fetch)
    second = drive(_cursor(), FakeSite(pages).fetch)

    assert first.items == second.items
    assert first.pages_fetched == second.pages_fetched


def test_start_url_with_page_segment_is_rebased():
    site = FakeSite({
        _page_url(3): _grid(["c"]),
        _page_url(4): _grid(["d"], has_next=False),
    })
    cursor = _cursor(url=_page_url(3))

    assert cursor.base_url == BASE
    assert cursor.next_url == _page_url(3)
    assert _slugs(drive(cursor, site.fetch)) == ["c", "d"]
    assert site.fetched == [_page_url(3), _page_url(4)]


def test_first_document_can_be_supplied():
    site = FakeSite({_page_url(2): _grid(["b"], has_next=False)})
    first = Document.from_html(_grid(["a"]), url=BASE)

    traversal = drive(_cursor(), site.fetch, first_doc=first)

    assert _slugs(traversal) == ["a", "b"]
    assert site.fetched == [_page_url(2)]


def test_max_pages_must_be_positive():
    with pytest.raises(ValueError):
        _cursor(max_pages=0)


class TestContinuation:
    REVIEWS = "https://letterboxd.com/film/parasite-2019/reviews/"

    def test_detect_mode(self, make_doc):
        assert detect_mode(make_doc(_grid(["a"]))) == TraversalMode.NUMBERED
        assert detect_mode(make_doc(_grid(["a"], extra='<a class="load-more" href="/x/">More</a>'))) == (
            TraversalMode.CONTINUATION
        )

    def test_explicit_endpoint_wins(self, make_doc):
        doc = make_doc(_grid(["a"], extra='<div class="load-more" data-url="/ajax/more/?cursor=abc"></div>'))
        assert find_continuation_url(doc, self.REVIEWS) == "https://letterboxd.com/ajax/more/?cursor=abc"

    def test_next_page_attribute_uses_ajax_endpoint(self, make_doc):
        doc = make_doc(_grid(["a"], extra='<div class="load-more" data-next-page="2"></div>'))
        assert find_continuation_url(doc, self.REVIEWS) == (
            "https://letterboxd.com/ajax/film/parasite-2019/reviews/page/2/"
        )

    def test_offset_attribute(self, make_doc):
        doc = make_doc(_grid(["a"], extra='<div class="load-more" data-offset="24"></div>'))
        assert find_continuation_url(doc, self.REVIEWS) == (
            "https://letterboxd.com/ajax/film/parasite-2019/reviews/?offset=24"
        )

    def test_continuation_traversal(self):
        more = "https://letterboxd.com/ajax/dave/films/page/2/"
        site = FakeSite({
            BASE: _grid(["a", "b"], has_next=False, extra=f'<a class="load-more" data-url="{more}">More</a>'),
            more: _grid(["c"], has_next=False),
        })

        traversal = drive(_cursor(), site.fetch)

        assert traversal.mode == TraversalMode.CONTINUATION
        assert _slugs(traversal) == ["a", "b", "c"]
        assert traversal.complete is True
        assert site.fetched == [BASE, more]

    def test_continuation_not_found_is_a_failure(self):
        more = "https://letterboxd.com/ajax/dave/films/page/2/"
        site = FakeSite({
            BASE: _grid(["a"], has_next=False, extra=f'<a class="load-more" data-url="{more}">More</a>'),
        })

        traversal = drive(_cursor(), site.fetch)

        assert _slugs(traversal) == ["a"]
        assert isinstance(traversal.error, NotFoundError)
        assert traversal.complete is False


PRIVATE_PAGE = "<html><body class='private-profile'><div class='restricted-notice'>Private</div></body></html>"
ERROR_PAGE = "<html><body class='error'><section class='error-message'>Gone</section></body></html>"


class TestLaterPageChecks:

    @pytest.mark.parametrize(
        "page, error",
        [
            (PRIVATE_PAGE, RestrictedContentError),
            (ERROR_PAGE, NotFoundError),
            ("<html><body><p>Something else entirely</p></body></html>", NotFoundError),
        ],
    )
    def test_wrong_page_mid_traversal_is_a_failure(self, page, error):
        site = FakeSite({
            _page_url(1): _grid(["a", "b"]),
            _page_url(2): page,
            _page_url(3): _grid(["c"], has_next=False),
        })

        traversal = drive(_cursor(content=COLLECTION_CONTENT), site.fetch)

        assert _slugs(traversal) == ["a", "b"]
        assert isinstance(traversal.error, error)
        assert traversal.complete is False
        assert traversal.exhausted is False
        assert site.fetched == [_page_url(1), _page_url(2)]

    def test_without_content_selector_a_wrong_page_just_ends(self):
        site = FakeSite({_page_url(1): _grid(["a"]), _page_url(2): PRIVATE_PAGE})

        traversal = drive(_cursor(), site.fetch)

        assert _slugs(traversal) == ["a"]
        assert traversal.complete is True

    def test_restricted_continuation_fragment_is_a_failure(self):
        more = "https://letterboxd.com/ajax/dave/films/page/2/"
        site = FakeSite({
            BASE: _grid(["a"], has_next=False, extra=f'<a class="load-more" data-url="{more}">More</a>'),
            more: PRIVATE_PAGE,
        })

        traversal = drive(_cursor(content=COLLECTION_CONTENT), site.fetch)

        assert traversal.mode == TraversalMode.CONTINUATION
        assert _slugs(traversal) == ["a"]
        assert isinstance(traversal.error, RestrictedContentError)

    def test_extraction_error_on_later_page_keeps_earlier_items(self):
        def extract(doc, warnings):
            if doc.url == _page_url(2):
                raise FieldParseError("films", doc.url)
            return extract_collection_items(doc, warnings)

        site = FakeSite({_page_url(1): _grid(["a", "b"]), _page_url(2): _grid(["c"])})
        cursor = PageCursor(BASE, extract, key=lambda entry: entry.slug)

        traversal = drive(cursor, site.fetch)

        assert _slugs(traversal) == ["a", "b"]
        assert isinstance(traversal.error, FieldParseError)
        assert traversal.complete is False

    def test_extraction_error_on_first_page_propagates(self):
        def extract(doc, warnings):
            raise FieldParseError("films", doc.url)

        site = FakeSite({_page_url(1): _grid(["a"])})

        with pytest.raises(FieldParseError):
            drive(PageCursor(BASE, extract, key=lambda entry: entry.slug), site.fetch)

    @pytest.mark.asyncio
    async def test_async_wrong_page_mid_traversal(self):
        site = FakeSite({_page_url(1): _grid(["a"]), _page_url(2): PRIVATE_PAGE})

        traversal = await drive_async(_cursor(content=COLLECTION_CONTENT), site.afetch)

        assert _slugs(traversal) == ["a"]
        assert isinstance(traversal.error, RestrictedContentError)


@pytest.mark.asyncio
async def test_drive_async_matches_drive():
    pages = {
        _page_url(1): _grid(["a", "b"]),
        _page_url(2): _grid(["c"]),
        _page_url(3): TransportError(_page_url(3), "HTTP 502", status_code=502),
    }

    sync_result = drive(_cursor(), FakeSite(pages).fetch)
    async_result = await drive_async(_cursor(), FakeSite(pages).afetch)

    assert async_result.items == sync_result.items
    assert _slugs(async_result) == ["a", "b", "c"]
    assert isinstance(async_result.error, TransportError)
