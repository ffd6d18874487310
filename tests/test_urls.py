from letterboxd_scrape import urls


def test_entity_urls():
    assert urls.build_user_url("dave") == "https://letterboxd.com/dave/"
    assert urls.build_film_url("parasite-2019") == "https://letterboxd.com/film/parasite-2019/"
    assert urls.build_film_section_url("parasite-2019", "/fans/") == "https://letterboxd.com/film/parasite-2019/fans/"
    assert urls.build_list_url("dave", "top-10") == "https://letterboxd.com/dave/list/top-10/"
    assert urls.build_list_comments_url("dave", "top-10") == "https://letterboxd.com/dave/list/top-10/comments/"
    assert urls.build_rating_summary_url("parasite-2019") == "https://letterboxd.com/csi/film/parasite-2019/ratings-summary/"


def test_search_url_encodes_query_and_filter():
    assert urls.build_search_url("parasite") == "https://letterboxd.com/s/search/parasite/"
    assert urls.build_search_url("  bong joon/ho ", "cast-crew") == (
        "https://letterboxd.com/s/search/cast-crew/bong%20joon%2Fho/"
    )


def test_diary_and_films_urls():
    assert urls.build_diary_url("dave") == "https://letterboxd.com/dave/films/diary/"
    assert urls.build_diary_url("dave", 2024) == "https://letterboxd.com/dave/films/diary/for/2024/"
    assert urls.build_diary_url("dave", 2024, 3, 5) == "https://letterboxd.com/dave/films/diary/for/2024/03/05/"
    assert urls.build_films_url("dave") == "https://letterboxd.com/dave/films/"
    assert urls.build_films_url("dave", "rated/4.5") == "https://letterboxd.com/dave/films/rated/4.5/"


def test_format_rating_path():
    assert urls.format_rating_path(4.0) == "4"
    assert urls.format_rating_path(3.5) == "3.5"


def test_page_helpers():
    base = "https://letterboxd.com/dave/films/"
    assert urls.add_page_to_url(base, 2) == "https://letterboxd.com/dave/films/page/2/"
    assert urls.add_page_to_url("https://letterboxd.com/s/search/x/?adult", 3) == (
        "https://letterboxd.com/s/search/x/page/3/?adult"
    )
    assert urls.extract_page_from_url("https://letterboxd.com/dave/films/page/7/") == 7
    assert urls.extract_page_from_url(base) is None
    assert urls.remove_page_from_url("https://letterboxd.com/dave/films/page/7/") == base
    assert urls.remove_page_from_url(base) == base

    assert urls.add_query_to_url(base, offset=20) == "https://letterboxd.com/dave/films/?offset=20"


def test_ajax_and_absolute_urls():
    assert urls.get_ajax_url("https://letterboxd.com/film/parasite-2019/reviews/") == (
        "https://letterboxd.com/ajax/film/parasite-2019/reviews/"
    )
    assert urls.get_ajax_url("https://letterboxd.com/dave/") == "https://letterboxd.com/dave/ajax/"
    assert urls.get_ajax_url("https://letterboxd.com/ajax/x/") == "https://letterboxd.com/ajax/x/"

    assert urls.absolute_url("/film/x/") == "https://letterboxd.com/film/x/"
    assert urls.absolute_url("//a.ltrbxd.com/p.jpg") == "https://a.ltrbxd.com/p.jpg"
    assert urls.absolute_url("https://example.com/") == "https://example.com/"
    assert urls.absolute_url(None) is None

    assert urls.normalize_letterboxd_url("films/genre/drama/") == "https://letterboxd.com/films/genre/drama/"
