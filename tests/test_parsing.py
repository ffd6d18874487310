from datetime import date

import pytest

from letterboxd_scrape import parsing


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1.2K", 1200),
        ("3M", 3_000_000),
        ("1.5B", 1_500_000_000),
        ("12,345", 12345),
        ("4 876 723", 4_876_723),
        ("0", 0),
        ("abc", None),
        ("", None),
        ("1.5", None),
        (None, None),
    ],
)
def test_parse_shorthand_count(text, expected):
    assert parsing.parse_shorthand_count(text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("4.5", 4.5),
        ("0.5", 0.5),
        ("5", 5.0),
        ("★★★★½", 4.5),
        ("★★", 2.0),
        ("½", 0.5),
        ("4.2/5", 4.2),
        ("4.6 out of 5", 4.6),
        ("8/10", 4.0),
    ],
)
def test_parse_rating_accepts_site_formats(text, expected):
    assert parsing.parse_rating(text) == expected


@pytest.mark.parametrize("text", ["5.5", "0", "-1", "great", "", "★x", None])
def test_parse_rating_rejects_out_of_range_and_garbage(text):
    assert parsing.parse_rating(text) is None


def test_parse_rating_rounds_to_two_decimals():
    assert parsing.parse_rating("4.567") == 4.57


def test_parse_rating_class():
    assert parsing.parse_rating_class("rating rated-8") == 4.0
    assert parsing.parse_rating_class("rating -micro rated-1") == 0.5
    assert parsing.parse_rating_class("rating rated-12") is None
    assert parsing.parse_rating_class("rating rated-xx") is None
    assert parsing.parse_rating_class("rating") is None
    assert parsing.parse_rating_class(None) is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2h 22m", 142),
        ("142 mins", 142),
        ("132 mins   More at IMDb TMDb", 132),
        ("2:22", 142),
        ("1h", 60),
        ("45m", 45),
        ("0m", None),
        ("0 mins", None),
        ("soon", None),
        ("", None),
    ],
)
def test_parse_runtime(text, expected):
    assert parsing.parse_runtime(text) == expected


def test_parse_year():
    assert parsing.parse_year("Barbie (2023)") == 2023
    assert parsing.parse_year("1999") == 1999
    assert parsing.parse_year("no year here") is None
    assert parsing.parse_year(None) is None


def test_dates():
    assert parsing.parse_iso_date("2024-03-15") == date(2024, 3, 15)
    assert parsing.parse_iso_date("2024-03-15T20:11:00Z") == date(2024, 3, 15)
    assert parsing.parse_iso_date("2024-02-30") is None
    assert parsing.parse_iso_date("15/03/2024") is None

    assert parsing.parse_written_date("01 Jan 2025") == date(2025, 1, 1)
    assert parsing.parse_written_date("Jan 1, 2025") == date(2025, 1, 1)
    assert parsing.parse_written_date("Sept 9, 2021") == date(2021, 9, 9)
    assert parsing.parse_written_date("yesterday") is None

    assert parsing.month_to_index("mar") == 3
    assert parsing.month_to_index("Foo") is None


def test_clean_text_and_extract_numeric():
    assert parsing.clean_text("  Bong\n\t Joon-ho  ") == "Bong Joon-ho"
    assert parsing.clean_text(None) == ""
    assert parsing.extract_numeric("1,234 films") == 1234
    assert parsing.extract_numeric("none") is None


def test_slug_extraction_from_urls():
    assert parsing.extract_film_slug("/film/parasite-2019/") == "parasite-2019"
    assert parsing.extract_film_slug("https://letterboxd.com/someone/film/parasite-2019/") == "parasite-2019"
    assert parsing.extract_film_slug("/films/genre/drama/") is None

    assert parsing.extract_user_slug("/Dave/") == "dave"
    assert parsing.extract_user_slug("https://letterboxd.com/dave/films/") == "dave"
    assert parsing.extract_user_slug("/film/parasite-2019/") is None
    assert parsing.extract_user_slug("https://example.com/dave/") is None

    assert parsing.extract_list_path("/dave/list/top-10/") == ("dave", "top-10")
    assert parsing.extract_list_path("/dave/films/") is None


def test_sanitize_for_url():
    assert parsing.sanitize_for_url("Spider-Man: No Way Home") == "spider-man-no-way-home"
