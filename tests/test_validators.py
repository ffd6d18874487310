import pytest

from letterboxd_scrape import validators
from letterboxd_scrape.config import SiteConfig
from letterboxd_scrape.errors import ValidationError


@pytest.mark.parametrize("username", ["dave", "film_fan_99", "a", "x" * 50])
def test_valid_usernames(username):
    assert validators.is_valid_username(username)


@pytest.mark.parametrize("username", ["", "Dave", "has space", "dash-name", "x" * 51, None, 42])
def test_invalid_usernames(username):
    assert not validators.is_valid_username(username)


def test_film_and_list_slugs():
    assert validators.is_valid_film_slug("parasite-2019")
    assert validators.is_valid_film_slug("x" * 200)
    assert not validators.is_valid_film_slug("x" * 201)
    assert not validators.is_valid_film_slug("The Matrix")
    assert not validators.is_valid_film_slug("")

    assert validators.is_valid_list_slug("top-10-of-2023")
    assert not validators.is_valid_list_slug("x" * 101)


def test_ratings():
    assert validators.is_valid_rating(4.5)
    assert validators.is_valid_rating(3)
    assert not validators.is_valid_rating(4.2)
    assert not validators.is_valid_rating(0)
    assert not validators.is_valid_rating(5.5)
    assert not validators.is_valid_rating(True)
    assert not validators.is_valid_rating("4.5")

    assert validators.normalize_rating(4.3) == 4.5
    assert validators.normalize_rating(0.1) is None
    assert validators.normalize_rating(6.0) is None


def test_years_and_date_parts():
    site = SiteConfig(max_year=2030)
    assert validators.is_valid_year(1888, site)
    assert validators.is_valid_year(2030, site)
    assert not validators.is_valid_year(1887, site)
    assert not validators.is_valid_year(2031, site)
    assert not validators.is_valid_year("2020", site)

    assert validators.is_valid_month(12)
    assert not validators.is_valid_month(13)
    assert validators.is_valid_day(31)
    assert not validators.is_valid_day(0)


def test_genre_filter_and_url():
    assert validators.is_valid_genre("Science Fiction")
    assert not validators.is_valid_genre("space opera")
    assert validators.is_valid_search_filter("cast-crew")
    assert not validators.is_valid_search_filter("everything")
    assert validators.is_valid_letterboxd_url("https://letterboxd.com/films/genre/drama/")
    assert not validators.is_valid_letterboxd_url("https://example.com/films/")


def test_sanitize_text_strips_injection_patterns():
    assert validators.is_safe_text("A masterpiece. 10/10")
    assert not validators.is_safe_text("<script>alert(1)</script> hi")
    assert not validators.is_safe_text("click javascript:alert(1)")
    assert not validators.is_safe_text('<img onerror="x">')

    clean, flagged = validators.sanitize_text("Great <script>alert(1)</script>film")
    assert flagged is True
    assert "script" not in clean
    assert "alert" not in clean
    assert clean == "Great film"

    untouched, flagged = validators.sanitize_text("Tom & Jerry <3")
    assert untouched == "Tom & Jerry <3"
    assert flagged is False


def test_clean_and_validate_text():
    assert validators.clean_and_validate_text("  two   words ", 20) == "two words"
    assert validators.clean_and_validate_text("   ", 20) is None
    assert validators.clean_and_validate_text("too long", 3) is None


def test_require_helpers_raise_validation_error():
    with pytest.raises(ValidationError) as excinfo:
        validators.require_username("Bad Name")
    assert excinfo.value.value == "Bad Name"
    assert "username" in excinfo.value.rule

    # ValidationError is also a ValueError
    with pytest.raises(ValueError):
        validators.require_film_slug("not a slug")

    with pytest.raises(ValidationError):
        validators.require_search_filter("everything")
    assert validators.require_search_filter(None) is None

    with pytest.raises(ValidationError):
        validators.require_rating(4.2)
    assert validators.require_rating(4) == 4.0

    with pytest.raises(ValidationError):
        validators.require_date_parts(None, 3, None)
    with pytest.raises(ValidationError):
        validators.require_date_parts(2024, 13, None)
    with pytest.raises(ValidationError):
        validators.require_date_parts(2024, None, 5)
    validators.require_date_parts(2024, 3, 15)


@pytest.mark.parametrize(
    "check, value",
    [
        (validators.is_valid_month, "5"),
        (validators.is_valid_month, None),
        (validators.is_valid_month, True),
        (validators.is_valid_day, None),
        (validators.is_valid_day, 3.0),
        (validators.is_valid_year, None),
        (validators.is_valid_genre, None),
        (validators.is_valid_genre, 7),
        (validators.is_valid_rating, None),
        (validators.is_valid_username, 42),
        (validators.is_valid_film_slug, ["alien"]),
        (validators.is_valid_search_filter, ["films"]),
        (validators.is_valid_letterboxd_url, 123),
        (validators.is_safe_text, None),
    ],
)
def test_wrong_types_are_invalid_not_errors(check, value):
    assert check(value) is False


def test_wrong_types_in_helpers_return_none():
    assert validators.normalize_rating("x") is None
    assert validators.normalize_rating(None) is None
    assert validators.normalize_rating(float("nan")) is None
    assert validators.clean_and_validate_text(None, 20) is None
    assert validators.check_username(None) is not None


@pytest.mark.parametrize(
    "year, month, day",
    [("2024", None, None), (2024, "5", None), (2024, 5, [1]), (2024, 5, "1"), (2024.0, None, None)],
)
def test_date_parts_of_wrong_type_raise_validation_error(year, month, day):
    with pytest.raises(ValidationError):
        validators.require_date_parts(year, month, day)
