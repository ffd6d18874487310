"""
Typed entities produced by the extractors.

Every entity is an immutable snapshot taken at fetch time (mapping fields are
read-only views, and records holding them hash by content). Optional fields
are always present (None when absent) so serialized records distinguish
"absent" from "not fetched".
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Generic, TypeVar

from .errors import FieldWarning, ScraperError

T = TypeVar("T")


def json_default(value):
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_plain(value):
    """Like dataclasses.asdict, but also copies read-only mappings into plain dicts."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(to_plain(v) for v in value)
    return value


def _freeze_mapping(record, name: str) -> None:
    object.__setattr__(record, name, MappingProxyType(dict(getattr(record, name))))


def _record_hash(record) -> int:
    values = []
    for f in fields(record):
        value = getattr(record, f.name)
        values.append(frozenset(value.items()) if isinstance(value, Mapping) else value)
    return hash(tuple(values))


class Record:
    """Mixin giving dataclass entities a field-name keyed representation."""

    def to_dict(self) -> dict:
        return to_plain(self)

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_dict(), default=json_default, ensure_ascii=False, **kwargs)


# -- Profile -----------------------------------------------------------------

@dataclass(frozen=True)
class ProfileStats(Record):
    watched: int | None = None
    this_year: int | None = None
    reviews: int | None = None
    lists: int | None = None
    following: int | None = None
    followers: int | None = None


@dataclass(frozen=True)
class FavoriteFilm(Record):
    slug: str
    title: str | None
    url: str


@dataclass(frozen=True)
class Profile(Record):
    """A member profile page."""
    username: str
    url: str
    display_name: str
    bio: str | None = None
    location: str | None = None
    website: str | None = None
    avatar: str | None = None
    is_hq: bool = False
    stats: ProfileStats | None = None
    favorites: tuple[FavoriteFilm, ...] | None = None


@dataclass(frozen=True)
class Member(Record):
    username: str
    display_name: str | None
    url: str


# -- Film --------------------------------------------------------------------

@dataclass(frozen=True)
class FilmPerson(Record):
    name: str
    role: str | None
    slug: str | None


@dataclass(frozen=True)
class Film(Record):
    """
    A film page.

    rating is the site-wide average (two decimals) and therefore not
    restricted to half steps; member ratings elsewhere are.
    """
    slug: str
    url: str
    title: str
    film_id: int | None = None
    original_title: str | None = None
    year: int | None = None
    runtime: int | None = None
    rating: float | None = None
    rating_count: int | None = None
    tagline: str | None = None
    description: str | None = None
    poster: str | None = None
    tmdb_link: str | None = None
    imdb_link: str | None = None
    genres: tuple[str, ...] = ()
    themes: tuple[str, ...] = ()
    countries: tuple[str, ...] = ()
    languages: tuple[str, ...] = ()
    studios: tuple[str, ...] = ()
    cast: tuple[FilmPerson, ...] = ()
    crew: tuple[FilmPerson, ...] = ()

    @property
    def directors(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.crew if p.role == "director")


@dataclass(frozen=True)
class RatingSummary(Record):
    slug: str
    average: float | None = None
    rating_count: int | None = None
    fan_count: int | None = None
    histogram: dict[float, int] = field(default_factory=dict)

    __hash__ = _record_hash

    def __post_init__(self):
        _freeze_mapping(self, "histogram")


@dataclass(frozen=True)
class Review(Record):
    author: str
    film_slug: str | None
    film_title: str | None
    rating: float | None
    content: str
    date: date | None = None
    likes: int | None = None
    flagged: bool = False


# -- Lists -------------------------------------------------------------------

@dataclass(frozen=True)
class ListEntry(Record):
    position: int
    slug: str
    title: str
    url: str
    year: int | None = None
    rating: float | None = None


@dataclass(frozen=True)
class FilmList(Record):
    """
    A member list.

    film_count is the number of extracted entries. declared_film_count is the
    figure the page advertises; complete is False when traversal stopped early.
    """
    author: str
    slug: str
    url: str
    title: str
    description: str | None = None
    tags: tuple[str, ...] = ()
    likes: int | None = None
    comments: int | None = None
    is_ranked: bool = False
    declared_film_count: int | None = None
    film_count: int = 0
    films: tuple[ListEntry, ...] = ()
    complete: bool = True

    def get_film_by_position(self, position: int) -> ListEntry | None:
        for entry in self.films:
            if entry.position == position:
                return entry
        return None


@dataclass(frozen=True)
class ListSummary(Record):
    author: str
    slug: str
    title: str
    url: str
    film_count: int | None = None
    likes: int | None = None
    is_ranked: bool = False


@dataclass(frozen=True)
class Comment(Record):
    author: str
    content: str
    timestamp: str | None = None
    flagged: bool = False


# -- Collections -------------------------------------------------------------

@dataclass(frozen=True)
class CollectionEntry(Record):
    slug: str
    title: str | None
    url: str
    year: int | None = None
    poster: str | None = None
    rating: float | None = None
    liked: bool = False


@dataclass(frozen=True)
class FilmCollection(Record):
    """
    Films on a poster-grid page (user films, watchlist, likes, genre pages...).

    count is the total declared by the source page. When traversal is cut short
    the extracted films are fewer; missing exposes the gap.
    """
    url: str
    count: int | None
    films: dict[str, CollectionEntry] = field(default_factory=dict)
    complete: bool = True

    __hash__ = _record_hash

    def __post_init__(self):
        _freeze_mapping(self, "films")

    @property
    def missing(self) -> int | None:
        if self.count is None:
            return None
        return max(self.count - len(self.films), 0)

    def filter_by_year(self, year: int) -> list[CollectionEntry]:
        return [f for f in self.films.values() if f.year == year]

    def filter_by_rating(self, min_rating: float) -> list[CollectionEntry]:
        return [f for f in self.films.values() if f.rating is not None and f.rating >= min_rating]

    def get_liked(self) -> list[CollectionEntry]:
        return [f for f in self.films.values() if f.liked]


@dataclass(frozen=True)
class DiaryEntry(Record):
    slug: str
    title: str | None
    date: date | None = None
    rating: float | None = None
    liked: bool = False
    rewatch: bool = False
    has_review: bool = False


# -- Search ------------------------------------------------------------------

@dataclass(frozen=True)
class SearchFilm(Record):
    slug: str
    title: str
    url: str
    year: int | None = None
    directors: tuple[str, ...] = ()
    poster: str | None = None


@dataclass(frozen=True)
class SearchReview(Record):
    author: str
    film_slug: str | None
    film_title: str | None
    content: str
    rating: float | None = None
    likes: int | None = None
    flagged: bool = False


@dataclass(frozen=True)
class SearchMember(Record):
    username: str
    display_name: str | None
    url: str
    avatar: str | None = None
    films_watched: int | None = None


@dataclass(frozen=True)
class SearchPerson(Record):
    name: str
    slug: str | None
    url: str
    known_for: tuple[str, ...] = ()


@dataclass(frozen=True)
class SearchTag(Record):
    name: str
    url: str
    film_count: int | None = None


@dataclass(frozen=True)
class SearchStory(Record):
    title: str
    url: str
    author: str | None = None
    date: str | None = None
    summary: str | None = None


@dataclass(frozen=True)
class GenericResult(Record):
    """
    Untyped fallback for result kinds without a committed schema
    (episodes, full-text matches). Callers should not rely on the keys of fields.
    """
    kind: str
    title: str | None
    url: str | None
    fields: dict[str, str] = field(default_factory=dict)

    __hash__ = _record_hash

    def __post_init__(self):
        _freeze_mapping(self, "fields")


@dataclass(frozen=True)
class SearchResults(Record):
    query: str
    search_filter: str | None
    url: str
    films: tuple[SearchFilm, ...] = ()
    reviews: tuple[SearchReview, ...] = ()
    lists: tuple[ListSummary, ...] = ()
    members: tuple[SearchMember, ...] = ()
    cast_crew: tuple[SearchPerson, ...] = ()
    tags: tuple[SearchTag, ...] = ()
    stories: tuple[SearchStory, ...] = ()
    articles: tuple[SearchStory, ...] = ()
    other: tuple[GenericResult, ...] = ()
    complete: bool = True


# -- Acquisition envelopes ---------------------------------------------------

@dataclass(frozen=True)
class Extraction(Generic[T]):
    """
    An entity plus everything worth reporting about how it was obtained.

    failure is set when a multi-page acquisition stopped on an error after
    some pages succeeded; entity then holds the pages gathered so far.
    """
    entity: T
    warnings: tuple[FieldWarning, ...] = ()
    failure: ScraperError | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None
