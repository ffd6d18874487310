import argparse
import json
import logging
import sys
import time

from tqdm import tqdm

from .config import DEFAULT_CLI_DELAY, DEFAULT_MAX_PAGES, SEARCH_FILTERS
from .errors import ScraperError
from .models import Extraction, json_default, to_plain
from .scraper import LetterboxdScraper
from .stats import collection_summary, rating_distribution

logger = logging.getLogger(__name__)


def _sleeper(delay: float):
    """before_request hook that waits `delay` seconds ahead of every request."""
    def before_request(url: str) -> None:
        if delay > 0:
            time.sleep(delay)
    return before_request


def _payload(extraction: Extraction, extra: dict | None = None) -> dict:
    payload = {
        "entity": to_plain(extraction.entity),
        "warnings": [to_plain(w) for w in extraction.warnings],
        "failure": str(extraction.failure) if extraction.failure else None,
    }
    if extra:
        payload.update(extra)
    return payload


def _emit(payload) -> None:
    print(json.dumps(payload, default=json_default, ensure_ascii=False, indent=2))


def _scraper(args: argparse.Namespace) -> LetterboxdScraper:
    return LetterboxdScraper(max_pages=args.max_pages, before_request=_sleeper(args.delay))


def cmd_user(args: argparse.Namespace) -> None:
    """Print a member profile."""
    with _scraper(args) as scraper:
        _emit(_payload(scraper.get_user(args.username)))


def cmd_film(args: argparse.Namespace) -> None:
    """Print one or more films; failures are logged and skipped."""
    results = []
    failed = []
    with _scraper(args) as scraper:
        for slug in tqdm(args.slugs, desc="Films", disable=len(args.slugs) < 2):
            try:
                extraction = scraper.get_film(slug)
                extra = None
                if args.ratings:
                    summary = scraper.get_rating_summary(slug)
                    extra = {"rating_summary": to_plain(summary.entity)}
                results.append(_payload(extraction, extra))
            except ScraperError as exc:
                logger.error(f"Failed to scrape {slug}: {type(exc).__name__}: {exc}")
                failed.append(slug)

    if failed:
        logger.warning(f"{len(results)}/{len(args.slugs)} films scraped, {len(failed)} failed")
    _emit(results[0] if len(args.slugs) == 1 and results else results)


def cmd_search(args: argparse.Namespace) -> None:
    with _scraper(args) as scraper:
        _emit(_payload(scraper.search(args.query, search_filter=args.filter, max_pages=args.pages)))


def cmd_list(args: argparse.Namespace) -> None:
    with _scraper(args) as scraper:
        extraction = scraper.get_list(args.author, args.slug)
        extra = None
        if args.comments:
            comments = scraper.get_list_comments(args.author, args.slug)
            extra = {"comments": to_plain(comments.entity)}
        _emit(_payload(extraction, extra))


def cmd_films(args: argparse.Namespace) -> None:
    """Print a member's films, watchlist, likes or films at a given rating."""
    with _scraper(args) as scraper:
        if args.watchlist:
            extraction = scraper.get_watchlist(args.username)
        elif args.liked:
            extraction = scraper.get_liked_films(args.username)
        elif args.rated is not None:
            extraction = scraper.get_films_by_rating(args.username, args.rated)
        elif args.not_rated:
            extraction = scraper.get_films_not_rated(args.username)
        else:
            extraction = scraper.get_user_films(args.username)

    collection = extraction.entity
    logger.info(f"{len(collection.films)} films extracted (declared: {collection.count})")
    if args.stats:
        _emit(collection_summary(collection))
    else:
        _emit(_payload(extraction))


def cmd_diary(args: argparse.Namespace) -> None:
    with _scraper(args) as scraper:
        extraction = scraper.get_diary(args.username, year=args.year, month=args.month, day=args.day)
    extra = None
    if args.stats:
        extra = {"ratings": rating_distribution(e.rating for e in extraction.entity)}
    _emit(_payload(extraction, extra))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract structured data from Letterboxd pages")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--delay", type=float, default=DEFAULT_CLI_DELAY,
                        help=f"Seconds to wait before each request (default: {DEFAULT_CLI_DELAY})")
    parser.add_argument("--max-pages", type=int, default=DEFAULT_MAX_PAGES,
                        help=f"Maximum pages per paginated source (default: {DEFAULT_MAX_PAGES})")
    subparsers = parser.add_subparsers(dest="command", required=True)

    user_parser = subparsers.add_parser("user", help="Show a member profile")
    user_parser.add_argument("username", help="Letterboxd username")
    user_parser.set_defaults(func=cmd_user)

    film_parser = subparsers.add_parser("film", help="Show film details")
    film_parser.add_argument("slugs", nargs="+", help="Film slugs (e.g. parasite-2019)")
    film_parser.add_argument("--ratings", action="store_true", help="Include the rating histogram and fan count")
    film_parser.set_defaults(func=cmd_film)

    search_parser = subparsers.add_parser("search", help="Search films, lists, members...")
    search_parser.add_argument("query", help="Search terms")
    search_parser.add_argument("--filter", choices=SEARCH_FILTERS, help="Restrict results to one kind")
    search_parser.add_argument("--pages", type=int, default=1, help="Result pages to read (default: 1)")
    search_parser.set_defaults(func=cmd_search)

    list_parser = subparsers.add_parser("list", help="Show a member list")
    list_parser.add_argument("author", help="List author's username")
    list_parser.add_argument("slug", help="List slug")
    list_parser.add_argument("--comments", action="store_true", help="Include list comments")
    list_parser.set_defaults(func=cmd_list)

    films_parser = subparsers.add_parser("films", help="Show a member's films")
    films_parser.add_argument("username", help="Letterboxd username")
    source = films_parser.add_mutually_exclusive_group()
    source.add_argument("--watchlist", action="store_true", help="Watchlist instead of watched films")
    source.add_argument("--liked", action="store_true", help="Liked films")
    source.add_argument("--rated", type=float, metavar="RATING", help="Films rated exactly RATING (0.5-5.0)")
    source.add_argument("--not-rated", action="store_true", help="Watched films without a rating")
    films_parser.add_argument("--stats", action="store_true", help="Print rating and decade statistics instead")
    films_parser.set_defaults(func=cmd_films)

    diary_parser = subparsers.add_parser("diary", help="Show diary entries")
    diary_parser.add_argument("username", help="Letterboxd username")
    diary_parser.add_argument("--year", type=int)
    diary_parser.add_argument("--month", type=int)
    diary_parser.add_argument("--day", type=int)
    diary_parser.add_argument("--stats", action="store_true", help="Include a rating distribution")
    diary_parser.set_defaults(func=cmd_diary)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging based on verbosity
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        args.func(args)
    except ScraperError as exc:
        logger.error(f"{type(exc).__name__}: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
