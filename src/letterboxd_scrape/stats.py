"""Aggregate statistics over extracted entities."""
import logging
from typing import Iterable

import numpy as np

from .config import VALID_RATINGS
from .models import FilmCollection, RatingSummary

logger = logging.getLogger(__name__)


def rating_distribution(ratings: Iterable[float | None]) -> dict:
    """
    Summarize member ratings (half steps, 0.5-5.0).

    Unrated entries (None) are ignored. Returns count/mean/median/std and a
    histogram keyed by every valid rating, zero-filled.
    """
    values = np.array([r for r in ratings if r is not None], dtype=np.float64)
    histogram = {r: 0 for r in VALID_RATINGS}
    if values.size == 0:
        return {"count": 0, "mean": None, "median": None, "std": None, "histogram": histogram}

    # half-star index: 0.5 -> 1 ... 5.0 -> 10
    steps = np.rint(values * 2).astype(np.int64)
    counts = np.bincount(steps, minlength=len(VALID_RATINGS) + 1)
    for rating in VALID_RATINGS:
        histogram[rating] = int(counts[int(rating * 2)])

    return {
        "count": int(values.size),
        "mean": round(float(np.mean(values)), 2),
        "median": float(np.median(values)),
        "std": round(float(np.std(values)), 2),
        "histogram": histogram,
    }


def decade_histogram(years: Iterable[int | None]) -> dict[int, int]:
    """Films per decade (1990 -> count), in decade order."""
    values = np.array([y for y in years if y is not None], dtype=np.int64)
    if values.size == 0:
        return {}
    decades, counts = np.unique((values // 10) * 10, return_counts=True)
    return {int(d): int(c) for d, c in zip(decades, counts)}


def histogram_mean(summary: RatingSummary) -> float | None:
    """Average implied by a rating histogram; None when it is empty."""
    if not summary.histogram:
        return None
    ratings = np.array(list(summary.histogram.keys()), dtype=np.float64)
    weights = np.array(list(summary.histogram.values()), dtype=np.float64)
    if weights.sum() <= 0:
        return None
    return round(float(np.average(ratings, weights=weights)), 2)


def list_overlap(first: Iterable[str], second: Iterable[str]) -> float:
    """Jaccard similarity of two slug sets (0.0 when both are empty)."""
    a = np.unique(np.array(list(first), dtype=object))
    b = np.unique(np.array(list(second), dtype=object))
    union = np.union1d(a, b)
    if union.size == 0:
        return 0.0
    return float(np.intersect1d(a, b).size / union.size)


def collection_summary(collection: FilmCollection) -> dict:
    films = list(collection.films.values())
    summary = {
        "declared": collection.count,
        "extracted": len(films),
        "missing": collection.missing,
        "complete": collection.complete,
        "liked": sum(1 for f in films if f.liked),
        "ratings": rating_distribution(f.rating for f in films),
        "decades": decade_histogram(f.year for f in films),
    }
    logger.debug(f"Collection {collection.url}: {summary['extracted']} films, {summary['ratings']['count']} rated")
    return summary
