"""Diary tables."""
import logging
import re
from datetime import date

from selectolax.parser import Node

from ..document import Document, classes_of
from ..models import DiaryEntry
from ..parsing import extract_film_slug, parse_iso_date
from ._common import film_slug_of, member_rating_of, split_title_year, warn

logger = logging.getLogger(__name__)

DIARY_CONTENT = "table#diary-table, tr.diary-entry-row, .ui-block-heading, #content-nav"
DIARY_ROWS = "tr.diary-entry-row"

_DIARY_DATE_RE = re.compile(r"/for/(\d{4})/(\d{2})/(\d{2})/")


def _entry_date(doc: Document, row: Node) -> date | None:
    href = doc.select_attr("td.td-day a, td.col-daydate a", "href", row)
    if href:
        match = _DIARY_DATE_RE.search(href)
        if match:
            try:
                return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
            except ValueError:
                return None
    return parse_iso_date(doc.select_attr("time[datetime]", "datetime", row))


def _flag(doc: Document, row: Node, selector: str) -> bool:
    """Diary flag cells carry 'icon-status-off' when the flag is not set."""
    cell = doc.find(selector, row)
    if cell is None:
        return False
    if "icon-status-off" in classes_of(cell):
        return False
    return cell.css_first("span, a, .icon-rewatch, .icon-liked") is not None


def extract_diary_items(doc: Document, warnings: list) -> list[DiaryEntry]:
    entries = []
    for row in doc.find_all(DIARY_ROWS):
        slug = film_slug_of(row)
        title_link = doc.find("h3.headline-3 a, td.td-film-details h2 a, h2.name a", row)
        if slug is None and title_link is not None:
            slug = extract_film_slug(Document.attr(title_link, "href"))
        if slug is None:
            warn(warnings, "diary", "diary row without a film slug", row.html)
            continue

        entry_date = _entry_date(doc, row)
        if entry_date is None:
            warn(warnings, "diary.date", "diary row without a parsable date", row.html)

        title = Document.text(title_link) or None
        entries.append(DiaryEntry(
            slug=slug,
            title=split_title_year(title)[0] if title else None,
            date=entry_date,
            rating=member_rating_of(row),
            liked=doc.has("td.td-like .icon-liked, td.col-like .icon-liked, span.icon-liked", row),
            rewatch=_flag(doc, row, "td.td-rewatch, td.col-rewatch"),
            has_review=_flag(doc, row, "td.td-review, td.col-review"),
        ))
    return entries


def diary_key(entry: DiaryEntry):
    return (entry.slug, entry.date)
