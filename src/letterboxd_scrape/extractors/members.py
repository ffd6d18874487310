"""Member tables: followers, following, film fans and film members."""
import logging

from ..document import Document
from ..models import Member
from ..parsing import extract_user_slug
from ..urls import build_user_url
from ._common import warn

logger = logging.getLogger(__name__)

MEMBER_CONTENT = "table.person-table, .person-summary, .followers, ul.person-list, .ui-block-heading"
TABLE_ROWS = "table.person-table tr"
SUMMARY_ROWS = ".person-summary, ul.person-list li"


def extract_member_items(doc: Document, warnings: list) -> list[Member]:
    members = []
    for row in doc.find_all(TABLE_ROWS) or doc.find_all(SUMMARY_ROWS):
        link = doc.find("a.name, h3.title-3 a, a.avatar", row)
        if link is None:
            # header rows carry no member link
            continue
        username = extract_user_slug(Document.attr(link, "href"))
        if username is None:
            warn(warnings, "members", "member row without a profile link", row.html)
            continue
        display_name = Document.text(doc.find("a.name, h3.title-3 a", row)) or None
        members.append(Member(username=username, display_name=display_name, url=build_user_url(username)))
    return members
