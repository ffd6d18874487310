import sys
from pathlib import Path

import httpx
import pytest

# Ensure the package under test is importable without installation
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from letterboxd_scrape.document import Document  # noqa: E402


@pytest.fixture
def make_doc():
    """Build a Document from an HTML string."""
    def _make(html: str, url: str = "https://letterboxd.com/test/") -> Document:
        return Document.from_html(html, url=url)
    return _make


@pytest.fixture
def routes():
    """
    Path -> (status, body) table served by mock_transport.

    Unknown paths answer 404 so traversal past the last page behaves like the site.
    """
    return {}


@pytest.fixture
def requested():
    return []


@pytest.fixture
def mock_transport(routes, requested):
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query.decode()}"
        requested.append(path)
        status, body = routes.get(path, (404, "<html><body class='error'>Not found</body></html>"))
        if isinstance(body, Exception):
            raise body
        return httpx.Response(status, text=body, request=request)

    return httpx.MockTransport(handler)
