"""Failure taxonomy shared by the client, extractors and traversal."""
from dataclasses import dataclass

from .config import MAX_SNIPPET_LENGTH


def _snippet(raw: str | None) -> str | None:
    if raw is None:
        return None
    raw = " ".join(raw.split())
    if len(raw) > MAX_SNIPPET_LENGTH:
        return raw[:MAX_SNIPPET_LENGTH] + "..."
    return raw


class ScraperError(Exception):
    """Base class for every classified scraping failure."""
    retryable = False


class TransportError(ScraperError):
    """Raised when the network round trip fails (connection, timeout, bad status, empty body)."""
    retryable = True

    def __init__(self, url: str, cause: Exception | str, status_code: int | None = None):
        self.url = url
        self.cause = cause
        self.status_code = status_code
        super().__init__(f"Request to {url} failed: {cause}")


class RestrictedContentError(ScraperError):
    """Raised when the source marks the resource as private or access-restricted."""

    def __init__(self, url: str | None, message: str = "access restricted"):
        self.url = url
        super().__init__(f"{message}: {url}")


class NotFoundError(ScraperError):
    """Raised when the resource does not exist at the source."""

    def __init__(self, url: str | None, message: str = "not found"):
        self.url = url
        super().__init__(f"{message}: {url}")


class ValidationError(ScraperError, ValueError):
    """Raised for identifiers that fail format rules, before any request is made."""

    def __init__(self, value, rule: str):
        self.value = value
        self.rule = rule
        super().__init__(f"Invalid value {value!r}: {rule}")


class FieldParseError(ScraperError):
    """Raised when a required field cannot be extracted from an otherwise good page."""

    def __init__(self, field: str, url: str | None = None, snippet: str | None = None):
        self.field = field
        self.url = url
        self.snippet = _snippet(snippet)
        detail = f" (raw: {self.snippet!r})" if self.snippet else ""
        super().__init__(f"Required field '{field}' missing or unparsable on {url}{detail}")


@dataclass(frozen=True)
class FieldWarning:
    """Non-fatal extraction issue limited to one optional field."""
    field: str
    message: str
    snippet: str | None = None

    @classmethod
    def create(cls, field: str, message: str, raw: str | None = None) -> "FieldWarning":
        return cls(field=field, message=message, snippet=_snippet(raw))
