"""Selector-based read access to a parsed page."""
import json
import logging
import re

from selectolax.parser import HTMLParser, Node

from .parsing import clean_text

logger = logging.getLogger(__name__)

_CDATA_COMMENT_RE = re.compile(r"/\*.*?\*/", flags=re.S)


class Document:
    """
    Read-only view over a parsed HTML tree.

    Lookups never raise for missing markup: absence is None or an empty list.
    """

    def __init__(self, tree: HTMLParser, url: str | None = None):
        self.tree = tree
        self.url = url

    @classmethod
    def from_html(cls, html: str, url: str | None = None) -> "Document":
        return cls(HTMLParser(html), url=url)

    def find(self, selector: str, scope: Node | None = None) -> Node | None:
        """First node matching selector, in document order."""
        if len(split_selector_list(selector)) == 1:
            root = scope if scope is not None else self.tree
            return root.css_first(selector)
        matches = self.find_all(selector, scope)
        return matches[0] if matches else None

    def find_all(self, selector: str, scope: Node | None = None) -> list[Node]:
        """
        Every node matching selector, once each, in document order.

        Selector lists are matched part by part, so results are merged and
        re-ordered against a walk of the tree.
        """
        root = scope if scope is not None else self.tree
        parts = split_selector_list(selector)
        if len(parts) == 1:
            return list(root.css(selector))

        matched = {}
        for part in parts:
            for node in root.css(part):
                matched.setdefault(node.mem_id, node)
        if len(matched) < 2:
            return list(matched.values())
        walk_root = scope if scope is not None else self.tree.root
        return [node for node in walk_root.traverse() if node.mem_id in matched]

    def has(self, selector: str, scope: Node | None = None) -> bool:
        return self.find(selector, scope) is not None

    @staticmethod
    def text(node: Node | None) -> str:
        """Inner text with whitespace collapsed; empty string for a missing node."""
        if node is None:
            return ""
        return clean_text(node.text(deep=True))

    @staticmethod
    def attr(node: Node | None, name: str) -> str | None:
        """Attribute value, or None when the node or attribute is missing or blank."""
        if node is None:
            return None
        value = node.attributes.get(name)
        if value is None:
            return None
        value = value.strip()
        return value or None

    def select_text(self, selector: str, scope: Node | None = None) -> str | None:
        text = self.text(self.find(selector, scope))
        return text or None

    def select_attr(self, selector: str, name: str, scope: Node | None = None) -> str | None:
        return self.attr(self.find(selector, scope), name)

    def texts(self, selector: str, scope: Node | None = None) -> list[str]:
        """Non-empty texts of every match, in document order (repeats kept)."""
        return [t for t in (self.text(n) for n in self.find_all(selector, scope)) if t]

    def meta(self, property: str | None = None, name: str | None = None) -> str | None:
        if property:
            return self.select_attr(f"meta[property='{property}']", "content")
        if name:
            return self.select_attr(f"meta[name='{name}']", "content")
        return None

    def body_attr(self, name: str) -> str | None:
        return self.attr(self.tree.body, name)

    def body_classes(self) -> set[str]:
        return set((self.body_attr("class") or "").split())

    def json_ld(self) -> dict:
        """
        Parse the first ld+json block.

        Letterboxd wraps it in '/* <![CDATA[ */ ... /* ]]> */', so comment
        wrappers are removed when the raw text does not parse.
        """
        script = self.find("script[type='application/ld+json']")
        if script is None:
            return {}
        raw = script.text()
        for candidate in (raw.strip(), _CDATA_COMMENT_RE.sub("", raw).strip()):
            try:
                parsed = json.loads(candidate)
            except json.JSONDecodeError as exc:
                logger.debug(f"Failed to parse ld+json on {self.url}: {exc}")
                continue
            if isinstance(parsed, list):
                parsed = parsed[0] if parsed else {}
            if isinstance(parsed, dict):
                return parsed
        return {}


def classes_of(node: Node | None) -> str:
    if node is None:
        return ""
    return node.attributes.get("class") or ""


def split_selector_list(selector: str) -> list[str]:
    """Split 'a, b[x="1,2"]' into its top-level selectors."""
    parts = []
    depth = 0
    quote = None
    current = []
    for char in selector:
        if quote:
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif char in "[(":
            depth += 1
        elif char in "])":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    parts.append("".join(current).strip())
    return [p for p in parts if p]
