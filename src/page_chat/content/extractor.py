"""Turn raw page HTML into a sanitized markdown digest safe to send to a provider.

Sanitization is driven by two rule tables: ``BLOCKED_TAGS`` (elements removed
with everything inside them, in the listed order, followed by HTML comments)
and ``is_sensitive_attribute`` (attribute names stripped from every element
that survives). The cleaned tree is then read in a fixed precedence: title,
headings, lists, image alt text and finally the visible body text, which is
passed through :func:`page_chat.content.redact.redact`.

Extraction never raises. Any parse failure degrades to a minimal document
holding only the page title.
"""

from __future__ import annotations

import hashlib
import logging
import re

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from page_chat.content.models import Heading, PageContent, PageSnapshot
from page_chat.content.redact import redact
from page_chat.exceptions import ExtractionError

logger = logging.getLogger(__name__)

BLOCKED_TAGS = (
    "script",
    "style",
    "noscript",
    "iframe",
    "object",
    "embed",
    "applet",
    "form",
    "input",
    "textarea",
    "select",
    "meta",
    "link",
)

# Elements whose boundaries separate words in the visible body text.
BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "br", "dd", "details", "dialog",
    "div", "dl", "dt", "fieldset", "figcaption", "figure", "footer", "h1", "h2",
    "h3", "h4", "h5", "h6", "header", "hr", "li", "main", "nav", "ol", "p", "pre",
    "section", "summary", "table", "td", "th", "tr", "ul",
})

SENSITIVE_ATTRIBUTE_PREFIXES = ("data-", "aria-")

SENSITIVE_ATTRIBUTE_KEYWORDS = (
    "password",
    "email",
    "phone",
    "credit",
    "card",
    "ssn",
    "social",
    "account",
    "user",
    "login",
    "secret",
    "private",
    "personal",
    "confidential",
)

NO_TITLE = "(No title)"

_TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)


def is_sensitive_attribute(name: str) -> bool:
    """True when an attribute must be stripped before the page leaves the browser."""
    lowered = name.lower()
    if lowered.startswith(SENSITIVE_ATTRIBUTE_PREFIXES):
        return True
    return any(keyword in lowered for keyword in SENSITIVE_ATTRIBUTE_KEYWORDS)


def sanitize(html: str, redact_all: bool = False) -> BeautifulSoup:
    """Parse ``html`` into a fresh tree with the removal rules applied.

    With ``redact_all`` every remaining text node and alt value is also
    redacted, so headings, list items and the title are scrubbed too.
    """
    soup = BeautifulSoup(html, "html.parser")

    for tag_name in BLOCKED_TAGS:
        for element in soup.find_all(tag_name):
            element.extract()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    for element in soup.find_all(True):
        element.attrs = {
            name: value
            for name, value in element.attrs.items()
            if not is_sensitive_attribute(name)
        }

    if redact_all:
        _redact_tree(soup)
    return soup


def parse_page(html: str, redact_all: bool = False) -> PageContent:
    """Sanitize ``html`` and pull out the pieces of the page digest.

    Raises:
        ExtractionError: If the document cannot be parsed or walked.
    """
    try:
        soup = sanitize(html, redact_all=redact_all)

        title = ""
        if soup.title is not None:
            title = _clean_text(soup.title.get_text(" "))

        headings = []
        for element in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
            text = _clean_text(element.get_text(" "))
            if text:
                headings.append(Heading(level=int(element.name[1]), text=text))

        lists = []
        for element in soup.find_all(["ul", "ol"]):
            items = [_clean_text(li.get_text(" ")) for li in element.find_all("li")]
            if items:
                lists.append(items)

        alts = [
            element.get("alt")
            for element in soup.find_all(alt=True)
            if element.get("alt")
        ]

        root = soup.body
        if root is None:
            root = soup
            for element in soup.find_all(["head", "title"]):
                element.extract()
        body_text = _clean_text(_visible_text(root))
    except Exception as e:
        raise ExtractionError(f"Failed to parse page HTML: {e}") from e

    return PageContent(
        title=title,
        headings=headings,
        lists=lists,
        alts=alts,
        body_text=redact(body_text),
    )


def render_markdown(content: PageContent) -> str:
    """Assemble the digest; sections without data are left out."""
    sections = []
    if content.title:
        sections.append(f"# Page Title\n{content.title}")
    if content.headings:
        lines = [f"{'#' * h.level} {h.text}" for h in content.headings]
        sections.append("## Page Structure\n" + "\n".join(lines))
    if content.lists:
        blocks = []
        for index, items in enumerate(content.lists, start=1):
            bullets = "\n".join(f"- {item}" for item in items)
            blocks.append(f"### List {index}\n{bullets}")
        sections.append("## Lists Found\n" + "\n\n".join(blocks))
    if content.alts:
        sections.append("## Image Alt Text\n" + " | ".join(content.alts))
    if content.body_text:
        sections.append(f"## Main Content\n{content.body_text}")
    return "\n\n".join(sections)


def extract(html: str, redact_all: bool = False) -> str:
    """Return the sanitized markdown digest of ``html``. Never raises."""
    _title, markdown = _extract(html, redact_all=redact_all)
    return markdown


def build_snapshot(html: str, redact_all: bool = False) -> PageSnapshot:
    """Extract ``html`` into a snapshot ready to attach to a conversation."""
    title, markdown = _extract(html, redact_all=redact_all)
    source = html if isinstance(html, str) else ""
    return PageSnapshot(
        title=title,
        structured=markdown,
        raw_html_hash=hashlib.sha256(source.encode("utf-8", "replace")).hexdigest(),
    )


def fallback_snapshot(title: str | None, url: str) -> PageSnapshot:
    """Digest used when the page body could not be read at all."""
    safe_title = redact(title or "") or NO_TITLE
    structured = (
        f"# Page Title\n{safe_title}\n\n"
        f"## URL\n{url}\n\n"
        "## Note\n"
        "This page content could not be fully accessed. You can ask general "
        "questions about the page title and URL, but detailed content analysis "
        "may not be available."
    )
    return PageSnapshot(title=safe_title, structured=structured)


def _extract(html: str, redact_all: bool) -> tuple[str, str]:
    source = html if isinstance(html, str) else ""
    try:
        content = parse_page(source, redact_all=redact_all)
    except ExtractionError as e:
        logger.warning("Page extraction failed, using fallback document: %s", e)
        return _fallback(source)

    markdown = render_markdown(content)
    if not markdown:
        return _fallback(source)
    return content.title, markdown


def _fallback(html: str) -> tuple[str, str]:
    match = _TITLE_RE.search(html)
    title = redact(_clean_text(match.group(1))) if match else ""
    title = title or NO_TITLE
    return title, f"# Page Title\n{title}"


def _redact_tree(soup: BeautifulSoup) -> None:
    for node in soup.find_all(string=True):
        if type(node) is not NavigableString:
            continue
        scrubbed = redact(str(node))
        if scrubbed != str(node):
            node.replace_with(scrubbed)
    for element in soup.find_all(alt=True):
        element["alt"] = redact(element.get("alt") or "")


def _visible_text(root: Tag) -> str:
    """Text under ``root`` in document order, skipping hidden subtrees.

    Text nodes are concatenated as-is so inline markup never splits a token;
    a space is added only where a block element starts or ends.
    """
    if _is_hidden(root):
        return ""
    skipped = set()
    for element in root.find_all(_is_hidden):
        skipped.add(id(element))
        skipped.update(id(node) for node in element.descendants)

    pieces: list[str] = []
    for node in root.descendants:
        if id(node) in skipped:
            continue
        if _is_block(node.previous_sibling):
            pieces.append(" ")
        if isinstance(node, Tag):
            if node.name in BLOCK_TAGS:
                pieces.append(" ")
        elif type(node) is NavigableString:
            pieces.append(str(node))
    return "".join(pieces)


def _is_block(node) -> bool:
    return isinstance(node, Tag) and node.name in BLOCK_TAGS


def _is_hidden(element) -> bool:
    if element.has_attr("hidden"):
        return True
    style = element.get("style")
    if not style or not isinstance(style, str):
        return False
    for declaration in style.split(";"):
        prop, _, value = declaration.partition(":")
        prop = prop.strip().lower()
        value = value.replace("!important", "").strip().lower()
        if prop == "display" and value == "none":
            return True
        if prop == "visibility" and value == "hidden":
            return True
    return False


def _clean_text(text: str) -> str:
    return " ".join(text.split())
