"""Parse the navigation document and resolve fragment anchors."""

import logging
import re
from urllib.parse import unquote

from epub2markup.core.markup import strip_tags
from epub2markup.models.package import PackageDocument, TOCEntry, resolve_relative

log = logging.getLogger(__name__)

# How far back from an anchor to look for the heading that contains it
HEADING_WINDOW = 500

_TOC_NAV_RE = re.compile(
    r"<nav\b[^>]*?(?:epub:type\s*=\s*[\"'][^\"']*\btoc\b[^\"']*[\"']"
    r"|role\s*=\s*[\"']doc-toc[\"'])[^>]*>[\s\S]*?</nav\s*>",
    re.IGNORECASE,
)
_NAV_TOKEN_RE = re.compile(
    r"(?P<open><ol\b[^>]*>)"
    r"|(?P<close></ol\s*>)"
    r"|<a\b[^>]*?\bhref\s*=\s*(?P<q>[\"'])(?P<href>.*?)(?P=q)[^>]*>(?P<label>[\s\S]*?)</a\s*>",
    re.IGNORECASE,
)
_HEADING_OPEN_RE = re.compile(r"<h([1-6])\b[^>]*>", re.IGNORECASE)


def parse_nav_document(html: str) -> list[TOCEntry]:
    """Return every link of the TOC list with its nesting depth.

    Depth counts enclosing ``<ol>`` elements, starting at 0 for the
    outermost list. Unmatched closing tags never push the counter below 0,
    and links outside any list are ignored.
    """
    nav_match = _TOC_NAV_RE.search(html)
    toc_html = nav_match.group(0) if nav_match else html

    entries: list[TOCEntry] = []
    open_lists = 0
    for token in _NAV_TOKEN_RE.finditer(toc_html):
        if token.group("open"):
            open_lists += 1
        elif token.group("close"):
            open_lists = max(0, open_lists - 1)
        elif open_lists > 0:
            href = token.group("href").strip()
            if not href:
                continue
            label = strip_tags(token.group("label"))
            entries.append(
                TOCEntry(label=label or href, href=href, depth=open_lists - 1)
            )
    return entries


def load_toc(package: PackageDocument) -> list[TOCEntry]:
    """Load top-level TOC entries with their target files resolved.

    Returns an empty list when the package has no navigation document.
    """
    nav_item = package.nav_item()
    if nav_item is None:
        return []

    nav_path = package.resolve_href(nav_item.href)
    if not nav_path.is_file():
        log.warning(f"Navigation document not found: {nav_item.href}")
        return []

    html = nav_path.read_text(encoding="utf-8", errors="replace")
    entries = []
    for entry in parse_nav_document(html):
        if entry.depth != 0:
            continue
        file_part, _, fragment = entry.href.partition("#")
        target = (
            resolve_relative(nav_path.parent, unquote(file_part))
            if file_part
            else nav_path
        )
        entries.append(
            entry.model_copy(
                update={"target": target, "fragment": unquote(fragment) or None}
            )
        )

    log.debug(f"Navigation document lists {len(entries)} top-level entries")
    return entries


def find_anchor_position(html: str, fragment: str | None) -> int | None:
    """Locate the offset where the element named ``fragment`` starts.

    When the element sits inside a heading, the heading's start is returned
    so the whole heading is kept. Returns ``0`` when there is no fragment and
    ``None`` when the anchor does not exist.
    """
    if not fragment:
        return 0

    escaped = re.escape(fragment)
    for attr in ("id", "name"):
        match = re.search(
            rf"(?<![\w-]){attr}\s*=\s*[\"']{escaped}[\"']", html, re.IGNORECASE
        )
        if match is None:
            continue

        tag_start = html.rfind("<", 0, match.start())
        start = tag_start if tag_start != -1 else match.start()

        window_start = max(0, start - HEADING_WINDOW)
        headings = list(_HEADING_OPEN_RE.finditer(html, window_start, start))
        if headings:
            heading = headings[-1]
            closing = re.compile(rf"</h{heading.group(1)}\s*>", re.IGNORECASE)
            if not closing.search(html, heading.end(), start):
                return heading.start()
        return start

    return None
