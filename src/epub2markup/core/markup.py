"""Convert XHTML content into Markdown-ish text.

The conversion is a fixed pipeline of text-to-text passes. Later passes
assume the output shape of earlier ones, so the order of ``PIPELINE`` is
part of the contract.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

ImageRewriter = Callable[[str, Path | None], str]


@dataclass(frozen=True)
class MarkupContext:
    """Per-call settings threaded through every pass."""

    rewrite_image_src: ImageRewriter | None = None
    base_dir: Path | None = None


@dataclass(frozen=True)
class MarkupPass:
    """A single named rewrite step."""

    name: str
    fn: Callable[[str, MarkupContext], str]
    description: str


# =============================================================================
# Helpers
# =============================================================================

NAMED_ENTITIES = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
    "nbsp": "\u00a0",
}

_ENTITY_RE = re.compile(r"&(#[xX][0-9a-fA-F]+|#[0-9]+|[A-Za-z][A-Za-z0-9]*);")
_TAG_RE = re.compile(r"<[^>]+>")

_TOC_HREF_RE = re.compile(r"#toc\b|toc\.x?html|nav\.x?html", re.IGNORECASE)
_INTERNAL_DOC_RE = re.compile(r"\.x?html?(#|$)", re.IGNORECASE)
_EXTERNAL_SCHEME_RE = re.compile(r"^https?:", re.IGNORECASE)


def attr_from_tag(tag: str, name: str) -> str | None:
    """Return the value of attribute ``name`` in a single tag, if present."""
    match = re.search(
        rf"(?<![\w:-]){re.escape(name)}\s*=\s*(\"|')(.*?)\1",
        tag,
        re.IGNORECASE | re.DOTALL,
    )
    return match.group(2) if match else None


def _decode_reference(match: re.Match[str]) -> str:
    entity = match.group(1)
    if entity[0] != "#":
        return NAMED_ENTITIES.get(entity, match.group(0))

    try:
        code = int(entity[2:], 16) if entity[1] in "xX" else int(entity[1:])
        if code == 0 or 0xD800 <= code <= 0xDFFF:
            return match.group(0)
        return chr(code)
    except (ValueError, OverflowError):
        return match.group(0)


def decode_entities(text: str) -> str:
    """Decode the supported named and numeric character references.

    Unknown names and out-of-range code points are left verbatim.
    """
    return _ENTITY_RE.sub(_decode_reference, text)


def strip_tags(text: str) -> str:
    """Remove all tags, decode references and trim."""
    return decode_entities(_TAG_RE.sub("", text)).strip()


def is_navigation_href(href: str) -> bool:
    """Whether a link points at a TOC/nav document or another package file.

    This is a filename heuristic and can also match genuine
    cross-references between content documents.
    """
    if _TOC_HREF_RE.search(href):
        return True
    return bool(_INTERNAL_DOC_RE.search(href)) and not _EXTERNAL_SCHEME_RE.match(
        href
    )


# =============================================================================
# Passes
# =============================================================================


def drop_non_content(text: str, ctx: MarkupContext) -> str:
    """Remove comments, the document head, scripts and styles."""
    text = re.sub(r"<!--[\s\S]*?-->", "", text)
    text = re.sub(r"<head\b[\s\S]*?</head>", "", text, flags=re.IGNORECASE)
    text = re.sub(r"<script\b[\s\S]*?</script>", "", text, flags=re.IGNORECASE)
    return re.sub(r"<style\b[\s\S]*?</style>", "", text, flags=re.IGNORECASE)


def rewrite_images(text: str, ctx: MarkupContext) -> str:
    def replace(match: re.Match[str]) -> str:
        tag = match.group(0)
        src = attr_from_tag(tag, "src") or ""
        if not src:
            return ""
        alt = attr_from_tag(tag, "alt") or ""
        if ctx.rewrite_image_src is not None:
            src = ctx.rewrite_image_src(src, ctx.base_dir)
        return f"![{alt}]({src})"

    return re.sub(r"<img\b[^>]*>", replace, text, flags=re.IGNORECASE)


def rewrite_links(text: str, ctx: MarkupContext) -> str:
    """Turn anchors into ``[label](href)``, unwrapping navigation links."""

    def replace(match: re.Match[str]) -> str:
        href = attr_from_tag(match.group(1), "href") or ""
        label = match.group(2).strip() or href
        if not href or is_navigation_href(href):
            return label
        return f"[{label}]({href})"

    return re.sub(
        r"<a\b([^>]*?)(?<!/)>([\s\S]*?)</a>", replace, text, flags=re.IGNORECASE
    )


def rewrite_headings(text: str, ctx: MarkupContext) -> str:
    def replace(match: re.Match[str]) -> str:
        level = int(match.group(1))
        return f"{'#' * level} {match.group(2).strip()}\n\n"

    return re.sub(
        r"<h([1-6])\b[^>]*>([\s\S]*?)</h\1\s*>", replace, text, flags=re.IGNORECASE
    )


def rewrite_blockquotes(text: str, ctx: MarkupContext) -> str:
    return re.sub(
        r"<blockquote\b[^>]*>([\s\S]*?)</blockquote>",
        lambda m: f"> {m.group(1).strip()}\n\n",
        text,
        flags=re.IGNORECASE,
    )


def rewrite_line_breaks(text: str, ctx: MarkupContext) -> str:
    return re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)


def rewrite_lists(text: str, ctx: MarkupContext) -> str:
    text = re.sub(
        r"<li\b[^>]*>([\s\S]*?)</li>",
        lambda m: f"- {m.group(1).strip()}\n",
        text,
        flags=re.IGNORECASE,
    )
    return re.sub(r"</(ul|ol)\s*>", "\n", text, flags=re.IGNORECASE)


def rewrite_paragraphs(text: str, ctx: MarkupContext) -> str:
    text = re.sub(r"</p\s*>", "\n\n", text, flags=re.IGNORECASE)
    return re.sub(r"<p\b[^>]*>", "", text, flags=re.IGNORECASE)


def rewrite_inline(text: str, ctx: MarkupContext) -> str:
    text = re.sub(
        r"<(em|i)\b[^>]*>([\s\S]*?)</\1\s*>",
        lambda m: f"*{m.group(2).strip()}*",
        text,
        flags=re.IGNORECASE,
    )
    text = re.sub(
        r"<(strong|b)\b[^>]*>([\s\S]*?)</\1\s*>",
        lambda m: f"**{m.group(2).strip()}**",
        text,
        flags=re.IGNORECASE,
    )
    return re.sub(
        r"<code\b[^>]*>([\s\S]*?)</code\s*>",
        lambda m: f"`{m.group(1).strip()}`",
        text,
        flags=re.IGNORECASE,
    )


def collapse_marker_runs(text: str, ctx: MarkupContext) -> str:
    """Squash ``****``-style runs and stray ``[`` before bold headings."""
    text = re.sub(r"\*{4,}", "**", text)
    return re.sub(r"(#{1,6}\s*)\[(\*\*[^*\n]+?\*\*)(?![^\n]*\])", r"\1\2", text)


def trim_marker_interiors(text: str, ctx: MarkupContext) -> str:
    text = re.sub(r"\*\*([^*\n]*?)\*\*", lambda m: f"**{m.group(1).strip()}**", text)
    text = re.sub(r"\*([^*\n]*?)\*", lambda m: f"*{m.group(1).strip()}*", text)
    return re.sub(r"`([^`\n]*?)`", lambda m: f"`{m.group(1).strip()}`", text)


def strip_remaining_tags(text: str, ctx: MarkupContext) -> str:
    return _TAG_RE.sub("", text)


def decode_references(text: str, ctx: MarkupContext) -> str:
    return decode_entities(text)


def strip_navigation_links(text: str, ctx: MarkupContext) -> str:
    """Unwrap markdown links rebuilt from escaped markup."""
    for target in (r"#toc", r"toc\.x?html", r"nav\.x?html", r"\.xhtml", r"\.html"):
        text = re.sub(
            rf"\[([^\]]+)\]\([^)]+{target}[^)]*\)", r"\1", text, flags=re.IGNORECASE
        )
    return text


def space_after_spans(text: str, ctx: MarkupContext) -> str:
    """Separate a closing marker from a directly following word."""

    def replace(match: re.Match[str]) -> str:
        end = match.end()
        following = match.string[end : end + 1]
        if following.isascii() and following.isalnum():
            return match.group(0) + " "
        return match.group(0)

    text = re.sub(r"\*\*[^*\n]+?\*\*|\*[^*\n]+?\*", replace, text)
    return re.sub(r"`[^`\n]+`", replace, text)


def tighten_markers(text: str, ctx: MarkupContext) -> str:
    return re.sub(r"(\*{1,2})[ \t]*([^*\n]+?)[ \t]*(\*{1,2})", r"\1\2\3", text)


def normalize_indentation(text: str, ctx: MarkupContext) -> str:
    """Drop leading indentation so no line reads as a code block."""
    text = re.sub(r"\t+", " ", text)
    text = re.sub(r"^[ \t]+", "", text, flags=re.MULTILINE)
    return re.sub(r" {2,}", " ", text)


def normalize_blank_lines(text: str, ctx: MarkupContext) -> str:
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    return re.sub(r"\n{3,}", "\n\n", text)


# =============================================================================
# Pipeline
# =============================================================================

PIPELINE: tuple[MarkupPass, ...] = (
    MarkupPass("non_content", drop_non_content, "Comments, head, script, style"),
    MarkupPass("images", rewrite_images, "<img> -> ![alt](src)"),
    MarkupPass("links", rewrite_links, "<a> -> [label](href) or label"),
    MarkupPass("headings", rewrite_headings, "<hN> -> N x '#'"),
    MarkupPass("blockquotes", rewrite_blockquotes, "<blockquote> -> '> '"),
    MarkupPass("line_breaks", rewrite_line_breaks, "<br> -> newline"),
    MarkupPass("lists", rewrite_lists, "<li> -> '- ', list close -> blank line"),
    MarkupPass("paragraphs", rewrite_paragraphs, "</p> -> blank line"),
    MarkupPass("inline", rewrite_inline, "em/strong/code -> * ** `"),
    MarkupPass("marker_runs", collapse_marker_runs, "4+ asterisks -> 2"),
    MarkupPass("marker_trim", trim_marker_interiors, "Trim inside markers"),
    MarkupPass("tags", strip_remaining_tags, "Drop leftover tags"),
    MarkupPass("entities", decode_references, "Decode character references"),
    MarkupPass("nav_links", strip_navigation_links, "Unwrap leftover nav links"),
    MarkupPass("span_spacing", space_after_spans, "Space after glued spans"),
    MarkupPass("marker_tighten", tighten_markers, "Trim inside markers again"),
    MarkupPass("indentation", normalize_indentation, "Strip indentation"),
    MarkupPass("blank_lines", normalize_blank_lines, "Collapse blank lines"),
)


def convert_html_to_markup(
    html: str,
    rewrite_image_src: ImageRewriter | None = None,
    base_dir: Path | None = None,
) -> str:
    """Run ``html`` through every pass of ``PIPELINE`` and trim the result.

    Args:
        html: Raw XHTML, a whole document or a slice of one.
        rewrite_image_src: Called as ``rewrite_image_src(src, base_dir)`` for
            each image; its return value replaces the source.
        base_dir: Directory of the content file, passed to the rewriter.
    """
    ctx = MarkupContext(rewrite_image_src=rewrite_image_src, base_dir=base_dir)
    text = html
    for markup_pass in PIPELINE:
        text = markup_pass.fn(text, ctx)
    return text.strip()
