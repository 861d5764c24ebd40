from __future__ import annotations

from pathlib import Path

import pytest

from epub2markup.core.markup import (
    PIPELINE,
    attr_from_tag,
    convert_html_to_markup,
    decode_entities,
    is_navigation_href,
    strip_tags,
)


def test_heading_paragraph_and_bold() -> None:
    html = "<h1>Title</h1><p>Hello <b>world</b>.</p>"
    assert convert_html_to_markup(html) == "# Title\n\nHello **world**."


def test_full_document_drops_head_script_and_style() -> None:
    html = """<?xml version="1.0" encoding="utf-8"?>
<html><head><title>Ignored</title><style>p { color: red; }</style></head>
<body>
  <script>var x = "<b>not bold</b>";</script>
  <h2>Section</h2>
  <p>Body text.</p>
</body></html>"""
    assert convert_html_to_markup(html) == "## Section\n\nBody text."


@pytest.mark.parametrize("level", range(1, 7))
def test_heading_levels(level: int) -> None:
    html = f"<h{level} class='x'>  Heading  </h{level}>"
    assert convert_html_to_markup(html) == f"{'#' * level} Heading"


def test_lists_blockquotes_and_breaks() -> None:
    html = (
        "<blockquote><p>Quoted</p></blockquote>"
        "<ul><li>one</li><li> two </li></ul>"
        "<p>line<br/>break</p>"
    )
    assert convert_html_to_markup(html) == "> Quoted\n\n- one\n- two\n\nline\nbreak"


def test_inline_spans_are_trimmed() -> None:
    html = "<p>Some <em> soft </em> and <strong>bold </strong> text with <code> x = 1 </code>.</p>"
    assert convert_html_to_markup(html) == "Some *soft* and **bold** text with `x = 1`."


def test_body_tag_is_not_mistaken_for_bold() -> None:
    html = "<body><p>Plain <b>bold</b></p></body>"
    assert convert_html_to_markup(html) == "Plain **bold**"


def test_glued_spans_get_a_space() -> None:
    assert convert_html_to_markup("<p><b>bold</b>text and <code>x</code>y</p>") == (
        "**bold** text and `x` y"
    )


def test_runs_of_asterisks_collapse() -> None:
    out = convert_html_to_markup("<p>Stars ****** here</p>")
    assert "****" not in out
    assert out == "Stars ** here"


def test_images_use_literal_source_without_rewriter() -> None:
    html = '<p><img src="pic.png" alt="A pic"/><img alt="no source"/></p>'
    assert convert_html_to_markup(html) == "![A pic](pic.png)"


def test_images_use_rewriter_with_base_dir(tmp_path: Path) -> None:
    calls = []

    def rewrite(src: str, base_dir: Path | None) -> str:
        calls.append((src, base_dir))
        return "images/" + src.rsplit("/", 1)[-1]

    html = '<img src="../images/cover.jpg" alt="Cover">'
    out = convert_html_to_markup(html, rewrite_image_src=rewrite, base_dir=tmp_path)
    assert out == "![Cover](images/cover.jpg)"
    assert calls == [("../images/cover.jpg", tmp_path)]


def test_external_links_are_kept() -> None:
    html = '<p>Visit <a href="https://example.com/page">the site</a>.</p>'
    assert convert_html_to_markup(html) == "Visit [the site](https://example.com/page)."


@pytest.mark.parametrize(
    "href",
    [
        "toc.xhtml",
        "nav.xhtml#ch1",
        "#toc",
        "chapter2.xhtml#sec",
        "part1.html",
        "notes.htm#n1",
    ],
)
def test_navigation_links_keep_only_label(href: str) -> None:
    html = f'<p>See <a href="{href}">the label</a> here.</p>'
    out = convert_html_to_markup(html)
    assert out == "See the label here."
    assert "](" not in out


def test_self_closing_anchor_does_not_swallow_next_link() -> None:
    html = '<p><a id="p12"/>Page text <a href="https://x.org">the site</a>.</p>'
    assert convert_html_to_markup(html) == "Page text [the site](https://x.org)."


def test_link_without_label_falls_back_to_href() -> None:
    assert convert_html_to_markup('<a href="https://x.org"></a>') == (
        "[https://x.org](https://x.org)"
    )


def test_escaped_navigation_link_is_unwrapped_after_decoding() -> None:
    html = "<p>[Back to contents](nav.xhtml) &amp; [Next](ch2.html#top)</p>"
    assert convert_html_to_markup(html) == "Back to contents & Next"


def test_indentation_and_spacing_are_normalised() -> None:
    html = "<p>\t   indented    text   </p>\n\n\n\n<p>   next</p>"
    assert convert_html_to_markup(html) == "indented text\n\nnext"


def test_rerun_on_own_output_is_stable() -> None:
    html = (
        "<h2>Head</h2><p>Some <em>soft</em> and <strong>bold</strong> "
        "text with <code>x = 1</code>.</p><ul><li>one</li><li>two</li></ul>"
    )
    once = convert_html_to_markup(html)
    assert once == "## Head\n\nSome *soft* and **bold** text with `x = 1`.\n\n- one\n- two"
    assert convert_html_to_markup(once) == once


def test_named_references_decode_exactly() -> None:
    assert decode_entities("&amp;&lt;&gt;&quot;&apos;&nbsp;") == "&<>\"'\u00a0"


def test_numeric_references_decode_exactly() -> None:
    assert decode_entities("&#65;&#x42;&#X43;&#160;&#x2014;") == "ABC\u00a0\u2014"


@pytest.mark.parametrize("text", ["&copy;", "&#xZZ;", "&#1114112;", "&#0;", "& loose"])
def test_unknown_references_pass_through(text: str) -> None:
    assert decode_entities(text) == text


def test_strip_tags_decodes_and_trims() -> None:
    assert strip_tags("  <span>Tom &amp; <i>Jerry</i></span> ") == "Tom & Jerry"


def test_attr_from_tag_ignores_prefixed_attributes() -> None:
    tag = '<img data-src="lazy.png" src=\'real.png\' alt="x">'
    assert attr_from_tag(tag, "src") == "real.png"
    assert attr_from_tag(tag, "title") is None


def test_is_navigation_href() -> None:
    assert is_navigation_href("text/toc.xhtml")
    assert is_navigation_href("ch01.xhtml")
    assert not is_navigation_href("https://example.com/page.html")
    assert not is_navigation_href("mailto:someone@example.com")


def test_pipeline_order() -> None:
    assert [p.name for p in PIPELINE] == [
        "non_content",
        "images",
        "links",
        "headings",
        "blockquotes",
        "line_breaks",
        "lists",
        "paragraphs",
        "inline",
        "marker_runs",
        "marker_trim",
        "tags",
        "entities",
        "nav_links",
        "span_spacing",
        "marker_tighten",
        "indentation",
        "blank_lines",
    ]
