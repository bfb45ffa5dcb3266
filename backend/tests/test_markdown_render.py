"""Tests for markdown rendering and sanitisation."""
from markdown_render import render_markdown


def test_heading_ids_are_unique():
    rendered = render_markdown("# Foo\n\ntext\n\n# Foo\n")
    assert '<h1 id="foo">Foo</h1>' in rendered.html
    assert '<h1 id="foo-1">Foo</h1>' in rendered.html
    assert [(e.level, e.id, e.text) for e in rendered.toc] == [(1, "foo", "Foo"), (1, "foo-1", "Foo")]


def test_heading_id_punctuation():
    rendered = render_markdown("## Vice City: 1986 Edition!")
    assert rendered.toc[0].id == "vice-city-1986-edition-"


def test_script_is_stripped():
    rendered = render_markdown("Hello <script>alert('x')</script> world")
    assert "<script>" not in rendered.html
    assert "Hello" in rendered.html


def test_unsafe_link_protocol_removed():
    rendered = render_markdown("[click](javascript:void)")
    assert "javascript:" not in rendered.html


def test_tables_and_fenced_code():
    text = "| Car | Speed |\n|:----|------:|\n| Infernus | 9 |\n\n```\nprint('vice')\n```\n"
    html = render_markdown(text).html
    assert "<table>" in html
    assert 'align="right"' in html
    assert "<pre><code>" in html


def test_empty_text():
    rendered = render_markdown("")
    assert rendered.html == ""
    assert rendered.to_dict() == {"html": "", "toc": []}


def test_punctuation_only_headings_get_fallback_id():
    rendered = render_markdown("# !!!\n\n# ???\n")
    assert [e.id for e in rendered.toc] == ["section", "section-1"]
    assert 'id=""' not in rendered.html
