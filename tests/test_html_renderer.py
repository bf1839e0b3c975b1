"""Tests for HTML rendering and the standalone page."""

from __future__ import annotations

import logging

import pytest

from markview.grammar import build_config, parse, register_inline_rule
from markview.html_renderer import (
    detect_special_features,
    render_document,
    render_html,
    render_markdown,
)


def test_plain_markdown_renders_stably():
    text = "# Title\n\nSome *text* and `code`.\n\n- a\n- b\n"
    tokens = parse(text)
    first = render_html(tokens)
    assert first == render_html(parse(text))
    assert first.startswith("<h1>Title</h1>\n<p>Some <em>text</em> and <code>code</code>.</p>")


def test_mermaid_fence_is_escaped_div():
    out = render_markdown("```mermaid\ngraph TD\nA-->B\n```")
    assert out == '<div class="mermaid">graph TD\nA--&gt;B\n</div>\n'


def test_mermaid_info_is_stripped_and_exact():
    assert 'class="mermaid"' in render_markdown("```  mermaid  \nx\n```")
    assert 'class="mermaid"' not in render_markdown("```mermaidjs\nx\n```")


def test_other_fences_use_default_renderer():
    out = render_markdown("```python\nx = 1 < 2\n```")
    assert out == '<pre><code class="language-python">x = 1 &lt; 2\n</code></pre>\n'


def test_source_lines_are_opt_in():
    assert "data-md-line-start" not in render_markdown("para")
    config = build_config(source_lines=True)
    out = render_markdown("# H\n\npara", config)
    assert '<h1 data-md-line-start="0" data-md-line-end="1">' in out
    assert '<p data-md-line-start="2" data-md-line-end="3">' in out


def test_source_lines_leave_tokens_untouched():
    config = build_config(source_lines=True)
    tokens = parse("# H\n\n- item\n\npara", config)
    before = [dict(token.attrs) for token in tokens]
    first = render_html(tokens, config)
    assert [dict(token.attrs) for token in tokens] == before
    assert all("data-md-line-start" not in token.attrs for token in tokens)
    assert '<li data-md-line-start="2"' in first
    assert render_html(tokens, config) == first


def test_bare_urls_are_linked():
    out = render_markdown("See https://example.com today.")
    assert '<a href="https://example.com">https://example.com</a>' in out
    plain = render_markdown("See https://example.com today.", build_config(linkify=False))
    assert "<a " not in plain


def test_failing_render_rule_is_skipped(caplog):
    def explode(tokens, idx, options, env):
        raise RuntimeError("render failure")

    def never(state, silent):
        return False

    config = register_inline_rule(
        build_config(),
        "broken-render",
        never,
        renderers=(("highlight_open", explode),),
    )
    with caplog.at_level(logging.WARNING):
        out = render_markdown("a ==b== c\n\nnext", config)
    assert "b</mark> c" in out
    assert "<p>next</p>" in out
    assert "highlight_open" in caplog.text


def test_preview_plugins_applied():
    out = render_markdown("# Hello World", plugins=["heading-anchors"])
    assert 'id="hello-world"' in out
    assert 'class="plugin-heading-anchor"' in out


class TestDocument:
    def test_title_is_escaped(self):
        page = render_document("body", "<Notes & more>")
        assert "<title>&lt;Notes &amp; more&gt;</title>" in page
        assert "<p>body</p>" in page

    def test_scripts_only_when_needed(self):
        plain = render_document("plain", "t")
        assert "mermaid.min.js" not in plain
        assert "MathJax" not in plain

        rich = render_document("```mermaid\ngraph TD\n```\n\n$$\nx\n$$", "t")
        assert "mermaid.min.js" in rich
        assert "window.MathJax" in rich

    def test_dark_theme_colors(self):
        page = render_document("x", "t", theme="dark")
        assert "#1e1e2e" in page
        assert "#cdd6f4" in page

    def test_unknown_theme(self):
        with pytest.raises(ValueError):
            render_document("x", "t", theme="sepia")


def test_detect_special_features():
    assert detect_special_features('<div class="mermaid">x</div>') == (False, True)
    assert detect_special_features("<p>$x$</p>") == (True, False)
    assert detect_special_features("<p>no math</p>") == (False, False)
