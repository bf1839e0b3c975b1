"""Tests for the grammar extension registry and bundled extensions."""

from __future__ import annotations

import html
import logging

from markview.grammar import (
    DEFAULT_CONFIG,
    DEFAULT_EXTENSIONS,
    build_config,
    build_parser,
    parse,
    register_block_rule,
    register_inline_rule,
)
from markview.html_renderer import render_markdown
from markview.tokens import is_balanced


def _alert_rule(state, start_line, end_line, silent):
    start = state.bMarks[start_line] + state.tShift[start_line]
    line = state.src[start : state.eMarks[start_line]]
    if not line.startswith("!!! "):
        return False
    if silent:
        return True
    token = state.push("alert", "div", 0)
    token.content = line[4:]
    token.map = [start_line, start_line + 1]
    state.line = start_line + 1
    return True


def _render_alert(tokens, idx, options, env):
    return f'<div class="alert">{html.escape(tokens[idx].content)}</div>\n'


def _exploding_rule(state, silent):
    raise RuntimeError("boom")


def _noop_inline(state, silent):
    return False


class TestHighlight:
    def test_mark(self):
        assert render_markdown("a ==bold== b") == "<p>a <mark>bold</mark> b</p>\n"

    def test_unclosed_is_literal(self):
        assert render_markdown("a ==open") == "<p>a ==open</p>\n"

    def test_empty_is_literal(self):
        assert "<mark>" not in render_markdown("a ==== b")


class TestWikiLinks:
    def test_resolved_link(self):
        out = render_markdown("[[Foo Bar|see this]]", known_files=["notes/foo-bar.md"])
        assert 'class="wikilink"' in out
        assert 'href="#wiki:Foo Bar"' in out
        assert 'data-wiki-target="Foo Bar"' in out
        assert 'data-wiki-path="notes/foo-bar.md"' in out
        assert ">see this</a>" in out

    def test_unresolved_link(self):
        out = render_markdown("[[Nowhere]]", known_files=["notes/foo-bar.md"])
        assert 'class="wikilink wikilink-unresolved"' in out
        assert ">Nowhere</a>" in out

    def test_no_known_files_means_no_resolution_attrs(self):
        out = render_markdown("[[Foo]]")
        assert "data-wiki-path" not in out
        assert "wikilink-unresolved" not in out

    def test_values_are_escaped(self):
        out = render_markdown('[[<b>x</b>|"alias"]]')
        assert "<b>" not in out
        assert "&lt;b&gt;x&lt;/b&gt;" in out
        assert "&quot;alias&quot;" in out

    def test_token_meta(self):
        inline = parse("[[Target|Shown]]")[1]
        token = inline.children[0]
        assert token.type == "wikilink"
        assert token.meta == {"target": "Target", "alias": "Shown"}
        assert token.content == "Shown"

    def test_nested_brackets_decline(self):
        inline = parse("[[a [b] c]]")[1]
        assert all(child.type != "wikilink" for child in inline.children)


class TestContainers:
    def test_closed_container(self):
        out = render_markdown(":::warning Be Careful\nThis is dangerous.\n:::")
        assert out == (
            '<div class="markview-container markview-container-warning">'
            '<div class="markview-container-title">Be Careful</div>'
            '<div class="markview-container-content">\n'
            "<p>This is dangerous.</p>\n"
            "</div></div>\n"
        )

    def test_default_title_is_kind(self):
        tokens = parse(":::tip\n\nBody\n\n:::")
        opener = tokens[0]
        assert opener.type == "container_open"
        assert opener.meta == {"kind": "tip", "title": "Tip"}

    def test_unclosed_is_literal(self):
        out = render_markdown(":::note\nstill text")
        assert "markview-container" not in out
        assert ":::note" in out
        assert "still text" in out

    def test_surrounding_lines_stay_in_their_paragraphs(self):
        tokens = parse("before\n:::note\ninside\n:::\nafter")
        types = [token.type for token in tokens]
        assert types == [
            "paragraph_open", "inline", "paragraph_close",
            "container_open",
            "paragraph_open", "inline", "paragraph_close",
            "container_close",
            "paragraph_open", "inline", "paragraph_close",
        ]
        assert [token.content for token in tokens if token.type == "inline"] == ["before", "inside", "after"]

    def test_close_does_not_escape_enclosing_block(self):
        tokens = parse("> :::note\n> quoted\n\n:::")
        assert "container_open" not in [token.type for token in tokens]

    def test_inner_opener_pairs_with_next_unused_close(self):
        tokens = parse(":::note Outer\n\n:::tip Inner\n\ninner\n\n:::\n\n:::")
        assert [(token.type, token.level) for token in tokens] == [
            ("container_open", 0),
            ("container_open", 1),
            ("paragraph_open", 2), ("inline", 3), ("paragraph_close", 2),
            ("container_close", 1),
            ("container_close", 0),
        ]
        assert [tokens[0].meta["title"], tokens[1].meta["title"]] == ["Outer", "Inner"]
        assert is_balanced(tokens)

    def test_nested_containers_render_nested(self):
        out = render_markdown(":::note Outer\n\n:::tip Inner\n\ninner\n\n:::\n\n:::")
        assert out.count('<div class="markview-container-title">') == 2
        assert out.index("markview-container-note") < out.index("markview-container-tip")
        assert ":::" not in out
        assert out.endswith("<p>inner</p>\n</div></div>\n</div></div>\n")

    def test_opener_without_spare_close_stays_literal(self):
        tokens = parse(":::note\n\n:::tip\n\ninner\n\n:::")
        types = [token.type for token in tokens]
        assert types.count("container_open") == 1
        assert types.count("container_close") == 1
        assert tokens[0].meta["kind"] == "note"
        assert ":::tip" in [token.content for token in tokens if token.type == "inline"]

    def test_levels_follow_nesting(self):
        tokens = parse(":::note\nbody\n:::")
        assert [token.level for token in tokens] == [0, 1, 2, 1, 0]


class TestMath:
    def test_inline_and_block(self):
        out = render_markdown("Euler $e^{i\\pi} < 0$\n\n$$\nx_1 + x_2\n$$")
        assert "$e^{i\\pi} &lt; 0$" in out
        assert '<div class="markview-math-block">$$\nx_1 + x_2\n$$</div>' in out

    def test_underscores_survive(self):
        out = render_markdown("$a_1 b_2$")
        assert "<em>" not in out


class TestFootnotesAndTasks:
    def test_footnote(self):
        out = render_markdown("Text[^1]\n\n[^1]: The note.")
        assert 'class="footnote-ref"' in out
        assert "The note." in out

    def test_task_list(self):
        out = render_markdown("- [ ] todo\n- [x] done")
        assert out.count("task-list-item-checkbox") == 2
        assert 'checked="checked"' in out


class TestRegistry:
    def test_default_order(self):
        assert DEFAULT_CONFIG.rule_names == DEFAULT_EXTENSIONS

    def test_unknown_extension_is_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = build_config(["highlight", "sparkles"])
        assert config.rule_names == ("highlight",)
        assert "sparkles" in caplog.text

    def test_registration_is_idempotent(self):
        once = register_inline_rule(DEFAULT_CONFIG, "noop", _noop_inline)
        twice = register_inline_rule(once, "noop", _noop_inline)
        assert twice.rule_names.count("noop") == 1
        assert twice == once
        assert build_parser(twice) is build_parser(once)

    def test_config_is_not_mutated(self):
        register_inline_rule(DEFAULT_CONFIG, "noop", _noop_inline)
        assert "noop" not in DEFAULT_CONFIG.rule_names

    def test_custom_block_rule(self):
        config = register_block_rule(
            DEFAULT_CONFIG,
            "alert",
            _alert_rule,
            before="paragraph",
            renderers=(("alert", _render_alert),),
        )
        out = render_markdown("!!! <careful>\n\nplain", config)
        assert '<div class="alert">&lt;careful&gt;</div>' in out
        assert "<p>plain</p>" in out

    def test_bad_anchor_is_skipped(self, caplog):
        config = register_inline_rule(DEFAULT_CONFIG, "lost", _noop_inline, before="no-such-rule")
        with caplog.at_level(logging.ERROR):
            out = render_markdown("a ==b==", config)
        assert out == "<p>a <mark>b</mark></p>\n"
        assert "lost" in caplog.text

    def test_raising_matcher_declines(self, caplog):
        config = register_inline_rule(DEFAULT_CONFIG, "exploding", _exploding_rule, before="text")
        with caplog.at_level(logging.ERROR):
            out = render_markdown("still **fine**", config)
        assert out == "<p>still <strong>fine</strong></p>\n"
        assert "exploding" in caplog.text
