"""Inline grammar rules and render handlers for the bundled markdown extensions."""

from __future__ import annotations

import html

from markdown_it.rules_inline import StateInline

from .graph import resolve_wiki_link

HIGHLIGHT_MARKER = "=="
WIKILINK_OPEN = "[["
WIKILINK_CLOSE = "]]"


def highlight_rule(state: StateInline, silent: bool) -> bool:
    """``==text==`` -> highlight_open / text / highlight_close."""
    start = state.pos
    if state.src[start : start + 2] != HIGHLIGHT_MARKER:
        return False

    close = state.src.find(HIGHLIGHT_MARKER, start + 2, state.posMax)
    if close < 0:
        return False
    content = state.src[start + 2 : close]
    if not content:
        return False

    if not silent:
        token = state.push("highlight_open", "mark", 1)
        token.markup = HIGHLIGHT_MARKER
        token = state.push("text", "", 0)
        token.content = content
        token = state.push("highlight_close", "mark", -1)
        token.markup = HIGHLIGHT_MARKER

    state.pos = close + 2
    return True


def wikilink_rule(state: StateInline, silent: bool) -> bool:
    """``[[target]]`` or ``[[target|alias]]`` -> a single wikilink token."""
    start = state.pos
    if state.src[start : start + 2] != WIKILINK_OPEN:
        return False

    close = state.src.find(WIKILINK_CLOSE, start + 2, state.posMax)
    if close < 0:
        return False
    inner = state.src[start + 2 : close]
    if "[" in inner or "]" in inner:
        return False

    target, pipe, alias = inner.partition("|")
    target = target.strip()
    if not target:
        return False
    alias_text = alias.strip() if pipe else None

    if not silent:
        token = state.push("wikilink", "a", 0)
        token.markup = WIKILINK_OPEN
        token.content = alias_text or target
        token.meta = {"target": target, "alias": alias_text}

    state.pos = close + 2
    return True


def render_wikilink(tokens, idx, options, env) -> str:
    token = tokens[idx]
    target = str(token.meta.get("target", ""))
    label = token.content or target
    classes = ["wikilink"]
    resolved_attr = ""

    known_files = env.get("known_files") if isinstance(env, dict) else None
    if known_files is not None:
        resolved = resolve_wiki_link(target, known_files)
        if resolved is None:
            classes.append("wikilink-unresolved")
        else:
            resolved_attr = f' data-wiki-path="{html.escape(resolved)}"'

    escaped_target = html.escape(target)
    return (
        f'<a class="{" ".join(classes)}" href="#wiki:{escaped_target}" '
        f'data-wiki-target="{escaped_target}"{resolved_attr}>{html.escape(label)}</a>'
    )


def render_math_inline(tokens, idx, options, env) -> str:
    token = tokens[idx]
    # Keep TeX content raw for MathJax, only HTML-escape unsafe chars.
    return f"${html.escape(token.content)}$"


def render_math_block(tokens, idx, options, env) -> str:
    token = tokens[idx]
    math_body = (token.content or "").strip("\n")
    return f'<div class="markview-math-block">$$\n{html.escape(math_body)}\n$$</div>\n'
