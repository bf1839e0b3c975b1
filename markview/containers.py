"""``:::type [title]`` ... ``:::`` callout containers.

Runs as a core stage between block and inline parsing, so paragraph tokens
still carry raw inline source in ``content`` and no children yet. The stage
is a pure function from one token sequence to a new one.
"""

from __future__ import annotations

import html
import re
from typing import Sequence

from markdown_it.rules_core import StateCore
from markdown_it.token import Token

CONTAINER_KINDS = ("note", "warning", "tip", "danger", "info")
CLOSE_MARKER = ":::"
SPLIT_META_KEY = "container_split"

_OPEN_RE = re.compile(r":::(note|warning|tip|danger|info)(?:\s+(.+))?")


def parse_opener(line: str) -> tuple[str, str] | None:
    """Return ``(kind, title)`` for an opener line, else None."""
    match = _OPEN_RE.fullmatch(line.strip())
    if match is None:
        return None
    kind = match.group(1)
    title = (match.group(2) or "").strip() or kind.capitalize()
    return kind, title


def _is_close(line: str) -> bool:
    return line.strip() == CLOSE_MARKER


def _is_marker(line: str) -> bool:
    return _is_close(line) or parse_opener(line) is not None


def _paragraph_at(tokens: Sequence[Token], index: int) -> Token | None:
    """Inline token of the paragraph starting at ``index``, if there is one."""
    if index + 2 >= len(tokens):
        return None
    if (
        tokens[index].type == "paragraph_open"
        and tokens[index + 1].type == "inline"
        and tokens[index + 2].type == "paragraph_close"
    ):
        return tokens[index + 1]
    return None


def _line_chunks(lines: list[str]) -> list[tuple[int, list[str]]]:
    """Group lines so every marker line stands alone; returns (offset, lines) pairs."""
    chunks: list[tuple[int, list[str]]] = []
    pending: list[str] = []
    pending_start = 0
    for offset, line in enumerate(lines):
        if _is_marker(line):
            if pending:
                chunks.append((pending_start, pending))
                pending = []
            chunks.append((offset, [line]))
        else:
            if not pending:
                pending_start = offset
            pending.append(line)
    if pending:
        chunks.append((pending_start, pending))
    return chunks


def _copy_paragraph(
    triple: Sequence[Token], content: str, line_map: list[int] | None, meta: dict
) -> list[Token]:
    opener, inline, closer = triple
    return [
        opener.copy(map=line_map, meta=dict(meta)),
        # Fresh children list: the inline stage appends into it.
        inline.copy(content=content, map=line_map, children=[], meta=dict(meta)),
        closer.copy(meta=dict(meta)),
    ]


def _split_marker_lines(tokens: Sequence[Token]) -> list[Token]:
    """Give marker lines that share a paragraph with other lines their own paragraph."""
    result: list[Token] = []
    group = 0
    index = 0
    while index < len(tokens):
        inline = _paragraph_at(tokens, index)
        if inline is not None:
            lines = inline.content.split("\n")
            if len(lines) > 1 and any(_is_marker(line) for line in lines):
                group += 1
                triple = tokens[index : index + 3]
                base = tokens[index].map
                for offset, chunk in _line_chunks(lines):
                    line_map = [base[0] + offset, base[0] + offset + len(chunk)] if base else None
                    result.extend(
                        _copy_paragraph(triple, "\n".join(chunk), line_map, {SPLIT_META_KEY: group})
                    )
                index += 3
                continue
        result.append(tokens[index])
        index += 1
    return result


def _find_pairs(tokens: Sequence[Token]) -> dict[int, tuple[int, str, str]]:
    """Map opener paragraph index -> (closer paragraph index, kind, title).

    The closer is the nearest following ``:::`` paragraph regardless of type,
    searched only among siblings inside the opener's enclosing block. A
    closer already taken by an earlier opener is stepped over, so an inner
    opener pairs with the next unused ``:::`` and containers nest.
    """
    pairs: dict[int, tuple[int, str, str]] = {}
    consumed: set[int] = set()
    for index in range(len(tokens)):
        inline = _paragraph_at(tokens, index)
        if inline is None or index in consumed:
            continue
        opener = parse_opener(inline.content) if "\n" not in inline.content else None
        if opener is None:
            continue

        depth = 0
        position = index + 3
        while position < len(tokens):
            if position in consumed:
                position += 3
                continue
            if depth == 0:
                candidate = _paragraph_at(tokens, position)
                if candidate is not None and _is_close(candidate.content):
                    pairs[index] = (position, opener[0], opener[1])
                    consumed.update((index, position))
                    break
            depth += tokens[position].nesting
            if depth < 0:
                break
            position += 1
    return pairs


def _merge_split_paragraphs(tokens: Sequence[Token]) -> list[Token]:
    """Rejoin adjacent pieces of a split paragraph that no container consumed."""
    result: list[Token] = []
    index = 0
    while index < len(tokens):
        inline = _paragraph_at(tokens, index)
        group = tokens[index].meta.get(SPLIT_META_KEY) if inline is not None else None
        if group is None:
            result.append(tokens[index])
            index += 1
            continue

        pieces = [tokens[index : index + 3]]
        index += 3
        while True:
            following = _paragraph_at(tokens, index)
            if following is None or tokens[index].meta.get(SPLIT_META_KEY) != group:
                break
            pieces.append(tokens[index : index + 3])
            index += 3

        first_map = pieces[0][0].map
        last_map = pieces[-1][0].map
        line_map = [first_map[0], last_map[1]] if first_map and last_map else None
        content = "\n".join(piece[1].content for piece in pieces)
        result.extend(_copy_paragraph(pieces[0], content, line_map, {}))
    return result


def _relevel(tokens: Sequence[Token]) -> list[Token]:
    result: list[Token] = []
    level = 0
    for token in tokens:
        if token.nesting == -1:
            level -= 1
        if token.level != level:
            token = token.copy(level=level)
        result.append(token)
        if token.nesting == 1:
            level += 1
    return result


def apply_containers(tokens: Sequence[Token]) -> list[Token]:
    """Replace matched ``:::type`` / ``:::`` paragraph pairs with container tokens."""
    split = _split_marker_lines(tokens)
    pairs = _find_pairs(split)
    closers = {close: start for start, (close, _kind, _title) in pairs.items()}

    wrapped: list[Token] = []
    index = 0
    while index < len(split):
        if index in pairs:
            _close, kind, title = pairs[index]
            token = Token("container_open", "div", 1)
            token.block = True
            token.markup = CLOSE_MARKER
            token.info = kind
            token.map = split[index].map
            token.meta = {"kind": kind, "title": title}
            wrapped.append(token)
            index += 3
            continue
        if index in closers:
            token = Token("container_close", "div", -1)
            token.block = True
            token.markup = CLOSE_MARKER
            wrapped.append(token)
            index += 3
            continue
        wrapped.append(split[index])
        index += 1

    return _relevel(_merge_split_paragraphs(wrapped))


def container_rule(state: StateCore) -> None:
    state.tokens = apply_containers(state.tokens)


def render_container_open(tokens, idx, options, env) -> str:
    token = tokens[idx]
    kind = html.escape(str(token.meta.get("kind", "note")))
    title = html.escape(str(token.meta.get("title", "")))
    return (
        f'<div class="markview-container markview-container-{kind}">'
        f'<div class="markview-container-title">{title}</div>'
        '<div class="markview-container-content">\n'
    )


def render_container_close(tokens, idx, options, env) -> str:
    return "</div></div>\n"
