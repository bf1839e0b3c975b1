"""Token model helpers shared by every renderer.

Tokens are markdown-it-py ``Token`` objects: a flat, ordered sequence where
``nesting`` is +1 for an open marker, -1 for a close marker and 0 for a leaf.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from markdown_it.token import Token


class TokenKind(str, Enum):
    """Built-in token types produced by the base grammar and bundled extensions."""

    HEADING_OPEN = "heading_open"
    HEADING_CLOSE = "heading_close"
    PARAGRAPH_OPEN = "paragraph_open"
    PARAGRAPH_CLOSE = "paragraph_close"
    INLINE = "inline"
    BULLET_LIST_OPEN = "bullet_list_open"
    BULLET_LIST_CLOSE = "bullet_list_close"
    ORDERED_LIST_OPEN = "ordered_list_open"
    ORDERED_LIST_CLOSE = "ordered_list_close"
    LIST_ITEM_OPEN = "list_item_open"
    LIST_ITEM_CLOSE = "list_item_close"
    BLOCKQUOTE_OPEN = "blockquote_open"
    BLOCKQUOTE_CLOSE = "blockquote_close"
    TABLE_OPEN = "table_open"
    TABLE_CLOSE = "table_close"
    THEAD_OPEN = "thead_open"
    THEAD_CLOSE = "thead_close"
    TBODY_OPEN = "tbody_open"
    TBODY_CLOSE = "tbody_close"
    TR_OPEN = "tr_open"
    TR_CLOSE = "tr_close"
    TH_OPEN = "th_open"
    TH_CLOSE = "th_close"
    TD_OPEN = "td_open"
    TD_CLOSE = "td_close"
    FENCE = "fence"
    CODE_BLOCK = "code_block"
    HR = "hr"
    HTML_BLOCK = "html_block"
    # Inline
    TEXT = "text"
    SOFTBREAK = "softbreak"
    HARDBREAK = "hardbreak"
    CODE_INLINE = "code_inline"
    HTML_INLINE = "html_inline"
    STRONG_OPEN = "strong_open"
    STRONG_CLOSE = "strong_close"
    EM_OPEN = "em_open"
    EM_CLOSE = "em_close"
    S_OPEN = "s_open"
    S_CLOSE = "s_close"
    LINK_OPEN = "link_open"
    LINK_CLOSE = "link_close"
    IMAGE = "image"
    # Extensions
    HIGHLIGHT_OPEN = "highlight_open"
    HIGHLIGHT_CLOSE = "highlight_close"
    WIKILINK = "wikilink"
    CONTAINER_OPEN = "container_open"
    CONTAINER_CLOSE = "container_close"
    MATH_INLINE = "math_inline"
    MATH_BLOCK = "math_block"
    FOOTNOTE_REF = "footnote_ref"
    FOOTNOTE_BLOCK_OPEN = "footnote_block_open"
    FOOTNOTE_BLOCK_CLOSE = "footnote_block_close"
    FOOTNOTE_OPEN = "footnote_open"
    FOOTNOTE_CLOSE = "footnote_close"
    FOOTNOTE_ANCHOR = "footnote_anchor"


_BUILTIN_TYPES = frozenset(kind.value for kind in TokenKind)


def is_builtin(token_type: str) -> bool:
    return token_type in _BUILTIN_TYPES


def _stem(token_type: str) -> str:
    for suffix in ("_open", "_close"):
        if token_type.endswith(suffix):
            return token_type[: -len(suffix)]
    return token_type


def nesting_levels(tokens: Sequence[Token]) -> list[int]:
    """Running sum of ``nesting`` over the sequence, one entry per token."""
    levels: list[int] = []
    level = 0
    for token in tokens:
        level += token.nesting
        levels.append(level)
    return levels


def is_balanced(tokens: Sequence[Token]) -> bool:
    """True when every open token has a later close of the same kind and nothing crosses."""
    stack: list[str] = []
    for token in tokens:
        if token.nesting == 1:
            stack.append(_stem(token.type))
        elif token.nesting == -1:
            if not stack or stack.pop() != _stem(token.type):
                return False
    return not stack


def find_close(tokens: Sequence[Token], start: int) -> int | None:
    """Index of the close token matching the open token at ``start``."""
    if start >= len(tokens) or tokens[start].nesting != 1:
        return None
    depth = 0
    for index in range(start, len(tokens)):
        depth += tokens[index].nesting
        if depth == 0:
            return index
    return None


class TokenMismatch(ValueError):
    """Raised by ``TokenCursor.expect`` when the next token has another type."""


class TokenCursor:
    """Explicit cursor over a flat token sequence for block-structure walkers."""

    def __init__(self, tokens: Sequence[Token], start: int = 0, end: int | None = None) -> None:
        self._tokens = tokens
        self.index = start
        self._end = len(tokens) if end is None else end

    @property
    def at_end(self) -> bool:
        return self.index >= self._end

    def peek(self, offset: int = 0) -> Token | None:
        position = self.index + offset
        if 0 <= position < self._end:
            return self._tokens[position]
        return None

    def advance(self) -> Token | None:
        token = self.peek()
        if token is not None:
            self.index += 1
        return token

    def expect(self, token_type: str) -> Token:
        token = self.peek()
        if token is None or token.type != token_type:
            found = token.type if token is not None else "end of tokens"
            raise TokenMismatch(f"expected {token_type!r} at {self.index}, found {found!r}")
        self.index += 1
        return token

    def skip_block(self) -> None:
        """Move past the current token and, if it opens a block, past its matching close."""
        close = find_close(self._tokens, self.index)
        if close is None or close >= self._end:
            self.index += 1
        else:
            self.index = close + 1

    def take_block(self) -> list[Token]:
        """Return the tokens enclosed by the current open token and move past its close.

        An open token without a matching close yields nothing and the cursor
        only steps over it.
        """
        close = find_close(self._tokens, self.index)
        if close is None or close >= self._end:
            self.index += 1
            return []
        inner = list(self._tokens[self.index + 1 : close])
        self.index = close + 1
        return inner

    def sub_cursor(self) -> "TokenCursor":
        """Cursor over the children of the current open token; advances this cursor past it."""
        close = find_close(self._tokens, self.index)
        if close is None or close >= self._end:
            start = self.index + 1
            self.index = start
            return TokenCursor(self._tokens, start, start)
        child = TokenCursor(self._tokens, self.index + 1, close)
        self.index = close + 1
        return child
