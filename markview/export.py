"""Token sequence -> structured document tree for binary document export.

The walker keeps its own cursor over the flat token list: block tokens are
siblings in that list, so lists, tables and blockquotes are handled by
descending into the span between an open token and its matching close.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Sequence, Union

from markdown_it.token import Token

from .grammar import DEFAULT_CONFIG, ParserConfig, parse
from .tokens import TokenCursor, find_close

log = logging.getLogger(__name__)

LINK_COLOR = "0563C1"
IMAGE_COLOR = "888888"
CHECKBOX_OPEN = "☐ "
CHECKBOX_DONE = "☑ "


@dataclass(frozen=True)
class Run:
    text: str
    bold: bool = False
    italic: bool = False
    monospace: bool = False
    color_hint: str | None = None
    strike: bool = False
    highlight: bool = False
    break_before: bool = False


@dataclass(frozen=True)
class _Style:
    bold: bool = False
    italic: bool = False
    monospace: bool = False
    color_hint: str | None = None
    strike: bool = False
    highlight: bool = False

    def run(self, text: str, **overrides) -> Run:
        fields = {
            "bold": self.bold,
            "italic": self.italic,
            "monospace": self.monospace,
            "color_hint": self.color_hint,
            "strike": self.strike,
            "highlight": self.highlight,
        }
        fields.update(overrides)
        return Run(text, **fields)


Runs = tuple[Run, ...]


@dataclass(frozen=True)
class Heading:
    level: int
    runs: Runs


@dataclass(frozen=True)
class Paragraph:
    runs: Runs


@dataclass(frozen=True)
class BulletListItem:
    runs: Runs
    level: int


@dataclass(frozen=True)
class OrderedListItem:
    runs: Runs
    level: int


@dataclass(frozen=True)
class CodeLines:
    lines: tuple[str, ...]
    language: str = ""


@dataclass(frozen=True)
class BlockQuoteLine:
    runs: Runs


@dataclass(frozen=True)
class TableRow:
    cells: tuple[Runs, ...]
    is_header: bool


@dataclass(frozen=True)
class Rule:
    pass


@dataclass(frozen=True)
class RawBlock:
    content: str


DocumentNode = Union[
    Heading,
    Paragraph,
    BulletListItem,
    OrderedListItem,
    CodeLines,
    BlockQuoteLine,
    TableRow,
    Rule,
    RawBlock,
]

_STYLED_OPENERS = {"strong_open", "em_open", "s_open", "link_open", "highlight_open"}
_LIST_OPENERS = {"bullet_list_open", "ordered_list_open"}
_CODE_TYPES = {"fence", "code_block", "math_block", "math_block_label"}


def _open_style(style: _Style, token: Token) -> _Style:
    if token.type == "strong_open":
        return replace(style, bold=True)
    if token.type == "em_open":
        return replace(style, italic=True)
    if token.type == "s_open":
        return replace(style, strike=True)
    if token.type == "highlight_open":
        return replace(style, highlight=True)
    return replace(style, color_hint=LINK_COLOR)


def _leaf_runs(token: Token, style: _Style) -> list[Run]:
    kind = token.type
    if kind == "text":
        return [style.run(token.content)] if token.content else []
    if kind in ("code_inline", "math_inline", "math_inline_double"):
        return [style.run(token.content, monospace=True)]
    if kind in ("softbreak", "hardbreak"):
        return [Run("", break_before=True)]
    if kind == "image":
        alt = token.content or "".join(child.content for child in token.children or []) or "image"
        return [Run(f"[{alt}]", italic=True, color_hint=IMAGE_COLOR)]
    if kind == "wikilink":
        return [replace(style, color_hint=LINK_COLOR).run(token.content)]
    if kind == "footnote_ref":
        return [style.run(f"[{int(token.meta.get('id', 0)) + 1}]")]
    if kind == "html_inline" and "task-list-item-checkbox" in token.content:
        done = 'checked="checked"' in token.content
        return [style.run(CHECKBOX_DONE if done else CHECKBOX_OPEN)]
    return []


def inline_runs(children: Sequence[Token], style: _Style = _Style()) -> list[Run]:
    """Styled runs for an inline child sequence.

    Each styling open token is paired with its matching close, and the
    enclosed tokens are converted with the accumulated style. An open token
    without a close is kept as its literal markup.
    """
    runs: list[Run] = []
    index = 0
    while index < len(children):
        token = children[index]
        if token.type in _STYLED_OPENERS:
            close = find_close(children, index)
            if close is None:
                if token.markup:
                    runs.append(style.run(token.markup))
                index += 1
                continue
            runs.extend(inline_runs(children[index + 1 : close], _open_style(style, token)))
            index = close + 1
            continue
        runs.extend(_leaf_runs(token, style))
        index += 1
    return runs


def _code_lines(content: str) -> tuple[str, ...]:
    if content.endswith("\n"):
        content = content[:-1]
    # Blank lines become a single space so the target format keeps them.
    return tuple(line or " " for line in content.split("\n"))


class _DocumentWalker:
    def __init__(self) -> None:
        self.nodes: list[DocumentNode] = []

    def step(self, cursor: TokenCursor) -> None:
        """Convert the block at the cursor; a failing block is logged and skipped."""
        start = cursor.index
        token = cursor.peek()
        try:
            self._block(cursor, token)
        except Exception:
            log.warning("Skipping %r block at token %d", token.type, start, exc_info=True)
            cursor.index = start
            cursor.skip_block()
        if cursor.index == start:
            cursor.advance()

    def walk(self, cursor: TokenCursor) -> None:
        while not cursor.at_end:
            self.step(cursor)

    def _inline(self, cursor: TokenCursor) -> Runs:
        token = cursor.peek()
        if token is None or token.type != "inline":
            return ()
        cursor.advance()
        if token.children:
            return tuple(inline_runs(token.children))
        return (Run(token.content),) if token.content else ()

    def _paragraph_runs(self, cursor: TokenCursor) -> Runs:
        # Footnote anchors sit between the inline token and paragraph_close.
        return self._inline(cursor.sub_cursor())

    def _block(self, cursor: TokenCursor, token: Token) -> None:
        kind = token.type
        if kind == "heading_open":
            cursor.advance()
            runs = self._inline(cursor)
            cursor.expect("heading_close")
            self.nodes.append(Heading(int(token.tag[1:]), runs))
        elif kind == "paragraph_open":
            self.nodes.append(Paragraph(self._paragraph_runs(cursor)))
        elif kind in _LIST_OPENERS:
            self._list(cursor, 0)
        elif kind in _CODE_TYPES:
            cursor.advance()
            language = token.info.strip() if kind == "fence" else ""
            content = token.content
            if kind.startswith("math_block"):
                # Math block content keeps the newline after the opening ``$$``.
                content = content.strip("\n")
            self.nodes.append(CodeLines(_code_lines(content), language))
        elif kind == "blockquote_open":
            self._blockquote(cursor)
        elif kind == "table_open":
            self._table(cursor)
        elif kind == "hr":
            cursor.advance()
            self.nodes.append(Rule())
        elif kind == "html_block":
            cursor.advance()
            self.nodes.append(RawBlock(token.content.rstrip("\n")))
        elif kind == "container_open":
            cursor.advance()
            title = str(token.meta.get("title", ""))
            if title:
                self.nodes.append(Paragraph((Run(title, bold=True),)))
        elif kind == "footnote_block_open":
            cursor.advance()
            self.nodes.append(Rule())
        elif kind == "footnote_open":
            self._footnote(cursor)
        else:
            cursor.advance()

    def _list(self, cursor: TokenCursor, level: int) -> None:
        ordered = cursor.peek().type == "ordered_list_open"
        items = cursor.sub_cursor()
        while not items.at_end:
            if items.peek().type == "list_item_open":
                self._list_item(items.sub_cursor(), level, ordered)
            else:
                items.advance()

    def _list_item(self, item: TokenCursor, level: int, ordered: bool) -> None:
        record = OrderedListItem if ordered else BulletListItem
        while not item.at_end:
            token = item.peek()
            if token.type == "paragraph_open":
                self.nodes.append(record(self._paragraph_runs(item), level))
            elif token.type in _LIST_OPENERS:
                self._list(item, level + 1)
            else:
                self.step(item)

    def _blockquote(self, cursor: TokenCursor) -> None:
        quote = cursor.sub_cursor()
        while not quote.at_end:
            if quote.peek().type == "paragraph_open":
                self.nodes.append(BlockQuoteLine(self._paragraph_runs(quote)))
            else:
                self.step(quote)

    def _table(self, cursor: TokenCursor) -> None:
        table = cursor.sub_cursor()
        is_header = False
        while not table.at_end:
            kind = table.peek().type
            if kind == "thead_open":
                is_header = True
                table.advance()
            elif kind == "thead_close":
                is_header = False
                table.advance()
            elif kind == "tr_open":
                row = table.sub_cursor()
                cells: list[Runs] = []
                while not row.at_end:
                    if row.peek().type in ("th_open", "td_open"):
                        cells.append(self._inline(row.sub_cursor()))
                    else:
                        row.advance()
                self.nodes.append(TableRow(tuple(cells), is_header))
            else:
                table.advance()

    def _footnote(self, cursor: TokenCursor) -> None:
        number = int(cursor.peek().meta.get("id", 0)) + 1
        body = cursor.sub_cursor()
        prefix: Runs = (Run(f"[{number}] "),)
        while not body.at_end:
            if body.peek().type == "paragraph_open":
                self.nodes.append(Paragraph(prefix + self._paragraph_runs(body)))
                prefix = ()
            else:
                self.step(body)


def to_document_tree(tokens: Sequence[Token]) -> list[DocumentNode]:
    """Walk ``tokens`` once, in order, into document nodes; unknown tokens are skipped."""
    walker = _DocumentWalker()
    walker.walk(TokenCursor(tokens))
    return walker.nodes


def markdown_to_document_tree(text: str, config: ParserConfig = DEFAULT_CONFIG) -> list[DocumentNode]:
    return to_document_tree(parse(text, config))
