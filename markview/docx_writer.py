"""Serialize a document tree to Word (.docx) bytes with python-docx."""

from __future__ import annotations

import io
import logging
import re
from typing import Sequence

from docx import Document
from docx.enum.text import WD_COLOR_INDEX
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt, RGBColor

from .export import (
    BlockQuoteLine,
    BulletListItem,
    CodeLines,
    DocumentNode,
    Heading,
    OrderedListItem,
    Paragraph,
    RawBlock,
    Rule,
    Run,
    TableRow,
    markdown_to_document_tree,
)
from .grammar import DEFAULT_CONFIG, ParserConfig

log = logging.getLogger(__name__)

CODE_FONT = "Courier New"
CODE_FONT_SIZE = Pt(10)
CODE_SHADING = "F0F0F0"
HEADER_SHADING = "D9E2F3"
QUOTE_INDENT = Inches(0.5)
MAX_LIST_LEVEL = 2
_HEX_COLOR_RE = re.compile(r"^[0-9A-Fa-f]{6}$")


def _shade(element, fill: str) -> None:
    shd = element.find(qn("w:shd"))
    if shd is None:
        shd = OxmlElement("w:shd")
        element.append(shd)
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), fill)


def _set_header_repeat(row) -> None:
    tr_pr = row._tr.get_or_add_trPr()
    if tr_pr.find(qn("w:tblHeader")) is None:
        header = OxmlElement("w:tblHeader")
        header.set(qn("w:val"), "true")
        tr_pr.append(header)


def _add_bottom_border(paragraph) -> None:
    p_pr = paragraph._p.get_or_add_pPr()
    p_bdr = OxmlElement("w:pBdr")
    bottom = OxmlElement("w:bottom")
    bottom.set(qn("w:val"), "single")
    bottom.set(qn("w:sz"), "6")
    bottom.set(qn("w:space"), "1")
    bottom.set(qn("w:color"), "auto")
    p_bdr.append(bottom)
    p_pr.append(p_bdr)


def _add_runs(paragraph, runs: Sequence[Run], *, force_bold: bool = False) -> None:
    for spec in runs:
        if spec.break_before:
            paragraph.add_run().add_break()
        if not spec.text:
            continue
        run = paragraph.add_run(spec.text)
        run.bold = spec.bold or force_bold or None
        run.italic = spec.italic or None
        if spec.strike:
            run.font.strike = True
        if spec.highlight:
            run.font.highlight_color = WD_COLOR_INDEX.YELLOW
        if spec.monospace:
            run.font.name = CODE_FONT
        if spec.color_hint and _HEX_COLOR_RE.match(spec.color_hint):
            run.font.color.rgb = RGBColor.from_string(spec.color_hint.upper())


def _list_style(base: str, level: int) -> str:
    level = min(max(level, 0), MAX_LIST_LEVEL)
    return base if level == 0 else f"{base} {level + 1}"


def _add_code(doc, node: CodeLines) -> None:
    for line in node.lines:
        paragraph = doc.add_paragraph()
        fmt = paragraph.paragraph_format
        fmt.space_before = Pt(0)
        fmt.space_after = Pt(0)
        _shade(paragraph._p.get_or_add_pPr(), CODE_SHADING)
        run = paragraph.add_run(line)
        run.font.name = CODE_FONT
        run.font.size = CODE_FONT_SIZE


def _add_table(doc, rows: list[TableRow]) -> None:
    cols = max((len(row.cells) for row in rows), default=0)
    if cols == 0:
        return
    table = doc.add_table(rows=len(rows), cols=cols)
    table.style = "Table Grid"
    for row_spec, row in zip(rows, table.rows):
        if row_spec.is_header:
            _set_header_repeat(row)
        for cell_runs, cell in zip(row_spec.cells, row.cells):
            _add_runs(cell.paragraphs[0], cell_runs, force_bold=row_spec.is_header)
            if row_spec.is_header:
                _shade(cell._tc.get_or_add_tcPr(), HEADER_SHADING)


def _add_node(doc, node: DocumentNode) -> None:
    if isinstance(node, Heading):
        _add_runs(doc.add_heading(level=min(max(node.level, 1), 9)), node.runs)
    elif isinstance(node, Paragraph):
        _add_runs(doc.add_paragraph(), node.runs)
    elif isinstance(node, BulletListItem):
        _add_runs(doc.add_paragraph(style=_list_style("List Bullet", node.level)), node.runs)
    elif isinstance(node, OrderedListItem):
        _add_runs(doc.add_paragraph(style=_list_style("List Number", node.level)), node.runs)
    elif isinstance(node, CodeLines):
        _add_code(doc, node)
    elif isinstance(node, BlockQuoteLine):
        paragraph = doc.add_paragraph()
        paragraph.paragraph_format.left_indent = QUOTE_INDENT
        _add_runs(paragraph, node.runs)
    elif isinstance(node, Rule):
        _add_bottom_border(doc.add_paragraph())
    elif isinstance(node, RawBlock):
        doc.add_paragraph(node.content)


def write_docx(nodes: Sequence[DocumentNode], title: str = "") -> bytes:
    """Build a .docx from ``nodes`` and return its bytes; consecutive table rows form one table."""
    doc = Document()
    if title:
        doc.core_properties.title = title
        doc.add_heading(title, level=0)

    pending_rows: list[TableRow] = []
    for node in nodes:
        if isinstance(node, TableRow):
            # A header after body rows starts the next table.
            if node.is_header and pending_rows and not pending_rows[-1].is_header:
                _add_table(doc, pending_rows)
                pending_rows = []
            pending_rows.append(node)
            continue
        if pending_rows:
            _add_table(doc, pending_rows)
            pending_rows = []
        try:
            _add_node(doc, node)
        except Exception:
            log.warning("Skipping %s node in document export", type(node).__name__, exc_info=True)
    if pending_rows:
        _add_table(doc, pending_rows)

    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


def export_docx(markdown_text: str, title: str = "", config: ParserConfig = DEFAULT_CONFIG) -> bytes:
    return write_docx(markdown_to_document_tree(markdown_text, config), title)
