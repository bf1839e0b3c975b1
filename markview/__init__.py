"""Markdown to HTML / Word rendering, outlines and wiki-link graphs."""

from .config import ConfigError, Settings, load_settings
from .docx_writer import export_docx, write_docx
from .export import markdown_to_document_tree, to_document_tree
from .grammar import (
    DEFAULT_CONFIG,
    EXTENSIONS,
    ParserConfig,
    build_config,
    build_parser,
    parse,
    register_block_rule,
    register_inline_rule,
)
from .graph import build_link_graph, parse_wiki_links, resolve_wiki_link, scan_wiki_links
from .html_renderer import render_document, render_html, render_markdown
from .layout import layout_tree, simulate_force_layout, tree_bounds
from .outline import build_outline, fold_ranges
from .transforms import PREVIEW_PLUGINS, apply_preview_transforms

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CONFIG",
    "EXTENSIONS",
    "PREVIEW_PLUGINS",
    "ConfigError",
    "ParserConfig",
    "Settings",
    "apply_preview_transforms",
    "build_config",
    "build_link_graph",
    "build_outline",
    "build_parser",
    "export_docx",
    "fold_ranges",
    "layout_tree",
    "load_settings",
    "markdown_to_document_tree",
    "parse",
    "parse_wiki_links",
    "register_block_rule",
    "register_inline_rule",
    "render_document",
    "render_html",
    "render_markdown",
    "resolve_wiki_link",
    "scan_wiki_links",
    "simulate_force_layout",
    "to_document_tree",
    "tree_bounds",
    "write_docx",
]
