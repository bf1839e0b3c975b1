"""Command-line entry point: the only place that touches the filesystem."""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from dataclasses import asdict
from pathlib import Path

from .config import ConfigError, Settings, load_settings
from .docx_writer import export_docx
from .graph import build_link_graph, scan_wiki_links
from .html_renderer import render_document, render_markdown
from .layout import layout_tree, simulate_force_layout, tree_bounds
from .outline import build_outline

log = logging.getLogger(__name__)


def _read_markdown(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _markdown_files(root: Path) -> list[Path]:
    return sorted(p for p in root.rglob("*.md") if p.is_file())


def _known_files(path: Path) -> list[str]:
    root = path.parent
    return [p.relative_to(root).as_posix() for p in _markdown_files(root)]


def _write_text(text: str, output: str | None) -> None:
    if output is None:
        sys.stdout.write(text)
        return
    Path(output).expanduser().write_text(text, encoding="utf-8")


def _cmd_html(args: argparse.Namespace, settings: Settings) -> int:
    path = Path(args.path).expanduser()
    if not path.is_file():
        print(f"Path is not a file: {path}", file=sys.stderr)
        return 2
    text = _read_markdown(path)
    config = settings.parser_config()
    known_files = _known_files(path)
    if args.document:
        rendered = render_document(
            text,
            args.title or path.stem,
            theme=settings.theme,
            config=config,
            known_files=known_files,
            plugins=settings.preview_plugins,
        )
    else:
        rendered = render_markdown(text, config, known_files=known_files, plugins=settings.preview_plugins)
    _write_text(rendered, args.output)
    return 0


def _cmd_docx(args: argparse.Namespace, settings: Settings) -> int:
    path = Path(args.path).expanduser()
    if not path.is_file():
        print(f"Path is not a file: {path}", file=sys.stderr)
        return 2
    data = export_docx(_read_markdown(path), args.title or path.stem, settings.parser_config())
    Path(args.output).expanduser().write_bytes(data)
    log.info("Wrote %d bytes to %s", len(data), args.output)
    return 0


def _cmd_outline(args: argparse.Namespace, settings: Settings) -> int:
    path = Path(args.path).expanduser()
    if not path.is_file():
        print(f"Path is not a file: {path}", file=sys.stderr)
        return 2
    root = build_outline(_read_markdown(path))
    payload = {"outline": root.to_dict()}
    if args.layout:
        layout_tree(root)
        payload = {"outline": root.to_dict(), "bounds": asdict(tree_bounds(root))}
    print(json.dumps(payload, indent=2))
    return 0


def _cmd_graph(args: argparse.Namespace, settings: Settings) -> int:
    root = Path(args.path).expanduser()
    if not root.is_dir():
        print(f"Path is not a directory: {root}", file=sys.stderr)
        return 2
    documents = {p.relative_to(root).as_posix(): _read_markdown(p) for p in _markdown_files(root)}
    graph = build_link_graph(scan_wiki_links(documents), random.Random(args.seed))
    iterations = args.iterations if args.iterations is not None else settings.graph_iterations
    graph = simulate_force_layout(graph, settings.graph_width, settings.graph_height, iterations)
    print(json.dumps(graph.to_dict(), indent=2))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markview",
        description="Render markdown to HTML or Word, and extract outlines and wiki-link graphs.",
    )
    parser.add_argument("--config", default=None, help="Config file (default: $MARKVIEW_CONFIG or ~/.markview.cfg).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    html_cmd = commands.add_parser("html", help="Render a markdown file to HTML.")
    html_cmd.add_argument("path")
    html_cmd.add_argument("-o", "--output", default=None, help="Output file (default: stdout).")
    html_cmd.add_argument("--document", action="store_true", help="Wrap the body in a standalone page.")
    html_cmd.add_argument("--title", default=None, help="Page title (default: file name).")
    html_cmd.set_defaults(handler=_cmd_html)

    docx_cmd = commands.add_parser("docx", help="Export a markdown file to .docx.")
    docx_cmd.add_argument("path")
    docx_cmd.add_argument("-o", "--output", required=True)
    docx_cmd.add_argument("--title", default=None, help="Document title (default: file name).")
    docx_cmd.set_defaults(handler=_cmd_docx)

    outline_cmd = commands.add_parser("outline", help="Print the heading outline as JSON.")
    outline_cmd.add_argument("path")
    outline_cmd.add_argument("--layout", action="store_true", help="Include tree layout coordinates.")
    outline_cmd.set_defaults(handler=_cmd_outline)

    graph_cmd = commands.add_parser("graph", help="Print the wiki-link graph of a directory as JSON.")
    graph_cmd.add_argument("path")
    graph_cmd.add_argument("--iterations", type=int, default=None)
    graph_cmd.add_argument("--seed", type=int, default=None)
    graph_cmd.set_defaults(handler=_cmd_graph)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    return args.handler(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
