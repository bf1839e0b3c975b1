"""Token sequence -> HTML fragment, plus the standalone themed HTML page."""

from __future__ import annotations

import html
import re
from typing import Iterable, Sequence

from markdown_it.token import Token

from .grammar import DEFAULT_CONFIG, ParserConfig, build_parser, parse
from .transforms import apply_preview_transforms

MERMAID_SCRIPT_URL = "https://cdn.jsdelivr.net/npm/mermaid@11/dist/mermaid.min.js"
MATHJAX_SCRIPT_URL = "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-svg.js"

THEMES = {
    "light": {
        "bg": "#ffffff",
        "code_bg": "#fafafa",
        "text": "#1e1e2e",
        "text_secondary": "#444444",
        "text_muted": "#6c7086",
        "accent": "#1e66f5",
        "border": "#e0e0e0",
    },
    "dark": {
        "bg": "#1e1e2e",
        "code_bg": "#181825",
        "text": "#cdd6f4",
        "text_secondary": "#bac2de",
        "text_muted": "#6c7086",
        "accent": "#89b4fa",
        "border": "#313244",
    },
}

_INLINE_MATH_RE = re.compile(r"(?<!\\)\$(?!\$)(?:[^$\n]|\\\$){1,400}?(?<!\\)\$")


def render_html(
    tokens: Sequence[Token],
    config: ParserConfig = DEFAULT_CONFIG,
    *,
    known_files: Iterable[str] | None = None,
) -> str:
    """Render ``tokens`` as an HTML fragment.

    ``known_files`` enables wiki-link resolution: resolved links carry
    ``data-wiki-path`` and unresolved ones the ``wikilink-unresolved`` class.
    """
    md = build_parser(config)
    env = {}
    if known_files is not None:
        env["known_files"] = tuple(known_files)
    return md.renderer.render(tokens, md.options, env)


def render_markdown(
    text: str,
    config: ParserConfig = DEFAULT_CONFIG,
    *,
    known_files: Iterable[str] | None = None,
    plugins: Sequence[str] = (),
) -> str:
    body = render_html(parse(text, config), config, known_files=known_files)
    if plugins:
        body = apply_preview_transforms(body, plugins)
    return body


def detect_special_features(html_doc: str) -> tuple[bool, bool]:
    """Return (has_math, has_mermaid) from rendered HTML."""
    text = html_doc or ""
    has_mermaid = 'class="mermaid"' in text
    has_math = "markview-math-block" in text or bool(_INLINE_MATH_RE.search(text))
    return has_math, has_mermaid


def _page_style(colors: dict[str, str]) -> str:
    return f"""
    *, *::before, *::after {{
      box-sizing: border-box;
    }}
    html, body {{
      margin: 0;
      padding: 0;
      background: {colors["bg"]};
      color: {colors["text"]};
      font-family: "Noto Sans", "DejaVu Sans", sans-serif;
      line-height: 1.55;
      font-size: 16px;
    }}
    main {{
      max-width: 980px;
      margin: 0 auto;
      padding: 1.1rem 1.4rem 4rem 1.4rem;
    }}
    a {{
      color: {colors["accent"]};
    }}
    pre, code {{
      font-family: "Noto Sans Mono", "DejaVu Sans Mono", monospace;
    }}
    code {{
      background: {colors["code_bg"]};
      color: {colors["text_secondary"]};
      border-radius: 4px;
      padding: 0.1rem 0.35rem;
    }}
    pre {{
      background: {colors["code_bg"]};
      border: 1px solid {colors["border"]};
      border-radius: 6px;
      padding: 0.8rem;
      overflow: auto;
    }}
    pre > code {{
      background: transparent;
      padding: 0;
    }}
    blockquote {{
      margin: 0.9rem 0;
      padding: 0.4rem 1rem;
      border-left: 4px solid {colors["accent"]};
      background: {colors["code_bg"]};
      color: {colors["text_secondary"]};
    }}
    table {{
      border-collapse: collapse;
    }}
    th, td {{
      border: 1px solid {colors["border"]};
      padding: 0.4rem 0.6rem;
    }}
    th {{
      background: {colors["code_bg"]};
    }}
    mark {{
      padding: 0 0.15rem;
      border-radius: 3px;
    }}
    .mermaid svg {{
      max-width: 100%;
      height: auto;
    }}
    .wikilink {{
      text-decoration: none;
      border-bottom: 1px dashed {colors["accent"]};
    }}
    .wikilink-unresolved {{
      color: {colors["text_muted"]};
      border-bottom-style: dotted;
    }}
    .markview-container {{
      margin: 0.9rem 0;
      padding: 0.72rem 0.9rem 0.78rem 0.95rem;
      border-left: 0.32rem solid #2563eb;
      background: rgba(37, 99, 235, 0.12);
      border-radius: 0.45rem;
      break-inside: avoid;
      page-break-inside: avoid;
    }}
    .markview-container-title {{
      margin: 0 0 0.38rem 0;
      font-weight: 700;
      letter-spacing: 0.01em;
    }}
    .markview-container-content > :first-child {{
      margin-top: 0;
    }}
    .markview-container-content > :last-child {{
      margin-bottom: 0;
    }}
    .markview-container-tip {{
      border-left-color: #16a34a;
      background: rgba(22, 163, 74, 0.12);
    }}
    .markview-container-warning {{
      border-left-color: #d97706;
      background: rgba(217, 119, 6, 0.14);
    }}
    .markview-container-danger {{
      border-left-color: #dc2626;
      background: rgba(220, 38, 38, 0.12);
    }}
    .footnotes {{
      font-size: 0.9em;
      color: {colors["text_secondary"]};
    }}
    @media print {{
      html, body {{
        background: white;
        color: #1e1e2e;
      }}
      .markview-container {{
        border-left-width: 4px;
      }}
    }}"""


def _page_scripts(has_math: bool, has_mermaid: bool, theme: str) -> str:
    parts: list[str] = []
    if has_math:
        parts.append(
            """  <script>
    window.MathJax = {
      tex: {
        inlineMath: [['$', '$'], ['\\\\(', '\\\\)']],
        displayMath: [['$$', '$$'], ['\\\\[', '\\\\]']]
      },
      options: {
        skipHtmlTags: ['script', 'noscript', 'style', 'textarea', 'pre', 'code']
      }
    };
  </script>
"""
        )
        parts.append(f'  <script defer src="{MATHJAX_SCRIPT_URL}"></script>\n')
    if has_mermaid:
        mermaid_theme = "dark" if theme == "dark" else "default"
        parts.append(f'  <script src="{MERMAID_SCRIPT_URL}"></script>\n')
        parts.append(
            "  <script>\n"
            f'    mermaid.initialize({{ startOnLoad: true, theme: "{mermaid_theme}" }});\n'
            "  </script>\n"
        )
    return "".join(parts)


def render_document(
    text: str,
    title: str,
    *,
    theme: str = "light",
    config: ParserConfig = DEFAULT_CONFIG,
    known_files: Iterable[str] | None = None,
    plugins: Sequence[str] = (),
) -> str:
    """Self-contained HTML page for ``text``; scripts are only included when the body needs them."""
    colors = THEMES.get(theme)
    if colors is None:
        raise ValueError(f"unknown theme {theme!r}; expected one of {sorted(THEMES)}")
    body = render_markdown(text, config, known_files=known_files, plugins=plugins)
    has_math, has_mermaid = detect_special_features(body)
    escaped_title = html.escape(title)
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  <title>{escaped_title}</title>
  <style>{_page_style(colors)}
  </style>
{_page_scripts(has_math, has_mermaid, theme)}</head>
<body>
<main>
{body}</main>
</body>
</html>
"""
