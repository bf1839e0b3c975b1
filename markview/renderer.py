"""HTML renderer that keeps going when a single token fails to render."""

from __future__ import annotations

import html
import logging
from typing import Sequence

from markdown_it.renderer import RendererHTML
from markdown_it.token import Token

log = logging.getLogger(__name__)

MERMAID_INFO = "mermaid"


class GuardedRenderer(RendererHTML):
    """``RendererHTML`` with diagram fences, optional source-line attrs and skip-and-continue.

    Public methods here become token render rules (markdown-it-py collects
    them by name), so helpers stay private.
    """

    def render(self, tokens: Sequence[Token], options, env) -> str:
        parts: list[str] = []
        for idx, token in enumerate(tokens):
            try:
                if token.type == "inline":
                    if token.children:
                        parts.append(self.renderInline(token.children, options, env))
                elif token.type in self.rules:
                    parts.append(self.rules[token.type](tokens, idx, options, env))
                else:
                    parts.append(self.renderToken(tokens, idx, options, env))
            except Exception:
                log.warning("Skipping block token %r at %d", token.type, idx, exc_info=True)
        return "".join(parts)

    def renderInline(self, tokens: Sequence[Token], options, env) -> str:  # noqa: N802
        parts: list[str] = []
        for idx, token in enumerate(tokens):
            try:
                if token.type in self.rules:
                    parts.append(self.rules[token.type](tokens, idx, options, env))
                else:
                    parts.append(self.renderToken(tokens, idx, options, env))
            except Exception:
                log.warning("Skipping inline token %r at %d", token.type, idx, exc_info=True)
        return "".join(parts)

    def renderToken(self, tokens: Sequence[Token], idx: int, options, env) -> str:  # noqa: N802
        # Attach source-line metadata so preview selections can map back
        # to source markdown ranges.
        token = tokens[idx]
        if (
            options.get("source_lines")
            and token.nesting == 1
            and token.type.endswith("_open")
            and token.map
            and len(token.map) == 2
        ):
            # The attributes go on a copy; the caller's tokens stay untouched.
            token = token.copy(attrs=dict(token.attrs))
            token.attrSet("data-md-line-start", str(token.map[0]))
            token.attrSet("data-md-line-end", str(token.map[1]))
            # The base renderer looks at the neighbours on either side only.
            start = max(idx - 1, 0)
            window = list(tokens[start : idx + 2])
            window[idx - start] = token
            return super().renderToken(window, idx - start, options, env)
        return super().renderToken(tokens, idx, options, env)

    def fence(self, tokens: Sequence[Token], idx: int, options, env) -> str:
        # Diagram fences are handed to the client-side Mermaid renderer,
        # everything else goes through the default fenced-code renderer.
        token = tokens[idx]
        if token.info.strip() == MERMAID_INFO:
            return f'<div class="mermaid">{html.escape(token.content)}</div>\n'
        return super().fence(tokens, idx, options, env)
