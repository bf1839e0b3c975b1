"""Grammar rule records contributed to the parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

# (tokens, idx, options, env) -> html, same shape markdown-it-py renderer rules use.
RenderFn = Callable[..., str]


class RuleKind(str, Enum):
    INLINE = "inline"
    BLOCK = "block"
    CORE = "core"
    # A markdown-it plugin function applied with ``md.use``.
    PLUGIN = "plugin"


@dataclass(frozen=True)
class GrammarRule:
    """One parsing rule plus the HTML render handlers for the token types it emits.

    ``anchor`` names an existing rule in the same chain to insert before; when
    omitted the rule is appended. ``alt`` lists block rules this one may
    interrupt (markdown-it's ``alt`` option).
    """

    name: str
    kind: RuleKind
    matcher: Callable[..., Any]
    anchor: str | None = None
    alt: tuple[str, ...] = ()
    renderers: tuple[tuple[str, RenderFn], ...] = ()
