"""Parser configuration and the grammar extension registry.

A ``ParserConfig`` is an immutable, ordered rule list. Changing the enabled
extension set means building a new config; ``build_parser`` constructs a
fresh markdown-it parser for it and never mutates one after construction.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from .containers import container_rule, render_container_close, render_container_open
from .extensions import (
    highlight_rule,
    render_math_block,
    render_math_inline,
    render_wikilink,
    wikilink_rule,
)
from .renderer import GuardedRenderer
from .rules import GrammarRule, RenderFn, RuleKind

log = logging.getLogger(__name__)

PARSER_CACHE_SIZE = 32


@dataclass(frozen=True)
class ParserConfig:
    rules: tuple[GrammarRule, ...] = ()
    html: bool = True
    typographer: bool = True
    linkify: bool = True
    source_lines: bool = False

    @property
    def rule_names(self) -> tuple[str, ...]:
        return tuple(rule.name for rule in self.rules)

    def with_rule(self, rule: GrammarRule) -> ParserConfig:
        """Add ``rule``; a rule with the same name is replaced in place."""
        rules = list(self.rules)
        for position, existing in enumerate(rules):
            if existing.name == rule.name:
                rules[position] = rule
                break
        else:
            rules.append(rule)
        return replace(self, rules=tuple(rules))

    def without(self, name: str) -> ParserConfig:
        return replace(self, rules=tuple(rule for rule in self.rules if rule.name != name))

    def register_inline_rule(
        self,
        name: str,
        matcher: Callable[..., bool],
        *,
        before: str | None = None,
        renderers: tuple[tuple[str, RenderFn], ...] = (),
    ) -> ParserConfig:
        return self.with_rule(GrammarRule(name, RuleKind.INLINE, matcher, anchor=before, renderers=renderers))

    def register_block_rule(
        self,
        name: str,
        matcher: Callable[..., bool],
        *,
        before: str | None = None,
        alt: tuple[str, ...] = (),
        renderers: tuple[tuple[str, RenderFn], ...] = (),
    ) -> ParserConfig:
        return self.with_rule(
            GrammarRule(name, RuleKind.BLOCK, matcher, anchor=before, alt=alt, renderers=renderers)
        )


def register_inline_rule(config: ParserConfig, name: str, matcher: Callable[..., bool], **kwargs) -> ParserConfig:
    return config.register_inline_rule(name, matcher, **kwargs)


def register_block_rule(config: ParserConfig, name: str, matcher: Callable[..., bool], **kwargs) -> ParserConfig:
    return config.register_block_rule(name, matcher, **kwargs)


EXTENSIONS: dict[str, GrammarRule] = {
    "highlight": GrammarRule("highlight", RuleKind.INLINE, highlight_rule),
    "wikilinks": GrammarRule(
        "wikilinks",
        RuleKind.INLINE,
        wikilink_rule,
        anchor="link",
        renderers=(("wikilink", render_wikilink),),
    ),
    "containers": GrammarRule(
        "containers",
        RuleKind.CORE,
        container_rule,
        anchor="inline",
        renderers=(
            ("container_open", render_container_open),
            ("container_close", render_container_close),
        ),
    ),
    # Parse $...$ / $$...$$ as dedicated math tokens before markdown
    # emphasis/underscore rules run, preventing TeX corruption.
    "math": GrammarRule(
        "math",
        RuleKind.PLUGIN,
        dollarmath_plugin,
        renderers=(
            ("math_inline", render_math_inline),
            ("math_block", render_math_block),
            ("math_block_label", render_math_block),
        ),
    ),
    "tasklists": GrammarRule("tasklists", RuleKind.PLUGIN, tasklists_plugin),
    "footnotes": GrammarRule("footnotes", RuleKind.PLUGIN, footnote_plugin),
}

DEFAULT_EXTENSIONS: tuple[str, ...] = tuple(EXTENSIONS)


def build_config(extensions: Iterable[str] = DEFAULT_EXTENSIONS, **options: Any) -> ParserConfig:
    """Config enabling the named extensions, in catalogue order."""
    wanted = list(dict.fromkeys(extensions))
    for name in wanted:
        if name not in EXTENSIONS:
            log.warning("Unknown markdown extension %r ignored", name)
    config = ParserConfig(**options)
    for name, rule in EXTENSIONS.items():
        if name in wanted:
            config = config.with_rule(rule)
    return config


DEFAULT_CONFIG = build_config()


def _guard(rule: GrammarRule) -> Callable[..., Any]:
    """Wrap a matcher so a raising rule declines and leaves the scan state untouched."""
    matcher = rule.matcher

    @functools.wraps(matcher)
    def guarded(state, *args):
        saved_tokens = len(state.tokens)
        saved_pos = getattr(state, "pos", None)
        saved_line = getattr(state, "line", None)
        try:
            return matcher(state, *args)
        except Exception:
            log.exception("Grammar rule %r failed; treating it as no match", rule.name)
            del state.tokens[saved_tokens:]
            if saved_pos is not None:
                state.pos = saved_pos
            if saved_line is not None:
                state.line = saved_line
            return False

    return guarded


def _install(md: MarkdownIt, rule: GrammarRule) -> None:
    if rule.kind is RuleKind.PLUGIN:
        md.use(rule.matcher)
    else:
        ruler = {
            RuleKind.INLINE: md.inline.ruler,
            RuleKind.BLOCK: md.block.ruler,
            RuleKind.CORE: md.core.ruler,
        }[rule.kind]
        options = {"alt": list(rule.alt)} if rule.alt else None
        if rule.anchor:
            ruler.before(rule.anchor, rule.name, _guard(rule), options)
        else:
            ruler.push(rule.name, _guard(rule), options)

    for token_type, render in rule.renderers:
        md.renderer.rules[token_type] = render


@functools.lru_cache(maxsize=PARSER_CACHE_SIZE)
def build_parser(config: ParserConfig = DEFAULT_CONFIG) -> MarkdownIt:
    """Construct a markdown-it parser for ``config``; faulty rules are logged and left out."""
    md = MarkdownIt(
        "commonmark",
        {
            "html": config.html,
            "linkify": config.linkify,
            "typographer": config.typographer,
            "source_lines": config.source_lines,
        },
        renderer_cls=GuardedRenderer,
    ).enable("table").enable("strikethrough").enable("linkify")

    for rule in config.rules:
        try:
            _install(md, rule)
        except Exception:
            log.exception("Skipping grammar rule %r: registration failed", rule.name)
    return md


def parse(text: str, config: ParserConfig = DEFAULT_CONFIG) -> list[Token]:
    """Tokenize ``text``: block structure first, then inline children of each block."""
    return build_parser(config).parse(text, {})
