"""Preview transforms: HTML -> HTML plugins applied after rendering."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Callable, Iterable

from bs4 import BeautifulSoup

log = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200
HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
COPY_BUTTON_SCRIPT = (
    "(function(btn){var code=btn.parentElement.querySelector('code');"
    "if(code){navigator.clipboard.writeText(code.textContent||'');btn.textContent='Copied!';"
    "setTimeout(function(){btn.textContent='Copy'},1500)}})(this)"
)


@dataclass(frozen=True)
class PreviewPlugin:
    id: str
    name: str
    description: str
    transform: Callable[[str], str]


def _text_stats(html: str) -> tuple[int, int]:
    """(words, characters) of the visible text, whitespace collapsed."""
    text = " ".join(BeautifulSoup(html, "html.parser").get_text(" ").split())
    words = len(text.split()) if text else 0
    return words, len(text)


def reading_time(html: str) -> str:
    words, _ = _text_stats(html)
    minutes = max(1, math.ceil(words / WORDS_PER_MINUTE))
    return f'<div class="plugin-reading-time">{minutes} min read · {words} words</div>' + html


def word_counter(html: str) -> str:
    words, chars = _text_stats(html)
    return html + f'<div class="plugin-word-counter">{words} words · {chars} characters</div>'


def heading_slug(text: str) -> str:
    slug = re.sub(r"[^\w\s-]", "", text.strip().lower())
    slug = re.sub(r"\s+", "-", slug)
    return re.sub(r"-+", "-", slug)


def heading_anchors(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for heading in soup.find_all(HEADING_TAGS):
        # Already anchored by an earlier pass
        if heading.find("a", class_="plugin-heading-anchor"):
            continue
        text = heading.get_text().strip()
        slug = heading_slug(text)
        heading["id"] = slug
        anchor = soup.new_tag("a", href=f"#{slug}")
        anchor["class"] = "plugin-heading-anchor"
        anchor["aria-label"] = f"Link to {text}"
        anchor.string = "#"
        heading.append(anchor)
    return str(soup)


def code_copy(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for code in soup.select("pre > code"):
        pre = code.parent
        if pre.parent is not None and "plugin-code-wrapper" in (pre.parent.get("class") or []):
            continue
        wrapper = soup.new_tag("div")
        wrapper["class"] = "plugin-code-wrapper"
        button = soup.new_tag("button", onclick=COPY_BUTTON_SCRIPT)
        button["class"] = "plugin-copy-btn"
        button.string = "Copy"
        pre.wrap(wrapper)
        pre.insert_before(button)
    return str(soup)


PREVIEW_PLUGINS: dict[str, PreviewPlugin] = {
    plugin.id: plugin
    for plugin in (
        PreviewPlugin(
            "reading-time",
            "Reading Time",
            "Shows estimated reading time at the top of the preview",
            reading_time,
        ),
        PreviewPlugin(
            "code-copy",
            "Code Copy Button",
            "Adds a copy-to-clipboard button on code blocks in preview",
            code_copy,
        ),
        PreviewPlugin(
            "heading-anchors",
            "Heading Anchors",
            "Adds clickable anchor links (#) next to headings in preview",
            heading_anchors,
        ),
        PreviewPlugin(
            "word-counter",
            "Word Counter",
            "Shows word and character count at the bottom of the preview",
            word_counter,
        ),
    )
}


def apply_preview_transforms(html: str, plugin_ids: Iterable[str]) -> str:
    """Apply the named plugins in order; unknown ids and failing plugins are logged and skipped."""
    for plugin_id in plugin_ids:
        plugin = PREVIEW_PLUGINS.get(plugin_id)
        if plugin is None:
            log.warning("Unknown preview plugin %r ignored", plugin_id)
            continue
        try:
            html = plugin.transform(html)
        except Exception:
            log.warning("Preview plugin %r failed; output left unchanged", plugin_id, exc_info=True)
    return html
