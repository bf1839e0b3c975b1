"""Wiki-link extraction, resolution and the cross-document link graph."""

from __future__ import annotations

import random
import re
from dataclasses import asdict, dataclass, field
from typing import Iterable, Mapping

WIKI_LINK_RE = re.compile(r"\[\[([^\]]+)\]\]")
MARKDOWN_SUFFIX_RE = re.compile(r"\.md$", re.IGNORECASE)

# Initial node positions are spread over this rectangle.
SPAWN_X = (100.0, 700.0)
SPAWN_Y = (100.0, 500.0)


@dataclass(frozen=True)
class WikiLink:
    source_file: str
    target: str
    alias: str | None = None


@dataclass(frozen=True)
class WikiScanResult:
    links: tuple[WikiLink, ...]
    files: tuple[str, ...]


@dataclass
class GraphNode:
    id: str
    label: str
    path: str
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str


@dataclass
class LinkGraph:
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "nodes": [asdict(node) for node in self.nodes],
            "edges": [asdict(edge) for edge in self.edges],
        }


def parse_wiki_links(content: str, source_file: str = "") -> list[WikiLink]:
    """All ``[[target]]`` / ``[[target|alias]]`` references in ``content``, in order."""
    links: list[WikiLink] = []
    for match in WIKI_LINK_RE.finditer(content):
        target, pipe, alias = match.group(1).partition("|")
        links.append(WikiLink(source_file, target.strip(), alias.strip() if pipe else None))
    return links


def _basename(path: str) -> str:
    return re.split(r"[\\/]", path)[-1]


def file_label(path: str) -> str:
    return MARKDOWN_SUFFIX_RE.sub("", _basename(path))


def normalize_target(target: str) -> str:
    return re.sub(r"\s+", "-", target.lower())


def resolve_wiki_link(target: str, known_files: Iterable[str]) -> str | None:
    """First known file whose extensionless basename matches ``target``.

    A file matches on the normalized form (lowercase, whitespace runs to
    hyphens) or on a plain case-insensitive comparison.
    """
    normalized = normalize_target(target)
    folded = target.lower()
    for path in known_files:
        name = file_label(path).lower()
        if name == normalized or name == folded:
            return path
    return None


def scan_wiki_links(documents: Mapping[str, str]) -> WikiScanResult:
    """Collect links from already-read documents keyed by path."""
    links: list[WikiLink] = []
    for path, content in documents.items():
        links.extend(parse_wiki_links(content, path))
    return WikiScanResult(tuple(links), tuple(documents))


def build_link_graph(scan: WikiScanResult, rng: random.Random | None = None) -> LinkGraph:
    """One node per known file, one edge per unique resolved (source, target) pair."""
    rng = rng or random.Random()
    nodes: dict[str, GraphNode] = {}
    for path in scan.files:
        nodes[path] = GraphNode(
            id=path,
            label=file_label(path),
            path=path,
            x=rng.uniform(*SPAWN_X),
            y=rng.uniform(*SPAWN_Y),
        )

    edges: list[GraphEdge] = []
    seen: set[tuple[str, str]] = set()
    for link in scan.links:
        resolved = resolve_wiki_link(link.target, scan.files)
        if resolved is None or resolved == link.source_file:
            continue
        key = (link.source_file, resolved)
        if key in seen:
            continue
        seen.add(key)
        edges.append(GraphEdge(link.source_file, resolved))

    return LinkGraph(list(nodes.values()), edges)
