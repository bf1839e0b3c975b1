"""Heading outline tree and editor fold ranges, derived from raw text."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)")
FOLD_HEADING_RE = re.compile(r"^(#{1,6})\s")
FENCE_OPEN_RE = re.compile(r"^`{3,}")
FENCE_CLOSE_RE = re.compile(r"^`{3,}\s*$")


@dataclass
class HeadingNode:
    id: str
    label: str
    level: int
    line: int
    children: list[HeadingNode] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0

    def walk(self):
        """Yield this node and its descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "level": self.level,
            "line": self.line,
            "x": self.x,
            "y": self.y,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True)
class FoldRange:
    start_line: int
    end_line: int


def build_outline(text: str) -> HeadingNode:
    """Heading hierarchy under a synthetic level-0 root.

    Heading jumps (an H1 followed directly by an H4) attach the deeper heading
    to the nearest shallower one, so a parent's level is always lower than
    its children's.
    """
    root = HeadingNode(id="root", label="Document", level=0, line=0)
    stack = [root]

    for index, line in enumerate(text.split("\n")):
        match = HEADING_RE.match(line)
        if match is None:
            continue
        level = len(match.group(1))
        node = HeadingNode(id=f"h-{index}", label=match.group(2).strip(), level=level, line=index + 1)

        while len(stack) > 1 and stack[-1].level >= level:
            stack.pop()
        stack[-1].children.append(node)
        stack.append(node)

    return root


def fold_ranges(text: str) -> list[FoldRange]:
    """Foldable regions: heading sections and fenced code blocks (1-based, inclusive)."""
    lines = text.split("\n")
    ranges: list[FoldRange] = []
    fence_closers: set[int] = set()

    for index, line in enumerate(lines):
        if index in fence_closers:
            continue
        heading = FOLD_HEADING_RE.match(line)
        if heading is not None:
            level = len(heading.group(1))
            end = len(lines) - 1
            for follow in range(index + 1, len(lines)):
                other = FOLD_HEADING_RE.match(lines[follow])
                if other is not None and len(other.group(1)) <= level:
                    end = follow - 1
                    break
            if end > index:
                ranges.append(FoldRange(index + 1, end + 1))
            continue

        if FENCE_OPEN_RE.match(line):
            for follow in range(index + 1, len(lines)):
                if FENCE_CLOSE_RE.match(lines[follow]):
                    ranges.append(FoldRange(index + 1, follow + 1))
                    fence_closers.add(follow)
                    break

    return ranges
