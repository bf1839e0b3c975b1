"""Tests for wiki-link scanning, resolution and the link graph."""

from __future__ import annotations

import random

from markview.graph import (
    GraphEdge,
    WikiLink,
    build_link_graph,
    file_label,
    parse_wiki_links,
    resolve_wiki_link,
    scan_wiki_links,
)


def test_parse_wiki_links():
    links = parse_wiki_links("x [[One]] y [[Two Words | shown ]]", "a.md")
    assert links == [
        WikiLink("a.md", "One"),
        WikiLink("a.md", "Two Words", "shown"),
    ]


def test_resolution_normalizes_target():
    files = ["notes/foo-bar.md", "Other.md"]
    assert resolve_wiki_link("Foo Bar", files) == "notes/foo-bar.md"
    assert resolve_wiki_link("other", files) == "Other.md"
    assert resolve_wiki_link("missing", files) is None


def test_file_label_strips_directory_and_suffix():
    assert file_label("a/b/Note.MD") == "Note"
    assert file_label("c\\d.md") == "d"


def test_graph_dedups_and_skips_self_links():
    documents = {
        "a.md": "[[B]] [[b]] [[missing]] [[a]]",
        "notes/b.md": "[[A|alias]]",
    }
    scan = scan_wiki_links(documents)
    assert scan.files == ("a.md", "notes/b.md")
    assert len(scan.links) == 5

    graph = build_link_graph(scan, random.Random(1))
    assert [node.id for node in graph.nodes] == ["a.md", "notes/b.md"]
    assert [node.label for node in graph.nodes] == ["a", "b"]
    assert graph.edges == [GraphEdge("a.md", "notes/b.md"), GraphEdge("notes/b.md", "a.md")]


def test_graph_spawn_positions_are_seeded():
    scan = scan_wiki_links({"a.md": "", "b.md": ""})
    first = build_link_graph(scan, random.Random(7))
    second = build_link_graph(scan, random.Random(7))
    assert [(n.x, n.y) for n in first.nodes] == [(n.x, n.y) for n in second.nodes]
    for node in first.nodes:
        assert 100 <= node.x <= 700
        assert 100 <= node.y <= 500


def test_graph_to_dict():
    graph = build_link_graph(scan_wiki_links({"a.md": "[[b]]", "b.md": ""}), random.Random(0))
    data = graph.to_dict()
    assert data["edges"] == [{"source": "a.md", "target": "b.md"}]
    assert {node["id"] for node in data["nodes"]} == {"a.md", "b.md"}
