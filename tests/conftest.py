"""Shared fixtures for markview tests."""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop MARKVIEW_* overrides that may leak in from the calling shell."""
    for name in ("MARKVIEW_CONFIG", "MARKVIEW_EXTENSIONS", "MARKVIEW_THEME"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    """A small directory of linked notes."""
    (tmp_path / "notes").mkdir()
    (tmp_path / "index.md").write_text(
        "# Index\n\nSee [[Foo Bar|the foo note]] and [[Missing]].\n", encoding="utf-8"
    )
    (tmp_path / "notes" / "foo-bar.md").write_text(
        "# Foo Bar\n\nBack to [[index]].\n", encoding="utf-8"
    )
    return tmp_path
