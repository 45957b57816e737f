"""Pytest configuration and shared fixtures."""

import os

import pytest

from quickswitch.corpus import LinkRecord, NoteRecord, VaultSnapshot
from quickswitch.models import Item


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Isolate environment variables for each test.

    Keeps QUICKSWITCH_* overrides and config paths from leaking between
    tests.
    """
    original_env = os.environ.copy()
    for key in list(os.environ):
        if key.startswith("QUICKSWITCH_"):
            monkeypatch.delenv(key)

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def make_item():
    """Factory for items with an id derived from the display name."""

    def _make(name: str, **kwargs) -> Item:
        kwargs.setdefault("id", f"{name}.md")
        for field in ("aliases", "tags", "headers", "links"):
            if field in kwargs:
                kwargs[field] = tuple(kwargs[field])
        return Item(display_name=name, **kwargs)

    return _make


@pytest.fixture
def sample_vault() -> VaultSnapshot:
    """A small vault with tags, headings, links and one unresolved link."""
    return VaultSnapshot(
        notes_=[
            NoteRecord(
                path="projects/Project Alpha Notes.md",
                aliases=["PAN"],
                tags=["#alpha"],
                headings=["Overview", "**Roadmap** for 2026"],
                links=[
                    LinkRecord(link="Beta", display="Beta", target="projects/Beta.md", offset=42),
                ],
                mtime=300.0,
            ),
            NoteRecord(
                path="projects/Beta.md",
                frontmatter_tags=["beta", "#work"],
                links=[
                    LinkRecord(link="Gamma", target="archive/Gamma.md", offset=7),
                    LinkRecord(link="Ideas", target=None, offset=20),
                ],
                starred=True,
                mtime=200.0,
            ),
            NoteRecord(
                path="archive/Gamma.md",
                links=[
                    LinkRecord(link="Beta", target="projects/Beta.md", offset=15),
                    LinkRecord(link="Beta#Intro", target="projects/Beta.md", offset=3),
                ],
                mtime=100.0,
            ),
            NoteRecord(path="daily/2026-10-19.md", mtime=400.0),
        ],
        active="projects/Beta.md",
        last_opened=["daily/2026-10-19.md", "archive/Gamma.md"],
    )
