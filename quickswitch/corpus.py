"""Corpus indexing from host records.

The host application owns the notes and their metadata. This module
defines the read-only interface the switcher pulls from (``Host``), an
in-memory implementation decoded from a JSON snapshot (``VaultSnapshot``),
and the indexer that turns raw records into immutable ``Item`` snapshots
for a search mode.
"""

from __future__ import annotations

import logging
import posixpath
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import msgspec

from .models import Item, SearchBy, SearchMode
from .prefilter import prefilter, resolve_patterns
from .tokenizer import exclude_format

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSION = ".md"


class LinkRecord(msgspec.Struct, frozen=True, kw_only=True):
    """An outgoing link or embed as reported by the host."""

    link: str
    display: str | None = None
    target: str | None = None  # resolved path, None when unresolved
    offset: int = 0


class NoteRecord(msgspec.Struct, frozen=True, kw_only=True):
    """A raw note as reported by the host's metadata index."""

    path: str
    aliases: list[str] = msgspec.field(default_factory=list)
    tags: list[str] = msgspec.field(default_factory=list)
    frontmatter_tags: list[str] = msgspec.field(default_factory=list)
    headings: list[str] = msgspec.field(default_factory=list)
    links: list[LinkRecord] = msgspec.field(default_factory=list)
    starred: bool = False
    mtime: float = 0.0

    @property
    def basename(self) -> str:
        return note_basename(self.path)


class Host(Protocol):
    """Read-only view of the host application."""

    def notes(self) -> Iterable[NoteRecord]:
        """Enumerate every note with its metadata."""
        ...

    def unresolved_links(self) -> Iterable[str]:
        """Link texts pointing at notes that do not exist yet."""
        ...

    def active_file(self) -> str | None:
        """Path of the note currently open, if any."""
        ...

    def last_opened_files(self) -> Sequence[str]:
        """Previously opened paths, most recent first."""
        ...

    def backlinks(self) -> Mapping[str, set[str]]:
        """Map from target path to the set of paths linking to it."""
        ...

    def first_link_offset(self, source: str, target: str) -> int | None:
        """Character offset of the first link or embed in source pointing at target."""
        ...


def note_basename(path: str) -> str:
    """File name without directory or Markdown extension."""
    name = posixpath.basename(path)
    if name.endswith(MARKDOWN_EXTENSION):
        name = name[: -len(MARKDOWN_EXTENSION)]
    return name


def note_dirname(path: str) -> str:
    return posixpath.dirname(path)


def uniq(values: Iterable[str]) -> list[str]:
    """Remove duplicates, keeping first occurrences in order."""
    return list(dict.fromkeys(values))


def build_backlinks_map(
    resolved_links: Iterable[tuple[str, str, int]],
) -> dict[str, set[str]]:
    """Accumulate (source, target, weight) triples into target -> {sources}."""
    backlinks: dict[str, set[str]] = {}
    for source, target, _weight in resolved_links:
        backlinks.setdefault(target, set()).add(source)
    return backlinks


def link_path(link_text: str) -> str:
    """Strip the subpath (``#heading``/``^block``) and display alias from a link."""
    for separator in ("|", "#", "^"):
        link_text = link_text.split(separator, 1)[0]
    return link_text.strip()


def path_to_be_created(
    link_text: str,
    new_file_location: str = "root",
    new_file_folder_path: str = "",
    current_dir: str = "",
) -> str:
    """Work out where a note created from a link text would live.

    Args:
        link_text: Link text as written in a note
        new_file_location: "root", "current" or "folder"
        new_file_folder_path: Target folder for the "folder" location
        current_dir: Directory of the active file for the "current" location

    Returns:
        Path of the note to create
    """
    path = link_path(link_text)
    if posixpath.splitext(path)[1] != MARKDOWN_EXTENSION:
        path += MARKDOWN_EXTENSION

    if "/" in path:
        return path

    if new_file_location == "current" and current_dir:
        return f"{current_dir}/{path}"
    if new_file_location == "folder" and new_file_folder_path:
        return f"{new_file_folder_path.rstrip('/')}/{path}"
    return path


def build_item(note: NoteRecord, search_by: SearchBy) -> Item:
    """Convert a host record into an item, keeping only the searched fields."""
    tags: list[str] = []
    if search_by.tag:
        tags = uniq(t.lstrip("#") for t in [*note.tags, *note.frontmatter_tags] if t)
    headers: list[str] = []
    if search_by.header:
        headers = [h for h in (exclude_format(x) for x in note.headings) if h]
    links: list[str] = []
    if search_by.link:
        links = uniq(x.display or x.link for x in note.links if x.display or x.link)

    return Item(
        id=note.path,
        display_name=note.basename,
        aliases=tuple(uniq(note.aliases)),
        tags=tuple(tags),
        headers=tuple(headers),
        links=tuple(links),
        is_starred=note.starred,
        mtime=note.mtime,
    )


def build_phantom_item(path: str) -> Item:
    return Item(id=path, display_name=note_basename(path), is_phantom=True)


def dedupe_items(items: Iterable[Item]) -> list[Item]:
    """Drop items without an id and repeated ids, keeping the first occurrence."""
    seen: set[str] = set()
    unique = []
    for item in items:
        if not item.id:
            logger.debug("Skipping item without id: %r", item.display_name)
            continue
        if item.id in seen:
            logger.debug("Skipping duplicate item: %s", item.id)
            continue
        seen.add(item.id)
        unique.append(item)
    return unique


@dataclass(frozen=True)
class CorpusSnapshot:
    """Items indexed and prefiltered for one search mode.

    Replaced as a whole on re-index; never mutated.
    """

    mode: SearchMode
    items: tuple[Item, ...]
    total_items: int
    active_file: str | None = None

    def __len__(self) -> int:
        return len(self.items)


class CorpusIndexer:
    """Builds corpus snapshots from a host for a given search mode."""

    def __init__(
        self,
        host: Host,
        show_existing_files_only: bool = False,
        backlink_exclude_prefix_path_patterns: Sequence[str] = (),
        new_file_location: str = "root",
        new_file_folder_path: str = "",
    ):
        """Initialize indexer.

        Args:
            host: Source of notes and workspace state
            show_existing_files_only: Leave out phantom items
            backlink_exclude_prefix_path_patterns: Exclusions used by
                backlink search instead of the mode's own patterns
            new_file_location: Where phantom notes would be created
            new_file_folder_path: Folder used when new_file_location is "folder"
        """
        self.host = host
        self.show_existing_files_only = show_existing_files_only
        self.backlink_exclude_prefix_path_patterns = tuple(
            backlink_exclude_prefix_path_patterns
        )
        self.new_file_location = new_file_location
        self.new_file_folder_path = new_file_folder_path

    def index(self, mode: SearchMode) -> CorpusSnapshot:
        """Index all notes for a mode and apply its path prefilter."""
        start = time.perf_counter()
        active_file = self.host.active_file()
        current_dir = note_dirname(active_file) if active_file else ""

        items = [
            build_item(note, mode.search_by)
            for note in self.host.notes()
            if note.path != active_file
        ]
        if not self.show_existing_files_only:
            items.extend(self._phantom_items(current_dir))
        items = dedupe_items(items)

        if mode.is_backlink_search:
            include: tuple[str, ...] = ()
            exclude = resolve_patterns(self.backlink_exclude_prefix_path_patterns, current_dir)
        else:
            include = resolve_patterns(mode.include_prefix_path_patterns, current_dir)
            exclude = resolve_patterns(mode.exclude_prefix_path_patterns, current_dir)
        kept = prefilter(items, include, exclude)

        logger.debug(
            "Indexing items (%s): %d of %d kept: %d[ms]",
            mode.name,
            len(kept),
            len(items),
            round((time.perf_counter() - start) * 1000),
        )
        return CorpusSnapshot(
            mode=mode,
            items=tuple(kept),
            total_items=len(items),
            active_file=active_file,
        )

    def _phantom_items(self, current_dir: str) -> list[Item]:
        paths = uniq(
            path_to_be_created(
                link,
                self.new_file_location,
                self.new_file_folder_path,
                current_dir,
            )
            for link in self.host.unresolved_links()
        )
        return [build_phantom_item(path) for path in paths]


class VaultSnapshot(msgspec.Struct, kw_only=True):
    """In-memory host built from a serialized vault snapshot.

    Example JSON::

        {"notes": [{"path": "a/Alpha.md", "tags": ["#x"],
                    "links": [{"link": "Beta", "target": "b/Beta.md"}]}],
         "active_file": "b/Beta.md", "last_opened": ["a/Alpha.md"]}
    """

    notes_: list[NoteRecord] = msgspec.field(default_factory=list, name="notes")
    active: str | None = msgspec.field(default=None, name="active_file")
    last_opened: list[str] = msgspec.field(default_factory=list)

    @classmethod
    def from_json(cls, data: bytes | str) -> VaultSnapshot:
        return msgspec.json.decode(data, type=cls)

    @classmethod
    def load(cls, path: Path) -> VaultSnapshot:
        """Load a snapshot from a JSON file."""
        return cls.from_json(Path(path).read_bytes())

    def notes(self) -> list[NoteRecord]:
        return self.notes_

    def unresolved_links(self) -> list[str]:
        return uniq(
            link.link for note in self.notes_ for link in note.links if link.target is None
        )

    def active_file(self) -> str | None:
        return self.active

    def last_opened_files(self) -> list[str]:
        return self.last_opened

    def resolved_links(self) -> list[tuple[str, str, int]]:
        """(source, target, count) for every resolved link target of every note."""
        triples = []
        for note in self.notes_:
            counts: dict[str, int] = {}
            for link in note.links:
                if link.target is not None:
                    counts[link.target] = counts.get(link.target, 0) + 1
            triples.extend((note.path, target, n) for target, n in counts.items())
        return triples

    def backlinks(self) -> dict[str, set[str]]:
        return build_backlinks_map(self.resolved_links())

    def first_link_offset(self, source: str, target: str) -> int | None:
        for note in self.notes_:
            if note.path != source:
                continue
            offsets = [link.offset for link in note.links if link.target == target]
            return min(offsets) if offsets else None
        return None
