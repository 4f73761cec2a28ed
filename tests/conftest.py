"""Shared pytest fixtures for dotnotes tests."""

import os
from datetime import datetime, timedelta, timezone

import pytest
from dotenv import load_dotenv

from dotnotes.sync.engine import DotfilesEngine
from dotnotes.sync.models import Note, Tag, utc_now
from dotnotes.sync.store import build_snapshot

load_dotenv()


class FakeNoteStore:
    """In-memory note store that records every call.

    Persisted notes get ``updated_at`` stamped with the write time, the way
    a sync server would.
    """

    def __init__(self):
        self.tags: dict[str, Tag] = {}
        self.notes: dict[str, Note] = {}
        self.fetch_calls = 0
        self.persist_calls: list[list] = []

    def fetch_snapshot(self, root):
        self.fetch_calls += 1
        return build_snapshot(self.tags.values(), self.notes.values(), root)

    def persist_batch(self, items):
        self.persist_calls.append(list(items))
        now = utc_now()
        for item in items:
            if isinstance(item, Note):
                self.notes[item.uuid] = item.model_copy(
                    update={"updated_at": now}
                )
            else:
                self.tags[item.uuid] = item

    def seed(self, tag_title, *notes):
        """Store a tag referencing *notes* directly, bypassing stamping."""
        for note in notes:
            self.notes[note.uuid] = note
        tag = Tag(title=tag_title, references=tuple(n.uuid for n in notes))
        self.tags[tag.uuid] = tag
        return tag

    def live_tag_titles(self):
        return sorted(t.title for t in self.tags.values() if not t.deleted)

    def live_note_titles(self):
        return sorted(n.title for n in self.notes.values() if not n.deleted)


def write_file(path, content, mtime=None):
    """Create *path* (and parents) with *content*, optionally setting mtime."""
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(content)
    if mtime is not None:
        ts = mtime.timestamp()
        os.utime(path, (ts, ts))
    return path


def hours_from_now(hours):
    return datetime.now(timezone.utc) + timedelta(hours=hours)


@pytest.fixture
def home(tmp_path):
    """A fresh home directory as a string path without trailing separator."""
    path = tmp_path / "home"
    path.mkdir()
    return str(path)


@pytest.fixture
def store():
    return FakeNoteStore()


@pytest.fixture
def engine(store, home):
    return DotfilesEngine(store=store, home=home)
